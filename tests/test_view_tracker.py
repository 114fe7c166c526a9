# tests/test_view_tracker.py
from unittest.mock import MagicMock

import redis

from storefront.services.analytics_service import AnalyticsService
from storefront.services.view_tracker import ViewTracker


class TestViewTracker:
    def test_counts_once_per_session(self, db, catalog, fake_redis):
        tracker = ViewTracker(AnalyticsService(db), fake_redis, ttl=60)

        assert tracker.track("sess-1", catalog[0].id) is True
        assert tracker.track("sess-1", catalog[0].id) is False

        assert AnalyticsService(db).total_views() == 1
        assert fake_redis.ttls["views:sess-1"] == 60

    def test_other_sessions_and_products_count(self, db, catalog, fake_redis):
        tracker = ViewTracker(AnalyticsService(db), fake_redis)

        tracker.track("sess-1", catalog[0].id)
        tracker.track("sess-2", catalog[0].id)
        tracker.track("sess-1", catalog[1].id)

        assert AnalyticsService(db).total_views() == 3

    def test_failed_increment_releases_claim(self, fake_redis):
        analytics = MagicMock()
        analytics.increment_view.side_effect = [RuntimeError("db down"), {"view_count": 1}]
        tracker = ViewTracker(analytics, fake_redis)

        assert tracker.track("sess-1", 5) is False
        assert fake_redis.smembers("views:sess-1") == set()
        assert tracker.track("sess-1", 5) is True

    def test_redis_outage_skips_counting(self):
        analytics = MagicMock()
        client = MagicMock()
        client.sadd.side_effect = redis.ConnectionError("redis down")

        assert ViewTracker(analytics, client).track("sess-1", 5) is False
        analytics.increment_view.assert_not_called()

    def test_ttl_failure_drops_claim(self):
        analytics = MagicMock()
        client = MagicMock()
        client.sadd.return_value = 1
        client.expire.side_effect = redis.ConnectionError("redis down")

        assert ViewTracker(analytics, client).track("sess-1", 5) is False
        client.srem.assert_called_once_with("views:sess-1", "5")
        analytics.increment_view.assert_not_called()

    def test_ttl_failure_lets_next_view_count(self, fake_redis):
        analytics = MagicMock()
        tracker = ViewTracker(analytics, fake_redis)
        real_expire = fake_redis.expire
        fake_redis.expire = MagicMock(side_effect=[redis.ConnectionError("redis down"), True])

        assert tracker.track("sess-1", 5) is False
        assert fake_redis.smembers("views:sess-1") == set()

        fake_redis.expire = real_expire
        assert tracker.track("sess-1", 5) is True
        analytics.increment_view.assert_called_once_with(5)
