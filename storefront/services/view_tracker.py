# storefront/services/view_tracker.py
import redis

from storefront.services.analytics_service import AnalyticsService
from storefront.utils.settings import VIEW_SESSION_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ViewTracker:
    """
    Deduplikacja wyswietlen per sesja przegladania.

    Zbior `views:<session>` w Redisie trzyma produkty juz policzone w tej sesji.
    SADD jest atomowe, wiec dwa rownolegle requesty tej samej sesji licza sie raz.
    Wszystko best-effort: blad redisa albo licznika nigdy nie psuje renderu strony.
    """

    def __init__(
        self,
        analytics: AnalyticsService,
        client: redis.Redis,
        ttl: int = VIEW_SESSION_TTL_SECONDS,
    ):
        self.analytics = analytics
        self.redis = client
        self.ttl = ttl

    @staticmethod
    def session_key(browse_session_id: str) -> str:
        return f"views:{browse_session_id}"

    def track(self, browse_session_id: str, product_id: int) -> bool:
        """Return True when this view was counted."""
        key = self.session_key(browse_session_id)
        member = str(product_id)

        try:
            claimed = self.redis.sadd(key, member)
        except redis.RedisError:
            logger.warning(f"View dedup unavailable for session {browse_session_id}", exc_info=True)
            return False

        if not claimed:
            logger.debug(f"Product {product_id} already counted in session {browse_session_id}")
            return False

        try:
            self.redis.expire(key, self.ttl)
        except redis.RedisError:
            #claim bez TTL zostalby na zawsze
            logger.warning(f"Could not set TTL on {key}, dropping claim", exc_info=True)
            self._release(key, member)
            return False

        try:
            self.analytics.increment_view(product_id)
            return True
        except Exception:
            logger.warning(f"Failed to count view of product {product_id}", exc_info=True)
            #oddaj claim, kolejne wyswietlenie moze sie policzyc
            self._release(key, member)
            return False

    def _release(self, key: str, member: str) -> None:
        try:
            self.redis.srem(key, member)
        except redis.RedisError:
            logger.warning(f"Could not release view claim {key}:{member}", exc_info=True)
