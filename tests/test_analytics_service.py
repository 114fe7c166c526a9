# tests/test_analytics_service.py
import threading
from decimal import Decimal

import pytest

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import ConcurrencyExhausted, InvalidQuantity, ProductNotFound
from storefront.repos.analytics_repo import AnalyticsRepo
from storefront.services.analytics_service import AnalyticsService
from storefront.tasks.analytics import dispatch_order_counts, record_order_counts


class TestIncrements:
    def test_first_view_creates_counter(self, db, catalog):
        result = AnalyticsService(db).increment_view(catalog[0].id)

        assert result == {"product_id": catalog[0].id, "view_count": 1, "order_count": 0}

    def test_order_adds_quantity(self, db, catalog):
        svc = AnalyticsService(db)
        svc.increment_order(catalog[0].id, 3)
        result = svc.increment_order(catalog[0].id, 2)

        assert result["order_count"] == 5
        assert AnalyticsRepo(db).get_counter(catalog[0].id).version == 2

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_order_quantity_must_be_positive(self, db, catalog, quantity):
        with pytest.raises(InvalidQuantity):
            AnalyticsService(db).increment_order(catalog[0].id, quantity)

    def test_unknown_product(self, db):
        with pytest.raises(ProductNotFound):
            AnalyticsService(db).increment_view(404)


class TestNoLostUpdates:
    def test_interleaved_writer_forces_retry(self, session_factory, catalog):
        a, b = session_factory(), session_factory()
        try:
            writer_a, writer_b = AnalyticsService(a), AnalyticsService(b)
            product_id = catalog[0].id
            writer_b.increment_view(product_id)

            original = writer_a.repo.update_counter_version
            calls = []

            def interleaved(**kwargs):
                # drugi pisarz wchodzi miedzy odczyt a zapis pierwszego
                if not calls:
                    writer_b.increment_view(product_id)
                calls.append(kwargs)
                return original(**kwargs)

            writer_a.repo.update_counter_version = interleaved
            result = writer_a.increment_view(product_id)

            assert len(calls) == 2
            assert result["view_count"] == 3
        finally:
            a.close()
            b.close()

    def test_parallel_writers(self, session_factory, catalog):
        product_id = catalog[0].id
        threads_count, per_thread = 3, 10
        errors = []

        def worker():
            session = session_factory()
            try:
                svc = AnalyticsService(session, max_attempts=50)
                for _ in range(per_thread):
                    svc.increment_view(product_id)
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        check = session_factory()
        try:
            assert AnalyticsRepo(check).get_counter(product_id).view_count == threads_count * per_thread
        finally:
            check.close()

    def test_gives_up_after_max_attempts(self, db, catalog):
        svc = AnalyticsService(db, max_attempts=3)
        svc.increment_view(catalog[0].id)

        calls = []

        def always_stale(**kwargs):
            calls.append(kwargs)
            return 0

        svc.repo.update_counter_version = always_stale

        with pytest.raises(ConcurrencyExhausted):
            svc.increment_view(catalog[0].id)
        assert len(calls) == 3


class TestListing:
    def test_products_without_counters_are_zero_filled(self, db, catalog):
        svc = AnalyticsService(db)
        svc.increment_view(catalog[1].id)

        rows = svc.listing("views_desc")

        assert [r["product_id"] for r in rows] == [catalog[1].id, catalog[0].id, catalog[2].id]
        assert rows[1]["view_count"] == 0
        assert rows[1]["order_count"] == 0

    def test_sort_by_orders_ascending(self, db, catalog):
        svc = AnalyticsService(db)
        svc.increment_order(catalog[0].id, 5)
        svc.increment_order(catalog[1].id, 1)

        rows = svc.listing("orders_asc")

        assert [r["order_count"] for r in rows] == [0, 1, 5]

    @pytest.mark.parametrize("sort", [None, "", "bogus"])
    def test_invalid_sort_falls_back_to_views_desc(self, db, catalog, sort):
        svc = AnalyticsService(db)
        svc.increment_view(catalog[2].id)

        assert svc.listing(sort)[0]["product_id"] == catalog[2].id

    def test_totals(self, db, catalog):
        svc = AnalyticsService(db)
        assert svc.summary() == {"total_products": 3, "total_views": 0, "total_orders": 0}

        svc.increment_view(catalog[0].id)
        svc.increment_view(catalog[1].id)
        svc.increment_order(catalog[1].id, 4)

        assert svc.summary() == {"total_products": 3, "total_views": 2, "total_orders": 4}


class TestOrderCounts:
    def test_each_line_counted_independently(self, db, customer, catalog):
        order = OrderModel(
            user_id=customer.id,
            status="CONFIRMED",
            total_amount=Decimal("41.97"),
            items=[
                OrderItemModel(product_id=catalog[0].id, quantity=2, price=Decimal("12.99")),
                OrderItemModel(product_id=9999, quantity=1, price=Decimal("1.00")),
                OrderItemModel(product_id=catalog[1].id, quantity=1, price=Decimal("15.99")),
            ],
        )
        db.add(order)
        db.commit()

        result = record_order_counts(db, order.id)

        assert result == {"order_id": order.id, "counted": 2, "failed": 1}
        assert AnalyticsService(db).total_orders() == 3

    def test_missing_order(self, db):
        assert record_order_counts(db, 31337)["counted"] == 0

    def test_dispatch_enqueues(self, no_broker):
        assert dispatch_order_counts(7) is True
        no_broker["order_counts"].assert_called_once_with(7)

    def test_dispatch_swallows_broker_errors(self, no_broker):
        no_broker["order_counts"].side_effect = ConnectionError("broker down")

        assert dispatch_order_counts(7) is False
