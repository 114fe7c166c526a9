# storefront/services/analytics_service.py
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.analytics_counter import AnalyticsCounterModel
from storefront.domain.errors import ConcurrencyExhausted, InvalidQuantity, ProductNotFound
from storefront.repos.analytics_repo import AnalyticsRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.retry import CounterConflict, counter_retry
from storefront.utils.settings import COUNTER_MAX_ATTEMPTS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SORT = "views_desc"
SORTS = {
    "views_asc": ("views", False),
    "views_desc": ("views", True),
    "orders_asc": ("orders", False),
    "orders_desc": ("orders", True),
}


class AnalyticsService:
    """
    Liczniki wyswietlen i zamowien per produkt.

    Zapis: read-modify-write z tokenem wersji (optimistic locking), bez locka.
    Przegrany zapis (0 wierszy albo przegrany INSERT na unique product_id)
    powtarza caly cykl od odczytu, maksymalnie `max_attempts` razy.
    """

    def __init__(self, db: Session, max_attempts: int = COUNTER_MAX_ATTEMPTS):
        self.repo = AnalyticsRepo(db)
        self.products = ProductRepo(db)
        self.max_attempts = max_attempts

    # =====================================================
    # COMMANDS
    # =====================================================
    def increment_view(self, product_id: int) -> Dict[str, int]:
        return self._increment(product_id, views=1, orders=0)

    def increment_order(self, product_id: int, quantity: int) -> Dict[str, int]:
        if quantity <= 0:
            raise InvalidQuantity(quantity)
        return self._increment(product_id, views=0, orders=quantity)

    def _increment(self, product_id: int, views: int, orders: int) -> Dict[str, int]:
        if not self.products.get_product(product_id):
            raise ProductNotFound(product_id)

        attempt = counter_retry(self.max_attempts)(self._apply)
        try:
            return attempt(product_id, views, orders)
        except CounterConflict as e:
            logger.warning(
                f"Counter for product {product_id} still conflicting after {self.max_attempts} attempts"
            )
            raise ConcurrencyExhausted(product_id, self.max_attempts) from e

    def _apply(self, product_id: int, views: int, orders: int) -> Dict[str, int]:
        counter = self.repo.get_counter(product_id)

        try:
            if counter is None:
                #pierwszy zapis dla produktu - lazy create z zerami + inkrement
                new_views, new_orders = views, orders
                self.repo.insert_counter(
                    AnalyticsCounterModel(
                        product_id=product_id,
                        view_count=new_views,
                        order_count=new_orders,
                        version=1,
                    )
                )
            else:
                new_views = counter.view_count + views
                new_orders = counter.order_count + orders
                rowcount = self.repo.update_counter_version(
                    counter_id=counter.id,
                    old_version=counter.version,
                    view_count=new_views,
                    order_count=new_orders,
                )
                if rowcount == 0:
                    raise CounterConflict(product_id)

            self.repo.commit()

        except IntegrityError as e:
            self.repo.rollback()
            logger.debug(f"Counter row for product {product_id} created concurrently, retrying")
            raise CounterConflict(product_id) from e
        except CounterConflict:
            self.repo.rollback()
            logger.debug(f"Version conflict on counter for product {product_id}, retrying")
            raise

        return {"product_id": product_id, "view_count": new_views, "order_count": new_orders}

    # =====================================================
    # QUERY
    # =====================================================
    def listing(self, sort: str | None = None) -> List[Dict[str, Any]]:
        key = (sort or DEFAULT_SORT).lower()
        if key not in SORTS:
            logger.warning(f"Invalid sort parameter: {sort}, using default {DEFAULT_SORT}")
            key = DEFAULT_SORT

        column, descending = SORTS[key]
        rows = self.repo.listing(column, descending)

        return [
            {
                "product_id": product_id,
                "name": name,
                "view_count": int(view_count),
                "order_count": int(order_count),
            }
            for product_id, name, view_count, order_count in rows
        ]

    def total_views(self) -> int:
        return self.repo.sum_views()

    def total_orders(self) -> int:
        return self.repo.sum_orders()

    def summary(self) -> Dict[str, int]:
        return {
            "total_products": self.repo.count_products(),
            "total_views": self.total_views(),
            "total_orders": self.total_orders(),
        }
