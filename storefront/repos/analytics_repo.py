# storefront/repos/analytics_repo.py
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from storefront.data.models.analytics_counter import AnalyticsCounterModel
from storefront.data.models.product import ProductModel


class AnalyticsRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_counter(self, product_id: int) -> AnalyticsCounterModel | None:
        #zawsze swiezy odczyt z bazy, nie z identity map
        return self.db.execute(
            select(AnalyticsCounterModel)
            .where(AnalyticsCounterModel.product_id == product_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def insert_counter(self, counter: AnalyticsCounterModel) -> None:
        self.db.add(counter)
        self.db.flush()

    def update_counter_version(
        self,
        counter_id: int,
        old_version: int,
        view_count: int,
        order_count: int,
    ) -> int:
        res = self.db.execute(
            update(AnalyticsCounterModel)
            .where(
                AnalyticsCounterModel.id == counter_id,
                AnalyticsCounterModel.version == old_version,
            )
            .values(
                view_count=view_count,
                order_count=order_count,
                version=old_version + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def listing(self, order_by_column: str, descending: bool) -> list[tuple]:
        """
        Kazdy produkt z licznikami (LEFT OUTER JOIN), brak wiersza licznika = zera.
        Zwraca krotki (product_id, name, view_count, order_count).
        """
        views = func.coalesce(AnalyticsCounterModel.view_count, 0).label("view_count")
        orders = func.coalesce(AnalyticsCounterModel.order_count, 0).label("order_count")
        sort_col = views if order_by_column == "views" else orders

        stmt = (
            select(ProductModel.id, ProductModel.name, views, orders)
            .select_from(ProductModel)
            .outerjoin(AnalyticsCounterModel, AnalyticsCounterModel.product_id == ProductModel.id)
            .order_by(sort_col.desc() if descending else sort_col.asc(), ProductModel.id.asc())
        )
        return [tuple(row) for row in self.db.execute(stmt)]

    def count_products(self) -> int:
        return self.db.execute(select(func.count(ProductModel.id))).scalar_one()

    def sum_views(self) -> int:
        return int(
            self.db.execute(
                select(func.coalesce(func.sum(AnalyticsCounterModel.view_count), 0))
            ).scalar_one()
        )

    def sum_orders(self) -> int:
        return int(
            self.db.execute(
                select(func.coalesce(func.sum(AnalyticsCounterModel.order_count), 0))
            ).scalar_one()
        )

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
