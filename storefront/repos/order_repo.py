# storefront/repos/order_repo.py
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.domain.status import OrderStatus


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        #flush bez commita, commit razem z zabraniem koszyka
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(selectinload(OrderModel.items))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_by_session_id(self, session_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.stripe_session_id == session_id)
            .options(selectinload(OrderModel.items))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_by_user(self, user_id: int, offset: int, limit: int) -> tuple[list[OrderModel], int]:
        total = self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.user_id == user_id)
        ).scalar_one()
        rows = self.db.execute(
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars()
        return list(rows), total

    def list_by_status(self, status: OrderStatus, offset: int, limit: int) -> tuple[list[OrderModel], int]:
        total = self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.status == status.value)
        ).scalar_one()
        rows = self.db.execute(
            select(OrderModel)
            .where(OrderModel.status == status.value)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars()
        return list(rows), total

    # warunkowe zapisy - rowcount mowi czy to my wygralismy

    def set_session_id(self, order_id: int, session_id: str) -> int:
        res = self.db.execute(
            update(OrderModel)
            .where(
                OrderModel.id == order_id,
                OrderModel.stripe_session_id.is_(None),
                OrderModel.status == OrderStatus.PENDING.value,
            )
            .values(stripe_session_id=session_id, updated_at=datetime.now(timezone.utc))
        )
        return res.rowcount

    def transition_status(self, order_id: int, current: OrderStatus, new: OrderStatus) -> int:
        res = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == current.value)
            .values(status=new.value, updated_at=datetime.now(timezone.utc))
        )
        return res.rowcount

    def confirm_by_session_id(self, session_id: str) -> int:
        #UPDATE orders SET status='CONFIRMED' WHERE stripe_session_id = :sid AND status = 'PENDING'
        res = self.db.execute(
            update(OrderModel)
            .where(
                OrderModel.stripe_session_id == session_id,
                OrderModel.status == OrderStatus.PENDING.value,
            )
            .values(status=OrderStatus.CONFIRMED.value, updated_at=datetime.now(timezone.utc))
        )
        return res.rowcount

    def cancel_orphaned(self, created_before: datetime) -> list[int]:
        ids = list(
            self.db.execute(
                select(OrderModel.id).where(
                    OrderModel.status == OrderStatus.PENDING.value,
                    OrderModel.stripe_session_id.is_(None),
                    OrderModel.created_at < created_before,
                )
            ).scalars()
        )
        cancelled = []
        for order_id in ids:
            #sesja mogla dojsc w miedzyczasie - wtedy nie ruszamy
            res = self.db.execute(
                update(OrderModel)
                .where(
                    OrderModel.id == order_id,
                    OrderModel.status == OrderStatus.PENDING.value,
                    OrderModel.stripe_session_id.is_(None),
                )
                .values(status=OrderStatus.CANCELLED.value, updated_at=datetime.now(timezone.utc))
            )
            if res.rowcount:
                cancelled.append(order_id)
        return cancelled

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
