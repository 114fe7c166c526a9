# storefront/services/order_service.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import (
    EmptyCart,
    GatewayError,
    InvalidStatusTransition,
    OrderNotFound,
    OrderStatusConflict,
    UserNotFound,
)
from storefront.domain.schemas import CheckoutHandle
from storefront.domain.status import OrderStatus, check_transition
from storefront.repos.order_repo import OrderRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.cart_service import CartService
from storefront.services.notification_service import NotificationService
from storefront.services.payment_gateway import PaymentGateway, StripeGateway
from storefront.tasks.analytics import dispatch_order_counts
from storefront.utils.settings import CURRENCY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def to_minor_units(amount: Decimal) -> int:
    # mnozenie i obciecie, bez zaokraglania half-up
    return int(Decimal(amount) * 100)


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.

    Zamowienie powstaje z koszyka w dwoch zapisach: najpierw PENDING z
    zamrozonymi cenami, potem (po wywolaniu bramki, poza transakcja)
    id sesji checkoutu. Potwierdzenie idzie jednym warunkowym UPDATE.
    """

    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway | None = None,
        notifier: NotificationService | None = None,
        on_confirmed: Callable[[int], object] = dispatch_order_counts,
        currency: str = CURRENCY,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.users = UserRepo(db)
        self.carts = CartService(db)
        self._gateway = gateway
        self.notifier = notifier if notifier is not None else NotificationService()
        self.on_confirmed = on_confirmed
        self.currency = currency

    @property
    def gateway(self) -> PaymentGateway:
        #stripe konfigurowany dopiero gdy naprawde idziemy do bramki
        if self._gateway is None:
            self._gateway = StripeGateway()
        return self._gateway

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(self, user_id: int) -> CheckoutHandle:
        """
        Use Case: Tworzenie zamówienia z koszyka.

        1. Snapshot koszyka (z wersja), pusty = EmptyCart
        2. Total po aktualnych cenach
        3. W jednej transakcji: zamowienie PENDING z zamrozonymi cenami
           + zabranie pozycji z koszyka warunkowo na wersje ze snapshotu
        4. Sesja checkoutu w bramce - poza transakcja, z timeoutem;
           blad = pozycje wracaja do koszyka
        5. Zapis id sesji na zamowieniu
        """
        user = self.users.get_user(user_id)
        if not user:
            raise UserNotFound(user_id)

        snapshot = self.carts.snapshot(user_id)
        if not snapshot["items"]:
            raise EmptyCart()

        total = sum(
            (line["unit_price"] * line["quantity"] for line in snapshot["items"]),
            Decimal("0.00"),
        )

        order = OrderModel(
            user_id=user_id,
            status=OrderStatus.PENDING.value,
            total_amount=total,
            items=[
                OrderItemModel(
                    product_id=line["product_id"],
                    quantity=line["quantity"],
                    price=line["unit_price"],
                )
                for line in snapshot["items"]
            ],
        )
        created = self.repo.add_order(order)
        # CartConflict robi rollback, zamowienie nie powstaje
        self.carts.claim_for_checkout(snapshot["cart_id"], snapshot["version"])
        self.repo.commit()

        logger.info(f"Order {created.id} created for user {user_id}, total {total}")

        try:
            session = self.gateway.create_session(
                created.id,
                to_minor_units(total),
                self.currency,
                user.email,
            )
        except GatewayError:
            # zamowienie zostaje PENDING bez sesji, sprzata je reaper
            logger.error(f"Checkout session failed for order {created.id}, order left PENDING")
            self._restore_cart(user_id, snapshot["items"], created.id)
            raise

        rowcount = self.repo.set_session_id(created.id, session.session_id)
        if rowcount == 0:
            self.repo.rollback()
            raise OrderStatusConflict(created.id)
        self.repo.commit()

        logger.info(f"Order {created.id} handed off to checkout session {session.session_id}")

        return CheckoutHandle(
            order_id=created.id,
            session_id=session.session_id,
            redirect_url=session.redirect_url,
        )

    def _restore_cart(self, user_id: int, lines: list, order_id: int) -> None:
        try:
            self.carts.restore_items(user_id, lines)
        except Exception:
            logger.exception(f"Failed to restore cart of user {user_id} after failed checkout of order {order_id}")

    def update_status(self, order_id: int, new_status: OrderStatus) -> OrderModel:
        order = self.get_order_by_id(order_id)
        current = OrderStatus(order.status)
        if OrderStatus(new_status) == OrderStatus.CONFIRMED:
            #potwierdza tylko platnosc (confirm_order), nigdy reczna zmiana
            raise InvalidStatusTransition(current.value, OrderStatus.CONFIRMED.value)
        requested = check_transition(current, new_status)

        rowcount = self.repo.transition_status(order.id, current, requested)
        if rowcount == 0:
            self.repo.rollback()
            raise OrderStatusConflict(order_id)
        self.repo.commit()

        logger.info(f"Updated order {order_id} status from {current.value} to {requested.value}")

        self._after_status_change(order, requested)
        return self.get_order_by_id(order_id)

    def confirm_order(self, session_id: str) -> OrderModel:
        """
        Jedno wejscie dla redirectu i webhooka. Tylko wywolanie, ktore
        faktycznie przestawilo PENDING -> CONFIRMED odpala efekty uboczne.
        """
        rowcount = self.repo.confirm_by_session_id(session_id)
        self.repo.commit()

        order = self.repo.get_by_session_id(session_id)
        if not order:
            raise OrderNotFound(session_id)

        if rowcount == 1:
            logger.info(f"Order {order.id} confirmed by checkout session {session_id}")
            self._after_status_change(order, OrderStatus.CONFIRMED)
            return order

        if order.status == OrderStatus.CANCELLED.value:
            raise InvalidStatusTransition(order.status, OrderStatus.CONFIRMED.value)

        logger.info(f"Order {order.id} already {order.status}, confirmation is a no-op")
        return order

    def reap_orphaned(self, max_age_seconds: int) -> list[int]:
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=max_age_seconds)
        cancelled = self.repo.cancel_orphaned(cutoff)
        self.repo.commit()

        if cancelled:
            logger.info(f"Cancelled {len(cancelled)} orphaned PENDING orders: {cancelled}")
        return cancelled

    def _after_status_change(self, order: OrderModel, status: OrderStatus) -> None:
        #efekty uboczne po commicie, ich blad nie zmienia wyniku operacji
        try:
            email = order.user.email
            if status == OrderStatus.CONFIRMED:
                self.notifier.send_order_confirmation(email, order.id, order.total_amount)
            elif status != OrderStatus.PENDING:
                self.notifier.send_order_status_update(email, order.id, status.value)
        except Exception:
            logger.exception(f"Failed to dispatch notification for order {order.id}")

        if status == OrderStatus.CONFIRMED:
            try:
                self.on_confirmed(order.id)
            except Exception:
                logger.exception(f"Failed to dispatch analytics for order {order.id}")

    # =====================================================
    # QUERY
    # =====================================================
    def get_order_by_id(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id)
        return order

    def get_order(self, order_id: int, user_id: int) -> OrderModel:
        order = self.get_order_by_id(order_id)

        if order.user_id != user_id:
            raise PermissionError("No access to this order")

        return order

    def get_by_session_id(self, session_id: str) -> OrderModel:
        order = self.repo.get_by_session_id(session_id)
        if not order:
            raise OrderNotFound(session_id)
        return order

    def list_orders(self, user_id: int, page: int = 0, size: int = 10) -> dict:
        items, total = self.repo.list_by_user(user_id, page * size, size)
        return {"items": items, "total": total, "page": page, "size": size}

    def list_by_status(self, status: OrderStatus, page: int = 0, size: int = 10) -> dict:
        items, total = self.repo.list_by_status(OrderStatus(status), page * size, size)
        return {"items": items, "total": total, "page": page, "size": size}
