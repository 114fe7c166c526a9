# storefront/services/reconciler.py
from typing import Any, Dict

from storefront.domain.errors import (
    AuthenticityError,
    InvalidStatusTransition,
    MissingCorrelationId,
    OrderNotFound,
)
from storefront.domain.status import OrderStatus
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import CHECKOUT_COMPLETED, PaymentGateway
from storefront.utils.settings import REDIRECT_CONFIRMS_ORDER
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ASYNC_PAYMENT_SUCCEEDED = "checkout.session.async_payment_succeeded"
CONFIRMING_EVENTS = (CHECKOUT_COMPLETED, ASYNC_PAYMENT_SUCCEEDED)


class PaymentReconciler:
    """
    Dwa niezalezne wyzwalacze potwierdzenia:
    - webhook bramki (podpisany, autorytatywny)
    - redirect przegladarki z session_id (niezweryfikowany, traktowany jako podpowiedz)

    Oba koncza w OrderService.confirm_order, ktore jest idempotentne, wiec
    kolejnosc i wspolbieznosc wyzwalaczy nie ma znaczenia.
    """

    def __init__(
        self,
        orders: OrderService,
        gateway: PaymentGateway,
        redirect_confirms: bool = REDIRECT_CONFIRMS_ORDER,
    ):
        self.orders = orders
        self.gateway = gateway
        self.redirect_confirms = redirect_confirms

    def handle_notification(self, raw_payload: bytes, signature_header: str | None) -> Dict[str, Any]:
        # AuthenticityError leci dalej -> 400, nic nie zmienione
        event = self.gateway.verify_and_parse(raw_payload, signature_header)

        if event.event_type not in CONFIRMING_EVENTS:
            logger.info(f"Ignoring gateway event {event.event_id} of type {event.event_type}")
            return {"status": "ignored", "event_type": event.event_type}

        if event.event_type == CHECKOUT_COMPLETED and event.payment_status == "unpaid":
            #platnosc odroczona, czekamy na async_payment_succeeded
            logger.info(f"Checkout session {event.session_id} completed but unpaid, waiting")
            return {"status": "ignored", "event_type": event.event_type}

        if not event.session_id:
            raise AuthenticityError("Verified event carries no checkout session id")

        try:
            correlation_id = self.gateway.extract_correlation_id(event)
        except MissingCorrelationId:
            logger.error(f"Event {event.event_id} for session {event.session_id} has no order id")
            return {"status": "unmatched", "event_type": event.event_type}

        try:
            order = self.orders.confirm_order(event.session_id)
        except OrderNotFound:
            logger.error(f"No order for checkout session {event.session_id} (order id {correlation_id})")
            return {"status": "unmatched", "event_type": event.event_type}
        except InvalidStatusTransition as e:
            logger.error(f"Payment completed for session {event.session_id} but {e}")
            return {"status": "rejected", "event_type": event.event_type}

        if str(order.id) != correlation_id:
            logger.warning(
                f"Order id mismatch for session {event.session_id}: "
                f"metadata says {correlation_id}, session belongs to {order.id}"
            )

        logger.info(f"Successfully processed payment for order {order.id}")
        return {
            "status": "processed",
            "event_type": event.event_type,
            "order_id": order.id,
            "order_status": order.status,
        }

    def handle_redirect(self, session_id: str) -> Dict[str, Any]:
        if self.redirect_confirms:
            order = self.orders.confirm_order(session_id)
        else:
            #tylko sprawdzenie statusu, potwierdza webhook
            order = self.orders.get_by_session_id(session_id)

        return {
            "order_id": order.id,
            "status": OrderStatus(order.status),
            "confirmed_by_redirect": self.redirect_confirms,
        }
