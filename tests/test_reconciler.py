# tests/test_reconciler.py
from unittest.mock import MagicMock

import pytest

from storefront.domain.errors import AuthenticityError, OrderNotFound
from storefront.domain.status import OrderStatus
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService
from storefront.services.reconciler import PaymentReconciler


@pytest.fixture()
def on_confirmed():
    return MagicMock()


@pytest.fixture()
def orders(db, gateway, notifier, on_confirmed):
    return OrderService(db, gateway=gateway, notifier=notifier, on_confirmed=on_confirmed)


@pytest.fixture()
def handle(db, orders, customer, catalog):
    CartService(db).add_item(customer.id, catalog[0].id, 2)
    CartService(db).add_item(customer.id, catalog[1].id, 1)
    return orders.create_order(customer.id)


@pytest.fixture()
def reconciler(orders, gateway):
    return PaymentReconciler(orders, gateway)


class TestNotification:
    def test_valid_event_confirms_order(self, reconciler, orders, handle, stripe_event, on_confirmed):
        body, header = stripe_event(handle.session_id, handle.order_id)

        result = reconciler.handle_notification(body, header)

        assert result["status"] == "processed"
        assert result["order_id"] == handle.order_id
        assert orders.get_order_by_id(handle.order_id).status == OrderStatus.CONFIRMED.value
        on_confirmed.assert_called_once_with(handle.order_id)

    def test_redelivery_is_a_no_op(self, reconciler, handle, stripe_event, on_confirmed, notifier):
        body, header = stripe_event(handle.session_id, handle.order_id)

        reconciler.handle_notification(body, header)
        result = reconciler.handle_notification(body, header)

        assert result["status"] == "processed"
        on_confirmed.assert_called_once()
        notifier.send_order_confirmation.assert_called_once()

    def test_bad_signature_changes_nothing(self, reconciler, orders, handle, stripe_event):
        body, header = stripe_event(handle.session_id, handle.order_id, secret="whsec_attacker")

        with pytest.raises(AuthenticityError):
            reconciler.handle_notification(body, header)

        assert orders.get_order_by_id(handle.order_id).status == OrderStatus.PENDING.value

    def test_tampered_body_is_rejected(self, reconciler, handle, stripe_event):
        body, header = stripe_event(handle.session_id, handle.order_id)
        tampered = body.replace(b'"paid"', b'"PAID"')

        with pytest.raises(AuthenticityError):
            reconciler.handle_notification(tampered, header)

    def test_missing_signature_header(self, reconciler, handle, stripe_event):
        body, _ = stripe_event(handle.session_id, handle.order_id)

        with pytest.raises(AuthenticityError):
            reconciler.handle_notification(body, None)

    @pytest.mark.parametrize(
        "body",
        [
            "not json at all",
            '{"id": "evt_1", "object": "event", "data": {"object": {"id": "cs_1"}}}',
            '{"id": "evt_2", "object": "event", "type": "checkout.session.completed"}',
        ],
    )
    def test_signed_but_malformed_event_is_rejected(self, reconciler, orders, handle, sign_payload, body):
        payload, header = sign_payload(body)

        with pytest.raises(AuthenticityError):
            reconciler.handle_notification(payload, header)

        assert orders.get_order_by_id(handle.order_id).status == OrderStatus.PENDING.value

    def test_unrelated_event_type_is_ignored(self, reconciler, orders, handle, stripe_event):
        body, header = stripe_event(handle.session_id, handle.order_id, event_type="payment_intent.created")

        assert reconciler.handle_notification(body, header)["status"] == "ignored"
        assert orders.get_order_by_id(handle.order_id).status == OrderStatus.PENDING.value

    def test_unpaid_completion_waits_for_async_payment(self, reconciler, orders, handle, stripe_event):
        body, header = stripe_event(handle.session_id, handle.order_id, payment_status="unpaid")
        assert reconciler.handle_notification(body, header)["status"] == "ignored"

        body, header = stripe_event(
            handle.session_id, handle.order_id, event_type="checkout.session.async_payment_succeeded"
        )
        assert reconciler.handle_notification(body, header)["status"] == "processed"
        assert orders.get_order_by_id(handle.order_id).status == OrderStatus.CONFIRMED.value

    def test_missing_order_id_metadata(self, reconciler, orders, handle, stripe_event):
        body, header = stripe_event(handle.session_id, order_id=None)

        assert reconciler.handle_notification(body, header)["status"] == "unmatched"
        assert orders.get_order_by_id(handle.order_id).status == OrderStatus.PENDING.value

    def test_unknown_session(self, reconciler, stripe_event):
        body, header = stripe_event("cs_unknown", 999)

        assert reconciler.handle_notification(body, header)["status"] == "unmatched"

    def test_cancelled_order_is_rejected(self, reconciler, orders, handle, stripe_event, on_confirmed):
        orders.update_status(handle.order_id, OrderStatus.CANCELLED)
        body, header = stripe_event(handle.session_id, handle.order_id)

        assert reconciler.handle_notification(body, header)["status"] == "rejected"
        on_confirmed.assert_not_called()


class TestRedirect:
    def test_redirect_confirms(self, reconciler, handle, on_confirmed):
        result = reconciler.handle_redirect(handle.session_id)

        assert result["status"] == OrderStatus.CONFIRMED
        assert result["confirmed_by_redirect"] is True
        on_confirmed.assert_called_once()

    def test_redirect_then_webhook_dispatches_once(self, reconciler, handle, stripe_event, on_confirmed):
        reconciler.handle_redirect(handle.session_id)
        body, header = stripe_event(handle.session_id, handle.order_id)
        reconciler.handle_notification(body, header)

        on_confirmed.assert_called_once()

    def test_status_only_redirect(self, orders, gateway, handle, on_confirmed):
        reconciler = PaymentReconciler(orders, gateway, redirect_confirms=False)

        result = reconciler.handle_redirect(handle.session_id)

        assert result["status"] == OrderStatus.PENDING
        assert result["confirmed_by_redirect"] is False
        on_confirmed.assert_not_called()

    def test_unknown_session(self, reconciler):
        with pytest.raises(OrderNotFound):
            reconciler.handle_redirect("cs_nope")
