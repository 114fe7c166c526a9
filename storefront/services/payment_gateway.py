# storefront/services/payment_gateway.py
from abc import ABC, abstractmethod

import stripe

from storefront.domain.errors import AuthenticityError, GatewayError, MissingCorrelationId
from storefront.domain.schemas import CheckoutSession, GatewayEvent
from storefront.utils.settings import (
    CHECKOUT_CANCEL_URL,
    CHECKOUT_SUCCESS_URL,
    GATEWAY_TIMEOUT_SECONDS,
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
ORDER_ID_METADATA_KEY = "order_id"


class PaymentGateway(ABC):
    """
    Zewnetrzny procesor platnosci - czarna skrzynka z trzema operacjami.
    """

    @abstractmethod
    def create_session(
        self,
        correlation_id: int,
        amount_minor_units: int,
        currency: str,
        customer_email: str,
    ) -> CheckoutSession:
        ...

    @abstractmethod
    def verify_and_parse(self, raw_payload: bytes, signature_header: str | None) -> GatewayEvent:
        ...

    def extract_correlation_id(self, source: CheckoutSession | GatewayEvent) -> str:
        value = (source.metadata or {}).get(ORDER_ID_METADATA_KEY)
        if not value:
            kind = "event" if isinstance(source, GatewayEvent) else "session"
            raise MissingCorrelationId(kind)
        return str(value)


class StripeGateway(PaymentGateway):
    def __init__(
        self,
        api_key: str | None = None,
        webhook_secret: str | None = None,
        success_url: str = CHECKOUT_SUCCESS_URL,
        cancel_url: str = CHECKOUT_CANCEL_URL,
        timeout: float = GATEWAY_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key or STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret or STRIPE_WEBHOOK_SECRET
        self.success_url = success_url
        self.cancel_url = cancel_url
        self.timeout = timeout

        stripe.api_key = self.api_key
        #timeout widoczny dla wolajacego, bez ukrytych retry po stronie SDK
        stripe.default_http_client = stripe.RequestsClient(timeout=self.timeout)
        stripe.max_network_retries = 0

    def create_session(
        self,
        correlation_id: int,
        amount_minor_units: int,
        currency: str,
        customer_email: str,
    ) -> CheckoutSession:
        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                success_url=f"{self.success_url}?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=self.cancel_url,
                customer_email=customer_email,
                line_items=[
                    {
                        "price_data": {
                            "currency": currency,
                            "unit_amount": amount_minor_units,
                            "product_data": {"name": f"Order #{correlation_id}"},
                        },
                        "quantity": 1,
                    }
                ],
                metadata={ORDER_ID_METADATA_KEY: str(correlation_id)},
                idempotency_key=f"order-{correlation_id}",
            )
        except stripe.StripeError as e:
            logger.error(f"Failed to create Stripe checkout session for order {correlation_id}: {e}")
            raise GatewayError("Failed to create checkout session") from e

        logger.info(f"Created Stripe checkout session {session.id} for order {correlation_id}")

        return CheckoutSession(
            session_id=session.id,
            redirect_url=session.url,
            metadata={ORDER_ID_METADATA_KEY: str(correlation_id)},
        )

    def verify_and_parse(self, raw_payload: bytes, signature_header: str | None) -> GatewayEvent:
        if not signature_header:
            raise AuthenticityError("Missing Stripe-Signature header")

        # podpis sprawdzany ZANIM czytamy jakiekolwiek pole
        try:
            event = stripe.Webhook.construct_event(raw_payload, signature_header, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Stripe webhook signature rejected: {e}")
            raise AuthenticityError("Invalid webhook signature") from e
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Stripe webhook payload could not be parsed: {e}")
            raise AuthenticityError("Malformed webhook payload") from e

        try:
            obj = event["data"]["object"]
            return GatewayEvent(
                event_id=event["id"],
                event_type=event["type"],
                session_id=obj.get("id"),
                payment_status=obj.get("payment_status"),
                metadata={k: str(v) for k, v in dict(obj.get("metadata") or {}).items()},
            )
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Stripe webhook event is missing required fields: {e}")
            raise AuthenticityError("Malformed webhook payload") from e
