# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.services.mail_client import MailClient
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_CONFIRMATION = "order-confirmation"
ORDER_STATUS_UPDATE = "order-status-update"
MONTHLY_REPORT = "monthly-analytics-report"


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Używa Celery do asynchronicznego przetwarzania - fire and forget,
    blad wysylki nigdy nie wraca do glownej operacji.
    """

    def send(self, recipient: str, template_key: str, variables: dict) -> bool:
        try:
            send_email_task.delay(recipient, template_key, variables)
            return True
        except Exception:
            logger.exception(f"Failed to enqueue '{template_key}' email for {recipient}")
            return False

    def send_order_confirmation(self, recipient: str, order_id: int, total_amount) -> bool:
        return self.send(
            recipient,
            ORDER_CONFIRMATION,
            {"order_number": f"ORD-{order_id}", "total_amount": str(total_amount)},
        )

    def send_order_status_update(self, recipient: str, order_id: int, status: str) -> bool:
        return self.send(
            recipient,
            ORDER_STATUS_UPDATE,
            {"order_number": f"ORD-{order_id}", "status": status},
        )


@celery_app.task(name="storefront.services.notification_service.send_email_task")
def send_email_task(recipient: str, template_key: str, variables: dict):
    """
    Celery task - wysyla maila przez relay. Blad jest logowany i tyle,
    nikt na ten wynik nie czeka.
    """
    try:
        MailClient().send(recipient, template_key, variables)
    except Exception:
        logger.exception(f"[NOTIFICATION] Failed to send '{template_key}' to {recipient}")
        return {"recipient": recipient, "template": template_key, "status": "failed"}

    logger.info(f"[NOTIFICATION] '{template_key}' sent to {recipient}")
    return {"recipient": recipient, "template": template_key, "status": "sent"}
