# storefront/tasks/expire.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.order_service import OrderService
from storefront.utils.settings import ORDER_PENDING_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.expire.reap_orphaned_orders_task")
def reap_orphaned_orders_task(max_age_seconds: int = ORDER_PENDING_TTL_SECONDS):
    #PENDING bez sesji checkoutu = bramka padla przy tworzeniu, zamowienie osierocone
    logger.info("Reap orphaned orders task started")

    db = SessionLocal()
    try:
        cancelled = OrderService(db).reap_orphaned(max_age_seconds)
        return {"cancelled": cancelled}
    finally:
        db.close()
