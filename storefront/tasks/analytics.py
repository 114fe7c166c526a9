# storefront/tasks/analytics.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.repos.order_repo import OrderRepo
from storefront.services.analytics_service import AnalyticsService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def dispatch_order_counts(order_id: int) -> bool:
    """Fire and forget - wrzuca zadanie do kolejki, blad tylko logujemy."""
    try:
        record_order_counts_task.delay(order_id)
        return True
    except Exception:
        logger.exception(f"Failed to enqueue order counts for order {order_id}")
        return False


def record_order_counts(db, order_id: int) -> dict:
    order = OrderRepo(db).get_order(order_id)
    if not order:
        logger.warning(f"Order {order_id} not found, skipping order counts")
        return {"order_id": order_id, "counted": 0, "failed": 0}

    analytics = AnalyticsService(db)
    counted, failed = 0, 0

    #kazda pozycja niezaleznie - blad jednej nie blokuje reszty
    for item in order.items:
        try:
            analytics.increment_order(item.product_id, item.quantity)
            counted += 1
        except Exception:
            failed += 1
            logger.exception(
                f"Failed to increment order count for product {item.product_id} (order {order_id})"
            )

    logger.info(f"Order counts for order {order_id}: {counted} lines counted, {failed} failed")
    return {"order_id": order_id, "counted": counted, "failed": failed}


@celery_app.task(name="storefront.tasks.analytics.record_order_counts_task")
def record_order_counts_task(order_id: int):
    db = SessionLocal()
    try:
        return record_order_counts(db, order_id)
    finally:
        db.close()
