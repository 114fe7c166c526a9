# storefront/tasks/reports.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.report_service import ReportService, previous_period
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.reports.generate_monthly_report_task")
def generate_monthly_report_task(period: str | None = None):
    #beat odpala 1. dnia miesiaca, raport dotyczy poprzedniego
    period = period or previous_period()
    logger.info(f"Monthly report task started for {period}")

    db = SessionLocal()
    try:
        record = ReportService(db).generate(period)
        if record is None:
            return {"period": period, "status": None}
        return {"period": record.period, "status": record.status}
    finally:
        db.close()
