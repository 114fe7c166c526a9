# storefront/celery_worker.py
from celery import Celery
from celery.schedules import crontab

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    ORDER_REAPER_INTERVAL_SECONDS,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAŻNE: Explicite importuj taski, żeby Celery je zarejestrował
celery_app.conf.imports = (
    "storefront.services.notification_service",
    "storefront.tasks.analytics",
    "storefront.tasks.expire",
    "storefront.tasks.reports",
)

celery_app.conf.beat_schedule = {
    "reap-orphaned-orders": {
        "task": "storefront.tasks.expire.reap_orphaned_orders_task",
        "schedule": ORDER_REAPER_INTERVAL_SECONDS,
    },
    "monthly-analytics-report": {
        "task": "storefront.tasks.reports.generate_monthly_report_task",
        "schedule": crontab(minute=30, hour=0, day_of_month=1),
    },
}

celery_app.conf.timezone = "UTC"
