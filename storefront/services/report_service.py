# storefront/services/report_service.py
import re
import uuid
from datetime import date, datetime, timezone

import redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.report_record import ReportRecordModel
from storefront.domain.status import ReportStatus
from storefront.repos.report_repo import ReportRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.analytics_service import AnalyticsService
from storefront.services.lock_service import LockService
from storefront.services.mail_client import MailClient
from storefront.services.notification_service import MONTHLY_REPORT
from storefront.utils.settings import REPORT_LOCK_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
NO_ADMINS = "No admin recipients"


def previous_period(today: date | None = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    year, month = (today.year, today.month - 1) if today.month > 1 else (today.year - 1, 12)
    return f"{year:04d}-{month:02d}"


class ReportService:
    """
    Miesieczny snapshot licznikow wysylany do adminow.

    Idempotentny per okres: raport SENT dla okresu = kolejne wywolania to no-op.
    Zaden blad nie wychodzi poza generate() - scheduler musi dzialac dalej
    dla kolejnych miesiecy.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService | None = None,
        mail_client: MailClient | None = None,
        lock_ttl: int = REPORT_LOCK_TTL_SECONDS,
    ):
        self.repo = ReportRepo(db)
        self.users = UserRepo(db)
        self.analytics = AnalyticsService(db)
        self.lock_service = lock_service if lock_service is not None else LockService()
        self.mail_client = mail_client if mail_client is not None else MailClient()
        self.lock_ttl = lock_ttl

    def generate(self, period: str) -> ReportRecordModel | None:
        if not PERIOD_RE.match(period or ""):
            logger.error(f"Invalid report period '{period}', expected YYYY-MM")
            return None

        logger.info(f"Starting report generation for {period}")

        try:
            existing = self.repo.get_by_period(period)
            if existing and existing.status == ReportStatus.SENT.value:
                logger.info(f"Report for {period} already sent, skipping")
                return existing

            key = LockService.report_key(period)
            owner = uuid.uuid4().hex
            try:
                locked = self.lock_service.acquire(key, owner, self.lock_ttl)
            except redis.RedisError:
                #bez redisa dalej chroni nas unique na period
                logger.warning(f"Report lock unavailable for {period}, generating without it", exc_info=True)
                locked = None

            if locked is False:
                logger.info(f"Report for {period} is being generated by another worker, skipping")
                return existing

            try:
                return self._generate_locked(period)
            finally:
                if locked:
                    try:
                        self.lock_service.release(key, owner)
                    except redis.RedisError:
                        logger.warning(f"Failed to release report lock {key}", exc_info=True)

        except Exception:
            logger.exception(f"Report generation for {period} failed before the record was saved")
            self.repo.rollback()
            return None

    def _generate_locked(self, period: str) -> ReportRecordModel:
        record = self.repo.get_by_period(period)
        if record and record.status == ReportStatus.SENT.value:
            logger.info(f"Report for {period} was sent meanwhile, skipping")
            return record

        record = record or ReportRecordModel(period=period)
        record.status = ReportStatus.GENERATING.value
        record.error_message = None
        try:
            record = self.repo.save(record)
        except IntegrityError:
            self.repo.rollback()
            record = self.repo.get_by_period(period)
            if record.status == ReportStatus.SENT.value:
                return record
            record.status = ReportStatus.GENERATING.value
            record = self.repo.save(record)

        try:
            summary = self.analytics.summary()
            items = self.analytics.listing("views_desc")

            record.total_products = summary["total_products"]
            record.total_views = summary["total_views"]
            record.total_orders = summary["total_orders"]

            admins = self.users.list_admins()
            logger.info(f"Found {len(admins)} admin users to send report to")

            if not admins:
                logger.warning("No admin users found to send report to")
                record.error_message = NO_ADMINS
            else:
                variables = {"period": period, **summary, "items": items}
                for admin in admins:
                    self.mail_client.send(admin.email, MONTHLY_REPORT, variables)

            record.status = ReportStatus.SENT.value
            record.generated_at = datetime.now(timezone.utc)
            logger.info(f"Report for {period} sent to {len(admins)} admins")

        except Exception as e:
            logger.exception(f"Failed to generate/send report for {period}")
            self.repo.rollback()
            record.status = ReportStatus.FAILED.value
            record.error_message = str(e) or type(e).__name__

        return self.repo.save(record)

    def get(self, period: str) -> ReportRecordModel | None:
        return self.repo.get_by_period(period)

    def list_reports(self) -> list[ReportRecordModel]:
        return self.repo.list_all()
