# storefront/data/models/report_record.py
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Integer, String, Text

from storefront.data.database import Base
from storefront.domain.status import ReportStatus


class ReportRecordModel(Base):
    __tablename__ = "report_records"

    id = Column(Integer, primary_key=True)
    #klucz okresu, np. "2026-09"
    period = Column(String(7), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default=ReportStatus.PENDING.value)

    total_products = Column(Integer, nullable=True)
    total_views = Column(BigInteger, nullable=True)
    total_orders = Column(BigInteger, nullable=True)
    error_message = Column(Text, nullable=True)

    generated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
