# storefront/data/models/analytics_counter.py
from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class AnalyticsCounterModel(Base):
    __tablename__ = "analytics_counters"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, unique=True)

    view_count = Column(BigInteger, nullable=False, default=0, index=True)
    order_count = Column(BigInteger, nullable=False, default=0, index=True)
    #token wersji dla optimistic locking
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    product = relationship("ProductModel", back_populates="counter")

    __table_args__ = (
        CheckConstraint("view_count >= 0", name="ck_counter_views"),
        CheckConstraint("order_count >= 0", name="ck_counter_orders"),
    )
