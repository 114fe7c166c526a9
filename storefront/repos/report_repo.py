# storefront/repos/report_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.report_record import ReportRecordModel


class ReportRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_period(self, period: str) -> ReportRecordModel | None:
        return self.db.execute(
            select(ReportRecordModel)
            .where(ReportRecordModel.period == period)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_all(self) -> list[ReportRecordModel]:
        return list(
            self.db.execute(
                select(ReportRecordModel).order_by(ReportRecordModel.period.desc())
            ).scalars()
        )

    def save(self, record: ReportRecordModel) -> ReportRecordModel:
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def rollback(self) -> None:
        self.db.rollback()
