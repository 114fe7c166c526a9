# storefront/api/routers/reports.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.api.deps import get_lock_service, get_mail_client, require_admin
from storefront.data.database import get_db
from storefront.domain.schemas import ReportGenerateIn, ReportOut
from storefront.services.lock_service import LockService
from storefront.services.mail_client import MailClient
from storefront.services.report_service import ReportService

router = APIRouter(
    prefix="/admin/reports",
    tags=["reports"],
    dependencies=[Depends(require_admin)],
)


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    mail_client: MailClient = Depends(get_mail_client),
):
    return ReportService(db, lock_service=lock_service, mail_client=mail_client)


@router.post("/", response_model=ReportOut)
def generate_report(payload: ReportGenerateIn, svc: ReportService = Depends(get_service)):
    """
    Reczne uruchomienie raportu dla okresu. Okres juz wyslany = zwracamy
    istniejacy rekord bez ponownej wysylki.
    """
    record = svc.generate(payload.period)
    if record is None:
        # inny worker trzyma lock i rekordu jeszcze nie ma, albo baza padla
        raise HTTPException(status_code=409, detail=f"Report for {payload.period} is not available yet")
    return record


@router.get("/", response_model=List[ReportOut])
def list_reports(svc: ReportService = Depends(get_service)):
    return svc.list_reports()


@router.get("/{period}", response_model=ReportOut)
def get_report(period: str, svc: ReportService = Depends(get_service)):
    record = svc.get(period)
    if not record:
        raise HTTPException(status_code=404, detail=f"Report for {period} not found")
    return record
