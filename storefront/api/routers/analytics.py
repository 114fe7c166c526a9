# storefront/api/routers/analytics.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import require_admin
from storefront.data.database import get_db
from storefront.domain.schemas import AnalyticsTotalsOut, ProductAnalyticsOut
from storefront.services.analytics_service import DEFAULT_SORT, AnalyticsService

router = APIRouter(
    prefix="/admin/analytics",
    tags=["analytics"],
    dependencies=[Depends(require_admin)],
)


@router.get("/", response_model=List[ProductAnalyticsOut])
def product_analytics(
    sort: str = Query(DEFAULT_SORT, description="views_asc | views_desc | orders_asc | orders_desc"),
    db: Session = Depends(get_db),
):
    # produkty bez licznika wchodza z zerami
    return AnalyticsService(db).listing(sort)


@router.get("/totals", response_model=AnalyticsTotalsOut)
def totals(db: Session = Depends(get_db)):
    return AnalyticsService(db).summary()
