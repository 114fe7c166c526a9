# storefront/api/routers/products.py
import uuid

import redis
from fastapi import APIRouter, Cookie, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from storefront.api.deps import get_redis
from storefront.data.database import get_db
from storefront.domain.errors import ProductNotFound
from storefront.domain.schemas import PriceIn, ProductCreate, ProductOut
from storefront.services.analytics_service import AnalyticsService
from storefront.services.product_service import ProductService
from storefront.services.view_tracker import ViewTracker
from storefront.utils.settings import VIEW_SESSION_TTL_SECONDS

router = APIRouter(prefix="/products", tags=["products"])

BROWSE_COOKIE = "browse_session"


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    return ProductService(db).create_product(payload)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    response: Response,
    browse_session: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
    client: redis.Redis = Depends(get_redis),
):
    """
    Szczegoly produktu. Wyswietlenie liczone raz na sesje przegladania,
    blad liczenia nigdy nie psuje odpowiedzi.
    """
    try:
        product = ProductService(db).get_product(product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    if not browse_session:
        browse_session = uuid.uuid4().hex
        response.set_cookie(BROWSE_COOKIE, browse_session, max_age=VIEW_SESSION_TTL_SECONDS, httponly=True)

    ViewTracker(AnalyticsService(db), client).track(browse_session, product.id)
    return product


@router.put("/{product_id}/price", response_model=ProductOut)
def change_price(product_id: int, payload: PriceIn, db: Session = Depends(get_db)):
    try:
        return ProductService(db).change_price(product_id, payload.price)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
