# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_gateway, get_notifier, require_admin
from storefront.data.database import get_db
from storefront.domain.errors import (
    ConflictError,
    GatewayError,
    NotFoundError,
    OrderNotFound,
    ValidationError,
)
from storefront.domain.schemas import (
    CheckoutHandle,
    OrderCreate,
    OrderOut,
    OrderPage,
    RedirectOut,
    StatusUpdateIn,
)
from storefront.domain.status import OrderStatus
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import PaymentGateway
from storefront.services.reconciler import PaymentReconciler

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: NotificationService = Depends(get_notifier),
):
    return OrderService(db, gateway=gateway, notifier=notifier)


@router.post("/", response_model=CheckoutHandle, status_code=201)
def create_order(
    payload: OrderCreate,
    svc: OrderService = Depends(get_service),
):
    """
    Tworzy zamówienie z koszyka użytkownika i zwraca adres checkoutu.
    """
    try:
        return svc.create_order(payload.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except GatewayError:
        raise HTTPException(
            status_code=502,
            detail="Payment provider is unavailable, please try again later",
        )
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/", response_model=OrderPage)
def list_orders(
    user_id: int = Query(...),
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders(user_id, page, size)


@router.get("/success", response_model=RedirectOut)
def checkout_success(
    session_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: NotificationService = Depends(get_notifier),
):
    """
    Powrot przegladarki z checkoutu. Potwierdza zamowienie albo tylko
    pokazuje jego status - zalezy od REDIRECT_CONFIRMS_ORDER.
    """
    reconciler = PaymentReconciler(OrderService(db, gateway=gateway, notifier=notifier), gateway)
    try:
        return reconciler.handle_redirect(session_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/cancel")
def checkout_cancel():
    # zamowienie zostaje PENDING, koszyk juz oprozniony przy tworzeniu
    return {"status": "cancelled", "message": "Checkout was cancelled. Your order is still pending."}


@router.get("/by-status/{status}", response_model=OrderPage)
def list_by_status(
    status: OrderStatus,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    _admin=Depends(require_admin),
    svc: OrderService = Depends(get_service),
):
    return svc.list_by_status(status, page, size)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    """
    Pobiera szczegóły zamówienia.
    """
    try:
        return svc.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: StatusUpdateIn,
    _admin=Depends(require_admin),
    svc: OrderService = Depends(get_service),
):
    """
    Reczna zmiana statusu przez admina. CONFIRMED ustawia tylko platnosc.
    """
    try:
        return svc.update_status(order_id, payload.status)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
