# storefront/api/routers/webhooks.py
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from storefront.api.deps import get_gateway, get_notifier
from storefront.data.database import get_db
from storefront.domain.errors import AuthenticityError
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import PaymentGateway
from storefront.services.reconciler import PaymentReconciler

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: NotificationService = Depends(get_notifier),
):
    """
    Webhook bramki. Podpis liczony po surowym body, wiec czytamy bajty,
    nie JSON. 400 = odrzucone bez zmian, 200 = przyjete (takze duplikat).
    """
    payload = await request.body()

    reconciler = PaymentReconciler(OrderService(db, gateway=gateway, notifier=notifier), gateway)
    try:
        #sync sqlalchemy + stripe, poza petla zdarzen
        return await run_in_threadpool(reconciler.handle_notification, payload, stripe_signature)
    except AuthenticityError as e:
        raise HTTPException(status_code=400, detail=str(e))
