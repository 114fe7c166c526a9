# storefront/api/deps.py
"""
Zaleznosci FastAPI dla zewnetrznych systemow (bramka, redis, maile)
oraz sprawdzenie admina dla tras administracyjnych.
Testy podmieniaja je przez app.dependency_overrides.
"""
import redis
from fastapi import Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.repos.user_repo import UserRepo
from storefront.services.lock_service import LockService, redis_client
from storefront.services.mail_client import MailClient
from storefront.services.notification_service import NotificationService
from storefront.services.payment_gateway import PaymentGateway, StripeGateway


def get_gateway() -> PaymentGateway:
    return StripeGateway()


def get_notifier() -> NotificationService:
    return NotificationService()


def get_redis() -> redis.Redis:
    return redis_client()


def get_lock_service() -> LockService:
    return LockService(redis_client())


def get_mail_client() -> MailClient:
    return MailClient()


def require_admin(
    user_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
) -> UserModel:
    #operacje administracyjne: user_id musi wskazywac admina
    user = UserRepo(db).get_user(user_id) if user_id is not None else None
    if user is None or not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return user
