# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, List
from decimal import Decimal
from datetime import datetime

from storefront.domain.status import OrderStatus, ReportStatus


# =====================================================
# CART
# =====================================================
class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(..., gt=0, description="Ilość produktu (musi być > 0)")


class QuantityIn(BaseModel):
    """Nowa ilość pozycji; 0 lub mniej usuwa pozycję z koszyka."""

    quantity: int


class CartLineOut(BaseModel):
    item_id: int
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: int | None
    user_id: int
    items: List[CartLineOut]
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# USERS / PRODUCTS
# =====================================================
class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    id: int = Field(..., gt=0, description="ID użytkownika (musi być > 0)")
    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")
    is_admin: bool = False


class UserRead(BaseModel):
    """Schema dla użytkownika (response)."""

    id: int
    email: str
    name: str
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    available: bool = True


class PriceIn(BaseModel):
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class ProductOut(BaseModel):
    id: int
    name: str
    price: Decimal
    available: bool

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# ORDERS / PAYMENTS
# =====================================================
class OrderCreate(BaseModel):
    """Schema dla tworzenia zamówienia z koszyka użytkownika."""

    user_id: int = Field(..., gt=0, description="ID użytkownika (musi być > 0)")


class OrderItemOut(BaseModel):
    product_id: int
    quantity: int
    price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    user_id: int
    status: OrderStatus
    total_amount: Decimal
    stripe_session_id: str | None = None
    items: List[OrderItemOut] = []
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderPage(BaseModel):
    items: List[OrderOut]
    total: int
    page: int
    size: int


class StatusUpdateIn(BaseModel):
    status: OrderStatus


class CheckoutSession(BaseModel):
    """Sesja checkoutu zwrocona przez bramke platnosci."""

    session_id: str
    redirect_url: str
    metadata: Dict[str, str] = {}


class CheckoutHandle(BaseModel):
    """Wynik create_order - klient przekierowuje usera na redirect_url."""

    order_id: int
    session_id: str
    redirect_url: str


class GatewayEvent(BaseModel):
    """Zweryfikowane zdarzenie z webhooka bramki."""

    event_id: str
    event_type: str
    session_id: str | None = None
    payment_status: str | None = None
    metadata: Dict[str, str] = {}


class RedirectOut(BaseModel):
    order_id: int
    status: OrderStatus
    confirmed_by_redirect: bool


# =====================================================
# ANALYTICS / REPORTS
# =====================================================
class ProductAnalyticsOut(BaseModel):
    product_id: int
    name: str
    view_count: int
    order_count: int


class AnalyticsTotalsOut(BaseModel):
    total_products: int
    total_views: int
    total_orders: int


class ReportOut(BaseModel):
    id: int
    period: str
    status: ReportStatus
    total_products: int | None = None
    total_views: int | None = None
    total_orders: int | None = None
    error_message: str | None = None
    generated_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReportGenerateIn(BaseModel):
    period: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="Okres raportu YYYY-MM")
