# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(..., gt=0, description="Ilość produktu (musi być > 0)")


class QuantityIn(BaseModel):
    """Schema dla zmiany ilosci, 0 usuwa pozycje."""

    quantity: int = Field(..., ge=0, description="Nowa ilość (0 = usuń)")


class CartItemOut(BaseModel):
    product_id: int
    name: str | None = None
    quantity: int
    unit_price: Decimal | None = None
    line_total: Decimal | None = None
    available: bool = True


class CartOut(BaseModel):
    """Schema dla koszyka (response), ceny liczone na zywo."""

    owner_key: str
    items: List[CartItemOut]
    total: Decimal
    last_modified_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderItemOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    order_id: str
    account_id: str
    status: str
    items: List[OrderItemOut]
    total: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CheckoutFailureOut(BaseModel):
    """Powod odrzucenia checkoutu - klient poprawia koszyk i probuje ponownie."""

    state: str
    error: str
    message: str
    product_id: int | None = None
    requested: int | None = None
    available: int | None = None
