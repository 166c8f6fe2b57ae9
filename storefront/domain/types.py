# storefront/domain/types.py
import enum
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from storefront.domain.errors import CheckoutError

CENT = Decimal("0.01")

SESSION_PREFIX = "session:"
ACCOUNT_PREFIX = "account:"


def session_owner_key(session_id: str) -> str:
    return f"{SESSION_PREFIX}{session_id}"


def account_owner_key(account_id: str) -> str:
    return f"{ACCOUNT_PREFIX}{account_id}"


def to_money(value) -> Decimal:
    """Kwota zaokraglona do grosza (jednostka minimalna waluty)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Product:
    product_id: int
    name: str
    unit_price: Decimal
    available_stock: int


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    quantity: int
    name: Optional[str] = None
    captured_unit_price: Optional[Decimal] = None
    line_total: Optional[Decimal] = None

    @property
    def available(self) -> bool:
        return self.captured_unit_price is not None


@dataclass(frozen=True)
class PricedCart:
    """Jednorazowy widok koszyka z cenami z katalogu w chwili wyceny."""

    owner_key: str
    lines: List[PricedLine]
    total: Decimal


class ReservationState(str, enum.Enum):
    HELD = "HELD"
    COMMITTED = "COMMITTED"
    RELEASED = "RELEASED"


@dataclass
class ReservationHandle:
    product_id: int
    quantity: int
    reservation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: ReservationState = ReservationState.HELD


class CheckoutState(str, enum.Enum):
    IDLE = "IDLE"
    PRICING = "PRICING"
    RESERVING = "RESERVING"
    COMMITTING = "COMMITTING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass
class CheckoutResult:
    state: CheckoutState
    order: Optional[dict] = None
    error: Optional[CheckoutError] = None

    @property
    def ok(self) -> bool:
        return self.state is CheckoutState.COMPLETED
