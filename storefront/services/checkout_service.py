# storefront/services/checkout_service.py
import uuid
from datetime import datetime, timezone

from storefront.data.models import OrderModel, OrderItemModel
from storefront.data.models.order import ORDER_PLACED
from storefront.domain.errors import EmptyCart, ProductUnavailable, InsufficientStock, CheckoutError
from storefront.domain.types import CheckoutState, CheckoutResult, PricedCart, account_owner_key
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartService, cart_lines
from storefront.services.inventory_service import InventoryGuard
from storefront.services.lock_service import LockService, cart_lock_key
from storefront.services.order_service import order_to_dict
from storefront.services.pricing_service import PricingResolver
from storefront.utils.retry import db_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def new_order_id() -> str:
    return str(uuid.uuid4())


class CheckoutOrchestrator:
    """
    Zamiana koszyka konta w zamowienie.

    IDLE -> PRICING -> RESERVING -> COMMITTING -> COMPLETED
    z PRICING/RESERVING wyjscie do FAILED (koszyk nietkniety, stan magazynu przywrocony).

    Punkt commitu to zapis zamowienia. Po nim checkout jest zakonczony,
    nawet jesli czyszczenie koszyka trzeba powtarzac.
    """

    def __init__(
        self,
        cart_repo: CartRepo,
        cart_service: CartService,
        pricing: PricingResolver,
        inventory: InventoryGuard,
        orders: OrderRepo,
        lock_service: LockService,
        id_factory=new_order_id,
    ):
        self.cart_repo = cart_repo
        self.cart_service = cart_service
        self.pricing = pricing
        self.inventory = inventory
        self.orders = orders
        self.lock_service = lock_service
        self.id_factory = id_factory

    def checkout(self, account_id: str) -> CheckoutResult:
        owner_key = account_owner_key(account_id)
        state = CheckoutState.IDLE
        logger.info(f"Checkout {owner_key}: start", extra={"owner_key": owner_key, "state": state.value})

        with self.lock_service.hold(cart_lock_key(owner_key)):
            try:
                state = self._transition(owner_key, state, CheckoutState.PRICING)
                cart = self.cart_repo.get_cart_by_owner(owner_key)
                items = self.cart_repo.get_cart_items(cart.id) if cart else []
                if not items:
                    raise EmptyCart(owner_key)

                priced = self.pricing.resolve(owner_key, cart_lines(items))

                state = self._transition(owner_key, state, CheckoutState.RESERVING)
                handles = self.inventory.reserve_all(priced.lines)
            except (EmptyCart, ProductUnavailable, InsufficientStock) as e:
                return self._fail(owner_key, state, e)

            state = self._transition(owner_key, state, CheckoutState.COMMITTING)
            try:
                order = self.orders.create(self._build_order(account_id, priced))
            except Exception:
                # zamowienie nie zapisane - oddaj towar i przepusc blad dalej
                logger.exception(f"Checkout {owner_key}: zapis zamowienia nie powiodl sie")
                try:
                    self.inventory.release(handles)
                except Exception:
                    logger.exception(f"Checkout {owner_key}: nie wszystkie rezerwacje zwolnione")
                self._transition(owner_key, state, CheckoutState.FAILED)
                raise

            self.inventory.commit(handles)
            self._clear_cart(owner_key)

        result = order_to_dict(order)
        self._transition(owner_key, state, CheckoutState.COMPLETED)
        logger.info(
            f"Checkout {owner_key}: zamowienie {order.id} na kwote {order.total}",
            extra={"order_id": order.id},
        )
        return CheckoutResult(state=CheckoutState.COMPLETED, order=result)

    def _build_order(self, account_id: str, priced: PricedCart) -> OrderModel:
        order = OrderModel(
            id=self.id_factory(),
            account_id=account_id,
            status=ORDER_PLACED,
            total=priced.total,
            created_at=datetime.now(timezone.utc),
        )
        order.items = [
            OrderItemModel(
                position=pos,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.captured_unit_price,
                line_total=line.line_total,
            )
            for pos, line in enumerate(priced.lines)
        ]
        return order

    def _clear_cart(self, owner_key: str):
        try:
            self._clear_cart_with_retry(owner_key)
        except Exception:
            # zamowienie juz zapisane, koszyk zostanie wyczyszczony przy kolejnej probie
            logger.exception(f"Checkout {owner_key}: nie udalo sie wyczyscic koszyka po zamowieniu")

    @db_retry()
    def _clear_cart_with_retry(self, owner_key: str):
        self.cart_service.clear_locked(owner_key)

    def _fail(self, owner_key: str, state: CheckoutState, error: CheckoutError) -> CheckoutResult:
        logger.info(f"Checkout {owner_key}: {state.value} -> FAILED ({error})")
        return CheckoutResult(state=CheckoutState.FAILED, error=error)

    @staticmethod
    def _transition(owner_key: str, current: CheckoutState, new: CheckoutState) -> CheckoutState:
        logger.debug(f"Checkout {owner_key}: {current.value} -> {new.value}", extra={"state": new.value})
        return new
