# storefront/services/factory.py
from dataclasses import dataclass

from sqlalchemy.orm import Session

from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartService
from storefront.services.catalog_reader import CatalogReader
from storefront.services.checkout_service import CheckoutOrchestrator
from storefront.services.inventory_service import InventoryGuard
from storefront.services.lock_service import LockService
from storefront.services.order_service import OrderService
from storefront.services.pricing_service import PricingResolver


@dataclass
class Services:
    catalog: CatalogReader
    carts: CartService
    pricing: PricingResolver
    inventory: InventoryGuard
    orders: OrderService
    checkout: CheckoutOrchestrator


def build_services(db: Session, lock_service: LockService, restock_on_cancel: bool | None = None) -> Services:
    """Jawne skladanie komponentow od lisci (katalog, repo zamowien) do orchestratora."""
    catalog = CatalogReader(db)
    order_repo = OrderRepo(db)

    pricing = PricingResolver(catalog)
    carts = CartService(db=db, catalog=catalog, pricing=pricing, lock_service=lock_service)
    inventory = InventoryGuard(db, lock_service)

    order_kwargs = {}
    if restock_on_cancel is not None:
        order_kwargs["restock_on_cancel"] = restock_on_cancel
    orders = OrderService(order_repo, inventory=inventory, **order_kwargs)

    checkout = CheckoutOrchestrator(
        cart_repo=CartRepo(db),
        cart_service=carts,
        pricing=pricing,
        inventory=inventory,
        orders=order_repo,
        lock_service=lock_service,
    )

    return Services(
        catalog=catalog,
        carts=carts,
        pricing=pricing,
        inventory=inventory,
        orders=orders,
        checkout=checkout,
    )
