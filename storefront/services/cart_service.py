from datetime import datetime, timezone
from typing import Dict, Any, List

from sqlalchemy.orm import Session

from storefront.data.models import CartModel, CartItemModel
from storefront.domain.errors import InvalidQuantity, UnknownProduct, CartItemNotFound, CartConflict
from storefront.domain.types import CartLine
from storefront.repos.cart_repo import CartRepo
from storefront.services.catalog_reader import CatalogReader
from storefront.services.pricing_service import PricingResolver
from storefront.services.lock_service import LockService, cart_lock_key
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def cart_lines(items) -> List[CartLine]:
    return [CartLine(product_id=i.product_id, quantity=i.quantity) for i in items]


class CartService:
    """
    Cart Store: koszyk anonimowy (session:...) albo konta (account:...).
    commands (add, update, remove, clear, merge) modyfikuja stan pod lockiem wlasciciela
    query (get, view) tylko odczyt
    """

    def __init__(
        self,
        db: Session,
        catalog: CatalogReader,
        pricing: PricingResolver,
        lock_service: LockService,
    ):
        self.repo = CartRepo(db)
        self.catalog = catalog
        self.pricing = pricing
        self.lock_service = lock_service

    #query - odczyt
    def get_cart(self, owner_key: str) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_owner(owner_key)

        if not cart:
            return {"owner_key": owner_key, "items": [], "last_modified_at": None}

        items = self.repo.get_cart_items(cart.id)
        return {
            "owner_key": cart.owner_key,
            "items": [
                {"product_id": i.product_id, "quantity": i.quantity}
                for i in items
            ],
            "last_modified_at": cart.last_modified_at,
        }

    def view_cart(self, owner_key: str) -> Dict[str, Any]:
        #ceny na zywo przy kazdym podgladzie, zamrazane dopiero przy checkoucie
        cart = self.get_cart(owner_key)
        lines = [CartLine(i["product_id"], i["quantity"]) for i in cart["items"]]
        priced = self.pricing.quote(owner_key, lines)

        return {
            "owner_key": owner_key,
            "items": [
                {
                    "product_id": l.product_id,
                    "name": l.name,
                    "quantity": l.quantity,
                    "unit_price": l.captured_unit_price,
                    "line_total": l.line_total,
                    "available": l.available,
                }
                for l in priced.lines
            ],
            "total": priced.total,
            "last_modified_at": cart["last_modified_at"],
        }

    #commands
    def add_item(self, owner_key: str, product_id: int, quantity: int) -> Dict[str, Any]:
        # Walidacje
        if quantity <= 0:
            raise InvalidQuantity(product_id, quantity)

        if self.catalog.get_product(product_id) is None:
            raise UnknownProduct(product_id)

        with self.lock_service.hold(cart_lock_key(owner_key)):
            try:
                cart = self._get_or_create(owner_key)
                existing_item = self.repo.get_cart_item(cart.id, product_id)

                if existing_item:
                    logger.info(
                        f"Produkt {product_id} już jest w koszyku {owner_key}, zwiekszam ilosc "
                        f"z {existing_item.quantity} do {existing_item.quantity + quantity}"
                    )
                    existing_item.quantity += quantity
                else:
                    logger.info(f"Dodaje nowy produkt {product_id} do koszyka {owner_key}")
                    self.repo.add_cart_item(
                        CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
                    )

                self._touch(cart)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        return self.get_cart(owner_key)

    def update_quantity(self, owner_key: str, product_id: int, new_quantity: int) -> Dict[str, Any]:
        if new_quantity < 0:
            raise InvalidQuantity(product_id, new_quantity)

        if new_quantity == 0:
            return self.remove_item(owner_key, product_id)

        with self.lock_service.hold(cart_lock_key(owner_key)):
            try:
                cart = self.repo.get_cart_by_owner(owner_key)
                item = self.repo.get_cart_item(cart.id, product_id) if cart else None

                if item is None:
                    raise CartItemNotFound(owner_key, product_id)

                logger.info(
                    f"Zmiana ilosci produktu {product_id} w koszyku {owner_key}: "
                    f"{item.quantity} -> {new_quantity}"
                )
                item.quantity = new_quantity

                self._touch(cart)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        return self.get_cart(owner_key)

    def remove_item(self, owner_key: str, product_id: int) -> Dict[str, Any]:
        with self.lock_service.hold(cart_lock_key(owner_key)):
            try:
                cart = self.repo.get_cart_by_owner(owner_key)

                if cart:
                    logger.info(f"Usuwanie produktu {product_id} z koszyka {owner_key}")
                    self.repo.delete_cart_item(cart.id, product_id)
                    self._touch(cart)
                    self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        return self.get_cart(owner_key)

    def clear(self, owner_key: str) -> Dict[str, Any]:
        with self.lock_service.hold(cart_lock_key(owner_key)):
            self.clear_locked(owner_key)

        return self.get_cart(owner_key)

    def clear_locked(self, owner_key: str):
        """Czyszczenie bez brania locka - wolajacy juz go trzyma (checkout)."""
        try:
            cart = self.repo.get_cart_by_owner(owner_key)
            if cart:
                removed = self.repo.clear_cart_items(cart.id)
                self._touch(cart)
                self.repo.commit()
                logger.info(f"Wyczyszczono koszyk {owner_key} ({removed} pozycji)")
        except Exception:
            self.repo.rollback()
            raise

    def merge_on_authentication(self, session_key: str, account_key: str) -> Dict[str, Any]:
        """
        Scalanie koszyka sesji z koszykiem konta przy logowaniu.

        - produkt w obu koszykach: ilosci sie sumuja (stan magazynu sprawdza dopiero checkout)
        - produkt tylko w sesji: kopiowany do konta
        - koszyk sesji usuwany, wiec drugie wywolanie nic nie robi
        """
        if session_key == account_key:
            return self.get_cart(account_key)

        with self.lock_service.hold(cart_lock_key(session_key), cart_lock_key(account_key)):
            try:
                session_cart = self.repo.get_cart_by_owner(session_key)
                if session_cart is None:
                    logger.info(f"Brak koszyka sesji {session_key}, nic do scalenia")
                    return self.get_cart(account_key)

                session_items = self.repo.get_cart_items(session_cart.id)
                if session_items:
                    account_cart = self._get_or_create(account_key)

                    for s_item in session_items:
                        existing = self.repo.get_cart_item(account_cart.id, s_item.product_id)
                        if existing:
                            existing.quantity += s_item.quantity
                        else:
                            self.repo.add_cart_item(
                                CartItemModel(
                                    cart_id=account_cart.id,
                                    product_id=s_item.product_id,
                                    quantity=s_item.quantity,
                                )
                            )

                    self._touch(account_cart)

                self.repo.delete_cart(session_cart.id)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        logger.info(
            f"Scalono koszyk {session_key} do {account_key} ({len(session_items)} pozycji)"
        )
        return self.get_cart(account_key)

    def _get_or_create(self, owner_key: str) -> CartModel:
        cart = self.repo.get_cart_by_owner(owner_key)
        if cart:
            return cart

        now = datetime.now(timezone.utc)
        created = self.repo.create_cart(
            CartModel(owner_key=owner_key, version=1, created_at=now, last_modified_at=now)
        )
        logger.info(f"Utworzono nowy koszyk {created.id} dla {owner_key}")
        return created

    def _touch(self, cart: CartModel):
        # Optimistic locking na polu version, druga linia obrony za lockiem redisa
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={
                "version": cart.version + 1,
                "last_modified_at": datetime.now(timezone.utc),
            },
        )

        if rowcount == 0:
            raise CartConflict(cart.owner_key)
