# storefront/services/pricing_service.py
from decimal import Decimal
from typing import Iterable

from storefront.domain.errors import ProductUnavailable
from storefront.domain.types import CartLine, PricedCart, PricedLine, to_money
from storefront.services.catalog_reader import CatalogReader
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PricingResolver:
    """
    Ceny zawsze z katalogu w chwili wyceny, nigdy od klienta.
    Nie modyfikuje koszyka - zwraca jednorazowy widok.
    """

    def __init__(self, catalog: CatalogReader):
        self.catalog = catalog

    def resolve(self, owner_key: str, lines: Iterable[CartLine]) -> PricedCart:
        priced = []
        for line in lines:
            product = self.catalog.get_product(line.product_id)
            if product is None:
                #cala wycena pada, zadnego czesciowego koszyka
                logger.info(f"Wycena koszyka {owner_key} przerwana: brak produktu {line.product_id}")
                raise ProductUnavailable(line.product_id)
            priced.append(self._price_line(line, product))

        return PricedCart(owner_key=owner_key, lines=priced, total=self._total(priced))

    def quote(self, owner_key: str, lines: Iterable[CartLine]) -> PricedCart:
        #wersja dla podgladu koszyka: brakujacy produkt oznaczony, nie wlicza sie do sumy
        priced = []
        for line in lines:
            product = self.catalog.get_product(line.product_id)
            if product is None:
                priced.append(PricedLine(product_id=line.product_id, quantity=line.quantity))
            else:
                priced.append(self._price_line(line, product))

        return PricedCart(owner_key=owner_key, lines=priced, total=self._total(priced))

    @staticmethod
    def _price_line(line: CartLine, product) -> PricedLine:
        return PricedLine(
            product_id=line.product_id,
            quantity=line.quantity,
            name=product.name,
            captured_unit_price=product.unit_price,
            line_total=to_money(product.unit_price * line.quantity),
        )

    @staticmethod
    def _total(lines) -> Decimal:
        return sum((l.line_total for l in lines if l.available), Decimal("0.00"))
