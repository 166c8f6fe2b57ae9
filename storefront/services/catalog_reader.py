# storefront/services/catalog_reader.py
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.domain.types import Product, to_money
from storefront.repos.product_repo import ProductRepo


class CatalogReader:
    """Tylko odczyt: tozsamosc produktu, aktualna cena i stan magazynu."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def get_product(self, product_id: int) -> Product | None:
        row = self.repo.get_product(product_id)
        if row is None:
            return None

        return Product(
            product_id=row.id,
            name=row.name,
            unit_price=to_money(Decimal(str(row.unit_price))),
            available_stock=row.stock,
        )
