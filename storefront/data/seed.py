# storefront/data/seed.py
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models import ProductModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PRODUCTS = [
    {"id": 1, "name": "Camera body rental (weekend)", "unit_price": Decimal("89.00"), "stock": 5},
    {"id": 2, "name": "50mm prime lens", "unit_price": Decimal("25.50"), "stock": 10},
    {"id": 3, "name": "Tripod", "unit_price": Decimal("12.99"), "stock": 20},
    {"id": 4, "name": "Portable LED panel", "unit_price": Decimal("34.00"), "stock": 3},
]


def seed_products(db: Session) -> int:
    # tylko jesli tabela pusta
    if db.execute(select(ProductModel.id).limit(1)).first():
        return 0

    for data in DEMO_PRODUCTS:
        db.add(ProductModel(**data))
    db.commit()

    logger.info(f"Seeded {len(DEMO_PRODUCTS)} demo products")
    return len(DEMO_PRODUCTS)
