from sqlalchemy import Column, Integer, String, Numeric, CheckConstraint

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    #dostepny stan magazynowy, zmniejszany tylko przez InventoryGuard
    stock = Column(Integer, nullable=False, default=0)

    __table_args__ = (CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),)
