# storefront/repos/cart_repo.py
from datetime import datetime

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from storefront.data.models import CartModel, CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_owner(self, owner_key: str) -> CartModel | None:
        #populate_existing - zawsze swiezy stan z bazy, wolane pod lockiem
        return self.db.execute(
            select(CartModel)
            .where(CartModel.owner_key == owner_key)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
                .execution_options(populate_existing=True)
            ).scalars()
        )

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, cart_id: int, product_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        )
        return result.rowcount

    def clear_cart_items(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.cart_id == cart_id)
        )
        return result.rowcount

    def delete_cart(self, cart_id: int) -> int:
        self.clear_cart_items(cart_id)
        result = self.db.execute(delete(CartModel).where(CartModel.id == cart_id))
        return result.rowcount

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        # Optimistic locking
        # np w bazie update set version 2 where id 1 and version 1
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def find_stale_carts(self, owner_prefix: str, older_than: datetime) -> list[CartModel]:
        return list(
            self.db.execute(
                select(CartModel).where(
                    CartModel.owner_key.startswith(owner_prefix),
                    CartModel.last_modified_at < older_than,
                )
            ).scalars()
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
