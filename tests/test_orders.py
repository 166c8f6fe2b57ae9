import inspect
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from storefront.data.models import OrderModel, OrderItemModel
from storefront.domain.errors import DuplicateOrder, OrderNotFound, AlreadyCancelled
from storefront.domain.types import account_owner_key
from storefront.repos.order_repo import OrderRepo
from storefront.services.factory import build_services


def make_order(order_id, account_id="42", created_at=None, total="10.00"):
    order = OrderModel(
        id=order_id,
        account_id=account_id,
        status="PLACED",
        total=Decimal(total),
        created_at=created_at or datetime.now(timezone.utc),
    )
    order.items = [
        OrderItemModel(position=0, product_id=1, quantity=1, unit_price=Decimal(total), line_total=Decimal(total))
    ]
    return order


class TestOrderRepo:
    def test_create_and_get(self, db):
        repo = OrderRepo(db)

        repo.create(make_order("o-1"))

        stored = repo.get("o-1")
        assert stored.status == "PLACED"
        assert len(stored.items) == 1

    def test_duplicate_id_rejected(self, db):
        repo = OrderRepo(db)
        repo.create(make_order("o-1"))

        with pytest.raises(DuplicateOrder) as exc:
            repo.create(make_order("o-1"))

        assert exc.value.order_id == "o-1"

    def test_other_integrity_errors_are_not_duplicates(self, db):
        repo = OrderRepo(db)

        with pytest.raises(IntegrityError):
            repo.create(make_order("o-1", account_id=None))

        # sesja po bledzie nadal uzywalna
        repo.create(make_order("o-2"))
        assert repo.get("o-1") is None
        assert repo.get("o-2") is not None

    def test_cancel(self, db):
        repo = OrderRepo(db)
        repo.create(make_order("o-1"))

        cancelled = repo.cancel("o-1")

        assert cancelled.status == "CANCELLED"

    def test_cancel_twice(self, db):
        repo = OrderRepo(db)
        repo.create(make_order("o-1"))
        repo.cancel("o-1")

        with pytest.raises(AlreadyCancelled):
            repo.cancel("o-1")

    def test_cancel_missing(self, db):
        with pytest.raises(OrderNotFound):
            OrderRepo(db).cancel("nope")

    def test_find_by_account_newest_first(self, db):
        repo = OrderRepo(db)
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        repo.create(make_order("old", created_at=base))
        repo.create(make_order("new", created_at=base + timedelta(days=2)))
        repo.create(make_order("mid", created_at=base + timedelta(days=1)))
        repo.create(make_order("other", account_id="7", created_at=base))

        orders = repo.find_by_account("42")

        assert inspect.isgenerator(orders)
        assert [o.id for o in orders] == ["new", "mid", "old"]
        # kazde wywolanie to nowa sekwencja
        assert [o.id for o in repo.find_by_account("42")] == ["new", "mid", "old"]

    def test_find_by_account_empty(self, db):
        assert list(OrderRepo(db).find_by_account("nobody")) == []


class TestOrderService:
    def checkout_one(self, services, add_product, quantity=2):
        add_product(1, "10.00", 5)
        services.carts.add_item(account_owner_key("42"), 1, quantity)
        return services.checkout.checkout("42").order["order_id"]

    def test_get_order_of_other_account(self, services, add_product):
        order_id = self.checkout_one(services, add_product)

        with pytest.raises(PermissionError):
            services.orders.get_order(order_id, "7")

    def test_get_missing_order(self, services):
        with pytest.raises(OrderNotFound):
            services.orders.get_order("missing", "42")

    def test_cancel_keeps_stock_by_default(self, services, add_product, stock_of):
        order_id = self.checkout_one(services, add_product)

        cancelled = services.orders.cancel_order(order_id, "42")

        assert cancelled["status"] == "CANCELLED"
        assert stock_of(1) == 3

    def test_cancel_with_restock(self, db, lock_service, add_product, stock_of):
        services = build_services(db, lock_service, restock_on_cancel=True)
        order_id = self.checkout_one(services, add_product)

        services.orders.cancel_order(order_id, "42")

        assert stock_of(1) == 5

    def test_cancel_by_other_account(self, services, add_product):
        order_id = self.checkout_one(services, add_product)

        with pytest.raises(PermissionError):
            services.orders.cancel_order(order_id, "7")

    def test_list_orders_for_account(self, services, add_product):
        order_id = self.checkout_one(services, add_product)

        orders = list(services.orders.list_orders_for_account("42"))

        assert [o["order_id"] for o in orders] == [order_id]
        assert list(services.orders.list_orders_for_account("7")) == []

    def test_cancel_logs_lines_not_restocked(self, db, lock_service, add_product, stock_of, monkeypatch, caplog):
        services = build_services(db, lock_service, restock_on_cancel=True)
        add_product(1, "10.00", 5)
        add_product(2, "5.00", 5)
        services.carts.add_item(account_owner_key("42"), 1, 2)
        services.carts.add_item(account_owner_key("42"), 2, 1)
        order_id = services.checkout.checkout("42").order["order_id"]
        original = services.inventory.restock

        def broken_restock(product_id, quantity):
            if product_id == 1:
                raise RuntimeError("product lock lost")
            return original(product_id, quantity)

        monkeypatch.setattr(services.inventory, "restock", broken_restock)

        with caplog.at_level(logging.ERROR, logger="storefront"):
            cancelled = services.orders.cancel_order(order_id, "42")

        assert cancelled["status"] == "CANCELLED"
        assert stock_of(1) == 3
        assert stock_of(2) == 5
        assert any("wymaga recznej korekty" in r.getMessage() and "(1, 2)" in r.getMessage() for r in caplog.records)
