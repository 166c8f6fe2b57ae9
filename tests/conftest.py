import os

# baza testowa zamiast postgresa z ustawien, zanim cokolwiek zaimportuje settings
os.environ.setdefault("DATABASE_URL", "sqlite://")

import threading
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from storefront.data.database import Base
from storefront.data.models import ProductModel, OrderModel
from storefront.services.factory import build_services
from storefront.services.lock_service import LockService


class InMemoryLockService(LockService):
    """
    Lock service bez redisa, ta sama semantyka co SET NX + compare-and-delete.
    Czekanie i kolejnosc kluczy (hold) zostaja z LockService.
    """

    def __init__(self, ttl: int = 10, wait: float = 5):
        self.ttl = ttl
        self.wait = wait
        self._owners = {}
        self._mutex = threading.Lock()

    def acquire(self, key: str, token: str, ttl: int) -> bool:
        with self._mutex:
            if key in self._owners:
                return False
            self._owners[key] = token
            return True

    def release(self, key: str, token: str) -> bool:
        with self._mutex:
            if self._owners.get(key) == token:
                del self._owners[key]
                return True
            return False

    def is_locked(self, key: str) -> bool:
        with self._mutex:
            return key in self._owners


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'storefront.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def lock_service():
    return InMemoryLockService()


@pytest.fixture
def services(db, lock_service):
    return build_services(db, lock_service)


@pytest.fixture
def add_product(db):
    def _add(product_id: int, price: str, stock: int, name: str | None = None):
        db.add(
            ProductModel(
                id=product_id,
                name=name or f"Product {product_id}",
                unit_price=Decimal(price),
                stock=stock,
            )
        )
        db.commit()

    return _add


@pytest.fixture
def stock_of(session_factory):
    def _stock(product_id: int) -> int:
        session = session_factory()
        try:
            return session.execute(
                select(ProductModel.stock).where(ProductModel.id == product_id)
            ).scalar_one()
        finally:
            session.close()

    return _stock


@pytest.fixture
def order_count(session_factory):
    def _count() -> int:
        session = session_factory()
        try:
            return len(session.execute(select(OrderModel.id)).all())
        finally:
            session.close()

    return _count
