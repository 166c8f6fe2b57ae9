# storefront/repos/order_repo.py
from typing import Iterator

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models import OrderModel
from storefront.data.models.order import ORDER_PLACED, ORDER_CANCELLED
from storefront.domain.errors import DuplicateOrder, OrderNotFound, AlreadyCancelled
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderRepo:
    """
    Zamowienia jako niezmienne rekordy historyczne.
    Jedyna dozwolona zmiana to status PLACED -> CANCELLED.
    """

    def __init__(self, db: Session, page_size: int = 50):
        self.db = db
        self.page_size = page_size

    def create(self, order: OrderModel) -> OrderModel:
        if self.db.get(OrderModel, order.id) is not None:
            logger.error(f"Kolizja order_id {order.id} - zlamany niezmiennik generatora id")
            raise DuplicateOrder(order.id)

        #commit to punkt po ktorym zamowienie jest trwale, po nim juz nic nie moze rzucic
        try:
            self.db.add(order)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if self._exists(order.id):
                logger.error(f"Kolizja order_id {order.id} przy zapisie")
                raise DuplicateOrder(order.id)
            raise
        except Exception:
            # sesja jest wspoldzielona z rezerwacjami, musi zostac uzywalna
            self.db.rollback()
            raise

        return order

    def _exists(self, order_id: str) -> bool:
        return self.db.scalar(select(OrderModel.id).where(OrderModel.id == order_id)) is not None

    def get(self, order_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def cancel(self, order_id: str) -> OrderModel:
        #warunkowy update zeby dwa rownolegle cancel nie przeszly oba
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == ORDER_PLACED)
            .values(status=ORDER_CANCELLED)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            self.db.rollback()
            order = self.get(order_id)
            if order is None:
                raise OrderNotFound(order_id)
            raise AlreadyCancelled(order_id)

        self.db.commit()
        return self.get(order_id)

    def find_by_account(self, account_id: str) -> Iterator[OrderModel]:
        """Leniwa sekwencja zamowien konta, od najnowszego. Kazde wywolanie to nowe zapytanie."""
        stmt = (
            select(OrderModel)
            .where(OrderModel.account_id == account_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .execution_options(yield_per=self.page_size)
        )
        yield from self.db.scalars(stmt)
