# storefront/services/inventory_service.py
from typing import Iterable, List

from sqlalchemy.orm import Session

from storefront.domain.errors import InsufficientStock
from storefront.domain.types import ReservationHandle, ReservationState
from storefront.repos.product_repo import ProductRepo
from storefront.services.lock_service import LockService, product_lock_key
from storefront.utils.retry import db_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryGuard:
    """
    Rezerwacja stanu magazynowego przy checkoucie.

    Sekcja krytyczna per produkt to tylko: sprawdz stan, zmniejsz, commit.
    Zadnych wywolan katalogu ani sieci pod lockiem.
    Warunkowy update w bazie (stock >= q) jest druga linia obrony
    gdyby lock wygasl.
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.repo = ProductRepo(db)
        self.lock_service = lock_service

    def reserve(self, product_id: int, quantity: int) -> ReservationHandle:
        with self.lock_service.hold(product_lock_key(product_id)):
            rowcount = self.repo.decrement_stock(product_id, quantity)

            if rowcount == 0:
                self.repo.rollback()
                available = self.repo.get_stock(product_id) or 0
                logger.info(
                    f"Rezerwacja odrzucona: produkt {product_id}, "
                    f"zadano {quantity}, dostepne {available}"
                )
                raise InsufficientStock(product_id, quantity, available)

            self.repo.commit()

        handle = ReservationHandle(product_id=product_id, quantity=quantity)
        logger.info(f"Zarezerwowano {quantity} szt. produktu {product_id} ({handle.reservation_id})")
        return handle

    def reserve_all(self, lines: Iterable) -> List[ReservationHandle]:
        """Wszystko albo nic: przy bledzie w polowie partii zwalnia juz zdobyte rezerwacje."""
        handles: List[ReservationHandle] = []
        try:
            for line in lines:
                handles.append(self.reserve(line.product_id, line.quantity))
        except BaseException:
            #rollback rowniez przy wyjatkach spoza domeny
            if handles:
                logger.info(f"Wycofywanie {len(handles)} czesciowych rezerwacji")
                try:
                    self.release(handles)
                except Exception:
                    # na zewnatrz wychodzi pierwotny blad, nie blad zwrotu
                    logger.exception("Wycofanie czesciowych rezerwacji niepelne")
            raise
        return handles

    def commit(self, handles: Iterable[ReservationHandle]):
        # stan juz zmniejszony przy reserve, tu tylko ksiegowosc
        for handle in handles:
            if handle.state is ReservationState.HELD:
                handle.state = ReservationState.COMMITTED
                logger.info(f"Rezerwacja {handle.reservation_id} zatwierdzona")

    def release(self, handles: Iterable[ReservationHandle]):
        """
        Zwraca towar dla kazdej rezerwacji HELD. Blad jednej nie zatrzymuje
        pozostalych; nieudane zostaja HELD (mozna ponowic) i pierwszy blad
        jest rzucany po przejsciu calej listy.
        """
        failures = []
        for handle in reversed(list(handles)):
            if handle.state is not ReservationState.HELD:
                continue
            try:
                self.restock(handle.product_id, handle.quantity)
            except Exception as e:
                logger.exception(
                    f"Rezerwacja {handle.reservation_id}: nie zwrocono {handle.quantity} szt. "
                    f"produktu {handle.product_id}",
                    extra={"product_id": handle.product_id},
                )
                failures.append(e)
                continue
            handle.state = ReservationState.RELEASED
            logger.info(f"Rezerwacja {handle.reservation_id} zwolniona, zwrocono {handle.quantity} szt.")

        if failures:
            raise failures[0]

    @db_retry()
    def restock(self, product_id: int, quantity: int):
        with self.lock_service.hold(product_lock_key(product_id)):
            try:
                self.repo.increment_stock(product_id, quantity)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
