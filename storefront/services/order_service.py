# storefront/services/order_service.py
from typing import Dict, Any, Iterator

from storefront.data.models import OrderModel
from storefront.domain.errors import OrderNotFound
from storefront.repos.order_repo import OrderRepo
from storefront.utils.settings import RESTOCK_ON_CANCEL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "order_id": order.id,
        "account_id": order.account_id,
        "status": order.status,
        "items": [
            {
                "product_id": i.product_id,
                "quantity": i.quantity,
                "unit_price": i.unit_price,
                "line_total": i.line_total,
            }
            for i in order.items
        ],
        "total": order.total,
        "created_at": order.created_at,
    }


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień (odczyt i anulowanie).
    Tworzeniem zamówień zajmuje sie CheckoutOrchestrator.
    """

    def __init__(self, repo: OrderRepo, inventory=None, restock_on_cancel: bool = RESTOCK_ON_CANCEL):
        self.repo = repo
        self.inventory = inventory
        self.restock_on_cancel = restock_on_cancel

    def get_order(self, order_id: str, account_id: str) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamówienia (Query).
        """
        order = self.repo.get(order_id)

        if not order:
            raise OrderNotFound(order_id)

        if order.account_id != account_id:
            raise PermissionError("Brak dostępu do zamówienia")

        return order_to_dict(order)

    def list_orders_for_account(self, account_id: str) -> Iterator[Dict[str, Any]]:
        for order in self.repo.find_by_account(account_id):
            yield order_to_dict(order)

    def cancel_order(self, order_id: str, account_id: str) -> Dict[str, Any]:
        """
        Use Case: Anulowanie zamówienia PLACED -> CANCELLED.
        Zwrot towaru na magazyn tylko gdy wlaczony RESTOCK_ON_CANCEL.
        """
        order = self.repo.get(order_id)

        if not order:
            raise OrderNotFound(order_id)

        if order.account_id != account_id:
            raise PermissionError("Brak dostępu do zamówienia")

        cancelled = self.repo.cancel(order_id)
        logger.info(f"Order {order_id} cancelled by account {account_id}")

        if self.restock_on_cancel and self.inventory is not None:
            self._restock(cancelled)

        return order_to_dict(cancelled)

    def _restock(self, order: OrderModel):
        # anulowanie juz zapisane; kazda linia osobno, brakujace zostaja w logu do recznej korekty
        missed = []
        for item in order.items:
            try:
                self.inventory.restock(item.product_id, item.quantity)
            except Exception:
                logger.exception(
                    f"Order {order.id}: nie zwrocono {item.quantity} szt. produktu {item.product_id}",
                    extra={"order_id": order.id, "product_id": item.product_id},
                )
                missed.append((item.product_id, item.quantity))

        if missed:
            logger.error(
                f"Order {order.id}: towar niezwrocony na magazyn {missed}, wymaga recznej korekty",
                extra={"order_id": order.id},
            )
        else:
            logger.info(f"Order {order.id}: zwrocono towar na magazyn")
