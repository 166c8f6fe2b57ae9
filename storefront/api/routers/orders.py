# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from storefront.api.deps import get_services, get_account_id
from storefront.domain.errors import OrderNotFound, AlreadyCancelled, LockTimeout
from storefront.domain.schemas import OrderOut, CheckoutFailureOut
from storefront.services.factory import Services

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "/checkout",
    response_model=OrderOut,
    status_code=201,
    responses={409: {"model": CheckoutFailureOut}},
)
def checkout(account_id: str = Depends(get_account_id), svc: Services = Depends(get_services)):
    """
    Zamienia koszyk konta w zamówienie.
    Odrzucenie (pusty koszyk, brak produktu, brak towaru) to 409 z detalami.
    """
    try:
        result = svc.checkout.checkout(account_id)
    except LockTimeout as e:
        raise HTTPException(status_code=409, detail=str(e))

    if result.ok:
        return result.order

    error = result.error
    failure = CheckoutFailureOut(
        state=result.state.value,
        error=type(error).__name__,
        message=str(error),
        product_id=getattr(error, "product_id", None),
        requested=getattr(error, "requested", None),
        available=getattr(error, "available", None),
    )
    return JSONResponse(status_code=409, content=failure.model_dump())


@router.get("", response_model=List[OrderOut])
def list_orders_for_account(
    account_id: str = Depends(get_account_id),
    limit: int = Query(20, ge=1, le=100),
    svc: Services = Depends(get_services),
):
    orders = []
    for order in svc.orders.list_orders_for_account(account_id):
        orders.append(order)
        if len(orders) >= limit:
            break
    return orders


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    account_id: str = Depends(get_account_id),
    svc: Services = Depends(get_services),
):
    try:
        return svc.orders.get_order(order_id, account_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: str,
    account_id: str = Depends(get_account_id),
    svc: Services = Depends(get_services),
):
    try:
        return svc.orders.cancel_order(order_id, account_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AlreadyCancelled as e:
        raise HTTPException(status_code=409, detail=str(e))
