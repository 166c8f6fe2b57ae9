#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Header

from storefront.api.deps import get_services, get_owner_key, get_account_id
from storefront.domain.errors import (
    InvalidQuantity,
    UnknownProduct,
    CartItemNotFound,
    CartConflict,
    LockTimeout,
)
from storefront.domain.schemas import ItemIn, QuantityIn, CartOut
from storefront.domain.types import session_owner_key, account_owner_key
from storefront.services.factory import Services

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def view_cart(owner_key: str = Depends(get_owner_key), svc: Services = Depends(get_services)):
    return svc.carts.view_cart(owner_key)


@router.post("/items", response_model=CartOut)
def add_to_cart(
    payload: ItemIn,
    owner_key: str = Depends(get_owner_key),
    svc: Services = Depends(get_services),
):
    try:
        svc.carts.add_item(owner_key, payload.product_id, payload.quantity)
    except (InvalidQuantity, UnknownProduct) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (CartConflict, LockTimeout) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return svc.carts.view_cart(owner_key)


@router.put("/items/{product_id}", response_model=CartOut)
def update_cart_item(
    product_id: int,
    payload: QuantityIn,
    owner_key: str = Depends(get_owner_key),
    svc: Services = Depends(get_services),
):
    try:
        svc.carts.update_quantity(owner_key, product_id, payload.quantity)
    except InvalidQuantity as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CartItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (CartConflict, LockTimeout) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return svc.carts.view_cart(owner_key)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_from_cart(
    product_id: int,
    owner_key: str = Depends(get_owner_key),
    svc: Services = Depends(get_services),
):
    try:
        svc.carts.remove_item(owner_key, product_id)
    except (CartConflict, LockTimeout) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return svc.carts.view_cart(owner_key)


@router.delete("", response_model=CartOut)
def clear_cart(owner_key: str = Depends(get_owner_key), svc: Services = Depends(get_services)):
    try:
        svc.carts.clear(owner_key)
    except (CartConflict, LockTimeout) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return svc.carts.view_cart(owner_key)


@router.post("/merge", response_model=CartOut)
def merge_cart_on_login(
    x_session_id: str | None = Header(None),
    account_id: str = Depends(get_account_id),
    svc: Services = Depends(get_services),
):
    """
    Wolane raz po zalogowaniu: koszyk sesji trafia do koszyka konta.
    """
    if not x_session_id:
        raise HTTPException(status_code=400, detail="Brak naglowka X-Session-Id")

    account_key = account_owner_key(account_id)
    try:
        svc.carts.merge_on_authentication(session_owner_key(x_session_id), account_key)
    except (CartConflict, LockTimeout) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return svc.carts.view_cart(account_key)
