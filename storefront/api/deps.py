# storefront/api/deps.py
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import AuthenticationRequired
from storefront.domain.types import session_owner_key, account_owner_key
from storefront.services.factory import build_services, Services
from storefront.services.identity_client import IdentityClient
from storefront.services.lock_service import LockService

_lock_service: LockService | None = None
_identity_client: IdentityClient | None = None


def get_lock_service() -> LockService:
    global _lock_service
    if _lock_service is None:
        _lock_service = LockService()
    return _lock_service


def get_identity_client() -> IdentityClient:
    global _identity_client
    if _identity_client is None:
        _identity_client = IdentityClient()
    return _identity_client


def get_services(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
) -> Services:
    return build_services(db, lock_service)


def get_optional_account_id(
    authorization: str | None = Header(None),
    identity: IdentityClient = Depends(get_identity_client),
) -> str | None:
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Oczekiwano tokenu Bearer")

    try:
        return identity.resolve_account(token)
    except AuthenticationRequired as e:
        raise HTTPException(status_code=401, detail=str(e))


def get_account_id(account_id: str | None = Depends(get_optional_account_id)) -> str:
    if account_id is None:
        raise HTTPException(status_code=401, detail="Wymagane zalogowanie")
    return account_id


def get_owner_key(
    x_session_id: str | None = Header(None),
    account_id: str | None = Depends(get_optional_account_id),
) -> str:
    #po zalogowaniu koszyk konta, wczesniej koszyk sesji
    if account_id is not None:
        return account_owner_key(account_id)
    if x_session_id:
        return session_owner_key(x_session_id)
    raise HTTPException(status_code=400, detail="Brak naglowka X-Session-Id")
