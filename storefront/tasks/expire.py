# storefront/tasks/expire.py
from datetime import datetime, timezone, timedelta

from sqlalchemy.orm import Session

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.domain.types import SESSION_PREFIX
from storefront.repos.cart_repo import CartRepo
from storefront.services.lock_service import LockService, cart_lock_key
from storefront.utils.settings import SESSION_CART_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def expire_session_carts(
    db: Session,
    lock_service: LockService,
    now: datetime | None = None,
    ttl_seconds: int = SESSION_CART_TTL_SECONDS,
) -> int:
    """
    Usuwa anonimowe koszyki bez aktywnosci dluzej niz ttl sesji.
    Koszyki kont nie wygasaja.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(seconds=ttl_seconds)
    repo = CartRepo(db)

    stale = repo.find_stale_carts(SESSION_PREFIX, cutoff)
    logger.info(f"Found {len(stale)} session carts to expire")

    expired = 0
    for cart in stale:
        owner_key = cart.owner_key
        with lock_service.hold(cart_lock_key(owner_key)):
            #pod lockiem jeszcze raz - koszyk mogl byc ruszony albo scalony
            fresh = repo.get_cart_by_owner(owner_key)
            if fresh is None or _as_utc(fresh.last_modified_at) >= cutoff:
                continue
            repo.delete_cart(fresh.id)
            repo.commit()
            expired += 1

    logger.info(f"Expired {expired} session carts")
    return expired


def _as_utc(value: datetime) -> datetime:
    # sqlite zwraca naive datetime
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@celery_app.task(name="storefront.tasks.expire.expire_session_carts_task")
def expire_session_carts_task():
    logger.info("Expire session carts task started")

    db = SessionLocal()
    try:
        return expire_session_carts(db, LockService())
    finally:
        db.close()
