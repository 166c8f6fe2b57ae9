from datetime import datetime, timedelta, timezone

from storefront.data.models import CartModel
from storefront.tasks.expire import expire_session_carts


def backdate(db, owner_key, minutes):
    cart = db.query(CartModel).filter(CartModel.owner_key == owner_key).one()
    cart.last_modified_at = datetime.now(timezone.utc) - timedelta(minutes=minutes)
    db.commit()


def test_stale_session_carts_are_removed(services, db, lock_service, add_product):
    add_product(1, "10.00", 5)
    services.carts.add_item("session:old", 1, 1)
    services.carts.add_item("session:fresh", 1, 1)
    services.carts.add_item("account:42", 1, 1)
    backdate(db, "session:old", 45)
    backdate(db, "account:42", 600)

    expired = expire_session_carts(db, lock_service, ttl_seconds=30 * 60)

    assert expired == 1
    assert services.carts.get_cart("session:old")["items"] == []
    assert len(services.carts.get_cart("session:fresh")["items"]) == 1
    # koszyki kont nie wygasaja
    assert len(services.carts.get_cart("account:42")["items"]) == 1


def test_nothing_to_expire(db, lock_service):
    assert expire_session_carts(db, lock_service) == 0
