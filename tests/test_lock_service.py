import pytest

from storefront.domain.errors import LockTimeout
from tests.conftest import InMemoryLockService


def test_hold_releases_all_keys():
    locks = InMemoryLockService()

    with locks.hold("b", "a"):
        assert locks.is_locked("a")
        assert locks.is_locked("b")

    assert not locks.is_locked("a")
    assert not locks.is_locked("b")


def test_hold_releases_on_error():
    locks = InMemoryLockService()

    with pytest.raises(ValueError):
        with locks.hold("a"):
            raise ValueError("boom")

    assert not locks.is_locked("a")


def test_busy_key_times_out():
    locks = InMemoryLockService(wait=0.2)
    locks.acquire("a", "someone-else", 10)

    with pytest.raises(LockTimeout) as exc:
        with locks.hold("a"):
            pass

    assert exc.value.key == "a"
    # cudzy lock zostaje nietkniety
    assert locks.is_locked("a")


def test_partial_acquire_is_rolled_back():
    locks = InMemoryLockService(wait=0.2)
    locks.acquire("b", "someone-else", 10)

    with pytest.raises(LockTimeout):
        with locks.hold("a", "b"):
            pass

    assert not locks.is_locked("a")
