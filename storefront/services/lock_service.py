# storefront/services/lock_service.py
import uuid
from contextlib import contextmanager

import redis
from tenacity import Retrying, RetryError, stop_after_delay, wait_random, retry_if_result

from storefront.domain.errors import LockTimeout
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, LOCK_TTL_SECONDS, LOCK_WAIT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje atomowo przez lua, skrypt dziala jako jedna nieprzerywalna operacja
#nie mozna wcisnac sie miedzy GET a DEL


def cart_lock_key(owner_key: str) -> str:
    return f"cart:{owner_key}:lock"


def product_lock_key(product_id: int) -> str:
    return f"product:{product_id}:lock"


class LockService:
    """
    -lock per klucz (koszyk wlasciciela, wiersz produktu)
    -zwalnianie locka tylko przez wlasciciela tokenu
    -czekanie ograniczone LOCK_WAIT_SECONDS, nigdy w nieskonczonosc
    """

    def __init__(
        self,
        url: str | None = None,
        ttl: int = LOCK_TTL_SECONDS,
        wait: float = LOCK_WAIT_SECONDS,
    ):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl
        self.wait = wait

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        #SET cart:account:7:lock "<token>" NX EX 10
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True, #tylko jesli klucz nie istnieje
                ex=ttl, #wygasa sam jesli proces padnie z lockiem
            )
        )

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    def _wait_for(self, key: str, token: str):
        retrying = Retrying(
            stop=stop_after_delay(self.wait),
            wait=wait_random(min=0.005, max=0.05),
            retry=retry_if_result(lambda acquired: acquired is False),
        )
        try:
            retrying(self.acquire, key, token, self.ttl)
        except RetryError:
            logger.warning(f"Lock {key} zajety dluzej niz {self.wait}s")
            raise LockTimeout(key, self.wait)

    @contextmanager
    def hold(self, *keys: str):
        """
        Trzyma locki na wszystkich kluczach. Klucze brane w posortowanej
        kolejnosci, zeby dwa procesy nie zakleszczyly sie na tej samej parze.
        """
        token = uuid.uuid4().hex
        acquired = []
        try:
            for key in sorted(set(keys)):
                self._wait_for(key, token)
                acquired.append(key)
                logger.debug(f"Acquire lock {key}")
            yield token
        finally:
            for key in reversed(acquired):
                if not self.release(key, token):
                    logger.warning(f"Lock {key} wygasl przed zwolnieniem (ttl {self.ttl}s)")
                logger.debug(f"Release lock {key}")
