# storefront/utils/retry.py
"""
Polityki ponawiania dla wywolan poza proces: dostawca tozsamosci (HTTP),
redis (locki) i baza (zwrot towaru, czyszczenie koszyka po zamowieniu).
Zawsze reraise - wolajacy dostaje oryginalny wyjatek, nie RetryError.
"""
import redis
import requests
from sqlalchemy.exc import OperationalError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

ATTEMPTS = 3


def _policy(should_retry, base: float, cap: float):
    return retry(
        reraise=True,
        stop=stop_after_attempt(ATTEMPTS),
        wait=wait_exponential(multiplier=base, min=base, max=cap),
        retry=retry_if_exception(should_retry),
    )


def _transient_http(exc: BaseException) -> bool:
    #4xx to odpowiedz dostawcy, ponawiamy tylko siec i 5xx
    if isinstance(exc, requests.HTTPError):
        return exc.response is not None and exc.response.status_code >= 500
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


def _transient_redis(exc: BaseException) -> bool:
    # bledy odpowiedzi (np. skrypt lua) nie sa ponawiane
    return isinstance(exc, (redis.ConnectionError, redis.TimeoutError))


def _transient_db(exc: BaseException) -> bool:
    #zerwane polaczenie, "database is locked" w sqlite
    return isinstance(exc, OperationalError)


def http_retry():
    return _policy(_transient_http, base=0.3, cap=3)


def redis_retry():
    return _policy(_transient_redis, base=0.2, cap=2)


def db_retry():
    return _policy(_transient_db, base=0.1, cap=1)
