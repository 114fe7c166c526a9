# storefront/utils/retry.py
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    wait_random_exponential,
    retry_if_exception_type,
)
import requests
import redis

from storefront.utils.settings import COUNTER_MAX_ATTEMPTS


class CounterConflict(Exception):
    """Optimistic write on a counter row lost against another writer."""


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


#losowy jitter zeby rywalizujacy pisarze sie rozjechali
def counter_retry(attempts: int = COUNTER_MAX_ATTEMPTS):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_random_exponential(multiplier=0.01, max=0.2),
        retry=retry_if_exception_type(CounterConflict),
    )
