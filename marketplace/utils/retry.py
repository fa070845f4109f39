# marketplace/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from requests import ConnectionError, Timeout


def http_retry():
    # tylko bledy transportu, 4xx/5xx nie sa ponawiane
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type((ConnectionError, Timeout)),
    )
