# shop/utils/retry.py
from sqlalchemy.exc import OperationalError
from tenacity import retry, retry_if_exception_type, stop_after_delay, wait_exponential

from shop.utils.settings import DB_CONNECT_TIMEOUT


def db_retry():
    return retry(
        reraise=True,
        stop=stop_after_delay(DB_CONNECT_TIMEOUT),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_exception_type(OperationalError),
    )
