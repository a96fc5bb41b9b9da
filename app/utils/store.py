from functools import wraps
import logging

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from app.config import settings
from app.exceptions import Unavailable

logger = logging.getLogger(__name__)

RETRYABLE_STORE_ERRORS = (OperationalError, StaleDataError)


def _call_with_retry(db, func, args, kwargs):
    attempts = settings.STORE_RETRY_ATTEMPTS + 1
    last_error = None
    for attempt in range(1, attempts + 1):
        try:
            return func(*args, **kwargs)
        except RETRYABLE_STORE_ERRORS as e:
            db.rollback()
            last_error = e
            logger.warning(f"{func.__qualname__} failed on attempt {attempt}/{attempts}: {e.__class__.__name__}")
    logger.error(f"{func.__qualname__} gave up after {attempts} attempts: {last_error}")
    raise Unavailable() from last_error


def retry_once(func):
    """Retry a service method after a store failure, then give up with Unavailable.

    The wrapped method must belong to an object holding its Session as ``self.db``
    and must leave no committed side effect when it raises.
    """
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        return _call_with_retry(self.db, func, (self, *args), kwargs)
    return wrapper


def retry_once_with_session(func):
    """``retry_once`` for plain functions taking the Session as first argument."""
    @wraps(func)
    def wrapper(db, *args, **kwargs):
        return _call_with_retry(db, func, (db, *args), kwargs)
    return wrapper
