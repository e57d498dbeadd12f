# core/services/base.py
import functools
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.cache import CacheStore, InvalidationDispatcher
from core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)


def db_operation(func):
    """Turn a database error escaping a service method into ``UpstreamFailure``."""
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Database error in %s: %s", func.__qualname__, e)
            raise UpstreamFailure() from e
    return wrapper


class BaseService:
    """Holds the per-request session and the shared cache.

    Mutations go through ``self.dispatcher`` so the tag set for each change
    is computed in one place.
    """

    def __init__(self, session: Session, cache: CacheStore,
                 dispatcher: Optional[InvalidationDispatcher] = None):
        self.session = session
        self.cache = cache
        self.dispatcher = dispatcher or InvalidationDispatcher(cache)
