# api/deps.py
from typing import Iterator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from core.auth import require_user
from core.cache import CacheStore, InvalidationDispatcher
from core.exceptions import Unauthorized
from core.sa.repositories import UserRepository


def get_db(request: Request) -> Iterator[Session]:
    """One session per request, committed or rolled back when the request ends."""
    with request.app.state.database.get_db() as session:
        yield session


def get_cache(request: Request) -> CacheStore:
    return request.app.state.cache


def get_dispatcher(cache: CacheStore = Depends(get_cache)) -> InvalidationDispatcher:
    return InvalidationDispatcher(cache)


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> int:
    """The user id verified by the identity provider in front of the API.

    Missing, malformed or unknown ids are all rejected the same way.
    """
    if x_user_id is None or not x_user_id.strip().isdigit():
        raise Unauthorized()
    user_id = require_user(int(x_user_id))
    if UserRepository(db).get_by_id(user_id) is None:
        raise Unauthorized()
    return user_id
