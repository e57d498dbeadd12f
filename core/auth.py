# core/auth.py
from typing import Optional

from core.exceptions import Unauthorized


def require_user(user_id: Optional[int]) -> int:
    """Return the authenticated user id or raise ``Unauthorized``.

    Identity comes from the external provider; this only guards against
    a user-scoped operation running without one.
    """
    if user_id is None or user_id <= 0:
        raise Unauthorized()
    return user_id
