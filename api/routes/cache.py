# api/routes/cache.py

from fastapi import APIRouter, Depends

from api.deps import get_current_user, get_dispatcher
from api.schemas.links import RevalidateRequest, RevalidateResult
from core.cache import InvalidationDispatcher, ReadingListChanged, tags_for_event

router = APIRouter(prefix="/cache", tags=["cache"])


@router.post("/revalidate", response_model=RevalidateResult)
def revalidate(
    request: RevalidateRequest,
    _user_id: int = Depends(get_current_user),
    dispatcher: InvalidationDispatcher = Depends(get_dispatcher)
):
    """Drop cached views for one tag, or for every reading list when no tag is given."""
    tags = {request.tag} if request.tag else set(tags_for_event(ReadingListChanged()))
    dropped = dispatcher.invalidate(tags)
    return RevalidateResult(tags=sorted(tags), dropped=dropped)
