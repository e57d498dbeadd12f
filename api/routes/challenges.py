# api/routes/challenges.py

from typing import Optional
from fastapi import APIRouter, Depends, Header, status, Response
from sqlalchemy.orm import Session

from api.deps import get_cache, get_current_user, get_db
from api.schemas.catalog import ChallengeBookRead, ChallengeStatusUpdate, UnlockResult
from core.cache import CacheStore
from core.models.catalog import ChallengeDetail
from core.services.challenge_service import ChallengeService

router = APIRouter(prefix="/challenges", tags=["challenges"])


def _optional_user(x_user_id: Optional[str] = Header(None), db: Session = Depends(get_db)) -> Optional[int]:
    # Challenge pages are public; the user's state is added when a user is known.
    if x_user_id is None:
        return None
    return get_current_user(x_user_id, db)


@router.get("/active", response_model=ChallengeDetail)
def get_active_challenge(
    user_id: Optional[int] = Depends(_optional_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ChallengeService(db, cache).get_active_challenge(user_id)


@router.get("/{year}", response_model=ChallengeDetail)
def get_challenge(
    year: int,
    user_id: Optional[int] = Depends(_optional_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ChallengeService(db, cache).get_challenge(year, user_id)


@router.post("/{year}/join", response_model=ChallengeDetail)
def join_challenge(
    year: int,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ChallengeService(db, cache).join_challenge(user_id, year)


@router.post("/books/{challenge_book_id}/read", response_model=UnlockResult)
def mark_book_read(
    challenge_book_id: int,
    data: ChallengeBookRead,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    unlocked = ChallengeService(db, cache).mark_book_read(user_id, challenge_book_id, takeaway=data.takeaway)
    return UnlockResult(unlocked=unlocked)


@router.put("/books/{challenge_book_id}/status", status_code=status.HTTP_204_NO_CONTENT)
def update_book_status(
    challenge_book_id: int,
    update: ChallengeStatusUpdate,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ChallengeService(db, cache).update_book_status(user_id, challenge_book_id, update.status)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/books/{challenge_book_id}/takeaway", status_code=status.HTTP_204_NO_CONTENT)
def save_takeaway(
    challenge_book_id: int,
    data: ChallengeBookRead,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ChallengeService(db, cache).save_takeaway(user_id, challenge_book_id, data.takeaway)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
