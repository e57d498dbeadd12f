# api/routes/books.py

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status, Response
from sqlalchemy.orm import Session

from api.deps import get_cache, get_current_user, get_db
from api.schemas.library import BookCreate, BookUpdate, ProgressUpdate, RatingSave, ReadingGoal
from core.cache import CacheStore
from core.exceptions import NotFound
from core.models.library import BookView, RatingView, UserStats
from core.services.library_service import LibraryService
from core.services.rating_service import RatingService
from core.utils.reading_goal import format_daily_target, format_remaining_days

router = APIRouter(prefix="/books", tags=["books"])


@router.get("", response_model=List[BookView])
def list_books(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by reading status"),
    query: Optional[str] = Query(None, description="Search books by title"),
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return LibraryService(db, cache).list_books(user_id, status=status_filter, query=query)


@router.post("", response_model=BookView, status_code=status.HTTP_201_CREATED)
def add_book(
    book: BookCreate,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return LibraryService(db, cache).add_book(user_id, **book.model_dump(exclude_unset=True))


@router.get("/stats", response_model=UserStats)
def get_stats(
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return LibraryService(db, cache).get_stats(user_id)


@router.get("/{book_id}", response_model=BookView)
def get_book(
    book_id: int,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return LibraryService(db, cache).get_book(user_id, book_id)


@router.patch("/{book_id}", response_model=BookView)
def update_book(
    book_id: int,
    update: BookUpdate,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return LibraryService(db, cache).update_book(user_id, book_id, **update.model_dump(exclude_unset=True))


@router.put("/{book_id}/progress", response_model=BookView)
def update_progress(
    book_id: int,
    update: ProgressUpdate,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return LibraryService(db, cache).update_progress(user_id, book_id, update.current_page)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(
    book_id: int,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    LibraryService(db, cache).delete_book(user_id, book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{book_id}/goal", response_model=Optional[ReadingGoal])
def get_goal(
    book_id: int,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    """Reading pace for the book; null when no goal is configured."""
    goal = LibraryService(db, cache).get_goal(user_id, book_id)
    if goal is None:
        return None
    return ReadingGoal(
        **goal.__dict__,
        remaining_days_label=format_remaining_days(goal.remaining_days),
        daily_target_label=format_daily_target(goal.current_daily_target)
    )


@router.get("/{book_id}/rating", response_model=RatingView)
def get_rating(
    book_id: int,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    rating = RatingService(db, cache).get_rating(user_id, book_id)
    if rating is None:
        raise NotFound("Rating not found")
    return rating


@router.put("/{book_id}/rating", response_model=RatingView)
def save_rating(
    book_id: int,
    rating: RatingSave,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    scores = rating.model_dump(exclude={'recommend'})
    return RatingService(db, cache).save_rating(user_id, book_id, scores, recommend=rating.recommend)


@router.delete("/{book_id}/rating", status_code=status.HTTP_204_NO_CONTENT)
def delete_rating(
    book_id: int,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    RatingService(db, cache).delete_rating(user_id, book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
