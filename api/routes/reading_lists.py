# api/routes/reading_lists.py

from typing import List
from fastapi import APIRouter, Depends, status, Response
from sqlalchemy.orm import Session

from api.deps import get_cache, get_current_user, get_db
from api.schemas.catalog import (
    EntryCreate, LevelCreate, ReadingListCreate, ReadingListUpdate, ReorderRequest
)
from core.cache import CacheStore
from core.models.catalog import (
    ReadingListDetail, ReadingListEntryView, ReadingListLevelView, ReadingListProgress,
    ReadingListSummary
)
from core.services.reading_list_service import ReadingListService

router = APIRouter(prefix="/reading-lists", tags=["reading-lists"])


@router.get("", response_model=List[ReadingListSummary])
def list_reading_lists(db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    return ReadingListService(db, cache).list_reading_lists()


@router.post("", response_model=ReadingListDetail, status_code=status.HTTP_201_CREATED)
def create_reading_list(
    data: ReadingListCreate,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ReadingListService(db, cache).create_list(data.name, slug=data.slug, description=data.description)


@router.get("/{slug}", response_model=ReadingListDetail)
def get_reading_list(slug: str, db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache)):
    return ReadingListService(db, cache).get_reading_list(slug)


@router.patch("/{slug}", response_model=ReadingListDetail)
def update_reading_list(
    slug: str,
    update: ReadingListUpdate,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ReadingListService(db, cache).update_list(slug, **update.model_dump(exclude_unset=True))


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reading_list(
    slug: str,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ReadingListService(db, cache).delete_list(slug)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{slug}/progress", response_model=ReadingListProgress)
def get_reading_list_progress(
    slug: str,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ReadingListService(db, cache).get_progress(user_id, slug)


@router.post("/{slug}/levels", response_model=ReadingListLevelView, status_code=status.HTTP_201_CREATED)
def add_level(
    slug: str,
    level: LevelCreate,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ReadingListService(db, cache).add_level(slug, level.name, level.description)


@router.put("/{slug}/levels/order", status_code=status.HTTP_204_NO_CONTENT)
def reorder_levels(
    slug: str,
    order: ReorderRequest,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ReadingListService(db, cache).reorder_levels(slug, order.ids)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/levels/{level_id}/books", response_model=ReadingListEntryView, status_code=status.HTTP_201_CREATED)
def add_entry(
    level_id: int,
    entry: EntryCreate,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ReadingListService(db, cache).add_entry(
        level_id, entry.title, author=entry.author, rationale=entry.rationale, page_count=entry.page_count
    )


@router.put("/levels/{level_id}/books/order", status_code=status.HTTP_204_NO_CONTENT)
def reorder_entries(
    level_id: int,
    order: ReorderRequest,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ReadingListService(db, cache).reorder_entries(level_id, order.ids)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/levels/{level_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_level(
    level_id: int,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ReadingListService(db, cache).delete_level(level_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: int,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ReadingListService(db, cache).delete_entry(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/order", status_code=status.HTTP_204_NO_CONTENT)
def reorder_reading_lists(
    slugs: List[str],
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ReadingListService(db, cache).reorder_lists(slugs)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/levels/{level_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_level(
    level_id: int,
    level: LevelCreate,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ReadingListService(db, cache).update_level(level_id, **level.model_dump(exclude_unset=True))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_entry(
    entry_id: int,
    entry: EntryCreate,
    _user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ReadingListService(db, cache).update_entry(entry_id, **entry.model_dump(exclude_unset=True))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
