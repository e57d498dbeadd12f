# api/routes/shelves.py

from typing import List
from fastapi import APIRouter, Depends, status, Response
from sqlalchemy.orm import Session

from api.deps import get_cache, get_current_user, get_db
from api.schemas.library import ShelfBook, ShelfCreate, ShelfReorder, ShelfUpdate
from core.cache import CacheStore
from core.models.library import BookView, ShelfView
from core.services.shelf_service import ShelfService

router = APIRouter(prefix="/shelves", tags=["shelves"])


@router.get("", response_model=List[ShelfView])
def list_shelves(
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ShelfService(db, cache).list_shelves(user_id)


@router.post("", response_model=ShelfView, status_code=status.HTTP_201_CREATED)
def create_shelf(
    shelf: ShelfCreate,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ShelfService(db, cache).create_shelf(user_id, shelf.name, shelf.description, shelf.color)


@router.put("/order", status_code=status.HTTP_204_NO_CONTENT)
def reorder_shelves(
    order: ShelfReorder,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ShelfService(db, cache).reorder_shelves(user_id, order.shelf_ids)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{shelf_id}", response_model=ShelfView)
def update_shelf(
    shelf_id: int,
    update: ShelfUpdate,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ShelfService(db, cache).update_shelf(user_id, shelf_id, **update.model_dump(exclude_unset=True))


@router.delete("/{shelf_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shelf(
    shelf_id: int,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    ShelfService(db, cache).delete_shelf(user_id, shelf_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{shelf_id}/books", response_model=BookView)
def add_book_to_shelf(
    shelf_id: int,
    book: ShelfBook,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ShelfService(db, cache).add_book_to_shelf(user_id, shelf_id, book.book_id)


@router.delete("/{shelf_id}/books/{book_id}", response_model=BookView)
def remove_book_from_shelf(
    shelf_id: int,
    book_id: int,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return ShelfService(db, cache).remove_book_from_shelf(user_id, book_id, shelf_id=shelf_id)
