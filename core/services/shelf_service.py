# core/services/shelf_service.py
import logging
from typing import List, Optional

from core.auth import require_user
from core.cache import CacheDuration, CacheTags, ShelfChanged, make_key
from core.exceptions import NotFound, ValidationError
from core.models.library import BookView, ShelfView
from core.sa.models import Shelf
from core.sa.repositories import LibraryBookRepository, ShelfRepository
from core.services.base import BaseService, db_operation

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Shelf name is required")
    name = name.strip()
    if len(name) > 255:
        raise ValidationError("Shelf name is too long")
    return name


def _shelf_view(shelf: Shelf) -> ShelfView:
    return ShelfView(
        id=shelf.id,
        name=shelf.name,
        description=shelf.description,
        color=shelf.color,
        sort_order=shelf.sort_order,
        books=[BookView.from_book(book) for book in sorted(shelf.books, key=lambda b: b.title)]
    )


class ShelfService(BaseService):
    def _get_owned(self, user_id: int, shelf_id: int) -> Shelf:
        shelf = ShelfRepository(self.session).get_for_user(user_id, shelf_id)
        if shelf is None:
            raise NotFound("Shelf not found")
        return shelf

    @db_operation
    def list_shelves(self, user_id: Optional[int]) -> List[ShelfView]:
        user_id = require_user(user_id)
        return self.cache.get_or_set(
            make_key("shelves", user_id),
            lambda: [_shelf_view(shelf) for shelf in ShelfRepository(self.session).list_for_user(user_id)],
            tags=[CacheTags.user_library(user_id)],
            ttl=CacheDuration.MEDIUM
        )

    @db_operation
    def create_shelf(self, user_id: Optional[int], name: str, description: Optional[str] = None,
                     color: Optional[str] = None) -> ShelfView:
        user_id = require_user(user_id)
        shelf = ShelfRepository(self.session).create(user_id, _clean_name(name), description, color)
        self.dispatcher.dispatch(ShelfChanged(user_id=user_id))
        return _shelf_view(shelf)

    @db_operation
    def update_shelf(self, user_id: Optional[int], shelf_id: int, **fields) -> ShelfView:
        user_id = require_user(user_id)
        shelf = self._get_owned(user_id, shelf_id)
        unknown = set(fields) - {'name', 'description', 'color'}
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        if 'name' in fields:
            fields['name'] = _clean_name(fields['name'])
        shelf = ShelfRepository(self.session).update(shelf, **fields)
        self.dispatcher.dispatch(ShelfChanged(user_id=user_id))
        return _shelf_view(shelf)

    @db_operation
    def delete_shelf(self, user_id: Optional[int], shelf_id: int) -> List[int]:
        """Delete a shelf; its books stay in the library without a shelf.

        Returns:
            IDs of the books that were detached
        """
        user_id = require_user(user_id)
        shelf = self._get_owned(user_id, shelf_id)
        book_ids = ShelfRepository(self.session).delete_with_detach(shelf)
        self.dispatcher.dispatch(ShelfChanged(user_id=user_id, book_ids=book_ids))
        logger.info("User %s deleted shelf %s, detached %d books", user_id, shelf_id, len(book_ids))
        return book_ids

    @db_operation
    def add_book_to_shelf(self, user_id: Optional[int], shelf_id: int, book_id: int) -> BookView:
        user_id = require_user(user_id)
        self._get_owned(user_id, shelf_id)
        book = LibraryBookRepository(self.session).get_for_user(user_id, book_id)
        if book is None:
            raise NotFound("Book not found")
        book = ShelfRepository(self.session).set_book_shelf(book, shelf_id)
        self.dispatcher.dispatch(ShelfChanged(user_id=user_id, book_ids=book_id))
        return BookView.from_book(book)

    @db_operation
    def remove_book_from_shelf(self, user_id: Optional[int], book_id: int,
                               shelf_id: Optional[int] = None) -> BookView:
        user_id = require_user(user_id)
        book = LibraryBookRepository(self.session).get_for_user(user_id, book_id)
        if book is None or (shelf_id is not None and book.shelf_id != shelf_id):
            raise NotFound("Book not found on this shelf")
        book = ShelfRepository(self.session).set_book_shelf(book, None)
        self.dispatcher.dispatch(ShelfChanged(user_id=user_id, book_ids=book_id))
        return BookView.from_book(book)

    @db_operation
    def reorder_shelves(self, user_id: Optional[int], shelf_ids: List[int]) -> None:
        """Apply a new display order; ``shelf_ids`` must name every shelf exactly once."""
        user_id = require_user(user_id)
        repo = ShelfRepository(self.session)
        shelves = {shelf.id: shelf for shelf in repo.list_for_user(user_id)}
        if len(shelf_ids) != len(set(shelf_ids)) or set(shelf_ids) != set(shelves):
            raise ValidationError("The new order must list each shelf exactly once")
        repo.reorder([shelves[shelf_id] for shelf_id in shelf_ids])
        self.dispatcher.dispatch(ShelfChanged(user_id=user_id))
