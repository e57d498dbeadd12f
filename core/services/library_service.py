# core/services/library_service.py
import logging
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from core.auth import require_user
from core.cache import BookChanged, CacheDuration, CacheTags, make_key
from core.exceptions import NotFound, ValidationError
from core.models.library import BookView, UserStats
from core.sa.models import BookStatus, LibraryBook
from core.sa.repositories import AuthorRepository, LibraryBookRepository, RatingRepository
from core.services.base import BaseService, db_operation
from core.utils.reading_goal import ReadingGoalInfo, compute_goal

logger = logging.getLogger(__name__)

BOOK_FIELDS = (
    'title', 'author_name', 'page_count', 'current_page', 'status',
    'cover_url', 'start_date', 'end_date', 'reading_goal_days'
)
STATUSES = {status.value for status in BookStatus}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_book_fields(fields: Dict[str, Any], page_count: Optional[int] = None,
                         current_page: int = 0) -> None:
    """Reject malformed book data before anything is written.

    ``page_count``/``current_page`` are the stored values the update is
    applied on top of.
    """
    unknown = set(fields) - set(BOOK_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    if 'title' in fields:
        title = fields['title']
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Title is required")
        if len(title) > 500:
            raise ValidationError("Title is too long")

    if 'status' in fields and fields['status'] not in STATUSES:
        raise ValidationError(f"Unknown status: {fields['status']}")

    for name in ('page_count', 'reading_goal_days'):
        value = fields.get(name)
        if value is not None and (not _is_int(value) or value <= 0):
            raise ValidationError(f"{name} must be a positive whole number")

    if fields.get('current_page') is not None:
        value = fields['current_page']
        if not _is_int(value) or value < 0:
            raise ValidationError("current_page must be a whole number, zero or more")

    new_page_count = fields.get('page_count', page_count)
    new_current_page = fields.get('current_page', current_page) or 0
    if new_page_count is not None and new_current_page > new_page_count:
        raise ValidationError("Current page cannot exceed the page count")


class LibraryService(BaseService):
    """A user's own books: CRUD, cached listings, reading goal and stats."""

    def _get_owned(self, user_id: int, book_id: int) -> LibraryBook:
        book = LibraryBookRepository(self.session).get_for_user(user_id, book_id)
        if book is None:
            raise NotFound("Book not found")
        return book

    def _apply_status_dates(self, book_fields: Dict[str, Any], previous_status: Optional[str],
                            page_count: Optional[int], started: bool = False) -> None:
        status = book_fields.get('status')
        if status is None or status == previous_status:
            return
        now = datetime.now(UTC)
        if status == BookStatus.READING.value and not started:
            book_fields.setdefault('start_date', now)
        elif status == BookStatus.COMPLETED.value:
            book_fields.setdefault('end_date', now)
            if page_count:
                book_fields['current_page'] = page_count

    @db_operation
    def list_books(self, user_id: Optional[int], status: Optional[str] = None,
                   query: Optional[str] = None) -> List[BookView]:
        user_id = require_user(user_id)
        if status is not None and status not in STATUSES:
            raise ValidationError(f"Unknown status: {status}")

        def load() -> List[BookView]:
            books = LibraryBookRepository(self.session).list_for_user(
                user_id, statuses=[status] if status else None, query=query
            )
            return [BookView.from_book(book) for book in books]

        return self.cache.get_or_set(
            make_key("books", user_id, status, query),
            load,
            tags=[CacheTags.user_books(user_id)],
            ttl=CacheDuration.MEDIUM
        )

    @db_operation
    def currently_reading(self, user_id: Optional[int]) -> List[BookView]:
        return self.list_books(user_id, status=BookStatus.READING.value)

    @db_operation
    def get_book(self, user_id: Optional[int], book_id: int) -> BookView:
        user_id = require_user(user_id)

        def load() -> BookView:
            return BookView.from_book(self._get_owned(user_id, book_id))

        return self.cache.get_or_set(
            make_key("book", user_id, book_id),
            load,
            tags=[CacheTags.book(book_id), CacheTags.user_books(user_id)],
            ttl=CacheDuration.MEDIUM
        )

    @db_operation
    def add_book(self, user_id: Optional[int], **fields: Any) -> BookView:
        """Add a book to the user's library.

        Args:
            user_id: The owner
            fields: title (required), author_name, page_count, current_page,
                status, cover_url, start_date, end_date, reading_goal_days

        Returns:
            The created book

        Raises:
            ValidationError: If the data is malformed
        """
        user_id = require_user(user_id)
        if 'title' not in fields:
            raise ValidationError("Title is required")
        fields.setdefault('status', BookStatus.TO_READ.value)
        validate_book_fields(fields)
        self._apply_status_dates(fields, None, fields.get('page_count'))

        author_name = fields.pop('author_name', None)
        if author_name and author_name.strip():
            fields['author_id'] = AuthorRepository(self.session).get_or_create(author_name).id
        fields['title'] = fields['title'].strip()

        book = LibraryBookRepository(self.session).create(user_id, **fields)
        self.dispatcher.dispatch(BookChanged(user_id=user_id, book_id=book.id))
        logger.info("User %s added book %s", user_id, book.id)
        return BookView.from_book(book)

    @db_operation
    def update_book(self, user_id: Optional[int], book_id: int, **fields: Any) -> BookView:
        """Update a book; status changes stamp start/end dates."""
        user_id = require_user(user_id)
        book = self._get_owned(user_id, book_id)
        validate_book_fields(fields, page_count=book.page_count, current_page=book.current_page)
        self._apply_status_dates(
            fields, book.status, fields.get('page_count', book.page_count), started=book.start_date is not None
        )

        if 'author_name' in fields:
            author_name = fields.pop('author_name')
            fields['author_id'] = (
                AuthorRepository(self.session).get_or_create(author_name).id
                if author_name and author_name.strip() else None
            )
        if 'title' in fields:
            fields['title'] = fields['title'].strip()

        book = LibraryBookRepository(self.session).update(book, **fields)
        self.dispatcher.dispatch(BookChanged(user_id=user_id, book_id=book.id))
        return BookView.from_book(book)

    def update_progress(self, user_id: Optional[int], book_id: int, current_page: Any) -> BookView:
        if isinstance(current_page, str) and current_page.strip().isdigit():
            current_page = int(current_page)
        if not _is_int(current_page):
            raise ValidationError("Page number must be a whole number")
        return self.update_book(user_id, book_id, current_page=current_page)

    @db_operation
    def delete_book(self, user_id: Optional[int], book_id: int) -> None:
        """Delete a book; its rating goes with it and links keep their row without a book."""
        user_id = require_user(user_id)
        book = self._get_owned(user_id, book_id)
        LibraryBookRepository(self.session).delete(book)
        self.dispatcher.dispatch(BookChanged(user_id=user_id, book_id=book_id))
        logger.info("User %s deleted book %s", user_id, book_id)

    @db_operation
    def get_goal(self, user_id: Optional[int], book_id: int,
                 now: Optional[datetime] = None) -> Optional[ReadingGoalInfo]:
        """Reading pace for the book, or None when it has no goal configured."""
        user_id = require_user(user_id)
        book = self._get_owned(user_id, book_id)
        return compute_goal(
            book.page_count, book.current_page, book.start_date, book.reading_goal_days, now=now
        )

    @db_operation
    def get_stats(self, user_id: Optional[int]) -> UserStats:
        user_id = require_user(user_id)

        def load() -> UserStats:
            repo = LibraryBookRepository(self.session)
            books = repo.list_for_user(user_id)
            ratings = RatingRepository(self.session).list_for_user(user_id)
            by_status = {status: 0 for status in sorted(STATUSES)}
            by_status.update(repo.count_by_status(user_id))
            pages_read = 0
            for book in books:
                if book.status == BookStatus.COMPLETED.value and book.page_count:
                    pages_read += book.page_count
                else:
                    pages_read += book.current_page or 0
            average = None
            if ratings:
                average = round(sum(rating.average for rating in ratings) / len(ratings), 1)
            return UserStats(
                total_books=len(books),
                by_status=by_status,
                pages_read=pages_read,
                rated_books=len(ratings),
                average_rating=average,
                recommended_books=sum(1 for rating in ratings if rating.recommend)
            )

        return self.cache.get_or_set(
            make_key("stats", user_id),
            load,
            tags=[CacheTags.user_stats(user_id)],
            ttl=CacheDuration.MEDIUM
        )
