from typing import Dict, List, Optional, Any
from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload
from core.models.link import BookCandidate
from core.sa.models import LibraryBook, UserReadingListBook, UserChallengeBook, UserChallengeProgress

class LibraryBookRepository:
    """Repository for a user's own books.

    Every query takes the owning user id; a book that exists but belongs to
    someone else is indistinguishable from a missing one.
    """

    def __init__(self, session: Session):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def get_for_user(self, user_id: int, book_id: int) -> Optional[LibraryBook]:
        """Get a book by ID, scoped to its owner.

        Args:
            user_id: The requesting user
            book_id: The ID of the book

        Returns:
            The LibraryBook with author loaded, or None if missing or not owned
        """
        return (
            self.session.query(LibraryBook)
            .options(joinedload(LibraryBook.author))
            .filter(LibraryBook.id == book_id, LibraryBook.user_id == user_id)
            .first()
        )

    def list_for_user(
        self,
        user_id: int,
        statuses: Optional[List[str]] = None,
        query: Optional[str] = None
    ) -> List[LibraryBook]:
        """List a user's books, most recently updated first.

        Args:
            user_id: The owner
            statuses: Optional status filter
            query: Optional case-insensitive title search

        Returns:
            List of LibraryBook objects with authors loaded
        """
        base_query = (
            self.session.query(LibraryBook)
            .options(joinedload(LibraryBook.author), joinedload(LibraryBook.shelf))
            .filter(LibraryBook.user_id == user_id)
        )
        if statuses:
            base_query = base_query.filter(LibraryBook.status.in_(statuses))
        if query and query.strip():
            base_query = base_query.filter(LibraryBook.title.ilike(f"%{query.strip()}%"))
        return base_query.order_by(LibraryBook.updated_at.desc(), LibraryBook.id.desc()).all()

    def create(self, user_id: int, **fields: Any) -> LibraryBook:
        book = LibraryBook(user_id=user_id, **fields)
        self.session.add(book)
        self.session.commit()
        return book

    def update(self, book: LibraryBook, **fields: Any) -> LibraryBook:
        for name, value in fields.items():
            setattr(book, name, value)
        self.session.commit()
        return book

    def delete(self, book: LibraryBook) -> None:
        self.session.delete(book)
        self.session.commit()

    def count_by_status(self, user_id: int) -> Dict[str, int]:
        rows = (
            self.session.query(LibraryBook.status, func.count(LibraryBook.id))
            .filter(LibraryBook.user_id == user_id)
            .group_by(LibraryBook.status)
            .all()
        )
        return {status: count for status, count in rows}

    def _candidates(self, user_id: int, linked_ids) -> List[BookCandidate]:
        books = (
            self.session.query(LibraryBook)
            .options(joinedload(LibraryBook.author))
            .filter(LibraryBook.user_id == user_id, LibraryBook.id.not_in(linked_ids))
            .order_by(LibraryBook.id)
            .all()
        )
        return [
            BookCandidate(
                book_id=book.id,
                title=book.title,
                author=book.author.name if book.author else None
            )
            for book in books
            # Books without a usable title never take part in matching.
            if book.title and book.title.strip()
        ]

    def find_unlinked_library_books(self, user_id: int) -> List[BookCandidate]:
        """Books of the user not linked to any reading-list entry."""
        linked_ids = (
            select(UserReadingListBook.book_id)
            .where(
                UserReadingListBook.user_id == user_id,
                UserReadingListBook.book_id.is_not(None)
            )
        )
        return self._candidates(user_id, linked_ids)

    def find_unlinked_challenge_books(self, user_id: int) -> List[BookCandidate]:
        """Books of the user not linked to any challenge book."""
        linked_ids = (
            select(UserChallengeBook.linked_book_id)
            .join(UserChallengeProgress, UserChallengeBook.user_progress_id == UserChallengeProgress.id)
            .where(
                UserChallengeProgress.user_id == user_id,
                UserChallengeBook.linked_book_id.is_not(None)
            )
        )
        return self._candidates(user_id, linked_ids)
