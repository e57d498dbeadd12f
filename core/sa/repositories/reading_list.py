from typing import List, Optional, Any
from sqlalchemy import func, exists, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, joinedload
from core.exceptions import ConflictAlreadyLinked
from core.models.link import CatalogCandidate, LinkKind
from core.sa.models import (
    ReadingList, ReadingListLevel, ReadingListBook, UserReadingListBook
)

class ReadingListRepository:
    """Repository for curated reading lists and the user links to their entries."""

    def __init__(self, session: Session):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    # Catalog reads

    def list_all(self) -> List[ReadingList]:
        """All reading lists with levels and entries loaded, in display order."""
        return (
            self.session.query(ReadingList)
            .options(selectinload(ReadingList.levels).selectinload(ReadingListLevel.books))
            .order_by(ReadingList.sort_order, ReadingList.id)
            .all()
        )

    def get_by_slug(self, slug: str) -> Optional[ReadingList]:
        return (
            self.session.query(ReadingList)
            .options(selectinload(ReadingList.levels).selectinload(ReadingListLevel.books))
            .filter(ReadingList.slug == slug)
            .first()
        )

    def get_level(self, level_id: int) -> Optional[ReadingListLevel]:
        return (
            self.session.query(ReadingListLevel)
            .options(joinedload(ReadingListLevel.reading_list))
            .filter(ReadingListLevel.id == level_id)
            .first()
        )

    def get_entry(self, entry_id: int) -> Optional[ReadingListBook]:
        """Get a catalog entry with its level and list loaded."""
        return (
            self.session.query(ReadingListBook)
            .options(joinedload(ReadingListBook.level).joinedload(ReadingListLevel.reading_list))
            .filter(ReadingListBook.id == entry_id)
            .first()
        )

    # Catalog writes

    def next_list_sort_order(self) -> int:
        current = self.session.query(func.max(ReadingList.sort_order)).scalar()
        return (current if current is not None else -1) + 1

    def next_level_number(self, list_id: int) -> int:
        current = (
            self.session.query(func.max(ReadingListLevel.level_number))
            .filter(ReadingListLevel.reading_list_id == list_id)
            .scalar()
        )
        return (current or 0) + 1

    def next_entry_sort_order(self, level_id: int) -> int:
        current = (
            self.session.query(func.max(ReadingListBook.sort_order))
            .filter(ReadingListBook.level_id == level_id)
            .scalar()
        )
        return (current if current is not None else -1) + 1

    def add(self, obj: Any) -> Any:
        self.session.add(obj)
        self.session.commit()
        return obj

    def update(self, obj: Any, **fields: Any) -> Any:
        for name, value in fields.items():
            setattr(obj, name, value)
        self.session.commit()
        return obj

    def delete(self, obj: Any) -> None:
        self.session.delete(obj)
        self.session.commit()

    def reorder(self, items: List[Any], attribute: str, start: int = 0) -> None:
        """Write ``start, start + 1, ...`` into ``attribute`` in one transaction."""
        try:
            for index, item in enumerate(items):
                setattr(item, attribute, start + index)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    # User links

    def get_link(self, user_id: int, entry_id: int) -> Optional[UserReadingListBook]:
        return (
            self.session.query(UserReadingListBook)
            .filter(
                UserReadingListBook.user_id == user_id,
                UserReadingListBook.reading_list_book_id == entry_id
            )
            .first()
        )

    def links_for_user(self, user_id: int, list_id: Optional[int] = None) -> List[UserReadingListBook]:
        """A user's link rows with their linked book loaded, optionally for one list."""
        query = (
            self.session.query(UserReadingListBook)
            .options(joinedload(UserReadingListBook.book))
            .filter(UserReadingListBook.user_id == user_id)
        )
        if list_id is not None:
            query = (
                query.join(ReadingListBook, UserReadingListBook.reading_list_book_id == ReadingListBook.id)
                .join(ReadingListLevel, ReadingListBook.level_id == ReadingListLevel.id)
                .filter(ReadingListLevel.reading_list_id == list_id)
            )
        return query.all()

    def create_link(self, user_id: int, entry_id: int, book_id: Optional[int]) -> UserReadingListBook:
        """Create or fill the link row for (user, entry).

        An existing row without a book gets ``book_id`` set; an existing row
        with a book is replaced.

        Raises:
            ConflictAlreadyLinked: a unique constraint rejected the write,
                i.e. the entry or the book is already linked for this user
        """
        link = self.get_link(user_id, entry_id)
        if link is None:
            link = UserReadingListBook(user_id=user_id, reading_list_book_id=entry_id, book_id=book_id)
            self.session.add(link)
        else:
            link.book_id = book_id
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictAlreadyLinked("This book is already linked to a reading list entry") from e
        return link

    def fill_link(self, user_id: int, entry_id: int, book_id: int) -> Optional[UserReadingListBook]:
        """Set the book of a link row only if the entry has no book yet.

        Returns:
            The updated or created link, or None if another book was linked
            in the meantime

        Raises:
            ConflictAlreadyLinked: on a unique constraint violation
        """
        link = self.get_link(user_id, entry_id)
        if link is not None and link.book_id is not None:
            return None
        return self.create_link(user_id, entry_id, book_id)

    def delete_link(self, link: UserReadingListBook) -> None:
        self.session.delete(link)
        self.session.commit()

    def count_broken_links(self, user_id: int) -> int:
        """Link rows of the user that have no personal copy attached."""
        return (
            self.session.query(func.count(UserReadingListBook.id))
            .filter(UserReadingListBook.user_id == user_id, UserReadingListBook.book_id.is_(None))
            .scalar()
        ) or 0

    def find_unlinked_catalog_entries(self, user_id: int) -> List[CatalogCandidate]:
        """Catalog entries across all lists that the user has no book linked to.

        Entries with a link row whose ``book_id`` is NULL count as unlinked.
        """
        linked = exists().where(and_(
            UserReadingListBook.reading_list_book_id == ReadingListBook.id,
            UserReadingListBook.user_id == user_id,
            UserReadingListBook.book_id.is_not(None)
        ))
        rows = (
            self.session.query(ReadingListBook, ReadingListLevel, ReadingList)
            .join(ReadingListLevel, ReadingListBook.level_id == ReadingListLevel.id)
            .join(ReadingList, ReadingListLevel.reading_list_id == ReadingList.id)
            .filter(~linked)
            .order_by(
                ReadingList.sort_order, ReadingList.id,
                ReadingListLevel.level_number, ReadingListBook.sort_order, ReadingListBook.id
            )
            .all()
        )
        return [
            CatalogCandidate(
                kind=LinkKind.READING_LIST,
                target_id=entry.id,
                title=entry.title,
                author=entry.author or None,
                container_name=reading_list.name,
                sort_key=(
                    reading_list.sort_order, reading_list.id,
                    level.level_number, entry.sort_order, entry.id
                )
            )
            for entry, level, reading_list in rows
        ]
