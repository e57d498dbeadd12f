from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from core.sa.models import Shelf, LibraryBook

class ShelfRepository:
    """Repository for user-defined shelves."""

    def __init__(self, session: Session):
        self.session = session

    def get_for_user(self, user_id: int, shelf_id: int) -> Optional[Shelf]:
        return (
            self.session.query(Shelf)
            .filter(Shelf.id == shelf_id, Shelf.user_id == user_id)
            .first()
        )

    def list_for_user(self, user_id: int) -> List[Shelf]:
        """Shelves in display order, with their books loaded."""
        return (
            self.session.query(Shelf)
            .options(selectinload(Shelf.books).joinedload(LibraryBook.author))
            .filter(Shelf.user_id == user_id)
            .order_by(Shelf.sort_order, Shelf.id)
            .all()
        )

    def next_sort_order(self, user_id: int) -> int:
        current = (
            self.session.query(func.max(Shelf.sort_order))
            .filter(Shelf.user_id == user_id)
            .scalar()
        )
        return (current if current is not None else -1) + 1

    def create(self, user_id: int, name: str, description: Optional[str] = None,
               color: Optional[str] = None) -> Shelf:
        shelf = Shelf(
            user_id=user_id,
            name=name,
            description=description,
            color=color,
            sort_order=self.next_sort_order(user_id)
        )
        self.session.add(shelf)
        self.session.commit()
        return shelf

    def update(self, shelf: Shelf, **fields) -> Shelf:
        for name, value in fields.items():
            setattr(shelf, name, value)
        self.session.commit()
        return shelf

    def delete_with_detach(self, shelf: Shelf) -> List[int]:
        """Detach every book from the shelf and delete it in one transaction.

        Returns:
            IDs of the books that were on the shelf
        """
        try:
            book_ids = [
                row[0] for row in
                self.session.query(LibraryBook.id)
                .filter(LibraryBook.shelf_id == shelf.id, LibraryBook.user_id == shelf.user_id)
                .all()
            ]
            (
                self.session.query(LibraryBook)
                .filter(LibraryBook.shelf_id == shelf.id, LibraryBook.user_id == shelf.user_id)
                .update({LibraryBook.shelf_id: None}, synchronize_session='fetch')
            )
            self.session.delete(shelf)
            self.session.commit()
            return book_ids
        except Exception:
            self.session.rollback()
            raise

    def set_book_shelf(self, book: LibraryBook, shelf_id: Optional[int]) -> LibraryBook:
        book.shelf_id = shelf_id
        self.session.commit()
        return book

    def reorder(self, shelves: List[Shelf]) -> None:
        """Persist the given order; all shelves are updated in one commit."""
        try:
            for index, shelf in enumerate(shelves):
                shelf.sort_order = index
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
