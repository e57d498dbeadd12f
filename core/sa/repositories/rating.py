from typing import List, Optional, Dict
from sqlalchemy.orm import Session, joinedload
from core.sa.models import BookRating, LibraryBook

class RatingRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_for_book(self, book_id: int) -> Optional[BookRating]:
        return self.session.query(BookRating).filter(BookRating.book_id == book_id).first()

    def upsert(self, book_id: int, scores: Dict[str, int], recommend: bool, average: float) -> BookRating:
        rating = self.get_for_book(book_id)
        if rating is None:
            rating = BookRating(book_id=book_id)
            self.session.add(rating)
        for name, value in scores.items():
            setattr(rating, name, value)
        rating.recommend = recommend
        rating.average = average
        self.session.commit()
        return rating

    def delete(self, rating: BookRating) -> None:
        self.session.delete(rating)
        self.session.commit()

    def list_for_user(self, user_id: int) -> List[BookRating]:
        return (
            self.session.query(BookRating)
            .join(LibraryBook, BookRating.book_id == LibraryBook.id)
            .options(joinedload(BookRating.book).joinedload(LibraryBook.author))
            .filter(LibraryBook.user_id == user_id)
            .order_by(BookRating.updated_at.desc())
            .all()
        )
