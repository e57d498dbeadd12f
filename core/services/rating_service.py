# core/services/rating_service.py
from typing import Any, Dict, List, Optional

from core.auth import require_user
from core.cache import RatingChanged
from core.exceptions import NotFound, ValidationError
from core.models.library import RatingView
from core.sa.models import BookRating, BookStatus
from core.sa.repositories import LibraryBookRepository, RatingRepository
from core.services.base import BaseService, db_operation

RATING_CATEGORIES = (
    'topic', 'fluency', 'depth', 'impact', 'style',
    'characters', 'originality', 'print_design', 'overall'
)
MIN_SCORE = 1
MAX_SCORE = 10


def validate_scores(scores: Dict[str, Any]) -> Dict[str, int]:
    """Every category must be present and a whole number from 1 to 10."""
    unknown = set(scores) - set(RATING_CATEGORIES)
    if unknown:
        raise ValidationError(f"Unknown rating categories: {', '.join(sorted(unknown))}")
    cleaned = {}
    for category in RATING_CATEGORIES:
        value = scores.get(category)
        if value is None:
            raise ValidationError(f"Missing score for {category}")
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"Score for {category} must be a whole number")
        if not MIN_SCORE <= value <= MAX_SCORE:
            raise ValidationError(f"Score for {category} must be between {MIN_SCORE} and {MAX_SCORE}")
        cleaned[category] = value
    return cleaned


def average_score(scores: Dict[str, int]) -> float:
    return round(sum(scores.values()) / len(scores), 1)


def _rating_view(rating: BookRating) -> RatingView:
    return RatingView(
        book_id=rating.book_id,
        book_title=rating.book.title if rating.book else None,
        scores={category: getattr(rating, category) for category in RATING_CATEGORIES},
        recommend=rating.recommend,
        average=rating.average,
        updated_at=rating.updated_at
    )


class RatingService(BaseService):
    def _get_owned_book(self, user_id: int, book_id: int):
        book = LibraryBookRepository(self.session).get_for_user(user_id, book_id)
        if book is None:
            raise NotFound("Book not found")
        return book

    @db_operation
    def save_rating(self, user_id: Optional[int], book_id: int, scores: Dict[str, Any],
                    recommend: bool = False) -> RatingView:
        """Create or replace the rating of a completed book."""
        user_id = require_user(user_id)
        book = self._get_owned_book(user_id, book_id)
        if book.status != BookStatus.COMPLETED.value:
            raise ValidationError("Only finished books can be rated")
        cleaned = validate_scores(scores)
        rating = RatingRepository(self.session).upsert(
            book.id, cleaned, bool(recommend), average_score(cleaned)
        )
        self.dispatcher.dispatch(RatingChanged(user_id=user_id, book_id=book.id))
        return _rating_view(rating)

    @db_operation
    def get_rating(self, user_id: Optional[int], book_id: int) -> Optional[RatingView]:
        user_id = require_user(user_id)
        book = self._get_owned_book(user_id, book_id)
        rating = RatingRepository(self.session).get_for_book(book.id)
        return _rating_view(rating) if rating else None

    @db_operation
    def delete_rating(self, user_id: Optional[int], book_id: int) -> None:
        user_id = require_user(user_id)
        book = self._get_owned_book(user_id, book_id)
        repo = RatingRepository(self.session)
        rating = repo.get_for_book(book.id)
        if rating is None:
            raise NotFound("Rating not found")
        repo.delete(rating)
        self.dispatcher.dispatch(RatingChanged(user_id=user_id, book_id=book.id))

    @db_operation
    def list_ratings(self, user_id: Optional[int]) -> List[RatingView]:
        user_id = require_user(user_id)
        return [_rating_view(rating) for rating in RatingRepository(self.session).list_for_user(user_id)]
