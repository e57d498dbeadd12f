# core/models/library.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Dict, Optional, List


class BookView(BaseModel):
    id: int
    title: str
    author: Optional[str] = None
    page_count: Optional[int] = None
    current_page: int = 0
    status: str
    shelf_id: Optional[int] = None
    cover_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    reading_goal_days: Optional[int] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_book(cls, book) -> "BookView":
        return cls(
            id=book.id,
            title=book.title,
            author=book.author.name if book.author else None,
            page_count=book.page_count,
            current_page=book.current_page,
            status=book.status,
            shelf_id=book.shelf_id,
            cover_url=book.cover_url,
            start_date=book.start_date,
            end_date=book.end_date,
            reading_goal_days=book.reading_goal_days,
            updated_at=book.updated_at
        )


class ShelfView(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    sort_order: int
    books: List[BookView] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class RatingView(BaseModel):
    book_id: int
    book_title: Optional[str] = None
    scores: Dict[str, int]
    recommend: bool
    average: float
    updated_at: Optional[datetime] = None


class UserStats(BaseModel):
    total_books: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    pages_read: int = 0
    rated_books: int = 0
    average_rating: Optional[float] = None
    recommended_books: int = 0
