# core/models/catalog.py
"""Read views of reading lists and challenges, with optional per-user state."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class ReadingListSummary(BaseModel):
    id: int
    slug: str
    name: str
    description: Optional[str] = None
    level_count: int = 0
    book_count: int = 0


class ReadingListEntryView(BaseModel):
    id: int
    title: str
    author: Optional[str] = None
    rationale: Optional[str] = None
    page_count: Optional[int] = None
    sort_order: int = 0


class ReadingListLevelView(BaseModel):
    id: int
    level_number: int
    name: str
    description: Optional[str] = None
    books: List[ReadingListEntryView] = Field(default_factory=list)


class ReadingListDetail(ReadingListSummary):
    levels: List[ReadingListLevelView] = Field(default_factory=list)


class EntryProgress(BaseModel):
    entry_id: int
    title: str
    author: Optional[str] = None
    level_number: int
    linked_book_id: Optional[int] = None
    linked_book_title: Optional[str] = None
    book_status: Optional[str] = None


class ReadingListProgress(BaseModel):
    slug: str
    name: str
    total_books: int
    linked_books: int
    completed_books: int
    progress_percent: int
    entries: List[EntryProgress] = Field(default_factory=list)


class ChallengeBookView(BaseModel):
    id: int
    title: str
    author: Optional[str] = None
    role: str
    page_count: Optional[int] = None
    reason: Optional[str] = None
    # Per-user state, only present when a user asked and has joined
    user_status: Optional[str] = None
    linked_book_id: Optional[int] = None
    completed_at: Optional[datetime] = None
    takeaway: Optional[str] = None


class ChallengeMonthView(BaseModel):
    id: int
    month_number: int
    month_name: str
    theme: str = ""
    theme_icon: Optional[str] = None
    books: List[ChallengeBookView] = Field(default_factory=list)


class ChallengeDetail(BaseModel):
    id: int
    year: int
    name: str
    description: Optional[str] = None
    strategy: str = ""
    is_active: bool = False
    joined: bool = False
    completed_books: int = 0
    total_books: int = 0
    current_month: Optional[int] = None
    months: List[ChallengeMonthView] = Field(default_factory=list)
