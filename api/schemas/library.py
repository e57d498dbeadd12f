# api/schemas/library.py
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from core.utils.reading_goal import GoalStatus


class BookCreate(BaseModel):
    title: str
    author_name: Optional[str] = None
    page_count: Optional[int] = None
    current_page: int = 0
    status: str = "to_read"
    cover_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    reading_goal_days: Optional[int] = None


class BookUpdate(BaseModel):
    title: Optional[str] = None
    author_name: Optional[str] = None
    page_count: Optional[int] = None
    current_page: Optional[int] = None
    status: Optional[str] = None
    cover_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    reading_goal_days: Optional[int] = None


class ProgressUpdate(BaseModel):
    current_page: int


class ReadingGoal(BaseModel):
    total_pages: int
    current_page: int
    remaining_pages: int
    progress_percent: int
    goal_days: int
    elapsed_days: int
    remaining_days: int
    goal_end_date: datetime
    original_daily_target: int
    current_daily_target: int
    expected_pages_read: int
    pages_ahead: int
    status: GoalStatus
    far_behind: bool
    status_color: str
    remaining_days_label: str
    daily_target_label: str

    model_config = ConfigDict(from_attributes=True)


class RatingSave(BaseModel):
    topic: int
    fluency: int
    depth: int
    impact: int
    style: int
    characters: int
    originality: int
    print_design: int
    overall: int
    recommend: bool = False


class ShelfCreate(BaseModel):
    name: str
    description: Optional[str] = None
    color: Optional[str] = None


class ShelfUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


class ShelfReorder(BaseModel):
    shelf_ids: List[int] = Field(default_factory=list)


class ShelfBook(BaseModel):
    book_id: int
