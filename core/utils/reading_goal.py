# core/utils/reading_goal.py
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, UTC
from enum import Enum
from typing import Dict, Optional, Union

SECONDS_PER_DAY = 24 * 60 * 60


class GoalStatus(str, Enum):
    AHEAD = "ahead"
    ON_TRACK = "on-track"
    BEHIND = "behind"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class ReadingGoalInfo:
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


def _as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


def compute_goal(
    page_count: Optional[int],
    current_page: Optional[int],
    start_date: Optional[Union[date, datetime]],
    goal_days: Optional[int],
    now: Optional[datetime] = None,
) -> Optional[ReadingGoalInfo]:
    """Derive reading pace for a book with a day-count goal.

    Returns ``None`` when no goal is configured (page count, start date or
    goal length missing). ``expected_pages_read`` counts pages due by the
    end of yesterday, since today is still in progress.

    ``remaining_days`` does not count today: on the last day of the goal it
    is 0, so a book with pages left is already reported as overdue.
    """
    if not page_count or not start_date or not goal_days:
        return None

    total_pages = page_count
    current = current_page or 0
    start = _as_datetime(start_date)
    now = _as_datetime(now) if now is not None else datetime.now(UTC)

    remaining_pages = max(0, total_pages - current)
    progress_percent = round(current / total_pages * 100)

    elapsed_seconds = (now - start).total_seconds()
    elapsed_days = max(1, math.ceil(elapsed_seconds / SECONDS_PER_DAY))
    remaining_days = max(0, goal_days - elapsed_days)
    goal_end_date = start + timedelta(days=goal_days)

    original_daily_target = math.ceil(total_pages / goal_days)
    current_daily_target = (
        math.ceil(remaining_pages / remaining_days) if remaining_days > 0 else remaining_pages
    )

    expected_pages_read = math.floor(total_pages / goal_days * (elapsed_days - 1))
    pages_ahead = current - expected_pages_read

    far_behind = False
    if remaining_days <= 0 and remaining_pages > 0:
        status, color = GoalStatus.OVERDUE, "red"
    elif pages_ahead >= original_daily_target:
        status, color = GoalStatus.AHEAD, "green"
    elif pages_ahead >= 0:
        status, color = GoalStatus.ON_TRACK, "green"
    elif pages_ahead > -original_daily_target:
        status, color = GoalStatus.BEHIND, "yellow"
    else:
        status, color = GoalStatus.BEHIND, "red"
        far_behind = True

    return ReadingGoalInfo(
        total_pages=total_pages,
        current_page=current,
        remaining_pages=remaining_pages,
        progress_percent=progress_percent,
        goal_days=goal_days,
        elapsed_days=elapsed_days,
        remaining_days=remaining_days,
        goal_end_date=goal_end_date,
        original_daily_target=original_daily_target,
        current_daily_target=current_daily_target,
        expected_pages_read=expected_pages_read,
        pages_ahead=pages_ahead,
        status=status,
        far_behind=far_behind,
        status_color=color,
    )


def estimate_reading_days(page_count: int) -> Dict[str, int]:
    """Days needed at 50 (fast), 30 (normal) and 15 (casual) pages a day."""
    return {
        "fast_reader": math.ceil(page_count / 50),
        "normal_reader": math.ceil(page_count / 30),
        "casual_reader": math.ceil(page_count / 15),
    }


def format_remaining_days(remaining_days: int) -> str:
    if remaining_days <= 0:
        return "Time is up"
    if remaining_days == 1:
        return "1 day left"
    return f"{remaining_days} days left"


def format_daily_target(pages: int) -> str:
    return f"{pages} pages a day"
