# core/services/challenge_service.py
import logging
from datetime import date, datetime, UTC
from typing import Any, Dict, Optional

from core.auth import require_user
from core.cache import (
    CacheDuration, CacheTags, ChallengeChanged, ChallengeProgressChanged, make_key
)
from core.exceptions import NotFound, ValidationError
from core.models.catalog import ChallengeBookView, ChallengeDetail, ChallengeMonthView
from core.sa.models import (
    ChallengeBook, ChallengeBookRole, ChallengeBookStatus, ChallengeMonth,
    ReadingChallenge, UserChallengeBook
)
from core.sa.repositories import ChallengeRepository
from core.services.base import BaseService, db_operation

logger = logging.getLogger(__name__)

# Statuses a user may set directly; completion goes through mark_book_read.
SETTABLE_STATUSES = {ChallengeBookStatus.NOT_STARTED.value, ChallengeBookStatus.IN_PROGRESS.value}


def _detail(challenge: ReadingChallenge, states: Dict[int, UserChallengeBook],
            joined: bool, today: date) -> ChallengeDetail:
    months = []
    completed = total = 0
    for month in challenge.months:
        books = []
        for book in month.books:
            state = states.get(book.id)
            total += 1
            if state is not None and state.status == ChallengeBookStatus.COMPLETED.value:
                completed += 1
            books.append(ChallengeBookView(
                id=book.id,
                title=book.title,
                author=book.author or None,
                role=book.role,
                page_count=book.page_count,
                reason=book.reason,
                user_status=state.status if state else None,
                linked_book_id=state.linked_book_id if state else None,
                completed_at=state.completed_at if state else None,
                takeaway=state.takeaway if state else None
            ))
        months.append(ChallengeMonthView(
            id=month.id,
            month_number=month.month_number,
            month_name=month.month_name,
            theme=month.theme,
            theme_icon=month.theme_icon,
            books=books
        ))
    return ChallengeDetail(
        id=challenge.id,
        year=challenge.year,
        name=challenge.name,
        description=challenge.description,
        strategy=challenge.strategy,
        is_active=challenge.is_active,
        joined=joined,
        completed_books=completed,
        total_books=total,
        current_month=today.month if today.year == challenge.year else None,
        months=months
    )


class ChallengeService(BaseService):
    """Yearly reading challenges and each user's progress through them."""

    def _details(self, challenge: Optional[ReadingChallenge], user_id: Optional[int],
                 today: Optional[date]) -> ChallengeDetail:
        if challenge is None:
            raise NotFound("Challenge not found")
        today = today or datetime.now(UTC).date()
        year = challenge.year

        def load() -> ChallengeDetail:
            states = {}
            joined = False
            if user_id is not None:
                progress = ChallengeRepository(self.session).get_progress(user_id, challenge.id)
                if progress is not None:
                    joined = True
                    states = {book.challenge_book_id: book for book in progress.books}
            return _detail(challenge, states, joined, today)

        tags = [CacheTags.CHALLENGES, CacheTags.challenge(year)]
        if user_id is not None:
            tags += [CacheTags.user_challenge_links(user_id), CacheTags.user_books(user_id)]
        return self.cache.get_or_set(
            make_key("challenge", year, user_id, today.isoformat()),
            load,
            tags=tags,
            ttl=CacheDuration.MEDIUM if user_id is not None else CacheDuration.LONG
        )

    @db_operation
    def get_challenge(self, year: int, user_id: Optional[int] = None,
                      today: Optional[date] = None) -> ChallengeDetail:
        """A challenge with its months; includes the user's state when ``user_id`` is given."""
        return self._details(ChallengeRepository(self.session).get_by_year(year), user_id, today)

    @db_operation
    def get_active_challenge(self, user_id: Optional[int] = None,
                             today: Optional[date] = None) -> ChallengeDetail:
        return self._details(ChallengeRepository(self.session).get_active(), user_id, today)

    @db_operation
    def join_challenge(self, user_id: Optional[int], year: int) -> ChallengeDetail:
        """Join a challenge; joining twice returns the existing progress."""
        user_id = require_user(user_id)
        repo = ChallengeRepository(self.session)
        challenge = repo.get_by_year(year)
        if challenge is None:
            raise NotFound("Challenge not found")
        if repo.get_progress(user_id, challenge.id) is None:
            repo.create_progress(user_id, challenge)
            self.dispatcher.dispatch(ChallengeProgressChanged(user_id=user_id, year=year))
            logger.info("User %s joined challenge %s", user_id, year)
        return self.get_challenge(year, user_id)

    def _get_state(self, user_id: int, challenge_book_id: int) -> UserChallengeBook:
        user_book = ChallengeRepository(self.session).get_user_book(user_id, challenge_book_id)
        if user_book is None:
            raise NotFound("Challenge book not found")
        return user_book

    def _progress_changed(self, user_id: int, user_book: UserChallengeBook) -> None:
        self.dispatcher.dispatch(ChallengeProgressChanged(
            user_id=user_id,
            year=user_book.challenge_book.month.challenge.year,
            book_id=user_book.linked_book_id
        ))

    @db_operation
    def mark_book_read(self, user_id: Optional[int], challenge_book_id: int,
                       takeaway: Optional[str] = None, now: Optional[datetime] = None) -> int:
        """Complete a challenge book; completing a main book unlocks the month's bonus books.

        Returns:
            Number of bonus books unlocked
        """
        user_id = require_user(user_id)
        user_book = self._get_state(user_id, challenge_book_id)
        if user_book.status == ChallengeBookStatus.LOCKED.value:
            raise ValidationError("Finish this month's main book to unlock bonus books")
        unlocked = ChallengeRepository(self.session).complete_and_unlock(
            user_book, takeaway.strip() if takeaway else None, now or datetime.now(UTC)
        )
        self._progress_changed(user_id, user_book)
        return unlocked

    @db_operation
    def update_book_status(self, user_id: Optional[int], challenge_book_id: int, status: str) -> None:
        user_id = require_user(user_id)
        if status == ChallengeBookStatus.COMPLETED.value:
            self.mark_book_read(user_id, challenge_book_id)
            return
        if status not in SETTABLE_STATUSES:
            raise ValidationError(f"Unknown status: {status}")
        user_book = self._get_state(user_id, challenge_book_id)
        if user_book.status == ChallengeBookStatus.LOCKED.value:
            raise ValidationError("This book is still locked")
        fields: Dict[str, Any] = {'status': status, 'completed_at': None}
        if status == ChallengeBookStatus.IN_PROGRESS.value and user_book.started_at is None:
            fields['started_at'] = datetime.now(UTC)
        ChallengeRepository(self.session).update_user_book(user_book, **fields)
        self._progress_changed(user_id, user_book)

    @db_operation
    def save_takeaway(self, user_id: Optional[int], challenge_book_id: int, takeaway: Optional[str]) -> None:
        user_id = require_user(user_id)
        user_book = self._get_state(user_id, challenge_book_id)
        if takeaway is not None and len(takeaway) > 5000:
            raise ValidationError("Takeaway is too long")
        ChallengeRepository(self.session).update_user_book(
            user_book, takeaway=takeaway.strip() if takeaway else None
        )
        self._progress_changed(user_id, user_book)

    @db_operation
    def import_challenge(self, data: Dict[str, Any]) -> Optional[ChallengeDetail]:
        """Create a challenge from a plain dict; None when the year already exists.

        Expected shape::

            {"year": 2025, "name": ..., "description": ..., "strategy": ..., "is_active": true,
             "months": [{"month_number": 1, "month_name": ..., "theme": ..., "theme_icon": ...,
                         "books": [{"title": ..., "author": ..., "role": "main", ...}]}]}
        """
        year = data.get('year')
        if isinstance(year, bool) or not isinstance(year, int):
            raise ValidationError("Challenge year is required")
        name = data.get('name')
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Challenge name is required")
        repo = ChallengeRepository(self.session)
        if repo.get_by_year(year) is not None:
            return None

        challenge = ReadingChallenge(
            year=year,
            name=name.strip(),
            description=data.get('description'),
            strategy=data.get('strategy') or '',
            is_active=bool(data.get('is_active', False))
        )
        for month_data in data.get('months') or []:
            month_number = month_data.get('month_number')
            if month_number not in range(1, 13):
                raise ValidationError(f"Invalid month number: {month_number}")
            month = ChallengeMonth(
                month_number=month_number,
                month_name=month_data.get('month_name') or str(month_number),
                theme=month_data.get('theme') or '',
                theme_icon=month_data.get('theme_icon')
            )
            for sort_order, book in enumerate(month_data.get('books') or []):
                role = book.get('role') or ChallengeBookRole.MAIN.value
                if role not in {r.value for r in ChallengeBookRole}:
                    raise ValidationError(f"Unknown challenge book role: {role}")
                if not book.get('title'):
                    raise ValidationError("Challenge book title is required")
                month.books.append(ChallengeBook(
                    title=book['title'].strip(),
                    author=(book.get('author') or '').strip(),
                    role=role,
                    page_count=book.get('page_count'),
                    reason=book.get('reason'),
                    sort_order=sort_order
                ))
            challenge.months.append(month)

        repo.add(challenge)
        self.dispatcher.dispatch(ChallengeChanged(year=year))
        logger.info("Imported challenge %s", year)
        return self.get_challenge(year)

