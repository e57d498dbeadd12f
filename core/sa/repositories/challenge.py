from datetime import datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, joinedload
from core.exceptions import ConflictAlreadyLinked
from core.models.link import CatalogCandidate, LinkKind
from core.sa.models import (
    ReadingChallenge, ChallengeMonth, ChallengeBook, ChallengeBookRole,
    ChallengeBookStatus, UserChallengeProgress, UserChallengeBook
)

class ChallengeRepository:
    """Repository for yearly reading challenges and per-user progress."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_year(self, year: int) -> Optional[ReadingChallenge]:
        return (
            self.session.query(ReadingChallenge)
            .options(selectinload(ReadingChallenge.months).selectinload(ChallengeMonth.books))
            .filter(ReadingChallenge.year == year)
            .first()
        )

    def get_active(self) -> Optional[ReadingChallenge]:
        return (
            self.session.query(ReadingChallenge)
            .options(selectinload(ReadingChallenge.months).selectinload(ChallengeMonth.books))
            .filter(ReadingChallenge.is_active.is_(True))
            .order_by(ReadingChallenge.year.desc())
            .first()
        )

    def add(self, challenge: ReadingChallenge) -> ReadingChallenge:
        self.session.add(challenge)
        self.session.commit()
        return challenge

    def get_progress(self, user_id: int, challenge_id: int) -> Optional[UserChallengeProgress]:
        return (
            self.session.query(UserChallengeProgress)
            .options(selectinload(UserChallengeProgress.books))
            .filter(
                UserChallengeProgress.user_id == user_id,
                UserChallengeProgress.challenge_id == challenge_id
            )
            .first()
        )

    def create_progress(self, user_id: int, challenge: ReadingChallenge) -> UserChallengeProgress:
        """Join a challenge: main books start unlocked, bonus books locked.

        Raises:
            ConflictAlreadyLinked: the user already joined (concurrent join)
        """
        progress = UserChallengeProgress(user_id=user_id, challenge_id=challenge.id)
        for month in challenge.months:
            for book in month.books:
                status = (
                    ChallengeBookStatus.NOT_STARTED
                    if book.role == ChallengeBookRole.MAIN.value
                    else ChallengeBookStatus.LOCKED
                )
                progress.books.append(UserChallengeBook(challenge_book_id=book.id, status=status.value))
        self.session.add(progress)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictAlreadyLinked("Already joined this challenge") from e
        return progress

    def get_user_book(self, user_id: int, challenge_book_id: int) -> Optional[UserChallengeBook]:
        """The user's state row for a challenge book, with month books loaded."""
        return (
            self.session.query(UserChallengeBook)
            .join(UserChallengeProgress, UserChallengeBook.user_progress_id == UserChallengeProgress.id)
            .options(
                joinedload(UserChallengeBook.challenge_book)
                .joinedload(ChallengeBook.month)
                .joinedload(ChallengeMonth.challenge),
                joinedload(UserChallengeBook.user_progress)
            )
            .filter(
                UserChallengeProgress.user_id == user_id,
                UserChallengeBook.challenge_book_id == challenge_book_id
            )
            .first()
        )

    def get_user_book_by_id(self, user_id: int, user_book_id: int) -> Optional[UserChallengeBook]:
        return (
            self.session.query(UserChallengeBook)
            .join(UserChallengeProgress, UserChallengeBook.user_progress_id == UserChallengeProgress.id)
            .filter(UserChallengeProgress.user_id == user_id, UserChallengeBook.id == user_book_id)
            .first()
        )

    def update_user_book(self, user_book: UserChallengeBook, **fields) -> UserChallengeBook:
        for name, value in fields.items():
            setattr(user_book, name, value)
        self.session.commit()
        return user_book

    def complete_and_unlock(self, user_book: UserChallengeBook, takeaway: Optional[str],
                            completed_at: datetime) -> int:
        """Mark a book completed and, for a main book, unlock the month's bonus books.

        Both writes commit together. Returns the number of unlocked books.
        """
        try:
            user_book.status = ChallengeBookStatus.COMPLETED.value
            user_book.completed_at = completed_at
            user_book.takeaway = takeaway
            unlocked = 0
            challenge_book = user_book.challenge_book
            if challenge_book.role == ChallengeBookRole.MAIN.value:
                bonus_ids = [
                    book.id for book in challenge_book.month.books
                    if book.role == ChallengeBookRole.BONUS.value
                ]
                if bonus_ids:
                    unlocked = (
                        self.session.query(UserChallengeBook)
                        .filter(
                            UserChallengeBook.user_progress_id == user_book.user_progress_id,
                            UserChallengeBook.challenge_book_id.in_(bonus_ids),
                            UserChallengeBook.status == ChallengeBookStatus.LOCKED.value
                        )
                        .update(
                            {UserChallengeBook.status: ChallengeBookStatus.NOT_STARTED.value},
                            synchronize_session='fetch'
                        )
                    )
            self.session.commit()
            return unlocked
        except Exception:
            self.session.rollback()
            raise

    def set_linked_book(self, user_book: UserChallengeBook, book_id: Optional[int]) -> UserChallengeBook:
        """Link (or unlink with None) a LibraryBook to a challenge state row.

        Raises:
            ConflictAlreadyLinked: the book is already linked in this challenge
        """
        user_book.linked_book_id = book_id
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictAlreadyLinked("This book is already linked to a challenge book") from e
        return user_book

    def fill_linked_book(self, user_id: int, user_book_id: int, book_id: int) -> Optional[UserChallengeBook]:
        """Link only if the row still has no book; None if it was filled meanwhile."""
        user_book = self.get_user_book_by_id(user_id, user_book_id)
        if user_book is None or user_book.linked_book_id is not None:
            return None
        return self.set_linked_book(user_book, book_id)

    def count_broken_links(self, user_id: int) -> int:
        return (
            self.session.query(func.count(UserChallengeBook.id))
            .join(UserChallengeProgress, UserChallengeBook.user_progress_id == UserChallengeProgress.id)
            .filter(UserChallengeProgress.user_id == user_id, UserChallengeBook.linked_book_id.is_(None))
            .scalar()
        ) or 0

    def find_unlinked_catalog_entries(self, user_id: int) -> List[CatalogCandidate]:
        """Challenge books of joined challenges that have no LibraryBook linked."""
        rows = (
            self.session.query(UserChallengeBook, ChallengeBook, ChallengeMonth, ReadingChallenge)
            .join(UserChallengeProgress, UserChallengeBook.user_progress_id == UserChallengeProgress.id)
            .join(ChallengeBook, UserChallengeBook.challenge_book_id == ChallengeBook.id)
            .join(ChallengeMonth, ChallengeBook.month_id == ChallengeMonth.id)
            .join(ReadingChallenge, ChallengeMonth.challenge_id == ReadingChallenge.id)
            .filter(UserChallengeProgress.user_id == user_id, UserChallengeBook.linked_book_id.is_(None))
            .order_by(
                ReadingChallenge.year, ChallengeMonth.month_number,
                ChallengeBook.sort_order, ChallengeBook.id
            )
            .all()
        )
        return [
            CatalogCandidate(
                kind=LinkKind.CHALLENGE,
                target_id=user_book.id,
                title=book.title,
                author=book.author or None,
                container_name=f"{challenge.name} ({challenge.year})",
                sort_key=(
                    challenge.year, month.month_number,
                    0 if book.role == ChallengeBookRole.MAIN.value else 1,
                    book.sort_order, book.id
                )
            )
            for user_book, book, month, challenge in rows
        ]
