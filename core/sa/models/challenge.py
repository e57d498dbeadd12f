# core/sa/models/challenge.py
from datetime import datetime
from enum import Enum
from sqlalchemy import Integer, String, Text, Boolean, ForeignKey, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

class ChallengeBookRole(str, Enum):
    MAIN = "main"
    BONUS = "bonus"

class ChallengeBookStatus(str, Enum):
    LOCKED = "locked"
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class ReadingChallenge(Base, TimestampMixin):
    """A yearly reading plan assigning books to months."""
    __tablename__ = 'reading_challenge'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    strategy: Mapped[str] = mapped_column(Text, nullable=False, default='')
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    months = relationship(
        'ChallengeMonth',
        back_populates='challenge',
        cascade='all, delete-orphan',
        order_by='ChallengeMonth.month_number'
    )
    user_progress = relationship('UserChallengeProgress', back_populates='challenge', cascade='all, delete-orphan')

class ChallengeMonth(Base, TimestampMixin):
    __tablename__ = 'challenge_month'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    challenge_id: Mapped[int] = mapped_column(ForeignKey('reading_challenge.id'), nullable=False)
    month_number: Mapped[int] = mapped_column(Integer, nullable=False)
    month_name: Mapped[str] = mapped_column(String(64), nullable=False)
    theme: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    theme_icon: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Relationships
    challenge = relationship('ReadingChallenge', back_populates='months')
    books = relationship(
        'ChallengeBook',
        back_populates='month',
        cascade='all, delete-orphan',
        order_by='ChallengeBook.sort_order'
    )

    __table_args__ = (
        UniqueConstraint('challenge_id', 'month_number', name='uix_challenge_month_number'),
    )

class ChallengeBook(Base, TimestampMixin):
    __tablename__ = 'challenge_book'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    month_id: Mapped[int] = mapped_column(ForeignKey('challenge_month.id'), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ChallengeBookRole.MAIN.value)
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cover_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    month = relationship('ChallengeMonth', back_populates='books')
    user_books = relationship('UserChallengeBook', back_populates='challenge_book', cascade='all, delete-orphan')

class UserChallengeProgress(Base, TimestampMixin):
    __tablename__ = 'user_challenge_progress'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('user.id'), nullable=False)
    challenge_id: Mapped[int] = mapped_column(ForeignKey('reading_challenge.id'), nullable=False)

    # Relationships
    user = relationship('User', back_populates='challenge_progress')
    challenge = relationship('ReadingChallenge', back_populates='user_progress')
    books = relationship('UserChallengeBook', back_populates='user_progress', cascade='all, delete-orphan')

    __table_args__ = (
        UniqueConstraint('user_id', 'challenge_id', name='uix_user_challenge_progress'),
    )

class UserChallengeBook(Base, TimestampMixin):
    """Per-user state of one challenge book, optionally linked to a LibraryBook."""
    __tablename__ = 'user_challenge_book'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_progress_id: Mapped[int] = mapped_column(ForeignKey('user_challenge_progress.id'), nullable=False)
    challenge_book_id: Mapped[int] = mapped_column(ForeignKey('challenge_book.id'), nullable=False)
    linked_book_id: Mapped[int | None] = mapped_column(ForeignKey('library_book.id'), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=ChallengeBookStatus.NOT_STARTED.value)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    takeaway: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    user_progress = relationship('UserChallengeProgress', back_populates='books')
    challenge_book = relationship('ChallengeBook', back_populates='user_books')
    linked_book = relationship('LibraryBook', back_populates='challenge_links')

    __table_args__ = (
        UniqueConstraint('user_progress_id', 'challenge_book_id', name='uix_user_challenge_book_entry'),
        UniqueConstraint('user_progress_id', 'linked_book_id', name='uix_user_challenge_book_linked'),
        Index('idx_user_challenge_book_linked_book_id', 'linked_book_id'),
    )
