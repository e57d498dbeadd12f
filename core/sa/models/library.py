# core/sa/models/library.py
from datetime import datetime
from enum import Enum
from sqlalchemy import Integer, String, Float, Boolean, Text, ForeignKey, DateTime, Index, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

class BookStatus(str, Enum):
    TO_READ = "to_read"
    READING = "reading"
    COMPLETED = "completed"
    DID_NOT_FINISH = "did_not_finish"

class Shelf(Base, TimestampMixin):
    __tablename__ = 'shelf'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('user.id'), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    user = relationship('User', back_populates='shelves')
    books = relationship('LibraryBook', back_populates='shelf')

    __table_args__ = (
        Index('idx_shelf_user_id', 'user_id'),
    )

class LibraryBook(Base, TimestampMixin):
    """A user's own copy of a book, with reading status and progress."""
    __tablename__ = 'library_book'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('user.id'), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author_id: Mapped[int | None] = mapped_column(ForeignKey('author.id'), nullable=True)
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_page: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=BookStatus.TO_READ.value)
    shelf_id: Mapped[int | None] = mapped_column(ForeignKey('shelf.id'), nullable=True)
    cover_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reading_goal_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Relationships
    user = relationship('User', back_populates='books')
    author = relationship('Author', back_populates='books')
    shelf = relationship('Shelf', back_populates='books')
    rating = relationship('BookRating', back_populates='book', uselist=False, cascade='all, delete-orphan')
    # Deleting a book keeps the link rows but clears their book reference.
    reading_list_links = relationship('UserReadingListBook', back_populates='book')
    challenge_links = relationship('UserChallengeBook', back_populates='linked_book')

    __table_args__ = (
        Index('idx_library_book_user_id', 'user_id'),
        Index('idx_library_book_title', 'title'),
        Index('idx_library_book_shelf_id', 'shelf_id'),
        CheckConstraint('page_count IS NULL OR current_page <= page_count', name='ck_library_book_current_page'),
    )

class BookRating(Base, TimestampMixin):
    """Per-category 1-10 scores for a completed book."""
    __tablename__ = 'book_rating'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    book_id: Mapped[int] = mapped_column(ForeignKey('library_book.id'), nullable=False, unique=True)
    topic: Mapped[int] = mapped_column(Integer, nullable=False)
    fluency: Mapped[int] = mapped_column(Integer, nullable=False)
    depth: Mapped[int] = mapped_column(Integer, nullable=False)
    impact: Mapped[int] = mapped_column(Integer, nullable=False)
    style: Mapped[int] = mapped_column(Integer, nullable=False)
    characters: Mapped[int] = mapped_column(Integer, nullable=False)
    originality: Mapped[int] = mapped_column(Integer, nullable=False)
    print_design: Mapped[int] = mapped_column(Integer, nullable=False)
    overall: Mapped[int] = mapped_column(Integer, nullable=False)
    recommend: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    average: Mapped[float] = mapped_column(Float, nullable=False)

    # Relationships
    book = relationship('LibraryBook', back_populates='rating')
