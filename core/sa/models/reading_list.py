# core/sa/models/reading_list.py
from sqlalchemy import Integer, String, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

class ReadingList(Base, TimestampMixin):
    """A curated, ordered curriculum of books grouped into levels."""
    __tablename__ = 'reading_list'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    levels = relationship(
        'ReadingListLevel',
        back_populates='reading_list',
        cascade='all, delete-orphan',
        order_by='ReadingListLevel.level_number'
    )

class ReadingListLevel(Base, TimestampMixin):
    __tablename__ = 'reading_list_level'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    reading_list_id: Mapped[int] = mapped_column(ForeignKey('reading_list.id'), nullable=False)
    level_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    reading_list = relationship('ReadingList', back_populates='levels')
    books = relationship(
        'ReadingListBook',
        back_populates='level',
        cascade='all, delete-orphan',
        order_by='ReadingListBook.sort_order'
    )

    __table_args__ = (
        Index('idx_reading_list_level_list_id', 'reading_list_id'),
    )

class ReadingListBook(Base, TimestampMixin):
    """Catalog entry: a book as described by the list, independent of any user."""
    __tablename__ = 'reading_list_book'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    level_id: Mapped[int] = mapped_column(ForeignKey('reading_list_level.id'), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    rationale: Mapped[str | None] = mapped_column(Text, nullable=True)
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    level = relationship('ReadingListLevel', back_populates='books')
    user_links = relationship('UserReadingListBook', back_populates='reading_list_book', cascade='all, delete-orphan')

    __table_args__ = (
        Index('idx_reading_list_book_level_id', 'level_id'),
    )

class UserReadingListBook(Base, TimestampMixin):
    """Links a user's LibraryBook to a catalog entry.

    ``book_id`` is NULL when the user acknowledged the entry but has no
    personal copy linked yet.
    """
    __tablename__ = 'user_reading_list_book'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('user.id'), nullable=False)
    reading_list_book_id: Mapped[int] = mapped_column(ForeignKey('reading_list_book.id'), nullable=False)
    book_id: Mapped[int | None] = mapped_column(ForeignKey('library_book.id'), nullable=True)

    # Relationships
    user = relationship('User', back_populates='reading_list_links')
    reading_list_book = relationship('ReadingListBook', back_populates='user_links')
    book = relationship('LibraryBook', back_populates='reading_list_links')

    __table_args__ = (
        UniqueConstraint('user_id', 'reading_list_book_id', name='uix_user_reading_list_book_entry'),
        # NULL book ids never collide, so unlinked rows are unaffected.
        UniqueConstraint('user_id', 'book_id', name='uix_user_reading_list_book_book'),
        Index('idx_user_reading_list_book_book_id', 'book_id'),
    )
