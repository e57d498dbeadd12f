# core/sa/models/user.py
from sqlalchemy import Integer, String
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

class User(Base, TimestampMixin):
    """Local record of a user authenticated by the external identity provider."""
    __tablename__ = 'user'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)

    # Relationships
    books = relationship('LibraryBook', back_populates='user', cascade='all, delete-orphan')
    shelves = relationship('Shelf', back_populates='user', cascade='all, delete-orphan')
    reading_list_links = relationship('UserReadingListBook', back_populates='user', cascade='all, delete-orphan')
    challenge_progress = relationship('UserChallengeProgress', back_populates='user', cascade='all, delete-orphan')
