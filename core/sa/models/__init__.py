from .base import Base, TimestampMixin
from .user import User
from .author import Author
from .library import LibraryBook, Shelf, BookRating, BookStatus
from .reading_list import ReadingList, ReadingListLevel, ReadingListBook, UserReadingListBook
from .challenge import (
    ReadingChallenge, ChallengeMonth, ChallengeBook, ChallengeBookRole,
    ChallengeBookStatus, UserChallengeProgress, UserChallengeBook
)

__all__ = [
    'Base',
    'TimestampMixin',
    'User',
    'Author',
    'LibraryBook',
    'Shelf',
    'BookRating',
    'BookStatus',
    'ReadingList',
    'ReadingListLevel',
    'ReadingListBook',
    'UserReadingListBook',
    'ReadingChallenge',
    'ChallengeMonth',
    'ChallengeBook',
    'ChallengeBookRole',
    'ChallengeBookStatus',
    'UserChallengeProgress',
    'UserChallengeBook',
]
