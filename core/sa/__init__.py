from .database import Database
from .models import (
    Base, User, Author, LibraryBook, Shelf, BookRating, BookStatus,
    ReadingList, ReadingListLevel, ReadingListBook, UserReadingListBook,
    ReadingChallenge, ChallengeMonth, ChallengeBook, ChallengeBookRole,
    ChallengeBookStatus, UserChallengeProgress, UserChallengeBook
)

__all__ = [
    'Database',
    'Base',
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
