from .user import UserRepository
from .author import AuthorRepository
from .library import LibraryBookRepository
from .shelf import ShelfRepository
from .rating import RatingRepository
from .reading_list import ReadingListRepository
from .challenge import ChallengeRepository

__all__ = [
    'UserRepository',
    'AuthorRepository',
    'LibraryBookRepository',
    'ShelfRepository',
    'RatingRepository',
    'ReadingListRepository',
    'ChallengeRepository',
]
