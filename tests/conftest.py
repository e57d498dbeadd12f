# tests/conftest.py
import sys
import pytest
from pathlib import Path
from sqlalchemy.pool import StaticPool

# Add project root to Python path
project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from core.cache import InvalidationDispatcher, MemoryCacheStore
from core.sa.database import Database
from core.sa.models import (
    ChallengeBook, ChallengeBookRole, ChallengeMonth, LibraryBook, ReadingChallenge,
    ReadingList, ReadingListBook, ReadingListLevel, User
)
from core.sa.repositories import AuthorRepository


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def database():
    """A fresh in-memory database per test"""
    db = Database("sqlite://", poolclass=StaticPool)
    db.init_db()
    yield db
    db.drop_db()
    db.dispose()


@pytest.fixture
def db_session(database):
    """Create a new database session for a test"""
    session = database.get_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def dispatcher(cache):
    return InvalidationDispatcher(cache)


@pytest.fixture
def sample_user(db_session):
    """Create a sample user for testing."""
    user = User(name="Ayşe Yılmaz", email="ayse@example.com")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def other_user(db_session):
    user = User(name="Mehmet Demir", email="mehmet@example.com")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def make_book(db_session, sample_user):
    """Factory for library books; the author is created on first use."""
    def _make(title, author=None, user=None, **fields):
        author_id = None
        if author:
            author_id = AuthorRepository(db_session).get_or_create(author).id
        book = LibraryBook(
            user_id=(user or sample_user).id,
            title=title,
            author_id=author_id,
            **fields
        )
        db_session.add(book)
        db_session.commit()
        return book
    return _make


@pytest.fixture
def sample_reading_list(db_session):
    """A two-level reading list with three entries."""
    reading_list = ReadingList(slug="bilim-kurgu", name="Bilim Kurgu", sort_order=0)
    beginner = ReadingListLevel(level_number=1, name="Başlangıç")
    beginner.books.append(ReadingListBook(title="Dune", author="Frank Herbert", page_count=712, sort_order=0))
    beginner.books.append(ReadingListBook(title="Marslı (The Martian)", author="Andy Weir", sort_order=1))
    advanced = ReadingListLevel(level_number=2, name="İleri")
    advanced.books.append(ReadingListBook(title="Vakıf", author="Isaac Asimov", sort_order=0))
    reading_list.levels.extend([beginner, advanced])
    db_session.add(reading_list)
    db_session.commit()
    return reading_list


@pytest.fixture
def list_entries(sample_reading_list):
    """Entries of the sample list keyed by title."""
    return {
        entry.title: entry
        for level in sample_reading_list.levels
        for entry in level.books
    }


@pytest.fixture
def sample_challenge(db_session):
    """A 2025 challenge: January has a main and a bonus book, February a main book."""
    challenge = ReadingChallenge(year=2025, name="Klasikler Yılı", strategy="Ayda bir klasik", is_active=True)
    january = ChallengeMonth(month_number=1, month_name="Ocak", theme="Rus Edebiyatı")
    january.books.append(ChallengeBook(
        title="Suç ve Ceza", author="Fyodor Dostoyevski",
        role=ChallengeBookRole.MAIN.value, page_count=687, sort_order=0
    ))
    january.books.append(ChallengeBook(
        title="Yeraltından Notlar", author="Fyodor Dostoyevski",
        role=ChallengeBookRole.BONUS.value, page_count=160, sort_order=1
    ))
    february = ChallengeMonth(month_number=2, month_name="Şubat", theme="Bilim Kurgu")
    february.books.append(ChallengeBook(
        title="Solaris", author="Stanislaw Lem",
        role=ChallengeBookRole.MAIN.value, page_count=204, sort_order=0
    ))
    challenge.months.extend([january, february])
    db_session.add(challenge)
    db_session.commit()
    return challenge


@pytest.fixture
def challenge_books(sample_challenge):
    """Challenge books of the sample challenge keyed by title."""
    return {
        book.title: book
        for month in sample_challenge.months
        for book in month.books
    }
