# core/cache/tags.py
"""Cache tag names and the mutation -> tag set mapping.

Every tag string in the project is built here. Call sites describe *what*
changed with one of the event classes below and let :func:`tags_for_event`
work out which cached views that touches.
"""
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Union


class CacheTags:
    """Tag builders, one per scope of cached data."""

    # Global (shared across users)
    READING_LISTS = "reading-lists"
    CHALLENGES = "challenges"
    AUTHORS = "authors"

    # User-specific
    @staticmethod
    def user_books(user_id: int) -> str:
        return f"user-books-{user_id}"

    @staticmethod
    def user_stats(user_id: int) -> str:
        return f"user-stats-{user_id}"

    @staticmethod
    def user_library(user_id: int) -> str:
        return f"user-library-{user_id}"

    @staticmethod
    def user_reading_list_links(user_id: int) -> str:
        return f"user-reading-list-links-{user_id}"

    @staticmethod
    def user_challenge_links(user_id: int) -> str:
        return f"user-challenge-links-{user_id}"

    @staticmethod
    def user_ratings(user_id: int) -> str:
        return f"user-ratings-{user_id}"

    # Specific entities
    @staticmethod
    def book(book_id: int) -> str:
        return f"book-{book_id}"

    @staticmethod
    def book_reading_lists(book_id: int) -> str:
        return f"book-reading-lists-{book_id}"

    @staticmethod
    def book_challenges(book_id: int) -> str:
        return f"book-challenges-{book_id}"

    @staticmethod
    def reading_list(slug: str) -> str:
        return f"reading-list-{slug}"

    @staticmethod
    def challenge(year: int) -> str:
        return f"challenge-{year}"


def tags_for_user(user_id: int) -> FrozenSet[str]:
    """Every per-user tag; used when a change can touch any of the user's views."""
    return frozenset({
        CacheTags.user_books(user_id),
        CacheTags.user_stats(user_id),
        CacheTags.user_library(user_id),
        CacheTags.user_reading_list_links(user_id),
        CacheTags.user_challenge_links(user_id),
        CacheTags.user_ratings(user_id),
    })


def tags_for_book(book_id: int) -> FrozenSet[str]:
    return frozenset({
        CacheTags.book(book_id),
        CacheTags.book_reading_lists(book_id),
        CacheTags.book_challenges(book_id),
    })


def tags_for_reading_list(slug: Optional[str] = None) -> FrozenSet[str]:
    tags = {CacheTags.READING_LISTS}
    if slug:
        tags.add(CacheTags.reading_list(slug))
    return frozenset(tags)


def tags_for_challenge(year: Optional[int] = None) -> FrozenSet[str]:
    tags = {CacheTags.CHALLENGES}
    if year is not None:
        tags.add(CacheTags.challenge(year))
    return frozenset(tags)


def _book_ids(value: Union[int, Iterable[int], None]) -> FrozenSet[int]:
    if value is None:
        return frozenset()
    if isinstance(value, int):
        return frozenset({value})
    return frozenset(book_id for book_id in value if book_id is not None)


@dataclass(frozen=True)
class LinkChanged:
    """A reading-list or challenge link was created, replaced or removed."""
    user_id: int
    book_ids: FrozenSet[int] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "book_ids", _book_ids(self.book_ids))


@dataclass(frozen=True)
class RatingChanged:
    user_id: int
    book_id: int


@dataclass(frozen=True)
class ShelfChanged:
    user_id: int
    book_ids: FrozenSet[int] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "book_ids", _book_ids(self.book_ids))


@dataclass(frozen=True)
class BookChanged:
    """A library book was added, edited or deleted."""
    user_id: int
    book_id: int


@dataclass(frozen=True)
class ReadingListChanged:
    """Catalog data of a reading list changed (admin edit)."""
    slug: Optional[str] = None


@dataclass(frozen=True)
class ChallengeProgressChanged:
    user_id: int
    year: Optional[int] = None
    book_id: Optional[int] = None


@dataclass(frozen=True)
class ChallengeChanged:
    year: Optional[int] = None


def tags_for_event(event) -> FrozenSet[str]:
    """Return the complete tag set a mutation invalidates."""
    if isinstance(event, LinkChanged):
        tags = {
            CacheTags.user_books(event.user_id),
            CacheTags.user_reading_list_links(event.user_id),
            CacheTags.user_challenge_links(event.user_id),
            CacheTags.user_stats(event.user_id),
        }
        for book_id in event.book_ids:
            tags |= tags_for_book(book_id)
        return frozenset(tags)

    if isinstance(event, RatingChanged):
        return frozenset({
            CacheTags.book(event.book_id),
            CacheTags.user_books(event.user_id),
            CacheTags.user_ratings(event.user_id),
            CacheTags.user_stats(event.user_id),
        })

    if isinstance(event, ShelfChanged):
        tags = {
            CacheTags.user_library(event.user_id),
            CacheTags.user_books(event.user_id),
        }
        tags |= {CacheTags.book(book_id) for book_id in event.book_ids}
        return frozenset(tags)

    if isinstance(event, BookChanged):
        # Book status and progress feed every per-user aggregate, including
        # reading-list and challenge progress views.
        return tags_for_user(event.user_id) | tags_for_book(event.book_id)

    if isinstance(event, ReadingListChanged):
        return tags_for_reading_list(event.slug)

    if isinstance(event, ChallengeProgressChanged):
        tags = {
            CacheTags.user_challenge_links(event.user_id),
            CacheTags.user_stats(event.user_id),
        }
        if event.year is not None:
            tags.add(CacheTags.challenge(event.year))
        if event.book_id is not None:
            tags |= tags_for_book(event.book_id)
        return frozenset(tags)

    if isinstance(event, ChallengeChanged):
        return tags_for_challenge(event.year)

    raise TypeError(f"Unknown cache event: {event!r}")
