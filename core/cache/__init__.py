from .store import CacheDuration, CacheStore, MemoryCacheStore, MISS, make_key
from .tags import (
    CacheTags, LinkChanged, RatingChanged, ShelfChanged, BookChanged,
    ReadingListChanged, ChallengeProgressChanged, ChallengeChanged,
    tags_for_event, tags_for_user, tags_for_book, tags_for_reading_list,
    tags_for_challenge
)
from .dispatcher import InvalidationDispatcher

__all__ = [
    'CacheDuration',
    'CacheStore',
    'MemoryCacheStore',
    'MISS',
    'make_key',
    'CacheTags',
    'LinkChanged',
    'RatingChanged',
    'ShelfChanged',
    'BookChanged',
    'ReadingListChanged',
    'ChallengeProgressChanged',
    'ChallengeChanged',
    'tags_for_event',
    'tags_for_user',
    'tags_for_book',
    'tags_for_reading_list',
    'tags_for_challenge',
    'InvalidationDispatcher',
]
