# core/cache/dispatcher.py
import logging
from typing import FrozenSet, Iterable

from core.exceptions import UpstreamFailure
from .store import CacheStore
from .tags import tags_for_event

logger = logging.getLogger(__name__)


class InvalidationDispatcher:
    """Single entry point for cache invalidation after a mutation.

    Services hand it an event describing what changed; the dispatcher
    derives the tag set and drops every cached view registered under it.
    """

    def __init__(self, store: CacheStore):
        self.store = store

    def dispatch(self, event) -> FrozenSet[str]:
        tags = tags_for_event(event)
        self.invalidate(tags)
        logger.debug("Dispatched %s -> %s", type(event).__name__, sorted(tags))
        return tags

    def invalidate(self, tags: Iterable[str]) -> int:
        dropped = 0
        for tag in tags:
            try:
                dropped += self.store.invalidate(tag)
            except Exception as e:
                logger.error("Cache invalidation failed for tag %s: %s", tag, e)
                raise UpstreamFailure("Cache store is unreachable") from e
        return dropped
