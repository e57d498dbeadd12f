# core/resolvers/link_resolver.py
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.auth import require_user
from core.cache import InvalidationDispatcher, LinkChanged
from core.exceptions import ConflictAlreadyLinked, UpstreamFailure
from core.matching import classify, match_author, match_title, normalize, MatchConfidence
from core.models.link import (
    AcceptedLink, BookCandidate, BrokenLinksCount, CatalogCandidate, LinkKind,
    RepairCandidate, RepairResult, RepairSuggestion
)
from core.sa.repositories import ChallengeRepository, LibraryBookRepository, ReadingListRepository

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS_PER_ENTRY = 3


@dataclass(frozen=True)
class ScoredPair:
    entry: CatalogCandidate
    book: BookCandidate
    confidence: MatchConfidence

    @property
    def order_key(self) -> Tuple:
        # Highest score first; ties fall back to catalog position, then titles, then ids.
        return (
            -self.confidence.score,
            self.entry.sort_key,
            normalize(self.entry.title),
            normalize(self.book.title),
            self.entry.target_id,
            self.book.book_id,
        )


def score_pair(entry: CatalogCandidate, book: BookCandidate) -> MatchConfidence:
    """Classify how likely a user's book is the catalog entry.

    The author only counts when both sides have one.
    """
    title_score = match_title(book.title, entry.title)
    author_score = None
    if normalize(book.author) and normalize(entry.author):
        author_score = match_author(book.author, entry.author)
    return classify(title_score, author_score)


def score_pairs(entries: List[CatalogCandidate], books: List[BookCandidate]) -> List[ScoredPair]:
    """Score every (entry, book) pair and return them in selection order."""
    pairs = [
        ScoredPair(entry=entry, book=book, confidence=score_pair(entry, book))
        for entry in entries
        for book in books
    ]
    pairs.sort(key=lambda pair: pair.order_key)
    return pairs


def select_links(pairs: List[ScoredPair]) -> List[ScoredPair]:
    """Greedy bipartite matching over auto-linkable pairs.

    ``pairs`` must already be in selection order. A pair is taken when
    neither its entry nor its book has been taken by a better pair.
    """
    used_entries: Set[Tuple[LinkKind, int]] = set()
    used_books: Set[int] = set()
    selected = []
    for pair in pairs:
        if not pair.confidence.auto_linkable:
            continue
        entry_key = (pair.entry.kind, pair.entry.target_id)
        if entry_key in used_entries or pair.book.book_id in used_books:
            continue
        used_entries.add(entry_key)
        used_books.add(pair.book.book_id)
        selected.append(pair)
    return selected


def build_suggestions(pairs: List[ScoredPair], selected: List[ScoredPair]) -> List[RepairSuggestion]:
    """Medium/low candidates for every entry the greedy pass left open."""
    taken_entries = {(pair.entry.kind, pair.entry.target_id) for pair in selected}
    taken_books = {pair.book.book_id for pair in selected}

    grouped: Dict[Tuple[LinkKind, int], List[ScoredPair]] = {}
    for pair in pairs:
        entry_key = (pair.entry.kind, pair.entry.target_id)
        if entry_key in taken_entries or pair.book.book_id in taken_books:
            continue
        if not pair.confidence.suggestion_worthy:
            continue
        candidates = grouped.setdefault(entry_key, [])
        if len(candidates) < MAX_SUGGESTIONS_PER_ENTRY:
            candidates.append(pair)

    suggestions = []
    for candidates in grouped.values():
        entry = candidates[0].entry
        suggestions.append(RepairSuggestion(
            type=entry.kind,
            target_id=entry.target_id,
            target_title=entry.title,
            target_author=entry.author,
            list_or_challenge_name=entry.container_name,
            candidates=[
                RepairCandidate(
                    book_id=pair.book.book_id,
                    book_title=pair.book.title,
                    score=pair.confidence.score,
                    confidence=pair.confidence.tier
                )
                for pair in candidates
            ]
        ))
    return suggestions


class LinkResolver:
    """Links a user's unlinked books to unlinked reading-list and challenge entries."""

    def __init__(self, session: Session, dispatcher: InvalidationDispatcher):
        self.session = session
        self.dispatcher = dispatcher
        self.books = LibraryBookRepository(session)
        self.reading_lists = ReadingListRepository(session)
        self.challenges = ChallengeRepository(session)

    def repair_links(self, user_id: Optional[int]) -> RepairResult:
        """Run the batch matcher for one user and persist confident links.

        Safe to re-run: linked entries and books drop out of the candidate
        sets, so a second run finds nothing new.

        Returns:
            RepairResult with counters, the links written and suggestions
            for entries that stayed open
        """
        user_id = require_user(user_id)
        result = RepairResult()
        linked_book_ids: Set[int] = set()

        try:
            entries = self.reading_lists.find_unlinked_catalog_entries(user_id)
            result.stats.reading_lists_scanned = len(entries)
            if entries:
                books = self.books.find_unlinked_library_books(user_id)
                result.stats.reading_lists_repaired = self._resolve(
                    user_id, entries, books, result, linked_book_ids
                )

            entries = self.challenges.find_unlinked_catalog_entries(user_id)
            result.stats.challenges_scanned = len(entries)
            if entries:
                books = self.books.find_unlinked_challenge_books(user_id)
                result.stats.challenges_repaired = self._resolve(
                    user_id, entries, books, result, linked_book_ids
                )
        except SQLAlchemyError as e:
            logger.error("Link repair failed for user %s: %s", user_id, e)
            raise UpstreamFailure() from e
        finally:
            # Links already committed must not stay hidden behind stale views.
            if linked_book_ids:
                self.dispatcher.dispatch(LinkChanged(user_id=user_id, book_ids=linked_book_ids))

        result.stats.suggestions_found = len(result.suggestions)
        logger.info(
            "Repaired links for user %s: %d reading-list, %d challenge, %d suggestions, %d conflicts",
            user_id,
            result.stats.reading_lists_repaired,
            result.stats.challenges_repaired,
            result.stats.suggestions_found,
            result.stats.conflicts_skipped
        )
        return result

    def _resolve(
        self,
        user_id: int,
        entries: List[CatalogCandidate],
        books: List[BookCandidate],
        result: RepairResult,
        linked_book_ids: Set[int]
    ) -> int:
        if not books:
            return 0

        pairs = score_pairs(entries, books)
        selected = select_links(pairs)

        written = []
        for pair in selected:
            if self._persist(user_id, pair, result):
                written.append(pair)
                linked_book_ids.add(pair.book.book_id)
                result.linked.append(AcceptedLink(
                    kind=pair.entry.kind,
                    target_id=pair.entry.target_id,
                    book_id=pair.book.book_id,
                    score=pair.confidence.score,
                    confidence=pair.confidence.tier
                ))

        result.suggestions.extend(build_suggestions(pairs, written))
        return len(written)

    def _persist(self, user_id: int, pair: ScoredPair, result: RepairResult) -> bool:
        """Write one link; a lost race or a failing row is skipped, never fatal."""
        try:
            if pair.entry.kind is LinkKind.READING_LIST:
                link = self.reading_lists.fill_link(user_id, pair.entry.target_id, pair.book.book_id)
            else:
                link = self.challenges.fill_linked_book(user_id, pair.entry.target_id, pair.book.book_id)
        except ConflictAlreadyLinked:
            logger.warning(
                "Skipping %s %s -> book %s: already linked",
                pair.entry.kind.value, pair.entry.target_id, pair.book.book_id
            )
            result.stats.conflicts_skipped += 1
            return False
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning(
                "Skipping %s %s -> book %s: %s",
                pair.entry.kind.value, pair.entry.target_id, pair.book.book_id, e
            )
            return False

        if link is None:
            # Filled by someone else between load and write.
            result.stats.conflicts_skipped += 1
            return False
        return True

    def count_broken_links(self, user_id: Optional[int]) -> BrokenLinksCount:
        """Link rows that have no personal copy attached, per kind."""
        user_id = require_user(user_id)
        try:
            reading_lists = self.reading_lists.count_broken_links(user_id)
            challenges = self.challenges.count_broken_links(user_id)
        except SQLAlchemyError as e:
            logger.error("Counting broken links failed for user %s: %s", user_id, e)
            raise UpstreamFailure() from e
        return BrokenLinksCount(
            reading_lists=reading_lists,
            challenges=challenges,
            total=reading_lists + challenges
        )
