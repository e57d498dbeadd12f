# core/models/link.py

from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from core.matching.confidence import ConfidenceTier


class LinkKind(str, Enum):
    READING_LIST = "reading-list"
    CHALLENGE = "challenge"


class CatalogCandidate(BaseModel):
    """A catalog entry (reading-list book or challenge book) with no personal copy linked."""
    model_config = ConfigDict(frozen=True)

    kind: LinkKind
    target_id: int                      # ReadingListBook.id or UserChallengeBook.id
    title: str
    author: Optional[str] = None
    container_name: str = ""            # reading list name or "Challenge (year)"
    sort_key: Tuple[int, ...] = ()      # catalog position: list, level, entry order


class BookCandidate(BaseModel):
    """A user's LibraryBook that is not linked yet for the given kind."""
    model_config = ConfigDict(frozen=True)

    book_id: int
    title: str
    author: Optional[str] = None


class RepairCandidate(BaseModel):
    book_id: int
    book_title: str
    score: float
    confidence: ConfidenceTier


class RepairSuggestion(BaseModel):
    type: LinkKind
    target_id: int
    target_title: str
    target_author: Optional[str] = None
    list_or_challenge_name: str
    candidates: List[RepairCandidate] = Field(default_factory=list)


class RepairStats(BaseModel):
    reading_lists_scanned: int = 0
    reading_lists_repaired: int = 0
    challenges_scanned: int = 0
    challenges_repaired: int = 0
    suggestions_found: int = 0
    conflicts_skipped: int = 0


class AcceptedLink(BaseModel):
    kind: LinkKind
    target_id: int
    book_id: int
    score: float
    confidence: ConfidenceTier


class RepairResult(BaseModel):
    stats: RepairStats = Field(default_factory=RepairStats)
    linked: List[AcceptedLink] = Field(default_factory=list)
    suggestions: List[RepairSuggestion] = Field(default_factory=list)


class BrokenLinksCount(BaseModel):
    reading_lists: int
    challenges: int
    total: int
