# api/schemas/links.py
from typing import Optional
from pydantic import BaseModel, ConfigDict

from core.models.link import LinkKind


class ReadingListLinkCreate(BaseModel):
    entry_id: int
    book_id: Optional[int] = None


class ChallengeLinkCreate(BaseModel):
    challenge_book_id: int
    book_id: int


class SuggestionConfirm(BaseModel):
    kind: LinkKind
    target_id: int
    book_id: int


class ReadingListLink(BaseModel):
    id: int
    reading_list_book_id: int
    book_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class ChallengeLink(BaseModel):
    id: int
    challenge_book_id: int
    linked_book_id: Optional[int] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class RevalidateRequest(BaseModel):
    tag: Optional[str] = None


class RevalidateResult(BaseModel):
    tags: list[str]
    dropped: int
