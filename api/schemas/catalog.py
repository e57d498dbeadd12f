# api/schemas/catalog.py
from typing import Optional, List
from pydantic import BaseModel, Field


class ReadingListCreate(BaseModel):
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None


class ReadingListUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    cover_url: Optional[str] = None


class LevelCreate(BaseModel):
    name: str
    description: Optional[str] = None


class EntryCreate(BaseModel):
    title: str
    author: Optional[str] = None
    rationale: Optional[str] = None
    page_count: Optional[int] = None


class ReorderRequest(BaseModel):
    ids: List[int] = Field(default_factory=list)


class ChallengeStatusUpdate(BaseModel):
    status: str


class ChallengeBookRead(BaseModel):
    takeaway: Optional[str] = None


class UnlockResult(BaseModel):
    unlocked: int
