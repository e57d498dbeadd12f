# api/routes/links.py

from typing import Union
from fastapi import APIRouter, Depends, status, Response
from sqlalchemy.orm import Session

from api.deps import get_cache, get_current_user, get_db
from api.schemas.links import (
    ChallengeLink, ChallengeLinkCreate, ReadingListLink, ReadingListLinkCreate, SuggestionConfirm
)
from core.cache import CacheStore
from core.models.link import BrokenLinksCount, LinkKind, RepairResult
from core.services.link_service import LinkService

router = APIRouter(prefix="/links", tags=["links"])


@router.put("/reading-list", response_model=ReadingListLink)
def link_reading_list_book(
    link: ReadingListLinkCreate,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    created = LinkService(db, cache).link_reading_list_book(user_id, link.entry_id, link.book_id)
    return ReadingListLink.model_validate(created)


@router.delete("/reading-list/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def unlink_reading_list_book(
    entry_id: int,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    LinkService(db, cache).unlink_reading_list_book(user_id, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/challenge", response_model=ChallengeLink)
def link_challenge_book(
    link: ChallengeLinkCreate,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    linked = LinkService(db, cache).link_challenge_book(user_id, link.challenge_book_id, link.book_id)
    return ChallengeLink.model_validate(linked)


@router.delete("/challenge/{challenge_book_id}", status_code=status.HTTP_204_NO_CONTENT)
def unlink_challenge_book(
    challenge_book_id: int,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    LinkService(db, cache).unlink_challenge_book(user_id, challenge_book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/confirm", response_model=Union[ReadingListLink, ChallengeLink])
def confirm_suggested_link(
    suggestion: SuggestionConfirm,
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    link = LinkService(db, cache).confirm_suggested_link(
        user_id, suggestion.kind, suggestion.target_id, suggestion.book_id
    )
    if suggestion.kind is LinkKind.READING_LIST:
        return ReadingListLink.model_validate(link)
    return ChallengeLink.model_validate(link)


@router.post("/repair", response_model=RepairResult)
def repair_links(
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    """Link unlinked books to matching reading-list and challenge entries."""
    return LinkService(db, cache).repair_links(user_id)


@router.get("/broken", response_model=BrokenLinksCount)
def count_broken_links(
    user_id: int = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheStore = Depends(get_cache)
):
    return LinkService(db, cache).count_broken_links(user_id)
