# core/services/reading_list_service.py
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from core.auth import require_user
from core.cache import CacheDuration, CacheTags, ReadingListChanged, make_key
from core.exceptions import NotFound, ValidationError
from core.matching import slugify
from core.models.catalog import (
    EntryProgress, ReadingListDetail, ReadingListEntryView, ReadingListLevelView,
    ReadingListProgress, ReadingListSummary
)
from core.sa.models import BookStatus, ReadingList, ReadingListBook, ReadingListLevel
from core.sa.repositories import ReadingListRepository
from core.services.base import BaseService, db_operation

logger = logging.getLogger(__name__)


def _required_text(value: Any, label: str, max_length: int = 255) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{label} is too long")
    return value


def _summary(reading_list: ReadingList) -> ReadingListSummary:
    return ReadingListSummary(
        id=reading_list.id,
        slug=reading_list.slug,
        name=reading_list.name,
        description=reading_list.description,
        level_count=len(reading_list.levels),
        book_count=sum(len(level.books) for level in reading_list.levels)
    )


def _detail(reading_list: ReadingList) -> ReadingListDetail:
    return ReadingListDetail(
        **_summary(reading_list).model_dump(),
        levels=[
            ReadingListLevelView(
                id=level.id,
                level_number=level.level_number,
                name=level.name,
                description=level.description,
                books=[
                    ReadingListEntryView(
                        id=entry.id,
                        title=entry.title,
                        author=entry.author or None,
                        rationale=entry.rationale,
                        page_count=entry.page_count,
                        sort_order=entry.sort_order
                    )
                    for entry in level.books
                ]
            )
            for level in reading_list.levels
        ]
    )


class ReadingListService(BaseService):
    """Curated reading lists: cached catalogue, per-user progress and admin edits."""

    def _get_list(self, slug: str) -> ReadingList:
        reading_list = ReadingListRepository(self.session).get_by_slug(slug)
        if reading_list is None:
            raise NotFound("Reading list not found")
        return reading_list

    def _changed(self, *slugs: Optional[str]) -> None:
        for slug in slugs or (None,):
            self.dispatcher.dispatch(ReadingListChanged(slug=slug))

    # Reads

    @db_operation
    def list_reading_lists(self) -> List[ReadingListSummary]:
        return self.cache.get_or_set(
            make_key("reading-lists"),
            lambda: [_summary(rl) for rl in ReadingListRepository(self.session).list_all()],
            tags=[CacheTags.READING_LISTS],
            ttl=CacheDuration.STATIC
        )

    @db_operation
    def get_reading_list(self, slug: str) -> ReadingListDetail:
        return self.cache.get_or_set(
            make_key("reading-list", slug),
            lambda: _detail(self._get_list(slug)),
            tags=[CacheTags.READING_LISTS, CacheTags.reading_list(slug)],
            ttl=CacheDuration.STATIC
        )

    @db_operation
    def get_progress(self, user_id: Optional[int], slug: str) -> ReadingListProgress:
        """The user's progress through one list: which entries have a linked copy and its status."""
        user_id = require_user(user_id)

        def load() -> ReadingListProgress:
            repo = ReadingListRepository(self.session)
            reading_list = self._get_list(slug)
            links = {
                link.reading_list_book_id: link
                for link in repo.links_for_user(user_id, reading_list.id)
            }
            entries = []
            for level in reading_list.levels:
                for entry in level.books:
                    link = links.get(entry.id)
                    book = link.book if link is not None else None
                    entries.append(EntryProgress(
                        entry_id=entry.id,
                        title=entry.title,
                        author=entry.author or None,
                        level_number=level.level_number,
                        linked_book_id=book.id if book else None,
                        linked_book_title=book.title if book else None,
                        book_status=book.status if book else None
                    ))
            total = len(entries)
            completed = sum(1 for e in entries if e.book_status == BookStatus.COMPLETED.value)
            return ReadingListProgress(
                slug=reading_list.slug,
                name=reading_list.name,
                total_books=total,
                linked_books=sum(1 for e in entries if e.linked_book_id is not None),
                completed_books=completed,
                progress_percent=round(completed / total * 100) if total else 0,
                entries=entries
            )

        return self.cache.get_or_set(
            make_key("reading-list-progress", user_id, slug),
            load,
            tags=[
                CacheTags.READING_LISTS,
                CacheTags.reading_list(slug),
                CacheTags.user_reading_list_links(user_id),
                CacheTags.user_books(user_id),
            ],
            ttl=CacheDuration.MEDIUM
        )

    # Admin writes

    @db_operation
    def create_list(self, name: str, slug: Optional[str] = None,
                    description: Optional[str] = None) -> ReadingListDetail:
        name = _required_text(name, "Name")
        slug = slugify(slug or name)
        if not slug:
            raise ValidationError("Could not build a slug from the name")
        repo = ReadingListRepository(self.session)
        if repo.get_by_slug(slug) is not None:
            raise ValidationError(f"A reading list with slug '{slug}' already exists")
        reading_list = ReadingList(
            slug=slug, name=name, description=description, sort_order=repo.next_list_sort_order()
        )
        try:
            repo.add(reading_list)
        except IntegrityError as e:
            self.session.rollback()
            raise ValidationError(f"A reading list with slug '{slug}' already exists") from e
        self._changed(slug)
        return _detail(reading_list)

    @db_operation
    def update_list(self, current_slug: str, **fields: Any) -> ReadingListDetail:
        unknown = set(fields) - {'name', 'slug', 'description', 'cover_url'}
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        repo = ReadingListRepository(self.session)
        reading_list = self._get_list(current_slug)
        if 'name' in fields:
            fields['name'] = _required_text(fields['name'], "Name")
        if 'slug' in fields:
            fields['slug'] = slugify(fields['slug'])
            if not fields['slug']:
                raise ValidationError("Slug cannot be empty")
            if fields['slug'] != current_slug and repo.get_by_slug(fields['slug']) is not None:
                raise ValidationError(f"A reading list with slug '{fields['slug']}' already exists")
        repo.update(reading_list, **fields)
        self._changed(current_slug, reading_list.slug)
        return _detail(reading_list)

    @db_operation
    def delete_list(self, slug: str) -> None:
        reading_list = self._get_list(slug)
        ReadingListRepository(self.session).delete(reading_list)
        self._changed(slug)
        logger.info("Deleted reading list %s", slug)

    @db_operation
    def add_level(self, slug: str, name: str, description: Optional[str] = None) -> ReadingListLevelView:
        repo = ReadingListRepository(self.session)
        reading_list = self._get_list(slug)
        level = ReadingListLevel(
            reading_list_id=reading_list.id,
            level_number=repo.next_level_number(reading_list.id),
            name=_required_text(name, "Level name"),
            description=description
        )
        repo.add(level)
        self._changed(slug)
        return ReadingListLevelView(
            id=level.id, level_number=level.level_number, name=level.name, description=level.description
        )

    @db_operation
    def update_level(self, level_id: int, **fields: Any) -> None:
        unknown = set(fields) - {'name', 'description'}
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        repo = ReadingListRepository(self.session)
        level = repo.get_level(level_id)
        if level is None:
            raise NotFound("Level not found")
        if 'name' in fields:
            fields['name'] = _required_text(fields['name'], "Level name")
        repo.update(level, **fields)
        self._changed(level.reading_list.slug)

    @db_operation
    def delete_level(self, level_id: int) -> None:
        repo = ReadingListRepository(self.session)
        level = repo.get_level(level_id)
        if level is None:
            raise NotFound("Level not found")
        slug = level.reading_list.slug
        repo.delete(level)
        self._changed(slug)

    @db_operation
    def add_entry(self, level_id: int, title: str, author: Optional[str] = None,
                  rationale: Optional[str] = None, page_count: Optional[int] = None) -> ReadingListEntryView:
        repo = ReadingListRepository(self.session)
        level = repo.get_level(level_id)
        if level is None:
            raise NotFound("Level not found")
        if page_count is not None and (isinstance(page_count, bool) or not isinstance(page_count, int)
                                       or page_count <= 0):
            raise ValidationError("Page count must be a positive whole number")
        entry = ReadingListBook(
            level_id=level.id,
            title=_required_text(title, "Title", 500),
            author=(author or "").strip(),
            rationale=rationale,
            page_count=page_count,
            sort_order=repo.next_entry_sort_order(level.id)
        )
        repo.add(entry)
        self._changed(level.reading_list.slug)
        return ReadingListEntryView(
            id=entry.id, title=entry.title, author=entry.author or None,
            rationale=entry.rationale, page_count=entry.page_count, sort_order=entry.sort_order
        )

    @db_operation
    def update_entry(self, entry_id: int, **fields: Any) -> None:
        unknown = set(fields) - {'title', 'author', 'rationale', 'page_count'}
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        repo = ReadingListRepository(self.session)
        entry = repo.get_entry(entry_id)
        if entry is None:
            raise NotFound("Reading list entry not found")
        if 'title' in fields:
            fields['title'] = _required_text(fields['title'], "Title", 500)
        if 'author' in fields:
            fields['author'] = (fields['author'] or "").strip()
        repo.update(entry, **fields)
        self._changed(entry.level.reading_list.slug)

    @db_operation
    def delete_entry(self, entry_id: int) -> None:
        """Delete a catalog entry together with every user's link to it."""
        repo = ReadingListRepository(self.session)
        entry = repo.get_entry(entry_id)
        if entry is None:
            raise NotFound("Reading list entry not found")
        slug = entry.level.reading_list.slug
        repo.delete(entry)
        self._changed(slug)

    @db_operation
    def reorder_lists(self, slugs: List[str]) -> None:
        repo = ReadingListRepository(self.session)
        lists = {rl.slug: rl for rl in repo.list_all()}
        if len(slugs) != len(set(slugs)) or set(slugs) != set(lists):
            raise ValidationError("The new order must list each reading list exactly once")
        repo.reorder([lists[slug] for slug in slugs], 'sort_order')
        self._changed()

    @db_operation
    def reorder_levels(self, slug: str, level_ids: List[int]) -> None:
        reading_list = self._get_list(slug)
        levels = {level.id: level for level in reading_list.levels}
        if len(level_ids) != len(set(level_ids)) or set(level_ids) != set(levels):
            raise ValidationError("The new order must list each level exactly once")
        ReadingListRepository(self.session).reorder(
            [levels[level_id] for level_id in level_ids], 'level_number', start=1
        )
        self._changed(slug)

    @db_operation
    def reorder_entries(self, level_id: int, entry_ids: List[int]) -> None:
        repo = ReadingListRepository(self.session)
        level = repo.get_level(level_id)
        if level is None:
            raise NotFound("Level not found")
        entries = {entry.id: entry for entry in level.books}
        if len(entry_ids) != len(set(entry_ids)) or set(entry_ids) != set(entries):
            raise ValidationError("The new order must list each entry exactly once")
        repo.reorder([entries[entry_id] for entry_id in entry_ids], 'sort_order')
        self._changed(level.reading_list.slug)

    @db_operation
    def import_list(self, data: Dict[str, Any]) -> Optional[ReadingListDetail]:
        """Create a reading list with its levels and entries from a plain dict.

        Expected shape::

            {"name": ..., "slug": ..., "description": ...,
             "levels": [{"name": ..., "description": ...,
                         "books": [{"title": ..., "author": ..., "rationale": ...,
                                    "page_count": ...}]}]}

        Returns None when a list with the same slug already exists.
        """
        name = _required_text(data.get('name'), "Name")
        slug = slugify(data.get('slug') or name)
        repo = ReadingListRepository(self.session)
        if repo.get_by_slug(slug) is not None:
            return None

        reading_list = ReadingList(
            slug=slug,
            name=name,
            description=data.get('description'),
            sort_order=repo.next_list_sort_order()
        )
        for level_number, level_data in enumerate(data.get('levels') or [], start=1):
            level = ReadingListLevel(
                level_number=level_number,
                name=_required_text(level_data.get('name'), "Level name"),
                description=level_data.get('description')
            )
            for sort_order, book in enumerate(level_data.get('books') or []):
                level.books.append(ReadingListBook(
                    title=_required_text(book.get('title'), "Title", 500),
                    author=(book.get('author') or "").strip(),
                    rationale=book.get('rationale'),
                    page_count=book.get('page_count'),
                    sort_order=sort_order
                ))
            reading_list.levels.append(level)

        repo.add(reading_list)
        self._changed(slug)
        logger.info("Imported reading list %s", slug)
        return _detail(reading_list)
