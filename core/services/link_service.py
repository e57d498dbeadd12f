# core/services/link_service.py
import logging
from typing import Optional

from core.auth import require_user
from core.cache import LinkChanged
from core.exceptions import NotFound
from core.models.link import BrokenLinksCount, LinkKind, RepairResult
from core.resolvers.link_resolver import LinkResolver
from core.sa.models import UserChallengeBook, UserReadingListBook
from core.sa.repositories import ChallengeRepository, LibraryBookRepository, ReadingListRepository
from core.services.base import BaseService, db_operation

logger = logging.getLogger(__name__)


class LinkService(BaseService):
    """Manual linking of a user's books to reading-list entries and challenge books.

    Every operation writes first and then dispatches the invalidation for
    the user and every book whose links changed.
    """

    def _require_book(self, user_id: int, book_id: int) -> None:
        if LibraryBookRepository(self.session).get_for_user(user_id, book_id) is None:
            raise NotFound("Book not found")

    @db_operation
    def link_reading_list_book(self, user_id: Optional[int], entry_id: int,
                               book_id: Optional[int]) -> UserReadingListBook:
        """Link the user's book to a reading-list entry, replacing any earlier link.

        ``book_id=None`` records the entry as acknowledged without a copy.

        Raises:
            NotFound: the book or the entry does not exist for this user
            ConflictAlreadyLinked: the book is already linked to another entry
        """
        user_id = require_user(user_id)
        if book_id is not None:
            self._require_book(user_id, book_id)
        repo = ReadingListRepository(self.session)
        if repo.get_entry(entry_id) is None:
            raise NotFound("Reading list entry not found")

        previous = repo.get_link(user_id, entry_id)
        previous_book_id = previous.book_id if previous else None
        link = repo.create_link(user_id, entry_id, book_id)
        self.dispatcher.dispatch(LinkChanged(user_id=user_id, book_ids={book_id, previous_book_id}))
        logger.info("User %s linked reading list entry %s to book %s", user_id, entry_id, book_id)
        return link

    @db_operation
    def unlink_reading_list_book(self, user_id: Optional[int], entry_id: int) -> None:
        user_id = require_user(user_id)
        repo = ReadingListRepository(self.session)
        link = repo.get_link(user_id, entry_id)
        if link is None:
            raise NotFound("This entry is not linked")
        book_id = link.book_id
        repo.delete_link(link)
        self.dispatcher.dispatch(LinkChanged(user_id=user_id, book_ids=book_id))
        logger.info("User %s unlinked reading list entry %s", user_id, entry_id)

    @db_operation
    def link_challenge_book(self, user_id: Optional[int], challenge_book_id: int,
                            book_id: int) -> UserChallengeBook:
        """Link the user's book to a challenge book of a joined challenge.

        Raises:
            NotFound: the book does not exist for this user, or the user has
                not joined the challenge the book belongs to
            ConflictAlreadyLinked: the book is already linked in this challenge
        """
        user_id = require_user(user_id)
        self._require_book(user_id, book_id)
        repo = ChallengeRepository(self.session)
        user_book = repo.get_user_book(user_id, challenge_book_id)
        if user_book is None:
            raise NotFound("Challenge book not found")

        previous_book_id = user_book.linked_book_id
        user_book = repo.set_linked_book(user_book, book_id)
        self.dispatcher.dispatch(LinkChanged(user_id=user_id, book_ids={book_id, previous_book_id}))
        logger.info("User %s linked challenge book %s to book %s", user_id, challenge_book_id, book_id)
        return user_book

    @db_operation
    def unlink_challenge_book(self, user_id: Optional[int], challenge_book_id: int) -> None:
        user_id = require_user(user_id)
        repo = ChallengeRepository(self.session)
        user_book = repo.get_user_book(user_id, challenge_book_id)
        if user_book is None or user_book.linked_book_id is None:
            raise NotFound("This challenge book is not linked")
        book_id = user_book.linked_book_id
        repo.set_linked_book(user_book, None)
        self.dispatcher.dispatch(LinkChanged(user_id=user_id, book_ids=book_id))

    def confirm_suggested_link(self, user_id: Optional[int], kind: LinkKind, target_id: int, book_id: int):
        """Accept a suggestion from a repair run.

        ``target_id`` is the id reported in the suggestion: a reading-list
        entry id, or the user's challenge book state id.
        """
        user_id = require_user(user_id)
        if LinkKind(kind) is LinkKind.READING_LIST:
            return self.link_reading_list_book(user_id, target_id, book_id)
        user_book = ChallengeRepository(self.session).get_user_book_by_id(user_id, target_id)
        if user_book is None:
            raise NotFound("Challenge book not found")
        return self.link_challenge_book(user_id, user_book.challenge_book_id, book_id)

    def repair_links(self, user_id: Optional[int]) -> RepairResult:
        return LinkResolver(self.session, self.dispatcher).repair_links(user_id)

    def count_broken_links(self, user_id: Optional[int]) -> BrokenLinksCount:
        return LinkResolver(self.session, self.dispatcher).count_broken_links(user_id)
