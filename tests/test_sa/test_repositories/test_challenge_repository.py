# tests/test_sa/test_repositories/test_challenge_repository.py

import pytest
from datetime import datetime, UTC
from core.exceptions import ConflictAlreadyLinked
from core.models.link import LinkKind
from core.sa.models import ChallengeBookStatus, ReadingChallenge
from core.sa.repositories import ChallengeRepository


@pytest.fixture
def challenge_repo(db_session):
    """Fixture to create a ChallengeRepository instance."""
    return ChallengeRepository(db_session)


@pytest.fixture
def progress(challenge_repo, sample_user, sample_challenge):
    return challenge_repo.create_progress(sample_user.id, sample_challenge)


def _statuses(progress):
    return {book.challenge_book.title: book.status for book in progress.books}


def test_get_by_year_and_active(challenge_repo, sample_challenge):
    challenge_repo.add(ReadingChallenge(year=2024, name="Geçen Yıl", is_active=False))
    assert challenge_repo.get_by_year(2025).id == sample_challenge.id
    assert challenge_repo.get_active().year == 2025
    assert challenge_repo.get_by_year(1999) is None


def test_create_progress_locks_bonus_books(progress):
    assert _statuses(progress) == {
        "Suç ve Ceza": ChallengeBookStatus.NOT_STARTED.value,
        "Yeraltından Notlar": ChallengeBookStatus.LOCKED.value,
        "Solaris": ChallengeBookStatus.NOT_STARTED.value,
    }


def test_joining_twice_conflicts(challenge_repo, progress, sample_user, sample_challenge):
    with pytest.raises(ConflictAlreadyLinked):
        challenge_repo.create_progress(sample_user.id, sample_challenge)


def test_get_user_book_is_scoped_to_user(challenge_repo, progress, other_user, challenge_books):
    book_id = challenge_books["Solaris"].id
    assert challenge_repo.get_user_book(progress.user_id, book_id).challenge_book.title == "Solaris"
    assert challenge_repo.get_user_book(other_user.id, book_id) is None


def test_complete_main_book_unlocks_bonus(challenge_repo, progress, challenge_books):
    user_book = challenge_repo.get_user_book(progress.user_id, challenge_books["Suç ve Ceza"].id)
    completed_at = datetime(2025, 1, 20, tzinfo=UTC)

    unlocked = challenge_repo.complete_and_unlock(user_book, "Vicdan her şeydir.", completed_at)

    assert unlocked == 1
    assert user_book.status == ChallengeBookStatus.COMPLETED.value
    assert user_book.takeaway == "Vicdan her şeydir."
    bonus = challenge_repo.get_user_book(progress.user_id, challenge_books["Yeraltından Notlar"].id)
    assert bonus.status == ChallengeBookStatus.NOT_STARTED.value
    # Other months stay as they were.
    solaris = challenge_repo.get_user_book(progress.user_id, challenge_books["Solaris"].id)
    assert solaris.status == ChallengeBookStatus.NOT_STARTED.value


def test_complete_bonus_book_unlocks_nothing(challenge_repo, progress, challenge_books):
    main = challenge_repo.get_user_book(progress.user_id, challenge_books["Suç ve Ceza"].id)
    challenge_repo.complete_and_unlock(main, None, datetime.now(UTC))
    bonus = challenge_repo.get_user_book(progress.user_id, challenge_books["Yeraltından Notlar"].id)
    assert challenge_repo.complete_and_unlock(bonus, None, datetime.now(UTC)) == 0


def test_set_linked_book_conflict(challenge_repo, progress, challenge_books, make_book):
    book = make_book("Suç ve Ceza")
    main = challenge_repo.get_user_book(progress.user_id, challenge_books["Suç ve Ceza"].id)
    challenge_repo.set_linked_book(main, book.id)

    solaris = challenge_repo.get_user_book(progress.user_id, challenge_books["Solaris"].id)
    with pytest.raises(ConflictAlreadyLinked):
        challenge_repo.set_linked_book(solaris, book.id)


def test_fill_linked_book(challenge_repo, progress, challenge_books, make_book):
    first = make_book("Solaris")
    second = make_book("Solaris (Yeni Çeviri)")
    user_book = challenge_repo.get_user_book(progress.user_id, challenge_books["Solaris"].id)

    assert challenge_repo.fill_linked_book(progress.user_id, user_book.id, first.id).linked_book_id == first.id
    assert challenge_repo.fill_linked_book(progress.user_id, user_book.id, second.id) is None


def test_find_unlinked_catalog_entries(challenge_repo, progress, challenge_books, make_book):
    book = make_book("Solaris")
    solaris = challenge_repo.get_user_book(progress.user_id, challenge_books["Solaris"].id)
    challenge_repo.set_linked_book(solaris, book.id)

    entries = challenge_repo.find_unlinked_catalog_entries(progress.user_id)

    assert [entry.title for entry in entries] == ["Suç ve Ceza", "Yeraltından Notlar"]
    assert all(entry.kind is LinkKind.CHALLENGE for entry in entries)
    main = challenge_repo.get_user_book(progress.user_id, challenge_books["Suç ve Ceza"].id)
    assert entries[0].target_id == main.id
    assert entries[0].container_name == "Klasikler Yılı (2025)"
    assert entries[0].sort_key < entries[1].sort_key
    assert challenge_repo.count_broken_links(progress.user_id) == 2


def test_no_entries_without_joining(challenge_repo, sample_challenge, sample_user):
    assert challenge_repo.find_unlinked_catalog_entries(sample_user.id) == []
    assert challenge_repo.count_broken_links(sample_user.id) == 0
