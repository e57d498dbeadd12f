# tests/test_sa/test_repositories/test_library_repository.py

import pytest
from core.sa.models import BookStatus, UserReadingListBook
from core.sa.repositories import ChallengeRepository, LibraryBookRepository


@pytest.fixture
def library_repo(db_session):
    """Fixture to create a LibraryBookRepository instance."""
    return LibraryBookRepository(db_session)


def test_get_for_user_is_scoped_to_owner(library_repo, make_book, other_user):
    book = make_book("Dune", author="Frank Herbert")
    assert library_repo.get_for_user(book.user_id, book.id).author.name == "Frank Herbert"
    assert library_repo.get_for_user(other_user.id, book.id) is None


def test_list_for_user_filters(library_repo, make_book, sample_user, other_user):
    make_book("Dune", status=BookStatus.READING.value)
    make_book("Dune Mesihi")
    make_book("Solaris", status=BookStatus.READING.value)
    make_book("Dune", user=other_user)

    assert len(library_repo.list_for_user(sample_user.id)) == 3
    reading = library_repo.list_for_user(sample_user.id, statuses=[BookStatus.READING.value])
    assert {book.title for book in reading} == {"Dune", "Solaris"}
    found = library_repo.list_for_user(sample_user.id, query="dune")
    assert {book.title for book in found} == {"Dune", "Dune Mesihi"}


def test_create_update_delete(library_repo, sample_user):
    book = library_repo.create(sample_user.id, title="Tutunamayanlar", page_count=724)
    library_repo.update(book, current_page=100)
    assert library_repo.get_for_user(sample_user.id, book.id).current_page == 100
    library_repo.delete(book)
    assert library_repo.get_for_user(sample_user.id, book.id) is None


def test_count_by_status(library_repo, make_book, sample_user):
    make_book("A Kitabı", status=BookStatus.COMPLETED.value)
    make_book("B Kitabı", status=BookStatus.COMPLETED.value)
    make_book("C Kitabı")
    assert library_repo.count_by_status(sample_user.id) == {"completed": 2, "to_read": 1}


def test_find_unlinked_library_books(db_session, library_repo, make_book, sample_user, other_user, list_entries):
    linked = make_book("Dune", author="Frank Herbert")
    free = make_book("Solaris", author="Stanislaw Lem")
    make_book("   ")
    make_book("Marslı", user=other_user)
    db_session.add(UserReadingListBook(
        user_id=sample_user.id, reading_list_book_id=list_entries["Dune"].id, book_id=linked.id
    ))
    db_session.commit()

    candidates = library_repo.find_unlinked_library_books(sample_user.id)

    assert [c.book_id for c in candidates] == [free.id]
    assert candidates[0].author == "Stanislaw Lem"


def test_find_unlinked_challenge_books(db_session, library_repo, make_book, sample_user, sample_challenge,
                                       challenge_books):
    repo = ChallengeRepository(db_session)
    repo.create_progress(sample_user.id, sample_challenge)
    linked = make_book("Suç ve Ceza")
    free = make_book("Solaris")
    user_book = repo.get_user_book(sample_user.id, challenge_books["Suç ve Ceza"].id)
    repo.set_linked_book(user_book, linked.id)

    assert [c.book_id for c in library_repo.find_unlinked_challenge_books(sample_user.id)] == [free.id]
    # Reading-list links are tracked separately.
    assert {c.book_id for c in library_repo.find_unlinked_library_books(sample_user.id)} == {linked.id, free.id}
