# tests/test_sa/test_repositories/test_shelf_repository.py

import pytest
from core.sa.models import LibraryBook, Shelf
from core.sa.repositories import RatingRepository, ShelfRepository


@pytest.fixture
def shelf_repo(db_session):
    """Fixture to create a ShelfRepository instance."""
    return ShelfRepository(db_session)


def test_create_assigns_next_position(shelf_repo, sample_user):
    first = shelf_repo.create(sample_user.id, "Favoriler")
    second = shelf_repo.create(sample_user.id, "Yaz Okumaları", color="#ffaa00")
    assert (first.sort_order, second.sort_order) == (0, 1)
    assert [shelf.name for shelf in shelf_repo.list_for_user(sample_user.id)] == ["Favoriler", "Yaz Okumaları"]


def test_get_for_user_is_scoped(shelf_repo, sample_user, other_user):
    shelf = shelf_repo.create(sample_user.id, "Favoriler")
    assert shelf_repo.get_for_user(other_user.id, shelf.id) is None


def test_delete_with_detach(db_session, shelf_repo, sample_user, make_book):
    shelf = shelf_repo.create(sample_user.id, "Favoriler")
    dune = make_book("Dune", shelf_id=shelf.id)
    solaris = make_book("Solaris", shelf_id=shelf.id)
    make_book("Marslı")

    detached = shelf_repo.delete_with_detach(shelf)

    assert sorted(detached) == sorted([dune.id, solaris.id])
    assert db_session.query(Shelf).count() == 0
    assert db_session.query(LibraryBook).count() == 3
    assert db_session.query(LibraryBook).filter(LibraryBook.shelf_id.is_not(None)).count() == 0


def test_reorder(shelf_repo, sample_user):
    a = shelf_repo.create(sample_user.id, "A")
    b = shelf_repo.create(sample_user.id, "B")
    c = shelf_repo.create(sample_user.id, "C")
    shelf_repo.reorder([c, a, b])
    assert [shelf.name for shelf in shelf_repo.list_for_user(sample_user.id)] == ["C", "A", "B"]


def test_rating_upsert_replaces(db_session, make_book):
    book = make_book("Dune", status="completed")
    repo = RatingRepository(db_session)
    scores = dict(topic=8, fluency=7, depth=9, impact=9, style=8, characters=7,
                  originality=10, print_design=6, overall=9)

    first = repo.upsert(book.id, scores, True, 8.1)
    second = repo.upsert(book.id, dict(scores, overall=10), False, 8.2)

    assert first.id == second.id
    assert repo.get_for_book(book.id).overall == 10
    assert [rating.book_id for rating in repo.list_for_user(book.user_id)] == [book.id]
