# tests/test_services/test_library_service.py

import pytest
from datetime import datetime, timedelta, UTC
from core.exceptions import NotFound, Unauthorized, ValidationError
from core.sa.models import BookStatus
from core.services.library_service import LibraryService, validate_book_fields
from core.services.rating_service import RatingService
from core.utils.reading_goal import GoalStatus


@pytest.fixture
def library_service(db_session, cache):
    return LibraryService(db_session, cache)


def test_add_book(library_service, sample_user):
    book = library_service.add_book(
        sample_user.id, title="  Kürk Mantolu Madonna ", author_name="Sabahattin Ali", page_count=160
    )
    assert book.title == "Kürk Mantolu Madonna"
    assert book.author == "Sabahattin Ali"
    assert book.status == BookStatus.TO_READ.value
    assert book.current_page == 0


def test_add_book_reading_stamps_start_date(library_service, sample_user):
    book = library_service.add_book(sample_user.id, title="Dune", status=BookStatus.READING.value)
    assert book.start_date is not None


@pytest.mark.parametrize("fields", [
    {"title": ""},
    {"title": "Dune", "status": "shelved"},
    {"title": "Dune", "page_count": 0},
    {"title": "Dune", "page_count": 100, "current_page": 101},
    {"title": "Dune", "current_page": -1},
    {"title": "Dune", "reading_goal_days": "ten"},
    {"title": "Dune", "isbn": "123"},
])
def test_add_book_rejects_bad_input(library_service, sample_user, fields):
    with pytest.raises(ValidationError):
        library_service.add_book(sample_user.id, **fields)


def test_validate_update_against_stored_values():
    validate_book_fields({"current_page": 90}, page_count=100)
    with pytest.raises(ValidationError):
        validate_book_fields({"page_count": 50}, page_count=100, current_page=80)


@pytest.mark.parametrize("user_id", [None, 0, -1])
def test_requires_user(library_service, user_id):
    with pytest.raises(Unauthorized):
        library_service.list_books(user_id)


def test_list_books_is_cached_and_invalidated(library_service, sample_user, cache):
    library_service.add_book(sample_user.id, title="Dune")
    assert [b.title for b in library_service.list_books(sample_user.id)] == ["Dune"]
    assert f"books:{sample_user.id}::" in cache

    library_service.add_book(sample_user.id, title="Solaris")
    assert {b.title for b in library_service.list_books(sample_user.id)} == {"Dune", "Solaris"}


def test_list_books_by_status(library_service, sample_user):
    library_service.add_book(sample_user.id, title="Dune", status=BookStatus.READING.value)
    library_service.add_book(sample_user.id, title="Solaris")
    assert [b.title for b in library_service.currently_reading(sample_user.id)] == ["Dune"]
    with pytest.raises(ValidationError):
        library_service.list_books(sample_user.id, status="shelved")


def test_status_filter_and_title_search_are_cached_apart(library_service, sample_user):
    library_service.add_book(sample_user.id, title="Reading Lolita in Tehran")
    library_service.add_book(sample_user.id, title="Dune", status=BookStatus.READING.value)

    assert [b.title for b in library_service.list_books(sample_user.id, status="reading")] == ["Dune"]
    assert [b.title for b in library_service.list_books(sample_user.id, query="reading")] == [
        "Reading Lolita in Tehran"
    ]


def test_get_book_of_other_user(library_service, make_book, other_user, sample_user):
    book = make_book("Dune", user=other_user)
    with pytest.raises(NotFound):
        library_service.get_book(sample_user.id, book.id)


def test_completing_book_fills_progress(library_service, sample_user):
    book = library_service.add_book(sample_user.id, title="Solaris", page_count=204,
                                    status=BookStatus.READING.value)
    updated = library_service.update_book(sample_user.id, book.id, status=BookStatus.COMPLETED.value)
    assert updated.current_page == 204
    assert updated.end_date is not None


def test_update_keeps_original_start_date(library_service, sample_user):
    started = datetime(2025, 1, 5, tzinfo=UTC)
    book = library_service.add_book(sample_user.id, title="Dune", status=BookStatus.READING.value,
                                    start_date=started)
    library_service.update_book(sample_user.id, book.id, status=BookStatus.TO_READ.value)
    updated = library_service.update_book(sample_user.id, book.id, status=BookStatus.READING.value)
    assert updated.start_date.replace(tzinfo=UTC) == started


def test_update_progress(library_service, sample_user):
    book = library_service.add_book(sample_user.id, title="Dune", page_count=712)
    assert library_service.update_progress(sample_user.id, book.id, "120").current_page == 120
    with pytest.raises(ValidationError):
        library_service.update_progress(sample_user.id, book.id, "yüz")
    with pytest.raises(ValidationError):
        library_service.update_progress(sample_user.id, book.id, 800)


def test_get_book_sees_update(library_service, sample_user):
    book = library_service.add_book(sample_user.id, title="Dune", page_count=712)
    library_service.get_book(sample_user.id, book.id)
    library_service.update_progress(sample_user.id, book.id, 50)
    assert library_service.get_book(sample_user.id, book.id).current_page == 50


def test_delete_book(library_service, sample_user):
    book = library_service.add_book(sample_user.id, title="Dune")
    library_service.delete_book(sample_user.id, book.id)
    assert library_service.list_books(sample_user.id) == []
    with pytest.raises(NotFound):
        library_service.delete_book(sample_user.id, book.id)


def test_get_goal(library_service, sample_user):
    start = datetime(2025, 3, 1, tzinfo=UTC)
    book = library_service.add_book(
        sample_user.id, title="Dune", page_count=300, current_page=150,
        status=BookStatus.READING.value, start_date=start, reading_goal_days=20
    )
    goal = library_service.get_goal(sample_user.id, book.id, now=start + timedelta(days=10))
    assert goal.status is GoalStatus.AHEAD
    assert goal.expected_pages_read == 135


def test_get_goal_without_goal(library_service, sample_user):
    book = library_service.add_book(sample_user.id, title="Dune", page_count=300)
    assert library_service.get_goal(sample_user.id, book.id) is None


def test_stats(db_session, cache, library_service, sample_user):
    finished = library_service.add_book(sample_user.id, title="Solaris", page_count=204,
                                        status=BookStatus.COMPLETED.value)
    library_service.add_book(sample_user.id, title="Dune", page_count=712, current_page=100,
                             status=BookStatus.READING.value)
    assert library_service.get_stats(sample_user.id).rated_books == 0

    RatingService(db_session, cache).save_rating(
        sample_user.id, finished.id,
        dict(topic=8, fluency=8, depth=8, impact=8, style=8, characters=8,
             originality=8, print_design=8, overall=8),
        recommend=True
    )

    stats = library_service.get_stats(sample_user.id)
    assert stats.total_books == 2
    assert stats.by_status[BookStatus.COMPLETED.value] == 1
    assert stats.by_status[BookStatus.READING.value] == 1
    assert stats.pages_read == 304
    assert stats.rated_books == 1
    assert stats.average_rating == 8.0
    assert stats.recommended_books == 1
