# tests/test_services/test_reading_list_service.py

import pytest
from core.exceptions import NotFound, Unauthorized, ValidationError
from core.sa.models import BookStatus
from core.services.link_service import LinkService
from core.services.reading_list_service import ReadingListService

IMPORT_DATA = {
    "name": "Türk Klasikleri",
    "description": "Cumhuriyet dönemi romanları",
    "levels": [
        {
            "name": "Giriş",
            "books": [
                {"title": "Kürk Mantolu Madonna", "author": "Sabahattin Ali", "page_count": 160},
                {"title": "Saatleri Ayarlama Enstitüsü", "author": "Ahmet Hamdi Tanpınar"},
            ],
        },
        {
            "name": "Derin Okuma",
            "books": [{"title": "Tutunamayanlar", "author": "Oğuz Atay", "rationale": "Modernizmin zirvesi"}],
        },
    ],
}


@pytest.fixture
def reading_list_service(db_session, cache):
    return ReadingListService(db_session, cache)


def test_list_reading_lists(reading_list_service, sample_reading_list):
    summaries = reading_list_service.list_reading_lists()
    assert [(s.slug, s.level_count, s.book_count) for s in summaries] == [("bilim-kurgu", 2, 3)]


def test_get_reading_list(reading_list_service, sample_reading_list):
    detail = reading_list_service.get_reading_list("bilim-kurgu")
    assert [level.name for level in detail.levels] == ["Başlangıç", "İleri"]
    assert detail.levels[0].books[1].author == "Andy Weir"
    with pytest.raises(NotFound):
        reading_list_service.get_reading_list("yok")


def test_create_list_builds_slug(reading_list_service):
    detail = reading_list_service.create_list("Bilim Kurgu Klasikleri")
    assert detail.slug == "bilim-kurgu-klasikleri"
    with pytest.raises(ValidationError):
        reading_list_service.create_list("Bilim Kurgu Klasikleri")
    with pytest.raises(ValidationError):
        reading_list_service.create_list("  ")


def test_catalog_edits_invalidate_cached_views(reading_list_service, sample_reading_list):
    assert reading_list_service.list_reading_lists()[0].book_count == 3
    reading_list_service.get_reading_list("bilim-kurgu")
    level_id = sample_reading_list.levels[1].id

    entry = reading_list_service.add_entry(level_id, "Solaris", author="Stanislaw Lem", page_count=204)

    assert entry.sort_order == 1
    assert reading_list_service.list_reading_lists()[0].book_count == 4
    detail = reading_list_service.get_reading_list("bilim-kurgu")
    assert [b.title for b in detail.levels[1].books] == ["Vakıf", "Solaris"]


def test_add_entry_validation(reading_list_service, sample_reading_list):
    level_id = sample_reading_list.levels[0].id
    with pytest.raises(ValidationError):
        reading_list_service.add_entry(level_id, "")
    with pytest.raises(ValidationError):
        reading_list_service.add_entry(level_id, "Dune", page_count=-3)
    with pytest.raises(NotFound):
        reading_list_service.add_entry(999, "Dune")


def test_update_and_delete_entry(reading_list_service, list_entries):
    entry_id = list_entries["Vakıf"].id
    reading_list_service.update_entry(entry_id, title="Vakıf Üçlemesi", rationale="Galaktik imparatorluk")
    detail = reading_list_service.get_reading_list("bilim-kurgu")
    assert detail.levels[1].books[0].title == "Vakıf Üçlemesi"

    reading_list_service.delete_entry(entry_id)
    assert reading_list_service.get_reading_list("bilim-kurgu").levels[1].books == []
    with pytest.raises(NotFound):
        reading_list_service.delete_entry(entry_id)


def test_levels(reading_list_service, sample_reading_list):
    level = reading_list_service.add_level("bilim-kurgu", "Uzman")
    assert level.level_number == 3

    first, second = [l.id for l in reading_list_service.get_reading_list("bilim-kurgu").levels[:2]]
    reading_list_service.reorder_levels("bilim-kurgu", [level.id, first, second])
    detail = reading_list_service.get_reading_list("bilim-kurgu")
    assert [l.name for l in detail.levels] == ["Uzman", "Başlangıç", "İleri"]
    assert [l.level_number for l in detail.levels] == [1, 2, 3]

    with pytest.raises(ValidationError):
        reading_list_service.reorder_levels("bilim-kurgu", [first, second])

    reading_list_service.update_level(level.id, name="Usta")
    reading_list_service.delete_level(level.id)
    assert [l.name for l in reading_list_service.get_reading_list("bilim-kurgu").levels] == ["Başlangıç", "İleri"]


def test_reorder_entries(reading_list_service, sample_reading_list, list_entries):
    level_id = sample_reading_list.levels[0].id
    dune = list_entries["Dune"].id
    martian = list_entries["Marslı (The Martian)"].id

    reading_list_service.reorder_entries(level_id, [martian, dune])

    detail = reading_list_service.get_reading_list("bilim-kurgu")
    assert [b.id for b in detail.levels[0].books] == [martian, dune]


def test_update_list_slug(reading_list_service, sample_reading_list):
    reading_list_service.get_reading_list("bilim-kurgu")
    updated = reading_list_service.update_list("bilim-kurgu", slug="Bilim Kurgu Seçkisi")
    assert updated.slug == "bilim-kurgu-seckisi"
    assert reading_list_service.list_reading_lists()[0].slug == "bilim-kurgu-seckisi"
    with pytest.raises(NotFound):
        reading_list_service.get_reading_list("bilim-kurgu")


def test_reorder_and_delete_lists(reading_list_service, sample_reading_list):
    reading_list_service.create_list("Klasikler")
    reading_list_service.reorder_lists(["klasikler", "bilim-kurgu"])
    assert [s.slug for s in reading_list_service.list_reading_lists()] == ["klasikler", "bilim-kurgu"]

    with pytest.raises(ValidationError):
        reading_list_service.reorder_lists(["klasikler"])

    reading_list_service.delete_list("klasikler")
    assert [s.slug for s in reading_list_service.list_reading_lists()] == ["bilim-kurgu"]


def test_import_list(reading_list_service):
    detail = reading_list_service.import_list(IMPORT_DATA)

    assert detail.slug == "turk-klasikleri"
    assert detail.book_count == 3
    assert [l.level_number for l in detail.levels] == [1, 2]
    assert reading_list_service.import_list(IMPORT_DATA) is None


def test_progress(db_session, cache, reading_list_service, sample_user, make_book, list_entries):
    links = LinkService(db_session, cache)
    finished = make_book("Dune", status=BookStatus.COMPLETED.value)
    reading = make_book("Vakıf", status=BookStatus.READING.value)
    links.link_reading_list_book(sample_user.id, list_entries["Dune"].id, finished.id)
    links.link_reading_list_book(sample_user.id, list_entries["Vakıf"].id, reading.id)

    progress = reading_list_service.get_progress(sample_user.id, "bilim-kurgu")

    assert (progress.total_books, progress.linked_books, progress.completed_books) == (3, 2, 1)
    assert progress.progress_percent == 33
    assert [e.level_number for e in progress.entries] == [1, 1, 2]


def test_progress_follows_book_status(db_session, cache, reading_list_service, sample_user, make_book,
                                      list_entries):
    from core.services.library_service import LibraryService

    book = make_book("Dune", status=BookStatus.READING.value)
    LinkService(db_session, cache).link_reading_list_book(sample_user.id, list_entries["Dune"].id, book.id)
    assert reading_list_service.get_progress(sample_user.id, "bilim-kurgu").completed_books == 0

    LibraryService(db_session, cache).update_book(sample_user.id, book.id, status=BookStatus.COMPLETED.value)

    assert reading_list_service.get_progress(sample_user.id, "bilim-kurgu").completed_books == 1


def test_progress_requires_user(reading_list_service, sample_reading_list):
    with pytest.raises(Unauthorized):
        reading_list_service.get_progress(None, "bilim-kurgu")
