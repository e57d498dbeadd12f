# tests/test_sa/test_resolvers/test_link_resolver.py

import pytest
from core.cache import CacheTags
from core.exceptions import ConflictAlreadyLinked, Unauthorized
from core.matching import ConfidenceTier
from core.models.link import BookCandidate, CatalogCandidate, LinkKind
from core.resolvers.link_resolver import LinkResolver, score_pair, score_pairs, select_links
from core.sa.repositories import ChallengeRepository, ReadingListRepository


@pytest.fixture
def resolver(db_session, dispatcher):
    return LinkResolver(db_session, dispatcher)


def _entry(target_id, title, author=None, sort_key=(0,)):
    return CatalogCandidate(
        kind=LinkKind.READING_LIST, target_id=target_id, title=title, author=author, sort_key=sort_key
    )


def _book(book_id, title, author=None):
    return BookCandidate(book_id=book_id, title=title, author=author)


def test_score_pair_ignores_missing_author():
    confidence = score_pair(_entry(1, "Dune", "Frank Herbert"), _book(1, "Dune"))
    assert confidence.tier is ConfidenceTier.HIGH
    assert confidence.score == 1.0


def test_score_pair_uses_author():
    confidence = score_pair(_entry(1, "Marslı (The Martian)", "Andy Weir"), _book(1, "Marslı", "Andy Weir"))
    assert confidence.score == pytest.approx(0.965)
    assert confidence.auto_linkable


def test_greedy_selection_prefers_best_pair():
    entries = [_entry(1, "Dune", "Frank Herbert")]
    books = [_book(10, "Dune Mesihi", "Frank Herbert"), _book(11, "Dune", "Frank Herbert")]

    selected = select_links(score_pairs(entries, books))

    assert [(pair.entry.target_id, pair.book.book_id) for pair in selected] == [(1, 11)]


def test_ties_go_to_earlier_catalog_position():
    entries = [_entry(2, "Dune", sort_key=(0, 2)), _entry(1, "Dune", sort_key=(0, 1))]
    books = [_book(10, "Dune")]

    selected = select_links(score_pairs(entries, books))

    assert [(pair.entry.target_id, pair.book.book_id) for pair in selected] == [(1, 10)]


def test_each_book_and_entry_used_once():
    entries = [_entry(1, "Dune"), _entry(2, "Solaris")]
    books = [_book(10, "Dune"), _book(11, "Dune"), _book(12, "Solaris")]

    selected = select_links(score_pairs(entries, books))

    assert len(selected) == 2
    assert len({pair.book.book_id for pair in selected}) == 2
    assert {pair.entry.target_id for pair in selected} == {1, 2}


def test_repair_links_best_match_wins(db_session, resolver, sample_user, make_book, list_entries):
    dune = make_book("Dune", author="Frank Herbert")
    messiah = make_book("Dune Mesihi", author="Frank Herbert")

    result = resolver.repair_links(sample_user.id)

    assert result.stats.reading_lists_scanned == 3
    assert result.stats.reading_lists_repaired == 1
    assert [(link.target_id, link.book_id) for link in result.linked] == [(list_entries["Dune"].id, dune.id)]
    assert result.linked[0].confidence is ConfidenceTier.EXACT
    repo = ReadingListRepository(db_session)
    assert repo.get_link(sample_user.id, list_entries["Dune"].id).book_id == dune.id
    assert messiah.id not in {link.book_id for link in repo.links_for_user(sample_user.id)}


def test_repair_links_translated_title(db_session, resolver, sample_user, make_book, list_entries):
    book = make_book("Marslı", author="Andy Weir")

    result = resolver.repair_links(sample_user.id)

    assert [link.book_id for link in result.linked] == [book.id]
    assert result.linked[0].target_id == list_entries["Marslı (The Martian)"].id
    assert result.linked[0].confidence is ConfidenceTier.HIGH


def test_repair_links_is_idempotent(resolver, sample_user, make_book, sample_reading_list):
    make_book("Dune", author="Frank Herbert")
    make_book("Dune Mesihi", author="Frank Herbert")

    first = resolver.repair_links(sample_user.id)
    second = resolver.repair_links(sample_user.id)

    assert len(first.linked) == 1
    assert second.linked == []
    assert second.stats.reading_lists_repaired == 0
    assert second.stats.reading_lists_scanned == 2


def test_repair_links_fills_acknowledged_rows(db_session, resolver, sample_user, make_book, list_entries):
    repo = ReadingListRepository(db_session)
    repo.create_link(sample_user.id, list_entries["Vakıf"].id, None)
    book = make_book("Vakıf", author="Isaac Asimov")

    resolver.repair_links(sample_user.id)

    assert repo.get_link(sample_user.id, list_entries["Vakıf"].id).book_id == book.id
    assert repo.count_broken_links(sample_user.id) == 0


def test_repair_links_suggests_weak_matches(resolver, sample_user, make_book, list_entries):
    book = make_book("The Martian Chronicles")

    result = resolver.repair_links(sample_user.id)

    assert result.linked == []
    assert result.stats.suggestions_found == 1
    suggestion = result.suggestions[0]
    assert suggestion.type is LinkKind.READING_LIST
    assert suggestion.target_id == list_entries["Marslı (The Martian)"].id
    assert suggestion.list_or_challenge_name == "Bilim Kurgu"
    assert [c.book_id for c in suggestion.candidates] == [book.id]
    assert suggestion.candidates[0].confidence is ConfidenceTier.LOW


def test_suggestions_are_capped_per_entry(resolver, sample_user, make_book, sample_reading_list):
    for title in ["The Martian Chronicles", "The Martian Way", "The Martian Race", "The Martian Child"]:
        make_book(title)

    result = resolver.repair_links(sample_user.id)

    assert len(result.suggestions) == 1
    assert len(result.suggestions[0].candidates) == 3


def test_no_entries_is_a_noop(resolver, cache, sample_user, make_book):
    make_book("Dune", author="Frank Herbert")
    cache.set("books", ["cached"], tags=[CacheTags.user_books(sample_user.id)])

    result = resolver.repair_links(sample_user.id)

    assert result.linked == []
    assert result.suggestions == []
    assert result.stats.reading_lists_scanned == 0
    assert "books" in cache


def test_repair_invalidates_link_views(resolver, cache, sample_user, make_book, sample_reading_list):
    make_book("Dune", author="Frank Herbert")
    cache.set("progress", "stale", tags=[CacheTags.user_reading_list_links(sample_user.id)])

    resolver.repair_links(sample_user.id)

    assert "progress" not in cache


def test_conflicting_write_is_skipped(monkeypatch, resolver, sample_user, make_book, sample_reading_list):
    make_book("Dune", author="Frank Herbert")
    make_book("Vakıf", author="Isaac Asimov")
    calls = []

    def fill_link(user_id, entry_id, book_id):
        calls.append(entry_id)
        if len(calls) == 1:
            raise ConflictAlreadyLinked()
        return object()

    monkeypatch.setattr(resolver.reading_lists, "fill_link", fill_link)

    result = resolver.repair_links(sample_user.id)

    assert len(calls) == 2
    assert result.stats.conflicts_skipped == 1
    assert result.stats.reading_lists_repaired == 1


def test_entry_filled_meanwhile_counts_as_conflict(monkeypatch, resolver, sample_user, make_book,
                                                   sample_reading_list):
    make_book("Dune", author="Frank Herbert")
    monkeypatch.setattr(resolver.reading_lists, "fill_link", lambda *args: None)

    result = resolver.repair_links(sample_user.id)

    assert result.linked == []
    assert result.stats.conflicts_skipped == 1


def test_repair_links_for_challenge(db_session, resolver, sample_user, make_book, sample_challenge,
                                    challenge_books):
    repo = ChallengeRepository(db_session)
    repo.create_progress(sample_user.id, sample_challenge)
    book = make_book("Suç ve Ceza", author="Dostoyevski")

    result = resolver.repair_links(sample_user.id)

    assert result.stats.challenges_scanned == 3
    assert result.stats.challenges_repaired == 1
    main = repo.get_user_book(sample_user.id, challenge_books["Suç ve Ceza"].id)
    assert main.linked_book_id == book.id
    assert result.linked[0].kind is LinkKind.CHALLENGE
    assert result.linked[0].target_id == main.id


def test_reading_lists_and_challenges_in_one_run(db_session, resolver, sample_user, make_book,
                                               sample_challenge, sample_reading_list):
    ChallengeRepository(db_session).create_progress(sample_user.id, sample_challenge)
    make_book("Solaris", author="Stanislaw Lem")
    make_book("Dune", author="Frank Herbert")

    result = resolver.repair_links(sample_user.id)

    assert result.stats.reading_lists_repaired == 1
    assert result.stats.challenges_repaired == 1


def test_repair_requires_user(resolver):
    with pytest.raises(Unauthorized):
        resolver.repair_links(None)


def test_count_broken_links(db_session, resolver, sample_user, sample_challenge, list_entries):
    ReadingListRepository(db_session).create_link(sample_user.id, list_entries["Dune"].id, None)
    ChallengeRepository(db_session).create_progress(sample_user.id, sample_challenge)

    counts = resolver.count_broken_links(sample_user.id)

    assert (counts.reading_lists, counts.challenges, counts.total) == (1, 3, 4)
