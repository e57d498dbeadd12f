# tests/test_matching.py

import pytest
from core.matching import match_author, match_title, normalize, similarity, slugify, word_overlap


@pytest.mark.parametrize("raw,expected", [
    ("Marslı (The Martian)", "marsli the martian"),
    ("  Suç   ve  Ceza ", "suc ve ceza"),
    ("İNCE MEMED", "ince memed"),
    ("Çalıkuşu", "calikusu"),
    ("Les Misérables", "les miserables"),
    ("Vakıf 1: Vakıf", "vakif 1 vakif"),
    ("", ""),
    (None, ""),
])
def test_normalize(raw, expected):
    assert normalize(raw) == expected


def test_normalize_is_idempotent():
    for text in ["Marslı (The Martian)", "Ğ Ü Ş İ Ö Ç", "Dune: Çöl Gezegeni", "  x  "]:
        once = normalize(text)
        assert normalize(once) == once


def test_normalize_only_keeps_ascii_alphanumerics():
    result = normalize("Kürk Mantolu Madonna! (2. baskı) & özel")
    assert all(ch.isdigit() or ch == " " or "a" <= ch <= "z" for ch in result)
    assert "  " not in result


def test_slugify():
    assert slugify("Bilim Kurgu") == "bilim-kurgu"
    assert slugify("  Türk Klasikleri: 20. Yüzyıl ") == "turk-klasikleri-20-yuzyil"
    assert slugify(None) == ""


def test_word_overlap_ignores_single_letters():
    assert word_overlap("a tale", "a story") == 0.0
    assert word_overlap("the martian", "the martian chronicles") == pytest.approx(2 / 3)
    assert word_overlap("", "dune") == 0.0


def test_similarity_levels():
    assert similarity("Dune", "dune") == 1.0
    assert similarity("Dune", "Dune Mesihi") == 0.9
    assert similarity("Dune", None) == 0.0


def test_similarity_is_symmetric_and_bounded():
    pairs = [
        ("Dune", "Dune Mesihi"),
        ("The Martian", "The Martian Chronicles"),
        ("Suç ve Ceza", "Ceza"),
        ("Solaris", "Fahrenheit 451"),
    ]
    for a, b in pairs:
        assert similarity(a, b) == similarity(b, a)
        assert 0.0 <= similarity(a, b) <= 1.0


def test_match_title_translated_parenthetical():
    assert match_title("Marslı", "Marslı (The Martian)") >= 0.95


def test_match_title_exact_after_normalization():
    assert match_title("SUÇ VE CEZA", "Suç ve Ceza") == 1.0


def test_match_title_first_word():
    # No containment, but the leading word is the same.
    assert match_title("Vakıf 1: Vakıf", "Vakıf Serisi") == 0.85


def test_match_title_short_first_word_does_not_count():
    assert match_title("Ve Sonra Hiç Kalmadı", "Ve Gün Doğdu") < 0.85


def test_match_title_unrelated():
    assert match_title("Solaris", "Dune") == 0.0
    assert match_title("", "Dune") == 0.0


def test_match_author_surname():
    assert match_author("Dostoyevski", "Fyodor Dostoyevski") >= 0.9


def test_match_author_exact_and_unrelated():
    assert match_author("Isaac Asimov", "isaac  asimov") == 1.0
    assert match_author("Stanislaw Lem", "Andy Weir") == 0.0
    assert match_author(None, "Andy Weir") == 0.0


def test_match_author_folds_diacritics():
    assert match_author("Orhan Pamuk", "Orhan Pâmuk") == 1.0
