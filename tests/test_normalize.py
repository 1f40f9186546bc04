"""
Tests for company-name normalization and query sanitizing.
"""

import pytest
from companycheck.normalize import normalize_text, sanitize_query, cache_key


class TestNormalizeText:
    """Test the comparison form of company names."""

    def test_lowercases_and_trims(self):
        assert normalize_text("  ACME Trading  ") == "acme trading"

    def test_ampersand_becomes_and(self):
        assert normalize_text("Sobha & Co. LLC") == normalize_text("sobha and co")
        assert normalize_text("Sobha & Co. LLC") == "sobha and co"

    @pytest.mark.parametrize("raw", [
        "Acme LLC",
        "Acme L.L.C",
        "Acme L.L.C.",
        "Acme llc",
        "Acme FZE",
        "Acme F.Z.E.",
        "Acme, LLC",
        "Acme (FZE)",
    ])
    def test_strips_legal_suffixes(self, raw):
        assert normalize_text(raw) == "acme"

    def test_suffix_only_removed_as_whole_word(self):
        """'llc' inside another word stays."""
        assert normalize_text("Wellcare Fzeta") == "wellcare fzeta"
        assert normalize_text("Dllc Holdings") == "dllc holdings"

    def test_removes_punctuation_and_collapses_spaces(self):
        assert normalize_text("Al-Futtaim   (Group) , Ltd.") == "alfuttaim group ltd"

    def test_empty_and_none(self):
        assert normalize_text("") == ""
        assert normalize_text(None) == ""
        assert normalize_text("   ") == ""
        assert normalize_text("LLC") == ""

    def test_non_ascii_letters_dropped(self):
        assert normalize_text("Café Nöel") == "caf nel"

    @pytest.mark.parametrize("raw", [
        "Sobha & Co. LLC",
        "acme l-l-c",
        "A.B.C. F.Z.E Trading",
        "  Mixed   CASE &&  stuff!! ",
        "l'lc fze",
        "",
    ])
    def test_idempotent(self, raw):
        once = normalize_text(raw)
        assert normalize_text(once) == once

    def test_case_insensitive(self):
        assert normalize_text("SOBHA REALTY") == normalize_text("sobha realty")


class TestSanitizeQuery:
    """Test raw query sanitizing."""

    def test_strips_unsafe_characters(self):
        assert sanitize_query("<b>\"Acme's\"</b> `co`") == "bAcmes/b co"

    def test_strips_newlines(self):
        assert sanitize_query("Acme\r\nTrading\n") == "AcmeTrading"

    def test_trims_and_truncates(self):
        raw = "  " + "x" * 150 + "  "
        assert sanitize_query(raw) == "x" * 100

    def test_empty_after_sanitizing(self):
        assert sanitize_query("<>'\"`") == ""
        assert sanitize_query("   \n ") == ""
        assert sanitize_query(None) == ""

    def test_keeps_inner_spacing(self):
        assert sanitize_query(" Sobha  Realty ") == "Sobha  Realty"


class TestCacheKey:
    def test_prefix_and_lowercase(self):
        assert cache_key("Sobha Realty") == "search_sobha realty"
