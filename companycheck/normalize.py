import re

# Legal-entity suffixes removed as whole words (dots optional: "L.L.C", "F.Z.E").
_SUFFIX_RE = re.compile(r"\b(?:l\.?l\.?c|f\.?z\.?e)\b", re.IGNORECASE)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_UNSAFE_QUERY_RE = re.compile(r"[<>\"'`]")
_NEWLINE_RE = re.compile(r"[\r\n]")

MAX_QUERY_LENGTH = 100
CACHE_KEY_PREFIX = "search_"


def _collapse(s: str) -> str:
    return " ".join(s.split())


def normalize_text(text: str | None) -> str:
    """Canonical comparison form of a company name.

    "Sobha & Co. LLC" -> "sobha and co"
    """
    if not text:
        return ""
    s = text.strip().lower()
    s = s.replace("&", "and")
    s = _SUFFIX_RE.sub("", s)
    s = _NON_ALNUM_RE.sub("", s)
    # Stripping punctuation can expose a suffix ("l-l-c" -> "llc")
    s = _SUFFIX_RE.sub("", s)
    return _collapse(s)


def sanitize_query(raw: str | None) -> str:
    """Drop markup/quote characters and newlines, trim, cap the length."""
    if not raw:
        return ""
    s = _UNSAFE_QUERY_RE.sub("", raw)
    s = _NEWLINE_RE.sub("", s)
    return s.strip()[:MAX_QUERY_LENGTH]


def cache_key(sanitized_query: str) -> str:
    return f"{CACHE_KEY_PREFIX}{sanitized_query.lower()}"
