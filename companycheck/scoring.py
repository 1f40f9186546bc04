"""
Match scoring between a search query and a candidate company name.

Responsibilities:
- Compute a deterministic 0-100 score for a (query, candidate) pair.

Non-Responsibilities:
- No source access.
- No priority decisions.

The constants below are heuristics kept for behavioral compatibility;
they are tunable, not structural.
"""

from .normalize import normalize_text

EXACT_SCORE = 100
SUBSTRING_SCORE = 85
RELEVANCE_THRESHOLD = 40


def score(query: str | None, candidate: str | None) -> float:
    """
    Score how well `candidate` answers `query`.

    Rules (first match wins):
    - either side empty after normalization -> 0
    - normalized forms equal -> 100
    - candidate contains query -> 85
    - otherwise percentage of query tokens (len > 1) found inside
      any candidate token
    """
    q = normalize_text(query)
    c = normalize_text(candidate)
    if not q or not c:
        return 0.0

    if q == c:
        return float(EXACT_SCORE)

    if q in c:
        return float(SUBSTRING_SCORE)

    query_tokens = [t for t in q.split() if len(t) > 1]
    if not query_tokens:
        return 0.0
    candidate_tokens = c.split()

    matched = sum(
        1 for qt in query_tokens if any(qt in ct for ct in candidate_tokens)
    )
    return 100.0 * matched / len(query_tokens)


def is_relevant(match_score: float) -> bool:
    return match_score >= RELEVANCE_THRESHOLD
