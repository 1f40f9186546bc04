"""
Search orchestration across all monitored compliance lists.

A query is sanitized, looked up in the cache, and on a miss fanned out to
every registered source concurrently. Rows are scored, filtered, given an
effective priority, ranked, collision-resolved so a delisted entry is never
hidden behind another classification of the same name, truncated and cached.
"""

import asyncio
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .cache import SearchCache
from .client import RecordSourceClient, SourceQueryError
from .logger import StructuredLogger, get_logger
from .normalize import cache_key, normalize_text, sanitize_query
from .records import MatchRecord, deserialize, serialize
from .schema import validate_row
from .scoring import is_relevant, score
from .sources import SOURCES, SourceDescriptor, Tier, demotion_floor, effective_priority

ROW_LIMIT = 100
MAX_RESULTS = 25
REQUEST_TIMEOUT = 10.0
SEARCH_TIMEOUT = 10.0


class SearchTimeoutError(Exception):
    """The whole search exceeded its end-to-end time budget."""

    def __init__(self, message: str = "Search timed out. Please check your connection and retry."):
        super().__init__(message)


def build_matches(
    source: SourceDescriptor,
    rows: Iterable[Any],
    query: str,
    sources: Sequence[SourceDescriptor] = SOURCES,
    floor: Optional[int] = None,
) -> List[MatchRecord]:
    """Score one source's rows against `query`, keeping the relevant ones."""
    matches: List[MatchRecord] = []
    for row in rows:
        if validate_row(row, source.column):
            continue
        name = row[source.column]
        match_score = score(query, name)
        if not is_relevant(match_score):
            continue
        matches.append(
            MatchRecord(
                display_name=name,
                tier=source.tier,
                priority=effective_priority(source, match_score, sources, floor),
                source_id=source.source_id,
                label=source.label,
                match_score=match_score,
                fields=dict(row),
            )
        )
    return matches


def collect_matches(
    batches: Iterable[Tuple[SourceDescriptor, Iterable[Any]]],
    query: str,
    sources: Sequence[SourceDescriptor] = SOURCES,
) -> List[MatchRecord]:
    """
    Matches of every (source, rows) batch with effective priorities applied.

    Fuzzy DELISTED hits are demoted to the lowest precedence held by the
    TML/GOOD matches of the same result set.
    """
    batches = [(source, list(rows)) for source, rows in batches]
    matches: List[MatchRecord] = []
    for source, rows in batches:
        if source.tier is not Tier.DELISTED:
            matches.extend(build_matches(source, rows, query, sources))
    floor = demotion_floor((m.priority for m in matches), sources)

    delisted: List[MatchRecord] = []
    for source, rows in batches:
        if source.tier is Tier.DELISTED:
            delisted.extend(build_matches(source, rows, query, sources, floor))
    # DELISTED first so ties with the floor rank them ahead
    return delisted + matches


def rank_matches(records: Iterable[MatchRecord]) -> List[MatchRecord]:
    """Ascending effective priority, then descending match score. Stable."""
    return sorted(records, key=lambda r: (r.priority, -r.match_score))


def resolve_duplicates(records: Iterable[MatchRecord]) -> List[MatchRecord]:
    """
    Group ranked records by normalized display name (first-appearance order).

    A group holding both DELISTED and TML/GOOD records emits its DELISTED
    records first; every other group keeps its order.
    """
    groups: "OrderedDict[str, List[MatchRecord]]" = OrderedDict()
    for r in records:
        groups.setdefault(normalize_text(r.display_name), []).append(r)

    resolved: List[MatchRecord] = []
    for members in groups.values():
        delisted = [r for r in members if r.tier is Tier.DELISTED]
        others = [r for r in members if r.tier is not Tier.DELISTED]
        if len(members) > 1 and delisted and others:
            resolved.extend(delisted + others)
        else:
            resolved.extend(members)
    return resolved


class CompanySearch:
    def __init__(
        self,
        client: RecordSourceClient,
        cache: SearchCache,
        sources: Sequence[SourceDescriptor] = SOURCES,
        *,
        row_limit: int = ROW_LIMIT,
        max_results: int = MAX_RESULTS,
        request_timeout: float = REQUEST_TIMEOUT,
        search_timeout: float = SEARCH_TIMEOUT,
        logger: Optional[StructuredLogger] = None,
    ):
        self.client = client
        self.cache = cache
        self.sources = tuple(sources)
        self.row_limit = min(row_limit, ROW_LIMIT)
        self.max_results = max_results
        self.request_timeout = request_timeout
        self.search_timeout = search_timeout
        self.logger = logger or get_logger()

    async def search(self, query: str, force_refresh: bool = False) -> List[MatchRecord]:
        """
        Ranked, classified matches for `query` across all sources.

        Raises:
            ConfigurationError: Record-source credentials are absent
            SearchTimeoutError: The search exceeded `search_timeout`
        """
        # Own pool, released without joining, so hung source calls are abandoned
        executor = ThreadPoolExecutor(
            max_workers=max(len(self.sources), 1), thread_name_prefix="companycheck-source"
        )
        try:
            return await asyncio.wait_for(
                self._search(query, force_refresh, executor), timeout=self.search_timeout
            )
        except asyncio.TimeoutError:
            self.logger.error("Search timed out", query=query, timeout=self.search_timeout)
            raise SearchTimeoutError()
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    async def refresh(self, query: str) -> List[MatchRecord]:
        """Drop the cached entry for `query` and search the sources again."""
        clean = sanitize_query(query)
        if clean:
            self.cache.invalidate(cache_key(clean))
        return await self.search(query, force_refresh=True)

    def search_sync(self, query: str, force_refresh: bool = False) -> List[MatchRecord]:
        return asyncio.run(self.search(query, force_refresh))

    def clear_cache(self) -> None:
        self.cache.clear()

    async def _search(
        self, query: str, force_refresh: bool, executor: ThreadPoolExecutor
    ) -> List[MatchRecord]:
        clean = sanitize_query(query)
        if not clean:
            return []

        self.logger.record_search()
        key = cache_key(clean)
        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                self.logger.record_cache_hit()
                self.logger.debug("Cache hit", key=key)
                return deserialize(cached)
            self.logger.record_cache_miss()

        self.client.ensure_configured()

        outcomes = await asyncio.gather(
            *(self._query_source(source, clean, executor) for source in self.sources),
            return_exceptions=True,
        )

        batches: List[Tuple[SourceDescriptor, List[Dict[str, Any]]]] = []
        for source, outcome in zip(self.sources, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                self.logger.error(
                    "Unexpected source failure",
                    source=source.source_id,
                    error=f"{type(outcome).__name__}: {outcome}",
                )
                continue
            batches.append((source, outcome))

        matches = collect_matches(batches, clean, self.sources)

        results = resolve_duplicates(rank_matches(matches))[: self.max_results]
        self.logger.info(
            "Search complete", query=clean, matches=len(matches), returned=len(results)
        )

        self.cache.set(key, serialize(results))
        return results

    async def _query_source(
        self, source: SourceDescriptor, query: str, executor: ThreadPoolExecutor
    ) -> List[Dict[str, Any]]:
        """One source's rows; any failure of this source yields no rows."""
        loop = asyncio.get_running_loop()
        try:
            result = await asyncio.wait_for(
                loop.run_in_executor(
                    executor,
                    self.client.query,
                    source.source_id,
                    source.column,
                    query,
                    self.row_limit,
                ),
                timeout=self.request_timeout,
            )
        except SourceQueryError as e:
            self.logger.debug("Source skipped", source=source.source_id, reason=e.reason)
            return []
        except asyncio.TimeoutError:
            self.logger.record_source_failure(source.source_id, "Timeout")
            self.logger.warning(
                "Source query timed out", source=source.source_id, timeout=self.request_timeout
            )
            return []
        return result.rows
