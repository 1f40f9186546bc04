"""Record-source client for the Supabase (PostgREST) REST endpoint."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from .config import ConfigurationError, Settings, missing_credentials
from .logger import StructuredLogger, get_logger

DEFAULT_TIMEOUT = 10.0
MAX_ROW_LIMIT = 100


class SourceQueryError(Exception):
    """One source query failed (HTTP status, timeout, network, bad payload)."""

    def __init__(self, source: str, reason: str, error_type: str = "RequestException"):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason
        self.error_type = error_type


@dataclass
class SourceRows:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    total_count: Optional[int] = None


def ilike_filter(value: str) -> str:
    """PostgREST case-insensitive substring filter."""
    return f"ilike.*{value}*"


def parse_total_count(content_range: Optional[str]) -> Optional[int]:
    """'0-24/3573' -> 3573; '*/0' -> 0; unknown total ('0-24/*') -> None."""
    if not content_range or "/" not in content_range:
        return None
    total = content_range.rsplit("/", 1)[1].strip()
    return int(total) if total.isdigit() else None


class RecordSourceClient:
    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str],
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.timeout = timeout
        self.session = session
        self.logger = logger or get_logger()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "RecordSourceClient":
        return cls(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.request_timeout,
            **kwargs,
        )

    def ensure_configured(self) -> None:
        missing = missing_credentials(self.base_url, self.api_key)
        if missing:
            raise ConfigurationError(
                "Supabase credentials not configured. Missing environment variables: "
                + ", ".join(missing)
                + ". Set them in your environment or .env file."
            )

    def _headers(self, count: bool) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if count:
            headers["Prefer"] = "count=exact"
        return headers

    def query(
        self,
        table: str,
        column: str,
        value: str,
        limit: int = MAX_ROW_LIMIT,
        count: bool = False,
    ) -> SourceRows:
        """Fetch rows of `table` whose `column` contains `value`, case-insensitively.

        Args:
            table: Collection (table) name on the record source
            column: Column the filter applies to
            value: Substring to look for
            limit: Row cap, at most 100
            count: Ask the service for the total number of matching rows

        Returns:
            SourceRows with the decoded rows and, if requested, the total count

        Raises:
            ConfigurationError: Credentials absent
            SourceQueryError: On any HTTP error, timeout, request failure or bad payload
        """
        self.ensure_configured()
        url = f"{self.base_url}/rest/v1/{table}"
        params = {
            column: ilike_filter(value),
            "select": "*",
            "limit": min(limit, MAX_ROW_LIMIT),
        }

        self.logger.record_source_attempt(table)
        try:
            get = self.session.get if self.session is not None else requests.get
            resp = get(url, params=params, headers=self._headers(count), timeout=self.timeout)
            resp.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "HTTPError"
            self._fail(table, f"HTTPError_{status}", "Source request failed", url=url, status=status)
            raise SourceQueryError(table, f"request failed ({status})", f"HTTPError_{status}") from e
        except requests.exceptions.Timeout as e:
            self._fail(table, "Timeout", "Source request timed out", url=url)
            raise SourceQueryError(table, "request timed out", "Timeout") from e
        except requests.exceptions.RequestException as e:
            self._fail(table, "RequestException", "Source request error", url=url, error=str(e))
            raise SourceQueryError(table, f"request error: {e}", "RequestException") from e

        try:
            data = resp.json()
        except ValueError as e:
            self._fail(table, "InvalidJSON", "Source returned invalid JSON", url=url)
            raise SourceQueryError(table, "invalid JSON payload", "InvalidJSON") from e
        if not isinstance(data, list):
            self._fail(table, "InvalidPayload", "Source returned a non-array payload", url=url)
            raise SourceQueryError(table, "expected a JSON array of rows", "InvalidPayload")

        self.logger.record_source_success(table)
        total = parse_total_count(resp.headers.get("Content-Range")) if count else None
        self.logger.debug("Source query ok", source=table, rows=len(data), total=total)
        return SourceRows(rows=data, total_count=total)

    def _fail(self, table: str, error_type: str, message: str, **context):
        self.logger.record_source_failure(table, error_type)
        self.logger.warning(message, source=table, **context)
