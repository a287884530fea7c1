"""YOURLS API client — shortening backend and performance data source.

Both operations go through the same signed form-encoded POST endpoint:

- ``action=shorturl``: shorten a long URL
- ``action=stats&filter=last``: list the most recent short links with clicks

Calls are sequential and spaced by a minimum interval. Failures are never
retried here; they surface as ``BackendUnavailable``.

Usage:
    with YourlsClient() as client:
        result = client.shorten("https://www.aviasales.ru/?marker=123")
        recent = client.fetch_recent(500)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

from src.common.config import YourlsSettings, get_yourls_signature, settings
from src.common.models import RawLinkRecord
from src.rotator.aggregator import extract_marker
from src.rotator.errors import BackendUnavailable, ValidationError

from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

MAX_RECENT_LIMIT = 1000


@dataclass(frozen=True)
class ShortenResult:
    """Parsed ``action=shorturl`` response."""
    status: str
    short_url: Optional[str] = None
    message: str = ""
    title: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "success" and bool(self.short_url)


def _to_int(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


class YourlsClient:
    """HTTP client for a YOURLS ``yourls-api.php`` endpoint."""

    def __init__(
        self,
        config: YourlsSettings | None = None,
        signature: str | None = None,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.config = config or settings.yourls
        self._signature = signature or get_yourls_signature()
        self._session = session or requests.Session()
        self._rate_limiter = rate_limiter or RateLimiter(
            self.config.min_request_interval_seconds
        )

    @property
    def api_url(self) -> str:
        return self.config.api_url

    def _post(self, action: str, **params: Any) -> dict:
        """Send a signed API call and return the decoded JSON body.

        Raises:
            BackendUnavailable: On transport errors, HTTP errors or a
                non-JSON body.
        """
        data = {
            "signature": self._signature,
            "action": action,
            "format": "json",
            **{k: v for k, v in params.items() if v is not None},
        }

        self._rate_limiter.wait()
        try:
            resp = self._session.post(
                self.api_url,
                data=data,
                timeout=self.config.request_timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as exc:
            logger.warning("YOURLS %s request failed: %s", action, exc)
            raise BackendUnavailable(f"YOURLS {action} request failed: {exc}") from exc
        except ValueError as exc:
            raise BackendUnavailable(f"YOURLS {action} returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise BackendUnavailable(f"YOURLS {action} returned unexpected payload")
        return body

    def shorten(self, long_url: str, title: str | None = None) -> ShortenResult:
        """Shorten ``long_url``. Without a title YOURLS fetches the page title.

        Returns the parsed result whether or not YOURLS accepted the URL;
        check ``ShortenResult.ok``.
        """
        body = self._post("shorturl", url=long_url, title=title)
        return ShortenResult(
            status=str(body.get("status", "")),
            short_url=body.get("shorturl"),
            message=str(body.get("message", "")),
            title=str(body.get("title") or ""),
        )

    def fetch_recent(self, limit: int = 500) -> list[RawLinkRecord]:
        """Fetch the ``limit`` most recent short links with click counts.

        Raises:
            ValidationError: If ``limit`` is outside 1..1000.
            BackendUnavailable: If the API call fails or reports an error.
        """
        if not 1 <= limit <= MAX_RECENT_LIMIT:
            raise ValidationError(f"Limit must be between 1 and {MAX_RECENT_LIMIT}")

        body = self._post("stats", filter="last", limit=str(limit))
        if body.get("status") == "error":
            raise BackendUnavailable(
                body.get("message") or "Failed to fetch recent links"
            )

        links = body.get("links") or {}
        entries = links.values() if isinstance(links, dict) else links
        records = [
            RawLinkRecord(
                short_url=str(entry.get("shorturl", "")),
                original_url=str(entry.get("url", "")),
                raw_marker=extract_marker(str(entry.get("url", ""))),
                clicks=_to_int(entry.get("clicks")),
                timestamp=str(entry.get("timestamp", "")),
                title=str(entry.get("title") or ""),
            )
            for entry in entries
        ]
        logger.info("Fetched %d recent links from YOURLS", len(records))
        return records

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def __enter__(self) -> YourlsClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
