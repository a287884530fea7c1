"""Shared test fixtures for the link rotator."""

import sys
from pathlib import Path

import pytest

# Ensure src is importable
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.common.config import RotationSettings
from src.common.models import Marker, RawLinkRecord
from src.rotator.errors import BackendUnavailable
from src.yourls.client import ShortenResult


BASE_LINK = "https://www.aviasales.ru/search"


class FakeYourls:
    """In-memory stand-in for the YOURLS shortening backend and stats source."""

    def __init__(
        self,
        recent: list[RawLinkRecord] | None = None,
        fail_at: int | None = None,
        fetch_error: Exception | None = None,
    ):
        self.recent = recent or []
        self.fail_at = fail_at
        self.fetch_error = fetch_error
        self.fetch_calls: list[int] = []
        self.shortened: list[str] = []

    def fetch_recent(self, limit: int) -> list[RawLinkRecord]:
        self.fetch_calls.append(limit)
        if self.fetch_error:
            raise self.fetch_error
        return list(self.recent)

    def shorten(self, long_url: str, title: str | None = None) -> ShortenResult:
        self.shortened.append(long_url)
        if self.fail_at is not None and len(self.shortened) == self.fail_at:
            return ShortenResult(status="fail", message="error:url")
        return ShortenResult(
            status="success",
            short_url=f"https://smkt.us/{len(self.shortened)}",
        )


def raw_link(marker: str, clicks: int, url: str | None = None, short: str | None = None) -> RawLinkRecord:
    """Build a recent-link record for an aviasales URL carrying ``marker``."""
    original = url or f"https://www.aviasales.ru/search/?marker={marker}"
    return RawLinkRecord(
        short_url=short or f"https://smkt.us/{marker}-{clicks}",
        original_url=original,
        raw_marker=marker,
        clicks=clicks,
        timestamp="2024-05-10 10:00:00",
    )


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def markers() -> list[Marker]:
    """Three markers with 50/30/20 targets."""
    return [
        Marker(id="A", target_percentage=50),
        Marker(id="B", target_percentage=30),
        Marker(id="C", target_percentage=20),
    ]


@pytest.fixture
def rotation_settings() -> RotationSettings:
    """Default rotation settings, independent of config files and env."""
    return RotationSettings()


@pytest.fixture
def fake_yourls() -> FakeYourls:
    return FakeYourls()


@pytest.fixture
def backend_down() -> FakeYourls:
    return FakeYourls(fetch_error=BackendUnavailable("YOURLS stats request failed: timeout"))


@pytest.fixture
def make_link():
    """Factory for recent-link records."""
    return raw_link


@pytest.fixture
def make_yourls():
    """Factory for fake YOURLS backends."""
    return FakeYourls
