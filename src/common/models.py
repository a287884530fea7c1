"""Shared Pydantic data models for the link rotator.

These models define the data contracts between the YOURLS client,
the rotation engine and the analytics store. All modules import from here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

NO_MARKER = "none"


# === Configuration ===

class Marker(BaseModel):
    """A tracking marker and its target share of clicks."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    target_percentage: float = Field(ge=0, le=100, alias="percentage")

    @field_validator("id")
    @classmethod
    def _strip_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("marker id must not be blank")
        return value


# === Performance data ===

class RawLinkRecord(BaseModel):
    """A recent short link as reported by the performance data source."""
    model_config = ConfigDict(frozen=True)

    short_url: str
    original_url: str
    raw_marker: str = NO_MARKER
    clicks: int = Field(default=0, ge=0)
    timestamp: str = ""
    title: str = ""


class PerformanceRecord(BaseModel):
    """Observed clicks for a base marker id (sub-identifier stripped)."""
    model_config = ConfigDict(frozen=True)

    marker_id: str
    clicks: int = Field(ge=0)


# === Output ===

class GeneratedLink(BaseModel):
    """A shortened affiliate link produced for one batch slot."""
    model_config = ConfigDict(frozen=True)

    original_url: str
    short_url: str
    marker_id: str
    subid: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "original_url": self.original_url,
            "short_url": self.short_url,
            "marker": self.marker_id,
            "subid": self.subid,
            "created_at": self.created_at.isoformat(),
        }
