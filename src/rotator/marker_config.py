"""Marker configuration persistence (YAML).

File format::

    markers:
      - id: "12345"
        percentage: 50
      - id: "67890"
        percentage: 50
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import yaml
from pydantic import ValidationError as PydanticValidationError

from src.common.models import Marker

from .errors import ValidationError
from .validation import validate_markers

logger = logging.getLogger(__name__)


def parse_marker_spec(spec: str) -> Marker:
    """Parse ``ID:PERCENT`` (e.g. ``"12345:50"``) into a Marker."""
    marker_id, sep, percentage = spec.rpartition(":")
    if not sep or not marker_id:
        raise ValidationError(f"Expected ID:PERCENT, got {spec!r}")
    try:
        return Marker(id=marker_id, target_percentage=float(percentage))
    except (ValueError, PydanticValidationError) as exc:
        raise ValidationError(f"Invalid marker {spec!r}: {exc}") from exc


def markers_from_dicts(entries: Sequence[dict]) -> list[Marker]:
    """Build markers from ``{"id", "percentage"}`` mappings."""
    markers = []
    for entry in entries:
        try:
            markers.append(
                Marker(
                    id=str(entry["id"]),
                    target_percentage=float(
                        entry.get("percentage", entry.get("target_percentage", 0))
                    ),
                )
            )
        except (KeyError, TypeError, ValueError, PydanticValidationError) as exc:
            raise ValidationError(f"Invalid marker entry {entry!r}: {exc}") from exc
    return markers


def load_marker_config(path: Path) -> list[Marker]:
    """Load markers from a YAML file. A missing file yields no markers."""
    if not path.exists():
        logger.warning("Marker config %s not found", path)
        return []

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    markers = markers_from_dicts(data.get("markers") or [])
    logger.info("Loaded %d markers from %s", len(markers), path)
    return markers


def save_marker_config(path: Path, markers: Sequence[Marker]) -> None:
    """Validate and save markers to a YAML file.

    Raises:
        ValidationError: If the configuration is invalid; nothing is written.
    """
    validate_markers(markers)
    data = {
        "markers": [
            {"id": m.id, "percentage": m.target_percentage} for m in markers
        ]
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)

    logger.info("Saved %d markers to %s", len(markers), path)
