"""Boundary validation for rotation requests.

Every check here runs before any backend call.
"""

from __future__ import annotations

from typing import Sequence
from urllib.parse import urlsplit

from src.common.config import RotationSettings, settings
from src.common.models import Marker

from .errors import ValidationError
from .models import RotationRequest


def validate_markers(
    markers: Sequence[Marker],
    tolerance: float | None = None,
) -> None:
    """Check a marker configuration.

    Raises:
        ValidationError: If empty, ids repeat, or percentages don't sum
            to 100 within ``tolerance`` (exclusive, so 101 fails at 1.0).
    """
    tolerance = settings.rotation.percentage_tolerance if tolerance is None else tolerance

    if not markers:
        raise ValidationError("Markers must be a non-empty list")

    seen: set[str] = set()
    for marker in markers:
        if marker.id in seen:
            raise ValidationError(f"Duplicate marker id: {marker.id}")
        seen.add(marker.id)

    total = sum(m.target_percentage for m in markers)
    if abs(total - 100) >= tolerance:
        raise ValidationError(
            f"Marker percentages must sum to 100% (got {total:g}%)"
        )


def validate_base_url(url: str, link_domain: str | None = None) -> None:
    """Check that ``url`` is an absolute http(s) URL in the governed family."""
    domain = link_domain or settings.rotation.link_domain
    if not url or not url.strip():
        raise ValidationError("Original link is required")
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise ValidationError(f"Malformed URL: {url}") from exc
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValidationError(f"Malformed URL: {url}")
    if domain not in url:
        raise ValidationError(f"Invalid URL. Please provide a valid {domain} link")


def validate_request(
    request: RotationRequest,
    config: RotationSettings | None = None,
) -> None:
    """Validate a rotation request in full.

    Raises:
        ValidationError: On the first failed check.
    """
    config = config or settings.rotation

    if isinstance(request.batch_size, bool) or not isinstance(request.batch_size, int):
        raise ValidationError("Batch size must be an integer")
    if not 1 <= request.batch_size <= config.max_batch_size:
        raise ValidationError(
            f"Batch size must be between 1 and {config.max_batch_size}"
        )

    validate_markers(request.markers, tolerance=config.percentage_tolerance)
    validate_base_url(request.original_link, link_domain=config.link_domain)

    if request.subid is not None and ("&" in request.subid or "#" in request.subid):
        raise ValidationError("Subid must not contain '&' or '#'")
