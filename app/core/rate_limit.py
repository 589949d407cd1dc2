"""Rate-limit metadata reported by the Nature Remo API in response headers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from app.core.logging_config import get_logger

logger = get_logger(__name__)

RATE_LIMIT_LIMIT_HEADER = "X-Rate-Limit-Limit"
RATE_LIMIT_REMAINING_HEADER = "X-Rate-Limit-Remaining"
RATE_LIMIT_RESET_HEADER = "X-Rate-Limit-Reset"


@dataclass(frozen=True)
class RateLimitMeta:
    """Snapshot of the API quota as of one response."""

    limit: float = 0.0
    remaining: float = 0.0
    reset: float = 0.0  # Epoch seconds


def _parse_header(headers: Mapping[str, str], name: str) -> float:
    raw = headers.get(name)
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.debug("rate_limit_header_unparsable", header=name, value=raw)
        return 0.0


def extract_meta(headers: Mapping[str, str]) -> RateLimitMeta:
    """Build a RateLimitMeta from response headers.

    Best effort: a missing or malformed header yields 0 for that field and
    never raises. Pass an httpx.Headers (or other case-insensitive mapping)
    to match header names regardless of case.
    """
    return RateLimitMeta(
        limit=_parse_header(headers, RATE_LIMIT_LIMIT_HEADER),
        remaining=_parse_header(headers, RATE_LIMIT_REMAINING_HEADER),
        reset=_parse_header(headers, RATE_LIMIT_RESET_HEADER),
    )
