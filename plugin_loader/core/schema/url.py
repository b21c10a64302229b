from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlsplit


@dataclass(frozen=True)
class UrlParts:
    scheme: Optional[str]
    host: Optional[str]
    path: Optional[str]


def parse_url(value: str) -> Optional[UrlParts]:
    """Split ``value`` into scheme/host/path; an empty path becomes ``/``."""
    try:
        parts = urlsplit(value)
        host = parts.hostname
    except ValueError:
        return None

    return UrlParts(
        scheme=parts.scheme or None,
        host=host or None,
        path=parts.path or "/",
    )


def validate_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parts = parse_url(value)
    return bool(parts and parts.scheme and parts.host and parts.path)
