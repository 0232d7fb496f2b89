from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Sequence


@dataclass(frozen=True)
class AuthorIdentity:
    name: str | None = None
    face: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.name and not self.face


@dataclass(frozen=True)
class NormalizedItem:
    """A uniform feed item built from one dynamic, whatever its post type."""

    title: str
    description: str
    link: str | None = None
    author: str = ""
    pub_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "author": self.author,
            "pubDate": _iso(self.pub_date),
        }


@dataclass(frozen=True)
class FeedEnvelope:
    title: str
    link: str
    description: str
    image: str | None = None
    items: Sequence[NormalizedItem] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "description": self.description,
            "image": self.image,
            "items": [item.to_dict() for item in self.items],
        }


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime | None:
    """Epoch seconds (int, float or numeric string) to an aware UTC datetime."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            seconds = float(s)
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        seconds = float(value)
    else:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
