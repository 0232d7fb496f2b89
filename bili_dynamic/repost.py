from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from . import extract
from .payload import parse_card


@dataclass(frozen=True)
class Unwrapped:
    """
    One feed entry split into its own payload and the reposted original.

    `body` is the sub-record carrying the post's fields; `origin_body` is the
    same for the origin. Only one level of nesting is unwrapped.
    """

    card: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] = field(default_factory=dict)
    origin: Mapping[str, Any] | None = None
    origin_body: Mapping[str, Any] | None = None

    card_ok: bool = True
    origin_ok: bool = True

    @property
    def is_repost(self) -> bool:
        return self.origin is not None


def unwrap(entry: Mapping[str, Any] | None) -> Unwrapped:
    raw_card = entry.get("card") if isinstance(entry, Mapping) else None
    card = parse_card(raw_card)
    card_ok = card is not None
    if card is None:
        card = {}

    origin: Mapping[str, Any] | None = None
    origin_ok = True
    raw_origin = card.get("origin")
    if raw_origin is not None:
        origin = parse_card(raw_origin)
        origin_ok = origin is not None

    return Unwrapped(
        card=card,
        body=extract.select_body(card),
        origin=origin,
        origin_body=extract.origin_body(origin) if origin is not None else None,
        card_ok=card_ok,
        origin_ok=origin_ok,
    )


def repost_prefix(origin: Mapping[str, Any] | None) -> str:
    """
    "forwarded from" line prepended to a repost's body.

    Falls back to the short episode reference when the origin names no
    author, and to nothing when there is no origin at all.
    """
    if origin is None:
        return ""
    author = extract.origin_author(origin)
    if author:
        body = extract.origin_body(origin)
        return (
            f"<br><br>//转发自: @{author}: "
            f"{extract.origin_title(body)}{extract.description(body)}"
        )
    return extract.episode_reference(origin)
