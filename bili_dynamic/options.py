from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping
from urllib.parse import parse_qsl

from .config_schema import DisplayDefaults

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

# route parameter name -> DisplayOptions field
_PARAM_FIELDS = {
    "showEmoji": "show_emoji",
    "disableEmbed": "disable_embed",
    "useAvid": "use_avid",
    "directLink": "direct_link",
}


def query_to_bool(value: Any) -> bool | None:
    """Parse a 0/1/true/false style flag; anything else is "not given"."""
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    s = str(value).strip().casefold()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    return None


@dataclass(frozen=True)
class DisplayOptions:
    """Per-request rendering toggles, resolved once and shared read-only by a batch."""

    show_emoji: bool = False
    disable_embed: bool = False
    use_avid: bool = False
    direct_link: bool = False
    display_full_article: bool = False

    @classmethod
    def from_defaults(cls, defaults: DisplayDefaults) -> "DisplayOptions":
        return cls(**defaults.model_dump())

    @classmethod
    def from_params(
        cls,
        params: str | Mapping[str, Any] | None = None,
        *,
        mode: str | None = None,
        base: "DisplayOptions | None" = None,
    ) -> "DisplayOptions":
        """
        Parse route parameters like ``showEmoji=1&useAvid=true``.

        Unknown keys and unparseable values are ignored; `mode=fulltext`
        turns on full article bodies.
        """
        if isinstance(params, str):
            pairs: Mapping[str, Any] = dict(parse_qsl(params, keep_blank_values=True))
        else:
            pairs = params or {}

        updates: dict[str, bool] = {}
        for key, field_name in _PARAM_FIELDS.items():
            parsed = query_to_bool(pairs.get(key))
            if parsed is not None:
                updates[field_name] = parsed

        if mode is None:
            mode = pairs.get("mode")
        if mode is not None:
            updates["display_full_article"] = str(mode).strip().casefold() == "fulltext"

        return replace(base or cls(), **updates)
