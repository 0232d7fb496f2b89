from __future__ import annotations

import json
from enum import Enum
from typing import Any, Mapping, Sequence

RawPost = Mapping[str, Any]


def dig(data: Any, *path: str | int) -> Any:
    """
    Walk a nested key/index path through untyped JSON, returning None on any miss.
    """
    cur = data
    for key in path:
        if isinstance(key, int):
            if isinstance(cur, Sequence) and not isinstance(cur, (str, bytes)):
                if -len(cur) <= key < len(cur):
                    cur = cur[key]
                    continue
            return None
        if isinstance(cur, Mapping):
            cur = cur.get(key)
            if cur is None:
                return None
            continue
        return None
    return cur


def text(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def has(value: Any) -> bool:
    # Presence in the JavaScript sense: empty strings, zero and empty containers are absent.
    if value is None or value is False:
        return False
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    if isinstance(value, (int, float)):
        return value != 0
    return True


def parse_card(raw: Any) -> dict[str, Any] | None:
    """
    Decode a serialized card payload.

    Cards arrive as JSON strings embedding 64-bit ids; Python's json keeps them exact.
    Returns None for anything that is not a JSON object.
    """
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


class PostKind(str, Enum):
    VIDEO = "video"
    ARTICLE = "article"
    AUDIO = "audio"
    LIVESTREAM = "livestream"
    CAMPAIGN = "campaign"
    EPISODE = "episode"
    LINK = "link"
    IMAGE_TEXT = "image_text"
    TEXT = "text"


def classify(post: RawPost | None) -> PostKind:
    """
    Tag a payload by the first content signal it carries.

    The order mirrors link dispatch, so a payload resolves to exactly one kind.
    """
    if not isinstance(post, Mapping):
        return PostKind.TEXT
    if has(post.get("aid")):
        return PostKind.VIDEO
    if has(post.get("image_urls")):
        return PostKind.ARTICLE
    if has(post.get("upper")):
        return PostKind.AUDIO
    if has(post.get("roomid")):
        return PostKind.LIVESTREAM
    if has(post.get("sketch")):
        return PostKind.CAMPAIGN
    if has(post.get("url")):
        if has(post.get("apiSeasonInfo")):
            return PostKind.EPISODE
        return PostKind.LINK
    if has(post.get("pictures")):
        return PostKind.IMAGE_TEXT
    return PostKind.TEXT
