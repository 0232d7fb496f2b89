from __future__ import annotations

import html
import re
from typing import Any, Mapping
from urllib.parse import unquote

from .payload import RawPost, dig, has, text

_PLAYER_URL = "https://www.bilibili.com/blackboard/html5mobileplayer.html"
_HTTP_SCHEME_RE = re.compile(r"^http:", re.IGNORECASE)


def _img(src: Any) -> str:
    s = text(src)
    if not s:
        return ""
    return f'<img src="{html.escape(s, quote=True)}">'


def _as_post(post: Any) -> Mapping[str, Any]:
    return post if isinstance(post, Mapping) else {}


def _iter_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def collect_images(post: RawPost | None) -> str:
    """
    Image tags for every media category a payload carries.

    Categories are independent and concatenate in a fixed order: inline
    pictures, article covers, video cover, audio/episode/live/clip cover,
    campaign cover.
    """
    data = _as_post(post)
    parts: list[str] = []

    for picture in _iter_list(data.get("pictures")):
        parts.append(_img(dig(picture, "img_src")))

    for url in _iter_list(data.get("image_urls")):
        parts.append(_img(url))

    if has(data.get("pic")):
        parts.append(_img(data.get("pic")))

    cover = data.get("cover")
    unclipped = dig(cover, "unclipped")
    if has(unclipped):
        parts.append(_img(unclipped))
    elif has(cover) and not isinstance(cover, Mapping):
        parts.append(_img(cover))

    parts.append(_img(dig(data, "sketch", "cover_url")))

    return "".join(parts)


def _dimension(value: Any) -> str:
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return html.escape(str(value or ""), quote=True)


def collect_inline_video(post: RawPost | None, *, disable_embed: bool = False) -> str:
    """
    `<video>` element for short clips that expose a raw stream URL.

    Two sources are emitted, https first: the upstream hands out http URLs
    that also answer over https, though not always reliably, and some
    readers refuse mixed content.
    """
    if disable_embed:
        return ""
    data = _as_post(post)
    raw = text(data.get("video_playurl"))
    if raw is None:
        return ""

    url = unquote(raw)
    secure = _HTTP_SCHEME_RE.sub("https:", url)

    width = _dimension(data.get("width"))
    height = _dimension(data.get("height"))
    return (
        f'<video width="{width}" height="{height}" controls>'
        f'<source src="{html.escape(secure, quote=True)}">'
        f'<source src="{html.escape(url, quote=True)}">'
        "</video>"
    )


def player_iframe(aid: Any) -> str:
    return (
        f'<iframe src="{_PLAYER_URL}?aid={aid}&high_quality=1&autoplay=0" '
        'width="650" height="477" scrolling="no" border="0" frameborder="no" '
        'framespacing="0" allowfullscreen="true"></iframe>'
    )


def embed(post: RawPost | None, *, disable_embed: bool = False) -> str:
    if disable_embed:
        return ""
    aid = _as_post(post).get("aid")
    if not has(aid):
        return ""
    return f"<br><br>{player_iframe(aid)}<br>"
