from __future__ import annotations

from typing import Any, Mapping

from .payload import RawPost, dig, has, text


def _first_text(*values: Any) -> str | None:
    for value in values:
        s = text(value)
        if s is not None:
            return s
    return None


def _as_post(post: Any) -> Mapping[str, Any]:
    return post if isinstance(post, Mapping) else {}


def title(post: RawPost | None) -> str:
    data = _as_post(post)
    return (
        _first_text(
            data.get("title"),
            data.get("description"),
            data.get("content"),
            dig(data, "vest", "content"),
        )
        or ""
    )


def _campaign_body(data: Mapping[str, Any]) -> str | None:
    vest = text(dig(data, "vest", "content"))
    if vest is None:
        return None
    sketch = data.get("sketch")
    if not has(sketch):
        return vest
    sketch_title = text(dig(sketch, "title")) or ""
    sketch_desc = text(dig(sketch, "desc_text")) or ""
    return f"{vest}<br>{sketch_title}<br>{sketch_desc}"


def description(post: RawPost | None) -> str:
    """
    Body text of a payload; each candidate targets one post variant.

    `dynamic` is the repost comment, `desc` a video, `description` an image
    post, `content` a text or poll post, `summary` an article, the vest
    wrapper a campaign page and `intro` an audio track.
    """
    data = _as_post(post)
    return (
        _first_text(
            data.get("dynamic"),
            data.get("desc"),
            data.get("description"),
            data.get("content"),
            data.get("summary"),
        )
        or _campaign_body(data)
        or text(data.get("intro"))
        or ""
    )


def episode_reference(post: RawPost | None) -> str:
    data = _as_post(post)
    season_title = text(dig(data, "apiSeasonInfo", "title"))
    if season_title is None:
        return ""
    out = f"//转发自: {season_title}"
    index_title = text(data.get("index_title"))
    if index_title is not None:
        out += f"<br>{index_title}"
    return out


def origin_author(post: RawPost | None) -> str:
    data = _as_post(post)
    return (
        _first_text(
            data.get("uname"),
            dig(data, "author", "name"),
            dig(data, "upper", "name"),
            dig(data, "user", "uname"),
            dig(data, "user", "name"),
            dig(data, "owner", "name"),
        )
        or ""
    )


def origin_title(post: RawPost | None) -> str:
    t = text(_as_post(post).get("title"))
    return f"{t}<br>" if t is not None else ""


def select_body(card: RawPost | None) -> Mapping[str, Any]:
    """Use the `item` wrapper of text and image posts when it carries a title."""
    data = _as_post(card)
    item = data.get("item")
    if isinstance(item, Mapping) and title(item):
        return item
    return data


def origin_body(origin: RawPost | None) -> Mapping[str, Any]:
    data = _as_post(origin)
    item = data.get("item")
    if isinstance(item, Mapping) and item:
        return item
    return data
