from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .payload import PostKind, RawPost, classify, dig, has, text

DYNAMIC_BASE = "https://t.bilibili.com"
VIDEO_BASE = "https://www.bilibili.com/video"
ARTICLE_BASE = "https://www.bilibili.com/read"
AUDIO_BASE = "https://www.bilibili.com/audio"
LIVE_BASE = "https://live.bilibili.com"

_LABELS: dict[PostKind, str] = {
    PostKind.VIDEO: "视频",
    PostKind.ARTICLE: "专栏",
    PostKind.AUDIO: "音频",
    PostKind.LIVESTREAM: "直播间",
    PostKind.CAMPAIGN: "活动",
    PostKind.EPISODE: "",
    PostKind.LINK: "",
}


@dataclass(frozen=True)
class ResolvedLink:
    url: str
    kind: PostKind

    @property
    def label(self) -> str:
        return _LABELS.get(self.kind, "")

    def line(self) -> str:
        return f"<br>{self.label}地址：<a href={self.url}>{self.url}</a>"


def _id_str(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return text(value)


def entry_bvid(entry: Mapping[str, Any] | None, *, origin: bool = False) -> str | None:
    """BV id from the entry envelope, preferring the origin's when asked for it."""
    own = text(dig(entry, "desc", "bvid"))
    reposted = text(dig(entry, "desc", "origin", "bvid"))
    if origin:
        return reposted or own
    return own or reposted


def resolve_link(
    post: RawPost | None,
    *,
    bvid: str | None = None,
    use_avid: bool = False,
) -> ResolvedLink | None:
    """
    Canonical content URL for a payload, picked by its classified kind.

    Returns None for text, poll and image posts, which have no content page.
    """
    if not isinstance(post, Mapping):
        return None

    kind = classify(post)

    if kind is PostKind.VIDEO:
        aid = _id_str(post.get("aid"))
        if bvid and not use_avid:
            return ResolvedLink(f"{VIDEO_BASE}/{bvid}", kind)
        if aid is None:
            return None
        return ResolvedLink(f"{VIDEO_BASE}/av{aid}", kind)

    if kind is PostKind.ARTICLE:
        return ResolvedLink(f"{ARTICLE_BASE}/cv{_id_str(post.get('id')) or ''}", kind)

    if kind is PostKind.AUDIO:
        return ResolvedLink(f"{AUDIO_BASE}/au{_id_str(post.get('id')) or ''}", kind)

    if kind is PostKind.LIVESTREAM:
        roomid = _id_str(post.get("roomid"))
        return ResolvedLink(f"{LIVE_BASE}/{roomid}", kind) if roomid else None

    if kind is PostKind.CAMPAIGN:
        target = text(dig(post, "sketch", "target_url"))
        return ResolvedLink(target, kind) if target else None

    if kind in (PostKind.EPISODE, PostKind.LINK):
        url = text(post.get("url"))
        return ResolvedLink(url, kind) if url else None

    return None


def link_line(link: ResolvedLink | None) -> str:
    return link.line() if link is not None else ""


def dynamic_permalink(body: RawPost | None, entry: Mapping[str, Any] | None) -> str | None:
    dynamic_id = None
    if isinstance(body, Mapping) and has(body.get("dynamic_id")):
        dynamic_id = _id_str(body.get("dynamic_id"))
    if dynamic_id is None:
        dynamic_id = _id_str(dig(entry, "desc", "dynamic_id_str")) or _id_str(
            dig(entry, "desc", "dynamic_id")
        )
    if dynamic_id is None:
        return None
    return f"{DYNAMIC_BASE}/{dynamic_id}"


def choose_permalink(
    permalink: str | None,
    links: Iterable[ResolvedLink | None],
    *,
    direct_link: bool,
) -> str | None:
    """
    Final item link: the dynamic page, or the content URL with direct links on.

    Links are applied in evaluation order, so for a repost the origin's URL
    wins over the main post's.
    """
    if not direct_link:
        return permalink
    link = permalink
    for resolved in links:
        if resolved is not None and resolved.url:
            link = resolved.url
    return link
