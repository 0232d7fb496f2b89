from __future__ import annotations

import asyncio
import re
from typing import Any, Awaitable, Mapping, Protocol, Sequence

from . import extract
from .author_cache import AuthorCache
from .emoji import emoji_table, substitute_emoji
from .errors import StorageError
from .event_log import EventLogger
from .item import AuthorIdentity, FeedEnvelope, NormalizedItem, parse_timestamp
from .links import choose_permalink, dynamic_permalink, entry_bvid, link_line, resolve_link
from .media import collect_images, collect_inline_video, embed
from .options import DisplayOptions
from .payload import PostKind, classify, dig, text
from .repost import repost_prefix, unwrap

_LINE_BREAK_RE = re.compile(r"\r\n|\n")


class ArticleText(Protocol):
    description: str


class ArticleFetcher(Protocol):
    def __call__(self, cvid: Any, uid: str) -> Awaitable[ArticleText]: ...


class FeedSource(Protocol):
    async def fetch_space_history(self, uid: str) -> list[dict[str, Any]]: ...

    async def fetch_article(self, cvid: Any, uid: str) -> ArticleText: ...


def html_line_breaks(value: str) -> str:
    return _LINE_BREAK_RE.sub("<br>", value or "")


def _dynamic_id(entry: Mapping[str, Any] | None) -> str | None:
    value = dig(entry, "desc", "dynamic_id_str") or dig(entry, "desc", "dynamic_id")
    return str(value) if value is not None else None


async def _full_article_body(
    body: Mapping[str, Any],
    *,
    owner_uid: str,
    fetcher: ArticleFetcher,
    log: EventLogger,
) -> str | None:
    cvid = body.get("id")
    try:
        article = await fetcher(cvid, owner_uid)
    except Exception as e:
        log.exception("article_fetch_failed", exc=e, level="WARN", cvid=cvid)
        return None
    return text(getattr(article, "description", None))


async def normalize_entry(
    entry: Mapping[str, Any],
    *,
    options: DisplayOptions,
    author: AuthorIdentity,
    owner_uid: str,
    article_fetcher: ArticleFetcher | None = None,
    logger: EventLogger | None = None,
) -> NormalizedItem:
    """
    Turn one raw feed entry into a NormalizedItem.

    The description is assembled in a fixed order: body and repost prefix,
    a line break, main then origin link lines, main then origin embeds,
    images, inline videos.
    """
    log = logger or EventLogger.null()
    parts = unwrap(entry)
    dynamic_id = _dynamic_id(entry)

    if not parts.card_ok:
        log.warning("entry_card_unparseable", dynamic_id=dynamic_id)
    if not parts.origin_ok:
        log.warning("entry_origin_unparseable", dynamic_id=dynamic_id)

    body = parts.body
    content = html_line_breaks(extract.description(body))

    if (
        options.display_full_article
        and article_fetcher is not None
        and classify(body) is PostKind.ARTICLE
    ):
        full = await _full_article_body(body, owner_uid=owner_uid, fetcher=article_fetcher, log=log)
        if full:
            content = full

    content = substitute_emoji(content, emoji_table(entry), enabled=options.show_emoji)

    main_link = resolve_link(body, bvid=entry_bvid(entry), use_avid=options.use_avid)
    origin_link = resolve_link(
        parts.origin, bvid=entry_bvid(entry, origin=True), use_avid=options.use_avid
    )

    images = collect_images(body)
    videos = collect_inline_video(body, disable_embed=options.disable_embed)
    if parts.is_repost:
        images += collect_images(parts.origin_body)
        videos += collect_inline_video(parts.origin_body, disable_embed=options.disable_embed)

    description = "".join(
        [
            content,
            repost_prefix(parts.origin),
            "<br>",
            link_line(main_link),
            link_line(origin_link),
            embed(body, disable_embed=options.disable_embed),
            embed(parts.origin, disable_embed=options.disable_embed),
            f"<br>{images}" if images else "",
            f"<br>{videos}" if videos else "",
        ]
    )

    return NormalizedItem(
        title=extract.title(body),
        description=description,
        link=choose_permalink(
            dynamic_permalink(body, entry),
            (main_link, origin_link),
            direct_link=options.direct_link,
        ),
        author=author.name or "",
        pub_date=parse_timestamp(dig(entry, "desc", "timestamp")),
    )


async def _normalize_or_degrade(
    entry: Mapping[str, Any],
    *,
    options: DisplayOptions,
    author: AuthorIdentity,
    owner_uid: str,
    article_fetcher: ArticleFetcher | None,
    log: EventLogger,
) -> NormalizedItem:
    try:
        return await normalize_entry(
            entry,
            options=options,
            author=author,
            owner_uid=owner_uid,
            article_fetcher=article_fetcher,
            logger=log,
        )
    except Exception as e:
        log.exception("entry_degraded", exc=e, level="WARN", dynamic_id=_dynamic_id(entry))
        return NormalizedItem(
            title="",
            description="",
            link=dynamic_permalink(None, entry),
            author=author.name or "",
            pub_date=parse_timestamp(dig(entry, "desc", "timestamp")),
        )


def resolve_author(
    uid: str,
    entries: Sequence[Mapping[str, Any]],
    cache: AuthorCache,
    *,
    logger: EventLogger | None = None,
) -> AuthorIdentity:
    """
    Feed owner's name and avatar: cached values first, else the first entry's profile.

    The result is written back to the cache so later batches can reuse it.
    Cache read or write failures are logged and otherwise ignored.
    """
    log = logger or EventLogger.null()
    try:
        cached = cache.get(uid) or AuthorIdentity()
    except StorageError as e:
        log.exception("author_cache_failed", exc=e, level="WARN", op="get")
        cached = AuthorIdentity()

    profile = dig(entries[0], "desc", "user_profile", "info") if entries else None
    identity = AuthorIdentity(
        name=cached.name or text(dig(profile, "uname")),
        face=cached.face or text(dig(profile, "face")),
    )

    if not identity.is_empty:
        try:
            cache.set(uid, identity)
        except StorageError as e:
            log.exception("author_cache_failed", exc=e, level="WARN", op="set")
    log.info(
        "author_resolved",
        name=identity.name,
        from_cache=bool(cached.name),
    )
    return identity


def build_envelope(uid: str, author: AuthorIdentity, items: Sequence[NormalizedItem]) -> FeedEnvelope:
    name = author.name or str(uid)
    return FeedEnvelope(
        title=f"{name} 的 bilibili 动态",
        link=f"https://space.bilibili.com/{uid}/dynamic",
        description=f"{name} 的 bilibili 动态",
        image=author.face,
        items=tuple(items),
    )


async def normalize_feed(
    uid: str,
    entries: Sequence[Mapping[str, Any]],
    *,
    cache: AuthorCache,
    options: DisplayOptions | None = None,
    article_fetcher: ArticleFetcher | None = None,
    logger: EventLogger | None = None,
) -> FeedEnvelope:
    """
    Normalize one page of entries concurrently.

    Entries share only the resolved author and options, both read-only; a
    failure inside one entry degrades that item and never the batch.
    """
    opts = options or DisplayOptions()
    log = (logger or EventLogger.null()).bind(uid=str(uid))

    author = resolve_author(str(uid), entries, cache, logger=log)

    items = await asyncio.gather(
        *(
            _normalize_or_degrade(
                entry,
                options=opts,
                author=author,
                owner_uid=str(uid),
                article_fetcher=article_fetcher,
                log=log,
            )
            for entry in entries
        )
    )

    log.info("feed_normalized", items=len(items))
    return build_envelope(str(uid), author, items)


async def build_dynamic_feed(
    uid: str,
    *,
    source: FeedSource,
    cache: AuthorCache,
    options: DisplayOptions | None = None,
    logger: EventLogger | None = None,
) -> FeedEnvelope:
    """Fetch a user's latest dynamics and normalize them; fetch failures are fatal."""
    opts = options or DisplayOptions()
    log = logger or EventLogger.null()

    log.info("feed_fetch_started", uid=str(uid))
    entries = await source.fetch_space_history(str(uid))
    log.info("feed_fetched", uid=str(uid), entries=len(entries))

    return await normalize_feed(
        str(uid),
        entries,
        cache=cache,
        options=opts,
        article_fetcher=source.fetch_article if opts.display_full_article else None,
        logger=log,
    )
