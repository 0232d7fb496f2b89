from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

import httpx
from selectolax.parser import HTMLParser, Node

from .config_schema import BilibiliConfig, RetrySettings
from .errors import ArticleError, UpstreamError
from .event_log import EventLogger
from .retry import OnRetryFn, RetryConfig, RetryEvent, SleepFn, acall_with_retries

_SPACE_HISTORY_PATH = "/dynamic_svr/v1/dynamic_svr/space_history"

_ARTICLE_SELECTORS = (
    ".article-holder",
    "#read-article-holder",
    ".opus-module-content",
)

# Opening tag at the start, closing tag at the end of a container's markup.
_OUTER_TAG_RE = re.compile(r"^<[^>]+>|</[^>]+>$")


@dataclass(frozen=True)
class ArticleData:
    title: str
    description: str


def retry_config_from_settings(settings: RetrySettings) -> RetryConfig:
    return RetryConfig(
        max_attempts=settings.max_attempts,
        base_delay_seconds=settings.base_delay_seconds,
        max_delay_seconds=settings.max_delay_seconds,
        jitter_ratio=settings.jitter_ratio,
    )


def _absolute_src(src: str) -> str:
    s = src.strip()
    if s.startswith("//"):
        return "https:" + s
    return s


def _promote_lazy_images(holder: Node) -> None:
    for img in holder.css("img"):
        lazy = (img.attributes.get("data-src") or "").strip()
        if lazy:
            img.attrs["src"] = _absolute_src(lazy)
            del img.attrs["data-src"]
            continue
        src = (img.attributes.get("src") or "").strip()
        if src:
            img.attrs["src"] = _absolute_src(src)


def extract_article(html: str) -> ArticleData:
    """
    Pull the title and body markup out of an article page.

    Raises ArticleError when no known body container is present.
    """
    tree = HTMLParser(html or "")

    holder: Node | None = None
    for selector in _ARTICLE_SELECTORS:
        holder = tree.css_first(selector)
        if holder is not None:
            break
    if holder is None:
        raise ArticleError("article body container not found")

    _promote_lazy_images(holder)

    title_node = tree.css_first(".title") or tree.css_first("h1") or tree.css_first("title")
    title = title_node.text(strip=True) if title_node is not None else ""

    inner = _OUTER_TAG_RE.sub("", (holder.html or "").strip())
    return ArticleData(title=title, description=inner.strip())


class BilibiliClient:
    """
    Async access to the two upstream endpoints the feed needs.

    The space-history call is fatal on failure; article fetches raise
    ArticleError so callers can degrade a single item.
    """

    def __init__(
        self,
        cookie: str,
        *,
        config: BilibiliConfig | None = None,
        retry: RetryConfig | None = None,
        client: httpx.AsyncClient | None = None,
        logger: EventLogger | None = None,
        on_retry: OnRetryFn | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self._config = config or BilibiliConfig()
        self._retry = retry or RetryConfig()
        self._log = logger or EventLogger.null()
        self._on_retry = on_retry or self._log_retry
        self._sleep_fn = sleep_fn
        self._cookie = (cookie or "").strip()

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=httpx.Timeout(self._config.timeout_seconds),
            headers={"User-Agent": self._config.user_agent},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "BilibiliClient":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()

    def _log_retry(self, event: RetryEvent) -> None:
        self._log.warning(
            "http_retry",
            operation=event.operation,
            attempt=event.failure_attempt,
            next_attempt=event.next_attempt,
            delay_seconds=round(event.delay_seconds, 3),
            reason=event.reason,
            error_type=event.error_type,
        )

    async def _get(self, url: str, *, operation: str, **kwargs: Any) -> httpx.Response:
        async def _do_get() -> httpx.Response:
            resp = await self._client.get(url, **kwargs)
            resp.raise_for_status()
            return resp

        return await acall_with_retries(
            _do_get,
            cfg=self._retry,
            operation=operation,
            on_retry=self._on_retry,
            sleep_fn=self._sleep_fn,
        )

    async def fetch_space_history(self, uid: str) -> list[dict[str, Any]]:
        """
        Fetch one page of a user's dynamics as raw feed entries.

        Each entry keeps `card` as the serialized string the API returns.
        """
        host_uid = str(uid).strip()
        if not host_uid:
            raise UpstreamError("uid must be a non-empty string")
        if not self._cookie:
            raise UpstreamError("A Bilibili login cookie is required to read dynamics")

        url = f"{self._config.api_base}{_SPACE_HISTORY_PATH}"
        try:
            resp = await self._get(
                url,
                operation=f"bilibili.space_history:{host_uid}",
                params={"host_uid": host_uid},
                headers={
                    "Referer": f"https://space.bilibili.com/{host_uid}/",
                    "Cookie": self._cookie,
                },
            )
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f"Dynamic feed request failed for uid {host_uid}: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Dynamic feed request failed for uid {host_uid}: {e}") from e

        try:
            body = json.loads(resp.text)
        except ValueError as e:
            raise UpstreamError(f"Dynamic feed response for uid {host_uid} is not JSON") from e

        return cards_from_response(body, uid=host_uid)

    async def fetch_article(self, cvid: Any, uid: str) -> ArticleData:
        url = f"{self._config.site_base}/read/cv{cvid}/"
        try:
            resp = await self._get(
                url,
                operation=f"bilibili.article:cv{cvid}",
                headers={
                    "Referer": f"https://space.bilibili.com/{uid}/",
                    "Cookie": self._cookie,
                },
            )
        except httpx.HTTPError as e:
            raise ArticleError(f"Failed to fetch article cv{cvid}: {e}") from e

        return extract_article(resp.text)


def cards_from_response(body: Any, *, uid: str) -> list[dict[str, Any]]:
    """
    Validate the space-history envelope and return its cards.

    A non-zero `code` or a missing `data` object is fatal; an absent `cards`
    list means the user has no dynamics.
    """
    if not isinstance(body, dict):
        raise UpstreamError(f"Dynamic feed response for uid {uid} is not an object")

    code = body.get("code", 0)
    if code not in (0, "0"):
        message = body.get("message") or body.get("msg") or "unknown error"
        raise UpstreamError(f"Dynamic feed API error for uid {uid}: code={code} {message}")

    data = body.get("data")
    if not isinstance(data, dict):
        raise UpstreamError(f"Dynamic feed response for uid {uid} has no data object")

    cards = data.get("cards")
    if cards is None:
        return []
    if not isinstance(cards, list):
        raise UpstreamError(f"Dynamic feed response for uid {uid} has malformed cards")
    return [card for card in cards if isinstance(card, dict)]
