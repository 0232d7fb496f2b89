from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Sequence

from .bilibili_client import ArticleData
from .errors import ArticleError

_PROFILE = {
    "info": {
        "uid": 2267573,
        "uname": "offline-up",
        "face": "https://i0.hdslb.com/bfs/face/offline.jpg",
    }
}


def _entry(dynamic_id: int, timestamp: int, card: dict[str, Any], **desc: Any) -> dict[str, Any]:
    return {
        "desc": {
            "dynamic_id": dynamic_id,
            "dynamic_id_str": str(dynamic_id),
            "timestamp": timestamp,
            "user_profile": _PROFILE,
            **desc,
        },
        "card": json.dumps(card, ensure_ascii=False),
        "display": {},
    }


_DEFAULT_OFFLINE_ENTRIES: list[dict[str, Any]] = [
    _entry(
        700000000000000001,
        1700000000,
        {"user": {"uname": "offline-up"}, "item": {"content": "Morning walk\nby the river [doge]"}},
    )
    | {
        "display": {
            "emoji_info": {
                "emoji_details": [
                    {"text": "[doge]", "url": "https://i0.hdslb.com/bfs/emote/doge.png"}
                ]
            }
        }
    },
    _entry(
        700000000000000002,
        1700003600,
        {
            "user": {"name": "offline-up"},
            "item": {
                "title": "Album",
                "description": "Two photos",
                "pictures": [
                    {"img_src": "https://i0.hdslb.com/bfs/album/1.jpg"},
                    {"img_src": "https://i0.hdslb.com/bfs/album/2.jpg"},
                ],
            },
        },
    ),
    _entry(
        700000000000000003,
        1700007200,
        {
            "aid": 170001,
            "owner": {"name": "offline-up"},
            "pic": "https://i0.hdslb.com/bfs/archive/cover.jpg",
            "title": "A video",
            "desc": "Video description",
        },
        bvid="BV17x411w7KC",
    ),
    _entry(
        700000000000000004,
        1700010800,
        {
            "id": 1234,
            "author": {"name": "offline-up"},
            "image_urls": ["https://i0.hdslb.com/bfs/article/banner.jpg"],
            "title": "An article",
            "summary": "Article summary",
        },
    ),
    _entry(
        700000000000000005,
        1700014400,
        {
            "user": {"uname": "offline-up"},
            "item": {"content": "Worth watching"},
            "origin": json.dumps(
                {
                    "aid": 170002,
                    "owner": {"name": "someone-else"},
                    "title": "Reposted video",
                    "desc": "Original description",
                    "pic": "https://i0.hdslb.com/bfs/archive/origin.jpg",
                }
            ),
        },
        origin={"bvid": "BV1GJ411x7h7"},
    ),
]


@dataclass
class OfflineBilibiliSource:
    """
    Network-free feed source for smoke checks.

    Serves a small, deterministic page of dynamics covering the common post
    types, and articles from an in-memory table.
    """

    entries: Sequence[dict[str, Any]] = tuple(_DEFAULT_OFFLINE_ENTRIES)
    articles: dict[str, ArticleData] = field(
        default_factory=lambda: {
            "1234": ArticleData(title="An article", description="<p>Full article body</p>")
        }
    )

    async def fetch_space_history(self, uid: str) -> list[dict[str, Any]]:
        _ = uid
        return [dict(entry) for entry in self.entries]

    async def fetch_article(self, cvid: Any, uid: str) -> ArticleData:
        _ = uid
        article = self.articles.get(str(cvid))
        if article is None:
            raise ArticleError(f"offline article cv{cvid} not found")
        return article
