from __future__ import annotations

import json
import unittest

from bili_dynamic.repost import repost_prefix, unwrap


class TestUnwrap(unittest.TestCase):
    def test_plain_post_has_no_origin(self) -> None:
        parts = unwrap({"card": json.dumps({"item": {"content": "hi"}})})
        self.assertFalse(parts.is_repost)
        self.assertEqual(parts.body, {"content": "hi"})
        self.assertTrue(parts.card_ok)

    def test_parses_serialized_origin(self) -> None:
        origin = {"aid": 1, "title": "V", "owner": {"name": "up"}}
        card = {"item": {"content": "look"}, "origin": json.dumps(origin)}
        parts = unwrap({"card": json.dumps(card)})
        self.assertTrue(parts.is_repost)
        self.assertEqual(parts.origin, origin)
        self.assertEqual(parts.origin_body, origin)

    def test_origin_item_becomes_origin_body(self) -> None:
        origin = {"user": {"name": "up"}, "item": {"description": "pics"}}
        card = {"item": {"content": "look"}, "origin": json.dumps(origin)}
        parts = unwrap({"card": json.dumps(card)})
        self.assertEqual(parts.origin_body, {"description": "pics"})

    def test_bad_origin_is_no_origin(self) -> None:
        card = {"item": {"content": "look"}, "origin": "{broken"}
        parts = unwrap({"card": json.dumps(card)})
        self.assertFalse(parts.is_repost)
        self.assertFalse(parts.origin_ok)
        self.assertEqual(parts.body, {"content": "look"})

    def test_bad_card(self) -> None:
        parts = unwrap({"card": "not json"})
        self.assertFalse(parts.card_ok)
        self.assertEqual(parts.body, {})
        self.assertFalse(unwrap({}).card_ok)


class TestRepostPrefix(unittest.TestCase):
    def test_with_author(self) -> None:
        origin = {"user": {"uname": "up"}, "item": {"title": "T", "description": "D"}}
        self.assertEqual(repost_prefix(origin), "<br><br>//转发自: @up: T<br>D")

    def test_video_origin(self) -> None:
        origin = {"owner": {"name": "up"}, "title": "V", "desc": "about"}
        self.assertEqual(repost_prefix(origin), "<br><br>//转发自: @up: V<br>about")

    def test_episode_without_author(self) -> None:
        origin = {"apiSeasonInfo": {"title": "Show"}, "index_title": "EP1", "url": "u"}
        self.assertEqual(repost_prefix(origin), "//转发自: Show<br>EP1")

    def test_nothing(self) -> None:
        self.assertEqual(repost_prefix(None), "")
        self.assertEqual(repost_prefix({"content": "orphan"}), "")


if __name__ == "__main__":
    unittest.main()
