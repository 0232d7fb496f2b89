from __future__ import annotations

import unittest

from bili_dynamic.payload import PostKind, classify, dig, has, parse_card


class TestDig(unittest.TestCase):
    def test_walks_mappings_and_lists(self) -> None:
        data = {"a": {"b": [{"c": 1}]}}
        self.assertEqual(dig(data, "a", "b", 0, "c"), 1)

    def test_misses_return_none(self) -> None:
        data = {"a": {"b": [1]}, "s": "text"}
        self.assertIsNone(dig(data, "x"))
        self.assertIsNone(dig(data, "a", "b", 5))
        self.assertIsNone(dig(data, "s", "inner"))
        self.assertIsNone(dig(None, "a"))


class TestParseCard(unittest.TestCase):
    def test_keeps_large_ids_exact(self) -> None:
        card = parse_card('{"dynamic_id": 723456789012345678}')
        self.assertEqual(card, {"dynamic_id": 723456789012345678})

    def test_rejects_garbage(self) -> None:
        self.assertIsNone(parse_card("{not json"))
        self.assertIsNone(parse_card("[1, 2]"))
        self.assertIsNone(parse_card(""))
        self.assertIsNone(parse_card(None))

    def test_accepts_decoded_mapping(self) -> None:
        self.assertEqual(parse_card({"a": 1}), {"a": 1})


class TestClassify(unittest.TestCase):
    def test_single_signal_per_kind(self) -> None:
        cases = [
            ({"aid": 1}, PostKind.VIDEO),
            ({"image_urls": ["u"], "id": 2}, PostKind.ARTICLE),
            ({"upper": "someone", "id": 3}, PostKind.AUDIO),
            ({"roomid": 4}, PostKind.LIVESTREAM),
            ({"sketch": {"target_url": "t"}}, PostKind.CAMPAIGN),
            ({"url": "u", "apiSeasonInfo": {"title": "S"}}, PostKind.EPISODE),
            ({"url": "u"}, PostKind.LINK),
            ({"pictures": [{"img_src": "p"}]}, PostKind.IMAGE_TEXT),
            ({"content": "hello"}, PostKind.TEXT),
        ]
        for post, kind in cases:
            with self.subTest(kind=kind):
                self.assertIs(classify(post), kind)

    def test_first_signal_wins(self) -> None:
        self.assertIs(classify({"aid": 1, "url": "u", "roomid": 2}), PostKind.VIDEO)

    def test_empty_values_are_absent(self) -> None:
        self.assertIs(classify({"aid": 0, "image_urls": [], "url": ""}), PostKind.TEXT)
        self.assertFalse(has(""))
        self.assertTrue(has(12))


if __name__ == "__main__":
    unittest.main()
