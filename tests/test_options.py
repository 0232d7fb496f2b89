from __future__ import annotations

import unittest

from bili_dynamic.config_schema import DisplayDefaults
from bili_dynamic.options import DisplayOptions, query_to_bool


class TestDisplayOptions(unittest.TestCase):
    def test_defaults_are_off(self) -> None:
        self.assertEqual(
            DisplayOptions.from_params(""),
            DisplayOptions(False, False, False, False, False),
        )

    def test_parses_route_params(self) -> None:
        opts = DisplayOptions.from_params("showEmoji=1&disableEmbed=true&useAvid=0&directLink=TRUE")
        self.assertTrue(opts.show_emoji)
        self.assertTrue(opts.disable_embed)
        self.assertFalse(opts.use_avid)
        self.assertTrue(opts.direct_link)
        self.assertFalse(opts.display_full_article)

    def test_fulltext_mode(self) -> None:
        self.assertTrue(DisplayOptions.from_params("", mode="fulltext").display_full_article)
        self.assertTrue(DisplayOptions.from_params({"mode": "fulltext"}).display_full_article)
        self.assertFalse(DisplayOptions.from_params("", mode="summary").display_full_article)

    def test_unparseable_values_keep_base(self) -> None:
        base = DisplayOptions.from_defaults(DisplayDefaults(show_emoji=True))
        opts = DisplayOptions.from_params("showEmoji=maybe&useAvid=1", base=base)
        self.assertTrue(opts.show_emoji)
        self.assertTrue(opts.use_avid)

    def test_query_to_bool(self) -> None:
        self.assertIs(query_to_bool("1"), True)
        self.assertIs(query_to_bool("false"), False)
        self.assertIsNone(query_to_bool(""))
        self.assertIsNone(query_to_bool(None))


if __name__ == "__main__":
    unittest.main()
