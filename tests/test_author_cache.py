from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from bili_dynamic.author_cache import MemoryAuthorCache, SQLiteAuthorCache
from bili_dynamic.item import AuthorIdentity


class TestMemoryAuthorCache(unittest.TestCase):
    def test_round_trip(self) -> None:
        cache = MemoryAuthorCache()
        self.assertIsNone(cache.get("1"))
        cache.set("1", AuthorIdentity("name", "face"))
        self.assertEqual(cache.get("1"), AuthorIdentity("name", "face"))


class TestSQLiteAuthorCache(unittest.TestCase):
    def test_persists_across_connections(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            db_path = Path(td) / "nested" / "authors.sqlite"

            with SQLiteAuthorCache.open(db_path) as cache:
                self.assertIsNone(cache.get("42"))
                cache.set("42", AuthorIdentity("first", "f1"))
                cache.set("42", AuthorIdentity("second", None))

            with SQLiteAuthorCache.open(db_path) as cache:
                self.assertEqual(cache.get("42"), AuthorIdentity("second", None))

    def test_in_memory(self) -> None:
        with SQLiteAuthorCache.open(":memory:") as cache:
            cache.set("7", AuthorIdentity("n", "f"))
            self.assertEqual(cache.get("7"), AuthorIdentity("n", "f"))


if __name__ == "__main__":
    unittest.main()
