from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path


class TestCLISmoke(unittest.TestCase):
    def _run(self, *args: str, env_extra: dict[str, str] | None = None) -> subprocess.CompletedProcess:
        repo_root = Path(__file__).resolve().parents[1]

        env = {k: v for k, v in os.environ.items() if not k.startswith("BILIBILI_COOKIE_")}
        env.update(env_extra or {})
        existing_pp = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = (
            f"{repo_root}{os.pathsep}{existing_pp}" if existing_pp else str(repo_root)
        )

        return subprocess.run(
            [sys.executable, "-m", "bili_dynamic", *args],
            cwd=repo_root,
            env=env,
            capture_output=True,
            text=True,
        )

    def test_offline_feed(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "feed.json"
            log = Path(td) / "events.jsonl"
            proc = self._run(
                "dynamic",
                "2267573",
                "--offline",
                "--params",
                "showEmoji=1&directLink=1",
                "--out",
                str(out),
                "--log",
                str(log),
            )

            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            feed = json.loads(out.read_text(encoding="utf-8"))
            self.assertEqual(feed["title"], "offline-up 的 bilibili 动态")
            self.assertEqual(len(feed["items"]), 5)
            self.assertIn('<img alt="[doge]"', feed["items"][0]["description"])
            self.assertEqual(feed["items"][2]["link"], "https://www.bilibili.com/video/BV17x411w7KC")
            self.assertIn("feed_normalized", log.read_text(encoding="utf-8"))

    def test_missing_cookie_exit_code(self) -> None:
        proc = self._run("dynamic", "2267573")
        self.assertEqual(proc.returncode, 2)
        self.assertIn("cookie", proc.stderr.lower())


if __name__ == "__main__":
    unittest.main()
