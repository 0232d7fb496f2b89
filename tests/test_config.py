from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from bili_dynamic.config import load_config, resolve_runtime_secrets
from bili_dynamic.errors import ConfigError


_VALID_YAML = """\
bilibili:
  api_base: https://api.vc.bilibili.com/
  site_base: https://www.bilibili.com
  timeout_seconds: 10
  cookie_env_prefix: BILIBILI_COOKIE_

cache:
  path: cache/authors.sqlite

retry:
  max_attempts: 2
  base_delay_seconds: 0.5
  max_delay_seconds: 5
  jitter_ratio: 0.1

display:
  show_emoji: true
  use_avid: false
"""


class TestConfig(unittest.TestCase):
    def test_load_config_ok(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "config.yaml"
            path.write_text(_VALID_YAML, encoding="utf-8")

            cfg = load_config(path)
            self.assertEqual(cfg.bilibili.api_base, "https://api.vc.bilibili.com")
            self.assertEqual(cfg.cache.path, "cache/authors.sqlite")
            self.assertEqual(cfg.retry.max_attempts, 2)
            self.assertTrue(cfg.display.show_emoji)
            self.assertFalse(cfg.display.direct_link)

    def test_empty_file_and_no_path_give_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "config.yaml"
            path.write_text("", encoding="utf-8")
            self.assertEqual(load_config(path), load_config(None))

    def test_rejects_unknown_keys_and_bad_values(self) -> None:
        for bad in (
            _VALID_YAML + "extra: 1\n",
            _VALID_YAML.replace("max_delay_seconds: 5", "max_delay_seconds: 0.1"),
            _VALID_YAML.replace("https://www.bilibili.com", "www.bilibili.com"),
        ):
            with self.subTest(bad=bad[-40:]), tempfile.TemporaryDirectory() as td:
                path = Path(td) / "config.yaml"
                path.write_text(bad, encoding="utf-8")
                with self.assertRaises(ConfigError):
                    load_config(path)

    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigError):
            load_config("/nonexistent/config.yaml")

    def test_resolve_runtime_secrets_picks_first_cookie(self) -> None:
        cfg = load_config(None)

        with self.assertRaises(ConfigError):
            resolve_runtime_secrets(cfg, environ={})
        with self.assertRaises(ConfigError):
            resolve_runtime_secrets(cfg, environ={"BILIBILI_COOKIE_1": "  "})

        secrets = resolve_runtime_secrets(
            cfg,
            environ={
                "BILIBILI_COOKIE_2": "second",
                "BILIBILI_COOKIE_1": "",
                "BILIBILI_COOKIE_3": "third",
                "OTHER": "x",
            },
        )
        self.assertEqual(secrets.cookie, "second")
        self.assertEqual(secrets.cookie_env, "BILIBILI_COOKIE_2")


if __name__ == "__main__":
    unittest.main()
