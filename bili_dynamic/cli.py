from __future__ import annotations

import argparse
import asyncio
import json
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import Sequence

from .author_cache import AuthorCache, MemoryAuthorCache, SQLiteAuthorCache
from .bilibili_client import BilibiliClient, retry_config_from_settings
from .config import load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .errors import ConfigError, StorageError, UpstreamError
from .event_log import EventLogger
from .item import FeedEnvelope
from .normalize import FeedSource, build_dynamic_feed
from .options import DisplayOptions


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bili_dynamic")

    subparsers = parser.add_subparsers(dest="command", required=True)

    dyn = subparsers.add_parser(
        "dynamic",
        help="Fetch a user's latest dynamics and print them as a normalized feed.",
    )
    dyn.add_argument("uid", help="Bilibili user id (found on the user's space page).")
    dyn.add_argument(
        "--params",
        default="",
        help="Route parameters, e.g. 'showEmoji=1&disableEmbed=1&useAvid=1&directLink=1'.",
    )
    dyn.add_argument(
        "--mode",
        default=None,
        help="Set to 'fulltext' to expand article dynamics into their full text.",
    )
    dyn.add_argument("--config", default=None, help="Path to YAML config file.")
    dyn.add_argument("--out", default=None, help="Write the feed JSON here instead of stdout.")
    dyn.add_argument("--log", default=None, help="Append JSONL events to this file.")
    dyn.add_argument(
        "--offline",
        action="store_true",
        help="Run without network calls or a cookie using a small stub feed.",
    )
    dyn.set_defaults(_handler=_cmd_dynamic)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _open_cache(cfg: AppConfig, stack: ExitStack) -> AuthorCache:
    if cfg.cache.path:
        return stack.enter_context(SQLiteAuthorCache.open(cfg.cache.path))
    return MemoryAuthorCache()


async def _run(
    uid: str,
    *,
    cfg: AppConfig,
    options: DisplayOptions,
    offline: bool,
    cache: AuthorCache,
    log: EventLogger,
) -> FeedEnvelope:
    if offline:
        from .offline import OfflineBilibiliSource

        source: FeedSource = OfflineBilibiliSource()
        return await build_dynamic_feed(uid, source=source, cache=cache, options=options, logger=log)

    secrets = resolve_runtime_secrets(cfg)
    async with BilibiliClient(
        secrets.cookie,
        config=cfg.bilibili,
        retry=retry_config_from_settings(cfg.retry),
        logger=log,
    ) as client:
        return await build_dynamic_feed(uid, source=client, cache=cache, options=options, logger=log)


def _cmd_dynamic(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    options = DisplayOptions.from_params(
        args.params,
        mode=args.mode,
        base=DisplayOptions.from_defaults(cfg.display),
    )

    with ExitStack() as stack:
        log = (
            stack.enter_context(EventLogger.open(args.log))
            if args.log
            else EventLogger.null()
        )
        cache = _open_cache(cfg, stack)

        try:
            envelope = asyncio.run(
                _run(
                    str(args.uid),
                    cfg=cfg,
                    options=options,
                    offline=bool(args.offline),
                    cache=cache,
                    log=log,
                )
            )
        except Exception as e:
            log.exception("feed_build_failed", exc=e)
            raise

    payload = json.dumps(envelope.to_dict(), ensure_ascii=False, indent=2)
    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(payload + "\n", encoding="utf-8")
    else:
        print(payload)

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except (UpstreamError, StorageError) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
