from __future__ import annotations

import json
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, TextIO


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _truncate(text: str, *, limit: int) -> str:
    s = str(text or "")
    if limit <= 0:
        return ""
    if len(s) <= limit:
        return s
    return s[: max(0, limit - 1)] + "…"


class EventLogger:
    """
    JSONL event log for feed builds.

    Each line is one JSON object with `ts`, `level`, `event` and the session
    id, plus the feed owner's `uid` when bound. Writes go to a file opened by
    `open()` or to any text stream; `null()` discards everything.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        *,
        uid: str | None = None,
        session_id: str | None = None,
        owns_stream: bool = False,
    ) -> None:
        self._fp = stream
        self._uid = (uid or "").strip() or None
        self._session_id = (session_id or "").strip() or uuid.uuid4().hex
        self._owns_stream = owns_stream
        self._lock = Lock()

    @classmethod
    def open(cls, path: str | Path, *, overwrite: bool = False) -> "EventLogger":
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        fp = p.open("w" if overwrite else "a", encoding="utf-8", newline="\n")
        return cls(fp, owns_stream=True)

    @classmethod
    def null(cls) -> "EventLogger":
        return cls(None)

    def bind(self, *, uid: str) -> "EventLogger":
        """A logger sharing this one's stream and session, stamped with a feed owner."""
        child = EventLogger(self._fp, uid=uid, session_id=self._session_id)
        child._lock = self._lock
        return child

    def close(self) -> None:
        with self._lock:
            if self._fp is not None and self._owns_stream:
                try:
                    self._fp.flush()
                finally:
                    self._fp.close()
                self._fp = None

    def __enter__(self) -> "EventLogger":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def info(self, event: str, **data: Any) -> None:
        self.log("INFO", event, **data)

    def warning(self, event: str, **data: Any) -> None:
        self.log("WARN", event, **data)

    def error(self, event: str, **data: Any) -> None:
        self.log("ERROR", event, **data)

    def exception(self, event: str, *, exc: BaseException, level: str = "ERROR", **data: Any) -> None:
        err = {
            "type": type(exc).__name__,
            "message": _truncate(str(exc), limit=2000),
            "traceback": _truncate(
                "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
                limit=12000,
            ),
        }
        self.log(level, event, error=err, **data)

    def log(self, level: str, event: str, **data: Any) -> None:
        if self._fp is None:
            return

        record: dict[str, Any] = {
            "ts": _utc_now_iso(),
            "level": (level or "").strip().upper() or "INFO",
            "event": (event or "").strip() or "event",
            "session_id": self._session_id,
        }
        if self._uid:
            record["uid"] = self._uid
        if data:
            record["data"] = data

        payload = json.dumps(
            record,
            ensure_ascii=False,
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )

        with self._lock:
            if self._fp is None:
                return
            self._fp.write(payload + "\n")
            self._fp.flush()
