from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable, TypeVar

import httpx

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """
    Exponential backoff retry policy for upstream HTTP calls.

    - max_attempts counts the initial attempt (max_attempts=3 => 1 try + 2 retries).
    - base_delay_seconds is the first delay after the first failure.
    - jitter_ratio adds multiplicative jitter in [1-jitter, 1+jitter].
    - retry_after_cap_seconds caps any Retry-After override (0 disables the cap).
    """

    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 10.0
    jitter_ratio: float = 0.25
    retry_after_cap_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if not (0.0 <= self.jitter_ratio <= 1.0):
            raise ValueError("jitter_ratio must be between 0 and 1")
        if self.retry_after_cap_seconds < 0:
            raise ValueError("retry_after_cap_seconds must be >= 0")


@dataclass(frozen=True)
class RetryEvent:
    operation: str
    failure_attempt: int
    next_attempt: int
    max_attempts: int

    delay_seconds: float
    retry_after_seconds: float | None
    reason: str | None

    error_type: str
    error_message: str


IsRetryableFn = Callable[[BaseException], tuple[bool, float | None, str | None]]
OnRetryFn = Callable[[RetryEvent], None]
SleepFn = Callable[[float], Awaitable[None]]


def _retry_after_seconds(response: httpx.Response) -> float | None:
    value = (response.headers.get("Retry-After") or "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def is_retryable_http_exception(exc: BaseException) -> tuple[bool, float | None, str | None]:
    """
    Retry transport failures, HTTP 429 and HTTP 5xx; everything else is final.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        if code == 429:
            return True, _retry_after_seconds(exc.response), "http_429"
        if code >= 500:
            return True, _retry_after_seconds(exc.response), f"http_{code}"
        return False, None, f"http_{code}"

    if isinstance(exc, httpx.TimeoutException):
        return True, None, "timeout"

    if isinstance(exc, httpx.TransportError):
        return True, None, "network_error"

    return False, None, None


def _compute_backoff_seconds(failure_attempt: int, cfg: RetryConfig) -> float:
    # failure_attempt=1 => base delay.
    exponent = max(0, int(failure_attempt) - 1)
    delay = cfg.base_delay_seconds * (2**exponent)
    return min(cfg.max_delay_seconds, max(0.0, float(delay)))


def _apply_jitter(delay: float, cfg: RetryConfig) -> float:
    d = max(0.0, float(delay))
    if d == 0.0 or cfg.jitter_ratio <= 0:
        return d
    factor = random.uniform(1.0 - cfg.jitter_ratio, 1.0 + cfg.jitter_ratio)
    return max(0.0, d * factor)


def _normalize_retry_after(value: float | None, cfg: RetryConfig) -> float | None:
    if value is None or value < 0:
        return None
    seconds = float(value)
    if cfg.retry_after_cap_seconds > 0:
        seconds = min(seconds, float(cfg.retry_after_cap_seconds))
    return seconds


async def acall_with_retries(
    fn: Callable[[], Awaitable[T]],
    *,
    cfg: RetryConfig,
    operation: str,
    is_retryable: IsRetryableFn = is_retryable_http_exception,
    on_retry: OnRetryFn | None = None,
    sleep_fn: SleepFn | None = None,
) -> T:
    """
    Await fn() with retries on retryable failures.

    Delay uses exponential backoff with an optional Retry-After override and jitter.
    The last failure is re-raised unchanged.
    """
    op = (operation or "").strip() or "operation"
    sleeper = sleep_fn or asyncio.sleep

    for attempt in range(1, int(cfg.max_attempts) + 1):
        try:
            return await fn()
        except Exception as exc:
            retryable, retry_after, reason = is_retryable(exc)

            if not retryable or attempt >= int(cfg.max_attempts):
                raise

            ra = _normalize_retry_after(retry_after, cfg)
            delay = _compute_backoff_seconds(attempt, cfg)
            if ra is not None:
                delay = max(delay, ra)
            delay = _apply_jitter(delay, cfg)

            if on_retry is not None:
                on_retry(
                    RetryEvent(
                        operation=op,
                        failure_attempt=int(attempt),
                        next_attempt=int(attempt) + 1,
                        max_attempts=int(cfg.max_attempts),
                        delay_seconds=float(delay),
                        retry_after_seconds=ra,
                        reason=reason,
                        error_type=type(exc).__name__,
                        error_message=(str(exc) or "").strip(),
                    )
                )

            if delay > 0:
                await sleeper(float(delay))

    # Unreachable, but keeps typing happy.
    raise RuntimeError(f"Retry loop exited unexpectedly for operation={op}")
