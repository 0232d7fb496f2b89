from __future__ import annotations

import unittest

import httpx

from bili_dynamic.retry import RetryConfig, acall_with_retries, is_retryable_http_exception


def _status_error(code: int, headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.example.com/x")
    response = httpx.Response(code, request=request, headers=headers)
    return httpx.HTTPStatusError(f"HTTP {code}", request=request, response=response)


class TestRetryPolicy(unittest.TestCase):
    def test_classifies_http_errors(self) -> None:
        self.assertEqual(is_retryable_http_exception(_status_error(429))[:1], (True,))
        self.assertEqual(is_retryable_http_exception(_status_error(502))[2], "http_502")
        self.assertFalse(is_retryable_http_exception(_status_error(404))[0])
        self.assertTrue(is_retryable_http_exception(httpx.ConnectError("down"))[0])
        self.assertFalse(is_retryable_http_exception(ValueError("x"))[0])

    def test_reads_retry_after(self) -> None:
        _, retry_after, _ = is_retryable_http_exception(_status_error(429, {"Retry-After": "3"}))
        self.assertEqual(retry_after, 3.0)

    def test_rejects_bad_config(self) -> None:
        with self.assertRaises(ValueError):
            RetryConfig(max_attempts=0)
        with self.assertRaises(ValueError):
            RetryConfig(base_delay_seconds=5.0, max_delay_seconds=1.0)


class TestCallWithRetries(unittest.IsolatedAsyncioTestCase):
    async def test_retries_then_succeeds(self) -> None:
        attempts = 0
        sleeps: list[float] = []

        async def fn() -> str:
            nonlocal attempts
            attempts += 1
            if attempts < 3:
                raise httpx.ConnectError("down")
            return "ok"

        async def sleep(seconds: float) -> None:
            sleeps.append(seconds)

        cfg = RetryConfig(max_attempts=3, base_delay_seconds=1.0, max_delay_seconds=10.0, jitter_ratio=0.0)
        result = await acall_with_retries(fn, cfg=cfg, operation="test", sleep_fn=sleep)

        self.assertEqual(result, "ok")
        self.assertEqual(sleeps, [1.0, 2.0])

    async def test_gives_up_after_max_attempts(self) -> None:
        attempts = 0

        async def fn() -> str:
            nonlocal attempts
            attempts += 1
            raise httpx.ConnectError("down")

        async def sleep(seconds: float) -> None:
            return None

        cfg = RetryConfig(max_attempts=2, base_delay_seconds=0.0, max_delay_seconds=0.0)
        with self.assertRaises(httpx.ConnectError):
            await acall_with_retries(fn, cfg=cfg, operation="test", sleep_fn=sleep)
        self.assertEqual(attempts, 2)

    async def test_non_retryable_raises_immediately(self) -> None:
        attempts = 0

        async def fn() -> str:
            nonlocal attempts
            attempts += 1
            raise ValueError("bad")

        with self.assertRaises(ValueError):
            await acall_with_retries(fn, cfg=RetryConfig(), operation="test")
        self.assertEqual(attempts, 1)


if __name__ == "__main__":
    unittest.main()
