import threading
import time
import unittest
from unittest.mock import MagicMock, patch

import requests
from urllib3.exceptions import ReadTimeoutError

from pulsecheck.checks.http_probe import DEFAULT_USER_AGENT, run_http


def _response(status_code: int, chunks=()) -> MagicMock:
    response = MagicMock(status_code=status_code)
    response.__enter__.return_value = response
    response.iter_content.return_value = iter(chunks)
    return response


class HttpProbeTests(unittest.TestCase):
    def test_200_is_up(self) -> None:
        with patch("pulsecheck.checks.http_probe.requests.get", return_value=_response(200)):
            outcome = run_http("http://example.local/", timeout_s=5)

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.status_code, 200)
        self.assertIsNone(outcome.error)
        self.assertIsNotNone(outcome.latency_ms)

    def test_redirect_range_is_up(self) -> None:
        with patch("pulsecheck.checks.http_probe.requests.get", return_value=_response(302)):
            outcome = run_http("http://example.local/", timeout_s=5)

        self.assertTrue(outcome.success)

    def test_500_is_down_with_status_reason(self) -> None:
        with patch("pulsecheck.checks.http_probe.requests.get", return_value=_response(500)):
            outcome = run_http("http://example.local/", timeout_s=5)

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, "status-500")
        self.assertEqual(outcome.status_code, 500)
        self.assertIsNotNone(outcome.latency_ms)

    def test_404_and_199_are_down(self) -> None:
        for code in (404, 199):
            with self.subTest(code=code):
                with patch(
                    "pulsecheck.checks.http_probe.requests.get",
                    return_value=_response(code),
                ):
                    outcome = run_http("http://example.local/", timeout_s=5)
                self.assertFalse(outcome.success)
                self.assertEqual(outcome.error, f"status-{code}")

    def test_transport_timeout_is_request_timeout(self) -> None:
        with patch(
            "pulsecheck.checks.http_probe.requests.get",
            side_effect=requests.ReadTimeout("read timed out"),
        ):
            outcome = run_http("http://example.local/", timeout_s=5)

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, "request-timeout")
        self.assertIsNone(outcome.latency_ms)

    def test_connect_timeout_is_request_timeout(self) -> None:
        with patch(
            "pulsecheck.checks.http_probe.requests.get",
            side_effect=requests.ConnectTimeout("connect timed out"),
        ):
            outcome = run_http("http://example.local/", timeout_s=5)

        self.assertEqual(outcome.error, "request-timeout")

    def test_body_read_timeout_is_request_timeout(self) -> None:
        response = _response(200)
        response.iter_content.side_effect = requests.ConnectionError(
            ReadTimeoutError(None, "http://example.local/", "Read timed out.")
        )
        with patch("pulsecheck.checks.http_probe.requests.get", return_value=response):
            outcome = run_http("http://example.local/", timeout_s=5)

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, "request-timeout")
        self.assertIsNone(outcome.latency_ms)

    def test_watchdog_shuts_socket_at_deadline(self) -> None:
        torn_down = threading.Event()
        response = _response(200)
        response.raw.connection.sock.shutdown.side_effect = lambda how: torn_down.set()

        def slow_body(chunk_size):
            yield b"a"
            torn_down.wait(5)
            raise requests.ConnectionError("connection closed")

        response.iter_content.side_effect = slow_body
        with patch("pulsecheck.checks.http_probe.requests.get", return_value=response):
            start = time.perf_counter()
            outcome = run_http("http://example.local/", timeout_s=0.2)
            elapsed = time.perf_counter() - start

        self.assertTrue(torn_down.is_set())
        self.assertLess(elapsed, 2)
        self.assertEqual(outcome.error, "request-timeout")
        self.assertIsNone(outcome.latency_ms)
        response.__exit__.assert_called_once()

    def test_connection_error_keeps_description(self) -> None:
        with patch(
            "pulsecheck.checks.http_probe.requests.get",
            side_effect=requests.ConnectionError("Name or service not known"),
        ):
            outcome = run_http("http://nowhere.invalid/", timeout_s=5)

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, "Name or service not known")
        self.assertIsNone(outcome.latency_ms)
        self.assertIsNone(outcome.status_code)

    def test_sends_user_agent_and_timeout(self) -> None:
        with patch(
            "pulsecheck.checks.http_probe.requests.get", return_value=_response(200)
        ) as mock_get:
            run_http("https://example.local/api", timeout_s=3)

        mock_get.assert_called_once_with(
            "https://example.local/api",
            headers={"User-Agent": DEFAULT_USER_AGENT},
            timeout=3,
            stream=True,
        )

    def test_custom_user_agent(self) -> None:
        with patch(
            "pulsecheck.checks.http_probe.requests.get", return_value=_response(200)
        ) as mock_get:
            run_http("https://example.local/api", timeout_s=3, user_agent="probe/9")

        self.assertEqual(mock_get.call_args.kwargs["headers"], {"User-Agent": "probe/9"})


if __name__ == "__main__":
    unittest.main()
