from __future__ import annotations

import socket
import threading
import time

import requests
from urllib3.exceptions import ReadTimeoutError

from pulsecheck.checks.results import ProbeOutcome

DEFAULT_USER_AGENT = "pulsecheck/1.0"
REQUEST_TIMEOUT = "request-timeout"
CHUNK_SIZE = 8192


def is_success_status(status_code: int) -> bool:
    return 200 <= status_code < 400


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, requests.Timeout):
        return True
    # while streaming, requests wraps urllib3's read timeout in ConnectionError
    return isinstance(exc, requests.ConnectionError) and any(
        isinstance(arg, ReadTimeoutError) for arg in exc.args
    )


def _abort(r: requests.Response, expired: threading.Event) -> None:
    expired.set()
    conn = getattr(r.raw, "connection", None) or getattr(r.raw, "_connection", None)
    sock = getattr(conn, "sock", None)
    if sock is None:
        return
    try:
        # wakes the reader blocked in recv()
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass  # already closed


def run_http(url: str, timeout_s: float, user_agent: str | None = None) -> ProbeOutcome:
    """
    Issue a single GET against url and classify the outcome.

    requests bounds the connect and the wait for headers. Once headers are in,
    a watchdog tears the socket down when the whole-response deadline passes,
    so a server trickling its body cannot hold the probe open. Any timeout
    yields "request-timeout" with no latency.
    """
    headers = {"User-Agent": user_agent or DEFAULT_USER_AGENT}
    start = time.perf_counter()
    deadline = start + timeout_s
    expired = threading.Event()
    try:
        with requests.get(url, headers=headers, timeout=timeout_s, stream=True) as r:
            watchdog = threading.Timer(
                max(0.0, deadline - time.perf_counter()), _abort, args=(r, expired)
            )
            watchdog.daemon = True
            watchdog.start()
            try:
                for _ in r.iter_content(chunk_size=CHUNK_SIZE):
                    pass
            finally:
                watchdog.cancel()
            if expired.is_set():
                raise requests.Timeout(REQUEST_TIMEOUT)
            latency_ms = int((time.perf_counter() - start) * 1000)
            status_code = r.status_code
    except Exception as e:
        if expired.is_set() or _is_timeout(e):
            return ProbeOutcome(success=False, error=REQUEST_TIMEOUT)
        return ProbeOutcome(success=False, error=str(e) or e.__class__.__name__)

    if is_success_status(status_code):
        return ProbeOutcome(success=True, latency_ms=latency_ms, status_code=status_code)
    return ProbeOutcome(
        success=False,
        latency_ms=latency_ms,
        status_code=status_code,
        error=f"status-{status_code}",
    )
