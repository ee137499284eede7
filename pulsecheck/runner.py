from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor, as_completed
from typing import Iterable

from pulsecheck.checks.http_probe import run_http
from pulsecheck.checks.results import ProbeOutcome
from pulsecheck.models import Target
from pulsecheck.state import StatusRecord, StatusStore

logger = logging.getLogger(__name__)


def _probe_target(target: Target, timeout_s: float, user_agent: str | None) -> ProbeOutcome:
    try:
        return run_http(str(target.url), timeout_s=timeout_s, user_agent=user_agent)
    except Exception as e:
        # A broken probe is a failed check, never a failed round.
        logger.exception("Probe for %s raised", target.name)
        return ProbeOutcome(success=False, error=str(e) or e.__class__.__name__)


def run_round(
    store: StatusStore,
    targets: Iterable[Target],
    timeout_s: float,
    executor: Executor,
    user_agent: str | None = None,
) -> dict[str, StatusRecord]:
    """
    Probe every target concurrently and record each outcome as it lands.

    Returns once all probes have finished, so the round takes as long as the
    slowest probe rather than the sum of them.
    """
    futures = {
        executor.submit(_probe_target, t, timeout_s, user_agent): t for t in targets
    }
    results: dict[str, StatusRecord] = {}
    for fut in as_completed(futures):
        target = futures[fut]
        results[target.name] = store.record(target.name, fut.result())
    return results


class Scheduler:
    """
    Drives rounds on a background thread.

    The first round starts immediately; each following round starts
    interval_s after the previous one finished. Rounds never overlap: a
    trigger that arrives while a round is in flight is skipped.
    """

    def __init__(
        self,
        store: StatusStore,
        targets: Iterable[Target],
        interval_s: float,
        timeout_s: float,
        user_agent: str | None = None,
    ) -> None:
        self.store = store
        self.targets = tuple(targets)
        self.interval_s = interval_s
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self.rounds_completed = 0
        self.rounds_skipped = 0

        self._round_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._executor: ThreadPoolExecutor | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            # one worker per target so no probe waits behind another
            self._executor = ThreadPoolExecutor(
                max_workers=max(1, len(self.targets)),
                thread_name_prefix="pulsecheck-probe",
            )
        return self._executor

    def run_now(self) -> dict[str, StatusRecord] | None:
        if not self._round_lock.acquire(blocking=False):
            self.rounds_skipped += 1
            logger.warning("Previous round still in flight, skipping trigger")
            return None
        try:
            start = time.perf_counter()
            results = run_round(
                self.store,
                self.targets,
                timeout_s=self.timeout_s,
                executor=self._ensure_executor(),
                user_agent=self.user_agent,
            )
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            self.rounds_completed += 1
            up = sum(1 for r in results.values() if r.up)
            logger.info(
                "Round %d complete in %dms: %d up, %d down",
                self.rounds_completed,
                elapsed_ms,
                up,
                len(results) - up,
            )
            return results
        finally:
            self._round_lock.release()

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_now()
            except Exception:
                logger.exception("Round failed")
            self._stop.wait(self.interval_s)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._ensure_executor()
        self._thread = threading.Thread(
            target=self._loop,
            name="pulsecheck-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "Scheduler started: %d targets, interval=%ss, timeout=%ss",
            len(self.targets),
            self.interval_s,
            self.timeout_s,
        )

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        logger.info("Scheduler stopped")
