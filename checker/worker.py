"""
Background validation worker.

Offloads validation to a thread pool so a long proof does not block the
caller's event loop or request thread. Whenever the pool cannot deliver a
result (disabled, shut down, rejected submission, timeout) the proof is
validated in-process instead; callers always get a ValidationResult of the
same shape.

A timed-out task that has already started cannot be cancelled. It keeps its
pool thread until it finishes, so a burst of slow proofs can occupy the whole
pool and push later submissions into the timeout path as well.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from checker.config import CheckerConfig
from checker.engine import ProofChecker
from checker.rules import resolve_ruleset
from checker.types import ProofDocument, ValidationResult

logger = logging.getLogger(__name__)


class ValidationWorker:
    """Thread-pool front end for ProofChecker with in-process fallback."""

    def __init__(self, config: Optional[CheckerConfig] = None):
        self.config = config or CheckerConfig()
        self.checker = ProofChecker(self.config)
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._closed = False
        if self.config.worker_enabled:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.worker_max_workers,
                thread_name_prefix="proofcheck",
            )

    @property
    def active(self) -> bool:
        return self._executor is not None and not self._closed

    def run(self, document: ProofDocument, timeout: Optional[float] = None) -> ValidationResult:
        """
        Validate `document`, preferring the pool.

        Raises UnknownRulesetError before any work is scheduled so callers see
        the same error whichever path runs.
        """
        resolve_ruleset(document.ruleset, default=self.config.default_ruleset)
        wait_s = self.config.worker_timeout_s if timeout is None else timeout

        with self._lock:
            executor = self._executor if not self._closed else None
        if executor is None:
            logger.debug("Worker inactive; validating in-process")
            return self.checker.validate(document)

        try:
            future = executor.submit(self.checker.validate, document)
        except RuntimeError as exc:
            logger.warning("Worker rejected proof (%s); validating in-process", exc)
            return self.checker.validate(document)

        try:
            return future.result(timeout=wait_s)
        except FutureTimeoutError:
            if future.cancel():
                logger.warning("Worker timed out after %.1fs; validating in-process", wait_s)
            else:
                logger.warning(
                    "Worker timed out after %.1fs (task still running on pool); "
                    "validating in-process",
                    wait_s,
                )
            return self.checker.validate(document)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
            logger.info("Validation worker stopped")

    def __enter__(self) -> "ValidationWorker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()


__all__ = ["ValidationWorker"]
