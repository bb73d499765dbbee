"""Dispatcher running units of work concurrently.

Units run on a worker pool; completed units are handed to a single consumer
callback on the thread that calls :meth:`Dispatcher.drain`, one at a time,
in completion order. Callers can therefore mutate shared state from the
callback without locking.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import (BrokenExecutor, Executor, Future,
                                ProcessPoolExecutor, ThreadPoolExecutor,
                                TimeoutError, as_completed)
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Protocol

from ..utils.exceptions import AssessmentError, DispatcherFault

if TYPE_CHECKING:
    from ..config.settings import Settings

logger = logging.getLogger(__name__)

Unit = Callable[[], Any]


class DispatcherProtocol(Protocol):
    """What the orchestrator needs from a dispatcher."""

    def submit(self, unit: Unit, label: str) -> Any: ...

    def drain(self, callback: Callable[[Any], None]) -> int: ...

    @property
    def payload_count(self) -> int: ...


class Dispatcher:
    """Runs submitted units on a thread or process pool."""

    def __init__(
        self,
        max_workers: int = 10,
        backend: str = "thread",
        timeout: Optional[float] = None,
    ):
        """Initialize the dispatcher.

        Args:
            max_workers: Maximum number of concurrent workers
            backend: "thread" or "process"
            timeout: Seconds allowed for a whole drain, or None for no limit
        """
        if backend not in ("thread", "process"):
            raise ValueError(f"Unsupported dispatcher backend: {backend}")

        self.max_workers = max_workers
        self.backend = backend
        self.timeout = timeout
        self._executor: Optional[Executor] = None
        self._futures: Dict[Future, str] = {}
        self._payload_count = 0
        self._drained = False

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Dispatcher":
        return cls(
            max_workers=settings.max_workers,
            backend=settings.dispatcher_backend,
            timeout=settings.dispatch_timeout,
        )

    @property
    def payload_count(self) -> int:
        """Number of responses delivered so far."""
        return self._payload_count

    @property
    def labels(self) -> List[str]:
        return list(self._futures.values())

    def _get_executor(self) -> Executor:
        if self._executor is None:
            if self.backend == "process":
                self._executor = ProcessPoolExecutor(max_workers=self.max_workers)
            else:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="dispatch"
                )
        return self._executor

    def submit(self, unit: Unit, label: str) -> Future:
        """Submit a unit of work.

        Args:
            unit: Callable taking no arguments; must be picklable for the
                process backend
            label: Name used in logs and fault messages

        Returns:
            Future of the unit
        """
        if self._drained:
            raise AssessmentError("Dispatcher has already been drained")

        try:
            future = self._get_executor().submit(unit)
        except BrokenExecutor as e:
            raise DispatcherFault(
                f"Worker pool is broken, cannot submit {label}: {e}",
                code=DispatcherFault.POOL_BROKEN,
            ) from e

        self._futures[future] = label
        logger.debug(f"Submitted unit {label}")
        return future

    def drain(self, callback: Callable[[Any], None]) -> int:
        """Deliver completed units to ``callback`` in completion order.

        Args:
            callback: Called with each unit's return value, never concurrently

        Returns:
            Number of responses delivered

        Raises:
            DispatcherFault: If a unit crashed, the pool broke or the drain
                timed out; responses delivered before the fault stay delivered
        """
        if self._drained:
            raise AssessmentError("Dispatcher has already been drained")
        self._drained = True

        started = time.monotonic()
        try:
            for future in as_completed(self._futures, timeout=self.timeout):
                label = self._futures[future]
                try:
                    payload = future.result()
                except BrokenExecutor as e:
                    raise DispatcherFault(
                        f"Worker pool broke while running {label}: {e}",
                        code=DispatcherFault.POOL_BROKEN,
                        delivered=self._payload_count,
                    ) from e
                except Exception as e:
                    raise DispatcherFault(
                        f"Unit {label} crashed: {e}",
                        code=DispatcherFault.UNIT_CRASHED,
                        delivered=self._payload_count,
                    ) from e

                logger.debug(f"Unit {label} completed after {time.monotonic() - started:.2f}s")
                callback(payload)
                self._payload_count += 1
        except TimeoutError as e:
            raise DispatcherFault(
                f"Dispatch timed out after {self.timeout}s with "
                f"{self._payload_count}/{len(self._futures)} units delivered",
                code=DispatcherFault.TIMEOUT,
                delivered=self._payload_count,
            ) from e
        finally:
            self.shutdown()

        return self._payload_count

    def shutdown(self) -> None:
        """Stop the pool, cancelling units that have not started."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> "Dispatcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def __len__(self) -> int:
        return len(self._futures)

    def __repr__(self) -> str:
        return (f"Dispatcher(backend='{self.backend}', max_workers={self.max_workers}, "
                f"submitted={len(self._futures)}, delivered={self._payload_count})")
