from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class LatestPlanRunner:
    """Run plan computations off the caller's thread, latest request wins.

    Each ``submit`` supersedes the previous request: a pending computation is
    cancelled, and one that is already running finishes but its result is
    discarded. Only the newest computation publishes to ``result()`` and to
    the ``on_result`` callback.
    """

    def __init__(
        self,
        compute: Callable[..., Any],
        executor: Optional[Executor] = None,
        on_result: Optional[Callable[[Any], None]] = None,
    ) -> None:
        self._compute = compute
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="load-plan")
        self._on_result = on_result
        self._lock = threading.Lock()
        self._generation = 0
        self._future: Optional[Future] = None
        self._result: Any = None
        self._error: Optional[BaseException] = None
        self._published = threading.Event()

    @property
    def generation(self) -> int:
        return self._generation

    def submit(self, *args: Any, **kwargs: Any) -> Future:
        with self._lock:
            self._generation += 1
            generation = self._generation
            previous = self._future
            self._published.clear()
            self._result = None
            self._error = None
        if previous is not None and previous.cancel():
            logger.debug("cancelled pending plan computation")
        future = self._executor.submit(self._compute, *args, **kwargs)
        with self._lock:
            self._future = future
        future.add_done_callback(lambda done: self._publish(generation, done))
        return future

    def _publish(self, generation: int, future: Future) -> None:
        if future.cancelled():
            return
        with self._lock:
            if generation != self._generation:
                logger.debug("discarded stale plan result (generation %d)", generation)
                return
            error = future.exception()
            if error is not None:
                self._error = error
            else:
                self._result = future.result()
            result = self._result
            self._published.set()
        if error is None and self._on_result is not None:
            self._on_result(result)

    def is_ready(self) -> bool:
        return self._published.is_set()

    def result(self) -> Any:
        """Latest published result; re-raises the latest computation's error."""
        with self._lock:
            if self._error is not None:
                raise self._error
            return self._result

    def wait(self, timeout: Optional[float] = None) -> Any:
        if not self._published.wait(timeout):
            raise TimeoutError("plan computation did not finish in time")
        return self.result()

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)
