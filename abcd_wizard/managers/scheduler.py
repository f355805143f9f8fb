"""
Schedulers for debounced writes and in-flight requests.

The autosave layer never touches threads or clocks directly. It asks a
scheduler to run a callback after a delay (debounce timers) or as soon as
possible (network requests), and gets back a handle it can cancel.

ThreadedScheduler is the implementation used by WizardCore; any object with
the same three methods can stand in for it.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Protocol


class Cancellable(Protocol):
    def cancel(self) -> bool: ...


class Scheduler(Protocol):
    """What the autosave layer needs from a scheduler."""

    def call_later(self, delay: float, fn: Callable[[], None]) -> Cancellable:
        """Run fn once after delay seconds unless cancelled first."""
        ...

    def submit(self, fn: Callable[[], None]) -> None:
        """Run fn as soon as possible, off the caller's path."""
        ...

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; with wait, block until submitted work is done."""
        ...


class ThreadedScheduler:
    """
    Timer threads for debounce and a worker pool for requests.

    Handles:
    - One threading.Timer per call_later
    - A ThreadPoolExecutor for submitted request jobs
    - Waiting for in-flight jobs on shutdown
    """

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="abcd-autosave")
        self._timers: List[threading.Timer] = []
        self._lock = threading.Lock()

    def call_later(self, delay: float, fn: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, fn)
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()
        return timer

    def submit(self, fn: Callable[[], None]) -> None:
        self._executor.submit(fn)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()
        self._executor.shutdown(wait=wait)
