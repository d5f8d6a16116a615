"""
Publish/subscribe primitive for the store's collections.

A BehaviorSubject always holds a current value. Subscribing replays that
value immediately and then pushes every later one. subscribe() returns a
Subscription that cancels delivery.

Publishing is thread-safe: remote-mode continuations publish from worker
threads while the caller may be publishing from its own thread.
"""

from __future__ import annotations

import itertools
import threading
from typing import Any, Callable, Generic, Sequence, TypeVar

from shared.config.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Callback = Callable[[T], None]


class Subscription:
    """Cancellation handle returned by subscribe()."""

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def unsubscribe(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._cancel()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.unsubscribe()


class Observable(Generic[T]):
    """Read-only view over a subject: current value plus subscribe()."""

    def __init__(self, source: "BehaviorSubject[T]"):
        self._source = source

    @property
    def value(self) -> T:
        return self._source.value

    def subscribe(self, callback: Callback) -> Subscription:
        return self._source.subscribe(callback)


class BehaviorSubject(Generic[T]):
    """
    Holds the latest value and broadcasts every change.

    Usage:
        harvests = BehaviorSubject([])
        sub = harvests.subscribe(lambda snapshot: print(len(snapshot)))  # prints 0
        harvests.next([harvest])                                         # prints 1
        sub.unsubscribe()
    """

    def __init__(self, initial: T, name: str | None = None):
        self._value = initial
        self._name = name or "subject"
        self._subscribers: dict[int, Callback] = {}
        self._ids = itertools.count()
        self._lock = threading.RLock()

    @property
    def value(self) -> T:
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def next(self, value: T) -> None:
        """Replace the current value and deliver it to every subscriber."""
        with self._lock:
            self._value = value
            # Delivery happens under the lock so subscribers see values in publish order
            for callback in list(self._subscribers.values()):
                self._deliver(callback, value)

    def subscribe(self, callback: Callback) -> Subscription:
        with self._lock:
            subscriber_id = next(self._ids)
            self._subscribers[subscriber_id] = callback
            self._deliver(callback, self._value)
        return Subscription(lambda: self._remove(subscriber_id))

    def as_observable(self) -> Observable[T]:
        return Observable(self)

    def _remove(self, subscriber_id: int) -> None:
        with self._lock:
            self._subscribers.pop(subscriber_id, None)

    def _deliver(self, callback: Callback, value: T) -> None:
        try:
            callback(value)
        except Exception:
            # A failing subscriber must not break the store or other subscribers
            logger.error("Subscriber callback failed", subject=self._name, exc_info=True)


def combine_latest(
    sources: Sequence[Observable[Any] | BehaviorSubject[Any]],
    project: Callable[..., R],
    name: str | None = None,
) -> "DerivedObservable[R]":
    """
    Derive a stream from several sources.

    The projection runs once immediately and again every time any source
    publishes, with the latest value of every source as arguments.

    Usage:
        summary = combine_latest([data.harvests, data.inventory], build_dashboard_summary)
        summary.subscribe(render)
    """
    latest = [source.value for source in sources]
    derived: BehaviorSubject[R] = BehaviorSubject(project(*latest), name=name)
    lock = threading.Lock()
    ready = False

    def on_source(index: int) -> Callback:
        def handle(value: Any) -> None:
            with lock:
                latest[index] = value
                if not ready:
                    # Initial replay from subscribe(); already projected above
                    return
                snapshot = list(latest)
            derived.next(project(*snapshot))

        return handle

    subscriptions = [source.subscribe(on_source(i)) for i, source in enumerate(sources)]
    ready = True
    return DerivedObservable(derived, subscriptions)


class DerivedObservable(Observable[T]):
    """Observable produced by combine_latest; dispose() detaches it from its sources."""

    def __init__(self, source: BehaviorSubject[T], upstream: list[Subscription]):
        super().__init__(source)
        self._upstream = upstream

    def dispose(self) -> None:
        for subscription in self._upstream:
            subscription.unsubscribe()
