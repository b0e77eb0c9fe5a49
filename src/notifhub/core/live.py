"""Push-based live values and queries (core domain).

A live source hands its current value to a new subscriber right away and
then every change after it; consecutive equal values are not re-emitted.
Derived sources (``combine_latest``, ``LiveSource.map``) only hold upstream
subscriptions while they have subscribers of their own, so cancelling the
last subscription releases everything tied to it, store watches included.

All sources share one re-entrant lock. Emissions are therefore serialized
across the whole graph, whichever thread (ingestion worker or UI) triggered
them. Query loaders run outside the lock, so a slow reload never holds up a
search edit. Listeners must not block waiting on another thread.
"""

from __future__ import annotations

import itertools
import logging
import threading
from functools import partial
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Unwatch = Callable[[], None]
Watch = Callable[[Callable[[], None]], Unwatch]

_GRAPH_LOCK = threading.RLock()
_UNSET: Any = object()


def _deliver(listener: Callable[[Any], None], value: Any) -> None:
    try:
        listener(value)
    except Exception:
        LOGGER.exception("Live listener raised; emission dropped for it")


class Subscription:
    """Handle returned by ``subscribe``; cancel to stop further emissions."""

    def __init__(self, on_cancel: Callable[[], None]) -> None:
        self._on_cancel = on_cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        with _GRAPH_LOCK:
            if not self._active:
                return
            self._active = False
            self._on_cancel()


class LiveSource(Generic[T]):
    """Listener bookkeeping shared by every live source."""

    def __init__(self) -> None:
        self._listeners: dict[int, Callable[[T], None]] = {}
        self._tokens = itertools.count()
        self._current: Any = _UNSET

    @property
    def value(self) -> T:
        """Current value; computed on demand when nobody is subscribed."""

        with _GRAPH_LOCK:
            current = self._current
        if current is _UNSET:
            return self._compute()
        return current

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Callable[[T], None]) -> Subscription:
        with _GRAPH_LOCK:
            token = next(self._tokens)
            if not self._listeners:
                self._current = self._activate()
            self._listeners[token] = listener
            _deliver(listener, self._current)
        return Subscription(partial(self._unsubscribe, token))

    def map(self, transform: Callable[[T], R]) -> "LiveSource[R]":
        return combine_latest([self], transform)

    def invalidate(self) -> None:
        """Recompute from the underlying data; sources that push on their own ignore it."""

        return None

    def _unsubscribe(self, token: int) -> None:
        with _GRAPH_LOCK:
            if self._listeners.pop(token, None) is None:
                return
            if not self._listeners:
                self._deactivate()
                self._current = _UNSET

    def _emit(self, value: T) -> None:
        with _GRAPH_LOCK:
            if not self._listeners:
                return
            if self._current is not _UNSET and self._current == value:
                return
            self._current = value
            for listener in list(self._listeners.values()):
                _deliver(listener, value)

    def _compute(self) -> T:
        raise NotImplementedError

    def _activate(self) -> T:
        return self._compute()

    def _deactivate(self) -> None:
        return None


class LiveValue(LiveSource[T]):
    """Mutable state that pushes every distinct new value to subscribers."""

    def __init__(self, initial: T) -> None:
        super().__init__()
        self._state = initial

    def set(self, value: T) -> None:
        with _GRAPH_LOCK:
            self._state = value
            self._emit(value)

    def _compute(self) -> T:
        return self._state


class LiveQuery(LiveSource[T]):
    """Re-runs ``loader`` whenever the watched data changes.

    ``watch`` registers an invalidation callback and returns the function
    that unregisters it; it is only held while the query has subscribers.
    A failing loader is logged and produces ``empty()`` instead.
    """

    def __init__(
        self,
        loader: Callable[[], T],
        watch: Optional[Watch] = None,
        empty: Callable[[], T] = list,  # type: ignore[assignment]
    ) -> None:
        super().__init__()
        self._loader = loader
        self._watch = watch
        self._empty = empty
        self._unwatch: Optional[Unwatch] = None
        self._generation = 0

    @property
    def watching(self) -> bool:
        return self._unwatch is not None

    def invalidate(self) -> None:
        with _GRAPH_LOCK:
            if not self._listeners:
                return
            self._generation += 1
            generation = self._generation
        value = self._compute()
        with _GRAPH_LOCK:
            # A reload that started later has already emitted fresher data.
            if generation == self._generation:
                self._emit(value)

    def _compute(self) -> T:
        try:
            return self._loader()
        except Exception:
            LOGGER.exception("Live query failed; emitting an empty result")
            return self._empty()

    def _activate(self) -> T:
        self._generation += 1
        if self._watch is not None:
            self._unwatch = self._watch(self.invalidate)
        return self._compute()

    def _deactivate(self) -> None:
        if self._unwatch is not None:
            self._unwatch()
            self._unwatch = None


class _Combined(LiveSource[R]):
    def __init__(self, sources: Sequence[LiveSource[Any]], combiner: Callable[..., R]) -> None:
        super().__init__()
        self._sources = list(sources)
        self._combiner = combiner
        self._latest: List[Any] = []
        self._upstream: List[Subscription] = []

    def _compute(self) -> R:
        return self._combiner(*(source.value for source in self._sources))

    def _activate(self) -> R:
        self._latest = [_UNSET] * len(self._sources)
        self._upstream = [
            source.subscribe(partial(self._on_upstream, index))
            for index, source in enumerate(self._sources)
        ]
        return self._combiner(*self._latest)

    def _deactivate(self) -> None:
        upstream, self._upstream = self._upstream, []
        for subscription in upstream:
            subscription.cancel()
        self._latest = []

    def invalidate(self) -> None:
        for source in self._sources:
            source.invalidate()

    def _on_upstream(self, index: int, value: Any) -> None:
        self._latest[index] = value
        # Upstream subscriptions deliver immediately while we are activating.
        if any(item is _UNSET for item in self._latest) or len(self._upstream) < len(self._sources):
            return
        self._emit(self._combiner(*self._latest))


def combine_latest(sources: Sequence[LiveSource[Any]], combiner: Callable[..., R]) -> LiveSource[R]:
    """Recompute ``combiner`` over the latest value of every source on any change."""

    return _Combined(sources, combiner)
