"""
Push-based signal graph built on Qt signals.

Every node is a QObject with an ``emitted`` signal. Sources hold raw values;
operators (map, distinct, debounce, drop_first, receive_on, combine_latest)
derive new streams from upstream ones. A SignalGraph owns the nodes created
through it so a whole graph can be started and disposed as one unit.

Propagation is glitch-free inside a graph: every emission opens a
propagation pass, and combine-latest nodes only publish once the outermost
pass has finished. Two predicates derived from the same upstream value are
therefore always seen together downstream.
"""

from __future__ import annotations

import heapq
import logging
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import partial
from typing import Any

from PySide6.QtCore import QObject, Signal

from .scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)

_MISSING = object()


class Subscription:
    """
    Live connection between a stream and a callback.

    Keep a reference for as long as delivery is wanted; cancelling is
    idempotent.
    """

    def __init__(self, stream: Stream, slot: Callable[[Any], None]) -> None:
        self._stream = stream
        self._slot = slot
        self._active = True
        stream.emitted.connect(self._deliver)

    @property
    def active(self) -> bool:
        return self._active

    def _deliver(self, value: Any) -> None:
        if self._active:
            self._slot(value)

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._stream.emitted.disconnect(self._deliver)


class Stream(QObject):
    """
    A node in the signal graph.

    Nodes created from a stream that belongs to a graph join the same graph.
    Values are never logged, since streams carry passwords.
    """

    emitted = Signal(object)

    def __init__(self, graph: SignalGraph | None = None, name: str | None = None) -> None:
        super().__init__()
        self.setObjectName(name or type(self).__name__)
        self._graph = graph
        self._upstream: list[Subscription] = []
        self._disposed = False
        self._has_value = False
        self._value: Any = None
        if graph is not None:
            graph.adopt(self)

    @property
    def graph(self) -> SignalGraph | None:
        return self._graph

    @property
    def value(self) -> Any:
        """Last published value, or None if nothing was published yet."""
        return self._value

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, slot: Callable[[Any], None]) -> Subscription:
        """Call ``slot`` with every value published from now on."""
        return Subscription(self, slot)

    def sink(self, slot: Callable[[Any], None]) -> Subscription:
        """Subscribe and hand the subscription to the graph, which cancels it on dispose."""
        subscription = self.subscribe(slot)
        if self._graph is not None:
            self._graph.track(subscription)
        return subscription

    def dispose(self) -> None:
        """Stop listening upstream and drop any pending work. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        for subscription in self._upstream:
            subscription.cancel()
        self._upstream.clear()
        self._on_dispose()

    # Operators

    def map(self, transform: Callable[[Any], Any], name: str | None = None) -> Stream:
        return Map(self, transform, name=name)

    def distinct(self, name: str | None = None) -> Stream:
        return Distinct(self, name=name)

    def debounce(self, delay_ms: int, scheduler: Scheduler, name: str | None = None) -> Stream:
        return Debounce(self, delay_ms, scheduler, name=name)

    def drop_first(self, count: int = 1, name: str | None = None) -> Stream:
        return DropFirst(self, count, name=name)

    def receive_on(self, scheduler: Scheduler, name: str | None = None) -> Stream:
        return ReceiveOn(self, scheduler, name=name)

    # Internals

    def _listen(self, upstream: Stream, slot: Callable[[Any], None]) -> None:
        self._upstream.append(upstream.subscribe(slot))

    def _publish(self, value: Any) -> None:
        if self._disposed:
            return
        self._value = value
        self._has_value = True
        if self._graph is None:
            self.emitted.emit(value)
            return
        with self._graph.propagation():
            self.emitted.emit(value)

    def _on_dispose(self) -> None:
        pass


class Source(Stream):
    """
    Mutable leaf value.

    Every ``set`` is published once the source has started, even when the
    value is unchanged; deduplication is left to downstream ``distinct``.
    """

    def __init__(self, initial: Any, graph: SignalGraph | None = None, name: str | None = None) -> None:
        super().__init__(graph, name)
        self._current = initial
        self._started = False

    @property
    def current(self) -> Any:
        return self._current

    @property
    def started(self) -> bool:
        return self._started

    def set(self, value: Any) -> None:
        self._current = value
        if self._started:
            self._publish(value)

    def start(self) -> None:
        """Publish the current value and every later write."""
        if self._started:
            return
        self._started = True
        self._publish(self._current)


class Map(Stream):
    def __init__(self, upstream: Stream, transform: Callable[[Any], Any], name: str | None = None) -> None:
        super().__init__(upstream.graph, name)
        self._transform = transform
        self._listen(upstream, self._on_value)

    def _on_value(self, value: Any) -> None:
        self._publish(self._transform(value))


class Distinct(Stream):
    """Drops a value equal to the previously published one. The first always passes."""

    def __init__(self, upstream: Stream, name: str | None = None) -> None:
        super().__init__(upstream.graph, name)
        self._listen(upstream, self._on_value)

    def _on_value(self, value: Any) -> None:
        if self._has_value and value == self._value:
            return
        self._publish(value)


class Debounce(Stream):
    """
    Publishes the latest value once upstream has been quiet for ``delay_ms``.

    Each new value cancels the pending timer and starts a new one.
    """

    def __init__(self, upstream: Stream, delay_ms: int, scheduler: Scheduler, name: str | None = None) -> None:
        super().__init__(upstream.graph, name)
        self._delay_ms = delay_ms
        self._scheduler = scheduler
        self._latest: Any = None
        self._pending: ScheduledTask | None = None
        self._listen(upstream, self._on_value)

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def _on_value(self, value: Any) -> None:
        self._latest = value
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self._scheduler.schedule(self._delay_ms, self._flush)

    def _flush(self) -> None:
        self._pending = None
        self._publish(self._latest)

    def _on_dispose(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None


class DropFirst(Stream):
    def __init__(self, upstream: Stream, count: int = 1, name: str | None = None) -> None:
        super().__init__(upstream.graph, name)
        self._remaining = count
        self._listen(upstream, self._on_value)

    def _on_value(self, value: Any) -> None:
        if self._remaining > 0:
            self._remaining -= 1
            return
        self._publish(value)


class ReceiveOn(Stream):
    """Re-publishes each value from a task on ``scheduler``, preserving order."""

    def __init__(self, upstream: Stream, scheduler: Scheduler, name: str | None = None) -> None:
        super().__init__(upstream.graph, name)
        self._scheduler = scheduler
        self._pending: deque[ScheduledTask] = deque()
        self._listen(upstream, self._on_value)

    def _on_value(self, value: Any) -> None:
        self._pending.append(self._scheduler.schedule(0, partial(self._deliver, value)))

    def _deliver(self, value: Any) -> None:
        while self._pending and not self._pending[0].pending:
            self._pending.popleft()
        self._publish(value)

    def _on_dispose(self) -> None:
        while self._pending:
            self._pending.popleft().cancel()


class CombineLatest(Stream):
    """
    Publishes a tuple of the latest value from each upstream.

    Nothing is published until every upstream has produced a value. The same
    stream may appear in several positions; one emission from it updates all
    of its positions at once. Inside a graph, the tuple is published once
    per propagation pass.
    """

    def __init__(self, *upstreams: Stream, graph: SignalGraph | None = None, name: str | None = None) -> None:
        if not upstreams:
            raise ValueError("combine_latest needs at least one stream")
        super().__init__(graph if graph is not None else upstreams[0].graph, name)
        self._slots: list[Any] = [_MISSING] * len(upstreams)

        positions: dict[Stream, list[int]] = {}
        for index, upstream in enumerate(upstreams):
            positions.setdefault(upstream, []).append(index)
        for upstream, indices in positions.items():
            self._listen(upstream, partial(self._on_value, tuple(indices)))

    def _on_value(self, indices: tuple[int, ...], value: Any) -> None:
        for index in indices:
            self._slots[index] = value
        if any(slot is _MISSING for slot in self._slots):
            return
        if self._graph is not None and self._graph.propagating:
            self._graph.defer(self)
        else:
            self.flush()

    def flush(self) -> None:
        self._publish(tuple(self._slots))


class SignalGraph:
    """
    Owner of a set of streams and sink subscriptions.

    ``start`` makes every source publish its initial value in one
    propagation pass; ``dispose`` cancels every sink, subscription and
    pending timer in one call.
    """

    def __init__(self, name: str = "SignalGraph") -> None:
        self._name = name
        self._nodes: list[Stream] = []
        self._sources: list[Source] = []
        self._sinks: list[Subscription] = []
        self._depth = 0
        self._draining = False
        self._rank: dict[Stream, int] = {}
        self._dirty: list[tuple[int, CombineLatest]] = []
        self._queued: set[CombineLatest] = set()
        self._started = False
        self._disposed = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def propagating(self) -> bool:
        return self._depth > 0

    @property
    def nodes(self) -> tuple[Stream, ...]:
        return tuple(self._nodes)

    def source(self, initial: Any, name: str | None = None) -> Source:
        return Source(initial, graph=self, name=name)

    def combine_latest(self, *streams: Stream, name: str | None = None) -> CombineLatest:
        return CombineLatest(*streams, graph=self, name=name)

    def adopt(self, node: Stream) -> None:
        if self._disposed:
            raise RuntimeError(f"{self._name} is disposed; cannot add {node.objectName()}")
        self._rank[node] = len(self._nodes)
        self._nodes.append(node)
        if isinstance(node, Source):
            self._sources.append(node)

    def track(self, subscription: Subscription) -> None:
        if self._disposed:
            subscription.cancel()
            return
        self._sinks.append(subscription)

    def start(self) -> None:
        if self._started or self._disposed:
            return
        self._started = True
        logger.debug(f"Starting {self._name} with {len(self._nodes)} nodes")
        with self.propagation():
            for source in self._sources:
                source.start()

    @contextmanager
    def propagation(self) -> Iterator[None]:
        """Open a propagation pass; deferred combines publish when the outermost pass ends."""
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
        if self._depth == 0 and not self._draining:
            self._drain()

    def defer(self, node: CombineLatest) -> None:
        """Queue a combine to publish when the current pass ends."""
        if node in self._queued:
            return
        self._queued.add(node)
        heapq.heappush(self._dirty, (self._rank[node], node))

    def _drain(self) -> None:
        self._draining = True
        try:
            # Creation order is topological: a combine is always built after its upstreams
            while self._dirty:
                _, node = heapq.heappop(self._dirty)
                self._queued.discard(node)
                node.flush()
        finally:
            self._draining = False

    def dispose(self) -> None:
        """Tear down the whole graph. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        for subscription in self._sinks:
            subscription.cancel()
        for node in reversed(self._nodes):
            node.dispose()
        self._sinks.clear()
        self._dirty.clear()
        self._queued.clear()
        logger.debug(f"Disposed {self._name} ({len(self._nodes)} nodes)")
