"""Lazy, parent-scoped cache of child metadata objects.

One ``ChildObjectCache`` maps a parent entity (a schema, a table) to the
ordered collection of its children (tables, columns, indexes, constraints).
Entries are populated on first access through an injected loader and stay
until explicitly cleared.

Concurrency model:
    - The slot map lock only guards creating and evicting per-parent slots.
    - Each parent slot has its own lock; loads run outside every lock.
    - The first caller that sees an unloaded slot starts a load; concurrent
      callers for the same parent wait for that load and share its outcome.
    - Every slot carries a generation number. ``clear`` and
      ``cache_children`` bump it, so a load that started before them can
      still answer its own waiters but never writes its result back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import itertools
import logging
import threading
from typing import Any, Callable, Generic, Hashable, Iterable, Optional, Sequence, TypeVar

from ..core.exceptions import LoadCanceledError, LoadError
from .monitor import LoadMonitor

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Hashable)
C = TypeVar("C")

Loader = Callable[[P, LoadMonitor], Iterable[C]]


class EntryState(str, Enum):
    """Load state of one parent's entry."""
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class _Flight:
    """One in-flight loader invocation that other callers can join."""

    def __init__(self, generation: int) -> None:
        self.generation = generation
        self.done = threading.Event()
        self.children: tuple | None = None
        self.error: LoadError | None = None


class _Slot:
    def __init__(self, generation: int) -> None:
        self.lock = threading.Lock()
        self.generation = generation
        self.state = EntryState.UNLOADED
        self.children: tuple | None = None
        self.error: LoadError | None = None
        self.flight: _Flight | None = None
        self.evicted = False


@dataclass
class CacheStats:
    """Counters for cache diagnostics."""
    loads: int = 0
    hits: int = 0
    joins: int = 0
    failures: int = 0
    discarded: int = 0


def find_object(objects: Iterable[C], identifier: int | str) -> Optional[C]:
    """Find a child by numeric ``object_id`` or by ``name``.

    Names are matched exactly first and then case-insensitively, mirroring the
    default case-insensitive collation of SQL Server catalogs.
    """
    if isinstance(identifier, int) and not isinstance(identifier, bool):
        for obj in objects:
            if getattr(obj, "object_id", None) == identifier:
                return obj
        return None

    objects = list(objects)
    for obj in objects:
        if getattr(obj, "name", None) == identifier:
            return obj
    folded = str(identifier).casefold()
    for obj in objects:
        name = getattr(obj, "name", None)
        if name is not None and name.casefold() == folded:
            return obj
    return None


class ChildObjectCache(Generic[P, C]):
    """Memoizes the children of each parent, loading them at most once per cycle."""

    def __init__(self, loader: Loader, name: str = "objects") -> None:
        self.name = name
        self._loader = loader
        self._slots: dict[P, _Slot] = {}
        self._slots_lock = threading.Lock()
        self._generations = itertools.count(1)
        self._stats = CacheStats()

    def _get_slot(self, parent: P, create: bool = True) -> Optional[_Slot]:
        with self._slots_lock:
            slot = self._slots.get(parent)
            if slot is None and create:
                slot = _Slot(next(self._generations))
                self._slots[parent] = slot
            return slot

    def _count(self, counter: str) -> None:
        with self._slots_lock:
            setattr(self._stats, counter, getattr(self._stats, counter) + 1)

    def get_children(self, parent: P, monitor: Optional[LoadMonitor] = None) -> tuple[C, ...]:
        """Return the children of ``parent``, loading them on first access.

        Raises:
            LoadError: If the loader failed, now or in the current load cycle
        """
        while True:
            slot = self._get_slot(parent)
            with slot.lock:
                if slot.evicted:
                    # cleared between lookup and lock; pick up the fresh slot
                    continue
                if slot.state is EntryState.LOADED:
                    self._count("hits")
                    return slot.children
                if slot.state is EntryState.ERROR:
                    self._count("hits")
                    # drop frames of earlier raises so repeated reads do not grow the traceback
                    raise slot.error.with_traceback(None)
                flight = slot.flight
                owner = flight is None
                if owner:
                    flight = _Flight(slot.generation)
                    slot.flight = flight
                    slot.state = EntryState.LOADING
            break

        if owner:
            return self._load(parent, slot, flight, monitor)

        self._count("joins")
        logger.debug(f"{self.name}: waiting for in-flight load of {parent!r}")
        flight.done.wait()
        if flight.error is not None:
            raise flight.error.with_traceback(None)
        return flight.children

    def _load(self, parent: P, slot: _Slot, flight: _Flight, monitor: Optional[LoadMonitor]) -> tuple[C, ...]:
        if monitor is None:
            monitor = LoadMonitor(f"{self.name}:{parent!r}")
        self._count("loads")
        logger.debug(f"{self.name}: loading children of {parent!r}")
        try:
            children = tuple(self._loader(parent, monitor))
        except LoadCanceledError as e:
            # only this caller gave up; later readers must be able to load
            if e.parent is None:
                e.parent = parent
            logger.info(f"{self.name}: load of {parent!r} canceled: {e}")
            self._abandon(slot, flight, e)
            raise
        except Exception as e:
            if isinstance(e, LoadError):
                error = e
                if error.parent is None:
                    error.parent = parent
            else:
                error = LoadError(str(e) or e.__class__.__name__, parent=parent, cause=e)
            self._count("failures")
            logger.error(f"{self.name}: failed to load children of {parent!r}: {error}")
            self._finish(slot, flight, None, error)
            if error is e:
                raise
            raise error from e
        else:
            self._finish(slot, flight, children, None)
        finally:
            if not flight.done.is_set():
                # interrupted by a BaseException; leave the entry unloaded
                self._abandon(slot, flight)
        return children

    def _finish(self, slot: _Slot, flight: _Flight, children: tuple | None, error: LoadError | None) -> None:
        with slot.lock:
            if slot.flight is flight:
                slot.flight = None
            current = slot.generation == flight.generation and not slot.evicted
            if current:
                if error is None:
                    slot.state = EntryState.LOADED
                    slot.children = children
                else:
                    slot.state = EntryState.ERROR
                    slot.error = error
        if not current:
            self._count("discarded")
            logger.debug(f"{self.name}: discarded stale load result (generation {flight.generation})")
        flight.children = children
        flight.error = error
        flight.done.set()

    def _abandon(self, slot: _Slot, flight: _Flight, error: LoadError | None = None) -> None:
        with slot.lock:
            if slot.flight is flight:
                slot.flight = None
                if slot.generation == flight.generation:
                    slot.state = EntryState.UNLOADED
        flight.error = error or LoadError(f"{self.name}: load was interrupted")
        flight.done.set()

    def get_child(self, parent: P, identifier: int | str, monitor: Optional[LoadMonitor] = None) -> Optional[C]:
        """Return the child matching ``identifier`` or None when there is none.

        Absence is a normal outcome; only loader failures raise.
        """
        return find_object(self.get_children(parent, monitor), identifier)

    def get_cached_children(self, parent: P) -> Optional[tuple[C, ...]]:
        """Return the loaded children without ever triggering a load."""
        slot = self._get_slot(parent, create=False)
        if slot is None:
            return None
        with slot.lock:
            return slot.children if slot.state is EntryState.LOADED else None

    def cache_children(self, parent: P, children: Sequence[C]) -> tuple[C, ...]:
        """Store ``children`` as the loaded entry of ``parent`` without calling the loader."""
        snapshot = tuple(children)
        while True:
            slot = self._get_slot(parent)
            with slot.lock:
                if slot.evicted:
                    continue
                slot.generation = next(self._generations)
                slot.state = EntryState.LOADED
                slot.children = snapshot
                slot.error = None
                slot.flight = None
            return snapshot

    def clear(self, parent: P) -> None:
        """Evict the entry of ``parent``. Other parents are not touched."""
        with self._slots_lock:
            slot = self._slots.pop(parent, None)
        if slot is None:
            return
        self._invalidate(slot)
        logger.debug(f"{self.name}: cleared {parent!r}")

    def clear_all(self) -> None:
        """Evict every entry."""
        with self._slots_lock:
            slots = list(self._slots.values())
            self._slots.clear()
        for slot in slots:
            self._invalidate(slot)
        logger.info(f"{self.name}: cleared {len(slots)} entries")

    def _invalidate(self, slot: _Slot) -> None:
        with slot.lock:
            slot.evicted = True
            slot.generation = next(self._generations)
            slot.state = EntryState.UNLOADED
            slot.children = None
            slot.error = None
            slot.flight = None

    def state(self, parent: P) -> EntryState:
        slot = self._get_slot(parent, create=False)
        if slot is None:
            return EntryState.UNLOADED
        with slot.lock:
            return slot.state

    def is_loaded(self, parent: P) -> bool:
        return self.state(parent) is EntryState.LOADED

    def get_error(self, parent: P) -> Optional[LoadError]:
        slot = self._get_slot(parent, create=False)
        if slot is None:
            return None
        with slot.lock:
            return slot.error if slot.state is EntryState.ERROR else None

    def stats(self) -> dict[str, Any]:
        """Snapshot of entry states and counters."""
        with self._slots_lock:
            slots = list(self._slots.values())
            counters = CacheStats(**vars(self._stats))
        states = {state.value: 0 for state in EntryState}
        for slot in slots:
            with slot.lock:
                states[slot.state.value] += 1
        return {
            "name": self.name,
            "entries": len(slots),
            "states": states,
            "loads": counters.loads,
            "hits": counters.hits,
            "joins": counters.joins,
            "failures": counters.failures,
            "discarded": counters.discarded,
        }

    def __repr__(self) -> str:
        return f"ChildObjectCache({self.name!r}, entries={len(self._slots)})"
