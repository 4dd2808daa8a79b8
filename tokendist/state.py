from __future__ import annotations

"""
Atomic keyed stores
-------------------

Every component of the engine (flexible staking, fixed-term pools, vesting
registry, roles, pause switch) owns explicit keyed stores (account/pool key →
record) and derives from :class:`AtomicStore`.

A state-changing operation runs inside ``with self.transaction(op) as now:``
which gives it the following guarantees:

  • Serialization: a coarse ``threading.RLock`` admits one writer at a time.
  • One clock read: ``now`` is read once on entry and shared by every
    computation in the call (nested calls from the same thread reuse it).
  • All-or-nothing: if the body raises (including when the ledger transfer
    issued at the very end fails) every change is reverted.
  • Events are buffered and only reach the sink after the body returns.

Reverting is copy-on-write. Keyed maps and sets (``_keyed_fields``) are
journaled one record at a time: a mutator calls ``self._touch(field, key)``
before it changes, adds or deletes ``field[key]``, and the first touch in an
operation remembers the record's prior value. Only touched records are ever
copied, so the cost of an operation follows what it changes rather than how
many accounts the store holds. Small admin-sized attributes (flags, tier and
pool lists) are listed in ``_state_fields`` and copied whole on entry.

Ledger transfers are issued last inside the body (state-then-transfer), so a
re-entrant call made by the ledger observes post-mutation state.
"""


import copy
import logging
from contextlib import contextmanager
from threading import RLock
from typing import Any, Dict, Hashable, Iterator, List, Optional, Tuple

from . import metrics
from .clock import Clock, SystemClock
from .events import Event, EventSink, NullEventSink

log = logging.getLogger(__name__)

# journal marker for "key was absent before the operation"
_MISSING = object()


class AtomicStore:
    """Base class for components whose operations must be all-or-nothing."""

    #: metric/log label for this component
    component: str = "store"
    #: small attributes copied whole at the start of every operation
    _state_fields: Tuple[str, ...] = ()
    #: dict/set attributes journaled per key through ``_touch``
    _keyed_fields: Tuple[str, ...] = ()

    def __init__(self, *, clock: Optional[Clock] = None, events: Optional[EventSink] = None) -> None:
        self._clock: Clock = clock or SystemClock()
        self._sink: EventSink = events if events is not None else NullEventSink()
        self._lock = RLock()
        self._depth = 0
        self._now: Optional[int] = None
        self._pending: List[Event] = []
        self._journal: Dict[Tuple[str, Hashable], Any] = {}

    # --- clock ---

    @property
    def clock(self) -> Clock:
        return self._clock

    def current_time(self) -> int:
        """``now`` of the running operation, else a fresh clock read (views)."""
        if self._now is not None:
            return self._now
        return int(self._clock.now())

    # --- snapshot / journal / restore ---

    def _snapshot(self) -> Dict[str, Any]:
        return {name: copy.deepcopy(getattr(self, name)) for name in self._state_fields}

    def _touch(self, field: str, key: Hashable) -> None:
        """Journal ``field[key]`` before it is changed by the running operation."""
        if self._depth == 0:
            raise RuntimeError(f"{field}[{key!r}] changed outside of a transaction")
        slot = (field, key)
        if slot in self._journal:
            return
        store = getattr(self, field)
        if isinstance(store, set):
            self._journal[slot] = key in store
        elif key in store:
            self._journal[slot] = copy.deepcopy(store[key])
        else:
            self._journal[slot] = _MISSING

    def _restore(self, snap: Dict[str, Any]) -> None:
        for name, value in snap.items():
            setattr(self, name, value)
        for (field, key), before in self._journal.items():
            store = getattr(self, field)
            if isinstance(store, set):
                if before:
                    store.add(key)
                else:
                    store.discard(key)
            elif before is _MISSING:
                store.pop(key, None)
            else:
                store[key] = before

    # --- events ---

    def _emit(self, name: str, **fields: Any) -> None:
        if self._depth == 0:
            raise RuntimeError(f"event {name!r} emitted outside of a transaction")
        self._pending.append(Event(name=name, fields=fields, ts=self.current_time()))

    def _after_commit(self) -> None:
        """Hook run after a successful outermost commit (gauges etc.)."""

    # --- transaction ---

    @contextmanager
    def transaction(self, op: str) -> Iterator[int]:
        with self._lock:
            if self._depth:
                # Nested call on the same thread: part of the outer operation.
                self._depth += 1
                try:
                    yield self.current_time()
                finally:
                    self._depth -= 1
                return

            snap = self._snapshot()
            self._journal = {}
            self._now = int(self._clock.now())
            self._pending = []
            self._depth = 1
            try:
                with metrics.time_operation(self.component):
                    yield self._now
            except Exception as exc:
                self._restore(snap)
                dropped = len(self._pending)
                self._pending = []
                metrics.record_operation(self.component, op, "failed")
                log.warning(
                    "%s.%s rolled back: %s (dropped %d event(s), %d record(s) reverted)",
                    self.component,
                    op,
                    exc,
                    dropped,
                    len(self._journal),
                )
                raise
            else:
                events, self._pending = self._pending, []
                metrics.record_operation(self.component, op, "ok")
                if events:
                    self._sink.publish(events)
                self._after_commit()
            finally:
                self._journal = {}
                self._depth = 0
                self._now = None


__all__ = ["AtomicStore"]
