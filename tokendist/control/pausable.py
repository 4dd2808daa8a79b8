# -*- coding: utf-8 -*-
"""
tokendist.control.pausable
==========================

Pause switch for a component (the vesting registry uses one: admissions are
refused while paused, and the commitment root may only change while paused).

Key Points
----------
- Single boolean flag per instance.
- Changing the flag requires ``MANAGER_ROLE`` on the configured gate.
- Emitted Events (on change only):
  * ``Paused``   : {"account"}
  * ``Unpaused`` : {"account"}

Public API
----------
- ``is_paused() -> bool``
- ``require_not_paused()``: raises ``EnforcedPause`` if paused
- ``require_paused()``: raises ``ExpectedPause`` if NOT paused
- ``pause(caller)`` / ``unpause(caller)``
- ``set_paused(caller, flag)``: idempotent toggle
"""
from __future__ import annotations

import logging
from typing import Optional

from ..access.roles import MANAGER_ROLE
from ..clock import Clock
from ..errors import EnforcedPause, ExpectedPause
from ..events import PAUSED, UNPAUSED, EventSink
from ..interfaces import AccessGate
from ..state import AtomicStore

__all__ = ["Pausable"]

log = logging.getLogger(__name__)


class Pausable(AtomicStore):
    component = "pausable"
    _state_fields = ("_paused",)

    def __init__(
        self,
        gate: AccessGate,
        *,
        paused: bool = False,
        role: bytes = MANAGER_ROLE,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        super().__init__(clock=clock, events=events)
        self._gate = gate
        self._role = role
        self._paused = bool(paused)

    def is_paused(self) -> bool:
        return self._paused

    def require_not_paused(self) -> None:
        if self._paused:
            raise EnforcedPause()

    def require_paused(self) -> None:
        if not self._paused:
            raise ExpectedPause()

    def pause(self, caller: str) -> None:
        with self.transaction("pause"):
            self._gate.require_role(self._role, caller)
            self.require_not_paused()
            self._paused = True
            self._emit(PAUSED, account=caller)
        log.info("paused by %s", caller)

    def unpause(self, caller: str) -> None:
        with self.transaction("unpause"):
            self._gate.require_role(self._role, caller)
            self.require_paused()
            self._paused = False
            self._emit(UNPAUSED, account=caller)
        log.info("unpaused by %s", caller)

    def set_paused(self, caller: str, flag: bool) -> None:
        """Set the flag to ``flag``; a no-op when it already has that value."""
        if bool(flag) == self._paused:
            self._gate.require_role(self._role, caller)
            return
        if flag:
            self.pause(caller)
        else:
            self.unpause(caller)
