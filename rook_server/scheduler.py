# rook_server/scheduler.py
"""
Delayed continuations keyed by room code.

A room asks for `action` to run after `delay` seconds. When it fires, the
events it returns are handed to the `deliver(room_code, events)` callback
given at construction. Everything pending for a room can be dropped at once
with `cancel_room`, which is what room teardown does.

`AsyncioScheduler` runs on the event loop with `loop.call_later`;
`ManualScheduler` just queues and lets tests fire continuations by hand.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from .events import Event

logger = logging.getLogger(__name__)

Continuation = Callable[[], List[Event]]
Deliver = Callable[[str, List[Event]], None]


@runtime_checkable
class Scheduler(Protocol):
    def schedule(self, room_code: str, delay: float, action: Continuation) -> None:
        ...

    def cancel_room(self, room_code: str) -> int:
        """Drop every pending continuation for a room; returns how many."""
        ...

    def pending(self, room_code: str) -> int:
        ...


def _run(room_code: str, action: Continuation, deliver: Optional[Deliver]) -> List[Event]:
    events = action()
    if events and deliver is not None:
        deliver(room_code, events)
    return events


class AsyncioScheduler:
    def __init__(
        self,
        deliver: Optional[Deliver] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.deliver = deliver
        self._loop = loop
        self._ids = itertools.count()
        self._handles: Dict[str, Dict[int, asyncio.TimerHandle]] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, room_code: str, delay: float, action: Continuation) -> None:
        task_id = next(self._ids)
        handle = self.loop.call_later(delay, self._fire, room_code, task_id, action)
        self._handles.setdefault(room_code, {})[task_id] = handle

    def _fire(self, room_code: str, task_id: int, action: Continuation) -> None:
        room_handles = self._handles.get(room_code)
        if room_handles is None or room_handles.pop(task_id, None) is None:
            return
        if not room_handles:
            del self._handles[room_code]
        try:
            _run(room_code, action, self.deliver)
        except Exception:
            logger.exception("Scheduled continuation for room %s failed", room_code)

    def cancel_room(self, room_code: str) -> int:
        room_handles = self._handles.pop(room_code, {})
        for handle in room_handles.values():
            handle.cancel()
        if room_handles:
            logger.debug("Cancelled %d pending continuations for room %s", len(room_handles), room_code)
        return len(room_handles)

    def pending(self, room_code: str) -> int:
        return len(self._handles.get(room_code, {}))


@dataclass
class ManualScheduler:
    """Queue-only scheduler: nothing runs until `run_next`/`run_all` is called."""

    deliver: Optional[Deliver] = None
    queue: List[Tuple[str, float, Continuation]] = field(default_factory=list)
    delivered: List[Tuple[str, Event]] = field(default_factory=list)

    def schedule(self, room_code: str, delay: float, action: Continuation) -> None:
        self.queue.append((room_code, delay, action))

    def cancel_room(self, room_code: str) -> int:
        before = len(self.queue)
        self.queue = [entry for entry in self.queue if entry[0] != room_code]
        return before - len(self.queue)

    def pending(self, room_code: str) -> int:
        return sum(1 for entry in self.queue if entry[0] == room_code)

    def delays(self, room_code: str) -> List[float]:
        return [delay for code, delay, _ in self.queue if code == room_code]

    def run_next(self) -> List[Event]:
        if not self.queue:
            return []
        room_code, _, action = self.queue.pop(0)
        events = _run(room_code, action, self.deliver)
        self.delivered.extend((room_code, event) for event in events)
        return events

    def run_all(self, limit: int = 10_000) -> List[Event]:
        """Fire continuations (including ones they schedule) until the queue drains."""
        events: List[Event] = []
        for _ in range(limit):
            if not self.queue:
                return events
            events.extend(self.run_next())
        raise RuntimeError(f"Scheduler still busy after {limit} continuations")
