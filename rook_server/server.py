# rook_server/server.py
"""FastAPI websocket transport: JSON intents in, JSON events out."""
from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from .errors import MalformedIntent, RookError
from .events import Event, EventType, error_event, parse_intent
from .room import Room, RoomRegistry
from .scheduler import AsyncioScheduler, Scheduler
from .settings import ServerSettings

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Open websockets by player id."""

    def __init__(self) -> None:
        self.connections: Dict[str, WebSocket] = {}
        # Sends started outside a request; the loop only keeps weak references.
        self.pending_sends: Set["asyncio.Task[None]"] = set()

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        player_id = uuid.uuid4().hex[:12]
        self.connections[player_id] = websocket
        logger.info("Player %s connected", player_id)
        return player_id

    def disconnect(self, player_id: str) -> None:
        if self.connections.pop(player_id, None) is not None:
            logger.info("Player %s disconnected", player_id)

    async def send(self, player_id: str, message: Dict[str, Any]) -> None:
        websocket = self.connections.get(player_id)
        if websocket is None:
            return
        try:
            await websocket.send_json(message)
        except (RuntimeError, WebSocketDisconnect):
            # Socket closed under us; the receive loop cleans up.
            logger.debug("Dropped message for closed connection %s", player_id)

    async def send_events(
        self,
        room: Optional[Room],
        events: List[Event],
        sender: Optional[str] = None,
    ) -> None:
        for event in events:
            recipients = room.recipients(event) if room is not None else []
            # Rejections reach the sender even when they never got a seat.
            if sender is not None and event.player_id == sender and sender not in recipients:
                recipients = [sender]
            message = event.to_message()
            for player_id in recipients:
                await self.send(player_id, message)

    def send_events_later(self, room: Room, events: List[Event]) -> "asyncio.Task[None]":
        """Start `send_events` from synchronous code running on the loop."""
        task = asyncio.get_running_loop().create_task(self.send_events(room, events))
        self.pending_sends.add(task)
        task.add_done_callback(self._send_finished)
        return task

    def _send_finished(self, task: "asyncio.Task[None]") -> None:
        self.pending_sends.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Sending scheduled events failed", exc_info=exc)


def create_app(
    settings: Optional[ServerSettings] = None,
    scheduler: Optional[Scheduler] = None,
) -> FastAPI:
    settings = settings or ServerSettings.from_env()
    manager = ConnectionManager()
    scheduler = scheduler or AsyncioScheduler()
    registry = RoomRegistry(scheduler, timing=settings.timing)

    def deliver(room_code: str, events: List[Event]) -> None:
        room = registry.get(room_code)
        if room is None:
            return
        manager.send_events_later(room, events)

    scheduler.deliver = deliver

    app = FastAPI(title="ROOK server")
    app.state.settings = settings
    app.state.registry = registry
    app.state.connections = manager

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "rooms": len(registry.rooms)}

    @app.get("/rooms/{room_code}")
    async def room_summary(room_code: str) -> Dict[str, Any]:
        room = registry.get(room_code.upper())
        if room is None:
            raise HTTPException(404, "Room not found")
        summary = room.room_update().payload
        summary["phase"] = room.game.phase.value if room.game is not None else "lobby"
        return summary

    @app.websocket("/ws")
    async def play(websocket: WebSocket) -> None:
        player_id = await manager.connect(websocket)
        await manager.send(
            player_id, Event(EventType.CONNECTED, {"playerId": player_id}).to_message()
        )
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    intent = parse_intent(json.loads(raw))
                except ValueError:
                    logger.warning("Unparseable message from %s: %.80s", player_id, raw)
                    exc = MalformedIntent("Messages must be JSON objects.")
                    await manager.send(player_id, error_event(player_id, exc.code, exc.message).to_message())
                    continue
                except RookError as exc:
                    logger.warning("Bad request from %s: %s", player_id, exc.message)
                    await manager.send(player_id, error_event(player_id, exc.code, exc.message).to_message())
                    continue

                room, events = registry.dispatch(player_id, intent)
                await manager.send_events(room, events, sender=player_id)
        except WebSocketDisconnect:
            pass
        finally:
            manager.disconnect(player_id)
            room, events = registry.disconnect(player_id)
            if room is not None and events:
                await manager.send_events(room, events)

    return app
