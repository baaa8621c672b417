# rook_server/room.py
"""
Rooms: the lobby around one `RookGame` and the single entry point for
everything a player asks of it.

`Room.dispatch(player_id, intent)` is the only way in. It validates the
intent against the lobby or the game, returns the events to send, and turns
a rejected intent into one `error-message` for the sender. After every
change the room decides which timed step comes next (clearing a finished
trick, announcing the round, dealing again, auto-play) and hands it to the
scheduler under the room code, so tearing a room down cancels all of it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from . import autoplay
from .engine import RookGame
from .errors import (
    GameAlreadyStarted,
    MalformedIntent,
    NotReady,
    RookError,
    RoomFull,
    RoomNotFound,
    Unauthorized,
    WrongPhase,
)
from .events import Event, EventType, Intent, IntentType, error_event
from .ruleset import KENTUCKY_ROOK, RuleSet
from .scheduler import Scheduler
from .settings import Timing
from .state import Phase

logger = logging.getLogger(__name__)


@dataclass
class Player:
    player_id: str
    name: str
    seat: Optional[int] = None


class Room:
    def __init__(
        self,
        code: str,
        scheduler: Scheduler,
        timing: Timing = Timing(),
        ruleset: RuleSet = KENTUCKY_ROOK,
        rng_seed: Optional[int] = None,
    ) -> None:
        self.code = code
        self.scheduler = scheduler
        self.timing = timing
        self.ruleset = ruleset
        self.rng_seed = rng_seed
        # Insertion order is join order; the first entry is the host fallback.
        self.players: Dict[str, Player] = {}
        self.host_id: Optional[str] = None
        self.partner_id: Optional[str] = None
        self.game: Optional[RookGame] = None
        self.closed = False
        # Bumped on restart and teardown so stale continuations do nothing.
        self._epoch = 0

    # -------------------------------------------------------------------------
    # Addressing
    # -------------------------------------------------------------------------

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.ruleset.num_seats

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def started(self) -> bool:
        return self.game is not None

    def player_at(self, seat: int) -> Optional[Player]:
        for player in self.players.values():
            if player.seat == seat:
                return player
        return None

    def recipients(self, event: Event) -> List[str]:
        """Player ids an event should reach; departed players are skipped."""
        if event.player_id is not None:
            return [event.player_id] if event.player_id in self.players else []
        if event.seat is not None:
            player = self.player_at(event.seat)
            return [player.player_id] if player else []
        return list(self.players)

    def room_update(self) -> Event:
        return Event(
            EventType.ROOM_UPDATE,
            {
                "roomCode": self.code,
                "players": [
                    {"id": p.player_id, "name": p.name, "position": p.seat}
                    for p in self.players.values()
                ],
                "hostId": self.host_id,
                "partnerId": self.partner_id,
                "started": self.started,
            },
        )

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def dispatch(self, player_id: str, intent: Intent) -> List[Event]:
        try:
            events = self._handle(player_id, intent)
        except RookError as exc:
            logger.info(
                "Rejected %s from %s in room %s: %s",
                intent.type.value,
                player_id,
                self.code,
                exc.message,
            )
            return [error_event(player_id, exc.code, exc.message)]
        self._follow_up(events)
        return events

    def _handle(self, player_id: str, intent: Intent) -> List[Event]:
        if intent.type == IntentType.JOIN_SEAT:
            return self.join(player_id, intent.name or "")

        player = self.players.get(player_id)
        if player is None:
            raise RoomNotFound("You are not in this room.")

        if intent.type == IntentType.SELECT_PARTNER:
            return self._select_partner(player_id, intent.partner_id)
        if intent.type == IntentType.START_ROUND:
            return self._start_game(player_id)
        if intent.type == IntentType.RESTART_GAME:
            return self._restart(player_id)

        game = self._require_game()
        seat = player.seat
        if intent.type == IntentType.PLACE_BID:
            if intent.amount is None:
                raise MalformedIntent("A bid amount is required.")
            return game.place_bid(seat, intent.amount)
        if intent.type == IntentType.PASS_BID:
            return game.pass_bid(seat)
        if intent.type == IntentType.SELECT_TRUMP:
            return game.select_trump(seat, intent.color or "")
        if intent.type == IntentType.DISCARD:
            return game.discard(seat, intent.cards)
        if intent.type == IntentType.PLAY_CARD:
            if intent.card is None:
                raise MalformedIntent("A card is required.")
            return game.play_card(seat, intent.card)
        raise MalformedIntent(f"Unsupported request {intent.type.value!r}.")

    def _require_game(self) -> RookGame:
        if self.game is None:
            raise WrongPhase("The game has not started yet.")
        return self.game

    # -------------------------------------------------------------------------
    # Lobby
    # -------------------------------------------------------------------------

    def join(self, player_id: str, name: str) -> List[Event]:
        if player_id in self.players:
            return [self.room_update()]
        if self.started:
            raise GameAlreadyStarted()
        if self.is_full:
            raise RoomFull()

        self.players[player_id] = Player(player_id=player_id, name=name)
        if self.host_id is None:
            self.host_id = player_id
        logger.info("%s joined room %s (%d/%d)", name, self.code, len(self.players), self.ruleset.num_seats)
        return [self.room_update()]

    def _select_partner(self, player_id: str, partner_id: Optional[str]) -> List[Event]:
        if player_id != self.host_id:
            raise Unauthorized("Only the host can select a partner.")
        if self.started:
            raise GameAlreadyStarted()
        if partner_id not in self.players or partner_id == player_id:
            raise MalformedIntent("Your partner must be another player in this room.")

        self.partner_id = partner_id
        logger.info(
            "Host %s picked %s as partner in room %s",
            self.players[player_id].name,
            self.players[partner_id].name,
            self.code,
        )
        return [self.room_update()]

    def _start_game(self, player_id: str) -> List[Event]:
        if self.started:
            raise GameAlreadyStarted()
        if player_id != self.host_id:
            raise Unauthorized("Only the host can start the game.")
        if len(self.players) != self.ruleset.num_seats:
            raise NotReady(f"Need exactly {self.ruleset.num_seats} players to start.")
        if self.partner_id is None:
            raise NotReady("Select a partner before starting.")

        # Host and partner sit across from each other as team 0.
        others = [pid for pid in self.players if pid not in (self.host_id, self.partner_id)]
        seating = {self.host_id: 0, others[0]: 1, self.partner_id: 2, others[1]: 3}
        for pid, seat in seating.items():
            self.players[pid].seat = seat

        names = [self.player_at(seat).name for seat in range(self.ruleset.num_seats)]
        self.game = RookGame(
            names,
            ruleset=self.ruleset,
            rng_seed=self.rng_seed,
            game_label=f"room {self.code}",
        )
        logger.info("Game started in room %s: %s", self.code, ", ".join(names))
        return [self.room_update()] + self.game.start_round()

    def _restart(self, player_id: str) -> List[Event]:
        game = self._require_game()
        if player_id != self.host_id:
            raise Unauthorized("Only the host can restart the game.")
        if game.state.winning_team is None:
            raise WrongPhase("The game is still in progress.")
        self._epoch += 1
        self.scheduler.cancel_room(self.code)
        return game.restart()

    def leave(self, player_id: str) -> List[Event]:
        """Remove a disconnected player. Game state is left as it is."""
        player = self.players.pop(player_id, None)
        if player is None:
            return []
        logger.info("%s left room %s", player.name, self.code)

        if self.is_empty:
            self.close()
            return []

        events: List[Event] = []
        if player_id == self.host_id:
            self.host_id = next(iter(self.players))
            logger.info("%s is now host of room %s", self.players[self.host_id].name, self.code)
            if self.partner_id is not None:
                self.partner_id = None
                events.append(Event(EventType.PARTNER_SELECTION_RESET))
        elif player_id == self.partner_id:
            self.partner_id = None
            events.append(Event(EventType.PARTNER_SELECTION_RESET))
        events.append(self.room_update())
        return events

    def close(self) -> None:
        self._epoch += 1
        self.closed = True
        cancelled = self.scheduler.cancel_room(self.code)
        logger.info("Room %s torn down (%d pending steps cancelled)", self.code, cancelled)

    # -------------------------------------------------------------------------
    # Timed continuations
    # -------------------------------------------------------------------------

    def _schedule(self, delay: float, step: Callable[[], List[Event]]) -> None:
        epoch = self._epoch

        def run() -> List[Event]:
            if self.closed or epoch != self._epoch or self.game is None:
                return []
            try:
                events = step()
            except RookError as exc:
                logger.warning("Skipped scheduled step in room %s: %s", self.code, exc.message)
                return []
            self._follow_up(events)
            return events

        self.scheduler.schedule(self.code, delay, run)

    def _follow_up(self, events: List[Event]) -> None:
        """Queue whatever has to happen on its own after `events`."""
        game = self.game
        if game is None or not events:
            return
        types = [e.type for e in events]

        if EventType.GAME_RESTARTING in types or EventType.GAME_OVER in types:
            return
        if EventType.TRICK_RESOLVED in types:
            resolved = [e for e in events if e.type == EventType.TRICK_RESOLVED][-1]
            if resolved.payload["isLastTrick"]:
                self._schedule(self.timing.round_result_pause, game.complete_round)
            else:
                self._schedule(self.timing.trick_pause, game.next_trick)
            return
        if EventType.ROUND_RESOLVED in types:
            self._schedule(self.timing.next_round_delay, game.start_round)
            return

        rnd = game.round
        if rnd is None or rnd.phase != Phase.PLAYING:
            return
        if game.state.autoplay_active:
            if EventType.AUTO_PLAY_START in types or EventType.CARD_PLAYED in types or EventType.TRICK_TURN in types:
                self._schedule(self.timing.autoplay_step_delay, self._autoplay_step)
            return
        if autoplay.autoplay_ready(game):
            self._schedule(self.timing.autoplay_start_delay, self._begin_autoplay)

    def _begin_autoplay(self) -> List[Event]:
        # A human may have led in the meantime.
        if not autoplay.autoplay_ready(self.game):
            return []
        return autoplay.start_autoplay(self.game)

    def _autoplay_step(self) -> List[Event]:
        return autoplay.autoplay_step(self.game)


class RoomRegistry:
    """All live rooms, by code, plus which room each player is in."""

    def __init__(
        self,
        scheduler: Scheduler,
        timing: Timing = Timing(),
        ruleset: RuleSet = KENTUCKY_ROOK,
        rng_seed: Optional[int] = None,
    ) -> None:
        self.scheduler = scheduler
        self.timing = timing
        self.ruleset = ruleset
        self.rng_seed = rng_seed
        self.rooms: Dict[str, Room] = {}
        self._membership: Dict[str, str] = {}

    def get(self, code: str) -> Optional[Room]:
        return self.rooms.get(code)

    def room_of(self, player_id: str) -> Optional[Room]:
        code = self._membership.get(player_id)
        return self.rooms.get(code) if code is not None else None

    def dispatch(self, player_id: str, intent: Intent) -> Tuple[Optional[Room], List[Event]]:
        """Route an intent to the player's room (creating one on first join)."""
        if intent.type == IntentType.JOIN_SEAT:
            return self._join(player_id, intent)

        room = self.room_of(player_id)
        if room is None:
            exc = RoomNotFound("Join a room first.")
            return None, [error_event(player_id, exc.code, exc.message)]
        return room, room.dispatch(player_id, intent)

    def _join(self, player_id: str, intent: Intent) -> Tuple[Optional[Room], List[Event]]:
        current = self.room_of(player_id)
        if current is not None and current.code != intent.room_code:
            exc = WrongPhase(f"You are already in room {current.code}.")
            return current, [error_event(player_id, exc.code, exc.message)]

        room = self.rooms.get(intent.room_code)
        created = room is None
        if created:
            room = Room(
                intent.room_code,
                self.scheduler,
                timing=self.timing,
                ruleset=self.ruleset,
                rng_seed=self.rng_seed,
            )
            self.rooms[room.code] = room
            logger.info("Created room %s", room.code)

        events = room.dispatch(player_id, intent)
        if player_id in room.players:
            self._membership[player_id] = room.code
        elif created:
            del self.rooms[room.code]
        return room, events

    def disconnect(self, player_id: str) -> Tuple[Optional[Room], List[Event]]:
        room = self.room_of(player_id)
        self._membership.pop(player_id, None)
        if room is None:
            return None, []
        events = room.leave(player_id)
        if room.closed:
            self.rooms.pop(room.code, None)
        return room, events
