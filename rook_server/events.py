# rook_server/events.py
"""
Inbound player intents and outbound table events.

Clients speak JSON objects with a "type" field. `parse_intent` turns one into
an `Intent`; everything the table says back is an `Event`, addressed either
to the whole room, to one seat, or to one connected player.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
import enum

from .cards import Card, dict_to_card, parse_card_id
from .errors import MalformedIntent


class IntentType(enum.Enum):
    JOIN_SEAT = "join-seat"
    SELECT_PARTNER = "select-partner"
    START_ROUND = "start-round"
    RESTART_GAME = "restart-game"
    PLACE_BID = "place-bid"
    PASS_BID = "pass-bid"
    SELECT_TRUMP = "select-trump"
    DISCARD = "discard"
    PLAY_CARD = "play-card"


class EventType(enum.Enum):
    CONNECTED = "connected"
    ROOM_UPDATE = "room-update"
    PARTNER_SELECTION_RESET = "partner-selection-reset"
    GAME_RESTARTING = "game-restarting"
    ROUND_DEALT = "round-dealt"
    BID_PLACED = "bid-placed"
    BID_PASSED = "bid-passed"
    FORCED_BID = "forced-bid"
    BIDDING_RESOLVED = "bidding-resolved"
    NEST_AWARDED = "nest-awarded"
    TRUMP_CHOSEN = "trump-chosen"
    DISCARD_RESOLVED = "discard-resolved"
    HAND_UPDATED = "hand-updated"
    TRICK_TURN = "trick-turn"
    CARD_PLAYED = "card-played"
    TRICK_RESOLVED = "trick-resolved"
    ROUND_RESOLVED = "round-resolved"
    GAME_OVER = "game-over"
    AUTO_PLAY_START = "auto-play-start"
    ERROR_MESSAGE = "error-message"


@dataclass(frozen=True)
class Intent:
    type: IntentType
    name: Optional[str] = None
    room_code: Optional[str] = None
    partner_id: Optional[str] = None
    amount: Optional[int] = None
    color: Optional[str] = None
    cards: Tuple[Card, ...] = ()
    card: Optional[Card] = None


@dataclass(frozen=True)
class Event:
    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)
    # Recipients: a single player, a single seat, or (both None) the whole room.
    seat: Optional[int] = None
    player_id: Optional[str] = None

    @property
    def is_broadcast(self) -> bool:
        return self.seat is None and self.player_id is None

    def to_message(self) -> Dict[str, Any]:
        return {"type": self.type.value, "data": self.payload}


def error_event(player_id: Optional[str], code: str, message: str) -> Event:
    return Event(
        EventType.ERROR_MESSAGE,
        {"code": code, "message": message},
        player_id=player_id,
    )


def _card_from_wire(raw: Any) -> Card:
    if isinstance(raw, dict):
        return dict_to_card(raw)
    return parse_card_id(raw)


def parse_intent(data: Any) -> Intent:
    """Validate the shape of a client message and build an Intent."""
    if not isinstance(data, dict):
        raise MalformedIntent()
    try:
        intent_type = IntentType(data.get("type"))
    except ValueError:
        raise MalformedIntent(f"Unknown request type {data.get('type')!r}.") from None

    try:
        if intent_type == IntentType.JOIN_SEAT:
            name = str(data["playerName"]).strip()
            room_code = str(data["roomCode"]).strip().upper()
            if not name or not room_code:
                raise MalformedIntent("A player name and room code are required.")
            return Intent(intent_type, name=name, room_code=room_code)
        if intent_type == IntentType.SELECT_PARTNER:
            return Intent(intent_type, partner_id=str(data["partnerId"]))
        if intent_type == IntentType.PLACE_BID:
            return Intent(intent_type, amount=data["bidAmount"])
        if intent_type == IntentType.SELECT_TRUMP:
            return Intent(intent_type, color=str(data["trumpColor"]))
        if intent_type == IntentType.DISCARD:
            raw_cards = data["cards"]
            if not isinstance(raw_cards, list):
                raise MalformedIntent("Discarded cards must be a list.")
            return Intent(intent_type, cards=tuple(_card_from_wire(c) for c in raw_cards))
        if intent_type == IntentType.PLAY_CARD:
            return Intent(intent_type, card=_card_from_wire(data["card"]))
    except KeyError as exc:
        raise MalformedIntent(f"Missing field {exc.args[0]!r}.") from None
    except (TypeError, ValueError) as exc:
        raise MalformedIntent(str(exc)) from None
    return Intent(intent_type)
