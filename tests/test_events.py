# tests/test_events.py
import pytest

from rook_server.cards import ROOK, Card, CardType, Color
from rook_server.errors import MalformedIntent
from rook_server.events import Event, EventType, IntentType, error_event, parse_intent


def test_join_seat_upper_cases_room_code():
    intent = parse_intent({"type": "join-seat", "playerName": " Ann ", "roomCode": "ab12"})
    assert intent.type == IntentType.JOIN_SEAT
    assert intent.name == "Ann"
    assert intent.room_code == "AB12"


def test_join_seat_requires_name_and_code():
    with pytest.raises(MalformedIntent):
        parse_intent({"type": "join-seat", "playerName": "", "roomCode": "AB12"})
    with pytest.raises(MalformedIntent):
        parse_intent({"type": "join-seat", "playerName": "Ann"})


def test_bid_and_pass():
    assert parse_intent({"type": "place-bid", "bidAmount": 120}).amount == 120
    assert parse_intent({"type": "pass-bid"}).type == IntentType.PASS_BID


def test_trump_color_kept_as_text_for_engine_validation():
    intent = parse_intent({"type": "select-trump", "trumpColor": "Mauve"})
    assert intent.color == "Mauve"


def test_cards_by_id_or_dict():
    intent = parse_intent(
        {
            "type": "discard",
            "cards": ["Red05", {"id": "ROOK"}, {"color": "Green", "number": 14}],
        }
    )
    assert intent.cards == (
        Card(CardType.NUMBER, Color.RED, 5),
        ROOK,
        Card(CardType.NUMBER, Color.GREEN, 14),
    )
    assert parse_intent({"type": "play-card", "card": "Black01"}).card == Card(CardType.NUMBER, Color.BLACK, 1)


@pytest.mark.parametrize(
    "message",
    [
        "not a dict",
        {"type": "shuffle-deck"},
        {"type": "place-bid"},
        {"type": "discard", "cards": "Red05"},
        {"type": "play-card", "card": "Purple99"},
        {"type": "play-card", "card": {"color": "Green"}},
    ],
)
def test_malformed_messages(message):
    with pytest.raises(MalformedIntent):
        parse_intent(message)


def test_event_wire_shape():
    event = Event(EventType.TRICK_TURN, {"currentPlayer": 2})
    assert event.is_broadcast
    assert event.to_message() == {"type": "trick-turn", "data": {"currentPlayer": 2}}

    err = error_event("p1", "illegal-turn", "It is not your turn.")
    assert not err.is_broadcast
    assert err.to_message()["data"] == {"code": "illegal-turn", "message": "It is not your turn."}
