# tests/test_autoplay.py
import pytest

from rook_server.autoplay import (
    autoplay_ready,
    autoplay_step,
    choose_autoplay_card,
    lowest_card,
    play_out,
    should_autoplay,
    start_autoplay,
)
from rook_server.cards import ROOK, Card, CardType, Color
from rook_server.engine import RookGame
from rook_server.errors import IllegalTurn
from rook_server.events import EventType
from rook_server.ruleset import KENTUCKY_ROOK
from rook_server.state import Phase, Trick


def c(color: Color, rank: int) -> Card:
    return Card(CardType.NUMBER, color, rank, points=KENTUCKY_ROOK.points_for_rank(rank))


def _endgame(partner_hand=None) -> RookGame:
    """Seat 1 declared Green and is on lead for the last three tricks."""
    game = RookGame(["Ann", "Bob", "Cat", "Dan"], rng_seed=4)
    game.start_round()
    game.place_bid(1, 100)
    for seat in (2, 3, 0):
        game.pass_bid(seat)
    game.select_trump(1, "Green")
    game.discard(1, list(game.hand_of(1)[:5]))

    rnd = game.round
    rnd.tricks.extend(Trick(winner=1) for _ in range(7))
    rnd.hands[1] = [ROOK, c(Color.GREEN, 14), c(Color.GREEN, 9)]
    rnd.hands[2] = [c(Color.RED, 5), c(Color.BLACK, 6), c(Color.YELLOW, 6)]
    rnd.hands[3] = partner_hand or [c(Color.RED, 14), c(Color.RED, 10), c(Color.BLACK, 1)]
    rnd.hands[0] = [c(Color.YELLOW, 13), c(Color.YELLOW, 12), c(Color.BLACK, 8)]
    rnd.current_player = 1
    return game


def test_lowest_card_by_points_then_number():
    assert lowest_card([c(Color.RED, 5), c(Color.BLACK, 6), c(Color.YELLOW, 6)]) == c(Color.BLACK, 6)
    assert lowest_card([c(Color.RED, 14), c(Color.RED, 10), c(Color.BLACK, 1)]) == c(Color.RED, 10)
    with pytest.raises(ValueError):
        lowest_card([])


def test_condition_detected():
    game = _endgame()
    assert should_autoplay(game.round, 1)
    assert autoplay_ready(game)
    # Only the declarer on lead qualifies.
    assert not should_autoplay(game.round, 2)


def test_condition_fails_when_any_other_seat_holds_trump():
    game = _endgame(partner_hand=[c(Color.GREEN, 6), c(Color.RED, 10), c(Color.BLACK, 1)])
    assert not should_autoplay(game.round, 1)


def test_condition_fails_when_declarer_holds_off_suit():
    game = _endgame()
    game.round.hands[1][2] = c(Color.RED, 9)
    assert not should_autoplay(game.round, 1)


def test_condition_fails_mid_trick():
    game = _endgame()
    game.play_card(1, ROOK)
    assert not should_autoplay(game.round, 1)


def test_declarer_leads_first_card_others_lowest():
    game = _endgame()
    rnd = game.round
    assert choose_autoplay_card(rnd, 1, KENTUCKY_ROOK) == ROOK
    game.play_card(1, ROOK)
    assert choose_autoplay_card(rnd, 2, KENTUCKY_ROOK) == c(Color.BLACK, 6)


def test_humans_locked_out_during_autoplay():
    game = _endgame()
    events = start_autoplay(game)
    assert events[0].type == EventType.AUTO_PLAY_START
    assert events[0].payload == {"playerPosition": 1, "playerName": "Bob"}
    with pytest.raises(IllegalTurn):
        game.play_card(1, ROOK)

    events = autoplay_step(game)
    assert events[0].type == EventType.CARD_PLAYED
    assert events[0].payload["card"]["id"] == "ROOK"


def test_play_out_finishes_round_with_declarer_taking_every_trick():
    game = _endgame()
    events = play_out(game)
    rnd = game.round

    assert events[0].type == EventType.AUTO_PLAY_START
    assert rnd.phase == Phase.ROUND_OVER
    assert not game.state.autoplay_active
    assert all(not hand for hand in rnd.hands)
    assert [t.winner for t in rnd.tricks[7:]] == [1, 1, 1]

    played = [e for e in events if e.type == EventType.CARD_PLAYED]
    assert len(played) == 12
    # Seat 2 throws its cheapest cards first.
    seat2 = [e.payload["card"]["id"] for e in played if e.payload["playerPosition"] == 2]
    assert seat2 == ["Black06", "Yellow06", "Red05"]
    resolved = [e for e in events if e.type == EventType.TRICK_RESOLVED]
    assert resolved[-1].payload["isLastTrick"] is True


def test_play_out_does_nothing_without_condition():
    game = _endgame(partner_hand=[c(Color.GREEN, 6), c(Color.RED, 10), c(Color.BLACK, 1)])
    assert play_out(game) == []
    assert game.round.phase == Phase.PLAYING
