# rook_server/autoplay.py
"""
Mechanical playout of a decided endgame.

Once the declarer is on lead holding nothing but trump (or the ROOK) and no
other seat has any trump or ROOK left, every remaining trick is forced: the
declarer wins each one. From then on cards are chosen here instead of asked
for. The declarer leads the first card in hand; everyone else throws their
cheapest card.

The functions only pick and play cards through `RookGame.play_card`, so
trick resolution and scoring are exactly the ones used for human play.
Pacing between cards is left to the caller (see `room.py`); `play_out` runs
the whole thing synchronously for simulations and tests.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, TYPE_CHECKING

from .cards import Card
from .events import Event, EventType
from .rules import is_trump_or_rook, legal_cards
from .ruleset import RuleSet
from .state import Phase, RoundState

if TYPE_CHECKING:
    from .engine import RookGame

logger = logging.getLogger(__name__)


def should_autoplay(rnd: Optional[RoundState], seat: Optional[int]) -> bool:
    """True when `seat` is the declarer, on lead, and the rest of the round is forced."""
    if rnd is None or seat is None:
        return False
    if rnd.phase != Phase.PLAYING or rnd.trump is None:
        return False
    if seat != rnd.declarer or seat != rnd.current_player:
        return False
    if rnd.trick.plays:
        return False

    hand = rnd.hands[seat]
    if not hand or not all(is_trump_or_rook(c, rnd.trump) for c in hand):
        return False

    for other, other_hand in enumerate(rnd.hands):
        if other == seat:
            continue
        if any(is_trump_or_rook(c, rnd.trump) for c in other_hand):
            return False
    return True


def lowest_card(cards: Sequence[Card]) -> Card:
    """Cheapest card by points, then by number; the first one wins ties."""
    if not cards:
        raise ValueError("Cannot pick from an empty hand")
    best = cards[0]
    for card in cards[1:]:
        if (card.points, card.rank or 0) < (best.points, best.rank or 0):
            best = card
    return best


def choose_autoplay_card(rnd: RoundState, seat: int, ruleset: RuleSet) -> Card:
    hand = rnd.hands[seat]
    if seat == rnd.declarer and not rnd.trick.plays:
        # Every card left is a winning trump, so just lead the first one.
        return hand[0]
    led = rnd.trick.led_color if rnd.trick.plays else None
    return lowest_card(legal_cards(hand, rnd.trump, led, ruleset))


def autoplay_ready(game: "RookGame") -> bool:
    rnd = game.round
    if game.state.autoplay_active or rnd is None:
        return False
    return should_autoplay(rnd, rnd.current_player)


def start_autoplay(game: "RookGame") -> List[Event]:
    """Switch the round into automatic mode and announce it."""
    rnd = game.round
    seat = rnd.current_player
    game.state.autoplay_active = True
    logger.info(
        "Auto-play: %s holds only trump and nobody else does; playing out %d tricks",
        game.name_of(seat),
        game.ruleset.tricks_per_round - rnd.tricks_played,
    )
    return [
        Event(
            EventType.AUTO_PLAY_START,
            {"playerPosition": seat, "playerName": game.name_of(seat)},
        )
    ]


def autoplay_step(game: "RookGame") -> List[Event]:
    """Play one card for whoever is due; nothing when auto-play is off or the trick is full."""
    rnd = game.round
    if not game.state.autoplay_active or rnd is None or rnd.phase != Phase.PLAYING:
        return []
    if rnd.trick.is_sealed:
        return []
    seat = rnd.current_player
    card = choose_autoplay_card(rnd, seat, game.ruleset)
    return game.play_card(seat, card, automatic=True)


def play_out(game: "RookGame") -> List[Event]:
    """Run auto-play to the end of the round without any pauses."""
    events: List[Event] = []
    if autoplay_ready(game):
        events.extend(start_autoplay(game))
    while game.state.autoplay_active:
        rnd = game.round
        if rnd.trick.is_sealed:
            events.extend(game.next_trick())
        else:
            events.extend(autoplay_step(game))
    return events
