# rook_server/rules.py
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from .cards import Card, Color
from .ruleset import RuleSet

ROOK_HIGH_RANK = 200
ROOK_LOW_RANK = 100
TRUMP_BONUS = 100
OFF_SUIT_RANK = -1


def min_next_bid(current_bid: int, ruleset: RuleSet) -> int:
    """Opening minimum when nobody has bid yet, else one increment above the high bid."""
    if current_bid == 0:
        return ruleset.min_opening_bid
    return current_bid + ruleset.bid_increment


def bid_options(current_bid: int, ruleset: RuleSet) -> List[int]:
    """Every amount the next bidder may legally call (empty once max is reached)."""
    return list(
        range(min_next_bid(current_bid, ruleset), ruleset.max_bid + 1, ruleset.bid_increment)
    )


def led_color_for(card: Card, trump: Optional[Color]) -> Optional[Color]:
    """Color a trick takes from its first card; a led ROOK leads trump."""
    if card.is_rook:
        return trump
    return card.color


def can_play(
    card: Card,
    hand: Sequence[Card],
    trump: Optional[Color],
    led_color: Optional[Color],
    ruleset: RuleSet,
) -> bool:
    """
    Follow-suit check for `card` out of `hand`.

    - Nothing led yet: anything goes.
    - ROOK: always fine when trump is led; otherwise, when the ROOK follows
      the color led, only if the hand is void in that color.
    - A card of the led color is always fine.
    - Anything else only if the hand holds no card of the led color. When
      trump is led the ROOK counts as one of those cards.
    """
    if led_color is None:
        return True

    if card.is_rook:
        if led_color == trump:
            return True
        if ruleset.rook_follows_color_led:
            return not any(c.color == led_color for c in hand)
        return True

    if card.color == led_color:
        return True

    has_led_color = any(
        c.color == led_color or (c.is_rook and led_color == trump) for c in hand
    )
    return not has_led_color


def legal_cards(
    hand: Sequence[Card],
    trump: Optional[Color],
    led_color: Optional[Color],
    ruleset: RuleSet,
) -> List[Card]:
    return [c for c in hand if can_play(c, hand, trump, led_color, ruleset)]


def card_rank(
    card: Card,
    trump: Optional[Color],
    led_color: Optional[Color],
    ruleset: RuleSet,
) -> int:
    """
    Comparable strength of a card inside one trick (higher wins).

    The ROOK is a fixed sentinel above (or below) every trump. Trump adds
    TRUMP_BONUS. Led-color cards keep their rank, 1s counting as 15 when
    ones are high. Any other card cannot win.
    """
    if card.is_rook:
        return ROOK_HIGH_RANK if ruleset.rook_is_highest_trump else ROOK_LOW_RANK

    rank = card.rank
    if ruleset.ones_high and rank == 1:
        rank = 15

    if card.color == trump:
        return rank + TRUMP_BONUS
    if card.color == led_color:
        return rank
    return OFF_SUIT_RANK


def trick_winner(
    plays: Sequence[Tuple[int, Card]],
    trump: Optional[Color],
    led_color: Optional[Color],
    ruleset: RuleSet,
) -> int:
    """Seat holding the highest-ranked card of a trick."""
    if not plays:
        raise ValueError("Cannot determine winner of an empty trick")

    winning_seat, winning_card = plays[0]
    winning_rank = card_rank(winning_card, trump, led_color, ruleset)
    for seat, card in plays[1:]:
        rank = card_rank(card, trump, led_color, ruleset)
        if rank > winning_rank:
            winning_rank = rank
            winning_seat = seat
    return winning_seat


def points_in(cards: Iterable[Card]) -> int:
    return sum(c.points for c in cards)


def is_trump_or_rook(card: Card, trump: Optional[Color]) -> bool:
    return card.is_rook or card.color == trump


def score_round(
    declarer_team: int,
    bid: int,
    team_points: Tuple[int, int],
) -> Tuple[bool, Tuple[int, int]]:
    """
    Contract evaluation for one round.

    Returns (made, deltas). A made contract scores both teams their card
    points. A set declarer loses the bid amount; the defenders still score
    what they took.
    """
    declarer_points = team_points[declarer_team]
    defender_team = 1 - declarer_team
    made = declarer_points >= bid

    deltas = [0, 0]
    deltas[declarer_team] = declarer_points if made else -bid
    deltas[defender_team] = team_points[defender_team]
    return made, (deltas[0], deltas[1])


def game_winner(
    team_scores: Sequence[int],
    declarer_team: int,
    score_to_win: int,
) -> Optional[int]:
    """Team that reached the target, checking the declarer's team first."""
    for team in (declarer_team, 1 - declarer_team):
        if team_scores[team] >= score_to_win:
            return team
    return None
