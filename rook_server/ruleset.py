# rook_server/ruleset.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from .cards import Color

ROOK_POINT_KEY = 0

KENTUCKY_POINTS: Tuple[Tuple[int, int], ...] = (
    (ROOK_POINT_KEY, 20),
    (1, 15),
    (5, 5),
    (10, 10),
    (14, 10),
)


@dataclass(frozen=True)
class RuleSet:
    """
    Rule constants for one ROOK variant.

    The point table is a tuple of (rank, points) pairs, with rank 0 standing
    for the ROOK card. Ranks not listed are worth nothing.
    """

    name: str = "Nate's Kentucky ROOK"
    colors: Tuple[Color, ...] = (Color.BLACK, Color.GREEN, Color.RED, Color.YELLOW)
    score_to_win: int = 500
    nest_size: int = 5
    cards_per_player: int = 10
    min_opening_bid: int = 100
    max_bid: int = 180
    bid_increment: int = 5
    ones_high: bool = True
    has_rook: bool = True
    removed_ranks: Tuple[int, ...] = (2, 3, 4)
    flip_one_card_in_nest: bool = True
    rook_follows_color_led: bool = True
    rook_is_highest_trump: bool = True
    points: Tuple[Tuple[int, int], ...] = KENTUCKY_POINTS
    num_seats: int = 4
    tricks_per_round: int = 10

    def __post_init__(self) -> None:
        if self.deck_size != self.nest_size + self.num_seats * self.cards_per_player:
            raise ValueError(
                f"Deck of {self.deck_size} cards cannot deal {self.cards_per_player} "
                f"to {self.num_seats} seats plus a nest of {self.nest_size}"
            )
        if self.min_opening_bid > self.max_bid:
            raise ValueError("min_opening_bid must not exceed max_bid")
        if self.bid_increment <= 0:
            raise ValueError("bid_increment must be positive")

    @property
    def kept_ranks(self) -> Tuple[int, ...]:
        return tuple(r for r in range(1, 15) if r not in self.removed_ranks)

    @property
    def deck_size(self) -> int:
        return len(self.colors) * len(self.kept_ranks) + (1 if self.has_rook else 0)

    def points_for_rank(self, rank: int) -> int:
        return dict(self.points).get(rank, 0)

    @property
    def rook_points(self) -> int:
        return dict(self.points).get(ROOK_POINT_KEY, 20)

    @property
    def total_points(self) -> int:
        """Card points in a full deck; every round distributes exactly this many."""
        per_color = sum(self.points_for_rank(r) for r in self.kept_ranks)
        total = per_color * len(self.colors)
        if self.has_rook:
            total += self.rook_points
        return total

    def client_config(self) -> Dict[str, int]:
        return {
            "minBid": self.min_opening_bid,
            "maxBid": self.max_bid,
            "bidIncrement": self.bid_increment,
        }


KENTUCKY_ROOK = RuleSet()
