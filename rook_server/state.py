# rook_server/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple
import enum

from .cards import Card, Color


class Phase(enum.Enum):
    WAITING = "waiting"
    BIDDING = "bidding"
    TRUMP = "trump"
    DISCARD = "discard"
    PLAYING = "playing"
    ROUND_OVER = "round_over"
    GAME_OVER = "game_over"


def team_of(seat: int) -> int:
    """Seats 0 and 2 form team 0; seats 1 and 3 form team 1."""
    return seat % 2


@dataclass
class SeatState:
    seat: int
    name: str


@dataclass
class BidState:
    current_bidder: int
    current_bid: int = 0  # 0 until someone bids
    high_bidder: Optional[int] = None
    passed: Set[int] = field(default_factory=set)
    resolved: bool = False
    forced: bool = False
    # (seat, amount) in action order; amount None for a pass
    history: List[Tuple[int, Optional[int]]] = field(default_factory=list)


@dataclass
class Trick:
    # (seat, card) pairs in play order
    plays: List[Tuple[int, Card]] = field(default_factory=list)
    # color established by the first card; the ROOK leads trump
    led_color: Optional[Color] = None
    winner: Optional[int] = None
    points: int = 0

    @property
    def seats(self) -> List[int]:
        return [seat for seat, _ in self.plays]

    @property
    def cards(self) -> List[Card]:
        return [card for _, card in self.plays]

    @property
    def is_sealed(self) -> bool:
        return self.winner is not None


@dataclass
class RoundResult:
    round_index: int
    dealer: int
    declarer: int
    bid: int
    forced_bid: bool
    trump: Color
    team_points: Tuple[int, int]
    made_contract: bool
    score_deltas: Tuple[int, int]
    team_scores: Tuple[int, int]

    @property
    def declarer_team(self) -> int:
        return team_of(self.declarer)


@dataclass
class RoundState:
    round_index: int
    dealer: int
    hands: List[List[Card]]
    nest: List[Card]
    bid: BidState
    nest_face_up: Optional[Card] = None
    phase: Phase = Phase.BIDDING
    trump: Optional[Color] = None
    nest_awarded: bool = False
    current_player: Optional[int] = None
    trick: Trick = field(default_factory=Trick)
    tricks: List[Trick] = field(default_factory=list)
    team_piles: List[List[Card]] = field(default_factory=lambda: [[], []])
    seat_points: List[int] = field(default_factory=lambda: [0, 0, 0, 0])
    result: Optional[RoundResult] = None
    announced: bool = False

    @property
    def declarer(self) -> Optional[int]:
        return self.bid.high_bidder if self.bid.resolved else None

    @property
    def tricks_played(self) -> int:
        return len(self.tricks)


@dataclass
class GameState:
    seats: List[SeatState]
    team_scores: List[int] = field(default_factory=lambda: [0, 0])
    dealer: int = 0
    round: Optional[RoundState] = None
    results: List[RoundResult] = field(default_factory=list)
    winning_team: Optional[int] = None
    autoplay_active: bool = False

    @property
    def num_seats(self) -> int:
        return len(self.seats)

    @property
    def phase(self) -> Phase:
        if self.winning_team is not None:
            return Phase.GAME_OVER
        if self.round is None:
            return Phase.WAITING
        return self.round.phase
