# rook_server/bidding.py
"""
Ascending auction for the declarer's contract.

Bidding opens left of the dealer and moves seat by seat, skipping seats that
have passed. A pass is final. Once three seats have passed the auction is
over: the high bidder wins, or, if nobody ever bid, the one seat left is
forced to take the minimum opening bid.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .errors import AlreadyPassed, IllegalTurn, InvalidAmount, WrongPhase
from .rules import bid_options, min_next_bid
from .ruleset import RuleSet
from .state import BidState


@dataclass(frozen=True)
class BidOutcome:
    seat: int
    amount: Optional[int]  # None for a pass
    current_bid: int
    next_bidder: Optional[int]  # None once resolved
    bid_options: List[int]
    resolved: bool = False
    forced: bool = False
    winner: Optional[int] = None


def start_auction(dealer: int, ruleset: RuleSet) -> BidState:
    return BidState(current_bidder=(dealer + 1) % ruleset.num_seats)


def _check_turn(state: BidState, seat: int) -> None:
    if state.resolved:
        raise WrongPhase("Bidding is already over.")
    if seat in state.passed:
        raise AlreadyPassed()
    if seat != state.current_bidder:
        raise IllegalTurn("It is not your turn to bid.")


def _next_bidder(state: BidState, ruleset: RuleSet) -> int:
    seat = state.current_bidder
    for _ in range(ruleset.num_seats):
        seat = (seat + 1) % ruleset.num_seats
        if seat not in state.passed:
            return seat
    raise RuntimeError("Every seat has passed; the auction should have resolved")


def _resolve(state: BidState, winner: int) -> None:
    state.high_bidder = winner
    state.current_bidder = winner
    state.resolved = True


def place_bid(state: BidState, seat: int, amount: int, ruleset: RuleSet) -> BidOutcome:
    _check_turn(state, seat)
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"Bid must be a whole number, got {amount!r}.")
    minimum = min_next_bid(state.current_bid, ruleset)
    if amount < minimum or amount > ruleset.max_bid:
        raise InvalidAmount(f"Bid must be between {minimum} and {ruleset.max_bid}.")

    state.current_bid = amount
    state.high_bidder = seat
    state.history.append((seat, amount))

    if len(state.passed) == ruleset.num_seats - 1:
        _resolve(state, seat)
        return BidOutcome(
            seat=seat,
            amount=amount,
            current_bid=amount,
            next_bidder=None,
            bid_options=[],
            resolved=True,
            winner=seat,
        )

    state.current_bidder = _next_bidder(state, ruleset)
    return BidOutcome(
        seat=seat,
        amount=amount,
        current_bid=amount,
        next_bidder=state.current_bidder,
        bid_options=bid_options(state.current_bid, ruleset),
    )


def pass_bid(state: BidState, seat: int, ruleset: RuleSet) -> BidOutcome:
    _check_turn(state, seat)

    state.passed.add(seat)
    state.history.append((seat, None))

    if len(state.passed) == ruleset.num_seats - 1:
        if state.high_bidder is None:
            # Nobody bid: the last seat standing takes the minimum.
            forced = next(s for s in range(ruleset.num_seats) if s not in state.passed)
            state.current_bid = ruleset.min_opening_bid
            state.forced = True
            _resolve(state, forced)
        else:
            _resolve(state, state.high_bidder)
        return BidOutcome(
            seat=seat,
            amount=None,
            current_bid=state.current_bid,
            next_bidder=None,
            bid_options=[],
            resolved=True,
            forced=state.forced,
            winner=state.high_bidder,
        )

    state.current_bidder = _next_bidder(state, ruleset)
    return BidOutcome(
        seat=seat,
        amount=None,
        current_bid=state.current_bid,
        next_bidder=state.current_bidder,
        bid_options=bid_options(state.current_bid, ruleset),
    )
