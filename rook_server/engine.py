# rook_server/engine.py
from __future__ import annotations

import logging
import random
from typing import Any, Dict, Iterable, List, Optional, Union

from . import bidding
from .cards import Card, Color, card_to_dict, deal, find_card, sort_hand
from .errors import (
    AlreadySelected,
    AlreadyPlayedThisTrick,
    IllegalTurn,
    InvalidColor,
    MustFollowSuit,
    NotInHand,
    Unauthorized,
    WrongCount,
    WrongPhase,
)
from .events import Event, EventType
from .rules import (
    bid_options,
    can_play,
    game_winner,
    led_color_for,
    legal_cards,
    points_in,
    score_round,
    trick_winner,
)
from .ruleset import KENTUCKY_ROOK, RuleSet
from .state import (
    GameState,
    Phase,
    RoundResult,
    RoundState,
    SeatState,
    Trick,
    team_of,
)

logger = logging.getLogger(__name__)


def _cards(cards: Iterable[Card]) -> List[Dict[str, Any]]:
    return [card_to_dict(c) for c in cards]


class RookGame:
    """
    Authoritative state machine for one four-seat ROOK match.

    Every public operation validates the request against the current state,
    raises a `RookError` subclass without touching anything when it is
    illegal, and otherwise mutates the state and returns the events to send.
    Nothing here knows about sockets or timers; pauses between tricks and
    rounds are the caller's business (`next_trick`, `complete_round`,
    `start_round`).
    """

    def __init__(
        self,
        player_names: List[str],
        ruleset: RuleSet = KENTUCKY_ROOK,
        rng_seed: Optional[int] = None,
        game_label: Optional[str] = None,
    ) -> None:
        if len(player_names) != ruleset.num_seats:
            raise ValueError(f"ROOK needs exactly {ruleset.num_seats} players")

        self.ruleset = ruleset
        self.rng = random.Random(rng_seed)
        self.game_label = game_label
        self.state = GameState(
            seats=[SeatState(seat=i, name=name) for i, name in enumerate(player_names)]
        )

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def round(self) -> Optional[RoundState]:
        return self.state.round

    @property
    def phase(self) -> Phase:
        return self.state.phase

    def name_of(self, seat: int) -> str:
        return self.state.seats[seat].name

    def hand_of(self, seat: int) -> List[Card]:
        return self._require_round().hands[seat]

    def bid_options_for(self, seat: int) -> List[int]:
        """Amounts `seat` may bid right now (empty when it is not their turn)."""
        rnd = self.state.round
        if rnd is None or rnd.phase != Phase.BIDDING or rnd.bid.current_bidder != seat:
            return []
        return bid_options(rnd.bid.current_bid, self.ruleset)

    def legal_cards_for(self, seat: int) -> List[Card]:
        rnd = self.state.round
        if (
            rnd is None
            or rnd.phase != Phase.PLAYING
            or rnd.current_player != seat
            or seat in rnd.trick.seats
        ):
            return []
        hand = rnd.hands[seat]
        led = rnd.trick.led_color if rnd.trick.plays else None
        return legal_cards(hand, rnd.trump, led, self.ruleset)

    def _require_round(self) -> RoundState:
        if self.state.round is None:
            raise WrongPhase("No round is in progress.")
        return self.state.round

    def _require_phase(self, *phases: Phase) -> RoundState:
        if self.state.winning_team is not None:
            raise WrongPhase("The game is over.")
        rnd = self._require_round()
        if rnd.phase not in phases:
            raise WrongPhase(f"That is not allowed during {rnd.phase.value}.")
        return rnd

    # -------------------------------------------------------------------------
    # Round lifecycle
    # -------------------------------------------------------------------------

    def start_round(self) -> List[Event]:
        """Deal a new round; one `round-dealt` event per seat with its own hand."""
        if self.state.winning_team is not None:
            raise WrongPhase("The game is over; restart to play again.")
        rnd = self.state.round
        if rnd is not None and not (rnd.phase == Phase.ROUND_OVER and rnd.announced):
            raise WrongPhase("A round is already in progress.")

        hands, nest = deal(self.ruleset, self.rng)
        round_index = len(self.state.results)
        auction = bidding.start_auction(self.state.dealer, self.ruleset)
        rnd = RoundState(
            round_index=round_index,
            dealer=self.state.dealer,
            hands=hands,
            nest=nest,
            bid=auction,
            nest_face_up=nest[-1] if self.ruleset.flip_one_card_in_nest and nest else None,
        )
        self.state.round = rnd
        self.state.autoplay_active = False

        logger.info(
            "Round %d dealt%s. Dealer: seat %d, first bidder: seat %d",
            round_index + 1,
            f" in {self.game_label}" if self.game_label else "",
            rnd.dealer,
            auction.current_bidder,
        )

        players = [{"name": s.name, "position": s.seat} for s in self.state.seats]
        options = bid_options(0, self.ruleset)
        return [
            Event(
                EventType.ROUND_DEALT,
                {
                    "hand": _cards(rnd.hands[seat]),
                    "position": seat,
                    "players": players,
                    "nest": self._nest_info(rnd),
                    "bidOptions": options,
                    "currentBidder": auction.current_bidder,
                    "currentBid": auction.current_bid,
                    "dealer": rnd.dealer,
                    "roundIndex": round_index,
                    "teamScores": list(self.state.team_scores),
                    "gameConfig": self.ruleset.client_config(),
                },
                seat=seat,
            )
            for seat in range(self.state.num_seats)
        ]

    def restart(self) -> List[Event]:
        """Reset scores and dealer, then deal a fresh round."""
        self.state.team_scores = [0, 0]
        self.state.dealer = 0
        self.state.results = []
        self.state.winning_team = None
        self.state.round = None
        self.state.autoplay_active = False
        logger.info("Game restarted%s", f" in {self.game_label}" if self.game_label else "")
        return [Event(EventType.GAME_RESTARTING)] + self.start_round()

    def _nest_info(self, rnd: RoundState) -> Dict[str, Any]:
        face_up = rnd.nest_face_up if not rnd.nest_awarded else None
        return {
            "count": len(rnd.nest) if not rnd.nest_awarded else self.ruleset.nest_size,
            "faceUpCard": card_to_dict(face_up) if face_up is not None else None,
        }

    # -------------------------------------------------------------------------
    # Bidding
    # -------------------------------------------------------------------------

    def place_bid(self, seat: int, amount: int) -> List[Event]:
        rnd = self._require_phase(Phase.BIDDING)
        outcome = bidding.place_bid(rnd.bid, seat, amount, self.ruleset)
        logger.info("%s bid %d", self.name_of(seat), amount)

        events = [
            Event(
                EventType.BID_PLACED,
                {
                    "bidder": self.name_of(seat),
                    "bidderPosition": seat,
                    "bidAmount": amount,
                    "currentBid": outcome.current_bid,
                    "currentBidder": -1 if outcome.next_bidder is None else outcome.next_bidder,
                    "bidOptions": outcome.bid_options,
                },
            )
        ]
        if outcome.resolved:
            events.extend(self._finish_bidding(rnd))
        return events

    def pass_bid(self, seat: int) -> List[Event]:
        rnd = self._require_phase(Phase.BIDDING)
        outcome = bidding.pass_bid(rnd.bid, seat, self.ruleset)
        logger.info(
            "%s passed. Total passed: %d", self.name_of(seat), len(rnd.bid.passed)
        )

        events = [
            Event(
                EventType.BID_PASSED,
                {
                    "passer": self.name_of(seat),
                    "passerPosition": seat,
                    "currentBidder": -1 if outcome.next_bidder is None else outcome.next_bidder,
                    "bidOptions": outcome.bid_options,
                },
            )
        ]
        if outcome.resolved:
            if outcome.forced:
                logger.info(
                    "Three passes: %s is forced to bid %d",
                    self.name_of(outcome.winner),
                    outcome.current_bid,
                )
                events.append(
                    Event(
                        EventType.FORCED_BID,
                        {
                            "bidder": self.name_of(outcome.winner),
                            "bidderPosition": outcome.winner,
                            "bidAmount": outcome.current_bid,
                        },
                    )
                )
            events.extend(self._finish_bidding(rnd))
        return events

    def _finish_bidding(self, rnd: RoundState) -> List[Event]:
        winner = rnd.bid.high_bidder
        logger.info(
            "Bidding complete. Winner: %s with %d", self.name_of(winner), rnd.bid.current_bid
        )
        events = [
            Event(
                EventType.BIDDING_RESOLVED,
                {
                    "winner": self.name_of(winner),
                    "winnerPosition": winner,
                    "winningBid": rnd.bid.current_bid,
                    "forced": rnd.bid.forced,
                },
            )
        ]
        events.extend(self.award_nest())
        return events

    # -------------------------------------------------------------------------
    # Nest, trump and discard
    # -------------------------------------------------------------------------

    def award_nest(self) -> List[Event]:
        """Hand the nest to the bid winner. Happens once, right after bidding."""
        rnd = self._require_round()
        if not rnd.bid.resolved:
            raise WrongPhase("Bidding is not over yet.")
        if rnd.nest_awarded:
            raise WrongPhase("The nest has already been awarded.")

        winner = rnd.bid.high_bidder
        nest_cards = list(rnd.nest)
        hand = rnd.hands[winner]
        hand.extend(nest_cards)
        sort_hand(hand, self.ruleset)
        rnd.nest = []
        rnd.nest_awarded = True
        rnd.phase = Phase.TRUMP
        logger.info("Sent nest to %s. Hand now has %d cards.", self.name_of(winner), len(hand))

        return [
            Event(
                EventType.NEST_AWARDED,
                {"nestCards": _cards(nest_cards), "hand": _cards(hand)},
                seat=winner,
            )
        ]

    def select_trump(self, seat: int, color: Union[Color, str]) -> List[Event]:
        rnd = self._require_phase(Phase.TRUMP, Phase.DISCARD, Phase.PLAYING, Phase.ROUND_OVER)
        if seat != rnd.declarer:
            raise Unauthorized("Only the bid winner can select trump.")
        trump = self._parse_color(color)
        if rnd.trump is not None:
            raise AlreadySelected()

        rnd.trump = trump
        rnd.phase = Phase.DISCARD
        for hand in rnd.hands:
            sort_hand(hand, self.ruleset, trump)
        logger.info("%s selected %s as trump", self.name_of(seat), trump.value)

        return [
            Event(
                EventType.TRUMP_CHOSEN,
                {
                    "trump": trump.value,
                    "declarer": self.name_of(seat),
                    "declarerPosition": seat,
                },
            )
        ]

    def _parse_color(self, color: Union[Color, str]) -> Color:
        if isinstance(color, Color):
            parsed = color
        else:
            try:
                parsed = Color(color)
            except ValueError:
                raise InvalidColor() from None
        if parsed not in self.ruleset.colors:
            raise InvalidColor()
        return parsed

    def discard(self, seat: int, cards: Iterable[Card]) -> List[Event]:
        """The declarer puts exactly a nest's worth of cards back face down."""
        rnd = self._require_round()
        if rnd.phase == Phase.TRUMP:
            raise WrongPhase("Select trump before discarding.")
        rnd = self._require_phase(Phase.DISCARD)
        if seat != rnd.declarer:
            raise Unauthorized("Only the bid winner can discard.")

        requested = list(cards)
        if len(set(requested)) != self.ruleset.nest_size or len(requested) != self.ruleset.nest_size:
            raise WrongCount(f"You must discard exactly {self.ruleset.nest_size} cards.")
        hand = rnd.hands[seat]
        held: List[Card] = []
        for card in requested:
            match = find_card(hand, card)
            if match is None:
                raise NotInHand("Invalid card selection.")
            held.append(match)

        for card in held:
            hand.remove(card)
        rnd.nest = held
        rnd.phase = Phase.PLAYING
        rnd.current_player = seat
        rnd.trick = Trick()
        rnd.seat_points = [0] * self.state.num_seats
        logger.info(
            "%s discarded %d cards. New hand size: %d",
            self.name_of(seat),
            len(held),
            len(hand),
        )

        return [
            Event(EventType.HAND_UPDATED, {"hand": _cards(hand)}, seat=seat),
            Event(
                EventType.DISCARD_RESOLVED,
                {"declarer": self.name_of(seat), "declarerPosition": seat},
            ),
            self._trick_turn_event(rnd),
        ]

    # -------------------------------------------------------------------------
    # Trick play
    # -------------------------------------------------------------------------

    def play_card(self, seat: int, card: Card, *, automatic: bool = False) -> List[Event]:
        rnd = self._require_phase(Phase.PLAYING, Phase.ROUND_OVER)
        if self.state.autoplay_active and not automatic:
            raise IllegalTurn("Cards are being played automatically.")
        if seat != rnd.current_player:
            raise IllegalTurn("It is not your turn to play.")
        if seat in rnd.trick.seats:
            raise AlreadyPlayedThisTrick()

        hand = rnd.hands[seat]
        held = find_card(hand, card)
        if held is None:
            raise NotInHand()
        led = rnd.trick.led_color if rnd.trick.plays else led_color_for(held, rnd.trump)
        if not can_play(held, hand, rnd.trump, led, self.ruleset):
            raise MustFollowSuit()

        hand.remove(held)
        if not rnd.trick.plays:
            rnd.trick.led_color = led
        rnd.trick.plays.append((seat, held))
        logger.debug("%s played %s", self.name_of(seat), held)

        events = [
            Event(
                EventType.CARD_PLAYED,
                {
                    "card": card_to_dict(held),
                    "playerPosition": seat,
                    "playerName": self.name_of(seat),
                    "cardsInTrick": len(rnd.trick.plays),
                },
            )
        ]

        if len(rnd.trick.plays) < self.state.num_seats:
            rnd.current_player = (seat + 1) % self.state.num_seats
            events.append(Event(EventType.TRICK_TURN, {"currentPlayer": rnd.current_player}))
            return events

        events.append(self._resolve_trick(rnd))
        return events

    def _resolve_trick(self, rnd: RoundState) -> Event:
        trick = rnd.trick
        winner = trick_winner(trick.plays, rnd.trump, trick.led_color, self.ruleset)
        team = team_of(winner)
        trick.winner = winner
        trick.points = points_in(trick.cards)

        rnd.seat_points[winner] += trick.points
        rnd.team_piles[team].extend(trick.cards)
        rnd.tricks.append(trick)
        rnd.current_player = winner
        logger.info(
            "Trick %d won by %s (Team %d) - %d points",
            rnd.tricks_played,
            self.name_of(winner),
            team,
            trick.points,
        )

        is_last = rnd.tricks_played == self.ruleset.tricks_per_round
        payload: Dict[str, Any] = {
            "winnerPosition": winner,
            "winnerName": self.name_of(winner),
            "winningTeam": team,
            "points": trick.points,
            "trickNumber": rnd.tricks_played,
            "isLastTrick": is_last,
            "playerPoints": list(rnd.seat_points),
        }
        if is_last:
            self._score_round(rnd, last_trick_team=team)
        else:
            payload["nextPlayer"] = winner
        return Event(EventType.TRICK_RESOLVED, payload)

    def next_trick(self) -> List[Event]:
        """Clear a sealed trick from the table; the last winner leads."""
        rnd = self._require_phase(Phase.PLAYING)
        if not rnd.trick.is_sealed:
            raise WrongPhase("The current trick is still being played.")
        rnd.trick = Trick()
        return [self._trick_turn_event(rnd)]

    def _trick_turn_event(self, rnd: RoundState) -> Event:
        return Event(
            EventType.TRICK_TURN,
            {
                "currentPlayer": rnd.current_player,
                "trickNumber": rnd.tricks_played + 1,
                "playerPoints": list(rnd.seat_points),
            },
        )

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def _score_round(self, rnd: RoundState, last_trick_team: int) -> None:
        # The discarded nest goes to whoever took the last trick.
        rnd.team_piles[last_trick_team].extend(rnd.nest)
        team_points = (points_in(rnd.team_piles[0]), points_in(rnd.team_piles[1]))
        declarer = rnd.bid.high_bidder
        declarer_team = team_of(declarer)
        made, deltas = score_round(declarer_team, rnd.bid.current_bid, team_points)

        for team in (0, 1):
            self.state.team_scores[team] += deltas[team]

        rnd.result = RoundResult(
            round_index=rnd.round_index,
            dealer=rnd.dealer,
            declarer=declarer,
            bid=rnd.bid.current_bid,
            forced_bid=rnd.bid.forced,
            trump=rnd.trump,
            team_points=team_points,
            made_contract=made,
            score_deltas=deltas,
            team_scores=(self.state.team_scores[0], self.state.team_scores[1]),
        )
        self.state.results.append(rnd.result)
        rnd.phase = Phase.ROUND_OVER
        self.state.autoplay_active = False

        logger.info(
            "Team 0 points: %d, Team 1 points: %d. Declarer team %d %s (needed %d, got %d)",
            team_points[0],
            team_points[1],
            declarer_team,
            "MADE" if made else "SET",
            rnd.bid.current_bid,
            team_points[declarer_team],
        )

    def complete_round(self) -> List[Event]:
        """Announce the scored round; ends the game or rotates the dealer."""
        rnd = self._require_phase(Phase.ROUND_OVER)
        if rnd.announced:
            raise WrongPhase("This round has already been announced.")
        result = rnd.result
        rnd.announced = True

        events = [
            Event(
                EventType.ROUND_RESOLVED,
                {
                    "team0Points": result.team_points[0],
                    "team1Points": result.team_points[1],
                    "declarerTeam": result.declarer_team,
                    "bid": result.bid,
                    "madeContract": result.made_contract,
                    "scoreDeltas": list(result.score_deltas),
                    "teamScores": list(self.state.team_scores),
                    "highBidderPosition": result.declarer,
                },
            )
        ]

        winning_team = game_winner(
            self.state.team_scores, result.declarer_team, self.ruleset.score_to_win
        )
        if winning_team is not None:
            self.state.winning_team = winning_team
            logger.info(
                "GAME OVER%s! Team %d wins %d to %d",
                f" in {self.game_label}" if self.game_label else "",
                winning_team,
                self.state.team_scores[winning_team],
                self.state.team_scores[1 - winning_team],
            )
            events.append(
                Event(
                    EventType.GAME_OVER,
                    {
                        "winningTeam": winning_team,
                        "finalScores": list(self.state.team_scores),
                    },
                )
            )
        else:
            self.state.dealer = (self.state.dealer + 1) % self.state.num_seats
        return events

    # -------------------------------------------------------------------------
    # Per-seat view
    # -------------------------------------------------------------------------

    def view_for(self, seat: int) -> Dict[str, Any]:
        """Everything `seat` is entitled to see, recomputed from live state."""
        view: Dict[str, Any] = {
            "phase": self.phase.value,
            "position": seat,
            "players": [{"name": s.name, "position": s.seat} for s in self.state.seats],
            "teamScores": list(self.state.team_scores),
            "dealer": self.state.dealer,
            "winningTeam": self.state.winning_team,
        }
        rnd = self.state.round
        if rnd is None:
            return view

        view.update(
            {
                "roundIndex": rnd.round_index,
                "hand": _cards(rnd.hands[seat]),
                "handSizes": [len(h) for h in rnd.hands],
                "nest": self._nest_info(rnd),
                "currentBid": rnd.bid.current_bid,
                "highBidderPosition": rnd.bid.high_bidder,
                "currentBidder": rnd.bid.current_bidder if rnd.phase == Phase.BIDDING else -1,
                "bidOptions": self.bid_options_for(seat),
                "trump": rnd.trump.value if rnd.trump is not None else None,
                "currentPlayer": rnd.current_player,
                "trick": [
                    {"playerPosition": s, "card": card_to_dict(c)} for s, c in rnd.trick.plays
                ],
                "tricksPlayed": rnd.tricks_played,
                "playerPoints": list(rnd.seat_points),
                "legalCards": [c.id for c in self.legal_cards_for(seat)],
                "autoPlay": self.state.autoplay_active,
            }
        )
        if rnd.nest_awarded and seat == rnd.declarer and rnd.phase != Phase.TRUMP:
            view["discarded"] = _cards(rnd.nest)
        return view
