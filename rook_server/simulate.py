# rook_server/simulate.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .agents.base import RookAgent
from .autoplay import play_out
from .engine import RookGame
from .ruleset import KENTUCKY_ROOK, RuleSet
from .state import GameState, Phase

logger = logging.getLogger(__name__)


class GameRunner:
    """
    Plays a whole ROOK game headlessly, asking agents for every decision.

    Uses the same `RookGame` the server does; pauses simply do not exist
    here, so sealed tricks are cleared and rounds dealt immediately.
    """

    def __init__(
        self,
        agents: List[RookAgent],
        player_names: Optional[List[str]] = None,
        ruleset: RuleSet = KENTUCKY_ROOK,
        rng_seed: Optional[int] = None,
        game_label: Optional[str] = None,
        max_rounds: int = 200,
    ) -> None:
        if len(agents) != ruleset.num_seats:
            raise ValueError(f"ROOK needs exactly {ruleset.num_seats} agents")
        if player_names is None:
            player_names = [f"Player {i}" for i in range(len(agents))]
        if len(player_names) != len(agents):
            raise ValueError("player_names must match number of agents")

        self.agents = agents
        self.max_rounds = max_rounds
        self.game = RookGame(
            player_names, ruleset=ruleset, rng_seed=rng_seed, game_label=game_label
        )

    @property
    def game_state(self) -> GameState:
        return self.game.state

    def play_game(self) -> GameState:
        """Play rounds until a team reaches the target score."""
        for _ in range(self.max_rounds):
            self.play_round()
            if self.game.state.winning_team is not None:
                return self.game.state
        raise RuntimeError(f"No winner after {self.max_rounds} rounds")

    def play_round(self) -> None:
        game = self.game
        game.start_round()
        rnd = game.round

        while rnd.phase == Phase.BIDDING:
            seat = rnd.bid.current_bidder
            amount = self.agents[seat].choose_bid(self._observation(seat))
            if amount is None:
                game.pass_bid(seat)
            else:
                game.place_bid(seat, amount)

        declarer = rnd.declarer
        game.select_trump(declarer, self.agents[declarer].choose_trump(self._observation(declarer)))

        hand = rnd.hands[declarer]
        indices = self.agents[declarer].choose_discard(self._observation(declarer))
        game.discard(declarer, [hand[i] for i in indices])

        while rnd.phase == Phase.PLAYING:
            if rnd.trick.is_sealed:
                game.next_trick()
                continue
            if play_out(game):
                continue
            seat = rnd.current_player
            obs = self._observation(seat)
            index = self.agents[seat].choose_card(obs)
            game.play_card(seat, obs["hand_cards"][index])

        game.complete_round()

    def _observation(self, seat: int) -> Dict[str, Any]:
        game = self.game
        rnd = game.round
        obs = game.view_for(seat)
        hand_cards = list(rnd.hands[seat])
        legal = game.legal_cards_for(seat)
        obs.update(
            {
                "hand_cards": hand_cards,
                "bid_options": game.bid_options_for(seat),
                "legal_move_indices": [i for i, c in enumerate(hand_cards) if c in legal],
                "discard_count": game.ruleset.nest_size,
            }
        )
        return obs
