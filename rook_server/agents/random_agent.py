# rook_server/agents/random_agent.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import random

from ..cards import Card, Color
from .base import RookAgent


@dataclass
class RandomRookAgent(RookAgent):
    """
    A simple baseline agent with a bit of structure:

    - choose_bid: values the hand by its card points plus a bonus for the
      longest color, bids up to that with some jitter, otherwise passes.
    - choose_trump: the color you hold most of; ties broken randomly.
    - choose_discard: throw the cheapest cards outside trump.
    - choose_card: pick uniformly among legal moves.
    """

    rng: random.Random
    aggression: float = 1.0

    def choose_bid(self, observation: Dict[str, Any]) -> Optional[int]:
        options: List[int] = observation["bid_options"]
        if not options:
            return None
        hand_cards: List[Card] = observation["hand_cards"]

        points = sum(c.points for c in hand_cards)
        longest = max(self._color_counts(hand_cards).values())
        # Rough guess at what this hand plus the nest and a partner can take.
        estimate = (points + 10 * longest + 40) * self.aggression
        estimate += self.rng.randint(-10, 10)

        affordable = [amount for amount in options if amount <= estimate]
        if not affordable:
            return None
        # Usually nudge the price up by the minimum, sometimes jump.
        if self.rng.random() < 0.8:
            return affordable[0]
        return self.rng.choice(affordable)

    def choose_trump(self, observation: Dict[str, Any]) -> Color:
        """
        Choose the color with the most cards in our hand; break ties randomly.
        """
        counts = self._color_counts(observation["hand_cards"])
        max_count = max(counts.values())
        candidates = [color for color, cnt in counts.items() if cnt == max_count]
        return self.rng.choice(candidates)

    def choose_discard(self, observation: Dict[str, Any]) -> List[int]:
        hand_cards: List[Card] = observation["hand_cards"]
        trump = observation.get("trump")
        count = observation["discard_count"]

        def keep_value(index: int):
            card = hand_cards[index]
            is_trump = card.is_rook or (card.color is not None and card.color.value == trump)
            return (is_trump, card.points, card.rank or 0)

        ranked = sorted(range(len(hand_cards)), key=keep_value)
        return ranked[:count]

    def choose_card(self, observation: Dict[str, Any]) -> int:
        legal_indices = observation["legal_move_indices"]
        return self.rng.choice(legal_indices)

    @staticmethod
    def _color_counts(hand_cards: List[Card]) -> Dict[Color, int]:
        counts = {color: 0 for color in Color}
        for c in hand_cards:
            if not c.is_rook:
                counts[c.color] += 1
        return counts
