# rook_server/agents/base.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from ..cards import Color


@runtime_checkable
class RookAgent(Protocol):
    """
    Interface for a seat that plays without a human behind it.

    `observation` is `RookGame.view_for(seat)` plus a few conveniences:
      - "hand_cards": list[Card] (the same hand as "hand", as Card objects)
      - "bid_options": list[int] while bidding
      - "legal_move_indices": list[int] into the hand while playing
      - "discard_count": int during the discard
    """

    def choose_bid(self, observation: Dict[str, Any]) -> Optional[int]:
        """Return one of `bid_options`, or None to pass."""
        raise NotImplementedError

    def choose_trump(self, observation: Dict[str, Any]) -> Color:
        raise NotImplementedError

    def choose_discard(self, observation: Dict[str, Any]) -> List[int]:
        """Return `discard_count` distinct indices into the hand."""
        raise NotImplementedError

    def choose_card(self, observation: Dict[str, Any]) -> int:
        """Return an index from `legal_move_indices`."""
        raise NotImplementedError
