# rook_server/cards.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple
import enum
import random

if TYPE_CHECKING:
    from .ruleset import RuleSet


class Color(enum.Enum):
    BLACK = "Black"
    GREEN = "Green"
    RED = "Red"
    YELLOW = "Yellow"


class CardType(enum.Enum):
    NUMBER = "number"
    ROOK = "rook"


ROOK_ID = "ROOK"
ROOK_COLOR_NAME = "Rook"


@dataclass(frozen=True)
class Card:
    """
    Representation of a ROOK card.

    - NUMBER cards: type=NUMBER, color in Color, rank 1–14.
    - ROOK: type=ROOK, color=None, rank=None.

    Cards are identified by type, color and rank; `points` rides along for
    scoring and display but does not take part in equality.
    """
    type: CardType
    color: Optional[Color] = None
    rank: Optional[int] = None
    points: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.type == CardType.NUMBER:
            if self.color is None or self.rank is None:
                raise ValueError("Number cards must have color and rank")
            if not (1 <= self.rank <= 14):
                raise ValueError("Number card rank must be between 1 and 14")
        else:
            if self.color is not None or self.rank is not None:
                raise ValueError("The ROOK must not have color or rank")

    @property
    def is_rook(self) -> bool:
        return self.type == CardType.ROOK

    @property
    def id(self) -> str:
        if self.is_rook:
            return ROOK_ID
        return f"{self.color.value}{self.rank:02d}"

    def __str__(self) -> str:
        if self.is_rook:
            return ROOK_ID
        return f"{self.color.value} {self.rank}"


ROOK = Card(CardType.ROOK)


def card_to_dict(card: Card) -> Dict[str, Any]:
    """Convert a Card to the JSON shape clients render."""
    return {
        "id": card.id,
        "color": ROOK_COLOR_NAME if card.is_rook else card.color.value,
        "number": 0 if card.is_rook else card.rank,
        "points": card.points,
    }


def parse_card_id(card_id: str) -> Card:
    """Parse an id such as 'Green14' or 'ROOK'. Points are not restored."""
    if not isinstance(card_id, str):
        raise ValueError(f"Card id must be a string, got {card_id!r}")
    if card_id.upper() == ROOK_ID:
        return ROOK
    color_part, rank_part = card_id[:-2], card_id[-2:]
    try:
        color = Color(color_part)
        rank = int(rank_part)
    except ValueError:
        raise ValueError(f"Unknown card id {card_id!r}") from None
    return Card(CardType.NUMBER, color, rank)


def dict_to_card(data: Dict[str, Any]) -> Card:
    """Convert a client card dict back into a Card (by id, or by color/number)."""
    if "id" in data:
        return parse_card_id(data["id"])
    color = data.get("color")
    if color == ROOK_COLOR_NAME:
        return ROOK
    return Card(CardType.NUMBER, Color(color), int(data["number"]))


def sort_key(
    card: Card,
    ruleset: "RuleSet",
    trump: Optional[Color] = None,
) -> Tuple[int, int]:
    """
    Display order: by color, then rank descending (1s first when ones are high).

    Before trump is known the ROOK sits after every color. Once trump is
    chosen it joins the trump color, on top when it is the highest trump.
    """
    color_order = {c: i for i, c in enumerate(ruleset.colors)}
    if card.is_rook:
        if trump is None:
            return (len(ruleset.colors), 0)
        return (color_order[trump], -100 if ruleset.rook_is_highest_trump else 100)
    rank = card.rank
    if ruleset.ones_high and rank == 1:
        rank = 15
    return (color_order[card.color], -rank)


def sort_hand(
    hand: List[Card],
    ruleset: "RuleSet",
    trump: Optional[Color] = None,
) -> List[Card]:
    """Sort `hand` in place into display order and return it."""
    hand.sort(key=lambda c: sort_key(c, ruleset, trump))
    return hand


def find_card(hand: Sequence[Card], card: Card) -> Optional[Card]:
    """Return the hand's own instance of `card` (with points), or None."""
    for held in hand:
        if held == card:
            return held
    return None


class Deck:
    """
    The ordered card set for a RuleSet:
    - every kept rank 1–14 in each color
    - plus one ROOK when the variant has it
    """

    def __init__(self, ruleset: "RuleSet") -> None:
        self.ruleset = ruleset
        self.cards: List[Card] = []
        for color in ruleset.colors:
            for rank in ruleset.kept_ranks:
                self.cards.append(
                    Card(
                        CardType.NUMBER,
                        color,
                        rank,
                        points=ruleset.points_for_rank(rank),
                    )
                )
        if ruleset.has_rook:
            self.cards.append(Card(CardType.ROOK, points=ruleset.rook_points))

        if len(self.cards) != ruleset.deck_size:
            raise RuntimeError(f"Deck must contain exactly {ruleset.deck_size} cards")

    def shuffle(self, rng: Optional[random.Random] = None) -> None:
        """Shuffle the deck in place. Uses provided RNG if given."""
        if rng is None:
            random.shuffle(self.cards)
        else:
            rng.shuffle(self.cards)

    def deal(self) -> Tuple[List[List[Card]], List[Card]]:
        """
        Deal the nest first, then the rest one card at a time from seat 0.

        Returns (hands, nest); each hand is sorted for display. The deck is
        consumed.
        """
        num_seats = self.ruleset.num_seats
        nest = self.cards[: self.ruleset.nest_size]
        hands: List[List[Card]] = [[] for _ in range(num_seats)]
        for i, card in enumerate(self.cards[self.ruleset.nest_size:]):
            hands[i % num_seats].append(card)
        self.cards = []

        for hand in hands:
            sort_hand(hand, self.ruleset)
        return hands, nest


def deal(
    ruleset: "RuleSet",
    rng: Optional[random.Random] = None,
) -> Tuple[List[List[Card]], List[Card]]:
    """Build a fresh deck, shuffle it, and deal four hands plus the nest."""
    deck = Deck(ruleset)
    deck.shuffle(rng)
    return deck.deal()
