"""
Card and deck handling for Texas Hold'em.

Cards are immutable values compared by (rank, suit). A deck is a plain list
of cards: it is built in a fixed order, shuffled with an injected random
source, and dealt from the top without replacement.

Usage:
    rng = random.Random(42)
    deck = new_shuffled_deck(rng)
    hole_cards, deck = deal(deck, 2)
"""

from __future__ import annotations
import random
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import List, Optional, Sequence, Tuple

from pokertable.core.errors import InsufficientCardsError


class Suit(Enum):
    """Card suits."""
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"


class Rank(IntEnum):
    """Card ranks with their numeric values, Ace high."""
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14


SUIT_SYMBOLS = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}

SUIT_CHARS = {
    Suit.HEARTS: "h",
    Suit.DIAMONDS: "d",
    Suit.CLUBS: "c",
    Suit.SPADES: "s",
}

RANK_LABELS = {
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "10",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
}

# Reverse mappings
LABEL_TO_RANK = {v: k for k, v in RANK_LABELS.items()}
LABEL_TO_RANK["T"] = Rank.TEN
CHAR_TO_SUIT = {v: k for k, v in SUIT_CHARS.items()}
SYMBOL_TO_SUIT = {v: k for k, v in SUIT_SYMBOLS.items()}
NAME_TO_SUIT = {s.value: s for s in Suit}

DECK_SIZE = 52


@dataclass(frozen=True)
class Card:
    """
    A playing card.

    Cards can be created from:
    - Rank and Suit enums: Card(Rank.ACE, Suit.SPADES)
    - String notation: Card.from_string("As"), Card.from_string("10♥")
    - A serialized dict: Card.from_dict({"rank": "A", "suit": "spades"})
    """
    rank: Rank
    suit: Suit

    @classmethod
    def from_string(cls, s: str) -> Card:
        """
        Create a card from string notation.

        Accepts a rank label ("2".."10", "T", "J", "Q", "K", "A") followed by
        a suit char ("h", "d", "c", "s") or symbol ("♥", "♦", "♣", "♠").
        """
        s = s.strip()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_part, suit_part = s[:-1].upper(), s[-1]

        if rank_part not in LABEL_TO_RANK:
            raise ValueError(f"Invalid rank: {rank_part}")

        if suit_part.lower() in CHAR_TO_SUIT:
            suit = CHAR_TO_SUIT[suit_part.lower()]
        elif suit_part in SYMBOL_TO_SUIT:
            suit = SYMBOL_TO_SUIT[suit_part]
        else:
            raise ValueError(f"Invalid suit: {suit_part}")

        return cls(LABEL_TO_RANK[rank_part], suit)

    @classmethod
    def from_dict(cls, data: dict) -> Card:
        return cls(LABEL_TO_RANK[data["rank"]], NAME_TO_SUIT[data["suit"]])

    @property
    def value(self) -> int:
        """Numeric rank value, 2 through 14."""
        return int(self.rank)

    @property
    def short_str(self) -> str:
        """Short string like 'As', '10h'."""
        return f"{RANK_LABELS[self.rank]}{SUIT_CHARS[self.suit]}"

    @property
    def color(self) -> str:
        """Return 'red' for hearts/diamonds, 'black' for clubs/spades."""
        return "red" if self.suit in (Suit.HEARTS, Suit.DIAMONDS) else "black"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "rank": RANK_LABELS[self.rank],
            "suit": self.suit.value,
            "text": str(self),
            "color": self.color,
        }

    def __repr__(self) -> str:
        return f"Card({self.short_str})"

    def __str__(self) -> str:
        return f"{RANK_LABELS[self.rank]}{SUIT_SYMBOLS[self.suit]}"


def build_deck() -> List[Card]:
    """Return the 52 cards in a fixed order (suit by suit, 2 to Ace)."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


def new_shuffled_deck(rng: Optional[random.Random] = None) -> List[Card]:
    """
    Build a full deck and shuffle it uniformly.

    Args:
        rng: Random source to shuffle with. Pass a seeded random.Random for
             reproducible decks; a fresh unseeded one is used otherwise.

    Returns:
        52 unique cards in random order
    """
    if rng is None:
        rng = random.Random()
    deck = build_deck()
    rng.shuffle(deck)
    return deck


def deal(deck: Sequence[Card], n: int) -> Tuple[List[Card], List[Card]]:
    """
    Deal n cards from the top of the deck.

    The deck passed in is left untouched.

    Returns:
        Tuple of (dealt cards, remaining deck)

    Raises:
        InsufficientCardsError: If fewer than n cards remain.
    """
    if n < 0:
        raise ValueError(f"Cannot deal a negative number of cards: {n}")
    if n > len(deck):
        raise InsufficientCardsError(f"Cannot deal {n} cards, only {len(deck)} remain")
    return list(deck[:n]), list(deck[n:])


def parse_cards(cards_str: str) -> List[Card]:
    """
    Parse multiple cards from a string.

    Accepts formats:
    - "As Kh 10d" (space-separated)
    - "AsKhTd" (no separator, single-char ranks)
    - "A♠ K♥ T♦" (with symbols)
    """
    cards_str = cards_str.strip()
    if not cards_str:
        return []

    if " " in cards_str:
        return [Card.from_string(s) for s in cards_str.split()]

    result = []
    i = 0
    while i < len(cards_str):
        # "10" is the only two-character rank
        width = 3 if cards_str.startswith("10", i) else 2
        chunk = cards_str[i:i + width]
        if len(chunk) < width:
            raise ValueError(f"Cannot parse card at position {i}: {cards_str[i:]}")
        result.append(Card.from_string(chunk))
        i += width

    return result
