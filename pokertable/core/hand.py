"""
Hand Evaluation for Texas Hold'em.

This module evaluates 5-7 cards and returns the best 5-card hand as a
HandResult: a category plus a tie-break list of rank values. Results compare
by category first, then lexicographically by tie-break, so plain `<`, `==`
and `max()` order hands correctly.

Hand Rankings (best to worst):
1. Royal Flush: A♠ K♠ Q♠ J♠ 10♠
2. Straight Flush: 5 consecutive cards of same suit
3. Four of a Kind: 4 cards of same rank
4. Full House: 3 of a kind + pair
5. Flush: 5 cards of same suit
6. Straight: 5 consecutive cards
7. Three of a Kind: 3 cards of same rank
8. Two Pair: 2 different pairs
9. One Pair: 2 cards of same rank
10. High Card: No made hand

Note: Ace can be low in A-2-3-4-5 straight (wheel), which ranks as 5-high.
"""

from __future__ import annotations
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import IntEnum
from functools import total_ordering
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

from pokertable.core.card import Card, Rank

if TYPE_CHECKING:
    from pokertable.core.player import Player


logger = logging.getLogger(__name__)


class HandRank(IntEnum):
    """Hand categories from best (highest value) to worst (lowest value)."""
    ROYAL_FLUSH = 10
    STRAIGHT_FLUSH = 9
    FOUR_OF_A_KIND = 8
    FULL_HOUSE = 7
    FLUSH = 6
    STRAIGHT = 5
    THREE_OF_A_KIND = 4
    TWO_PAIR = 3
    ONE_PAIR = 2
    HIGH_CARD = 1


HAND_RANK_NAMES = {
    HandRank.ROYAL_FLUSH: "Royal Flush",
    HandRank.STRAIGHT_FLUSH: "Straight Flush",
    HandRank.FOUR_OF_A_KIND: "Four of a Kind",
    HandRank.FULL_HOUSE: "Full House",
    HandRank.FLUSH: "Flush",
    HandRank.STRAIGHT: "Straight",
    HandRank.THREE_OF_A_KIND: "Three of a Kind",
    HandRank.TWO_PAIR: "Two Pair",
    HandRank.ONE_PAIR: "One Pair",
    HandRank.HIGH_CARD: "High Card",
}

WHEEL = [Rank.ACE, Rank.FIVE, Rank.FOUR, Rank.THREE, Rank.TWO]
WHEEL_TIEBREAK = [5, 4, 3, 2, 1]


@total_ordering
@dataclass(frozen=True)
class HandResult:
    """
    Best 5-card hand found by `evaluate`.

    Attributes:
        category: Hand category
        tiebreak: Rank values in evaluated priority order
        cards: The 5 cards making the hand, ordered for display
    """
    category: HandRank
    tiebreak: Tuple[int, ...]
    cards: Tuple[Card, ...] = field(compare=False)

    @property
    def key(self) -> Tuple[int, Tuple[int, ...]]:
        return int(self.category), self.tiebreak

    @property
    def name(self) -> str:
        return HAND_RANK_NAMES[self.category]

    @property
    def description(self) -> str:
        return get_hand_description(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HandResult):
            return NotImplemented
        return self.key == other.key

    def __lt__(self, other: HandResult) -> bool:
        return compare_results(self, other) < 0

    def __hash__(self) -> int:
        return hash(self.key)

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.category.name,
            "name": self.name,
            "description": self.description,
            "tiebreak": list(self.tiebreak),
            "cards": [c.to_dict() for c in self.cards],
        }


def compare_high_cards(a: Sequence[int], b: Sequence[int]) -> int:
    """
    Compare two tie-break lists lexicographically.

    Returns:
        Positive if a ranks higher, negative if b ranks higher, 0 if equal.
        When one list is a prefix of the other, the longer one ranks higher.
    """
    for x, y in zip(a, b):
        if x != y:
            return x - y
    return len(a) - len(b)


def compare_results(a: HandResult, b: HandResult) -> int:
    """
    Compare two hand results.

    Returns:
        1 if a wins, -1 if b wins, 0 if tie
    """
    if a.category != b.category:
        return 1 if a.category > b.category else -1
    diff = compare_high_cards(a.tiebreak, b.tiebreak)
    if diff > 0:
        return 1
    if diff < 0:
        return -1
    return 0


def evaluate(cards: Sequence[Card]) -> HandResult:
    """
    Evaluate a poker hand (5-7 cards).

    Args:
        cards: 5-7 Card objects

    Returns:
        The best 5-card HandResult among all 5-card subsets

    Raises:
        ValueError: If not 5-7 cards provided
    """
    if len(cards) < 5 or len(cards) > 7:
        raise ValueError(f"Need 5-7 cards, got {len(cards)}")

    if len(cards) == 5:
        return _evaluate_5_cards(cards)

    best: Optional[HandResult] = None
    for combo in combinations(cards, 5):
        result = _evaluate_5_cards(combo)
        if best is None or compare_results(result, best) > 0:
            best = result

    return best


def _evaluate_5_cards(cards: Sequence[Card]) -> HandResult:
    """Evaluate exactly 5 cards."""
    sorted_cards = sorted(cards, key=lambda c: c.rank, reverse=True)
    ranks = [int(c.rank) for c in sorted_cards]

    is_flush = len({c.suit for c in sorted_cards}) == 1
    is_straight, straight_high = _check_straight(ranks)

    rank_counts = Counter(ranks)
    counts = sorted(rank_counts.values(), reverse=True)

    if is_straight and is_flush:
        if straight_high == Rank.ACE:
            return _result(HandRank.ROYAL_FLUSH, ranks, sorted_cards)
        return _straight_result(HandRank.STRAIGHT_FLUSH, ranks, straight_high, sorted_cards)

    if counts == [4, 1]:
        quad = _rank_with_count(rank_counts, 4)
        kicker = _rank_with_count(rank_counts, 1)
        return _result(HandRank.FOUR_OF_A_KIND, [quad, kicker],
                       _sort_by_count(sorted_cards, rank_counts))

    if counts == [3, 2]:
        trips = _rank_with_count(rank_counts, 3)
        pair = _rank_with_count(rank_counts, 2)
        return _result(HandRank.FULL_HOUSE, [trips, pair],
                       _sort_by_count(sorted_cards, rank_counts))

    if is_flush:
        return _result(HandRank.FLUSH, ranks, sorted_cards)

    if is_straight:
        return _straight_result(HandRank.STRAIGHT, ranks, straight_high, sorted_cards)

    if counts == [3, 1, 1]:
        trips = _rank_with_count(rank_counts, 3)
        kickers = [r for r in ranks if r != trips]
        return _result(HandRank.THREE_OF_A_KIND, [trips] + kickers,
                       _sort_by_count(sorted_cards, rank_counts))

    if counts == [2, 2, 1]:
        pairs = sorted((r for r, c in rank_counts.items() if c == 2), reverse=True)
        kicker = _rank_with_count(rank_counts, 1)
        return _result(HandRank.TWO_PAIR, pairs + [kicker],
                       _sort_by_count(sorted_cards, rank_counts))

    if counts == [2, 1, 1, 1]:
        pair = _rank_with_count(rank_counts, 2)
        kickers = [r for r in ranks if r != pair]
        return _result(HandRank.ONE_PAIR, [pair] + kickers,
                       _sort_by_count(sorted_cards, rank_counts))

    return _result(HandRank.HIGH_CARD, ranks, sorted_cards)


def _result(category: HandRank, tiebreak: List[int], cards: Sequence[Card]) -> HandResult:
    return HandResult(category, tuple(int(r) for r in tiebreak), tuple(cards))


def _straight_result(category: HandRank, ranks: List[int], high: int,
                     cards: List[Card]) -> HandResult:
    if high == Rank.FIVE:
        # Wheel: the Ace plays as 1 and goes last
        return _result(category, WHEEL_TIEBREAK, cards[1:] + cards[:1])
    return _result(category, ranks, cards)


def _check_straight(ranks: List[int]) -> Tuple[bool, Optional[int]]:
    """
    Check if descending ranks form a straight.

    Returns:
        Tuple of (is_straight, high_card_rank)
    """
    if len(set(ranks)) != 5:
        return False, None

    if ranks[0] - ranks[4] == 4:
        return True, ranks[0]

    if ranks == WHEEL:
        return True, int(Rank.FIVE)

    return False, None


def _rank_with_count(rank_counts: Counter, count: int) -> int:
    """Get the rank that appears 'count' times."""
    for rank, c in rank_counts.items():
        if c == count:
            return rank
    raise ValueError(f"No rank with count {count}")


def _sort_by_count(cards: Sequence[Card], rank_counts: Counter) -> List[Card]:
    """Sort cards by count (descending), then by rank (descending)."""
    return sorted(cards, key=lambda c: (rank_counts[int(c.rank)], c.rank), reverse=True)


def best_hands(players: Sequence[Player], community_cards: Sequence[Card]) -> Dict[str, HandResult]:
    """Evaluate hole + community cards for every player still contesting the pot."""
    return {
        p.player_id: evaluate(list(p.hole_cards) + list(community_cards))
        for p in players
        if not p.folded and len(p.hole_cards) == 2
    }


def determine_winners(players: Sequence[Player], community_cards: Sequence[Card]) -> List[str]:
    """
    Determine the winning player ids.

    Folded players and players without exactly two hole cards are excluded.
    A single remaining player wins without any card being evaluated. Otherwise
    every player whose best hand ties the maximum is returned (split pot).
    """
    contenders = [p for p in players if not p.folded and len(p.hole_cards) == 2]

    if not contenders:
        return []
    if len(contenders) == 1:
        return [contenders[0].player_id]

    results = best_hands(contenders, community_cards)
    best = max(results.values())
    winners = [pid for pid, result in results.items() if result == best]

    logger.debug(f"Showdown: best hand {best.description}, winners {winners}")
    return winners


def get_hand_description(result: HandResult) -> str:
    """Get a human-readable description of the hand."""
    category = result.category
    tb = result.tiebreak

    if category == HandRank.ROYAL_FLUSH:
        return "Royal Flush"
    elif category == HandRank.STRAIGHT_FLUSH:
        return f"Straight Flush, {_rank_name(tb[0])} high"
    elif category == HandRank.FOUR_OF_A_KIND:
        return f"Four of a Kind, {_plural(tb[0])}"
    elif category == HandRank.FULL_HOUSE:
        return f"Full House, {_plural(tb[0])} full of {_plural(tb[1])}"
    elif category == HandRank.FLUSH:
        return f"Flush, {_rank_name(tb[0])} high"
    elif category == HandRank.STRAIGHT:
        if list(tb) == WHEEL_TIEBREAK:
            return "Straight, Five high (Wheel)"
        return f"Straight, {_rank_name(tb[0])} high"
    elif category == HandRank.THREE_OF_A_KIND:
        return f"Three of a Kind, {_plural(tb[0])}"
    elif category == HandRank.TWO_PAIR:
        return f"Two Pair, {_plural(tb[0])} and {_plural(tb[1])}"
    elif category == HandRank.ONE_PAIR:
        return f"Pair of {_plural(tb[0])}"
    else:
        return f"High Card, {_rank_name(tb[0])}"


_RANK_NAMES = {
    2: "Two", 3: "Three", 4: "Four", 5: "Five", 6: "Six", 7: "Seven",
    8: "Eight", 9: "Nine", 10: "Ten", 11: "Jack", 12: "Queen", 13: "King",
    14: "Ace",
}


def _rank_name(value: int) -> str:
    return _RANK_NAMES[value]


def _plural(value: int) -> str:
    return "Sixes" if value == 6 else f"{_rank_name(value)}s"
