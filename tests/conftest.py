"""
Pytest configuration and shared fixtures for pokertable tests.
"""

import random
from typing import Dict, Optional

import pytest
from pokertable.core.card import Card, Rank, Suit, build_deck, parse_cards
from pokertable.core.game import create_table, join, start_hand
from pokertable.core.player import Player
from pokertable.core.state import GameState


def seat_players(state: GameState, stacks: Dict[str, int]) -> GameState:
    """Seat players in order; ids double as names."""
    for player_id, chips in stacks.items():
        state = join(state, player_id, player_id=player_id, chips=chips)
    return state


def rig(state: GameState, holes: Dict[str, str], board: Optional[str] = None) -> GameState:
    """
    Return a copy of a dealt state with chosen hole cards and board.

    Board cards are put on top of the deck in order, so the flop, turn and
    river come out exactly as given.
    """
    state = state.copy()
    used = []
    for player_id, cards in holes.items():
        state.get_player(player_id).hole_cards = parse_cards(cards)
        used.extend(state.get_player(player_id).hole_cards)

    top = parse_cards(board) if board else []
    used.extend(top)
    rest = [c for c in build_deck() if c not in used]
    state.deck = top + rest
    return state


@pytest.fixture
def rng():
    """A seeded random source for reproducible shuffles."""
    return random.Random(42)


@pytest.fixture
def heads_up(rng):
    """
    Heads-up hand just dealt: 1000/1000, blinds 10/20.

    Seat 0 is "a", seat 1 is "b"; the button moves to seat 1, so "b" is
    dealer and small blind and acts first.
    """
    state = seat_players(create_table(small_blind=10, big_blind=20), {"a": 1000, "b": 1000})
    return start_hand(state, rng=rng)


@pytest.fixture
def three_handed(rng):
    """
    Three-handed hand just dealt: seats 0-2 are "a", "b", "c".

    Dealer "b" (seat 1), small blind "c", big blind "a", and "b" under the gun.
    """
    state = seat_players(create_table(small_blind=10, big_blind=20),
                         {"a": 1000, "b": 1000, "c": 1000})
    return start_hand(state, rng=rng)


@pytest.fixture
def sample_player():
    """Create a sample player with 1000 chips."""
    return Player(player_id="test_player", name="Test", chips=1000, seat=0, is_active=True)


@pytest.fixture
def sample_hand():
    """Create a sample 5-card hand (pair of aces)."""
    return [
        Card(Rank.ACE, Suit.SPADES),
        Card(Rank.ACE, Suit.HEARTS),
        Card(Rank.KING, Suit.DIAMONDS),
        Card(Rank.QUEEN, Suit.CLUBS),
        Card(Rank.JACK, Suit.SPADES),
    ]


@pytest.fixture
def royal_flush():
    """Create a royal flush hand."""
    return [
        Card(Rank.ACE, Suit.SPADES),
        Card(Rank.KING, Suit.SPADES),
        Card(Rank.QUEEN, Suit.SPADES),
        Card(Rank.JACK, Suit.SPADES),
        Card(Rank.TEN, Suit.SPADES),
    ]


@pytest.fixture
def straight_flush():
    """Create a straight flush (9-high)."""
    return [
        Card(Rank.NINE, Suit.HEARTS),
        Card(Rank.EIGHT, Suit.HEARTS),
        Card(Rank.SEVEN, Suit.HEARTS),
        Card(Rank.SIX, Suit.HEARTS),
        Card(Rank.FIVE, Suit.HEARTS),
    ]


@pytest.fixture
def wheel_straight():
    """Create a wheel straight (A-2-3-4-5)."""
    return [
        Card(Rank.ACE, Suit.SPADES),
        Card(Rank.TWO, Suit.HEARTS),
        Card(Rank.THREE, Suit.DIAMONDS),
        Card(Rank.FOUR, Suit.CLUBS),
        Card(Rank.FIVE, Suit.SPADES),
    ]


@pytest.fixture
def seat():
    """The `seat_players` helper, for tests that build their own tables."""
    return seat_players


@pytest.fixture
def rigged():
    """The `rig` helper, for tests that need known cards."""
    return rig
