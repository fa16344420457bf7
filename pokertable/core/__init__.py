"""
pokertable core - Pure Python Texas Hold'em table logic

This module contains all game logic without any network dependencies.
"""

from pokertable.core.card import Card, Rank, Suit, new_shuffled_deck, deal
from pokertable.core.errors import (
    TableError, IllegalActionError, InsufficientCardsError,
    InvalidSeatError, InvalidPhaseError,
)
from pokertable.core.hand import HandRank, HandResult, evaluate, determine_winners
from pokertable.core.player import Player
from pokertable.core.rules import GamePhase, ActionType
from pokertable.core.state import GameState
from pokertable.core.game import (
    create_table, join, leave, start_hand, next_hand, apply_action, legal_actions,
)
from pokertable.core.table import PokerTable, ActionResult

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "new_shuffled_deck",
    "deal",
    "TableError",
    "IllegalActionError",
    "InsufficientCardsError",
    "InvalidSeatError",
    "InvalidPhaseError",
    "HandRank",
    "HandResult",
    "evaluate",
    "determine_winners",
    "Player",
    "GamePhase",
    "ActionType",
    "GameState",
    "create_table",
    "join",
    "leave",
    "start_hand",
    "next_hand",
    "apply_action",
    "legal_actions",
    "PokerTable",
    "ActionResult",
]
