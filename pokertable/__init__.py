"""
pokertable - Multiplayer Texas Hold'em table engine

A Texas Hold'em rules engine with:
- Pure Python table state machine (no external poker dependencies)
- A single authoritative table writer with state subscribers
- FastAPI + WebSocket server that replicates table state to every viewer

Usage:
    from pokertable.core import PokerTable, ActionType
    from pokertable.core.game import create_table, join, start_hand, apply_action
"""

__version__ = "0.1.0"

from pokertable.core.card import Card
from pokertable.core.game import create_table, join, leave, start_hand, next_hand, apply_action
from pokertable.core.hand import HandRank, evaluate
from pokertable.core.table import PokerTable

__all__ = [
    "Card",
    "HandRank",
    "evaluate",
    "create_table",
    "join",
    "leave",
    "start_hand",
    "next_hand",
    "apply_action",
    "PokerTable",
    "__version__",
]
