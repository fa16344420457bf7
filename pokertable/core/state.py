"""
Canonical table state.

A GameState is a plain data record. The engine in `pokertable.core.game`
never mutates a state it is given: it deep-copies, applies the transition to
the copy and returns it.
"""

from __future__ import annotations
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pokertable.core.card import Card
from pokertable.core.player import Player
from pokertable.core.rules import (
    GamePhase, BETTING_PHASES,
    DEFAULT_SMALL_BLIND, DEFAULT_BIG_BLIND, DEFAULT_TURN_TIME,
)


@dataclass
class GameState:
    """
    Everything the table knows.

    Attributes:
        table_id: Identifier of the table
        phase: Current phase
        players: Seated players, ordered by seat
        community_cards: Board cards (0, 3, 4 or 5)
        pot: Chips collected from completed betting rounds
        current_bet: Table-high bet in the current round
        dealer_position: Seat holding the dealer button
        current_player_id: Whose turn it is, or None
        deck: Cards remaining to be dealt
        winners: Winning player ids, empty outside showdown
        payouts: Chips awarded per player at the last settlement
        hand_history: Events of the current hand
    """
    table_id: str
    small_blind: int = DEFAULT_SMALL_BLIND
    big_blind: int = DEFAULT_BIG_BLIND
    phase: GamePhase = GamePhase.WAITING
    players: List[Player] = field(default_factory=list)
    community_cards: List[Card] = field(default_factory=list)
    pot: int = 0
    current_bet: int = 0
    dealer_position: int = 0
    current_player_id: Optional[str] = None
    deck: List[Card] = field(default_factory=list)
    winners: List[str] = field(default_factory=list)
    payouts: Dict[str, int] = field(default_factory=dict)
    hand_number: int = 0
    hand_history: List[Dict[str, Any]] = field(default_factory=list)
    turn_time: int = DEFAULT_TURN_TIME
    side_pots: bool = False

    def copy(self) -> GameState:
        return copy.deepcopy(self)

    @property
    def is_hand_running(self) -> bool:
        return self.phase in BETTING_PHASES

    @property
    def current_player(self) -> Optional[Player]:
        if self.current_player_id is None:
            return None
        return self.get_player(self.current_player_id)

    @property
    def occupied_seats(self) -> List[int]:
        return [p.seat for p in self.players]

    def get_player(self, player_id: str) -> Optional[Player]:
        """Get player by ID."""
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def player_at(self, seat: int) -> Optional[Player]:
        for player in self.players:
            if player.seat == seat:
                return player
        return None

    def log(self, action: str, **details: Any) -> None:
        """Append an event to the hand history."""
        self.hand_history.append({
            "action": action,
            "phase": self.phase.value,
            **details,
        })

    def to_dict(self, for_player_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Serialize the state for viewers.

        Hole cards are only included for `for_player_id`, and for every
        player still holding cards once the hand reaches showdown.

        Args:
            for_player_id: Viewer whose private cards may be shown
        """
        reveal_all = self.phase == GamePhase.SHOWDOWN and len(self.winners) > 0
        contested = reveal_all and sum(1 for p in self.players if p.in_hand) > 1

        players = []
        for p in self.players:
            show = p.player_id == for_player_id or (contested and p.in_hand)
            players.append(p.to_dict(hide_cards=not show))

        return {
            "table_id": self.table_id,
            "phase": self.phase.value,
            "hand_number": self.hand_number,
            "pot": self.pot,
            "current_bet": self.current_bet,
            "small_blind": self.small_blind,
            "big_blind": self.big_blind,
            "min_raise": self.current_bet + 1,
            "dealer_position": self.dealer_position,
            "current_player_id": self.current_player_id,
            "community_cards": [c.to_dict() for c in self.community_cards],
            "deck_remaining": len(self.deck),
            "players": players,
            "winners": list(self.winners),
            "payouts": dict(self.payouts),
            "turn_time": self.turn_time,
        }
