"""
Player record for Texas Hold'em.

Manages per-player table state:
- Chips (stack behind the line)
- Hole cards
- Current bet in the betting round and total committed this hand
- Hand flags (folded, all-in, acted) and position flags (dealer, blinds)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pokertable.core.card import Card


@dataclass
class Player:
    """
    A player seated at the table.

    Attributes:
        player_id: Stable identifier across hands
        name: Display name
        chips: Current chip count behind the line
        seat: Seat position at the table (0-8)
        hole_cards: The player's private cards (0 or 2)
        current_bet: Chips committed in the current betting round
        total_bet: Chips committed over the whole hand (for side pots)
        is_active: Dealt into the current hand; False while spectating
    """
    player_id: str
    name: str
    chips: int
    seat: int = 0
    hole_cards: List[Card] = field(default_factory=list)
    current_bet: int = 0
    total_bet: int = 0
    is_active: bool = False
    folded: bool = False
    all_in: bool = False
    has_acted: bool = False
    is_dealer: bool = False
    is_small_blind: bool = False
    is_big_blind: bool = False
    # Last action for display
    last_action: Optional[str] = None

    def reset_for_new_hand(self) -> None:
        """Clear every per-hand field; only players with chips are dealt in."""
        self.hole_cards = []
        self.current_bet = 0
        self.total_bet = 0
        self.folded = False
        self.all_in = False
        self.has_acted = False
        self.is_dealer = False
        self.is_small_blind = False
        self.is_big_blind = False
        self.last_action = None
        self.is_active = self.chips > 0

    def reset_for_new_round(self) -> None:
        """Reset player state for a new betting round (flop, turn, river)."""
        self.current_bet = 0
        self.has_acted = False

    def bet(self, amount: int) -> int:
        """
        Move chips from the stack into the current bet.

        Args:
            amount: Amount to bet

        Returns:
            Actual amount bet (less than asked if the stack runs out)
        """
        if amount <= 0:
            return 0

        actual = min(amount, self.chips)
        self.chips -= actual
        self.current_bet += actual
        self.total_bet += actual

        if self.chips == 0:
            self.all_in = True

        return actual

    @property
    def in_hand(self) -> bool:
        """Dealt in and not folded (all-in players are still in the hand)."""
        return self.is_active and not self.folded

    @property
    def can_act(self) -> bool:
        """Still in the hand with chips to decide about."""
        return self.in_hand and not self.all_in

    def to_dict(self, hide_cards: bool = True) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Args:
            hide_cards: If True, don't include hole cards
        """
        result = {
            "id": self.player_id,
            "name": self.name,
            "seat": self.seat,
            "chips": self.chips,
            "bet": self.current_bet,
            "total_bet": self.total_bet,
            "is_active": self.is_active,
            "folded": self.folded,
            "all_in": self.all_in,
            "has_acted": self.has_acted,
            "is_dealer": self.is_dealer,
            "is_small_blind": self.is_small_blind,
            "is_big_blind": self.is_big_blind,
            "last_action": self.last_action,
            "card_count": len(self.hole_cards),
        }

        if not hide_cards and self.hole_cards:
            result["cards"] = [card.to_dict() for card in self.hole_cards]

        return result

    def __repr__(self) -> str:
        return (
            f"Player({self.player_id}, seat={self.seat}, chips={self.chips}, "
            f"bet={self.current_bet})"
        )

    def __str__(self) -> str:
        cards_str = " ".join(str(c) for c in self.hole_cards) if self.hole_cards else "??"
        return f"{self.name} [{cards_str}] ${self.chips}"
