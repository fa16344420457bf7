"""
Pydantic schemas for API request/response validation.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, model_validator

from pokertable.core.rules import (
    DEFAULT_BIG_BLIND, DEFAULT_SMALL_BLIND, DEFAULT_STARTING_CHIPS, DEFAULT_TURN_TIME,
)


# ============= Request Schemas =============

class CreateTableRequest(BaseModel):
    """Request to create a new table."""
    small_blind: int = Field(gt=0, default=DEFAULT_SMALL_BLIND)
    big_blind: int = Field(gt=0, default=DEFAULT_BIG_BLIND)
    turn_time: int = Field(ge=0, le=600, default=DEFAULT_TURN_TIME,
                           description="Seconds per turn, 0 disables the timer")
    side_pots: bool = Field(default=False, description="Settle showdowns with side pots")
    table_id: Optional[str] = Field(default=None, min_length=1, max_length=64)

    @model_validator(mode="after")
    def check_blinds(self) -> "CreateTableRequest":
        if self.small_blind > self.big_blind:
            raise ValueError("small_blind cannot exceed big_blind")
        return self


class JoinRequest(BaseModel):
    """Request to take a seat."""
    name: str = Field(..., min_length=1, max_length=32)
    player_id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    chips: int = Field(gt=0, default=DEFAULT_STARTING_CHIPS)


class LeaveRequest(BaseModel):
    """Request to leave the table."""
    player_id: str


class ActionRequest(BaseModel):
    """Request to take a game action."""
    player_id: str
    action: str = Field(..., description="Action type: fold, check, call, raise, all-in")
    amount: Optional[int] = Field(default=None, ge=0, description="Target total bet for raise")


# ============= Response Schemas =============

class CardSchema(BaseModel):
    """Card representation."""
    rank: str
    suit: str
    text: str
    color: str


class PlayerSchema(BaseModel):
    """Player information; cards only for the viewer or at showdown."""
    id: str
    name: str
    seat: int
    chips: int
    bet: int
    total_bet: int
    is_active: bool
    folded: bool
    all_in: bool
    has_acted: bool
    is_dealer: bool
    is_small_blind: bool
    is_big_blind: bool
    last_action: Optional[str] = None
    card_count: int = 0
    cards: Optional[List[CardSchema]] = None


class GameStateSchema(BaseModel):
    """Table state as seen by one viewer."""
    table_id: str
    phase: str
    hand_number: int
    pot: int
    current_bet: int
    small_blind: int
    big_blind: int
    min_raise: int
    dealer_position: int
    current_player_id: Optional[str] = None
    community_cards: List[CardSchema]
    deck_remaining: int
    players: List[PlayerSchema]
    winners: List[str]
    payouts: Dict[str, int]
    turn_time: int


class ActionResultSchema(BaseModel):
    """Result of a table operation."""
    success: bool
    message: str
    action: Optional[str] = None
    amount: int = 0
    player_id: Optional[str] = None
    state: GameStateSchema


class TableCreatedSchema(BaseModel):
    """Response to table creation."""
    table_id: str
    state: GameStateSchema


class LegalActionsSchema(BaseModel):
    """Legal actions for a player."""
    player_id: Optional[str] = None
    actions: List[Dict[str, Any]]


# ============= WebSocket Message Schemas =============

class WSMessage(BaseModel):
    """Message sent by a WebSocket client."""
    type: str
    action: Optional[str] = None
    amount: Optional[int] = Field(default=None, ge=0)
    name: Optional[str] = None
    chips: Optional[int] = Field(default=None, gt=0)


class WSErrorMessage(BaseModel):
    """WebSocket error message."""
    type: str = "error"
    message: str
    code: Optional[str] = None
