"""
Authoritative table: the single writer around the pure engine.

PokerTable owns the one canonical GameState. Every write (seat change, hand
start, action, timer expiry) runs under a lock, computes the next state with
the pure functions in `pokertable.core.game` and swaps it in whole, so
readers only ever see fully applied states. Rejections come back as a failed
ActionResult and leave the state exactly as it was.

Usage:
    table = PokerTable(small_blind=10, big_blind=20, rng=random.Random(1))
    table.join("alice", player_id="a")
    table.join("bob", player_id="b")
    table.start_hand()
    result = table.submit("b", "call")
"""

from __future__ import annotations
import logging
import random
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from pokertable.core import game
from pokertable.core.errors import TableError
from pokertable.core.rules import (
    ActionType, GamePhase,
    DEFAULT_SMALL_BLIND, DEFAULT_BIG_BLIND, DEFAULT_STARTING_CHIPS, DEFAULT_TURN_TIME,
)
from pokertable.core.state import GameState


logger = logging.getLogger(__name__)

StateListener = Callable[[GameState], None]


@dataclass
class ActionResult:
    """Result of a table operation."""
    success: bool
    message: str
    action: Optional[ActionType] = None
    amount: int = 0
    player_id: Optional[str] = None
    code: Optional[str] = None


class PokerTable:
    """
    Single authoritative table.

    Listeners registered with `subscribe` are called with a private copy of
    every new state, in commit order.
    """

    def __init__(
        self,
        small_blind: int = DEFAULT_SMALL_BLIND,
        big_blind: int = DEFAULT_BIG_BLIND,
        turn_time: int = DEFAULT_TURN_TIME,
        side_pots: bool = False,
        table_id: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ):
        self._state = game.create_table(
            small_blind=small_blind,
            big_blind=big_blind,
            turn_time=turn_time,
            side_pots=side_pots,
            table_id=table_id,
        )
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._listeners: List[StateListener] = []

    @property
    def table_id(self) -> str:
        return self._state.table_id

    @property
    def state(self) -> GameState:
        """A consistent copy of the current state."""
        return self.snapshot()

    def snapshot(self) -> GameState:
        with self._lock:
            return self._state.copy()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener for new states.

        Returns:
            A function that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: GameState) -> None:
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state.copy())
            except Exception:
                logger.exception(f"State listener failed on table {self.table_id}")

    # ============= Seat management =============

    def join(
        self,
        name: str,
        player_id: Optional[str] = None,
        chips: int = DEFAULT_STARTING_CHIPS,
    ) -> ActionResult:
        with self._lock:
            try:
                new = game.join(self._state, name, player_id=player_id, chips=chips)
            except TableError as e:
                return self._rejected("join", e)
            seated = next(p for p in new.players if self._state.get_player(p.player_id) is None)
            self._commit(new)
        return ActionResult(True, f"{seated.name} seated at {seated.seat}",
                            player_id=seated.player_id)

    def leave(self, player_id: str) -> ActionResult:
        with self._lock:
            try:
                new = game.leave(self._state, player_id)
            except TableError as e:
                return self._rejected("leave", e)
            self._commit(new)
        return ActionResult(True, f"Player {player_id} left", player_id=player_id)

    # ============= Hands =============

    def start_hand(self) -> ActionResult:
        """Start the first hand (or a new one after showdown)."""
        return self._begin_hand(game.start_hand, "start_hand")

    def next_hand(self) -> ActionResult:
        """Start the next hand; only legal from showdown."""
        return self._begin_hand(game.next_hand, "next_hand")

    def _begin_hand(self, transition: Callable[..., GameState], label: str) -> ActionResult:
        with self._lock:
            try:
                new = transition(self._state, rng=self._rng)
            except TableError as e:
                return self._rejected(label, e)
            if new.hand_number == self._state.hand_number:
                return ActionResult(False, "Need at least 2 players with chips",
                                    code="NOT_ENOUGH_PLAYERS")
            self._commit(new)
        return ActionResult(True, f"Hand #{new.hand_number} started")

    # ============= Actions =============

    def submit(
        self,
        player_id: str,
        action: Union[ActionType, str],
        amount: Optional[int] = None,
    ) -> ActionResult:
        """
        Apply an action for a player.

        Actions from anyone but the current player (a stale client or a late
        timer) are rejected without touching the state.
        """
        with self._lock:
            try:
                new = game.apply_action(self._state, player_id, action, amount)
            except TableError as e:
                return self._rejected(f"{action} by {player_id}", e)
            self._commit(new)

        action_type = game.parse_action(action)
        paid = next(
            (entry["amount"] for entry in reversed(new.hand_history)
             if entry.get("player") == player_id and entry["action"] == action_type.value),
            0,
        )
        message = f"{action_type.value} accepted"
        if new.phase == GamePhase.SHOWDOWN:
            message += f"; hand over, winners {', '.join(new.winners)}"
        return ActionResult(True, message, action=action_type, amount=paid, player_id=player_id)

    def timeout(self, player_id: str) -> ActionResult:
        """Turn timer expiry: check if legal, fold otherwise."""
        with self._lock:
            try:
                action = game.timeout_action(self._state, player_id)
            except TableError as e:
                return self._rejected(f"timeout for {player_id}", e)
            logger.info(f"Turn timer expired for {player_id}, submitting {action.value}")
            return self.submit(player_id, action)

    def legal_actions(self, player_id: Optional[str] = None) -> List[dict]:
        with self._lock:
            return game.legal_actions(self._state, player_id)

    def _rejected(self, label: str, error: TableError) -> ActionResult:
        logger.info(f"Table {self._state.table_id} rejected {label}: {error.message}")
        return ActionResult(False, error.message, code=error.code)
