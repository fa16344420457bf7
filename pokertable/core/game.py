"""
Texas Hold'em Table Engine - State Machine Implementation.

This module implements the table rules as pure state transitions. It handles:
- Seat management (join, leave, dealer button rotation)
- Hand start: shuffling, dealing, blind posting (short stacks go all-in)
- Player actions (fold, check, call, raise, all-in) and turn order
- Betting round completion, including the big blind's option
- Phase advance and auto-run when fewer than two players can still act
- Showdown settlement (even split by default, side pots on request)

Every public function takes a GameState and returns a new one. The state
passed in is never modified; a rejected operation raises a TableError and
leaves the caller holding the exact prior state.

Usage:
    state = create_table(small_blind=10, big_blind=20)
    state = join(state, "alice", player_id="a")
    state = join(state, "bob", player_id="b")
    state = start_hand(state, rng=random.Random(7))
    state = apply_action(state, state.current_player_id, ActionType.CALL)
"""

from __future__ import annotations
import logging
import random
import uuid
from typing import Any, Dict, List, Optional, Tuple, Union

from pokertable.core.card import new_shuffled_deck, deal
from pokertable.core.errors import IllegalActionError, InvalidPhaseError, InvalidSeatError
from pokertable.core.hand import best_hands, determine_winners
from pokertable.core.player import Player
from pokertable.core.rules import (
    GamePhase, ActionType, BlindStructure,
    get_blind_positions, next_phase, next_seat,
    DEFAULT_SMALL_BLIND, DEFAULT_BIG_BLIND, DEFAULT_STARTING_CHIPS, DEFAULT_TURN_TIME,
    MAX_SEATS, MIN_PLAYERS, HOLE_CARDS, TOTAL_COMMUNITY_CARDS, CARDS_ON_ENTRY,
)
from pokertable.core.state import GameState


logger = logging.getLogger(__name__)


# ============= Seat management =============

def create_table(
    small_blind: int = DEFAULT_SMALL_BLIND,
    big_blind: int = DEFAULT_BIG_BLIND,
    turn_time: int = DEFAULT_TURN_TIME,
    side_pots: bool = False,
    table_id: Optional[str] = None,
) -> GameState:
    """
    Create an empty table in the waiting phase.

    Args:
        small_blind: Small blind amount
        big_blind: Big blind amount
        turn_time: Seconds a turn timer should allow (0 disables it)
        side_pots: Settle showdowns with side pots instead of an even split
        table_id: Optional table identifier

    Raises:
        ValueError: If the blind structure is invalid
    """
    blinds = BlindStructure(small_blind, big_blind)
    if turn_time < 0:
        raise ValueError("Turn time cannot be negative")

    return GameState(
        table_id=table_id or uuid.uuid4().hex[:12],
        small_blind=blinds.small_blind,
        big_blind=blinds.big_blind,
        turn_time=turn_time,
        side_pots=side_pots,
    )


def join(
    state: GameState,
    name: str,
    player_id: Optional[str] = None,
    chips: int = DEFAULT_STARTING_CHIPS,
) -> GameState:
    """
    Seat a new player at the lowest free seat.

    A player joining while a hand runs is seated inactive and dealt in at
    the next hand.

    Raises:
        InvalidSeatError: If the table is full or the player is already seated
    """
    name = (name or "").strip()
    if not name:
        raise InvalidSeatError("A player name is required")
    if player_id is not None and state.get_player(player_id) is not None:
        raise InvalidSeatError(f"Player {player_id} is already seated")
    if any(p.name == name for p in state.players):
        raise InvalidSeatError(f"A player named {name} is already seated")
    if len(state.players) >= MAX_SEATS:
        raise InvalidSeatError(f"Table is full ({MAX_SEATS} seats)")
    if chips < 0:
        raise InvalidSeatError("Starting chips cannot be negative")

    new = state.copy()
    seat = min(set(range(MAX_SEATS)) - set(new.occupied_seats))
    player = Player(player_id=player_id or uuid.uuid4().hex, name=name, chips=chips, seat=seat)
    new.players.append(player)
    new.players.sort(key=lambda p: p.seat)

    logger.info(f"{name} ({player.player_id}) joined table {new.table_id} at seat {seat}")
    return new


def leave(state: GameState, player_id: str) -> GameState:
    """
    Remove a player from the table.

    A player still in a running hand folds first; chips they already
    committed stay in the pot.

    Raises:
        InvalidSeatError: If the player is not seated
    """
    if state.get_player(player_id) is None:
        raise InvalidSeatError(f"Player {player_id} is not seated")

    new = state.copy()
    leaver = new.get_player(player_id)

    if new.is_hand_running and leaver.in_hand:
        if new.current_player_id == player_id:
            _apply(new, leaver, ActionType.FOLD, None)
        else:
            leaver.folded = True
            leaver.last_action = "FOLD"
            new.log("fold", player=player_id, amount=0, reason="left")
            contenders = [p for p in new.players if p.in_hand]
            if len(contenders) == 1:
                _award_uncontested(new, contenders[0])

    # Committed chips stay on the table
    new.pot += leaver.current_bet
    leaver.current_bet = 0
    new.players.remove(leaver)

    logger.info(f"{leaver.name} ({player_id}) left table {new.table_id}")

    if not new.is_hand_running and len(new.players) < MIN_PLAYERS:
        _return_to_waiting(new)

    return new


def _return_to_waiting(state: GameState) -> None:
    state.phase = GamePhase.WAITING
    state.community_cards = []
    state.current_bet = 0
    state.current_player_id = None
    state.winners = []
    state.deck = []
    for player in state.players:
        player.reset_for_new_hand()
        player.is_active = False


# ============= Hand lifecycle =============

def start_hand(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    """
    Start a new hand: shuffle, rotate the button, deal, post blinds.

    A no-op (an equal, unchanged state is returned) when fewer than two
    seated players have chips.

    Raises:
        InvalidPhaseError: If a hand is already in progress
    """
    if state.is_hand_running:
        raise InvalidPhaseError(f"A hand is already in progress ({state.phase.value})")

    funded = [p for p in state.players if p.chips > 0]
    if len(funded) < MIN_PLAYERS:
        logger.warning(f"Cannot start hand on table {state.table_id}: not enough players with chips")
        return state.copy()

    new = state.copy()
    _deal_new_hand(new, rng)
    return new


def next_hand(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    """
    Move from a settled hand to the next one.

    Raises:
        InvalidPhaseError: If the current hand has not reached showdown
    """
    if state.phase != GamePhase.SHOWDOWN:
        raise InvalidPhaseError(f"Next hand is only allowed from showdown, not {state.phase.value}")
    return start_hand(state, rng)


def _deal_new_hand(state: GameState, rng: Optional[random.Random]) -> None:
    state.hand_number += 1
    state.hand_history = []
    state.community_cards = []
    state.pot = 0
    state.winners = []
    state.payouts = {}

    # Zero-chip players stay seated but are not dealt in
    for player in state.players:
        player.reset_for_new_hand()

    active = [p for p in state.players if p.is_active]
    active_seats = [p.seat for p in active]

    state.dealer_position = next_seat(state.dealer_position, active_seats)
    sb_seat, bb_seat, first_seat = get_blind_positions(active_seats, state.dealer_position)

    deck = new_shuffled_deck(rng)
    for player in active:
        player.hole_cards, deck = deal(deck, HOLE_CARDS)
    state.deck = deck

    dealer = state.player_at(state.dealer_position)
    sb_player = state.player_at(sb_seat)
    bb_player = state.player_at(bb_seat)
    dealer.is_dealer = True
    sb_player.is_small_blind = True
    bb_player.is_big_blind = True

    state.phase = GamePhase.PREFLOP
    sb_amount = _post_blind(sb_player, state.small_blind, "SB")
    bb_amount = _post_blind(bb_player, state.big_blind, "BB")
    state.current_bet = state.big_blind

    logger.info(
        f"Table {state.table_id} hand #{state.hand_number}: dealer seat {state.dealer_position}, "
        f"blinds {sb_amount}/{bb_amount}, {len(active)} players"
    )
    state.log(
        "HAND_START",
        hand_number=state.hand_number,
        dealer=state.dealer_position,
        small_blind=sb_player.player_id,
        big_blind=bb_player.player_id,
    )

    actor = next_seat(first_seat, active_seats, accept=lambda s: state.player_at(s).can_act,
                      inclusive=True)
    if actor is None:
        # Blinds put everyone all-in
        state.current_player_id = None
        _complete_round(state)
    else:
        state.current_player_id = state.player_at(actor).player_id


def _post_blind(player: Player, amount: int, label: str) -> int:
    """Post a blind; a short stack posts what it has and is all-in."""
    posted = player.bet(amount)
    player.last_action = f"{label} ${posted}"
    return posted


# ============= Actions =============

def apply_action(
    state: GameState,
    player_id: str,
    action: Union[ActionType, str],
    amount: Optional[int] = None,
) -> GameState:
    """
    Validate and apply a player action.

    Args:
        state: Current state
        player_id: Acting player; must be the current player
        action: Action type (or its name, e.g. "call", "all-in")
        amount: Target total bet for RAISE

    Returns:
        The next state

    Raises:
        IllegalActionError: If the action is not legal right now
    """
    action = parse_action(action)

    if not state.is_hand_running:
        raise IllegalActionError("No hand in progress")
    if state.current_player_id is None or state.current_player_id != player_id:
        raise IllegalActionError(f"It is not {player_id}'s turn")

    new = state.copy()
    _apply(new, new.get_player(player_id), action, amount)
    return new


def parse_action(action: Union[ActionType, str]) -> ActionType:
    if isinstance(action, ActionType):
        return action
    try:
        return ActionType.parse(str(action))
    except ValueError:
        raise IllegalActionError(f"Unknown action: {action}")


def _apply(state: GameState, player: Player, action: ActionType, amount: Optional[int]) -> None:
    paid = _execute_action(state, player, action, amount)
    player.has_acted = True

    state.log(action.value, player=player.player_id, amount=paid, total_bet=player.current_bet)
    logger.debug(f"{player.name} {action.value} {paid} (bet {player.current_bet})")

    contenders = [p for p in state.players if p.in_hand]
    if len(contenders) == 1:
        _award_uncontested(state, contenders[0])
        return

    # Round completion has to be settled before looking for the next actor
    if is_round_complete(state):
        _complete_round(state)
        return

    state.current_player_id = _next_actor(state, player.seat)


def _execute_action(
    state: GameState,
    player: Player,
    action: ActionType,
    amount: Optional[int],
) -> int:
    """Execute the action for the player and return the chips paid."""
    to_call = state.current_bet - player.current_bet

    if action == ActionType.FOLD:
        player.folded = True
        player.last_action = "FOLD"
        return 0

    if action == ActionType.CHECK:
        if to_call > 0:
            raise IllegalActionError(f"Cannot check, must call ${to_call}")
        player.last_action = "CHECK"
        return 0

    if action == ActionType.CALL:
        if to_call <= 0:
            raise IllegalActionError("Nothing to call, use check")
        paid = player.bet(to_call)
        player.last_action = f"CALL ${paid}"
        return paid

    if action == ActionType.RAISE:
        if amount is None:
            raise IllegalActionError("Raise needs a target amount")
        if amount <= state.current_bet:
            raise IllegalActionError(f"Raise must exceed the current bet of ${state.current_bet}")
        needed = amount - player.current_bet
        if needed > player.chips:
            raise IllegalActionError(
                f"Cannot raise to ${amount} with ${player.chips} behind, use all-in"
            )
        paid = player.bet(needed)
        state.current_bet = amount
        player.last_action = f"ALL-IN ${amount}" if player.all_in else f"RAISE ${amount}"
        return paid

    if action == ActionType.ALL_IN:
        if player.chips <= 0:
            raise IllegalActionError("No chips left to go all-in")
        paid = player.bet(player.chips)
        if player.current_bet > state.current_bet:
            state.current_bet = player.current_bet
        player.last_action = f"ALL-IN ${player.current_bet}"
        return paid

    raise IllegalActionError(f"Unknown action: {action}")


def _next_actor(state: GameState, from_seat: int) -> Optional[str]:
    """Next player clockwise after `from_seat` who is still in and not all-in."""
    seat = next_seat(from_seat, state.occupied_seats, accept=lambda s: state.player_at(s).can_act)
    return state.player_at(seat).player_id if seat is not None else None


def timeout_action(state: GameState, player_id: str) -> ActionType:
    """
    Action a turn timer submits on expiry: check when legal, otherwise fold.

    Raises:
        IllegalActionError: If it is not the player's turn
    """
    player = state.current_player
    if not state.is_hand_running or player is None or player.player_id != player_id:
        raise IllegalActionError(f"It is not {player_id}'s turn")
    return ActionType.CHECK if player.current_bet == state.current_bet else ActionType.FOLD


def legal_actions(state: GameState, player_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Get legal actions for the specified player (or current player).

    Returns:
        List of action dicts with type and constraints; empty when it is not
        that player's turn
    """
    player = state.current_player
    if player is None or not state.is_hand_running:
        return []
    if player_id is not None and player.player_id != player_id:
        return []

    actions: List[Dict[str, Any]] = [{"type": ActionType.FOLD.value}]
    to_call = state.current_bet - player.current_bet
    max_total = player.chips + player.current_bet

    if to_call <= 0:
        actions.append({"type": ActionType.CHECK.value})
    else:
        actions.append({"type": ActionType.CALL.value, "amount": min(to_call, player.chips)})

    if max_total > state.current_bet:
        actions.append({
            "type": ActionType.RAISE.value,
            "min": state.current_bet + 1,
            "max": max_total,
            "suggested": min(state.current_bet + state.big_blind, max_total),
        })

    if player.chips > 0:
        actions.append({"type": ActionType.ALL_IN.value, "amount": max_total})

    return actions


# ============= Betting rounds =============

def is_round_complete(state: GameState) -> bool:
    """
    Check if the current betting round is complete.

    Every in-hand player who is not all-in must have matched the table bet
    and acted. Preflop, while the table bet is still the big blind, the big
    blind has not acted until they act themselves.
    """
    can_act = [p for p in state.players if p.can_act]

    for player in can_act:
        if player.current_bet != state.current_bet:
            return False
        if not player.has_acted:
            return False

    return not _big_blind_option_pending(state, can_act)


def _big_blind_option_pending(state: GameState, can_act: List[Player]) -> bool:
    if state.phase != GamePhase.PREFLOP or state.current_bet != state.big_blind:
        return False
    return any(p.is_big_blind and not p.has_acted for p in can_act)


def _collect_bets(state: GameState) -> None:
    """Sweep every current bet into the pot and reset round flags."""
    for player in state.players:
        state.pot += player.current_bet
        player.reset_for_new_round()


def _complete_round(state: GameState) -> None:
    """Close the betting round and move to the next phase (or showdown)."""
    _collect_bets(state)
    state.current_player_id = None

    able = sum(1 for p in state.players if p.can_act)
    if able < 2:
        # Nobody left to bet against: run out the board
        _deal_community(state, TOTAL_COMMUNITY_CARDS - len(state.community_cards))
        _settle_showdown(state)
        return

    phase = next_phase(state.phase)
    if phase == GamePhase.SHOWDOWN:
        _settle_showdown(state)
        return

    state.phase = phase
    state.current_bet = 0
    _deal_community(state, CARDS_ON_ENTRY[phase])
    state.current_player_id = _next_actor(state, state.dealer_position)

    logger.info(
        f"Table {state.table_id} {phase.value}: "
        f"{' '.join(str(c) for c in state.community_cards)} pot {state.pot}"
    )


def _deal_community(state: GameState, count: int) -> None:
    if count <= 0:
        return
    cards, state.deck = deal(state.deck, count)
    state.community_cards.extend(cards)
    state.log("DEAL", cards=[c.short_str for c in cards])


# ============= Settlement =============

def _award_uncontested(state: GameState, winner: Player) -> None:
    """Everyone else folded: the last player takes the pot, no cards shown."""
    _collect_bets(state)
    amount = state.pot
    winner.chips += amount

    state.pot = 0
    state.current_bet = 0
    state.current_player_id = None
    state.phase = GamePhase.SHOWDOWN
    state.winners = [winner.player_id]
    state.payouts = {winner.player_id: amount}

    state.log("WIN_BY_FOLD", winner=winner.player_id, amount=amount)
    logger.info(f"Table {state.table_id}: {winner.name} wins {amount} uncontested")


def _settle_showdown(state: GameState) -> None:
    """Compare hands and distribute the pot."""
    state.phase = GamePhase.SHOWDOWN
    state.current_bet = 0
    state.current_player_id = None

    if state.side_pots:
        awards = _settle_side_pots(state)
    else:
        awards = _settle_even_split(state)

    for player_id, amount in awards:
        state.get_player(player_id).chips += amount
        state.payouts[player_id] = state.payouts.get(player_id, 0) + amount
        if player_id not in state.winners:
            state.winners.append(player_id)

    state.pot = 0

    hands = best_hands([p for p in state.players if p.in_hand], state.community_cards)
    state.log(
        "SHOWDOWN",
        winners=list(state.winners),
        payouts=dict(state.payouts),
        hands={pid: result.description for pid, result in hands.items()},
    )
    logger.info(f"Table {state.table_id} showdown: payouts {state.payouts}")


def _settle_even_split(state: GameState) -> List[Tuple[str, int]]:
    """
    Split the whole pot evenly among the best hands.

    The remainder of a non-divisible split is not allocated.
    """
    winners = determine_winners(state.players, state.community_cards)
    if not winners:
        return []

    share = state.pot // len(winners)
    remainder = state.pot - share * len(winners)
    if remainder:
        logger.info(f"Table {state.table_id}: {remainder} chip(s) left over by the even split")

    return [(pid, share) for pid in winners]


def _settle_side_pots(state: GameState) -> List[Tuple[str, int]]:
    """
    Award a main pot and side pots built from each player's hand total.

    Contributions are partitioned at every in-hand contribution level; each
    pot goes to the best hand(s) among players who reached that level. Odd
    chips go to the first winners clockwise from the button.
    """
    pots = _build_side_pots(state)
    awards: List[Tuple[str, int]] = []

    for amount, eligible in pots:
        winners = determine_winners(eligible, state.community_cards)
        if not winners or amount <= 0:
            continue
        share, remainder = divmod(amount, len(winners))
        ordered = _clockwise_from_button(state, winners)
        for i, pid in enumerate(ordered):
            awards.append((pid, share + (1 if i < remainder else 0)))

    return awards


def _build_side_pots(state: GameState) -> List[Tuple[int, List[Player]]]:
    contenders = [p for p in state.players if p.in_hand]
    levels = sorted({p.total_bet for p in contenders if p.total_bet > 0})

    pots: List[Tuple[int, List[Player]]] = []
    prev = 0
    for level in levels:
        amount = sum(min(p.total_bet, level) - min(p.total_bet, prev) for p in state.players)
        eligible = [p for p in contenders if p.total_bet >= level]
        pots.append((amount, eligible))
        prev = level

    # Chips of players who already left the table go to the main pot
    leftover = state.pot - sum(amount for amount, _ in pots)
    if pots and leftover > 0:
        pots[0] = (pots[0][0] + leftover, pots[0][1])

    return pots


def _clockwise_from_button(state: GameState, player_ids: List[str]) -> List[str]:
    seats = {state.get_player(pid).seat: pid for pid in player_ids}
    order = [(state.dealer_position + i) % MAX_SEATS for i in range(1, MAX_SEATS + 1)]
    return [seats[s] for s in order if s in seats]


def total_chips(state: GameState) -> int:
    """All chips on the table: stacks, live bets and the pot."""
    return sum(p.chips + p.current_bet for p in state.players) + state.pot
