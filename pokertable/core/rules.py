"""
Texas Hold'em Rules and Constants.

Table rules enforced by the engine:

1. Heads-up (2 players): Dealer posts small blind, non-dealer posts big blind.
   Preflop: Dealer acts first.

2. Three or more players: Small blind sits left of the dealer, big blind left
   of the small blind, and the player left of the big blind acts first
   preflop ("under the gun").

3. Postflop: The first player still able to act left of the dealer acts first.

4. Short blinds: A player who cannot cover a blind posts what they have and
   is all-in.

Seats are numbered 0..MAX_SEATS-1 and positions are always computed over the
occupied seats, clockwise, with wrap-around.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple


class GamePhase(Enum):
    """Phases of a Texas Hold'em hand."""
    WAITING = "waiting"      # Fewer than 2 players, or no hand started yet
    PREFLOP = "preflop"      # After hole cards dealt, before flop
    FLOP = "flop"            # After 3 community cards
    TURN = "turn"            # After 4th community card
    RIVER = "river"          # After 5th community card
    SHOWDOWN = "showdown"    # Hand settled, waiting for the next one


class ActionType(Enum):
    """Possible player actions."""
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    RAISE = "raise"
    ALL_IN = "all-in"

    @classmethod
    def parse(cls, value: str) -> "ActionType":
        """Accept 'call', 'CALL', 'all-in', 'ALL_IN' and friends."""
        normalized = value.strip().lower().replace("_", "-")
        if normalized == "allin":
            normalized = "all-in"
        return cls(normalized)


@dataclass(frozen=True)
class BlindStructure:
    """Blind structure for a table."""
    small_blind: int
    big_blind: int

    def __post_init__(self):
        if self.small_blind <= 0 or self.big_blind <= 0:
            raise ValueError("Blinds must be positive")
        if self.small_blind > self.big_blind:
            raise ValueError("Small blind cannot exceed big blind")


# Default table settings
DEFAULT_SMALL_BLIND = 10
DEFAULT_BIG_BLIND = 20
DEFAULT_STARTING_CHIPS = 1000
DEFAULT_TURN_TIME = 30  # seconds
MIN_PLAYERS = 2
MAX_SEATS = 9

# Cards per phase
HOLE_CARDS = 2
FLOP_CARDS = 3
TURN_CARDS = 1
RIVER_CARDS = 1
TOTAL_COMMUNITY_CARDS = 5

# Betting phases in order, and the number of community cards dealt on entry
PHASE_ORDER = [
    GamePhase.PREFLOP,
    GamePhase.FLOP,
    GamePhase.TURN,
    GamePhase.RIVER,
    GamePhase.SHOWDOWN,
]

CARDS_ON_ENTRY = {
    GamePhase.FLOP: FLOP_CARDS,
    GamePhase.TURN: TURN_CARDS,
    GamePhase.RIVER: RIVER_CARDS,
}

BETTING_PHASES = (GamePhase.PREFLOP, GamePhase.FLOP, GamePhase.TURN, GamePhase.RIVER)


def next_phase(phase: GamePhase) -> GamePhase:
    """Phase that follows a completed betting round."""
    idx = PHASE_ORDER.index(phase)
    return PHASE_ORDER[min(idx + 1, len(PHASE_ORDER) - 1)]


def seats_after(seat: int, num_seats: int = MAX_SEATS) -> List[int]:
    """All seats clockwise strictly after `seat`, ending with `seat` itself."""
    return [(seat + i) % num_seats for i in range(1, num_seats + 1)]


def next_seat(
    seat: int,
    occupied: Iterable[int],
    accept: Optional[Callable[[int], bool]] = None,
    inclusive: bool = False,
) -> Optional[int]:
    """
    Find the next occupied seat clockwise from `seat`.

    Args:
        seat: Starting seat
        occupied: Seats that hold a candidate player
        accept: Optional filter on the candidate seat
        inclusive: If True, `seat` itself is checked first

    Returns:
        The seat found, or None
    """
    occupied = set(occupied)
    order = seats_after(seat)
    if inclusive:
        order = [seat] + order[:-1]
    for candidate in order:
        if candidate in occupied and (accept is None or accept(candidate)):
            return candidate
    return None


def get_blind_positions(active_seats: List[int], dealer_seat: int) -> Tuple[int, int, int]:
    """
    Calculate small blind, big blind and first-to-act seats.

    Heads-up: the dealer posts the small blind and acts first preflop.
    Otherwise: SB left of dealer, BB left of SB, under the gun left of BB.

    Args:
        active_seats: Seats of players dealt into the hand
        dealer_seat: Seat holding the dealer button (must be active)

    Returns:
        Tuple of (small_blind_seat, big_blind_seat, first_to_act_seat)
    """
    if len(active_seats) < MIN_PLAYERS:
        raise ValueError("Need at least 2 players")

    if len(active_seats) == 2:
        sb = dealer_seat
        bb = next_seat(dealer_seat, active_seats)
        return sb, bb, sb

    sb = next_seat(dealer_seat, active_seats)
    bb = next_seat(sb, active_seats)
    utg = next_seat(bb, active_seats)
    return sb, bb, utg
