"""
Tests for the Texas Hold'em table engine.
"""

import random

import pytest
from pokertable.core.errors import IllegalActionError, InvalidPhaseError
from pokertable.core.game import (
    apply_action, create_table, is_round_complete, legal_actions, next_hand,
    parse_action, start_hand, timeout_action, total_chips,
)
from pokertable.core.player import Player
from pokertable.core.rules import ActionType, GamePhase
from pokertable.core.state import GameState


class TestTableCreation:
    """Tests for creating a table."""

    def test_initial_state(self):
        """A new table waits for players."""
        state = create_table()
        assert state.phase == GamePhase.WAITING
        assert state.players == []
        assert state.small_blind == 10
        assert state.big_blind == 20
        assert not state.is_hand_running

    def test_invalid_blinds(self):
        """Blinds must be positive and the small blind not above the big."""
        with pytest.raises(ValueError):
            create_table(small_blind=0, big_blind=20)
        with pytest.raises(ValueError):
            create_table(small_blind=30, big_blind=20)
        with pytest.raises(ValueError):
            create_table(turn_time=-1)


class TestStartHand:
    """Tests for starting a hand."""

    def test_start_hand_changes_phase(self, heads_up):
        """Starting a hand moves to preflop."""
        assert heads_up.phase == GamePhase.PREFLOP
        assert heads_up.is_hand_running
        assert heads_up.hand_number == 1

    def test_players_receive_cards(self, heads_up):
        """Each player gets two cards; the deck keeps the rest."""
        for player in heads_up.players:
            assert len(player.hole_cards) == 2
        dealt = [c for p in heads_up.players for c in p.hole_cards]
        assert len(heads_up.deck) == 48
        assert not set(dealt) & set(heads_up.deck)

    def test_start_hand_leaves_input_untouched(self, seat, rng):
        """The state passed in is not modified."""
        state = seat(create_table(), {"a": 1000, "b": 1000})
        before = state.copy()
        start_hand(state, rng=rng)
        assert state == before

    def test_start_hand_mid_hand_rejected(self, heads_up, rng):
        with pytest.raises(InvalidPhaseError):
            start_hand(heads_up, rng=rng)

    def test_start_hand_needs_two_funded_players(self, seat, rng):
        """With one funded player nothing happens."""
        state = seat(create_table(), {"a": 1000, "b": 0})
        new = start_hand(state, rng=rng)
        assert new == state
        assert new.phase == GamePhase.WAITING
        assert new.hand_number == 0

    def test_next_hand_only_from_showdown(self, heads_up, rng):
        with pytest.raises(InvalidPhaseError):
            next_hand(heads_up, rng=rng)

    def test_seeded_deal_is_reproducible(self, seat):
        state = seat(create_table(), {"a": 1000, "b": 1000})
        first = start_hand(state, rng=random.Random(5))
        second = start_hand(state, rng=random.Random(5))
        assert first == second


class TestHeadsUpScenario:
    """End-to-end heads-up hand: stacks 1000/1000, blinds 10/20."""

    def test_blinds_and_first_actor(self, heads_up):
        """Dealer posts the small blind and acts first preflop."""
        b = heads_up.get_player("b")
        a = heads_up.get_player("a")
        assert heads_up.dealer_position == b.seat
        assert b.is_dealer and b.is_small_blind
        assert a.is_big_blind
        assert (b.chips, b.current_bet) == (990, 10)
        assert (a.chips, a.current_bet) == (980, 20)
        assert heads_up.current_bet == 20
        assert heads_up.current_player_id == "b"

    def test_call_then_big_blind_option(self, heads_up):
        """After the small blind calls, the big blind still has to act."""
        state = apply_action(heads_up, "b", ActionType.CALL)
        b = state.get_player("b")
        assert (b.chips, b.current_bet) == (980, 20)
        assert state.phase == GamePhase.PREFLOP
        assert not is_round_complete(state)
        assert state.current_player_id == "a"

    def test_big_blind_check_deals_flop(self, heads_up):
        """Big blind checks: pot 40, flop dealt, first post-flop actor is the big blind."""
        state = apply_action(heads_up, "b", ActionType.CALL)
        state = apply_action(state, "a", ActionType.CHECK)

        assert state.phase == GamePhase.FLOP
        assert state.pot == 40
        assert len(state.community_cards) == 3
        assert len(state.deck) == 45
        assert state.current_bet == 0
        assert all(p.current_bet == 0 for p in state.players)
        # First seat after the dealer that can act
        assert state.current_player_id == "a"

    def test_check_down_to_showdown(self, heads_up):
        """Checking every street reaches a settled showdown."""
        state = apply_action(heads_up, "b", ActionType.CALL)
        state = apply_action(state, "a", ActionType.CHECK)
        for phase in (GamePhase.FLOP, GamePhase.TURN, GamePhase.RIVER):
            assert state.phase == phase
            state = apply_action(state, "a", ActionType.CHECK)
            state = apply_action(state, "b", ActionType.CHECK)

        assert state.phase == GamePhase.SHOWDOWN
        assert len(state.community_cards) == 5
        assert state.current_player_id is None
        assert state.winners
        assert sum(state.payouts.values()) == 40
        assert state.hand_history[-1]["action"] == "SHOWDOWN"


class TestBettingRound:
    """Tests for round completion."""

    def _state(self, players, current_bet=20, phase=GamePhase.FLOP):
        return GameState(table_id="t", phase=phase, players=players, current_bet=current_bet)

    def _player(self, player_id, seat, bet, acted, big_blind=False):
        return Player(player_id=player_id, name=player_id, chips=500, seat=seat,
                      current_bet=bet, is_active=True, has_acted=acted,
                      is_big_blind=big_blind)

    def test_equal_bets_all_acted_is_complete(self):
        players = [self._player("a", 0, 20, True), self._player("b", 1, 20, True),
                   self._player("c", 2, 20, True)]
        assert is_round_complete(self._state(players))

    def test_unmatched_bet_is_not_complete(self):
        players = [self._player("a", 0, 40, True), self._player("b", 1, 20, True)]
        assert not is_round_complete(self._state(players, current_bet=40))

    def test_unacted_player_is_not_complete(self):
        players = [self._player("a", 0, 0, True), self._player("b", 1, 0, False)]
        assert not is_round_complete(self._state(players, current_bet=0))

    def test_big_blind_option_pending(self):
        """Preflop limped pot: not complete until the big blind acts."""
        players = [self._player("a", 0, 20, True), self._player("b", 1, 20, False, big_blind=True)]
        assert not is_round_complete(self._state(players, phase=GamePhase.PREFLOP))

        players[1].has_acted = True
        assert is_round_complete(self._state(players, phase=GamePhase.PREFLOP))

    def test_all_in_players_do_not_block(self):
        """Players who are all-in are not waited on."""
        players = [self._player("a", 0, 100, True), self._player("b", 1, 60, False)]
        players[1].chips = 0
        players[1].all_in = True
        assert is_round_complete(self._state(players, current_bet=100))


class TestIllegalActions:
    """Rejected actions leave the state untouched."""

    def test_action_when_not_your_turn(self, heads_up):
        before = heads_up.copy()
        with pytest.raises(IllegalActionError):
            apply_action(heads_up, "a", ActionType.CALL)
        assert heads_up == before

    def test_check_when_facing_bet(self, heads_up):
        before = heads_up.copy()
        with pytest.raises(IllegalActionError):
            apply_action(heads_up, "b", ActionType.CHECK)
        assert heads_up == before

    def test_call_with_nothing_to_call(self, heads_up):
        state = apply_action(heads_up, "b", ActionType.CALL)
        with pytest.raises(IllegalActionError):
            apply_action(state, "a", ActionType.CALL)

    def test_raise_must_exceed_current_bet(self, heads_up):
        with pytest.raises(IllegalActionError):
            apply_action(heads_up, "b", ActionType.RAISE, 20)
        with pytest.raises(IllegalActionError):
            apply_action(heads_up, "b", ActionType.RAISE)

    def test_raise_beyond_stack(self, heads_up):
        """Raising to more than the stack covers is rejected; all-in is the way."""
        with pytest.raises(IllegalActionError):
            apply_action(heads_up, "b", ActionType.RAISE, 1001)
        # Exactly the whole stack is fine
        state = apply_action(heads_up, "b", ActionType.RAISE, 1000)
        assert state.get_player("b").all_in

    def test_action_after_hand_over(self, heads_up):
        state = apply_action(heads_up, "b", ActionType.FOLD)
        assert state.phase == GamePhase.SHOWDOWN
        with pytest.raises(IllegalActionError):
            apply_action(state, "a", ActionType.CHECK)

    def test_unknown_action(self, heads_up):
        with pytest.raises(IllegalActionError):
            apply_action(heads_up, "b", "dance")


class TestActions:
    """Tests for action effects."""

    def test_raise_sets_target_total(self, heads_up):
        """A raise amount is the new total bet, not the increment."""
        state = apply_action(heads_up, "b", ActionType.RAISE, 60)
        b = state.get_player("b")
        assert b.current_bet == 60
        assert b.chips == 940
        assert state.current_bet == 60
        assert state.current_player_id == "a"

    def test_reraise_reopens_action(self, heads_up):
        state = apply_action(heads_up, "b", ActionType.RAISE, 60)
        state = apply_action(state, "a", ActionType.RAISE, 200)
        assert state.current_player_id == "b"
        state = apply_action(state, "b", ActionType.CALL)
        assert state.phase == GamePhase.FLOP
        assert state.pot == 400

    def test_fold_awards_pot(self, heads_up):
        """Folding heads-up ends the hand without a showdown."""
        state = apply_action(heads_up, "b", ActionType.FOLD)
        assert state.phase == GamePhase.SHOWDOWN
        assert state.winners == ["a"]
        assert state.payouts == {"a": 30}
        assert state.get_player("a").chips == 1010
        assert state.get_player("b").chips == 990
        assert state.community_cards == []

    def test_short_call_goes_all_in(self, seat, rng):
        """A call larger than the stack puts the player all-in for less."""
        state = seat(create_table(), {"a": 1000, "b": 1000})
        state = start_hand(state, rng=rng)
        state = apply_action(state, "b", ActionType.RAISE, 900)
        state.get_player("a").chips = 300
        state = apply_action(state, "a", ActionType.CALL)
        a = state.get_player("a")
        assert a.chips == 0
        assert a.all_in
        assert state.phase == GamePhase.SHOWDOWN

    def test_action_names_are_parsed(self, heads_up):
        assert parse_action("ALL_IN") == ActionType.ALL_IN
        assert parse_action("allin") == ActionType.ALL_IN
        assert parse_action("Call") == ActionType.CALL
        state = apply_action(heads_up, "b", "all-in")
        assert state.get_player("b").all_in
        assert state.current_bet == 1000

    def test_last_action_recorded(self, heads_up):
        state = apply_action(heads_up, "b", ActionType.RAISE, 60)
        assert state.get_player("b").last_action == "RAISE $60"
        assert state.hand_history[-1] == {
            "action": "raise", "phase": "preflop", "player": "b", "amount": 50, "total_bet": 60,
        }


class TestLegalActions:
    """Tests for legal action reporting."""

    def test_facing_big_blind(self, heads_up):
        actions = {a["type"]: a for a in legal_actions(heads_up)}
        assert set(actions) == {"fold", "call", "raise", "all-in"}
        assert actions["call"]["amount"] == 10
        assert actions["raise"]["min"] == 21
        assert actions["raise"]["suggested"] == 40
        assert actions["raise"]["max"] == 1000
        assert actions["all-in"]["amount"] == 1000

    def test_big_blind_option_can_check(self, heads_up):
        state = apply_action(heads_up, "b", ActionType.CALL)
        types = [a["type"] for a in legal_actions(state, "a")]
        assert "check" in types
        assert "call" not in types

    def test_not_your_turn(self, heads_up):
        assert legal_actions(heads_up, "a") == []

    def test_no_hand(self):
        assert legal_actions(create_table()) == []


class TestTimeoutAction:
    """Turn timer expiry picks check or fold."""

    def test_fold_when_facing_bet(self, heads_up):
        assert timeout_action(heads_up, "b") == ActionType.FOLD

    def test_check_when_free(self, heads_up):
        state = apply_action(heads_up, "b", ActionType.CALL)
        assert timeout_action(state, "a") == ActionType.CHECK

    def test_stale_timer(self, heads_up):
        with pytest.raises(IllegalActionError):
            timeout_action(heads_up, "a")


class TestChipConservation:
    """Chips only move between stacks, bets and the pot."""

    def _play_randomly(self, state, rng):
        while state.is_hand_running:
            before = total_chips(state)
            actions = legal_actions(state)
            choice = rng.choice(actions)
            amount = None
            if choice["type"] == "raise":
                amount = rng.randint(choice["min"], choice["max"])
            state = apply_action(state, state.current_player_id, choice["type"], amount)
            if state.is_hand_running:
                assert total_chips(state) == before
        return state

    def test_within_a_hand(self, three_handed):
        """Totals hold after every action of the hand."""
        start = total_chips(three_handed)
        assert start == 3000
        state = self._play_randomly(three_handed, random.Random(3))
        # The even split may leave a remainder unallocated
        assert 3000 - len(state.players) < total_chips(state) <= 3000

    def test_across_hands_with_side_pots(self, seat):
        """With side pots every chip is awarded, hand after hand."""
        rng = random.Random(11)
        state = seat(create_table(side_pots=True), {"a": 500, "b": 1000, "c": 1500, "d": 250})
        state = start_hand(state, rng=rng)
        for _ in range(30):
            state = self._play_randomly(state, rng)
            assert state.phase == GamePhase.SHOWDOWN
            assert total_chips(state) == 3250
            assert state.pot == 0
            if sum(1 for p in state.players if p.chips > 0) < 2:
                break
            state = next_hand(state, rng=rng)
