"""
Dice Duel Game Engine - Pure round logic without any frontend dependency

This module contains the rules of a human-vs-computer dice duel: five dice,
up to three rolls per turn, hold-and-reroll, bank the sum, first to the target
score wins (with a sudden-death tie breaker). It uses immutable data structures
and pure functions so every rule can be unit tested without a UI or event loop.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple
import random

NUM_DICE = 5
MAX_ROLLS = 3
MAX_HELD = 4
DEFAULT_TARGET_SCORE = 101
UNTHROWN = 0  # placeholder face before the first throw of a round

EMPTY_HOLD_MESSAGE = "Please select at least one die to hold before re-rolling."
TOO_MANY_HELD_MESSAGE = "Maximum of 4 dice can be held."


class ValidationError(ValueError):
    """A player intent that breaks a rule; recoverable, shown to the player."""


class RoundPhase(Enum):
    """Where a round is in its lifecycle"""
    AWAITING_TARGET_CONFIG = "Awaiting target"
    IN_PROGRESS = "In progress"
    TIE_BREAKER = "Tie breaker"
    CONCLUDED = "Concluded"


class Side(Enum):
    """The two players of a duel"""
    HUMAN = "Human"
    COMPUTER = "Computer"


# ── Dice sources ─────────────────────────────────────────────────────────────

class DiceSource(ABC):
    """Source of uniform die faces. Injected so play can be made deterministic."""

    @abstractmethod
    def next_die(self) -> int: ...


class RandomDiceSource(DiceSource):
    """Uniform 1-6 draws from a (optionally seeded) random.Random."""

    def __init__(self, seed=None):
        self._rng = random.Random(seed)

    def next_die(self) -> int:
        return self._rng.randint(1, 6)


class ScriptedDiceSource(DiceSource):
    """Replays a fixed sequence of faces, one per draw.

    Raises IndexError once the script runs out, so a scenario that draws
    more dice than expected fails loudly instead of rolling at random.
    """

    def __init__(self, values):
        values = list(values)
        for value in values:
            if not 1 <= value <= 6:
                raise ValueError(f"Invalid die value {value}. Must be between 1 and 6.")
        self._values = values
        self._position = 0

    @property
    def remaining(self) -> int:
        """Number of faces not yet drawn."""
        return len(self._values) - self._position

    def next_die(self) -> int:
        if self._position >= len(self._values):
            raise IndexError("ScriptedDiceSource exhausted")
        value = self._values[self._position]
        self._position += 1
        return value


def roll_all(source: DiceSource) -> Tuple[int, ...]:
    """Roll a fresh set of five dice."""
    return tuple(source.next_die() for _ in range(NUM_DICE))


def reroll_unheld(dice: Tuple[int, ...], held, source: DiceSource) -> Tuple[int, ...]:
    """
    Redraw every die whose index is not held.

    Args:
        dice: Current five face values
        held: Indices to keep
        source: Where new faces come from

    Returns:
        New tuple of five faces; held positions are unchanged
    """
    return tuple(value if i in held else source.next_die()
                 for i, value in enumerate(dice))


# ── Round state ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RoundTally:
    """Rounds won by each side; carried across rounds of a session."""
    human_wins: int = 0
    computer_wins: int = 0

    def with_win(self, side: Side) -> 'RoundTally':
        """Return a tally with one more round won by side."""
        if side is Side.HUMAN:
            return replace(self, human_wins=self.human_wins + 1)
        return replace(self, computer_wins=self.computer_wins + 1)


@dataclass(frozen=True)
class RoundState:
    """Immutable per-round state - everything a new round resets"""
    human_dice: Tuple[int, ...] = (UNTHROWN,) * NUM_DICE
    computer_dice: Tuple[int, ...] = (UNTHROWN,) * NUM_DICE
    human_score: int = 0
    computer_score: int = 0
    target_score: int = DEFAULT_TARGET_SCORE
    human_roll_count: int = 0      # 0-3
    computer_roll_count: int = 0   # 0-3
    human_turn_count: int = 0
    computer_turn_count: int = 0
    held: frozenset = field(default_factory=frozenset)
    phase: RoundPhase = RoundPhase.AWAITING_TARGET_CONFIG
    winner: Optional[Side] = None
    dice_interactive: bool = False

    @staticmethod
    def create_initial() -> 'RoundState':
        """Create a fresh round waiting for its target score"""
        return RoundState()

    @property
    def is_tie_breaker(self) -> bool:
        return self.phase is RoundPhase.TIE_BREAKER

    @property
    def is_playable(self) -> bool:
        """Whether dice can be thrown in this phase at all."""
        return self.phase in (RoundPhase.IN_PROGRESS, RoundPhase.TIE_BREAKER)


def parse_target_score(raw) -> int:
    """
    Interpret a user-supplied target score.

    Anything that is not a positive whole number (None, text, zero,
    negatives, booleans, fractional floats) yields DEFAULT_TARGET_SCORE.
    This is a permissive default, never an error.
    """
    if isinstance(raw, bool) or raw is None:
        return DEFAULT_TARGET_SCORE
    if isinstance(raw, float):
        if not raw.is_integer():
            return DEFAULT_TARGET_SCORE
        raw = int(raw)
    try:
        value = int(str(raw).strip())
    except ValueError:
        return DEFAULT_TARGET_SCORE
    return value if value > 0 else DEFAULT_TARGET_SCORE


def configure_target(state: RoundState, raw_target) -> RoundState:
    """
    Set the target score and start play.

    Only allowed while the round awaits its target; later calls return the
    state unchanged.
    """
    if state.phase is not RoundPhase.AWAITING_TARGET_CONFIG:
        return state
    return replace(state,
                   target_score=parse_target_score(raw_target),
                   phase=RoundPhase.IN_PROGRESS)


# ── Player actions ───────────────────────────────────────────────────────────

def can_throw(state: RoundState) -> bool:
    """
    Check if the primary action (throw / re-roll / tie breaker roll) is live.

    Args:
        state: Current round state

    Returns:
        True if throw_dice() would do something other than reject
    """
    if state.is_tie_breaker:
        return True
    return state.phase is RoundPhase.IN_PROGRESS and state.human_roll_count < MAX_ROLLS


def throw_dice(state: RoundState, source: DiceSource) -> RoundState:
    """
    Apply the primary action for the human.

    Tie breaker: both sides roll all five dice, no roll counting.
    First roll of a turn: both sides roll all five dice, both counts become 1.
    Second/third roll: the human rerolls every unheld die; at least one die
    must be held.

    Returns the state unchanged when the action is not available.

    Raises:
        ValidationError: rerolling with nothing held
    """
    if not can_throw(state):
        return state

    if state.is_tie_breaker:
        return replace(state,
                       human_dice=roll_all(source),
                       computer_dice=roll_all(source),
                       dice_interactive=True)

    if state.human_roll_count == 0:
        return replace(state,
                       human_dice=roll_all(source),
                       computer_dice=roll_all(source),
                       human_roll_count=1,
                       computer_roll_count=1,
                       held=frozenset(),
                       dice_interactive=True)

    if not state.held:
        raise ValidationError(EMPTY_HOLD_MESSAGE)

    return replace(state,
                   human_dice=reroll_unheld(state.human_dice, state.held, source),
                   human_roll_count=state.human_roll_count + 1,
                   held=frozenset(),
                   dice_interactive=True)


def can_toggle_hold(state: RoundState) -> bool:
    """Holding is only possible between the first and third roll of a normal turn."""
    return (not state.is_tie_breaker
            and state.phase is RoundPhase.IN_PROGRESS
            and 1 <= state.human_roll_count < MAX_ROLLS
            and state.dice_interactive)


def toggle_hold(state: RoundState, die_index: int) -> RoundState:
    """
    Toggle whether a human die is kept on the next reroll.

    Invalid indices and out-of-turn toggles return the state unchanged.
    Releasing a held die always succeeds.

    Raises:
        ValidationError: holding a fifth die
    """
    if not (0 <= die_index < NUM_DICE) or not can_toggle_hold(state):
        return state
    if die_index in state.held:
        return replace(state, held=state.held - {die_index})
    if len(state.held) >= MAX_HELD:
        raise ValidationError(TOO_MANY_HELD_MESSAGE)
    return replace(state, held=state.held | {die_index})


def can_score(state: RoundState) -> bool:
    """Scoring needs thrown dice that have not been banked yet."""
    return state.is_playable and state.dice_interactive


def bank_turn(state: RoundState) -> RoundState:
    """Add both dice sums to the scores and count the completed turn for both sides."""
    return replace(state,
                   human_score=state.human_score + sum(state.human_dice),
                   computer_score=state.computer_score + sum(state.computer_dice),
                   human_turn_count=state.human_turn_count + 1,
                   computer_turn_count=state.computer_turn_count + 1)


def resolve_round(state: RoundState) -> RoundState:
    """
    Decide the round once someone has reached the target.

    Equal scores go to (or stay in) the tie breaker; otherwise the strictly
    higher score wins and the round concludes. Below the target nothing
    changes.
    """
    if state.human_score < state.target_score and state.computer_score < state.target_score:
        return state

    # Both turn counters advance together in bank_turn().
    assert state.human_turn_count == state.computer_turn_count, (
        "turn counts out of step: "
        f"{state.human_turn_count} vs {state.computer_turn_count}"
    )

    if state.human_score == state.computer_score:
        return replace(state, phase=RoundPhase.TIE_BREAKER)

    winner = Side.HUMAN if state.human_score > state.computer_score else Side.COMPUTER
    return replace(state, phase=RoundPhase.CONCLUDED, winner=winner)


def end_turn(state: RoundState) -> RoundState:
    """Reset roll counters and holds for the next turn."""
    return replace(state,
                   human_roll_count=0,
                   computer_roll_count=0,
                   held=frozenset(),
                   dice_interactive=False)


# ── Primary action presentation ──────────────────────────────────────────────

def primary_action_label(state: RoundState) -> str:
    """Label for the throw button: "Tie Breaker Roll!", "Throw" or "Re-roll"."""
    if state.is_tie_breaker:
        return "Tie Breaker Roll!"
    if state.human_roll_count == 0:
        return "Throw"
    return "Re-roll"


def reset_round() -> RoundState:
    """
    Create a fresh round state (equivalent to starting over).

    Returns:
        New RoundState awaiting its target score
    """
    return RoundState.create_initial()
