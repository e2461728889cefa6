"""
RoundEngine — Owns a human-vs-computer round and paces the computer's turn.

All per-round state lives in one immutable RoundState that only this class
replaces. Frontends send intents (configure, throw_or_reroll, toggle_hold,
score, start_new_round) and read a RoundSnapshot back after each one.

score() is a coroutine: the computer's automatic rerolls are separated by an
asyncio.sleep so a frontend running on the same event loop can render each
intermediate roll. Only one scoring sequence may be in flight per round.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass, replace

from ai import AdaptiveThresholdPolicy, ComputerPolicy
from game_engine import (
    MAX_ROLLS,
    DiceSource,
    RandomDiceSource,
    RoundPhase,
    RoundState,
    RoundTally,
    Side,
    ValidationError,
    bank_turn,
    can_score,
    can_throw,
    configure_target,
    end_turn,
    primary_action_label,
    resolve_round,
    throw_dice,
)
from game_engine import (
    reset_round as engine_reset_round,
)
from game_engine import (
    toggle_hold as engine_toggle_hold,
)
from game_log import GameLog

logger = logging.getLogger(__name__)

SCORING_FAILED_MESSAGE = "Scoring failed. Press Score to try again."

# Pause after each of the computer's automatic rerolls, in seconds
SPEED_PRESETS = {
    "slow":   0.8,
    "normal": 0.5,
    "fast":   0.2,
}
SPEED_NAMES = ["slow", "normal", "fast"]


@dataclass(frozen=True)
class RoundSnapshot:
    """Everything a frontend needs to render the round after an intent."""
    human_dice: tuple[int, ...]
    computer_dice: tuple[int, ...]
    human_score: int
    computer_score: int
    human_wins: int
    computer_wins: int
    target_score: int
    phase: RoundPhase
    winner: Side | None
    held_indices: frozenset
    dice_interactive: bool
    computer_rolling: bool
    primary_action_label: str
    primary_action_enabled: bool
    score_enabled: bool
    human_roll_count: int
    computer_roll_count: int
    human_turn_count: int
    computer_turn_count: int
    last_error: str | None


class RoundEngine:
    """Validates player intents, runs the computer's turn and detects round outcomes.

    The round tally survives start_new_round(); everything else is per round.
    """

    def __init__(self, source: DiceSource | None = None, policy: ComputerPolicy | None = None,
                 speed: str = "normal", roll_delay: float | None = None) -> None:
        """Initialize the engine with a fresh round awaiting its target.

        Args:
            source: Dice source; defaults to an unseeded RandomDiceSource.
            policy: Computer reroll policy; defaults to AdaptiveThresholdPolicy.
            speed: Pacing preset name ("slow", "normal", "fast").
            roll_delay: Explicit pause in seconds, overriding the preset (0 for tests).
        """
        self._source = source or RandomDiceSource()
        self._policy = policy or AdaptiveThresholdPolicy()
        self.speed_name = speed
        self.roll_delay = SPEED_PRESETS[speed] if roll_delay is None else roll_delay

        self._state = RoundState.create_initial()
        self._tally = RoundTally()
        self._last_error: str | None = None
        self._computer_rolling = False

        # Single-flight guard for the scoring sequence
        self._scoring = False
        self._score_task: asyncio.Task | None = None

        self.game_log = GameLog()

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def state(self) -> RoundState:
        """Current immutable round state."""
        return self._state

    @property
    def tally(self) -> RoundTally:
        """Rounds won so far this session."""
        return self._tally

    @property
    def phase(self) -> RoundPhase:
        return self._state.phase

    @property
    def last_error(self) -> str | None:
        """Message from the last rejected intent, until clear_error()."""
        return self._last_error

    @property
    def computer_rolling(self) -> bool:
        """Whether the computer's automatic rerolls are running."""
        return self._computer_rolling

    @property
    def is_scoring(self) -> bool:
        """Whether a scoring sequence is in flight."""
        return self._scoring

    @property
    def pending_score(self) -> asyncio.Task | None:
        """Task of the automatic scoring sequence started by the third roll, if any."""
        return self._score_task

    @property
    def current_turn(self) -> int:
        """1-based number of the turn being played."""
        return self._state.human_turn_count + 1

    # ── Intents ───────────────────────────────────────────────────────────

    def configure(self, target_score) -> bool:
        """Set the target score and start play.

        Invalid targets fall back to the default. Ignored once the round has
        started. Returns True if the round started.
        """
        new_state = configure_target(self._state, target_score)
        if new_state is self._state:
            return False
        self._state = new_state
        logger.info("Round started with target score %d", new_state.target_score)
        return True

    def throw_or_reroll(self) -> asyncio.Task | None:
        """Apply the primary action: first throw, re-roll or tie breaker roll.

        A rejected re-roll sets last_error and changes nothing else. When the
        human's third roll lands, scoring starts on the running event loop and
        its task is returned; otherwise returns None. Called with no running
        loop, the third roll leaves the dice scoreable for an explicit score().
        """
        if self._scoring:
            return None
        self._last_error = None
        before = self._state
        if not can_throw(before):
            return None

        loop = None
        if not before.is_tie_breaker and before.human_roll_count == MAX_ROLLS - 1 and before.held:
            # The third roll scores automatically when there is a loop to schedule on.
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running event loop, third roll waits for score()")

        try:
            after = throw_dice(before, self._source)
        except ValidationError as exc:
            self._reject(exc)
            return None

        self._state = after
        self._log_throw(before, after)

        if loop is not None and after.human_roll_count == MAX_ROLLS:
            logger.debug("Third roll used, scoring automatically")
            self._begin_scoring()
            self._score_task = loop.create_task(self._complete_scoring())
            self._score_task.add_done_callback(self._report_score_failure)
            return self._score_task
        return None

    def toggle_hold(self, die_index: int) -> bool:
        """Hold or release a human die. Returns True if the hold set changed.

        Holding a fifth die sets last_error. Toggles outside the hold window
        are ignored.
        """
        if self._scoring:
            return False
        try:
            new_state = engine_toggle_hold(self._state, die_index)
        except ValidationError as exc:
            self._reject(exc)
            return False
        if new_state is self._state:
            return False
        self._state = new_state
        return True

    async def score(self) -> bool:
        """Finish the turn: computer rerolls, bank both sums, check for a winner.

        Returns False without effect when there is nothing to score or a
        scoring sequence is already in flight. An error from the policy or
        dice source propagates after the turn is rewound to before scoring.
        """
        if not self._begin_scoring():
            return False
        await self._complete_scoring()
        return True

    def start_new_round(self) -> bool:
        """Reset everything but the tally. Ignored while scoring is in flight."""
        if self._scoring:
            return False
        self._state = engine_reset_round()
        self._last_error = None
        self._score_task = None
        self.game_log.clear()
        logger.info("New round (tally %d-%d)", self._tally.human_wins, self._tally.computer_wins)
        return True

    def clear_error(self) -> None:
        """Forget the last rejection once a frontend has shown it."""
        self._last_error = None

    def set_speed(self, speed: str) -> bool:
        """Switch to a named pacing preset. Returns False for unknown names."""
        if speed not in SPEED_PRESETS:
            return False
        self.speed_name = speed
        self.roll_delay = SPEED_PRESETS[speed]
        return True

    def change_speed(self, direction: int) -> bool:
        """Change computer pacing. direction=+1 for faster, -1 for slower.

        Returns True if speed actually changed, False if already at limit.
        """
        idx = SPEED_NAMES.index(self.speed_name) if self.speed_name in SPEED_NAMES else 1
        new_idx = idx + direction
        if 0 <= new_idx < len(SPEED_NAMES):
            return self.set_speed(SPEED_NAMES[new_idx])
        return False

    def snapshot(self) -> RoundSnapshot:
        """Read-only view of the round for rendering."""
        state = self._state
        return RoundSnapshot(
            human_dice=state.human_dice,
            computer_dice=state.computer_dice,
            human_score=state.human_score,
            computer_score=state.computer_score,
            human_wins=self._tally.human_wins,
            computer_wins=self._tally.computer_wins,
            target_score=state.target_score,
            phase=state.phase,
            winner=state.winner,
            held_indices=state.held,
            dice_interactive=state.dice_interactive,
            computer_rolling=self._computer_rolling,
            primary_action_label=primary_action_label(state),
            primary_action_enabled=can_throw(state) and not self._scoring,
            score_enabled=can_score(state) and not self._scoring,
            human_roll_count=state.human_roll_count,
            computer_roll_count=state.computer_roll_count,
            human_turn_count=state.human_turn_count,
            computer_turn_count=state.computer_turn_count,
            last_error=self._last_error,
        )

    # ── Internal ─────────────────────────────────────────────────────────

    def _reject(self, exc: ValidationError) -> None:
        self._last_error = str(exc)
        logger.debug("Rejected intent: %s", exc)

    def _log_throw(self, before: RoundState, after: RoundState) -> None:
        """Record the dice that just changed."""
        if after.is_tie_breaker:
            self.game_log.record_roll(Side.HUMAN, after.human_dice)
            self.game_log.record_roll(Side.COMPUTER, after.computer_dice)
            return
        self.game_log.record_roll(Side.HUMAN, after.human_dice, kept=before.held)
        if before.human_roll_count == 0:
            self.game_log.record_roll(Side.COMPUTER, after.computer_dice)

    def _begin_scoring(self) -> bool:
        """Take the single-flight guard and lock the dice. False if not allowed."""
        if self._scoring or not can_score(self._state):
            return False
        self._scoring = True
        self._state = replace(self._state, dice_interactive=False)
        return True

    async def _complete_scoring(self) -> None:
        """Run the suspending part of scoring; always releases the guard.

        If the computer's turn fails, the round goes back to where the human
        pressed Score, with the dice interactive so scoring can be retried.
        """
        start = self._state
        computer_rolls = len(self.game_log.pending_rolls(Side.COMPUTER))
        try:
            if not start.is_tie_breaker:
                await self._run_computer_rerolls()
            self._bank_and_resolve()
        except Exception:
            self._state = replace(start, dice_interactive=True)
            self.game_log.discard_rolls_after(Side.COMPUTER, computer_rolls)
            self._last_error = SCORING_FAILED_MESSAGE
            raise
        finally:
            self._computer_rolling = False
            self._scoring = False

    def _report_score_failure(self, task: asyncio.Task) -> None:
        """Log an automatic scoring run that raised; nothing else awaits it."""
        if task.cancelled() or task.exception() is None:
            return
        logger.error("Automatic scoring failed", exc_info=task.exception())

    async def _run_computer_rerolls(self) -> None:
        """Let the policy reroll the computer's dice until it has used three rolls."""
        while self._state.computer_roll_count < MAX_ROLLS:
            self._computer_rolling = True
            state = self._state
            dice = self._policy.decide(state.computer_dice, state.computer_score,
                                       state.human_score, state.target_score, self._source)
            self._state = replace(state, computer_dice=dice,
                                  computer_roll_count=state.computer_roll_count + 1)
            self.game_log.record_roll(Side.COMPUTER, dice)
            await asyncio.sleep(self.roll_delay)
        self._computer_rolling = False

    def _bank_and_resolve(self) -> None:
        """Bank both sums, decide the round if the target was reached, reset the turn."""
        before = self._state
        turn = self.current_turn
        state = end_turn(resolve_round(bank_turn(before)))
        self.game_log.bank(turn, Side.HUMAN, state.human_score, before.is_tie_breaker)
        self.game_log.bank(turn, Side.COMPUTER, state.computer_score, before.is_tie_breaker)
        logger.debug("Turn %d banked: human %d, computer %d",
                     turn, state.human_score, state.computer_score)

        if state.phase is RoundPhase.CONCLUDED:
            self._tally = self._tally.with_win(state.winner)
            logger.info("%s wins the round %d-%d", state.winner.value,
                        state.human_score, state.computer_score)
        elif state.is_tie_breaker and not before.is_tie_breaker:
            logger.info("Scores level at %d, entering tie breaker", state.human_score)
        self._state = state


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Optional list of args (for testing). None uses sys.argv.

    Returns:
        Parsed argparse.Namespace. Unset options are None so saved
        preferences can fill them in.
    """
    parser = argparse.ArgumentParser(description="Dice Duel: race the computer to the target score")
    parser.add_argument("--target", metavar="N",
                        help="Target score for the first round (default: saved preference, else 101)")
    parser.add_argument("--speed", choices=SPEED_NAMES, default=None,
                        help="Computer reroll pacing (default: saved preference, else normal)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed the dice for a reproducible session")
    parser.add_argument("--log-file", metavar="PATH", default=None,
                        help="Write log records to this file")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level for --log-file (default: INFO)")
    return parser.parse_args(argv)
