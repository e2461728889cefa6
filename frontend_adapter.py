"""FrontendAdapter — Shared UI state management for Dice Duel frontends.

Owns the one-shot error banner, status text and preference persistence.
Pure Python — no Textual or other frontend dependency.

A frontend creates a FrontendAdapter wrapping a RoundEngine and delegates
UI-state logic here, keeping only rendering and input translation
frontend-specific.
"""

from game_engine import RoundPhase, Side
from round_engine import RoundEngine
from settings import load_settings, save_settings


STATUS_COMPUTER_ROLLING = "Computer is rolling..."
STATUS_TIE_BREAKER = "Scores are level. Tie breaker!"
STATUS_AWAITING_TARGET = "Set a target score to start."


class FrontendAdapter:
    """Shared UI state management for Dice Duel frontends.

    Wraps a RoundEngine and manages the error banner, status line and
    preferences.
    """

    def __init__(self, engine: RoundEngine, settings_path=None):
        self.engine = engine
        self.settings_path = settings_path

        # Preferred target for the next round's prompt
        self.default_target = None

    # ── Error banner ──────────────────────────────────────────────────────

    def consume_error(self):
        """Return the pending rejection message once, then clear it."""
        message = self.engine.last_error
        if message is not None:
            self.engine.clear_error()
        return message

    # ── Settings ──────────────────────────────────────────────────────────

    def load_settings(self):
        """Load persisted preferences and apply pacing to the engine."""
        settings = load_settings(self.settings_path)
        self.default_target = settings["target_score"]
        self.engine.set_speed(settings["speed"])

    def _save_settings(self):
        """Persist current preferences to disk."""
        settings = {"speed": self.engine.speed_name}
        if self.default_target is not None:
            settings["target_score"] = self.default_target
        save_settings(settings, self.settings_path)

    def change_speed(self, direction):
        """Change computer pacing. Returns True if speed changed."""
        if self.engine.change_speed(direction):
            self._save_settings()
            return True
        return False

    # ── Game actions ──────────────────────────────────────────────────────

    def do_configure(self, raw_target):
        """Start the round with the entered target and remember it as the default."""
        if self.engine.configure(raw_target):
            self.default_target = self.engine.state.target_score
            self._save_settings()
            return True
        return False

    def do_throw(self):
        """Throw / re-roll. Returns the automatic scoring task, if one started."""
        return self.engine.throw_or_reroll()

    def do_hold(self, die_index):
        """Toggle hold on a human die."""
        return self.engine.toggle_hold(die_index)

    async def do_score(self):
        """Score the turn (runs the computer's paced rerolls)."""
        return await self.engine.score()

    def do_new_round(self):
        """Start another round, keeping the tally."""
        return self.engine.start_new_round()

    # ── Status text ───────────────────────────────────────────────────────

    def status_text(self):
        """One-line description of what the round is waiting for."""
        snap = self.engine.snapshot()
        if snap.phase is RoundPhase.AWAITING_TARGET_CONFIG:
            return STATUS_AWAITING_TARGET
        if snap.phase is RoundPhase.CONCLUDED:
            return "You Win!" if snap.winner is Side.HUMAN else "You Lose!"
        if snap.computer_rolling:
            return STATUS_COMPUTER_ROLLING
        if snap.phase is RoundPhase.TIE_BREAKER:
            return STATUS_TIE_BREAKER
        if snap.human_roll_count == 0:
            return "Throw the dice!"
        remaining = 3 - snap.human_roll_count
        return f"Rolls left: {remaining}. Hold dice to keep, then re-roll or score."

