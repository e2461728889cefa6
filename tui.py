#!/usr/bin/env python3
"""
Dice Duel TUI — Terminal frontend using Textual.

Keyboard-driven: box-art dice for both sides, scoreboard, target score
prompt, turn history and help overlays. The computer's paced rerolls run as
a worker on Textual's event loop so every intermediate roll is drawn.
"""
import logging
import sys

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Center, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Input, Static

from frontend_adapter import FrontendAdapter
from game_engine import NUM_DICE, UNTHROWN, RandomDiceSource, RoundPhase, Side
from round_engine import RoundEngine, parse_args

logger = logging.getLogger(__name__)


# ── Box-art die faces ────────────────────────────────────────────────────────

# Pip cells on a 3x3 grid, numbered row by row
PIPS = {
    1: {4},
    2: {0, 8},
    3: {0, 4, 8},
    4: {0, 2, 6, 8},
    5: {0, 2, 4, 6, 8},
    6: {0, 2, 3, 5, 6, 8},
}

FACE_WIDTH = 9


def die_face_lines(value, held=False):
    """Render one die as five lines; a double border marks a held die."""
    if held:
        top, bottom, side, bar = "╔", "╚", "║", "═"
        top_end, bottom_end = "╗", "╝"
    else:
        top, bottom, side, bar = "┌", "└", "│", "─"
        top_end, bottom_end = "┐", "┘"

    if value == UNTHROWN:
        rows = [" " * FACE_WIDTH, "?".center(FACE_WIDTH), " " * FACE_WIDTH]
    else:
        rows = []
        for r in range(3):
            cells = ["●" if r * 3 + c in PIPS[value] else " " for c in range(3)]
            rows.append(" " + "  ".join(cells) + " ")

    lines = [top + bar * FACE_WIDTH + top_end]
    lines.extend(side + row + side for row in rows)
    lines.append(bottom + bar * FACE_WIDTH + bottom_end)
    return lines


def render_dice_row(dice, held=frozenset(), show_keys=False):
    """Render five dice side by side, optionally with (1)-(5) key labels."""
    faces = [die_face_lines(value, i in held) for i, value in enumerate(dice)]
    lines = ["  ".join(face[row] for face in faces) for row in range(5)]
    if show_keys:
        labels = []
        for i in range(NUM_DICE):
            label = f"({i + 1})" + (" HELD" if i in held else "")
            labels.append(label.center(FACE_WIDTH + 2))
        lines.append("  ".join(labels))
    return "\n".join(lines)


def format_turn_log(game_log):
    """One line per side per banked turn: every throw, the points banked and the running total."""
    text = "[bold]TURN LOG[/bold]\n\n"
    records = game_log.turns()
    if not records:
        return text + "  No turns banked yet.\n\n[dim]L or Esc to close[/dim]"

    for record in records:
        dice_str = " → ".join("(" + ",".join(str(v) for v in dice) + ")" for dice in record.rolls)
        tag = "*" if record.tie_breaker else ""
        line = f"T{record.turn}{tag} {record.side.value[0]}: {dice_str} = {record.banked}, total {record.total}"
        if len(line) > 70:
            line = line[:67] + "..."
        text += f"  {line}\n"
    if any(record.tie_breaker for record in records):
        text += "\n  * tie breaker turn"
    text += "\n[dim]L or Esc to close[/dim]"
    return text


# ── Widgets ──────────────────────────────────────────────────────────────────

class DiceDisplay(Static):
    """Renders one side's five dice."""

    def __init__(self, side, **kwargs):
        super().__init__(**kwargs)
        self.side = side

    def render(self):
        snap = self.app.engine.snapshot()
        if self.side is Side.COMPUTER:
            title = f"[bold]Computer - {snap.computer_score}[/bold]"
            return title + "\n" + render_dice_row(snap.computer_dice)
        title = f"[bold]Human - {snap.human_score}[/bold]"
        return render_dice_row(snap.human_dice, snap.held_indices, show_keys=True) + "\n" + title


class ScoreboardDisplay(Static):
    """Shows the tally, target score and pacing."""

    def render(self):
        engine = self.app.engine
        snap = engine.snapshot()
        lines = [
            f"[bold]Rounds won | H:{snap.human_wins} / C:{snap.computer_wins}[/bold]",
            f"Target Score - {snap.target_score}",
            f"Turn {engine.current_turn}",
            f"Speed: {engine.speed_name.capitalize()} (+/-)",
        ]
        return "\n".join(lines)


class StatusDisplay(Static):
    """Shows what the round is waiting for."""

    def render(self):
        adapter = self.app.adapter
        snap = self.app.engine.snapshot()
        text = adapter.status_text()
        if snap.phase is RoundPhase.CONCLUDED:
            colour = "green" if snap.winner is Side.HUMAN else "red"
            return (f"[bold {colour}]{text}[/bold {colour}]\n\n"
                    "[dim]Press N for a new round, L for the turn log[/dim]")
        if snap.computer_rolling:
            return f"[dim]{text}[/dim]"
        return text


# ── Modal Screens ────────────────────────────────────────────────────────────

class TargetScoreScreen(ModalScreen[str]):
    """Prompt for the round's target score."""

    def __init__(self, default_target):
        super().__init__()
        self.default_target = default_target

    def compose(self) -> ComposeResult:
        with Center(id="target-panel"):
            yield Static("[bold]Set Target Score[/bold]\n\n"
                         f"Enter a target score to win (default: {self.default_target}):")
            yield Input(placeholder=str(self.default_target), id="target-input")
            yield Button("Start Game", id="start-btn", variant="primary")

    @on(Input.Submitted, "#target-input")
    def on_target_submitted(self, event: Input.Submitted):
        self._finish(event.value)

    @on(Button.Pressed, "#start-btn")
    def on_start_pressed(self):
        self._finish(self.query_one("#target-input", Input).value)

    def _finish(self, value):
        self.dismiss(value.strip() or str(self.default_target))


class HelpScreen(ModalScreen):
    """Help overlay showing key bindings."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("question_mark", "dismiss", "Close"),
        Binding("f1", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        controls = [
            ("Space", "Throw / Re-roll / Tie breaker roll"),
            ("1-5", "Hold or release a die (up to 4)"),
            ("S", "Score this turn"),
            ("L", "Turn log"),
            ("N", "New round (after a win)"),
            ("+/-", "Computer speed"),
            ("Esc", "Close overlay / Quit"),
            ("? / F1", "This help screen"),
        ]
        text = "[bold]CONTROLS[/bold]\n\n"
        for key, desc in controls:
            text += f"  {key:<10} {desc}\n"
        text += ("\nBoth players roll five dice up to three times a turn. Hold at\n"
                 "least one die to re-roll the rest. The turn's dice sum is banked\n"
                 "when you score (automatically after your third roll).\n")
        text += "\n[dim]Press Esc or ? to close[/dim]"
        yield Center(Static(text, id="help-panel"))


class TurnLogScreen(ModalScreen):
    """Turn-by-turn history of the current round."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("l", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        yield Center(Static(format_turn_log(self.app.engine.game_log), id="log-panel"))


# ── Main App ─────────────────────────────────────────────────────────────────

class DiceDuelApp(App):
    """Dice Duel terminal UI application."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #game-area {
        layout: horizontal;
        height: 1fr;
    }

    #dice-panel {
        width: 64;
        padding: 1 2;
    }

    #side-panel {
        width: 1fr;
        padding: 1 2;
    }

    #human-dice {
        margin-top: 1;
    }

    #status-display {
        height: auto;
        margin-top: 1;
    }

    #throw-btn, #score-btn {
        margin-top: 1;
        width: 24;
    }

    #help-panel, #log-panel, #target-panel {
        padding: 2 4;
        border: thick $accent;
        background: $surface;
        width: 76;
        height: auto;
        max-height: 80vh;
    }
    """

    BINDINGS = [
        Binding("space", "throw", "Throw", show=True),
        Binding("1", "hold_1", "Hold 1"),
        Binding("2", "hold_2", "Hold 2"),
        Binding("3", "hold_3", "Hold 3"),
        Binding("4", "hold_4", "Hold 4"),
        Binding("5", "hold_5", "Hold 5"),
        Binding("s", "score", "Score", show=True),
        Binding("l", "turn_log", "Turn log"),
        Binding("question_mark", "help", "Help"),
        Binding("f1", "help", "Help"),
        Binding("plus", "speed_up", "+Speed"),
        Binding("equals", "speed_up", "+Speed"),
        Binding("minus", "speed_down", "-Speed"),
        Binding("n", "new_round", "New round"),
        Binding("escape", "quit_or_close", "Quit"),
    ]

    def __init__(self, engine=None, adapter=None, initial_target=None):
        super().__init__()
        self.engine = engine if engine is not None else RoundEngine()
        self.adapter = adapter if adapter is not None else FrontendAdapter(self.engine)
        self.initial_target = initial_target
        self._refresh_timer = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="game-area"):
            with Vertical(id="dice-panel"):
                yield DiceDisplay(Side.COMPUTER, id="computer-dice")
                yield DiceDisplay(Side.HUMAN, id="human-dice")
            with Vertical(id="side-panel"):
                yield ScoreboardDisplay(id="scoreboard-display")
                yield Button("Throw", id="throw-btn", variant="primary")
                yield Button("Score", id="score-btn", variant="success")
                yield StatusDisplay(id="status-display")
        yield Footer()

    def on_mount(self):
        self.title = "Dice Duel"
        self._refresh_timer = self.set_interval(1 / 20, self._refresh_display)
        if self.initial_target is not None:
            self.adapter.do_configure(self.initial_target)
        else:
            self._prompt_target()

    def _prompt_target(self):
        """Ask for the target score while the round awaits configuration."""
        if self.engine.phase is not RoundPhase.AWAITING_TARGET_CONFIG:
            return

        def on_target(value):
            self.adapter.do_configure(value)
            self._refresh_display()

        default = self.adapter.default_target or self.engine.state.target_score
        self.push_screen(TargetScoreScreen(default), on_target)

    def _refresh_display(self):
        """Refresh all display widgets and show any pending rejection once."""
        error = self.adapter.consume_error()
        if error:
            self.notify(error, severity="warning", timeout=3)
        snap = self.engine.snapshot()
        try:
            for widget_id in ("#computer-dice", "#human-dice"):
                self.query_one(widget_id, DiceDisplay).refresh()
            self.query_one("#scoreboard-display", ScoreboardDisplay).refresh()
            self.query_one("#status-display", StatusDisplay).refresh()
            throw_btn = self.query_one("#throw-btn", Button)
            throw_btn.label = snap.primary_action_label
            throw_btn.disabled = not snap.primary_action_enabled
            self.query_one("#score-btn", Button).disabled = not snap.score_enabled
        except Exception:
            logger.debug("Refresh error", exc_info=True)

    # ── Actions ──────────────────────────────────────────────────────────

    def action_throw(self):
        self.adapter.do_throw()
        self._refresh_display()

    @on(Button.Pressed, "#throw-btn")
    def on_throw_button(self):
        self.action_throw()

    def action_hold_1(self):
        self._do_hold(0)

    def action_hold_2(self):
        self._do_hold(1)

    def action_hold_3(self):
        self._do_hold(2)

    def action_hold_4(self):
        self._do_hold(3)

    def action_hold_5(self):
        self._do_hold(4)

    def _do_hold(self, index):
        self.adapter.do_hold(index)
        self._refresh_display()

    def action_score(self):
        if not self.engine.snapshot().score_enabled:
            return
        self.run_worker(self._score_turn(), group="score", exclusive=True)

    async def _score_turn(self):
        # The engine rewinds the turn and sets last_error; the refresh shows it.
        try:
            await self.adapter.do_score()
        except Exception:
            logger.exception("Scoring failed")

    @on(Button.Pressed, "#score-btn")
    def on_score_button(self):
        self.action_score()

    def action_turn_log(self):
        if self.engine.is_scoring:
            return
        self.push_screen(TurnLogScreen())

    def action_help(self):
        self.push_screen(HelpScreen())

    def action_speed_up(self):
        self.adapter.change_speed(+1)
        self._refresh_display()

    def action_speed_down(self):
        self.adapter.change_speed(-1)
        self._refresh_display()

    def action_new_round(self):
        if self.engine.phase is not RoundPhase.CONCLUDED:
            return
        if self.adapter.do_new_round():
            self._refresh_display()
            self._prompt_target()

    def action_quit_or_close(self):
        # If any screen is stacked, pop it
        if len(self.screen_stack) > 1:
            self.pop_screen()
        else:
            self.exit()


def configure_logging(log_file, level):
    """Send log records to a file; the terminal belongs to the UI."""
    if log_file is None:
        return
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv=None):
    """Entry point for the TUI."""
    args = parse_args(argv)
    configure_logging(args.log_file, args.log_level)

    engine = RoundEngine(source=RandomDiceSource(args.seed))
    adapter = FrontendAdapter(engine)
    adapter.load_settings()
    if args.speed is not None:
        engine.set_speed(args.speed)

    app = DiceDuelApp(engine=engine, adapter=adapter, initial_target=args.target)
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
