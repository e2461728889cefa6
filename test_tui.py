"""
TUI Rendering Test Suite

Covers the pure text helpers only; no app is started.

Sections:
    1. Die faces — pips, held border, unthrown placeholder
    2. Dice rows — layout and key labels
    3. Turn log text
    4. Logging setup
"""
import logging

import pytest

from game_engine import UNTHROWN, Side
from game_log import GameLog
from tui import FACE_WIDTH, configure_logging, die_face_lines, format_turn_log, render_dice_row


# ── 1. Die faces ─────────────────────────────────────────────────────────────

class TestDieFace:

    @pytest.mark.parametrize("value", [1, 2, 3, 4, 5, 6])
    def test_pip_count_matches_value(self, value):
        lines = die_face_lines(value)
        assert "".join(lines).count("●") == value

    def test_five_lines_of_equal_width(self):
        lines = die_face_lines(4)
        assert len(lines) == 5
        assert {len(line) for line in lines} == {FACE_WIDTH + 2}

    def test_held_die_has_double_border(self):
        assert die_face_lines(3, held=True)[0].startswith("╔")
        assert die_face_lines(3)[0].startswith("┌")

    def test_unthrown_die_shows_placeholder(self):
        lines = die_face_lines(UNTHROWN)
        assert "?" in lines[2]
        assert "●" not in "".join(lines)


# ── 2. Dice rows ─────────────────────────────────────────────────────────────

class TestDiceRow:

    def test_row_without_keys(self):
        assert len(render_dice_row((1, 2, 3, 4, 5)).split("\n")) == 5

    def test_key_labels_mark_held(self):
        text = render_dice_row((1, 2, 3, 4, 5), held={1}, show_keys=True)
        labels = text.split("\n")[-1]
        assert "(1)" in labels
        assert "(2) HELD" in labels
        assert "(3) HELD" not in labels

    def test_held_dice_drawn_with_double_border(self):
        top = render_dice_row((6, 6, 6, 6, 6), held={0, 4}).split("\n")[0]
        assert top.count("╔") == 2
        assert top.count("┌") == 3


# ── 3. Turn log text ─────────────────────────────────────────────────────────

class TestTurnLogText:

    def test_empty_log(self):
        assert "No turns banked yet" in format_turn_log(GameLog())

    def test_turn_lines(self):
        log = GameLog()
        log.record_roll(Side.HUMAN, [1, 2, 3, 4, 5])
        log.record_roll(Side.COMPUTER, [6, 5, 4, 3, 1])
        log.record_roll(Side.COMPUTER, [6, 5, 4, 6, 6])
        log.bank(1, Side.HUMAN, 15)
        log.bank(1, Side.COMPUTER, 27)
        text = format_turn_log(log)
        assert "T1 H: (1,2,3,4,5) = 15, total 15" in text
        assert "T1 C: (6,5,4,3,1) → (6,5,4,6,6) = 27, total 27" in text
        assert "tie breaker" not in text

    def test_tie_breaker_turns_marked(self):
        log = GameLog()
        log.record_roll(Side.HUMAN, [4, 4, 4, 4, 4])
        log.bank(6, Side.HUMAN, 130, tie_breaker=True)
        text = format_turn_log(log)
        assert "T6* H: (4,4,4,4,4) = 20, total 130" in text
        assert "* tie breaker turn" in text

    def test_long_lines_truncated(self):
        log = GameLog()
        for _ in range(6):
            log.record_roll(Side.HUMAN, [6, 6, 6, 6, 6])
        log.bank(1, Side.HUMAN, 30)
        line = next(l for l in format_turn_log(log).split("\n") if "T1 H" in l)
        assert line.strip().endswith("...")


# ── 4. Logging setup ─────────────────────────────────────────────────────────

def test_configure_logging_without_file_is_noop():
    root = logging.getLogger()
    handlers = list(root.handlers)
    configure_logging(None, "DEBUG")
    assert root.handlers == handlers
