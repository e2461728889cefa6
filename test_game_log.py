"""
Game Log Test Suite

Tests for the per-turn history.

Sections:
    1. Pending throws — recording, kept indices, discarding
    2. Banking — record fields, derived points, empty turns
    3. Queries — turns(), turn()
    4. Clear
"""
import pytest

from game_engine import Side
from game_log import GameLog, TurnRecord

# ── 1. Pending throws ────────────────────────────────────────────────────────


def test_record_roll_is_pending_until_banked():
    log = GameLog()
    log.record_roll(Side.HUMAN, [1, 2, 3, 4, 5])
    assert log.pending_rolls(Side.HUMAN) == [(1, 2, 3, 4, 5)]
    assert log.pending_rolls(Side.COMPUTER) == []
    assert log.records == []


def test_discard_rolls_after():
    """Throws past the given count are forgotten; earlier ones stay."""
    log = GameLog()
    log.record_roll(Side.COMPUTER, [6, 5, 4, 3, 1])
    log.record_roll(Side.COMPUTER, [6, 5, 4, 6, 6])
    log.record_roll(Side.COMPUTER, [6, 5, 4, 6, 6])
    log.discard_rolls_after(Side.COMPUTER, 1)
    assert log.pending_rolls(Side.COMPUTER) == [(6, 5, 4, 3, 1)]


# ── 2. Banking ───────────────────────────────────────────────────────────────


def test_bank_builds_record():
    log = GameLog()
    log.record_roll(Side.HUMAN, [1, 2, 3, 4, 5])
    log.record_roll(Side.HUMAN, [1, 6, 6, 6, 5], kept={4, 0})
    record = log.bank(turn=1, side=Side.HUMAN, total=24)

    assert record == TurnRecord(
        turn=1,
        side=Side.HUMAN,
        rolls=((1, 2, 3, 4, 5), (1, 6, 6, 6, 5)),
        kept=((), (0, 4)),
        total=24,
    )
    assert record.final_dice == (1, 6, 6, 6, 5)
    assert record.banked == 24
    assert record.rerolls == 1
    assert log.pending_rolls(Side.HUMAN) == []


def test_banked_points_come_from_last_throw():
    log = GameLog()
    log.record_roll(Side.COMPUTER, [1, 1, 1, 1, 1])
    log.record_roll(Side.COMPUTER, [2, 2, 2, 2, 2])
    record = log.bank(turn=3, side=Side.COMPUTER, total=70)
    assert record.banked == 10
    assert record.total == 70


def test_tie_breaker_flag():
    log = GameLog()
    log.record_roll(Side.HUMAN, [3, 3, 3, 3, 3])
    assert log.bank(turn=5, side=Side.HUMAN, total=120, tie_breaker=True).tie_breaker is True


def test_bank_without_throws_raises():
    with pytest.raises(ValueError):
        GameLog().bank(turn=1, side=Side.HUMAN, total=0)


# ── 3. Queries ───────────────────────────────────────────────────────────────


def _two_turns():
    log = GameLog()
    for turn, (human, computer) in enumerate([((2,) * 5, (4,) * 5), ((6,) * 5, (1,) * 5)], start=1):
        log.record_roll(Side.HUMAN, human)
        log.record_roll(Side.COMPUTER, computer)
        log.bank(turn, Side.HUMAN, sum(human) * turn)
        log.bank(turn, Side.COMPUTER, sum(computer) * turn)
    return log


def test_turns_in_order():
    records = _two_turns().turns()
    assert [(r.turn, r.side) for r in records] == [
        (1, Side.HUMAN), (1, Side.COMPUTER), (2, Side.HUMAN), (2, Side.COMPUTER),
    ]


def test_turns_for_one_side():
    assert [r.banked for r in _two_turns().turns(Side.COMPUTER)] == [20, 5]


def test_turn_lookup():
    log = _two_turns()
    assert log.turn(2, Side.HUMAN).final_dice == (6, 6, 6, 6, 6)
    assert log.turn(9, Side.HUMAN) is None


# ── 4. Clear ─────────────────────────────────────────────────────────────────


def test_clear_drops_records_and_pending():
    log = _two_turns()
    log.record_roll(Side.HUMAN, [1, 1, 1, 1, 1])
    log.clear()
    assert log.records == []
    assert log.pending_rolls(Side.HUMAN) == []
