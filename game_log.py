"""Turn history for Dice Duel: one record per side per banked turn.

Rolls accumulate while a turn is being played and become a TurnRecord when
the turn is banked. Pure Python, no frontend dependency. Feeds the turn log
overlay.
"""
from __future__ import annotations

from dataclasses import dataclass

from game_engine import Side


@dataclass(frozen=True)
class TurnRecord:
    """One side's completed turn."""
    turn: int                                   # 1-based, tie breaker turns included
    side: Side
    rolls: tuple[tuple[int, ...], ...]          # dice after each throw, in order
    kept: tuple[tuple[int, ...], ...]           # indices held going into each throw
    total: int                                  # side's score after banking
    tie_breaker: bool = False

    @property
    def final_dice(self) -> tuple[int, ...]:
        return self.rolls[-1]

    @property
    def banked(self) -> int:
        """Points this turn added: the sum of the last throw."""
        return sum(self.rolls[-1])

    @property
    def rerolls(self) -> int:
        return len(self.rolls) - 1


class GameLog:
    """Collects the throws of the turn in play and the records of banked turns."""

    def __init__(self) -> None:
        self.records: list[TurnRecord] = []
        self._pending: dict[Side, list[tuple[tuple[int, ...], tuple[int, ...]]]] = {
            Side.HUMAN: [],
            Side.COMPUTER: [],
        }

    def record_roll(self, side: Side, dice_values, kept=()) -> None:
        """Note a throw of the current turn; kept is the set of held indices."""
        self._pending[side].append((tuple(dice_values), tuple(sorted(kept))))

    def pending_rolls(self, side: Side) -> list[tuple[int, ...]]:
        """Dice of every throw so far in the unbanked turn."""
        return [dice for dice, _ in self._pending[side]]

    def discard_rolls_after(self, side: Side, count: int) -> None:
        """Forget unbanked throws beyond the first count (a scoring run that failed)."""
        del self._pending[side][count:]

    def bank(self, turn: int, side: Side, total: int, tie_breaker: bool = False) -> TurnRecord:
        """Close the side's turn and return its record.

        Raises:
            ValueError: nothing was thrown this turn
        """
        pending = self._pending[side]
        if not pending:
            raise ValueError(f"No throws recorded for {side.value} in turn {turn}")
        record = TurnRecord(
            turn=turn,
            side=side,
            rolls=tuple(dice for dice, _ in pending),
            kept=tuple(kept for _, kept in pending),
            total=total,
            tie_breaker=tie_breaker,
        )
        self.records.append(record)
        self._pending[side] = []
        return record

    def turns(self, side: Side | None = None) -> list[TurnRecord]:
        """Banked turns in order, optionally for one side only."""
        if side is None:
            return list(self.records)
        return [r for r in self.records if r.side is side]

    def turn(self, number: int, side: Side) -> TurnRecord | None:
        for record in self.records:
            if record.turn == number and record.side is side:
                return record
        return None

    def clear(self) -> None:
        """Drop all records and any unbanked throws."""
        self.records = []
        for rolls in self._pending.values():
            rolls.clear()
