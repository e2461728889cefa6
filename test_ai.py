"""
Computer Policy Test Suite

Tests:
    1. Threshold — leading, level, trailing close and trailing far
    2. Decisions — which dice are redrawn, determinism, recomputation per call
"""
import pytest

from game_engine import RandomDiceSource, ScriptedDiceSource
from ai import (
    CHASE_MARGIN,
    AdaptiveThresholdPolicy, ComputerPolicy,
    decide, reroll_threshold,
)


# ═══════════════════════════════════════════════════════════════════════════════
# 1. THRESHOLD
# ═══════════════════════════════════════════════════════════════════════════════

class TestThreshold:

    @pytest.mark.parametrize("computer,human,target,expected", [
        (80, 60, 101, 4),    # leading
        (50, 50, 101, 4),    # level counts as not trailing
        (0, 0, 101, 4),      # opening turn
        (40, 60, 101, 6),    # trailing, 61 short
        (85, 90, 101, 5),    # trailing, 16 short
        (81, 90, 101, 5),    # trailing, exactly 20 short
        (80, 90, 101, 6),    # trailing, 21 short
        (120, 130, 101, 5),  # trailing past the target (tie breaker scores)
    ])
    def test_threshold(self, computer, human, target, expected):
        assert reroll_threshold(computer, human, target) == expected

    def test_margin_boundary(self):
        target = 101
        computer = target - CHASE_MARGIN
        assert reroll_threshold(computer, computer + 1, target) == 5
        assert reroll_threshold(computer - 1, computer + 1, target) == 6


# ═══════════════════════════════════════════════════════════════════════════════
# 2. DECISIONS
# ═══════════════════════════════════════════════════════════════════════════════

class TestDecide:

    def test_far_behind_keeps_only_sixes(self):
        source = ScriptedDiceSource([2, 2, 2, 2])
        dice = decide((6, 5, 4, 3, 1), 40, 60, 101, source)
        assert dice == (6, 2, 2, 2, 2)
        assert source.remaining == 0

    def test_leading_keeps_four_and_up(self):
        source = ScriptedDiceSource([6, 6])
        dice = decide((6, 5, 4, 3, 1), 80, 60, 101, source)
        assert dice == (6, 5, 4, 6, 6)
        assert source.remaining == 0

    def test_close_behind_keeps_five_and_up(self):
        source = ScriptedDiceSource([1, 1, 1])
        dice = decide((6, 5, 4, 3, 1), 85, 90, 101, source)
        assert dice == (6, 5, 1, 1, 1)

    def test_nothing_below_threshold_draws_nothing(self):
        source = ScriptedDiceSource([])
        assert decide((6, 6, 6, 6, 6), 40, 60, 101, source) == (6, 6, 6, 6, 6)

    def test_redrawn_die_may_land_below_threshold(self):
        """A redraw is final for this call even if it is still low."""
        source = ScriptedDiceSource([1])
        assert decide((6, 6, 6, 6, 3), 80, 60, 101, source) == (6, 6, 6, 6, 1)

    @pytest.mark.parametrize("dice", [(0, 6, 6, 6, 6), (6, 6, 7, 6, 6)])
    def test_rejects_impossible_faces(self, dice):
        with pytest.raises(ValueError):
            decide(dice, 0, 0, 101, ScriptedDiceSource([]))

    def test_same_source_same_result(self):
        a = decide((1, 2, 3, 4, 5), 10, 50, 101, RandomDiceSource(seed=3))
        b = decide((1, 2, 3, 4, 5), 10, 50, 101, RandomDiceSource(seed=3))
        assert a == b

    def test_always_five_legal_faces(self):
        source = RandomDiceSource(seed=11)
        dice = (1, 1, 1, 1, 1)
        for _ in range(50):
            dice = decide(dice, 0, 100, 101, source)
            assert len(dice) == 5
            assert all(1 <= d <= 6 for d in dice)


class TestPolicy:

    def test_adaptive_policy_is_a_computer_policy(self):
        assert isinstance(AdaptiveThresholdPolicy(), ComputerPolicy)

    def test_adaptive_policy_matches_decide(self):
        policy = AdaptiveThresholdPolicy()
        dice = policy.decide((6, 5, 4, 3, 1), 40, 60, 101, ScriptedDiceSource([3, 3, 3, 3]))
        assert dice == (6, 3, 3, 3, 3)

    def test_policy_interface_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            ComputerPolicy()
