"""
Dice Duel AI — the computer's reroll policy.

Contains:
- reroll_threshold(): the minimum face the computer keeps
- decide(): one reroll decision over the computer's dice
- ComputerPolicy / AdaptiveThresholdPolicy: strategy interface used by the engine
"""
from abc import ABC, abstractmethod
from typing import Tuple

from game_engine import DiceSource

# A trailing computer that still needs more than this many points hunts for sixes.
CHASE_MARGIN = 20


def reroll_threshold(computer_score: int, human_score: int, target_score: int) -> int:
    """
    Minimum die face the computer keeps without redrawing.

    Leading or level: keep 4 and up.
    Trailing: keep 5 and up, or only sixes when more than 20 points short.
    """
    points_needed = target_score - computer_score
    trailing = computer_score < human_score
    if trailing:
        return 6 if points_needed > CHASE_MARGIN else 5
    return 4


def decide(current_dice: Tuple[int, ...], computer_score: int, human_score: int,
           target_score: int, source: DiceSource) -> Tuple[int, ...]:
    """
    Decide one reroll for the computer.

    The threshold is recomputed on every call from the scores passed in.

    Args:
        current_dice: The computer's five faces
        computer_score: Computer's banked score
        human_score: Human's banked score
        target_score: Score needed to win the round
        source: Where redrawn faces come from

    Returns:
        New tuple of five faces: dice below the threshold redrawn, the rest kept

    Raises:
        ValueError: a face outside 1-6
    """
    for value in current_dice:
        if not 1 <= value <= 6:
            raise ValueError(f"Invalid die value {value}. Must be between 1 and 6.")
    threshold = reroll_threshold(computer_score, human_score, target_score)
    return tuple(source.next_die() if value < threshold else value
                 for value in current_dice)


# ── Strategy Interface ──────────────────────────────────────────────────────

class ComputerPolicy(ABC):
    """Maps the computer's dice and the scores to its next dice."""

    @abstractmethod
    def decide(self, current_dice: Tuple[int, ...], computer_score: int,
               human_score: int, target_score: int, source: DiceSource) -> Tuple[int, ...]:
        ...


class AdaptiveThresholdPolicy(ComputerPolicy):
    """Keeps dice at or above a threshold that rises when the computer trails."""

    def decide(self, current_dice, computer_score, human_score, target_score, source):
        return decide(current_dice, computer_score, human_score, target_score, source)

