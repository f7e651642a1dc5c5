import math
from dataclasses import dataclass
from typing import Any, Optional

from momentum.models import Session


@dataclass(frozen=True)
class ClampPolicy:
    """Bounds applied to incoming values. None disables a cap."""
    momentum_delta_cap: Optional[int] = 100
    goal_max: Optional[int] = 1000

    @classmethod
    def from_config(cls, config) -> 'ClampPolicy':
        cap = int(config.get('MOMENTUM_DELTA_CAP', 100))
        goal_max = int(config.get('GOAL_MAX', 1000))
        return cls(momentum_delta_cap=cap if cap > 0 else None,
                   goal_max=goal_max if goal_max > 0 else None)

    def clamp_momentum_input(self, value: int) -> int:
        if self.momentum_delta_cap is not None:
            value = min(value, self.momentum_delta_cap)
        return value

    def clamp_goal(self, value: int) -> int:
        value = max(0, value)
        if self.goal_max is not None:
            value = min(value, self.goal_max)
        return value


def numeric_or_zero(value: Any) -> int:
    """JSON numbers become ints; anything else (bools, strings, NaN) is 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return int(value)


def next_momentum(session: Session, is_player: bool, is_set: bool, momentum: int):
    """Return (player_momentum, opponent_momentum) after the update.

    Both sides are floored at zero, not only the one being changed.
    """
    player, opponent = session.player_momentum, session.opponent_momentum
    if is_player:
        player = momentum if is_set else player + momentum
    else:
        opponent = momentum if is_set else opponent + momentum
    return max(0, player), max(0, opponent)


def apply_momentum(session: Session, player: int, opponent: int) -> None:
    session.player_momentum, session.opponent_momentum = player, opponent


def apply_goal(session: Session, is_player: bool, goal: int) -> None:
    if is_player:
        session.player_goal = goal
    else:
        session.opponent_goal = goal
