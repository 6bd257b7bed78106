"""Rotations: pluggable policies deciding which action the player uses next."""

import json
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence, TYPE_CHECKING

from clockwork.actions import ActionKey, resolve_action_id
from clockwork.common import ActionID

if TYPE_CHECKING:
    from clockwork.core import PlayerView


class Rotation(ABC):
    """
    A Rotation dictates the sequence of actions that the player takes.

    The simulator consults decide() exactly once per tick with a read-only
    view of the player. Returning an action that is currently locked is
    allowed (the simulator drops it), but every built-in rotation checks
    locks itself so it never wastes a decision.
    """

    name: str = "rotation"

    @abstractmethod
    def decide(self, player: "PlayerView") -> Optional[ActionKey]:
        """Determines what the player should do next, if anything."""


class Empty(Rotation):
    """Never does anything."""

    name = "empty"

    def decide(self, player: "PlayerView") -> Optional[ActionKey]:
        return None


class Repeat(Rotation):
    """
    Performs the same sequence of actions over and over.

    The cursor only moves once the current action has actually been chosen;
    while that action is locked the rotation waits instead of skipping ahead.

    Attributes:
        actions (List[ActionKey]): The repeated sequence
        current_index (int): Position of the next action in the sequence
    """

    def __init__(self, actions: Sequence[ActionKey], name: str = "repeat"):
        if not actions:
            raise ValueError("Repeat rotation needs at least one action")
        self.name = name
        self.actions: List[ActionKey] = list(actions)
        self.current_index = 0

    def decide(self, player: "PlayerView") -> Optional[ActionKey]:
        action = self.actions[self.current_index]
        if player.locked(action):
            return None
        self.current_index = (self.current_index + 1) % len(self.actions)
        return action

    def reset(self):
        """Reset rotation to the beginning of the sequence."""
        self.current_index = 0

    def to_dict(self) -> Dict:
        return {"name": self.name, "actions": [str(a) for a in self.actions]}

    def save_to_file(self, file_path: str):
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, data: Dict) -> "Repeat":
        """
        Create a rotation from a dictionary representation.

        Args:
            data: {"name": str, "actions": [action id, ...]}

        Returns:
            Repeat: New rotation instance
        """
        actions = data.get("actions")
        if not isinstance(actions, list):
            raise ValueError("No actions list found in rotation data")
        return cls(
            actions=[resolve_action_id(str(a)) for a in actions],
            name=data.get("name", "repeat"),
        )

    @classmethod
    def load_from_json(cls, file_path: str) -> "Repeat":
        """Load a rotation from a JSON file."""
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls.from_dict(data)


class EagerHit(Rotation):
    """
    Uses the primary action whenever there's enough MP for it, and the
    recharge action otherwise.
    """

    name = "eager-hit"

    def __init__(
        self,
        primary: ActionKey = ActionID.HIT,
        recharge: ActionKey = ActionID.RECHARGE,
    ):
        self.primary = primary
        self.recharge = recharge

    def decide(self, player: "PlayerView") -> Optional[ActionKey]:
        if player.mp >= player.action_data(self.primary).mp_cost:
            action = self.primary
        else:
            action = self.recharge
        if player.locked(action):
            return None
        return action


ROTATIONS: Dict[str, Callable[[], Rotation]] = {
    "empty": Empty,
    "hit-recharge": lambda: Repeat([ActionID.HIT, ActionID.RECHARGE], name="hit-recharge"),
    "eager-hit": EagerHit,
}


def build_rotation(name: str) -> Rotation:
    """
    Build one of the named rotations (case-insensitive).

    Raises:
        ValueError: If no rotation is registered under that name
    """
    factory = ROTATIONS.get(name.lower())
    if factory is None:
        raise ValueError(
            f"Unknown rotation: {name} (choose from {', '.join(ROTATIONS)})"
        )
    return factory()
