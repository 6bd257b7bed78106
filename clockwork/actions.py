"""Action catalog: timing and cost constants for every action a player may use."""

import json
from dataclasses import dataclass, asdict
from typing import Dict, Iterator, Union

from clockwork.common import ActionID, Duration, UnknownActionError

ActionKey = Union[ActionID, str]


def resolve_action_id(key: str) -> ActionKey:
    """Map a plain string onto the built-in ActionID when one matches."""
    try:
        return ActionID(key)
    except ValueError:
        return key


@dataclass(frozen=True)
class ActionData:
    """
    Fixed, timestamp-independent constants describing an action.

    Attributes:
        action_id: Identifier of the action
        name: Human-readable name of the action
        cast_time: Centiseconds between beginning the action and it being performed
        recast_time: Centiseconds before the next GCD action may begin
        animation_lock: Centiseconds during which no action at all may begin
        mp_cost: MP deducted when the action is performed (negative restores MP)
        off_gcd: Whether the action ignores the recast lock
    """

    action_id: ActionKey
    name: str
    cast_time: int
    recast_time: int
    animation_lock: int
    mp_cost: int
    off_gcd: bool = False

    def __post_init__(self):
        for field_name in ("cast_time", "recast_time", "animation_lock"):
            if getattr(self, field_name) < 0:
                raise ValueError(
                    f"{field_name} for {self.action_id} must be non-negative, "
                    f"got {getattr(self, field_name)}"
                )

    @property
    def cast_duration(self) -> Duration:
        return Duration(self.cast_time)

    @property
    def recast_duration(self) -> Duration:
        return Duration(self.recast_time)

    @property
    def animation_duration(self) -> Duration:
        return Duration(self.animation_lock)


class ActionCatalog:
    """
    Registry mapping action identifiers to their ActionData.

    The engine never hardcodes action constants; it always asks the catalog,
    so new actions can be added by registering them here or by loading a
    JSON definition file.
    """

    def __init__(self):
        self.actions: Dict[ActionKey, ActionData] = {}

    def register_action(self, action: ActionData):
        """Register an action, replacing any previous entry with the same ID"""
        self.actions[action.action_id] = action

    def get_action(self, action_id: ActionKey) -> ActionData:
        """
        Get action data by its ID.

        Raises:
            UnknownActionError: If the action is not registered
        """
        try:
            return self.actions[action_id]
        except KeyError:
            raise UnknownActionError(action_id) from None

    __getitem__ = get_action

    def __contains__(self, action_id) -> bool:
        return action_id in self.actions

    def __iter__(self) -> Iterator[ActionKey]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    def to_dict(self) -> Dict:
        """
        Convert the catalog to dictionary representation for serialization.

        Returns:
            Dict: {"actions": {id: {field: value}}}
        """
        result = {}
        for action_id, action in self.actions.items():
            data = asdict(action)
            del data["action_id"]
            result[str(action_id)] = data
        return {"actions": result}

    def save_to_file(self, file_path: str):
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, data: Dict) -> "ActionCatalog":
        """
        Create a catalog from a dictionary representation.

        Missing numeric fields default to 0, ``off_gcd`` to False and ``name``
        to the identifier itself.

        Args:
            data: Dictionary containing an "actions" mapping

        Returns:
            ActionCatalog: New catalog instance
        """
        if (
            not isinstance(data, dict)
            or "actions" not in data
            or not isinstance(data["actions"], dict)
        ):
            raise ValueError("No actions mapping found in catalog data")

        catalog = cls()
        for key, details in data["actions"].items():
            if not isinstance(details, dict):
                raise ValueError(f"Action {key!r} must be a JSON object")
            try:
                action = ActionData(
                    action_id=resolve_action_id(key),
                    name=str(details.get("name", key)),
                    cast_time=int(details.get("cast_time", 0)),
                    recast_time=int(details.get("recast_time", 0)),
                    animation_lock=int(details.get("animation_lock", 0)),
                    mp_cost=int(details.get("mp_cost", 0)),
                    off_gcd=bool(details.get("off_gcd", False)),
                )
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid action {key!r}: {e}") from e
            catalog.register_action(action)
        return catalog

    @classmethod
    def load_from_json(cls, file_path: str) -> "ActionCatalog":
        """Load a catalog from a JSON file."""
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls.from_dict(data)


def register_default_actions(catalog: ActionCatalog):
    """Register the built-in actions with the given catalog"""

    # GCDs
    catalog.register_action(
        ActionData(
            action_id=ActionID.HIT,
            name="Hit",
            cast_time=150,
            recast_time=250,
            animation_lock=10,
            mp_cost=1000,
        )
    )
    catalog.register_action(
        ActionData(
            action_id=ActionID.RECHARGE,
            name="Recharge",
            cast_time=250,
            recast_time=250,
            animation_lock=10,
            mp_cost=-2000,
        )
    )


def default_catalog() -> ActionCatalog:
    catalog = ActionCatalog()
    register_default_actions(catalog)
    return catalog


DEFAULT_CATALOG = default_catalog()
