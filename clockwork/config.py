"""Run configuration for the simulator."""

import json
from dataclasses import dataclass, fields
from typing import Dict, Optional

from clockwork.actions import ActionCatalog, DEFAULT_CATALOG
from clockwork.common import DEFAULT_DURATION, STARTING_MP
from clockwork.core import Simulator
from clockwork.rotation import Repeat, Rotation, build_rotation


@dataclass
class SimulationConfig:
    """Settings for a single simulation run.

    Attributes:
        rotation: Name of a registered rotation (see clockwork.rotation.ROTATIONS)
        duration: Horizon in centiseconds at which the run stops
        starting_mp: MP the player starts with
        catalog_path: Optional JSON action catalog replacing the built-in one
        rotation_path: Optional JSON Repeat sequence; takes precedence over ``rotation``
        verbose: Whether MP changes are logged as well as events
    """

    rotation: str = "hit-recharge"
    duration: int = DEFAULT_DURATION
    starting_mp: int = STARTING_MP
    catalog_path: Optional[str] = None
    rotation_path: Optional[str] = None
    verbose: bool = False

    def __post_init__(self):
        if self.duration < 0:
            raise ValueError(f"duration must be non-negative, got {self.duration}")
        if self.starting_mp < 0:
            raise ValueError(f"starting_mp must be non-negative, got {self.starting_mp}")

    @classmethod
    def from_dict(cls, data: Dict) -> "SimulationConfig":
        """Create a config from a dictionary, ignoring unknown keys."""
        if not isinstance(data, dict):
            raise ValueError("Simulation settings must be a JSON object")

        known = {f.name for f in fields(cls)}
        kwargs = {key: value for key, value in data.items() if key in known}
        for key in ("duration", "starting_mp"):
            if key in kwargs:
                try:
                    kwargs[key] = int(kwargs[key])
                except (TypeError, ValueError) as e:
                    raise ValueError(
                        f"{key} must be an integer, got {kwargs[key]!r}"
                    ) from e
        if not isinstance(kwargs.get("rotation", ""), str):
            raise ValueError(f"rotation must be a string, got {kwargs['rotation']!r}")
        for key in ("catalog_path", "rotation_path"):
            if not isinstance(kwargs.get(key), (str, type(None))):
                raise ValueError(f"{key} must be a string, got {kwargs[key]!r}")
        if "verbose" in kwargs:
            kwargs["verbose"] = bool(kwargs["verbose"])
        return cls(**kwargs)

    @classmethod
    def from_json(cls, json_path):
        """Load a SimulationConfig from a JSON file.

        The settings may live at the top level or under a "simulation" key.
        """
        with open(json_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file {json_path} must contain a JSON object")
        return cls.from_dict(data.get("simulation", data))

    def load_catalog(self) -> ActionCatalog:
        if self.catalog_path is None:
            return DEFAULT_CATALOG
        return ActionCatalog.load_from_json(self.catalog_path)

    def load_rotation(self) -> Rotation:
        if self.rotation_path is not None:
            return Repeat.load_from_json(self.rotation_path)
        return build_rotation(self.rotation)

    def build_simulator(self) -> Simulator:
        """Wire up a Simulator for this configuration."""
        return Simulator(
            rotation=self.load_rotation(),
            catalog=self.load_catalog(),
            starting_mp=self.starting_mp,
        )
