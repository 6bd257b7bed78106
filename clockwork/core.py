"""
Rotation Simulation Core
========================

This module implements the discrete-time simulation engine used to evaluate
the throughput of rotations (action-selection strategies).

Key Components:
--------------
- Clock: Shared, monotonic time source advanced only by the Simulator
- Player: State machine enforcing cast, recast and animation locks plus an MP budget
- PlayerView: Read-only facade of a Player handed to rotations
- Target: Passive target the player acts against
- Event: Immutable record of an action being begun or performed
- Simulator: Owns all of the above and drives one tick per step()

Every tick the Simulator first performs whatever finished casting, then asks
the rotation what to begin next, then advances the clock by exactly one
centisecond. Resolving before deciding lets an action finish and the next one
begin on the same tick.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, List

from loguru import logger

from clockwork.actions import ActionCatalog, ActionData, ActionKey, DEFAULT_CATALOG
from clockwork.common import (
    Timestamp,
    STARTING_MP,
    ActionLockedError,
    InsufficientMPError,
)
from clockwork.rotation import Rotation


class Clock:
    """
    Current simulation time.

    The clock is shared by reference between the Simulator and the Player,
    but only the Simulator may call advance().
    """

    def __init__(self, time: int = 0):
        self._now = Timestamp(time)

    def now(self) -> Timestamp:
        return self._now

    def advance(self):
        """Move time forward by exactly one centisecond."""
        self._now = self._now + 1

    def __repr__(self):
        return f"Clock({int(self._now)})"


@dataclass(frozen=True)
class Cast:
    """An action the player has begun but not yet performed."""

    action: ActionKey
    # When we'll have finished casting.
    finish: Timestamp


class Player:
    """
    Player-controlled character with an MP pool and action locks.

    The Player does *not* store the rotation to use; that's a separate object
    that receives a read-only PlayerView. It expects to be driven in a loop of
    perform() -> begin(action) (if there's something to begin) -> clock
    advance -> repeat.

    Attributes:
        clock (Clock): Shared clock used for every lock comparison
        catalog (ActionCatalog): Source of action timings and costs
        mp (int): Current MP balance, never negative
        recast_lock (Optional[Timestamp]): When the next GCD action may begin.
            OGCD actions may still be used while this is pending.
        animation_lock (Optional[Timestamp]): Until this time the player can't
            begin *anything*
        casting (Optional[Cast]): The action currently being cast
    """

    def __init__(
        self,
        clock: Clock,
        catalog: ActionCatalog = DEFAULT_CATALOG,
        mp: int = STARTING_MP,
    ):
        if mp < 0:
            raise ValueError(f"Starting MP must be non-negative, got {mp}")

        self.clock = clock
        self.catalog = catalog
        self._mp = mp
        self.recast_lock: Optional[Timestamp] = None
        self.animation_lock: Optional[Timestamp] = None
        self.casting: Optional[Cast] = None
        self._view = PlayerView(self)

    @property
    def mp(self) -> int:
        return self._mp

    def now(self) -> Timestamp:
        return self.clock.now()

    def view(self) -> "PlayerView":
        return self._view

    def action_data(self, action: ActionKey) -> ActionData:
        return self.catalog.get_action(action)

    def locked(self, action: ActionKey) -> bool:
        """
        Whether recast or animation locks prevent using the given action.

        A lock expiring at time T permits the action at exactly T.
        """
        data = self.action_data(action)
        now = self.now()
        animation_clear = self.animation_lock is None or self.animation_lock <= now
        recast_clear = data.off_gcd or self.recast_lock is None or self.recast_lock <= now
        return not (animation_clear and recast_clear)

    def begin(self, action: ActionKey):
        """
        Start using an action: apply its locks and start casting it.

        MP is not spent until the cast is performed, but the player must be
        able to afford it now.

        Raises:
            ActionLockedError: If a lock currently prevents the action
            InsufficientMPError: If the action costs more MP than is available
        """
        data = self.action_data(action)
        if self.locked(action):
            raise ActionLockedError(
                f"tried to use {action} when player was in bad state {self!r}"
            )
        self._check_mp(data)

        now = self.now()
        self.recast_lock = now + data.recast_duration
        self.animation_lock = now + data.animation_duration
        self.casting = Cast(action=action, finish=now + data.cast_duration)

    def perform(self) -> Optional[ActionKey]:
        """
        Performs the action we're in the middle of casting if its cast timer
        has run out.

        Returns:
            The performed action, or None if nothing finished this tick
        """
        if self.casting is None or self.casting.finish > self.now():
            return None

        action = self.casting.action
        self.casting = None
        self._spend_mp(self.action_data(action))
        return action

    def _check_mp(self, data: ActionData):
        if data.mp_cost > self._mp:
            raise InsufficientMPError(
                f"MP cost {data.mp_cost} for {data.action_id} is greater than MP {self._mp}"
            )

    def _spend_mp(self, data: ActionData):
        self._check_mp(data)
        old_mp = self._mp
        self._mp -= data.mp_cost
        now = self.now()
        logger.bind(timestamp=int(now)).debug(
            "MP {} -> {} at {}", old_mp, self._mp, int(now)
        )

    def __repr__(self):
        return (
            f"Player(mp={self._mp}, recast_lock={self.recast_lock!r}, "
            f"animation_lock={self.animation_lock!r}, casting={self.casting!r}, "
            f"now={self.now()!r})"
        )


class PlayerView:
    """
    Read-only view of a Player, handed to rotations.

    Exposes everything a rotation needs to decide on its next action without
    giving it a way to begin or perform anything.
    """

    __slots__ = ("_player",)

    def __init__(self, player: Player):
        self._player = player

    @property
    def mp(self) -> int:
        return self._player.mp

    @property
    def casting(self) -> Optional[Cast]:
        return self._player.casting

    def now(self) -> Timestamp:
        return self._player.now()

    def locked(self, action: ActionKey) -> bool:
        return self._player.locked(action)

    def action_data(self, action: ActionKey) -> ActionData:
        return self._player.action_data(action)

    def __repr__(self):
        return f"PlayerView({self._player!r})"


class Target:
    """
    Passive target the player acts against.

    Carries no state or behavior yet; the Simulator only holds on to it.
    """

    def __repr__(self):
        return "Target()"


class EventKind(str, Enum):
    BEGIN = "begin"
    PERFORM = "perform"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class Event:
    """
    Something that happened during the simulation, roughly analogous to a
    line of the battle log. Rotation-internal reasoning never shows up here.
    """

    timestamp: Timestamp
    kind: EventKind
    action: ActionKey


class Simulator:
    """
    Performs an entire simulated rotation on a target.

    This is the main class of the engine; everything on top of it is I/O,
    like setting up loggers, reading configuration, and analysing results.

    Attributes:
        player (Player): The simulated player
        target (Target): The passive target
        rotation (Rotation): Decision policy consulted once per tick
        catalog (ActionCatalog): Action constants used by the player
    """

    def __init__(
        self,
        rotation: Rotation,
        catalog: ActionCatalog = DEFAULT_CATALOG,
        starting_mp: int = STARTING_MP,
        target: Optional[Target] = None,
    ):
        self._clock = Clock()
        self.catalog = catalog
        self.starting_mp = starting_mp
        self.player = Player(self._clock, catalog=catalog, mp=starting_mp)
        self.target = target if target is not None else Target()
        self.rotation = rotation
        self._event_log: List[Event] = []
        self._event_log_snapshot: Optional[Tuple[Event, ...]] = None

    def now(self) -> Timestamp:
        return self._clock.now()

    @property
    def event_log(self) -> Tuple[Event, ...]:
        """Events so far, oldest first. The tuple is rebuilt only after new events."""
        if self._event_log_snapshot is None:
            self._event_log_snapshot = tuple(self._event_log)
        return self._event_log_snapshot

    def step(self):
        """
        Simulates a single tick. In order, this performs any action that
        finished casting, begins the rotation's next action, then advances
        the clock.
        """
        action = self.player.perform()
        if action is not None:
            self._log_event(EventKind.PERFORM, action)

        action = self.rotation.decide(self.player.view())
        if action is not None:
            if self.player.locked(action):
                logger.bind(timestamp=int(self.now())).warning(
                    "Rotation {} chose locked action {} at {}; ignoring it",
                    self.rotation.name,
                    action,
                    int(self.now()),
                )
            else:
                self.player.begin(action)
                self._log_event(EventKind.BEGIN, action)

        self._clock.advance()

    def run_until(self, horizon: int):
        """Step until the clock reaches the given horizon."""
        while self.now() < horizon:
            self.step()

    def _log_event(self, kind: EventKind, action: ActionKey):
        now = self.now()
        self._event_log.append(Event(timestamp=now, kind=kind, action=action))
        self._event_log_snapshot = None
        logger.bind(timestamp=int(now)).info("{} {} at {}", kind, action, int(now))
