"""
Throughput analysis for simulated rotations.

Turns the event log of a finished run into summary statistics, reconstructs
the MP curve, compares several rotations (optionally in parallel processes)
and plots the results.
"""

import multiprocessing as mp
from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
from loguru import logger

from clockwork.actions import ActionCatalog, ActionKey, DEFAULT_CATALOG
from clockwork.common import DEFAULT_DURATION, STARTING_MP, format_cs
from clockwork.core import Event, EventKind, Simulator
from clockwork.rotation import build_rotation

CENTISECONDS_PER_MINUTE = 60 * 100


@dataclass
class RunSummary:
    """
    Statistics of a single simulation run.

    Attributes:
        rotation: Name of the rotation that was simulated
        duration: Number of ticks simulated
        begun: Number of times each action was begun
        performed: Number of times each action was performed
        performed_per_minute: Performed actions per simulated minute
        final_mp: MP at the end of the run
        min_mp: Lowest MP seen during the run
        mean_begin_interval: Mean ticks between consecutive begins (nan if fewer than two)
        idle_fraction: Share of ticks with nothing begun and nothing being cast
    """

    rotation: str
    duration: int
    begun: Dict[ActionKey, int] = field(default_factory=dict)
    performed: Dict[ActionKey, int] = field(default_factory=dict)
    performed_per_minute: float = 0.0
    final_mp: int = STARTING_MP
    min_mp: int = STARTING_MP
    mean_begin_interval: float = float("nan")
    idle_fraction: float = float("nan")

    @property
    def total_performed(self) -> int:
        return sum(self.performed.values())


def mp_timeline(
    events: Sequence[Event],
    catalog: ActionCatalog = DEFAULT_CATALOG,
    starting_mp: int = STARTING_MP,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reconstruct the MP curve of a run from its event log.

    Args:
        events: Ordered event log
        catalog: Catalog the run used, for MP costs
        starting_mp: MP at the start of the run

    Returns:
        tuple: Timestamps (starting with 0) and the MP right after each of them
    """
    performed = [e for e in events if e.kind == EventKind.PERFORM]
    timestamps = np.array([0] + [int(e.timestamp) for e in performed], dtype=np.int64)
    costs = np.array(
        [catalog.get_action(e.action).mp_cost for e in performed], dtype=np.int64
    )
    mp_values = starting_mp - np.concatenate(([0], np.cumsum(costs)))
    return timestamps, mp_values


def busy_ticks(
    events: Sequence[Event], duration: int, catalog: ActionCatalog = DEFAULT_CATALOG
) -> np.ndarray:
    """
    Boolean array marking the ticks on which an action was begun or being cast.
    """
    busy = np.zeros(duration, dtype=bool)
    for event in events:
        if event.kind != EventKind.BEGIN:
            continue
        start = int(event.timestamp)
        finish = start + catalog.get_action(event.action).cast_time
        busy[start:max(finish, start + 1)] = True
    return busy


def summarize(simulator: Simulator) -> RunSummary:
    """Compute the statistics of a (finished) simulation."""
    events = simulator.event_log
    duration = int(simulator.now())
    begun = Counter(e.action for e in events if e.kind == EventKind.BEGIN)
    performed = Counter(e.action for e in events if e.kind == EventKind.PERFORM)

    _, mp_values = mp_timeline(events, simulator.catalog, simulator.starting_mp)

    begin_times = np.array(
        [int(e.timestamp) for e in events if e.kind == EventKind.BEGIN], dtype=np.int64
    )
    if len(begin_times) >= 2:
        mean_begin_interval = float(np.mean(np.diff(begin_times)))
    else:
        mean_begin_interval = float("nan")

    if duration > 0:
        minutes = duration / CENTISECONDS_PER_MINUTE
        performed_per_minute = sum(performed.values()) / minutes
        idle_fraction = 1.0 - float(np.mean(busy_ticks(events, duration, simulator.catalog)))
    else:
        performed_per_minute = 0.0
        idle_fraction = float("nan")

    return RunSummary(
        rotation=simulator.rotation.name,
        duration=duration,
        begun=dict(begun),
        performed=dict(performed),
        performed_per_minute=performed_per_minute,
        final_mp=simulator.player.mp,
        min_mp=int(np.min(mp_values)),
        mean_begin_interval=mean_begin_interval,
        idle_fraction=idle_fraction,
    )


def run_rotation(
    name: str,
    duration: int = DEFAULT_DURATION,
    starting_mp: int = STARTING_MP,
    catalog: ActionCatalog = DEFAULT_CATALOG,
    quiet: bool = True,
) -> RunSummary:
    """
    Simulate a named rotation up to the given horizon and summarize it.

    Must stay at module level so it can be pickled for parallel runs.
    """
    simulator = Simulator(
        rotation=build_rotation(name), catalog=catalog, starting_mp=starting_mp
    )
    if quiet:
        logger.disable("clockwork")
    try:
        simulator.run_until(duration)
    finally:
        if quiet:
            logger.enable("clockwork")
    return summarize(simulator)


def compare_rotations(
    names: Sequence[str],
    duration: int = DEFAULT_DURATION,
    starting_mp: int = STARTING_MP,
    catalog: ActionCatalog = DEFAULT_CATALOG,
    parallel: bool = False,
) -> List[RunSummary]:
    """
    Simulate several rotations under identical settings.

    Args:
        names: Registered rotation names
        duration: Horizon in centiseconds for every run
        starting_mp: Starting MP for every run
        catalog: Action catalog shared by every run
        parallel: Run each rotation in its own process

    Returns:
        List[RunSummary]: One summary per rotation, in the order given
    """
    if not parallel or len(names) <= 1:
        return [
            run_rotation(name, duration, starting_mp, catalog) for name in names
        ]

    logger.info(
        "Comparing {} rotations using {} CPU cores", len(names), mp.cpu_count()
    )
    with ProcessPoolExecutor() as executor:
        futures = [
            executor.submit(run_rotation, name, duration, starting_mp, catalog)
            for name in names
        ]
        return [future.result() for future in futures]


def print_summary(summary: RunSummary):
    print(f"\nRotation: {summary.rotation} ({format_cs(summary.duration)})")
    for action in sorted(set(summary.begun) | set(summary.performed), key=str):
        print(
            f"  {str(action):<12} begun {summary.begun.get(action, 0):>6,}"
            f"  performed {summary.performed.get(action, 0):>6,}"
        )
    print(f"  Performed per minute: {summary.performed_per_minute:.2f}")
    print(f"  MP: final {summary.final_mp:,}, lowest {summary.min_mp:,}")
    if np.isnan(summary.mean_begin_interval):
        print("  Mean begin interval: n/a")
    else:
        print(f"  Mean begin interval: {summary.mean_begin_interval:.1f} cs")
    if not np.isnan(summary.idle_fraction):
        print(f"  Idle: {summary.idle_fraction * 100:.1f}%")


def plot_mp_over_time(
    timestamps,
    mp_values,
    title="MP over Time",
    path="mp_over_time.png",
    show=True,
):
    """
    Create a step plot showing the player's MP over time.

    Args:
        timestamps: Time points in centiseconds
        mp_values: MP right after each time point
        title: Title for the plot
        path: Where to save the figure (None to skip saving)
        show: Whether to display the plot
    """
    seconds = np.asarray(timestamps) / 100

    fig = plt.figure(figsize=(12, 6))

    plt.step(seconds, mp_values, "b-", where="post", label="MP")

    plt.grid(True, linestyle="--", alpha=0.7)

    plt.xlabel("Time (seconds)")
    plt.ylabel("MP")
    plt.title(title)
    plt.legend()

    plt.ylim(bottom=0)

    if path is not None:
        plt.savefig(path, dpi=300, bbox_inches="tight")

    if show:
        plt.show()
    else:
        plt.close(fig)
