"""Command-line driver for the CFS simulator.

The CLI is the thin I/O wrapper around ``simulate``: it builds a
configuration and a workload from the command line, runs the
scheduler, and prints the results.

    cfs-sim --workload tasks.json --trace
    cfs-sim --tasks 8 --io-ratio 0.25 --seed 7 --metrics-out run.json

The formatting helpers (``format_event``, ``format_summary``,
``format_fairness``) are pure and testable; ``main()`` is the I/O
entrypoint.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from cfs_sim.config import SchedulerConfig, load_config
from cfs_sim.errors import ConfigurationError
from cfs_sim.metrics import MetricsCollector
from cfs_sim.scheduler import Scheduler
from cfs_sim.workload import build_tasks, load_workload, random_workload

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cfs_sim.events import SchedEvent
    from cfs_sim.metrics import FairnessRow
    from cfs_sim.scheduler import RunSummary
    from cfs_sim.workload import TaskSpec

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_IO_ERROR = 3


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="cfs-sim",
        description="Simulate the Linux Completely Fair Scheduler on one CPU.",
    )
    source = parser.add_argument_group("workload")
    source.add_argument("--workload", type=Path, help="JSON workload file.")
    source.add_argument("--tasks", type=int, default=4, help="Random workload size.")
    source.add_argument("--io-ratio", type=float, default=0.5, help="Share of IO tasks.")
    source.add_argument("--seed", type=int, default=42, help="Random workload seed.")
    source.add_argument("--burst-min", type=int, default=5, help="Smallest random burst (ms).")
    source.add_argument("--burst-max", type=int, default=50, help="Largest random burst (ms).")
    source.add_argument(
        "--random-max-priority",
        type=int,
        default=4,
        help="Random priorities are drawn from 0..N.",
    )

    tuning = parser.add_argument_group("configuration")
    tuning.add_argument("--config", type=Path, help="JSON configuration file.")
    tuning.add_argument("--nice-0-load", type=int, help="Weight of a priority-0 task.")
    tuning.add_argument("--timeslice", type=int, help="CPU timeslice (ms).")
    tuning.add_argument("--io-wait", type=int, help="Default I/O wait per cycle (ms).")
    tuning.add_argument("--io-wait-interval", type=int, help="IO tasks wait every Nth dispatch.")
    tuning.add_argument("--min-granularity", type=int, help="Smallest timeslice (ms).")
    tuning.add_argument("--max-priority", type=int, help="Highest accepted priority number.")

    output = parser.add_argument_group("output")
    output.add_argument("--trace", action="store_true", help="Print every event.")
    output.add_argument("--metrics-out", type=Path, help="Write the event trace as JSON.")
    return parser.parse_args(argv)


_OVERRIDES = {
    "nice_0_load": "nice_0_load",
    "timeslice": "cpu_timeslice",
    "io_wait": "io_wait_time",
    "io_wait_interval": "io_wait_interval",
    "min_granularity": "min_granularity",
    "max_priority": "max_priority",
}


def build_config(args: argparse.Namespace) -> SchedulerConfig:
    """Combine the config file (if any) with command-line overrides.

    Raises:
        ConfigurationError: If the result is invalid.

    """
    config = load_config(args.config) if args.config is not None else SchedulerConfig()
    changes = {
        field: getattr(args, option)
        for option, field in _OVERRIDES.items()
        if getattr(args, option) is not None
    }
    return config.replace(**changes) if changes else config


def build_workload(args: argparse.Namespace, config: SchedulerConfig) -> list[TaskSpec]:
    """Load the workload file, or generate a random workload.

    Raises:
        ConfigurationError: If the workload is invalid.

    """
    if args.workload is not None:
        return load_workload(args.workload, config=config)
    return random_workload(
        args.tasks,
        seed=args.seed,
        io_ratio=args.io_ratio,
        max_priority=min(args.random_max_priority, config.max_priority),
        burst_range=(args.burst_min, args.burst_max),
        io_wait_time=config.io_wait_time,
    )


def format_event(event: SchedEvent) -> str:
    """Format one event as a trace line."""
    return str(event)


def format_summary(summary: RunSummary) -> str:
    """Format the termination report as a table."""
    header_fmt = "{:<6} {:<5} {:>4} {:>9} {:>10} {:>12} {:>7} {:>7} {:>10}"
    row_fmt = "{:<6} {:<5} {:>4} {:>9.2f} {:>10} {:>12.2f} {:>7} {:>7} {:>10}"
    lines = [
        f"Scheduler {summary.state} at tick {summary.final_tick}",
        "",
        header_fmt.format(
            "Task", "Type", "Prio", "Weight", "Done@", "vruntime", "CPU", "Wait", "Dispatches"
        ),
    ]
    for t in summary.tasks:
        done = "-" if t.completion_tick is None else t.completion_tick
        lines.append(
            row_fmt.format(
                t.task_id,
                t.kind,
                t.priority,
                t.weight,
                done,
                t.vruntime,
                t.cpu_time,
                t.total_wait_time,
                t.dispatch_count,
            )
        )
    return "\n".join(lines)


def format_fairness(rows: Sequence[FairnessRow]) -> str:
    """Format expected versus actual CPU share before the first completion."""
    lines = ["Share before first completion (expected / actual):"]
    lines.extend(
        f"  task {row.task_id:<4} {row.expected_share:>7.2%} / {row.actual_share:>7.2%}"
        for row in rows
    )
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    """Run one simulation from the command line.

    Returns:
        Process exit status: 0 on success, 2 on a configuration error,
        3 if the metrics file cannot be written.

    """
    args = parse_arguments(argv)
    try:
        config = build_config(args)
        specs = build_workload(args, config)
        scheduler = Scheduler(config=config)
        scheduler.load(build_tasks(specs, config=config))
    except ConfigurationError as e:
        print(f"cfs-sim: {e}", file=sys.stderr)  # noqa: T201
        return EXIT_CONFIG_ERROR

    collector = MetricsCollector()
    for event in collector.consume(scheduler.run()):
        if args.trace:
            print(format_event(event))  # noqa: T201

    summary = scheduler.summary()
    if args.trace:
        print()  # noqa: T201
    print(format_summary(summary))  # noqa: T201
    print()  # noqa: T201
    print(format_fairness(collector.fairness_report(summary)))  # noqa: T201

    if args.metrics_out is not None:
        try:
            collector.dump(args.metrics_out, summary)
        except OSError as e:
            print(f"cfs-sim: cannot write metrics to {args.metrics_out}: {e}", file=sys.stderr)  # noqa: T201
            return EXIT_IO_ERROR
        print(f"\nWrote event trace to {args.metrics_out}")  # noqa: T201
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
