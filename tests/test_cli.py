"""Tests for the command-line driver.

The formatting helpers are pure; ``main()`` is exercised end to end
with ``capsys`` capturing its output.
"""

import json
from pathlib import Path

import pytest

from cfs_sim.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_IO_ERROR,
    EXIT_OK,
    build_config,
    format_event,
    format_summary,
    main,
    parse_arguments,
)
from cfs_sim.config import SchedulerConfig
from cfs_sim.errors import ConfigurationError
from cfs_sim.events import EventKind, SchedEvent
from cfs_sim.scheduler import simulate
from cfs_sim.task import TaskKind
from cfs_sim.workload import TaskSpec

_WORKLOAD = [
    {"id": 0, "type": "cpu", "priority": 0, "burst_ms": 5},
    {"id": 1, "type": "io", "priority": 0, "burst_ms": 5, "io_wait_ms": 10},
]


def _write_workload(tmp_path: Path) -> Path:
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps(_WORKLOAD))
    return path


class TestBuildConfig:
    """Verify merging the config file with flags."""

    def test_defaults(self) -> None:
        """No flags means the default config."""
        assert build_config(parse_arguments([])) == SchedulerConfig()

    def test_flags_override(self) -> None:
        """Flags map onto config fields."""
        args = parse_arguments(["--timeslice", "3", "--io-wait", "7", "--io-wait-interval", "2"])
        config = build_config(args)
        assert config.cpu_timeslice == 3
        assert config.io_wait_time == 7
        assert config.io_wait_interval == 2

    def test_flags_override_file(self, tmp_path: Path) -> None:
        """A flag beats the same key in the config file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"nice_0_load": 2048, "cpu_timeslice": 2}))
        config = build_config(parse_arguments(["--config", str(path), "--timeslice", "4"]))
        assert config.nice_0_load == 2048
        assert config.cpu_timeslice == 4

    def test_invalid_flag_value_raises(self) -> None:
        """Bad values surface as configuration errors."""
        with pytest.raises(ConfigurationError):
            build_config(parse_arguments(["--timeslice", "0"]))


class TestFormatting:
    """Verify the pure formatting helpers."""

    def test_format_event(self) -> None:
        """A trace line names the tick, task, and kind."""
        event = SchedEvent(
            tick=12, task_id=3, kind=EventKind.WAITING, vruntime=4.5, remaining_cpu_time=2
        )
        line = format_event(event)
        assert "12" in line
        assert "task 3" in line
        assert "waiting" in line

    def test_format_summary(self) -> None:
        """The summary table has a header and one row per task."""
        result = simulate(
            [
                TaskSpec(task_id=0, kind=TaskKind.CPU, priority=0, burst=2),
                TaskSpec(task_id=1, kind=TaskKind.IO, priority=1, burst=1, io_wait_time=3),
            ]
        )
        text = format_summary(result.summary)
        lines = text.splitlines()
        assert lines[0].startswith("Scheduler halted")
        assert "vruntime" in lines[2]
        assert len(lines) == 5


class TestMain:
    """Verify the end-to-end entrypoint."""

    def test_runs_workload_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A workload file runs to completion and prints a summary."""
        status = main(["--workload", str(_write_workload(tmp_path))])
        out = capsys.readouterr().out
        assert status == EXIT_OK
        assert "Scheduler halted at tick 60" in out
        assert "Share before first completion" in out

    def test_trace_prints_events(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """--trace prints one line per event."""
        main(["--workload", str(_write_workload(tmp_path)), "--trace"])
        out = capsys.readouterr().out
        assert out.count("finished") >= 2

    def test_random_workload(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Without a file a seeded random workload runs."""
        assert main(["--tasks", "3", "--seed", "1"]) == EXIT_OK
        assert "Scheduler halted" in capsys.readouterr().out

    def test_metrics_out(self, tmp_path: Path) -> None:
        """--metrics-out writes the trace as JSON."""
        out_path = tmp_path / "trace.json"
        main(["--workload", str(_write_workload(tmp_path)), "--metrics-out", str(out_path)])
        data = json.loads(out_path.read_text())
        assert data["summary"]["final_tick"] == 60

    def test_unwritable_metrics_out_exits_with_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A metrics path in a missing directory is reported on stderr."""
        out_path = tmp_path / "missing" / "trace.json"
        status = main(["--workload", str(_write_workload(tmp_path)), "--metrics-out", str(out_path)])
        captured = capsys.readouterr()
        assert status == EXIT_IO_ERROR
        assert f"cannot write metrics to {out_path}" in captured.err
        assert "Wrote event trace" not in captured.out
        assert not out_path.exists()

    def test_bad_workload_exits_with_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A malformed descriptor is reported on stderr before any dispatch."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"id": 0, "type": "cpu", "priority": 0, "burst_ms": -1}]))
        status = main(["--workload", str(path)])
        captured = capsys.readouterr()
        assert status == EXIT_CONFIG_ERROR
        assert "burst_ms must be positive" in captured.err
        assert captured.out == ""
