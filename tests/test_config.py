"""Tests for the simulation configuration."""

import json
from pathlib import Path

import pytest

from cfs_sim.config import SchedulerConfig, load_config
from cfs_sim.errors import ConfigurationError

CUSTOM_TIMESLICE = 4


class TestDefaults:
    """Verify the documented defaults."""

    def test_default_values(self) -> None:
        """Defaults should match the classic CFS simulation parameters."""
        config = SchedulerConfig()
        assert config.nice_0_load == 1024
        assert config.cpu_timeslice == 1
        assert config.io_wait_time == 10
        assert config.min_granularity == 1
        assert config.io_wait_interval == 1

    def test_config_is_frozen(self) -> None:
        """Parameters are immutable during a run."""
        config = SchedulerConfig()
        with pytest.raises(AttributeError):
            config.cpu_timeslice = 2  # type: ignore[misc]

    def test_to_dict(self) -> None:
        """to_dict should expose every parameter."""
        data = SchedulerConfig().to_dict()
        assert data["nice_0_load"] == 1024
        assert set(data) == {
            "nice_0_load",
            "cpu_timeslice",
            "io_wait_time",
            "min_granularity",
            "max_priority",
            "io_wait_interval",
        }


class TestValidation:
    """Verify that bad parameters are rejected up front."""

    @pytest.mark.parametrize(
        "field", ["nice_0_load", "cpu_timeslice", "io_wait_time", "io_wait_interval"]
    )
    def test_non_positive_values_raise(self, field: str) -> None:
        """Durations and constants must be positive."""
        with pytest.raises(ConfigurationError, match=field):
            SchedulerConfig(**{field: 0})

    def test_negative_max_priority_raises(self) -> None:
        """The priority range cannot be empty."""
        with pytest.raises(ConfigurationError, match="max_priority"):
            SchedulerConfig(max_priority=-1)

    def test_timeslice_below_granularity_raises(self) -> None:
        """The timeslice may not undercut the minimum granularity."""
        with pytest.raises(ConfigurationError, match="min_granularity"):
            SchedulerConfig(cpu_timeslice=1, min_granularity=2)

    def test_non_integer_raises(self) -> None:
        """Parameters are integer milliseconds."""
        with pytest.raises(ConfigurationError, match="integer"):
            SchedulerConfig(cpu_timeslice=1.5)  # type: ignore[arg-type]

    def test_replace_revalidates(self) -> None:
        """replace() goes through the same validation."""
        config = SchedulerConfig()
        assert config.replace(cpu_timeslice=CUSTOM_TIMESLICE).cpu_timeslice == CUSTOM_TIMESLICE
        with pytest.raises(ConfigurationError):
            config.replace(io_wait_time=-1)


class TestFromMapping:
    """Verify building configs from mappings and files."""

    def test_partial_mapping_keeps_defaults(self) -> None:
        """Absent keys fall back to defaults."""
        config = SchedulerConfig.from_mapping({"cpu_timeslice": CUSTOM_TIMESLICE})
        assert config.cpu_timeslice == CUSTOM_TIMESLICE
        assert config.nice_0_load == 1024

    def test_unknown_key_raises(self) -> None:
        """Typos are reported rather than ignored."""
        with pytest.raises(ConfigurationError, match="timeslyce"):
            SchedulerConfig.from_mapping({"timeslyce": 2})

    def test_load_config_from_file(self, tmp_path: Path) -> None:
        """A JSON object file becomes a config."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"io_wait_time": 20}))
        assert load_config(path).io_wait_time == 20

    def test_load_missing_file_raises(self, tmp_path: Path) -> None:
        """An unreadable file is a configuration error."""
        with pytest.raises(ConfigurationError, match="Cannot load configuration"):
            load_config(tmp_path / "missing.json")

    def test_load_malformed_json_raises(self, tmp_path: Path) -> None:
        """Invalid JSON is a configuration error."""
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_load_non_object_raises(self, tmp_path: Path) -> None:
        """The file must hold a JSON object."""
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError, match="JSON object"):
            load_config(path)
