#!/usr/bin/env python3
"""
Tests for loading flag values from config files.

This module tests JSON and YAML config file loading, as well as
command-line override functionality.
"""

import json
import os
import tempfile
import textwrap
from dataclasses import dataclass, field
from datetime import timedelta

import pytest

from autoflags import FlagParseError, FlagSet, Uint, define_with_registry


@dataclass
class SampleConfig:
    """Sample configuration for testing."""

    name: str = field(default="default_name", metadata={"flag": "name,The name"})
    count: Uint = field(default=Uint(5), metadata={"flag": "count,Number of items"})
    threshold: float = field(default=0.5, metadata={"flag": "threshold,Threshold value"})
    enabled: bool = field(default=True, metadata={"flag": "enabled,Enable feature"})
    interval: timedelta = field(default=timedelta(seconds=10), metadata={"flag": "interval"})


def write_temp(content: str, suffix: str) -> str:
    with tempfile.NamedTemporaryFile(mode="w", suffix=suffix, delete=False) as f:
        f.write(content)
        return f.name


class TestConfigFiles:
    """Test suite for config file functionality."""

    def test_json_config(self):
        """Test loading from JSON config file."""
        config_path = write_temp(
            json.dumps({"name": "json_test", "count": 10, "threshold": 0.8, "enabled": False}),
            ".json",
        )
        try:
            config = SampleConfig()
            fs = FlagSet()
            define_with_registry(fs, config)
            fs.parse_config_file(config_path)

            assert config.name == "json_test"
            assert config.count == 10
            assert config.threshold == 0.8
            assert config.enabled is False
            assert config.interval == timedelta(seconds=10)  # default value
        finally:
            os.unlink(config_path)

    def test_yaml_config(self):
        """Test loading from YAML config file."""
        config_content = textwrap.dedent("""
            name: yaml_test
            count: 15
            interval: 1m30s
            """).strip()
        config_path = write_temp(config_content, ".yaml")
        try:
            config = SampleConfig()
            fs = FlagSet()
            define_with_registry(fs, config)
            fs.parse_config_file(config_path)

            assert config.name == "yaml_test"
            assert config.count == 15
            assert config.threshold == 0.5  # default value
            assert config.interval == timedelta(minutes=1, seconds=30)
        finally:
            os.unlink(config_path)

    def test_config_override(self):
        """Test that command-line args override config file values."""
        config_path = write_temp(json.dumps({"name": "config_name", "count": 99}), ".json")
        try:
            config = SampleConfig()
            fs = FlagSet()
            define_with_registry(fs, config)
            fs.parse_config_file(config_path)
            fs.parse(["-name", "cmdline_name", "-threshold", "0.9"])

            assert config.name == "cmdline_name"  # overridden by cmdline
            assert config.count == 99  # from config file
            assert config.threshold == 0.9  # from cmdline
        finally:
            os.unlink(config_path)

    def test_empty_yaml_changes_nothing(self):
        config_path = write_temp("", ".yml")
        try:
            config = SampleConfig()
            fs = FlagSet()
            define_with_registry(fs, config)
            fs.parse_config_file(config_path)
            assert config == SampleConfig()
        finally:
            os.unlink(config_path)

    def test_unknown_flag_in_config(self):
        """Test that a key naming no flag is an error."""
        config_path = write_temp(json.dumps({"missing": 1}), ".json")
        try:
            fs = FlagSet()
            define_with_registry(fs, SampleConfig())
            with pytest.raises(FlagParseError) as exc:
                fs.parse_config_file(config_path)
            assert "no such flag -missing" in str(exc.value)
        finally:
            os.unlink(config_path)

    def test_invalid_value_in_config(self):
        config_path = write_temp(json.dumps({"count": -3}), ".json")
        try:
            fs = FlagSet()
            define_with_registry(fs, SampleConfig())
            with pytest.raises(FlagParseError):
                fs.parse_config_file(config_path)
        finally:
            os.unlink(config_path)

    def test_non_mapping_config(self):
        config_path = write_temp(json.dumps(["name", "x"]), ".json")
        try:
            with pytest.raises(ValueError):
                FlagSet().parse_config_file(config_path)
        finally:
            os.unlink(config_path)

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            FlagSet().parse_config_file("/nonexistent/config.json")

    def test_unsupported_extension(self):
        config_path = write_temp("name = 'x'", ".toml")
        try:
            with pytest.raises(ValueError) as exc:
                FlagSet().parse_config_file(config_path)
            assert "Unsupported file format" in str(exc.value)
        finally:
            os.unlink(config_path)

    def test_invalid_json(self):
        config_path = write_temp("{not json", ".json")
        try:
            with pytest.raises(ValueError) as exc:
                FlagSet().parse_config_file(config_path)
            assert "Invalid JSON file" in str(exc.value)
        finally:
            os.unlink(config_path)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
