"""Tests for config loader functionality."""

import os
import pytest
import tempfile
import yaml

from markbook.libs.config_loader import (
    get_config, load_configs, load_default_configs, resolve_config_path
)


def test_load_single_config():
    """Test loading a single config file."""
    config_data = {
        "scoring": {"mastery": {"pass_percent": 60}},
    }

    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(config_data, f)
        temp_path = f.name

    try:
        result = load_configs(temp_path)
        assert result == config_data
    finally:
        os.unlink(temp_path)


def test_load_multiple_configs_merge():
    """Later files override earlier ones key by key."""
    config1 = {
        "scoring": {"mastery": {"pass_percent": 60, "proficient_percent": 80}},
        "alerts": {"warning_threshold": 60}
    }
    config2 = {
        "scoring": {"mastery": {"pass_percent": 65}},
        "alerts": {"decline_threshold": 10}
    }

    expected = {
        "scoring": {"mastery": {"pass_percent": 65, "proficient_percent": 80}},
        "alerts": {"warning_threshold": 60, "decline_threshold": 10}
    }

    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f1:
        yaml.dump(config1, f1)
        temp_path1 = f1.name

    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f2:
        yaml.dump(config2, f2)
        temp_path2 = f2.name

    try:
        result = load_configs(temp_path1, temp_path2)
        assert result == expected
    finally:
        os.unlink(temp_path1)
        os.unlink(temp_path2)


def test_load_missing_file():
    """Test that missing files are skipped with warning."""
    config_data = {"scoring": {"alerts": {"warning_threshold": 55}}}

    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(config_data, f)
        temp_path = f.name

    try:
        result = load_configs(temp_path, "nonexistent.yaml")
        assert result == config_data
    finally:
        os.unlink(temp_path)


def test_no_configs_loaded():
    """Test that ValueError is raised when no configs are loaded."""
    with pytest.raises(ValueError, match="No configs loaded"):
        load_configs("nonexistent1.yaml", "nonexistent2.yaml")


def test_invalid_yaml_type():
    """Test that TypeError is raised for non-dict YAML."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write("just a string, not a dict")
        temp_path = f.name

    try:
        with pytest.raises(TypeError, match="must be a dict"):
            load_configs(temp_path)
    finally:
        os.unlink(temp_path)


def test_get_config():
    """Test getting config values by dot-separated key."""
    config = {
        "scoring": {
            "mastery": {"pass_percent": 60, "proficient_percent": 80},
            "weight_policy": {"bands": {"lower": {"formative": 0.5}}}
        }
    }

    assert get_config("scoring.mastery.pass_percent", config) == 60
    assert get_config("scoring.weight_policy.bands.lower.formative", config) == 0.5

    with pytest.raises(KeyError):
        get_config("nonexistent.key", config)

    with pytest.raises(KeyError):
        get_config("scoring.mastery.pass_percent.deeper", config)


def test_get_config_default():
    config = {"scoring": {"mastery": {}}}
    assert get_config("scoring.mastery.pass_percent", config, default=60) == 60
    assert get_config("scoring.missing.key", config, default=None) is None


def test_resolve_config_path():
    assert resolve_config_path("/abs/rubrics.yaml") == "/abs/rubrics.yaml"
    resolved = resolve_config_path("config/rubrics.yaml")
    assert os.path.isabs(resolved)
    assert resolved.endswith(os.path.join("config", "rubrics.yaml"))


def test_load_default_configs_integration():
    """The shipped default.yaml carries the scoring policy."""
    project_root = os.path.dirname(os.path.dirname(__file__))
    default_config_path = os.path.join(project_root, "config", "default.yaml")

    if os.path.exists(default_config_path):
        config = load_default_configs()
        assert isinstance(config, dict)
        assert "scoring" in config
        assert get_config("scoring.mastery.pass_percent", config) == 60
