"""
Tests for configuration loading
"""

import pytest
import yaml

from superbmc.config import DEFAULT_CONFIG, ConfigError, build_classifier, load_config


def write_config(tmp_path, content):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(content)
    return str(config_file)


def test_missing_file_uses_defaults(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"))
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG


def test_merge_with_defaults(tmp_path):
    path = write_config(tmp_path, yaml.dump({"ipmi": {"host": "10.0.0.5"}, "pmbus": {"bus": 3}}))
    config = load_config(path)
    assert config["ipmi"]["host"] == "10.0.0.5"
    assert config["ipmi"]["username"] == "ADMIN"
    assert config["pmbus"]["bus"] == 3
    assert config["pmbus"]["legacy_fan_marker"] == "721"


def test_defaults_not_mutated(tmp_path):
    path = write_config(tmp_path, yaml.dump({"ipmi": {"host": "10.0.0.5"}}))
    load_config(path)
    assert DEFAULT_CONFIG["ipmi"]["host"] == "localhost"


def test_empty_file(tmp_path):
    assert load_config(write_config(tmp_path, "")) == DEFAULT_CONFIG


def test_not_a_mapping(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, "- one\n- two\n"))


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, "ipmi: [unclosed\n"))


def test_build_classifier_extends_table():
    config = {"pmbus": {"extra_non_standard_models": ["PWS-2K04A"], "legacy_fan_marker": "721"}}
    classifier = build_classifier(config)
    assert classifier.is_non_standard("PWS-2K04A-1R")
    assert classifier.is_non_standard("PWS-721P")
    assert classifier.is_legacy_fan("PWS-721P")


def test_build_classifier_defaults():
    classifier = build_classifier(DEFAULT_CONFIG)
    assert not classifier.is_non_standard("PWS-2K04A-1R")
    assert classifier.is_non_standard("PWS-920P-1R2")


def test_single_model_string(tmp_path):
    """A model written without list brackets is one model, not characters"""
    path = write_config(tmp_path, "pmbus:\n  extra_non_standard_models: PWS-2K04A\n")
    classifier = build_classifier(load_config(path))
    assert classifier.non_standard[-1] == "PWS-2K04A"
    assert classifier.is_non_standard("PWS-2K04A-1R")
    assert not classifier.is_non_standard("PWS-1K28P-SQ")


def test_model_list_wrong_type(tmp_path):
    path = write_config(tmp_path, "pmbus:\n  extra_non_standard_models:\n    model: PWS-2K04A\n")
    with pytest.raises(ConfigError):
        build_classifier(load_config(path))


def test_numeric_legacy_marker(tmp_path):
    """An unquoted marker loads as an int and is matched as text"""
    path = write_config(tmp_path, "pmbus:\n  legacy_fan_marker: 721\n")
    classifier = build_classifier(load_config(path))
    assert classifier.legacy_marker == "721"
    assert classifier.is_legacy_fan("PWS-721P-1R")
    assert not classifier.is_legacy_fan("PWS-920P-1R2")


def test_legacy_marker_wrong_type(tmp_path):
    path = write_config(tmp_path, "pmbus:\n  legacy_fan_marker: [721]\n")
    with pytest.raises(ConfigError):
        build_classifier(load_config(path))
