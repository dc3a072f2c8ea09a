import argparse

import pytest

from pdm2dsf.config import load_config
from pdm2dsf.errors import ConfigError


def _make_args(**overrides):
    defaults = dict(
        config=None,
        output=None,
        rate=None,
        json_log=False,
        dry_run=False,
    )
    defaults.update(overrides)
    return argparse.Namespace(**defaults)


def test_defaults_without_sources(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = load_config(_make_args(), env={})

    assert config.output_path == "out.dsf"
    assert config.bit_rate == 2_822_400
    assert config.log_format == "human"
    assert config.extra == {}


def test_config_precedence_cli_env_file(tmp_path):
    config_path = tmp_path / "pdm2dsf.toml"
    config_path.write_text(
        "\n".join(
            [
                'output_path = "file.dsf"',
                "bit_rate = 5644800",
                'unknown_key = "keep_me"',
            ]
        ),
        encoding="utf-8",
    )

    env = {
        "PDM2DSF_OUTPUT": "env.dsf",
        "PDM2DSF_BIT_RATE": "11289600",
    }

    args = _make_args(config=str(config_path), output="cli.dsf")

    config = load_config(args, env=env)

    assert config.output_path == "cli.dsf"
    assert config.bit_rate == 11_289_600
    assert config.extra == {"unknown_key": "keep_me"}


def test_config_env_overrides_file(tmp_path):
    config_path = tmp_path / "pdm2dsf.toml"
    config_path.write_text("bit_rate = 5644800\n", encoding="utf-8")

    env = {"PDM2DSF_BIT_RATE": "3072000"}
    config = load_config(_make_args(config=str(config_path)), env=env)

    assert config.bit_rate == 3_072_000


def test_config_validation_enforces_bounds():
    with pytest.raises(ConfigError):
        load_config(_make_args(rate=0), env={})

    with pytest.raises(ConfigError):
        load_config(_make_args(rate=2**32), env={})

    with pytest.raises(ConfigError):
        load_config(_make_args(), env={"PDM2DSF_BIT_RATE": "fast"})

    with pytest.raises(ConfigError):
        load_config(_make_args(), env={"PDM2DSF_LOG_FORMAT": "xml"})


def test_invalid_toml_is_reported(tmp_path):
    config_path = tmp_path / "pdm2dsf.toml"
    config_path.write_text("bit_rate = = 1\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(_make_args(config=str(config_path)), env={})


def test_json_log_flag_sets_format():
    config = load_config(_make_args(json_log=True), env={})

    assert config.json_log is True
    assert config.log_format == "json"


def test_dry_run_from_env():
    config = load_config(_make_args(), env={"PDM2DSF_DRY_RUN": "yes"})

    assert config.dry_run is True


def test_string_flags_in_file_are_parsed(tmp_path):
    config_path = tmp_path / "pdm2dsf.toml"
    config_path.write_text('dry_run = "false"\njson_log = "no"\n', encoding="utf-8")

    config = load_config(_make_args(config=str(config_path)), env={})

    assert config.dry_run is False
    assert config.json_log is False
    assert config.log_format == "human"


def test_non_boolean_flag_in_file_is_rejected(tmp_path):
    config_path = tmp_path / "pdm2dsf.toml"
    config_path.write_text("dry_run = 1\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(_make_args(config=str(config_path)), env={})


def test_missing_explicit_config_file_is_reported(tmp_path):
    with pytest.raises(ConfigError) as excinfo:
        load_config(_make_args(config=str(tmp_path / "missing.toml")), env={})

    assert "missing.toml" in str(excinfo.value)
