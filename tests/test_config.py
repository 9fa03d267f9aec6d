import dataclasses
import os

import pytest

from goodreads_table.config import ClientConfig, build_config, load_dotenv
from goodreads_table.integrations.http_client import ConfigurationError


def test_build_config_defaults_from_environment() -> None:
    cfg = build_config(environ={"GOODREADS_API_KEY": " abc "})
    assert cfg.api_key == "abc"
    assert cfg.response_format == "xml"
    assert cfg.rate_interval_s == 1.0
    assert cfg.base_url == "https://www.goodreads.com"


def test_missing_key_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        build_config(environ={})


def test_arguments_override_file_and_environment(tmp_path) -> None:
    path = tmp_path / "goodreads.yaml"
    path.write_text("format: json\nrate_interval_ms: 250\ntimeout_s: 5\n", encoding="utf-8")
    env = {"GOODREADS_API_KEY": "k", "GOODREADS_FORMAT": "xml", "GOODREADS_RATE_INTERVAL_MS": "2000"}

    cfg = build_config(config_path=str(path), environ=env)
    assert cfg.response_format == "json"
    assert cfg.rate_interval_s == 0.25
    assert cfg.timeout_s == 5.0

    cfg = build_config(rate_interval_ms=0, response_format="xml", config_path=str(path), environ=env)
    assert cfg.rate_interval_s == 0.0
    assert cfg.response_format == "xml"


def test_environment_interval_is_used(tmp_path) -> None:
    cfg = build_config(environ={"GOODREADS_API_KEY": "k", "GOODREADS_RATE_INTERVAL_MS": "1500"})
    assert cfg.rate_interval_s == 1.5


def test_bad_values_are_rejected(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        build_config(response_format="csv", environ={"GOODREADS_API_KEY": "k"})
    with pytest.raises(ConfigurationError):
        build_config(rate_interval_ms="soon", environ={"GOODREADS_API_KEY": "k"})
    with pytest.raises(ConfigurationError):
        build_config(config_path=str(tmp_path / "missing.yaml"), environ={"GOODREADS_API_KEY": "k"})
    for bad in ("nan", "inf", "-inf"):
        with pytest.raises(ConfigurationError):
            build_config(rate_interval_ms=float(bad), environ={"GOODREADS_API_KEY": "k"})
        with pytest.raises(ConfigurationError):
            build_config(timeout_s=float(bad), environ={"GOODREADS_API_KEY": "k"})
    with pytest.raises(ConfigurationError):
        ClientConfig(api_key="k", rate_interval_s=float("nan")).validate()


def test_client_config_is_immutable() -> None:
    cfg = ClientConfig(api_key="k")
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.api_key = "other"


def test_load_dotenv_does_not_override(tmp_path, monkeypatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "export GOODREADS_API_KEY='from-file'  # comment\nGOODREADS_FORMAT=json\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ENV_PATH", str(env_file))
    monkeypatch.setenv("GOODREADS_FORMAT", "xml")
    monkeypatch.delenv("GOODREADS_API_KEY", raising=False)

    assert load_dotenv() == str(env_file.resolve())
    assert os.environ["GOODREADS_API_KEY"] == "from-file"
    assert os.environ["GOODREADS_FORMAT"] == "xml"
    monkeypatch.delenv("GOODREADS_API_KEY")
