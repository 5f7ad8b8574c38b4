"""Tests for configuration resolution."""

import pytest

from freshrss_sync.config import DEFAULT_TIMEOUT, ClientConfig, normalize_host, resolve_config
from freshrss_sync.errors import ConfigurationError


def test_explicit_arguments():
    config = resolve_config("https://rss.example.com", "alice", "secret")

    assert config == ClientConfig(host="https://rss.example.com", username="alice", password="secret")
    assert config.timeout == DEFAULT_TIMEOUT
    assert config.verify_ssl is True
    assert config.verbose is False


def test_environment_fallback(monkeypatch):
    monkeypatch.setenv("FRESHRSS_API_HOST", "https://env.example.com")
    monkeypatch.setenv("FRESHRSS_API_USERNAME", "bob")
    monkeypatch.setenv("FRESHRSS_API_PASSWORD", "hunter2")
    monkeypatch.setenv("FRESHRSS_API_VERBOSE", "yes")
    monkeypatch.setenv("FRESHRSS_API_VERIFY_SSL", "false")
    monkeypatch.setenv("FRESHRSS_API_TIMEOUT", "30")

    config = resolve_config()

    assert config.host == "https://env.example.com"
    assert config.username == "bob"
    assert config.password == "hunter2"
    assert config.verbose is True
    assert config.verify_ssl is False
    assert config.timeout == 30.0


def test_explicit_arguments_win_over_environment(monkeypatch):
    monkeypatch.setenv("FRESHRSS_API_HOST", "https://env.example.com")
    monkeypatch.setenv("FRESHRSS_API_VERBOSE", "1")

    config = resolve_config("https://arg.example.com", "alice", "secret", verbose=False)

    assert config.host == "https://arg.example.com"
    assert config.verbose is False


def test_environment_is_read_once(monkeypatch):
    monkeypatch.setenv("FRESHRSS_API_HOST", "https://first.example.com")
    config = resolve_config(username="alice", password="secret")
    monkeypatch.setenv("FRESHRSS_API_HOST", "https://second.example.com")

    assert config.host == "https://first.example.com"


@pytest.mark.parametrize(
    "kwargs, variable",
    [
        ({"username": "alice", "password": "secret"}, "FRESHRSS_API_HOST"),
        ({"host": "https://rss.example.com", "password": "secret"}, "FRESHRSS_API_USERNAME"),
        ({"host": "https://rss.example.com", "username": "alice"}, "FRESHRSS_API_PASSWORD"),
    ],
)
def test_missing_setting_names_environment_variable(kwargs, variable):
    with pytest.raises(ConfigurationError, match=variable):
        resolve_config(**kwargs)


def test_invalid_timeout(monkeypatch):
    monkeypatch.setenv("FRESHRSS_API_TIMEOUT", "soon")
    with pytest.raises(ConfigurationError, match="FRESHRSS_API_TIMEOUT"):
        resolve_config("https://rss.example.com", "alice", "secret")

    with pytest.raises(ConfigurationError):
        resolve_config("https://rss.example.com", "alice", "secret", timeout=0)


def test_repr_hides_password():
    config = ClientConfig(host="https://rss.example.com", username="alice", password="secret")
    assert "secret" not in repr(config)


@pytest.mark.parametrize(
    "host, expected",
    [
        ("https://rss.example.com", "https://rss.example.com/"),
        ("https://rss.example.com/", "https://rss.example.com/"),
        ("https://rss.example.com/sub///", "https://rss.example.com/sub/"),
    ],
)
def test_normalize_host(host, expected):
    assert normalize_host(host) == expected
