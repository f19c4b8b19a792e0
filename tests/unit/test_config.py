from __future__ import annotations

import pytest

from tablerender.config import Settings


def _settings(**values: object) -> Settings:
    return Settings(_env_file=None, **values)


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HOST", "BIND_ADDR", "CORS_ALLOWED_ORIGINS", "SHUTDOWN_TIMEOUT", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    settings = _settings()

    assert settings.bind_addr == ":23100"
    assert settings.bind_host == "0.0.0.0"
    assert settings.bind_port == 23100
    assert settings.cors_origins_list == ["*"]
    assert settings.shutdown_timeout == 5.0


@pytest.mark.parametrize(
    ("value", "expected"),
    [("5s", 5.0), ("500ms", 0.5), ("1m", 60.0), ("2.5", 2.5), (3, 3.0)],
)
def test_shutdown_timeout_durations(value: object, expected: float) -> None:
    assert _settings(shutdown_timeout=value).shutdown_timeout == pytest.approx(expected)


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BIND_ADDR", "127.0.0.1:8080")
    monkeypatch.setenv("SHUTDOWN_TIMEOUT", "10s")
    monkeypatch.setenv("log_level", "debug")
    settings = _settings()

    assert settings.bind_host == "127.0.0.1"
    assert settings.bind_port == 8080
    assert settings.shutdown_timeout == 10.0
    assert settings.log_level == "DEBUG"


def test_cors_origins_are_split() -> None:
    settings = _settings(cors_allowed_origins="https://a.example, https://b.example,")

    assert settings.cors_origins_list == ["https://a.example", "https://b.example"]
