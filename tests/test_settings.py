import pytest

from callwire.settings import Settings


def test_load_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CALLWIRE_TARGET_URL", " https://api.example.com ")
    monkeypatch.setenv("CALLWIRE_TARGET_NAME", "example")
    monkeypatch.setenv("CALLWIRE_TIMEOUT", "12.5")
    monkeypatch.setenv("CALLWIRE_LOG_LEVEL", "debug")

    settings = Settings.load()

    assert settings.target_url == "https://api.example.com"
    assert settings.target_name == "example"
    assert settings.api_timeout == 12.5
    assert settings.log_level == "DEBUG"


def test_load_requires_target_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CALLWIRE_TARGET_URL", "  ")
    with pytest.raises(ValueError):
        Settings.load()


@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_load_rejects_bad_timeouts(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("CALLWIRE_TARGET_URL", "https://api.example.com")
    monkeypatch.setenv("CALLWIRE_TIMEOUT", raw)
    with pytest.raises(ValueError):
        Settings.load()


def test_load_applies_defaults_for_optional_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CALLWIRE_TARGET_URL", "https://api.example.com")
    for name in ("CALLWIRE_TARGET_NAME", "CALLWIRE_TIMEOUT", "CALLWIRE_LOG_LEVEL"):
        monkeypatch.setenv(name, "")

    settings = Settings.load()

    assert settings.target_name is None
    assert settings.api_timeout == 30.0
    assert settings.log_level == "INFO"


def test_load_rejects_unknown_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CALLWIRE_TARGET_URL", "https://api.example.com")
    monkeypatch.setenv("CALLWIRE_LOG_LEVEL", "chatty")
    with pytest.raises(ValueError):
        Settings.load()
