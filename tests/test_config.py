"""
Tests for settings loading and validation.
"""

import pytest
from pydantic import ValidationError

from crash_engine.config import AppEnvironment, Settings, get_settings, get_settings_dep


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        """Defaults should match the documented values."""
        settings = Settings()
        assert settings.env == AppEnvironment.DEVELOPMENT
        assert settings.port == 8080
        assert settings.deadlock_hold_seconds == 2.0
        assert settings.show_error_details is True

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """CRASH_ variables should be picked up."""
        monkeypatch.setenv("CRASH_PORT", "9000")
        monkeypatch.setenv("CRASH_DEADLOCK_HOLD_SECONDS", "0.5")
        settings = Settings()
        assert settings.port == 9000
        assert settings.deadlock_hold_seconds == 0.5

    def test_log_level_normalised(self) -> None:
        """Log level should be upper-cased."""
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        """Unknown log levels should be rejected."""
        with pytest.raises(ValidationError):
            Settings(log_level="verbose")

    @pytest.mark.parametrize("hold", [0, -1, 61])
    def test_invalid_hold(self, hold: float) -> None:
        """Hold delay must be positive and bounded."""
        with pytest.raises(ValidationError):
            Settings(deadlock_hold_seconds=hold)

    def test_port_range(self) -> None:
        """Privileged ports should be rejected."""
        with pytest.raises(ValidationError):
            Settings(port=80)

    def test_redacted_config(self) -> None:
        """Redacted config should expose the documented keys."""
        config = Settings().get_redacted_config()
        assert set(config) == {
            "env",
            "host",
            "port",
            "log_level",
            "deadlock_hold_seconds",
            "show_error_details",
        }


def test_get_settings_cached() -> None:
    """get_settings should return a single instance."""
    assert get_settings() is get_settings()
    assert get_settings_dep() is get_settings()
