"""
Tests for configuration loading.
"""

from pathlib import Path

from expense_tracker.config import (
    AppSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


class TestSettings:
    """Tests for the settings sections."""

    def test_defaults(self, monkeypatch):
        """Test defaults when nothing is configured."""
        monkeypatch.delenv("EXPENSE_STORAGE_BACKEND", raising=False)
        storage = StorageSettings()
        assert storage.backend == "file"
        assert storage.ledger_key == "expenses"
        assert AppSettings().recent_expenses_limit == 5

    def test_env_overrides(self, monkeypatch):
        """Test sections read their prefixed environment variables."""
        monkeypatch.setenv("EXPENSE_STORAGE_LEDGER_KEY", "household")
        monkeypatch.setenv("PAYMENT_CURRENCY", "USD")
        settings = get_settings()
        assert settings.storage.ledger_key == "household"
        assert settings.payment.currency == "USD"

    def test_data_dir_expands_home(self, monkeypatch):
        """Test '~' in the data directory is expanded."""
        monkeypatch.setenv("EXPENSE_STORAGE_DATA_DIR", "~/expenses")
        assert StorageSettings().data_dir == Path("~/expenses").expanduser()

    def test_validate_all_settings(self, monkeypatch):
        """Test a bad section is reported with its error."""
        monkeypatch.setenv("EXPENSE_STORAGE_BACKEND", "cloud")
        results = validate_all_settings()
        assert results["storage"] is False
        assert "storage_error" in results
        assert results["payment"] is True
        assert results["app"] is True

    def test_debug_mode_from_env(self, monkeypatch):
        """Test debug logging can be switched on from the environment."""
        monkeypatch.setenv("DEBUG_MODE", "true")
        assert AppSettings().debug_mode is True
