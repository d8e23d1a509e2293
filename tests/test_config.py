"""Tests for settings and component wiring."""

import pytest
from pydantic import ValidationError

from finance_tracker.actions import FinanceActions
from finance_tracker.config import AppSettings, DatabaseSettings, get_settings, validate_all_settings
from finance_tracker.orchestrator import create_app_components, create_storage
from finance_tracker.services.storage import (
    GoogleSheetsFinanceStorage,
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
    SqlFinanceStorage,
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Isolate every test from the developer's environment and .env file."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "STORAGE_BACKEND", "AUDIT_ENABLED", "LOG_LEVEL", "LOCAL_USER_ID",
        "DATABASE_URL", "DATABASE_ECHO",
        "GOOGLE_SHEETS_CREDENTIALS_PATH", "GOOGLE_SHEETS_SPREADSHEET_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for the pydantic-settings classes."""

    def test_defaults(self):
        """Test defaults without any environment."""
        app = AppSettings()
        assert app.storage_backend == "sql"
        assert app.audit_enabled is True
        assert app.local_user_id is None
        assert DatabaseSettings().url == "sqlite:///finance_tracker.db"

    def test_environment_overrides(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("LOCAL_USER_ID", "me")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        app = get_settings().app
        assert app.storage_backend == "memory"
        assert app.local_user_id == "me"
        assert app.log_level == "DEBUG"

    def test_unknown_backend_rejected(self, monkeypatch):
        """Test storage_backend is restricted to known names."""
        monkeypatch.setenv("STORAGE_BACKEND", "mongodb")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_validate_all_settings_reports_missing_sheets(self):
        """Test a missing Sheets config is reported, not raised."""
        status = validate_all_settings()
        assert status["app"] is True
        assert status["database"] is True
        assert status["google_sheets"] is False
        assert "google_sheets_error" in status


class TestComponentWiring:
    """Tests for create_storage / create_app_components."""

    def test_memory_components(self):
        """Test the memory backend wires actions to in-memory storage."""
        components = create_app_components(backend="memory")
        assert isinstance(components.actions, FinanceActions)
        assert isinstance(components.storage, InMemoryFinanceStorage)
        assert isinstance(components.audit_storage, InMemoryAuditStorage)
        assert components.backend == "memory"

    def test_backend_from_settings(self, monkeypatch):
        """Test the configured backend is used by default."""
        monkeypatch.setenv("STORAGE_BACKEND", "sql")
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        components = create_app_components()
        assert isinstance(components.storage, SqlFinanceStorage)
        assert components.actions.storage is components.storage

    def test_audit_disabled(self, monkeypatch):
        """Test audit persistence can be turned off."""
        monkeypatch.setenv("AUDIT_ENABLED", "false")
        components = create_app_components(backend="memory")
        assert components.audit_storage is None

    def test_google_sheets_storage_built_lazily(self, monkeypatch, tmp_path):
        """Test the Sheets backend is created without connecting."""
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(tmp_path / "creds.json"))
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-id")
        with pytest.warns(UserWarning):
            storage, audit = create_storage("google_sheets")
        assert isinstance(storage, GoogleSheetsFinanceStorage)
        assert audit is not None

    def test_unknown_backend(self):
        """Test an unknown backend name fails loudly."""
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_storage("redis")

    async def test_wired_actions_work(self):
        """Test the factory output is usable end to end."""
        from finance_tracker.auth import RequestContext

        actions = create_app_components(backend="memory").actions
        result = await actions.create_account(RequestContext.for_user("me"), {"name": "Cash"})
        assert result.success


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
