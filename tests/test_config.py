"""Tests for configuration, logging setup and plugin activation."""

import logging

import pytest

from research_assistant.config import Config
from research_assistant.enums import SettingsField
from research_assistant.logging_config import setup_logging
from research_assistant.plugin import activate
from research_assistant.settings import CredentialVault, UnavailableSecureStorage


class TestConfig:
    def test_defaults_are_valid(self, monkeypatch):
        monkeypatch.setattr(Config, "SECURE_STORAGE", "auto")
        monkeypatch.setattr(Config, "LOG_LEVEL", "INFO")
        assert Config.validate() == []

    def test_unknown_secure_storage_mode(self, monkeypatch):
        monkeypatch.setattr(Config, "SECURE_STORAGE", "maybe")
        issues = Config.validate()
        assert any("SECURE_STORAGE" in issue for issue in issues)

    def test_unknown_log_level(self, monkeypatch):
        monkeypatch.setattr(Config, "LOG_LEVEL", "LOUD")
        assert any("LOG_LEVEL" in issue for issue in Config.validate())

    def test_secure_storage_off(self, monkeypatch):
        monkeypatch.setattr(Config, "SECURE_STORAGE", "off")
        assert Config.secure_storage_enabled() is False


class TestLogging:
    def test_setup_sets_level_and_quiets_third_parties(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("DEBUG")
            assert root.level == logging.DEBUG
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    @pytest.mark.parametrize("level,expected,shows_level", [
        ("debug", logging.DEBUG, True),
        ("WARNING", logging.WARNING, False),
        ("chatty", logging.INFO, False),
    ])
    def test_level_and_format(self, level, expected, shows_level):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level)
            assert root.level == expected
            assert ("%(levelname)s" in root.handlers[0].formatter._fmt) is shows_level
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_key_never_logged(self, store, caplog):
        caplog.set_level(logging.DEBUG)
        store.set_pending_api_key("sk-very-secret-value")
        store.discard_pending_api_key()
        assert "sk-very-secret-value" not in caplog.text


class TestActivate:
    async def test_activate_and_persist(self, tmp_path):
        path = tmp_path / "settings.json"
        vault = CredentialVault(UnavailableSecureStorage())

        plugin = await activate(settings_path=path, vault=vault)
        assert plugin.sessions.chat_service is not None

        view = plugin.sessions.views.open_view()
        await plugin.store.apply_change(SettingsField.BOT_HANDLE, "Sage")
        assert view.closed

        reloaded = await activate(settings_path=path, vault=vault)
        assert reloaded.store.current_value(SettingsField.BOT_HANDLE) == "Sage"

        await plugin.deactivate()
        await reloaded.deactivate()
