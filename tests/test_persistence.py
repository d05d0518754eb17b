"""Tests for the JSON settings file."""

import json

import pytest

from research_assistant.settings import (
    ConfigurationDocument,
    JsonSettingsFile,
    SettingsPersistenceError,
)


@pytest.fixture
def settings_file(tmp_path):
    return JsonSettingsFile(tmp_path / "settings.json")


class TestLoad:
    async def test_missing_file_gives_defaults(self, settings_file):
        assert await settings_file.load() == ConfigurationDocument()

    async def test_corrupt_file_gives_defaults(self, settings_file):
        settings_file.path.write_text("{not json", encoding="utf-8")
        assert await settings_file.load() == ConfigurationDocument()

    async def test_invalid_utf8_gives_defaults(self, settings_file):
        settings_file.path.write_bytes(b'{"user_handle": "\xff\xfe"}')
        assert await settings_file.load() == ConfigurationDocument()

    async def test_non_object_gives_defaults(self, settings_file):
        settings_file.path.write_text("[1, 2, 3]", encoding="utf-8")
        assert await settings_file.load() == ConfigurationDocument()

    async def test_stored_values_normalised(self, settings_file):
        settings_file.path.write_text(
            json.dumps({"max_memory_count": 99, "autosave_interval": "soon"}),
            encoding="utf-8",
        )
        doc = await settings_file.load()
        assert doc.max_memory_count == 20
        assert doc.autosave_interval == 15


class TestSave:
    async def test_round_trip(self, settings_file):
        doc = ConfigurationDocument(
            api_key_ciphertext="ENCRYPTED:abc",
            api_key_saved=True,
            default_model="gpt-4",
            max_memory_count=0,
            autosave_conversation_history=True,
            autosave_interval=30,
        )
        await settings_file.save(doc)
        assert await settings_file.load() == doc

    async def test_creates_parent_directory(self, tmp_path):
        settings_file = JsonSettingsFile(tmp_path / "nested" / "dir" / "settings.json")
        await settings_file.save(ConfigurationDocument())
        assert settings_file.path.exists()

    async def test_no_temp_files_left(self, settings_file, tmp_path):
        await settings_file.save(ConfigurationDocument(user_handle="Ada"))
        await settings_file.save(ConfigurationDocument(user_handle="Grace"))
        assert [p.name for p in tmp_path.iterdir()] == ["settings.json"]

    async def test_failure_keeps_previous_document(self, tmp_path):
        target = tmp_path / "settings.json"
        settings_file = JsonSettingsFile(target)
        await settings_file.save(ConfigurationDocument(user_handle="Ada"))

        # A file where the parent directory should be makes the write fail
        blocked = JsonSettingsFile(target / "child.json")
        with pytest.raises(SettingsPersistenceError):
            await blocked.save(ConfigurationDocument(user_handle="Grace"))

        assert (await settings_file.load()).user_handle == "Ada"
