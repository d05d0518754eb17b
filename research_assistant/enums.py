"""
Canonical string enumerations for the research assistant.

StrEnum values serialize as plain strings, so they double as the keys
of the persisted settings document and as path parameters of the
settings API.
"""

from enum import StrEnum


# ── Settings fields ────────────────────────────────────────────────────

class SettingsField(StrEnum):
    """Fields of the persisted configuration document."""
    API_KEY = "api_key"
    DEFAULT_MODEL = "default_model"
    DEFAULT_PREAMBLE = "default_preamble"
    MAX_MEMORY_COUNT = "max_memory_count"
    USER_HANDLE = "user_handle"
    BOT_HANDLE = "bot_handle"
    CONVERSATION_HISTORY_DIRECTORY = "conversation_history_directory"
    AUTOSAVE_CONVERSATION_HISTORY = "autosave_conversation_history"
    AUTOSAVE_INTERVAL = "autosave_interval"


# Changing any of these tears down open chat views and rebuilds the
# chat service. The directory and the autosave interval only take effect
# the next time they are read.
SESSION_INVALIDATING_FIELDS = frozenset({
    SettingsField.API_KEY,
    SettingsField.DEFAULT_MODEL,
    SettingsField.DEFAULT_PREAMBLE,
    SettingsField.MAX_MEMORY_COUNT,
    SettingsField.USER_HANDLE,
    SettingsField.BOT_HANDLE,
    SettingsField.AUTOSAVE_CONVERSATION_HISTORY,
})

# Changes that alter which controls the settings surface shows.
DISPLAY_REFRESH_FIELDS = frozenset({
    SettingsField.API_KEY,
    SettingsField.AUTOSAVE_CONVERSATION_HISTORY,
})


# ── API key lifecycle ──────────────────────────────────────────────────

class ApiKeyState(StrEnum):
    """Where the API key sits in its edit lifecycle.

    UNSET and SAVED are the only persisted states; PENDING exists only
    in memory while the user is typing a key that has not been confirmed.
    """
    UNSET = "unset"
    PENDING = "pending"
    SAVED = "saved"
