"""Pydantic models for the settings document."""

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import DEFAULT_AUTOSAVE_INTERVAL, DEFAULT_CONVERSATION_DIRECTORY
from ..enums import ApiKeyState, SettingsField
from .defaults import DEFAULT_MODEL
from .normalize import (
    coerce_autosave_interval,
    coerce_bool,
    coerce_directory,
    coerce_handle,
    coerce_max_memory_count,
    coerce_model,
    coerce_preamble,
)

logger = logging.getLogger(__name__)


class ConfigurationDocument(BaseModel):
    """Complete persisted settings for the research assistant.

    Values read from disk go through the same normalisation as user
    edits, so a hand-edited settings file cannot put the document in a
    state the settings surface could not have produced.
    """

    # API key (at-rest form: ciphertext when secure storage is available)
    api_key_ciphertext: str = Field(
        default="",
        description="Protected API key; empty when no key is saved"
    )
    api_key_saved: bool = Field(
        default=False,
        description="True once the user explicitly confirmed the key"
    )

    # Conversation defaults
    default_model: str = Field(
        default=DEFAULT_MODEL,
        description="Model used when a new conversation starts"
    )
    default_preamble: Optional[str] = Field(
        default=None,
        description="Preamble for new conversations. Null means use the built-in preamble."
    )
    max_memory_count: Optional[int] = Field(
        default=None,
        description="Messages kept in conversation memory, 0 for no limit. Null means use the default."
    )
    user_handle: Optional[str] = Field(
        default=None,
        description="Handle shown next to user messages"
    )
    bot_handle: Optional[str] = Field(
        default=None,
        description="Handle shown next to assistant messages"
    )

    # Conversation history
    conversation_history_directory: str = Field(
        default=DEFAULT_CONVERSATION_DIRECTORY,
        description="Where conversations are saved"
    )
    autosave_conversation_history: bool = Field(
        default=False,
        description="Automatically save conversations"
    )
    autosave_interval: int = Field(
        default=DEFAULT_AUTOSAVE_INTERVAL,
        description="Seconds between autosaves"
    )

    @field_validator("default_model", mode="before")
    @classmethod
    def _known_model(cls, value: Any) -> str:
        return coerce_model(value)

    @field_validator("default_preamble", mode="before")
    @classmethod
    def _preamble(cls, value: Any) -> Optional[str]:
        return coerce_preamble(value)

    @field_validator("max_memory_count", mode="before")
    @classmethod
    def _memory_count(cls, value: Any) -> Optional[int]:
        return coerce_max_memory_count(value)

    @field_validator("user_handle", "bot_handle", mode="before")
    @classmethod
    def _handle(cls, value: Any) -> Optional[str]:
        return coerce_handle(value)

    @field_validator("conversation_history_directory", mode="before")
    @classmethod
    def _directory(cls, value: Any) -> str:
        return coerce_directory(value)

    @field_validator("autosave_conversation_history", "api_key_saved", mode="before")
    @classmethod
    def _toggle(cls, value: Any) -> bool:
        return coerce_bool(value, fallback=False)

    @field_validator("autosave_interval", mode="before")
    @classmethod
    def _interval(cls, value: Any) -> int:
        return coerce_autosave_interval(value)

    @field_validator("api_key_ciphertext", mode="before")
    @classmethod
    def _ciphertext(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @model_validator(mode="after")
    def _api_key_consistency(self) -> "ConfigurationDocument":
        # Ciphertext and the saved flag move together: a key is either
        # confirmed and stored, or absent.
        if not self.api_key_ciphertext:
            self.api_key_saved = False
        elif not self.api_key_saved:
            logger.warning("Dropping unconfirmed API key found in settings document")
            self.api_key_ciphertext = ""
        return self

    @property
    def api_key_state(self) -> ApiKeyState:
        """Persisted API key state (never PENDING)."""
        return ApiKeyState.SAVED if self.api_key_saved else ApiKeyState.UNSET


class ChangeResult(BaseModel):
    """Outcome of an accepted settings write.

    The caller re-renders after awaiting the write; `refresh_display`
    tells it whether the set of visible controls changed.
    """

    field: SettingsField
    value: Any = Field(
        default=None,
        description="Stored value after normalisation (API key changes report the key state)"
    )
    changed: bool = Field(
        default=False,
        description="Whether the stored value differs from before the write"
    )
    invalidated: bool = Field(
        default=False,
        description="Whether open chat sessions were torn down and rebuilt"
    )
    refresh_display: bool = Field(
        default=False,
        description="Whether the settings surface must be redrawn"
    )


class APIKeyStatus(BaseModel):
    """Display-safe view of the API key."""

    state: ApiKeyState
    masked: str = Field(
        default="",
        description='Masked key for placeholders, e.g. "****************abcd"'
    )
    secure_storage: bool = Field(
        description="False when the key is stored without encryption"
    )
    needs_reentry: bool = Field(
        default=False,
        description="The saved key could not be read and must be entered again"
    )
