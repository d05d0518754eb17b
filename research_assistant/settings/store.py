"""Settings store: owns the configuration document and gates every write."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..constants import (
    BOT_HANDLE,
    DEFAULT_CONVERSATION_DIRECTORY,
    DEFAULT_MAX_MEMORY_COUNT,
    USER_HANDLE,
)
from ..enums import (
    DISPLAY_REFRESH_FIELDS,
    SESSION_INVALIDATING_FIELDS,
    ApiKeyState,
    SettingsField,
)
from ..preambles import assistant_preamble
from .crypto import CredentialVault, RevealMismatchError
from .models import APIKeyStatus, ChangeResult, ConfigurationDocument
from .normalize import (
    coerce_autosave_interval,
    coerce_bool,
    coerce_directory,
    coerce_handle,
    coerce_max_memory_count,
    coerce_model,
    coerce_preamble,
)
from .persistence import SettingsError, SettingsPersistence, SettingsPersistenceError

logger = logging.getLogger(__name__)

SaveOperation = Callable[[ConfigurationDocument], Awaitable[Optional[bool]]]
InvalidationCallback = Callable[[], Awaitable[None]]


class ApiKeyLockedError(SettingsError):
    """Raised when editing a saved API key; it has to be removed first."""


class SettingsStore:
    """Single owner of the configuration document.

    Reads are synchronous and always see the latest in-memory value.
    Writes normalise the input, persist the whole document through the
    injected save operation and, when a session-invalidating field
    changed, await the invalidation callback before returning. Callers
    re-render only after the returned ChangeResult, so what they display
    is durable and dependents are already rebuilt.

    The invalidation callback runs while the store holds its write lock:
    it may read from the store but must not write to it.
    """

    def __init__(
        self,
        document: ConfigurationDocument,
        vault: CredentialVault,
        save: SaveOperation,
        on_configuration_invalidated: Optional[InvalidationCallback] = None,
    ):
        """Initialize the settings store.

        Args:
            document: The loaded configuration document
            vault: Protects the API key at rest and for display
            save: Async whole-document save; raises or returns False on failure
            on_configuration_invalidated: Awaited after a session-invalidating change
        """
        self._document = document
        self._vault = vault
        self._save = save
        self._on_invalidated = on_configuration_invalidated

        # At-rest form of a key the user typed but has not confirmed
        self._pending_api_key: Optional[str] = None
        # Fields whose invalidating change was applied but not yet announced
        self._invalidation_owed: set[SettingsField] = set()
        self._lock = asyncio.Lock()

    @classmethod
    async def open(
        cls,
        persistence: SettingsPersistence,
        vault: CredentialVault,
        on_configuration_invalidated: Optional[InvalidationCallback] = None,
    ) -> "SettingsStore":
        """Load the document through `persistence` and wrap it in a store."""
        document = await persistence.load()
        return cls(document, vault, persistence.save, on_configuration_invalidated)

    def set_invalidation_callback(self, callback: Optional[InvalidationCallback]) -> None:
        """Attach the session-lifecycle callback (it usually needs the store itself)."""
        self._on_invalidated = callback

    # Reads

    @property
    def document(self) -> ConfigurationDocument:
        """Copy of the current document."""
        return self._document.model_copy()

    @property
    def vault(self) -> CredentialVault:
        return self._vault

    @property
    def api_key_state(self) -> ApiKeyState:
        if self._document.api_key_saved:
            return ApiKeyState.SAVED
        if self._pending_api_key is not None:
            return ApiKeyState.PENDING
        return ApiKeyState.UNSET

    def current_value(self, field: Union[SettingsField, str]) -> Any:
        """Get the effective value of a field, with defaults substituted.

        For the API key field this is the key state, never the key.
        """
        field = SettingsField(field)
        doc = self._document

        if field is SettingsField.API_KEY:
            return self.api_key_state
        if field is SettingsField.MAX_MEMORY_COUNT:
            return DEFAULT_MAX_MEMORY_COUNT if doc.max_memory_count is None else doc.max_memory_count
        if field is SettingsField.USER_HANDLE:
            return doc.user_handle or USER_HANDLE
        if field is SettingsField.BOT_HANDLE:
            return doc.bot_handle or BOT_HANDLE
        if field is SettingsField.DEFAULT_PREAMBLE:
            return doc.default_preamble or assistant_preamble()
        if field is SettingsField.CONVERSATION_HISTORY_DIRECTORY:
            return doc.conversation_history_directory or DEFAULT_CONVERSATION_DIRECTORY
        return getattr(doc, field.value)

    def effective_values(self) -> Dict[str, Any]:
        """Effective values of every field except the API key."""
        return {
            field.value: self.current_value(field)
            for field in SettingsField
            if field is not SettingsField.API_KEY
        }

    def api_key(self) -> str:
        """Get the saved API key in plaintext, or "" when none is saved.

        Raises:
            RevealMismatchError: If the stored key cannot be read back.
        """
        if not self._document.api_key_saved:
            return ""
        return self._vault.reveal(self._document.api_key_ciphertext)

    def api_key_status(self) -> APIKeyStatus:
        """Display-safe API key status for the settings surface."""
        state = self.api_key_state
        masked = ""
        needs_reentry = False

        if state is ApiKeyState.SAVED:
            try:
                masked = self._vault.mask(self.api_key())
            except RevealMismatchError as e:
                logger.error(f"Saved API key could not be read: {e}")
                needs_reentry = True

        return APIKeyStatus(
            state=state,
            masked=masked,
            secure_storage=self._vault.is_secure,
            needs_reentry=needs_reentry,
        )

    # Field writes

    async def apply_change(self, field: Union[SettingsField, str], raw_value: Any) -> ChangeResult:
        """Normalise, store and persist a single field.

        If the save fails the new value stays in memory and
        SettingsPersistenceError is raised; issuing the same write again
        retries the save and still delivers any invalidation that was owed.

        Raises:
            ValueError: For unknown fields and for the API key field.
            SettingsPersistenceError: If the document could not be saved.
        """
        field = SettingsField(field)
        if field is SettingsField.API_KEY:
            raise ValueError("The API key is set with set_pending_api_key() and confirm_api_key()")

        async with self._lock:
            value = self._coerce(field, raw_value)
            before = self.current_value(field)

            self._document = self._document.model_copy(update={field.value: value})
            changed = self.current_value(field) != before
            if changed and field in SESSION_INVALIDATING_FIELDS:
                self._invalidation_owed.add(field)

            await self._persist(self._document)
            logger.info(f"Setting '{field}' saved")

            invalidated = await self._settle_invalidation(field)

        return ChangeResult(
            field=field,
            value=value,
            changed=changed,
            invalidated=invalidated,
            refresh_display=field in DISPLAY_REFRESH_FIELDS,
        )

    def _coerce(self, field: SettingsField, raw_value: Any) -> Any:
        if field is SettingsField.DEFAULT_MODEL:
            return coerce_model(raw_value)
        if field is SettingsField.DEFAULT_PREAMBLE:
            return coerce_preamble(raw_value)
        if field is SettingsField.MAX_MEMORY_COUNT:
            return coerce_max_memory_count(raw_value)
        if field in (SettingsField.USER_HANDLE, SettingsField.BOT_HANDLE):
            return coerce_handle(raw_value)
        if field is SettingsField.CONVERSATION_HISTORY_DIRECTORY:
            return coerce_directory(raw_value)
        if field is SettingsField.AUTOSAVE_CONVERSATION_HISTORY:
            return coerce_bool(raw_value, fallback=self._document.autosave_conversation_history)
        if field is SettingsField.AUTOSAVE_INTERVAL:
            return coerce_autosave_interval(raw_value)
        raise ValueError(f"Unhandled settings field: {field}")

    # API key: pending -> confirm, remove

    def set_pending_api_key(self, plaintext: str) -> ApiKeyState:
        """Hold a key the user is typing, already in its at-rest form.

        Nothing is persisted until confirm_api_key().

        Raises:
            ApiKeyLockedError: If a key is already saved.
        """
        if self._document.api_key_saved:
            raise ApiKeyLockedError("Remove the saved API key before entering a new one")

        self._pending_api_key = self._vault.protect(plaintext) or None
        return self.api_key_state

    def discard_pending_api_key(self) -> ApiKeyState:
        """Abandon the key being typed; nothing was persisted."""
        self._pending_api_key = None
        return self.api_key_state

    async def confirm_api_key(self) -> ChangeResult:
        """Save the pending key.

        The in-memory document only advances once the save succeeded; on
        failure the pending key is kept so the confirmation can be retried.

        Raises:
            SettingsPersistenceError: If the document could not be saved.
        """
        async with self._lock:
            pending = self._pending_api_key

            if not pending:
                # Nothing typed: stays in its current persisted state
                await self._persist(self._document)
                return ChangeResult(
                    field=SettingsField.API_KEY,
                    value=self.api_key_state,
                    refresh_display=True,
                )

            updated = self._document.model_copy(update={
                "api_key_ciphertext": pending,
                "api_key_saved": True,
            })
            await self._persist(updated)

            self._document = updated
            self._pending_api_key = None
            self._invalidation_owed.add(SettingsField.API_KEY)
            logger.info(
                "API key saved" if self._vault.is_secure
                else "API key saved without encryption (secure storage unavailable)"
            )

            invalidated = await self._settle_invalidation(SettingsField.API_KEY)

        return ChangeResult(
            field=SettingsField.API_KEY,
            value=ApiKeyState.SAVED,
            changed=True,
            invalidated=invalidated,
            refresh_display=True,
        )

    async def remove_api_key(self) -> ChangeResult:
        """Clear the saved key. Removing when no key is saved still persists.

        Raises:
            SettingsPersistenceError: If the document could not be saved.
        """
        async with self._lock:
            was_saved = self._document.api_key_saved

            updated = self._document.model_copy(update={
                "api_key_ciphertext": "",
                "api_key_saved": False,
            })
            await self._persist(updated)

            self._document = updated
            self._pending_api_key = None
            if was_saved:
                self._invalidation_owed.add(SettingsField.API_KEY)
                logger.info("API key removed")

            invalidated = await self._settle_invalidation(SettingsField.API_KEY)

        return ChangeResult(
            field=SettingsField.API_KEY,
            value=ApiKeyState.UNSET,
            changed=was_saved,
            invalidated=invalidated,
            refresh_display=True,
        )

    # Internals

    async def _persist(self, document: ConfigurationDocument) -> None:
        try:
            result = await self._save(document.model_copy())
        except OSError as e:
            logger.error(f"Settings save failed: {e}")
            raise SettingsPersistenceError(f"Could not save settings: {e}") from e

        if result is False:
            logger.error("Settings save reported failure")
            raise SettingsPersistenceError("Could not save settings")

    async def _settle_invalidation(self, field: SettingsField) -> bool:
        """Notify dependents if an invalidating change to `field` is now durable.

        A single notification covers every field still owed.
        """
        if field not in self._invalidation_owed:
            return False

        self._invalidation_owed.clear()
        if self._on_invalidated is None:
            logger.debug("No invalidation callback attached")
            return False

        await self._on_invalidated()
        return True
