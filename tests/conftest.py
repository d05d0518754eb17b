"""
Shared test fixtures for the research assistant test suite.

Provides:
- FakeSecureStorage: reversible stand-in for the platform capability,
  with a switch to make it "unavailable"
- MemoryPersistence: in-memory settings persistence that can be told to fail
- InvalidationRecorder: counts configuration invalidations
"""

import pytest

from research_assistant.settings import (
    ConfigurationDocument,
    CredentialVault,
    SettingsPersistenceError,
    SettingsStore,
)
from research_assistant.settings.crypto import DecryptionError

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeSecureStorage:
    """Deterministic secure storage (reverses the text behind a marker)."""

    MARKER = b"enc:"

    def __init__(self, available: bool = True):
        self.available = available

    def is_encryption_available(self) -> bool:
        return self.available

    def encrypt_string(self, plaintext: str) -> bytes:
        return self.MARKER + plaintext[::-1].encode("utf-8")

    def decrypt_string(self, encrypted: bytes) -> str:
        if not encrypted.startswith(self.MARKER):
            raise DecryptionError("not produced by FakeSecureStorage")
        return encrypted[len(self.MARKER):].decode("utf-8")[::-1]


class MemoryPersistence:
    """Keeps the 'persisted' document in memory and records every save."""

    def __init__(self, document: ConfigurationDocument | None = None):
        self.document = document or ConfigurationDocument()
        self.saves: list[ConfigurationDocument] = []
        self.fail = False

    async def load(self) -> ConfigurationDocument:
        return self.document.model_copy()

    async def save(self, document: ConfigurationDocument) -> None:
        if self.fail:
            raise SettingsPersistenceError("disk full")
        self.document = document
        self.saves.append(document)


class InvalidationRecorder:
    """Async callable that counts how often it was awaited."""

    def __init__(self):
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def secure_storage():
    """Available fake secure storage."""
    return FakeSecureStorage()


@pytest.fixture
def vault(secure_storage):
    return CredentialVault(secure_storage)


@pytest.fixture
def persistence():
    return MemoryPersistence()


@pytest.fixture
def invalidations():
    return InvalidationRecorder()


@pytest.fixture
def store(persistence, vault, invalidations):
    """SettingsStore over the in-memory persistence with a recording callback."""
    return SettingsStore(persistence.document, vault, persistence.save, invalidations)
