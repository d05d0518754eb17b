"""Settings package for the research assistant."""

from .models import ConfigurationDocument, ChangeResult, APIKeyStatus
from .store import SettingsStore, ApiKeyLockedError
from .persistence import JsonSettingsFile, SettingsError, SettingsPersistenceError
from .defaults import AVAILABLE_MODELS, DEFAULT_MODEL, get_available_models
from .crypto import (
    CredentialVault,
    CryptoError,
    DecryptionError,
    FernetSecureStorage,
    RevealMismatchError,
    UnavailableSecureStorage,
    build_secure_storage,
    mask_api_key,
)

__all__ = [
    "ConfigurationDocument",
    "ChangeResult",
    "APIKeyStatus",
    "SettingsStore",
    "ApiKeyLockedError",
    "JsonSettingsFile",
    "SettingsError",
    "SettingsPersistenceError",
    "AVAILABLE_MODELS",
    "DEFAULT_MODEL",
    "get_available_models",
    "CredentialVault",
    "CryptoError",
    "DecryptionError",
    "FernetSecureStorage",
    "RevealMismatchError",
    "UnavailableSecureStorage",
    "build_secure_storage",
    "mask_api_key",
]
