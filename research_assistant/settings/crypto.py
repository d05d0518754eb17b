"""Cryptography utilities for secure API key storage.

The platform secure-storage capability is reached only through
CredentialVault, so the "is encryption available" branch lives in one
place. When the capability is missing the key is stored as plaintext;
that is a supported mode, and callers surface it through
`CredentialVault.is_secure`.
"""

import base64
import binascii
import hashlib
import logging
import platform
import sys
from pathlib import Path
from typing import Optional, Protocol

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

# Marks an at-rest value produced by the secure-storage capability
ENCRYPTED_PREFIX = "ENCRYPTED:"
# Escapes an unencrypted key that itself starts with one of the prefixes
PLAINTEXT_PREFIX = "PLAINTEXT:"

MASK_FILLER = "*"
MASK_WIDTH = 16
VISIBLE_SUFFIX = 4
SHORT_KEY_LENGTH = 8


class CryptoError(Exception):
    """Base exception for API key protection."""


class DecryptionError(CryptoError):
    """Raised when the secure-storage capability cannot decrypt a value."""


class RevealMismatchError(CryptoError):
    """Raised when a stored key cannot be read back.

    Happens when the key was protected under a different secure-storage
    state than the current one (encrypted then capability lost, stored in
    plaintext then capability gained, or encrypted on another machine).
    The user has to enter the key again.
    """


class SecureStorage(Protocol):
    """Platform capability that encrypts strings for storage."""

    def is_encryption_available(self) -> bool: ...

    def encrypt_string(self, plaintext: str) -> bytes: ...

    def decrypt_string(self, encrypted: bytes) -> str: ...


def get_machine_id() -> str:
    """Get a machine-specific identifier for key derivation.

    Uses a combination of factors to create a stable machine ID.
    """
    factors = [
        platform.node(),  # Computer network name
        platform.machine(),  # Machine type
        platform.processor(),  # Processor info
    ]

    # Linux: systemd machine id
    machine_id_file = Path("/etc/machine-id")
    if machine_id_file.exists():
        try:
            factors.append(machine_id_file.read_text(encoding="utf-8").strip())
        except OSError:
            logger.debug("Could not read %s", machine_id_file)

    # Windows: machine GUID
    if sys.platform == "win32":
        import winreg

        try:
            key = winreg.OpenKey(
                winreg.HKEY_LOCAL_MACHINE,
                r"SOFTWARE\Microsoft\Cryptography",
                0,
                winreg.KEY_READ | winreg.KEY_WOW64_64KEY
            )
            machine_guid, _ = winreg.QueryValueEx(key, "MachineGuid")
            factors.append(machine_guid)
            winreg.CloseKey(key)
        except OSError:
            logger.debug("Could not read MachineGuid from registry")

    return "|".join(factors)


def derive_encryption_key(secret: Optional[str] = None) -> bytes:
    """Derive a Fernet encryption key.

    Args:
        secret: Key material to derive from. Defaults to the machine id.

    Returns:
        URL-safe base64 encoded 32-byte key suitable for Fernet
    """
    material = secret if secret else get_machine_id()
    salt = b"ai_research_assistant_api_key"

    key_material = hashlib.pbkdf2_hmac(
        "sha256",
        material.encode("utf-8"),
        salt,
        iterations=100000,
        dklen=32
    )

    # Fernet requires URL-safe base64 encoded key
    return base64.urlsafe_b64encode(key_material)


class FernetSecureStorage:
    """Secure storage backed by Fernet with a machine-derived key."""

    def __init__(self, secret: Optional[str] = None):
        self._fernet = Fernet(derive_encryption_key(secret))

    def is_encryption_available(self) -> bool:
        return True

    def encrypt_string(self, plaintext: str) -> bytes:
        return self._fernet.encrypt(plaintext.encode("utf-8"))

    def decrypt_string(self, encrypted: bytes) -> str:
        try:
            return self._fernet.decrypt(encrypted).decode("utf-8")
        except (InvalidToken, UnicodeDecodeError) as e:
            raise DecryptionError("Stored value could not be decrypted") from e


class UnavailableSecureStorage:
    """Secure storage for platforms without an encryption capability."""

    def is_encryption_available(self) -> bool:
        return False

    def encrypt_string(self, plaintext: str) -> bytes:
        raise CryptoError("Secure storage is not available")

    def decrypt_string(self, encrypted: bytes) -> str:
        raise CryptoError("Secure storage is not available")


def build_secure_storage(enabled: bool = True, secret: Optional[str] = None) -> SecureStorage:
    """Pick the secure-storage capability for this process."""
    if not enabled:
        logger.warning("Secure storage disabled: API key will be stored without encryption")
        return UnavailableSecureStorage()
    return FernetSecureStorage(secret)


def mask_api_key(plaintext: str) -> str:
    """Create a masked version of an API key for display.

    Only the last few characters survive. Every key longer than
    SHORT_KEY_LENGTH masks to the same width, and shorter keys mask to a
    fixed run of filler, so the mask does not reveal the key length.

    Args:
        plaintext: The plain API key

    Returns:
        Masked version like "****************abcd", or "" when no key
    """
    if not plaintext:
        return ""

    if len(plaintext) <= SHORT_KEY_LENGTH:
        return MASK_FILLER * SHORT_KEY_LENGTH

    return f"{MASK_FILLER * MASK_WIDTH}{plaintext[-VISIBLE_SUFFIX:]}"


class CredentialVault:
    """Converts the API key between plaintext, at-rest and display forms."""

    def __init__(self, storage: SecureStorage):
        self._storage = storage

    @property
    def is_secure(self) -> bool:
        """Whether keys protected now are encrypted at rest."""
        return self._storage.is_encryption_available()

    def protect(self, plaintext: str) -> str:
        """Convert a plain key into its at-rest form.

        Returns ciphertext when the capability is available, otherwise
        the plaintext unchanged (escaped only if it starts with a prefix).
        """
        if not plaintext:
            return ""

        if not self.is_secure:
            if plaintext.startswith((ENCRYPTED_PREFIX, PLAINTEXT_PREFIX)):
                return f"{PLAINTEXT_PREFIX}{plaintext}"
            return plaintext

        encrypted = self._storage.encrypt_string(plaintext)
        return f"{ENCRYPTED_PREFIX}{base64.b64encode(encrypted).decode('ascii')}"

    def reveal(self, at_rest: str) -> str:
        """Recover the plain key from its at-rest form.

        Raises:
            RevealMismatchError: If the value was protected under a different
                secure-storage state or cannot be decrypted.
        """
        if not at_rest:
            return ""

        escaped = at_rest.startswith(PLAINTEXT_PREFIX)
        encrypted = not escaped and at_rest.startswith(ENCRYPTED_PREFIX)
        secure = self.is_secure

        if encrypted and not secure:
            raise RevealMismatchError("API key is encrypted but secure storage is not available")
        if not encrypted and secure:
            raise RevealMismatchError("API key was stored without encryption")
        if escaped:
            return at_rest[len(PLAINTEXT_PREFIX):]
        if not encrypted:
            return at_rest

        try:
            data = base64.b64decode(at_rest[len(ENCRYPTED_PREFIX):], validate=True)
            return self._storage.decrypt_string(data)
        except (binascii.Error, DecryptionError) as e:
            raise RevealMismatchError("API key could not be decrypted") from e

    def mask(self, plaintext: str) -> str:
        """Display-safe placeholder for a plain key."""
        return mask_api_key(plaintext)
