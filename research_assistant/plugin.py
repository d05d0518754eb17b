"""Plugin activation: wires settings, secure storage and chat sessions together."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import Config
from .settings import CredentialVault, JsonSettingsFile, SettingsStore, build_secure_storage
from .sessions import ChatViewRegistry, SessionLifecycle

logger = logging.getLogger(__name__)


@dataclass
class Plugin:
    """Everything that lives for the duration of the plugin process."""

    store: SettingsStore
    sessions: SessionLifecycle

    async def deactivate(self) -> None:
        await self.sessions.shutdown()


async def activate(
    settings_path: Optional[Path] = None,
    vault: Optional[CredentialVault] = None,
) -> Plugin:
    """Load settings and start the chat service.

    Args:
        settings_path: Settings file. Defaults to Config.SETTINGS_PATH.
        vault: Credential vault. Defaults to one built from Config.
    """
    for issue in Config.validate():
        logger.warning(f"Configuration issue: {issue}")

    if vault is None:
        vault = CredentialVault(build_secure_storage(
            enabled=Config.secure_storage_enabled(),
            secret=Config.SECURE_STORAGE_SECRET or None,
        ))

    persistence = JsonSettingsFile(settings_path or Config.get_settings_path())
    store = await SettingsStore.open(persistence, vault)

    sessions = SessionLifecycle(store, ChatViewRegistry())
    store.set_invalidation_callback(sessions.invalidate)
    await sessions.initialize_chat_service()

    logger.info(f"Settings loaded from {persistence.path}")
    return Plugin(store=store, sessions=sessions)
