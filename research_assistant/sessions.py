"""Chat session lifecycle.

Open chat views and the chat service are built from the settings
document. When a session-invalidating setting changes, the settings
store awaits SessionLifecycle.invalidate(), which closes every open chat
view and rebuilds the chat service from the current settings.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import PLUGIN_PREFIX
from .enums import SettingsField
from .settings.crypto import RevealMismatchError
from .settings.store import SettingsStore

logger = logging.getLogger(__name__)


@dataclass
class ChatView:
    """An open window of some view type."""

    view_type: str
    view_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    closed: bool = False


class ChatViewRegistry:
    """Tracks the views currently open in the workspace."""

    def __init__(self):
        self._views: Dict[str, ChatView] = {}

    def open_view(self, view_type: str = PLUGIN_PREFIX) -> ChatView:
        view = ChatView(view_type=view_type)
        self._views[view.view_id] = view
        return view

    def views_of_type(self, view_type: str = PLUGIN_PREFIX) -> List[ChatView]:
        return [v for v in self._views.values() if v.view_type == view_type]

    def detach_views_of_type(self, view_type: str = PLUGIN_PREFIX) -> int:
        """Close and forget every view of `view_type`. Returns how many were closed."""
        detached = self.views_of_type(view_type)
        for view in detached:
            view.closed = True
            del self._views[view.view_id]
        return len(detached)


@dataclass
class ChatServiceConfig:
    """Snapshot of the settings a chat service is built from."""

    model: str
    preamble: str
    max_memory_count: int  # 0 = no limit
    user_handle: str
    bot_handle: str
    conversation_history_directory: str
    autosave: bool
    autosave_interval: int

    @classmethod
    def from_store(cls, store: SettingsStore) -> "ChatServiceConfig":
        return cls(
            model=store.current_value(SettingsField.DEFAULT_MODEL),
            preamble=store.current_value(SettingsField.DEFAULT_PREAMBLE),
            max_memory_count=store.current_value(SettingsField.MAX_MEMORY_COUNT),
            user_handle=store.current_value(SettingsField.USER_HANDLE),
            bot_handle=store.current_value(SettingsField.BOT_HANDLE),
            conversation_history_directory=store.current_value(
                SettingsField.CONVERSATION_HISTORY_DIRECTORY
            ),
            autosave=store.current_value(SettingsField.AUTOSAVE_CONVERSATION_HISTORY),
            autosave_interval=store.current_value(SettingsField.AUTOSAVE_INTERVAL),
        )


class ChatService:
    """Chat backend configured from settings.

    Holds an OpenAI client when an API key is available; without one the
    service exists but is not ready to send messages.
    """

    def __init__(self, config: ChatServiceConfig, api_key: str = ""):
        self.config = config
        self._client = None
        if api_key:
            self._init_client(api_key)

    def _init_client(self, api_key: str):
        """Initialize the OpenAI client."""
        import openai
        self._client = openai.AsyncOpenAI(api_key=api_key)

    @property
    def client(self):
        return self._client

    @property
    def is_ready(self) -> bool:
        return self._client is not None

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class SessionLifecycle:
    """Owns the chat service and tears down views when settings change."""

    def __init__(self, store: SettingsStore, views: Optional[ChatViewRegistry] = None):
        self._store = store
        self._views = views if views is not None else ChatViewRegistry()
        self._chat_service: Optional[ChatService] = None
        self.reset_count = 0

    @property
    def views(self) -> ChatViewRegistry:
        return self._views

    @property
    def chat_service(self) -> Optional[ChatService]:
        return self._chat_service

    async def initialize_chat_service(self) -> ChatService:
        """(Re)build the chat service from the current settings."""
        if self._chat_service is not None:
            await self._chat_service.close()

        config = ChatServiceConfig.from_store(self._store)
        try:
            api_key = self._store.api_key()
        except RevealMismatchError as e:
            logger.warning(f"Chat service started without an API key: {e}")
            api_key = ""

        self._chat_service = ChatService(config, api_key=api_key)
        logger.info(
            f"Chat service initialized (model={config.model}, "
            f"ready={self._chat_service.is_ready})"
        )
        return self._chat_service

    async def invalidate(self) -> None:
        """Close all open chat views, then rebuild the chat service."""
        closed = self._views.detach_views_of_type(PLUGIN_PREFIX)
        logger.info(f"Settings changed: closed {closed} chat view(s)")
        await self.initialize_chat_service()
        self.reset_count += 1

    async def shutdown(self) -> None:
        if self._chat_service is not None:
            await self._chat_service.close()
            self._chat_service = None
