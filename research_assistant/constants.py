"""Plugin-wide constants."""

PLUGIN_NAME = "AI Research Assistant"

# View type of the chat windows; every open view of this type is closed
# when the configuration is invalidated.
PLUGIN_PREFIX = "ai-research-assistant"

USER_HANDLE = "You"
BOT_HANDLE = "Assistant"

DEFAULT_MAX_MEMORY_COUNT = 10
MAX_MEMORY_COUNT_LIMIT = 20  # 0 means "no limit"

DEFAULT_AUTOSAVE_INTERVAL = 15  # seconds
DEFAULT_CONVERSATION_DIRECTORY = f"{PLUGIN_NAME}/Conversations"

OPEN_AI_API_KEY_URL = "https://platform.openai.com/account/api-keys"
