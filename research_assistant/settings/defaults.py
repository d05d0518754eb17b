"""Default settings values and the known model catalogue."""

from typing import Dict, List, Optional


# Models the chat service knows how to talk to
AVAILABLE_MODELS: List[Dict[str, str]] = [
    {"id": "gpt-3.5-turbo", "name": "GPT-3.5 Turbo", "endpoint": "chat", "description": "Fast, affordable chat model"},
    {"id": "gpt-4", "name": "GPT-4", "endpoint": "chat", "description": "Higher quality reasoning, slower and more expensive"},
    {"id": "text-davinci-003", "name": "Davinci 003", "endpoint": "completion", "description": "Legacy completion model"},
]

DEFAULT_MODEL = "gpt-3.5-turbo"


def get_available_models(endpoint: Optional[str] = None) -> List[Dict[str, str]]:
    """Get available models, optionally filtered by endpoint type.

    Args:
        endpoint: Optional endpoint type ("chat" or "completion") to filter by

    Returns:
        List of model info dicts
    """
    if endpoint:
        return [m for m in AVAILABLE_MODELS if m["endpoint"] == endpoint]
    return list(AVAILABLE_MODELS)


def is_known_model(model_id: str) -> bool:
    """Check whether a model id is part of the catalogue."""
    return any(m["id"] == model_id for m in AVAILABLE_MODELS)
