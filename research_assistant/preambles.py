"""Preamble text used to open a conversation."""

from .constants import PLUGIN_NAME


def assistant_preamble() -> str:
    """Fallback preamble used when the user has not set a default one."""
    return (
        f"You are {PLUGIN_NAME}, a helpful assistant for researchers and prompt "
        "engineers. Answer clearly and concisely. When you are unsure, say so "
        "instead of guessing, and point out any assumptions you make."
    )
