"""Input normalisation for settings fields.

Writes are permissive: anything outside a field's domain is clamped or
replaced by a default instead of being rejected, so none of these
functions raise.
"""

import logging
import math
from typing import Any, Optional

from ..constants import DEFAULT_AUTOSAVE_INTERVAL, MAX_MEMORY_COUNT_LIMIT
from .defaults import DEFAULT_MODEL, is_known_model

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def _to_number(raw: Any) -> Optional[float]:
    """Parse a number from user input, or None if it is not one."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def coerce_autosave_interval(raw: Any) -> int:
    """Seconds between autosaves; falls back to the default when unparsable or not positive."""
    number = _to_number(raw)
    if number is None or number < 1 or math.isinf(number):
        logger.debug("autosave_interval input not a positive number, using default")
        return DEFAULT_AUTOSAVE_INTERVAL
    return int(number)


def coerce_max_memory_count(raw: Any) -> Optional[int]:
    """Clamp to [0, MAX_MEMORY_COUNT_LIMIT]. Unparsable input leaves the field unset."""
    number = _to_number(raw)
    if number is None:
        return None
    clamped = max(0, min(MAX_MEMORY_COUNT_LIMIT, number))
    if clamped != number:
        logger.debug("max_memory_count clamped to %s", int(clamped))
    return int(clamped)


def coerce_model(raw: Any) -> str:
    """Model ids outside the catalogue fall back to the default model."""
    model = str(raw).strip() if raw is not None else ""
    if is_known_model(model):
        return model
    logger.debug("Unknown model '%s', using %s", model, DEFAULT_MODEL)
    return DEFAULT_MODEL


def coerce_handle(raw: Any) -> Optional[str]:
    """Display handle; blank means unset so the default handle applies."""
    if raw is None:
        return None
    handle = str(raw).strip()
    return handle or None


def coerce_preamble(raw: Any) -> Optional[str]:
    """Preamble text is kept verbatim unless it is blank."""
    if raw is None:
        return None
    preamble = str(raw)
    return preamble if preamble.strip() else None


def coerce_directory(raw: Any) -> str:
    # No existence check; the path is resolved by whoever writes conversations.
    return "" if raw is None else str(raw).strip()


def coerce_bool(raw: Any, fallback: bool) -> bool:
    """Parse a toggle value, keeping `fallback` when the input is not a boolean."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    logger.debug("Unparsable toggle value %r, keeping %s", raw, fallback)
    return fallback
