"""
Utility functions for the ABCD objectives wizard.
"""

import time
import uuid
from typing import Iterable

from abcd_wizard.constants import (
    TEMP_OBJECTIVE_PREFIX,
    TEMP_SUBTASK_PREFIX,
    TEMP_TRIAGE_PREFIX,
)

TEMP_PREFIXES = (TEMP_SUBTASK_PREFIX, TEMP_OBJECTIVE_PREFIX, TEMP_TRIAGE_PREFIX)


def new_temp_id(prefix: str) -> str:
    """
    Generate a temporary identifier for an entity the server has not confirmed.

    Args:
        prefix: One of the reserved temp prefixes (e.g. "sub-").

    Returns:
        A unique id such as "sub-1718030400123-3f9a1c".

    Examples:
        >>> new_temp_id("obj-").startswith("obj-")
        True
    """
    millis = int(time.time() * 1000)
    return f"{prefix}{millis}-{uuid.uuid4().hex[:6]}"


def is_temp_id(entity_id: str, prefixes: Iterable[str] = TEMP_PREFIXES) -> bool:
    """
    Check whether an id carries a reserved temporary prefix.

    Args:
        entity_id: The id to check.
        prefixes: Prefixes considered temporary.

    Returns:
        True if the id starts with one of the prefixes.
    """
    if not entity_id:
        return False
    return any(entity_id.startswith(p) for p in prefixes)


def truncate(text: str, limit: int = 60) -> str:
    """
    Shorten text for one-line listings.

    Args:
        text: The text to shorten.
        limit: Maximum number of characters kept before the ellipsis.

    Returns:
        The text unchanged if short enough, otherwise cut with a trailing "…".
    """
    if len(text) <= limit:
        return text
    return text[:limit] + "…"
