"""
Helpers for reading admin-authored configuration blobs.

Malformed input never raises: it is logged and treated as empty.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

logger = logging.getLogger(__name__)


def parse_json_object(raw: Any, table_name: str) -> dict[str, Any]:
    """
    Parse a JSON object from admin configuration.

    Accepts JSON text, an already-decoded dict, or None.

    Args:
        raw: JSON text or dict.
        table_name: Name used in log messages.

    Returns:
        dict: Parsed mapping, or {} if the input is missing or malformed.
    """
    if raw is None or raw == "":
        return {}

    if isinstance(raw, dict):
        return raw

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Invalid JSON in {table_name}, treating as empty: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"{table_name} must be a JSON object, got {type(data).__name__}")
        return {}

    return data


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a configured number to Decimal; None if blank or invalid."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        result = Decimal(text)
    except InvalidOperation:
        logger.debug(f"Failed to convert {value!r} to Decimal")
        return None
    if not result.is_finite():
        return None
    return result
