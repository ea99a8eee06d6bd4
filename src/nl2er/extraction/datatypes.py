"""Name-pattern data type classifier for extracted attributes."""

import re
from typing import Tuple

_NOT_IDENTIFIERS = frozenset(["paid", "valid", "invalid", "void", "android", "squid", "humid"])
# Words that contain "date" or "time" without naming a point in time
_NOT_TEMPORAL = frozenset(
    ["candidate", "mandate", "update", "validate", "accommodate", "runtime", "lifetime", "overtime"]
)

_TEMPORAL_WORDS = ("date", "time", "birthday", "dob", "deadline")
_MONETARY_WORDS = ("price", "cost", "amount", "salary", "balance", "wage", "revenue", "discount")
# Short words that only count as whole _-separated parts ("fee" but not "feedback")
_MONETARY_PARTS = ("fee", "fees", "tax", "taxes", "total", "subtotal")
_BOOLEAN_PREFIXES = ("is_", "has_", "can_", "should_", "allow_", "allows_")
_BOOLEAN_NAMES = frozenset(["active", "enabled", "disabled", "verified", "deleted", "published", "archived"])
_TEXT_WORDS = ("description", "content", "text", "body", "notes", "bio", "summary", "comment")
_COUNT_WORDS = ("quantity", "count", "age", "number", "stock", "capacity", "year")


def _is_identifier(name: str) -> bool:
    if name == "id" or name.endswith("_id"):
        return True
    return bool(re.fullmatch(r"[a-z]+id", name)) and name not in _NOT_IDENTIFIERS


def _has_part(name: str, words: Tuple[str, ...]) -> bool:
    parts = name.split("_")
    return any(word in parts for word in words)


def _is_temporal(name: str) -> bool:
    if name.endswith(("_at", "_on")) or name == "timestamp":
        return True
    parts = [part for part in name.split("_") if part not in _NOT_TEMPORAL]
    return any(word in part for part in parts for word in _TEMPORAL_WORDS)


def infer_data_type(attribute_name: str) -> str:
    """
    Infer a SQL data type from an attribute name.

    Args:
        attribute_name: Attribute name in any case or separator style

    Returns:
        SQL-like type string, VARCHAR(255) when nothing matches
    """
    name = attribute_name.strip().lower().replace(" ", "_").replace("-", "_")

    if _is_identifier(name):
        return "INTEGER"
    # Prefix is the stronger signal: is_full_time is a flag, not a timestamp
    if name.startswith(_BOOLEAN_PREFIXES) or name in _BOOLEAN_NAMES:
        return "BOOLEAN"
    if _is_temporal(name):
        return "TIMESTAMP"
    if any(word in name for word in _MONETARY_WORDS) or _has_part(name, _MONETARY_PARTS):
        return "DECIMAL(10,2)"
    if "phone" in name or "mobile" in name:
        return "VARCHAR(20)"
    if "email" in name:
        return "VARCHAR(255)"
    if any(word in name for word in _TEXT_WORDS):
        return "TEXT"
    if _has_part(name, _COUNT_WORDS):
        return "INTEGER"
    return "VARCHAR(255)"
