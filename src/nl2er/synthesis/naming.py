"""Identifier rules for tables and columns."""

import re

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def table_name(entity_name: str) -> str:
    """
    Convert an entity name to a table identifier.

    "OrderItem" -> "order_item", "Line Item" -> "line_item",
    "3dModel" -> "_3d_model".
    """
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", entity_name.strip())
    name = _CAMEL_BOUNDARY.sub(r"\1_\2", name)
    name = re.sub(r"[\s\-]+", "_", name).lower()
    name = re.sub(r"[^a-z0-9_]", "", name)
    name = re.sub(r"_+", "_", name).strip("_")
    if name[:1].isdigit():
        name = "_" + name
    return name


def column_name(attribute_name: str) -> str:
    """Column identifiers follow the same rules as table identifiers."""
    return table_name(attribute_name)


def foreign_key_column(referenced_table: str) -> str:
    return f"{referenced_table}_id"


def junction_table(source_table: str, target_table: str) -> str:
    return f"{source_table}_{target_table}"
