"""Mermaid ER diagram emission from a SchemaIR."""

import re
from typing import Any, Dict, List, Tuple
from pydantic import ValidationError
from .grammar import BLOCK_INDENT, BODY_INDENT, HEADER
from .repair import auto_repair
from .validator import DEFAULT_MAX_ENTITIES, DEFAULT_MAX_RELATIONSHIPS, validate
from nl2er.ir.logical import ColumnSpec, RelationshipSpec, SchemaIR, TableSpec
from nl2er.config.logging import get_logger

logger = get_logger(__name__)

# Cardinality -> (left glyph, right glyph)
GLYPHS: Dict[str, Tuple[str, str]] = {
    "ONE_TO_ONE": ("||", "||"),
    "ONE_TO_MANY": ("||", "o{"),
    "MANY_TO_ONE": ("}o", "||"),
    "MANY_TO_MANY": ("}o", "o{"),
}
DEFAULT_GLYPHS = ("||", "||")

# Words Mermaid's parser treats specially
MERMAID_KEYWORDS = frozenset(
    ["end", "graph", "subgraph", "class", "classdef", "style", "direction", "click", "erdiagram"]
)


def sanitize_name(name: str) -> str:
    """Lower-case identifier safe to use as a Mermaid entity or attribute name."""
    if not name:
        return "unnamed"
    sanitized = re.sub(r"[^\w]", "_", name).lower()
    if sanitized in MERMAID_KEYWORDS:
        sanitized += "_entity"
    return sanitized


def map_data_type(data_type: str) -> str:
    """Collapse a SQL type into one of Mermaid's display types."""
    if not data_type:
        return "string"
    lower = data_type.lower()
    if any(word in lower for word in ("int", "number", "decimal", "numeric", "float", "double", "real")):
        return "number"
    if any(word in lower for word in ("char", "text", "string", "uuid", "json")):
        return "string"
    if "date" in lower or "time" in lower:
        return "date"
    if "bool" in lower:
        return "boolean"
    return "string"


def _column_line(column: ColumnSpec) -> str:
    key = "PK" if column.is_primary_key else ("FK" if column.is_foreign_key else "")
    line = f"{BODY_INDENT}{map_data_type(column.data_type)} {sanitize_name(column.name)}"
    return f"{line} {key}" if key else line


def _table_block(table: TableSpec) -> List[str]:
    lines = [f"{BLOCK_INDENT}{sanitize_name(table.name)} {{"]
    lines.extend(_column_line(column) for column in table.columns)
    lines.append(f"{BLOCK_INDENT}}}")
    return lines


def _relationship_line(relationship: RelationshipSpec) -> str:
    if relationship.type in GLYPHS:
        left, right = GLYPHS[relationship.type]
    else:
        logger.debug(
            f"Relationship '{relationship.name}' has no cardinality, drawing it as one-to-one"
        )
        left, right = DEFAULT_GLYPHS
    label = (relationship.name or "relates").replace('"', "'")
    return (
        f"{BLOCK_INDENT}{sanitize_name(relationship.source_table)} {left} -- {right} "
        f'{sanitize_name(relationship.target_table)} : "{label}"'
    )


def emit(
    schema: Any,
    max_entities: int = DEFAULT_MAX_ENTITIES,
    max_relationships: int = DEFAULT_MAX_RELATIONSHIPS,
) -> str:
    """
    Render a schema as Mermaid ER markup.

    The markup is passed through auto-repair and then validated; when the
    validator reports problems they are appended as ``%%`` comment lines so
    the diagram still renders.

    Args:
        schema: SchemaIR or its JSON-shaped dict
        max_entities: Entity count above which a size warning is added
        max_relationships: Relationship count above which a size warning is added

    Returns:
        Mermaid markup ending with a newline
    """
    if isinstance(schema, dict):
        try:
            schema = SchemaIR.model_validate(schema)
        except ValidationError as e:
            logger.warning(f"Unreadable schema, emitting an empty diagram: {e}")
            schema = SchemaIR()
    elif not isinstance(schema, SchemaIR):
        logger.warning(f"Cannot emit a diagram for {type(schema).__name__}, emitting an empty diagram")
        schema = SchemaIR()

    lines = [HEADER]
    for table in schema.tables:
        lines.extend(_table_block(table))
        lines.append("")
    lines.extend(_relationship_line(rel) for rel in schema.relationships)

    text = auto_repair("\n".join(lines))
    result = validate(text, max_entities=max_entities, max_relationships=max_relationships)
    if not result.is_valid:
        logger.warning(f"Diagram for '{schema.name}' has {len(result.errors)} validation warnings")
        text += f"\n{BLOCK_INDENT}%% Validation Warnings:\n"
        for error in result.errors:
            text += f"{BLOCK_INDENT}%% - {' '.join(error.split())}\n"
    return text
