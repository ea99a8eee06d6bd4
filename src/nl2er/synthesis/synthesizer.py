"""Turn a ConceptualIR into a relational SchemaIR."""

from typing import Any, Dict, Optional, Union
from pydantic import ValidationError
from .naming import column_name, foreign_key_column, junction_table, table_name
from nl2er.ir.conceptual import ConceptualIR, Entity, Relationship
from nl2er.ir.logical import (
    ColumnSpec,
    Position,
    ReferenceSpec,
    RelationshipSpec,
    SchemaIR,
    TableSpec,
)
from nl2er.config.logging import get_logger

logger = get_logger(__name__)

GRID_COLUMNS = 3
GRID_ORIGIN = 100
GRID_DX = 350
GRID_DY = 250

_TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def synthesize(
    extraction: Union[ConceptualIR, Dict[str, Any]],
    name: str = "New Schema",
    description: str = "",
) -> SchemaIR:
    """
    Build a relational schema from extracted concepts.

    Entities become tables, one-to-many / many-to-one / one-to-one
    relationships become foreign key columns and many-to-many relationships
    become junction tables. Relationships naming an unknown entity are dropped.

    Args:
        extraction: ConceptualIR or its JSON-shaped dict
        name: Schema name
        description: Schema description

    Returns:
        SchemaIR; empty when the extraction cannot be read
    """
    conceptual = _coerce_extraction(extraction)
    schema = SchemaIR(name=name, description=description)
    if conceptual is None:
        return schema

    # Entity name -> table name for every entity that made it into the schema
    entity_tables: Dict[str, str] = {}
    for entity in conceptual.entities:
        table = _table_from_entity(entity)
        if table is None:
            continue
        if schema.get_table(table.name) is not None:
            logger.debug(f"Entity '{entity.name}' merges into existing table '{table.name}'")
        else:
            schema.tables.append(table)
        entity_tables.setdefault(entity.name, table.name)

    # Tables from entities come first in the grid, junction tables after
    entity_table_count = len(schema.tables)

    for relationship in conceptual.relationships:
        source = _resolve_table(schema, entity_tables, relationship.source_entity)
        target = _resolve_table(schema, entity_tables, relationship.target_entity)
        if source is None or target is None:
            logger.debug(
                f"Dropping relationship {relationship.source_entity} -> "
                f"{relationship.target_entity}: unknown entity"
            )
            continue
        _wire_relationship(schema, relationship, source, target)

    for index, table in enumerate(schema.tables):
        table.position = Position(
            x=GRID_ORIGIN + (index % GRID_COLUMNS) * GRID_DX,
            y=GRID_ORIGIN + (index // GRID_COLUMNS) * GRID_DY,
        )

    logger.info(
        f"Synthesized schema '{name}' with {entity_table_count} entity tables, "
        f"{len(schema.tables) - entity_table_count} junction tables and "
        f"{len(schema.relationships)} relationships"
    )
    return schema


def _coerce_extraction(extraction: Any) -> Optional[ConceptualIR]:
    if isinstance(extraction, ConceptualIR):
        return extraction
    if isinstance(extraction, dict):
        try:
            return ConceptualIR.model_validate(extraction)
        except ValidationError as e:
            logger.warning(f"Unreadable extraction, producing an empty schema: {e}")
            return None
    logger.warning(f"Cannot synthesize from {type(extraction).__name__}, producing an empty schema")
    return None


def _table_from_entity(entity: Entity) -> Optional[TableSpec]:
    name = table_name(entity.name)
    if not name:
        logger.debug(f"Skipping entity with unusable name {entity.name!r}")
        return None

    columns = []
    for attribute in entity.attributes:
        col_name = column_name(attribute.name)
        if not col_name or any(c.name == col_name for c in columns):
            continue
        columns.append(
            ColumnSpec(
                name=col_name,
                data_type=attribute.data_type,
                is_primary_key=attribute.is_primary_key,
                is_foreign_key=attribute.is_foreign_key,
                is_nullable=attribute.is_nullable and not attribute.is_primary_key,
                is_unique=attribute.is_unique or attribute.is_primary_key,
                default_value=attribute.default_value,
                description=attribute.description or f"{attribute.name} field",
            )
        )

    return TableSpec(
        name=name,
        columns=columns,
        description=entity.description or f"Table for {entity.name}",
        is_weak_entity=entity.is_weak_entity,
    )


def _resolve_table(schema: SchemaIR, entity_tables: Dict[str, str], entity_name: str) -> Optional[TableSpec]:
    name = entity_tables.get(entity_name) or table_name(entity_name or "")
    return schema.get_table(name) if name else None


def _reference_to(table: TableSpec) -> ReferenceSpec:
    return ReferenceSpec(table=table.name, column=table.primary_key, on_delete="CASCADE", on_update="CASCADE")


def _key_type(table: TableSpec) -> str:
    key = table.primary_key_column or table.get_column(table.primary_key)
    return key.data_type if key is not None else "INTEGER"


def _add_foreign_key(table: TableSpec, column: str, referenced: TableSpec, unique: bool = False) -> ColumnSpec:
    """
    Add a nullable cascading foreign key column, or upgrade an existing
    column of that name in place.
    """
    existing = table.get_column(column)
    if existing is not None:
        existing.is_foreign_key = True
        if existing.references is None:
            existing.references = _reference_to(referenced)
        existing.is_unique = existing.is_unique or unique
        return existing

    fk = ColumnSpec(
        name=column,
        data_type=_key_type(referenced),
        is_foreign_key=True,
        is_nullable=True,
        is_unique=unique,
        references=_reference_to(referenced),
        description=f"Foreign key reference to {referenced.name}",
    )
    # Keep the audit timestamps last
    position = next(
        (i for i, c in enumerate(table.columns) if c.name in _TIMESTAMP_COLUMNS),
        len(table.columns),
    )
    table.columns.insert(position, fk)
    return fk


def _fk_name(owner: TableSpec, referenced: TableSpec) -> str:
    if owner.name == referenced.name:
        return f"related_{foreign_key_column(referenced.name)}"
    return foreign_key_column(referenced.name)


def _relationship_spec(
    relationship: Relationship,
    source: TableSpec,
    target: TableSpec,
    source_column: str,
    target_column: str,
    **overrides: Any,
) -> RelationshipSpec:
    fields = dict(
        name=relationship.name or ("has" if relationship.type == "ONE_TO_MANY" else "relates_to"),
        source_table=source.name,
        target_table=target.name,
        source_entity=relationship.source_entity,
        target_entity=relationship.target_entity,
        source_column=source_column,
        target_column=target_column,
        type=relationship.type,
        is_identifying=relationship.is_identifying,
        source_participation=relationship.source_participation,
        target_participation=relationship.target_participation,
        description=relationship.description or f"Relationship between {source.name} and {target.name}",
    )
    fields.update(overrides)
    return RelationshipSpec(**fields)


def _wire_relationship(schema: SchemaIR, relationship: Relationship, source: TableSpec, target: TableSpec) -> None:
    kind = relationship.type

    if kind == "ONE_TO_MANY":
        fk = _add_foreign_key(target, _fk_name(target, source), source)
        schema.relationships.append(
            _relationship_spec(relationship, source, target, source.primary_key, fk.name)
        )
    elif kind == "MANY_TO_ONE":
        fk = _add_foreign_key(source, _fk_name(source, target), target)
        schema.relationships.append(
            _relationship_spec(relationship, source, target, fk.name, target.primary_key)
        )
    elif kind == "ONE_TO_ONE":
        fk = _add_foreign_key(source, _fk_name(source, target), target, unique=True)
        schema.relationships.append(
            _relationship_spec(relationship, source, target, fk.name, target.primary_key)
        )
    elif kind == "MANY_TO_MANY":
        _add_junction(schema, relationship, source, target)
    else:
        # Untyped relationships are recorded without structural wiring
        schema.relationships.append(
            _relationship_spec(relationship, source, target, source.primary_key, target.primary_key)
        )


def _add_junction(schema: SchemaIR, relationship: Relationship, source: TableSpec, target: TableSpec) -> None:
    name = junction_table(source.name, target.name)
    source_fk = foreign_key_column(source.name)
    target_fk = _fk_name(source, target)

    junction = schema.get_table(name)
    if junction is None:
        junction = TableSpec(
            name=name,
            columns=[
                _junction_column(source_fk, source),
                _junction_column(target_fk, target),
                ColumnSpec(
                    name="created_at",
                    data_type="TIMESTAMP",
                    is_nullable=False,
                    default_value="CURRENT_TIMESTAMP",
                    description="Creation timestamp",
                ),
            ],
            description=f"Junction table linking {source.name} and {target.name}",
            is_junction=True,
        )
        schema.tables.append(junction)
    else:
        # An entity already claimed the name; link it instead of shadowing it
        _add_foreign_key(junction, source_fk, source)
        _add_foreign_key(junction, target_fk, target)

    schema.relationships.append(
        _relationship_spec(relationship, source, target, source.primary_key, target.primary_key)
    )
    for side, fk in ((source, source_fk), (target, target_fk)):
        schema.relationships.append(
            _relationship_spec(
                relationship,
                side,
                junction,
                side.primary_key,
                fk,
                name="has",
                type="ONE_TO_MANY",
                is_identifying=True,
                source_entity=side.name,
                target_entity=junction.name,
                source_participation="PARTIAL",
                target_participation="PARTIAL",
                description=f"Derived from many-to-many {source.name} - {target.name}",
            )
        )


def _junction_column(name: str, referenced: TableSpec) -> ColumnSpec:
    return ColumnSpec(
        name=name,
        data_type=_key_type(referenced),
        is_primary_key=True,
        is_foreign_key=True,
        is_nullable=False,
        references=_reference_to(referenced),
        description=f"Foreign key reference to {referenced.name}",
    )
