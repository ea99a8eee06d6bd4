"""Validators for synthesized schemas."""

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Literal
from .logical import SchemaIR
from nl2er.config.logging import get_logger

logger = get_logger(__name__)


@dataclass
class QaIssue:
    """QA issue found during schema validation."""

    stage: Literal["Schema", "Relationship"]
    code: str  # e.g., "MISSING_PK", "FK_REF_TABLE_MISSING"
    location: str  # e.g., "table_name" or "table_name.column_name"
    message: str
    details: dict = field(default_factory=dict)


def validate_schema(schema: SchemaIR) -> List[QaIssue]:
    """
    Check keys, foreign key targets and junction tables of a schema.

    Args:
        schema: SchemaIR to validate

    Returns:
        List of QaIssue objects (empty if validation passes)
    """
    issues: List[QaIssue] = []
    tables = {t.name: t for t in schema.tables}

    for name, count in Counter(t.name for t in schema.tables).items():
        if count > 1:
            issues.append(
                QaIssue(
                    stage="Schema",
                    code="DUPLICATE_TABLE",
                    location=name,
                    message=f"{name}: table defined {count} times",
                    details={"table": name, "count": count},
                )
            )

    for table in schema.tables:
        column_names = [c.name for c in table.columns]

        if table.primary_key_column is None:
            # "id" is assumed by convention, so only flag it when absent too
            if "id" not in column_names:
                issues.append(
                    QaIssue(
                        stage="Schema",
                        code="MISSING_PK",
                        location=table.name,
                        message=f"{table.name}: no primary key column and no 'id' column",
                        details={"table": table.name},
                    )
                )

        for col_name, count in Counter(column_names).items():
            if count > 1:
                issues.append(
                    QaIssue(
                        stage="Schema",
                        code="DUPLICATE_COLUMN",
                        location=f"{table.name}.{col_name}",
                        message=f"{table.name}: column '{col_name}' defined {count} times",
                        details={"table": table.name, "column": col_name},
                    )
                )

        for column in table.columns:
            if column.references is None:
                continue
            ref = column.references
            if ref.table not in tables:
                issues.append(
                    QaIssue(
                        stage="Schema",
                        code="FK_REF_TABLE_MISSING",
                        location=f"{table.name}.{column.name}",
                        message=f"{table.name}: foreign key '{column.name}' references "
                        f"missing table '{ref.table}'",
                        details={
                            "table": table.name,
                            "fk_column": column.name,
                            "ref_table": ref.table,
                        },
                    )
                )
                continue
            ref_table = tables[ref.table]
            if ref_table.get_column(ref.column) is None and ref.column != ref_table.primary_key:
                issues.append(
                    QaIssue(
                        stage="Schema",
                        code="FK_REF_COL_MISSING",
                        location=f"{table.name}.{column.name}",
                        message=f"{table.name}: foreign key '{column.name}' references "
                        f"'{ref.table}.{ref.column}' which does not exist",
                        details={
                            "table": table.name,
                            "fk_column": column.name,
                            "ref_table": ref.table,
                            "ref_column": ref.column,
                        },
                    )
                )

    for rel in schema.relationships:
        for side in (rel.source_table, rel.target_table):
            if side not in tables:
                issues.append(
                    QaIssue(
                        stage="Relationship",
                        code="REL_TABLE_MISSING",
                        location=rel.name,
                        message=f"Relationship '{rel.name}' references missing table '{side}'",
                        details={"relationship": rel.name, "table": side},
                    )
                )

        if rel.type != "MANY_TO_MANY":
            continue
        junction_name = f"{rel.source_table}_{rel.target_table}"
        junction = tables.get(junction_name)
        fk_targets = (
            sorted(c.references.table for c in junction.columns if c.is_foreign_key and c.references)
            if junction is not None
            else []
        )
        if fk_targets != sorted([rel.source_table, rel.target_table]):
            issues.append(
                QaIssue(
                    stage="Relationship",
                    code="JUNCTION_INCOMPLETE",
                    location=junction_name,
                    message=f"Many-to-many relationship '{rel.name}' needs junction table "
                    f"'{junction_name}' with foreign keys to '{rel.source_table}' and "
                    f"'{rel.target_table}'",
                    details={"relationship": rel.name, "found": fk_targets},
                )
            )

    if issues:
        logger.debug(f"Schema validation found {len(issues)} issues")
    return issues
