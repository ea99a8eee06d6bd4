"""Logical relational schema model produced by synthesis."""

from typing import List, Literal, Optional
from pydantic import Field, field_validator
from .conceptual import Cardinality, Participation, WireModel, normalize_cardinality

ReferentialAction = Literal["CASCADE", "SET NULL", "RESTRICT", "NO ACTION"]


class ReferenceSpec(WireModel):
    """Non-owning back-reference from a column to another table's key."""

    table: str
    column: str
    on_delete: ReferentialAction = "NO ACTION"
    on_update: ReferentialAction = "NO ACTION"


class ColumnSpec(WireModel):
    """Specification for a database column."""

    name: str
    data_type: str = "VARCHAR(255)"
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_nullable: bool = True
    is_unique: bool = False
    default_value: Optional[str] = None
    references: Optional[ReferenceSpec] = None
    description: Optional[str] = None


class Position(WireModel):
    """Layout coordinates; not part of the relational structure."""

    x: float = 0
    y: float = 0


class TableSpec(WireModel):
    """Specification for a database table."""

    name: str
    columns: List[ColumnSpec] = Field(default_factory=list)
    description: Optional[str] = None
    is_junction: bool = False
    is_weak_entity: bool = False
    position: Position = Field(default_factory=Position)

    def get_column(self, name: str) -> Optional[ColumnSpec]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    @property
    def primary_key_column(self) -> Optional[ColumnSpec]:
        """First column flagged as primary key, if any."""
        for column in self.columns:
            if column.is_primary_key:
                return column
        return None

    @property
    def primary_key(self) -> str:
        """Primary key column name; ``id`` by convention when none is flagged."""
        column = self.primary_key_column
        return column.name if column is not None else "id"


class RelationshipSpec(WireModel):
    """A relationship between two tables."""

    name: str
    source_table: str
    target_table: str
    source_entity: Optional[str] = None
    target_entity: Optional[str] = None
    source_column: str
    target_column: str
    type: Optional[Cardinality] = None
    is_identifying: bool = False
    source_participation: Participation = "PARTIAL"
    target_participation: Participation = "PARTIAL"
    description: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        return normalize_cardinality(value)


class SchemaIR(WireModel):
    """Root aggregate: ordered tables and relationships."""

    name: str = "New Schema"
    description: str = ""
    tables: List[TableSpec] = Field(default_factory=list)
    relationships: List[RelationshipSpec] = Field(default_factory=list)
    version: int = 1

    def get_table(self, name: str) -> Optional[TableSpec]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def table_names(self) -> List[str]:
        return [table.name for table in self.tables]

    def remove_table(self, name: str, cascade: bool = False) -> bool:
        """
        Remove a table and detach everything that depends on it.

        Relationships touching the table are dropped. Foreign key columns in
        other tables that reference it are dropped when ``cascade`` is set,
        otherwise their reference is cleared and the column is kept.

        Args:
            name: Table name
            cascade: Drop dependent foreign key columns instead of nulling them

        Returns:
            True if the table existed
        """
        table = self.get_table(name)
        if table is None:
            return False

        self.tables = [t for t in self.tables if t.name != name]
        self.relationships = [
            rel
            for rel in self.relationships
            if rel.source_table != name and rel.target_table != name
        ]

        for other in self.tables:
            kept = []
            for column in other.columns:
                if column.references is not None and column.references.table == name:
                    if cascade:
                        continue
                    column.references = None
                    column.is_foreign_key = False
                kept.append(column)
            other.columns = kept
        return True
