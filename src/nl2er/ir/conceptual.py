"""ConceptualIR model for ER-style conceptual design extracted from text."""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Cardinality = Literal[
    "ONE_TO_ONE",
    "ONE_TO_MANY",
    "MANY_TO_ONE",
    "MANY_TO_MANY",
]

Participation = Literal["TOTAL", "PARTIAL"]

_CARDINALITY_SPELLINGS = {
    "1:1": "ONE_TO_ONE",
    "1:N": "ONE_TO_MANY",
    "1:M": "ONE_TO_MANY",
    "N:1": "MANY_TO_ONE",
    "M:1": "MANY_TO_ONE",
    "M:N": "MANY_TO_MANY",
    "N:M": "MANY_TO_MANY",
    "M:M": "MANY_TO_MANY",
}


def normalize_cardinality(value: Optional[str]) -> Optional[str]:
    """
    Normalize loose cardinality spellings to the canonical upper-case form.

    Accepts "one-to-many", "one_to_many", "1:N" and friends. Unknown values
    are returned upper-cased so that validation rejects them.
    """
    if value is None:
        return None
    text = str(value).strip().upper()
    if not text:
        return None
    if text in _CARDINALITY_SPELLINGS:
        return _CARDINALITY_SPELLINGS[text]
    return text.replace("-", "_").replace(" ", "_")


class WireModel(BaseModel):
    """Base model using camelCase keys on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Attribute(WireModel):
    """An attribute of an entity."""

    name: str
    data_type: str = "VARCHAR(255)"
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_nullable: bool = True
    is_unique: bool = False
    default_value: Optional[str] = None
    description: Optional[str] = None


class Entity(WireModel):
    """An entity in the conceptual model."""

    name: str
    description: Optional[str] = None
    attributes: List[Attribute] = Field(default_factory=list)
    is_weak_entity: bool = False
    mention_count: int = 1


class Relationship(WireModel):
    """A relationship between two entities."""

    name: Optional[str] = None
    source_entity: str
    target_entity: str
    type: Optional[Cardinality] = None
    source_participation: Participation = "PARTIAL"
    target_participation: Participation = "PARTIAL"
    is_identifying: bool = False
    description: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        return normalize_cardinality(value)

    @field_validator("source_participation", "target_participation", mode="before")
    @classmethod
    def _normalize_participation(cls, value):
        if value is None:
            return "PARTIAL"
        return str(value).strip().upper()

    def pair_key(self) -> tuple:
        """Directionless identity: unordered entity pair plus relationship type."""
        return (frozenset((self.source_entity, self.target_entity)), self.type)


class ConceptualIR(WireModel):
    """Conceptual ER-style model produced by extraction."""

    entities: List[Entity] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)

    def get_entity(self, name: str) -> Optional[Entity]:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None
