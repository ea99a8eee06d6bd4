"""Shared fixtures for nl2er tests."""

import pytest
from nl2er.ir.conceptual import Attribute, ConceptualIR, Entity, Relationship


def make_tagger(nouns):
    """Tagger that marks the given words (or their plural forms) as nouns."""
    nouns = {n.lower() for n in nouns}

    def tag(tokens):
        tagged = []
        for token in tokens:
            lower = token.lower()
            is_noun = lower in nouns or (lower.endswith("s") and lower[:-1] in nouns)
            tagged.append((token, "NN" if is_noun else "VB"))
        return tagged

    return tag


@pytest.fixture
def tagger_for():
    """Factory fixture: ``tagger_for("student", "course")``."""
    return lambda *nouns: make_tagger(nouns)


def _keyed_entity(name, *extra):
    return Entity(
        name=name,
        attributes=[
            Attribute(name="id", data_type="INTEGER", is_primary_key=True, is_nullable=False, is_unique=True),
            *[Attribute(name=a) for a in extra],
            Attribute(name="created_at", data_type="TIMESTAMP", is_nullable=False),
        ],
    )


@pytest.fixture
def shop_extraction():
    """Customer 1:N Order, Order M:N Product, User 1:1 Profile."""
    return ConceptualIR(
        entities=[
            _keyed_entity("Customer", "name"),
            _keyed_entity("Order", "status"),
            _keyed_entity("Product", "title"),
            _keyed_entity("User"),
            _keyed_entity("Profile", "bio"),
        ],
        relationships=[
            Relationship(name="places", source_entity="Customer", target_entity="Order", type="ONE_TO_MANY"),
            Relationship(name="contains", source_entity="Order", target_entity="Product", type="MANY_TO_MANY"),
            Relationship(source_entity="User", target_entity="Profile", type="ONE_TO_ONE"),
        ],
    )
