"""Tests for IR JSON loading and saving."""

import json

import pytest
from nl2er.ir.conceptual import Attribute, ConceptualIR, Entity, Relationship
from nl2er.synthesis import synthesize
from nl2er.utils.ir_io import (
    load_extraction_from_json,
    load_schema_from_json,
    save_extraction_to_json,
    save_schema_to_json,
)


def test_extraction_round_trip(tmp_path, shop_extraction):
    """Test saving and loading an extraction."""
    path = tmp_path / "nested" / "extraction.json"
    save_extraction_to_json(shop_extraction, path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["entities"][0]["attributes"][0]["isPrimaryKey"] is True
    assert data["relationships"][0]["sourceEntity"] == "Customer"

    assert load_extraction_from_json(path) == shop_extraction


def test_schema_round_trip(tmp_path, shop_extraction):
    """Test saving and loading a schema."""
    schema = synthesize(shop_extraction, name="Shop")
    path = tmp_path / "schema.json"
    save_schema_to_json(schema, path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["tables"][5]["isJunction"] is True
    assert load_schema_from_json(path) == schema


def test_load_snake_case_keys(tmp_path):
    """Test snake_case keys are accepted as well."""
    path = tmp_path / "extraction.json"
    path.write_text(
        json.dumps(
            {
                "entities": [{"name": "Room", "is_weak_entity": True}],
                "relationships": [{"source_entity": "Room", "target_entity": "Building", "type": "N:1"}],
            }
        ),
        encoding="utf-8",
    )
    extraction = load_extraction_from_json(path)
    assert extraction == ConceptualIR(
        entities=[Entity(name="Room", is_weak_entity=True)],
        relationships=[Relationship(source_entity="Room", target_entity="Building", type="MANY_TO_ONE")],
    )


def test_load_missing_file(tmp_path):
    """Test a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_schema_from_json(tmp_path / "missing.json")


def test_load_empty_file(tmp_path):
    """Test an empty file raises ValueError."""
    path = tmp_path / "empty.json"
    path.write_text("   \n", encoding="utf-8")
    with pytest.raises(ValueError, match="empty or corrupted"):
        load_extraction_from_json(path)


@pytest.mark.parametrize("content", ["{not json", '{"entities": [{"attributes": []}]}'])
def test_load_invalid_file(tmp_path, content):
    """Test malformed JSON and invalid models raise ValueError."""
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError, match="Failed to load Extraction"):
        load_extraction_from_json(path)


def test_save_keeps_attribute_defaults(tmp_path):
    """Test default values survive a round trip."""
    extraction = ConceptualIR(
        entities=[Entity(name="Order", attributes=[Attribute(name="status", default_value="pending")])]
    )
    path = tmp_path / "extraction.json"
    save_extraction_to_json(extraction, path)
    loaded = load_extraction_from_json(path)
    assert loaded.entities[0].attributes[0].default_value == "pending"
