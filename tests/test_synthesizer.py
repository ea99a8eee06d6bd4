"""Tests for schema synthesis."""

from nl2er.ir.conceptual import Attribute, ConceptualIR, Entity, Relationship
from nl2er.ir.validators import validate_schema
from nl2er.synthesis import column_name, synthesize, table_name


def test_table_name():
    """Test entity names become snake_case identifiers."""
    assert table_name("OrderItem") == "order_item"
    assert table_name("Line Item") == "line_item"
    assert table_name("HTTPRequest") == "http_request"
    assert table_name("3dModel") == "_3d_model"
    assert table_name("e-mail!") == "e_mail"
    assert column_name("phoneNumber") == "phone_number"


def test_entities_become_tables(shop_extraction):
    """Test every entity becomes a table in order, junctions last."""
    schema = synthesize(shop_extraction, name="Shop", description="Online shop")

    assert schema.name == "Shop"
    assert schema.description == "Online shop"
    assert schema.table_names() == ["customer", "order", "product", "user", "profile", "order_product"]

    customer = schema.get_table("customer")
    assert customer.description == "Table for Customer"
    assert customer.get_column("name").description == "name field"
    key = customer.get_column("id")
    assert key.is_primary_key and key.is_unique and not key.is_nullable


def test_one_to_many_adds_foreign_key_on_target(shop_extraction):
    """Test Customer 1:N Order puts customer_id on order."""
    schema = synthesize(shop_extraction)

    order = schema.get_table("order")
    assert [c.name for c in order.columns] == ["id", "status", "customer_id", "created_at"]
    fk = order.get_column("customer_id")
    assert fk.is_foreign_key
    assert fk.is_nullable
    assert fk.data_type == "INTEGER"
    assert fk.references.table == "customer"
    assert fk.references.column == "id"
    assert fk.references.on_delete == "CASCADE"
    assert fk.references.on_update == "CASCADE"
    assert fk.description == "Foreign key reference to customer"

    rel = schema.relationships[0]
    assert rel.name == "places"
    assert (rel.source_table, rel.target_table) == ("customer", "order")
    assert (rel.source_column, rel.target_column) == ("id", "customer_id")
    assert rel.type == "ONE_TO_MANY"


def test_one_to_one_adds_unique_foreign_key_on_source(shop_extraction):
    """Test User 1:1 Profile puts a unique profile_id on user."""
    schema = synthesize(shop_extraction)

    fk = schema.get_table("user").get_column("profile_id")
    assert fk.is_foreign_key and fk.is_unique
    assert fk.references.table == "profile"

    rel = next(r for r in schema.relationships if r.type == "ONE_TO_ONE")
    assert rel.name == "relates_to"
    assert (rel.source_column, rel.target_column) == ("profile_id", "id")
    assert rel.description == "Relationship between user and profile"


def test_many_to_many_builds_junction(shop_extraction):
    """Test Order M:N Product becomes order_product with two key columns."""
    schema = synthesize(shop_extraction)

    junction = schema.get_table("order_product")
    assert junction.is_junction
    assert [c.name for c in junction.columns] == ["order_id", "product_id", "created_at"]
    for column, referenced in (("order_id", "order"), ("product_id", "product")):
        col = junction.get_column(column)
        assert col.is_primary_key and col.is_foreign_key and not col.is_nullable
        assert col.references.table == referenced

    # Neither side table gains a foreign key
    assert schema.get_table("product").get_column("order_id") is None

    related = [r for r in schema.relationships if r.target_table == "order_product" or r.type == "MANY_TO_MANY"]
    assert len(related) == 3
    many = next(r for r in related if r.type == "MANY_TO_MANY")
    assert (many.source_table, many.target_table) == ("order", "product")
    derived = [r for r in related if r.target_table == "order_product"]
    assert {r.source_table for r in derived} == {"order", "product"}
    assert all(r.name == "has" and r.type == "ONE_TO_MANY" and r.is_identifying for r in derived)
    assert {r.target_column for r in derived} == {"order_id", "product_id"}


def test_synthesized_schema_passes_qa(shop_extraction):
    """Test a synthesized schema has no structural issues."""
    assert validate_schema(synthesize(shop_extraction)) == []


def test_grid_positions(shop_extraction):
    """Test tables are laid out on a three-column grid."""
    schema = synthesize(shop_extraction)
    positions = [(t.position.x, t.position.y) for t in schema.tables]
    assert positions[0] == (100, 100)
    assert positions[2] == (800, 100)
    assert positions[3] == (100, 350)
    assert positions[5] == (800, 350)


def test_many_to_one_adds_foreign_key_on_source():
    """Test Order M:1 Customer puts customer_id on order."""
    extraction = ConceptualIR(
        entities=[Entity(name="Order"), Entity(name="Customer")],
        relationships=[
            Relationship(name="belongs to", source_entity="Order", target_entity="Customer", type="MANY_TO_ONE")
        ],
    )
    schema = synthesize(extraction)

    assert schema.get_table("order").get_column("customer_id").references.table == "customer"
    rel = schema.relationships[0]
    assert (rel.source_column, rel.target_column) == ("customer_id", "id")


def test_existing_column_is_upgraded_in_place():
    """Test an extracted customer_id attribute becomes the foreign key."""
    extraction = ConceptualIR(
        entities=[
            Entity(name="Customer", attributes=[Attribute(name="id", data_type="INTEGER", is_primary_key=True)]),
            Entity(
                name="Order",
                attributes=[
                    Attribute(name="id", data_type="INTEGER", is_primary_key=True),
                    Attribute(name="customer_id", data_type="INTEGER"),
                ],
            ),
        ],
        relationships=[Relationship(source_entity="Customer", target_entity="Order", type="ONE_TO_MANY")],
    )
    schema = synthesize(extraction)

    order = schema.get_table("order")
    assert [c.name for c in order.columns] == ["id", "customer_id"]
    assert order.get_column("customer_id").is_foreign_key
    assert order.get_column("customer_id").references.table == "customer"
    assert schema.relationships[0].name == "has"


def test_self_referencing_relationships():
    """Test self relationships use a related_ prefix."""
    extraction = ConceptualIR(
        entities=[
            Entity(name="Employee", attributes=[Attribute(name="id", data_type="INTEGER", is_primary_key=True)]),
            Entity(name="Person", attributes=[Attribute(name="id", data_type="INTEGER", is_primary_key=True)]),
        ],
        relationships=[
            Relationship(name="manages", source_entity="Employee", target_entity="Employee", type="ONE_TO_MANY"),
            Relationship(name="knows", source_entity="Person", target_entity="Person", type="MANY_TO_MANY"),
        ],
    )
    schema = synthesize(extraction)

    assert schema.get_table("employee").get_column("related_employee_id") is not None
    junction = schema.get_table("person_person")
    assert [c.name for c in junction.columns] == ["person_id", "related_person_id", "created_at"]
    assert validate_schema(schema) == []


def test_dangling_relationship_is_dropped():
    """Test relationships to unknown entities are ignored."""
    extraction = ConceptualIR(
        entities=[Entity(name="Customer")],
        relationships=[Relationship(source_entity="Customer", target_entity="Ghost", type="ONE_TO_MANY")],
    )
    schema = synthesize(extraction)
    assert schema.table_names() == ["customer"]
    assert schema.relationships == []


def test_untyped_relationship_is_recorded_without_columns():
    """Test a relationship without cardinality adds no foreign key."""
    extraction = ConceptualIR(
        entities=[Entity(name="A", attributes=[Attribute(name="id", is_primary_key=True)]), Entity(name="B")],
        relationships=[Relationship(source_entity="A", target_entity="B")],
    )
    schema = synthesize(extraction)

    assert len(schema.relationships) == 1
    assert schema.relationships[0].type is None
    assert schema.relationships[0].name == "relates_to"
    assert all(not c.is_foreign_key for t in schema.tables for c in t.columns)


def test_entities_with_same_table_name_merge():
    """Test 'OrderItem' and 'Order Item' share one table."""
    extraction = ConceptualIR(entities=[Entity(name="OrderItem"), Entity(name="Order Item")])
    assert synthesize(extraction).table_names() == ["order_item"]


def test_existing_table_with_junction_name_gets_foreign_keys():
    """Test an entity already named like the junction is linked, not shadowed."""
    extraction = ConceptualIR(
        entities=[
            Entity(name="Order", attributes=[Attribute(name="id", is_primary_key=True)]),
            Entity(name="Product", attributes=[Attribute(name="id", is_primary_key=True)]),
            Entity(name="OrderProduct", attributes=[Attribute(name="quantity", data_type="INTEGER")]),
        ],
        relationships=[Relationship(source_entity="Order", target_entity="Product", type="MANY_TO_MANY")],
    )
    schema = synthesize(extraction)

    assert schema.table_names() == ["order", "product", "order_product"]
    table = schema.get_table("order_product")
    assert [c.name for c in table.columns] == ["quantity", "order_id", "product_id"]
    assert table.get_column("order_id").references.table == "order"


def test_weak_entity_flag_carries_over():
    """Test weak entities become weak tables."""
    extraction = ConceptualIR(entities=[Entity(name="Room", is_weak_entity=True)])
    assert synthesize(extraction).get_table("room").is_weak_entity


def test_dict_input_matches_model_input(shop_extraction):
    """Test JSON-shaped input synthesizes the same schema."""
    from_dict = synthesize(shop_extraction.model_dump(by_alias=True), name="Shop")
    from_model = synthesize(shop_extraction, name="Shop")
    assert from_dict == from_model


def test_unreadable_input_gives_empty_schema():
    """Test bad input never raises."""
    schema = synthesize({"entities": "not a list"}, name="Broken")
    assert schema.name == "Broken"
    assert schema.tables == []
    assert schema.relationships == []

    assert synthesize(None).tables == []
    assert synthesize(ConceptualIR()).tables == []
