"""Tests for text helpers, tagging and data type inference."""

import pytest
from nl2er.extraction.datatypes import infer_data_type
from nl2er.extraction.tagging import (
    TaggerUnavailable,
    heuristic_noun_positions,
    noun_positions,
    tag_tokens,
)
from nl2er.extraction.text import (
    canonical_entity_name,
    is_entity_word,
    singularize,
    split_sentences,
    strip_possessives,
    to_snake_case,
    tokenize,
)


def test_split_sentences():
    """Test sentences split on punctuation, semicolons and newlines."""
    assert split_sentences("One. Two!\nThree; four?") == ["One", "Two", "Three", "four"]
    assert split_sentences("   ") == []


def test_tokenize_drops_possessives():
    """Test possessive suffixes are removed before tokenizing."""
    assert strip_possessives("the customer's email") == "the customer email"
    assert tokenize("A customer's order is 1:N.") == ["A", "customer", "order", "is", "1", "N"]


@pytest.mark.parametrize(
    "plural,singular",
    [
        ("courses", "course"),
        ("categories", "category"),
        ("boxes", "box"),
        ("status", "status"),
        ("people", "person"),
        ("classes", "class"),
        ("bus", "bus"),
    ],
)
def test_singularize(plural, singular):
    """Test plural reduction."""
    assert singularize(plural) == singular


def test_canonical_entity_name():
    """Test entity names are singular TitleCase."""
    assert canonical_entity_name("order_items") == "OrderItem"
    assert canonical_entity_name("Customers") == "Customer"
    assert canonical_entity_name("") == ""


def test_to_snake_case():
    """Test attribute identifiers."""
    assert to_snake_case("phoneNumber") == "phone_number"
    assert to_snake_case("Phone Number") == "phone_number"


def test_is_entity_word():
    """Test stopwords, generic nouns and attribute words are not entities."""
    assert is_entity_word("customer")
    assert not is_entity_word("many")
    assert not is_entity_word("system")
    assert not is_entity_word("email")
    assert not is_entity_word("one-to-many")
    assert not is_entity_word("ab", min_length=3)


def test_tag_tokens_without_tagger():
    """Test a missing tagger is reported."""
    with pytest.raises(TaggerUnavailable):
        tag_tokens(["a", "b"], None)


def test_tag_tokens_checks_length():
    """Test a tagger must tag every token."""
    with pytest.raises(TaggerUnavailable):
        tag_tokens(["a", "b"], lambda tokens: [("a", "DT")])


def test_noun_positions():
    """Test NN* tags are nouns."""
    tagged = tag_tokens(["The", "dogs", "bark"], lambda tokens: [("The", "DT"), ("dogs", "NNS"), ("bark", "VBP")])
    assert noun_positions(tagged) == [1]


def test_heuristic_noun_positions():
    """Test nouns are guessed after determiners and quantifiers."""
    tokens = ["A", "student", "enrolls", "in", "many", "courses"]
    assert heuristic_noun_positions(tokens) == [1, 5]


def test_heuristic_without_determiners():
    """Test long non-stopword tokens are used when no determiner anchors."""
    assert heuristic_noun_positions(["Doctors", "treat", "patients"]) == [0, 1, 2]


@pytest.mark.parametrize(
    "name,expected",
    [
        ("id", "INTEGER"),
        ("customer_id", "INTEGER"),
        ("is_full_time", "BOOLEAN"),
        ("active", "BOOLEAN"),
        ("created_at", "TIMESTAMP"),
        ("birthday", "TIMESTAMP"),
        ("price", "DECIMAL(10,2)"),
        ("phone_number", "VARCHAR(20)"),
        ("email", "VARCHAR(255)"),
        ("bio", "TEXT"),
        ("quantity", "INTEGER"),
        ("paid", "VARCHAR(255)"),
        ("feedback", "VARCHAR(255)"),
        ("candidate", "VARCHAR(255)"),
        ("taxonomy", "VARCHAR(255)"),
        ("tax", "DECIMAL(10,2)"),
        ("order_total", "DECIMAL(10,2)"),
        ("shipping_fee", "DECIMAL(10,2)"),
        ("start_date", "TIMESTAMP"),
        ("birthdate", "TIMESTAMP"),
        ("name", "VARCHAR(255)"),
    ],
)
def test_infer_data_type(name, expected):
    """Test name-based data type inference."""
    assert infer_data_type(name) == expected
