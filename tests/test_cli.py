"""Tests for the command line interface."""

import json

import pytest
from typer.testing import CliRunner
from nl2er.cli.app import app
from nl2er.config.logging import setup_logging

runner = CliRunner()

DESCRIPTION = "Each order belongs to exactly one customer."


@pytest.fixture(autouse=True)
def restore_logging():
    """Commands attach log handlers to the runner's stream; reattach afterwards."""
    yield
    setup_logging()


def test_end2end(tmp_path):
    """Test the end2end command writes all three artifacts."""
    text_file = tmp_path / "description.txt"
    text_file.write_text(DESCRIPTION, encoding="utf-8")
    out_dir = tmp_path / "out"

    result = runner.invoke(app, ["end2end", str(text_file), str(out_dir), "--name", "Shop"])

    assert result.exit_code == 0, result.output
    assert "Complete!" in result.output
    schema = json.loads((out_dir / "schema.json").read_text(encoding="utf-8"))
    assert schema["name"] == "Shop"
    order = next(t for t in schema["tables"] if t["name"] == "order")
    assert any(c["name"] == "customer_id" and c["isForeignKey"] for c in order["columns"])
    assert (out_dir / "extraction.json").exists()
    assert (out_dir / "schema.mmd").read_text(encoding="utf-8").startswith("erDiagram\n")


def test_end2end_without_entities(tmp_path):
    """Test end2end fails when nothing can be extracted."""
    text_file = tmp_path / "description.txt"
    text_file.write_text("   ", encoding="utf-8")

    result = runner.invoke(app, ["end2end", str(text_file), str(tmp_path / "out")])
    assert result.exit_code == 1
    assert not (tmp_path / "out" / "schema.json").exists()


def test_stage_commands(tmp_path):
    """Test extract, synthesize and diagram chained through files."""
    text_file = tmp_path / "description.txt"
    text_file.write_text(DESCRIPTION, encoding="utf-8")
    extraction = tmp_path / "extraction.json"
    schema = tmp_path / "schema.json"
    diagram = tmp_path / "schema.mmd"

    result = runner.invoke(app, ["extract", str(text_file), str(extraction)])
    assert result.exit_code == 0, result.output
    assert len(json.loads(extraction.read_text(encoding="utf-8"))["entities"]) == 2

    result = runner.invoke(app, ["synthesize", str(extraction), str(schema), "--name", "Orders"])
    assert result.exit_code == 0, result.output
    assert json.loads(schema.read_text(encoding="utf-8"))["name"] == "Orders"

    result = runner.invoke(app, ["diagram", str(schema), str(diagram)])
    assert result.exit_code == 0, result.output
    assert '    order }o -- || customer : "belongs to"' in diagram.read_text(encoding="utf-8")

    result = runner.invoke(app, ["validate", str(diagram)])
    assert result.exit_code == 0, result.output


def test_validate_invalid_diagram(tmp_path):
    """Test validate exits with status 1 and lists problems."""
    path = tmp_path / "broken.mmd"
    path.write_text("erDiagram\n    customer {\n        string name\n", encoding="utf-8")

    result = runner.invoke(app, ["validate", str(path)])
    assert result.exit_code == 1
    assert "Unclosed entity definition for 'customer'" in result.output


def test_repair(tmp_path):
    """Test repair writes canonical markup to --out."""
    source = tmp_path / "raw.mmd"
    source.write_text("a{name string}b{id int}", encoding="utf-8")
    target = tmp_path / "fixed.mmd"

    result = runner.invoke(app, ["repair", str(source), "--out", str(target)])
    assert result.exit_code == 0, result.output
    assert target.read_text(encoding="utf-8").startswith("erDiagram\n    a {\n        name string\n    }\n")
    assert source.read_text(encoding="utf-8") == "a{name string}b{id int}"


def test_missing_input_file(tmp_path):
    """Test commands exit with status 1 on missing inputs."""
    result = runner.invoke(app, ["synthesize", str(tmp_path / "nope.json"), str(tmp_path / "schema.json")])
    assert result.exit_code == 1

    result = runner.invoke(app, ["validate", str(tmp_path / "nope.mmd")])
    assert result.exit_code == 1
