"""Typer CLI application."""

import typer
from pathlib import Path

from nl2er.config.logging import setup_logging
from nl2er.diagram.mermaid import emit
from nl2er.diagram.repair import auto_repair
from nl2er.diagram.validator import validate
from nl2er.ir.validators import validate_schema
from nl2er.pipeline import PipelineConfig, extract_with_config, run_pipeline
from nl2er.synthesis.synthesizer import synthesize
from nl2er.utils.ir_io import (
    load_extraction_from_json,
    load_schema_from_json,
    save_extraction_to_json,
    save_schema_to_json,
)

app = typer.Typer(help="NL2ER: Natural Language to Entity-Relationship Schemas")


def _read_text(path: Path) -> str:
    if not path.exists():
        typer.echo(f"Error: file not found: {path}", err=True)
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


def _write_text(path: Path, text: str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@app.command()
def extract(text_file: Path, out_json: Path):
    """
    Extract entities, attributes and relationships from a description.

    Args:
        text_file: Path to natural language description file
        out_json: Output path for the extraction JSON
    """
    setup_logging()
    config = PipelineConfig.from_settings()

    typer.echo(f"Reading description from {text_file}")
    extraction = extract_with_config(_read_text(text_file), config)

    typer.echo(f"Writing extraction to {out_json}")
    save_extraction_to_json(extraction, Path(out_json))

    typer.echo(
        f"✓ Complete! {len(extraction.entities)} entities, "
        f"{len(extraction.relationships)} relationships"
    )


@app.command("synthesize")
def synthesize_schema(
    extraction_json: Path,
    out_schema: Path,
    name: str = typer.Option("New Schema", help="Schema name"),
    description: str = typer.Option("", help="Schema description"),
):
    """
    Build a relational schema from an extraction JSON file.

    Args:
        extraction_json: Path to extraction JSON file
        out_schema: Output path for the schema JSON
    """
    setup_logging()

    typer.echo(f"Loading extraction from {extraction_json}")
    try:
        extraction = load_extraction_from_json(Path(extraction_json))
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    schema = synthesize(extraction, name=name, description=description)
    for issue in validate_schema(schema):
        typer.echo(f"  [{issue.code}] {issue.message}")

    typer.echo(f"Writing schema to {out_schema}")
    save_schema_to_json(schema, Path(out_schema))
    typer.echo(f"✓ Complete! {len(schema.tables)} tables, {len(schema.relationships)} relationships")


@app.command()
def diagram(schema_json: Path, out_mmd: Path):
    """
    Render a schema JSON file as a Mermaid ER diagram.

    Args:
        schema_json: Path to schema JSON file
        out_mmd: Output path for the Mermaid markup
    """
    setup_logging()
    config = PipelineConfig.from_settings()

    typer.echo(f"Loading schema from {schema_json}")
    try:
        schema = load_schema_from_json(Path(schema_json))
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    text = emit(
        schema,
        max_entities=config.max_diagram_entities,
        max_relationships=config.max_diagram_relationships,
    )
    typer.echo(f"Writing diagram to {out_mmd}")
    _write_text(Path(out_mmd), text)
    typer.echo(f"✓ Complete! Diagram written to {out_mmd}")


@app.command("validate")
def validate_diagram(mmd_file: Path):
    """
    Validate a Mermaid ER diagram; exits with status 1 when it is invalid.

    Args:
        mmd_file: Path to Mermaid markup
    """
    setup_logging()
    config = PipelineConfig.from_settings()

    result = validate(
        _read_text(mmd_file),
        max_entities=config.max_diagram_entities,
        max_relationships=config.max_diagram_relationships,
    )
    if result.is_valid:
        typer.echo(f"✓ {mmd_file} is valid")
        return

    typer.echo(f"✗ {mmd_file} has {len(result.errors)} problems:")
    for error in result.errors:
        typer.echo(f"  - {error}")
    raise typer.Exit(1)


@app.command()
def repair(
    mmd_file: Path,
    out: Path = typer.Option(None, help="Write the repaired diagram here instead of in place"),
):
    """
    Auto-repair a Mermaid ER diagram.

    Args:
        mmd_file: Path to Mermaid markup
        out: Optional output path, defaults to rewriting the input file
    """
    setup_logging()

    repaired = auto_repair(_read_text(mmd_file))
    target = Path(out) if out is not None else Path(mmd_file)
    _write_text(target, repaired)

    result = validate(repaired)
    typer.echo(f"✓ Repaired diagram written to {target}")
    if not result.is_valid:
        typer.echo(f"  {len(result.errors)} problems remain; run 'nl2er validate {target}' for details")


@app.command()
def end2end(
    text_file: Path,
    out_dir: Path,
    name: str = typer.Option("New Schema", help="Schema name"),
    description: str = typer.Option("", help="Schema description"),
):
    """
    Run the end-to-end pipeline: text → extraction → schema → diagram.

    Args:
        text_file: Path to natural language description file
        out_dir: Output directory for extraction, schema and diagram
    """
    setup_logging()

    typer.echo(f"Reading description from {text_file}")
    text = _read_text(text_file)

    typer.echo("Running NL → ER pipeline...")
    result = run_pipeline(text, name=name, description=description, config=PipelineConfig.from_settings())

    if not result.extraction.entities:
        typer.echo("Error: no entities found in the description", err=True)
        raise typer.Exit(1)

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    save_extraction_to_json(result.extraction, out_dir / "extraction.json")
    save_schema_to_json(result.schema, out_dir / "schema.json")
    _write_text(out_dir / "schema.mmd", result.diagram)

    typer.echo(f"✓ Complete! Output directory: {out_dir}")
    typer.echo(f"  Tables: {len(result.schema.tables)}")
    typer.echo(f"  Relationships: {len(result.schema.relationships)}")
    typer.echo(f"  Diagram valid: {result.validation.is_valid}")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
