"""Utilities for loading and saving IR from/to JSON files."""

from pathlib import Path
from typing import Type, TypeVar
from pydantic import BaseModel, TypeAdapter
from nl2er.ir.conceptual import ConceptualIR
from nl2er.ir.logical import SchemaIR

ModelT = TypeVar("ModelT", bound=BaseModel)


def _load(model: Type[ModelT], path: Path, kind: str) -> ModelT:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{kind} file not found: {path}")

    content = path.read_text(encoding="utf-8").strip()
    if not content:
        raise ValueError(
            f"{kind} file is empty or corrupted: {path}. "
            f"The file exists but contains no valid JSON data."
        )

    try:
        return TypeAdapter(model).validate_json(content)
    except Exception as e:
        raise ValueError(f"Failed to load {kind} from {path}: {e}") from e


def _save(model: BaseModel, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(model.model_dump_json(indent=2, by_alias=True), encoding="utf-8")


def load_extraction_from_json(path: Path) -> ConceptualIR:
    """
    Load a ConceptualIR from a JSON file (camelCase or snake_case keys).

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty or not a valid extraction
    """
    return _load(ConceptualIR, path, "Extraction")


def save_extraction_to_json(extraction: ConceptualIR, path: Path) -> None:
    """Save a ConceptualIR as camelCase JSON, creating parent directories."""
    _save(extraction, path)


def load_schema_from_json(path: Path) -> SchemaIR:
    """
    Load a SchemaIR from a JSON file (camelCase or snake_case keys).

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty or not a valid schema
    """
    return _load(SchemaIR, path, "Schema")


def save_schema_to_json(schema: SchemaIR, path: Path) -> None:
    """Save a SchemaIR as camelCase JSON, creating parent directories."""
    _save(schema, path)
