"""Utility functions for common operations."""

from .ir_io import (
    load_extraction_from_json,
    load_schema_from_json,
    save_extraction_to_json,
    save_schema_to_json,
)

__all__ = [
    "load_extraction_from_json",
    "load_schema_from_json",
    "save_extraction_to_json",
    "save_schema_to_json",
]
