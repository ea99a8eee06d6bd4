"""Mermaid ER diagram emission, validation and repair."""

from .mermaid import emit, map_data_type, sanitize_name
from .repair import auto_repair
from .validator import ValidationResult, validate

__all__ = ["emit", "map_data_type", "sanitize_name", "auto_repair", "ValidationResult", "validate"]
