"""Schema synthesis from extracted concepts."""

from .synthesizer import synthesize
from .naming import table_name, column_name

__all__ = ["synthesize", "table_name", "column_name"]
