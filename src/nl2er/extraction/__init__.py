"""Rule-based natural language extraction of ER concepts."""

from .extractor import RuleBasedExtractor, extract
from .datatypes import infer_data_type
from .tagging import TaggerUnavailable

__all__ = ["RuleBasedExtractor", "extract", "infer_data_type", "TaggerUnavailable"]
