"""End-to-end text -> extraction -> schema -> diagram pipeline."""

from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional
from pydantic import BaseModel, ConfigDict, ValidationError
from nl2er.config.settings import Settings, get_settings
from nl2er.config.logging import get_logger
from nl2er.diagram.mermaid import emit
from nl2er.diagram.validator import ValidationResult, validate
from nl2er.extraction.extractor import RuleBasedExtractor
from nl2er.ir.conceptual import ConceptualIR
from nl2er.ir.logical import SchemaIR
from nl2er.synthesis.synthesizer import synthesize

logger = get_logger(__name__)

ExternalExtractor = Callable[[str], Any]


class PipelineConfig(BaseModel):
    """Immutable knobs for one pipeline run."""

    model_config = ConfigDict(frozen=True)

    extraction_backend: Literal["rules", "external"] = "rules"
    min_token_length: int = 3
    nltk_auto_download: bool = False
    max_diagram_entities: int = 20
    max_diagram_relationships: int = 30

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PipelineConfig":
        settings = settings or get_settings()
        return cls(
            extraction_backend=settings.extraction_backend,
            min_token_length=settings.min_token_length,
            nltk_auto_download=settings.nltk_auto_download,
            max_diagram_entities=settings.max_diagram_entities,
            max_diagram_relationships=settings.max_diagram_relationships,
        )


@dataclass
class PipelineResult:
    """Artifacts of every stage of a pipeline run."""

    extraction: ConceptualIR
    schema: SchemaIR
    diagram: str
    validation: ValidationResult


def _run_external(extractor: ExternalExtractor, text: str) -> Optional[ConceptualIR]:
    """Call an external extractor; None when it fails or returns nothing usable."""
    try:
        result = extractor(text)
    except Exception as e:
        logger.warning(f"External extractor failed, falling back to rules: {e}")
        return None

    if isinstance(result, dict):
        try:
            result = ConceptualIR.model_validate(result)
        except ValidationError as e:
            logger.warning(f"External extractor returned an unreadable result, falling back to rules: {e}")
            return None
    if not isinstance(result, ConceptualIR) or not result.entities:
        logger.warning("External extractor returned no entities, falling back to rules")
        return None
    return result


def extract_with_config(
    text: Any,
    config: PipelineConfig,
    external_extractor: Optional[ExternalExtractor] = None,
    tagger: Any = "nltk",
) -> ConceptualIR:
    """Extraction stage honouring the configured backend."""
    if config.extraction_backend == "external":
        if external_extractor is None:
            logger.warning("External extraction requested but no extractor given, using rules")
        elif isinstance(text, str) and text.strip():
            extraction = _run_external(external_extractor, text)
            if extraction is not None:
                return extraction

    extractor = RuleBasedExtractor(
        tagger=tagger,
        min_token_length=config.min_token_length,
        auto_download=config.nltk_auto_download,
    )
    return extractor.extract(text)


def run_pipeline(
    text: Any,
    name: str = "New Schema",
    description: str = "",
    config: Optional[PipelineConfig] = None,
    external_extractor: Optional[ExternalExtractor] = None,
    tagger: Any = "nltk",
) -> PipelineResult:
    """
    Run extraction, synthesis and diagram emission on a domain description.

    Args:
        text: Free-text domain description
        name: Schema name
        description: Schema description
        config: Pipeline configuration, defaults to one built from settings
        external_extractor: Optional callable tried first when the
            configured backend is "external"
        tagger: Part-of-speech tagger for the rule-based extractor

    Returns:
        PipelineResult with the extraction, schema, diagram and the
        validation of the diagram
    """
    config = config or PipelineConfig.from_settings()
    logger.info(f"Running pipeline for schema '{name}' with {config.extraction_backend} extraction")

    extraction = extract_with_config(text, config, external_extractor, tagger=tagger)
    schema = synthesize(extraction, name=name, description=description)
    diagram = emit(
        schema,
        max_entities=config.max_diagram_entities,
        max_relationships=config.max_diagram_relationships,
    )
    validation = validate(
        diagram,
        max_entities=config.max_diagram_entities,
        max_relationships=config.max_diagram_relationships,
    )
    return PipelineResult(extraction=extraction, schema=schema, diagram=diagram, validation=validation)
