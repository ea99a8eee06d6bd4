"""Rule-based extraction of entities, attributes and relationships from text."""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
from .datatypes import infer_data_type
from .patterns import COOCCURRENCE, MATCHERS, Mention, SentenceContext, scan_attribute_lists
from .tagging import (
    Tagger,
    TaggerUnavailable,
    heuristic_noun_positions,
    nltk_tagger,
    noun_positions,
    tag_tokens,
)
from .text import canonical_entity_name, is_entity_word, split_sentences, strip_possessives, tokenize
from nl2er.ir.conceptual import Attribute, ConceptualIR, Entity, Relationship
from nl2er.config.logging import get_logger

logger = get_logger(__name__)

NLTK = "nltk"

TIMESTAMP_DEFAULT = "CURRENT_TIMESTAMP"


@dataclass
class _EntityState:
    name: str
    mention_count: int = 0
    is_weak: bool = False
    attributes: List[str] = field(default_factory=list)


@dataclass
class _ExtractionState:
    entities: "OrderedDict[str, _EntityState]" = field(default_factory=OrderedDict)
    relationships: List[Relationship] = field(default_factory=list)
    seen_pairs: set = field(default_factory=set)
    constraints: "OrderedDict[Tuple[str, str], List[Tuple[str, Optional[str]]]]" = field(
        default_factory=OrderedDict
    )

    def entity(self, name: str) -> _EntityState:
        state = self.entities.get(name)
        if state is None:
            state = _EntityState(name=name)
            self.entities[name] = state
        return state

    def add_attribute(self, owner: str, attribute: str) -> None:
        state = self.entity(owner)
        if attribute not in state.attributes:
            state.attributes.append(attribute)


class RuleBasedExtractor:
    """
    Extracts a ConceptualIR from free text with part-of-speech tags and an
    ordered battery of surface patterns. No external service is involved.

    Args:
        tagger: Callable mapping tokens to (token, tag) pairs, ``"nltk"`` for
            NLTK's ``pos_tag``, or None to always use the coarse noun heuristic
        min_token_length: Shortest token the heuristic accepts as a noun
        auto_download: Fetch NLTK's tagger model when it is missing
    """

    def __init__(
        self,
        tagger: Union[Tagger, str, None] = NLTK,
        min_token_length: int = 3,
        auto_download: bool = False,
    ):
        if tagger == NLTK:
            tagger = nltk_tagger(auto_download=auto_download)
        self.tagger: Optional[Tagger] = tagger
        self.min_token_length = min_token_length

    def extract(self, text: Any) -> ConceptualIR:
        """
        Extract entities, attributes and relationships from text.

        Args:
            text: Domain description; bytes are decoded as UTF-8

        Returns:
            ConceptualIR, empty when the input is missing or unreadable
        """
        text = _coerce_text(text)
        if not text:
            return ConceptualIR()

        state = _ExtractionState()
        degraded = False
        sentences = split_sentences(text)
        for sentence in sentences:
            ctx, fell_back = self._context(sentence)
            if fell_back and not degraded:
                degraded = True
                logger.warning(
                    "Part-of-speech tagger unavailable, using determiner heuristic for nouns"
                )
            mentions = [mention for matcher in MATCHERS for mention in matcher(ctx)]
            self._apply(state, mentions, sentence)

        result = ConceptualIR(
            entities=[self._build_entity(s, state.constraints) for s in state.entities.values()],
            relationships=state.relationships,
        )
        logger.info(
            f"Extracted {len(result.entities)} entities and "
            f"{len(result.relationships)} relationships from {len(sentences)} sentences"
        )
        return result

    def _context(self, sentence: str) -> Tuple[SentenceContext, bool]:
        tokens = tokenize(sentence)
        lowered = strip_possessives(sentence).lower()
        items = scan_attribute_lists(lowered)
        reserved = {word for item in items for word in item.words}

        fell_back = False
        positions: List[int] = []
        if tokens:
            try:
                positions = noun_positions(tag_tokens(tokens, self.tagger))
            except TaggerUnavailable as e:
                logger.debug(f"Tagging failed: {e}")
                fell_back = True
                positions = heuristic_noun_positions(tokens, self.min_token_length)

        entity_positions = [
            (i, canonical_entity_name(tokens[i]))
            for i in positions
            if is_entity_word(tokens[i]) and tokens[i].lower() not in reserved
        ]
        ctx = SentenceContext(
            text=sentence,
            lowered=lowered,
            tokens=tokens,
            entity_positions=entity_positions,
            attribute_items=items,
        )
        return ctx, fell_back

    def _apply(self, state: _ExtractionState, mentions: List[Mention], sentence: str) -> None:
        relationship_mentions = [m for m in mentions if m.kind == "relationship"]
        if any(m.precedence < COOCCURRENCE for m in relationship_mentions):
            relationship_mentions = [m for m in relationship_mentions if m.precedence < COOCCURRENCE]

        # One relationship per entity pair and sentence; lower precedence wins
        chosen: Dict[frozenset, Mention] = {}
        for mention in relationship_mentions:
            key = frozenset((mention.entity, mention.target))
            current = chosen.get(key)
            if current is None or mention.precedence < current.precedence:
                chosen[key] = mention

        for mention in mentions:
            if mention.kind == "entity":
                state.entity(mention.entity).mention_count += 1
            elif mention.kind == "weak":
                state.entity(mention.entity).is_weak = True
            elif mention.kind == "attribute":
                state.add_attribute(mention.entity, mention.target)
            elif mention.kind == "constraint":
                if mention.entity:
                    state.add_attribute(mention.entity, mention.target)
                key = (mention.entity, mention.target)
                state.constraints.setdefault(key, []).append((mention.constraint, mention.value))

        for mention in chosen.values():
            state.entity(mention.entity)
            state.entity(mention.target)
            relationship = Relationship(
                name=mention.label,
                source_entity=mention.entity,
                target_entity=mention.target,
                type=mention.cardinality,
                source_participation=mention.source_participation,
                target_participation=mention.target_participation,
                is_identifying=mention.is_identifying,
                description=sentence,
            )
            key = relationship.pair_key()
            if key in state.seen_pairs:
                continue
            state.seen_pairs.add(key)
            state.relationships.append(relationship)

    def _build_entity(
        self,
        state: _EntityState,
        constraints: Dict[Tuple[str, str], List[Tuple[str, Optional[str]]]],
    ) -> Entity:
        if state.attributes:
            attributes = [Attribute(name=n, data_type=infer_data_type(n)) for n in state.attributes]
        else:
            attributes = [
                Attribute(name="id", data_type="INTEGER", is_primary_key=True, is_nullable=False, is_unique=True),
                Attribute(name="name", data_type="VARCHAR(255)", is_nullable=False),
            ]

        for attribute in attributes:
            for constraint, value in constraints.get(("", attribute.name), []):
                _apply_constraint(attributes, attribute, constraint, value)
            for constraint, value in constraints.get((state.name, attribute.name), []):
                _apply_constraint(attributes, attribute, constraint, value)

        if not any(a.is_primary_key for a in attributes):
            key = next((a for a in attributes if a.name == "id"), None)
            if key is None:
                key = Attribute(name="id", data_type="INTEGER")
            else:
                attributes.remove(key)
            key.is_primary_key = True
            key.is_unique = True
            key.is_nullable = False
            attributes.insert(0, key)

        for column in ("created_at", "updated_at"):
            if not any(a.name == column for a in attributes):
                attributes.append(
                    Attribute(
                        name=column,
                        data_type="TIMESTAMP",
                        is_nullable=False,
                        default_value=TIMESTAMP_DEFAULT,
                    )
                )

        return Entity(
            name=state.name,
            attributes=attributes,
            is_weak_entity=state.is_weak,
            mention_count=max(state.mention_count, 1),
        )


def _apply_constraint(
    attributes: List[Attribute], attribute: Attribute, constraint: str, value: Optional[str]
) -> None:
    if constraint == "unique":
        attribute.is_unique = True
    elif constraint == "not_null":
        attribute.is_nullable = False
    elif constraint == "nullable":
        if not attribute.is_primary_key:
            attribute.is_nullable = True
    elif constraint == "primary_key":
        for other in attributes:
            other.is_primary_key = False
        attribute.is_primary_key = True
        attribute.is_unique = True
        attribute.is_nullable = False
    elif constraint == "default":
        attribute.default_value = value


def _coerce_text(text: Any) -> str:
    if text is None:
        logger.warning("No text given to extract from")
        return ""
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8", errors="replace")
    if not isinstance(text, str):
        logger.warning(f"Cannot extract from {type(text).__name__}, expected text")
        return ""
    if not text.strip():
        logger.warning("Empty text given to extract from")
        return ""
    return text


def extract(
    text: Any,
    tagger: Union[Tagger, str, None] = NLTK,
    min_token_length: int = 3,
    auto_download: bool = False,
) -> ConceptualIR:
    """
    Extract a ConceptualIR from a free-text domain description.

    Never raises: missing, non-text or blank input gives an empty result.
    """
    return RuleBasedExtractor(
        tagger=tagger, min_token_length=min_token_length, auto_download=auto_download
    ).extract(text)
