"""
Ordered battery of surface-pattern matchers.

Each matcher takes a SentenceContext and returns zero or more Mentions. The
extractor concatenates the output of every matcher and deduplicates it; no
matcher looks at another's output, and later stages never backtrack.

Relationship mentions carry a precedence used to pick one relationship per
entity pair and sentence: explicit cardinality phrasing beats lexical cues,
which beat bare co-occurrence.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple
from .text import (
    ATTRIBUTE_VOCAB,
    DETERMINERS,
    QUANTIFIERS,
    STOPWORDS,
    canonical_entity_name,
    is_attribute_word,
    is_entity_word,
    singularize,
    to_snake_case,
)

EXPLICIT = 0
LEXICAL = 1
COOCCURRENCE = 2

_W = r"\b([a-z][a-z0-9_\-]*)"
_OPT_W = r"(?:\s+([a-z][a-z0-9_\-]*))?"
_OBJ = r"\b(?P<obj>[a-z][a-z0-9_\-]*)(?:\s+(?P<obj2>[a-z][a-z0-9_\-]*))?"
_DET = (
    r"(?:(?:a|an|the|each|every|any|some|its|their|his|her|exactly|only|single|"
    r"one\s+and\s+only|at\s+least|at\s+most|one)\s+)*"
)
_QUANT = (
    r"(?:many|multiple|several|numerous|various|one\s+or\s+more|zero\s+or\s+more|"
    r"a\s+lot\s+of|lots\s+of|a\s+number\s+of|any\s+number\s+of)"
)
_MODAL = (
    r"(?:(?:must|may|can|could|might|should|will|shall|always|optionally|also|"
    r"usually|often|sometimes|typically|normally)\s+)*"
)
_MODAL_WORDS = frozenset(
    "must may can could might should will shall always optionally also usually often "
    "sometimes typically normally".split()
)
_PREP_WORDS = frozenset("in to for with on into from of at by about".split())
_PREP = r"(?:(?:" + "|".join(sorted(_PREP_WORDS)) + r")\s+)?"

_TOTAL_SOURCE = re.compile(r"\b(?:must|has\s+to|have\s+to|always|required\s+to)\b")
_TOTAL_TARGET = re.compile(
    r"\b(?:exactly\s+one|at\s+least\s+one|one\s+or\s+more|one\s+and\s+only\s+one|only\s+one)\b"
)


@dataclass
class Mention:
    """A candidate concept found by a matcher."""

    kind: str  # "entity" | "weak" | "relationship" | "attribute" | "constraint"
    entity: str  # canonical entity name, "" when a constraint has no known owner
    target: Optional[str] = None  # related entity, or attribute name
    cardinality: Optional[str] = None
    precedence: int = LEXICAL
    label: Optional[str] = None
    source_participation: str = "PARTIAL"
    target_participation: str = "PARTIAL"
    is_identifying: bool = False
    constraint: Optional[str] = None  # "unique" | "not_null" | "nullable" | "primary_key" | "default"
    value: Optional[str] = None


@dataclass
class AttributeItem:
    """One attribute phrase from an "X has a, b and c" list."""

    owner_word: str
    name: str
    words: List[str]
    constraints: Set[str] = field(default_factory=set)


@dataclass
class SentenceContext:
    """A sentence plus the per-sentence facts matchers share."""

    text: str
    lowered: str
    tokens: List[str]
    entity_positions: List[Tuple[int, str]]  # (token index, canonical name)
    attribute_items: List[AttributeItem] = field(default_factory=list)

    def entity_for(self, *words: Optional[str]) -> Optional[str]:
        """Canonical entity name for the first word that can name an entity."""
        for word in words:
            if word and is_entity_word(word):
                return canonical_entity_name(word)
        return None

    def pooled_entity_for(self, *words: Optional[str]) -> Optional[str]:
        """Like entity_for, but only names tagged as nouns in this sentence."""
        name = self.entity_for(*words)
        if name is None or name not in self.ordered_entities():
            return None
        return name

    def ordered_entities(self) -> List[str]:
        """Distinct entity names in order of first appearance."""
        seen: List[str] = []
        for _, name in self.entity_positions:
            if name not in seen:
                seen.append(name)
        return seen


def _scan(pattern: re.Pattern, text: str) -> Iterator[re.Match]:
    """Like finditer, but lets one match's object start the next match."""
    pos = 0
    while pos <= len(text):
        m = pattern.search(text, pos)
        if m is None:
            return
        yield m
        pos = m.start() + 1


def _participation(segment: str) -> Tuple[str, str]:
    source = "PARTIAL"
    if _TOTAL_SOURCE.search(segment) and not re.search(r"\bmust\s+not\b", segment):
        source = "TOTAL"
    target = "TOTAL" if _TOTAL_TARGET.search(segment) else "PARTIAL"
    return source, target


def _relationship(
    source: str,
    target: str,
    cardinality: str,
    precedence: int,
    segment: str,
    label: Optional[str] = None,
    is_identifying: bool = False,
) -> Mention:
    source_part, target_part = _participation(segment)
    return Mention(
        kind="relationship",
        entity=source,
        target=target,
        cardinality=cardinality,
        precedence=precedence,
        label=label,
        source_participation=source_part,
        target_participation=target_part,
        is_identifying=is_identifying,
    )


def _verb_after(ctx: SentenceContext, name: str) -> Optional[str]:
    """First content word following the first mention of an entity."""
    for index, mentioned in ctx.entity_positions:
        if mentioned != name:
            continue
        for token in ctx.tokens[index + 1:index + 4]:
            lower = token.lower()
            if lower in _MODAL_WORDS:
                continue
            if lower in DETERMINERS or lower in QUANTIFIERS:
                return None
            return lower
        return None
    return None


# ---------------------------------------------------------------------------
# Attribute phrase scanning (shared by context building and the matcher)
# ---------------------------------------------------------------------------

_ATTR_LIST = re.compile(
    _W
    + r"\s+"
    + _MODAL
    + r"(?:has|have|with|includes?|including|stores?|records?|tracks?|keeps?|"
    r"(?:is|are)\s+described\s+by)\s+(?P<items>.+)"
)
_ITEM_SPLIT = re.compile(r",|;|\band\b|\bor\b|\bas\s+well\s+as\b|\bplus\b|\balong\s+with\b")
_ITEM_CONSTRAINT_WORDS = {
    "unique": "unique",
    "distinct": "unique",
    "required": "not_null",
    "mandatory": "not_null",
    "optional": "nullable",
}


def _attribute_name(words: List[str]) -> str:
    last = words[-1]
    # "phone numbers" -> phone_number, but "notes" stays as written
    if last not in ATTRIBUTE_VOCAB and singularize(last) in ATTRIBUTE_VOCAB:
        words = words[:-1] + [singularize(last)]
    return to_snake_case(" ".join(words))


def _looks_like_attribute(words: List[str]) -> bool:
    if not words:
        return False
    if any(w in STOPWORDS and w not in _ITEM_CONSTRAINT_WORDS for w in words):
        return False
    snake = to_snake_case(" ".join(words))
    if snake.endswith("_id") or snake.startswith(("is_", "has_")):
        return True
    return is_attribute_word(words[-1])


def scan_attribute_lists(lowered: str) -> List[AttributeItem]:
    """
    Find "X has a name, email and phone number" style attribute lists.

    Items that do not look like attributes (for example "many orders") are
    skipped so relationship phrasing in the same list is left to other
    matchers.
    """
    items: List[AttributeItem] = []
    for m in _scan(_ATTR_LIST, lowered):
        owner = m.group(1)
        if not is_entity_word(owner):
            continue
        raw = re.sub(r"\([^)]*\)", " ", m.group("items"))
        for piece in _ITEM_SPLIT.split(raw):
            words = re.findall(r"[a-z][a-z0-9_\-]*", piece)
            constraints = {
                _ITEM_CONSTRAINT_WORDS[w] for w in words if w in _ITEM_CONSTRAINT_WORDS
            }
            words = [
                w for w in words if w not in DETERMINERS and w not in _ITEM_CONSTRAINT_WORDS
            ][-3:]
            if not _looks_like_attribute(words):
                continue
            name = _attribute_name(words)
            if name and not any(i.owner_word == owner and i.name == name for i in items):
                items.append(AttributeItem(owner, name, words, constraints))
    return items


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


def match_entities(ctx: SentenceContext) -> List[Mention]:
    """Every noun-pool occurrence is an entity mention."""
    return [Mention(kind="entity", entity=name) for _, name in ctx.entity_positions]


_EXPLICIT_PATTERNS = [
    (re.compile(r"\bmany[\s\-]+to[\s\-]+many\b|\b[mn]\s*:\s*[mn]\b"), "MANY_TO_MANY"),
    (re.compile(r"\bone[\s\-]+to[\s\-]+many\b|\b1\s*:\s*(?:n|m|many|\*)(?![a-z0-9])"), "ONE_TO_MANY"),
    (re.compile(r"\bmany[\s\-]+to[\s\-]+one\b|(?<![a-z0-9])(?:n|m|\*)\s*:\s*1\b"), "MANY_TO_ONE"),
    (re.compile(r"\bone[\s\-]+to[\s\-]+one\b|\b1\s*:\s*1\b"), "ONE_TO_ONE"),
]


def match_explicit_cardinality(ctx: SentenceContext) -> List[Mention]:
    """'one-to-many', '1:M', 'many-to-many' ... between the first two entities."""
    names = ctx.ordered_entities()
    if len(names) < 2:
        return []
    for pattern, cardinality in _EXPLICIT_PATTERNS:
        if pattern.search(ctx.lowered):
            return [
                _relationship(
                    names[0], names[1], cardinality, EXPLICIT, ctx.lowered, label=_verb_after(ctx, names[0])
                )
            ]
    return []


_WEAK_RELATIONS = [
    re.compile(_W + r"\s+" + _MODAL + r"(?:depends?|depending)\s+(?:entirely\s+|fully\s+)?on\s+" + _DET + _W + _OPT_W),
    re.compile(_W + r"\s+(?:cannot|can\s*not|can't|could\s+not)\s+exist\s+without\s+" + _DET + _W + _OPT_W),
    re.compile(_W + r"\s+(?:is|are)\s+(?:existence[\s\-]+)?dependent\s+on\s+" + _DET + _W + _OPT_W),
    re.compile(_W + r"\s+(?:is|are)\s+(?:uniquely\s+)?identified\s+(?:only\s+)?(?:by|through)\s+" + _DET + _W + _OPT_W),
]
_WEAK_FLAG = re.compile(_W + r"\s+(?:is|are)\s+(?:a\s+|an\s+)?weak(?:\s+entity|\s+entities)?\b")


def match_weak_entities(ctx: SentenceContext) -> List[Mention]:
    """'X depends on Y', 'X cannot exist without Y', 'X is identified by Y'."""
    mentions: List[Mention] = []
    for pattern in _WEAK_RELATIONS:
        for m in _scan(pattern, ctx.lowered):
            weak = ctx.entity_for(m.group(1))
            if m.group(3) and is_attribute_word(m.group(3)):
                # "identified by its serial number" names a key, not an owner
                continue
            strong = ctx.entity_for(m.group(2))
            if weak is None or strong is None or weak == strong:
                continue
            mentions.append(Mention(kind="weak", entity=weak))
            mention = _relationship(
                weak, strong, "MANY_TO_ONE", LEXICAL, m.group(0), label="depends on", is_identifying=True
            )
            mention.source_participation = "TOTAL"
            mentions.append(mention)
    for m in _scan(_WEAK_FLAG, ctx.lowered):
        weak = ctx.entity_for(m.group(1))
        if weak is not None:
            mentions.append(Mention(kind="weak", entity=weak))
    return mentions


def match_many_to_many(ctx: SentenceContext) -> List[Mention]:
    """
    Reciprocal quantifiers: both entities appear quantified ("many courses")
    and unquantified ("each course") in one sentence. "many" together with
    "multiple" in a sentence naming exactly two entities also counts.
    """
    quantified: Dict[str, bool] = {}
    plain: Dict[str, bool] = {}
    lowered_tokens = [t.lower() for t in ctx.tokens]
    for index, name in ctx.entity_positions:
        before = lowered_tokens[max(0, index - 2):index]
        if before and (
            before[-1] in QUANTIFIERS
            or (len(before) == 2 and before[0] in QUANTIFIERS and before[1] in STOPWORDS)
        ):
            quantified[name] = True
        else:
            plain[name] = True

    names = ctx.ordered_entities()
    reciprocal = [n for n in names if quantified.get(n) and plain.get(n)]
    if len(reciprocal) >= 2:
        pair = reciprocal[:2]
    elif len(names) == 2 and "many" in lowered_tokens and "multiple" in lowered_tokens:
        pair = names
    else:
        return []
    return [
        _relationship(pair[0], pair[1], "MANY_TO_MANY", LEXICAL, ctx.lowered, label=_verb_after(ctx, pair[0]))
    ]


_BELONGS_TO = [
    re.compile(_W + r"\s+" + _MODAL + r"(?P<verb>belongs?|belonging)\s+to\s+" + _DET + _OBJ),
    re.compile(
        _W
        + r"\s+(?:is|are)\s+"
        + _MODAL
        + r"(?P<verb>part\s+of|assigned\s+to|owned\s+by|placed\s+by|written\s+by|created\s+by|"
        r"made\s+by|issued\s+by|authored\s+by|linked\s+to|associated\s+with\s+(?:one|a\s+single|exactly\s+one))\s+"
        + _DET
        + _OBJ
    ),
]


def match_belongs_to(ctx: SentenceContext) -> List[Mention]:
    """'X belongs to Y', 'X is part of Y', 'X is placed by Y' -> many-to-one."""
    mentions: List[Mention] = []
    for pattern in _BELONGS_TO:
        for m in _scan(pattern, ctx.lowered):
            source = ctx.entity_for(m.group(1))
            target = ctx.entity_for(m.group("obj"), m.group("obj2"))
            if source is None or target is None:
                continue
            label = re.sub(r"\s+", " ", m.group("verb"))
            if label.startswith("belong"):
                label = "belongs to"
            mentions.append(_relationship(source, target, "MANY_TO_ONE", LEXICAL, m.group(0), label=label))
    return mentions


# Words the verb slot may capture that never carry a relationship
_NOT_VERBS = frozenset(["and", "or", "but", "than", "belong", "belongs", "is", "are"]) | _PREP_WORDS


_HAS_MANY = re.compile(
    _W + r"\s+" + _MODAL + r"(?P<verb>[a-z]+)\s+" + r"(?P<prep>(?:" + "|".join(sorted(_PREP_WORDS)) + r")\s+)?"
    + _QUANT + r"\s+" + _OBJ
)


def match_has_many(ctx: SentenceContext) -> List[Mention]:
    """'X has many Y', 'X places multiple Y', 'X enrolls in several Y' -> one-to-many."""
    mentions: List[Mention] = []
    for m in _scan(_HAS_MANY, ctx.lowered):
        verb = m.group("verb")
        if verb in DETERMINERS or verb in _NOT_VERBS:
            continue
        source = ctx.pooled_entity_for(m.group(1))
        target = ctx.pooled_entity_for(m.group("obj"), m.group("obj2"))
        if source is None or target is None:
            continue
        label = "has" if verb in ("has", "have") else (verb + " " + (m.group("prep") or "")).strip()
        mentions.append(_relationship(source, target, "ONE_TO_MANY", LEXICAL, m.group(0), label=label))
    return mentions


_HAS_ONE = re.compile(
    _W + r"\s+" + _MODAL + r"(?P<verb>[a-z]+)\s+" + _PREP
    + r"(?:exactly\s+one|only\s+one|one\s+and\s+only\s+one|a\s+single|one\s+single|one)\s+" + _OBJ
)


def match_has_one(ctx: SentenceContext) -> List[Mention]:
    """'X has one Y', 'X has exactly one Y', 'X has a single Y' -> one-to-one."""
    mentions: List[Mention] = []
    for m in _scan(_HAS_ONE, ctx.lowered):
        verb = m.group("verb")
        if verb in DETERMINERS or verb in _NOT_VERBS:
            continue
        source = ctx.pooled_entity_for(m.group(1))
        target = ctx.pooled_entity_for(m.group("obj"), m.group("obj2"))
        if source is None or target is None or source == target:
            continue
        label = "has" if verb in ("has", "have") else verb
        mention = _relationship(source, target, "ONE_TO_ONE", LEXICAL, m.group(0), label=label)
        if re.search(r"\bexactly\s+one|\bone\s+and\s+only\s+one", m.group(0)):
            mention.target_participation = "TOTAL"
        mentions.append(mention)
    return mentions


def match_attribute_lists(ctx: SentenceContext) -> List[Mention]:
    """Attribute mentions (and inline constraints) from attribute lists."""
    mentions: List[Mention] = []
    for item in ctx.attribute_items:
        owner = ctx.entity_for(item.owner_word)
        if owner is None:
            continue
        mentions.append(Mention(kind="attribute", entity=owner, target=item.name))
        for constraint in sorted(item.constraints):
            mentions.append(Mention(kind="constraint", entity=owner, target=item.name, constraint=constraint))
    return mentions


_CONSTRAINT_CUES = [
    (
        re.compile(
            r"\b(?:must|should|has\s+to|have\s+to|needs?\s+to|will)\s+be\s+unique\b|\b(?:is|are)\s+(?:always\s+)?unique\b"
        ),
        "unique",
    ),
    (
        re.compile(
            r"\b(?:cannot|can\s*not|can't|must\s+not|should\s+not|may\s+not)\s+be\s+(?:null|empty|blank|missing)\b"
            r"|\b(?:is|are)\s+(?:required|mandatory)\b|\bmust\s+be\s+(?:provided|given|set|specified)\b"
        ),
        "not_null",
    ),
    (
        re.compile(r"\b(?:is|are)\s+optional\b|\b(?:can|may)\s+be\s+(?:null|empty|blank|omitted)\b|\b(?:is|are)\s+nullable\b"),
        "nullable",
    ),
]

_PK_IS = re.compile(
    r"\bprimary\s+key\s+(?:of\s+" + _DET + _W + r"\s+)?(?:is|are|will\s+be|should\s+be)\s+" + _DET + _W + _OPT_W
)
_IS_PK = re.compile(
    _W + _OPT_W + r"\s+(?:is|serves\s+as|acts\s+as)\s+(?:the\s+)?primary\s+key(?:\s+(?:of|for)\s+" + _DET + _W + r")?"
)
_IDENTIFIED_BY = re.compile(
    _W + r"\s+(?:is|are)\s+(?:uniquely\s+)?identified\s+(?:only\s+)?(?:by|through)\s+" + _DET + _W + _OPT_W
)
_DEFAULTS_TO = re.compile(
    _W + r"\s+(?:defaults?\s+to|has\s+a\s+default\s+(?:value\s+)?of)\s+(?P<value>\"[^\"]*\"|'[^']*'|[a-z0-9_.\-]+)"
)


def _clause_words(text: str) -> List[str]:
    clause = re.split(r",|;|\band\b|\bwhile\b|\bwhich\b|\bthat\b|\bbut\b", text)[-1]
    return [w for w in re.findall(r"[a-z][a-z0-9_\-]*", clause) if w not in DETERMINERS]


def _owner_and_attribute(words: List[str]) -> Tuple[Optional[str], Optional[List[str]]]:
    """
    Split "customer phone number" or "email of each customer" into an owner
    word and attribute words.
    """
    owner = None
    if "of" in words:
        i = len(words) - 1 - words[::-1].index("of")
        tail = [w for w in words[i + 1:] if is_entity_word(w)]
        owner = tail[-1] if tail else None
        words = words[:i]
    words = [w for w in words if w not in STOPWORDS]
    if not words:
        return owner, None
    attr = [words[-1]]
    j = len(words) - 2
    while j >= 0 and len(attr) < 3 and not is_entity_word(words[j]):
        attr.insert(0, words[j])
        j -= 1
    if owner is None:
        for w in reversed(words[:j + 1]):
            if is_entity_word(w):
                owner = w
                break
    return owner, attr


def _nearest_entity_before(ctx: SentenceContext, offset: int) -> Optional[str]:
    """Last entity mentioned in the lowered sentence before a character offset."""
    best = None
    for index, name in ctx.entity_positions:
        found = re.search(rf"\b{re.escape(ctx.tokens[index].lower())}\b", ctx.lowered)
        if found is not None and found.start() < offset:
            best = name
    return best


def match_constraints(ctx: SentenceContext) -> List[Mention]:
    """Uniqueness, nullability, primary key and default value cues."""
    mentions: List[Mention] = []

    for pattern, constraint in _CONSTRAINT_CUES:
        for m in pattern.finditer(ctx.lowered):
            owner_word, attr_words = _owner_and_attribute(_clause_words(ctx.lowered[:m.start()]))
            if not attr_words:
                continue
            if len(attr_words) == 1 and ctx.entity_for(attr_words[0]) in ctx.ordered_entities():
                continue
            owner = ctx.entity_for(owner_word) or _nearest_entity_before(ctx, m.start()) or ""
            attribute = to_snake_case(" ".join(attr_words))
            if owner and attribute == to_snake_case(owner):
                continue
            mentions.append(Mention(kind="constraint", entity=owner, target=attribute, constraint=constraint))

    for m in _PK_IS.finditer(ctx.lowered):
        owner = ctx.entity_for(m.group(1)) or _nearest_entity_before(ctx, m.start()) or ""
        words = [w for w in (m.group(2), m.group(3)) if w and w not in STOPWORDS]
        if words:
            mentions.append(
                Mention(kind="constraint", entity=owner, target=to_snake_case(" ".join(words)), constraint="primary_key")
            )

    for m in _IS_PK.finditer(ctx.lowered):
        words = [w for w in (m.group(1), m.group(2)) if w and w not in STOPWORDS]
        owner = ctx.entity_for(m.group(3)) if m.group(3) else None
        if owner is None and len(words) == 2 and is_entity_word(words[0]):
            owner = ctx.entity_for(words[0])
            words = words[1:]
        owner = owner or _nearest_entity_before(ctx, m.start()) or ""
        if words:
            mentions.append(
                Mention(kind="constraint", entity=owner, target=to_snake_case(" ".join(words)), constraint="primary_key")
            )

    for m in _IDENTIFIED_BY.finditer(ctx.lowered):
        words = [w for w in (m.group(2), m.group(3)) if w and w not in STOPWORDS]
        if not words or not (is_attribute_word(words[-1]) or is_attribute_word(words[0])):
            continue
        owner = ctx.entity_for(m.group(1))
        if owner is None:
            continue
        mentions.append(
            Mention(kind="constraint", entity=owner, target=to_snake_case(" ".join(words)), constraint="primary_key")
        )

    for m in _DEFAULTS_TO.finditer(ctx.lowered):
        attribute = m.group(1)
        if attribute in STOPWORDS:
            continue
        owner = _nearest_entity_before(ctx, m.start()) or ""
        mentions.append(
            Mention(
                kind="constraint",
                entity=owner,
                target=to_snake_case(attribute),
                constraint="default",
                value=m.group("value").strip("\"'"),
            )
        )

    return mentions


def match_cooccurrence(ctx: SentenceContext) -> List[Mention]:
    """Adjacent distinct entities in a sentence default to one-to-many."""
    names = ctx.ordered_entities()
    return [
        _relationship(a, b, "ONE_TO_MANY", COOCCURRENCE, ctx.lowered)
        for a, b in zip(names, names[1:])
    ]


Matcher = Callable[[SentenceContext], List[Mention]]

MATCHERS: List[Matcher] = [
    match_entities,
    match_explicit_cardinality,
    match_weak_entities,
    match_many_to_many,
    match_belongs_to,
    match_has_many,
    match_has_one,
    match_attribute_lists,
    match_constraints,
    match_cooccurrence,
]
