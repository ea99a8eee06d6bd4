"""Sentence splitting, tokenizing and name canonicalization."""

import re
from typing import List

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?;])\s+|[\r\n]+")
_TOKEN = re.compile(r"[A-Za-z][A-Za-z0-9_\-]*|\d+(?::\d+)?")
_POSSESSIVE = re.compile(r"(\w)['’]s\b|(\w)s['’](?=\s|$)")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")

STOPWORDS = frozenset(
    """
    a about above after again against all also am an and another any are as at
    be because been before being below between both but by can cannot could did
    do does doing down during each either else every few for from further had has
    have having he her here hers herself him himself his how i if in into is it
    its itself just may me might more most must my myself no nor not now of off
    on once one only or other others our ours ourselves out over own per same
    shall she should so some such than that the their theirs them themselves then
    there these they this those through to too under until up upon very was we
    were what when where whether which while who whom whose why will with within
    without would you your yours yourself yourselves
    many multiple several numerous various exactly least single zero more most
    unique different same new existing certain specific particular optional
    required mandatory possible related given
    belong belongs belonging contain contains containing include includes
    including depend depends dependent exist exists identified identify own owns
    owned make makes made keep keeps track tracks need needs want wants use uses
    used get gets allow allows let lets like always never usually often etc eg ie
    """.split()
)

DETERMINERS = frozenset(
    """
    a an the each every any some one many multiple several numerous various all
    its their his her our your this that these those another single exactly least
    most zero two three
    """.split()
)

QUANTIFIERS = frozenset(["many", "multiple", "several", "numerous", "various"])

# Nouns that describe the modelling task rather than the domain
GENERIC_NOUNS = frozenset(
    """
    system systems database databases schema schemas table tables information
    data record application app platform design detail details thing things way
    lot lots kind sort part relationship relationships entity entities attribute
    attributes field fields column columns key keys instance instances set list
    example case cases support site website service services model models
    """.split()
)

# Words that name properties rather than things
ATTRIBUTE_VOCAB = frozenset(
    """
    id identifier name title email phone address date time price cost amount
    description content text status type code quantity count age salary username
    password rating score url gender birthdate birthday dob total balance fee body
    notes note bio summary level grade capacity duration location city state
    country zip zipcode postcode street color colour size weight height year isbn
    sku label slug timestamp deadline priority rate number firstname lastname
    surname nickname avatar photo image picture stock currency language genre
    version format value percentage discount tax
    """.split()
)

_IRREGULAR_PLURALS = {
    "people": "person",
    "children": "child",
    "men": "man",
    "women": "woman",
    "mice": "mouse",
    "geese": "goose",
    "teeth": "tooth",
    "feet": "foot",
    "statuses": "status",
    "analyses": "analysis",
    "criteria": "criterion",
    "indices": "index",
    "movies": "movie",
    "cookies": "cookie",
    "series": "series",
    "species": "species",
}


def normalize_text(text: str) -> str:
    """Collapse runs of spaces and tabs; keep newlines as sentence breaks."""
    text = text.replace("\u00a0", " ")
    return re.sub(r"[ \t]+", " ", text).strip()


def split_sentences(text: str) -> List[str]:
    """Split text into sentences on terminal punctuation, semicolons and newlines."""
    sentences = []
    for part in _SENTENCE_SPLIT.split(normalize_text(text)):
        part = part.strip().rstrip(".!?;").strip()
        if part:
            sentences.append(part)
    return sentences


def strip_possessives(sentence: str) -> str:
    """Turn "customer's email" into "customer email"."""
    return _POSSESSIVE.sub(lambda m: m.group(1) or (m.group(2) + "s"), sentence)


def tokenize(sentence: str) -> List[str]:
    """Word-like tokens of a sentence, possessives removed."""
    return _TOKEN.findall(strip_possessives(sentence))


def singularize(word: str) -> str:
    """
    Reduce a plural noun to its singular form.

    Only suffix rules plus a few irregular forms; unknown shapes are returned
    unchanged.
    """
    lower = word.lower()
    if lower in _IRREGULAR_PLURALS:
        singular = _IRREGULAR_PLURALS[lower]
        return word[0] + singular[1:] if word[:1].isupper() else singular
    if len(lower) <= 3:
        return word
    if lower.endswith("ies") and len(lower) > 4:
        return word[:-3] + ("Y" if word[-3:].isupper() else "y")
    if lower.endswith(("sses", "xes", "ches", "shes", "zzes")):
        return word[:-2]
    if lower.endswith(("ss", "us", "is")):
        return word
    if lower.endswith("s"):
        return word[:-1]
    return word


def _split_words(name: str) -> List[str]:
    name = _CAMEL_BOUNDARY.sub(r"\1 \2", name.strip())
    return [w for w in re.split(r"[\s_\-]+", name) if w]


def canonical_entity_name(surface: str) -> str:
    """Singular TitleCase name for an entity mention ("order_items" -> "OrderItem")."""
    words = _split_words(surface)
    if not words:
        return ""
    words[-1] = singularize(words[-1])
    return "".join(w[:1].upper() + w[1:].lower() for w in words)


def to_snake_case(name: str) -> str:
    """Lower snake_case identifier for attribute and column names."""
    words = _split_words(name)
    snake = "_".join(w.lower() for w in words)
    return re.sub(r"[^a-z0-9_]", "", snake)


def is_attribute_word(word: str) -> bool:
    lower = word.lower()
    return lower in ATTRIBUTE_VOCAB or singularize(lower) in ATTRIBUTE_VOCAB


def is_entity_word(word: str, min_length: int = 2) -> bool:
    """
    Whether a surface token may name an entity.

    Rejects stopwords, generic modelling nouns, attribute vocabulary, numbers,
    cardinality tokens such as "one-to-many" and too-short tokens.
    """
    lower = word.lower()
    if len(lower) < min_length or not lower[0].isalpha():
        return False
    if "-to-" in lower or ":" in lower:
        return False
    singular = singularize(lower)
    if lower in STOPWORDS or singular in STOPWORDS:
        return False
    if lower in GENERIC_NOUNS or singular in GENERIC_NOUNS:
        return False
    if is_attribute_word(lower):
        return False
    return True
