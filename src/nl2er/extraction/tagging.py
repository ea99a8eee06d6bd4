"""Part-of-speech tagging with a coarse fallback when no tagger model is available."""

from typing import Callable, List, Optional, Sequence, Tuple
import nltk
from .text import DETERMINERS, STOPWORDS
from nl2er.config.logging import get_logger

logger = get_logger(__name__)

TaggedToken = Tuple[str, str]
Tagger = Callable[[List[str]], Sequence[TaggedToken]]

# Older NLTK releases ship the model without the language suffix
_TAGGER_RESOURCES = ("averaged_perceptron_tagger_eng", "averaged_perceptron_tagger")


class TaggerUnavailable(Exception):
    """Raised when part-of-speech tagging cannot be performed."""


def download_tagger_model() -> bool:
    """Try to fetch the NLTK tagger model; returns True on success."""
    for resource in _TAGGER_RESOURCES:
        try:
            if nltk.download(resource, quiet=True):
                return True
        except Exception as e:
            logger.debug(f"NLTK download of {resource} failed: {e}")
    return False


def nltk_tagger(auto_download: bool = False) -> Tagger:
    """
    Build a tagger backed by ``nltk.pos_tag``.

    Args:
        auto_download: Fetch the tagger model on first LookupError

    Returns:
        Callable mapping tokens to (token, tag) pairs
    """
    state = {"download_attempted": False}

    def tag(tokens: List[str]) -> Sequence[TaggedToken]:
        try:
            return nltk.pos_tag(tokens)
        except LookupError:
            if auto_download and not state["download_attempted"]:
                state["download_attempted"] = True
                if download_tagger_model():
                    return nltk.pos_tag(tokens)
            raise

    return tag


def tag_tokens(tokens: List[str], tagger: Optional[Tagger]) -> List[TaggedToken]:
    """
    Tag tokens and check the result is usable.

    Raises:
        TaggerUnavailable: If no tagger is configured, the tagger model is
            missing, or the tagger returns something other than one
            (token, tag) pair per token
    """
    if tagger is None:
        raise TaggerUnavailable("no part-of-speech tagger configured")
    try:
        tagged = list(tagger(tokens))
    except LookupError as e:
        raise TaggerUnavailable(f"tagger model not installed: {e}") from e
    except Exception as e:
        raise TaggerUnavailable(f"tagger failed: {e}") from e

    if len(tagged) != len(tokens):
        raise TaggerUnavailable(
            f"tagger returned {len(tagged)} tags for {len(tokens)} tokens"
        )
    for item in tagged:
        if (
            not isinstance(item, (tuple, list))
            or len(item) != 2
            or not all(isinstance(part, str) for part in item)
        ):
            raise TaggerUnavailable(f"tagger returned unusable item {item!r}")
    return [(str(word), str(tag)) for word, tag in tagged]


def noun_positions(tagged: List[TaggedToken]) -> List[int]:
    """Indexes of tokens tagged as nouns (NN, NNS, NNP, NNPS)."""
    return [i for i, (_, tag) in enumerate(tagged) if tag.startswith("NN")]


def heuristic_noun_positions(tokens: List[str], min_length: int = 3) -> List[int]:
    """
    Coarse noun guess used when tagging is unavailable.

    A token that follows a determiner or quantifier (skipping up to two
    stopwords) is a candidate. A sentence with no such anchor falls back to
    every non-stopword token of at least ``min_length`` characters.
    """
    positions = []
    lowered = [t.lower() for t in tokens]
    for i, word in enumerate(lowered):
        if word not in DETERMINERS:
            continue
        for j in range(i + 1, min(i + 4, len(lowered))):
            candidate = lowered[j]
            if candidate in DETERMINERS or candidate in STOPWORDS:
                continue
            if j not in positions:
                positions.append(j)
            break

    if positions:
        return sorted(positions)
    return [
        i
        for i, word in enumerate(lowered)
        if len(word) >= min_length and word not in STOPWORDS and word[0].isalpha()
    ]
