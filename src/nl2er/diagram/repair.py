"""Canonicalizing auto-repair for Mermaid ER markup."""

from typing import List
from .grammar import (
    BLOCK_INDENT,
    BODY_INDENT,
    HEADER,
    RELATIONSHIP,
    SEGMENTS,
    canonical_separator,
    collapse_whitespace,
    is_header,
    strip_header,
    unquote_label,
)
from nl2er.config.logging import get_logger

logger = get_logger(__name__)


def format_relationship(match) -> str:
    """Canonical relationship line: ``    a || -- o{ b : "label"``."""
    label = unquote_label(match.group("label") or "")
    separator = canonical_separator(match.group("sep") or "")
    return (
        f'{BLOCK_INDENT}{match.group("a")} {match.group("left")} {separator} '
        f'{match.group("right")} {match.group("b")} : "{label}"'
    )


def auto_repair(text: str) -> str:
    """
    Rewrite Mermaid ER markup into canonical layout.

    - every ``{`` opener and ``}`` terminator gets its own line, so blocks
      written on one line ("a{name string}b{id int}") are split apart
    - relationship operators are normalized to `` -- `` (``-``, em/en dash
      or a missing separator are all accepted) and labels are quoted
    - openers, terminators, relationships and comments sit at column 4,
      block bodies at column 8
    - an ``erDiagram`` header is added when missing; blank lines are
      dropped except for one after each block terminator

    The result is a fixed point: repairing it again returns it unchanged.

    Args:
        text: Mermaid markup, possibly malformed

    Returns:
        Repaired markup ending with a newline
    """
    if not isinstance(text, str):
        logger.warning(f"Cannot repair {type(text).__name__}, expected text")
        return HEADER + "\n"

    lines: List[str] = []
    closers: List[int] = []  # indexes of terminator lines
    depth = 0

    for raw in text.splitlines():
        line = raw.strip()
        if is_header(line):
            line = strip_header(line)
        if not line:
            continue

        if line.startswith("%%"):
            lines.append(BLOCK_INDENT + collapse_whitespace(line))
            continue

        match = RELATIONSHIP.match(line)
        if match:
            lines.append(format_relationship(match))
            continue

        segments = [s for s in SEGMENTS.findall(line) if s.strip()]
        named = False  # the previous piece was written as "name {"
        for index, segment in enumerate(segments):
            if segment == "{":
                # Opener without a name in front of it
                if not named:
                    lines.append(BLOCK_INDENT + "{")
                    depth += 1
                named = False
                continue
            named = False
            if segment == "}":
                lines.append(BLOCK_INDENT + "}")
                closers.append(len(lines) - 1)
                depth = max(0, depth - 1)
                continue
            piece = collapse_whitespace(segment)
            while is_header(piece):
                piece = strip_header(piece)
            if not piece:
                continue
            # Same classification as a whole line
            if piece.startswith("%%"):
                lines.append(BLOCK_INDENT + piece)
                continue
            match = RELATIONSHIP.match(piece)
            if match:
                lines.append(format_relationship(match))
                continue
            if index + 1 < len(segments) and segments[index + 1] == "{":
                lines.append(f"{BLOCK_INDENT}{piece} {{")
                depth += 1
                named = True
            elif depth > 0:
                lines.append(BODY_INDENT + piece)
            else:
                lines.append(BLOCK_INDENT + piece)

    out = [HEADER]
    for index, line in enumerate(lines):
        out.append(line)
        if index in closers and index < len(lines) - 1:
            out.append("")
    return "\n".join(out) + "\n"
