"""Structural validation of Mermaid ER markup."""

from collections import Counter
from typing import List, Optional, Tuple
from pydantic import Field
from .grammar import (
    ATTRIBUTE,
    ENTITY_NAME,
    RELATIONSHIP,
    RUN_TOGETHER,
    SEGMENTS,
    is_header,
    strip_header,
)
from nl2er.ir.conceptual import WireModel

DEFAULT_MAX_ENTITIES = 20
DEFAULT_MAX_RELATIONSHIPS = 30


class ValidationResult(WireModel):
    """Outcome of validating Mermaid markup."""

    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)


class _Scan:
    def __init__(self):
        self.errors: List[str] = []
        self.stack: List[Tuple[str, int]] = []  # open blocks: (entity, line)
        self.blocks: List[str] = []
        self.declared: List[str] = []  # entities named outside any block
        self.relationships: List[Tuple[str, str, int]] = []

    @property
    def current(self) -> Optional[str]:
        return self.stack[-1][0] if self.stack else None

    def check_attribute(self, text: str, lineno: int) -> None:
        if not ATTRIBUTE.fullmatch(text):
            self.errors.append(
                f'Malformed attribute on line {lineno} in entity "{self.current}": "{text}"'
            )

    def open_block(self, name: str, lineno: int) -> None:
        if self.stack:
            outer, outer_line = self.stack[-1]
            self.errors.append(
                f"Unexpected '{{' on line {lineno}: entity '{name}' opened inside "
                f"'{outer}' (line {outer_line}), which was never closed with '}}'"
            )
        if not name:
            self.errors.append(f"Unexpected '{{' on line {lineno} without an entity name")
        elif not ENTITY_NAME.fullmatch(name):
            self.errors.append(f"Malformed entity name on line {lineno}: '{name}'")
        self.stack.append((name, lineno))
        if name:
            self.blocks.append(name)

    def close_block(self, lineno: int) -> None:
        if not self.stack:
            self.errors.append(f"Unexpected '}}' on line {lineno} with no matching '{{'")
        else:
            self.stack.pop()


def validate(
    text: str,
    max_entities: int = DEFAULT_MAX_ENTITIES,
    max_relationships: int = DEFAULT_MAX_RELATIONSHIPS,
) -> ValidationResult:
    """
    Check Mermaid ER markup for structural defects without repairing it.

    Reports unmatched ``{``/``}`` markers, nested or duplicate blocks, blocks
    run together on one line, relationship operators without surrounding
    whitespace, relationships inside a block, malformed attribute lines,
    relationships to undeclared entities and empty diagrams. Diagrams with
    more than ``max_entities`` blocks or ``max_relationships`` relationships
    get a warning. Any error or warning makes the result invalid.

    Args:
        text: Mermaid markup
        max_entities: Block count above which a warning is reported
        max_relationships: Relationship count above which a warning is reported

    Returns:
        ValidationResult with is_valid and a list of messages
    """
    if not isinstance(text, str):
        return ValidationResult(is_valid=False, errors=["Empty diagram: No entities or relationships defined"])

    scan = _Scan()
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if is_header(line):
            line = strip_header(line)
        if not line or line.startswith("%%"):
            continue

        match = RELATIONSHIP.match(line)
        if match:
            _check_relationship(scan, match, line, lineno)
            continue

        if "{" in line or "}" in line:
            together = RUN_TOGETHER.search(line)
            if together:
                scan.errors.append(
                    f'Syntax error on line {lineno}: Missing newline between entity definitions. Found "{line}".'
                )
                scan.errors.append(
                    f"Hint: Put '}}' on its own line and start '{together.group(1)} {{' on the next line"
                )
            _scan_braces(scan, line, lineno)
            continue

        if scan.stack:
            scan.check_attribute(line, lineno)
        elif ENTITY_NAME.fullmatch(line):
            scan.declared.append(line)
        else:
            scan.errors.append(f'Unrecognized statement on line {lineno}: "{line}"')

    for name, lineno in scan.stack:
        scan.errors.append(
            f"Unclosed entity definition for '{name}' started on line {lineno}: missing '}}' for '{{'"
        )

    for name, count in Counter(b.lower() for b in scan.blocks).items():
        if count > 1:
            scan.errors.append(f"Duplicate entity definition: '{name}' defined {count} times")

    known = {b.lower() for b in scan.blocks} | {d.lower() for d in scan.declared}
    for source, target, lineno in scan.relationships:
        if source.lower() not in known:
            scan.errors.append(f"Relationship on line {lineno} references undefined source entity: {source}")
        if target.lower() not in known:
            scan.errors.append(f"Relationship on line {lineno} references undefined target entity: {target}")

    if not scan.blocks and not scan.declared and not scan.relationships:
        scan.errors.append("Empty diagram: No entities or relationships defined")

    entity_count = len(set(b.lower() for b in scan.blocks))
    if entity_count > max_entities:
        scan.errors.append(
            f"Warning: Diagram contains {entity_count} entities. Large diagrams may have rendering issues."
        )
    if len(scan.relationships) > max_relationships:
        scan.errors.append(
            f"Warning: Diagram contains {len(scan.relationships)} relationships. "
            f"Complex layouts may have rendering issues."
        )

    return ValidationResult(is_valid=not scan.errors, errors=scan.errors)


def _check_relationship(scan: _Scan, match, line: str, lineno: int) -> None:
    separator = match.group("sep")
    spaced = all(match.group(g) for g in ("s1", "s2", "s3", "s4"))
    if not spaced or separator not in ("--", ".."):
        scan.errors.append(
            f'Malformed relationship on line {lineno}: "{line}". '
            f"Relationships should have spaces around the -- operator."
        )
        scan.errors.append(
            f'Fix: Format as "{match.group("a")} {match.group("left")} -- '
            f'{match.group("right")} {match.group("b")}"'
        )
    if scan.stack:
        scan.errors.append(
            f"Relationship defined inside entity block at line {lineno}. Close the entity definition first."
        )
    scan.relationships.append((match.group("a"), match.group("b"), lineno))


def _scan_braces(scan: _Scan, line: str, lineno: int) -> None:
    segments = [s for s in SEGMENTS.findall(line) if s.strip()]
    for index, segment in enumerate(segments):
        if segment == "{":
            if index == 0 or segments[index - 1] in ("{", "}"):
                scan.open_block("", lineno)
            continue
        if segment == "}":
            scan.close_block(lineno)
            continue
        piece = " ".join(segment.split())
        if index + 1 < len(segments) and segments[index + 1] == "{":
            scan.open_block(piece, lineno)
        elif scan.stack:
            scan.check_attribute(piece, lineno)
        else:
            scan.errors.append(f'Unrecognized statement on line {lineno}: "{piece}"')
