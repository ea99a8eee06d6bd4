"""Line-level grammar of Mermaid ER markup shared by repair and validation."""

import re

HEADER = "erDiagram"
BLOCK_INDENT = " " * 4
BODY_INDENT = " " * 8

LEFT_GLYPHS = r"\|\||\}o|\}\||\|o"
RIGHT_GLYPHS = r"\|\||o\{|\|\{|o\|"
# Canonical separators first; the rest are tolerated and rewritten by repair
SEPARATORS = r"--|\.\.|—|–|-"

NAME = r"[A-Za-z_][\w\-]*?"

RELATIONSHIP = re.compile(
    rf"^(?P<a>{NAME})(?P<s1>\s*)(?P<left>{LEFT_GLYPHS})(?P<s2>\s*)(?P<sep>{SEPARATORS})?"
    rf"(?P<s3>\s*)(?P<right>{RIGHT_GLYPHS})(?P<s4>\s*)(?P<b>[A-Za-z_][\w\-]*)\s*(?::\s*(?P<label>.*))?$"
)

# "}name{" with nothing but whitespace between: two blocks run together
RUN_TOGETHER = re.compile(r"\}\s*([A-Za-z_][\w\-]*)\s*\{")

ENTITY_NAME = re.compile(r"[A-Za-z_][\w\-]*")
ATTRIBUTE = re.compile(r"[A-Za-z_][\w\-\(\),\[\]]*\s+[A-Za-z_*][\w\-]*(?:\s+.*)?")

SEGMENTS = re.compile(r"[^{}]+|[{}]")


def is_header(line: str) -> bool:
    return line.strip().lower().startswith(HEADER.lower())


def strip_header(line: str) -> str:
    """Text following an ``erDiagram`` keyword on the same line."""
    return line.strip()[len(HEADER):].strip()


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def canonical_separator(separator: str) -> str:
    return ".." if separator == ".." else "--"


def unquote_label(label: str) -> str:
    """Label text without surrounding quotes; inner double quotes become single."""
    label = label.strip()
    if len(label) >= 2 and label.startswith('"') and label.endswith('"'):
        label = label[1:-1]
    elif label.count('"') == 1:
        label = label.strip('"')
    return collapse_whitespace(label.replace('"', "'"))
