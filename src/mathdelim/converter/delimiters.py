"""Explicit delimiter normalization and matrix/align environment wrapping."""

import re
from functools import partial
from typing import Callable, List, Match, Optional, Pattern

from ..parser.structure import (
    HeldSpans,
    Region,
    RegionKind,
    line_ending,
    outside,
    rewrite_outside,
)

DISPLAY_BRACKET_RE = re.compile(r"(?<![\[\\])\\\[(.*?)\\\]", re.DOTALL)
INLINE_PAREN_RE = re.compile(r"(?<!\\)\\\((.*?)\\\)")
BRACKET_LINES_RE = re.compile(
    r"^[ \t]*\[[ \t]*\r?\n(.*?)\r?\n[ \t]*\][ \t]*$", re.MULTILINE | re.DOTALL
)
PADDED_INLINE_RE = re.compile(r"(?<![\\$])\$ +([^$\n]+?) +\$(?![$\d])")

MATRIX_ENVIRONMENTS = (
    "bmatrix",
    "pmatrix",
    "vmatrix",
    "Vmatrix",
    "matrix",
    "smallmatrix",
    "cases",
    "array",
    "align",
    "aligned",
)
ENVIRONMENT_RE = re.compile(
    r"(?P<indent>^[ \t]*)?\\begin\{(?P<env>"
    + "|".join(MATRIX_ENVIRONMENTS)
    + r")\}.*?\\end\{(?P=env)\}",
    re.MULTILINE | re.DOTALL,
)

# (match, char before the match, char after the match) -> regions, or None to keep
BuildFn = Callable[[Match[str], str, str], Optional[List[Region]]]


def substitute(
    regions: List[Region],
    pattern: Pattern[str],
    build: BuildFn,
    skip: Optional[Callable[[Region], bool]] = None,
    held: Optional[HeldSpans] = None,
) -> List[Region]:
    """Replace matches of ``pattern`` found in OUTSIDE regions."""

    def rewrite(text: str, before: str, after: str) -> List[Region]:
        pieces: List[Region] = []
        pos = 0
        for match in pattern.finditer(text):
            prev_char = text[match.start() - 1] if match.start() > 0 else before
            next_char = text[match.end()] if match.end() < len(text) else after
            replacement = build(match, prev_char, next_char)
            if replacement is None:
                continue
            pieces.append(outside(text[pos : match.start()]))
            pieces.extend(replacement)
            pos = match.end()
        pieces.append(outside(text[pos:]))
        return pieces

    return rewrite_outside(regions, rewrite, skip=skip, held=held)


def display_block(
    body: str, prev_char: str, next_char: str, indent: str = "", newline: str = "\n"
) -> List[Region]:
    """
    Build a ``$$`` block around ``body``.

    Newlines are added only where the block would otherwise share a line
    with neighbouring text; nothing is added at the edges of the document.
    Inserted line breaks use ``newline``.
    """
    pieces: List[Region] = []
    if prev_char and prev_char != "\n":
        pieces.append(outside(newline))
    pieces.append(
        Region(RegionKind.DISPLAY, f"{indent}$${newline}{indent}{body}{newline}{indent}$$")
    )
    if next_char and next_char not in "\r\n":
        pieces.append(outside(newline))
    return pieces


def _bracket_display(
    match: Match[str], prev_char: str, next_char: str, newline: str = "\n"
) -> Optional[List[Region]]:
    body = match.group(1).strip()
    if not body:
        return None
    return display_block(body, prev_char, next_char, newline=newline)


def _bracket_lines(
    match: Match[str], prev_char: str, next_char: str, newline: str = "\n"
) -> Optional[List[Region]]:
    # ``^`` also matches at a region start that may sit mid-line.
    if prev_char and prev_char != "\n":
        return None
    return _bracket_display(match, prev_char, next_char, newline)


def _paren_inline(match: Match[str], prev_char: str, next_char: str) -> Optional[List[Region]]:
    body = match.group(1).strip()
    if not body:
        return None
    return [Region(RegionKind.INLINE, f"${body}$")]


def normalize_delimiters(regions: List[Region]) -> List[Region]:
    """
    Rewrite ``\\[..\\]``, bracket-line blocks and ``\\(..\\)`` into dollar
    delimiters, then tighten padded inline math such as ``$ x $``.
    """
    newline = line_ending(regions)
    regions = substitute(regions, DISPLAY_BRACKET_RE, partial(_bracket_display, newline=newline))
    regions = substitute(regions, BRACKET_LINES_RE, partial(_bracket_lines, newline=newline))
    regions = substitute(regions, INLINE_PAREN_RE, _paren_inline)
    regions = substitute(regions, PADDED_INLINE_RE, _paren_inline)
    return regions


def _environment_block(
    match: Match[str], prev_char: str, next_char: str, newline: str = "\n"
) -> List[Region]:
    indent = match.group("indent") or ""
    environment = match.group(0)[len(indent) :]
    if indent and prev_char and prev_char != "\n":
        # ``^`` matched at a region start that is not a line start.
        return [outside(indent)] + display_block(
            environment, indent[-1], next_char, newline=newline
        )
    return display_block(environment, prev_char, next_char, indent=indent, newline=newline)


def wrap_environments(regions: List[Region]) -> List[Region]:
    newline = line_ending(regions)
    return substitute(regions, ENVIRONMENT_RE, partial(_environment_block, newline=newline))
