"""Wrap bare LaTeX tokens (degrees, roots, fractions, scripts) in inline math."""

import re
from typing import List, Match, Optional

from ..parser.segmenter import find_closing
from ..parser.structure import Region, RegionKind, outside, rewrite_outside, stray_dollar_spans
from .delimiters import substitute

DEGREE_RE = re.compile(r"(?<![\w$.])(\d+(?:\.\d+)?)\^(?:\\circ|\{\\circ\})(?![A-Za-z$])")
MACRO_RE = re.compile(r"(?<![\\$])\\(sqrt|frac)(?![A-Za-z])")
SCRIPT_RE = re.compile(
    r"(?<![\w\\$])([A-Za-z])([_^])([A-Za-z0-9]+|\{[^{}\n]*\})(?=[\s.,;:!?)\]]|$)"
)


def _has_delimiter_line(region: Region) -> bool:
    return any(line.strip() == "$$" for line in region.text.splitlines())


def _touches_dollar(prev_char: str, next_char: str) -> bool:
    return prev_char == "$" or next_char == "$"


def _degree(match: Match[str], prev_char: str, next_char: str) -> Optional[List[Region]]:
    if _touches_dollar(prev_char, next_char):
        return None
    return [Region(RegionKind.INLINE, f"${match.group(1)}^{{\\circ}}$")]


def _script(match: Match[str], prev_char: str, next_char: str) -> Optional[List[Region]]:
    if _touches_dollar(prev_char, next_char):
        return None
    return [Region(RegionKind.INLINE, f"${match.group(0)}$")]


def _macro_end(text: str, match: Match[str]) -> Optional[int]:
    """End index of ``\\sqrt[..]{..}`` or ``\\frac{..}{..}`` starting at ``match``."""
    pos = match.end()
    groups = 2
    if match.group(1) == "sqrt":
        groups = 1
        if pos < len(text) and text[pos] == "[":
            close = find_closing(text, pos, "[", "]")
            if close is None:
                return None
            pos = close + 1
    for _ in range(groups):
        close = find_closing(text, pos, "{", "}")
        if close is None:
            return None
        pos = close + 1
    return pos


def _wrap_macros(text: str, before: str, after: str) -> List[Region]:
    pieces: List[Region] = []
    pos = 0
    for match in MACRO_RE.finditer(text):
        if match.start() < pos:
            continue
        end = _macro_end(text, match)
        if end is None:
            continue
        prev_char = text[match.start() - 1] if match.start() > 0 else before
        next_char = text[end] if end < len(text) else after
        if _touches_dollar(prev_char, next_char):
            continue
        pieces.append(outside(text[pos : match.start()]))
        pieces.append(Region(RegionKind.INLINE, f"${text[match.start():end]}$"))
        pos = end
    pieces.append(outside(text[pos:]))
    return pieces


def wrap_bare_tokens(regions: List[Region]) -> List[Region]:
    """
    Context-free wrapping of bare tokens, each substitution applied once.
    Regions still holding a lone ``$$`` line are skipped, and so are lines
    with an unpaired ``$``.
    """
    regions = substitute(
        regions, DEGREE_RE, _degree, skip=_has_delimiter_line, held=stray_dollar_spans(regions)
    )
    regions = rewrite_outside(
        regions, _wrap_macros, skip=_has_delimiter_line, held=stray_dollar_spans(regions)
    )
    regions = substitute(
        regions, SCRIPT_RE, _script, skip=_has_delimiter_line, held=stray_dollar_spans(regions)
    )
    return regions
