import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

UNESCAPED_DOLLAR_RE = re.compile(r"(?<!\\)\$")


class SegmentKind(str, Enum):
    CODE = "code"
    PROSE = "prose"


class RegionKind(str, Enum):
    CODE = "code"
    LINK = "link"
    DISPLAY = "display"
    INLINE = "inline"
    OUTSIDE = "outside"


@dataclass(frozen=True)
class Segment:
    """
    A maximal run of either fenced code or prose. Segments partition the
    input document and concatenate back to it exactly.
    """

    kind: SegmentKind
    text: str
    span: Tuple[int, int]


@dataclass(frozen=True)
class Region:
    """
    A tagged piece of the document. Only OUTSIDE regions are ever handed to a
    rewrite stage; every other kind is carried through verbatim.
    """

    kind: RegionKind
    text: str

    @property
    def editable(self) -> bool:
        return self.kind is RegionKind.OUTSIDE


@dataclass(frozen=True)
class ParenSpan:
    """One outermost balanced bracket pair found in an OUTSIDE region."""

    open_index: int
    close_index: int
    inner_text: str
    context_before: str
    context_after: str
    full_match: str

    @property
    def raw_inner(self) -> str:
        return self.full_match[1:-1]


def outside(text: str) -> Region:
    return Region(RegionKind.OUTSIDE, text)


def join_regions(regions: List[Region]) -> str:
    return "".join(region.text for region in regions)


def line_ending(regions: List[Region]) -> str:
    """The document's line terminator, judged by its first line break."""
    text = join_regions(regions)
    newline = text.find("\n")
    if newline > 0 and text[newline - 1] == "\r":
        return "\r\n"
    return "\n"


def coalesce(regions: List[Region]) -> List[Region]:
    """Drop empty regions and merge neighbours of the same kind."""
    result: List[Region] = []
    for region in regions:
        if not region.text:
            continue
        if result and result[-1].kind is region.kind:
            result[-1] = Region(region.kind, result[-1].text + region.text)
        else:
            result.append(region)
    return result


# (text, char before the region, char after the region) -> replacement regions
RewriteFn = Callable[[str, str, str], List[Region]]
# (start, end, replacement) inside one region's text
Edit = Tuple[int, int, List[Region]]
# region index -> sorted (start, end) spans of that region's text
HeldSpans = Dict[int, List[Tuple[int, int]]]


def _rewrite_around(
    text: str, spans: List[Tuple[int, int]], rewrite: RewriteFn, before: str, after: str
) -> List[Region]:
    pieces: List[Region] = []
    pos = 0
    for start, end in spans:
        if start > pos:
            pieces.extend(rewrite(text[pos:start], text[pos - 1] if pos else before, text[start]))
        pieces.append(outside(text[start:end]))
        pos = end
    if pos < len(text):
        pieces.extend(rewrite(text[pos:], text[pos - 1] if pos else before, after))
    return pieces


def rewrite_outside(
    regions: List[Region],
    rewrite: RewriteFn,
    skip: Optional[Callable[[Region], bool]] = None,
    held: Optional[HeldSpans] = None,
) -> List[Region]:
    """
    Apply ``rewrite`` to every OUTSIDE region, leaving the rest untouched.

    Spans listed in ``held`` stay OUTSIDE but are not passed to ``rewrite``.
    """
    result: List[Region] = []
    for index, region in enumerate(regions):
        if not region.editable or (skip is not None and skip(region)):
            result.append(region)
            continue
        before = regions[index - 1].text[-1:] if index > 0 else ""
        after = regions[index + 1].text[:1] if index + 1 < len(regions) else ""
        spans = held.get(index) if held else None
        if spans:
            result.extend(_rewrite_around(region.text, spans, rewrite, before, after))
        else:
            result.extend(rewrite(region.text, before, after))
    return coalesce(result)


def splice(text: str, edits: List[Edit]) -> List[Region]:
    """Cut ``text`` at sorted, non-overlapping edits; gaps stay OUTSIDE."""
    pieces: List[Region] = []
    pos = 0
    for start, end, replacement in sorted(edits, key=lambda edit: edit[0]):
        if start < pos:
            continue
        pieces.append(outside(text[pos:start]))
        pieces.extend(replacement)
        pos = end
    pieces.append(outside(text[pos:]))
    return pieces


def apply_edits(regions: List[Region], edits: Dict[int, List[Edit]]) -> List[Region]:
    """Apply per-region edits keyed by region index."""
    if not edits:
        return regions
    result: List[Region] = []
    for index, region in enumerate(regions):
        if index in edits:
            result.extend(splice(region.text, edits[index]))
        else:
            result.append(region)
    return coalesce(result)


@dataclass
class Fragment:
    """The part of one region that falls on one physical line."""

    index: int
    start: int
    end: int
    kind: RegionKind
    text: str


@dataclass
class Line:
    fragments: List[Fragment] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(fragment.text for fragment in self.fragments)

    @property
    def content(self) -> str:
        return self.text.rstrip("\r\n")

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()

    @property
    def is_display(self) -> bool:
        if self.content.strip() == "$$":
            return True
        return any(fragment.kind is RegionKind.DISPLAY for fragment in self.fragments)

    def sole_fragment(self, kind: RegionKind) -> Optional[Fragment]:
        """The single fragment of ``kind`` covering the whole line, if any."""
        if len(self.fragments) == 1 and self.fragments[0].kind is kind:
            return self.fragments[0]
        return None

    def first_visible(self) -> Optional[Fragment]:
        for fragment in self.fragments:
            if fragment.text.strip():
                return fragment
        return None

    def last_visible(self) -> Optional[Fragment]:
        for fragment in reversed(self.fragments):
            if fragment.text.strip():
                return fragment
        return None


def build_lines(regions: List[Region]) -> List[Line]:
    """Describe the joined document as physical lines made of region fragments."""
    lines: List[Line] = []
    current = Line()
    for index, region in enumerate(regions):
        text = region.text
        pos = 0
        while pos < len(text):
            newline = text.find("\n", pos)
            end = len(text) if newline == -1 else newline + 1
            current.fragments.append(
                Fragment(index, pos, end, region.kind, text[pos:end])
            )
            pos = end
            if newline != -1:
                lines.append(current)
                current = Line()
    if current.fragments:
        lines.append(current)
    return lines


def stray_dollar_spans(regions: List[Region]) -> HeldSpans:
    """
    OUTSIDE text on lines holding an odd number of unescaped ``$``.

    A lone dollar there, usually a currency amount, would pair with any
    newly inserted ``$...$``.
    """
    held: HeldSpans = {}
    for line in build_lines(regions):
        loose = [f for f in line.fragments if f.kind is RegionKind.OUTSIDE]
        count = sum(len(UNESCAPED_DOLLAR_RE.findall(f.text)) for f in loose)
        if count % 2:
            for fragment in loose:
                held.setdefault(fragment.index, []).append((fragment.start, fragment.end))
    return held
