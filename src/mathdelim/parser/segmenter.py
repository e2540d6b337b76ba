import re
from typing import List, Optional, Tuple

from .structure import (
    Region,
    RegionKind,
    Segment,
    SegmentKind,
    coalesce,
    join_regions,
    outside,
    rewrite_outside,
)

FENCE_OPEN_RE = re.compile(r"^ {0,3}(`{3,})[^`\r\n]*$")
FENCE_CLOSE_RE = re.compile(r"^ {0,3}(`{3,})[ \t]*$")
INLINE_CODE_RE = re.compile(r"`[^`\r\n]+`")

URL_SCHEME = r"[A-Za-z][A-Za-z0-9+.\-]*://"
RAW_URL_RE = re.compile(URL_SCHEME + r"\S+")
MARKDOWN_LINK_RE = re.compile(r"!?\[.*\]\(.*\)")
URL_THEN_LINK_RE = re.compile(URL_SCHEME + r"[^\s\[]+\[.*?\]\(.*?\)")
EMBEDDED_URL_RE = re.compile(URL_SCHEME + r"[^\s)]+")

SAME_LINE_DISPLAY_RE = re.compile(r"\$\$[^\n]+?\$\$")
INLINE_MATH_RE = re.compile(r"(?<![\\$])\$(?![\s$])[^$\n]*?(?<![\s\\$])\$(?![$\d])")


def _line_offsets(lines: List[str]) -> List[int]:
    offsets = []
    total = 0
    for line in lines:
        offsets.append(total)
        total += len(line)
    return offsets


def find_closing(text: str, start: int, open_char: str, close_char: str) -> Optional[int]:
    """Return the index of the character closing the group opened at ``start``."""
    if start >= len(text) or text[start] != open_char:
        return None

    depth = 1
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            # Escaped delimiters do not affect nesting.
            i += 2
            continue
        if ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


# ---------- code fences ----------


def _find_fence_close(lines: List[str], start: int, width: int) -> Optional[int]:
    for index in range(start, len(lines)):
        match = FENCE_CLOSE_RE.match(lines[index].rstrip("\r\n"))
        if match and len(match.group(1)) >= width:
            return index
    return None


def split_code_fences(text: str) -> List[Segment]:
    """
    Split ``text`` into alternating prose and fenced-code segments.

    A fence without a closing line is ordinary prose; scanning resumes on the
    line after it instead of swallowing the rest of the document.
    """
    lines = text.splitlines(keepends=True)
    offsets = _line_offsets(lines)
    segments: List[Segment] = []
    prose_start = 0

    i = 0
    while i < len(lines):
        opener = FENCE_OPEN_RE.match(lines[i].rstrip("\r\n"))
        if opener:
            close = _find_fence_close(lines, i + 1, len(opener.group(1)))
            if close is not None:
                start = offsets[i]
                end = offsets[close] + len(lines[close].rstrip("\r\n"))
                if start > prose_start:
                    segments.append(
                        Segment(SegmentKind.PROSE, text[prose_start:start], (prose_start, start))
                    )
                segments.append(Segment(SegmentKind.CODE, text[start:end], (start, end)))
                prose_start = end
                i = close + 1
                continue
        i += 1

    if prose_start < len(text):
        segments.append(
            Segment(SegmentKind.PROSE, text[prose_start:], (prose_start, len(text)))
        )
    return segments


def split_inline_code(regions: List[Region]) -> List[Region]:
    def rewrite(text: str, before: str, after: str) -> List[Region]:
        pieces: List[Region] = []
        pos = 0
        for match in INLINE_CODE_RE.finditer(text):
            pieces.append(outside(text[pos : match.start()]))
            pieces.append(Region(RegionKind.CODE, match.group(0)))
            pos = match.end()
        pieces.append(outside(text[pos:]))
        return pieces

    return rewrite_outside(regions, rewrite)


# ---------- links ----------


def is_link_blob(text: str) -> bool:
    """True for a bare URL, a Markdown link/image, or a URL glued to a link."""
    if not text or "\n" in text:
        return False
    return bool(
        RAW_URL_RE.fullmatch(text)
        or MARKDOWN_LINK_RE.fullmatch(text)
        or URL_THEN_LINK_RE.match(text)
    )


def _carve_urls(text: str) -> List[Region]:
    pieces: List[Region] = []
    pos = 0
    for match in EMBEDDED_URL_RE.finditer(text):
        pieces.append(outside(text[pos : match.start()]))
        pieces.append(Region(RegionKind.LINK, match.group(0)))
        pos = match.end()
    pieces.append(outside(text[pos:]))
    return pieces


def guard_links(regions: List[Region]) -> List[Region]:
    """Freeze link-only lines and embedded URLs inside OUTSIDE regions."""

    def rewrite(text: str, before: str, after: str) -> List[Region]:
        pieces: List[Region] = []
        for line in text.splitlines(keepends=True):
            body = line.rstrip("\r\n")
            if is_link_blob(body.strip()):
                pieces.append(Region(RegionKind.LINK, body))
                pieces.append(outside(line[len(body) :]))
            else:
                pieces.extend(_carve_urls(line))
        return pieces

    return rewrite_outside(regions, rewrite)


# ---------- display and inline math ----------


def _is_delimiter_line(line: str) -> bool:
    return line.strip() == "$$"


def find_display_spans(text: str) -> List[Tuple[int, int]]:
    """
    Locate display math in ``text`` as (start, end) offsets.

    Block spans run from the start of the opening ``$$`` line through the end
    of the closing line, newline included. An opener with no closer below it
    is not a delimiter and the text after it stays outside.
    """
    lines = text.splitlines(keepends=True)
    offsets = _line_offsets(lines)
    spans: List[Tuple[int, int]] = []

    i = 0
    while i < len(lines):
        if _is_delimiter_line(lines[i]):
            close = next(
                (j for j in range(i + 1, len(lines)) if _is_delimiter_line(lines[j])),
                None,
            )
            if close is not None:
                spans.append((offsets[i], offsets[close] + len(lines[close])))
                i = close + 1
                continue
        for match in SAME_LINE_DISPLAY_RE.finditer(lines[i]):
            spans.append((offsets[i] + match.start(), offsets[i] + match.end()))
        i += 1
    return spans


def _masked(regions: List[Region]) -> str:
    # Frozen text keeps its length and line structure but cannot look like math.
    parts = []
    for region in regions:
        if region.editable:
            parts.append(region.text)
        else:
            parts.append(re.sub(r"[^\r\n]", "\x00", region.text))
    return "".join(parts)


def split_display_math(regions: List[Region]) -> List[Region]:
    """Reclassify OUTSIDE text that sits inside display math as DISPLAY."""
    spans = find_display_spans(_masked(regions))
    if not spans:
        return regions

    text = join_regions(regions)
    result: List[Region] = []
    offset = 0
    for region in regions:
        start, end = offset, offset + len(region.text)
        offset = end
        if not region.editable:
            result.append(region)
            continue
        pos = start
        for span_start, span_end in spans:
            a, b = max(span_start, start), min(span_end, end)
            if a >= b:
                continue
            result.append(outside(text[pos:a]))
            result.append(Region(RegionKind.DISPLAY, text[a:b]))
            pos = b
        result.append(outside(text[pos:end]))
    return coalesce(result)


def split_inline_math(regions: List[Region]) -> List[Region]:
    def rewrite(text: str, before: str, after: str) -> List[Region]:
        pieces: List[Region] = []
        pos = 0
        for match in INLINE_MATH_RE.finditer(text):
            pieces.append(outside(text[pos : match.start()]))
            pieces.append(Region(RegionKind.INLINE, match.group(0)))
            pos = match.end()
        pieces.append(outside(text[pos:]))
        return pieces

    return rewrite_outside(regions, rewrite)


def segment_document(text: str) -> List[Region]:
    """
    Turn raw text into the region sequence the conversion stages work on.

    Code fences are cut first. Each prose segment that is nothing but a link
    is frozen whole; otherwise inline code, link lines, URLs, display math and
    already-delimited inline math are frozen in turn.
    """
    regions: List[Region] = []
    for segment in split_code_fences(text):
        if segment.kind is SegmentKind.CODE:
            regions.append(Region(RegionKind.CODE, segment.text))
            continue
        if is_link_blob(segment.text.strip()):
            regions.append(Region(RegionKind.LINK, segment.text))
            continue
        prose = [outside(segment.text)]
        prose = split_inline_code(prose)
        prose = guard_links(prose)
        prose = split_display_math(prose)
        prose = split_inline_math(prose)
        regions.extend(prose)
    return coalesce(regions)
