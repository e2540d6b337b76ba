"""Implicit delimiters: balanced ``(...)`` / ``[...]`` spans that read as math."""

from typing import Callable, Iterator, List, Tuple

from ..parser.segmenter import find_closing
from ..parser.structure import (
    ParenSpan,
    Region,
    RegionKind,
    coalesce,
    join_regions,
    outside,
    stray_dollar_spans,
)
from ..rules.classifier import CONTEXT_WINDOW, accept_brackets, accept_parens

Guard = Callable[[ParenSpan], bool]


def iter_balanced(text: str, open_char: str, close_char: str) -> Iterator[Tuple[int, int]]:
    """
    Yield (open, close) indices of outermost balanced pairs, left to right.

    An opener that never closes is treated as a literal character and the
    scan resumes right after it; stray closers are skipped.
    """
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == open_char:
            close = find_closing(text, i, open_char, close_char)
            if close is None:
                i += 1
                continue
            yield i, close
            i = close + 1
            continue
        i += 1


def _convert_region(
    text: str,
    offset: int,
    document: str,
    open_char: str,
    close_char: str,
    guard: Guard,
    held: List[Tuple[int, int]],
) -> List[Region]:
    pieces: List[Region] = []
    pos = 0
    for start, close in iter_balanced(text, open_char, close_char):
        raw_inner = text[start + 1 : close]
        inner = raw_inner.strip()
        if not inner or "\n" in raw_inner or "$" in raw_inner:
            continue
        if any(a <= start < b for a, b in held):
            continue
        absolute_open = offset + start
        absolute_close = offset + close
        span = ParenSpan(
            open_index=absolute_open,
            close_index=absolute_close,
            inner_text=inner,
            context_before=document[max(0, absolute_open - CONTEXT_WINDOW) : absolute_open],
            context_after=document[absolute_close + 1 : absolute_close + 1 + CONTEXT_WINDOW],
            full_match=text[start : close + 1],
        )
        if not guard(span):
            continue
        pieces.append(outside(text[pos:start]))
        pieces.append(Region(RegionKind.INLINE, f"${inner}$"))
        pos = close + 1
    pieces.append(outside(text[pos:]))
    return pieces


def convert_implicit(
    regions: List[Region], open_char: str, close_char: str, guard: Guard
) -> List[Region]:
    """
    Single forward pass over OUTSIDE regions. Accepted spans become frozen
    inline math; rejected spans are kept byte for byte and never revisited.
    Lines with an unpaired ``$`` are left alone.
    """
    document = join_regions(regions)
    held = stray_dollar_spans(regions)
    result: List[Region] = []
    offset = 0
    for index, region in enumerate(regions):
        if region.editable:
            result.extend(
                _convert_region(
                    region.text,
                    offset,
                    document,
                    open_char,
                    close_char,
                    guard,
                    held.get(index, []),
                )
            )
        else:
            result.append(region)
        offset += len(region.text)
    return coalesce(result)


def convert_parens(regions: List[Region]) -> List[Region]:
    return convert_implicit(regions, "(", ")", accept_parens)


def convert_brackets(regions: List[Region]) -> List[Region]:
    return convert_implicit(regions, "[", "]", accept_brackets)
