from typing import Dict, List, Optional

from ..parser.structure import Edit, Line, Region, RegionKind, apply_edits, build_lines


def _opens_display(line: Line) -> bool:
    fragment = line.first_visible()
    return (
        fragment is not None
        and fragment.kind is RegionKind.DISPLAY
        and line.content.strip().startswith("$$")
    )


def _closes_display(line: Line) -> bool:
    fragment = line.last_visible()
    return (
        fragment is not None
        and fragment.kind is RegionKind.DISPLAY
        and line.content.strip().endswith("$$")
    )


def _is_lone_blank(line: Line, neighbour: Optional[Line]) -> bool:
    if not line.is_blank:
        return False
    if any(fragment.kind is not RegionKind.OUTSIDE for fragment in line.fragments):
        return False
    return neighbour is None or not neighbour.is_blank


def normalize_whitespace(regions: List[Region]) -> List[Region]:
    """
    Drop a single blank line directly before a display block or directly
    after one. Runs of two or more blank lines and everything inside display
    math or code are kept.
    """
    lines = build_lines(regions)
    edits: Dict[int, List[Edit]] = {}

    for number, line in enumerate(lines):
        above = lines[number - 1] if number > 0 else None
        below = lines[number + 1] if number + 1 < len(lines) else None
        before_block = below is not None and _opens_display(below) and _is_lone_blank(line, above)
        after_block = above is not None and _closes_display(above) and _is_lone_blank(line, below)
        if not (before_block or after_block):
            continue
        for fragment in line.fragments:
            edits.setdefault(fragment.index, []).append((fragment.start, fragment.end, []))

    return apply_edits(regions, edits)
