from typing import Dict, List

from ..parser.structure import Edit, Region, RegionKind, apply_edits, build_lines, line_ending
from ..rules.classifier import MathClassifier


def promote_bare_lines(regions: List[Region]) -> List[Region]:
    """
    Wrap isolated formula lines in display math.

    Only lines lying wholly inside one OUTSIDE region are candidates. A line
    next to a display line is left alone so delimiters never stack; the
    neighbours are judged on the input, so each line is decided on its own.
    """
    newline = line_ending(regions)
    lines = build_lines(regions)
    display = [line.is_display for line in lines]
    edits: Dict[int, List[Edit]] = {}

    for number, line in enumerate(lines):
        fragment = line.sole_fragment(RegionKind.OUTSIDE)
        if fragment is None:
            continue
        content = line.content
        if not MathClassifier.is_mathy_line(content):
            continue
        if number > 0 and display[number - 1]:
            continue
        if number + 1 < len(lines) and display[number + 1]:
            continue
        block = Region(RegionKind.DISPLAY, f"$${newline}{content.rstrip()}{newline}$$")
        edits.setdefault(fragment.index, []).append(
            (fragment.start, fragment.start + len(content), [block])
        )

    return apply_edits(regions, edits)
