from typing import List, Tuple

from ..parser.segmenter import (
    EMBEDDED_URL_RE,
    INLINE_CODE_RE,
    find_display_spans,
    split_code_fences,
)
from ..parser.structure import UNESCAPED_DOLLAR_RE, SegmentKind


class BuiltInRules:
    @staticmethod
    def code_blocks(text: str) -> List[str]:
        return [
            segment.text
            for segment in split_code_fences(text)
            if segment.kind is SegmentKind.CODE
        ]

    @staticmethod
    def prose_lines(text: str) -> List[Tuple[int, str]]:
        """(line number, line) pairs for every line outside fenced code."""
        lines: List[Tuple[int, str]] = []
        for segment in split_code_fences(text):
            if segment.kind is SegmentKind.CODE:
                continue
            first = text.count("\n", 0, segment.span[0]) + 1
            for offset, line in enumerate(segment.text.split("\n")):
                lines.append((first + offset, line))
        return lines

    @staticmethod
    def _blank_spans(text: str, spans: List[Tuple[int, int]]) -> str:
        chars = list(text)
        for start, end in spans:
            for i in range(start, end):
                if chars[i] != "\n":
                    chars[i] = " "
        return "".join(chars)

    @staticmethod
    def check_code_blocks(original: str, converted: str) -> List[str]:
        """Fenced code must come through byte-for-byte and in order."""
        orig_blocks = BuiltInRules.code_blocks(original)
        conv_blocks = BuiltInRules.code_blocks(converted)

        errors = []
        if len(conv_blocks) < len(orig_blocks):
            errors.append(
                f"Missing code blocks: Original {len(orig_blocks)}, Converted {len(conv_blocks)}"
            )
        for index, (before, after) in enumerate(zip(orig_blocks, conv_blocks), start=1):
            if before != after:
                first_line = before.split("\n", 1)[0].strip()
                errors.append(f"Code block {index} changed ({first_line})")
        return errors

    @staticmethod
    def check_urls(original: str, converted: str) -> List[str]:
        orig_urls = set(EMBEDDED_URL_RE.findall(original))
        conv_urls = set(EMBEDDED_URL_RE.findall(converted))

        errors = []
        missing = sorted(orig_urls - conv_urls)
        if missing:
            errors.append(f"Missing URLs: {', '.join(missing)}")
        return errors

    @staticmethod
    def check_display_delimiters(converted: str) -> List[str]:
        """Delimiter-only ``$$`` lines must pair up."""
        numbers = [
            number
            for number, line in BuiltInRules.prose_lines(converted)
            if line.strip() == "$$"
        ]
        if len(numbers) % 2 != 0:
            return [f"Unpaired '$$' delimiter line (last one at line {numbers[-1]})"]
        return []

    @staticmethod
    def check_inline_dollars(converted: str) -> List[Tuple[int, str]]:
        """Lines outside code and display math with an odd number of ``$``."""
        warnings: List[Tuple[int, str]] = []
        for segment in split_code_fences(converted):
            if segment.kind is SegmentKind.CODE:
                continue
            text = BuiltInRules._blank_spans(segment.text, find_display_spans(segment.text))
            text = INLINE_CODE_RE.sub(lambda m: " " * len(m.group(0)), text)
            first = converted.count("\n", 0, segment.span[0]) + 1
            for offset, line in enumerate(text.split("\n")):
                count = len(UNESCAPED_DOLLAR_RE.findall(line))
                if count % 2 != 0:
                    warnings.append(
                        (first + offset, f"Odd number of '$' on line {first + offset}")
                    )
        return warnings
