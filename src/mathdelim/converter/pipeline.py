"""Conversion pipeline: segmentation, the ordered rewrite stages, reassembly."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..parser.segmenter import segment_document
from ..parser.structure import Region, join_regions
from ..rules.config import ConversionOptions
from .delimiters import normalize_delimiters, wrap_environments
from .implicit import convert_brackets, convert_parens
from .promoter import promote_bare_lines
from .tokens import wrap_bare_tokens
from .whitespace import normalize_whitespace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stage:
    name: str
    run: Callable[[List[Region]], List[Region]]
    enabled: Callable[[ConversionOptions], bool]


def _always(options: ConversionOptions) -> bool:
    return True


STAGES = (
    Stage("delimiters", normalize_delimiters, _always),
    Stage("environments", wrap_environments, lambda o: o.wrap_matrix_envs_in_display_math),
    Stage("bare_lines", promote_bare_lines, lambda o: o.wrap_bare_math_single_lines),
    Stage("brackets", convert_brackets, lambda o: o.plain_brackets_as_delimiters),
    Stage("parens", convert_parens, lambda o: o.plain_parens_as_delimiters),
    Stage("bare_tokens", wrap_bare_tokens, lambda o: o.convert_bare_inline_latex),
    Stage("whitespace", normalize_whitespace, _always),
)


class ConversionPipeline:
    """
    Runs the rewrite stages in a fixed order over one document.

    Each stage receives the full region sequence but can only rewrite
    OUTSIDE regions; code, links and math are carried through untouched.
    The pipeline keeps no state between calls to :meth:`run`.
    """

    def __init__(self, options: Optional[ConversionOptions] = None):
        self.options = options or ConversionOptions()

    def active_stages(self) -> List[Stage]:
        return [stage for stage in STAGES if stage.enabled(self.options)]

    def regions(self, text: str) -> List[Region]:
        """Segment ``text`` and run every enabled stage, without joining."""
        regions = segment_document(text)
        for stage in self.active_stages():
            regions = stage.run(regions)
            logger.debug("stage %s -> %d regions", stage.name, len(regions))
        return regions

    def run(self, text: str) -> str:
        if not text:
            return text
        return join_regions(self.regions(text))


def convert(text: str, options: Optional[ConversionOptions] = None) -> str:
    """Convert escaped and implicit math delimiters in ``text`` to dollar form."""
    return ConversionPipeline(options).run(text)
