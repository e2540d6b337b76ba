"""Heuristic math classifiers and the guards for implicit delimiters.

The vocabularies, window sizes and word caps below are tuned on example
inputs. They are meant to be adjusted, and each one is covered by
example-driven tests rather than a grammar.
"""

import re
from typing import Optional, Pattern, Tuple

from ..parser.structure import ParenSpan

CONTEXT_WINDOW = 60
MAX_PROSE_WORDS = 4

MATH_NOUNS = (
    "matri",
    "vector",
    "eigen",
    "polynomial",
    "gradient",
    "scalar",
    "tensor",
    "derivative",
    "integral",
    "coefficient",
    "determinant",
    "equation",
    "variable",
    "coordinate",
    "subspace",
    "basis",
)

ORDINAL_WORDS = (
    "th",
    "st",
    "nd",
    "rd",
    "degree",
    "dim",
    "term",
    "mode",
    "harmonic",
    "component",
    "order",
    "entry",
    "row",
    "column",
)

REFERENCE_WORDS = (
    "note",
    "notes",
    "see",
    "ref",
    "fig",
    "figure",
    "table",
    "section",
    "chapter",
    "appendix",
)

FUNCTION_NAMES = (
    "sin",
    "cos",
    "tan",
    "cot",
    "sec",
    "csc",
    "sinh",
    "cosh",
    "tanh",
    "arcsin",
    "arccos",
    "arctan",
    "log",
    "ln",
    "exp",
    "det",
    "tr",
    "trace",
    "ker",
    "dim",
    "rank",
    "sgn",
)

NAMED_MACROS = (
    "alpha", "beta", "gamma", "delta", "epsilon", "varepsilon", "zeta", "eta",
    "theta", "vartheta", "iota", "kappa", "lambda", "mu", "nu", "xi", "pi",
    "rho", "sigma", "tau", "upsilon", "phi", "varphi", "chi", "psi", "omega",
    "Gamma", "Delta", "Theta", "Lambda", "Xi", "Pi", "Sigma", "Phi", "Psi",
    "Omega", "partial", "nabla", "frac", "dfrac", "tfrac", "sqrt", "lim",
    "sum", "prod", "int", "iint", "oint", "infty", "cdot", "times", "pm",
)

UNICODE_MATH_SYMBOLS = "≤≥≠≈≡∼→←↔⇒⇔↦∑∏∫∮√∂∇∈∉∋⊂⊃⊆⊇∪∩∀∃∄∞±∓×÷·∘⊗⊕"

# Operator between short operands: "x + y", "2-3", "f(x)/2". Hyphenated
# words such as "well-known" do not qualify.
ARITHMETIC_RE = re.compile(
    r"(?:(?<![A-Za-z])[A-Za-z]|\d|[)\]}])\s*[+\-*/]\s*(?:[A-Za-z](?![A-Za-z])|\d|[(\[{\\])"
)

_INTERVAL_ITEM = r"\s*[-+]?(?:\d+(?:\.\d+)?|[A-Za-z]|\\infty|∞)\s*"

LATEX_RULES: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("environment", re.compile(r"\\begin\{[A-Za-z*]+\}")),
    (
        "font_macro",
        re.compile(
            r"\\(?:mathbb|mathbf|mathcal|mathrm|mathit|mathsf|mathfrak|boldsymbol"
            r"|text|textbf|textit|operatorname)\s*\{"
        ),
    ),
    ("named_macro", re.compile(r"\\(?:" + "|".join(NAMED_MACROS) + r")(?![A-Za-z])")),
    ("command", re.compile(r"\\[A-Za-z]+")),
    ("script", re.compile(r"[A-Za-z0-9)\]}][_^]\{?[A-Za-z0-9\\]")),
    ("operator", re.compile(r"[=_^]")),
    ("arithmetic", ARITHMETIC_RE),
    ("unicode_bracket", re.compile(r"[⟨⟩‖]")),
    ("unicode_symbol", re.compile("[" + UNICODE_MATH_SYMBOLS + "]")),
    (
        "function_name",
        re.compile(r"(?<![A-Za-z\\])(?:" + "|".join(FUNCTION_NAMES) + r")(?![A-Za-z])"),
    ),
    ("interval", re.compile(r"^" + _INTERVAL_ITEM + "," + _INTERVAL_ITEM + r"$")),
    ("function_call", re.compile(r"(?<![A-Za-z])[A-Za-z]\(\s*[A-Za-z0-9]")),
)

MATHY_CONTEXT_RE = re.compile(
    r"[\\=_^" + UNICODE_MATH_SYMBOLS + r"]|\b(?:" + "|".join(MATH_NOUNS) + r")",
    re.IGNORECASE,
)
ORDINAL_AFTER_RE = re.compile(
    r"^\s?-?(?:" + "|".join(ORDINAL_WORDS) + r")s?\b", re.IGNORECASE
)
REFERENCE_WORD_RE = re.compile(
    r"^(?:" + "|".join(REFERENCE_WORDS) + r")\b", re.IGNORECASE
)

SINGLE_LETTER_RE = re.compile(r"^[A-Za-z]$")
DIGIT_RUN_RE = re.compile(r"^\d+[.)]?$")
ROMAN_NUMERAL_RE = re.compile(
    r"^(?:ii|iii|iv|vi|vii|viii|ix|xi|xii)[.)]?$", re.IGNORECASE
)

HEADING_RE = re.compile(r"^#{1,6}\s")
BULLET_RE = re.compile(r"^[-*•]\s")
RULE_RE = re.compile(r"^([*\-_])(?:\s*\1){2,}$")
LINE_MATH_TOKEN_RE = re.compile(r"[=^_]|\\[A-Za-z]+")
PROSE_WORD_RE = re.compile(r"(?<![\\A-Za-z])[A-Za-z]{2,}")


class MathClassifier:
    @staticmethod
    def latex_rule(text: str) -> Optional[str]:
        """Name of the first LaTeX-like rule ``text`` satisfies, if any."""
        for name, pattern in LATEX_RULES:
            if pattern.search(text):
                return name
        return None

    @staticmethod
    def is_latex_like(text: str) -> bool:
        return MathClassifier.latex_rule(text) is not None

    @staticmethod
    def is_mathy_context(text: str) -> bool:
        return bool(MATHY_CONTEXT_RE.search(text))

    @staticmethod
    def count_prose_words(line: str) -> int:
        return len({word.lower() for word in PROSE_WORD_RE.findall(line)})

    @staticmethod
    def is_mathy_line(line: str) -> bool:
        """
        Decide whether a bare line reads as a formula rather than prose.

        Args:
            line: One physical line without its line terminator.

        Returns:
            True when the line has no dollar signs, is not Markdown structure,
            carries at least one math token and has few prose words.
        """
        stripped = line.strip()
        if not stripped or "$" in line:
            return False
        if HEADING_RE.match(stripped) or BULLET_RE.match(stripped):
            return False
        if RULE_RE.match(stripped):
            return False
        if not (LINE_MATH_TOKEN_RE.search(stripped) or ARITHMETIC_RE.search(stripped)):
            return False
        return MathClassifier.count_prose_words(stripped) <= MAX_PROSE_WORDS


def _starts_line(context_before: str) -> bool:
    return not context_before.rsplit("\n", 1)[-1].strip()


def accept_parens(span: ParenSpan) -> bool:
    """
    Guard for ``(...)`` spans.

    Enumeration markers, cross references and Markdown link targets are
    rejected. LaTeX-like content is accepted; a lone letter is accepted only
    when the surrounding text reads as math or it is followed by an ordinal
    such as "th" or "component".
    """
    inner = span.inner_text
    if DIGIT_RUN_RE.match(inner) or ROMAN_NUMERAL_RE.match(inner):
        return False
    if SINGLE_LETTER_RE.match(inner) and _starts_line(span.context_before):
        return False
    if REFERENCE_WORD_RE.match(inner):
        return False
    if span.context_before.endswith("]"):
        return False
    if MathClassifier.is_latex_like(inner):
        return True
    if SINGLE_LETTER_RE.match(inner):
        if ORDINAL_AFTER_RE.match(span.context_after):
            return True
        return MathClassifier.is_mathy_context(span.context_before + " " + span.context_after)
    return False


def accept_brackets(span: ParenSpan) -> bool:
    """Guard for ``[...]`` spans: never links, footnotes or wiki links."""
    raw = span.raw_inner
    if span.context_after.startswith(("(", "[")):
        return False
    if raw.startswith("^"):
        return False
    if raw.startswith("[") and raw.endswith("]"):
        return False
    if span.context_before.endswith("!"):
        return False
    return MathClassifier.is_latex_like(span.inner_text)
