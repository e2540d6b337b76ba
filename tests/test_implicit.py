from mathdelim.converter.implicit import convert_brackets, convert_parens, iter_balanced
from mathdelim.parser.segmenter import segment_document
from mathdelim.parser.structure import join_regions


def parens(text):
    return join_regions(convert_parens(segment_document(text)))


def brackets(text):
    return join_regions(convert_brackets(segment_document(text)))


class TestIterBalanced:
    def test_outermost_pairs(self):
        assert list(iter_balanced("(a(b)) (c)", "(", ")")) == [(0, 5), (7, 9)]

    def test_unmatched_opener_is_literal(self):
        assert list(iter_balanced("((a)", "(", ")")) == [(1, 3)]

    def test_escaped_opener_skipped(self):
        assert list(iter_balanced("\\(a) (b)", "(", ")")) == [(5, 7)]


class TestParens:
    def test_arithmetic(self):
        assert parens("We compute (a+b) here") == "We compute $a+b$ here"

    def test_whitespace_trimmed(self):
        assert parens("so ( x^2 ) grows") == "so $x^2$ grows"

    def test_reference_rejected(self):
        assert parens("(see section 2)") == "(see section 2)"

    def test_enumeration_rejected(self):
        text = "(a) first\n(b) second\nstep (3) and (iv)"
        assert parens(text) == text

    def test_single_letter_in_math_context(self):
        assert parens("the vector (x) is unit length") == "the vector $x$ is unit length"

    def test_prose_rejected(self):
        text = "I said (this is prose) once."
        assert parens(text) == text

    def test_multiline_span_rejected(self):
        text = "(a +\nb)"
        assert parens(text) == text

    def test_span_with_dollar_rejected(self):
        text = "(costs $5 + tax)"
        assert parens(text) == text

    def test_rejected_span_not_searched_again(self):
        text = "(see (x+y) below)"
        assert parens(text) == text

    def test_link_target_rejected(self):
        text = "read [this](x_1) now"
        assert parens(text) == text

    def test_unbalanced_left_in_place(self):
        assert parens("(a+b") == "(a+b"


class TestBrackets:
    def test_latex(self):
        assert brackets("the value [x^2] grows") == "the value $x^2$ grows"

    def test_interval(self):
        assert brackets("on [0, 1] only") == "on $0, 1$ only"

    def test_markdown_link_rejected(self):
        assert brackets("[text](http://x)") == "[text](http://x)"

    def test_link_in_sentence_rejected(self):
        text = "read [x_1](http://x) and [y^2][ref]"
        assert brackets(text) == text

    def test_footnote_rejected(self):
        assert brackets("claim[^1] holds") == "claim[^1] holds"

    def test_citation_rejected(self):
        assert brackets("see [1] and [2]") == "see [1] and [2]"


class TestUnpairedDollar:
    def test_line_left_alone(self):
        text = "It costs $5 per unit (x+1) here"
        assert parens(text) == text

    def test_other_lines_still_converted(self):
        text = "It costs $5 each\nWe compute (a+b) here"
        assert parens(text) == "It costs $5 each\nWe compute $a+b$ here"

    def test_escaped_dollar_does_not_count(self):
        assert parens("It costs \\$5 and (a+b) more") == "It costs \\$5 and $a+b$ more"

    def test_brackets_on_line_left_alone(self):
        text = "price $3 for [x^2] today"
        assert brackets(text) == text
