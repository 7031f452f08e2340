"""
Tests for formula/quantifiers.py string-level quantifier heuristics.
"""

import pytest

from formula.quantifiers import (
    EXISTS,
    FORALL,
    alpha_equal,
    extract_identifiers,
    is_instance_of,
    is_quantifier_conversion,
    parse_quantified,
    replace_var,
)


class TestParseQuantified:
    def test_universal(self):
        q = parse_quantified("∀x(P(x))")
        assert (q.kind, q.variable, q.body) == (FORALL, "x", "P(x)")

    def test_existential_with_spaces(self):
        q = parse_quantified("exists y ( P(y) ^ Q(y) )")
        assert (q.kind, q.variable, q.body) == (EXISTS, "y", "P(y)^Q(y)")

    @pytest.mark.parametrize("text", ["P(x)", "forallx P(x)", "forallx(P(x)))(", "!forallx(P(x))"])
    def test_rejects_other_shapes(self, text):
        assert parse_quantified(text) is None


class TestReplaceVar:
    def test_whole_identifier_only(self):
        assert replace_var("P(x)^R(x,xy)", "x", "a") == "P(a)^R(a,xy)"


class TestAlphaEqual:
    def test_renamed_bound_variable(self):
        assert alpha_equal("forallx(P(x))", "forally(P(y))")

    def test_kind_matters(self):
        assert not alpha_equal("forallx(P(x))", "existsx(P(x))")

    def test_plain_text(self):
        assert alpha_equal("A ^ B", "A^B")
        assert not alpha_equal("A", "B")


class TestInstances:
    def test_extract_identifiers(self):
        assert extract_identifiers("P(x)^Q(a)^P(a)") == ["P", "x", "Q", "a"]

    def test_instance(self):
        assert is_instance_of("P(x)", "x", "P(a)")
        assert is_instance_of("P(x)^Q(x)", "x", "P(b)^Q(b)")

    def test_inconsistent_substitution(self):
        assert not is_instance_of("P(x)^Q(x)", "x", "P(a)^Q(b)")

    def test_identity_is_instance(self):
        assert is_instance_of("P(x)", "x", "P(x)")

    def test_empty_target(self):
        assert not is_instance_of("P(x)", "x", "")


class TestQuantifierConversion:
    @pytest.mark.parametrize(
        "source,target",
        [
            ("!forallx(P(x))", "existsx(!P(x))"),
            ("!existsx(P(x))", "forallx(!P(x))"),
            ("existsx(!P(x))", "!forallx(P(x))"),
            ("!forallx(P(x) ^ Q(x))", "existsx(!(P(x)^Q(x)))"),
            ("!forallx(P(x))", "existsy(!P(y))"),
        ],
    )
    def test_valid(self, source, target):
        assert is_quantifier_conversion(source, target)

    def test_same_quantifier_rejected(self):
        assert not is_quantifier_conversion("!forallx(P(x))", "forallx(!P(x))")

    def test_missing_negation_rejected(self):
        assert not is_quantifier_conversion("forallx(P(x))", "existsx(P(x))")
