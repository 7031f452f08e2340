"""
Tests for the first-order rulesets: opaque quantified formulas and textual
quantifier rules.
"""

import pytest

from checker.engine import validate_proof


def line(no, formula, rule="Premise", refs=(), depth=0):
    return {"lineNo": no, "formula": formula, "rule": rule, "refs": list(refs), "depth": depth}


def check_line(premises, lines, no, ruleset="fol_basic"):
    return validate_proof(premises, "Z", lines, ruleset).line(no)


class TestQuantifiedFormulas:
    def test_quantified_formula_is_opaque_under_fol(self):
        entry = check_line(["forallx(P(x))"], [line("1", "forallx(P(x))")], "1")
        assert entry.ok

    def test_quantified_formula_rejected_under_tfl(self):
        entry = check_line(["forallx(P(x))"], [line("1", "forallx(P(x))")], "1", ruleset="tfl_basic")
        assert not entry.ok
        assert entry.messages[0].startswith("Formula does not parse:")

    def test_reiteration_falls_back_to_text(self):
        lines = [line("1", "∀x(P(x))"), line("2", "forall x (P(x))", "R", ["1"])]
        entry = check_line(["forallx(P(x))"], lines, "2")
        assert entry.ok
        assert entry.evidence.approximate

    def test_conditional_elim_falls_back_to_text(self):
        lines = [
            line("1", "forallx(P(x))"),
            line("2", "forallx(P(x)) -> Q"),
            line("3", "Q", "MP", ["1", "2"]),
        ]
        entry = check_line([], lines, "3")
        assert entry.ok
        assert entry.evidence.approximate

    def test_other_rules_report_unanalyzable(self):
        lines = [line("1", "forallx(P(x))"), line("2", "!!forallx(P(x))", "DNI", ["1"])]
        entry = check_line([], lines, "2")
        assert entry.messages == ["Cannot analyze: formula on line(s) 2, 1 does not parse"]


class TestQuantifierRules:
    def test_universal_elim(self):
        lines = [line("1", "forallx(P(x))"), line("2", "P(a)", "∀E", ["1"])]
        entry = check_line(["forallx(P(x))"], lines, "2")
        assert entry.ok
        assert entry.evidence.rule == "Universal Elim"
        assert entry.evidence.approximate

    def test_universal_elim_wrong_instance(self):
        lines = [line("1", "forallx(P(x))"), line("2", "Q(a)", "∀E", ["1"])]
        assert check_line([], lines, "2").messages == [
            "Conclusion must be instance of body (capture-avoiding)"
        ]

    def test_universal_elim_needs_universal(self):
        lines = [line("1", "existsx(P(x))"), line("2", "P(a)", "∀E", ["1"])]
        assert check_line([], lines, "2").messages == ["Reference must be forallx(P(x))"]

    def test_universal_intro(self):
        lines = [line("1", "P(a)"), line("2", "forally(P(y))", "∀I", ["1"])]
        assert check_line(["P(a)"], lines, "2").ok

    def test_existential_intro(self):
        lines = [line("1", "P(a) ^ Q(a)"), line("2", "existsx(P(x) ^ Q(x))", "∃I", ["1"])]
        assert check_line([], lines, "2").ok

    def test_existential_intro_mismatch(self):
        lines = [line("1", "P(a)"), line("2", "existsx(Q(x))", "∃I", ["1"])]
        assert check_line([], lines, "2").messages == ["Reference must be instance of body"]

    def test_existential_elim_checks_shape_only(self):
        lines = [
            line("1", "existsx(P(x))"),
            line("2", "P(a)", "Assumption", depth=1),
            line("3", "Q", "Premise", depth=1),
            line("4", "Q", "∃E", ["1", "2"]),
        ]
        assert check_line([], lines, "4").ok
        lines[0] = line("1", "forallx(P(x))")
        assert check_line([], lines, "4").messages == ["First reference must be existsx(P(x))"]

    def test_existential_elim_needs_accessible_existential(self):
        lines = [
            line("1", "existsx(P(x))", "Assumption", depth=1),
            line("2", "P(a)", "Assumption", depth=2),
            line("3", "Q", "Premise", depth=2),
            line("4", "Q", "∃E", ["1", "2"], depth=1),
            line("5", "Q", "∃E", ["1", "2"]),
        ]
        assert check_line([], lines, "4").ok
        assert check_line([], lines, "5").messages == [
            "Line 1 is inside a closed subproof and cannot be cited here"
        ]

    @pytest.mark.parametrize(
        "source,target",
        [("!forallx(P(x))", "existsx(!P(x))"), ("forallx(!P(x))", "!existsx(P(x))")],
    )
    def test_conversion_of_quantifiers(self, source, target):
        lines = [line("1", source), line("2", target, "CQ", ["1"])]
        assert check_line([source], lines, "2").ok

    def test_conversion_needs_dual(self):
        lines = [line("1", "!forallx(P(x))"), line("2", "forallx(!P(x))", "CQ", ["1"])]
        assert not check_line([], lines, "2").ok

    def test_quantifier_rule_unavailable_under_tfl(self):
        lines = [line("1", "P(a)"), line("2", "existsx(P(x))", "∃I", ["1"])]
        entry = check_line([], lines, "2", ruleset="tfl_basic")
        assert "Rule 'Existential Intro' is not available in ruleset 'tfl_basic'" in entry.messages


class TestNegationWithQuantifiers:
    def test_contradiction_between_opaque_formulas(self):
        lines = [
            line("1", "!existsx(P(x))"),
            line("2", "P(a)", "Assumption", depth=1),
            line("3", "existsx(P(x))", "∃I", ["2"], depth=1),
            line("4", "!existsx(P(x))", "R", ["1"], depth=1),
            line("5", "!P(a)", "¬I", ["3", "4"]),
        ]
        result = validate_proof(["!existsx(P(x))"], "!P(a)", lines, "fol_basic")
        assert result.ok, [(e.line_no, e.messages) for e in result.lines]
        assert result.conclusion_reached
        assert result.line("5").evidence.approximate
