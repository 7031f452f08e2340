"""
Tests for formula/ast_canon.py parsing and canonicalization.
"""

import pytest

from formula.ast_canon import (
    And,
    FormulaSyntaxError,
    Iff,
    Imp,
    Not,
    Or,
    ParseCache,
    TokenKind,
    Var,
    canonical_key,
    canonicalize,
    equals_canonical,
    normalize_symbols,
    parse_formula,
    tokenize,
)

A, B, C = Var("A"), Var("B"), Var("C")


def canon(s: str) -> str:
    return canonicalize(parse_formula(s)).to_canonical()


class TestTokenizer:
    """Test the tokenizer."""

    def test_tokenize_simple(self):
        kinds = [t.kind for t in tokenize("p -> q")]
        assert kinds == [TokenKind.IDENT, TokenKind.IMPLIES, TokenKind.IDENT, TokenKind.EOF]

    def test_tokenize_biconditional_is_one_token(self):
        kinds = [t.kind for t in tokenize("p <-> q")]
        assert kinds == [TokenKind.IDENT, TokenKind.IFF, TokenKind.IDENT, TokenKind.EOF]

    def test_bare_v_is_disjunction(self):
        kinds = [t.kind for t in tokenize("A v B")]
        assert kinds == [TokenKind.IDENT, TokenKind.OR, TokenKind.IDENT, TokenKind.EOF]

    def test_v_inside_identifier_is_not_disjunction(self):
        tokens = tokenize("AvB")
        assert [t.kind for t in tokens] == [TokenKind.IDENT, TokenKind.EOF]
        assert tokens[0].value == "AvB"

    def test_positions_recorded(self):
        tokens = tokenize("A ^ B")
        assert [t.pos for t in tokens] == [0, 2, 4, 5]

    def test_unknown_character_raises(self):
        with pytest.raises(FormulaSyntaxError) as exc:
            tokenize("A $ B")
        assert exc.value.position == 2

    def test_unknown_character_skipped_when_lenient(self):
        kinds = [t.kind for t in tokenize("A $ B", lenient=True)]
        assert kinds == [TokenKind.IDENT, TokenKind.IDENT, TokenKind.EOF]


class TestSymbolAliases:
    """Every accepted spelling maps to the parser alphabet."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("¬A ∧ B → C", Imp(And(Not(A), B), C)),
            ("~A & B => C", Imp(And(Not(A), B), C)),
            ("A ∨ B", Or(A, B)),
            ("A || B", Or(A, B)),
            ("A \\/ B", Or(A, B)),
            ("A /\\ B", And(A, B)),
            ("A ↔ B", Iff(A, B)),
            ("A <=> B", Iff(A, B)),
            ("A ⇒ B", Imp(A, B)),
        ],
    )
    def test_aliases(self, text, expected):
        assert parse_formula(text) == expected

    def test_normalize_symbols_prefers_longest_alias(self):
        assert normalize_symbols("A <=> B") == "A <-> B"
        assert normalize_symbols("A => B") == "A -> B"


class TestParser:
    """Test the parser."""

    def test_parse_atom(self):
        assert parse_formula("p") == Var("p")

    def test_precedence_and_over_implies(self):
        assert parse_formula("A ^ B -> C") == Imp(And(A, B), C)

    def test_precedence_and_over_or(self):
        assert parse_formula("A v B ^ C") == Or(A, And(B, C))

    def test_implication_right_associative(self):
        assert parse_formula("A -> B -> C") == Imp(A, Imp(B, C))

    def test_iff_lowest(self):
        assert parse_formula("A <-> B -> C") == Iff(A, Imp(B, C))

    def test_negation_binds_tightest(self):
        assert parse_formula("!A ^ B") == And(Not(A), B)
        assert parse_formula("!!A") == Not(Not(A))

    def test_conjunction_chain_folds_left(self):
        assert parse_formula("A ^ B ^ C") == And(And(A, B), C)

    def test_parentheses(self):
        assert parse_formula("((A))") == A
        assert parse_formula("A ^ (B v C)") == And(A, Or(B, C))

    def test_predicate_atoms_are_opaque(self):
        assert parse_formula("P(a,b) ^ Q(c)") == And(Var("P(a,b)"), Var("Q(c)"))

    def test_quantifier_does_not_parse(self):
        with pytest.raises(FormulaSyntaxError):
            parse_formula("forallx(P(x))")

    @pytest.mark.parametrize("text", ["", "   ", "A ^", "(A", "A B", "A ^ ^ B", "-> A"])
    def test_malformed_raises(self, text):
        with pytest.raises(FormulaSyntaxError):
            parse_formula(text)

    def test_lenient_total_failure_is_placeholder(self):
        assert parse_formula("", lenient=True) == Var("?")
        assert parse_formula("A $ B", lenient=True) == Var("?")

    def test_lenient_partial_failure(self):
        assert parse_formula("A ^", lenient=True) == And(A, Var("?"))

    def test_deterministic(self):
        assert parse_formula("(A ^ B) -> !C") == parse_formula("(A ^ B) -> !C")


class TestCanonicalization:
    """Test canonicalization."""

    def test_commutative_and(self):
        assert canon("B ^ A") == "A ^ B"

    def test_commutative_or(self):
        assert canon("B v A") == "A v B"

    def test_associative_grouping(self):
        assert canon("(C ^ A) ^ B") == canon("A ^ (B ^ C)")

    def test_iff_sides_ordered(self):
        assert canon("B <-> A") == "A <-> B"

    def test_implication_not_commutative(self):
        assert not equals_canonical(parse_formula("A -> B"), parse_formula("B -> A"))

    def test_reorders_inside_negation(self):
        assert canon("!(B v A)") == "!(A v B)"

    def test_mixed_connectives_not_merged(self):
        assert canon("(B ^ A) v C") == "(A ^ B) v C"
        assert not equals_canonical(parse_formula("A ^ (B v C)"), parse_formula("(A ^ B) v C"))

    def test_no_double_negation_elimination(self):
        assert not equals_canonical(parse_formula("!!A"), A)

    def test_no_deduplication(self):
        assert not equals_canonical(parse_formula("A ^ A"), A)

    def test_idempotent(self):
        for text in ["C v (B ^ A)", "(B <-> A) -> !(D v C)", "A ^ (C ^ B) ^ D"]:
            once = canonicalize(parse_formula(text))
            assert canonicalize(once) == once

    def test_canonical_key_injective_on_shape(self):
        assert canonical_key(parse_formula("A ^ B")) != canonical_key(parse_formula("A v B"))
        assert canonical_key(parse_formula("A -> B")) == "i:(v:A)->(v:B)"

    def test_equals_canonical_none(self):
        assert not equals_canonical(None, A)
        assert not equals_canonical(A, None)

    def test_canonical_text_round_trips(self):
        for text in ["(A ^ B) -> C", "!(A v B)", "A <-> (B -> C)", "!!A"]:
            expr = parse_formula(text)
            assert parse_formula(expr.to_canonical()) == expr


class TestOrdering:
    def test_ordering(self):
        assert sorted([B, A]) == [A, B]


class TestParseCache:
    """Test the per-call parse memo."""

    def test_memoizes_success(self):
        cache = ParseCache()
        first = cache.parse("A ^ B")
        assert cache.parse("A ^ B") is first
        assert len(cache) == 1

    def test_memoizes_failure(self):
        cache = ParseCache()
        assert cache.try_parse("A ^") is None
        assert isinstance(cache.error_for("A ^"), FormulaSyntaxError)
        assert "A ^" in cache
        assert len(cache) == 1
        with pytest.raises(FormulaSyntaxError):
            cache.parse("A ^")

    def test_lenient_cache(self):
        cache = ParseCache(lenient=True)
        assert cache.try_parse("") == Var("?")
        assert cache.error_for("") is None
