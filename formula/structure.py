"""
Textual utilities for formulas in normalized compact form.

These helpers back the approximate path of the checker: when a cited formula
does not parse, rule checks fall back to comparing normalized text. All
functions are pure and operate on the output of `normalize_text`.
"""

from __future__ import annotations

from typing import Optional, Tuple

from formula.ast_canon import normalize_symbols

OP_IFF = "<->"
OP_IMPLIES = "->"
OP_AND = "^"
OP_NOT = "!"


def normalize_text(formula: Optional[str]) -> str:
    """Map connective aliases to the parser alphabet and drop all whitespace."""
    if not formula:
        return ""
    return "".join(normalize_symbols(formula).split())


def split_top(formula: str, operator: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a formula at the outermost occurrence of `operator`.

    Returns a tuple (lhs, rhs) when a top-level occurrence is found, or
    (None, None) otherwise. Parentheses are honoured so nested occurrences
    do not cause accidental splits, and the `->` inside `<->` never matches.
    """
    if not formula:
        return (None, None)

    depth = 0
    width = len(operator)
    for idx in range(len(formula) - width + 1):
        ch = formula[idx]
        if ch == "(":
            depth += 1
            continue
        if ch == ")":
            depth -= 1
            continue
        if depth != 0 or formula[idx : idx + width] != operator:
            continue
        if operator == OP_IMPLIES and idx > 0 and formula[idx - 1] == "<":
            continue
        left = formula[:idx]
        right = formula[idx + width :]
        if left and right:
            return (left, right)
        return (None, None)
    return (None, None)


def strip_outer_parens(text: str) -> str:
    """Remove outer parenthesis pairs while they wrap the entire formula."""
    while text and text[0] == "(" and text[-1] == ")":
        depth = 0
        for idx, ch in enumerate(text):
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0 and idx < len(text) - 1:
                    return text
        text = text[1:-1]
    return text


def conjunction_parts(formula: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (left, right) conjuncts of a normalized conjunction."""
    body = strip_outer_parens(formula)
    if split_top(body, OP_IFF) != (None, None) or split_top(body, OP_IMPLIES) != (None, None):
        return (None, None)
    lhs, rhs = _split_last(body, OP_AND)
    if lhs is None or rhs is None:
        return (None, None)
    return (strip_outer_parens(lhs), strip_outer_parens(rhs))


def implication_parts(formula: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (antecedent, consequent) for implications, otherwise (None, None)."""
    body = strip_outer_parens(formula)
    if split_top(body, OP_IFF) != (None, None):
        return (None, None)
    lhs, rhs = split_top(body, OP_IMPLIES)
    if lhs is None or rhs is None:
        return (None, None)
    return (strip_outer_parens(lhs), strip_outer_parens(rhs))


def same_text(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two formulas as normalized text, ignoring redundant outer parens."""
    na = strip_outer_parens(normalize_text(a))
    nb = strip_outer_parens(normalize_text(b))
    return bool(na) and na == nb


def _split_last(formula: str, operator: str) -> Tuple[Optional[str], Optional[str]]:
    # Conjunction chains fold left, so the main connective is the last one.
    depth = 0
    width = len(operator)
    for idx in range(len(formula) - width, -1, -1):
        ch = formula[idx]
        if ch == ")":
            depth += 1
        elif ch == "(":
            depth -= 1
        elif depth == 0 and formula[idx : idx + width] == operator:
            left = formula[:idx]
            right = formula[idx + width :]
            if left and right:
                return (left, right)
            return (None, None)
    return (None, None)


__all__ = [
    "OP_AND",
    "OP_IFF",
    "OP_IMPLIES",
    "OP_NOT",
    "conjunction_parts",
    "implication_parts",
    "normalize_text",
    "same_text",
    "split_top",
    "strip_outer_parens",
]
