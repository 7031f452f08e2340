"""
String-level quantifier heuristics for the first-order rules.

Quantified formulas are recognized only in the normalized shape
`forallx(body)` / `existsx(body)` with a single-letter bound variable.
Alpha-equivalence and instance checks are purely textual substitutions, not
unification: every verdict produced here is best-effort.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from formula.structure import OP_NOT, normalize_text, strip_outer_parens

FORALL = "forall"
EXISTS = "exists"

BOUND_PLACEHOLDER = "_v"

_QUANTIFIED_RE = re.compile(r"^(forall|exists)([a-zA-Z])\((.*)\)$")
_IDENT_RE = re.compile(r"[a-zA-Z][a-zA-Z0-9_]*")
_SIMPLE_BODY_RE = re.compile(r"^!*[a-zA-Z][a-zA-Z0-9_]*(\([a-zA-Z0-9_,]*\))?$")


@dataclass(frozen=True, slots=True)
class Quantified:
    """A formula of shape `<kind><variable>(<body>)`."""
    kind: str
    variable: str
    body: str

    def render(self) -> str:
        return f"{self.kind}{self.variable}({self.body})"


def parse_quantified(text: Optional[str]) -> Optional[Quantified]:
    """Recognize `forallx(body)` / `existsx(body)`; anything else yields None."""
    s = normalize_text(text)
    m = _QUANTIFIED_RE.match(s)
    if not m or not _balanced(m.group(3)):
        return None
    return Quantified(kind=m.group(1), variable=m.group(2), body=m.group(3))


def replace_var(body: str, variable: str, term: str) -> str:
    """Replace whole-identifier occurrences of `variable` in `body` with `term`."""
    pattern = rf"(?<![a-zA-Z0-9_]){re.escape(variable)}(?![a-zA-Z0-9_])"
    return re.sub(pattern, lambda _m: term, body)


def alpha_equal(a: Optional[str], b: Optional[str]) -> bool:
    """Equality up to renaming of the outermost bound variable."""
    sa = normalize_text(a)
    sb = normalize_text(b)
    if sa == sb:
        return True
    qa = parse_quantified(sa)
    qb = parse_quantified(sb)
    if qa and qb and qa.kind == qb.kind:
        body_a = replace_var(qa.body, qa.variable, BOUND_PLACEHOLDER)
        body_b = replace_var(qb.body, qb.variable, BOUND_PLACEHOLDER)
        return body_a == body_b
    return False


def extract_identifiers(s: str) -> List[str]:
    """Identifiers of `s` in first-occurrence order, quantifier keywords excluded."""
    seen: List[str] = []
    for token in _IDENT_RE.findall(s):
        if token in (FORALL, EXISTS) or token in seen:
            continue
        seen.append(token)
    return seen


def is_instance_of(body: str, variable: str, target: Optional[str]) -> bool:
    """
    True when `target` is `body` with `variable` replaced by some identifier.

    The candidate terms are the identifiers occurring in `target`, so the
    search is finite. Textual identity counts as the trivial instance.
    """
    norm_body = normalize_text(body)
    norm_target = normalize_text(target)
    if not norm_target:
        return False
    if norm_body == norm_target:
        return True
    for term in extract_identifiers(norm_target):
        if replace_var(norm_body, variable, term) == norm_target:
            return True
    return False


def negate_text(body: str) -> List[str]:
    """Spellings of the negation of `body` accepted by quantifier conversion."""
    body = strip_outer_parens(body)
    spellings = [f"{OP_NOT}({body})"]
    if _SIMPLE_BODY_RE.match(body):
        spellings.insert(0, f"{OP_NOT}{body}")
    return spellings


def dual(kind: str) -> str:
    return EXISTS if kind == FORALL else FORALL


def is_quantifier_conversion(source: Optional[str], target: Optional[str]) -> bool:
    """
    Check one step of quantifier conversion in either direction.

        !forallx(B)  <=>  existsx(!B)
        !existsx(B)  <=>  forallx(!B)
    """
    return _converts(source, target) or _converts(target, source)


def _converts(negated: Optional[str], quantified: Optional[str]) -> bool:
    s = normalize_text(negated)
    if not s.startswith(OP_NOT):
        return False
    inner = parse_quantified(strip_outer_parens(s[len(OP_NOT):]))
    if inner is None:
        return False
    for negated_body in negate_text(inner.body):
        expected = Quantified(dual(inner.kind), inner.variable, negated_body).render()
        if alpha_equal(expected, quantified):
            return True
    return False


def _balanced(s: str) -> bool:
    depth = 0
    for ch in s:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


__all__ = [
    "BOUND_PLACEHOLDER",
    "EXISTS",
    "FORALL",
    "Quantified",
    "alpha_equal",
    "dual",
    "extract_identifiers",
    "is_instance_of",
    "is_quantifier_conversion",
    "negate_text",
    "parse_quantified",
    "replace_var",
]
