"""
Per-rule line checks.

Each checker receives a LineContext whose references have already been
resolved and counted, and records failures with `ctx.fail`. Structural AST
comparison (modulo canonical form) is the primary path; Reiteration,
Conjunction Intro/Elim and Conditional Elim fall back to normalized-text
comparison when a formula does not parse, and mark the verdict approximate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from checker.config import CheckerConfig, ConjunctionOrder
from checker.frames import FrameIndex
from checker.rules import RuleKind
from checker.types import ProofLine, SubproofFrame
from formula.ast_canon import (
    And,
    Expr,
    Iff,
    Imp,
    Not,
    Or,
    ParseCache,
    equals_canonical,
    structural_equal,
)
from formula.quantifiers import (
    EXISTS,
    FORALL,
    alpha_equal,
    is_instance_of,
    is_quantifier_conversion,
    parse_quantified,
)
from formula.structure import (
    OP_NOT,
    conjunction_parts,
    implication_parts,
    normalize_text,
    same_text,
    strip_outer_parens,
)


@dataclass(slots=True)
class ResolvedRef:
    """A cited line that was processed before the citing line."""
    line_no: str
    idx: int
    line: ProofLine
    ast: Optional[Expr]

    @property
    def formula(self) -> str:
        return self.line.formula


@dataclass(slots=True)
class LineContext:
    """Everything a rule checker may consult for one line."""
    idx: int
    line: ProofLine
    ast: Optional[Expr]
    refs: List[ResolvedRef]
    frames: FrameIndex
    lines: Sequence[ProofLine]
    cache: ParseCache
    config: CheckerConfig
    messages: List[str] = field(default_factory=list)
    info: Optional[str] = None
    approximate: bool = False

    @property
    def formula(self) -> str:
        return self.line.formula

    def fail(self, message: str) -> None:
        self.messages.append(message)

    def ast_at(self, idx: int) -> Optional[Expr]:
        return self.cache.try_parse(self.lines[idx].formula)

    def unparsed(self) -> List[str]:
        missing = [ref.line_no for ref in self.refs if ref.ast is None]
        if self.ast is None:
            missing.insert(0, self.line.line_no)
        return missing

    def require_asts(self) -> bool:
        """Report lines that cannot be analyzed structurally; True when all parse."""
        missing = self.unparsed()
        if missing:
            self.fail(f"Cannot analyze: formula on line(s) {', '.join(missing)} does not parse")
            return False
        return True

    def formulas_match(
        self, text_a: str, ast_a: Optional[Expr], text_b: str, ast_b: Optional[Expr]
    ) -> bool:
        """Canonical equality when both sides parse, alpha-equality of the text otherwise."""
        if ast_a is not None and ast_b is not None:
            return equals_canonical(ast_a, ast_b)
        self.approximate = True
        a = strip_outer_parens(normalize_text(text_a))
        return alpha_equal(a, strip_outer_parens(normalize_text(text_b)))


Checker = Callable[[LineContext], None]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _contradicts(x: Expr, y: Expr) -> bool:
    """True when one formula is the negation of the other."""
    if isinstance(x, Not) and equals_canonical(x.operand, y):
        return True
    return isinstance(y, Not) and equals_canonical(y.operand, x)


def _is_contradiction(expr: Optional[Expr]) -> bool:
    return isinstance(expr, And) and _contradicts(expr.left, expr.right)


def _text_contradicts(a: str, b: str) -> bool:
    for x, y in ((a, b), (b, a)):
        negated = _negated_text(x)
        if negated is not None and alpha_equal(
            strip_outer_parens(negated), strip_outer_parens(normalize_text(y))
        ):
            return True
    return False


def _find_contradiction(ctx: LineContext, refs: Sequence[ResolvedRef]) -> bool:
    """Look for a line `X ^ !X` or a pair of lines X, !X among `refs`."""
    if any(_is_contradiction(ref.ast) for ref in refs):
        return True
    for i, x in enumerate(refs):
        for y in refs[i + 1:]:
            if x.ast is not None and y.ast is not None:
                if _contradicts(x.ast, y.ast):
                    return True
            elif _text_contradicts(x.formula, y.formula):
                ctx.approximate = True
                return True
    return False


def _at_frame_level(ctx: LineContext, frame: SubproofFrame, idx: int) -> bool:
    """Line `idx` lies in `frame` and not inside a subproof nested in it."""
    return FrameIndex.contains(frame, idx) and not any(
        f.depth > frame.depth for f in ctx.frames.open_at(idx)
    )


def _refs_inside(ctx: LineContext, frame: SubproofFrame) -> List[ResolvedRef]:
    return [ref for ref in ctx.refs if _at_frame_level(ctx, frame, ref.idx)]


def _negated_text(text: str) -> Optional[str]:
    s = strip_outer_parens(normalize_text(text))
    if s.startswith(OP_NOT) and len(s) > len(OP_NOT):
        return s[len(OP_NOT):]
    return None


def _de_morgan(expr: Optional[Expr]) -> Optional[Expr]:
    if isinstance(expr, Not) and isinstance(expr.operand, And):
        return Or(Not(expr.operand.left), Not(expr.operand.right))
    if isinstance(expr, Not) and isinstance(expr.operand, Or):
        return And(Not(expr.operand.left), Not(expr.operand.right))
    if isinstance(expr, Or) and isinstance(expr.left, Not) and isinstance(expr.right, Not):
        return Not(And(expr.left.operand, expr.right.operand))
    if isinstance(expr, And) and isinstance(expr.left, Not) and isinstance(expr.right, Not):
        return Not(Or(expr.left.operand, expr.right.operand))
    return None


# ---------------------------------------------------------------------------
# Propositional rules
# ---------------------------------------------------------------------------

def check_premise(ctx: LineContext) -> None:
    """Premises are accepted as given."""


def check_assumption(ctx: LineContext) -> None:
    frame = ctx.frames.starting_at(ctx.idx)
    if frame is not None:
        ctx.info = f"Opens subproof at depth {frame.depth}"


def check_reiteration(ctx: LineContext) -> None:
    ref = ctx.refs[0]
    if ctx.ast is not None and ref.ast is not None:
        same = structural_equal(ctx.ast, ref.ast)
    else:
        ctx.approximate = True
        same = same_text(ref.formula, ctx.formula)
    if not same:
        ctx.fail("Reiteration formula must match referenced line")


def check_conjunction_intro(ctx: LineContext) -> None:
    first, second = ctx.refs
    any_order = ctx.config.conjunction_order is ConjunctionOrder.ANY
    if ctx.ast is not None and first.ast is not None and second.ast is not None:
        if not isinstance(ctx.ast, And):
            ctx.fail("Conclusion must be a conjunction A^B")
            return
        left, right = ctx.ast.left, ctx.ast.right
        in_order = equals_canonical(left, first.ast) and equals_canonical(right, second.ast)
        swapped = equals_canonical(left, second.ast) and equals_canonical(right, first.ast)
        if not (in_order or (any_order and swapped)):
            if any_order:
                ctx.fail("Conjuncts must match the referenced lines")
            else:
                ctx.fail("Conjuncts must match referenced lines in order")
        return

    ctx.approximate = True
    left, right = conjunction_parts(normalize_text(ctx.formula))
    if left is None or right is None:
        ctx.fail("Formula must be a conjunction like (A ^ B)")
        return
    in_order = same_text(left, first.formula) and same_text(right, second.formula)
    swapped = same_text(left, second.formula) and same_text(right, first.formula)
    if in_order or (any_order and swapped):
        return
    if not same_text(left, first.formula):
        ctx.fail("Left conjunct must match first reference")
    if not same_text(right, second.formula):
        ctx.fail("Right conjunct must match second reference")


def check_conjunction_elim(ctx: LineContext) -> None:
    ref = ctx.refs[0]
    if ctx.ast is not None and ref.ast is not None:
        if not isinstance(ref.ast, And):
            ctx.fail("Referenced line is not a conjunction")
        elif not (equals_canonical(ctx.ast, ref.ast.left) or equals_canonical(ctx.ast, ref.ast.right)):
            ctx.fail("Result must be one conjunct of the referenced conjunction")
        return

    ctx.approximate = True
    left, right = conjunction_parts(normalize_text(ref.formula))
    if left is None or right is None:
        ctx.fail("Referenced line is not a conjunction")
    elif not (same_text(left, ctx.formula) or same_text(right, ctx.formula)):
        ctx.fail("Result must be one conjunct of the referenced conjunction")


def check_conditional_elim(ctx: LineContext) -> None:
    a, b = ctx.refs
    if ctx.ast is not None and a.ast is not None and b.ast is not None:
        def fits(premise: Expr, conditional: Expr) -> bool:
            return (
                isinstance(conditional, Imp)
                and equals_canonical(conditional.left, premise)
                and equals_canonical(ctx.ast, conditional.right)
            )

        if not (fits(a.ast, b.ast) or fits(b.ast, a.ast)):
            ctx.fail("References must be A and (A->B); conclusion must be B")
        return

    ctx.approximate = True

    def fits_text(premise: ResolvedRef, conditional: ResolvedRef) -> bool:
        antecedent, consequent = implication_parts(normalize_text(conditional.formula))
        if antecedent is None or consequent is None:
            return False
        return same_text(antecedent, premise.formula) and same_text(consequent, ctx.formula)

    if not (fits_text(a, b) or fits_text(b, a)):
        ctx.fail("References must be A and (A->B); conclusion must be B")


def check_modus_tollens(ctx: LineContext) -> None:
    if not ctx.require_asts():
        return
    a, b = ctx.refs

    def fits(conditional: Expr, denial: Expr) -> bool:
        return (
            isinstance(conditional, Imp)
            and isinstance(denial, Not)
            and equals_canonical(denial.operand, conditional.right)
            and isinstance(ctx.ast, Not)
            and equals_canonical(ctx.ast.operand, conditional.left)
        )

    if not (fits(a.ast, b.ast) or fits(b.ast, a.ast)):
        ctx.fail("References must be (A->B) and !B; conclusion must be !A")


def check_biconditional_intro(ctx: LineContext) -> None:
    if not ctx.require_asts():
        return
    r1, r2 = ctx.refs[0].ast, ctx.refs[1].ast
    concl = ctx.ast
    if not isinstance(concl, Iff) or not isinstance(r1, Imp) or not isinstance(r2, Imp):
        ctx.fail("Must use two conditionals to conclude a biconditional")
        return
    forward = (
        equals_canonical(r1.left, concl.left) and equals_canonical(r1.right, concl.right)
        and equals_canonical(r2.left, concl.right) and equals_canonical(r2.right, concl.left)
    )
    backward = (
        equals_canonical(r1.left, concl.right) and equals_canonical(r1.right, concl.left)
        and equals_canonical(r2.left, concl.left) and equals_canonical(r2.right, concl.right)
    )
    if not (forward or backward):
        ctx.fail("Conditionals must match both directions of the biconditional")


def check_biconditional_elim(ctx: LineContext) -> None:
    if not ctx.require_asts():
        return
    a, b = ctx.refs[0].ast, ctx.refs[1].ast

    def other_side(iff: Expr, side: Expr) -> Optional[Expr]:
        if not isinstance(iff, Iff):
            return None
        if equals_canonical(side, iff.left):
            return iff.right
        if equals_canonical(side, iff.right):
            return iff.left
        return None

    for iff, side in ((a, b), (b, a)):
        other = other_side(iff, side)
        if other is not None and equals_canonical(ctx.ast, other):
            return
    ctx.fail("One reference must be a biconditional, the other a matching side")


def _discharge_with_contradiction(
    ctx: LineContext, assumption_matches: Callable[[SubproofFrame], bool], missing_frame: str
) -> None:
    candidates = [f for f in ctx.frames.discharged_at(ctx.idx, ctx.line.depth) if assumption_matches(f)]
    if not candidates:
        ctx.fail(missing_frame)
        ctx.fail("No contradiction found inside subproof")
        return
    for frame in candidates:
        inside = _refs_inside(ctx, frame)
        if _find_contradiction(ctx, inside):
            ctx.info = f"Assumption @{frame.start_line_no}"
            return
    ctx.info = f"Assumption @{candidates[0].start_line_no}"
    ctx.fail("No contradiction found inside subproof")


def check_negation_intro(ctx: LineContext) -> None:
    if ctx.ast is not None:
        if not isinstance(ctx.ast, Not):
            ctx.fail("¬Intro conclusion must be a negation !A")
            return
        target_ast: Optional[Expr] = ctx.ast.operand
        target_text = ctx.ast.operand.to_canonical()
    else:
        target_text = _negated_text(ctx.formula)
        if target_text is None:
            ctx.fail("¬Intro conclusion must be a negation !A")
            return
        target_ast = None

    def matches(frame: SubproofFrame) -> bool:
        return ctx.formulas_match(
            frame.assumption_formula, ctx.ast_at(frame.start_idx), target_text, target_ast
        )

    _discharge_with_contradiction(ctx, matches, "No subproof frame found for assumption A")


def check_indirect_proof(ctx: LineContext) -> None:
    def matches(frame: SubproofFrame) -> bool:
        assumption = ctx.ast_at(frame.start_idx)
        if assumption is not None and ctx.ast is not None:
            return isinstance(assumption, Not) and equals_canonical(assumption.operand, ctx.ast)
        negated = _negated_text(frame.assumption_formula)
        return negated is not None and ctx.formulas_match(negated, None, ctx.formula, None)

    _discharge_with_contradiction(ctx, matches, "No subproof frame found with assumption !A")


def check_conditional_intro(ctx: LineContext) -> None:
    assumption_ref, derived_ref = ctx.refs
    if ctx.ast is not None:
        if not isinstance(ctx.ast, Imp):
            ctx.fail("→Intro conclusion must be a conditional (A->B)")
            return
        antecedent_text = ctx.ast.left.to_canonical()
        consequent_text = ctx.ast.right.to_canonical()
        antecedent_ast: Optional[Expr] = ctx.ast.left
        consequent_ast: Optional[Expr] = ctx.ast.right
    else:
        antecedent_text, consequent_text = implication_parts(normalize_text(ctx.formula))
        if antecedent_text is None or consequent_text is None:
            ctx.fail("→Intro conclusion must be a conditional (A->B)")
            return
        antecedent_ast = consequent_ast = None

    frame = ctx.frames.starting_at(assumption_ref.idx)
    if frame is None:
        ctx.fail("No subproof frame matches the assumption ref")
        return
    ctx.info = f"Discharged @{frame.start_line_no}"
    if frame not in ctx.frames.discharged_at(ctx.idx, ctx.line.depth):
        ctx.fail(f"Subproof opened at line {frame.start_line_no} must close right before this line")

    if not FrameIndex.contains(frame, derived_ref.idx):
        ctx.fail("Derived line must be inside the subproof")
    elif not _at_frame_level(ctx, frame, derived_ref.idx):
        ctx.fail("Derived line must not lie inside a nested subproof")

    if not ctx.formulas_match(
        frame.assumption_formula, assumption_ref.ast, antecedent_text, antecedent_ast
    ):
        ctx.fail("Assumption must match antecedent")
    if not ctx.formulas_match(derived_ref.formula, derived_ref.ast, consequent_text, consequent_ast):
        ctx.fail("Derived line must match conditional consequent")


def check_disjunction_intro(ctx: LineContext) -> None:
    if not ctx.require_asts():
        return
    ref = ctx.refs[0].ast
    if not isinstance(ctx.ast, Or):
        ctx.fail("Conclusion must be a disjunction A v B")
    elif not (equals_canonical(ref, ctx.ast.left) or equals_canonical(ref, ctx.ast.right)):
        ctx.fail("Referenced line must be one disjunct of the conclusion")


def _case_of(ctx: LineContext, ref: ResolvedRef) -> Optional[Tuple[Expr, Expr]]:
    """(case assumption, case result) from a conditional line or a discharged subproof."""
    frame = ctx.frames.starting_at(ref.idx)
    if frame is not None and frame in ctx.frames.discharged_at(ctx.idx, ctx.line.depth):
        if not _at_frame_level(ctx, frame, frame.end_idx):
            return None
    elif isinstance(ref.ast, Imp) and ctx.frames.is_accessible(ref.idx, ctx.idx):
        return ref.ast.left, ref.ast.right
    else:
        return None
    assumption = ctx.ast_at(frame.start_idx)
    result = ctx.ast_at(frame.end_idx)
    if assumption is None or result is None:
        return None
    return assumption, result


def check_disjunction_elim(ctx: LineContext) -> None:
    if not ctx.require_asts():
        return
    for i, disjunction in enumerate(ctx.refs):
        if not isinstance(disjunction.ast, Or):
            continue
        if not ctx.frames.is_accessible(disjunction.idx, ctx.idx):
            continue
        cases = [_case_of(ctx, ref) for j, ref in enumerate(ctx.refs) if j != i]
        if any(case is None for case in cases):
            continue
        (a1, c1), (a2, c2) = cases
        left, right = disjunction.ast.left, disjunction.ast.right
        covers = (equals_canonical(a1, left) and equals_canonical(a2, right)) or (
            equals_canonical(a1, right) and equals_canonical(a2, left)
        )
        if covers and equals_canonical(c1, ctx.ast) and equals_canonical(c2, ctx.ast):
            ctx.info = f"Cases on line {disjunction.line_no}"
            return
    ctx.fail("Disjunction Elim needs a disjunction A v B and a case for each disjunct concluding C")


def check_double_negation_intro(ctx: LineContext) -> None:
    if not ctx.require_asts():
        return
    concl = ctx.ast
    if not (isinstance(concl, Not) and isinstance(concl.operand, Not)
            and equals_canonical(concl.operand.operand, ctx.refs[0].ast)):
        ctx.fail("Conclusion must be !!A where A is the referenced line")


def check_double_negation_elim(ctx: LineContext) -> None:
    if not ctx.require_asts():
        return
    ref = ctx.refs[0].ast
    if not (isinstance(ref, Not) and isinstance(ref.operand, Not)):
        ctx.fail("Referenced line must be a double negation !!A")
    elif not equals_canonical(ref.operand.operand, ctx.ast):
        ctx.fail("Conclusion must be A from the referenced !!A")


def check_de_morgan(ctx: LineContext) -> None:
    if not ctx.require_asts():
        return
    ref = ctx.refs[0].ast
    if not (equals_canonical(_de_morgan(ref), ctx.ast) or equals_canonical(_de_morgan(ctx.ast), ref)):
        ctx.fail("Conclusion must follow from the reference by a De Morgan law")


def check_explosion(ctx: LineContext) -> None:
    ref = ctx.refs[0]
    if ref.ast is None:
        ctx.require_asts()
    elif not _is_contradiction(ref.ast):
        ctx.fail("Referenced line must be a contradiction A ^ !A")


def check_excluded_middle(ctx: LineContext) -> None:
    if not ctx.require_asts():
        return
    concl = ctx.ast
    if not (isinstance(concl, Or) and _contradicts(concl.left, concl.right)):
        ctx.fail("Conclusion must have the form A v !A")


def check_disjunctive_syllogism(ctx: LineContext) -> None:
    if not ctx.require_asts():
        return
    a, b = ctx.refs[0].ast, ctx.refs[1].ast

    def fits(disjunction: Expr, denial: Expr) -> bool:
        if not isinstance(disjunction, Or) or not isinstance(denial, Not):
            return False
        if equals_canonical(denial.operand, disjunction.left):
            return equals_canonical(ctx.ast, disjunction.right)
        if equals_canonical(denial.operand, disjunction.right):
            return equals_canonical(ctx.ast, disjunction.left)
        return False

    if not (fits(a, b) or fits(b, a)):
        ctx.fail("References must be (A v B) and !A; conclusion must be B")


# ---------------------------------------------------------------------------
# Quantifier rules (textual heuristics)
# ---------------------------------------------------------------------------

def check_universal_intro(ctx: LineContext) -> None:
    ctx.approximate = True
    q = parse_quantified(ctx.formula)
    if q is None or q.kind != FORALL:
        ctx.fail("Universal Intro: conclusion must be forallx(P(x))")
        return
    if not is_instance_of(q.body, q.variable, ctx.refs[0].formula):
        ctx.fail("Reference must match body up to alpha-equivalence")


def check_universal_elim(ctx: LineContext) -> None:
    ctx.approximate = True
    q = parse_quantified(ctx.refs[0].formula)
    if q is None or q.kind != FORALL:
        ctx.fail("Reference must be forallx(P(x))")
        return
    if not is_instance_of(q.body, q.variable, ctx.formula):
        ctx.fail("Conclusion must be instance of body (capture-avoiding)")


def check_existential_intro(ctx: LineContext) -> None:
    ctx.approximate = True
    q = parse_quantified(ctx.formula)
    if q is None or q.kind != EXISTS:
        ctx.fail("Conclusion must be existsx(P(x))")
        return
    if not is_instance_of(q.body, q.variable, ctx.refs[0].formula):
        ctx.fail("Reference must be instance of body")


def check_existential_elim(ctx: LineContext) -> None:
    # Scoping restrictions on the witness are not enforced.
    ctx.approximate = True
    first = ctx.refs[0]
    if not ctx.frames.is_accessible(first.idx, ctx.idx):
        ctx.fail(f"Line {first.line_no} is inside a closed subproof and cannot be cited here")
        return
    q = parse_quantified(first.formula)
    if q is None or q.kind != EXISTS:
        ctx.fail("First reference must be existsx(P(x))")


def check_conversion_of_quantifiers(ctx: LineContext) -> None:
    ctx.approximate = True
    if not is_quantifier_conversion(ctx.refs[0].formula, ctx.formula):
        ctx.fail("Conclusion must convert the referenced quantifier (!forallx <-> existsx!, !existsx <-> forallx!)")


CHECKS: Dict[RuleKind, Checker] = {
    RuleKind.PREMISE: check_premise,
    RuleKind.ASSUMPTION: check_assumption,
    RuleKind.REITERATION: check_reiteration,
    RuleKind.CONJUNCTION_INTRO: check_conjunction_intro,
    RuleKind.CONJUNCTION_ELIM: check_conjunction_elim,
    RuleKind.CONDITIONAL_INTRO: check_conditional_intro,
    RuleKind.CONDITIONAL_ELIM: check_conditional_elim,
    RuleKind.MODUS_TOLLENS: check_modus_tollens,
    RuleKind.DISJUNCTION_INTRO: check_disjunction_intro,
    RuleKind.DISJUNCTION_ELIM: check_disjunction_elim,
    RuleKind.DOUBLE_NEGATION_INTRO: check_double_negation_intro,
    RuleKind.DOUBLE_NEGATION_ELIM: check_double_negation_elim,
    RuleKind.BICONDITIONAL_INTRO: check_biconditional_intro,
    RuleKind.BICONDITIONAL_ELIM: check_biconditional_elim,
    RuleKind.NEGATION_INTRO: check_negation_intro,
    RuleKind.DE_MORGAN: check_de_morgan,
    RuleKind.EXPLOSION: check_explosion,
    RuleKind.EXCLUDED_MIDDLE: check_excluded_middle,
    RuleKind.DISJUNCTIVE_SYLLOGISM: check_disjunctive_syllogism,
    RuleKind.INDIRECT_PROOF: check_indirect_proof,
    RuleKind.UNIVERSAL_INTRO: check_universal_intro,
    RuleKind.UNIVERSAL_ELIM: check_universal_elim,
    RuleKind.EXISTENTIAL_INTRO: check_existential_intro,
    RuleKind.EXISTENTIAL_ELIM: check_existential_elim,
    RuleKind.CONVERSION_OF_QUANTIFIERS: check_conversion_of_quantifiers,
}

_missing = set(RuleKind) - set(CHECKS)
if _missing:
    raise RuntimeError(f"No checker registered for: {sorted(k.name for k in _missing)}")


__all__ = ["CHECKS", "Checker", "LineContext", "ResolvedRef"]
