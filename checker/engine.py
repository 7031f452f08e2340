"""
Proof validation engine.

`ProofChecker.validate` walks the lines of a proof in order. For each line it
parses the formula, resolves the rule name, resolves references against the
lines already processed, checks reference arity and scope, and finally runs
the rule checker from `checker.checks`. Every line gets a verdict; no
failure on one line stops the remaining lines from being checked.

Typical use:

    from checker.engine import validate_proof

    result = validate_proof(
        premises=["A", "A -> B"],
        conclusion="B",
        lines=[
            {"lineNo": "1", "formula": "A", "rule": "Premise", "refs": [], "depth": 0},
            {"lineNo": "2", "formula": "A -> B", "rule": "Premise", "refs": [], "depth": 0},
            {"lineNo": "3", "formula": "B", "rule": "->E", "refs": ["1", "2"], "depth": 0},
        ],
    )
    assert result.ok and result.conclusion_reached
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from checker.checks import CHECKS, LineContext, ResolvedRef
from checker.config import CheckerConfig, UnknownRulePolicy
from checker.frames import FrameIndex, derive_frames
from checker.rules import (
    FIRST_ORDER_RULESETS,
    RULE_SPECS,
    RuleKind,
    parse_rule_name,
    resolve_ruleset,
    ruleset_rules,
)
from checker.types import (
    LineEvidence,
    LineValidation,
    ProofDocument,
    ProofLine,
    ValidationResult,
)
from formula.ast_canon import Expr, ParseCache, canonical_key
from formula.structure import normalize_text, strip_outer_parens

logger = logging.getLogger(__name__)


def _known_key(text: str, ast: Optional[Expr]) -> str:
    if ast is not None:
        return "ast:" + canonical_key(ast)
    return "text:" + strip_outer_parens(normalize_text(text))


class _ProofRun:
    """State for a single validation call."""

    def __init__(self, document: ProofDocument, ruleset: str, config: CheckerConfig):
        self.document = document
        self.ruleset = ruleset
        self.config = config
        self.lines: List[ProofLine] = list(document.lines)
        self.first_order = ruleset in FIRST_ORDER_RULESETS
        self.allowed = ruleset_rules(ruleset)
        self.cache = ParseCache(lenient=config.lenient_parsing)
        self.frames = derive_frames(self.lines)
        self.frame_index = FrameIndex(self.frames)
        self.processed: Dict[str, int] = {}
        self.all_line_nos = {line.line_no for line in self.lines if line.line_no}
        # canonical key -> shallowest depth at which the formula was established
        self.known: Dict[str, int] = {}

    # -- references ---------------------------------------------------------

    def resolve_refs(
        self, idx: int, line: ProofLine, discharges: bool
    ) -> Tuple[List[ResolvedRef], List[str]]:
        resolved: List[ResolvedRef] = []
        messages: List[str] = []
        for ref in line.refs:
            if line.line_no and ref == line.line_no:
                messages.append(f"Line {ref} cannot cite itself")
            elif ref in self.processed:
                ref_idx = self.processed[ref]
                if (
                    self.config.enforce_scope
                    and not discharges
                    and not self.frame_index.is_accessible(ref_idx, idx)
                ):
                    messages.append(
                        f"Line {ref} is inside a closed subproof and cannot be cited here"
                    )
                    continue
                ref_line = self.lines[ref_idx]
                resolved.append(
                    ResolvedRef(
                        line_no=ref,
                        idx=ref_idx,
                        line=ref_line,
                        ast=self.cache.try_parse(ref_line.formula),
                    )
                )
            elif ref in self.all_line_nos:
                messages.append(f"Reference {ref} is not yet available (forward reference)")
            else:
                messages.append(f"Reference {ref} does not exist")
        return resolved, messages

    # -- per line -----------------------------------------------------------

    def check_line(self, idx: int, line: ProofLine) -> LineValidation:
        messages: List[str] = []
        if not line.line_no:
            messages.append("Line number required")
        elif line.line_no in self.processed:
            messages.append(f"Duplicate line number {line.line_no}")

        ast: Optional[Expr] = None
        if not normalize_text(line.formula):
            messages.append("Formula required")
        else:
            ast = self.cache.try_parse(line.formula)
            if ast is None and not self.first_order:
                messages.append(f"Formula does not parse: {self.cache.error_for(line.formula)}")

        refs = list(line.refs)
        kind = parse_rule_name(line.rule)
        if kind is None:
            evidence = LineEvidence(rule=line.rule.strip(), refs=refs)
            if self.config.unknown_rule_policy is UnknownRulePolicy.ACCEPT:
                evidence.info = "Unrecognized rule accepted without checking"
            else:
                messages.append(f"Unknown rule '{line.rule.strip()}'")
        elif kind not in self.allowed:
            evidence = LineEvidence(rule=kind.value, refs=refs)
            messages.append(f"Rule '{kind.value}' is not available in ruleset '{self.ruleset}'")
        else:
            evidence = LineEvidence(rule=kind.value, refs=refs)
            self._apply_rule(idx, line, ast, kind, evidence, messages)

        ok = not messages
        if line.line_no and line.line_no not in self.processed:
            self.processed[line.line_no] = idx
        if ok:
            key = _known_key(line.formula, ast)
            self.known[key] = min(self.known.get(key, line.depth), line.depth)

        logger.debug("Line %s (%s): ok=%s %s", line.line_no, evidence.rule, ok, messages)
        return LineValidation(line_no=line.line_no, ok=ok, messages=messages, evidence=evidence)

    def _apply_rule(
        self,
        idx: int,
        line: ProofLine,
        ast: Optional[Expr],
        kind: RuleKind,
        evidence: LineEvidence,
        messages: List[str],
    ) -> None:
        spec = RULE_SPECS[kind]
        resolved, ref_messages = self.resolve_refs(idx, line, spec.discharges)
        messages.extend(ref_messages)
        arity = spec.arity_message(kind.value, len(line.refs))
        if arity:
            messages.append(arity)
        if ref_messages or arity:
            return

        ctx = LineContext(
            idx=idx,
            line=line,
            ast=ast,
            refs=resolved,
            frames=self.frame_index,
            lines=self.lines,
            cache=self.cache,
            config=self.config,
        )
        try:
            CHECKS[kind](ctx)
        except Exception:
            logger.exception("Checker for %s failed on line %s", kind.value, line.line_no)
            ctx.fail(f"Internal error while checking {kind.value}")
        messages.extend(ctx.messages)
        evidence.info = ctx.info
        evidence.approximate = ctx.approximate or spec.heuristic

    # -- whole proof --------------------------------------------------------

    def run(self) -> ValidationResult:
        for premise in self.document.premises:
            if not normalize_text(premise):
                continue
            ast = self.cache.try_parse(premise)
            if ast is None and not self.first_order:
                logger.warning("Premise %r does not parse; matching it by text", premise)
            self.known[_known_key(premise, ast)] = 0

        results = [self.check_line(idx, line) for idx, line in enumerate(self.lines)]

        conclusion = self.document.conclusion
        conclusion_reached = False
        if normalize_text(conclusion):
            key = _known_key(conclusion, self.cache.try_parse(conclusion))
            conclusion_reached = self.known.get(key) == 0

        ok = all(r.ok for r in results) and bool(conclusion.strip())
        logger.info(
            "Validated %d line(s) under %s: ok=%s conclusion_reached=%s",
            len(results), self.ruleset, ok, conclusion_reached,
        )
        return ValidationResult(
            ok=ok, lines=results, frames=self.frames, conclusion_reached=conclusion_reached
        )


class ProofChecker:
    """Validates proofs under one CheckerConfig. Safe to share across threads."""

    def __init__(self, config: Optional[CheckerConfig] = None):
        self.config = config or CheckerConfig()

    def validate(self, document: ProofDocument) -> ValidationResult:
        """Raises UnknownRulesetError when the document names an unknown ruleset."""
        ruleset = resolve_ruleset(document.ruleset, default=self.config.default_ruleset)
        return _ProofRun(document, ruleset, self.config).run()

    def validate_lines(
        self,
        premises: Sequence[str],
        conclusion: str,
        lines: Sequence[Union[ProofLine, Mapping[str, Any]]],
        ruleset: Optional[str] = None,
    ) -> ValidationResult:
        proof_lines = tuple(
            line if isinstance(line, ProofLine) else ProofLine.from_dict(line) for line in lines
        )
        document = ProofDocument(
            premises=tuple(premises),
            conclusion=conclusion,
            lines=proof_lines,
            ruleset=ruleset,
        )
        return self.validate(document)


def validate_proof(
    premises: Sequence[str],
    conclusion: str,
    lines: Sequence[Union[ProofLine, Mapping[str, Any]]],
    ruleset: Optional[str] = None,
    *,
    config: Optional[CheckerConfig] = None,
) -> ValidationResult:
    """Validate a proof with a one-off checker."""
    return ProofChecker(config).validate_lines(premises, conclusion, lines, ruleset)


__all__ = ["ProofChecker", "validate_proof"]
