"""
Proof document and verdict types.

Field names are snake_case in Python; `from_dict` / `to_dict` translate to
and from the camelCase wire format exchanged with the proof editor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True, slots=True)
class ProofLine:
    """
    One line of a proof as submitted by the caller.

    Attributes:
        line_no: Caller-chosen line label (usually "1", "2", ...)
        formula: Formula text in any accepted notation
        rule: Justification rule name; empty for premises
        refs: Cited line labels, in the order the caller gave them
        depth: Subproof nesting level (0 = top level)
    """
    line_no: str
    formula: str = ""
    rule: str = ""
    refs: Tuple[str, ...] = ()
    depth: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProofLine":
        line_no = data.get("lineNo", data.get("line_no"))
        refs = data.get("refs") or ()
        depth = data.get("depth") or 0
        return cls(
            line_no=_as_text(line_no),
            formula=_as_text(data.get("formula")),
            rule=_as_text(data.get("rule")),
            refs=tuple(_as_text(r) for r in refs),
            depth=max(0, int(depth)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lineNo": self.line_no,
            "formula": self.formula,
            "rule": self.rule,
            "refs": list(self.refs),
            "depth": self.depth,
        }


@dataclass(frozen=True, slots=True)
class ProofDocument:
    """Everything one validation call needs."""
    premises: Tuple[str, ...]
    conclusion: str
    lines: Tuple[ProofLine, ...]
    ruleset: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProofDocument":
        ruleset = data.get("ruleset", data.get("rules"))
        return cls(
            premises=tuple(_as_text(p) for p in data.get("premises") or ()),
            conclusion=_as_text(data.get("conclusion")),
            lines=tuple(ProofLine.from_dict(line) for line in data.get("lines") or ()),
            ruleset=_as_text(ruleset) or None,
        )


@dataclass(slots=True)
class LineEvidence:
    """
    Justification actually checked for a line.

    Attributes:
        rule: Display name of the rule that was applied
        refs: References as cited
        info: Extra detail (e.g. which assumption was discharged)
        approximate: True when the verdict came from textual or quantifier heuristics
    """
    rule: str
    refs: List[str] = field(default_factory=list)
    info: Optional[str] = None
    approximate: bool = False

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"rule": self.rule, "refs": list(self.refs)}
        if self.info:
            out["info"] = self.info
        if self.approximate:
            out["approximate"] = True
        return out


@dataclass(slots=True)
class LineValidation:
    line_no: str
    ok: bool
    messages: List[str] = field(default_factory=list)
    evidence: Optional[LineEvidence] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "lineNo": self.line_no,
            "ok": self.ok,
            "messages": list(self.messages),
        }
        if self.evidence is not None:
            out["evidence"] = self.evidence.to_dict()
        return out


@dataclass(slots=True)
class SubproofFrame:
    """
    A subproof scope derived from depth changes.

    `start_idx` / `end_idx` are positions in the submitted line sequence; the
    frame covers both ends inclusively.
    """
    depth: int
    start_idx: int
    start_line_no: str
    assumption_formula: str = ""
    end_idx: Optional[int] = None
    end_line_no: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "depth": self.depth,
            "startLineNo": self.start_line_no,
            "endLineNo": self.end_line_no if self.end_line_no is not None else self.start_line_no,
        }
        if self.assumption_formula:
            out["assumptionFormula"] = self.assumption_formula
        return out


@dataclass(slots=True)
class ValidationResult:
    ok: bool
    lines: List[LineValidation]
    frames: List[SubproofFrame]
    conclusion_reached: bool = False

    @property
    def failed_lines(self) -> List[LineValidation]:
        return [line for line in self.lines if not line.ok]

    def line(self, line_no: str) -> Optional[LineValidation]:
        for entry in self.lines:
            if entry.line_no == line_no:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "lines": [line.to_dict() for line in self.lines],
            "subproofs": [frame.to_dict() for frame in self.frames],
            "conclusionReached": self.conclusion_reached,
        }


__all__ = [
    "LineEvidence",
    "LineValidation",
    "ProofDocument",
    "ProofLine",
    "SubproofFrame",
    "ValidationResult",
]
