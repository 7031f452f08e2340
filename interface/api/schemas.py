"""
Request/response models for the proof checker API.

Field names follow the camelCase wire format of the proof editor; Python
attribute names are snake_case and both spellings are accepted on input.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from checker.types import ProofDocument, ProofLine


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ProofLineIn(BaseModel):
    """One submitted proof line."""

    model_config = ConfigDict(populate_by_name=True)

    line_no: str = Field(..., alias="lineNo")
    formula: str = ""
    rule: str = ""
    refs: List[str] = Field(default_factory=list)
    depth: int = Field(0, ge=0)

    @field_validator("line_no", mode="before")
    @classmethod
    def coerce_line_no(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("refs", mode="before")
    @classmethod
    def coerce_refs(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [str(r) if isinstance(r, int) and not isinstance(r, bool) else r for r in v]
        return v

    def to_line(self) -> ProofLine:
        return ProofLine(
            line_no=self.line_no,
            formula=self.formula,
            rule=self.rule,
            refs=tuple(self.refs),
            depth=self.depth,
        )


class ValidateRequest(BaseModel):
    """Body of POST /api/proof/validate."""

    premises: List[str] = Field(default_factory=list)
    conclusion: str = ""
    lines: List[ProofLineIn] = Field(default_factory=list)
    ruleset: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ruleset", "rules")
    )

    def to_document(self) -> ProofDocument:
        return ProofDocument(
            premises=tuple(self.premises),
            conclusion=self.conclusion,
            lines=tuple(line.to_line() for line in self.lines),
            ruleset=self.ruleset,
        )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class EvidenceOut(BaseModel):
    rule: str
    refs: List[str]
    info: Optional[str] = None
    approximate: Optional[bool] = None


class LineResultOut(BaseModel):
    lineNo: str
    ok: bool
    messages: List[str]
    evidence: Optional[EvidenceOut] = None


class SubproofOut(BaseModel):
    depth: int
    startLineNo: str
    endLineNo: str
    assumptionFormula: Optional[str] = None


class ValidateResponse(BaseModel):
    ok: bool
    lines: List[LineResultOut]
    subproofs: List[SubproofOut]
    conclusionReached: bool


class RulesetsResponse(BaseModel):
    rulesets: Dict[str, List[Dict[str, Any]]]


class HealthResponse(BaseModel):
    status: str
