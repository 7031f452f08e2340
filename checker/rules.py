"""
Rule definitions and ruleset catalog for the proof checker.

Provides:
- RuleKind: closed enumeration of every rule the checker understands
- RuleSpec: reference arity and scope behaviour per rule
- parse_rule_name: one-shot translation of free-form rule text to a RuleKind
- RULESETS / ruleset_catalog: which rules each ruleset offers
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


class UnknownRulesetError(ValueError):
    """Raised when a caller names a ruleset that does not exist."""


class RuleKind(Enum):
    """Every rule the checker can verify. Values are display names."""
    PREMISE = "Premise"
    ASSUMPTION = "Assumption"
    REITERATION = "Reiteration"
    CONJUNCTION_INTRO = "Conjunction Intro"
    CONJUNCTION_ELIM = "Conjunction Elim"
    CONDITIONAL_INTRO = "Conditional Intro"
    CONDITIONAL_ELIM = "Conditional Elim"
    MODUS_TOLLENS = "Modus Tollens"
    DISJUNCTION_INTRO = "Disjunction Intro"
    DISJUNCTION_ELIM = "Disjunction Elim"
    DOUBLE_NEGATION_INTRO = "Double Negation Intro"
    DOUBLE_NEGATION_ELIM = "Double Negation Elim"
    BICONDITIONAL_INTRO = "Biconditional Intro"
    BICONDITIONAL_ELIM = "Biconditional Elim"
    NEGATION_INTRO = "Negation Intro"
    DE_MORGAN = "De Morgan"
    EXPLOSION = "Explosion"
    EXCLUDED_MIDDLE = "Excluded Middle"
    DISJUNCTIVE_SYLLOGISM = "Disjunctive Syllogism"
    INDIRECT_PROOF = "Indirect Proof"
    UNIVERSAL_INTRO = "Universal Intro"
    UNIVERSAL_ELIM = "Universal Elim"
    EXISTENTIAL_INTRO = "Existential Intro"
    EXISTENTIAL_ELIM = "Existential Elim"
    CONVERSION_OF_QUANTIFIERS = "Conversion of Quantifiers"


@dataclass(frozen=True, slots=True)
class RuleSpec:
    """
    Static properties of a rule.

    Attributes:
        min_refs: Minimum number of references
        max_refs: Maximum number of references (None = unbounded)
        discharges: True for rules that close a subproof and may cite inside it
        heuristic: True when the check is textual and only best-effort
    """
    min_refs: int
    max_refs: Optional[int]
    discharges: bool = False
    heuristic: bool = False

    def arity_message(self, name: str, count: int) -> Optional[str]:
        """Return a failure message when `count` references do not fit, else None."""
        if self.max_refs == self.min_refs:
            if count == self.min_refs:
                return None
            if self.min_refs == 0:
                return f"{name} takes no references"
            noun = "reference" if self.min_refs == 1 else "references"
            return f"{name} needs exactly {self.min_refs} {noun}"
        if count < self.min_refs:
            noun = "reference" if self.min_refs == 1 else "references"
            return f"{name} needs at least {self.min_refs} {noun}"
        if self.max_refs is not None and count > self.max_refs:
            return f"{name} accepts at most {self.max_refs} references"
        return None


RULE_SPECS: Dict[RuleKind, RuleSpec] = {
    RuleKind.PREMISE: RuleSpec(0, 0),
    RuleKind.ASSUMPTION: RuleSpec(0, 0),
    RuleKind.REITERATION: RuleSpec(1, 1),
    RuleKind.CONJUNCTION_INTRO: RuleSpec(2, 2),
    RuleKind.CONJUNCTION_ELIM: RuleSpec(1, 1),
    RuleKind.CONDITIONAL_INTRO: RuleSpec(2, 2, discharges=True),
    RuleKind.CONDITIONAL_ELIM: RuleSpec(2, 2),
    RuleKind.MODUS_TOLLENS: RuleSpec(2, 2),
    RuleKind.DISJUNCTION_INTRO: RuleSpec(1, 1),
    RuleKind.DISJUNCTION_ELIM: RuleSpec(3, 3, discharges=True),
    RuleKind.DOUBLE_NEGATION_INTRO: RuleSpec(1, 1),
    RuleKind.DOUBLE_NEGATION_ELIM: RuleSpec(1, 1),
    RuleKind.BICONDITIONAL_INTRO: RuleSpec(2, 2),
    RuleKind.BICONDITIONAL_ELIM: RuleSpec(2, 2),
    RuleKind.NEGATION_INTRO: RuleSpec(1, None, discharges=True),
    RuleKind.DE_MORGAN: RuleSpec(1, 1),
    RuleKind.EXPLOSION: RuleSpec(1, 1),
    RuleKind.EXCLUDED_MIDDLE: RuleSpec(0, 0),
    RuleKind.DISJUNCTIVE_SYLLOGISM: RuleSpec(2, 2),
    RuleKind.INDIRECT_PROOF: RuleSpec(1, None, discharges=True),
    RuleKind.UNIVERSAL_INTRO: RuleSpec(1, 1, heuristic=True),
    RuleKind.UNIVERSAL_ELIM: RuleSpec(1, 1, heuristic=True),
    RuleKind.EXISTENTIAL_INTRO: RuleSpec(1, 1, heuristic=True),
    RuleKind.EXISTENTIAL_ELIM: RuleSpec(2, None, discharges=True, heuristic=True),
    RuleKind.CONVERSION_OF_QUANTIFIERS: RuleSpec(1, 1, heuristic=True),
}


# ---------------------------------------------------------------------------
# Rule name parsing
# ---------------------------------------------------------------------------

# Connective symbols in rule names ("∧I", "->E") become words before lookup.
_SYMBOL_WORDS: Tuple[Tuple[str, str], ...] = (
    ("<->", "bicond"),
    ("↔", "bicond"),
    ("->", "cond"),
    ("→", "cond"),
    ("⊃", "cond"),
    ("∧", "and"),
    ("&", "and"),
    ("^", "and"),
    ("∨", "or"),
    ("¬", "not"),
    ("~", "not"),
    ("!", "not"),
    ("∀", "forall"),
    ("∃", "exists"),
)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")

_ALIASES: Dict[RuleKind, Tuple[str, ...]] = {
    RuleKind.PREMISE: ("", "premise", "pr", "given"),
    RuleKind.ASSUMPTION: ("assumption", "assume", "as", "hyp", "hypothesis"),
    RuleKind.REITERATION: ("reiteration", "reit", "r"),
    RuleKind.CONJUNCTION_INTRO: ("conjunctionintro", "andintro", "andi", "ci", "conj"),
    RuleKind.CONJUNCTION_ELIM: ("conjunctionelim", "andelim", "ande", "ce", "simp", "simplification"),
    RuleKind.CONDITIONAL_INTRO: ("conditionalintro", "condintro", "condi", "cp", "conditionalproof"),
    RuleKind.CONDITIONAL_ELIM: ("conditionalelim", "condelim", "conde", "mp", "modusponens"),
    RuleKind.MODUS_TOLLENS: ("modustollens", "mt"),
    RuleKind.DISJUNCTION_INTRO: ("disjunctionintro", "orintro", "ori", "di", "addition", "add"),
    RuleKind.DISJUNCTION_ELIM: ("disjunctionelim", "orelim", "ore", "de", "proofbycases"),
    RuleKind.DOUBLE_NEGATION_INTRO: ("doublenegationintro", "dni", "notnoti"),
    RuleKind.DOUBLE_NEGATION_ELIM: ("doublenegationelim", "dne", "dn", "notnote"),
    RuleKind.BICONDITIONAL_INTRO: ("biconditionalintro", "bicondintro", "bicondi", "bi", "iffi"),
    RuleKind.BICONDITIONAL_ELIM: ("biconditionalelim", "bicondelim", "biconde", "be", "iffe"),
    RuleKind.NEGATION_INTRO: ("negationintro", "notintro", "noti", "ni"),
    RuleKind.DE_MORGAN: ("demorgan", "demorgans", "dem", "dm"),
    RuleKind.EXPLOSION: ("explosion", "x", "efq", "exfalso"),
    RuleKind.EXCLUDED_MIDDLE: ("excludedmiddle", "lem", "em"),
    RuleKind.DISJUNCTIVE_SYLLOGISM: ("disjunctivesyllogism", "ds"),
    RuleKind.INDIRECT_PROOF: ("indirectproof", "ip", "raa", "reductio"),
    RuleKind.UNIVERSAL_INTRO: ("universalintro", "foralli", "ui", "ug"),
    RuleKind.UNIVERSAL_ELIM: ("universalelim", "foralle", "ue"),
    RuleKind.EXISTENTIAL_INTRO: ("existentialintro", "existsi", "ei", "eg"),
    RuleKind.EXISTENTIAL_ELIM: ("existentialelim", "existse", "ee"),
    RuleKind.CONVERSION_OF_QUANTIFIERS: ("conversionofquantifiers", "quantifierconversion", "cq"),
}

_ALIAS_LOOKUP: Dict[str, RuleKind] = {
    alias: kind for kind, aliases in _ALIASES.items() for alias in aliases
}


def _rule_key(text: str) -> str:
    s = text.strip().lower()
    for symbol, word in _SYMBOL_WORDS:
        s = s.replace(symbol, word)
    s = _NON_ALNUM_RE.sub("", s)
    s = s.replace("introduction", "intro").replace("elimination", "elim")
    return s


def parse_rule_name(text: Optional[str]) -> Optional[RuleKind]:
    """
    Translate a free-form rule name into a RuleKind.

    Matching ignores case, whitespace and punctuation and accepts the usual
    abbreviations ("MP", "MT", "IP", "CI", "CE", "∧I", "->E", ...). Returns
    None for text that names no known rule.
    """
    return _ALIAS_LOOKUP.get(_rule_key(text or ""))


# ---------------------------------------------------------------------------
# Rulesets
# ---------------------------------------------------------------------------

DEFAULT_RULESET = "tfl_basic"

_TFL_RULES: Tuple[RuleKind, ...] = (
    RuleKind.PREMISE,
    RuleKind.ASSUMPTION,
    RuleKind.REITERATION,
    RuleKind.CONJUNCTION_INTRO,
    RuleKind.CONJUNCTION_ELIM,
    RuleKind.CONDITIONAL_ELIM,
    RuleKind.MODUS_TOLLENS,
    RuleKind.DISJUNCTION_INTRO,
    RuleKind.DOUBLE_NEGATION_INTRO,
    RuleKind.DOUBLE_NEGATION_ELIM,
    RuleKind.BICONDITIONAL_INTRO,
    RuleKind.BICONDITIONAL_ELIM,
    RuleKind.DISJUNCTION_ELIM,
    RuleKind.NEGATION_INTRO,
    RuleKind.DE_MORGAN,
    RuleKind.EXPLOSION,
    RuleKind.CONDITIONAL_INTRO,
    RuleKind.EXCLUDED_MIDDLE,
    RuleKind.DISJUNCTIVE_SYLLOGISM,
    RuleKind.INDIRECT_PROOF,
)

_FOL_RULES: Tuple[RuleKind, ...] = _TFL_RULES + (
    RuleKind.UNIVERSAL_INTRO,
    RuleKind.UNIVERSAL_ELIM,
    RuleKind.EXISTENTIAL_INTRO,
    RuleKind.EXISTENTIAL_ELIM,
    RuleKind.CONVERSION_OF_QUANTIFIERS,
)

RULESETS: Dict[str, Tuple[RuleKind, ...]] = {
    "tfl_basic": _TFL_RULES,
    "tfl_derived": _TFL_RULES,
    "fol_basic": _FOL_RULES,
    "fol_derived": _FOL_RULES,
}

FIRST_ORDER_RULESETS: FrozenSet[str] = frozenset({"fol_basic", "fol_derived"})


def resolve_ruleset(name: Optional[str], default: str = DEFAULT_RULESET) -> str:
    """Return the canonical ruleset name, raising UnknownRulesetError if absent."""
    key = (name or default).strip().lower()
    if key not in RULESETS:
        known = ", ".join(sorted(RULESETS))
        raise UnknownRulesetError(f"Unknown ruleset '{name}' (known: {known})")
    return key


def ruleset_rules(name: str) -> FrozenSet[RuleKind]:
    return frozenset(RULESETS[resolve_ruleset(name)])


def ruleset_catalog() -> Dict[str, List[Dict[str, object]]]:
    """Catalog of rulesets as served to the proof editor."""
    return {
        name: [{"name": kind.value, "refs": RULE_SPECS[kind].min_refs} for kind in kinds]
        for name, kinds in RULESETS.items()
    }


__all__ = [
    "DEFAULT_RULESET",
    "FIRST_ORDER_RULESETS",
    "RULESETS",
    "RULE_SPECS",
    "RuleKind",
    "RuleSpec",
    "UnknownRulesetError",
    "parse_rule_name",
    "resolve_ruleset",
    "ruleset_catalog",
    "ruleset_rules",
]
