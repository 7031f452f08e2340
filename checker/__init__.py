from .config import CheckerConfig, ConfigError, load_config_from_env
from .engine import ProofChecker, validate_proof
from .rules import RuleKind, UnknownRulesetError, parse_rule_name, ruleset_catalog
from .types import (
    LineEvidence,
    LineValidation,
    ProofDocument,
    ProofLine,
    SubproofFrame,
    ValidationResult,
)
from .worker import ValidationWorker
