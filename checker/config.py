"""
Checker policy configuration.

Policies that change verdicts (unknown rule names, malformed formulas,
conjunct ordering, scope enforcement) plus worker settings. Values come from
a YAML file; `load_config_from_env` resolves the file through the
PROOFCHECK_CONFIG environment variable.

Example (config/proofcheck.yaml):

    policies:
      unknown_rule: reject        # reject | accept
      malformed_formula: strict   # strict | placeholder
      conjunction_order: ordered  # ordered | any
      enforce_scope: true
    default_ruleset: tfl_basic
    worker:
      enabled: true
      max_workers: 4
      timeout_s: 10.0
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Type, TypeVar

import yaml

from checker.rules import DEFAULT_RULESET, UnknownRulesetError, resolve_ruleset

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PROOFCHECK_CONFIG"
DEFAULT_CONFIG_PATH = "config/proofcheck.yaml"


class ConfigError(Exception):
    """Raised when a configuration file is missing, unreadable or malformed."""


class UnknownRulePolicy(Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class MalformedFormulaPolicy(Enum):
    STRICT = "strict"
    PLACEHOLDER = "placeholder"


class ConjunctionOrder(Enum):
    ORDERED = "ordered"
    ANY = "any"


_E = TypeVar("_E", bound=Enum)


def _enum_value(enum_cls: Type[_E], raw: Any, field_name: str) -> _E:
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigError(f"Invalid value {raw!r} for '{field_name}' (allowed: {allowed})") from exc


@dataclass(frozen=True, slots=True)
class CheckerConfig:
    """Verdict policies and worker settings for one checker instance."""

    unknown_rule_policy: UnknownRulePolicy = UnknownRulePolicy.REJECT
    malformed_formula_policy: MalformedFormulaPolicy = MalformedFormulaPolicy.STRICT
    conjunction_order: ConjunctionOrder = ConjunctionOrder.ORDERED
    enforce_scope: bool = True
    default_ruleset: str = DEFAULT_RULESET
    worker_enabled: bool = True
    worker_max_workers: int = 4
    worker_timeout_s: float = 10.0

    @property
    def lenient_parsing(self) -> bool:
        return self.malformed_formula_policy is MalformedFormulaPolicy.PLACEHOLDER

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "CheckerConfig":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError("Configuration root must be a mapping")
        policies = data.get("policies") or {}
        worker = data.get("worker") or {}
        if not isinstance(policies, Mapping) or not isinstance(worker, Mapping):
            raise ConfigError("'policies' and 'worker' must be mappings")

        try:
            default_ruleset = resolve_ruleset(data.get("default_ruleset", DEFAULT_RULESET))
        except UnknownRulesetError as exc:
            raise ConfigError(str(exc)) from exc

        try:
            max_workers = int(worker.get("max_workers", 4))
            timeout_s = float(worker.get("timeout_s", 10.0))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid worker settings: {exc}") from exc
        if max_workers < 1:
            raise ConfigError("worker.max_workers must be at least 1")
        if timeout_s <= 0:
            raise ConfigError("worker.timeout_s must be positive")

        return cls(
            unknown_rule_policy=_enum_value(
                UnknownRulePolicy, policies.get("unknown_rule", "reject"), "policies.unknown_rule"
            ),
            malformed_formula_policy=_enum_value(
                MalformedFormulaPolicy,
                policies.get("malformed_formula", "strict"),
                "policies.malformed_formula",
            ),
            conjunction_order=_enum_value(
                ConjunctionOrder,
                policies.get("conjunction_order", "ordered"),
                "policies.conjunction_order",
            ),
            enforce_scope=bool(policies.get("enforce_scope", True)),
            default_ruleset=default_ruleset,
            worker_enabled=bool(worker.get("enabled", True)),
            worker_max_workers=max_workers,
            worker_timeout_s=timeout_s,
        )

    @classmethod
    def from_file(cls, path: Path | str) -> "CheckerConfig":
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found at: {path}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Error parsing YAML file: {path}") from exc
        return cls.from_mapping(data)


def load_config_from_env() -> CheckerConfig:
    """Load config from PROOFCHECK_CONFIG (or the default path); defaults when absent or invalid."""
    config_path = Path(os.getenv(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))
    if not config_path.exists():
        logger.debug("No checker config at %s; using defaults", config_path)
        return CheckerConfig()
    try:
        return CheckerConfig.from_file(config_path)
    except ConfigError as exc:
        logger.warning("Ignoring invalid checker config %s: %s", config_path, exc)
        return CheckerConfig()


__all__ = [
    "CONFIG_ENV_VAR",
    "CheckerConfig",
    "ConfigError",
    "ConjunctionOrder",
    "MalformedFormulaPolicy",
    "UnknownRulePolicy",
    "load_config_from_env",
]
