"""
Proof checker CLI

Usage:
    proofcheck validate proof.yaml [--ruleset fol_basic] [--config cfg.yaml] [--json]
    proofcheck canon "B ^ A" "A -> (B & C)"
    proofcheck rulesets

A proof file is JSON or YAML with the same keys as the HTTP request body:
premises, conclusion, lines (lineNo, formula, rule, refs, depth), ruleset.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from checker.config import CheckerConfig, ConfigError, load_config_from_env
from checker.engine import ProofChecker
from checker.rules import UnknownRulesetError, ruleset_catalog
from checker.types import ProofDocument, ValidationResult
from formula.ast_canon import FormulaSyntaxError, canonicalize, parse_formula


def load_document(path: Path) -> Dict[str, Any]:
    """Load a proof document from a JSON or YAML file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: proof document must be a mapping")
    return data


def _print_report(result: ValidationResult) -> None:
    for line in result.lines:
        mark = "✅" if line.ok else "❌"
        rule = line.evidence.rule if line.evidence else ""
        refs = ",".join(line.evidence.refs) if line.evidence else ""
        suffix = f" [{refs}]" if refs else ""
        print(f"  {mark} {line.line_no:>4}  {rule}{suffix}")
        for message in line.messages:
            print(f"        {message}")

    for frame in result.frames:
        print(f"  subproof depth {frame.depth}: lines {frame.start_line_no}-{frame.end_line_no}")

    print(f"\nConclusion reached: {result.conclusion_reached}")
    if result.ok:
        print("✅ Proof is valid")
    else:
        print(f"❌ Proof has {len(result.failed_lines)} invalid line(s)")


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a proof file."""
    try:
        config = CheckerConfig.from_file(args.config) if args.config else load_config_from_env()
        data = load_document(Path(args.file))
        if args.ruleset:
            data["ruleset"] = args.ruleset
        document = ProofDocument.from_dict(data)
        result = ProofChecker(config).validate(document)
    except (OSError, ValueError, TypeError, yaml.YAMLError, ConfigError) as e:
        # ValueError covers UnknownRulesetError and malformed JSON
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(f"Proof: {args.file}")
        _print_report(result)
    return 0 if result.ok else 1


def cmd_canon(args: argparse.Namespace) -> int:
    """Print the canonical form of each formula."""
    status = 0
    for formula in args.formulas:
        try:
            print(canonicalize(parse_formula(formula)).to_canonical())
        except FormulaSyntaxError as e:
            print(f"Error: {formula!r}: {e}", file=sys.stderr)
            status = 2
    return status


def cmd_rulesets(args: argparse.Namespace) -> int:
    print(json.dumps(ruleset_catalog(), indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Natural-deduction proof checker"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a proof file (JSON or YAML)"
    )
    validate_parser.add_argument("file", type=str, help="Path to the proof document")
    validate_parser.add_argument(
        "--ruleset",
        type=str,
        default=None,
        help="Ruleset to check against (overrides the document)"
    )
    validate_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a checker config YAML (default: $PROOFCHECK_CONFIG)"
    )
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON"
    )

    canon_parser = subparsers.add_parser(
        "canon",
        help="Print canonical forms of formulas"
    )
    canon_parser.add_argument("formulas", nargs="+", help="Formulas to canonicalize")

    subparsers.add_parser("rulesets", help="Print the ruleset catalog as JSON")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if args.command == "validate":
        return cmd_validate(args)
    elif args.command == "canon":
        return cmd_canon(args)
    elif args.command == "rulesets":
        return cmd_rulesets(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
