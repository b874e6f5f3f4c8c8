# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Command-line interface for OpenGuard."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from ..config.config import Config
from ..core.exceptions import ConfigurationError, OpenGuardError, PolicyValidationError
from ..core.models import ScanResult, Severity
from ..core.policy import load_policy, merge_policies, policy_to_yaml, write_policy
from ..core.rule_registry import load_rules, load_rules_with_overrides
from ..core.scanner import OpenGuardScanner

logger = logging.getLogger("openguard.cli")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _build_config(args: argparse.Namespace) -> Config:
    """Build a Config from ``--env-file`` and the per-command flags."""
    env_file = getattr(args, "env_file", None)
    config = Config.from_file(Path(env_file)) if env_file else Config.from_env()

    overrides = {
        "OPENGUARD_RULES_DIR": getattr(args, "rules", None),
        "OPENGUARD_OVERRIDE_RULES_DIR": getattr(args, "override_rules", None),
        "OPENGUARD_WORKERS": getattr(args, "workers", None),
        "OPENGUARD_MAX_FILE_SIZE_BYTES": getattr(args, "max_file_size", None),
        "OPENGUARD_POLICY_SEVERITY_THRESHOLD": getattr(args, "policy_threshold", None),
    }
    config.apply({key: str(value) for key, value in overrides.items() if value is not None})
    config.validate_paths()
    return config


def _configure_logging(args: argparse.Namespace) -> None:
    level = "DEBUG" if getattr(args, "verbose", False) else None
    if level is None:
        try:
            level = Config.from_env().log_level
        except ConfigurationError:
            level = "WARNING"
    logging.basicConfig(level=getattr(logging, level), format="%(levelname)s %(name)s: %(message)s")


def _write_output(args: argparse.Namespace, output: str, label: str = "Report") -> None:
    """Write *output* to a file or stdout."""
    if getattr(args, "output", None):
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(output)
        print(f"{label} saved to: {args.output}", file=sys.stderr)
    else:
        print(output)


# ---------------------------------------------------------------------------
# Summary formatter
# ---------------------------------------------------------------------------


def _generate_summary(result: ScanResult) -> str:
    max_severity = result.max_severity
    lines = [
        "=" * 60,
        f"Target: {result.target}",
        "=" * 60,
        f"Risk Score: {result.score.total}/100",
        f"Max Severity: {max_severity.value if max_severity else 'none'}",
        f"Files Scanned: {result.files_scanned}",
        f"Rules Loaded: {result.rules_loaded}",
        f"Total Findings: {len(result.findings)}",
        f"Scan Duration: {result.scan_duration_seconds:.2f}s",
        "",
        "Subscores:",
    ]
    for axis, value in result.score.subscores.to_dict().items():
        lines.append(f"  {axis:>11s}: {value:g}")

    if result.findings:
        lines.append("")
        lines.append("Findings Summary:")
        for sev in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW, Severity.INFO):
            lines.append(f"  {sev.value:>8s}: {len(result.get_findings_by_severity(sev))}")
        lines.append("")
        lines.append("Findings:")
        for finding in result.findings:
            lines.append(
                f"  [{finding.severity.value.upper()}] {finding.rule_id} "
                f"{finding.evidence.path}:{finding.evidence.start_line} {finding.title}"
            )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def scan_command(args: argparse.Namespace) -> int:
    """Handle the ``scan`` command."""
    config = _build_config(args)
    result = OpenGuardScanner(config=config).scan(Path(args.target))

    if args.format == "json":
        output = json.dumps(result.to_dict(), indent=2)
    else:
        output = _generate_summary(result)
    _write_output(args, output)

    if args.fail_on_score is not None and result.score.total >= args.fail_on_score:
        return 1
    return 0


def policy_generate_command(args: argparse.Namespace) -> int:
    """Handle ``policy generate``: scan a target and emit its inferred policy."""
    config = _build_config(args)
    result = OpenGuardScanner(config=config).scan(Path(args.target))
    policy = result.policy
    if args.merge:
        try:
            base = load_policy(args.merge)
        except OSError as e:
            print(f"Error: Unable to read base policy: {e}", file=sys.stderr)
            return 1
        policy = merge_policies(base, policy)

    if args.output:
        write_policy(policy, args.output)
        print(f"Policy saved to: {args.output}", file=sys.stderr)
    else:
        print(policy_to_yaml(policy), end="")
    return 0


def policy_validate_command(args: argparse.Namespace) -> int:
    """Handle ``policy validate``."""
    try:
        load_policy(args.file)
    except PolicyValidationError as e:
        print(f"[FAIL] {args.file} is not a valid policy:", file=sys.stderr)
        for error in e.errors:
            print(f"  - {error}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Unable to read policy file: {e}", file=sys.stderr)
        return 1
    print(f"[OK] {args.file} is a valid policy")
    return 0


def validate_rules_command(args: argparse.Namespace) -> int:
    """Handle the ``validate-rules`` command."""
    if args.override_rules:
        catalog = load_rules_with_overrides(args.rules, args.override_rules)
    else:
        catalog = load_rules(args.rules)

    print(f"[OK] Successfully loaded {len(catalog)} rules (format {catalog.meta.rule_format_version})\n")
    by_category: dict[str, int] = {}
    for rule in catalog:
        by_category[rule.category] = by_category.get(rule.category, 0) + 1
    print("Rules by category:")
    for category in sorted(by_category):
        print(f"  - {category}: {by_category[category]} rules")
    return 0


# ---------------------------------------------------------------------------
# Shared argparse helpers
# ---------------------------------------------------------------------------


def _add_catalog_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--rules", metavar="DIR", help="Rule catalog directory (default: packaged rules)")
    parser.add_argument("--override-rules", metavar="DIR", help="Override catalog; its rules replace base rules by id")


def _add_scan_flags(parser: argparse.ArgumentParser) -> None:
    _add_catalog_flags(parser)
    parser.add_argument("--workers", type=int, metavar="N", help="Files scanned concurrently (default: 1)")
    parser.add_argument("--max-file-size", type=int, metavar="BYTES", help="Skip files larger than BYTES")
    parser.add_argument(
        "--policy-threshold",
        choices=[s.value for s in Severity],
        help="Minimum finding severity that adds deny rules to the inferred policy (default: high)",
    )
    parser.add_argument("--env-file", metavar="PATH", help="Load OPENGUARD_* settings from a dotenv file")
    parser.add_argument("--output", "-o", help="Output file path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openguard",
        description="OpenGuard - Static security scanner and policy generator for agent-facing repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  openguard scan ./repo
  openguard scan ./repo --format json --output report.json
  openguard scan ./repo --fail-on-score 60
  openguard policy generate ./repo --output openguard-policy.yaml
  openguard policy generate ./repo --merge team-policy.yaml
  openguard policy validate openguard-policy.yaml
  openguard validate-rules --rules ./my-rules
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # -- scan --------------------------------------------------------------
    scan_p = subparsers.add_parser("scan", help="Scan a local directory")
    scan_p.add_argument("target", help="Path to the directory to scan")
    scan_p.add_argument("--format", choices=["summary", "json"], default="summary", help="Output format")
    scan_p.add_argument(
        "--fail-on-score",
        type=int,
        metavar="N",
        help="Exit with status 1 when the risk score is N or higher",
    )
    _add_scan_flags(scan_p)

    # -- policy ------------------------------------------------------------
    policy_p = subparsers.add_parser("policy", help="Generate or validate agent policies")
    policy_sub = policy_p.add_subparsers(dest="policy_command", help="Policy command")

    gen_p = policy_sub.add_parser("generate", help="Infer a least-privilege policy for a directory")
    gen_p.add_argument("target", help="Path to the directory to scan")
    gen_p.add_argument("--merge", metavar="BASE", help="Merge the inferred policy into an existing policy file")
    _add_scan_flags(gen_p)

    val_p = policy_sub.add_parser("validate", help="Validate a policy file")
    val_p.add_argument("file", help="Path to the policy YAML file")

    # -- validate-rules ----------------------------------------------------
    vr_p = subparsers.add_parser("validate-rules", help="Validate a rule catalog")
    _add_catalog_flags(vr_p)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    command = args.command
    if command == "policy":
        if not args.policy_command:
            parser.print_help()
            return 1
        command = f"policy {args.policy_command}"

    dispatch = {
        "scan": scan_command,
        "policy generate": policy_generate_command,
        "policy validate": policy_validate_command,
        "validate-rules": validate_rules_command,
    }
    handler = dispatch.get(command)
    if handler is None:
        parser.print_help()
        return 1

    _configure_logging(args)
    try:
        return handler(args)
    except PolicyValidationError as e:
        print("Error: Invalid policy:", file=sys.stderr)
        for error in e.errors:
            print(f"  - {error}", file=sys.stderr)
        return 1
    except OpenGuardError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
