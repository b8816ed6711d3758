"""Command-line entry point for the architecture scanner."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

import yaml

from .config import ScanConfig, load_config, resolve_config_path
from .containment import PlacementViolation, find_misplaced_nodes
from .engine import run_scan
from .errors import ArchscanError
from .graph import Graph
from .registry import all_rules, build_rules
from .result import ScanResult, format_summary_table
from .severity import SEVERITY_ORDER, Severity
from .utils import read_graph_file, write_text_file

logger = logging.getLogger("archscan")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archscan",
        description="Security posture scanner for cloud architecture diagrams",
    )
    parser.add_argument(
        "--graph",
        "-g",
        default=None,
        help="Path to the canvas export (YAML or JSON) to scan.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML config file (defaults to $ARCHSCAN_CONFIG or ./.archscan.yaml).",
    )
    parser.add_argument(
        "--format",
        choices=["json"],
        default="json",
        help="Report format for file output (defaults to json).",
    )
    parser.add_argument(
        "--out",
        "--output",
        dest="output_path",
        type=str,
        default=None,
        help="Path to write the structured report (e.g., artifacts/scan.json).",
    )
    parser.add_argument(
        "--enable",
        dest="enabled_rules",
        action="append",
        default=None,
        help="Only run this rule id (repeatable).",
    )
    parser.add_argument(
        "--disable",
        dest="disabled_rules",
        action="append",
        default=[],
        help="Skip this rule id (repeatable).",
    )
    parser.add_argument(
        "--include",
        dest="include_rules",
        action="append",
        default=[],
        help="Also run this opt-in rule id, e.g. NO_CLOUDTRAIL (repeatable).",
    )
    parser.add_argument(
        "--fail-on",
        choices=[severity.value for severity in SEVERITY_ORDER],
        default=None,
        help="Minimum severity that causes exit code 2 (default: high).",
    )
    parser.add_argument(
        "--check-placement",
        action="store_true",
        help="Also report resources nested in containers that cannot hold them.",
    )
    parser.add_argument(
        "--list-rules",
        action="store_true",
        help="Print the registered rules and exit.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable informational logging.")
    return parser


def load_graph(graph_path: str) -> Graph:
    path = Path(graph_path)
    try:
        payload = read_graph_file(path)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ArchscanError(f"Failed to parse graph {graph_path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ArchscanError(f"Failed to read graph {graph_path}: {exc}") from exc
    if payload is None:
        raise ArchscanError(f"Failed to load graph: {graph_path}")
    return Graph.from_dict(payload)


def merge_config(config: ScanConfig, args: argparse.Namespace) -> ScanConfig:
    """Command-line flags win over file settings."""

    enabled = tuple(args.enabled_rules) if args.enabled_rules else config.enabled_rules
    return ScanConfig(
        enabled_rules=enabled,
        disabled_rules=tuple(config.disabled_rules) + tuple(args.disabled_rules),
        include_rules=tuple(config.include_rules) + tuple(args.include_rules),
        fail_on=Severity.parse(args.fail_on) if args.fail_on else config.fail_on,
        source=config.source,
    )


def print_rules() -> None:
    for rule in all_rules():
        meta = rule.metadata
        marker = " (opt-in)" if meta.opt_in else ""
        print(f"{meta.rule_id:<20} {meta.severity.value:<9} {meta.category.value:<11} {meta.title}{marker}")


def write_output(
    result: ScanResult,
    violations: List[PlacementViolation],
    output_path: str | None,
    report_format: str,
    include_placement: bool,
) -> None:
    summary = format_summary_table(result)
    print(summary)
    if include_placement:
        print("")
        print(f"Placement violations: {len(violations)}")
        for violation in violations:
            print(f"  {violation.node_id}: {violation.reason}")

    if report_format == "json":
        report = result.to_dict()
        if include_placement:
            report["placement_violations"] = [violation.to_dict() for violation in violations]
        payload = json.dumps(report, indent=2)
        if output_path:
            write_text_file(Path(output_path), payload)
            print(f"\nReport written to {output_path}")
        else:
            print("\nJSON Report")
            print(payload)


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list_rules:
        print_rules()
        return 0
    if not args.graph:
        parser.error("--graph is required unless --list-rules is given")

    try:
        config = merge_config(load_config(resolve_config_path(args.config)), args)
        if config.source:
            logger.info("using config %s", config.source)
        rules = build_rules(
            enabled=config.enabled_rules,
            disabled=config.disabled_rules,
            include=config.include_rules,
        )
        graph = load_graph(args.graph)
    except ArchscanError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    result = run_scan(graph, rules=rules)
    violations = find_misplaced_nodes(graph) if args.check_placement else []
    try:
        write_output(result, violations, args.output_path, args.format, args.check_placement)
    except OSError as exc:
        print(f"error: failed to write report {args.output_path}: {exc}", file=sys.stderr)
        return 2

    exit_code = result.exit_code(config.fail_on)
    if violations:
        exit_code = max(exit_code, 1)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
