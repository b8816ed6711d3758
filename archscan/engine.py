"""Run the registered rules over a graph snapshot and score the outcome."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence

from .context import SecurityContext, build_context
from .errors import GraphValidationError
from .graph import Graph
from .registry import default_rules, ensure_unique
from .result import Finding, ScanResult, empty_category_counts, empty_severity_counts
from .rules import Rule
from .severity import Category, Severity

logger = logging.getLogger(__name__)

# (minimum score, grade), evaluated top-down
GRADE_THRESHOLDS = (
    (90, "A"),
    (75, "B"),
    (60, "C"),
    (40, "D"),
)
FAILING_GRADE = "F"


def severity_penalty(findings: Iterable[Finding]) -> int:
    return sum(finding.severity.weight for finding in findings)


def score_for(penalty: int) -> int:
    return max(0, min(100, 100 - penalty))


def grade_for(score: int) -> str:
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return FAILING_GRADE


def sort_findings(findings: Iterable[Finding]) -> List[Finding]:
    """Order critical first; findings of equal severity keep their order."""

    return sorted(findings, key=lambda finding: finding.severity.rank)


def _rule_id(rule: Any) -> Optional[str]:
    try:
        rule_id = rule.metadata.rule_id
    except AttributeError:
        return None
    return rule_id if isinstance(rule_id, str) and rule_id else None


def _evaluate(rule: Rule, rule_id: str, context: SecurityContext, diagnostics: List[str]) -> List[Finding]:
    try:
        produced = list(rule.check(context))
    except Exception as exc:  # rule failures are reported, not raised
        logger.warning("rule %s failed and was skipped", rule_id, exc_info=True)
        diagnostics.append(f"{rule_id}: rule raised {type(exc).__name__}: {exc}")
        return []

    accepted: List[Finding] = []
    for finding in produced:
        if not isinstance(finding, Finding) or finding.rule_id != rule_id:
            logger.warning("rule %s emitted a finding it does not own; dropped", rule_id)
            diagnostics.append(f"{rule_id}: dropped finding not attributed to this rule")
            continue
        if not isinstance(finding.severity, Severity) or not isinstance(finding.category, Category):
            logger.warning("rule %s emitted a finding with an unknown severity or category; dropped", rule_id)
            diagnostics.append(
                f"{rule_id}: dropped finding {finding.id} with severity {finding.severity!r} "
                f"and category {finding.category!r}"
            )
            continue
        accepted.append(finding)
    return accepted


def run_scan(
    graph: Graph,
    rules: Optional[Sequence[Rule]] = None,
    now: Optional[datetime] = None,
) -> ScanResult:
    """Evaluate ``rules`` (the built-in set by default) against ``graph``.

    The graph is never modified. Rule failures are isolated and reported in
    ``ScanResult.diagnostics``.
    """

    if not isinstance(graph, Graph):
        raise GraphValidationError(f"expected a Graph snapshot, got {type(graph).__name__}")
    candidates = default_rules() if rules is None else list(rules)
    diagnostics: List[str] = []
    active: List[Rule] = []
    rule_ids: List[str] = []
    for rule in candidates:
        rule_id = _rule_id(rule)
        if rule_id is None:
            logger.warning("rule %s has no metadata.rule_id and was skipped", type(rule).__name__)
            diagnostics.append(f"{type(rule).__name__}: rule has no metadata.rule_id; skipped")
            continue
        active.append(rule)
        rule_ids.append(rule_id)
    ensure_unique(active)

    context = build_context(graph)
    findings: List[Finding] = []
    for rule, rule_id in zip(active, rule_ids):
        findings.extend(_evaluate(rule, rule_id, context, diagnostics))

    score = score_for(severity_penalty(findings))
    by_severity = empty_severity_counts()
    by_category = empty_category_counts()
    for finding in findings:
        by_severity[finding.severity.value] += 1
        by_category[finding.category.value] += 1

    scanned_at = (now or datetime.now(timezone.utc)).isoformat()
    logger.info(
        "scanned %d resources with %d rules: %d findings, score %d",
        len(graph.nodes),
        len(active),
        len(findings),
        score,
    )
    return ScanResult(
        score=score,
        grade=grade_for(score),
        findings=sort_findings(findings),
        by_severity=by_severity,
        by_category=by_category,
        total_resources=len(graph.nodes),
        scanned_at=scanned_at,
        diagnostics=diagnostics,
    )
