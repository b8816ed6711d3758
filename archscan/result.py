"""Core result data structures for the scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .severity import SEVERITY_ORDER, Category, Severity


@dataclass(frozen=True)
class Finding:
    """Capture a single issue detected by a rule."""

    id: str
    rule_id: str
    severity: Severity
    category: Category
    title: str
    description: str
    recommendation: str
    affected_node_ids: Tuple[str, ...] = ()
    affected_node_labels: Tuple[str, ...] = ()
    compliance: Tuple[str, ...] = ()
    autofix_available: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "category": self.category.value,
            "title": self.title,
            "description": self.description,
            "recommendation": self.recommendation,
            "affected_node_ids": list(self.affected_node_ids),
            "affected_node_labels": list(self.affected_node_labels),
            "compliance": list(self.compliance),
            "autofix_available": self.autofix_available,
        }


def empty_severity_counts() -> Dict[str, int]:
    return {severity.value: 0 for severity in SEVERITY_ORDER}


def empty_category_counts() -> Dict[str, int]:
    return {category.value: 0 for category in Category}


@dataclass
class ScanResult:
    """Bundle the score, grade and ordered findings of one scan."""

    score: int = 100
    grade: str = "A"
    findings: List[Finding] = field(default_factory=list)
    by_severity: Dict[str, int] = field(default_factory=empty_severity_counts)
    by_category: Dict[str, int] = field(default_factory=empty_category_counts)
    total_resources: int = 0
    scanned_at: str = ""
    diagnostics: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.by_severity["critical"] == 0 and self.by_severity["high"] == 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "score": self.score,
            "grade": self.grade,
            "findings": [finding.to_dict() for finding in self.findings],
            "by_severity": dict(self.by_severity),
            "by_category": dict(self.by_category),
            "total_resources": self.total_resources,
            "scanned_at": self.scanned_at,
            "diagnostics": list(self.diagnostics),
            "passed": self.passed,
        }

    def exit_code(self, fail_on: Severity = Severity.HIGH) -> int:
        if any(finding.severity.rank <= fail_on.rank for finding in self.findings):
            return 2
        if any(finding.severity.rank <= Severity.MEDIUM.rank for finding in self.findings):
            return 1
        return 0

    def top_findings(self, limit: int = 5) -> List[Finding]:
        """Return the highest ranked findings; ``findings`` is already ordered."""

        return self.findings[:limit]

    def affected_node_ids(self) -> List[str]:
        """Node ids referenced by any finding, in report order, without repeats."""

        seen: Dict[str, None] = {}
        for finding in self.findings:
            for node_id in finding.affected_node_ids:
                seen.setdefault(node_id, None)
        return list(seen)


def format_summary_table(result: ScanResult, max_findings: int = 5) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append("Scan Summary")
    lines.append("=" * 40)
    lines.append(f"Score     : {result.score}/100 (grade {result.grade})")
    lines.append(f"Resources : {result.total_resources}")
    lines.append("")
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity in SEVERITY_ORDER:
        lines.append(f"{severity.value:<10} | {result.by_severity[severity.value]:>5}")
    lines.append("-" * len(header))
    status = "PASS" if result.passed else "FAIL"
    lines.append(f"Status    : {status}")
    lines.append(f"Findings  : {len(result.findings)}")
    affected = result.affected_node_ids()
    if affected:
        lines.append(f"Affected  : {', '.join(affected)}")

    findings = result.top_findings(max_findings)
    if findings:
        lines.append("")
        lines.append("Top Findings")
        lines.append("-" * 40)
        for finding in findings:
            lines.append(f"[{finding.severity.value.upper()}] {finding.id} {finding.title} ({finding.category.value})")
            if finding.affected_node_labels:
                lines.append(f"  Resources: {', '.join(finding.affected_node_labels)}")
            lines.append(f"  Fix: {finding.recommendation}")

    if result.diagnostics:
        lines.append("")
        lines.append("Diagnostics")
        lines.append("-" * 40)
        for message in result.diagnostics:
            lines.append(f"  {message}")
    return "\n".join(lines)
