"""Audit trail coverage checks."""

from __future__ import annotations

from typing import List

from archscan.context import SecurityContext
from archscan.result import Finding
from archscan.severity import Category, Severity

from . import Rule, RuleMetadata


class CloudTrailMissingRule:
    """A non-empty architecture should record API activity with CloudTrail."""

    metadata = RuleMetadata(
        rule_id="NO_CLOUDTRAIL",
        severity=Severity.MEDIUM,
        category=Category.MONITORING,
        title="No CloudTrail trail in architecture",
        description="No CloudTrail trail records API activity for these resources.",
        recommendation="Add a multi-region CloudTrail trail with log file validation enabled.",
        compliance=("CIS AWS 3.1", "SOC2 CC7.2", "PCI-DSS 10.1"),
        autofix_available=True,
        opt_in=True,
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        if not context.nodes or context.has_node_of_type("cloudtrail"):
            return []
        return [self.metadata.finding(1)]


def get_rules() -> List[Rule]:
    return [CloudTrailMissingRule()]
