"""Identity and execution-role checks."""

from __future__ import annotations

from typing import List

from archscan.context import SecurityContext
from archscan.result import Finding
from archscan.severity import Category, Severity

from . import Rule, RuleMetadata, label_of

ROLE_TYPE = "iam_role"


class LambdaWithoutRoleRule:
    """Lambda functions need a dedicated execution role."""

    metadata = RuleMetadata(
        rule_id="LAMBDA_NO_ROLE",
        severity=Severity.HIGH,
        category=Category.ACCESS,
        title="Lambda function without IAM role",
        description="Lambda function has no execution role defined.",
        recommendation="Connect an IAM role scoped to the actions and resources the function needs.",
        compliance=("CIS AWS 1.16", "SOC2 CC6.3"),
        autofix_available=True,
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type("lambda"):
            if context.is_connected_to(node.id, ROLE_TYPE) or node.attributes.get("role"):
                continue
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=(
                        f'"{label_of(node, "Lambda Function")}" has no IAM role. '
                        "Its permissions cannot be reviewed or limited."
                    ),
                    default_label="Lambda Function",
                )
            )
        return findings


def get_rules() -> List[Rule]:
    return [LambdaWithoutRoleRule()]
