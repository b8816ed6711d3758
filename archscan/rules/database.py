"""Relational database checks."""

from __future__ import annotations

from typing import List

from archscan.context import SecurityContext
from archscan.result import Finding
from archscan.severity import Category, Severity

from . import Rule, RuleMetadata, label_of

DATABASE_TYPES = ("rds", "aurora")


class DatabaseEncryptionRule:
    metadata = RuleMetadata(
        rule_id="RDS_NO_ENCRYPTION",
        severity=Severity.HIGH,
        category=Category.ENCRYPTION,
        title="RDS instance without storage encryption",
        description="Database storage is not encrypted at rest.",
        recommendation="Enable storage encryption with a KMS key. Existing instances need a snapshot restore.",
        compliance=("CIS AWS 2.3.1", "SOC2 CC6.7", "PCI-DSS 3.4", "HIPAA 164.312(a)(2)(iv)"),
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type(*DATABASE_TYPES):
            if node.attributes.get("encrypted") is True:
                continue
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=f'"{label_of(node, "Database")}" does not encrypt its storage.',
                    default_label="Database",
                )
            )
        return findings


class PublicDatabaseRule:
    """Databases must not be reachable from the internet."""

    metadata = RuleMetadata(
        rule_id="RDS_PUBLIC",
        severity=Severity.CRITICAL,
        category=Category.DATABASE,
        title="RDS instance publicly accessible",
        description="Database instance accepts connections from public addresses.",
        recommendation="Disable public accessibility and reach the database from private subnets only.",
        compliance=("CIS AWS 2.3.3", "SOC2 CC6.6", "PCI-DSS 1.3.1"),
        autofix_available=True,
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type(*DATABASE_TYPES):
            if node.attributes.get("publicly_accessible") is not True:
                continue
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=f'"{label_of(node, "Database")}" is publicly accessible.',
                    default_label="Database",
                )
            )
        return findings


class SingleAzDatabaseRule:
    metadata = RuleMetadata(
        rule_id="RDS_SINGLE_AZ",
        severity=Severity.MEDIUM,
        category=Category.DATABASE,
        title="RDS instance in a single Availability Zone",
        description="Database has no standby in another Availability Zone.",
        recommendation="Enable Multi-AZ deployment for production databases.",
        compliance=("SOC2 A1.2",),
        autofix_available=True,
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type("rds"):
            if node.attributes.get("multi_az") is not False:
                continue
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=f'"{label_of(node, "Database")}" runs in a single Availability Zone.',
                    default_label="Database",
                )
            )
        return findings


def get_rules() -> List[Rule]:
    return [
        DatabaseEncryptionRule(),
        PublicDatabaseRule(),
        SingleAzDatabaseRule(),
    ]
