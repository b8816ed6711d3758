"""Object and block storage checks."""

from __future__ import annotations

from typing import List

from archscan.context import SecurityContext
from archscan.graph import BucketAttributes
from archscan.result import Finding
from archscan.severity import Category, Severity

from . import Rule, RuleMetadata, label_of

PUBLIC_ACLS = frozenset({"public-read", "public-read-write", "authenticated-read"})


class BucketEncryptionRule:
    """S3 buckets must declare server-side encryption."""

    metadata = RuleMetadata(
        rule_id="S3_NO_ENCRYPTION",
        severity=Severity.HIGH,
        category=Category.ENCRYPTION,
        title="S3 bucket without encryption",
        description="S3 bucket without server-side encryption enabled.",
        recommendation="Enable SSE-S3 or SSE-KMS encryption on the bucket to protect data at rest.",
        compliance=("CIS AWS 2.1.1", "SOC2 CC6.7", "PCI-DSS 3.4", "HIPAA 164.312(a)(2)(iv)"),
        autofix_available=True,
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type("s3"):
            encryption = node.attributes.get("encryption")
            if encryption and str(encryption).lower() != "none":
                continue
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=(
                        f'"{label_of(node, "S3 Bucket")}" does not have server-side encryption enabled. '
                        "Data at rest is unprotected."
                    ),
                    default_label="S3 Bucket",
                )
            )
        return findings


class BucketPublicAccessRule:
    metadata = RuleMetadata(
        rule_id="S3_PUBLIC_ACCESS",
        severity=Severity.CRITICAL,
        category=Category.ACCESS,
        title="S3 bucket publicly accessible",
        description="S3 bucket ACL grants access to everyone.",
        recommendation="Set the ACL to private and enable S3 Block Public Access on the bucket and account.",
        compliance=("CIS AWS 2.1.5", "SOC2 CC6.1", "PCI-DSS 1.2.1"),
        autofix_available=True,
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type("s3"):
            attributes = node.attributes
            if not isinstance(attributes, BucketAttributes):
                continue
            acl = (attributes.acl or "private").lower()
            if acl not in PUBLIC_ACLS or attributes.block_public_access is True:
                continue
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=f'"{label_of(node, "S3 Bucket")}" uses the {acl} ACL. Objects may be readable by anyone.',
                    default_label="S3 Bucket",
                )
            )
        return findings


class BucketVersioningRule:
    metadata = RuleMetadata(
        rule_id="S3_NO_VERSIONING",
        severity=Severity.LOW,
        category=Category.STORAGE,
        title="S3 bucket without versioning",
        description="S3 bucket versioning is disabled.",
        recommendation="Enable versioning to recover from accidental deletes and overwrites.",
        compliance=("SOC2 A1.2",),
        autofix_available=True,
        opt_in=True,
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type("s3"):
            if node.attributes.get("versioning") is True:
                continue
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=f'"{label_of(node, "S3 Bucket")}" keeps a single version of each object.',
                    default_label="S3 Bucket",
                )
            )
        return findings


class VolumeEncryptionRule:
    """EBS volumes and EFS file systems explicitly marked unencrypted."""

    metadata = RuleMetadata(
        rule_id="EBS_NO_ENCRYPTION",
        severity=Severity.MEDIUM,
        category=Category.ENCRYPTION,
        title="Volume without encryption",
        description="Block or file storage volume is not encrypted.",
        recommendation="Enable encryption at rest with an AWS managed or customer managed KMS key.",
        compliance=("CIS AWS 2.2.1", "HIPAA 164.312(a)(2)(iv)"),
        autofix_available=True,
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type("ebs", "efs"):
            if node.attributes.get("encrypted") is not False:
                continue
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=f'"{label_of(node, "Volume")}" stores data unencrypted.',
                    default_label="Volume",
                )
            )
        return findings


def get_rules() -> List[Rule]:
    return [
        BucketEncryptionRule(),
        BucketPublicAccessRule(),
        BucketVersioningRule(),
        VolumeEncryptionRule(),
    ]
