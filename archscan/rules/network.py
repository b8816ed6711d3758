"""Network exposure checks: security groups, open ingress and edge protection."""

from __future__ import annotations

from typing import List

from archscan.context import SecurityContext
from archscan.graph import SecurityGroupAttributes
from archscan.result import Finding
from archscan.severity import Category, Severity

from . import Rule, RuleMetadata, label_of

SECURITY_GROUP_TYPE = "sg"
WAF_TYPE = "waf"
OPEN_CIDRS = frozenset({"0.0.0.0/0", "::/0"})
WEB_PORTS = frozenset({"80", "443"})


class Ec2WithoutSecurityGroupRule:
    """Every EC2 instance must be wired to at least one security group."""

    metadata = RuleMetadata(
        rule_id="EC2_NO_SG",
        severity=Severity.CRITICAL,
        category=Category.NETWORK,
        title="EC2 instance without Security Group",
        description="EC2 instance has no Security Group attached. All traffic may be allowed.",
        recommendation="Add a Security Group and define inbound/outbound rules to restrict traffic.",
        compliance=("CIS AWS 5.1", "SOC2 CC6.1", "PCI-DSS 1.3"),
        autofix_available=True,
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type("ec2"):
            if context.is_connected_to(node.id, SECURITY_GROUP_TYPE):
                continue
            label = label_of(node, "EC2 Instance")
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=(
                        f'"{label}" has no Security Group attached. '
                        "This means all traffic is potentially allowed."
                    ),
                    recommendation=(
                        "Add a Security Group and define inbound/outbound rules to restrict traffic "
                        "to only necessary ports and sources."
                    ),
                    default_label="EC2 Instance",
                )
            )
        return findings


class OpenIngressRule:
    """Flag security groups that admit the whole internet on non-web ports."""

    metadata = RuleMetadata(
        rule_id="SG_OPEN_INGRESS",
        severity=Severity.HIGH,
        category=Category.NETWORK,
        title="Security Group open to the internet",
        description="Security Group allows inbound traffic from any address.",
        recommendation="Restrict the source CIDR to known networks or place the service behind a load balancer.",
        compliance=("CIS AWS 5.2", "SOC2 CC6.6", "PCI-DSS 1.2.1"),
        autofix_available=True,
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type(SECURITY_GROUP_TYPE):
            attributes = node.attributes
            if not isinstance(attributes, SecurityGroupAttributes):
                continue
            if attributes.cidr not in OPEN_CIDRS:
                continue
            port = attributes.ingress_port or "all ports"
            if port in WEB_PORTS:
                continue
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=(
                        f'"{label_of(node, "Security Group")}" allows inbound traffic on {port} '
                        f"from {attributes.cidr}."
                    ),
                    default_label="Security Group",
                )
            )
        return findings


class CloudFrontWithoutWafRule:
    """CloudFront distributions should be fronted by a web application firewall."""

    metadata = RuleMetadata(
        rule_id="CF_NO_WAF",
        severity=Severity.MEDIUM,
        category=Category.NETWORK,
        title="CloudFront distribution without WAF",
        description="CloudFront distribution is not protected by AWS WAF.",
        recommendation="Attach an AWS WAF web ACL with managed rule groups to the distribution.",
        compliance=("SOC2 CC6.6", "PCI-DSS 6.6"),
    )

    def check(self, context: SecurityContext) -> List[Finding]:
        findings: List[Finding] = []
        for node in context.nodes_of_type("cloudfront"):
            if context.is_connected_to(node.id, WAF_TYPE) or node.attributes.get("waf_enabled") is True:
                continue
            findings.append(
                self.metadata.finding(
                    len(findings) + 1,
                    nodes=[node],
                    description=(
                        f'"{label_of(node, "CloudFront")}" serves traffic without a WAF web ACL. '
                        "Layer 7 attacks reach the origin unfiltered."
                    ),
                    default_label="CloudFront",
                )
            )
        return findings


def get_rules() -> List[Rule]:
    return [
        Ec2WithoutSecurityGroupRule(),
        OpenIngressRule(),
        CloudFrontWithoutWafRule(),
    ]
