from datetime import datetime, timezone

import pytest

from archscan.engine import grade_for, run_scan, score_for, severity_penalty
from archscan.errors import GraphValidationError, RuleRegistryError
from archscan.graph import Edge, Graph, make_node
from archscan.result import Finding
from archscan.rules import RuleMetadata
from archscan.rules.network import CloudFrontWithoutWafRule, Ec2WithoutSecurityGroupRule
from archscan.rules.storage import BucketEncryptionRule
from archscan.severity import SEVERITY_ORDER, Category, Severity


class StaticRule:
    """Emit ``count`` findings of a fixed severity regardless of the graph."""

    def __init__(self, rule_id, severity, count=1, category=Category.COMPLIANCE):
        self.metadata = RuleMetadata(
            rule_id=rule_id,
            severity=severity,
            category=category,
            title=f"{rule_id} title",
            description="static",
            recommendation="none",
        )
        self.count = count

    def check(self, context):
        return [self.metadata.finding(index) for index in range(1, self.count + 1)]


class ExplodingRule:
    metadata = RuleMetadata(
        rule_id="BOOM",
        severity=Severity.CRITICAL,
        category=Category.COMPUTE,
        title="boom",
        description="boom",
        recommendation="none",
    )

    def check(self, context):
        raise RuntimeError("rule bug")


class ImpostorRule:
    metadata = RuleMetadata(
        rule_id="IMPOSTOR",
        severity=Severity.LOW,
        category=Category.COMPUTE,
        title="impostor",
        description="impostor",
        recommendation="none",
    )

    def check(self, context):
        other = RuleMetadata("SOMEONE_ELSE", Severity.LOW, Category.COMPUTE, "x", "x", "x")
        return [other.finding(1)]


class LooseFindingRule:
    """Emit a finding whose severity and category are plain strings."""

    metadata = RuleMetadata(
        rule_id="LOOSE",
        severity=Severity.HIGH,
        category=Category.ACCESS,
        title="loose",
        description="loose",
        recommendation="none",
    )

    def check(self, context):
        return [Finding("LOOSE-001", "LOOSE", "high", "access", "loose", "loose", "none")]


class NamelessRule:
    def check(self, context):
        raise AssertionError("rules without an id must not run")


def mixed_graph():
    return Graph(
        nodes=(
            make_node("web", "ec2", "Web"),
            make_node("cdn", "cloudfront", "CDN"),
            make_node("assets", "s3", "Assets", encryption="AES256", versioning="true"),
        ),
        edges=(Edge("cdn", "assets"),),
    )


def test_empty_graph_scores_perfect():
    result = run_scan(Graph())

    assert result.score == 100
    assert result.grade == "A"
    assert result.findings == []
    assert result.total_resources == 0
    assert result.by_severity == {"critical": 0, "high": 0, "medium": 0, "low": 0, "info": 0}
    assert set(result.by_category) == {c.value for c in Category}
    assert all(count == 0 for count in result.by_category.values())


def test_one_critical_two_medium_scores_d():
    graph = Graph(
        nodes=(
            make_node("web", "ec2", "Web"),
            make_node("cdn-1", "cloudfront", "CDN"),
            make_node("cdn-2", "cloudfront", "Static"),
        )
    )

    result = run_scan(graph, rules=[Ec2WithoutSecurityGroupRule(), CloudFrontWithoutWafRule()])

    assert [finding.id for finding in result.findings] == ["EC2_NO_SG-001", "CF_NO_WAF-001", "CF_NO_WAF-002"]
    assert result.by_severity["critical"] == 1
    assert result.by_severity["medium"] == 2
    assert result.score == 59
    assert result.grade == "D"
    assert result.total_resources == 3


def test_ec2_without_security_group_scenario():
    result = run_scan(Graph(nodes=(make_node("i-1", "ec2"),)), rules=[Ec2WithoutSecurityGroupRule()])

    assert len(result.findings) == 1
    finding = result.findings[0]
    assert (finding.severity, finding.category) == (Severity.CRITICAL, Category.NETWORK)
    assert finding.affected_node_ids == ("i-1",)


def test_two_buckets_scenario():
    graph = Graph(nodes=(make_node("open", "s3"), make_node("closed", "s3", encryption="AES256")))

    result = run_scan(graph)

    encryption = [f for f in result.findings if f.severity is Severity.HIGH and f.category is Category.ENCRYPTION]
    assert len(encryption) == 1
    assert encryption[0].affected_node_ids == ("open",)


def test_findings_sorted_by_severity_with_stable_ties():
    rules = [
        StaticRule("LOW_FIRST", Severity.LOW),
        StaticRule("MED_A", Severity.MEDIUM, count=2),
        StaticRule("CRIT", Severity.CRITICAL),
        StaticRule("MED_B", Severity.MEDIUM),
        StaticRule("INFO", Severity.INFO),
    ]

    result = run_scan(Graph(), rules=rules)

    assert [f.id for f in result.findings] == [
        "CRIT-001",
        "MED_A-001",
        "MED_A-002",
        "MED_B-001",
        "LOW_FIRST-001",
        "INFO-001",
    ]
    ranks = [SEVERITY_ORDER.index(f.severity) for f in result.findings]
    assert ranks == sorted(ranks)


def test_counts_sum_to_number_of_findings():
    result = run_scan(mixed_graph())

    assert sum(result.by_severity.values()) == len(result.findings)
    assert sum(result.by_category.values()) == len(result.findings)


def test_score_is_clamped_at_zero():
    result = run_scan(Graph(), rules=[StaticRule("MANY", Severity.CRITICAL, count=6)])

    assert result.score == 0
    assert result.grade == "F"


def test_rescan_is_idempotent():
    graph = mixed_graph()
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    first = run_scan(graph, now=now)
    second = run_scan(graph, now=now)

    assert first.findings == second.findings
    assert first.to_dict() == second.to_dict()
    assert first.scanned_at == "2026-01-01T00:00:00+00:00"


def test_scan_does_not_mutate_graph():
    graph = mixed_graph()
    before = (graph.nodes, graph.edges)

    run_scan(graph)

    assert (graph.nodes, graph.edges) == before


def test_defective_rule_is_isolated():
    rules = [ExplodingRule(), BucketEncryptionRule()]

    result = run_scan(Graph(nodes=(make_node("b", "s3"),)), rules=rules)

    assert [f.rule_id for f in result.findings] == ["S3_NO_ENCRYPTION"]
    assert len(result.diagnostics) == 1
    assert "BOOM" in result.diagnostics[0]
    assert "RuntimeError" in result.diagnostics[0]


def test_finding_with_unknown_severity_is_dropped():
    rules = [LooseFindingRule(), BucketEncryptionRule()]

    result = run_scan(Graph(nodes=(make_node("b", "s3"),)), rules=rules)

    assert [f.rule_id for f in result.findings] == ["S3_NO_ENCRYPTION"]
    assert result.score == 85
    assert result.by_severity["high"] == 1
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].startswith("LOOSE: dropped finding LOOSE-001")


def test_rule_without_metadata_is_skipped():
    result = run_scan(Graph(nodes=(make_node("b", "s3"),)), rules=[NamelessRule(), BucketEncryptionRule()])

    assert [f.rule_id for f in result.findings] == ["S3_NO_ENCRYPTION"]
    assert result.diagnostics == ["NamelessRule: rule has no metadata.rule_id; skipped"]


def test_findings_attributed_to_another_rule_are_dropped():
    result = run_scan(Graph(), rules=[ImpostorRule()])

    assert result.findings == []
    assert result.diagnostics == ["IMPOSTOR: dropped finding not attributed to this rule"]


def test_duplicate_rule_ids_are_rejected():
    with pytest.raises(RuleRegistryError):
        run_scan(Graph(), rules=[StaticRule("SAME", Severity.LOW), StaticRule("SAME", Severity.HIGH)])


def test_missing_graph_is_a_validation_error():
    with pytest.raises(GraphValidationError):
        run_scan(None)


@pytest.mark.parametrize(
    "score, grade",
    [(100, "A"), (90, "A"), (89, "B"), (75, "B"), (74, "C"), (60, "C"), (59, "D"), (40, "D"), (39, "F"), (0, "F")],
)
def test_grade_thresholds(score, grade):
    assert grade_for(score) == grade


def test_score_is_monotonic_in_penalty():
    scores = [score_for(penalty) for penalty in range(0, 150)]

    assert scores == sorted(scores, reverse=True)
    assert min(scores) == 0 and max(scores) == 100


def test_severity_penalty_weights():
    meta = RuleMetadata("R", Severity.HIGH, Category.ACCESS, "t", "d", "r")
    findings = [
        Finding("1", "R", severity, Category.ACCESS, "t", "d", "r")
        for severity in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW, Severity.INFO)
    ]

    assert severity_penalty(findings) == 25 + 15 + 8 + 3 + 0
    assert severity_penalty([meta.finding(1)]) == 15
