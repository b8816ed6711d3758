import json

import pytest

from archscan.context import build_context
from archscan.graph import Edge, Graph, make_node
from archscan.rules.access import LambdaWithoutRoleRule
from archscan.rules.database import DatabaseEncryptionRule, PublicDatabaseRule, SingleAzDatabaseRule
from archscan.rules.monitoring import CloudTrailMissingRule
from archscan.severity import Category, Severity


def run_rule(rule, nodes, edges=()):
    return rule.check(build_context(Graph(nodes=tuple(nodes), edges=tuple(edges))))


def test_database_encryption_requires_explicit_opt_in():
    findings = run_rule(
        DatabaseEncryptionRule(),
        [
            make_node("db-1", "rds", "Orders", engine="postgresql"),
            make_node("db-2", "aurora", "Cluster", storage_encrypted="true"),
            make_node("db-3", "rds", "Legacy", encrypted="false"),
        ],
    )

    assert [finding.affected_node_ids[0] for finding in findings] == ["db-1", "db-3"]
    assert findings[0].category is Category.ENCRYPTION


def test_public_database_is_critical():
    findings = run_rule(
        PublicDatabaseRule(),
        [make_node("db-1", "rds", publiclyAccessible="true"), make_node("db-2", "rds")],
    )

    assert len(findings) == 1
    assert findings[0].severity is Severity.CRITICAL
    assert findings[0].category is Category.DATABASE


def test_single_az_only_for_explicit_false():
    findings = run_rule(
        SingleAzDatabaseRule(),
        [make_node("db-1", "rds", multi_az="false"), make_node("db-2", "rds", multi_az="true")],
    )

    assert [finding.affected_node_ids for finding in findings] == [("db-1",)]


def test_lambda_role_from_edge_or_attribute():
    findings = run_rule(
        LambdaWithoutRoleRule(),
        [
            make_node("fn-1", "lambda", "Resize"),
            make_node("fn-2", "lambda", "Thumbnail"),
            make_node("fn-3", "lambda", "Inline", role_arn="arn:aws:iam::123456789012:role/fn"),
            make_node("role", "iam_role"),
        ],
        [Edge("fn-2", "role")],
    )

    assert [finding.affected_node_ids for finding in findings] == [("fn-1",)]
    assert findings[0].severity is Severity.HIGH
    assert findings[0].category is Category.ACCESS


def test_cloudtrail_missing_emits_single_graph_level_finding():
    findings = run_rule(CloudTrailMissingRule(), [make_node("i-1", "ec2"), make_node("b", "s3")])

    assert len(findings) == 1
    assert findings[0].affected_node_ids == ()
    assert findings[0].category is Category.MONITORING


def test_cloudtrail_rule_is_quiet_for_empty_or_covered_graphs():
    assert run_rule(CloudTrailMissingRule(), []) == []
    assert run_rule(CloudTrailMissingRule(), [make_node("i-1", "ec2"), make_node("t", "cloudtrail")]) == []


def database_from_json(**attributes):
    payload = json.loads(json.dumps({"nodes": [{"id": "db", "resourceType": "rds", "attributes": attributes}]}))
    return Graph.from_dict(payload)


def check_graph(rule, graph):
    return rule.check(build_context(graph))


@pytest.mark.parametrize("encrypted, flagged", [(True, False), (False, True)])
def test_json_boolean_encrypted_drives_encryption_rule(encrypted, flagged):
    findings = check_graph(DatabaseEncryptionRule(), database_from_json(encrypted=encrypted))

    assert bool(findings) is flagged


@pytest.mark.parametrize("public, flagged", [(True, True), (False, False)])
def test_json_boolean_publicly_accessible_drives_public_rule(public, flagged):
    findings = check_graph(PublicDatabaseRule(), database_from_json(publicly_accessible=public))

    assert bool(findings) is flagged


@pytest.mark.parametrize("multi_az, flagged", [(True, False), (False, True)])
def test_json_boolean_multi_az_drives_single_az_rule(multi_az, flagged):
    findings = check_graph(SingleAzDatabaseRule(), database_from_json(multiAz=multi_az))

    assert bool(findings) is flagged
