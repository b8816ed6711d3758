"""Container detection and parent/child placement rules for canvas resources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from .graph import Graph

CONTAINER_TYPES: FrozenSet[str] = frozenset(
    {
        "vpc",
        "subnet",
        "auto_scaling_group",
        "elastic_beanstalk",
    }
)

# child type -> legal parent types, in declaration order
VALID_PARENT_TYPES: Mapping[str, Tuple[str, ...]] = {
    # Networking
    "vpc": (),
    "subnet": ("vpc",),
    "internet_gateway": ("vpc",),
    "nat_gateway": ("subnet",),
    "route_table": ("vpc",),
    "elastic_ip": ("vpc", "subnet"),
    "vpc_peering": ("vpc",),
    "transit_gateway": (),
    "security_group": ("vpc",),
    "sg": ("vpc",),
    "network_acl": ("vpc",),
    # Compute
    "ec2": ("subnet",),
    "auto_scaling_group": ("vpc", "subnet"),
    "launch_template": (),
    "elastic_beanstalk": (),
    "ecs_service": ("auto_scaling_group",),
    "ecs_task": ("auto_scaling_group",),
    # Storage
    "s3": (),
    "efs": ("vpc", "subnet"),
    "ebs": ("ec2",),
    "s3_glacier": (),
    "storage_gateway": ("vpc",),
    # Database
    "rds": ("subnet", "vpc"),
    "dynamodb": (),
    "elasticache": ("subnet", "vpc"),
    "redshift": ("subnet", "vpc"),
    "neptune": ("subnet", "vpc"),
    "documentdb": ("subnet", "vpc"),
    # Serverless
    "lambda": ("vpc", "subnet"),
    "api_gateway": (),
    "eventbridge": (),
    "appsync": (),
    "step_functions": (),
    # Load balancing and edge
    "alb": ("vpc", "subnet"),
    "nlb": ("vpc", "subnet"),
    "elb": ("vpc",),
    "cloudfront": (),
    "route53": (),
    "waf": (),
    # Security
    "kms": (),
    "secrets_manager": (),
    "certificate_manager": (),
    "identity_center": (),
    "cognito": (),
    # Monitoring
    "cloudwatch": (),
    "cloudtrail": (),
    "config": (),
    # Messaging
    "sqs": (),
    "sns": (),
    "kinesis": (),
    "msk": ("vpc", "subnet"),
    "other": (),
}


def is_container_type(resource_type: str) -> bool:
    """Return True when ``resource_type`` can hold other resources."""

    return resource_type in CONTAINER_TYPES


def valid_parent_types(child_type: str) -> FrozenSet[str]:
    """Return the container types ``child_type`` may be nested in.

    Unknown types carry no constraint and yield an empty set.
    """

    return frozenset(VALID_PARENT_TYPES.get(child_type, ()))


def can_place_in_container(child_type: str, parent_type: str) -> bool:
    return parent_type in valid_parent_types(child_type)


def default_parent_type(child_type: str) -> Optional[str]:
    """Pick the container a new resource is auto-placed into.

    The most specific container wins: subnet, then vpc, then whatever the
    table declares first.
    """

    parents = VALID_PARENT_TYPES.get(child_type, ())
    if "subnet" in parents:
        return "subnet"
    if "vpc" in parents:
        return "vpc"
    if parents:
        return parents[0]
    return None


def valid_child_types(parent_type: str) -> FrozenSet[str]:
    return frozenset(child for child, parents in VALID_PARENT_TYPES.items() if parent_type in parents)


@dataclass(frozen=True)
class PlacementViolation:
    """A node nested somewhere the placement table does not allow."""

    node_id: str
    node_type: str
    parent_id: str
    parent_type: Optional[str]
    reason: str

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "node_id": self.node_id,
            "node_type": self.node_type,
            "parent_id": self.parent_id,
            "parent_type": self.parent_type,
            "reason": self.reason,
        }


def find_misplaced_nodes(graph: Graph) -> List[PlacementViolation]:
    """Check every nested node of ``graph`` against the placement table."""

    nodes_by_id = {node.id: node for node in graph.nodes}
    violations: List[PlacementViolation] = []
    for node in graph.nodes:
        if not node.parent_id:
            continue
        parent = nodes_by_id.get(node.parent_id)
        if parent is None:
            violations.append(
                PlacementViolation(
                    node_id=node.id,
                    node_type=node.resource_type,
                    parent_id=node.parent_id,
                    parent_type=None,
                    reason=f"parent '{node.parent_id}' is not on the canvas",
                )
            )
            continue
        if not can_place_in_container(node.resource_type, parent.resource_type):
            allowed = ", ".join(sorted(valid_parent_types(node.resource_type))) or "top level only"
            violations.append(
                PlacementViolation(
                    node_id=node.id,
                    node_type=node.resource_type,
                    parent_id=parent.id,
                    parent_type=parent.resource_type,
                    reason=f"{node.resource_type} cannot be placed in {parent.resource_type} (allowed: {allowed})",
                )
            )
    return violations
