"""Graph snapshot model: nodes, edges and typed resource attributes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional, Tuple, Type

from .errors import GraphValidationError

UNKNOWN_TYPE = "unknown"
SWITCH_OFF = "none"

_TRUE_STRINGS = {"true", "yes", "1", "on", "enabled"}
_FALSE_STRINGS = {"false", "no", "0", "off", "disabled", "none", ""}
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).replace("-", "_").lower()


def _to_bool(value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return None


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip()


@dataclass(frozen=True)
class ResourceAttributes:
    """Typed view of a node's configuration.

    Subclasses declare the fields rules rely on. Any attribute a model does not
    recognise lands in ``extra`` untouched, so snapshots written by newer
    editors still load.
    """

    extra: Dict[str, Any] = field(default_factory=dict, hash=False)

    BOOLEAN_FIELDS: ClassVar[FrozenSet[str]] = frozenset()
    INTEGER_FIELDS: ClassVar[FrozenSet[str]] = frozenset()
    # text settings where a false-like value (false, 0, "none", "") means off
    SWITCH_FIELDS: ClassVar[FrozenSet[str]] = frozenset()
    ALIASES: ClassVar[Mapping[str, str]] = {}

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "ResourceAttributes":
        known = {item.name for item in fields(cls) if item.name != "extra"}
        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in raw.items():
            name = _snake_case(str(key))
            name = cls.ALIASES.get(name, name)
            if name not in known:
                extra[key] = value
                continue
            if name in cls.BOOLEAN_FIELDS:
                coerced = _to_bool(value)
            elif name in cls.INTEGER_FIELDS:
                coerced = _to_int(value)
            elif name in cls.SWITCH_FIELDS and _to_bool(value) is False:
                coerced = SWITCH_OFF
            else:
                coerced = _to_text(value)
            if coerced is None and value is not None:
                # unparseable values stay visible instead of being lost
                extra[key] = value
                continue
            values[name] = coerced
        return cls(extra=extra, **values)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a typed field first, then the side-channel map."""

        if key != "extra" and key in {item.name for item in fields(self)}:
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)


@dataclass(frozen=True)
class InstanceAttributes(ResourceAttributes):
    instance_type: Optional[str] = None
    ami: Optional[str] = None
    public_ip: Optional[bool] = None

    BOOLEAN_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"public_ip"})
    ALIASES: ClassVar[Mapping[str, str]] = {"associate_public_ip_address": "public_ip"}


@dataclass(frozen=True)
class BucketAttributes(ResourceAttributes):
    bucket_name: Optional[str] = None
    encryption: Optional[str] = None
    acl: Optional[str] = None
    versioning: Optional[bool] = None
    block_public_access: Optional[bool] = None

    BOOLEAN_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"versioning", "block_public_access"})
    SWITCH_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"encryption"})
    ALIASES: ClassVar[Mapping[str, str]] = {"sse_algorithm": "encryption"}


@dataclass(frozen=True)
class DatabaseAttributes(ResourceAttributes):
    engine: Optional[str] = None
    encrypted: Optional[bool] = None
    publicly_accessible: Optional[bool] = None
    multi_az: Optional[bool] = None
    backup_retention: Optional[int] = None

    BOOLEAN_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"encrypted", "publicly_accessible", "multi_az"})
    INTEGER_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"backup_retention"})
    ALIASES: ClassVar[Mapping[str, str]] = {
        "storage_encrypted": "encrypted",
        "public": "publicly_accessible",
        "backup_retention_period": "backup_retention",
    }


@dataclass(frozen=True)
class SecurityGroupAttributes(ResourceAttributes):
    name: Optional[str] = None
    ingress_port: Optional[str] = None
    protocol: Optional[str] = None
    cidr: Optional[str] = None


@dataclass(frozen=True)
class FunctionAttributes(ResourceAttributes):
    runtime: Optional[str] = None
    role: Optional[str] = None
    vpc_enabled: Optional[bool] = None

    BOOLEAN_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"vpc_enabled"})
    ALIASES: ClassVar[Mapping[str, str]] = {"role_arn": "role", "execution_role": "role"}


@dataclass(frozen=True)
class DistributionAttributes(ResourceAttributes):
    viewer_protocol_policy: Optional[str] = None
    waf_enabled: Optional[bool] = None

    BOOLEAN_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"waf_enabled"})


@dataclass(frozen=True)
class VolumeAttributes(ResourceAttributes):
    encrypted: Optional[bool] = None

    BOOLEAN_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"encrypted"})


@dataclass(frozen=True)
class TrailAttributes(ResourceAttributes):
    is_multi_region: Optional[bool] = None
    log_validation: Optional[bool] = None

    BOOLEAN_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"is_multi_region", "log_validation"})
    ALIASES: ClassVar[Mapping[str, str]] = {"enable_log_file_validation": "log_validation"}


ATTRIBUTE_MODELS: Mapping[str, Type[ResourceAttributes]] = {
    "ec2": InstanceAttributes,
    "s3": BucketAttributes,
    "rds": DatabaseAttributes,
    "aurora": DatabaseAttributes,
    "sg": SecurityGroupAttributes,
    "lambda": FunctionAttributes,
    "cloudfront": DistributionAttributes,
    "ebs": VolumeAttributes,
    "efs": VolumeAttributes,
    "cloudtrail": TrailAttributes,
}


def parse_attributes(resource_type: str, raw: Optional[Mapping[str, Any]]) -> ResourceAttributes:
    """Build the typed attribute model registered for ``resource_type``."""

    model = ATTRIBUTE_MODELS.get(resource_type, ResourceAttributes)
    return model.from_raw(raw or {})


@dataclass(frozen=True)
class Node:
    """One infrastructure resource placed on the design canvas."""

    id: str
    resource_type: str
    label: str = ""
    attributes: ResourceAttributes = field(default_factory=ResourceAttributes)
    parent_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> "Node":
        if not isinstance(data, Mapping):
            raise GraphValidationError(f"nodes[{index}]: expected a mapping, got {type(data).__name__}")
        node_id = data.get("id")
        if node_id is None or str(node_id) == "":
            raise GraphValidationError(f"nodes[{index}]: missing required key 'id'")

        raw_attributes = data.get("attributes", data.get("data")) or {}
        if not isinstance(raw_attributes, Mapping):
            raise GraphValidationError(f"nodes[{index}] (id={node_id}): attributes must be a mapping")
        raw_attributes = dict(raw_attributes)

        # canvas exports keep the service tag, label and parent inside ``data``
        embedded_type = raw_attributes.pop("awsType", None)
        embedded_label = raw_attributes.pop("label", None)
        embedded_parent = raw_attributes.pop("parentId", None)

        resource_type = (
            data.get("resourceType")
            or data.get("resource_type")
            or embedded_type
            or data.get("type")
            or UNKNOWN_TYPE
        )
        label = data.get("label") or embedded_label or ""
        parent_id = data.get("parentId", data.get("parent_id")) or embedded_parent

        return cls(
            id=str(node_id),
            resource_type=str(resource_type),
            label=str(label),
            attributes=parse_attributes(str(resource_type), raw_attributes),
            parent_id=str(parent_id) if parent_id else None,
        )


@dataclass(frozen=True)
class Edge:
    """An undirected connection between two node ids."""

    source: str
    target: str

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> "Edge":
        if not isinstance(data, Mapping):
            raise GraphValidationError(f"edges[{index}]: expected a mapping, got {type(data).__name__}")
        missing = [key for key in ("source", "target") if data.get(key) in (None, "")]
        if missing:
            raise GraphValidationError(f"edges[{index}]: missing required keys: {', '.join(missing)}")
        return cls(source=str(data["source"]), target=str(data["target"]))


@dataclass(frozen=True)
class Graph:
    """Immutable snapshot of the nodes and edges on the canvas."""

    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        seen = set()
        for node in self.nodes:
            if node.id in seen:
                raise GraphValidationError(f"duplicate node id '{node.id}'")
            seen.add(node.id)

    @classmethod
    def from_dict(cls, payload: Any) -> "Graph":
        if not isinstance(payload, Mapping):
            raise GraphValidationError(f"expected a mapping at top level, got {type(payload).__name__}")
        raw_nodes = payload.get("nodes") or []
        raw_edges = payload.get("edges") or []
        if not isinstance(raw_nodes, list):
            raise GraphValidationError("'nodes' must be a list")
        if not isinstance(raw_edges, list):
            raise GraphValidationError("'edges' must be a list")
        return cls(
            nodes=tuple(Node.from_dict(item, index) for index, item in enumerate(raw_nodes)),
            edges=tuple(Edge.from_dict(item, index) for index, item in enumerate(raw_edges)),
        )


def make_node(
    node_id: str,
    resource_type: str,
    label: str = "",
    parent_id: Optional[str] = None,
    **attributes: Any,
) -> Node:
    """Convenience constructor used by editors and tests."""

    return Node(
        id=node_id,
        resource_type=resource_type,
        label=label,
        attributes=parse_attributes(resource_type, attributes),
        parent_id=parent_id,
    )
