"""Adjacency index and query helpers shared by all security rules."""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Mapping, Optional, Set, Tuple

from .graph import Edge, Graph, Node

logger = logging.getLogger(__name__)


class SecurityContext:
    """Read-only view over one graph snapshot and its adjacency index.

    A context is built for a single scan and thrown away afterwards.
    """

    def __init__(self, graph: Graph) -> None:
        self._graph = graph
        self._nodes_by_id: Dict[str, Node] = {node.id: node for node in graph.nodes}
        self._adjacency: Dict[str, FrozenSet[str]] = {
            node_id: frozenset(neighbors) for node_id, neighbors in self._index(graph.edges).items()
        }

    def _index(self, edges: Tuple[Edge, ...]) -> Dict[str, Set[str]]:
        adjacency: Dict[str, Set[str]] = {}
        for edge in edges:
            if edge.source not in self._nodes_by_id or edge.target not in self._nodes_by_id:
                logger.debug("skipping dangling edge %s -> %s", edge.source, edge.target)
                continue
            adjacency.setdefault(edge.source, set()).add(edge.target)
            adjacency.setdefault(edge.target, set()).add(edge.source)
        return adjacency

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self._graph.nodes

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self._graph.edges

    @property
    def adjacency(self) -> Mapping[str, FrozenSet[str]]:
        return dict(self._adjacency)

    def node_by_id(self, node_id: str) -> Optional[Node]:
        return self._nodes_by_id.get(node_id)

    def has_node_of_type(self, resource_type: str) -> bool:
        return any(node.resource_type == resource_type for node in self._graph.nodes)

    def nodes_of_type(self, *resource_types: str) -> List[Node]:
        """Return nodes matching any of ``resource_types`` in canvas order."""

        return [node for node in self._graph.nodes if node.resource_type in resource_types]

    def connected_nodes(self, node_id: str) -> FrozenSet[str]:
        return self._adjacency.get(node_id, frozenset())

    def is_connected_to(self, node_id: str, neighbor_type: str) -> bool:
        """True when any direct neighbor of ``node_id`` is of ``neighbor_type``."""

        for neighbor_id in self.connected_nodes(node_id):
            neighbor = self._nodes_by_id.get(neighbor_id)
            if neighbor is not None and neighbor.resource_type == neighbor_type:
                return True
        return False


def build_context(graph: Graph) -> SecurityContext:
    return SecurityContext(graph)
