"""Rule interface shared by all security checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Tuple

from archscan.context import SecurityContext
from archscan.graph import Node
from archscan.result import Finding
from archscan.severity import Category, Severity


@dataclass(frozen=True)
class RuleMetadata:
    """Immutable identity of a rule, copied into every finding it emits."""

    rule_id: str
    severity: Severity
    category: Category
    title: str
    description: str
    recommendation: str
    compliance: Tuple[str, ...] = ()
    autofix_available: bool = False
    # opt-in rules only run when named by --include, include_rules or --enable
    opt_in: bool = False

    def finding(
        self,
        sequence: int,
        nodes: Iterable[Node] = (),
        description: Optional[str] = None,
        recommendation: Optional[str] = None,
        default_label: str = "Resource",
    ) -> Finding:
        """Build the ``sequence``-th finding of one rule invocation."""

        nodes = list(nodes)
        return Finding(
            id=f"{self.rule_id}-{sequence:03d}",
            rule_id=self.rule_id,
            severity=self.severity,
            category=self.category,
            title=self.title,
            description=description or self.description,
            recommendation=recommendation or self.recommendation,
            affected_node_ids=tuple(node.id for node in nodes),
            affected_node_labels=tuple(node.label or default_label for node in nodes),
            compliance=self.compliance,
            autofix_available=self.autofix_available,
        )


class Rule(Protocol):
    """Protocol implemented by all rule evaluators."""

    metadata: RuleMetadata

    def check(self, context: SecurityContext) -> List[Finding]:
        """Inspect ``context`` and return the findings, without side effects."""


def label_of(node: Node, default: str) -> str:
    return node.label or default
