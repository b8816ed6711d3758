"""Assemble and filter the list of rules a scan evaluates."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .errors import RuleRegistryError, RuleSelectionError
from .rules import Rule
from .rules import access, database, monitoring, network, storage


def all_rules() -> List[Rule]:
    """Build a fresh list of every built-in rule, in evaluation order."""

    rules: List[Rule] = []
    for module in (network, storage, database, access, monitoring):
        rules.extend(module.get_rules())
    return rules


def default_rules() -> List[Rule]:
    """The built-in rules that run when nothing else is asked for."""

    return [rule for rule in all_rules() if not rule.metadata.opt_in]


def rule_ids(rules: Iterable[Rule]) -> List[str]:
    return [rule.metadata.rule_id for rule in rules]


def ensure_unique(rules: Sequence[Rule]) -> None:
    """Raise if two rules share an id, so every finding maps to one rule."""

    seen = set()
    duplicates = []
    for rule_id in rule_ids(rules):
        if rule_id in seen and rule_id not in duplicates:
            duplicates.append(rule_id)
        seen.add(rule_id)
    if duplicates:
        raise RuleRegistryError(f"duplicate rule ids: {', '.join(duplicates)}")


def select_rules(
    rules: Sequence[Rule],
    enabled: Optional[Iterable[str]] = None,
    disabled: Iterable[str] = (),
) -> List[Rule]:
    """Keep the rules named by ``enabled`` (all when None), minus ``disabled``.

    Registry order is preserved. Naming an id that is not registered raises
    ``RuleSelectionError``.
    """

    known = set(rule_ids(rules))
    enabled_ids = None if enabled is None else set(enabled)
    disabled_ids = set(disabled)
    unknown = ((enabled_ids or set()) | disabled_ids) - known
    if unknown:
        raise RuleSelectionError(f"unknown rule ids: {', '.join(sorted(unknown))}")
    return [
        rule
        for rule in rules
        if (enabled_ids is None or rule.metadata.rule_id in enabled_ids)
        and rule.metadata.rule_id not in disabled_ids
    ]


def build_rules(
    enabled: Optional[Iterable[str]] = None,
    disabled: Iterable[str] = (),
    include: Iterable[str] = (),
) -> List[Rule]:
    """Resolve a rule selection against every built-in rule.

    Without ``enabled`` the default set runs, plus the opt-in rules named in
    ``include``. ``enabled`` names the exact set and may list opt-in rules.
    """

    base = rule_ids(default_rules()) if enabled is None else list(enabled)
    return select_rules(all_rules(), enabled=base + list(include), disabled=disabled)
