"""RuleGraph — cross-field rule dependencies as a NetworkX DiGraph.

Built once per form definition. Nodes are rule ids; an edge A → B means a
dependent of rule A is read by rule B, so re-validating A's dependents
re-triggers B. Self-edges (a rule whose dependents overlap its own
``fields``) are not recorded.

INVARIANT: the rule graph is acyclic; a cycle is a FormDefinitionError at
load time.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import networkx as nx

from fieldctl.domain.errors import FormDefinitionError
from fieldctl.domain.rules import AnyCrossFieldRule

type _Graph = nx.DiGraph


@dataclass(frozen=True)
class Propagation:
    """What one change touched.

    Attributes:
        trigger: The field whose value changed.
        fields: Fields re-validated, in visit order (trigger first).
        rules: Synchronous rules evaluated, in evaluation order.
        async_rules: Asynchronous rules reached (evaluated only by the
            async session API).
    """

    trigger: str
    fields: tuple[str, ...]
    rules: tuple[str, ...]
    async_rules: tuple[str, ...] = ()


class RuleGraph:
    """Field → rule triggering and rule ordering for one form."""

    def __init__(self, field_names: Sequence[str], rules: Sequence[AnyCrossFieldRule]) -> None:
        self._field_order = {name: i for i, name in enumerate(field_names)}
        self._rules: dict[str, AnyCrossFieldRule] = {}
        for rule in rules:
            if rule.rule_id in self._rules:
                raise FormDefinitionError(f"duplicate cross-field rule {rule.rule_id!r}")
            for name in (*rule.fields, *rule.dependents):
                if name not in self._field_order:
                    msg = f"rule {rule.rule_id!r} references unknown field {name!r}"
                    raise FormDefinitionError(msg)
            self._rules[rule.rule_id] = rule
        self._rule_order = {rule_id: i for i, rule_id in enumerate(self._rules)}

        readers: dict[str, list[str]] = {name: [] for name in field_names}
        for rule in self._rules.values():
            for name in rule.fields:
                readers[name].append(rule.rule_id)
        self._readers = {name: tuple(ids) for name, ids in readers.items()}
        self._graph = self._build()

    def _build(self) -> _Graph:
        g: _Graph = nx.DiGraph()
        g.add_nodes_from(self._rules)
        for rule in self._rules.values():
            for dependent in rule.dependents:
                for reader in self._readers[dependent]:
                    if reader != rule.rule_id:
                        g.add_edge(rule.rule_id, reader, field=dependent)
        if not nx.is_directed_acyclic_graph(g):
            cycle = [u for u, _v in nx.find_cycle(g)]
            path = " -> ".join([*cycle, cycle[0]])
            raise FormDefinitionError(f"cross-field rules form a cycle: {path}")
        return g

    @property
    def graph(self) -> _Graph:
        return self._graph

    @property
    def rules(self) -> tuple[AnyCrossFieldRule, ...]:
        """All rules in declaration order."""
        return tuple(self._rules.values())

    def rule(self, rule_id: str) -> AnyCrossFieldRule:
        return self._rules[rule_id]

    def readers_of(self, field: str) -> tuple[str, ...]:
        """Rule ids that read *field*, in declaration order."""
        return self._readers.get(field, ())

    def plan(self, field: str) -> Propagation:
        """Compute the propagation triggered by a change to *field*.

        Each field is visited and each rule reached at most once. Reached
        rules are ordered topologically, ties broken by declaration order,
        so a rule always runs after every reached rule that feeds it.
        """
        visited_fields = [field]
        seen_fields = {field}
        reached: set[str] = set()
        frontier = [field]
        while frontier:
            current = frontier.pop(0)
            for rule_id in self._readers.get(current, ()):
                if rule_id in reached:
                    continue
                reached.add(rule_id)
                for dependent in self._rules[rule_id].dependents:
                    if dependent not in seen_fields:
                        seen_fields.add(dependent)
                        visited_fields.append(dependent)
                        frontier.append(dependent)

        ordered = list(
            nx.lexicographical_topological_sort(
                self._graph.subgraph(reached), key=self._rule_order.__getitem__
            )
        )
        sync_rules = tuple(r for r in ordered if not self._rules[r].is_async)
        async_rules = tuple(r for r in ordered if self._rules[r].is_async)
        fields = tuple(sorted(visited_fields[1:], key=self._field_order.__getitem__))
        return Propagation(
            trigger=field,
            fields=(field, *fields),
            rules=sync_rules,
            async_rules=async_rules,
        )
