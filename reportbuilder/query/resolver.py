"""Join graph resolution: which tables a report needs, and in what order to join them."""

import heapq
import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set

from reportbuilder.catalog.schemas import TableGraphConfig, TableNode
from reportbuilder.core.exceptions import CyclicDependencyError, UnresolvableFieldError
from reportbuilder.query.schemas import JoinPlan

logger = logging.getLogger(__name__)


class JoinGraphResolver:
    """
    Resolves required tables into a ``JoinPlan`` over a fixed dependency DAG.

    The graph is checked for cycles on construction, so a bad configuration
    fails at startup. After that the resolver is immutable and safe to share
    between concurrent requests.
    """

    def __init__(self, graph: TableGraphConfig):
        self.base_table = graph.base_table
        self._nodes: Dict[str, TableNode] = {table.name: table for table in graph.tables}
        self._check_acyclic()
        self._resolvable = self._find_resolvable()
        self._closures: Dict[str, FrozenSet[str]] = {}
        for name in sorted(self._resolvable):
            self._closures[name] = self._build_closure(name)

        detached = sorted(set(self._nodes) - self._resolvable)
        if detached:
            logger.warning("Tables not reachable from base table '%s': %s", self.base_table, detached)

    def resolve(self, tables: Iterable[str], origins: Optional[Mapping[str, str]] = None) -> JoinPlan:
        """
        Build the join plan for a set of required tables.

        Each table pulls in its whole dependency chain back to the base table.
        Independent branches are unioned. ``origins`` maps a table to the
        field that required it, for error reporting.
        """
        origins = origins or {}
        required: Set[str] = {self.base_table}
        for table in tables:
            if table not in self._resolvable:
                raise UnresolvableFieldError(table, origins.get(table))
            required |= self._closure(table)
        return JoinPlan(tuple(self._nodes[name] for name in self._topological_order(required)))

    def dependencies_of(self, table: str) -> FrozenSet[str]:
        """Transitive dependencies of a table (the table itself included)."""
        if table not in self._resolvable:
            raise UnresolvableFieldError(table)
        return self._closure(table)

    @property
    def tables(self) -> List[str]:
        return sorted(self._resolvable)

    # ===== GRAPH ANALYSIS =====

    def _check_acyclic(self) -> None:
        """Depth-first search for a back edge; reports the cycle it finds."""
        visiting: List[str] = []
        done: Set[str] = set()

        def visit(name: str) -> None:
            if name in done:
                return
            if name in visiting:
                cycle = visiting[visiting.index(name):] + [name]
                raise CyclicDependencyError(cycle)
            visiting.append(name)
            for parent in sorted(self._nodes[name].depends_on):
                visit(parent)
            visiting.pop()
            done.add(name)

        for name in sorted(self._nodes):
            visit(name)

    def _find_resolvable(self) -> Set[str]:
        """Tables whose every dependency chain ends at the base table."""
        resolvable = {self.base_table}
        changed = True
        while changed:
            changed = False
            for name, node in self._nodes.items():
                if name in resolvable or not node.depends_on:
                    continue
                if node.depends_on <= resolvable:
                    resolvable.add(name)
                    changed = True
        return resolvable

    def _build_closure(self, table: str) -> FrozenSet[str]:
        members = {table}
        for parent in self._nodes[table].depends_on:
            members |= self._closures.get(parent) or self._build_closure(parent)
        return frozenset(members)

    def _closure(self, table: str) -> FrozenSet[str]:
        return self._closures[table]

    def _topological_order(self, tables: Set[str]) -> List[str]:
        """Kahn's algorithm over the required subgraph; ties broken by table name."""
        remaining = {name: set(self._nodes[name].depends_on) for name in tables}
        dependents: Dict[str, List[str]] = {name: [] for name in tables}
        for name, parents in remaining.items():
            for parent in parents:
                dependents[parent].append(name)

        ready = [name for name, parents in remaining.items() if not parents]
        heapq.heapify(ready)
        order: List[str] = []
        while ready:
            name = heapq.heappop(ready)
            order.append(name)
            for child in dependents[name]:
                remaining[child].discard(name)
                if not remaining[child]:
                    heapq.heappush(ready, child)
        return order
