import logging
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from schema import TableDef, UnresolvedForeignKey

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Foreign-key dependency graph with a cycle-tolerant creation order.

    ``build`` records foreign keys whose target lies outside the table set in
    ``unresolved_foreign_keys``; ``order`` records every edge it refused to
    follow because it closed a cycle in ``cyclic_edges``. Those are the
    constraints a migration generator has to add after all tables exist.
    """

    def __init__(self) -> None:
        """Start with no recorded cycles or unresolved keys."""
        self.cyclic_edges: List[Tuple[str, str]] = []
        self.unresolved_foreign_keys: List[UnresolvedForeignKey] = []

    def build(self, tables: Sequence[TableDef]) -> Dict[str, Set[str]]:
        """Map each table to the set of tables its foreign keys reference.

        Self-references are excluded. Every input table gets an entry, possibly empty.
        """
        names = {table.name for table in tables}
        self.unresolved_foreign_keys = []
        graph: Dict[str, Set[str]] = {}
        for table in tables:
            dependencies = graph.setdefault(table.name, set())
            for fk in table.foreign_keys:
                if fk.foreign_table == table.name:
                    continue
                if fk.foreign_table not in names:
                    logger.warning(
                        "unresolved_foreign_key table=%s fk=%s foreign_table=%s",
                        table.name,
                        fk.name,
                        fk.foreign_table,
                    )
                    self.unresolved_foreign_keys.append(
                        UnresolvedForeignKey(
                            table=table.name, foreign_key=fk.name, foreign_table=fk.foreign_table
                        )
                    )
                    continue
                dependencies.add(fk.foreign_table)
        return graph

    def order(
        self, graph: Dict[str, Set[str]], tables: Optional[Sequence[str]] = None
    ) -> List[str]:
        """Depth-first topological order; ties resolve in input order.

        Always returns a permutation of the input tables. An edge that leads
        back to a table still on the traversal stack is skipped and recorded.
        """
        names = list(tables) if tables is not None else list(graph)
        position = {name: index for index, name in enumerate(names)}
        self.cyclic_edges = []
        order: List[str] = []
        done: Set[str] = set()
        in_progress: Set[str] = set()

        def dependencies_of(name: str) -> Iterator[str]:
            dependencies = [dep for dep in graph.get(name, ()) if dep in position]
            return iter(sorted(dependencies, key=position.__getitem__))

        for root in names:
            if root in done:
                continue
            in_progress.add(root)
            # (table, its remaining dependencies) for every table on the current path
            stack = [(root, dependencies_of(root))]
            while stack:
                name, pending = stack[-1]
                for dependency in pending:
                    if dependency in done:
                        continue
                    if dependency in in_progress:
                        logger.warning(
                            "dependency_cycle table=%s dependency=%s", name, dependency
                        )
                        self.cyclic_edges.append((name, dependency))
                        continue
                    in_progress.add(dependency)
                    stack.append((dependency, dependencies_of(dependency)))
                    break
                else:
                    stack.pop()
                    in_progress.discard(name)
                    done.add(name)
                    order.append(name)
        return order
