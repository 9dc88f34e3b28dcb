"""Dependency graph interface consumed by the query engine.

The evaluator only needs the three questions in ``DependencyGraph``. Hosts
normally supply their own graph; ``TaskDependencyGraph`` builds one in memory
from the ``depends_on`` lists of a record collection.
"""

from collections import deque
from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from taskql.config import QueryConfig, get_default_config
from taskql.executor.field_resolver import lookup, record_id, stringify


@runtime_checkable
class DependencyGraph(Protocol):
    """Read-only dependency queries used by the dependency shortcuts."""

    def is_blocked(self, task_id: str) -> bool: ...

    def is_blocking(self, task_id: str) -> bool: ...

    def get_dependents(self, task_id: str, transitive: bool = False) -> set[str]: ...


class TaskDependencyGraph:
    """In-memory dependency graph built from task records.

    A record depends on every id in its ``depends_on`` list. Records are keyed
    by ``task_id`` when present, else by ``id``. A task counts as completed when
    its status is one of the configured completed statuses.
    """

    def __init__(self, records: Iterable[Any] = (), config: QueryConfig | None = None):
        self.config = config or get_default_config()
        self._records: dict[str, Any] = {}
        self._edges: dict[str, set[str]] = {}  # task -> tasks it depends on
        self._reverse_edges: dict[str, set[str]] = {}  # task -> tasks depending on it

        for record in records:
            task_id = record_id(record)
            if task_id is None:
                logger.debug("Skipping record without id while building dependency graph")
                continue
            self._records[task_id] = record
            depends_on = [str(dep) for dep in lookup(record, "depends_on") or []]
            self._edges.setdefault(task_id, set()).update(depends_on)
            for dep_id in depends_on:
                self._reverse_edges.setdefault(dep_id, set()).add(task_id)

        logger.debug(
            f"Built dependency graph with {len(self._records)} tasks "
            f"and {sum(len(deps) for deps in self._edges.values())} edges"
        )

    def is_completed(self, task_id: str) -> bool:
        record = self._records.get(task_id)
        if record is None:
            return False
        return stringify(lookup(record, "status")).lower() in self.config.completed_statuses

    def is_blocked(self, task_id: str) -> bool:
        """A task is blocked while any known dependency is incomplete."""
        if task_id not in self._records:
            return False
        return any(
            dep_id in self._records and not self.is_completed(dep_id)
            for dep_id in self._edges.get(task_id, ())
        )

    def is_blocking(self, task_id: str) -> bool:
        """An incomplete task is blocking while any known dependent is incomplete."""
        dependents = self._reverse_edges.get(task_id)
        if not dependents or task_id not in self._records or self.is_completed(task_id):
            return False
        return any(
            dep_id in self._records and not self.is_completed(dep_id) for dep_id in dependents
        )

    def get_dependents(self, task_id: str, transitive: bool = False) -> set[str]:
        """Tasks that depend on task_id, directly or (transitive=True) through others."""
        return self._walk(self._reverse_edges, task_id, transitive)

    def get_dependencies(self, task_id: str, transitive: bool = False) -> set[str]:
        """Tasks that task_id depends on, directly or (transitive=True) through others."""
        return self._walk(self._edges, task_id, transitive)

    @staticmethod
    def _walk(edges: dict[str, set[str]], start: str, transitive: bool) -> set[str]:
        if not transitive:
            return set(edges.get(start, ()))

        found: set[str] = set()
        visited = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for next_id in edges.get(current, ()):
                if next_id not in visited:
                    visited.add(next_id)
                    found.add(next_id)
                    queue.append(next_id)
        return found
