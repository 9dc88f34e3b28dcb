"""
Main executor for task queries.

Filters, sorts and groups a record collection according to a ParsedQuery.
"""

from collections.abc import Callable, Iterable
from datetime import date
from typing import TYPE_CHECKING, Any

from loguru import logger

from taskql.ast import ParsedQuery, QueryNode
from taskql.config import QueryConfig, get_default_config
from taskql.errors import QueryExecutionError
from taskql.executor.evaluator import FilterEvaluator
from taskql.executor.sorter import RecordSorter
from taskql.parser import QueryParser

if TYPE_CHECKING:
    from taskql.dependencies import DependencyGraph

ALL_GROUP = "all"


class QueryExecutor:
    """Executes parsed queries against a record collection."""

    def __init__(
        self,
        records: Iterable[Any],
        dependency_graph: "DependencyGraph | None" = None,
        config: QueryConfig | None = None,
        today: Callable[[], date] | None = None,
    ):
        """
        Initialize executor with a collection of records.

        Args:
            records: Ordered records to query (mappings or objects)
            dependency_graph: Graph answering the blocked/blocking/depends/blocks shortcuts
            config: Vocabulary tables, defaults to the shared configuration
            today: Clock used for relative dates, defaults to the current UTC date
        """
        self.records = list(records)
        self.config = config or get_default_config()
        self.evaluator = FilterEvaluator(dependency_graph, self.config, today)
        self.sorter = RecordSorter(self.config)

    def execute(self, query: ParsedQuery) -> list[Any]:
        """
        Execute a query and return the filtered, sorted records.

        Args:
            query: Parsed query

        Returns:
            Matching records in sort order (input order when unsorted)
        """
        if not isinstance(query, ParsedQuery):
            raise QueryExecutionError(f"Expected ParsedQuery, got {type(query).__name__}")

        results = self._filter(query.filter)

        if query.sort:
            results = self.sorter.sort(results, query.sort)

        logger.debug(f"Query matched {len(results)} of {len(self.records)} records")
        return results

    def execute_grouped(self, query: ParsedQuery) -> dict[str, list[Any]]:
        """
        Execute a query and partition the results by its group key.

        Without a group clause everything lands in a single 'all' group.
        """
        results = self.execute(query)

        if query.group is None:
            return {ALL_GROUP: results}

        groups = self.sorter.group(results, query.group)
        logger.debug(
            f"Grouped {len(results)} records by {query.group.field!r} into {len(groups)} groups"
        )
        return groups

    def _filter(self, node: QueryNode | None) -> list[Any]:
        if node is None:
            return list(self.records)
        return [record for record in self.records if self.evaluator.evaluate(node, record)]


def execute(
    query: ParsedQuery,
    records: Iterable[Any],
    dependency_graph: "DependencyGraph | None" = None,
    config: QueryConfig | None = None,
) -> list[Any]:
    """Filter and sort records with a parsed query."""
    return QueryExecutor(records, dependency_graph, config).execute(query)


def execute_grouped(
    query: ParsedQuery,
    records: Iterable[Any],
    dependency_graph: "DependencyGraph | None" = None,
    config: QueryConfig | None = None,
) -> dict[str, list[Any]]:
    """Filter, sort and group records with a parsed query."""
    return QueryExecutor(records, dependency_graph, config).execute_grouped(query)


def execute_query(
    query_text: str,
    records: Iterable[Any],
    dependency_graph: "DependencyGraph | None" = None,
    config: QueryConfig | None = None,
) -> list[Any]:
    """Parse and execute a query string."""
    query = QueryParser.parse(query_text, config=config)
    return execute(query, records, dependency_graph, config)


def execute_grouped_query(
    query_text: str,
    records: Iterable[Any],
    dependency_graph: "DependencyGraph | None" = None,
    config: QueryConfig | None = None,
) -> dict[str, list[Any]]:
    """Parse and execute a query string with grouping."""
    query = QueryParser.parse(query_text, config=config)
    return execute_grouped(query, records, dependency_graph, config)
