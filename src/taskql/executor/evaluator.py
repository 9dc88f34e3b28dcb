"""
Filter evaluator for task queries.

Evaluates a filter AST against one record at a time. Evaluation is pure apart
from reading the clock for relative dates ('today', 'tomorrow', 'yesterday').
"""

import re
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from loguru import logger

from taskql.ast import (
    BLOCKED,
    BLOCKING,
    DEPENDENCY_FIELDS,
    DEPENDS,
    ComparisonNode,
    LogicalNode,
    LogicalOperator,
    NotNode,
    QueryNode,
)
from taskql.config import QueryConfig, get_default_config
from taskql.errors import QueryExecutionError
from taskql.executor.field_resolver import FieldResolver, is_multi_valued, record_id, stringify

if TYPE_CHECKING:
    from taskql.dependencies import DependencyGraph

# Negated operators evaluate as the inverse of their positive form
NEGATED_OPERATORS = {
    "is not": "is",
    "not includes": "includes",
    "not matches": "matches",
    "not in": "in",
}

RELATIVE_DAYS = {"yesterday": -1, "today": 0, "tomorrow": 1}


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def to_datetime(value: Any) -> datetime | None:
    """Interpret a field value as an instant; naive values are taken as UTC."""
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime.combine(value, time.min)
    elif isinstance(value, str) and value:
        try:
            instant = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a 'matches' pattern once; invalid patterns compile to None."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.debug(f"Invalid pattern {pattern!r} in matches comparison: {e}")
        return None


class FilterEvaluator:
    """Evaluates filter expressions against records."""

    def __init__(
        self,
        dependency_graph: "DependencyGraph | None" = None,
        config: QueryConfig | None = None,
        today: Callable[[], date] | None = None,
    ):
        self.dependency_graph = dependency_graph
        self.config = config or get_default_config()
        self.field_resolver = FieldResolver(self.config)
        self.today = today or utc_today
        self._comparators: dict[str, Callable[[Any, str], bool]] = {
            "is": self._compare_equal,
            "includes": self._compare_includes,
            "in": self._compare_in,
            "before": self._compare_before,
            "after": self._compare_after,
            "on": self._compare_on,
            "matches": self._compare_matches,
        }

    def evaluate(self, node: QueryNode, record: Any) -> bool:
        """
        Evaluate a filter node against a record.

        Args:
            node: Filter AST node
            record: Record to test

        Returns:
            True when the record satisfies the filter
        """
        if isinstance(node, ComparisonNode):
            return self._eval_comparison(node, record)

        elif isinstance(node, LogicalNode):
            if node.operator == LogicalOperator.AND:
                return self.evaluate(node.left, record) and self.evaluate(node.right, record)
            return self.evaluate(node.left, record) or self.evaluate(node.right, record)

        elif isinstance(node, NotNode):
            return not self.evaluate(node.operand, record)

        else:
            raise QueryExecutionError(f"Unknown filter node type: {type(node)}")

    def _eval_comparison(self, node: ComparisonNode, record: Any) -> bool:
        """Evaluate a comparison, routing dependency shortcuts to the graph."""
        field = node.field.lower()
        if field in DEPENDENCY_FIELDS and (field != DEPENDS or node.operator == "on"):
            return self._eval_dependency(field, node, record)

        value = self.field_resolver.resolve_field(record, node.field)

        operator = node.operator
        if operator in NEGATED_OPERATORS:
            return not self._compare(NEGATED_OPERATORS[operator], value, node.value)
        return self._compare(operator, value, node.value)

    def _compare(self, operator: str, value: Any, target: str) -> bool:
        comparator = self._comparators.get(operator)
        if comparator is None:
            logger.debug(f"Unknown operator {operator!r}, comparison is false")
            return False
        return comparator(value, target)

    def _eval_dependency(self, field: str, node: ComparisonNode, record: Any) -> bool:
        """Answer blocked / blocking / depends on / blocks from the dependency graph."""
        task_id = record_id(record)
        graph = self.dependency_graph

        # Unknown tasks are neither blocked nor blocking, so negated forms hold
        if task_id is None or graph is None:
            result = False
        elif field == DEPENDS:
            return task_id in graph.get_dependents(node.value, transitive=False)
        elif field == BLOCKED:
            result = graph.is_blocked(task_id)
        elif field == BLOCKING:
            result = graph.is_blocking(task_id)
        else:
            result = node.value in graph.get_dependents(task_id, transitive=False)

        return not result if node.operator == "is not" else result

    def _compare_equal(self, value: Any, target: str) -> bool:
        """Case-insensitive equality; membership for multi-valued fields."""
        if value is None:
            return False
        if is_multi_valued(value):
            return target in [stringify(v) for v in value]
        return stringify(value).lower() == target.lower()

    def _compare_includes(self, value: Any, target: str) -> bool:
        """Substring test; any element for multi-valued fields."""
        if value is None:
            return False
        if is_multi_valued(value):
            return any(target in stringify(v) for v in value)
        return target in stringify(value)

    def _compare_in(self, value: Any, target: str) -> bool:
        """Value is one of a comma-separated list (case-insensitive)."""
        if value is None:
            return False
        options = {option.strip().lower() for option in target.split(",") if option.strip()}
        if is_multi_valued(value):
            return any(stringify(v).lower() in options for v in value)
        return stringify(value).lower() in options

    def _compare_before(self, value: Any, target: str) -> bool:
        instants = self._instants(value, target)
        return instants is not None and instants[0] < instants[1]

    def _compare_after(self, value: Any, target: str) -> bool:
        instants = self._instants(value, target)
        return instants is not None and instants[0] > instants[1]

    def _compare_on(self, value: Any, target: str) -> bool:
        instants = self._instants(value, target)
        if instants is None:
            return False
        field_instant, target_instant = instants
        return (
            field_instant.astimezone(timezone.utc).date()
            == target_instant.astimezone(timezone.utc).date()
        )

    def _compare_matches(self, value: Any, target: str) -> bool:
        if value is None:
            return False
        pattern = compile_pattern(target)
        if pattern is None:
            return False
        return pattern.search(stringify(value)) is not None

    def _instants(self, value: Any, target: str) -> tuple[datetime, datetime] | None:
        field_instant = to_datetime(value)
        target_instant = self._resolve_date(target)
        if field_instant is None or target_instant is None:
            return None
        return field_instant, target_instant

    def _resolve_date(self, text: str) -> datetime | None:
        """Turn a date literal or relative day word into a UTC midnight instant."""
        offset = RELATIVE_DAYS.get(text.lower())
        if offset is not None:
            day = self.today() + timedelta(days=offset)
            return datetime.combine(day, time.min, tzinfo=timezone.utc)
        return to_datetime(text)


def evaluate(
    node: QueryNode,
    record: Any,
    dependency_graph: "DependencyGraph | None" = None,
    config: QueryConfig | None = None,
) -> bool:
    """Evaluate one filter node against one record."""
    return FilterEvaluator(dependency_graph, config).evaluate(node, record)
