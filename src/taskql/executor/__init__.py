"""
Task Query Executor.

Evaluates, sorts and groups parsed task queries over record collections.
"""

from taskql.executor.evaluator import FilterEvaluator, evaluate
from taskql.executor.executor import (
    QueryExecutor,
    execute,
    execute_grouped,
    execute_grouped_query,
    execute_query,
)
from taskql.executor.field_resolver import FieldResolver
from taskql.executor.sorter import RecordSorter, group_records, sort_records

__all__ = [
    "FieldResolver",
    "FilterEvaluator",
    "QueryExecutor",
    "RecordSorter",
    "evaluate",
    "execute",
    "execute_grouped",
    "execute_grouped_query",
    "execute_query",
    "group_records",
    "sort_records",
]
