"""
Task query language engine.

Parses filter/sort/group expressions such as
``not done AND (is blocked OR tag includes #urgent) sort by priority desc group by status``
and runs them over collections of task records.
"""

from taskql.ast import (
    ComparisonNode,
    GroupKey,
    LogicalNode,
    LogicalOperator,
    NotNode,
    ParsedQuery,
    QueryNode,
    SortDirection,
    SortKey,
)
from taskql.config import QueryConfig, get_default_config
from taskql.dependencies import DependencyGraph, TaskDependencyGraph
from taskql.errors import QueryExecutionError, QuerySyntaxError, TaskQueryError
from taskql.executor import (
    FieldResolver,
    FilterEvaluator,
    QueryExecutor,
    RecordSorter,
    evaluate,
    execute,
    execute_grouped,
    execute_grouped_query,
    execute_query,
    group_records,
    sort_records,
)
from taskql.explain import explain_query, format_query
from taskql.lexer import QueryLexer, Token, TokenType, tokenize
from taskql.models import TaskRecord
from taskql.parser import QueryParser, parse

__all__ = [
    # AST
    "ComparisonNode",
    "GroupKey",
    "LogicalNode",
    "LogicalOperator",
    "NotNode",
    "ParsedQuery",
    "QueryNode",
    "SortDirection",
    "SortKey",
    # Config
    "QueryConfig",
    "get_default_config",
    # Dependencies
    "DependencyGraph",
    "TaskDependencyGraph",
    # Errors
    "QueryExecutionError",
    "QuerySyntaxError",
    "TaskQueryError",
    # Executor
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
    # Explain
    "explain_query",
    "format_query",
    # Lexer
    "QueryLexer",
    "Token",
    "TokenType",
    "tokenize",
    # Models
    "TaskRecord",
    # Parser
    "QueryParser",
    "parse",
]
