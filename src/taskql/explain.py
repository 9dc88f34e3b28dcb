"""Render parsed queries back to text.

``format_query`` produces canonical query text that parses back to an equal
ParsedQuery; ``explain_query`` produces a short markdown summary for display.
"""

import re

from taskql.ast import (
    BLOCKED,
    BLOCKING,
    BLOCKS,
    DEPENDS,
    ComparisonNode,
    LogicalNode,
    LogicalOperator,
    NotNode,
    ParsedQuery,
    QueryNode,
    SortDirection,
)
from taskql.errors import QueryExecutionError

BARE_VALUE = re.compile(r"^(#[\w/-]*|\d{4}-\d{2}-\d{2}|[^\W\d_][\w.]*)$")
# Words the lexer would not hand back as a plain identifier
RESERVED_WORDS = frozenset(
    {
        "and",
        "or",
        "not",
        "sort",
        "group",
        "by",
        "asc",
        "desc",
        "is",
        "includes",
        "before",
        "after",
        "matches",
        "on",
        "in",
    }
)


def format_value(value: str) -> str:
    """Quote a comparison value unless it lexes back as a single value token."""
    if BARE_VALUE.match(value) and value.lower() not in RESERVED_WORDS:
        return value
    quote = "'" if '"' in value else '"'
    return f"{quote}{value}{quote}"


def format_node(node: QueryNode) -> str:
    """Canonical text for a filter node."""
    if isinstance(node, ComparisonNode):
        field = node.field.lower()
        if field in (BLOCKED, BLOCKING):
            return f"{node.operator} {field}"
        if field == DEPENDS and node.operator == "on":
            return f"depends on {format_value(node.value)}"
        if field == BLOCKS:
            return f"blocks {format_value(node.value)}"
        return f"{node.field} {node.operator} {format_value(node.value)}"

    if isinstance(node, NotNode):
        if isinstance(node.operand, LogicalNode):
            return f"NOT ({format_node(node.operand)})"
        return f"NOT {format_node(node.operand)}"

    if isinstance(node, LogicalNode):
        left = format_node(node.left)
        right = format_node(node.right)
        # OR under AND always needs parentheses; a nested right operand keeps its grouping
        if isinstance(node.left, LogicalNode) and (
            node.operator == LogicalOperator.AND and node.left.operator == LogicalOperator.OR
        ):
            left = f"({left})"
        if isinstance(node.right, LogicalNode) and (
            node.operator == LogicalOperator.AND or node.right.operator == LogicalOperator.OR
        ):
            right = f"({right})"
        return f"{left} {node.operator.value} {right}"

    raise QueryExecutionError(f"Unknown filter node type: {type(node)}")


def format_query(query: ParsedQuery) -> str:
    """Canonical query text for a ParsedQuery."""
    parts = []
    if query.filter is not None:
        parts.append(format_node(query.filter))
    if query.sort:
        keys = ", ".join(f"{key.field} {key.direction.value}" for key in query.sort)
        parts.append(f"sort by {keys}")
    if query.group:
        parts.append(f"group by {query.group.field}")
    return " ".join(parts)


def explain_query(query: ParsedQuery) -> str:
    """Describe a parsed query as markdown."""
    lines = []

    if query.filter is not None:
        lines.append(f"**Filter:** {format_node(query.filter)}")
    else:
        lines.append("**Filter:** None (showing all tasks)")

    if query.sort:
        keys = []
        for key in query.sort:
            direction = "descending" if key.direction == SortDirection.DESC else "ascending"
            keys.append(f"{key.field} ({direction})")
        lines.append(f"**Sort:** By {', then '.join(keys)}")

    if query.group:
        lines.append(f"**Group:** By {query.group.field}")

    return "\n".join(lines)
