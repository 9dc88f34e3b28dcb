"""
Abstract Syntax Tree (AST) definitions for task queries.
"""

from dataclasses import dataclass
from enum import Enum


# Comparison fields answered by the dependency graph instead of the record
BLOCKED = "blocked"
BLOCKING = "blocking"
DEPENDS = "depends"
BLOCKS = "blocks"
DEPENDENCY_FIELDS = frozenset({BLOCKED, BLOCKING, DEPENDS, BLOCKS})


class LogicalOperator(Enum):
    """Boolean connective joining two filter expressions."""

    AND = "AND"
    OR = "OR"


class SortDirection(Enum):
    """Sort direction for a sort key."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class ComparisonNode:
    """Field comparison (e.g., 'status is done', 'due before today')."""

    field: str
    operator: str  # is, is not, includes, before, after, matches, on, in, ...
    value: str


@dataclass(frozen=True)
class LogicalNode:
    """Binary AND / OR over two sub-expressions."""

    operator: LogicalOperator
    left: "QueryNode"
    right: "QueryNode"


@dataclass(frozen=True)
class NotNode:
    """Negation of a sub-expression."""

    operand: "QueryNode"


QueryNode = ComparisonNode | LogicalNode | NotNode


@dataclass(frozen=True)
class SortKey:
    """One key of a sort clause."""

    field: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class GroupKey:
    """Group clause field."""

    field: str


@dataclass(frozen=True)
class ParsedQuery:
    """Complete parsed query.

    A query without a filter matches every record, a query without sort keys
    keeps input order.
    """

    filter: QueryNode | None = None
    sort: tuple[SortKey, ...] | None = None
    group: GroupKey | None = None

    def __repr__(self) -> str:
        parts = []
        if self.filter is not None:
            parts.append(f"filter={self.filter!r}")
        if self.sort:
            parts.append(f"sort={[f'{k.field} {k.direction.value}' for k in self.sort]}")
        if self.group:
            parts.append(f"group={self.group.field!r}")
        return "ParsedQuery(" + ", ".join(parts) + ")"
