"""Configuration for the task query engine.

The vocabulary the lexer, resolver and sorter work with (operators, field aliases,
priority ranks, status shortcuts) is carried on a ``QueryConfig`` instance that is
handed to each component, so queries using different vocabularies never share
state. Values can be overridden from the environment with the ``TASKQL_`` prefix,
e.g. ``TASKQL_STRICT=true`` or ``TASKQL_PRIORITY_RANKS='{"urgent": 0, ...}'``.
"""

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# "none" sits between medium and low on purpose
DEFAULT_PRIORITY_RANKS: dict[str, int] = {
    "highest": 1,
    "high": 2,
    "medium": 3,
    "none": 4,
    "low": 5,
    "lowest": 6,
}

DEFAULT_FIELD_ALIASES: dict[str, str] = {
    "status": "status",
    "priority": "priority",
    "due": "due_at",
    "scheduled": "scheduled_at",
    "start": "start_at",
    "created": "created_at",
    "updated": "updated_at",
    "done": "done_at",
    "tag": "tags",
    "tags": "tags",
    "path": "path",
    "description": "name",
    "id": "id",
}


class QueryConfig(BaseSettings):
    """Vocabulary and behaviour switches for parsing and evaluating task queries."""

    model_config = SettingsConfigDict(env_prefix="TASKQL_", extra="ignore", frozen=True)

    strict: bool = Field(
        default=False,
        description="Raise QuerySyntaxError instead of degrading malformed queries",
    )
    operators: list[str] = Field(
        default_factory=lambda: ["is", "includes", "before", "after", "matches", "on", "in"],
        description="Single-word comparison operators",
    )
    multi_word_operators: list[str] = Field(
        default_factory=lambda: ["is not", "not includes", "not matches", "not in"],
        description="Two-word comparison operators recognised by lexer lookahead",
    )
    field_aliases: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FIELD_ALIASES),
        description="Short query field names mapped to record attribute names",
    )
    field_defaults: dict[str, Any] = Field(
        default_factory=lambda: {"priority": "none", "tag": [], "tags": [], "path": ""},
        description="Value used when an aliased field is absent or empty on a record",
    )
    date_fields: list[str] = Field(
        default_factory=lambda: [
            "due",
            "scheduled",
            "start",
            "created",
            "updated",
            "done",
            "due_at",
            "scheduled_at",
            "start_at",
            "created_at",
            "updated_at",
            "done_at",
        ],
        description="Fields compared as instants when sorting",
    )
    priority_ranks: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_PRIORITY_RANKS),
        description="Sort rank per priority level, lower sorts first",
    )
    unranked_priority: str = Field(
        default="none",
        description="Priority level whose rank is used for unknown priorities",
    )
    status_shortcuts: dict[str, str] = Field(
        default_factory=lambda: {"done": "done", "cancelled": "cancelled"},
        description="Bare words that stand for 'status is <value>'",
    )
    completed_statuses: list[str] = Field(
        default_factory=lambda: ["done", "cancelled"],
        description="Statuses that count as completed",
    )

    def priority_rank(self, priority: Any) -> int:
        """Sort rank for a priority value; unknown levels rank as unranked_priority."""
        fallback = self.priority_ranks.get(self.unranked_priority, len(self.priority_ranks))
        if priority is None:
            return fallback
        return self.priority_ranks.get(str(priority).lower(), fallback)

    def is_date_field(self, field_name: str) -> bool:
        return field_name in self.date_fields


@lru_cache
def get_default_config() -> QueryConfig:
    """Shared default configuration (read from the environment once)."""
    return QueryConfig()
