"""
Field resolver for task queries.

Resolves field references like 'status', 'due', 'tags' or 'meta.owner' from a
record. Records may be mappings or plain objects; the resolver never mutates them.
"""

import copy
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from taskql.config import QueryConfig, get_default_config

MULTI_VALUED = (list, tuple, set, frozenset)


def lookup(obj: Any, name: str) -> Any:
    """Look up one property on a mapping or object, None when absent."""
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def is_multi_valued(value: Any) -> bool:
    return isinstance(value, MULTI_VALUED)


def stringify(value: Any) -> str:
    """Render a field value as text for string comparisons and group labels."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if is_multi_valued(value):
        return ",".join(stringify(v) for v in value)
    return str(value)


def record_id(record: Any) -> str | None:
    """Identifier the dependency graph knows a record by (task_id, else id)."""
    value = lookup(record, "task_id") or lookup(record, "id")
    if value is None or value == "":
        return None
    return str(value)


class FieldResolver:
    """Resolves field values from records."""

    def __init__(self, config: QueryConfig | None = None):
        self.config = config or get_default_config()

    def resolve_field(self, record: Any, field_name: str) -> Any:
        """
        Resolve a field value from a record.

        Args:
            record: Mapping or object exposing task fields
            field_name: Field name to resolve (e.g., 'due', 'tags', 'meta.owner')

        Returns:
            Field value or None if not found
        """
        # Dotted paths walk nested properties without alias translation
        if "." in field_name:
            value = record
            for part in field_name.split("."):
                value = lookup(value, part)
                if value is None:
                    return None
            return value

        attribute = self.config.field_aliases.get(field_name, field_name)
        value = lookup(record, attribute)

        if not value and field_name in self.config.field_defaults:
            return copy.copy(self.config.field_defaults[field_name])
        return value
