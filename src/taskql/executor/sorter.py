"""
Sorting and grouping of query results.
"""

from collections.abc import Iterable, Sequence
from functools import cmp_to_key
from typing import Any

from taskql.ast import GroupKey, SortDirection, SortKey
from taskql.config import QueryConfig, get_default_config
from taskql.executor.evaluator import to_datetime
from taskql.executor.field_resolver import FieldResolver, is_multi_valued, stringify

NONE_GROUP = "(none)"


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


class RecordSorter:
    """Stable multi-key sorting and fan-out grouping of records."""

    def __init__(self, config: QueryConfig | None = None):
        self.config = config or get_default_config()
        self.field_resolver = FieldResolver(self.config)

    def sort(self, records: Iterable[Any], keys: Sequence[SortKey] | None) -> list[Any]:
        """
        Sort records by keys in priority order (first key dominates).

        Python's sort is stable, so records equal on every key keep their input
        order. Missing values go last ascending and first descending.
        """
        if not keys:
            return list(records)

        def compare(a: Any, b: Any) -> int:
            return self._compare_records(keys, a, b)

        return sorted(records, key=cmp_to_key(compare))

    def group(self, records: Iterable[Any], key: GroupKey | str) -> dict[str, list[Any]]:
        """
        Partition records by the value of one field.

        Multi-valued fields put the record into one group per distinct element;
        missing or empty values go to the '(none)' group. Groups appear in order
        of first occurrence and keep the relative order of their records.
        """
        field = key.field if isinstance(key, GroupKey) else key
        groups: dict[str, list[Any]] = {}

        for record in records:
            value = self.field_resolver.resolve_field(record, field)
            if is_multi_valued(value) and value:
                labels = [stringify(v) or NONE_GROUP for v in value]
            elif value is None or value == "" or is_multi_valued(value):
                labels = [NONE_GROUP]
            else:
                labels = [stringify(value)]

            for label in dict.fromkeys(labels):
                groups.setdefault(label, []).append(record)

        return groups

    def _compare_records(self, keys: Sequence[SortKey], a: Any, b: Any) -> int:
        for key in keys:
            a_value = self.field_resolver.resolve_field(a, key.field)
            b_value = self.field_resolver.resolve_field(b, key.field)
            descending = key.direction == SortDirection.DESC

            if a_value is None and b_value is None:
                continue
            if a_value is None:
                return -1 if descending else 1
            if b_value is None:
                return 1 if descending else -1

            comparison = self._compare_values(key.field, a_value, b_value)
            if comparison != 0:
                return -comparison if descending else comparison

        return 0

    def _compare_values(self, field: str, a: Any, b: Any) -> int:
        """Compare two present values: dates as instants, priorities by rank, else text."""
        if self.config.is_date_field(field):
            a_instant, b_instant = to_datetime(a), to_datetime(b)
            if a_instant is not None and b_instant is not None:
                return _cmp(a_instant, b_instant)
        elif self.config.field_aliases.get(field, field) == "priority":
            return _cmp(self.config.priority_rank(a), self.config.priority_rank(b))

        return _cmp(stringify(a), stringify(b))


def sort_records(
    records: Iterable[Any],
    keys: Sequence[SortKey] | None,
    config: QueryConfig | None = None,
) -> list[Any]:
    """Stable multi-key sort of records."""
    return RecordSorter(config).sort(records, keys)


def group_records(
    records: Iterable[Any],
    key: GroupKey | str,
    config: QueryConfig | None = None,
) -> dict[str, list[Any]]:
    """Group records by a field, fanning out multi-valued fields."""
    return RecordSorter(config).group(records, key)
