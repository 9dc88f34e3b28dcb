"""Tests for filter evaluation."""

from datetime import date, datetime, timezone

import pytest

from fakes import StubDependencyGraph
from taskql.ast import ComparisonNode, LogicalNode, LogicalOperator, NotNode
from taskql.config import QueryConfig
from taskql.errors import QueryExecutionError
from taskql.executor.evaluator import FilterEvaluator, compile_pattern, evaluate, to_datetime
from taskql.parser import parse


@pytest.fixture
def evaluator(today):
    return FilterEvaluator(today=today)


def check(evaluator, text, record):
    return evaluator.evaluate(parse(text).filter, record)


class TestEqualityOperators:
    """Test is / is not / in."""

    def test_is_case_insensitive(self, evaluator, task_dict):
        assert check(evaluator, "status is todo", task_dict)
        assert check(evaluator, "status is TODO", task_dict)
        assert not check(evaluator, "status is done", task_dict)

    def test_is_not(self, evaluator, task_dict):
        assert check(evaluator, "status is not done", task_dict)
        assert not check(evaluator, "status is not todo", task_dict)

    def test_is_on_array_is_exact_membership(self, evaluator, task_dict):
        assert check(evaluator, "tags is #work", task_dict)
        assert not check(evaluator, "tags is #wor", task_dict)
        assert not check(evaluator, "tags is #WORK", task_dict)

    def test_is_on_missing_field(self, evaluator, task_dict):
        assert not check(evaluator, "estimate is 3", task_dict)
        assert check(evaluator, "estimate is not 3", task_dict)

    def test_priority_default(self, evaluator):
        assert check(evaluator, "priority is none", {"id": "x"})

    def test_in_list(self, evaluator, task_dict):
        assert check(evaluator, 'status in "todo, doing"', task_dict)
        assert not check(evaluator, 'status in "done,cancelled"', task_dict)
        assert check(evaluator, 'status not in "done,cancelled"', task_dict)

    def test_in_array(self, evaluator, task_dict):
        assert check(evaluator, 'tags in "#home,#urgent"', task_dict)


class TestIncludes:
    """Test includes / not includes."""

    def test_substring(self, evaluator, task_dict):
        assert check(evaluator, "path includes daily", task_dict)
        assert not check(evaluator, "path includes weekly", task_dict)

    def test_array_any_element(self, evaluator, task_dict):
        assert check(evaluator, "tag includes #urg", task_dict)
        assert not check(evaluator, "tag includes #home", task_dict)

    def test_not_includes(self, evaluator, task_dict):
        assert check(evaluator, "tag not includes #home", task_dict)
        assert not check(evaluator, "tag not includes #work", task_dict)

    def test_includes_on_missing_field(self, evaluator):
        assert not check(evaluator, "name includes report", {"id": "x"})


class TestDateOperators:
    """Test before / after / on with a fixed clock."""

    def test_before_today(self, evaluator, task_dict):
        assert check(evaluator, "due before today", task_dict)
        assert not check(evaluator, "due after today", task_dict)

    def test_literal_date(self, evaluator, task_dict):
        assert check(evaluator, "due after 2026-02-05", task_dict)
        assert check(evaluator, "due before 2026-02-06", task_dict)

    def test_on_compares_calendar_day(self, evaluator, task_dict):
        assert check(evaluator, "due on 2026-02-05", task_dict)
        assert not check(evaluator, "due on 2026-02-06", task_dict)

    def test_relative_days(self, evaluator):
        record = {"id": "x", "due_at": datetime(2026, 2, 11, 8, 30, tzinfo=timezone.utc)}
        assert check(evaluator, "due on tomorrow", record)
        assert check(evaluator, "due after today", record)
        assert check(evaluator, "due after yesterday", record)
        assert not check(evaluator, "due on today", record)

    def test_date_only_field(self, evaluator, task_dict):
        assert check(evaluator, "scheduled on 2026-02-01", task_dict)
        assert check(evaluator, "scheduled before today", task_dict)

    def test_missing_date_is_false(self, evaluator):
        record = {"id": "x"}
        assert not check(evaluator, "due before today", record)
        assert not check(evaluator, "due after today", record)
        assert not check(evaluator, "due on today", record)

    def test_unparseable_date_is_false(self, evaluator, task_dict):
        assert not check(evaluator, "due before someday", task_dict)
        assert not check(evaluator, "name before today", task_dict)

    def test_overdue(self, evaluator, task_dict):
        assert check(evaluator, "overdue", task_dict)
        assert not check(evaluator, "overdue", {**task_dict, "status": "done"})
        assert not check(evaluator, "overdue", {**task_dict, "due_at": "2026-03-01"})


class TestMatches:
    """Test regular expression matching."""

    def test_matches(self, evaluator, task_dict):
        assert check(evaluator, 'path matches "^daily/"', task_dict)
        assert not check(evaluator, 'path matches "^projects/"', task_dict)

    def test_matches_ignores_case(self, evaluator, task_dict):
        assert check(evaluator, 'name matches "QUARTERLY"', task_dict)

    def test_invalid_pattern_never_matches(self, evaluator, task_dict):
        assert not check(evaluator, 'name matches "("', task_dict)
        assert check(evaluator, 'name not matches "("', task_dict)

    def test_patterns_are_cached(self):
        assert compile_pattern("^abc") is compile_pattern("^abc")
        assert compile_pattern("[") is None


class TestLogical:
    """Test boolean composition."""

    def test_and_or(self, evaluator, task_dict):
        assert check(evaluator, "status is todo AND priority is high", task_dict)
        assert not check(evaluator, "status is todo AND priority is low", task_dict)
        assert check(evaluator, "status is done OR priority is high", task_dict)

    def test_not(self, evaluator, task_dict):
        assert check(evaluator, "not done", task_dict)
        assert not check(evaluator, "not status is todo", task_dict)

    def test_double_negation(self, evaluator, task_dict):
        node = ComparisonNode("status", "is", "todo")
        assert evaluator.evaluate(NotNode(NotNode(node)), task_dict) == evaluator.evaluate(
            node, task_dict
        )

    def test_unknown_operator_is_false(self, evaluator, task_dict):
        assert not evaluator.evaluate(ComparisonNode("status", "like", "todo"), task_dict)

    def test_unknown_node_type(self, evaluator, task_dict):
        with pytest.raises(QueryExecutionError):
            evaluator.evaluate("status is todo", task_dict)

    def test_module_level_evaluate(self, task_dict):
        node = LogicalNode(
            LogicalOperator.OR,
            ComparisonNode("status", "is", "done"),
            ComparisonNode("tag", "includes", "#work"),
        )
        assert evaluate(node, task_dict)


class TestDependencyShortcuts:
    """Test predicates answered by the dependency graph."""

    def test_is_blocked_follows_graph(self, today):
        """Flipping the graph's answer flips the result."""
        graph = StubDependencyGraph(blocked={"t1"})
        evaluator = FilterEvaluator(graph, today=today)
        record = {"id": "t1", "status": "todo"}
        assert check(evaluator, "is blocked", record)

        graph.blocked.clear()
        assert not check(evaluator, "is blocked", record)

    def test_is_not_blocked(self, today):
        graph = StubDependencyGraph(blocked={"t1"})
        evaluator = FilterEvaluator(graph, today=today)
        assert not check(evaluator, "is not blocked", {"id": "t1"})
        assert check(evaluator, "is not blocked", {"id": "t2"})

    def test_is_blocking(self, today):
        graph = StubDependencyGraph(blocking={"t1"})
        evaluator = FilterEvaluator(graph, today=today)
        assert check(evaluator, "is blocking", {"id": "t1"})
        assert ("is_blocking", "t1") in graph.calls

    def test_task_id_used_for_graph(self, today):
        graph = StubDependencyGraph(blocked={"dep-7"})
        evaluator = FilterEvaluator(graph, today=today)
        assert check(evaluator, "is blocked", {"id": "note-1", "task_id": "dep-7"})

    def test_depends_on_is_direct(self, today):
        graph = StubDependencyGraph(dependents={("a", False): {"c"}, ("a", True): {"c", "e"}})
        evaluator = FilterEvaluator(graph, today=today)
        assert check(evaluator, "depends on a", {"id": "c"})
        assert not check(evaluator, "depends on a", {"id": "e"})
        assert ("get_dependents", "a", False) in graph.calls

    def test_blocks_is_direct(self, today):
        graph = StubDependencyGraph(dependents={("a", False): {"c"}, ("a", True): {"c", "e"}})
        evaluator = FilterEvaluator(graph, today=today)
        assert check(evaluator, "blocks c", {"id": "a"})
        assert not check(evaluator, "blocks e", {"id": "a"})
        assert ("get_dependents", "a", False) in graph.calls

    def test_without_graph_positive_forms_are_false(self, evaluator):
        assert not check(evaluator, "is blocked", {"id": "t1"})
        assert not check(evaluator, "is blocking", {"id": "t1"})
        assert not check(evaluator, "depends on a", {"id": "t1"})
        assert not check(evaluator, "blocks a", {"id": "t1"})

    def test_without_graph_negated_forms_are_true(self, evaluator):
        assert check(evaluator, "is not blocked", {"id": "t1"})
        assert check(evaluator, "is not blocking", {"id": "t1"})

    def test_without_id(self, today):
        graph = StubDependencyGraph(blocked={"t1"})
        evaluator = FilterEvaluator(graph, today=today)
        assert not check(evaluator, "is blocked", {"status": "todo"})
        assert check(evaluator, "is not blocked", {"status": "todo"})
        assert graph.calls == []

    @pytest.mark.parametrize(
        "record",
        [{"status": "todo"}, {"id": "t1"}, {"id": "t2"}],
    )
    def test_is_not_matches_not_is(self, today, record):
        """'is not blocked' and 'NOT is blocked' agree, with or without an id."""
        for graph in [None, StubDependencyGraph(blocked={"t1"})]:
            evaluator = FilterEvaluator(graph, today=today)
            assert check(evaluator, "is not blocked", record) == check(
                evaluator, "NOT is blocked", record
            )

    def test_depends_with_other_operator_is_a_field(self, evaluator):
        assert check(evaluator, "depends includes x", {"id": "t1", "depends": "x,y"})


class TestEvaluatorHelpers:
    """Test date coercion."""

    def test_to_datetime(self):
        utc = timezone.utc
        assert to_datetime("2026-02-05T09:00:00Z") == datetime(2026, 2, 5, 9, tzinfo=utc)
        assert to_datetime("2026-02-05") == datetime(2026, 2, 5, tzinfo=utc)
        assert to_datetime(date(2026, 2, 5)) == datetime(2026, 2, 5, tzinfo=utc)
        assert to_datetime("not a date") is None
        assert to_datetime("") is None
        assert to_datetime(None) is None
        assert to_datetime(42) is None

    def test_config_vocabulary(self, today):
        config = QueryConfig(status_shortcuts={"finished": "done"})
        evaluator = FilterEvaluator(config=config, today=today)
        filter_node = parse("finished", config=config).filter
        assert evaluator.evaluate(filter_node, {"id": "x", "status": "done"})
