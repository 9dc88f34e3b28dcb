"""
Custom exceptions for task query parsing and execution.
"""


class TaskQueryError(Exception):
    """Base exception for all task query errors."""

    pass


class QuerySyntaxError(TaskQueryError):
    """Raised by strict parsing when a query has invalid syntax."""

    def __init__(self, message: str, position: int | None = None):
        self.position = position
        location = ""
        if position is not None:
            location = f" at position {position}"
        super().__init__(f"{message}{location}")


class QueryExecutionError(TaskQueryError):
    """Raised when query execution fails."""

    pass
