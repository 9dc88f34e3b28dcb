"""Reference record model for task queries.

The engine accepts any mapping or attribute object as a record; TaskRecord is
the shape it expects field aliases to land on.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TaskRecord(BaseModel):
    """A read-only task as seen by the query engine."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable record identifier")
    task_id: str | None = Field(
        None, description="Dependency reference id, used instead of id by the dependency graph"
    )
    name: str = Field("", description="Task description text")
    status: str = Field("todo", description="Task status (todo, done, cancelled, ...)")
    priority: str | None = Field(None, description="Priority level, None means 'none'")
    due_at: datetime | None = Field(None, description="Due timestamp")
    scheduled_at: datetime | None = Field(None, description="Scheduled timestamp")
    start_at: datetime | None = Field(None, description="Start timestamp")
    created_at: datetime | None = Field(None, description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last update timestamp")
    done_at: datetime | None = Field(None, description="Completion timestamp")
    tags: list[str] = Field(default_factory=list, description="Tags including their leading '#'")
    path: str | None = Field(None, description="Path of the document holding the task")
    depends_on: list[str] = Field(
        default_factory=list, description="Dependency reference ids this task waits on"
    )

    @property
    def dependency_id(self) -> str:
        return self.task_id or self.id
