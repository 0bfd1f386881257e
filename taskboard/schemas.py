"""
Pydantic wire schemas for the REST persistence service.

Requests are validated here; responses convert to and from the domain
dataclasses so both `taskboard.api` and `taskboard.http_gateway` speak
the same format.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from .domain import (
    Board,
    BoardWithColumns,
    Column,
    ColumnWithTasks,
    Priority,
    Task,
)


class RequestModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateBoardRequest(RequestModel):
    """
    Request body for creating a board.

    Attributes:
        owner_id: User the board belongs to.
        title: Board title (1-120 characters).
        description: Optional free text.
        color: Optional colour tag.
    """

    owner_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    color: str | None = None


class UpdateBoardRequest(RequestModel):
    title: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    color: str | None = None


class CreateColumnRequest(RequestModel):
    title: str = Field(..., min_length=1, max_length=120)
    sort_order: int = Field(..., ge=0)
    owner_id: str = Field(..., min_length=1)


class UpdateColumnRequest(RequestModel):
    title: str = Field(..., min_length=1, max_length=120)


class CreateTaskRequest(RequestModel):
    """
    Request body for creating a task.

    Attributes:
        title: Task title (1-200 characters).
        description: Optional details.
        due_date: Optional calendar date (YYYY-MM-DD).
        priority: low, medium (default) or high.
        sort_order: Position key within the column.
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    due_date: date | None = None
    priority: Priority = Priority.MEDIUM
    sort_order: int = Field(..., ge=0)


class UpdateTaskRequest(RequestModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    due_date: date | None = None
    priority: Priority | None = None


class MoveTaskRequest(RequestModel):
    column_id: str = Field(..., min_length=1)
    sort_order: int = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class BoardResponse(BaseModel):
    id: str
    title: str
    description: str | None
    color: str
    owner_id: str
    created_at: str
    updated_at: str

    @classmethod
    def from_board(cls, board: Board) -> "BoardResponse":
        return cls(
            id=board.id,
            title=board.title,
            description=board.description,
            color=board.color,
            owner_id=board.owner_id,
            created_at=board.created_at,
            updated_at=board.updated_at,
        )

    def to_board(self) -> Board:
        return Board(**self.model_dump())


class ColumnResponse(BaseModel):
    id: str
    title: str
    board_id: str
    sort_order: int
    owner_id: str
    created_at: str

    @classmethod
    def from_column(cls, column: Column) -> "ColumnResponse":
        return cls(
            id=column.id,
            title=column.title,
            board_id=column.board_id,
            sort_order=column.sort_order,
            owner_id=column.owner_id,
            created_at=column.created_at,
        )

    def to_column(self) -> Column:
        return Column(**self.model_dump())


class TaskResponse(BaseModel):
    id: str
    title: str
    description: str | None
    priority: Priority
    due_date: date | None
    column_id: str
    sort_order: int
    created_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            priority=task.priority,
            due_date=task.due_date,
            column_id=task.column_id,
            sort_order=task.sort_order,
            created_at=task.created_at,
        )

    def to_task(self) -> Task:
        return Task(**self.model_dump())


class ColumnWithTasksResponse(BaseModel):
    column: ColumnResponse
    tasks: list[TaskResponse]

    @classmethod
    def from_entry(cls, entry: ColumnWithTasks) -> "ColumnWithTasksResponse":
        return cls(
            column=ColumnResponse.from_column(entry.column),
            tasks=[TaskResponse.from_task(t) for t in entry.tasks],
        )

    def to_entry(self) -> ColumnWithTasks:
        return ColumnWithTasks(
            column=self.column.to_column(), tasks=[t.to_task() for t in self.tasks]
        )


class BoardDetailResponse(BaseModel):
    """
    A board with its columns and their tasks, all in sort order.

    Attributes:
        board: The board itself.
        columns: Columns ordered by sort_order, each with its ordered tasks.
    """

    board: BoardResponse
    columns: list[ColumnWithTasksResponse]

    @classmethod
    def from_data(cls, data: BoardWithColumns) -> "BoardDetailResponse":
        return cls(
            board=BoardResponse.from_board(data.board),
            columns=[ColumnWithTasksResponse.from_entry(c) for c in data.columns],
        )

    def to_data(self) -> BoardWithColumns:
        return BoardWithColumns(
            board=self.board.to_board(), columns=[c.to_entry() for c in self.columns]
        )
