"""
Core domain: Board, Column, Task and all board-specific exceptions.

Nothing here imports from the rest of the package — this is the
innermost layer and has zero side-effects.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum


def new_id() -> str:
    return str(uuid.uuid4())[:8]


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Priority
# ---------------------------------------------------------------------------


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Board / Column / Task
# ---------------------------------------------------------------------------


@dataclass
class Board:
    """
    Top-level container of columns, owned by exactly one user.

    Attributes:
        title: Human-readable board title.
        owner_id: Identifier supplied by the identity provider.
        description: Optional free text.
        color: Colour tag used by the dashboard (CSS class name or hex).
        id: Gateway-assigned identifier.
        created_at: ISO timestamp assigned by the Gateway.
        updated_at: ISO timestamp of the last edit.
    """

    title: str
    owner_id: str
    description: str | None = None
    color: str = "bg-purple-500"
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utcnow)
    updated_at: str = field(default_factory=utcnow)


@dataclass
class Column:
    title: str
    board_id: str
    sort_order: int
    owner_id: str
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utcnow)

    def __str__(self) -> str:
        return f"[{self.id}] {self.title!r} #{self.sort_order}"


@dataclass
class Task:
    """
    A single work item inside a column.

    Attributes:
        title: Human-readable title.
        column_id: Owning column.
        sort_order: Position key, unique within the column.
        description: Optional details.
        priority: LOW, MEDIUM (default) or HIGH.
        due_date: Calendar date, no time component.
    """

    title: str
    column_id: str
    sort_order: int
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utcnow)

    def __str__(self) -> str:
        due = f" due={self.due_date.isoformat()}" if self.due_date else ""
        return f"[{self.id}] {self.title!r} — {self.priority.value}{due}"


@dataclass
class ColumnWithTasks:
    """A column together with its tasks in display order."""

    column: Column
    tasks: list[Task] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.column.id


@dataclass
class BoardWithColumns:
    board: Board
    columns: list[ColumnWithTasks] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class BoardError(Exception):
    """Base for all board-specific errors."""


class ValidationError(BoardError):
    """Caller-supplied input fails a precondition. Nothing was mutated."""


class NotFoundError(BoardError):
    """A referenced entity is absent from local state."""


class BoardNotFoundError(NotFoundError):
    def __init__(self, board_id: str) -> None:
        super().__init__(f"Board '{board_id}' not found.")
        self.board_id = board_id


class ColumnNotFoundError(NotFoundError):
    def __init__(self, column_id: str) -> None:
        super().__init__(f"Column '{column_id}' not found.")
        self.column_id = column_id


class TaskNotFoundError(NotFoundError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task '{task_id}' not found.")
        self.task_id = task_id


class PersistenceError(BoardError):
    """The Gateway call failed. The message is meant for display."""


class RecordNotFoundError(PersistenceError):
    """The Gateway has no record with the given id."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind.capitalize()} '{record_id}' does not exist.")
        self.kind = kind
        self.record_id = record_id


class DragStateError(BoardError):
    """Raised when a drag gesture would break the single-active-drag rule."""


def require_title(title: str, what: str = "Title") -> str:
    """Return the trimmed title, or raise ValidationError if it is blank."""
    trimmed = (title or "").strip()
    if not trimmed:
        raise ValidationError(f"{what} must not be empty.")
    return trimmed
