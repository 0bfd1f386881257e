"""View filters for the board page and the dashboard. Read-only helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Sequence

from .domain import Board, ColumnWithTasks, Priority, Task


@dataclass(frozen=True)
class TaskFilter:
    """
    Attributes:
        priorities: Keep only these priorities; empty keeps all.
        due_date:   Keep tasks due that day. Tasks without a due date
                    always pass.
    """

    priorities: frozenset[Priority] = field(default_factory=frozenset)
    due_date: date | None = None

    @property
    def active_count(self) -> int:
        return len(self.priorities) + (1 if self.due_date else 0)

    def matches(self, task: Task) -> bool:
        if self.priorities and task.priority not in self.priorities:
            return False
        if self.due_date and task.due_date and task.due_date != self.due_date:
            return False
        return True

    def apply(self, columns: Sequence[ColumnWithTasks]) -> list[ColumnWithTasks]:
        return [
            ColumnWithTasks(
                column=c.column, tasks=[t for t in c.tasks if self.matches(t)]
            )
            for c in columns
        ]


@dataclass(frozen=True)
class BoardFilter:
    """Dashboard filter: title search plus an inclusive creation-date range."""

    search: str = ""
    start: date | None = None
    end: date | None = None

    def matches(self, board: Board) -> bool:
        if self.search and self.search.lower() not in board.title.lower():
            return False
        created = datetime.fromisoformat(board.created_at).date()
        if self.start and created < self.start:
            return False
        if self.end and created > self.end:
            return False
        return True

    def apply(self, boards: Iterable[Board]) -> list[Board]:
        return [b for b in boards if self.matches(b)]


def is_overdue(task: Task, today: date | None = None) -> bool:
    today = today or date.today()
    return task.due_date is not None and task.due_date < today


def count_tasks(columns: Sequence[ColumnWithTasks]) -> int:
    return sum(len(c.tasks) for c in columns)
