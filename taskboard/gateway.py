"""
Persistence Gateway.

A Gateway is any object implementing the async `Gateway` protocol below.
It assigns ids and timestamps and is the single source of truth; every
method may fail with `PersistenceError`.

Swap the gateway injected into BoardStore to change the backend without
touching any board logic:
    store = await BoardStore.open(InMemoryGateway(), board_id, owner_id)
    store = await BoardStore.open(HttpGateway(url), board_id, owner_id)
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Protocol

from loguru import logger

from .domain import (
    Board,
    BoardWithColumns,
    Column,
    ColumnWithTasks,
    Priority,
    RecordNotFoundError,
    Task,
    ValidationError,
    utcnow,
)
from .reorder import clamp

DEFAULT_COLUMNS = ("To Do", "In Progress", "Review", "Done")

BOARD_FIELDS = frozenset({"title", "description", "color"})
TASK_FIELDS = frozenset({"title", "description", "due_date", "priority"})


class Gateway(Protocol):
    async def list_boards(self, owner_id: str) -> list[Board]: ...

    async def create_board(
        self,
        owner_id: str,
        title: str,
        description: str | None = None,
        color: str | None = None,
    ) -> Board: ...

    async def update_board(self, board_id: str, **changes: Any) -> Board: ...

    async def delete_board(self, board_id: str) -> None: ...

    async def get_board_with_columns_and_tasks(
        self, board_id: str
    ) -> BoardWithColumns: ...

    async def create_column(
        self, board_id: str, title: str, sort_order: int, owner_id: str
    ) -> Column: ...

    async def update_column_title(self, column_id: str, title: str) -> Column: ...

    async def delete_column(self, column_id: str) -> None: ...

    async def create_task(
        self, column_id: str, fields: dict[str, Any], sort_order: int
    ) -> Task: ...

    async def update_task(self, task_id: str, **changes: Any) -> Task: ...

    async def move_task(
        self, task_id: str, new_column_id: str, new_sort_order: int
    ) -> None: ...

    async def delete_task(self, task_id: str) -> None: ...


def check_fields(changes: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(unknown)}.")


class InMemoryGateway:
    """
    Reference Gateway keeping everything in dictionaries.

    Returned objects are copies: callers never share state with the
    gateway's tables. All methods hold one asyncio.Lock, and ``latency``
    (seconds) simulates the network round-trip outside of it.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self._boards: dict[str, Board] = {}
        self._columns: dict[str, Column] = {}
        self._tasks: dict[str, Task] = {}
        self._latency = latency
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Boards
    # ------------------------------------------------------------------

    async def list_boards(self, owner_id: str) -> list[Board]:
        await self._wait()
        async with self._lock:
            boards = [b for b in self._boards.values() if b.owner_id == owner_id]
            boards.sort(key=lambda b: b.created_at, reverse=True)
            return copy.deepcopy(boards)

    async def create_board(
        self,
        owner_id: str,
        title: str,
        description: str | None = None,
        color: str | None = None,
    ) -> Board:
        await self._wait()
        async with self._lock:
            board = Board(title=title, owner_id=owner_id, description=description)
            if color:
                board.color = color
            self._boards[board.id] = board
            for position, column_title in enumerate(DEFAULT_COLUMNS):
                column = Column(
                    title=column_title,
                    board_id=board.id,
                    sort_order=position,
                    owner_id=owner_id,
                )
                self._columns[column.id] = column
        logger.debug("Gateway: created board {} with default columns", board.id)
        return copy.deepcopy(board)

    async def update_board(self, board_id: str, **changes: Any) -> Board:
        check_fields(changes, BOARD_FIELDS)
        await self._wait()
        async with self._lock:
            board = self._board(board_id)
            for name, value in changes.items():
                setattr(board, name, value)
            board.updated_at = utcnow()
            return copy.deepcopy(board)

    async def delete_board(self, board_id: str) -> None:
        await self._wait()
        async with self._lock:
            self._board(board_id)
            del self._boards[board_id]
            for column in [c for c in self._columns.values() if c.board_id == board_id]:
                self._drop_column(column.id)

    async def get_board_with_columns_and_tasks(
        self, board_id: str
    ) -> BoardWithColumns:
        await self._wait()
        async with self._lock:
            board = self._board(board_id)
            columns = sorted(
                (c for c in self._columns.values() if c.board_id == board_id),
                key=lambda c: c.sort_order,
            )
            result = BoardWithColumns(
                board=board,
                columns=[
                    ColumnWithTasks(column=c, tasks=self._tasks_of(c.id))
                    for c in columns
                ],
            )
            return copy.deepcopy(result)

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    async def create_column(
        self, board_id: str, title: str, sort_order: int, owner_id: str
    ) -> Column:
        await self._wait()
        async with self._lock:
            self._board(board_id)
            column = Column(
                title=title, board_id=board_id, sort_order=sort_order, owner_id=owner_id
            )
            self._columns[column.id] = column
            return copy.deepcopy(column)

    async def update_column_title(self, column_id: str, title: str) -> Column:
        await self._wait()
        async with self._lock:
            column = self._column(column_id)
            column.title = title
            return copy.deepcopy(column)

    async def delete_column(self, column_id: str) -> None:
        await self._wait()
        async with self._lock:
            self._column(column_id)
            self._drop_column(column_id)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def create_task(
        self, column_id: str, fields: dict[str, Any], sort_order: int
    ) -> Task:
        check_fields(fields, TASK_FIELDS)
        await self._wait()
        async with self._lock:
            self._column(column_id)
            task = Task(
                title=fields["title"],
                column_id=column_id,
                sort_order=sort_order,
                description=fields.get("description"),
                priority=Priority(fields.get("priority") or Priority.MEDIUM),
                due_date=fields.get("due_date"),
            )
            self._tasks[task.id] = task
            return copy.deepcopy(task)

    async def update_task(self, task_id: str, **changes: Any) -> Task:
        check_fields(changes, TASK_FIELDS)
        await self._wait()
        async with self._lock:
            task = self._task(task_id)
            for name, value in changes.items():
                if name == "priority":
                    value = Priority(value)
                setattr(task, name, value)
            return copy.deepcopy(task)

    async def move_task(
        self, task_id: str, new_column_id: str, new_sort_order: int
    ) -> None:
        await self._wait()
        async with self._lock:
            task = self._task(task_id)
            self._column(new_column_id)
            old_column_id = task.column_id

            source = [t for t in self._tasks_of(old_column_id) if t.id != task_id]
            target = (
                source
                if new_column_id == old_column_id
                else self._tasks_of(new_column_id)
            )
            target.insert(clamp(new_sort_order, len(target)), task)

            # Siblings are renumbered 0..n-1 on both sides of the move
            for position, t in enumerate(target):
                t.sort_order = position
                t.column_id = new_column_id
            if target is not source:
                for position, t in enumerate(source):
                    t.sort_order = position
        logger.debug("Gateway: task {} → {}#{}", task_id, new_column_id, new_sort_order)

    async def delete_task(self, task_id: str) -> None:
        await self._wait()
        async with self._lock:
            self._task(task_id)
            del self._tasks[task_id]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _wait(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)

    def _board(self, board_id: str) -> Board:
        if board_id not in self._boards:
            raise RecordNotFoundError("board", board_id)
        return self._boards[board_id]

    def _column(self, column_id: str) -> Column:
        if column_id not in self._columns:
            raise RecordNotFoundError("column", column_id)
        return self._columns[column_id]

    def _task(self, task_id: str) -> Task:
        if task_id not in self._tasks:
            raise RecordNotFoundError("task", task_id)
        return self._tasks[task_id]

    def _tasks_of(self, column_id: str) -> list[Task]:
        tasks = [t for t in self._tasks.values() if t.column_id == column_id]
        tasks.sort(key=lambda t: t.sort_order)
        return tasks

    def _drop_column(self, column_id: str) -> None:
        """Delete a column and its tasks. Must be called inside the lock."""
        del self._columns[column_id]
        for task_id in [t.id for t in self._tasks.values() if t.column_id == column_id]:
            del self._tasks[task_id]
