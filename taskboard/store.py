"""
BoardStore — in-memory state of one open board.

Responsibilities:
  - Hold the normalized columns/tasks of the board
  - Validate intents before anything is mutated
  - Apply each mutation with its strategy (optimistic or write-through)
  - Absorb Gateway failures into the ``error`` field
  - Notify subscribers after every state change

The store is the only writer of its collections. Readers get copies;
the drag controller and UI talk to it exclusively through method calls.
"""

from __future__ import annotations

import copy
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

from .domain import (
    Board,
    BoardError,
    BoardWithColumns,
    Column,
    ColumnNotFoundError,
    ColumnWithTasks,
    PersistenceError,
    Priority,
    Task,
    TaskNotFoundError,
    ValidationError,
    require_title,
)
from .gateway import BOARD_FIELDS, TASK_FIELDS, Gateway, check_fields
from .hooks import HookRegistry, Listener
from .reorder import move_between, move_within, renumber, reorder

R = TypeVar("R")


class Strategy(str, Enum):
    OPTIMISTIC = "optimistic"  # local first, then Gateway; no rollback
    WRITE_THROUGH = "write_through"  # Gateway first, then local
    LOCAL = "local"  # never reaches the Gateway


STRATEGIES: dict[str, Strategy] = {
    "create_column": Strategy.WRITE_THROUGH,
    "update_column": Strategy.OPTIMISTIC,
    "delete_column": Strategy.OPTIMISTIC,
    "create_task": Strategy.WRITE_THROUGH,
    "update_task": Strategy.WRITE_THROUGH,
    "delete_task": Strategy.WRITE_THROUGH,
    "move_task": Strategy.OPTIMISTIC,
    "reorder_task": Strategy.LOCAL,
    "update_board": Strategy.WRITE_THROUGH,
}


def next_sort_order(orders: list[int]) -> int:
    """Sibling count, bumped past the largest existing key if there are gaps."""
    if not orders:
        return 0
    return max(len(orders), max(orders) + 1)


async def acknowledged(call: Awaitable[None]) -> bool:
    """Await a Gateway call that returns nothing; ``True`` once it succeeded."""
    await call
    return True


def normalize_priority(value: Priority | str | None) -> Priority:
    if value is None:
        return Priority.MEDIUM
    try:
        return Priority(value)
    except ValueError:
        raise ValidationError(f"Unknown priority: {value!r}.") from None


def normalize_due_date(value: date | str | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid due date: {value!r}.") from None


class BoardStore:
    """
    Args:
        gateway:  Persistence collaborator; see ``taskboard.gateway``.
        board_id: The board this store is opened for.
        owner_id: Identifier of the signed-in user.

    Use ``await BoardStore.open(...)`` to construct and load in one step,
    and ``close()`` when navigating away.
    """

    def __init__(self, gateway: Gateway, board_id: str, owner_id: str) -> None:
        self._gateway = gateway
        self.board_id = board_id
        self.owner_id = owner_id
        self.board: Board | None = None
        self.error: str | None = None
        self.loading = False
        self._columns: dict[str, Column] = {}
        self._column_order: list[str] = []
        self._tasks: dict[str, Task] = {}
        self._task_order: dict[str, list[str]] = {}
        self._hook_registry = HookRegistry()
        self._closed = False
        # Sort keys handed to creates that have not settled yet, per container
        self._reserved: dict[str, list[int]] = {}

    @classmethod
    async def open(
        cls, gateway: Gateway, board_id: str, owner_id: str
    ) -> "BoardStore":
        store = cls(gateway, board_id, owner_id)
        await store.reload()
        return store

    def close(self) -> None:
        """Drop listeners and in-memory state. The store is unusable afterwards."""
        self._hook_registry.clear()
        self._columns.clear()
        self._column_order.clear()
        self._tasks.clear()
        self._task_order.clear()
        self.board = None
        self._closed = True
        logger.debug("Store for board {} closed", self.board_id)

    def __repr__(self) -> str:
        return (
            f"<BoardStore {self.board_id} columns={len(self._column_order)} "
            f"tasks={len(self._tasks)}>"
        )

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(
        self, listener: Listener, event: str = "on_change"
    ) -> Callable[[], None]:
        """Register a listener; call the returned function to unsubscribe."""
        return self._hook_registry.register(event, listener)

    def clear_error(self) -> None:
        if self.error is not None:
            self.error = None
            self._changed()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def columns(self) -> list[ColumnWithTasks]:
        """Snapshot of the board's columns with their tasks, in order."""
        return [
            ColumnWithTasks(
                column=copy.copy(self._columns[cid]), tasks=self.tasks_in(cid)
            )
            for cid in self._column_order
        ]

    def get_column(self, column_id: str) -> Column:
        return copy.copy(self._column(column_id))

    def get_task(self, task_id: str) -> Task:
        return copy.copy(self._task(task_id))

    def tasks_in(self, column_id: str) -> list[Task]:
        self._column(column_id)
        return [copy.copy(self._tasks[tid]) for tid in self._task_order[column_id]]

    def locate_task(self, task_id: str) -> tuple[str, int]:
        """Return (column id, index within that column) for a task."""
        task = self._task(task_id)
        return task.column_id, self._task_order[task.column_id].index(task_id)

    def task_count(self) -> int:
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Board
    # ------------------------------------------------------------------

    async def reload(self) -> bool:
        """Replace local state with the Gateway's view of the board."""
        self._ensure_open()
        self.loading = True
        try:
            data = await self._gateway.get_board_with_columns_and_tasks(self.board_id)
        except PersistenceError as exc:
            self.loading = False
            self._fail("reload", exc)
            return False
        self.loading = False
        self._replace(data)
        self._succeed("reload")
        logger.info(
            "Loaded board {} ({} columns, {} tasks)",
            self.board_id,
            len(self._column_order),
            len(self._tasks),
        )
        return True

    async def update_board(self, **changes: Any) -> Board | None:
        board = self._require_board()
        check_fields(changes, BOARD_FIELDS)
        if "title" in changes:
            changes["title"] = require_title(changes["title"])

        def apply(updated: Board) -> None:
            self.board = updated

        result = await self._write_through(
            "update_board",
            lambda: self._gateway.update_board(board.id, **changes),
            apply,
        )
        return copy.copy(result) if result else None

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    async def create_column(self, title: str) -> Column | None:
        board = self._require_board()
        title = require_title(title, "Column title")
        sort_order = self._reserve(
            board.id, [self._columns[cid].sort_order for cid in self._column_order]
        )

        def apply(column: Column) -> None:
            self._columns[column.id] = column
            self._column_order.append(column.id)
            self._task_order[column.id] = []
            logger.info("Created column {} — {!r}", column.id, column.title)

        try:
            result = await self._write_through(
                "create_column",
                lambda: self._gateway.create_column(
                    board.id, title, sort_order, self.owner_id
                ),
                apply,
            )
        finally:
            self._release(board.id, sort_order)
        return copy.copy(result) if result else None

    async def update_column(self, column_id: str, title: str) -> Column | None:
        column = self._column(column_id)
        title = require_title(title, "Column title")

        def apply() -> None:
            column.title = title

        def reconcile(updated: Column) -> None:
            if column_id in self._columns:
                self._columns[column_id].title = updated.title

        result = await self._optimistic(
            "update_column",
            apply,
            lambda: self._gateway.update_column_title(column_id, title),
            reconcile,
        )
        return copy.copy(result) if result else None

    async def delete_column(self, column_id: str) -> bool:
        self._column(column_id)

        def apply() -> None:
            for task_id in self._task_order.pop(column_id):
                del self._tasks[task_id]
            del self._columns[column_id]
            self._column_order.remove(column_id)
            logger.info("Deleted column {}", column_id)

        result = await self._optimistic(
            "delete_column",
            apply,
            lambda: acknowledged(self._gateway.delete_column(column_id)),
        )
        return bool(result)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def create_task(
        self,
        column_id: str,
        title: str,
        description: str | None = None,
        due_date: date | str | None = None,
        priority: Priority | str | None = None,
    ) -> Task | None:
        """
        Persist a new task at the end of a column, then add it locally.

        Returns ``None`` if the Gateway fails or the column is deleted
        before the call settles.

        Raises:
            ColumnNotFoundError: Column does not exist in this board.
            ValidationError:     Blank title, bad priority or bad due date.
        """
        self._column(column_id)
        fields = {
            "title": require_title(title),
            "description": description or None,
            "due_date": normalize_due_date(due_date),
            "priority": normalize_priority(priority),
        }
        sort_order = self._reserve(
            column_id,
            [self._tasks[tid].sort_order for tid in self._task_order[column_id]],
        )

        def apply(task: Task) -> None:
            # The column may have been deleted while the call was in flight
            if task.column_id not in self._task_order:
                return
            self._tasks[task.id] = task
            self._task_order[task.column_id].append(task.id)
            logger.info("Created task {} — {!r} in {}", task.id, task.title, column_id)

        try:
            result = await self._write_through(
                "create_task",
                lambda: self._gateway.create_task(column_id, fields, sort_order),
                apply,
            )
        finally:
            self._release(column_id, sort_order)
        if result is None:
            return None
        if result.id not in self._tasks:
            logger.warning(
                "Task {} was created in {}, which is no longer on the board",
                result.id,
                column_id,
            )
            return None
        return copy.copy(result)

    async def update_task(self, task_id: str, **changes: Any) -> Task | None:
        """
        Persist field edits (title, description, due_date, priority), then
        replace the local task with the Gateway's version.

        Raises:
            TaskNotFoundError: Task does not exist in this board.
            ValidationError:   Unknown field or invalid value.
        """
        self._task(task_id)
        check_fields(changes, TASK_FIELDS)
        if "title" in changes:
            changes["title"] = require_title(changes["title"])
        if "priority" in changes:
            changes["priority"] = normalize_priority(changes["priority"])
        if "due_date" in changes:
            changes["due_date"] = normalize_due_date(changes["due_date"])
        if "description" in changes:
            changes["description"] = changes["description"] or None

        def apply(updated: Task) -> None:
            current = self._tasks.get(task_id)
            if current is None:
                return
            # Placement belongs to the move path; keep whatever is local
            updated.column_id = current.column_id
            updated.sort_order = current.sort_order
            self._tasks[task_id] = updated
            logger.info("Updated task {}", task_id)

        result = await self._write_through(
            "update_task",
            lambda: self._gateway.update_task(task_id, **changes),
            apply,
        )
        return self.get_task(task_id) if result and task_id in self._tasks else None

    async def delete_task(self, task_id: str) -> bool:
        self._task(task_id)

        def apply(_: bool) -> None:
            task = self._tasks.pop(task_id, None)
            if task is not None:
                self._task_order[task.column_id].remove(task_id)
            logger.info("Deleted task {}", task_id)

        result = await self._write_through(
            "delete_task", lambda: acknowledged(self._gateway.delete_task(task_id)), apply
        )
        return bool(result)

    async def move_task(
        self,
        task_id: str,
        target_column_id: str,
        target_index: int | None = None,
    ) -> bool:
        """
        Move a task to ``target_index`` of ``target_column_id`` (append when
        ``None``), updating memory immediately and persisting afterwards.

        Raises:
            TaskNotFoundError:   Unknown task.
            ColumnNotFoundError: Unknown target column.
        """
        source_column_id, _ = self.locate_task(task_id)
        self._column(target_column_id)
        placement: dict[str, int] = {}

        def apply() -> None:
            source = self._column_tasks(source_column_id)
            if source_column_id == target_column_id:
                tasks, final = move_within(source, task_id, target_index)
                self._set_column_tasks(target_column_id, tasks)
            else:
                target = self._column_tasks(target_column_id)
                source, target, final = move_between(
                    source, target, task_id, target_index
                )
                self._set_column_tasks(source_column_id, source)
                self._set_column_tasks(target_column_id, target)
            placement["index"] = final
            logger.debug(
                "Moved task {} {} → {}#{}",
                task_id,
                source_column_id,
                target_column_id,
                final,
            )

        result = await self._optimistic(
            "move_task",
            apply,
            lambda: acknowledged(
                self._gateway.move_task(task_id, target_column_id, placement["index"])
            ),
        )
        return bool(result)

    def reorder_task(self, column_id: str, from_index: int, to_index: int) -> None:
        """
        Relocate a task inside one column without persisting anything.

        Used for live feedback while a drag is in progress; a terminal
        ``move_task`` persists the final position.

        Raises:
            ColumnNotFoundError: Unknown column.
            ValidationError:     Index out of range.
        """
        self._column(column_id)
        tasks = reorder(self._column_tasks(column_id), from_index, to_index)
        if from_index == to_index:
            return
        self._set_column_tasks(column_id, tasks)
        logger.debug("Reordered {} {} → {}", column_id, from_index, to_index)
        self._changed()

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _write_through(
        self,
        operation: str,
        call: Callable[[], Awaitable[R]],
        apply: Callable[[R], None],
    ) -> R | None:
        """Gateway first; local state changes only once the call succeeded."""
        try:
            result = await call()
        except PersistenceError as exc:
            self._fail(operation, exc)
            return None
        if not self._closed:
            apply(result)
            self._succeed(operation)
        return result

    async def _optimistic(
        self,
        operation: str,
        apply: Callable[[], None],
        call: Callable[[], Awaitable[R]],
        reconcile: Callable[[R], None] | None = None,
    ) -> R | None:
        """Local state first, then the Gateway. Failures are not rolled back."""
        apply()
        self._changed()
        try:
            result = await call()
        except PersistenceError as exc:
            self._fail(operation, exc)
            return None
        if reconcile is not None and not self._closed:
            reconcile(result)
        self._succeed(operation)
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reserve(self, key: str, orders: list[int]) -> int:
        """Pick the next sort key for ``key``, past any still in flight."""
        pending = self._reserved.setdefault(key, [])
        sort_order = max([next_sort_order(orders), *(p + 1 for p in pending)])
        pending.append(sort_order)
        return sort_order

    def _release(self, key: str, sort_order: int) -> None:
        pending = self._reserved.get(key, [])
        if sort_order in pending:
            pending.remove(sort_order)
        if not pending:
            self._reserved.pop(key, None)

    def _changed(self) -> None:
        self._hook_registry.fire("on_change", self)

    def _succeed(self, operation: str) -> None:
        self.error = None
        logger.debug("{} settled for board {}", operation, self.board_id)
        self._changed()

    def _fail(self, operation: str, exc: PersistenceError) -> None:
        self.error = str(exc) or f"Failed to {operation.replace('_', ' ')}."
        logger.warning("{} failed for board {}: {}", operation, self.board_id, exc)
        self._hook_registry.fire("on_error", self)
        self._changed()

    def _ensure_open(self) -> None:
        if self._closed:
            raise BoardError(f"Store for board '{self.board_id}' is closed.")

    def _require_board(self) -> Board:
        self._ensure_open()
        if self.board is None:
            raise BoardError(f"Board '{self.board_id}' is not loaded.")
        return self.board

    def _column(self, column_id: str) -> Column:
        self._ensure_open()
        if column_id not in self._columns:
            raise ColumnNotFoundError(column_id)
        return self._columns[column_id]

    def _task(self, task_id: str) -> Task:
        self._ensure_open()
        if task_id not in self._tasks:
            raise TaskNotFoundError(task_id)
        return self._tasks[task_id]

    def _column_tasks(self, column_id: str) -> list[Task]:
        return [self._tasks[tid] for tid in self._task_order[column_id]]

    def _set_column_tasks(self, column_id: str, tasks: list[Task]) -> None:
        renumber(tasks, column_id)
        self._task_order[column_id] = [t.id for t in tasks]

    def _replace(self, data: BoardWithColumns) -> None:
        self.board = data.board
        self._columns.clear()
        self._tasks.clear()
        self._task_order.clear()
        ordered = sorted(data.columns, key=lambda c: c.column.sort_order)
        self._column_order = [c.id for c in ordered]
        for entry in ordered:
            self._columns[entry.id] = entry.column
            tasks = sorted(entry.tasks, key=lambda t: t.sort_order)
            self._task_order[entry.id] = [t.id for t in tasks]
            for task in tasks:
                self._tasks[task.id] = task
