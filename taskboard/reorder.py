"""
Reorder/Move engine — pure list algorithms behind drag-and-drop.

No I/O and no shared state. The list functions return new lists and leave
their inputs untouched; `renumber` is the one helper that rewrites the
tasks it is given in place. The Store applies the results to its collections,
the Drag controller only uses `resolve_drop` to turn a pointer target
into a placement.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Sequence, TypeVar

from .domain import ColumnWithTasks, Task, ValidationError


class HasId(Protocol):
    id: str


T = TypeVar("T", bound=HasId)


# ---------------------------------------------------------------------------
# Drop targets
# ---------------------------------------------------------------------------


class TargetKind(str, Enum):
    COLUMN = "column"
    TASK = "task"


@dataclass(frozen=True)
class DropTarget:
    """What the pointer is over: a column's empty area or another task."""

    kind: TargetKind
    id: str

    @classmethod
    def column(cls, column_id: str) -> "DropTarget":
        return cls(TargetKind.COLUMN, column_id)

    @classmethod
    def task(cls, task_id: str) -> "DropTarget":
        return cls(TargetKind.TASK, task_id)


@dataclass(frozen=True)
class Placement:
    column_id: str
    index: int


# ---------------------------------------------------------------------------
# List algorithms
# ---------------------------------------------------------------------------


def reorder(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """
    Relocate the element at ``from_index`` to ``to_index``.

    Splice semantics: remove one element, then insert it at ``to_index``
    of the shortened list.

    Raises:
        ValidationError: Either index is outside ``[0, len(items))``.
    """
    size = len(items)
    for name, index in (("from_index", from_index), ("to_index", to_index)):
        if not 0 <= index < size:
            raise ValidationError(
                f"{name}={index} out of range for a column of {size} tasks."
            )
    result = list(items)
    if from_index == to_index:
        return result
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return result


def clamp(index: int | None, upper: int) -> int:
    """Clamp to ``[0, upper]``; ``None`` means "append"."""
    if index is None:
        return upper
    return max(0, min(index, upper))


def index_of(items: Sequence[T], item_id: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return -1


def move_within(
    items: Sequence[T], item_id: str, target_index: int | None
) -> tuple[list[T], int]:
    """Move ``item_id`` inside one list. Returns (new list, final index)."""
    source = index_of(items, item_id)
    if source == -1:
        raise ValidationError(f"'{item_id}' is not in this column.")
    result = list(items)
    moved = result.pop(source)
    final = clamp(target_index, len(result))
    result.insert(final, moved)
    return result, final


def move_between(
    source: Sequence[T],
    target: Sequence[T],
    item_id: str,
    target_index: int | None = None,
) -> tuple[list[T], list[T], int]:
    """
    Remove ``item_id`` from ``source`` and insert it into ``target``.

    The index is clamped to ``[0, len(target)]``; ``None`` appends.

    Returns:
        (new source, new target, final index in target)
    """
    position = index_of(source, item_id)
    if position == -1:
        raise ValidationError(f"'{item_id}' is not in the source column.")
    new_source = list(source)
    moved = new_source.pop(position)
    new_target = list(target)
    final = clamp(target_index, len(new_target))
    new_target.insert(final, moved)
    return new_source, new_target, final


def renumber(tasks: Sequence[Task], column_id: str | None = None) -> None:
    """Rewrite sort orders to 0..n-1 in list order (and column, if given)."""
    for position, task in enumerate(tasks):
        task.sort_order = position
        if column_id is not None:
            task.column_id = column_id


def is_strictly_ordered(items: Sequence[Task]) -> bool:
    orders = [t.sort_order for t in items]
    return all(a < b for a, b in zip(orders, orders[1:]))


# ---------------------------------------------------------------------------
# Drop resolution
# ---------------------------------------------------------------------------


def find_task(
    columns: Sequence[ColumnWithTasks], task_id: str
) -> tuple[ColumnWithTasks, int] | None:
    for col in columns:
        i = index_of(col.tasks, task_id)
        if i != -1:
            return col, i
    return None


def resolve_drop(
    columns: Sequence[ColumnWithTasks],
    active_task_id: str,
    over: DropTarget | None,
) -> Placement | None:
    """
    Turn a drop target into a placement for the active task.

    - Column area: append to the end of that column (for the task's own
      column, the end after it is taken out).
    - Another task: take that task's index; it and its followers shift down.
    - The active task itself: its current position.
    - Nothing, or an unknown target: ``None`` (the gesture is cancelled).
    """
    if over is None:
        return None
    located = find_task(columns, active_task_id)
    if located is None:
        return None
    source, source_index = located

    if over.kind is TargetKind.COLUMN:
        target = next((c for c in columns if c.id == over.id), None)
        if target is None:
            return None
        if target.id == source.id:
            return Placement(source.id, len(source.tasks) - 1)
        return Placement(target.id, len(target.tasks))

    if over.id == active_task_id:
        return Placement(source.id, source_index)
    hit = find_task(columns, over.id)
    if hit is None:
        return None
    target, target_index = hit
    return Placement(target.id, target_index)
