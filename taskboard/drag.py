"""
Drag interaction controller.

Turns pointer/drag events into store intents:

    Idle ──press──▶ Pending ──moved ≥ ACTIVATION_DISTANCE──▶ Dragging
      ▲               │ release (a click)                       │
      └───────────────┴──────── drag_end / cancel ◀─────────────┘

While Dragging, hovering over a slot in the task's own column reorders it
locally (``store.reorder_task``); dropping emits one ``store.move_task``.
Dropping outside any target reverts the local arrangement and never
reaches the Gateway. Only one task can be dragged at a time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Union

from loguru import logger

from .domain import DragStateError, NotFoundError
from .reorder import DropTarget, resolve_drop
from .store import BoardStore

# Minimum pointer travel, in pixels, before a press becomes a drag
ACTIVATION_DISTANCE = 12.0

Point = tuple[float, float]


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Pending:
    task_id: str
    origin: Point


@dataclass(frozen=True)
class Dragging:
    task_id: str
    source_column_id: str
    source_index: int
    current_index: int


DragState = Union[Idle, Pending, Dragging]

IDLE = Idle()


class DragController:
    """
    Args:
        store: The open board's store. The controller reads positions from
               it and sends intents to it; it never touches store internals.
    """

    def __init__(self, store: BoardStore) -> None:
        self._store = store
        self.state: DragState = IDLE

    @property
    def is_dragging(self) -> bool:
        return isinstance(self.state, Dragging)

    @property
    def active_task_id(self) -> str | None:
        if isinstance(self.state, (Pending, Dragging)):
            return self.state.task_id
        return None

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def press(self, task_id: str, point: Point) -> None:
        """Pointer went down on a task. Nothing moves until it travels."""
        self._assert_idle(task_id)
        self._store.locate_task(task_id)
        self.state = Pending(task_id=task_id, origin=point)

    def pointer_move(self, point: Point) -> bool:
        """Returns ``True`` once the gesture is a drag."""
        if isinstance(self.state, Pending):
            dx = point[0] - self.state.origin[0]
            dy = point[1] - self.state.origin[1]
            if math.hypot(dx, dy) >= ACTIVATION_DISTANCE:
                task_id = self.state.task_id
                self.state = IDLE
                self._begin(task_id)
        return self.is_dragging

    def release(self) -> None:
        """Pointer went up without a drop target."""
        if isinstance(self.state, Pending):
            logger.debug("Press on {} released as a click", self.state.task_id)
            self.state = IDLE
        elif isinstance(self.state, Dragging):
            self.cancel()

    # ------------------------------------------------------------------
    # Drag events
    # ------------------------------------------------------------------

    def start(self, task_id: str) -> Dragging:
        """
        Begin dragging ``task_id`` immediately.

        Raises:
            DragStateError:    Another gesture is active.
            TaskNotFoundError: The task is not on the board.
        """
        self._assert_idle(task_id)
        return self._begin(task_id)

    def drag_over(self, over: DropTarget | None) -> None:
        """Live feedback: follow the pointer inside the source column."""
        state = self.state
        if not isinstance(state, Dragging) or over is None:
            return
        placement = resolve_drop(self._store.columns(), state.task_id, over)
        if placement is None or placement.column_id != state.source_column_id:
            return
        _, current = self._store.locate_task(state.task_id)
        if placement.index == current:
            return
        self._store.reorder_task(state.source_column_id, current, placement.index)
        self.state = replace(state, current_index=placement.index)

    async def drag_end(self, over: DropTarget | None) -> bool:
        """
        Finish the gesture over ``over``.

        Returns:
            ``True`` if a move intent was sent to the store.

        Raises:
            DragStateError: No drag in progress.
        """
        state = self.state
        if not isinstance(state, Dragging):
            raise DragStateError("No drag in progress.")

        placement = resolve_drop(self._store.columns(), state.task_id, over)
        if placement is None:
            logger.debug("Drag of {} ended outside any target", state.task_id)
            self.cancel()
            return False

        self.state = IDLE
        column_id, current = self._store.locate_task(state.task_id)
        if (
            placement.column_id == state.source_column_id
            and placement.index == state.source_index
        ):
            if current != placement.index:
                self._store.reorder_task(column_id, current, placement.index)
            logger.debug("Drag of {} dropped in place", state.task_id)
            return False

        await self._store.move_task(state.task_id, placement.column_id, placement.index)
        return True

    def cancel(self) -> None:
        """Abort the gesture and restore the pre-drag arrangement."""
        state = self.state
        self.state = IDLE
        if not isinstance(state, Dragging):
            return
        try:
            column_id, current = self._store.locate_task(state.task_id)
        except NotFoundError:
            logger.debug("Dragged task {} disappeared; nothing to revert", state.task_id)
            return
        if column_id == state.source_column_id and current != state.source_index:
            self._store.reorder_task(column_id, current, state.source_index)
        logger.debug("Drag of {} cancelled", state.task_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _assert_idle(self, task_id: str) -> None:
        if not isinstance(self.state, Idle):
            raise DragStateError(
                f"Cannot drag '{task_id}' while '{self.active_task_id}' is active."
            )

    def _begin(self, task_id: str) -> Dragging:
        column_id, index = self._store.locate_task(task_id)
        self.state = Dragging(
            task_id=task_id,
            source_column_id=column_id,
            source_index=index,
            current_index=index,
        )
        logger.debug("Dragging {} from {}#{}", task_id, column_id, index)
        return self.state
