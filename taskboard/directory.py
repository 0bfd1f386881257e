"""
BoardDirectory — the signed-in user's list of boards (the dashboard).

Creating and editing boards is write-through so the list shows
Gateway-assigned ids and timestamps; deleting is optimistic, like
deleting a column, and is not rolled back on failure.
"""

from __future__ import annotations

import copy
from typing import Any, Callable

from loguru import logger

from .domain import Board, BoardNotFoundError, PersistenceError, require_title
from .filters import BoardFilter
from .gateway import BOARD_FIELDS, Gateway, check_fields
from .hooks import HookRegistry, Listener


class BoardDirectory:
    def __init__(self, gateway: Gateway, owner_id: str) -> None:
        self._gateway = gateway
        self.owner_id = owner_id
        self.error: str | None = None
        self.loading = False
        self._boards: list[Board] = []
        self._hook_registry = HookRegistry()

    def subscribe(
        self, listener: Listener, event: str = "on_change"
    ) -> Callable[[], None]:
        return self._hook_registry.register(event, listener)

    def boards(self, board_filter: BoardFilter | None = None) -> list[Board]:
        boards = copy.deepcopy(self._boards)
        return board_filter.apply(boards) if board_filter else boards

    async def load(self) -> bool:
        self.loading = True
        try:
            boards = await self._gateway.list_boards(self.owner_id)
        except PersistenceError as exc:
            return self._fail("load boards", exc)
        finally:
            self.loading = False
        self._boards = list(boards)
        logger.info("Loaded {} boards for {}", len(boards), self.owner_id)
        return self._succeed()

    async def create_board(
        self,
        title: str,
        description: str | None = None,
        color: str | None = None,
    ) -> Board | None:
        title = require_title(title, "Board title")
        try:
            board = await self._gateway.create_board(
                self.owner_id, title, description or None, color
            )
        except PersistenceError as exc:
            self._fail("create board", exc)
            return None
        self._boards.insert(0, board)
        logger.info("Created board {} — {!r}", board.id, board.title)
        self._succeed()
        return copy.copy(board)

    async def update_board(self, board_id: str, **changes: Any) -> Board | None:
        self._index(board_id)
        check_fields(changes, BOARD_FIELDS)
        if "title" in changes:
            changes["title"] = require_title(changes["title"], "Board title")
        try:
            updated = await self._gateway.update_board(board_id, **changes)
        except PersistenceError as exc:
            self._fail("update board", exc)
            return None
        self._boards = [updated if b.id == board_id else b for b in self._boards]
        self._succeed()
        return copy.copy(updated)

    async def delete_board(self, board_id: str) -> bool:
        index = self._index(board_id)
        del self._boards[index]
        self._hook_registry.fire("on_change", self)
        try:
            await self._gateway.delete_board(board_id)
        except PersistenceError as exc:
            return self._fail("delete board", exc)
        logger.info("Deleted board {}", board_id)
        return self._succeed()

    def _index(self, board_id: str) -> int:
        for i, board in enumerate(self._boards):
            if board.id == board_id:
                return i
        raise BoardNotFoundError(board_id)

    def _succeed(self) -> bool:
        self.error = None
        self._hook_registry.fire("on_change", self)
        return True

    def _fail(self, action: str, exc: PersistenceError) -> bool:
        self.error = str(exc) or f"Failed to {action}."
        logger.warning("Could not {}: {}", action, exc)
        self._hook_registry.fire("on_error", self)
        self._hook_registry.fire("on_change", self)
        return False
