"""Shared fixtures: a gateway that can be told to fail, and an open store."""

import pytest
import pytest_asyncio

from taskboard.domain import PersistenceError
from taskboard.gateway import InMemoryGateway
from taskboard.store import BoardStore

OWNER_ID = "user-1"

OPERATIONS = (
    "list_boards",
    "create_board",
    "update_board",
    "delete_board",
    "get_board_with_columns_and_tasks",
    "create_column",
    "update_column_title",
    "delete_column",
    "create_task",
    "update_task",
    "move_task",
    "delete_task",
)


class FlakyGateway(InMemoryGateway):
    """InMemoryGateway that records calls and fails the operations it is told to."""

    def __init__(self, latency: float = 0.0) -> None:
        super().__init__(latency=latency)
        self.calls: list[str] = []
        self.failing: dict[str, str] = {}
        for name in OPERATIONS:
            setattr(self, name, self._wrap(name, getattr(self, name)))

    def fail(self, operation: str, message: str = "Server rejected the request.") -> None:
        self.failing[operation] = message

    def recover(self) -> None:
        self.failing.clear()

    def _wrap(self, name, method):
        async def wrapper(*args, **kwargs):
            self.calls.append(name)
            if name in self.failing:
                raise PersistenceError(self.failing[name])
            return await method(*args, **kwargs)

        return wrapper


@pytest.fixture
def gateway():
    return FlakyGateway()


@pytest_asyncio.fixture
async def board_id(gateway):
    board = await gateway.create_board(OWNER_ID, "Test board")
    return board.id


@pytest_asyncio.fixture
async def store(gateway, board_id):
    """An open store on a board with the four default columns."""
    store = await BoardStore.open(gateway, board_id, OWNER_ID)
    gateway.calls.clear()
    return store


def column_ids(store):
    return [c.id for c in store.columns()]


def titles(store, column_id):
    return [t.title for t in store.tasks_in(column_id)]


async def seed(store, column_id, *task_titles):
    """Create tasks in order and return them."""
    tasks = [await store.create_task(column_id, title) for title in task_titles]
    store._gateway.calls.clear()
    return tasks
