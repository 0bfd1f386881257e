import asyncio

import uvicorn
from loguru import logger

from taskboard.api import app
from taskboard.config import Settings, configure_logging
from taskboard.directory import BoardDirectory
from taskboard.drag import DragController
from taskboard.filters import TaskFilter, count_tasks
from taskboard.domain import Priority
from taskboard.hooks import log_change
from taskboard.http_gateway import HttpGateway
from taskboard.reorder import DropTarget
from taskboard.store import BoardStore

OWNER_ID = "demo-user"


def print_board(store: BoardStore) -> None:
    for entry in store.columns():
        print(f"\n── {entry.column.title.upper()} ({len(entry.tasks)}) ──")
        for task in entry.tasks:
            print(" ", task)


async def run_demo(settings: Settings):
    async with HttpGateway(settings.api_url, settings.http_timeout) as gateway:
        directory = BoardDirectory(gateway, OWNER_ID)
        await directory.load()
        board = await directory.create_board("Demo board", "Created by main.py")
        if board is None:
            logger.error("Could not create board: {}", directory.error)
            return

        store = await BoardStore.open(gateway, board.id, OWNER_ID)
        store.subscribe(log_change)
        todo, doing = store.columns()[0].column, store.columns()[1].column

        await store.create_task(todo.id, "Buy milk")
        await store.create_task(todo.id, "Write report", priority=Priority.HIGH)
        await store.create_task(todo.id, "Call plumber", due_date="2030-01-15")

        first = store.tasks_in(todo.id)[0]
        drag = DragController(store)
        drag.press(first.id, (0, 0))
        drag.pointer_move((0, 20))
        await drag.drag_end(DropTarget.column(doing.id))

        print_board(store)
        high = TaskFilter(priorities=frozenset({Priority.HIGH}))
        print(f"\nTotal tasks: {count_tasks(store.columns())}")
        print(f"High priority: {count_tasks(high.apply(store.columns()))}")

        await store.reload()
        logger.success("Reloaded board matches: {}", store.error is None)
        store.close()


async def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level="info",
        )
    )

    async def run_server():
        await server.serve()

    server_task = asyncio.create_task(run_server())

    await asyncio.sleep(2)

    await run_demo(settings)

    server.should_exit = True
    await server_task


if __name__ == "__main__":
    asyncio.run(main())
