"""
FastAPI REST API — the persistence service, a thin HTTP wrapper over a Gateway.

Responsibilities (only):
  - Parse and validate HTTP input (via Pydantic request schemas)
  - Delegate to the gateway
  - Translate board exceptions → HTTP status codes
  - Serialise domain objects → response schemas

`taskboard.http_gateway.HttpGateway` is the matching client.

Endpoints:
  GET    /boards?owner_id=            List the owner's boards
  POST   /boards                      Create a board (with default columns)
  GET    /boards/{id}                 Board with columns and tasks
  PATCH  /boards/{id}                 Update title/description/color
  DELETE /boards/{id}                 Delete a board and everything in it
  POST   /boards/{id}/columns         Create a column
  PATCH  /columns/{id}                Rename a column
  DELETE /columns/{id}                Delete a column and its tasks
  POST   /columns/{id}/tasks          Create a task
  PATCH  /tasks/{id}                  Update task fields
  POST   /tasks/{id}/move             Move a task to a column/position
  DELETE /tasks/{id}                  Delete a task
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Response
from loguru import logger
from pydantic import BaseModel

from .domain import BoardError, RecordNotFoundError, ValidationError
from .gateway import Gateway, InMemoryGateway
from .schemas import (
    BoardDetailResponse,
    BoardResponse,
    ColumnResponse,
    CreateBoardRequest,
    CreateColumnRequest,
    CreateTaskRequest,
    MoveTaskRequest,
    TaskResponse,
    UpdateBoardRequest,
    UpdateColumnRequest,
    UpdateTaskRequest,
)


# ---------------------------------------------------------------------------
# Shared gateway instance (created once at startup)
# ---------------------------------------------------------------------------

_gateway: Gateway | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _gateway
    _gateway = InMemoryGateway()
    logger.info("Persistence service started (in-memory)")
    yield
    _gateway = None


def get_gateway() -> Gateway:
    assert _gateway is not None, "Gateway not initialised"
    return _gateway


GatewayDep = Annotated[Gateway, Depends(get_gateway)]


# ---------------------------------------------------------------------------
# Exception → HTTP translation
# ---------------------------------------------------------------------------


def _http(exc: BoardError) -> HTTPException:
    """Map domain exceptions to appropriate HTTP status codes."""
    if isinstance(exc, RecordNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _changes(body: BaseModel, *required: str) -> dict:
    """Fields present in a PATCH body; 'required' ones may not be null."""
    changes = body.model_dump(exclude_unset=True)
    nulls = [name for name in required if name in changes and changes[name] is None]
    if nulls:
        raise HTTPException(status_code=422, detail=f"{', '.join(nulls)} cannot be null.")
    return changes


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Task Board Persistence API",
    version="1.0.0",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------


@app.get("/boards", response_model=list[BoardResponse])
async def list_boards(
    gateway: GatewayDep,
    owner_id: str = Query(..., min_length=1, description="Owner of the boards"),
) -> list[BoardResponse]:
    try:
        boards = await gateway.list_boards(owner_id)
    except BoardError as exc:
        raise _http(exc)
    return [BoardResponse.from_board(b) for b in boards]


@app.post("/boards", response_model=BoardResponse, status_code=201)
async def create_board(body: CreateBoardRequest, gateway: GatewayDep) -> BoardResponse:
    try:
        board = await gateway.create_board(
            body.owner_id, body.title, body.description, body.color
        )
    except BoardError as exc:
        raise _http(exc)
    return BoardResponse.from_board(board)


@app.get("/boards/{board_id}", response_model=BoardDetailResponse)
async def get_board(board_id: str, gateway: GatewayDep) -> BoardDetailResponse:
    try:
        data = await gateway.get_board_with_columns_and_tasks(board_id)
    except BoardError as exc:
        raise _http(exc)
    return BoardDetailResponse.from_data(data)


@app.patch("/boards/{board_id}", response_model=BoardResponse)
async def update_board(
    board_id: str, body: UpdateBoardRequest, gateway: GatewayDep
) -> BoardResponse:
    try:
        board = await gateway.update_board(board_id, **_changes(body, "title", "color"))
    except BoardError as exc:
        raise _http(exc)
    return BoardResponse.from_board(board)


@app.delete("/boards/{board_id}", status_code=204)
async def delete_board(board_id: str, gateway: GatewayDep) -> Response:
    try:
        await gateway.delete_board(board_id)
    except BoardError as exc:
        raise _http(exc)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------


@app.post("/boards/{board_id}/columns", response_model=ColumnResponse, status_code=201)
async def create_column(
    board_id: str, body: CreateColumnRequest, gateway: GatewayDep
) -> ColumnResponse:
    try:
        column = await gateway.create_column(
            board_id, body.title, body.sort_order, body.owner_id
        )
    except BoardError as exc:
        raise _http(exc)
    return ColumnResponse.from_column(column)


@app.patch("/columns/{column_id}", response_model=ColumnResponse)
async def update_column(
    column_id: str, body: UpdateColumnRequest, gateway: GatewayDep
) -> ColumnResponse:
    try:
        column = await gateway.update_column_title(column_id, body.title)
    except BoardError as exc:
        raise _http(exc)
    return ColumnResponse.from_column(column)


@app.delete("/columns/{column_id}", status_code=204)
async def delete_column(column_id: str, gateway: GatewayDep) -> Response:
    try:
        await gateway.delete_column(column_id)
    except BoardError as exc:
        raise _http(exc)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@app.post("/columns/{column_id}/tasks", response_model=TaskResponse, status_code=201)
async def create_task(
    column_id: str, body: CreateTaskRequest, gateway: GatewayDep
) -> TaskResponse:
    fields = body.model_dump(exclude={"sort_order"})
    try:
        task = await gateway.create_task(column_id, fields, body.sort_order)
    except BoardError as exc:
        raise _http(exc)
    return TaskResponse.from_task(task)


@app.patch("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str, body: UpdateTaskRequest, gateway: GatewayDep
) -> TaskResponse:
    """
    Update any subset of a task's fields.

    Only fields present in the body change; an explicit ``null`` clears
    ``description`` or ``due_date``.

    Raises:
        404: Task not found.
        422: Invalid field value.
    """
    changes = _changes(body, "title", "priority")
    try:
        task = await gateway.update_task(task_id, **changes)
    except BoardError as exc:
        raise _http(exc)
    return TaskResponse.from_task(task)


@app.post("/tasks/{task_id}/move", status_code=204)
async def move_task(
    task_id: str, body: MoveTaskRequest, gateway: GatewayDep
) -> Response:
    try:
        await gateway.move_task(task_id, body.column_id, body.sort_order)
    except BoardError as exc:
        raise _http(exc)
    return Response(status_code=204)


@app.delete("/tasks/{task_id}", status_code=204)
async def delete_task(task_id: str, gateway: GatewayDep) -> Response:
    try:
        await gateway.delete_task(task_id)
    except BoardError as exc:
        raise _http(exc)
    return Response(status_code=204)
