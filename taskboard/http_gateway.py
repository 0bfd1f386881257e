"""
HttpGateway — Gateway implementation talking to the REST persistence
service in `taskboard.api` over httpx.

Every transport error and every non-2xx response becomes a
PersistenceError carrying the server's ``detail`` message, so the store
can show it as is.
"""

from __future__ import annotations

from typing import Any

import httpx
import pydantic
from loguru import logger

from .domain import (
    Board,
    BoardWithColumns,
    Column,
    PersistenceError,
    Task,
)
from .schemas import (
    BoardDetailResponse,
    BoardResponse,
    ColumnResponse,
    CreateBoardRequest,
    CreateColumnRequest,
    CreateTaskRequest,
    MoveTaskRequest,
    RequestModel,
    TaskResponse,
    UpdateBoardRequest,
    UpdateColumnRequest,
    UpdateTaskRequest,
)


class HttpGateway:
    """
    Args:
        base_url:  Root URL of the persistence service.
        timeout:   Seconds per request.
        transport: Optional httpx transport (e.g. ``httpx.ASGITransport``
                   to talk to the app in-process).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "HttpGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Boards
    # ------------------------------------------------------------------

    async def list_boards(self, owner_id: str) -> list[Board]:
        data = await self._request("GET", "/boards", params={"owner_id": owner_id})
        return [BoardResponse.model_validate(b).to_board() for b in data]

    async def create_board(
        self,
        owner_id: str,
        title: str,
        description: str | None = None,
        color: str | None = None,
    ) -> Board:
        body = _body(
            CreateBoardRequest,
            owner_id=owner_id,
            title=title,
            description=description,
            color=color,
        )
        data = await self._request("POST", "/boards", json=body)
        return BoardResponse.model_validate(data).to_board()

    async def update_board(self, board_id: str, **changes: Any) -> Board:
        body = _body(UpdateBoardRequest, partial=True, **changes)
        data = await self._request("PATCH", f"/boards/{board_id}", json=body)
        return BoardResponse.model_validate(data).to_board()

    async def delete_board(self, board_id: str) -> None:
        await self._request("DELETE", f"/boards/{board_id}")

    async def get_board_with_columns_and_tasks(
        self, board_id: str
    ) -> BoardWithColumns:
        data = await self._request("GET", f"/boards/{board_id}")
        return BoardDetailResponse.model_validate(data).to_data()

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    async def create_column(
        self, board_id: str, title: str, sort_order: int, owner_id: str
    ) -> Column:
        body = _body(
            CreateColumnRequest, title=title, sort_order=sort_order, owner_id=owner_id
        )
        data = await self._request("POST", f"/boards/{board_id}/columns", json=body)
        return ColumnResponse.model_validate(data).to_column()

    async def update_column_title(self, column_id: str, title: str) -> Column:
        body = _body(UpdateColumnRequest, title=title)
        data = await self._request("PATCH", f"/columns/{column_id}", json=body)
        return ColumnResponse.model_validate(data).to_column()

    async def delete_column(self, column_id: str) -> None:
        await self._request("DELETE", f"/columns/{column_id}")

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def create_task(
        self, column_id: str, fields: dict[str, Any], sort_order: int
    ) -> Task:
        body = _body(CreateTaskRequest, sort_order=sort_order, **fields)
        data = await self._request("POST", f"/columns/{column_id}/tasks", json=body)
        return TaskResponse.model_validate(data).to_task()

    async def update_task(self, task_id: str, **changes: Any) -> Task:
        body = _body(UpdateTaskRequest, partial=True, **changes)
        data = await self._request("PATCH", f"/tasks/{task_id}", json=body)
        return TaskResponse.model_validate(data).to_task()

    async def move_task(
        self, task_id: str, new_column_id: str, new_sort_order: int
    ) -> None:
        body = _body(MoveTaskRequest, column_id=new_column_id, sort_order=new_sort_order)
        await self._request("POST", f"/tasks/{task_id}/move", json=body)

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        logger.debug("HTTP {} {}", method, url)
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise PersistenceError(f"Persistence service unreachable: {exc}") from exc
        if response.is_error:
            raise PersistenceError(_detail(response))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()


def _body(model: type[RequestModel], partial: bool = False, **values: Any) -> dict:
    """
    Validate outgoing values and dump them as JSON-ready data.

    Values the service would refuse (e.g. an over-long title) are a
    rejection by the Gateway, so they surface as PersistenceError.
    """
    try:
        request = model(**values)
    except pydantic.ValidationError as exc:
        raise PersistenceError(
            f"Rejected by the persistence service: {exc.errors()[0]['msg']}"
        ) from exc
    return request.model_dump(mode="json", exclude_unset=partial)


def _detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, str) and detail:
        return detail
    if detail:
        return str(detail)
    return f"Persistence service returned {response.status_code}."
