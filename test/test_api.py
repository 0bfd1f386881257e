"""Tests for the REST persistence service."""

import pytest
from fastapi.testclient import TestClient

from taskboard.api import app, get_gateway
from taskboard.gateway import DEFAULT_COLUMNS, InMemoryGateway


@pytest.fixture
def client():
    """Test client backed by one fresh in-memory gateway."""
    gateway = InMemoryGateway()
    app.dependency_overrides[get_gateway] = lambda: gateway

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def board(client):
    response = client.post("/boards", json={"owner_id": "u1", "title": "Board"})
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def columns(client, board):
    return client.get(f"/boards/{board['id']}").json()["columns"]


def create_task(client, column_id, title, sort_order=0, **fields):
    response = client.post(
        f"/columns/{column_id}/tasks",
        json={"title": title, "sort_order": sort_order, **fields},
    )
    assert response.status_code == 201
    return response.json()


def test_create_board(client):
    response = client.post(
        "/boards",
        json={"owner_id": "u1", "title": "Groceries", "color": "bg-green-500"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Groceries"
    assert data["color"] == "bg-green-500"
    assert data["description"] is None
    assert "id" in data
    assert "created_at" in data


def test_create_board_validation(client):
    response = client.post("/boards", json={"owner_id": "u1", "title": "   "})
    assert response.status_code == 422
    response = client.post("/boards", json={"owner_id": "u1", "title": "T" * 121})
    assert response.status_code == 422
    response = client.post("/boards", json={"title": "No owner"})
    assert response.status_code == 422


def test_list_boards(client, board):
    client.post("/boards", json={"owner_id": "u2", "title": "Other"})
    response = client.get("/boards", params={"owner_id": "u1"})
    assert response.status_code == 200
    assert [b["id"] for b in response.json()] == [board["id"]]


def test_get_board_with_default_columns(columns):
    assert [c["column"]["title"] for c in columns] == list(DEFAULT_COLUMNS)
    assert all(c["tasks"] == [] for c in columns)


def test_get_missing_board(client):
    response = client.get("/boards/nope")
    assert response.status_code == 404
    assert "nope" in response.json()["detail"]


def test_update_board(client, board):
    response = client.patch(f"/boards/{board['id']}", json={"title": "Renamed"})
    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"

    response = client.patch(f"/boards/{board['id']}", json={"title": None})
    assert response.status_code == 422


def test_delete_board(client, board):
    assert client.delete(f"/boards/{board['id']}").status_code == 204
    assert client.get(f"/boards/{board['id']}").status_code == 404


def test_create_and_rename_column(client, board):
    response = client.post(
        f"/boards/{board['id']}/columns",
        json={"title": "Blocked", "sort_order": 4, "owner_id": "u1"},
    )
    assert response.status_code == 201
    column = response.json()
    assert column["sort_order"] == 4

    response = client.patch(f"/columns/{column['id']}", json={"title": "Waiting"})
    assert response.json()["title"] == "Waiting"

    assert client.delete(f"/columns/{column['id']}").status_code == 204
    assert client.patch(f"/columns/{column['id']}", json={"title": "x"}).status_code == 404


def test_create_task_defaults(client, columns):
    task = create_task(client, columns[0]["column"]["id"], "Buy milk")
    assert task["priority"] == "medium"
    assert task["description"] is None
    assert task["due_date"] is None
    assert task["sort_order"] == 0


def test_create_task_validation(client, columns):
    column_id = columns[0]["column"]["id"]
    bad = [
        {"title": "", "sort_order": 0},
        {"title": "T", "sort_order": -1},
        {"title": "T", "sort_order": 0, "priority": "urgent"},
        {"title": "T", "sort_order": 0, "due_date": "someday"},
    ]
    for body in bad:
        assert client.post(f"/columns/{column_id}/tasks", json=body).status_code == 422


def test_update_task_partial(client, columns):
    task = create_task(
        client, columns[0]["column"]["id"], "T", description="keep", due_date="2030-01-01"
    )
    response = client.patch(f"/tasks/{task['id']}", json={"priority": "high"})
    data = response.json()
    assert data["priority"] == "high"
    assert data["description"] == "keep"
    assert data["due_date"] == "2030-01-01"

    response = client.patch(f"/tasks/{task['id']}", json={"due_date": None})
    assert response.json()["due_date"] is None

    response = client.patch(f"/tasks/{task['id']}", json={"priority": None})
    assert response.status_code == 422


def test_move_task(client, board, columns):
    todo, doing = columns[0]["column"]["id"], columns[1]["column"]["id"]
    a = create_task(client, todo, "A", 0)
    b = create_task(client, todo, "B", 1)

    response = client.post(
        f"/tasks/{a['id']}/move", json={"column_id": doing, "sort_order": 0}
    )
    assert response.status_code == 204

    columns = client.get(f"/boards/{board['id']}").json()["columns"]
    assert [t["id"] for t in columns[0]["tasks"]] == [b["id"]]
    assert [t["id"] for t in columns[1]["tasks"]] == [a["id"]]
    assert columns[0]["tasks"][0]["sort_order"] == 0


def test_move_task_to_missing_column(client, columns):
    task = create_task(client, columns[0]["column"]["id"], "A")
    response = client.post(
        f"/tasks/{task['id']}/move", json={"column_id": "nope", "sort_order": 0}
    )
    assert response.status_code == 404


def test_delete_task(client, columns):
    task = create_task(client, columns[0]["column"]["id"], "A")
    assert client.delete(f"/tasks/{task['id']}").status_code == 204
    assert client.delete(f"/tasks/{task['id']}").status_code == 404
