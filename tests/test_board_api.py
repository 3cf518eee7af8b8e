import os
from uuid import uuid4

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from analog_board.auth import BOARD_AUTH_INVALID, BOARD_AUTH_REQUIRED, board_owner_guard  # noqa: E402
from analog_board.board import BoardController  # noqa: E402
from analog_board.main import app  # noqa: E402
from analog_board.models import ListKind  # noqa: E402
from analog_board.service import get_board  # noqa: E402
from analog_board.storage import InMemoryStorage  # noqa: E402

BASE = "/api/v1/board"


@pytest.fixture
def board():
    controller = BoardController(storage=InMemoryStorage(), active_cards={})
    app.dependency_overrides[get_board] = lambda: controller
    yield controller
    app.dependency_overrides.clear()


@pytest.fixture
def client(board):
    return TestClient(app)


def add_task(client, list_kind="today", text="Write tests"):
    res = client.post(f"{BASE}/cards/{list_kind}/tasks", json={"text": text})
    assert res.status_code == 201
    return res.json()


def assert_task_shape(task: dict):
    for key in ["id", "text", "signal", "assignee", "note", "createdAt"]:
        assert key in task
    assert isinstance(task["text"], str)


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "json", "sqlite")


class TestBoardRead:
    def test_get_board(self, client):
        res = client.get(BASE)
        assert res.status_code == 200
        data = res.json()
        assert set(data["activeCards"]) == {"today", "next", "someday"}
        assert data["archive"] == []
        assert data["selectedTab"] == "today"
        assert data["todayLimit"] == 10
        assert data["todayCapacityText"] == "0/10 slots used"

    def test_get_card(self, client):
        res = client.get(f"{BASE}/cards/someday")
        assert res.status_code == 200
        card = res.json()
        assert card["listKind"] == "someday"
        assert card["title"] == "Someday"
        assert card["isArchived"] is False
        assert card["tasks"] == []

    def test_unknown_list_is_validation_error(self, client):
        res = client.get(f"{BASE}/cards/tomorrow")
        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"


class TestTasks:
    def test_add_task(self, client, board):
        res = client.post(
            f"{BASE}/cards/next/tasks",
            json={"text": "  Call the plumber ", "assignee": "Alex"},
        )
        assert res.status_code == 201
        task = res.json()
        assert_task_shape(task)
        assert task["text"] == "Call the plumber"
        assert task["signal"] == "empty"
        assert task["assignee"] == "Alex"
        assert len(board.card(ListKind.NEXT).tasks) == 1

    def test_add_blank_task_is_validation_error(self, client):
        res = client.post(f"{BASE}/cards/today/tasks", json={"text": "   "})
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)

    def test_add_to_full_today_conflicts(self, client):
        for i in range(10):
            add_task(client, text=f"Task {i}")
        res = client.post(f"{BASE}/cards/today/tasks", json={"text": "Eleventh"})
        assert res.status_code == 409
        assert res.json()["detail"] == "Today is full"
        assert client.get(BASE).json()["todayCapacityText"] == "10/10 slots used"

    def test_toggle_and_set_signal(self, client):
        task = add_task(client)
        url = f"{BASE}/cards/today/tasks/{task['id']}"

        assert client.post(f"{url}/toggle").json()["signal"] == "inProgress"
        assert client.post(f"{url}/toggle").json()["signal"] == "delegated"

        res = client.put(f"{url}/signal", json={"signal": "canceled"})
        assert res.status_code == 200
        assert res.json()["signal"] == "canceled"
        assert client.post(f"{url}/toggle").json()["signal"] == "empty"

    def test_signal_for_unknown_task(self, client):
        url = f"{BASE}/cards/today/tasks/{uuid4()}"
        assert client.post(f"{url}/toggle").status_code == 404
        res = client.put(f"{url}/signal", json={"signal": "done"})
        assert res.status_code == 404
        assert res.json()["detail"] == "Task not found"

    def test_invalid_signal(self, client):
        task = add_task(client)
        res = client.put(f"{BASE}/cards/today/tasks/{task['id']}/signal", json={"signal": "paused"})
        assert res.status_code == 422

    def test_move_task(self, client):
        task = add_task(client, list_kind="next")
        client.put(f"{BASE}/cards/next/tasks/{task['id']}/signal", json={"signal": "done"})

        res = client.post(f"{BASE}/cards/next/tasks/{task['id']}/move", json={"destination": "someday"})
        assert res.status_code == 200
        moved = res.json()
        assert moved["id"] == task["id"]
        assert moved["signal"] == "empty"

        board = client.get(BASE).json()
        assert board["activeCards"]["next"]["tasks"] == []
        assert [t["id"] for t in board["activeCards"]["someday"]["tasks"]] == [task["id"]]

    def test_move_into_full_today_conflicts(self, client):
        for i in range(10):
            add_task(client, text=f"Task {i}")
        task = add_task(client, list_kind="next")
        res = client.post(f"{BASE}/cards/next/tasks/{task['id']}/move", json={"destination": "today"})
        assert res.status_code == 409
        board = client.get(BASE).json()
        assert len(board["activeCards"]["next"]["tasks"]) == 1
        assert len(board["activeCards"]["today"]["tasks"]) == 10

    def test_move_unknown_task(self, client):
        res = client.post(f"{BASE}/cards/next/tasks/{uuid4()}/move", json={"destination": "today"})
        assert res.status_code == 404

    def test_delete_task(self, client):
        task = add_task(client, list_kind="someday")
        url = f"{BASE}/cards/someday/tasks/{task['id']}"
        res = client.delete(url)
        assert res.status_code == 204
        assert res.text == ""
        assert client.delete(url).status_code == 404


class TestCardsAndDay:
    def test_set_dots_clamps(self, client):
        res = client.put(f"{BASE}/cards/today/dots", json={"value": 9})
        assert res.status_code == 200
        assert res.json()["dots"] == 3

    def test_close_today_carries_unfinished(self, client):
        done = add_task(client, text="Done already")
        open_task = add_task(client, text="Still open")
        client.put(f"{BASE}/cards/today/tasks/{done['id']}/signal", json={"signal": "done"})

        res = client.post(f"{BASE}/close-today")
        assert res.status_code == 200
        board = res.json()
        assert board["activeCards"]["today"]["tasks"] == []
        assert board["archive"][0]["isArchived"] is True
        assert len(board["archive"][0]["tasks"]) == 2
        carried = board["activeCards"]["next"]["tasks"]
        assert [t["id"] for t in carried] == [open_task["id"]]
        assert carried[0]["signal"] == "inProgress"

    def test_close_today_without_carry_over(self, client):
        add_task(client, text="Left behind")
        res = client.post(f"{BASE}/close-today", json={"moveIncompleteToNext": False})
        assert res.status_code == 200
        board = res.json()
        assert board["activeCards"]["next"]["tasks"] == []
        assert board["archive"][0]["tasks"][0]["text"] == "Left behind"

    def test_select_tab(self, client, board):
        res = client.put(f"{BASE}/selected-tab", json={"tab": "someday"})
        assert res.status_code == 200
        assert res.json()["selectedTab"] == "someday"
        assert board.selected_tab.value == "someday"

    def test_archive_pagination(self, client):
        for day in range(4):
            add_task(client, text=f"Day {day}")
            client.post(f"{BASE}/close-today", json={"moveIncompleteToNext": False})

        res = client.get(f"{BASE}/archive?limit=3&offset=0")
        assert res.status_code == 200
        page = res.json()
        assert page["total"] == 4
        assert page["limit"] == 3
        assert page["offset"] == 0
        assert [c["tasks"][0]["text"] for c in page["items"]] == ["Day 3", "Day 2", "Day 1"]

        page2 = client.get(f"{BASE}/archive?limit=3&offset=3").json()
        assert [c["tasks"][0]["text"] for c in page2["items"]] == ["Day 0"]

    def test_archive_invalid_limit(self, client):
        assert client.get(f"{BASE}/archive?limit=-1").status_code == 422


class TestBasicAuth:
    def _client(self, monkeypatch, username="owner", password="s3cret"):
        monkeypatch.setenv("ENABLE_BASIC_AUTH", "true")
        monkeypatch.setenv("BASIC_AUTH_USERNAME", username)
        monkeypatch.setenv("BASIC_AUTH_PASSWORD", password)
        guarded = FastAPI()

        @guarded.get("/private", dependencies=[Depends(board_owner_guard())])
        def private():
            return {"ok": True}

        return TestClient(guarded)

    def test_missing_credentials(self, monkeypatch):
        res = self._client(monkeypatch).get("/private")
        assert res.status_code == 401
        assert res.headers["WWW-Authenticate"] == 'Basic realm="analog-board"'
        assert res.json()["detail"] == BOARD_AUTH_REQUIRED

    def test_wrong_credentials(self, monkeypatch):
        res = self._client(monkeypatch).get("/private", auth=("owner", "guess"))
        assert res.status_code == 401
        assert res.json()["detail"] == BOARD_AUTH_INVALID

    def test_valid_credentials(self, monkeypatch):
        res = self._client(monkeypatch).get("/private", auth=("owner", "s3cret"))
        assert res.status_code == 200
        assert res.json() == {"ok": True}

    def test_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("ENABLE_BASIC_AUTH", raising=False)
        guarded = FastAPI()

        @guarded.get("/open", dependencies=[Depends(board_owner_guard())])
        def open_route():
            return {"ok": True}

        assert TestClient(guarded).get("/open").status_code == 200

    def test_enabled_without_owner_credentials(self, monkeypatch):
        monkeypatch.setenv("ENABLE_BASIC_AUTH", "true")
        monkeypatch.delenv("BASIC_AUTH_USERNAME", raising=False)
        monkeypatch.delenv("BASIC_AUTH_PASSWORD", raising=False)
        guarded = FastAPI()

        @guarded.get("/private", dependencies=[Depends(board_owner_guard())])
        def private():
            return {"ok": True}

        res = TestClient(guarded).get("/private", auth=("owner", "s3cret"))
        assert res.status_code == 401
        assert res.json()["detail"] == "Board owner credentials are not configured"
