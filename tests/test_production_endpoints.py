"""HTTP tests for the arcane energy building endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from arcane_backend.api import create_api
from arcane_backend.api.dependencies import get_lock_registry, get_production_engine
from arcane_backend.database import (
    DatabaseService,
    PlayerAggregateRepository,
    get_session,
)
from arcane_backend.game_logic import PlayerLockRegistry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.orm import Session

    from arcane_backend.game_logic import InMemoryPlayerAggregateStore, PlayerAggregate
    from arcane_backend.shared import FrozenClock

PLAYER_ID = "player-1"


@pytest.fixture
def player(
    store: InMemoryPlayerAggregateStore, make_player: Callable[..., PlayerAggregate]
) -> None:
    store.save(make_player(gold=2_000))


@pytest.mark.usefixtures("player")
def test_production_cycle_over_http(client: TestClient, clock: FrozenClock) -> None:
    added = client.post(f"/user/{PLAYER_ID}/add")
    assert added.status_code == status.HTTP_200_OK
    assert added.json()["data"]["arcaneEnergy"]["level"] == 1

    duplicate = client.post(f"/user/{PLAYER_ID}/add")
    assert duplicate.status_code == status.HTTP_409_CONFLICT
    assert duplicate.json()["reason"] == "already_exists"

    started = client.post(f"/user/{PLAYER_ID}/start")
    assert started.status_code == status.HTTP_200_OK
    assert started.json()["success"] is True

    clock.advance(minutes=4)
    early = client.post(f"/user/{PLAYER_ID}/collect")
    assert early.status_code == status.HTTP_409_CONFLICT
    assert early.json()["reason"] == "not_ready"
    assert early.json()["data"]["remaining_minutes"] == 1

    status_body = client.get(f"/user/{PLAYER_ID}/status").json()
    assert status_body["data"]["status"] == "active"

    clock.advance(minutes=1)
    collected = client.post(f"/user/{PLAYER_ID}/collect")
    assert collected.status_code == status.HTTP_200_OK
    assert collected.json()["data"]["arcane_energy_collected"] == 4_000


@pytest.mark.usefixtures("player")
def test_insufficient_gold_is_a_bad_request(client: TestClient) -> None:
    client.post(f"/user/{PLAYER_ID}/add")
    client.post(f"/user/{PLAYER_ID}/upgrade")

    response = client.post(f"/user/{PLAYER_ID}/start")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["success"] is False
    assert body["reason"] == "insufficient_funds"
    assert body["data"] == {"currency": "gold", "required": 22_000, "available": 1_000}


@pytest.mark.usefixtures("player")
@pytest.mark.parametrize("level", ["0", "9", "abc"])
def test_out_of_range_level_is_rejected(client: TestClient, level: str) -> None:
    client.post(f"/user/{PLAYER_ID}/add")

    response = client.post(f"/user/{PLAYER_ID}/upgrade/{level}")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["reason"] == "invalid_parameter"


@pytest.mark.usefixtures("player")
def test_upgrade_to_level_reports_cost(
    client: TestClient,
    store: InMemoryPlayerAggregateStore,
    make_player: Callable[..., PlayerAggregate],
) -> None:
    client.post(f"/user/{PLAYER_ID}/add")
    store.save(
        store.load(PLAYER_ID).model_copy(
            update={"balance": make_player(gold=6_000).balance}
        )
    )

    response = client.post(f"/user/{PLAYER_ID}/upgrade/3")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["upgrade_cost"] == 5_000
    assert data["remaining_gold"] == 1_000
    assert data["level_transition"] == {"from": 1, "to": 3}


def test_unknown_user_is_not_found(client: TestClient) -> None:
    response = client.post("/user/nobody/start")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["reason"] == "player_not_found"


def test_unexpected_errors_are_not_leaked() -> None:
    class _BrokenEngine:
        def status(self, player_id: str) -> None:
            msg = "password=hunter2"
            raise RuntimeError(msg)

    app = create_api()
    app.dependency_overrides[get_production_engine] = _BrokenEngine
    with TestClient(app, raise_server_exceptions=False) as test_client:
        response = test_client.get(f"/user/{PLAYER_ID}/status")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"success": False, "message": "Internal server error"}
    assert "hunter2" not in response.text


def test_unknown_users_leave_no_locks_behind(
    client: TestClient, locks: PlayerLockRegistry
) -> None:
    for index in range(200):
        response = client.post(f"/user/ghost-{index}/collect")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    assert len(locks) == 0


@pytest.fixture
def sql_database(make_player: Callable[..., PlayerAggregate]) -> DatabaseService:
    database = DatabaseService("sqlite+pysqlite:///:memory:")
    database.create_schema()
    with database.session() as session:
        PlayerAggregateRepository(session).save(make_player(gold=2_000))
    return database


def _sql_client(database: DatabaseService, *, fail_commit: bool) -> TestClient:
    def session_override() -> Iterator[Session]:
        with database.session() as session:
            if fail_commit:

                def refuse_commit() -> None:
                    raise OperationalError("COMMIT", None, Exception("disk I/O error"))

                session.commit = refuse_commit  # type: ignore[method-assign]
            yield session

    app = create_api()
    app.dependency_overrides[get_session] = session_override
    app.dependency_overrides[get_lock_registry] = PlayerLockRegistry
    return TestClient(app, raise_server_exceptions=False)


def _stored_player(database: DatabaseService) -> PlayerAggregate:
    with database.session() as session:
        return PlayerAggregateRepository(session).load(PLAYER_ID)


def test_sql_writes_are_committed_before_responding(
    sql_database: DatabaseService,
) -> None:
    with _sql_client(sql_database, fail_commit=False) as test_client:
        response = test_client.post(f"/user/{PLAYER_ID}/add")

    assert response.status_code == status.HTTP_200_OK
    stored = _stored_player(sql_database)
    assert stored.version == 2
    assert stored.producer is not None


def test_failed_commit_is_reported_as_a_server_error(
    sql_database: DatabaseService,
) -> None:
    with _sql_client(sql_database, fail_commit=True) as test_client:
        response = test_client.post(f"/user/{PLAYER_ID}/add")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"success": False, "message": "Internal server error"}
    stored = _stored_player(sql_database)
    assert stored.version == 1
    assert stored.producer is None
