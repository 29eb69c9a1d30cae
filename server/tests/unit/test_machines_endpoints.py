# server/tests/unit/test_machines_endpoints.py
import asyncio
import logging

import pytest

pytestmark = pytest.mark.unit

API = "/api/v1"


def _create(client, as_role, name="EMXP1", cap=24, role="SUPERADMIN"):
    return client.post(f"{API}/machines", json={"machineName": name, "toolCapacity": cap}, headers=as_role(role))


def test_health(client):
    r = client.get(f"{API}/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_machine_generates_initial_record(client, as_role):
    r = _create(client, as_role, cap=24)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["machineId"] == "M00000001"
    assert body["machineName"] == "EMXP1"
    assert body["toolCapacity"] == 24
    assert body["createdAt"].endswith("Z")

    h = client.get(f"{API}/historical-data", params={"machineId": "M00000001"}, headers=as_role("OPERATOR"))
    assert h.status_code == 200
    data = h.json()
    assert len(data) == 1
    assert set(data[0]["axes"]) == {"X", "Y", "Z", "A", "C"}
    assert all(1 <= a["toolInUse"] <= 24 for a in data[0]["axes"].values())


def test_create_with_capacity_one(client, as_role):
    assert _create(client, as_role, cap=1).status_code == 201
    data = client.get(f"{API}/historical-data", params={"machineId": "M00000001"}, headers=as_role("OPERATOR")).json()
    assert {a["toolInUse"] for a in data[0]["axes"].values()} == {1}


@pytest.mark.parametrize("payload", [
    {"machineName": "EMXP1", "toolCapacity": 0},
    {"machineName": "", "toolCapacity": 24},
    {"toolCapacity": 24},
])
def test_create_rejects_invalid_payload(client, as_role, payload):
    r = client.post(f"{API}/machines", json=payload, headers=as_role("SUPERADMIN"))
    assert r.status_code == 422
    assert client.get(f"{API}/machines", headers=as_role("OPERATOR")).json() == []


def test_create_blank_name_is_domain_error(client, as_role):
    r = _create(client, as_role, name="   ")
    assert r.status_code == 400


def test_list_machines_in_creation_order(client, as_role):
    for name in ("EMXP1", "EMXP2", "EMXP3"):
        assert _create(client, as_role, name=name, role="MANAGER").status_code == 201
    r = client.get(f"{API}/machines", headers=as_role("SUPERVISOR"))
    assert r.status_code == 200
    assert [m["machineId"] for m in r.json()] == ["M00000001", "M00000002", "M00000003"]


def test_missing_role_is_401_unknown_or_forbidden_is_403(client, as_role):
    assert client.get(f"{API}/machines").status_code == 401
    assert client.get(f"{API}/machines", headers=as_role("INTERN")).status_code == 403
    assert _create(client, as_role, role="OPERATOR").status_code == 403
    assert _create(client, as_role, role="SUPERVISOR").status_code == 403


def test_update_drops_tool_in_use_for_manager(client, as_role, caplog):
    caplog.set_level(logging.INFO)
    _create(client, as_role)
    r = client.put(
        f"{API}/machines/M00000001",
        json={"machineName": "Lathe 1", "toolInUse": 5},
        headers=as_role("MANAGER"),
    )
    assert r.status_code == 200, r.text
    assert r.json()["machineName"] == "Lathe 1"
    assert any(rec.getMessage() == "machine.update.dropped_field" for rec in caplog.records)


def test_update_forbidden_for_operator_and_unknown_is_404(client, as_role):
    _create(client, as_role)
    assert client.put(f"{API}/machines/M00000001", json={"machineName": "x"}, headers=as_role("OPERATOR")).status_code == 403
    assert client.put(f"{API}/machines/M00000077", json={"machineName": "x"}, headers=as_role("MANAGER")).status_code == 404


def test_delete_machine_flow(client, as_role):
    _create(client, as_role)
    assert client.delete(f"{API}/machines/M00000001", headers=as_role("MANAGER")).status_code == 403

    r = client.delete(f"{API}/machines/M00000001", headers=as_role("SUPERADMIN"))
    assert r.status_code == 200
    assert r.json() == {"message": "Machine deleted successfully"}

    assert client.delete(f"{API}/machines/M00000001", headers=as_role("SUPERADMIN")).status_code == 404
    h = client.get(f"{API}/historical-data", params={"machineId": "M00000001"}, headers=as_role("OPERATOR"))
    assert h.status_code == 404


def test_historical_data_requires_machine_id(client, as_role):
    r = client.get(f"{API}/historical-data", headers=as_role("OPERATOR"))
    assert r.status_code == 422


def test_historical_data_unknown_machine(client, as_role):
    r = client.get(f"{API}/historical-data", params={"machineId": "M00000404"}, headers=as_role("OPERATOR"))
    assert r.status_code == 404


@pytest.mark.parametrize("tool_in_use", [0, -5, "abc", None])
def test_manager_tool_in_use_dropped_whatever_its_value(client, as_role, tool_in_use):
    _create(client, as_role)
    r = client.put(
        f"{API}/machines/M00000001",
        json={"machineName": "Lathe", "toolInUse": tool_in_use},
        headers=as_role("MANAGER"),
    )
    assert r.status_code == 200, r.text
    assert r.json()["machineName"] == "Lathe"


# -----------------------------------------------------------------------------
# Le travail DB des routes ne doit pas tourner sur la boucle asyncio
# (minuteries de génération + envois live)
# -----------------------------------------------------------------------------
def _on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def test_history_query_runs_in_threadpool(client, as_role, monkeypatch):
    from cnc_telemetry.api.v1.endpoints import history as history_endpoint

    _create(client, as_role)
    real = history_endpoint.get_historical_data
    seen = []

    def _spy(db, machine_id):
        seen.append(_on_event_loop())
        return real(db, machine_id)

    monkeypatch.setattr(history_endpoint, "get_historical_data", _spy)
    r = client.get(f"{API}/historical-data", params={"machineId": "M00000001"}, headers=as_role("OPERATOR"))
    assert r.status_code == 200
    assert seen == [False]


@pytest.mark.parametrize("name", ["create_machine", "list_machines", "update_machine", "delete_machine"])
def test_machine_routes_run_db_work_in_threadpool(client, as_role, monkeypatch, name):
    from cnc_telemetry.application.services import machine_service

    if name != "create_machine":
        _create(client, as_role)
    real = getattr(machine_service, name)
    seen = []

    def _spy(*args, **kwargs):
        seen.append(_on_event_loop())
        return real(*args, **kwargs)

    monkeypatch.setattr(machine_service, name, _spy)
    calls = {
        "create_machine": lambda: _create(client, as_role, name="EMXP9"),
        "list_machines": lambda: client.get(f"{API}/machines", headers=as_role("OPERATOR")),
        "update_machine": lambda: client.put(f"{API}/machines/M00000001", json={"machineName": "x"}, headers=as_role("MANAGER")),
        "delete_machine": lambda: client.delete(f"{API}/machines/M00000001", headers=as_role("SUPERADMIN")),
    }
    assert calls[name]().status_code in (200, 201)
    assert seen == [False]


def test_history_storage_failure_is_500(client, as_role, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from cnc_telemetry.infrastructure.persistence.repositories.machine_repository import MachineRepository

    _create(client, as_role)

    def _boom(self, machine_id):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(MachineRepository, "get", _boom)
    r = client.get(f"{API}/historical-data", params={"machineId": "M00000001"}, headers=as_role("OPERATOR"))
    assert r.status_code == 500
