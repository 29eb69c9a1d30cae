# server/tests/unit/test_sample_repository.py
from datetime import datetime, timedelta, timezone

import pytest

from cnc_telemetry.application.services.machine_service import delete_machine
from cnc_telemetry.domain.errors import NotFoundError, StorageError, ValidationError
from cnc_telemetry.domain.telemetry import AxisReading, MachineRecord
from cnc_telemetry.infrastructure.persistence.repositories.sample_repository import SampleRepository

pytestmark = pytest.mark.unit

T0 = datetime(2024, 1, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)


def _append(s, machine_id, axis="X", ts=T0, tool_in_use=1):
    SampleRepository(s).append(machine_id, axis, 12.5, 1000, tool_in_use, ts)


def test_append_rejects_unknown_axis(Session, machine_factory):
    m = machine_factory()
    with Session() as s:
        with pytest.raises(ValidationError):
            _append(s, m.machine_id, axis="W")


def test_append_rejects_unknown_machine(Session):
    with Session() as s:
        with pytest.raises(ValidationError):
            _append(s, "M99999999")


def test_query_range_inclusive_bounds_and_order(Session, machine_factory):
    m = machine_factory()
    t1, t2, t3 = T0, T0 + timedelta(seconds=1), T0 + timedelta(seconds=2)
    with Session() as s:
        # insérés dans le désordre
        _append(s, m.machine_id, "Y", t2, tool_in_use=2)
        _append(s, m.machine_id, "X", t1, tool_in_use=1)
        _append(s, m.machine_id, "Z", t3, tool_in_use=3)
        _append(s, m.machine_id, "A", t2, tool_in_use=4)

        rows = SampleRepository(s).query_range(m.machine_id, t1, t2)

    assert [r.tool_in_use for r in rows] == [1, 2, 4]  # t1, puis t2 dans l'ordre d'insertion


def test_query_range_empty_window_returns_empty_list(Session, machine_factory):
    m = machine_factory()
    with Session() as s:
        _append(s, m.machine_id, ts=T0)
        rows = SampleRepository(s).query_range(m.machine_id, T0 + timedelta(hours=1), T0 + timedelta(hours=2))
    assert rows == []


def test_query_range_unknown_machine_is_not_found(Session):
    with Session() as s:
        with pytest.raises(NotFoundError) as ei:
            SampleRepository(s).query_range("M00000042", T0, T0)
    assert ei.value.machine_id == "M00000042"


def test_duplicates_both_persist(Session, machine_factory):
    m = machine_factory()
    with Session() as s:
        _append(s, m.machine_id, "X", T0)
        _append(s, m.machine_id, "X", T0)
        rows = SampleRepository(s).query_range(m.machine_id, T0, T0)
    assert len(rows) == 2


def test_append_record_writes_every_axis_in_one_go(Session, machine_factory):
    m = machine_factory()
    record = MachineRecord(
        machine_id=m.machine_id,
        machine_name=m.machine_name,
        timestamp=T0,
        axes={axis: AxisReading(10.0, 500, 3) for axis in ("X", "Y", "Z", "A", "C")},
    )
    with Session() as s:
        written = SampleRepository(s).append_record(record)
        rows = SampleRepository(s).query_range(m.machine_id, T0, T0)

    assert written == 5
    assert sorted(r.axis for r in rows) == ["A", "C", "X", "Y", "Z"]


def test_delete_machine_cascades_to_samples(Session, machine_factory):
    m = machine_factory()
    with Session() as s:
        _append(s, m.machine_id)
    with Session() as s:
        delete_machine(s, m.machine_id)
    with Session() as s:
        with pytest.raises(NotFoundError):
            SampleRepository(s).query_range(m.machine_id, T0, T0)


def test_machine_lookup_failure_is_storage_error(Session, machine_factory, monkeypatch):
    from sqlalchemy.exc import OperationalError

    m = machine_factory()
    with Session() as s:
        def _boom(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(s, "scalar", _boom)
        with pytest.raises(StorageError):
            SampleRepository(s).query_range(m.machine_id, T0, T0)
        with pytest.raises(StorageError):
            _append(s, m.machine_id)
