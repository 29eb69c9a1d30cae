# server/tests/conftest.py
"""
Conftest *global* pour toute la suite de tests.

Points clés :
- Pose les ENV *avant* les imports cnc_telemetry.* : SQLite in-memory,
  cadences de génération coupées (les tests déclenchent la génération
  explicitement), pas de parc de démo.
- Monte une DB SQLite in-memory partagée (StaticPool) + Base.create_all.
- Patch la pile DB : `_engine` / `_SessionLocal` du module session, que
  get_session / get_sync_session / get_db consultent à chaque appel.
- Purge les tables après chaque test (les ids machine dépendent du count).
- Fournit un TestClient avec un runtime neuf (registre d'abonnements vide).
"""

import importlib
import os
import pkgutil

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def pytest_configure(config) -> None:
    """
    S'exécute avant la collecte → parfait pour poser les ENV lues par Settings().
    """
    os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
    os.environ["GENERATOR_ENABLED"] = "false"
    os.environ["SEED_DEMO_MACHINES"] = "0"


# ============================================================================
# DB SQLite in-memory partagée + Base.metadata.create_all
# ============================================================================
@pytest.fixture(scope="session")
def _sqlite_engine():
    """
    Engine in-memory **partagé** entre connexions (StaticPool + check_same_thread=False)
    + activation des contraintes FK sur chaque connexion.
    """
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    # Charger tous les modèles avant create_all
    from cnc_telemetry.infrastructure.persistence.database import base as db_base
    from cnc_telemetry.infrastructure.persistence.database import models as models_pkg

    for _finder, name, _ispkg in pkgutil.walk_packages(
        models_pkg.__path__, models_pkg.__name__ + "."
    ):
        importlib.import_module(name)

    db_base.Base.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="session")
def _Session(_sqlite_engine):
    return sessionmaker(
        bind=_sqlite_engine,
        future=True,
        autoflush=True,
        expire_on_commit=False,
    )


@pytest.fixture
def Session(_Session):
    """sessionmaker à utiliser comme `with Session() as s:`"""
    return _Session


@pytest.fixture(autouse=True)
def patch_db_stack(monkeypatch, _Session, _sqlite_engine):
    """Toute la pile (endpoints, moteur, tâches) passe par la DB SQLite de test."""
    sess_mod = importlib.import_module("cnc_telemetry.infrastructure.persistence.database.session")
    monkeypatch.setattr(sess_mod, "_engine", _sqlite_engine)
    monkeypatch.setattr(sess_mod, "_SessionLocal", _Session)


@pytest.fixture(autouse=True)
def _clear_db_between_tests(_Session):
    yield
    from cnc_telemetry.infrastructure.persistence.database import base as db_base
    with _Session() as s:
        for table in reversed(db_base.Base.metadata.sorted_tables):
            s.execute(table.delete())
        s.commit()


# ============================================================================
# Factories
# ============================================================================
@pytest.fixture
def machine_factory(Session):
    """Crée une machine (id séquentiel M0000000n) et renvoie sa vue détachée."""
    from cnc_telemetry.application.services.machine_service import create_machine, to_ref

    def _factory(name: str = "EMXP1", tool_capacity: int = 24):
        with Session() as s:
            return to_ref(create_machine(s, name, tool_capacity))

    return _factory


def role_headers(role: str) -> dict:
    return {"X-User-Role": role}


@pytest.fixture
def as_role():
    return role_headers


# ============================================================================
# API
# ============================================================================
@pytest.fixture
def client(monkeypatch):
    from fastapi.testclient import TestClient

    from cnc_telemetry.application.runtime import TelemetryRuntime
    from cnc_telemetry.core.config import settings
    from cnc_telemetry.main import app

    monkeypatch.setattr(app.state, "runtime", TelemetryRuntime(settings))
    return TestClient(app)
