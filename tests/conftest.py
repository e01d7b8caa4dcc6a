"""
Pytest fixtures shared by the telemetry tests.

Provides:
- In-memory SQLite engine + session factory with both tables created
- Inference client backed by httpx.MockTransport
- Recording fake for the blob container
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import pytest
import httpx
from datetime import datetime, timezone
from unittest.mock import MagicMock

from machine_telemetry.database import create_db_engine, create_session_factory, create_tables
from machine_telemetry.models.machine_status import MachineStatus
from machine_telemetry.models.operation_log import OperationLog
from machine_telemetry.services.inference_client import InferenceClient

ML_URL = "https://ml.example.test/score"
FIXED_NOW = datetime(2024, 1, 2, 13, 45, 7, 123456, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


class InferenceStub:
    """Scripted inference endpoint. Each call pops the next (status, body) pair."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses.pop(0) if self.responses else (200, {"predicted_class": "class1", "result": True})
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, content=body)

    def queue(self, status, body):
        self.responses.append((status, body))
        return self

    @property
    def sent_bodies(self):
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def inference_stub():
    return InferenceStub()


@pytest.fixture
def inference_client(inference_stub):
    return InferenceClient(ML_URL, "test-key", transport=httpx.MockTransport(inference_stub))


@pytest.fixture
def image_archive():
    archive = MagicMock()
    archive.upload.side_effect = lambda path, data: path
    return archive


def count_rows(session_factory, model) -> int:
    with session_factory() as s:
        return s.query(model).count()


def log_rows(session_factory, machine_id=None):
    with session_factory() as s:
        q = s.query(OperationLog)
        if machine_id:
            q = q.filter(OperationLog.machine_id == machine_id)
        return [(row.machine_id, row.activate) for row in q.order_by(OperationLog.id).all()]


def status_of(session_factory, machine_id):
    with session_factory() as s:
        row = s.get(MachineStatus, machine_id)
        return row.activate if row else None


def seed_status(session_factory, machine_id, activate):
    with session_factory() as s:
        s.add(MachineStatus(machine_id=machine_id, activate=activate, updated_at=FIXED_NOW))
        s.commit()
