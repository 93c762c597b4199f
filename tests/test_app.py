from __future__ import annotations

import base64
import json
import time
from types import SimpleNamespace

import pytest

from conftest import FakeBackend, FakeCamera, make_jpeg

from src.eduface.eduface.main import create_app
from src.eduface.eduface.matching.client import ProviderError


@pytest.fixture
def backend():
    return FakeBackend(reply='{"matchId": "NEW"}')


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def app(tmp_path, backend, camera):
    settings = SimpleNamespace(
        SECRET_KEY="test-secret",
        STORE_BACKEND="local",
        LOCAL_STORE_DIR=str(tmp_path / "data"),
        DB_CONFIG={},
        DEBUG=False,
        TESTING=True,
        AUTO_INIT_DB=False,
    )
    app = create_app(settings, backend=backend, capture_factory=lambda: camera)
    yield app
    app.extensions["eduface"].scanner.wait_stopped(2)


@pytest.fixture
def client(app):
    return app.test_client()


def _image():
    return "data:image/jpeg;base64," + base64.b64encode(make_jpeg()).decode("ascii")


def _enroll(client, name):
    assert client.post("/api/enrollment/retake").status_code == 200
    assert client.post("/api/enrollment/capture", json={"image": _image()}).status_code == 200
    return client.post(
        "/api/enrollment/submit",
        json={
            "full_name": name,
            "gender": "Female",
            "date_of_birth": "2015-04-02",
            "class_id": "1",
            "section": "A",
            "father_name": "Ravi",
        },
    )


def test_endpoints_require_a_school_session(client):
    resp = client.get("/api/classes")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_school_workflow_end_to_end(client, backend):
    resp = client.post("/api/auth/register", json={"school_name": "Greenwood", "login_handle": "admin1", "password": "pw1"})
    assert resp.status_code == 201

    resp = client.post("/api/auth/register", json={"school_name": "Other", "login_handle": "admin1", "password": "x"})
    assert resp.status_code == 409

    assert client.get("/api/auth/me").get_json()["data"]["school_name"] == "Greenwood"
    assert len(client.get("/api/classes").get_json()["data"]) == 2

    resp = _enroll(client, "Asha")
    assert resp.status_code == 201
    asha = resp.get_json()["data"]["student"]
    assert resp.get_json()["data"]["student_fee"]["total_fees"] == 50000

    backend.reply = json.dumps({"matchId": asha["student_id"], "confidence": 0.95})
    resp = _enroll(client, "Not Asha")
    assert resp.status_code == 409
    assert resp.get_json()["duplicate"]["student_id"] == asha["student_id"]
    status = client.get("/api/enrollment/status").get_json()["data"]
    assert status["state"] == "BLOCKED"
    assert status["last_enrolled"]["student_id"] == asha["student_id"]

    resp = client.post("/api/fees/payments", json={"student_id": asha["student_id"], "amount": 20000, "mode": "Cash"})
    assert resp.status_code == 201
    assert resp.get_json()["data"]["balance"] == 30000
    resp = client.post("/api/fees/payments", json={"student_id": asha["student_id"], "amount": 35000, "mode": "Cash"})
    assert resp.status_code == 400

    resp = client.post("/api/attendance/scan", json={"image": _image()})
    assert resp.get_json()["matched"] is True
    assert resp.get_json()["data"]["newly_marked"] is True
    log = client.get("/api/attendance/today").get_json()["data"]
    assert [row["student_name"] for row in log] == ["Asha"]

    resp = client.get("/api/reports/fees.csv")
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "Asha" in resp.get_data().decode("utf-8-sig")

    assert client.get("/api/reports/dashboard").get_json()["data"]["fees_collected"] == 20000

    assert client.post("/api/auth/logout").status_code == 200
    assert client.get("/api/auth/me").status_code == 401


def test_login_failure_and_unknown_student(client):
    client.post("/api/auth/register", json={"school_name": "Greenwood", "login_handle": "admin1", "password": "pw1"})
    client.post("/api/auth/logout")

    assert client.post("/api/auth/login", json={"login_handle": "admin1", "password": "nope"}).status_code == 401
    assert client.post("/api/auth/login", json={"login_handle": "admin1", "password": "pw1"}).status_code == 200
    assert client.get("/api/students/STU-NOPE00").status_code == 404


def test_capabilities_reports_configuration(client):
    data = client.get("/api/capabilities").get_json()["data"]

    assert data["remote_store"] is False
    assert data["logged_in"] is False
    assert data["matcher"] is None


def test_capabilities_expose_matcher_failures_to_a_logged_in_school(client, backend):
    client.post("/api/auth/register", json={"school_name": "Greenwood", "login_handle": "admin1", "password": "pw1"})
    assert _enroll(client, "Asha").status_code == 201

    backend.error = ProviderError("quota exceeded")
    resp = client.post("/api/attendance/scan", json={"image": _image()})
    assert resp.status_code == 200
    assert resp.get_json()["matched"] is False

    stats = client.get("/api/capabilities").get_json()["data"]["matcher"]
    assert stats["calls"] == 1
    assert stats["failures"] == 1
    assert "quota exceeded" in stats["last_error"]


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


def test_scanner_belongs_to_the_school_that_started_it(app, backend, camera):
    school_a = app.test_client()
    school_b = app.test_client()

    school_a.post("/api/auth/register", json={"school_name": "Greenwood", "login_handle": "admin1", "password": "pw1"})
    kid = _enroll(school_a, "Secret Kid").get_json()["data"]["student"]
    backend.reply = json.dumps({"matchId": kid["student_id"], "confidence": 0.9})

    resp = school_a.post("/api/attendance/scanner/start", json={"facing": "user"})
    assert resp.status_code == 200
    assert _wait_for(lambda: school_a.get("/api/attendance/scanner/status").get_json()["data"]["recent"])

    school_b.post("/api/auth/register", json={"school_name": "Riverside", "login_handle": "admin2", "password": "pw2"})
    resp = school_b.get("/api/attendance/scanner/status").get_json()
    assert resp["active"] is False
    assert resp["data"]["recent"] == []
    assert school_b.post("/api/attendance/scanner/stop").status_code == 409
    assert school_b.post("/api/attendance/scanner/switch").status_code == 409
    assert school_b.post("/api/auth/logout").status_code == 200

    resp = school_a.get("/api/attendance/scanner/status").get_json()
    assert resp["active"] is True
    assert [row["student_name"] for row in resp["data"]["recent"]] == ["Secret Kid"]

    resp = school_a.post("/api/attendance/scanner/switch", json={"facing": "back"})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False

    assert school_a.post("/api/auth/logout").status_code == 200
    assert app.extensions["eduface"].scanner.wait_stopped(2)
    assert camera.released >= 1
