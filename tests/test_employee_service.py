import pytest
from fastapi.testclient import TestClient

from svc_employee import service

DB = "/api/v1/db"
AIRLINE_ID = "3a0e1c52-7d44-4b1f-b6a3-5c8f2e9d1a70"


@pytest.fixture
def client(monkeypatch, downstream):
    monkeypatch.setattr(service, "database_api",
                        service.DatabaseApiConnector("http://database-api/api/v1/db", transport=downstream.transport))
    return TestClient(service.app)


def registration(**overrides):
    body = {"name": "Meera Nair", "email": "meera@goindigo.in", "phone": "+91 98450 22222",
            "employee_role": "manager", "airline_id": AIRLINE_ID}
    body.update(overrides)
    return body


def test_register_employee(client, downstream):
    downstream.on("GET", f"{DB}/airline/{AIRLINE_ID}", body={"airline_id": AIRLINE_ID, "name": "IndiGo"})
    downstream.on("POST", f"{DB}/employee/create/{AIRLINE_ID}", status_code=201, body={
        "employee_id": "c1d2e3f4-0000-4000-8000-000000000002", "name": "Meera Nair",
        "employee_role": "MANAGER", "status": "ACTIVE", "airline_id": AIRLINE_ID})

    response = client.post("/api/v1/airline/employee/register", json=registration())

    assert response.status_code == 201
    assert response.json()["employee_role"] == "MANAGER"
    sent = downstream.sent("POST", f"{DB}/employee/create/{AIRLINE_ID}")
    assert sent["employee_role"] == "MANAGER"
    assert sent["status"] == "ACTIVE"


def test_unknown_airline_is_404(client):
    response = client.post("/api/v1/airline/employee/register", json=registration())

    assert response.status_code == 404
    assert response.json()["detail"] == f"Airline not found with ID: {AIRLINE_ID}"


def test_unknown_role_is_400(client, downstream):
    downstream.on("GET", f"{DB}/airline/{AIRLINE_ID}", body={"airline_id": AIRLINE_ID})

    response = client.post("/api/v1/airline/employee/register", json=registration(employee_role="pilot"))

    assert response.status_code == 400
    assert all(r.method == "GET" for r in downstream.requests)
