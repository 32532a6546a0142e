import logging

import pytest
from fastapi.testclient import TestClient

from svc_airline import service

DB = "/api/v1/db"
AIRLINE_ID = "3a0e1c52-7d44-4b1f-b6a3-5c8f2e9d1a70"

REGISTRATION = {
    "name": "IndiGo",
    "official_name": "InterGlobe Aviation Ltd",
    "official_email": "ops@goindigo.in",
    "official_phone": "+91 124 435 2500",
    "admin_name": "Ravi Kumar",
    "admin_email": "ravi@goindigo.in",
    "admin_phone": "+91 98450 11111",
    "address": "Gurugram, Haryana",
}


@pytest.fixture
def client(monkeypatch, downstream):
    monkeypatch.setattr(service, "database_api",
                        service.DatabaseApiConnector("http://database-api/api/v1/db", transport=downstream.transport))
    return TestClient(service.app)


def test_register_creates_airline_and_admin(client, downstream):
    downstream.on("POST", f"{DB}/airline/create", status_code=201, body={
        "airline_id": AIRLINE_ID, "name": "IndiGo", "status": "ACTIVE", "logo": "logo"})
    downstream.on("POST", f"{DB}/employee/create/admin", status_code=201, body={
        "employee_id": "c1d2e3f4-0000-4000-8000-000000000001", "name": "Ravi Kumar",
        "employee_role": "ADMIN", "airline_id": AIRLINE_ID})

    response = client.post("/api/v1/airline/register", json=REGISTRATION)

    assert response.status_code == 201
    assert response.json()["airline_id"] == AIRLINE_ID

    airline = downstream.sent("POST", f"{DB}/airline/create")
    assert airline["official_name"] == "InterGlobe Aviation Ltd"
    assert (airline["status"], airline["logo"]) == ("ACTIVE", "logo")

    admin = downstream.sent("POST", f"{DB}/employee/create/admin")
    assert admin["email"] == "ravi@goindigo.in"
    assert admin["employee_role"] == "ADMIN"
    assert admin["status"] == "ACTIVE"
    assert admin["airline_id"] == AIRLINE_ID


def test_register_requires_admin(client):
    response = client.post("/api/v1/airline/register", json={"name": "IndiGo"})

    assert response.status_code == 422


def test_register_surfaces_database_errors(client, downstream):
    downstream.on("POST", f"{DB}/airline/create", status_code=409, body={"detail": "Record already exists"})

    response = client.post("/api/v1/airline/register", json=REGISTRATION)

    assert response.status_code == 409
    assert response.json()["detail"] == "Record already exists"


def test_admin_failure_logs_airline(client, downstream, caplog):
    downstream.on("POST", f"{DB}/airline/create", status_code=201, body={"airline_id": AIRLINE_ID, "name": "IndiGo"})
    downstream.on("POST", f"{DB}/employee/create/admin", status_code=409, body={"detail": "Record already exists"})

    with caplog.at_level(logging.ERROR, logger="svc_airline.service"):
        response = client.post("/api/v1/airline/register", json=REGISTRATION)

    assert response.status_code == 409
    assert f"Airline {AIRLINE_ID} stored without an admin" in caplog.text
