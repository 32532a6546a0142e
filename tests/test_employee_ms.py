"""
Tests for the standalone employee service
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from svc_employee_ms import service as ms
from svc_employee_ms.service import EmployeeDTO

EMPLOYEES = "/api/employees"

ASHA = EmployeeDTO(id=1, first_name="Asha", last_name="Rao", email="asha@example.com",
                   role="ENGINEER", status="ACTIVE")


@pytest.fixture
def db(monkeypatch):
    monkeypatch.setattr(ms.db, "execute_to_model", AsyncMock(return_value=[]))
    monkeypatch.setattr(ms.db, "execute_query", AsyncMock(return_value=[]))
    return ms.db


@pytest.fixture
def client(db):
    return TestClient(ms.app, raise_server_exceptions=False)


def body(**overrides):
    data = {"first_name": "Asha", "last_name": "Rao", "email": "asha@example.com",
            "role": "ENGINEER", "status": "ACTIVE"}
    data.update(overrides)
    return data


def test_create_employee(client, db):
    db.execute_to_model.return_value = [ASHA]

    response = client.post(EMPLOYEES, json=body())

    assert response.status_code == 201
    assert response.json()["id"] == 1
    assert "INSERT INTO employee_ms.employees" in db.execute_to_model.call_args.args[1]


def test_create_with_taken_email(client, db):
    db.execute_query.return_value = [{"id": 7}]

    response = client.post(EMPLOYEES, json=body())

    assert response.status_code == 400
    assert response.json() == {"error": "BAD_REQUEST",
                               "message": "Employee with email asha@example.com already exists"}
    db.execute_to_model.assert_not_awaited()


def test_validation_errors_are_keyed_by_field(client):
    response = client.post(EMPLOYEES, json=body(first_name="   ", email="not-an-email"))

    assert response.status_code == 400
    errors = response.json()
    assert "first_name cannot be blank" in errors["first_name"]
    assert "email" in errors


def test_name_length_is_limited(client):
    response = client.post(EMPLOYEES, json=body(last_name="x" * 51))

    assert response.status_code == 400
    assert "last_name" in response.json()


def test_get_employee(client, db):
    db.execute_to_model.return_value = [ASHA]

    response = client.get(f"{EMPLOYEES}/1")

    assert response.json()["email"] == "asha@example.com"
    assert db.execute_to_model.call_args.args[2] == 1


def test_get_missing_employee(client):
    response = client.get(f"{EMPLOYEES}/99")

    assert response.status_code == 404
    assert response.json() == {"error": "NOT_FOUND", "message": "Employee not found with id: 99"}


def test_get_all(client, db):
    db.execute_to_model.return_value = [ASHA]

    response = client.get(EMPLOYEES)

    assert [e["id"] for e in response.json()] == [1]


def test_update_keeps_own_email(client, db):
    renamed = ASHA.model_copy(update={"last_name": "Iyer"})
    db.execute_to_model.side_effect = [[ASHA], [renamed]]

    response = client.put(f"{EMPLOYEES}/1", json=body(last_name="Iyer"))

    assert response.status_code == 200
    assert response.json()["last_name"] == "Iyer"
    db.execute_query.assert_not_awaited()


def test_update_to_taken_email(client, db):
    db.execute_to_model.return_value = [ASHA]
    db.execute_query.return_value = [{"id": 2}]

    response = client.put(f"{EMPLOYEES}/1", json=body(email="ravi@example.com"))

    assert response.status_code == 400


def test_delete(client, db):
    db.execute_query.return_value = [{"id": 1}]

    assert client.delete(f"{EMPLOYEES}/1").status_code == 204


def test_delete_missing(client):
    assert client.delete(f"{EMPLOYEES}/1").status_code == 404


def test_unexpected_failure_is_500(client, db):
    db.execute_to_model.side_effect = RuntimeError("pool exhausted")

    response = client.get(f"{EMPLOYEES}/1")

    assert response.status_code == 500
    assert response.json() == {"error": "INTERNAL_SERVER_ERROR", "message": "pool exhausted"}
