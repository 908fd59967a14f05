"""
API tests for users, companies and the four wizard steps.
"""

import pytest


# -----------------------------------------------------------------------------
# Users & companies
# -----------------------------------------------------------------------------

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "storage": "memory", "websocketClients": 0}


def test_create_and_fetch_user(client):
    response = client.post("/api/users", json={
        "username": "jdoe",
        "password": "secret",
        "fullName": "Jane Doe",
        "email": "jane@example.com",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["fullName"] == "Jane Doe"
    assert body["role"] == "user"
    assert "password" not in body

    fetched = client.get(f"/api/users/{body['id']}").json()
    assert fetched["email"] == "jane@example.com"
    assert "password" not in fetched


def test_duplicate_username_rejected(client):
    response = client.post("/api/users", json={
        "username": "default",
        "password": "x",
        "fullName": "Other",
        "email": "other@example.com",
    })
    assert response.status_code == 400
    assert response.json() == {"message": "Username already exists"}


def test_unknown_user(client):
    response = client.get("/api/users/999")
    assert response.status_code == 404
    assert response.json() == {"message": "User not found"}


def test_create_company(client):
    response = client.post("/api/companies", json={
        "userId": 1,
        "name": "Acme SARL",
        "sector": "Retail",
        "location": "France",
        "yearsInBusiness": "3-5",
        "goal": "Growth",
    })
    assert response.status_code == 201
    company = response.json()
    assert company["aiAnalyzed"] is False

    companies = client.get("/api/users/1/companies").json()
    assert [c["id"] for c in companies] == [1, company["id"]]


def test_create_company_requires_fields(client):
    response = client.post("/api/companies", json={"userId": 1, "name": "Missing Fields"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Validation error:")


def test_company_path_must_be_integer(client):
    response = client.get("/api/companies/abc")
    assert response.status_code == 400
    assert response.json()["message"].startswith("Validation error:")


# -----------------------------------------------------------------------------
# Wizard steps
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("step", ["financials", "employees", "technology", "owner-intent"])
def test_wizard_step_roundtrip(client, wizard_payloads, step):
    payload = wizard_payloads(1)[step]

    created = client.post(f"/api/{step}", json=payload)
    assert created.status_code == 201
    assert created.json()["companyId"] == 1

    fetched = client.get(f"/api/companies/1/{step}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == created.json()["id"]


def test_money_fields_serialise_as_text(client, wizard_payloads):
    body = client.post("/api/financials", json=wizard_payloads(1)["financials"]).json()
    assert body["revenueCurrent"] == "500000"
    assert body["netMargin"] == "8"


@pytest.mark.parametrize("step, message", [
    ("financials", "Financial data not found"),
    ("employees", "Employee data not found"),
    ("technology", "Technology data not found"),
    ("owner-intent", "Owner intent data not found"),
])
def test_missing_wizard_data(client, step, message):
    response = client.get(f"/api/companies/1/{step}")
    assert response.status_code == 404
    assert response.json() == {"message": message}


def test_unknown_company_gets_placeholder(client, wizard_payloads):
    response = client.post("/api/financials", json=wizard_payloads(77)["financials"])
    assert response.status_code == 201

    company = client.get("/api/companies/77")
    assert company.status_code == 200
    assert company.json()["name"] == "Default Company"


def test_unknown_company_rejected_when_placeholders_disabled(client, wizard_payloads, strict_companies):
    response = client.post("/api/financials", json=wizard_payloads(77)["financials"])
    assert response.status_code == 404
    assert response.json() == {"message": "Company not found"}
    assert client.get("/api/companies/77").status_code == 404


def test_null_lists_become_empty(client):
    response = client.post("/api/employees", json={"companyId": 1, "count": 3, "digitalSystems": None})
    assert response.status_code == 201
    assert response.json()["digitalSystems"] == []


def test_transformation_level_out_of_range(client):
    response = client.post("/api/technology", json={"companyId": 1, "transformationLevel": 9})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Validation error:")
