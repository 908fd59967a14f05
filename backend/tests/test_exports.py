"""
Tests for CSV / JSON / PDF valuation exports.
"""

import csv
import io

from app.services.reports.export import CSV_HEADERS


def test_csv_export(client):
    response = client.get("/api/companies/1/export/csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    assert ".csv" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == CSV_HEADERS
    assert len(rows) == 2
    assert rows[1][0] == "Example Business"


def test_json_export(client):
    response = client.get("/api/companies/1/export/json")
    assert response.status_code == 200
    body = response.json()
    assert body["company"]["name"] == "Example Business"
    assert body["valuation"]["redFlags"] == ["Inconsistent revenue growth", "Limited customer diversification"]
    assert "exportDate" in body


def test_pdf_export(client):
    response = client.get("/api/companies/1/export/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_export_unknown_company(client):
    response = client.get("/api/companies/404/export/csv")
    assert response.status_code == 404
    assert response.json() == {"message": "Company not found"}


def test_export_without_valuation(client):
    company = client.post("/api/companies", json={
        "userId": 1,
        "name": "No Valuation Ltd",
        "sector": "Retail",
        "location": "Ireland",
        "yearsInBusiness": "1-3",
        "goal": "Growth",
    }).json()

    response = client.get(f"/api/companies/{company['id']}/export/json")
    assert response.status_code == 404
    assert response.json() == {"message": "Valuation data not found"}
