"""
API tests for valuation generation, stored valuations, recommendations and buyer matches.
"""


def _complete_wizard(client, wizard_payloads, company_id):
    for step, payload in wizard_payloads(company_id).items():
        assert client.post(f"/api/{step}", json=payload).status_code == 201


def test_generate_valuation(client, wizard_payloads):
    _complete_wizard(client, wizard_payloads, 1)

    response = client.post("/api/companies/1/generate-valuation")
    assert response.status_code == 201
    body = response.json()

    valuation = body["valuation"]
    assert valuation["valuationMin"] == "807500"
    assert valuation["valuationMedian"] == "950000"
    assert valuation["valuationMax"] == "1092500"
    assert valuation["riskScore"] == 55
    assert valuation["redFlags"] == ["Declining Revenue", "Low Profit Margin", "Digital Transformation Lag"]

    assert len(body["recommendations"]) == 3
    assert [m["matchPercentage"] for m in body["buyerMatches"]] == [94, 87, 79]
    assert all(r["companyId"] == 1 for r in body["recommendations"])


def test_generated_valuation_is_listed(client, wizard_payloads):
    _complete_wizard(client, wizard_payloads, 1)
    generated = client.post("/api/companies/1/generate-valuation").json()["valuation"]

    valuations = client.get("/api/companies/1/valuations").json()
    # Seeded valuation first, generated one appended
    assert [v["id"] for v in valuations][-1] == generated["id"]
    assert len(valuations) == 2
    assert client.get("/api/companies/1/valuation").json()["id"] == valuations[0]["id"]

    assert len(client.get("/api/companies/1/recommendations").json()) == 3
    assert len(client.get("/api/companies/1/buyer-matches").json()) == 3


def test_generate_requires_complete_data(client, wizard_payloads):
    payloads = wizard_payloads(1)
    client.post("/api/financials", json=payloads["financials"])
    client.post("/api/employees", json=payloads["employees"])

    response = client.post("/api/companies/1/generate-valuation")
    assert response.status_code == 400
    assert response.json() == {"message": "Incomplete data for valuation"}
    assert len(client.get("/api/companies/1/valuations").json()) == 1


def test_generate_unknown_company(client):
    response = client.post("/api/companies/404/generate-valuation")
    assert response.status_code == 404
    assert response.json() == {"message": "Company not found"}


def test_valuation_not_found(client):
    response = client.get("/api/companies/99/valuation")
    assert response.status_code == 404
    assert response.json() == {"message": "Valuation data not found"}


def test_store_client_valuation(client):
    response = client.post("/api/valuations", json={
        "companyId": 1,
        "valuationMin": 100,
        "valuationMedian": 200,
        "valuationMax": 300,
        "ebitdaMultiple": 150,
        "discountedCashFlow": 160,
        "revenueMultiple": 170,
        "assetBased": 80,
        "riskScore": 40,
        "financialHealthScore": 50,
        "marketPositionScore": 48,
        "operationalEfficiencyScore": 35,
        "debtStructureScore": 72,
        "redFlags": None,
    })
    assert response.status_code == 201
    assert response.json()["redFlags"] == []


def test_recommendation_requires_existing_company(client):
    payload = {
        "companyId": 55,
        "category": "Growth",
        "impactPotential": 3,
        "suggestions": ["Expand"],
        "estimatedValueImpactMin": 1,
        "estimatedValueImpactMax": 5,
    }
    response = client.post("/api/recommendations", json=payload)
    assert response.status_code == 404
    assert response.json() == {"message": "Company not found"}

    payload["companyId"] = 1
    assert client.post("/api/recommendations", json=payload).status_code == 201


def test_buyer_match_requires_existing_company(client):
    payload = {
        "companyId": 55,
        "name": "Buyer",
        "type": "Strategic Buyer",
        "description": "Buys things",
        "matchPercentage": 70,
        "tags": ["a"],
        "dealType": "Full Acquisition",
    }
    assert client.post("/api/buyer-matches", json=payload).status_code == 404

    payload["companyId"] = 1
    created = client.post("/api/buyer-matches", json=payload)
    assert created.status_code == 201
    assert created.json()["dealType"] == "Full Acquisition"
