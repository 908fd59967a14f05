"""
Tests for AI analysis, market analysis and the chat assistant.

OpenAI and Perplexity are never called: the client class and `requests.post`
are replaced with fakes.
"""

from types import SimpleNamespace

import pytest
import requests

from app.core.config import settings
from app.services.ai import company_analysis, market_analysis
from app.services.ai.chat import DEFAULT_ANSWER


# -----------------------------------------------------------------------------
# Fakes
# -----------------------------------------------------------------------------

class FakeOpenAI:
    reply = "Strong niche position.\n\nRisks: customer concentration."
    error = None
    calls = []

    def __init__(self, api_key=None, timeout=None):
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        FakeOpenAI.calls.append(kwargs)
        if FakeOpenAI.error is not None:
            raise FakeOpenAI.error
        message = SimpleNamespace(content=FakeOpenAI.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self.text = text

    def json(self):
        return self._payload


@pytest.fixture
def fake_openai(monkeypatch):
    FakeOpenAI.error = None
    FakeOpenAI.calls = []
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(company_analysis, "OpenAI", FakeOpenAI)
    return FakeOpenAI


@pytest.fixture
def perplexity_key(monkeypatch):
    monkeypatch.setattr(settings, "PERPLEXITY_API_KEY", "pplx-test")


# -----------------------------------------------------------------------------
# Company analysis
# -----------------------------------------------------------------------------

def test_analyze_company(client, fake_openai):
    response = client.post("/api/ai/analyze-company", json={"companyId": 1})
    assert response.status_code == 200
    body = response.json()
    assert body["companyId"] == 1
    assert body["companyName"] == "Example Business"
    assert body["analysis"].startswith("Strong niche position.")

    call = fake_openai.calls[0]
    assert call["max_tokens"] == 1000
    assert "Example Business" in call["messages"][1]["content"]

    recommendations = client.get("/api/companies/1/recommendations").json()
    assert recommendations[-1]["category"] == "AI Analysis"
    assert recommendations[-1]["suggestions"] == ["Strong niche position."]


def test_analyze_company_accepts_numeric_string(client, fake_openai):
    assert client.post("/api/ai/analyze-company", json={"companyId": "1"}).status_code == 200


@pytest.mark.parametrize("company_id", [None, "abc", 0, -3, True])
def test_analyze_company_requires_valid_id(client, fake_openai, company_id):
    response = client.post("/api/ai/analyze-company", json={"companyId": company_id})
    assert response.status_code == 400
    assert response.json() == {"message": "Valid company ID is required"}


def test_analyze_unknown_company(client, fake_openai):
    response = client.post("/api/ai/analyze-company", json={"companyId": 999})
    assert response.status_code == 404
    assert fake_openai.calls == []


def test_analyze_company_upstream_failure(client, fake_openai):
    fake_openai.error = RuntimeError("rate limited")
    response = client.post("/api/ai/analyze-company", json={"companyId": 1})
    assert response.status_code == 500
    assert response.json() == {"message": "Error performing AI analysis", "error": "rate limited"}


def test_analyze_company_without_key(client, monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    response = client.post("/api/ai/analyze-company", json={"companyId": 1})
    assert response.status_code == 500
    assert "OPENAI_API_KEY" in response.json()["error"]


# -----------------------------------------------------------------------------
# Market analysis
# -----------------------------------------------------------------------------

def test_market_analysis(client, perplexity_key, monkeypatch):
    captured = {}

    def fake_post(url, headers=None, json=None, timeout=None):
        captured.update(url=url, headers=headers, body=json)
        return FakeResponse(payload={
            "choices": [{"message": {"content": "Market is growing."}}],
            "citations": ["https://example.org/report"],
        })

    monkeypatch.setattr(market_analysis.requests, "post", fake_post)

    response = client.post("/api/ai/market-analysis", json={
        "sector": "Manufacturing",
        "industryGroup": "Industrial Machinery",
        "location": "Germany",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["analysis"] == "Market is growing."
    assert body["citations"] == ["https://example.org/report"]
    assert body["provider"] == "Perplexity"
    assert body["companyName"] is None

    assert captured["headers"]["Authorization"] == "Bearer pplx-test"
    assert "Manufacturing" in captured["body"]["messages"][-1]["content"]


def test_market_analysis_requires_sector(client, perplexity_key):
    response = client.post("/api/ai/market-analysis", json={"location": "Spain"})
    assert response.status_code == 400
    assert response.json() == {"message": "Sector is required for market analysis"}


def test_market_analysis_forwards_upstream_status(client, perplexity_key, monkeypatch):
    monkeypatch.setattr(
        market_analysis.requests,
        "post",
        lambda *args, **kwargs: FakeResponse(status_code=429, text="Too Many Requests"),
    )
    response = client.post("/api/ai/market-analysis", json={"sector": "Retail"})
    assert response.status_code == 429
    assert response.json() == {"message": "Error from market analysis API", "error": "Too Many Requests"}


def test_market_analysis_transport_failure(client, perplexity_key, monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(market_analysis.requests, "post", boom)
    response = client.post("/api/ai/market-analysis", json={"sector": "Retail"})
    assert response.status_code == 500
    assert response.json()["message"] == "Error performing market analysis"


# -----------------------------------------------------------------------------
# Chat assistant
# -----------------------------------------------------------------------------

def test_chat_keyword_answer(client):
    response = client.post("/api/chat/completions", json={"messages": [
        {"role": "system", "content": "be nice"},
        {"role": "user", "content": "What are your FEES?"},
    ]})
    assert response.status_code == 200
    body = response.json()
    assert body["object"] == "chat.completion"
    assert "success-based fee" in body["choices"][0]["message"]["content"]


def test_chat_default_answer(client):
    response = client.post("/api/chat/completions", json={"messages": [{"role": "user", "content": "hello"}]})
    assert response.json()["choices"][0]["message"]["content"] == DEFAULT_ANSWER


@pytest.mark.parametrize("body, message", [
    ({}, "Messages array is required"),
    ({"messages": "hi"}, "Messages array is required"),
    ({"messages": [{"role": "assistant", "content": "x"}]}, "No user message found in the request"),
])
def test_chat_bad_requests(client, body, message):
    response = client.post("/api/chat/completions", json=body)
    assert response.status_code == 400
    assert response.json() == {"message": message}
