"""
Tests for the Website Analysis API

Tests request validation, the success response shape and the mapping
of pipeline errors to HTTP status codes.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

import api.analyze as analyze_module
from api.analyze import app
from searchfuel.context.models import (
    BusinessProfile,
    CompetitorDiscoveryResult,
    ContentAnalysis,
    PageType,
    SatellitePage,
    StructuredData,
    ValidatedCompetitor,
)
from searchfuel.errors import FetchError, InvalidURL


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def discovery_result():
    return CompetitorDiscoveryResult(
        url="https://acme-crm.com/",
        domain="acme-crm.com",
        profile=BusinessProfile(
            company_name="Acme CRM",
            description="CRM software for small sales teams.",
            industry="CRM software",
        ),
        content_analysis=ContentAnalysis(topics=["Pipeline management"], word_count=34),
        structured_data=StructuredData(website={"name": "Acme CRM"}),
        additional_pages=[SatellitePage("https://acme-crm.com/about", PageType.ABOUT, html="<p>About</p>")],
        competitors=[
            ValidatedCompetitor("pipedrive.com", "Pipedrive", is_competitor=True, relevance_score=88),
        ],
        warnings=["Low confidence: only 1 competitors found"],
    )


def mock_discovery(monkeypatch, **kwargs) -> AsyncMock:
    mock = AsyncMock(**kwargs)
    monkeypatch.setattr(analyze_module, "discover_competitors", mock)
    return mock


# =============================================================================
# HEALTH
# =============================================================================


class TestHealth:
    """Tests for the health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health(self, client):
        data = client.get("/api/health").json()
        assert data["status"] == "healthy"
        assert data["mode"] in ("basic", "validated")
        assert isinstance(data["ai_configured"], bool)
        assert isinstance(data["search_configured"], bool)


# =============================================================================
# ANALYZE WEBSITE
# =============================================================================


class TestAnalyzeWebsite:
    """Tests for POST /api/analyze-website."""

    def test_success_shape(self, client, monkeypatch, discovery_result):
        mock = mock_discovery(monkeypatch, return_value=discovery_result)

        response = client.post("/api/analyze-website", json={"url": "https://acme-crm.com"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["businessInfo"]["company_name"] == "Acme CRM"
        assert data["competitors"] == [{"domain": "pipedrive.com", "name": "Pipedrive"}]
        assert data["content_analysis"]["topics"] == ["Pipeline management"]
        assert data["additional_pages"] == [{"url": "https://acme-crm.com/about", "type": "about"}]
        assert data["structured_data_found"] is True
        mock.assert_awaited_once_with("https://acme-crm.com", mode=None, deadline_seconds=None)

    def test_mode_and_deadline_passed_through(self, client, monkeypatch, discovery_result):
        mock = mock_discovery(monkeypatch, return_value=discovery_result)

        client.post(
            "/api/analyze-website",
            json={"url": "acme-crm.com", "mode": "basic", "deadline_seconds": 45},
        )

        mock.assert_awaited_once_with("acme-crm.com", mode="basic", deadline_seconds=45)

    def test_invalid_url(self, client, monkeypatch):
        mock_discovery(monkeypatch, side_effect=InvalidURL("Private or internal network addresses are not allowed"))

        response = client.post("/api/analyze-website", json={"url": "http://localhost"})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"] == "Invalid URL provided"

    @pytest.mark.parametrize("body", [
        {},
        {"url": ""},
        {"url": "https://acme-crm.com", "mode": "turbo"},
        {"url": "https://acme-crm.com", "deadline_seconds": 0},
    ])
    def test_malformed_request(self, client, monkeypatch, body):
        mock = mock_discovery(monkeypatch)

        response = client.post("/api/analyze-website", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        mock.assert_not_awaited()

    def test_unreachable_site(self, client, monkeypatch):
        mock_discovery(monkeypatch, side_effect=FetchError("HTTP 503", url="https://acme-crm.com", status_code=503))

        response = client.post("/api/analyze-website", json={"url": "https://acme-crm.com"})

        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "Could not reach the provided URL"
        assert "businessInfo" not in data

    def test_fetch_details_hidden_in_production(self, client, monkeypatch):
        production = analyze_module.settings.model_copy(update={"ENVIRONMENT": "production"})
        monkeypatch.setattr(analyze_module, "settings", production)
        mock_discovery(monkeypatch, side_effect=FetchError("Connection refused by 203.0.113.7"))

        response = client.post("/api/analyze-website", json={"url": "https://acme-crm.com"})

        assert response.status_code == 502
        assert "details" not in response.json()

    def test_unexpected_error_is_generic(self, client, monkeypatch):
        mock_discovery(monkeypatch, side_effect=RuntimeError("database password is hunter2"))

        response = client.post("/api/analyze-website", json={"url": "https://acme-crm.com"})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Internal server error",
            "details": "An unexpected error occurred",
        }
