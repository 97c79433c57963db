import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from api.main import app
from extraction.exceptions import ExtractionFailed, MalformedPayload, MissingCredential
from extraction.models import CoreEntity, Metadata, PageType, Price, ProductDetails, ScrapedData

client = TestClient(app)

# a realistic ScrapedData to reuse across tests
MOCK_RESULT = ScrapedData(
    page_type=PageType.PRODUCT,
    metadata=Metadata(title="Vitamin C 500mg", language="en"),
    core_entity=CoreEntity(name="Vitamin C", brand="Acme"),
    product_details=ProductDetails(price=Price(amount="12.99", currency="$")),
)


@pytest.fixture(autouse=True)
def single_mode(monkeypatch):
    monkeypatch.delenv("EXTRACTION_MODE", raising=False)


# --- /health ---

def test_health_returns_ok():
    with patch("api.routes.is_cache_healthy", return_value=True):
        response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["cache"] == "connected"


def test_health_when_cache_down():
    with patch("api.routes.is_cache_healthy", return_value=False):
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["cache"] == "unavailable"


# --- /api/test ---

def test_diagnostics_reports_key_presence_without_value(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "super-secret-value")
    response = client.get("/api/test")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["env"]["hasApiKey"] is True
    assert data["env"]["extractionMode"] == "single"
    assert "super-secret-value" not in response.text


def test_diagnostics_without_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    response = client.get("/api/test")
    assert response.json()["env"]["hasApiKey"] is False


# --- /api/analyze ---

def test_analyze_success():
    with patch("api.routes.get_cached", return_value=None), \
         patch("api.routes.set_cached"), \
         patch("api.routes.analyze", new_callable=AsyncMock, return_value=MOCK_RESULT):
        response = client.post("/api/analyze", json={"url": "https://example.com/vitamin-c"})

    assert response.status_code == 200
    data = response.json()
    assert data["pageType"] == "product"
    assert data["coreEntity"]["brand"] == "Acme"
    assert data["coreEntity"]["category"] is None
    assert data["productDetails"]["price"] == {"amount": "12.99", "currency": "$"}
    assert response.headers["X-Cache"] == "miss"


def test_analyze_passes_image_url_through():
    with patch("api.routes.get_cached", return_value=None), \
         patch("api.routes.set_cached"), \
         patch("api.routes.analyze", new_callable=AsyncMock, return_value=MOCK_RESULT) as mock_analyze:
        client.post("/api/analyze", json={
            "url": "https://example.com/vitamin-c",
            "imageUrl": "https://cdn.example.com/label.png",
        })

    args, kwargs = mock_analyze.call_args
    assert args == ("https://example.com/vitamin-c", "https://cdn.example.com/label.png")
    assert kwargs["mode"].value == "single"


def test_analyze_returns_cached_result():
    cached_data = MOCK_RESULT.to_dict()
    with patch("api.routes.get_cached", return_value=cached_data), \
         patch("api.routes.analyze", new_callable=AsyncMock) as mock_analyze:
        response = client.post("/api/analyze", json={"url": "https://example.com/vitamin-c"})

    assert response.status_code == 200
    assert response.json() == cached_data
    assert response.headers["X-Cache"] == "hit"
    mock_analyze.assert_not_called()


def test_analyze_missing_url_returns_400():
    with patch("api.routes.analyze", new_callable=AsyncMock) as mock_analyze:
        response = client.post("/api/analyze", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "URL is required"}
    mock_analyze.assert_not_called()


def test_analyze_blank_url_returns_400():
    response = client.post("/api/analyze", json={"url": "   "})
    assert response.status_code == 400


def test_analyze_non_object_body_returns_400():
    response = client.post("/api/analyze", json=["https://example.com"])
    assert response.status_code == 400
    assert "error" in response.json()


def test_analyze_normalization_failure_returns_500():
    with patch("api.routes.get_cached", return_value=None), \
         patch("api.routes.set_cached") as mock_set, \
         patch("api.routes.analyze", new_callable=AsyncMock,
               side_effect=MalformedPayload("no JSON object found in response")):
        response = client.post("/api/analyze", json={"url": "https://example.com/vitamin-c"})

    assert response.status_code == 500
    assert "no JSON object found" in response.json()["error"]
    mock_set.assert_not_called()


def test_analyze_extraction_failure_returns_500():
    with patch("api.routes.get_cached", return_value=None), \
         patch("api.routes.analyze", new_callable=AsyncMock, side_effect=ExtractionFailed("quota exceeded")):
        response = client.post("/api/analyze", json={"url": "https://example.com/vitamin-c"})

    assert response.status_code == 500
    assert response.json() == {"error": "Extraction failed: quota exceeded"}


def test_analyze_missing_credential_returns_500():
    with patch("api.routes.get_cached", return_value=None), \
         patch("api.routes.analyze", new_callable=AsyncMock, side_effect=MissingCredential("GEMINI_API_KEY")):
        response = client.post("/api/analyze", json={"url": "https://example.com/vitamin-c"})

    assert response.status_code == 500
    assert "API key" in response.json()["error"]


def test_successful_analysis_is_cached():
    with patch("api.routes.get_cached", return_value=None), \
         patch("api.routes.set_cached") as mock_set, \
         patch("api.routes.analyze", new_callable=AsyncMock, return_value=MOCK_RESULT):
        client.post("/api/analyze", json={"url": "https://example.com/vitamin-c"})

    mock_set.assert_called_once()
    key, data = mock_set.call_args.args
    assert key.startswith("analysis:")
    assert data == MOCK_RESULT.to_dict()


def test_padded_image_url_shares_cache_entry():
    keys = []
    with patch("api.routes.get_cached", side_effect=lambda key: keys.append(key)), \
         patch("api.routes.set_cached"), \
         patch("api.routes.analyze", new_callable=AsyncMock, return_value=MOCK_RESULT) as mock_analyze:
        for image_url in ("https://cdn.example.com/label.png", "  https://cdn.example.com/label.png "):
            client.post("/api/analyze", json={"url": "https://example.com/vitamin-c", "imageUrl": image_url})

    assert keys[0] == keys[1]
    assert mock_analyze.call_args.args[1] == "https://cdn.example.com/label.png"


def test_blank_image_url_is_treated_as_absent():
    with patch("api.routes.get_cached", return_value=None), \
         patch("api.routes.set_cached"), \
         patch("api.routes.analyze", new_callable=AsyncMock, return_value=MOCK_RESULT) as mock_analyze:
        client.post("/api/analyze", json={"url": "https://example.com/vitamin-c", "imageUrl": "   "})

    assert mock_analyze.call_args.args[1] is None
