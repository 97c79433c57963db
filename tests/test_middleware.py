from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.middleware import AccessLogMiddleware, AnalyzeRateLimitMiddleware, SlidingWindow


def _app(limit: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(AnalyzeRateLimitMiddleware, limit=limit, window_seconds=60)
    app.add_middleware(AccessLogMiddleware)

    @app.post("/api/analyze")
    async def analyze():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


# --- SlidingWindow ---

def test_window_allows_up_to_limit():
    window = SlidingWindow(limit=2, window_seconds=60)
    assert window.acquire("1.2.3.4", now=0.0) is None
    assert window.acquire("1.2.3.4", now=1.0) is None
    assert window.acquire("1.2.3.4", now=2.0) == 59


def test_window_counts_clients_separately():
    window = SlidingWindow(limit=1, window_seconds=60)
    assert window.acquire("1.2.3.4", now=0.0) is None
    assert window.acquire("5.6.7.8", now=0.0) is None
    assert window.acquire("1.2.3.4", now=1.0) is not None


def test_window_frees_slots_after_expiry():
    window = SlidingWindow(limit=1, window_seconds=60)
    assert window.acquire("1.2.3.4", now=0.0) is None
    assert window.acquire("1.2.3.4", now=61.0) is None


def test_idle_clients_are_evicted():
    window = SlidingWindow(limit=5, window_seconds=60)
    for i in range(100):
        window.acquire(f"10.0.0.{i}", now=0.0)
    assert len(window) == 100

    window.acquire("10.0.1.1", now=120.0)
    assert len(window) == 1


def test_rejected_hit_is_not_recorded():
    window = SlidingWindow(limit=1, window_seconds=60)
    window.acquire("1.2.3.4", now=0.0)
    window.acquire("1.2.3.4", now=30.0)     # rejected
    assert window.acquire("1.2.3.4", now=61.0) is None


# --- middleware ---

def test_analyze_route_is_limited():
    client = TestClient(_app(limit=2))
    assert client.post("/api/analyze").status_code == 200
    assert client.post("/api/analyze").status_code == 200

    response = client.post("/api/analyze")
    assert response.status_code == 429
    assert "error" in response.json()
    assert int(response.headers["Retry-After"]) > 0


def test_other_routes_are_not_limited():
    client = TestClient(_app(limit=1))
    client.post("/api/analyze")
    for _ in range(5):
        assert client.get("/health").status_code == 200


def test_forwarded_for_identifies_client():
    client = TestClient(_app(limit=1))
    assert client.post("/api/analyze", headers={"X-Forwarded-For": "9.9.9.9, 10.0.0.1"}).status_code == 200
    assert client.post("/api/analyze", headers={"X-Forwarded-For": "8.8.8.8"}).status_code == 200
    assert client.post("/api/analyze", headers={"X-Forwarded-For": "9.9.9.9"}).status_code == 429


def test_access_log_sets_latency_header():
    client = TestClient(_app(limit=5))
    response = client.get("/health")
    assert response.headers["X-Process-Time-Ms"].isdigit()
