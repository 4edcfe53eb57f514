"""
Route Tests

Health, ICT scan and metrics endpoints through the full middleware stack.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import BAR_SECONDS, BASE_EPOCH, setup_rows, to_candles
from ictlens.main import app

client = TestClient(app)


def _payload(candles, **extra) -> dict:
    return {"candles": [c.model_dump() for c in candles], **extra}


# ──────────────────────────────────────────────
# Health Check
# ──────────────────────────────────────────────

class TestHealthRoute:

    def test_health_returns_200(self):
        resp = client.get("/health")
        assert resp.status_code == 200

    def test_health_response_structure(self):
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["version"] == "1.0.0"
        assert data["uptime_seconds"] >= 0

    def test_version_and_request_id_headers(self):
        resp = client.get("/health")
        assert resp.headers["X-API-Version"] == "v1"
        assert resp.headers["X-Request-ID"]


# ──────────────────────────────────────────────
# ICT Scan
# ──────────────────────────────────────────────

class TestScanRoute:
    """Tests for /v1/api/ict/scan."""

    def test_long_setup(self, long_setup):
        resp = client.post("/v1/api/ict/scan", json=_payload(long_setup))
        assert resp.status_code == 200
        data = resp.json()
        assert data["candle_count"] == 60
        assert data["signal_count"] == 1

        signal = data["signals"][0]
        assert signal["direction"] == "LONG"
        assert signal["total_score"] == 90
        assert signal["time"] == BASE_EPOCH + 55 * BAR_SECONDS
        assert signal["breakdown"]["discount_premium"]["passed"] is False
        card = data["latest"][0]
        assert card["total_score"] == signal["total_score"]
        assert card["time"] == signal["time"]
        assert card["grade"] == "strong"
        assert card["display_time"] == "19:05"

        assert [m["text"] for m in data["markers"]] == ["FVG↑", "LONG 90"]

    def test_daily_times_keep_their_type(self):
        candles = to_candles(setup_rows(), kind="daily")
        data = client.post("/v1/api/ict/scan", json=_payload(candles)).json()
        assert data["signals"][0]["time"] == "2024-02-25"
        assert data["markers"][0]["time"] == "2024-02-22"
        assert data["latest"][0]["grade"] == "moderate"
        assert data["latest"][0]["display_time"] == "2024-02-25"

    def test_short_history_is_empty(self, long_setup):
        data = client.post("/v1/api/ict/scan", json=_payload(long_setup[:20])).json()
        assert data["markers"] == []
        assert data["signals"] == []
        assert data["candle_count"] == 20

    def test_empty_history(self):
        resp = client.post("/v1/api/ict/scan", json={"candles": []})
        assert resp.status_code == 200
        assert resp.json()["signal_count"] == 0

    def test_out_of_order_candles_400(self, long_setup):
        candles = list(reversed(long_setup))
        resp = client.post("/v1/api/ict/scan", json=_payload(candles))
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] is True
        assert "out of order" in data["detail"]

    def test_inconsistent_bar_400(self):
        bad = {"time": 1, "open": 10, "high": 9, "low": 8, "close": 9.5}
        resp = client.post("/v1/api/ict/scan", json={"candles": [bad]})
        assert resp.status_code == 400

    def test_malformed_body_422(self):
        resp = client.post("/v1/api/ict/scan", json={"candles": [{"time": 1}]})
        assert resp.status_code == 422
        data = resp.json()
        assert data["status_code"] == 422
        assert data["errors"]

    @pytest.mark.parametrize("limit", [0, 101])
    def test_limit_bounds_422(self, long_setup, limit):
        resp = client.post("/v1/api/ict/scan", json=_payload(long_setup, limit=limit))
        assert resp.status_code == 422

    def test_strict_mode_override(self, long_setup):
        strict = client.post("/v1/api/ict/scan", json=_payload(long_setup)).json()
        loose = client.post(
            "/v1/api/ict/scan", json=_payload(long_setup, strict_mode=False)
        ).json()
        # Without gating every 3-bar gap becomes a zone, so there are at least as many markers.
        assert len(loose["markers"]) >= len(strict["markers"])


class TestWeightsRoute:

    def test_weights(self):
        resp = client.get("/v1/api/ict/weights")
        assert resp.status_code == 200
        data = resp.json()
        assert data["max_score"] == 100
        assert data["min_score"] == 60
        assert data["weights"]["order_block"] == 20
        assert data["config"]["sma_period"] == 50
        assert data["config"]["ny_am_session"] == ["08:30", "11:00"]


# ──────────────────────────────────────────────
# Metrics
# ──────────────────────────────────────────────

class TestMetricsRoute:

    def test_scan_counters_exposed(self, long_setup):
        from ictlens.metrics import reset_metrics
        reset_metrics()
        client.post("/v1/api/ict/scan", json=_payload(long_setup))

        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        body = resp.text
        assert "ict_scans_total 1" in body
        assert 'ict_signals_total{direction="LONG"} 1' in body
        assert 'http_requests_total{method="POST",path="/v1/api/ict/scan",status="200"} 1' in body

    def test_concurrent_scans_count_exactly(self, long_setup):
        from concurrent.futures import ThreadPoolExecutor

        from ictlens import metrics
        from ictlens.engines.ict_engine import ICTEngine
        signals = ICTEngine().find_fvgs(long_setup).signals
        metrics.reset_metrics()

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: metrics.record_scan(signals), range(2000)))

        body = metrics._format_prometheus()
        assert "ict_scans_total 2000" in body
        assert 'ict_signals_total{direction="LONG"} 2000' in body
