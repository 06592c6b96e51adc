"""Tests for the HTTP surface: /analyze, /job, /health and service info."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.app import SERVICE_NAME, create_app
from src.api.dependencies import get_analyzer
from src.parsers.analyzer import WalletAnalyzer
from src.parsers.risk_engine import empty_report

WALLET = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
FIXED_TS = "2026-01-01T00:00:00.000Z"


def _make_client(side_effect=None) -> tuple[TestClient, MagicMock]:
    analyzer = MagicMock()
    if side_effect is None:
        side_effect = lambda wallet, chain_id: empty_report(  # noqa: E731
            wallet, chain_id, "Ethereum Mainnet", analyzed_at=FIXED_TS
        )
    analyzer.analyze_wallet = AsyncMock(side_effect=side_effect)
    app = create_app()
    app.dependency_overrides[get_analyzer] = lambda: analyzer
    return TestClient(app), analyzer


def _make_pipeline_client(holdings=None) -> tuple[TestClient, MagicMock]:
    """Client backed by a real WalletAnalyzer over fake collectors, so request
    validation runs exactly as in production."""
    etherscan = MagicMock()
    etherscan.get_token_holdings = AsyncMock(return_value=holdings or [])
    etherscan.verify_contracts_batch = AsyncMock(return_value={})
    dexscreener = MagicMock()
    dexscreener.get_market_data_batch = AsyncMock(return_value={})
    analyzer = WalletAnalyzer(etherscan, dexscreener)
    app = create_app()
    app.dependency_overrides[get_analyzer] = lambda: analyzer
    return TestClient(app), etherscan


# ═══════════════════════════════════════════════════════════════════════
# POST /analyze
# ═══════════════════════════════════════════════════════════════════════


class TestAnalyzeEndpoint:
    def test_success_returns_report(self):
        client, analyzer = _make_client()
        resp = client.post("/analyze", json={"walletAddress": WALLET, "chainId": 1})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert isinstance(body["elapsed_seconds"], float)
        report = body["report"]
        assert report["walletAddress"] == WALLET
        assert report["analyzedAt"] == FIXED_TS
        assert report["riskLevel"] == "LOW"
        assert report["flags"] == {
            "concentrationRisk": False,
            "rugPullRisk": False,
            "lowLiquidityRisk": False,
            "highVolatilityRisk": False,
        }
        analyzer.analyze_wallet.assert_awaited_once_with(WALLET, 1)

    def test_chain_defaults_to_ethereum(self):
        client, analyzer = _make_client()
        client.post("/analyze", json={"walletAddress": WALLET})
        analyzer.analyze_wallet.assert_awaited_once_with(WALLET, 1)

    def test_unexpected_failure_is_500(self):
        client, _ = _make_client(RuntimeError("explorer exploded"))
        resp = client.post("/analyze", json={"walletAddress": WALLET})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Analysis failed", "message": "explorer exploded"}

    def test_security_headers(self):
        client, _ = _make_client()
        resp = client.post("/analyze", json={"walletAddress": WALLET})
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert "X-Response-Time" in resp.headers


# ═══════════════════════════════════════════════════════════════════════
# POST /job
# ═══════════════════════════════════════════════════════════════════════


class TestJobEndpoint:
    def test_completed_job(self):
        client, analyzer = _make_client()
        resp = client.post(
            "/job",
            json={"job_id": "job-42", "payload": {"walletAddress": WALLET, "chainId": 137}},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["job_id"] == "job-42"
        assert body["status"] == "completed"
        assert body["result"]["chainId"] == 137
        analyzer.analyze_wallet.assert_awaited_once_with(WALLET, 137)

    def test_failed_job(self):
        client, _ = _make_client(RuntimeError("timeout"))
        resp = client.post("/job", json={"job_id": 7, "payload": {"walletAddress": WALLET}})
        assert resp.status_code == 500
        assert resp.json() == {"job_id": 7, "status": "failed", "error": "timeout"}


# ═══════════════════════════════════════════════════════════════════════
# Health / info
# ═══════════════════════════════════════════════════════════════════════


class TestHealth:
    def test_health_before_startup(self):
        client = TestClient(create_app())
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["agent"] == SERVICE_NAME
        assert body["status"] == "starting"

    def test_health_after_startup(self):
        with TestClient(create_app()) as client:
            body = client.get("/health").json()
        assert body["status"] == "ok"

    def test_analyze_unavailable_before_startup(self):
        client = TestClient(create_app())
        resp = client.post("/analyze", json={"walletAddress": WALLET})
        assert resp.status_code == 503

    def test_service_info(self):
        client = TestClient(create_app())
        body = client.get("/").json()
        assert body["supported_chains"] == {
            "1": "Ethereum Mainnet",
            "56": "BNB Smart Chain",
            "137": "Polygon",
        }
        assert body["endpoints"]["analyze"] == "POST /analyze"


# ═══════════════════════════════════════════════════════════════════════
# Request validation through the real analyzer
# ═══════════════════════════════════════════════════════════════════════


class TestAnalyzeValidation:
    @pytest.mark.parametrize(
        "body",
        [
            {"walletAddress": "0x123"},
            {"walletAddress": 123},
            {"walletAddress": None},
            {},
        ],
    )
    def test_invalid_address_is_400(self, body):
        client, etherscan = _make_pipeline_client()
        resp = client.post("/analyze", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid wallet address."}
        etherscan.get_token_holdings.assert_not_awaited()

    @pytest.mark.parametrize("chain_id", [10, "abc", 1.5, None, True])
    def test_unsupported_chain_is_400(self, chain_id):
        client, etherscan = _make_pipeline_client()
        resp = client.post("/analyze", json={"walletAddress": WALLET, "chainId": chain_id})
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Unsupported chainId: ")
        etherscan.get_token_holdings.assert_not_awaited()

    def test_unsupported_chain_message(self):
        client, _ = _make_pipeline_client()
        resp = client.post("/analyze", json={"walletAddress": WALLET, "chainId": 10})
        assert resp.json() == {"error": "Unsupported chainId: 10"}

    def test_decimal_string_chain_id(self):
        client, etherscan = _make_pipeline_client()
        resp = client.post("/analyze", json={"walletAddress": WALLET, "chainId": "56"})
        assert resp.status_code == 200
        assert resp.json()["report"]["chainName"] == "BNB Smart Chain"
        etherscan.get_token_holdings.assert_awaited_once_with(WALLET, 56)

    def test_non_object_body_is_400(self):
        client, _ = _make_pipeline_client()
        resp = client.post("/analyze", json=["not", "an", "object"])
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid wallet address."}

    def test_empty_wallet_end_to_end(self):
        client, _ = _make_pipeline_client()
        resp = client.post("/analyze", json={"walletAddress": WALLET})
        assert resp.status_code == 200
        report = resp.json()["report"]
        assert report["totalTokensFound"] == 0
        assert report["chainName"] == "Ethereum Mainnet"


class TestJobValidation:
    def test_bad_types_become_failed_job(self):
        client, etherscan = _make_pipeline_client()
        resp = client.post(
            "/job", json={"job_id": "j1", "payload": {"walletAddress": 123, "chainId": "abc"}}
        )
        assert resp.status_code == 500
        assert resp.json() == {
            "job_id": "j1",
            "status": "failed",
            "error": "Invalid wallet address.",
        }
        etherscan.get_token_holdings.assert_not_awaited()

    def test_unsupported_chain_becomes_failed_job(self):
        client, _ = _make_pipeline_client()
        resp = client.post(
            "/job", json={"job_id": 3, "payload": {"walletAddress": WALLET, "chainId": "abc"}}
        )
        assert resp.status_code == 500
        assert resp.json() == {"job_id": 3, "status": "failed", "error": "Unsupported chainId: abc"}

    @pytest.mark.parametrize("payload", [None, "0xd8dA", [1, 2]])
    def test_non_object_payload_becomes_failed_job(self, payload):
        client, _ = _make_pipeline_client()
        resp = client.post("/job", json={"job_id": 9, "payload": payload})
        assert resp.status_code == 500
        assert resp.json() == {"job_id": 9, "status": "failed", "error": "Invalid wallet address."}

    def test_non_object_body_becomes_failed_job(self):
        client, _ = _make_pipeline_client()
        resp = client.post("/job", json="nope")
        assert resp.status_code == 500
        assert resp.json() == {"job_id": None, "status": "failed", "error": "Invalid wallet address."}

    def test_completed_job_end_to_end(self):
        client, etherscan = _make_pipeline_client()
        resp = client.post(
            "/job", json={"job_id": "j2", "payload": {"walletAddress": WALLET, "chainId": 137}}
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"
        etherscan.get_token_holdings.assert_awaited_once_with(WALLET, 137)
