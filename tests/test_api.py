import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from conftest import modulated_intervals
from main import parse_args


@pytest.fixture
def client():
    return TestClient(create_app())


@pytest.fixture
def payload():
    return {"intervals": modulated_intervals(450, noise=0.005).tolist()}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_defaults_lists_both_presets(client):
    body = client.get("/defaults").json()
    assert set(body) == {"human", "canine"}
    assert body["human"]["filtering"]["rules"] == ["range", "moving_average", "quotient"]
    assert body["canine"]["time_domain"]["pnn_thresh_ms"] == 32.0


def test_analyze_returns_every_metric(client, payload):
    response = client.post("/analyze", json=payload)
    assert response.status_code == 200
    body = response.json()

    assert body["num_rr"] == 450
    assert body["num_nn"] <= 450
    names = [m["name"] for m in body["metrics"]]
    assert names[:3] == ["RR", "NN", "AVNN"]
    assert "LF_PWR_LOMB" in names and "PAS" in names
    avnn = next(m for m in body["metrics"] if m["name"] == "AVNN")
    assert avnn["unit"] == "ms"
    assert avnn["value"] == pytest.approx(800.0, abs=20.0)
    assert set(body["outliers"]) == {"range", "moving_average", "quotient"}


def test_analyze_with_overrides(client, payload):
    payload.update(preset="human", rules=["range"], methods=["fft"], mse_max_scale=3)
    body = client.post("/analyze", json=payload).json()
    names = [m["name"] for m in body["metrics"]]
    assert "TOT_PWR_FFT" in names
    assert "TOT_PWR_LOMB" not in names
    assert list(body["outliers"]) == ["range"]


def test_undefined_metrics_are_null_with_reason(client):
    body = client.post("/analyze", json={"intervals": [0.8, 0.82, 0.79, 0.81, 0.8, 0.83]}).json()
    alpha1 = next(m for m in body["metrics"] if m["name"] == "alpha1")
    assert alpha1["value"] is None
    assert alpha1["reason"]
    assert "dfa" in body["errors"]


@pytest.mark.parametrize("bad", [
    {"intervals": []},
    {"intervals": [0.8, -0.2, 0.8]},
    {"intervals": [0.8, 0.8], "times": [0.0]},
    {"intervals": [0.8, 0.8, 0.8], "preset": "feline"},
    {"intervals": [0.8, 0.8, 0.8], "methods": ["burg"]},
    {"intervals": [0.8, 0.8, 0.8], "rules": ["median"]},
])
def test_invalid_requests_rejected(client, bad):
    assert client.post("/analyze", json=bad).status_code == 422


def test_cors_allows_any_origin_by_default(client):
    response = client.get("/health", headers={"Origin": "http://notebook.local"})
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_restricted_to_configured_origins():
    restricted = TestClient(create_app(cors_origins=["http://lab.local"]))
    allowed = restricted.get("/health", headers={"Origin": "http://lab.local"})
    assert allowed.headers["access-control-allow-origin"] == "http://lab.local"
    denied = restricted.get("/health", headers={"Origin": "http://elsewhere.local"})
    assert "access-control-allow-origin" not in denied.headers


def test_server_arguments():
    args = parse_args([])
    assert (args.host, args.port, args.log_level) == ("127.0.0.1", 8000, "info")
    assert parse_args(["--port", "9000"]).port == 9000
