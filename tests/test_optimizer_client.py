import json

import httpx
import pytest

from src.vetroute.models.domain import Stop, VanCapacityClass
from src.vetroute.services.routing.optimizer_client import (
    OptimizerClient,
    OptimizerError,
    parse_ordered_ids,
)

CLINIC = (25.6866, -100.3161)
BASE_URL = "http://optimizer.test"


def _stops() -> list[Stop]:
    return [
        Stop(id="1", latitude=25.669, longitude=-100.309, zone_name="centro", pet_weight_kg=5, client_name="Ana"),
        Stop(id="2", latitude=25.8, longitude=-100.2, zone_name="lejos", pet_weight_kg=25, client_name="Luis"),
    ]


def _client(handler, **kwargs) -> OptimizerClient:
    return OptimizerClient(
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
        backoff_seconds=0.0,
        **kwargs,
    )


def test_optimize_posts_payload_and_parses_order():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"optimizedRoute": [{"id": "2"}, {"id": "1"}]})

    ordered = _client(handler).optimize(
        _stops(), VanCapacityClass.LARGE, {"centro": 1.9, "lejos": 10.9}, CLINIC, tenant_id="vet-1"
    )

    assert ordered == ["2", "1"]
    assert captured["url"] == f"{BASE_URL}/api/optimize-route/vet-1"
    body = captured["body"]
    assert body["vanCapacity"] == "large"
    assert body["fraccionamientoWeights"] == {"centro": 1.9, "lejos": 10.9}
    assert body["clinicLocation"] == [25.6866, -100.3161]
    assert body["appointments"][0]["client"]["fraccionamiento"] == "centro"
    assert body["appointments"][1]["pet"]["weight"] == 25


def test_non_success_status_raises():
    client = _client(lambda request: httpx.Response(500, json={"message": "down"}))

    with pytest.raises(OptimizerError):
        client.optimize(_stops(), VanCapacityClass.MEDIUM, {}, CLINIC)


def test_transport_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(OptimizerError):
        _client(handler).optimize(_stops(), VanCapacityClass.MEDIUM, {}, CLINIC)


def test_invalid_json_raises():
    client = _client(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

    with pytest.raises(OptimizerError):
        client.optimize(_stops(), VanCapacityClass.MEDIUM, {}, CLINIC)


def test_single_attempt_by_default():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503)

    with pytest.raises(OptimizerError):
        _client(handler, max_retries=0).optimize(_stops(), VanCapacityClass.MEDIUM, {}, CLINIC)

    assert len(calls) == 1


def test_bounded_retry_recovers():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(502)
        return httpx.Response(200, json={"optimizedRoute": ["1", "2"]})

    ordered = _client(handler, max_retries=2).optimize(_stops(), VanCapacityClass.MEDIUM, {}, CLINIC)

    assert ordered == ["1", "2"]
    assert len(calls) == 2


def test_missing_base_url_raises(monkeypatch):
    from src.vetroute.config import settings

    monkeypatch.setattr(settings, "optimizer_base_url", None)

    with pytest.raises(OptimizerError):
        OptimizerClient().optimize(_stops(), VanCapacityClass.MEDIUM, {}, CLINIC)


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"optimizedRoute": "1,2"},
        {"optimizedRoute": [{"name": "no id"}]},
        [],
    ],
)
def test_parse_ordered_ids_rejects_malformed_payloads(body):
    with pytest.raises(OptimizerError):
        parse_ordered_ids(body)


def test_parse_ordered_ids_accepts_numeric_ids():
    assert parse_ordered_ids({"optimizedRoute": [1, {"id": 2}]}) == ["1", "2"]
