from src.vetroute.models.domain import PlanningState, Stop, VanCapacityClass, ZoneRecord
from src.vetroute.services.routing.optimizer import FALLBACK_NOTICE, RouteOptimizer, fallback_sort
from src.vetroute.services.routing.optimizer_client import OptimizerError
from src.vetroute.services.routing.zone_weights import compute_zone_weights

CLINIC = (25.6866, -100.3161)


def _stop(stop_id: str, zone: str | None, weight: float | None = None) -> Stop:
    return Stop(id=stop_id, latitude=25.67, longitude=-100.31, zone_name=zone, pet_weight_kg=weight)


class StubClient:
    def __init__(self, result=None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls = 0

    def optimize(self, stops, van_capacity, zone_weights, clinic, tenant_id=None, date=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result(stops) if callable(self.result) else self.result


def _example_weights():
    return compute_zone_weights(
        [
            ZoneRecord(name="centro", latitude=25.669, longitude=-100.309),
            ZoneRecord(name="lejos", latitude=25.8, longitude=-100.2),
        ],
        CLINIC,
    )


def test_primary_path_returns_optimizer_order():
    stops = [_stop("1", "centro"), _stop("2", "lejos"), _stop("3", None)]
    client = StubClient(result=["3", "1", "2"])

    outcome = RouteOptimizer(client=client).optimize_route(
        stops, VanCapacityClass.MEDIUM, _example_weights(), CLINIC
    )

    assert outcome.state is PlanningState.OPTIMIZED
    assert outcome.notice is None
    assert [stop.id for stop in outcome.stops] == ["3", "1", "2"]
    assert client.calls == 1


def test_failure_falls_back_to_weight_sort():
    stops = [_stop("2", "lejos", 25), _stop("1", "centro", 5)]
    client = StubClient(error=OptimizerError("HTTP 503"))

    outcome = RouteOptimizer(client=client).optimize_route(
        stops, VanCapacityClass.MEDIUM, _example_weights(), CLINIC
    )

    assert outcome.state is PlanningState.FALLBACK_SORTED
    assert outcome.notice == FALLBACK_NOTICE
    assert [stop.id for stop in outcome.stops] == ["1", "2"]
    assert client.calls == 1


def test_unexpected_error_also_falls_back():
    stops = [_stop("a", "lejos"), _stop("b", "centro")]
    client = StubClient(error=RuntimeError("boom"))

    outcome = RouteOptimizer(client=client).optimize_route(
        stops, VanCapacityClass.SMALL, _example_weights(), CLINIC
    )

    assert outcome.state is PlanningState.FALLBACK_SORTED
    assert [stop.id for stop in outcome.stops] == ["b", "a"]


def test_incomplete_optimizer_result_is_rejected():
    stops = [_stop("1", "centro"), _stop("2", "lejos"), _stop("3", "lejos")]
    weights = _example_weights()

    for bad_result in (["1", "2"], ["1", "2", "2"], ["1", "2", "9"]):
        outcome = RouteOptimizer(client=StubClient(result=bad_result)).optimize_route(
            stops, VanCapacityClass.MEDIUM, weights, CLINIC
        )
        assert outcome.state is PlanningState.FALLBACK_SORTED
        assert sorted(stop.id for stop in outcome.stops) == ["1", "2", "3"]


def test_both_paths_return_a_permutation():
    stops = [_stop(str(i), zone) for i, zone in enumerate(["lejos", "centro", None, "otro", "centro", "lejos"])]
    weights = _example_weights()
    expected_ids = sorted(stop.id for stop in stops)

    reversed_client = StubClient(result=lambda given: [stop.id for stop in reversed(given)])
    failing_client = StubClient(error=OptimizerError("timeout"))

    for client in (reversed_client, failing_client):
        outcome = RouteOptimizer(client=client).optimize_route(stops, VanCapacityClass.LARGE, weights, CLINIC)
        assert len(outcome.stops) == len(stops)
        assert sorted(stop.id for stop in outcome.stops) == expected_ids


def test_fallback_sort_is_stable_for_ties():
    weights = {"a": 3.0, "b": 3.0, "c": 1.0}
    stops = [_stop("s1", "a"), _stop("s2", "b"), _stop("s3", "c"), _stop("s4", "a"), _stop("s5", None)]

    first = fallback_sort(stops, weights)
    second = fallback_sort(stops, weights)

    assert [stop.id for stop in first] == ["s3", "s1", "s2", "s4", "s5"]
    assert [stop.id for stop in first] == [stop.id for stop in second]


def test_empty_stop_set_skips_external_call():
    client = StubClient(result=[])
    optimizer = RouteOptimizer(client=client)

    outcome = optimizer.optimize_route([], VanCapacityClass.MEDIUM, {}, CLINIC)

    assert outcome.stops == []
    assert outcome.state is PlanningState.IDLE
    assert client.calls == 0


def test_unconfigured_optimizer_falls_back(monkeypatch):
    from src.vetroute.config import settings
    from src.vetroute.services.routing.optimizer_client import OptimizerClient

    monkeypatch.setattr(settings, "optimizer_base_url", None)
    stops = [_stop("2", "lejos"), _stop("1", "centro")]

    outcome = RouteOptimizer(client=OptimizerClient()).optimize_route(
        stops, VanCapacityClass.MEDIUM, _example_weights(), CLINIC
    )

    assert outcome.state is PlanningState.FALLBACK_SORTED
    assert [stop.id for stop in outcome.stops] == ["1", "2"]
