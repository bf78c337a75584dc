import pytest

from src.vetroute.models.domain import CageClass, InventoryItem, Stop, VanCapacityClass
from src.vetroute.services.routing.cages import (
    CageTareTable,
    check_van_capacity,
    classify_cage,
    compute_load_statistics,
    resolve_tare_weights,
)


def _stop(stop_id: str, weight: float | None, zone: str | None = None) -> Stop:
    return Stop(id=stop_id, latitude=25.67, longitude=-100.31, zone_name=zone, pet_weight_kg=weight)


@pytest.mark.parametrize(
    "weight, expected",
    [
        (0.5, CageClass.SMALL),
        (8.0, CageClass.SMALL),
        (8.0001, CageClass.MEDIUM),
        (20.0, CageClass.MEDIUM),
        (20.0001, CageClass.LARGE),
        (45.0, CageClass.LARGE),
    ],
)
def test_classify_cage_boundaries(weight, expected):
    assert classify_cage(weight) is expected


def test_load_statistics_for_example_day():
    stops = [_stop("1", 5, "centro"), _stop("2", 25, "lejos")]

    stats = compute_load_statistics(stops)

    assert stats.cage_allocation == {"small": 1, "medium": 0, "large": 1}
    assert stats.total_pet_weight == 30
    assert stats.average_pet_weight == 15
    assert stats.total_tare_weight == pytest.approx(2.5 + 6.5)
    assert stats.total_weight == stats.total_pet_weight + stats.total_tare_weight


def test_missing_pet_weight_defaults_to_five_kg():
    stats = compute_load_statistics([_stop("1", None), _stop("2", None), _stop("3", 12.3)])

    assert stats.total_pet_weight == pytest.approx(22.3)
    assert stats.cage_allocation == {"small": 2, "medium": 1, "large": 0}


def test_total_weight_is_pets_plus_tare():
    stops = [_stop(str(i), weight) for i, weight in enumerate([0.1, 3.3, 7.77, 8.0, 19.99, 20.01, 33.3, None])]
    tares = CageTareTable(small=1.1, medium=3.3, large=7.7)

    stats = compute_load_statistics(stops, tares)

    assert stats.total_weight == stats.total_pet_weight + stats.total_tare_weight
    assert stats.stop_count == len(stops)


def test_empty_stop_set_yields_zero_statistics():
    stats = compute_load_statistics([])

    assert stats.stop_count == 0
    assert stats.total_pet_weight == 0
    assert stats.average_pet_weight == 0
    assert stats.total_tare_weight == 0
    assert stats.total_weight == 0
    assert stats.cage_allocation == {"small": 0, "medium": 0, "large": 0}


def test_tare_weights_matched_from_inventory_names():
    items = [
        InventoryItem(name="Jaula Pequeña Plástica", weight_kg=2.0),
        InventoryItem(name="Large cage - metal", weight_kg=8.0),
        InventoryItem(name="Shampoo", weight_kg=0.5),
    ]

    table = resolve_tare_weights(items)

    assert table.small == 2.0
    assert table.medium == 4.0
    assert table.large == 8.0


def test_explicit_cage_class_wins_over_name():
    items = [
        InventoryItem(name="jaula pequeña", weight_kg=9.9, cage_class=CageClass.MEDIUM),
        InventoryItem(name="cage small", weight_kg=1.5),
    ]

    table = resolve_tare_weights(items)

    assert table.medium == 9.9
    assert table.small == 1.5


def test_inventory_miss_keeps_defaults():
    table = resolve_tare_weights([InventoryItem(name="jaula mediana", weight_kg=None)])

    assert table == CageTareTable(small=2.5, medium=4.0, large=6.5)
    assert resolve_tare_weights(None) == table


def test_van_capacity_overflow_is_reported():
    stops = [_stop(str(i), 30.0) for i in range(4)]
    stats = compute_load_statistics(stops)

    small_van = check_van_capacity(stats, VanCapacityClass.SMALL)
    large_van = check_van_capacity(stats, VanCapacityClass.LARGE)

    assert small_van.within_capacity is False
    assert small_van.pet_overflow == 0
    assert small_van.weight_overflow_kg == pytest.approx(stats.total_weight - 50.0)
    assert large_van.within_capacity is True
    assert large_van.max_pets == 25
