from decimal import Decimal

from load_planner.catalog import build_catalog_entry
from load_planner.models import ListingEntry, VehicleProfile
from load_planner.placement import place_units
from load_planner.reconstruct import reconstruct_pallets
from load_planner.rounding import ceil_int, ceil_pct, to_decimal
from load_planner.stacking import plan_stacking
from load_planner.stats import compute_loading_stats
from load_planner.vehicles import custom_vehicle, get_vehicle


def _units(max_stack_weight_kg, enabled=True, vehicle=None):
    catalog = {"A": build_catalog_entry("A", 60, 10, "0.15", 8, max_stack_weight_kg=max_stack_weight_kg)}
    listing = [ListingEntry("P1", "A", Decimal("50")), ListingEntry("P2", "A", Decimal("10"))]
    vehicle = vehicle or get_vehicle("7.5T")
    return plan_stacking(reconstruct_pallets(listing, catalog), vehicle.H_m, enabled=enabled)


def test_stats_for_unstacked_units():
    vehicle = get_vehicle("7.5T")
    units = _units(500)

    stats = compute_loading_stats(units, vehicle)

    assert stats.unit_count == 2
    assert stats.total_pallets == 2
    assert stats.stacked_count == 0
    assert stats.total_weight_kg == Decimal("600")
    assert stats.total_volume_m3 == Decimal("1.296")
    assert stats.vehicle_volume_m3 == Decimal("34.56")
    assert stats.volume_utilization_pct == Decimal("3.750")
    assert stats.floor_area_m2 == Decimal("1.92")
    assert stats.floor_utilization_pct == Decimal("13.334")
    assert not stats.over_capacity
    assert not stats.overweight


def test_stacked_pallets_count_twice_but_as_one_stacked_unit():
    vehicle = get_vehicle("7.5T")
    units = _units(None)

    stats = compute_loading_stats(units, vehicle, place_units(units, vehicle))

    assert stats.unit_count == 1
    assert stats.total_pallets == 2
    assert stats.stacked_count == 1
    assert stats.placed_pallets == 2
    assert stats.excluded_count == 0
    assert stats.total_volume_m3 == Decimal("1.2") * Decimal("0.8") * Decimal("1.50")


def test_planned_totals_include_units_that_do_not_fit():
    vehicle = custom_vehicle("1.0", "2.4", "2.4")
    units = _units(500, vehicle=vehicle)

    stats = compute_loading_stats(units, vehicle, place_units(units, vehicle))

    assert stats.total_pallets == 2
    assert stats.placed_pallets == 0
    assert stats.excluded_count == 2


def test_utilization_above_hundred_percent_is_flagged():
    vehicle = custom_vehicle("1.2", "0.8", "0.5")

    stats = compute_loading_stats(_units(500, vehicle=vehicle), vehicle)

    assert stats.volume_utilization_pct > 100
    assert stats.over_capacity


def test_overweight_needs_a_payload_limit():
    limited = VehicleProfile("small", Decimal("6"), Decimal("2.4"), Decimal("2.4"), max_payload_kg=Decimal("550"))

    assert compute_loading_stats(_units(500), limited).overweight
    assert not compute_loading_stats(_units(500), get_vehicle("7.5T")).overweight


def test_percentages_round_up_to_a_thousandth():
    assert ceil_pct(Decimal("13.3333")) == Decimal("13.334")
    assert ceil_pct(Decimal("3.75")) == Decimal("3.750")
    assert ceil_int(Decimal("6.0001")) == 7
    assert to_decimal(" 0.15 ") == Decimal("0.15")
