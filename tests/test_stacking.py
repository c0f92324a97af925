import random
from decimal import Decimal

from load_planner.catalog import build_catalog_entry
from load_planner.models import ListingEntry, PlanningConfig
from load_planner.reconstruct import reconstruct_pallets
from load_planner.stacking import plan_stacking

TRUCK_H = Decimal("2.4")


def _catalog(max_stack_weight_kg=500):
    return {
        "A": build_catalog_entry("A", 60, 10, "0.15", 8, pallet_format="FEU", max_stack_weight_kg=max_stack_weight_kg),
        "B": build_catalog_entry("B", 120, "2.5", "0.22", 6, pallet_format="FEU"),
        "C": build_catalog_entry("C", 200, "1.2", "0.18", 7, pallet_format="FCH"),
        "D": build_catalog_entry("D", 80, "0.9", "0.12", 6, pallet_format="DPH"),
    }


def _pallets(rows, catalog=None):
    listing = [ListingEntry(cid, sku, Decimal(str(qty))) for cid, sku, qty in rows]
    return reconstruct_pallets(listing, catalog or _catalog())


def _pairs(units):
    return [unit.container_ids for unit in units]


def test_weight_ineligible_pair_stays_separate():
    pallets = _pallets([("P1", "A", 50), ("P2", "A", 10)])

    units = plan_stacking(pallets, TRUCK_H, enabled=True)

    assert len(units) == 2
    assert all(not unit.has_stacked for unit in units)


def test_disabled_stacking_keeps_one_unit_per_pallet():
    pallets = _pallets([("P1", "A", 50), ("P2", "A", 10)], _catalog(max_stack_weight_kg=None))

    units = plan_stacking(pallets, TRUCK_H, enabled=False)

    assert _pairs(units) == [("P1",), ("P2",)]
    assert all(unit.stacked_pallet is None for unit in units)


def test_eligible_pair_is_stacked_with_support_riser():
    pallets = _pallets([("P1", "A", 50), ("P2", "A", 10)], _catalog(max_stack_weight_kg=None))

    units = plan_stacking(pallets, TRUCK_H, enabled=True)

    assert len(units) == 1
    unit = units[0]
    assert unit.base.container_id == "P1"
    assert unit.stacked_pallet.container_id == "P2"
    assert unit.total_height_m == Decimal("1.50")
    assert unit.total_weight_kg == Decimal("600")
    assert (unit.footprint_L_m, unit.footprint_W_m, unit.pallet_format) == (Decimal("1.2"), Decimal("0.8"), "FEU")


def test_height_limit_allows_two_percent_tolerance():
    pallets = _pallets([("P1", "A", 50), ("P2", "A", 10)], _catalog(max_stack_weight_kg=None))

    assert len(plan_stacking(pallets, Decimal("1.48"), enabled=True)) == 1
    assert len(plan_stacking(pallets, Decimal("1.4"), enabled=True)) == 2


def test_stacked_footprint_must_fit_within_base():
    half_on_euro = _pallets([("E", "B", 60), ("H", "D", 40)])
    euro_on_half = _pallets([("H", "D", 40), ("E", "B", 60)])

    assert _pairs(plan_stacking(half_on_euro, TRUCK_H)) == [("E", "H")]
    assert _pairs(plan_stacking(euro_on_half, TRUCK_H)) == [("H",), ("E",)]


def test_pairing_is_first_fit_in_listing_order():
    pallets = _pallets([("Q", "D", 40), ("E", "B", 60), ("D2", "D", 40)])
    reordered = _pallets([("E", "B", 60), ("Q", "D", 40), ("D2", "D", 40)])

    assert _pairs(plan_stacking(pallets, TRUCK_H)) == [("Q", "D2"), ("E",)]
    assert _pairs(plan_stacking(reordered, TRUCK_H)) == [("E", "Q"), ("D2",)]


def test_one_pallet_per_base_by_default():
    pallets = _pallets([(f"P{i}", "A", 10) for i in range(4)])

    units = plan_stacking(pallets, TRUCK_H)

    assert _pairs(units) == [("P0", "P1"), ("P2", "P3")]


def test_max_stack_depth_is_configurable():
    pallets = _pallets([(f"P{i}", "A", 10) for i in range(4)])

    deeper = plan_stacking(pallets, TRUCK_H, config=PlanningConfig(max_stack_depth=2))
    flat = plan_stacking(pallets, TRUCK_H, config=PlanningConfig(max_stack_depth=0))

    assert _pairs(deeper) == [("P0", "P1", "P2"), ("P3",)]
    assert deeper[0].total_height_m == Decimal("0.30") * 3 + Decimal("0.15") * 2
    assert deeper[0].total_weight_kg == Decimal("300")
    assert len(flat) == 4


def test_default_max_stack_weight_applies_when_catalog_has_none():
    pallets = _pallets([("P1", "A", 50), ("P2", "A", 10)], _catalog(max_stack_weight_kg=None))

    units = plan_stacking(pallets, TRUCK_H, config=PlanningConfig(default_max_stack_weight_kg=Decimal("550")))

    assert len(units) == 2


def test_duplicate_container_ids_are_rejected():
    pallets = _pallets([("P1", "A", 10), ("P1", "A", 20)])
    try:
        plan_stacking(pallets, TRUCK_H)
        assert False, "ValueError expected"
    except ValueError:
        pass


def test_every_pallet_is_consumed_exactly_once_and_limits_hold():
    rng = random.Random(7)
    skus = {"A": 60, "B": 120, "C": 200, "D": 80}
    rows = []
    for i in range(60):
        sku = rng.choice(sorted(skus))
        rows.append((f"S{i:03d}", sku, rng.randint(1, skus[sku])))
    pallets = _pallets(rows)
    config = PlanningConfig()

    for enabled in (True, False):
        units = plan_stacking(pallets, TRUCK_H, enabled=enabled, config=config)
        ids = [cid for unit in units for cid in unit.container_ids]
        assert sorted(ids) == sorted(row[0] for row in rows)
        for unit in units:
            assert len(unit.stacked) <= config.max_stack_depth
            if not unit.has_stacked:
                continue
            limit = unit.base.max_stack_weight_kg or config.default_max_stack_weight_kg
            assert unit.total_height_m <= TRUCK_H * Decimal("1.02")
            assert unit.total_weight_kg <= limit
            for top in unit.stacked:
                assert top.footprint_L_m <= unit.base.footprint_L_m
                assert top.footprint_W_m <= unit.base.footprint_W_m
