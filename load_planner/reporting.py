from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

import pandas as pd

from load_planner.models import LoadingStats, PalletInstance, PlacedUnit, PlanResult, StackedUnit, VehicleProfile

PLACEMENT_COLUMNS = [
    "position",
    "row_index",
    "column_index",
    "base_container_id",
    "base_product_id",
    "base_status",
    "stacked_container_id",
    "stacked_product_id",
    "stacked_status",
    "pallet_format",
    "footprint_L_m",
    "footprint_W_m",
    "total_height_m",
    "total_weight_kg",
    "x_m",
    "y_m",
    "z_m",
]


def _stacked_fields(unit: StackedUnit) -> dict:
    stacked = unit.stacked_pallet
    return {
        "stacked_container_id": ",".join(p.container_id for p in unit.stacked),
        "stacked_product_id": ",".join(p.product_id for p in unit.stacked),
        "stacked_status": stacked.status if stacked else "",
    }


def _unit_row(unit: StackedUnit) -> dict:
    return {
        "base_container_id": unit.base.container_id,
        "base_product_id": unit.base.product_id,
        "base_status": unit.base.status,
        **_stacked_fields(unit),
        "pallet_format": unit.pallet_format,
        "footprint_L_m": unit.footprint_L_m,
        "footprint_W_m": unit.footprint_W_m,
        "total_height_m": unit.total_height_m,
        "total_weight_kg": unit.total_weight_kg,
    }


def build_placement_rows(placed: Iterable[PlacedUnit]) -> pd.DataFrame:
    rows = []
    for placement in placed:
        row = _unit_row(placement.unit)
        row.update(
            {
                "row_index": placement.row_index,
                "column_index": placement.column_index,
                "x_m": placement.x_m,
                "y_m": placement.y_m,
                "z_m": placement.z_m,
            }
        )
        rows.append(row)
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=PLACEMENT_COLUMNS)
    df = df.sort_values(by=["x_m", "z_m", "base_container_id"]).reset_index(drop=True)
    df.insert(0, "position", range(1, len(df) + 1))
    return df


def build_unit_rows(units: Iterable[StackedUnit]) -> pd.DataFrame:
    return pd.DataFrame([_unit_row(unit) for unit in units])


def build_excluded_rows(result: PlanResult) -> pd.DataFrame:
    rows = []
    for overflow in result.placement.overflows:
        for unit in overflow.units:
            row = _unit_row(unit)
            row.update(
                {
                    "row_index": overflow.row_index,
                    "cursor_x_m": overflow.cursor_x_m,
                    "row_length_m": overflow.row_length_m,
                }
            )
            rows.append(row)
    return pd.DataFrame(rows)


def _num(value: Optional[Decimal]):
    return None if value is None else float(value)


def _pallet_export(pallet: PalletInstance) -> dict:
    return {
        "container_id": pallet.container_id,
        "product_id": pallet.product_id,
        "quantity": _num(pallet.quantity),
        "status": pallet.status,
        "layers": pallet.layers,
        "height_m": _num(pallet.height_m),
        "weight_kg": _num(pallet.weight_kg),
    }


def stats_export(stats: LoadingStats) -> dict:
    return {
        "unit_count": stats.unit_count,
        "total_pallets": stats.total_pallets,
        "stacked_count": stats.stacked_count,
        "placed_pallets": stats.placed_pallets,
        "excluded_count": stats.excluded_count,
        "total_weight_kg": _num(stats.total_weight_kg),
        "total_volume_m3": _num(stats.total_volume_m3),
        "vehicle_volume_m3": _num(stats.vehicle_volume_m3),
        "volume_utilization_pct": _num(stats.volume_utilization_pct),
        "floor_area_m2": _num(stats.floor_area_m2),
        "vehicle_floor_area_m2": _num(stats.vehicle_floor_area_m2),
        "floor_utilization_pct": _num(stats.floor_utilization_pct),
        "over_capacity": stats.over_capacity,
        "overweight": stats.overweight,
    }


def build_plan_export(result: PlanResult, vehicle: VehicleProfile, exported_at: Optional[datetime] = None) -> dict:
    """JSON-ready snapshot of a plan: metadata, statistics, loading plan, exclusions."""
    exported_at = exported_at or datetime.now(timezone.utc)
    loading_plan = []
    for position, placement in enumerate(sorted(result.placed, key=lambda p: (p.x_m, p.z_m)), start=1):
        unit = placement.unit
        loading_plan.append(
            {
                "position": position,
                "base_pallet": _pallet_export(unit.base),
                "stacked_pallets": [_pallet_export(p) for p in unit.stacked],
                "pallet_format": unit.pallet_format,
                "total_height_m": _num(unit.total_height_m),
                "total_weight_kg": _num(unit.total_weight_kg),
                "footprint": {"L_m": _num(unit.footprint_L_m), "W_m": _num(unit.footprint_W_m)},
                "coordinates": {"x_m": _num(placement.x_m), "y_m": _num(placement.y_m), "z_m": _num(placement.z_m)},
            }
        )
    return {
        "metadata": {
            "exported_at": exported_at.isoformat(),
            "vehicle_type": vehicle.type,
            "vehicle_dimensions": {"L_m": _num(vehicle.L_m), "W_m": _num(vehicle.W_m), "H_m": _num(vehicle.H_m)},
            "invalid_listing_entries": result.invalid_count,
        },
        "statistics": stats_export(result.stats),
        "loading_plan": loading_plan,
        "excluded_container_ids": result.placement.excluded_container_ids,
    }
