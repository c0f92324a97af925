from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from load_planner.models import LoadingStats, PlacementResult, StackedUnit, VehicleProfile
from load_planner.rounding import ceil_pct

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def _pct(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return Decimal("0")
    return ceil_pct(part / whole * HUNDRED)


def compute_loading_stats(
    units: Iterable[StackedUnit],
    vehicle: VehicleProfile,
    placement: Optional[PlacementResult] = None,
) -> LoadingStats:
    """Aggregate planned units against the vehicle.

    Totals cover every planned unit, placed or not. Volume utilization sums
    footprint x stack height per unit, so floor gaps are ignored and the
    figure is an approximation; above 100 % it points at bad catalog data.
    """
    units = list(units)
    total_pallets = sum(unit.pallet_count for unit in units)
    stacked_count = sum(1 for unit in units if unit.has_stacked)
    total_weight = sum((unit.total_weight_kg for unit in units), Decimal("0"))
    total_volume = sum(
        (unit.footprint_L_m * unit.footprint_W_m * unit.total_height_m for unit in units),
        Decimal("0"),
    )
    floor_area = sum((unit.footprint_L_m * unit.footprint_W_m for unit in units), Decimal("0"))

    volume_pct = _pct(total_volume, vehicle.volume_m3)
    over_capacity = volume_pct > HUNDRED
    if over_capacity:
        logger.warning(
            "volume utilization %s%% exceeds vehicle %s capacity; check catalog dimensions",
            volume_pct,
            vehicle.type,
        )
    overweight = vehicle.max_payload_kg is not None and total_weight > vehicle.max_payload_kg

    if placement is None:
        placed_pallets = total_pallets
        excluded_count = 0
    else:
        placed_pallets = sum(placed.unit.pallet_count for placed in placement.placed)
        excluded_count = placement.excluded_count

    return LoadingStats(
        unit_count=len(units),
        total_pallets=total_pallets,
        stacked_count=stacked_count,
        total_weight_kg=total_weight,
        total_volume_m3=total_volume,
        vehicle_volume_m3=vehicle.volume_m3,
        volume_utilization_pct=volume_pct,
        floor_area_m2=floor_area,
        vehicle_floor_area_m2=vehicle.floor_area_m2,
        floor_utilization_pct=_pct(floor_area, vehicle.floor_area_m2),
        placed_pallets=placed_pallets,
        excluded_count=excluded_count,
        over_capacity=over_capacity,
        overweight=overweight,
    )
