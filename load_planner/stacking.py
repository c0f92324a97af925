from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from load_planner.models import PalletInstance, PlanningConfig, StackedUnit

logger = logging.getLogger(__name__)


def single_unit(pallet: PalletInstance) -> StackedUnit:
    return StackedUnit(
        base=pallet,
        stacked=(),
        total_height_m=pallet.height_m,
        total_weight_kg=pallet.weight_kg,
        footprint_L_m=pallet.footprint_L_m,
        footprint_W_m=pallet.footprint_W_m,
        pallet_format=pallet.pallet_format,
    )


def max_stack_weight(base: PalletInstance, config: PlanningConfig) -> Decimal:
    if base.max_stack_weight_kg is None:
        return config.default_max_stack_weight_kg
    return base.max_stack_weight_kg


def fits_footprint(base: PalletInstance, candidate: PalletInstance) -> bool:
    return candidate.footprint_L_m <= base.footprint_L_m and candidate.footprint_W_m <= base.footprint_W_m


def can_stack(
    base: PalletInstance,
    candidate: PalletInstance,
    current_height: Decimal,
    current_weight: Decimal,
    stacked_count: int,
    height_limit: Decimal,
    config: PlanningConfig,
) -> bool:
    if stacked_count >= config.max_stack_depth:
        return False
    if not fits_footprint(base, candidate):
        return False
    if current_height + config.support_riser_m + candidate.height_m > height_limit:
        return False
    return current_weight + candidate.weight_kg <= max_stack_weight(base, config)


def _check_unique_ids(pallets: list[PalletInstance]) -> None:
    seen: set[str] = set()
    for pallet in pallets:
        if pallet.container_id in seen:
            raise ValueError(f"duplicate container id '{pallet.container_id}' in listing")
        seen.add(pallet.container_id)


def plan_stacking(
    pallets: Iterable[PalletInstance],
    vehicle_height_m: Decimal,
    enabled: bool = True,
    config: PlanningConfig | None = None,
) -> list[StackedUnit]:
    """Group pallets into stack units with a single first-fit pass.

    Pallets are scanned in listing order; each unconsumed pallet becomes a
    base and takes the first later unconsumed pallets that satisfy footprint,
    height and weight limits, up to ``config.max_stack_depth`` of them.
    Re-ordering the input can change which pallets are paired.
    """
    config = config or PlanningConfig()
    ordered = list(pallets)
    _check_unique_ids(ordered)
    if not enabled:
        return [single_unit(pallet) for pallet in ordered]

    height_limit = vehicle_height_m * config.height_tolerance
    consumed: set[str] = set()
    units: list[StackedUnit] = []
    for index, base in enumerate(ordered):
        if base.container_id in consumed:
            continue
        consumed.add(base.container_id)
        stacked: list[PalletInstance] = []
        height = base.height_m
        weight = base.weight_kg
        for candidate in ordered[index + 1:]:
            if len(stacked) >= config.max_stack_depth:
                break
            if candidate.container_id in consumed:
                continue
            if not can_stack(base, candidate, height, weight, len(stacked), height_limit, config):
                continue
            stacked.append(candidate)
            consumed.add(candidate.container_id)
            height += config.support_riser_m + candidate.height_m
            weight += candidate.weight_kg
        units.append(
            StackedUnit(
                base=base,
                stacked=tuple(stacked),
                total_height_m=height,
                total_weight_kg=weight,
                footprint_L_m=base.footprint_L_m,
                footprint_W_m=base.footprint_W_m,
                pallet_format=base.pallet_format,
            )
        )
    logger.debug(
        "stacking: %d pallets -> %d units (%d stacked)",
        len(ordered),
        len(units),
        sum(1 for unit in units if unit.has_stacked),
    )
    return units
