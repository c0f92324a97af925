from __future__ import annotations

import logging
from functools import lru_cache
from typing import Iterable, Mapping, Optional

from load_planner.io import split_valid_entries
from load_planner.models import CatalogEntry, ListingEntry, PlanningConfig, PlanResult, VehicleProfile
from load_planner.placement import place_units
from load_planner.reconstruct import reconstruct_pallets
from load_planner.stacking import plan_stacking
from load_planner.stats import compute_loading_stats

logger = logging.getLogger(__name__)

PLAN_CACHE_SIZE = 32


def plan_load(
    listing: Iterable[ListingEntry],
    catalog: Mapping[str, CatalogEntry],
    vehicle: VehicleProfile,
    stacking_enabled: bool = True,
    config: Optional[PlanningConfig] = None,
    invalid_count: int = 0,
) -> PlanResult:
    """Run the full pipeline for one vehicle.

    ``invalid_count`` carries rows already dropped upstream (for example by
    ``normalize_listing_rows``); entries dropped here are added to it.
    """
    config = config or PlanningConfig()
    config.validate()
    entries, dropped = split_valid_entries(listing)
    pallets = reconstruct_pallets(entries, catalog)
    units = plan_stacking(pallets, vehicle.H_m, enabled=stacking_enabled, config=config)
    placement = place_units(units, vehicle, config=config)
    stats = compute_loading_stats(units, vehicle, placement)
    logger.debug(
        "plan for %s: %d pallets, %d units, %d placed, %d excluded",
        vehicle.type,
        len(pallets),
        len(units),
        len(placement.placed),
        placement.excluded_count,
    )
    return PlanResult(
        pallets=pallets,
        units=units,
        placement=placement,
        stats=stats,
        invalid_count=invalid_count + dropped,
    )


@lru_cache(maxsize=PLAN_CACHE_SIZE)
def _plan_load_memo(
    listing: tuple[ListingEntry, ...],
    catalog_items: tuple[tuple[str, CatalogEntry], ...],
    vehicle: VehicleProfile,
    stacking_enabled: bool,
    config: PlanningConfig,
    invalid_count: int,
) -> PlanResult:
    return plan_load(listing, dict(catalog_items), vehicle, stacking_enabled, config, invalid_count)


def plan_load_cached(
    listing: Iterable[ListingEntry],
    catalog: Mapping[str, CatalogEntry],
    vehicle: VehicleProfile,
    stacking_enabled: bool = True,
    config: Optional[PlanningConfig] = None,
    invalid_count: int = 0,
) -> PlanResult:
    """Memoized ``plan_load`` keyed on its inputs.

    The returned result is shared between callers with equal inputs and must
    be treated as read-only.
    """
    catalog_items = tuple(sorted(catalog.items()))
    return _plan_load_memo(
        tuple(listing), catalog_items, vehicle, stacking_enabled, config or PlanningConfig(), invalid_count
    )


def clear_plan_cache() -> None:
    _plan_load_memo.cache_clear()
