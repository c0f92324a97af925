from load_planner.catalog import CatalogInputError, build_catalog_entry, load_catalog_csv, normalize_catalog_rows
from load_planner.io import ListingInputError, load_listing_csv, normalize_listing_rows
from load_planner.placement import footprints_overlap, place_units
from load_planner.planner import plan_load, plan_load_cached
from load_planner.reconstruct import MissingCatalogEntry, reconstruct_pallets
from load_planner.stacking import plan_stacking
from load_planner.stats import compute_loading_stats
from load_planner.vehicles import get_vehicle, parse_vehicle_profiles

__all__ = [
    "CatalogInputError",
    "build_catalog_entry",
    "load_catalog_csv",
    "normalize_catalog_rows",
    "ListingInputError",
    "load_listing_csv",
    "normalize_listing_rows",
    "footprints_overlap",
    "place_units",
    "plan_load",
    "plan_load_cached",
    "MissingCatalogEntry",
    "reconstruct_pallets",
    "plan_stacking",
    "compute_loading_stats",
    "get_vehicle",
    "parse_vehicle_profiles",
]
