from __future__ import annotations

from typing import Iterable, Mapping

from load_planner.models import FULL, PARTIAL, CatalogEntry, ListingEntry, PalletInstance
from load_planner.rounding import ceil_int, to_decimal


class MissingCatalogEntry(LookupError):
    """Raised when listing entries reference products the catalog does not know.

    The whole run is aborted; ``product_ids`` holds every offending id in
    listing order.
    """

    def __init__(self, product_ids: list[str]):
        self.product_ids = list(product_ids)
        self.product_id = self.product_ids[0] if self.product_ids else ""
        super().__init__(f"Products missing from catalog: {', '.join(self.product_ids)}")


def build_pallet(entry: ListingEntry, catalog_entry: CatalogEntry) -> PalletInstance:
    quantity = to_decimal(entry.quantity)
    # multiply before dividing so exact multiples never round up a layer
    layers = ceil_int(quantity * catalog_entry.layer_count / catalog_entry.qty_per_pallet)
    return PalletInstance(
        container_id=entry.container_id,
        product_id=entry.product_id,
        quantity=quantity,
        status=FULL if quantity >= catalog_entry.qty_per_pallet else PARTIAL,
        layers=layers,
        height_m=layers * catalog_entry.layer_height_m,
        weight_kg=quantity * catalog_entry.unit_weight_kg,
        footprint_L_m=catalog_entry.footprint_L_m,
        footprint_W_m=catalog_entry.footprint_W_m,
        pallet_format=catalog_entry.pallet_format,
        max_stack_weight_kg=catalog_entry.max_stack_weight_kg,
    )


def reconstruct_pallets(
    listing: Iterable[ListingEntry],
    catalog: Mapping[str, CatalogEntry],
) -> list[PalletInstance]:
    entries = list(listing)
    missing: list[str] = []
    for entry in entries:
        if entry.product_id not in catalog and entry.product_id not in missing:
            missing.append(entry.product_id)
    if missing:
        raise MissingCatalogEntry(missing)
    return [build_pallet(entry, catalog[entry.product_id]) for entry in entries]
