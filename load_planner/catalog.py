from __future__ import annotations

import io
from decimal import Decimal
from typing import Dict, Optional

import pandas as pd

from load_planner.io import apply_column_aliases, parse_bool
from load_planner.models import CatalogEntry, PalletFormat
from load_planner.rounding import to_decimal

PALLET_FORMATS: Dict[str, PalletFormat] = {
    "FEU": PalletFormat("FEU", Decimal("1.2"), Decimal("0.8"), "Europe pallet 1200x800"),
    "FCH": PalletFormat("FCH", Decimal("1.2"), Decimal("1.0"), "CHEP pallet 1200x1000"),
    "DPH": PalletFormat("DPH", Decimal("0.8"), Decimal("0.6"), "Half pallet 800x600"),
}

DEFAULT_PALLET_FORMAT = "FEU"

REQUIRED_COLUMNS = [
    "product_id",
    "qty_per_pallet",
    "unit_weight_kg",
    "layer_height_m",
    "layer_count",
]

OPTIONAL_COLUMNS = {
    "pallet_format": DEFAULT_PALLET_FORMAT,
    "stackable": True,
    "max_stack_weight_kg": None,
    "designation": "",
}

CATALOG_ALIASES = {
    "productid": "product_id",
    "sku": "product_id",
    "article": "product_id",
    "qtyperpallet": "qty_per_pallet",
    "qteeqpch": "qty_per_pallet",
    "unitweightkg": "unit_weight_kg",
    "unitweight": "unit_weight_kg",
    "grossweight": "unit_weight_kg",
    "poidsbrut": "unit_weight_kg",
    "palletformat": "pallet_format",
    "format": "pallet_format",
    "tus": "pallet_format",
    "layerheightm": "layer_height_m",
    "layerheight": "layer_height_m",
    "layerheightmm": "layer_height_mm",
    "hauteurcouche": "layer_height_mm",
    "layercount": "layer_count",
    "layers": "layer_count",
    "nbcouches": "layer_count",
    "compteur": "layer_count",
    "stackable": "stackable",
    "maxstackweightkg": "max_stack_weight_kg",
    "maxstackweight": "max_stack_weight_kg",
    "designation": "designation",
    "description": "designation",
}


class CatalogInputError(ValueError):
    pass


def get_pallet_format(code: str) -> PalletFormat:
    key = (code or DEFAULT_PALLET_FORMAT).strip().upper()
    pallet_format = PALLET_FORMATS.get(key)
    if pallet_format is None:
        known = ", ".join(sorted(PALLET_FORMATS))
        raise CatalogInputError(f"Unknown pallet format '{code}' (known: {known})")
    return pallet_format


def build_catalog_entry(
    product_id: str,
    qty_per_pallet,
    unit_weight_kg,
    layer_height_m,
    layer_count: int,
    pallet_format: str = DEFAULT_PALLET_FORMAT,
    stackable: bool = True,
    max_stack_weight_kg=None,
    designation: str = "",
) -> CatalogEntry:
    fmt = get_pallet_format(pallet_format)
    return CatalogEntry(
        product_id=product_id,
        qty_per_pallet=to_decimal(qty_per_pallet),
        unit_weight_kg=to_decimal(unit_weight_kg),
        pallet_format=fmt.code,
        footprint_L_m=fmt.footprint_L_m,
        footprint_W_m=fmt.footprint_W_m,
        layer_height_m=to_decimal(layer_height_m),
        layer_count=int(layer_count),
        stackable=stackable,
        max_stack_weight_kg=None if max_stack_weight_kg is None else to_decimal(max_stack_weight_kg),
        designation=designation,
    )


def load_catalog_csv(content: str) -> pd.DataFrame:
    # product ids must match the listing as text, so nothing is inferred here
    data = pd.read_csv(io.StringIO(content), dtype=str)
    data = apply_column_aliases(data, CATALOG_ALIASES)
    if "layer_height_m" not in data.columns and "layer_height_mm" in data.columns:
        data["layer_height_m"] = pd.to_numeric(data["layer_height_mm"], errors="coerce") / 1000
    return data


def ensure_catalog_columns(df: pd.DataFrame) -> pd.DataFrame:
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise CatalogInputError(f"Missing catalog columns: {', '.join(missing)}")
    for col, default in OPTIONAL_COLUMNS.items():
        if col not in df.columns:
            df[col] = default
    return df


def _optional_decimal(raw) -> Optional[Decimal]:
    if raw is None or raw == "" or pd.isna(raw):
        return None
    value = to_decimal(raw)
    # a zero limit in the source data means "not set"
    if value == 0:
        return None
    return value


def normalize_catalog_rows(df: pd.DataFrame) -> Dict[str, CatalogEntry]:
    df = ensure_catalog_columns(df)
    catalog: Dict[str, CatalogEntry] = {}
    for idx, row in df.iterrows():
        row_no = idx + 1
        product_id = "" if pd.isna(row["product_id"]) else str(row["product_id"]).strip()
        if not product_id:
            raise CatalogInputError(f"product_id is empty (row {row_no})")

        def parse_decimal_field(field_name: str) -> Decimal:
            raw = row.get(field_name)
            try:
                value = to_decimal(raw)
            except Exception as exc:  # noqa: BLE001
                raise CatalogInputError(
                    f"{field_name} value '{raw}' is not a number (row {row_no})"
                ) from exc
            if not value.is_finite() or value <= 0:
                raise CatalogInputError(f"{field_name} must be a finite number greater than 0 (row {row_no})")
            return value

        qty_per_pallet = parse_decimal_field("qty_per_pallet")
        unit_weight_kg = parse_decimal_field("unit_weight_kg")
        layer_height_m = parse_decimal_field("layer_height_m")
        layer_count = parse_decimal_field("layer_count")
        if layer_count != layer_count.to_integral_value():
            raise CatalogInputError(f"layer_count must be an integer (row {row_no})")

        try:
            max_stack_weight_kg = _optional_decimal(row.get("max_stack_weight_kg"))
        except Exception as exc:  # noqa: BLE001
            raise CatalogInputError(
                f"max_stack_weight_kg value '{row.get('max_stack_weight_kg')}' is not a number (row {row_no})"
            ) from exc
        if max_stack_weight_kg is not None and max_stack_weight_kg < 0:
            raise CatalogInputError(f"max_stack_weight_kg must be >= 0 (row {row_no})")

        pallet_format = row.get("pallet_format")
        if pallet_format is None or pd.isna(pallet_format) or not str(pallet_format).strip():
            pallet_format = DEFAULT_PALLET_FORMAT
        try:
            entry = build_catalog_entry(
                product_id=product_id,
                qty_per_pallet=qty_per_pallet,
                unit_weight_kg=unit_weight_kg,
                layer_height_m=layer_height_m,
                layer_count=int(layer_count),
                pallet_format=str(pallet_format),
                stackable=parse_bool(row.get("stackable"), True),
                max_stack_weight_kg=max_stack_weight_kg,
                designation="" if pd.isna(row.get("designation")) else str(row.get("designation") or "").strip(),
            )
        except CatalogInputError as exc:
            raise CatalogInputError(f"{exc} (row {row_no})") from exc
        catalog[product_id] = entry
    return catalog
