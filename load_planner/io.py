from __future__ import annotations

import io
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Optional

import pandas as pd

from load_planner.models import ListingEntry
from load_planner.rounding import to_decimal

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    "container_id",
    "product_id",
    "quantity",
]

LISTING_ALIASES = {
    "containerid": "container_id",
    "sscc": "container_id",
    "palletid": "container_id",
    "productid": "product_id",
    "sku": "product_id",
    "article": "product_id",
    "quantity": "quantity",
    "qty": "quantity",
    "quantite": "quantity",
}


def _normalize_column_name(name: str) -> str:
    return "".join(ch for ch in str(name).strip() if ch.isalnum()).lower()


def apply_column_aliases(df: pd.DataFrame, aliases: Dict[str, str]) -> pd.DataFrame:
    rename_map: dict[str, str] = {}
    for col in df.columns:
        normalized = _normalize_column_name(col)
        target = aliases.get(normalized)
        if target:
            rename_map[col] = target
    if rename_map:
        df = df.rename(columns=rename_map)
    return df


class ListingInputError(ValueError):
    pass


def parse_bool(value, default: bool) -> bool:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y", "oui"}:
        return True
    if text in {"0", "false", "no", "n", "non"}:
        return False
    return default


def load_listing_csv(content: str) -> pd.DataFrame:
    # ids such as SSCC codes keep their leading zeros
    data = pd.read_csv(io.StringIO(content), dtype=str)
    return apply_column_aliases(data, LISTING_ALIASES)


def ensure_columns(df: pd.DataFrame) -> pd.DataFrame:
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ListingInputError(f"Missing listing columns: {', '.join(missing)}")
    return df


def _clean_id(raw) -> str:
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return ""
    return str(raw).strip()


def _parse_quantity(raw) -> Optional[Decimal]:
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return None
    try:
        value = to_decimal(str(raw).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def is_valid_entry(entry: ListingEntry) -> bool:
    if not entry.container_id or not entry.product_id:
        return False
    if entry.quantity is None or not entry.quantity.is_finite():
        return False
    return entry.quantity > 0


def split_valid_entries(entries: Iterable[ListingEntry]) -> tuple[list[ListingEntry], int]:
    valid: list[ListingEntry] = []
    invalid_count = 0
    for entry in entries:
        if is_valid_entry(entry):
            valid.append(entry)
        else:
            invalid_count += 1
    if invalid_count:
        logger.debug("dropped %d invalid listing entries", invalid_count)
    return valid, invalid_count


def normalize_listing_rows(df: pd.DataFrame) -> tuple[list[ListingEntry], int]:
    """Convert a listing DataFrame into entries.

    Rows with a missing id or a non-positive / non-numeric quantity are not
    errors: they are dropped and returned as a count next to the entries.
    """
    df = ensure_columns(df)
    entries: list[ListingEntry] = []
    invalid_count = 0
    for _, row in df.iterrows():
        quantity = _parse_quantity(row.get("quantity"))
        if quantity is None:
            invalid_count += 1
            continue
        entries.append(
            ListingEntry(
                container_id=_clean_id(row.get("container_id")),
                product_id=_clean_id(row.get("product_id")),
                quantity=quantity,
            )
        )
    valid, dropped = split_valid_entries(entries)
    return valid, invalid_count + dropped
