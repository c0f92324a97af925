from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

FULL = "full"
PARTIAL = "partial"


@dataclass(frozen=True)
class PalletFormat:
    code: str
    footprint_L_m: Decimal
    footprint_W_m: Decimal
    label: str = ""


@dataclass(frozen=True)
class CatalogEntry:
    product_id: str
    qty_per_pallet: Decimal
    unit_weight_kg: Decimal
    pallet_format: str
    footprint_L_m: Decimal
    footprint_W_m: Decimal
    layer_height_m: Decimal
    layer_count: int
    stackable: bool = True
    max_stack_weight_kg: Optional[Decimal] = None
    designation: str = ""


@dataclass(frozen=True)
class ListingEntry:
    container_id: str
    product_id: str
    quantity: Decimal


@dataclass(frozen=True)
class PalletInstance:
    container_id: str
    product_id: str
    quantity: Decimal
    status: str
    layers: int
    height_m: Decimal
    weight_kg: Decimal
    footprint_L_m: Decimal
    footprint_W_m: Decimal
    pallet_format: str
    max_stack_weight_kg: Optional[Decimal] = None

    @property
    def is_full(self) -> bool:
        return self.status == FULL


@dataclass(frozen=True)
class StackedUnit:
    base: PalletInstance
    stacked: Tuple[PalletInstance, ...]
    total_height_m: Decimal
    total_weight_kg: Decimal
    footprint_L_m: Decimal
    footprint_W_m: Decimal
    pallet_format: str

    @property
    def stacked_pallet(self) -> Optional[PalletInstance]:
        return self.stacked[0] if self.stacked else None

    @property
    def has_stacked(self) -> bool:
        return bool(self.stacked)

    @property
    def pallet_count(self) -> int:
        return 1 + len(self.stacked)

    @property
    def container_ids(self) -> Tuple[str, ...]:
        return (self.base.container_id,) + tuple(p.container_id for p in self.stacked)


@dataclass(frozen=True)
class VehicleProfile:
    type: str
    L_m: Decimal
    W_m: Decimal
    H_m: Decimal
    max_payload_kg: Optional[Decimal] = None

    @property
    def volume_m3(self) -> Decimal:
        return self.L_m * self.W_m * self.H_m

    @property
    def floor_area_m2(self) -> Decimal:
        return self.L_m * self.W_m


@dataclass(frozen=True)
class PlacedUnit:
    unit: StackedUnit
    x_m: Decimal
    y_m: Decimal
    z_m: Decimal
    row_index: int
    column_index: int

    @property
    def x_min_m(self) -> Decimal:
        return self.x_m - self.unit.footprint_L_m / Decimal("2")

    @property
    def x_max_m(self) -> Decimal:
        return self.x_m + self.unit.footprint_L_m / Decimal("2")

    @property
    def z_min_m(self) -> Decimal:
        return self.z_m - self.unit.footprint_W_m / Decimal("2")

    @property
    def z_max_m(self) -> Decimal:
        return self.z_m + self.unit.footprint_W_m / Decimal("2")


@dataclass(frozen=True)
class RowOverflow:
    row_index: int
    cursor_x_m: Decimal
    row_length_m: Decimal
    units: Tuple[StackedUnit, ...]


@dataclass
class PlacementResult:
    placed: List[PlacedUnit]
    overflows: List[RowOverflow] = field(default_factory=list)

    @property
    def excluded(self) -> List[StackedUnit]:
        return [unit for overflow in self.overflows for unit in overflow.units]

    @property
    def excluded_count(self) -> int:
        return len(self.excluded)

    @property
    def excluded_container_ids(self) -> List[str]:
        return [cid for unit in self.excluded for cid in unit.container_ids]


@dataclass
class LoadingStats:
    unit_count: int
    total_pallets: int
    stacked_count: int
    total_weight_kg: Decimal
    total_volume_m3: Decimal
    vehicle_volume_m3: Decimal
    volume_utilization_pct: Decimal
    floor_area_m2: Decimal
    vehicle_floor_area_m2: Decimal
    floor_utilization_pct: Decimal
    placed_pallets: int
    excluded_count: int
    over_capacity: bool
    overweight: bool


@dataclass(frozen=True)
class PlanningConfig:
    support_riser_m: Decimal = Decimal("0.15")
    height_tolerance: Decimal = Decimal("1.02")
    default_max_stack_weight_kg: Decimal = Decimal("1000")
    max_stack_depth: int = 1
    width_epsilon_m: Decimal = Decimal("0.01")
    length_tolerance_m: Decimal = Decimal("0.01")

    def validate(self) -> None:
        if self.support_riser_m < 0:
            raise ValueError("support_riser_m must be >= 0.")
        if self.height_tolerance < 1:
            raise ValueError("height_tolerance must be >= 1.")
        if self.default_max_stack_weight_kg <= 0:
            raise ValueError("default_max_stack_weight_kg must be > 0.")
        if self.max_stack_depth < 0:
            raise ValueError("max_stack_depth must be >= 0.")
        if self.width_epsilon_m < 0 or self.length_tolerance_m < 0:
            raise ValueError("width_epsilon_m and length_tolerance_m must be >= 0.")


@dataclass
class PlanResult:
    pallets: List[PalletInstance]
    units: List[StackedUnit]
    placement: PlacementResult
    stats: LoadingStats
    invalid_count: int = 0

    @property
    def placed(self) -> List[PlacedUnit]:
        return self.placement.placed

    @property
    def excluded_count(self) -> int:
        return self.placement.excluded_count
