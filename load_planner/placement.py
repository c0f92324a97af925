from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List

from load_planner.models import PlacedUnit, PlacementResult, PlanningConfig, RowOverflow, StackedUnit, VehicleProfile

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
TWO = Decimal("2")


def sort_units(units: Iterable[StackedUnit], config: PlanningConfig | None = None) -> list[StackedUnit]:
    """Footprint length ascending, tallest first among equal lengths.

    Lengths closer than ``length_tolerance_m`` count as equal, so the key
    snaps each length onto the first one seen within tolerance.
    """
    config = config or PlanningConfig()
    ordered = list(units)
    anchors: list[Decimal] = []
    for length in sorted({unit.footprint_L_m for unit in ordered}):
        if not anchors or length - anchors[-1] > config.length_tolerance_m:
            anchors.append(length)

    def snapped(length: Decimal) -> Decimal:
        return max(anchor for anchor in anchors if anchor <= length)

    return sorted(ordered, key=lambda u: (snapped(u.footprint_L_m), -u.total_height_m))


def footprints_overlap(a: PlacedUnit, b: PlacedUnit) -> bool:
    return a.x_min_m < b.x_max_m and a.x_max_m > b.x_min_m and a.z_min_m < b.z_max_m and a.z_max_m > b.z_min_m


class RowPacker:
    """Shelf packer for the vehicle floor.

    Units are laid in rows across the vehicle width; a row holds units of one
    footprint length and the cursor moves along the vehicle length by that
    length once the row is closed.
    """

    def __init__(self, vehicle: VehicleProfile, config: PlanningConfig | None = None):
        self.vehicle = vehicle
        self.config = config or PlanningConfig()
        self.placed: List[PlacedUnit] = []
        self.overflows: List[RowOverflow] = []
        self.cur_x = ZERO
        self.row_index = 0
        self.row: List[StackedUnit] = []

    def _same_length(self, a: StackedUnit, b: StackedUnit) -> bool:
        return abs(a.footprint_L_m - b.footprint_L_m) <= self.config.length_tolerance_m

    def column_capacity(self, unit: StackedUnit) -> int:
        return int((self.vehicle.W_m + self.config.width_epsilon_m) // unit.footprint_W_m)

    def _row_width(self) -> Decimal:
        return sum((unit.footprint_W_m for unit in self.row), ZERO)

    def _row_is_full(self) -> bool:
        return len(self.row) >= min(self.column_capacity(unit) for unit in self.row)

    def _accepts(self, unit: StackedUnit) -> bool:
        if not self.row:
            return True
        if not self._same_length(self.row[0], unit) or self._row_is_full():
            return False
        return self._row_width() + unit.footprint_W_m <= self.vehicle.W_m + self.config.width_epsilon_m

    def add(self, unit: StackedUnit) -> None:
        if not self._accepts(unit):
            self.close_row()
        self.row.append(unit)

    def _z_positions(self, row: List[StackedUnit]) -> List[Decimal]:
        if len(row) == 1:
            return [self.vehicle.W_m / TWO]
        if len(row) == 2:
            return [row[0].footprint_W_m / TWO, self.vehicle.W_m - row[1].footprint_W_m / TWO]
        positions = []
        cursor_z = ZERO
        for unit in row:
            positions.append(cursor_z + unit.footprint_W_m / TWO)
            cursor_z += unit.footprint_W_m
        return positions

    def close_row(self) -> None:
        if not self.row:
            return
        row_length = max(unit.footprint_L_m for unit in self.row)
        too_wide = self._row_width() > self.vehicle.W_m + self.config.width_epsilon_m
        row = sorted(self.row, key=lambda u: -u.total_height_m)
        self.row = []
        index = self.row_index
        self.row_index += 1
        if too_wide or self.cur_x + row_length > self.vehicle.L_m:
            overflow = RowOverflow(row_index=index, cursor_x_m=self.cur_x, row_length_m=row_length, units=tuple(row))
            self.overflows.append(overflow)
            logger.warning(
                "row %d (%d units, %s m) does not fit at x=%s m in %s (%s m); excluded: %s",
                index,
                len(row),
                row_length,
                self.cur_x,
                self.vehicle.type,
                self.vehicle.L_m,
                ", ".join(unit.base.container_id for unit in row),
            )
            return
        x = self.cur_x + row_length / TWO
        for column, (unit, z) in enumerate(zip(row, self._z_positions(row))):
            self.placed.append(PlacedUnit(unit=unit, x_m=x, y_m=ZERO, z_m=z, row_index=index, column_index=column))
        self.cur_x += row_length

    def result(self) -> PlacementResult:
        self.close_row()
        return PlacementResult(placed=list(self.placed), overflows=list(self.overflows))


def place_units(
    units: Iterable[StackedUnit],
    vehicle: VehicleProfile,
    config: PlanningConfig | None = None,
) -> PlacementResult:
    packer = RowPacker(vehicle, config=config)
    for unit in sort_units(units, packer.config):
        packer.add(unit)
    return packer.result()
