from __future__ import annotations

from decimal import InvalidOperation
from typing import Dict, List

import yaml

from load_planner.models import VehicleProfile
from load_planner.rounding import to_decimal

DEFAULT_VEHICLES_YAML = """
vehicles:
  - type: 7.5T
    L_m: 6
    W_m: 2.4
    H_m: 2.4
  - type: 19T
    L_m: 8
    W_m: 2.4
    H_m: 2.6
  - type: Semi 13.6m
    L_m: 13.6
    W_m: 2.4
    H_m: 2.7
""".strip()

DEFAULT_VEHICLE_TYPE = "Semi 13.6m"


def _to_decimal(vehicle_type: str, key: str, value):
    if value is None:
        return None
    try:
        return to_decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"vehicle {vehicle_type}: {key} value '{value}' is not a number") from exc


def parse_vehicle_profiles(vehicles_yaml: str) -> List[VehicleProfile]:
    profiles = []
    data = yaml.safe_load(vehicles_yaml) or {}
    for item in data.get("vehicles", []):
        vehicle_type = str(item.get("type") or "").strip()
        if not vehicle_type:
            raise ValueError("vehicle type is required")
        dims = {key: _to_decimal(vehicle_type, key, item.get(key)) for key in ("L_m", "W_m", "H_m")}
        for key, value in dims.items():
            if value is None or not value.is_finite() or value <= 0:
                raise ValueError(f"vehicle {vehicle_type}: {key} must be > 0")
        profiles.append(
            VehicleProfile(
                type=vehicle_type,
                L_m=dims["L_m"],
                W_m=dims["W_m"],
                H_m=dims["H_m"],
                max_payload_kg=_to_decimal(vehicle_type, "max_payload_kg", item.get("max_payload_kg")),
            )
        )
    return profiles


def vehicle_catalog(vehicles_yaml: str = DEFAULT_VEHICLES_YAML) -> Dict[str, VehicleProfile]:
    return {profile.type: profile for profile in parse_vehicle_profiles(vehicles_yaml)}


def get_vehicle(vehicle_type: str, vehicles_yaml: str = DEFAULT_VEHICLES_YAML) -> VehicleProfile:
    catalog = vehicle_catalog(vehicles_yaml)
    if vehicle_type not in catalog:
        raise KeyError(f"unknown vehicle type '{vehicle_type}'")
    return catalog[vehicle_type]


def custom_vehicle(L_m, W_m, H_m, vehicle_type: str = "custom") -> VehicleProfile:
    dims = [_to_decimal(vehicle_type, key, value) for key, value in (("L_m", L_m), ("W_m", W_m), ("H_m", H_m))]
    if any(value is None or not value.is_finite() or value <= 0 for value in dims):
        raise ValueError("vehicle dimensions must be > 0")
    return VehicleProfile(type=vehicle_type, L_m=dims[0], W_m=dims[1], H_m=dims[2])
