from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path

import pandas as pd
from pandas.errors import EmptyDataError
import pydeck as pdk
import streamlit as st

from load_planner import (
    CatalogInputError,
    ListingInputError,
    MissingCatalogEntry,
    load_catalog_csv,
    load_listing_csv,
    normalize_catalog_rows,
    normalize_listing_rows,
    plan_load_cached,
)
from load_planner.catalog import PALLET_FORMATS
from load_planner.models import PlanningConfig
from load_planner.reporting import build_excluded_rows, build_placement_rows, build_plan_export, build_unit_rows
from load_planner.vehicles import DEFAULT_VEHICLE_TYPE, DEFAULT_VEHICLES_YAML, parse_vehicle_profiles

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Load Planning", layout="wide")
st.title("Load Planning")
st.caption("Import a pallet listing, choose a vehicle and compute the stacking and floor plan.")

# metres per degree near the equator, used to draw the plan on a map-less deck
M_PER_DEG = 111320.0

LISTING_PLACEHOLDER = "container_id,product_id,quantity\n003761234500000011,A,50\n003761234500000028,A,10"
CATALOG_PLACEHOLDER = (
    "product_id,qty_per_pallet,unit_weight_kg,pallet_format,layer_height_m,layer_count,stackable,max_stack_weight_kg\n"
    "A,60,10,FEU,0.15,8,true,500"
)


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _uploaded_or_text(upload, text: str) -> str:
    if upload is not None:
        return upload.getvalue().decode("utf-8")
    return text or ""


def _unit_polygon(placed) -> list[list[float]]:
    half_l = float(placed.unit.footprint_L_m) / 2
    half_w = float(placed.unit.footprint_W_m) / 2
    x = float(placed.x_m)
    z = float(placed.z_m)
    corners = [(x - half_l, z - half_w), (x + half_l, z - half_w), (x + half_l, z + half_w), (x - half_l, z + half_w)]
    return [[cx / M_PER_DEG, cz / M_PER_DEG] for cx, cz in corners]


def _deck_layers(result, vehicle):
    rows = []
    for placed in result.placed:
        unit = placed.unit
        if unit.has_stacked:
            color = [46, 125, 50, 200]
        elif unit.base.is_full:
            color = [25, 118, 210, 200]
        else:
            color = [245, 124, 0, 200]
        rows.append(
            {
                "polygon": _unit_polygon(placed),
                "height": float(unit.total_height_m),
                "color": color,
                "label": " / ".join(unit.container_ids),
            }
        )
    length = float(vehicle.L_m) / M_PER_DEG
    width = float(vehicle.W_m) / M_PER_DEG
    floor = [{"polygon": [[0, 0], [length, 0], [length, width], [0, width]]}]
    return [
        pdk.Layer(
            "PolygonLayer",
            data=floor,
            get_polygon="polygon",
            get_fill_color=[180, 180, 180, 80],
            stroked=True,
            get_line_color=[80, 80, 80],
        ),
        pdk.Layer(
            "PolygonLayer",
            data=rows,
            get_polygon="polygon",
            extruded=True,
            get_elevation="height",
            get_fill_color="color",
            pickable=True,
            auto_highlight=True,
        ),
    ]


def _render_stats(result):
    stats = result.stats
    col1, col2, col3, col4, col5 = st.columns(5)
    col1.metric("Pallets", stats.total_pallets)
    col2.metric("Stacked units", stats.stacked_count)
    col3.metric("Total weight (kg)", f"{stats.total_weight_kg:.1f}")
    col4.metric("Volume utilization", f"{stats.volume_utilization_pct:.1f}%")
    col5.metric("Floor utilization", f"{stats.floor_utilization_pct:.1f}%")
    st.caption("Volume utilization sums footprint x stack height per unit and ignores floor gaps.")
    if stats.over_capacity:
        st.error("Volume utilization is above 100 %: check the catalog dimensions.")
    if stats.overweight:
        st.warning("Total weight exceeds the vehicle payload.")
    if result.invalid_count:
        st.info(
            f"{result.invalid_count} listing rows have a missing id or a non-positive quantity and were skipped."
        )


with st.sidebar:
    st.header("Vehicle")
    vehicles_yaml = st.text_area("vehicles.yaml", value=DEFAULT_VEHICLES_YAML, height=260)
    try:
        vehicles = {profile.type: profile for profile in parse_vehicle_profiles(vehicles_yaml)}
    except Exception as exc:  # noqa: BLE001
        st.error(f"vehicles.yaml could not be read: {exc}")
        st.stop()
    if not vehicles:
        st.warning("No vehicle defined.")
        st.stop()
    vehicle_types = list(vehicles)
    default_index = vehicle_types.index(DEFAULT_VEHICLE_TYPE) if DEFAULT_VEHICLE_TYPE in vehicle_types else 0
    vehicle_type = st.selectbox("Vehicle type", vehicle_types, index=default_index)
    vehicle = vehicles[vehicle_type]
    st.caption(f"{vehicle.L_m} x {vehicle.W_m} x {vehicle.H_m} m")

    st.header("Stacking")
    stacking_enabled = st.toggle("Enable stacking", value=True)
    support_riser = st.number_input("Support riser (m)", min_value=0.0, max_value=1.0, value=0.15, step=0.01)
    default_max_stack = st.number_input("Default max stack weight (kg)", min_value=1.0, value=1000.0, step=50.0)
    max_stack_depth = st.number_input("Max pallets stacked per base", min_value=0, max_value=3, value=1, step=1)

config = PlanningConfig(
    support_riser_m=Decimal(str(support_riser)),
    default_max_stack_weight_kg=Decimal(str(default_max_stack)),
    max_stack_depth=int(max_stack_depth),
)

plan_tab, data_tab = st.tabs(["Loading plan", "Catalog"])

with data_tab:
    st.header("Product catalog")
    st.caption(
        "Pallet formats: "
        + ", ".join(f"{fmt.code} ({fmt.footprint_L_m} x {fmt.footprint_W_m} m)" for fmt in PALLET_FORMATS.values())
    )
    if st.button("Load sample catalog", use_container_width=True):
        st.session_state["catalog_text_input"] = _read_text("data/catalog.sample.csv")
    catalog_file = st.file_uploader("Catalog CSV", type=["csv"], key="catalog_file")
    catalog_text = st.text_area("Catalog CSV text", key="catalog_text_input", height=180, placeholder=CATALOG_PLACEHOLDER)

catalog = {}
catalog_content = _uploaded_or_text(catalog_file, catalog_text)
if catalog_content.strip():
    try:
        catalog = normalize_catalog_rows(load_catalog_csv(catalog_content))
    except EmptyDataError:
        st.error("The catalog CSV is empty.")
    except CatalogInputError as exc:
        st.error(str(exc))

with data_tab:
    if catalog:
        st.dataframe(pd.DataFrame([entry.__dict__ for entry in catalog.values()]), use_container_width=True)

with plan_tab:
    st.header("Pallet listing")
    if st.button("Load sample listing", use_container_width=True):
        st.session_state["listing_text_input"] = _read_text("data/listing.sample.csv")
    listing_col1, listing_col2 = st.columns(2)
    with listing_col1:
        listing_file = st.file_uploader("Listing CSV", type=["csv"], key="listing_file")
    with listing_col2:
        listing_text = st.text_area(
            "Listing CSV text", key="listing_text_input", height=160, placeholder=LISTING_PLACEHOLDER
        )

    listing_content = _uploaded_or_text(listing_file, listing_text)
    if not listing_content.strip():
        st.info("Import a listing to compute a loading plan.")
        st.stop()
    if not catalog:
        st.warning("The catalog is empty: fill it in the Catalog tab.")
        st.stop()

    try:
        listing, invalid_count = normalize_listing_rows(load_listing_csv(listing_content))
    except EmptyDataError:
        st.error("The listing CSV is empty.")
        st.stop()
    except ListingInputError as exc:
        st.error(str(exc))
        st.stop()
    try:
        result = plan_load_cached(listing, catalog, vehicle, stacking_enabled, config, invalid_count)
    except MissingCatalogEntry as exc:
        st.error(f"Products missing from the catalog: {', '.join(exc.product_ids)}")
        st.stop()

    _render_stats(result)

    st.subheader("3D view")
    st.pydeck_chart(
        pdk.Deck(
            map_style=None,
            initial_view_state=pdk.ViewState(
                latitude=float(vehicle.W_m) / 2 / M_PER_DEG,
                longitude=float(vehicle.L_m) / 2 / M_PER_DEG,
                zoom=19,
                pitch=50,
            ),
            layers=_deck_layers(result, vehicle),
            tooltip={"text": "{label}"},
        ),
        use_container_width=True,
    )

    st.subheader("Placed units")
    placement_df = build_placement_rows(result.placed)
    st.dataframe(placement_df, use_container_width=True)

    st.subheader("Excluded units")
    if result.excluded_count:
        st.warning(f"{result.excluded_count} units do not fit in the {vehicle.type}.")
        st.dataframe(build_excluded_rows(result), use_container_width=True)
    else:
        st.success("Every unit fits in the vehicle.")

    with st.expander("All stack units"):
        st.dataframe(build_unit_rows(result.units), use_container_width=True)

    export_col1, export_col2 = st.columns(2)
    export_col1.download_button(
        "Download plan CSV",
        data=placement_df.to_csv(index=False).encode("utf-8-sig"),
        file_name="loading_plan.csv",
        mime="text/csv",
        use_container_width=True,
    )
    export_col2.download_button(
        "Download plan JSON",
        data=json.dumps(build_plan_export(result, vehicle), indent=2).encode("utf-8"),
        file_name="loading_plan.json",
        mime="application/json",
        use_container_width=True,
    )
