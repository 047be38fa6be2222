"""
Cost-Code Estimate Editor
Interactive labor/material/contingency estimating over a cost-code catalog
"""

import streamlit as st
import json

from estimate_engine import (
    EstimateSession,
    EstimationError,
    EstimationType,
    MaterialEstimationType,
    ProjectSettings,
)
from estimate_engine.catalog import load_catalog
from estimate_engine.reporting import build_division_breakdown, build_line_items_frame, build_material_items_frame
from estimate_engine.serializer import line_items_to_records
from estimate_engine.visualization import create_division_cost_chart

# Page config
st.set_page_config(
    page_title="Cost-Code Estimate Editor",
    page_icon="🧮",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.title("🧮 Cost-Code Estimate Editor")
st.markdown("**Division → cost code → sub-cost code estimating with leaf-level contingency**")


@st.cache_data
def load_sample_catalog():
    return load_catalog()


catalog, sample_settings = load_sample_catalog()

# Sidebar - Project Settings
st.sidebar.header("Project Settings")

rooms_count = st.sidebar.number_input(
    "Number of Rooms",
    min_value=0,
    max_value=500,
    value=int(sample_settings.rooms_count),
    step=1,
    help="Used by per-room labor estimates"
)

area_count = st.sidebar.number_input(
    "Area (sq ft)",
    min_value=0.0,
    max_value=1_000_000.0,
    value=float(sample_settings.area_count),
    step=50.0,
    help="Used by per-area labor estimates"
)

default_contingency = st.sidebar.slider(
    "Project Contingency (%)",
    min_value=0.0,
    max_value=25.0,
    value=float(sample_settings.default_contingency_percent),
    step=0.5,
    help="Applied to leaf cost codes with contingency enabled and no override"
)

st.sidebar.markdown("### Columns")
only_total = st.sidebar.checkbox("Only show totals", value=sample_settings.only_total)
enable_labor = st.sidebar.checkbox("Labor", value=sample_settings.enable_labor, disabled=only_total)
enable_material = st.sidebar.checkbox("Material", value=sample_settings.enable_material, disabled=only_total)

settings = ProjectSettings(
    enable_labor=enable_labor,
    enable_material=enable_material,
    only_total=only_total,
    rooms_count=rooms_count,
    area_count=area_count,
    default_contingency_percent=default_contingency,
)

if "estimate_session" not in st.session_state:
    st.session_state.estimate_session = EstimateSession(catalog, settings)
session: EstimateSession = st.session_state.estimate_session
session.settings = settings

node_labels = {
    node.id: f"{node.number} {node.name}"
    for division in session.divisions
    for node in division.iter_nodes()
    if node.is_leaf
}

tab1, tab2, tab3 = st.tabs(["✏️ Estimate", "📊 Totals", "📋 Line Items"])

with tab1:
    st.subheader("Apply Estimate")
    node_id = st.selectbox("Cost Code", options=list(node_labels), format_func=node_labels.get)
    node = session.node(node_id)

    col1, col2 = st.columns(2)
    with col1:
        method = st.radio(
            "Labor Method",
            options=[e.value for e in EstimationType],
            index=[e.value for e in EstimationType].index(node.estimation_type.value),
            horizontal=True,
        )
        if method == EstimationType.PER_ROOM.value:
            rate = st.number_input("Labor per Room", min_value=0.0, value=float(node.labor_amount_per_room or 0.0))
        elif method == EstimationType.PER_AREA.value:
            rate = st.number_input("Labor per sq ft", min_value=0.0, value=float(node.labor_amount_per_area or 0.0))
        else:
            rate = st.number_input("Labor Amount", min_value=0.0, value=float(node.labor_amount))
        material_methods = [e.value for e in MaterialEstimationType]
        material_method = st.radio(
            "Material Method",
            options=material_methods,
            index=material_methods.index(node.material_estimation_type.value),
            horizontal=True,
        )
        if material_method == MaterialEstimationType.ITEM_WISE.value:
            edited_items = st.data_editor(
                build_material_items_frame(session.default_material_items(node_id)),
                column_config={
                    "item_id": None,
                    "unit_id": None,
                    "sequence": st.column_config.TextColumn("Sequence", disabled=True),
                    "name": st.column_config.TextColumn("Item"),
                    "unit_price": st.column_config.NumberColumn("Unit Price", min_value=0.0, format="$%.2f"),
                    "quantity": st.column_config.NumberColumn("Quantity", min_value=0.0),
                    "is_preferred": st.column_config.CheckboxColumn("Preferred", disabled=True),
                },
                use_container_width=True,
                hide_index=True,
                num_rows="dynamic",
                key=f"items_{node_id}",
            )
        else:
            material = st.number_input("Material Amount", min_value=0.0, value=float(node.material_amount))

    with col2:
        contingency_enabled = st.checkbox("Contingency", value=node.contingency_enabled)
        override = st.text_input(
            "Contingency Override (%)",
            value="" if node.contingency_percentage is None else str(node.contingency_percentage),
            help="Leave empty to use the project contingency"
        )

    if st.button("Apply", type="primary"):
        try:
            if method == EstimationType.PER_ROOM.value:
                session.apply_per_room(node_id, rate, explicit=True)
            elif method == EstimationType.PER_AREA.value:
                session.apply_per_area(node_id, rate, explicit=True)
            else:
                session.apply_manual(node_id, rate, explicit=True)
            if material_method == MaterialEstimationType.ITEM_WISE.value:
                rows = edited_items.astype(object).where(edited_items.notna(), None)
                session.apply_item_wise(node_id, rows.to_dict("records"), explicit=True)
            else:
                session.apply_material(node_id, material, explicit=True)
            session.set_contingency(node_id, contingency_enabled, override)
            st.success(f"Applied estimate to {node_labels[node_id]}")
        except EstimationError as e:
            st.error(str(e))

    st.markdown("### Remove / Restore")
    deleted = st.multiselect(
        "Removed cost codes",
        options=list(node_labels),
        default=[i for i in session.removed_ids() if i in node_labels],
        format_func=node_labels.get,
    )
    for removed_id in set(session.deleted_ids) - set(deleted):
        session.restore_node(removed_id)
    for removed_id in set(deleted) - set(session.deleted_ids):
        session.delete_node(removed_id)

totals = session.totals()

with tab2:
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Grand Total", f"${totals.main.total:,.2f}")
    with col2:
        st.metric("Contingency", f"${totals.main.contingency:,.2f}")
    with col3:
        st.metric("Other Costs", f"${totals.other.total:,.2f}", help="Divisions excluded from main totals")

    breakdown_df = build_division_breakdown(totals, settings)
    amount_columns = [c for c in breakdown_df.columns if c not in ("Section", "Division")]
    st.dataframe(
        breakdown_df.style.format({c: "${:,.2f}" for c in amount_columns}),
        use_container_width=True,
        hide_index=True
    )
    st.plotly_chart(create_division_cost_chart(totals), use_container_width=True)

with tab3:
    items = session.line_items()
    st.dataframe(build_line_items_frame(items), use_container_width=True, hide_index=True)
    st.download_button(
        "Download line items (JSON)",
        data=json.dumps(line_items_to_records(items), indent=2),
        file_name="estimate_line_items.json",
        mime="application/json",
    )
