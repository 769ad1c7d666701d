"""
Manual Plans (Page 2)
Add plans quoted by insurers that have no rate table rows, and manage custom providers.
Manual plans are shared with every advisor and appear in every member's results.
"""

import streamlit as st
import pandas as pd
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from manual_plans import (
    all_providers,
    load_custom_providers,
    add_custom_provider,
    create_manual_plan,
    add_to_results,
    remove_from_results,
)
from portal_services import (
    initialize_session_state,
    get_reference_data,
    show_cloud_status,
    show_store_result,
)

# Page configuration
st.set_page_config(
    page_title="Manual Plans | Insurance Comparison",
    page_icon="✍️",
    layout="wide"
)

initialize_session_state()

OTHER_NETWORK = "Other..."

st.title("✍️ Manual Plans")
show_cloud_status()

templates, engine = get_reference_data()
store = st.session_state.override_store
custom_providers = load_custom_providers(store.local)
providers = all_providers(custom_providers)

# =============================================================================
# Add a manual plan
# =============================================================================

st.subheader("Add Plan")

provider = st.selectbox("Provider", providers, format_func=lambda p: p['name'], key="manual_provider")
network_choice = st.selectbox("Network", provider['networks'] + [OTHER_NETWORK], key="manual_network")

with st.form("manual_plan_form", clear_on_submit=True):
    col1, col2 = st.columns(2)
    with col1:
        plan_name = st.text_input("Plan name *")
        custom_network = st.text_input(
            "Network name", disabled=network_choice != OTHER_NETWORK,
            help="Used when the network is not in the list",
        )
    with col2:
        copay = st.text_input("Copay", placeholder="Variable")
        premium = st.text_input("Annual premium (AED) *")

    if st.form_submit_button("➕ Add plan", type="primary"):
        network = custom_network if network_choice == OTHER_NETWORK else network_choice
        try:
            record = create_manual_plan(
                provider['id'], plan_name, premium, templates,
                network=network, copay=copay, custom_providers=custom_providers,
            )
        except ValueError as e:
            st.error(str(e))
        else:
            show_store_result(store.add_manual_plan(record))
            add_to_results(engine, st.session_state.results, record, store.snapshot)

# =============================================================================
# Existing manual plans
# =============================================================================

st.markdown("---")
st.subheader("Saved Manual Plans")

records = [r for plans in store.manual_plans.values() for r in plans]
if not records:
    st.info("No manual plans yet")
else:
    st.dataframe(
        pd.DataFrame([
            {
                'Provider': r.provider,
                'Plan': r.plan,
                'Network': r.network,
                'Copay': r.copay,
                'Premium (AED)': f"{r.premium:,.2f}",
            }
            for r in records
        ]),
        hide_index=True,
        width="stretch",
    )

    to_delete = st.selectbox(
        "Plan to remove", records,
        format_func=lambda r: f"{r.provider} | {r.plan} | {r.network}",
        key="manual_delete",
    )
    if st.button("🗑️ Remove plan"):
        st.session_state.manual_plan_notice = store.delete_manual_plan(to_delete.provider_key, to_delete.id)
        remove_from_results(engine, st.session_state.results, to_delete.id, store.snapshot)
        st.rerun()

if 'manual_plan_notice' in st.session_state:
    show_store_result(st.session_state.pop('manual_plan_notice'))

# =============================================================================
# Custom providers
# =============================================================================

st.markdown("---")
with st.expander("🏢 Custom providers"):
    if custom_providers:
        st.markdown(", ".join(p['name'] for p in custom_providers))
    new_provider = st.text_input("Provider name", key="custom_provider_name")
    if st.button("Add provider"):
        try:
            added = add_custom_provider(store.local, new_provider)
            st.success(f"✅ Added {added['name']}")
            st.rerun()
        except ValueError as e:
            st.error(str(e))
