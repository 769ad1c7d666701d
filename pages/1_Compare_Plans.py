"""
Compare Plans (Page 1)
Enter the family, choose shared settings, search and work through each member's plan list.
Three-stage workflow:
1. Family members and shared settings
2. Search and filter plans per member, select plans and set their status
3. Edit plan details, premiums and benefits
"""

import streamlit as st
import pandas as pd
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from constants import (
    LOCATIONS,
    SALARY_CATEGORIES,
    GENDERS,
    SPONSORSHIP_OPTIONS,
    PLAN_STATUSES,
    PLAN_STATUS_LABELS,
)
from portal_types import BenefitSet, CoverageItem, MemberResult
from insurance_age import parse_dob, AgeValidationError
from family import add_member, remove_member, update_member, members_missing_dob
from result_actions import toggle_selection, set_status, copy_selections, filter_plans, unique_values
from portal_services import (
    initialize_session_state,
    show_cloud_status,
    show_store_result,
    run_search,
    refresh_results,
    help_text,
)

# Page configuration
st.set_page_config(
    page_title="Compare Plans | Insurance Comparison",
    page_icon="👨‍👩‍👧",
    layout="wide"
)

initialize_session_state()

BENEFIT_TEXT_FIELDS = [
    ('area_of_cover', "Area of Cover"),
    ('annual_limit', "Annual Limit"),
    ('network', "Network"),
    ('consultation_deductible', "Consultation Deductible"),
    ('prescribed_drugs', "Prescribed Drugs & Medicines"),
    ('diagnostics', "Diagnostics"),
    ('preexisting_condition', "Pre-existing Condition"),
    ('physiotherapy', "Physiotherapy"),
    ('outpatient_maternity', "Out-patient Maternity"),
    ('inpatient_maternity', "In-patient Maternity"),
]
BENEFIT_COVERAGE_FIELDS = [
    ('dental', "Dental"),
    ('optical', "Optical"),
    ('alternative_medicine', "Alternative Medicine"),
]


def set_member_field(member_id: int, field_name: str, value):
    try:
        st.session_state.members = update_member(st.session_state.members, member_id, field_name, value)
    except ValueError as e:
        st.error(str(e))


def format_premium(plan) -> str:
    return "N/A" if plan.is_unpriced else f"{plan.premium:,.2f}"


# =============================================================================
# Stage 1: Family and settings
# =============================================================================

st.title("👨‍👩‍👧 Compare Plans")
show_cloud_status()

st.subheader("Shared Settings")
settings = st.session_state.settings
col1, col2 = st.columns(2)
with col1:
    settings.location = st.radio(
        "Emirate", LOCATIONS, index=LOCATIONS.index(settings.location), horizontal=True
    )
with col2:
    salary_keys = list(SALARY_CATEGORIES.keys())
    settings.salary_category = st.radio(
        "Principal salary", salary_keys,
        index=salary_keys.index(settings.salary_category),
        format_func=lambda k: SALARY_CATEGORIES[k],
        horizontal=True,
    )

st.subheader("Family Members")
st.caption(help_text('insurance_age'))

for member in st.session_state.members:
    with st.container(border=True):
        cols = st.columns([3, 2, 2, 2, 2, 1])
        with cols[0]:
            name = st.text_input("Name", value=member.name, key=f"name_{member.id}")
            if name != member.name:
                set_member_field(member.id, 'name', name)
        with cols[1]:
            try:
                current_dob = parse_dob(member.dob)
            except AgeValidationError:
                current_dob = None
            dob = st.date_input(
                "Date of birth", value=current_dob, key=f"dob_{member.id}",
                min_value=date(1900, 1, 1), max_value=date.today(), format="DD/MM/YYYY",
            )
            if dob is not None and dob.isoformat() != member.dob:
                set_member_field(member.id, 'dob', dob.isoformat())
        with cols[2]:
            gender = st.selectbox("Gender", GENDERS, index=GENDERS.index(member.gender),
                                  key=f"gender_{member.id}")
            if gender != member.gender:
                set_member_field(member.id, 'gender', gender)
        with cols[3]:
            sponsorship = st.selectbox(
                "Sponsorship", SPONSORSHIP_OPTIONS,
                index=SPONSORSHIP_OPTIONS.index(member.sponsorship), key=f"sponsor_{member.id}",
            )
            if sponsorship != member.sponsorship:
                set_member_field(member.id, 'sponsorship', sponsorship)
        with cols[4]:
            st.markdown(f"**Relationship:** {member.relationship}")
            maternity = st.checkbox("Maternity", value=member.maternity_enabled,
                                    key=f"maternity_{member.id}")
            if maternity != member.maternity_enabled:
                set_member_field(member.id, 'maternity_enabled', maternity)
        with cols[5]:
            if st.button("🗑️", key=f"remove_{member.id}", help="Remove member"):
                try:
                    st.session_state.members = remove_member(st.session_state.members, member.id)
                    st.session_state.results.pop(member.id, None)
                    st.rerun()
                except ValueError as e:
                    st.error(str(e))

col_add, col_search = st.columns([1, 1])
with col_add:
    if st.button("➕ Add family member", width="stretch"):
        st.session_state.members = add_member(st.session_state.members)
        st.rerun()
with col_search:
    if st.button("🔍 Search plans", type="primary", width="stretch"):
        missing = members_missing_dob(st.session_state.members)
        if missing:
            st.error("Please enter date of birth for all family members")
        else:
            with st.spinner("Comparing plans..."):
                run_search()

for member_id, error in st.session_state.search_errors.items():
    st.error(f"⚠️ {error}")


# =============================================================================
# Stage 2: Results
# =============================================================================

results = st.session_state.results

if results:
    st.markdown("---")
    st.subheader("Results")
    st.caption(help_text('no_rate'))

    filter_cols = st.columns(4)
    filters = {}
    for col, field_name in zip(filter_cols, ('provider', 'plan', 'network', 'copay')):
        with col:
            options = unique_values(results, field_name)
            filters[field_name] = st.text_input(
                f"Search {field_name}", key=f"filter_{field_name}",
                help=", ".join(options[:15]) if options else None,
            )

    for member in st.session_state.members:
        result: MemberResult = results.get(member.id)
        if result is None:
            continue

        with st.expander(f"{member.display_name} | Age {result.age} | {member.gender} | "
                         f"{member.sponsorship} | {len(result.comparison)} plans", expanded=True):
            col1, col2, col3, col4 = st.columns(4)
            col1.metric("Lowest", f"AED {result.min_price:,.2f}")
            col2.metric("Average", f"AED {result.avg_price:,.2f}")
            col3.metric("Highest", f"AED {result.max_price:,.2f}")
            with col4:
                if len(results) > 1 and st.button("📋 Copy selections to others",
                                                  key=f"copy_{member.id}"):
                    try:
                        updated = copy_selections(results, member.id)
                        st.success(f"✅ Copied {len(result.selected_plans)} plans to {updated} other members")
                    except ValueError as e:
                        st.warning(str(e))

            visible = filter_plans(result.comparison, filters)
            plans_df = pd.DataFrame([
                {
                    'id': p.id,
                    'Select': p.selected,
                    'Status': p.status,
                    'Provider': p.provider,
                    'Plan': p.plan,
                    'Network': p.network,
                    'Copay': p.copay,
                    'Premium (AED)': format_premium(p),
                    'Location': p.plan_location or '',
                    'Manual': '✍️' if p.is_manual else '',
                }
                for p in visible
            ])

            if plans_df.empty:
                st.info("No plans match the current search")
                continue

            edited = st.data_editor(
                plans_df,
                key=f"plans_{member.id}",
                hide_index=True,
                width="stretch",
                disabled=[c for c in plans_df.columns if c not in ('Select', 'Status')],
                column_config={
                    'id': None,
                    'Select': st.column_config.CheckboxColumn("Select"),
                    'Status': st.column_config.SelectboxColumn(
                        "Status", options=PLAN_STATUSES, required=True,
                    ),
                },
            )

            for row in edited.to_dict('records'):
                plan = result.find_plan(row['id'])
                if plan is None:
                    continue
                if bool(row['Select']) != plan.selected:
                    toggle_selection(results, member.id, plan.id)
                if row['Status'] != plan.status:
                    set_status(results, member.id, plan.id, row['Status'])

            selected = result.selected_plans
            if selected:
                st.caption("Selected: " + ", ".join(
                    f"{p.provider} {p.plan}"
                    + (f" ({PLAN_STATUS_LABELS[p.status]})" if p.status != 'none' else "")
                    for p in selected
                ))


    # =========================================================================
    # Stage 3: Edits
    # =========================================================================

    st.markdown("---")
    st.subheader("Edit Plans")
    st.caption(help_text('plan_edits'))

    store = st.session_state.override_store
    result_members = [m for m in st.session_state.members if m.id in results]

    edit_member = st.selectbox(
        "Member", result_members, format_func=lambda m: m.display_name, key="edit_member"
    )
    edit_result = results[edit_member.id]
    edit_plan = st.selectbox(
        "Plan", edit_result.comparison,
        format_func=lambda p: f"{p.provider} | {p.plan} | {p.network} | {format_premium(p)}",
        key="edit_plan",
    )

    tab_details, tab_benefits = st.tabs(["✏️ Plan details", "📋 Benefits"])

    with tab_details:
        with st.form("plan_edit_form"):
            col1, col2 = st.columns(2)
            with col1:
                new_plan = st.text_input("Plan name", value=edit_plan.plan)
                new_network = st.text_input("Network", value=edit_plan.network)
            with col2:
                new_copay = st.text_input("Copay", value=edit_plan.copay)
                new_premium = st.number_input(
                    f"Premium for {edit_member.display_name} (AED)",
                    min_value=0.0, value=float(edit_plan.premium), step=10.0,
                )
            if st.form_submit_button("💾 Save plan", type="primary"):
                store_result = store.save_plan_edit(
                    edit_plan.id,
                    edit_member.id,
                    plan=new_plan if new_plan != edit_plan.plan else None,
                    network=new_network if new_network != edit_plan.network else None,
                    copay=new_copay if new_copay != edit_plan.copay else None,
                    premium=new_premium if new_premium != edit_plan.premium else None,
                )
                refresh_results()
                show_store_result(store_result)

    with tab_benefits:
        with st.form("benefits_edit_form"):
            benefits = edit_plan.benefits
            values = {}
            col1, col2 = st.columns(2)
            for i, (field_name, label) in enumerate(BENEFIT_TEXT_FIELDS):
                with col1 if i % 2 == 0 else col2:
                    values[field_name] = st.text_area(label, value=getattr(benefits, field_name), height=68)

            coverage = {}
            cov_cols = st.columns(3)
            for col, (field_name, label) in zip(cov_cols, BENEFIT_COVERAGE_FIELDS):
                item = getattr(benefits, field_name)
                with col:
                    enabled = st.checkbox(f"{label} covered", value=item.enabled, key=f"cov_{field_name}")
                    text = st.text_input(f"{label} details", value=item.value, key=f"covv_{field_name}")
                    coverage[field_name] = CoverageItem(enabled=enabled, value=text)

            if st.form_submit_button("💾 Save benefits", type="primary"):
                updated: BenefitSet = benefits.copy()
                for field_name, value in {**values, **coverage}.items():
                    setattr(updated, field_name, value)
                store_result = store.save_benefits(
                    edit_plan.id, updated,
                    provider_key=edit_plan.provider_key if edit_plan.is_manual else None,
                )
                refresh_results()
                show_store_result(store_result)
else:
    st.info("Enter each member's date of birth and click **Search plans** to compare.")
