"""
Report (Page 3)
Review the plans selected across the family, add an advisor comment, download the PDF
comparison and reload earlier reports from history.
"""

import streamlit as st
import pandas as pd
import sys
import logging
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from report_builder import build_report, format_aed
from pdf_report_renderer import generate_pdf_report
from report_history import ReportHistory, apply_selections, merge_manual_plans
from portal_services import (
    initialize_session_state,
    get_reference_data,
    show_cloud_status,
    refresh_results,
)

logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title="Report | Insurance Comparison",
    page_icon="📄",
    layout="wide"
)

initialize_session_state()

st.title("📄 Report")
show_cloud_status()

history: ReportHistory = st.session_state.report_history
results = st.session_state.results

# =============================================================================
# Report preview and PDF
# =============================================================================

st.session_state.advisor_comment = st.text_area(
    "Advisor comment", value=st.session_state.advisor_comment,
    help="Printed under the comparison table",
)

if not results:
    st.info("Run a search on **Compare Plans** and select plans to build a report.")
else:
    try:
        report = build_report(
            st.session_state.members, results, st.session_state.settings,
            advisor_comment=st.session_state.advisor_comment,
        )
    except ValueError as e:
        report = None
        st.warning(str(e))

    if report is not None:
        st.markdown(f"**{report.subtitle}**")
        st.caption(f"Emirate: {report.location} | Salary: {report.salary_label} | Date: {report.date_label}")

        columns = [
            f"{i}. {p.provider} {p.plan}" + (f" ({report.status_label(p)})" if report.status_label(p) else "")
            for i, p in enumerate(report.plans, start=1)
        ]
        rows = {label: values for label, values in report.benefit_rows}
        for label, premiums in report.premium_rows:
            rows[label] = [format_aed(p) for p in premiums]
        totals = [report.totals[p.id] for p in report.plans]
        rows["Gross Premium (Excluding Basmah & VAT)"] = [format_aed(t.gross) for t in totals]
        rows[report.basmah_label] = [format_aed(t.basmah) for t in totals]
        rows["VAT (5%)"] = [format_aed(t.vat) for t in totals]
        rows["Grand Total"] = [format_aed(t.total) for t in totals]

        preview_df = pd.DataFrame.from_dict(rows, orient='index', columns=columns)
        st.dataframe(preview_df, width="stretch")

        if st.button("📄 Generate PDF", type="primary"):
            with st.spinner("Generating PDF..."):
                history.save(
                    report.client_name,
                    st.session_state.members,
                    st.session_state.settings,
                    results,
                    advisor_comment=st.session_state.advisor_comment,
                    manual_plans=st.session_state.override_store.manual_plans,
                )
                st.session_state.report_pdf = (report.file_name, generate_pdf_report(report).getvalue())

        if 'report_pdf' in st.session_state:
            file_name, pdf_bytes = st.session_state.report_pdf
            st.download_button(
                "⬇️ Download PDF",
                data=pdf_bytes,
                file_name=f"{file_name}.pdf",
                mime="application/pdf",
            )

# =============================================================================
# History
# =============================================================================

st.markdown("---")
st.subheader("🕘 Report History")

entries = history.load()
if not entries:
    st.info("No saved reports yet")
else:
    for entry in reversed(entries):
        col1, col2, col3 = st.columns([4, 1, 1])
        with col1:
            saved_at = datetime.fromisoformat(entry['timestamp']).strftime('%d/%m/%Y %H:%M')
            st.markdown(f"**{entry['name']}**  \n{saved_at} | {len(entry.get('members', []))} members")
        with col2:
            if st.button("Load", key=f"load_{entry['id']}"):
                restored = history.restore(entry['id'])
                _, engine = get_reference_data()
                store = st.session_state.override_store
                outcome = engine.search(
                    restored.members,
                    restored.settings,
                    manual_plans=merge_manual_plans(store.manual_plans, restored.manual_plans),
                    overrides=store.snapshot,
                )
                st.session_state.members = restored.members
                st.session_state.settings = restored.settings
                st.session_state.advisor_comment = restored.advisor_comment
                st.session_state.results = apply_selections(outcome.results, restored.selections)
                st.session_state.search_errors = outcome.errors
                st.session_state.pop('report_pdf', None)
                logger.info(f"Loaded report {entry['id']} from history")
                st.rerun()
        with col3:
            if st.button("Delete", key=f"delete_{entry['id']}"):
                history.delete(entry['id'])
                st.rerun()

    if st.button("Clear all history"):
        history.clear()
        st.rerun()

# =============================================================================
# Local edits
# =============================================================================

st.markdown("---")
with st.expander("🧹 Local edits"):
    st.markdown("Remove the premium and benefits edits saved on this machine. Shared edits are kept.")
    if st.button("Clear local edits"):
        st.success(f"✅ {st.session_state.override_store.clear_local_edits().message}")
        refresh_results()
