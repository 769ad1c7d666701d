"""
Medical Insurance Comparison Portal - Main Application
Streamlit app for insurance advisors to compare plans for a family and produce a client report
"""

import sys
import logging
from pathlib import Path

# Configure logging BEFORE importing streamlit
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s: %(message)s',
    datefmt='%H:%M:%S',
    force=True  # Override any existing config
)
logging.info("APP STARTUP: Logging initialized")

import streamlit as st

# Add current directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from constants import APP_CONFIG, LOCATIONS, SALARY_CATEGORIES
from portal_services import (
    get_config,
    get_reference_data,
    initialize_session_state,
    show_cloud_status,
)


# Page configuration
st.set_page_config(
    page_title=APP_CONFIG['title'],
    page_icon=APP_CONFIG['icon'],
    layout=APP_CONFIG['layout'],
    initial_sidebar_state=APP_CONFIG['initial_sidebar_state']
)


def show_sidebar():
    """Quick stats for the current session"""
    st.sidebar.title(f"{APP_CONFIG['icon']} Insurance Comparison")
    st.sidebar.markdown("---")
    st.sidebar.subheader("Quick Stats")

    members = st.session_state.members
    results = st.session_state.results
    st.sidebar.metric("Family members", len(members))

    if results:
        selected = sum(len(r.selected_plans) for r in results.values())
        st.sidebar.metric("Plans selected", selected)
    else:
        st.sidebar.info("No search run yet")

    store = st.session_state.override_store
    manual_count = sum(len(v) for v in store.manual_plans.values())
    st.sidebar.metric("Manual plans", manual_count)


def show_home_page():
    """Display home/welcome page"""
    st.title(APP_CONFIG['title'])
    show_cloud_status()

    st.markdown("""
    ## Welcome

    Compare medical insurance plans for a family, adjust plan details and
    benefits, and produce a consolidated PDF comparison for the client.

    ### Getting Started

    1. **👨‍👩‍👧 Compare Plans** - Enter family members, choose emirate and salary band, and search
    2. **✍️ Manual Plans** - Add plans quoted by insurers that are not in the rate table
    3. **📄 Report** - Review selected plans, add an advisor comment and download the PDF

    ### How plans are priced

    - **Insurance age** rounds to the nearest birthday
    - **Premiums** come from the rate table by age band and gender
    - Plans with no rate for a member's age are listed as **N/A** so they can be priced by hand
    - **Plan name, network and copay edits** are shared with every advisor
    - **Premium edits** apply to one member only and stay on this machine
    """)

    st.markdown("### System Status")
    col1, col2, col3 = st.columns(3)

    config = get_config()
    is_valid, error = config.validate()
    with col1:
        if is_valid:
            st.success("✓ Configuration OK")
        else:
            st.error(f"✗ {error}")

    with col2:
        try:
            _, engine = get_reference_data()
            st.info(f"Rate table: {len(engine.rate_table)} plans")
        except (OSError, ValueError) as e:
            st.error(f"✗ Rate table could not be loaded: {e}")

    with col3:
        settings = st.session_state.settings
        st.info(f"{settings.location} | {SALARY_CATEGORIES[settings.salary_category]}")

    st.caption(f"Available emirates: {', '.join(LOCATIONS)}")


def main():
    """Main application entry point"""
    initialize_session_state()
    show_sidebar()
    show_home_page()


if __name__ == "__main__":
    main()
