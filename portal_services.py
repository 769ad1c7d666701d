"""
Streamlit session wiring for the portal pages

Reference data (rate table, benefit templates) is loaded once per process.
Each browser session gets its own override store, family and results.
"""

import logging
from typing import Tuple

import streamlit as st

from config import PortalConfig
from constants import HELP_TEXT
from portal_types import SharedSettings
from rate_table import RateTable
from benefit_templates import BenefitTemplates
from benefit_resolver import BenefitResolver
from comparison_engine import ComparisonEngine
from local_store import LocalStore
from cloud_client import CloudOverrideClient
from override_store import OverrideStore, StoreResult
from report_history import ReportHistory
from family import default_family

logger = logging.getLogger(__name__)


@st.cache_resource
def get_config() -> PortalConfig:
    config = PortalConfig.from_environment()
    is_valid, error = config.validate()
    if not is_valid:
        logger.error(f"Invalid configuration: {error}")
    return config


@st.cache_resource
def get_reference_data() -> Tuple[BenefitTemplates, ComparisonEngine]:
    """
    Load the rate table and benefit templates.

    Returns:
        (templates, engine)
    """
    config = get_config()
    templates = BenefitTemplates.from_json(config.plan_benefits_path)
    rate_table = RateTable.from_json(config.rate_table_path)
    engine = ComparisonEngine(rate_table, BenefitResolver.from_templates(templates))
    logger.info(f"Reference data loaded: {len(rate_table)} rate table plans")
    return templates, engine


def _create_override_store(config: PortalConfig) -> OverrideStore:
    local = LocalStore(config.local_store_dir)
    cloud = CloudOverrideClient(config.api_base_url, timeout=config.cloud_timeout_seconds)
    return OverrideStore(local, cloud)


def initialize_session_state():
    """Initialize session state variables"""
    config = get_config()

    if 'members' not in st.session_state:
        st.session_state.members = default_family()

    if 'settings' not in st.session_state:
        st.session_state.settings = SharedSettings()

    # Member results by member id
    if 'results' not in st.session_state:
        st.session_state.results = {}

    if 'search_errors' not in st.session_state:
        st.session_state.search_errors = {}

    if 'advisor_comment' not in st.session_state:
        st.session_state.advisor_comment = ""

    if 'override_store' not in st.session_state:
        store = _create_override_store(config)
        st.session_state.store_status = store.load()
        st.session_state.override_store = store

    if 'report_history' not in st.session_state:
        st.session_state.report_history = ReportHistory(st.session_state.override_store.local)


def show_cloud_status():
    """Banner when shared edits could not be read"""
    status: StoreResult = st.session_state.get('store_status')
    if status is not None and not status.synced:
        st.warning(f"⚠️ {status.message}")


def show_store_result(result: StoreResult):
    """Surface the outcome of a save"""
    if not result.success:
        st.error(result.message)
    elif result.synced or st.session_state.override_store.cloud is None:
        st.success(f"✅ {result.message}")
    else:
        st.warning(f"⚠️ {result.message}")


def run_search():
    """Search plans for every member with the current overrides"""
    _, engine = get_reference_data()
    store: OverrideStore = st.session_state.override_store
    outcome = engine.search(
        st.session_state.members,
        st.session_state.settings,
        manual_plans=store.manual_plans,
        overrides=store.snapshot,
    )
    st.session_state.results = outcome.results
    st.session_state.search_errors = outcome.errors
    return outcome


def refresh_results():
    """Re-apply overrides after an edit is saved"""
    _, engine = get_reference_data()
    engine.refresh(st.session_state.results, st.session_state.override_store.snapshot)


def help_text(key: str) -> str:
    return " ".join(HELP_TEXT.get(key, "").split())
