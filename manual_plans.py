"""
Manual plans

Plans entered by hand for providers that have no rate table rows, plus the
list of providers (built-in and user-added) they can be entered for.
"""

import logging
import time
from typing import Dict, List, Optional

from constants import MANUAL_PROVIDERS, STORAGE_KEYS, DEFAULT_NETWORK, DEFAULT_COPAY
from portal_types import ManualPlanRecord, MemberResult, OverrideSnapshot
from benefit_templates import BenefitTemplates
from local_store import LocalStore

logger = logging.getLogger(__name__)


def load_custom_providers(local: LocalStore) -> List[Dict]:
    return local.get(STORAGE_KEYS['custom_providers'], []) or []


def add_custom_provider(local: LocalStore, name: str) -> Dict:
    """
    Register a provider that is not in the built-in list.

    Args:
        local: Local store holding custom providers
        name: Provider display name

    Returns:
        Provider dict {id, name, networks}

    Raises:
        ValueError: If the name is blank or already registered
    """
    name = (name or "").strip()
    if not name:
        raise ValueError("Please enter a provider name")

    provider_id = name.upper().replace(' ', '_')
    existing = load_custom_providers(local)
    if any(p['id'] == provider_id for p in all_providers(existing)):
        raise ValueError(f"Provider {name} already exists")

    provider = {'id': provider_id, 'name': name.upper(), 'networks': []}
    local.set(STORAGE_KEYS['custom_providers'], existing + [provider])
    logger.info(f"Added custom provider {provider_id}")
    return provider


def all_providers(custom_providers: Optional[List[Dict]] = None) -> List[Dict]:
    return MANUAL_PROVIDERS + list(custom_providers or [])


def provider_name(provider_key: str, custom_providers: Optional[List[Dict]] = None) -> str:
    for provider in all_providers(custom_providers):
        if provider['id'] == provider_key:
            return provider['name']
    return provider_key


def create_manual_plan(provider_key: str, plan_name: str, premium, templates: BenefitTemplates,
                       network: str = "", copay: str = "",
                       custom_providers: Optional[List[Dict]] = None,
                       now_ms: Optional[int] = None) -> ManualPlanRecord:
    """
    Build a manual plan record.

    Args:
        provider_key: Provider id from the provider list
        plan_name: Plan name as quoted by the insurer
        premium: Annual premium (number or numeric string)
        templates: Benefit templates; the network prefix picks the starting benefits
        network: Network label (default: Standard)
        copay: Copay label (default: Variable)
        custom_providers: User-added providers, for name lookup
        now_ms: Timestamp used in the plan id (default: current time)

    Returns:
        ManualPlanRecord with id "{provider_key}_{timestamp_ms}"

    Raises:
        ValueError: If plan name or premium is missing or premium is not a number
    """
    if not provider_key:
        raise ValueError("Please choose a provider")
    if not plan_name or premium in (None, ""):
        raise ValueError("Please enter plan name and premium")
    try:
        premium_value = float(premium)
    except (TypeError, ValueError):
        raise ValueError(f"Premium must be a number (got {premium!r})")

    if now_ms is None:
        now_ms = int(time.time() * 1000)

    return ManualPlanRecord(
        id=f"{provider_key}_{now_ms}",
        provider=provider_name(provider_key, custom_providers),
        plan=plan_name.strip(),
        network=network.strip() or DEFAULT_NETWORK,
        copay=copay.strip() or DEFAULT_COPAY,
        premium=premium_value,
        benefits=templates.for_network(network),
        provider_key=provider_key,
    )


def add_to_results(engine, results: Dict[int, MemberResult], record: ManualPlanRecord,
                   overrides: Optional[OverrideSnapshot]) -> Dict[int, MemberResult]:
    """Show a new manual plan to every member that already has results."""
    for result in results.values():
        result.base_plans.append(engine.build_manual_plan(record, record.provider_key))
        engine.rank(result, overrides)
    return results


def remove_from_results(engine, results: Dict[int, MemberResult], plan_id: str,
                        overrides: Optional[OverrideSnapshot]) -> Dict[int, MemberResult]:
    for result in results.values():
        result.base_plans = [p for p in result.base_plans if p.id != plan_id]
        result.comparison = [p for p in result.comparison if p.id != plan_id]
        engine.rank(result, overrides)
    return results
