"""
Plan eligibility for a family member

Decides whether a rate table plan is offered to a member given the shared
search settings. Works over PlanMetadata; plan names are only read when no
metadata is supplied.
"""

import logging
from typing import Optional

from constants import LOCATION_DUBAI, LOCATION_NORTHERN_EMIRATES
from portal_types import FamilyMember, SharedSettings
from rate_table import PlanMetadata, classify_plan, SALARY_BAND_LOW, SALARY_BAND_STANDARD

logger = logging.getLogger(__name__)


def location_allows(metadata: PlanMetadata, settings: SharedSettings) -> bool:
    if metadata.location_tag == LOCATION_DUBAI:
        return settings.is_dubai
    if metadata.location_tag == LOCATION_NORTHERN_EMIRATES:
        return not settings.is_dubai
    return True


def salary_band_allows(metadata: PlanMetadata, member: FamilyMember,
                       settings: SharedSettings) -> bool:
    """
    Principals see the plans of their salary band; other members never see
    principal-only plans and ignore salary bands.
    """
    if member.is_principal:
        if settings.is_below_salary and metadata.salary_band == SALARY_BAND_STANDARD:
            return False
        if not settings.is_below_salary and metadata.salary_band == SALARY_BAND_LOW:
            return False
        return True
    return not metadata.principal_only


def is_candidate(provider: str, plan_name: str, member: FamilyMember,
                 settings: SharedSettings, metadata: Optional[PlanMetadata] = None,
                 is_manual: bool = False) -> bool:
    """
    Check whether a plan should be listed for a member.

    Args:
        provider: Provider key
        plan_name: Plan key within the provider
        member: Family member being quoted
        settings: Shared location and salary settings
        metadata: Plan tags (derived from the plan name when omitted)
        is_manual: Manually entered plans are always listed

    Returns:
        True if the plan is a candidate
    """
    if is_manual:
        return True

    if metadata is None:
        metadata = classify_plan(provider, plan_name)

    if not location_allows(metadata, settings):
        logger.debug(f"{provider}_{plan_name}: excluded for location {settings.location}")
        return False

    if not salary_band_allows(metadata, member, settings):
        logger.debug(f"{provider}_{plan_name}: excluded for {member.sponsorship} "
                     f"({settings.salary_category})")
        return False

    return True
