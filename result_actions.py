"""
Result actions

Selection, status and filtering operations on computed member results.
"""

import logging
from typing import Dict, List, Optional

from constants import PLAN_STATUSES
from portal_types import MemberResult, ResolvedPlan

logger = logging.getLogger(__name__)

FILTER_FIELDS = ('provider', 'plan', 'network', 'copay')


def _plan_for(results: Dict[int, MemberResult], member_id: int, plan_id: str) -> ResolvedPlan:
    result = results.get(member_id)
    if result is None:
        raise KeyError(f"No results for member {member_id}")
    plan = result.find_plan(plan_id)
    if plan is None:
        raise KeyError(f"Plan {plan_id} not found for member {member_id}")
    return plan


def toggle_selection(results: Dict[int, MemberResult], member_id: int, plan_id: str) -> bool:
    """
    Flip a plan's selected flag for one member.

    Returns:
        The new selected value
    """
    plan = _plan_for(results, member_id, plan_id)
    plan.selected = not plan.selected
    return plan.selected


def set_status(results: Dict[int, MemberResult], member_id: int, plan_id: str, status: str) -> None:
    if status not in PLAN_STATUSES:
        raise ValueError(f"Unknown plan status: {status}")
    _plan_for(results, member_id, plan_id).status = status


def copy_selections(results: Dict[int, MemberResult], source_member_id: int) -> int:
    """
    Copy one member's selected plans and their statuses to every other member.

    Plans the other members already selected stay selected. Plans another
    member is not offered are skipped.

    Args:
        results: Member results
        source_member_id: Member whose selections are copied

    Returns:
        Number of members updated

    Raises:
        ValueError: If the source member has no selected plans
    """
    source = results.get(source_member_id)
    if source is None:
        raise KeyError(f"No results for member {source_member_id}")

    chosen = {p.id: p.status for p in source.selected_plans}
    if not chosen:
        raise ValueError("Please select at least one plan first")

    updated = 0
    for member_id, result in results.items():
        if member_id == source_member_id:
            continue
        for plan in result.comparison:
            if plan.id in chosen:
                plan.selected = True
                plan.status = chosen[plan.id]
        updated += 1

    logger.info(f"Copied {len(chosen)} selections from member {source_member_id} to {updated} members")
    return updated


def filter_plans(plans: List[ResolvedPlan], filters: Optional[Dict[str, str]] = None) -> List[ResolvedPlan]:
    """
    Keep plans matching every non-empty filter.

    Args:
        plans: Plans to filter
        filters: Case-insensitive substrings keyed by provider, plan, network or copay

    Returns:
        Matching plans in their original order
    """
    active = {k: v.lower() for k, v in (filters or {}).items() if k in FILTER_FIELDS and v}
    if not active:
        return list(plans)
    return [
        plan for plan in plans
        if all(needle in (getattr(plan, name) or "").lower() for name, needle in active.items())
    ]


def unique_values(results: Dict[int, MemberResult], field_name: str) -> List[str]:
    """Sorted distinct values of a plan field across all members, for search suggestions."""
    if field_name not in FILTER_FIELDS:
        raise ValueError(f"Cannot list values of '{field_name}'")
    values = set()
    for result in results.values():
        for plan in result.comparison:
            values.add(getattr(plan, field_name))
    return sorted(v for v in values if v)
