"""
Override merge

Overlays user edits on a base plan. Premium edits belong to one member;
plan name, network, copay and benefits edits belong to the plan and reach
every member that sees it.
"""

from typing import Optional

from portal_types import (
    ResolvedPlan,
    OverrideSnapshot,
    PlanEdit,
    BenefitSet,
    member_plan_key,
)


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None


def apply_overrides(base: ResolvedPlan, member_id: int,
                    snapshot: Optional[OverrideSnapshot]) -> ResolvedPlan:
    """
    Apply the override layers to a plan for one member.

    Args:
        base: Plan as built from the rate table or a manual plan record
        member_id: Member the plan is being resolved for
        snapshot: Current override layers

    Returns:
        New ResolvedPlan; base is left untouched
    """
    plan = base.copy()
    if snapshot is None:
        return plan

    edit: PlanEdit = snapshot.shared_plan_edits.get(base.id) or PlanEdit()
    plan.plan = _first_set(edit.plan, base.plan)
    plan.network = _first_set(edit.network, base.network)
    plan.copay = _first_set(edit.copay, base.copay)

    premium = snapshot.local_premiums.get(member_plan_key(member_id, base.id))
    if premium is not None:
        plan.premium = float(premium)

    benefits: Optional[BenefitSet] = _first_set(
        snapshot.local_benefits.get(base.id),
        snapshot.shared_benefits.get(base.id),
    )
    if benefits is not None:
        plan.benefits = benefits.copy()

    return plan

