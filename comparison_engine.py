"""
Comparison Engine
Builds each family member's ranked plan list from the rate table, manual
plans, benefit templates and override layers
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple, Iterable

from constants import DEFAULT_NETWORK, DEFAULT_COPAY, NO_RATE
from portal_types import (
    FamilyMember,
    SharedSettings,
    ResolvedPlan,
    ManualPlanRecord,
    MemberResult,
    OverrideSnapshot,
    SearchOutcome,
)
from insurance_age import compute_insurance_age, find_age_band, AgeValidationError
from eligibility import is_candidate
from rate_table import (
    RateTable,
    RatePlan,
    describe_plan,
    provider_display_name,
    plan_location_label,
    salary_category_label,
)
from benefit_resolver import BenefitResolver
from overrides import apply_overrides

logger = logging.getLogger(__name__)


def sort_plans(plans: List[ResolvedPlan]) -> List[ResolvedPlan]:
    """Priced plans by ascending premium, unpriced placeholders last. Stable."""
    return sorted(plans, key=lambda p: (p.is_unpriced, p.premium))


def summarize_prices(plans: Iterable[ResolvedPlan]) -> Tuple[float, float, float]:
    """
    Min, average and max premium over priced plans.

    Returns:
        (min, avg, max), all 0 when no plan is priced
    """
    premiums = [p.premium for p in plans if not p.is_unpriced]
    if not premiums:
        return 0.0, 0.0, 0.0
    return min(premiums), sum(premiums) / len(premiums), max(premiums)


class ComparisonEngine:
    """
    Produces MemberResults for a family.

    Reference data (rate table, benefit templates) is injected so searches
    are deterministic for a given table and override snapshot.
    """

    def __init__(self, rate_table: RateTable, benefit_resolver: BenefitResolver):
        self.rate_table = rate_table
        self.benefit_resolver = benefit_resolver

    def build_table_plan(self, rate_plan: RatePlan, member: FamilyMember, age: int) -> ResolvedPlan:
        """Base plan (before overrides) for a rate table row."""
        band = find_age_band(age, rate_plan.band_keys)
        premium = None
        if band != NO_RATE:
            premium = self.rate_table.lookup_premium(rate_plan, band, member.gender)

        description = describe_plan(rate_plan.provider, rate_plan.plan_name)
        metadata = rate_plan.metadata

        return ResolvedPlan(
            id=rate_plan.plan_id,
            provider=provider_display_name(rate_plan.provider),
            plan=description.display_name,
            network=description.network,
            copay=description.copay,
            premium=premium if premium is not None else 0.0,
            benefits=self.benefit_resolver.resolve(
                rate_plan.provider, rate_plan.plan_name, rate_plan.plan_id, metadata=metadata
            ),
            needs_manual_rate=premium is None,
            provider_key=rate_plan.provider,
            plan_location=plan_location_label(metadata),
            salary_category=salary_category_label(metadata),
        )

    def build_manual_plan(self, record: ManualPlanRecord, provider_key: str) -> ResolvedPlan:
        """Base plan (before overrides) for a manually entered plan."""
        if record.benefits is not None:
            benefits = self.benefit_resolver.complete(record.benefits)
        else:
            benefits = self.benefit_resolver.default_template.copy()

        return ResolvedPlan(
            id=record.id,
            provider=record.provider,
            plan=record.plan,
            network=record.network or DEFAULT_NETWORK,
            copay=record.copay or DEFAULT_COPAY,
            premium=float(record.premium or 0),
            benefits=benefits,
            is_manual=True,
            provider_key=record.provider_key or provider_key,
        )

    def candidate_plans(self, member: FamilyMember, age: int, settings: SharedSettings,
                        manual_plans: Optional[Dict[str, List[ManualPlanRecord]]] = None
                        ) -> List[ResolvedPlan]:
        """All base plans offered to a member, in table order then manual plans."""
        plans = []
        for rate_plan in self.rate_table:
            if not is_candidate(rate_plan.provider, rate_plan.plan_name, member, settings,
                                metadata=rate_plan.metadata):
                continue
            plans.append(self.build_table_plan(rate_plan, member, age))

        for provider_key, records in (manual_plans or {}).items():
            for record in records or []:
                plans.append(self.build_manual_plan(record, provider_key))

        return plans

    def rank(self, result: MemberResult, overrides: Optional[OverrideSnapshot]) -> MemberResult:
        """
        Apply overrides to a result's base plans, sort, and recompute statistics.
        Selection and status of plans already in the result are kept.
        """
        previous = {p.id: (p.selected, p.status) for p in result.comparison}
        comparison = []
        for base in result.base_plans:
            plan = apply_overrides(base, result.member.id, overrides)
            if plan.id in previous:
                plan.selected, plan.status = previous[plan.id]
            comparison.append(plan)

        result.comparison = sort_plans(comparison)
        result.min_price, result.avg_price, result.max_price = summarize_prices(result.comparison)
        return result

    def search(self, members: List[FamilyMember], settings: SharedSettings,
               manual_plans: Optional[Dict[str, List[ManualPlanRecord]]] = None,
               overrides: Optional[OverrideSnapshot] = None,
               as_of: Optional[date] = None) -> SearchOutcome:
        """
        Compare plans for every family member.

        Args:
            members: Family members to quote
            settings: Shared location and salary settings
            manual_plans: Manually entered plans by provider key
            overrides: Current override layers
            as_of: Date used for insurance age (default: today)

        Returns:
            SearchOutcome with a MemberResult per valid member and an error
            message per member that could not be quoted
        """
        outcome = SearchOutcome()

        for member in members:
            try:
                age = compute_insurance_age(member.dob, as_of)
            except AgeValidationError as e:
                label = member.name or 'family member'
                outcome.errors[member.id] = f"{label}: {e}"
                logger.warning(f"Skipping member {member.id}: {e}")
                continue

            result = MemberResult(
                member=member,
                age=age,
                base_plans=self.candidate_plans(member, age, settings, manual_plans),
            )
            outcome.results[member.id] = self.rank(result, overrides)

            priced = sum(1 for p in result.comparison if not p.is_unpriced)
            logger.info(f"Member {member.id} (age {age}): {len(result.comparison)} plans, "
                        f"{priced} priced")

        return outcome

    def refresh(self, results: Dict[int, MemberResult],
                overrides: Optional[OverrideSnapshot]) -> Dict[int, MemberResult]:
        """Re-apply overrides to already computed results (after an edit is saved)."""
        for result in results.values():
            self.rank(result, overrides)
        return results
