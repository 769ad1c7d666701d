"""
Test Suite for Comparison Engine - Insurance Comparison Portal
Candidate plans, NO_RATE placeholders, ordering, price statistics and refresh

Run with: python -m pytest tests/test_comparison_engine.py
"""

import unittest

from portal_types import (
    SharedSettings,
    ManualPlanRecord,
    OverrideSnapshot,
    PlanEdit,
    ResolvedPlan,
    member_plan_key,
)
from comparison_engine import sort_plans, summarize_prices
from portal_fixtures import (
    AS_OF,
    PRINCIPAL_ID,
    SPOUSE_ID,
    make_engine,
    principal,
    spouse,
    dubai_low,
)


class TestSortAndSummarize(unittest.TestCase):

    def test_unpriced_sorted_last(self):
        plans = [
            ResolvedPlan(id="a", provider="A", plan="a", premium=0, needs_manual_rate=True),
            ResolvedPlan(id="b", provider="B", plan="b", premium=900),
            ResolvedPlan(id="c", provider="C", plan="c", premium=300),
        ]
        self.assertEqual([p.id for p in sort_plans(plans)], ["c", "b", "a"])

    def test_sort_is_stable(self):
        plans = [
            ResolvedPlan(id="x", provider="X", plan="x", premium=500),
            ResolvedPlan(id="y", provider="Y", plan="y", premium=500),
        ]
        self.assertEqual([p.id for p in sort_plans(plans)], ["x", "y"])

    def test_stats_exclude_unpriced(self):
        plans = [
            ResolvedPlan(id="a", provider="A", plan="a", premium=0, needs_manual_rate=True),
            ResolvedPlan(id="b", provider="B", plan="b", premium=100),
            ResolvedPlan(id="c", provider="C", plan="c", premium=300),
        ]
        self.assertEqual(summarize_prices(plans), (100, 200, 300))

    def test_stats_empty(self):
        self.assertEqual(summarize_prices([]), (0.0, 0.0, 0.0))


class TestSearch(unittest.TestCase):

    def setUp(self):
        self.engine = make_engine()

    def test_principal_low_salary_dubai(self):
        outcome = self.engine.search([principal()], dubai_low(), as_of=AS_OF)
        result = outcome.results[PRINCIPAL_ID]

        self.assertEqual(result.age, 35)
        self.assertEqual([p.id for p in result.comparison], [
            "ORIENT_DMED_LSB",
            "ORIENT_EMED_PCP_DXB_LSB",
            "ORIENT_MEDNET_MEDNET_SILKROAD_0",
            "RAK_SILVER_DXB",
        ])

    def test_no_rate_plan_listed_unpriced(self):
        result = self.engine.search([principal()], dubai_low(), as_of=AS_OF).results[PRINCIPAL_ID]
        rak = result.find_plan("RAK_SILVER_DXB")
        self.assertEqual(rak.premium, 0)
        self.assertTrue(rak.needs_manual_rate)
        self.assertTrue(rak.is_unpriced)

    def test_statistics_exclude_no_rate(self):
        result = self.engine.search([principal()], dubai_low(), as_of=AS_OF).results[PRINCIPAL_ID]
        self.assertEqual(result.min_price, 700)
        self.assertEqual(result.max_price, 3000)
        self.assertAlmostEqual(result.avg_price, (700 + 1200 + 3000) / 3)

    def test_dependent_sees_both_bands_but_not_principal_only(self):
        result = self.engine.search([spouse()], dubai_low(), as_of=AS_OF).results[SPOUSE_ID]
        ids = [p.id for p in result.comparison]
        self.assertIn("ORIENT_DMED_LSB", ids)
        self.assertIn("ORIENT_DMED_NLSB_ADULT", ids)
        self.assertNotIn("ORIENT_EMED_PCP_DXB_LSB", ids)
        self.assertEqual(result.find_plan("ORIENT_DMED_LSB").premium, 750)

    def test_empty_gender_cell_unpriced(self):
        settings = SharedSettings(location="Northern Emirates", salary_category="above4000")
        member = principal(gender="Female")
        result = self.engine.search([member], settings, as_of=AS_OF).results[PRINCIPAL_ID]
        ufic = result.find_plan("UFIC_PLAN_A_NE")
        self.assertTrue(ufic.is_unpriced)
        self.assertEqual(result.comparison[-1].id, "UFIC_PLAN_A_NE")
        self.assertEqual(result.find_plan("ORIENT_NEMED_ADULT").premium, 520)

    def test_invalid_member_reported_not_fatal(self):
        members = [principal(), spouse(dob="")]
        outcome = self.engine.search(members, dubai_low(), as_of=AS_OF)
        self.assertIn(PRINCIPAL_ID, outcome.results)
        self.assertNotIn(SPOUSE_ID, outcome.results)
        self.assertIn("Sara", outcome.errors[SPOUSE_ID])

    def test_plan_fields_carry_labels(self):
        result = self.engine.search([principal()], dubai_low(), as_of=AS_OF).results[PRINCIPAL_ID]
        plan = result.find_plan("ORIENT_MEDNET_MEDNET_SILKROAD_0")
        self.assertEqual(plan.provider, "ORIENT")
        self.assertEqual(plan.plan, "SilkRoad")
        self.assertEqual(plan.copay, "0%")
        self.assertEqual(plan.benefits.network, "MEDNET")

    def test_manual_plans_always_included(self):
        manual = {"CIGNA": [ManualPlanRecord(id="CIGNA_1", provider="CIGNA", plan="Global",
                                             premium=5000, provider_key="CIGNA")]}
        settings = SharedSettings(location="Northern Emirates", salary_category="below4000")
        result = self.engine.search([principal()], settings, manual_plans=manual,
                                    as_of=AS_OF).results[PRINCIPAL_ID]
        plan = result.find_plan("CIGNA_1")
        self.assertTrue(plan.is_manual)
        self.assertEqual(plan.premium, 5000)
        self.assertEqual(plan.benefits.network, "Standard")


class TestOverridesInSearch(unittest.TestCase):

    def setUp(self):
        self.engine = make_engine()
        self.members = [principal(), spouse()]

    def test_premium_override_reorders_one_member(self):
        overrides = OverrideSnapshot(local_premiums={
            member_plan_key(PRINCIPAL_ID, "ORIENT_MEDNET_MEDNET_SILKROAD_0"): 100.0
        })
        outcome = self.engine.search(self.members, dubai_low(), overrides=overrides, as_of=AS_OF)

        principal_first = outcome.results[PRINCIPAL_ID].comparison[0]
        self.assertEqual(principal_first.id, "ORIENT_MEDNET_MEDNET_SILKROAD_0")
        self.assertEqual(outcome.results[PRINCIPAL_ID].min_price, 100.0)
        spouse_plan = outcome.results[SPOUSE_ID].find_plan("ORIENT_MEDNET_MEDNET_SILKROAD_0")
        self.assertEqual(spouse_plan.premium, 3200)

    def test_priced_no_rate_plan_joins_statistics(self):
        overrides = OverrideSnapshot(local_premiums={member_plan_key(PRINCIPAL_ID, "RAK_SILVER_DXB"): 50.0})
        result = self.engine.search([principal()], dubai_low(), overrides=overrides,
                                    as_of=AS_OF).results[PRINCIPAL_ID]
        self.assertEqual(result.comparison[0].id, "RAK_SILVER_DXB")
        self.assertEqual(result.min_price, 50.0)

    def test_refresh_keeps_selection(self):
        outcome = self.engine.search(self.members, dubai_low(), as_of=AS_OF)
        plan = outcome.results[PRINCIPAL_ID].find_plan("ORIENT_DMED_LSB")
        plan.selected = True
        plan.status = "renewal"

        overrides = OverrideSnapshot(shared_plan_edits={"ORIENT_DMED_LSB": PlanEdit(plan="Basic")})
        self.engine.refresh(outcome.results, overrides)

        for member_id in (PRINCIPAL_ID, SPOUSE_ID):
            self.assertEqual(outcome.results[member_id].find_plan("ORIENT_DMED_LSB").plan, "Basic")
        refreshed = outcome.results[PRINCIPAL_ID].find_plan("ORIENT_DMED_LSB")
        self.assertTrue(refreshed.selected)
        self.assertEqual(refreshed.status, "renewal")

    def test_search_is_deterministic(self):
        first = self.engine.search(self.members, dubai_low(), as_of=AS_OF)
        second = self.engine.search(self.members, dubai_low(), as_of=AS_OF)
        for member_id in first.results:
            self.assertEqual(first.results[member_id].comparison, second.results[member_id].comparison)


if __name__ == "__main__":
    unittest.main(verbosity=2)
