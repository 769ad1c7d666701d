"""
Test Suite for Plan Eligibility - Insurance Comparison Portal
Location, salary band and principal-only rules

Run with: python -m pytest tests/test_eligibility.py
"""

import unittest

from portal_types import SharedSettings
from eligibility import is_candidate
from portal_fixtures import principal, spouse


class TestLocationRules(unittest.TestCase):

    def setUp(self):
        self.member = principal()
        self.dubai = SharedSettings(location="Dubai", salary_category="below4000")
        self.ne = SharedSettings(location="Northern Emirates", salary_category="below4000")

    def test_dubai_plan_only_in_dubai(self):
        self.assertTrue(is_candidate("RAK", "SILVER_DXB", self.member, self.dubai))
        self.assertFalse(is_candidate("RAK", "SILVER_DXB", self.member, self.ne))

    def test_ne_plan_only_in_ne(self):
        self.assertTrue(is_candidate("UFIC", "PLAN_A_NE", self.member, self.ne))
        self.assertFalse(is_candidate("UFIC", "PLAN_A_NE", self.member, self.dubai))

    def test_nemed_plan_shown_in_ne(self):
        self.assertTrue(is_candidate("ORIENT", "NEMED_ADULT", self.member, self.ne))
        self.assertFalse(is_candidate("ORIENT", "NEMED_ADULT", self.member, self.dubai))

    def test_untagged_plan_everywhere(self):
        self.assertTrue(is_candidate("ORIENT_MEDNET", "MEDNET_SILKROAD_0", self.member, self.dubai))
        self.assertTrue(is_candidate("ORIENT_MEDNET", "MEDNET_SILKROAD_0", self.member, self.ne))

    def test_manual_plans_always_listed(self):
        self.assertTrue(is_candidate("RAK", "SILVER_DXB", self.member, self.ne, is_manual=True))


class TestSalaryRules(unittest.TestCase):

    def setUp(self):
        self.low = SharedSettings(location="Dubai", salary_category="below4000")
        self.standard = SharedSettings(location="Dubai", salary_category="above4000")

    def test_low_salary_principal(self):
        member = principal()
        self.assertTrue(is_candidate("ORIENT", "DMED_LSB", member, self.low))
        self.assertFalse(is_candidate("ORIENT", "DMED_NLSB_ADULT", member, self.low))

    def test_standard_salary_principal(self):
        member = principal()
        self.assertFalse(is_candidate("ORIENT", "DMED_LSB", member, self.standard))
        self.assertTrue(is_candidate("ORIENT", "DMED_NLSB_ADULT", member, self.standard))

    def test_dependents_ignore_salary_band(self):
        member = spouse()
        self.assertTrue(is_candidate("ORIENT", "DMED_LSB", member, self.standard))
        self.assertTrue(is_candidate("ORIENT", "DMED_NLSB_ADULT", member, self.low))

    def test_principal_only_plans_hidden_from_dependents(self):
        self.assertTrue(is_candidate("ORIENT", "EMED_PCP_DXB_LSB", principal(), self.low))
        self.assertFalse(is_candidate("ORIENT", "EMED_PCP_DXB_LSB", spouse(), self.low))
        self.assertFalse(is_candidate("ORIENT", "IMED_DXB", spouse(), self.standard))

    def test_other_providers_unaffected(self):
        self.assertTrue(is_candidate("WATANIA_TAKAFUL", "DUBAI_BASIC", principal(), self.standard))


if __name__ == "__main__":
    unittest.main(verbosity=2)
