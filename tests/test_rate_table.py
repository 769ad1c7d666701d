"""
Test Suite for Rate Table - Insurance Comparison Portal
Plan classification, plan descriptions and premium lookup

Run with: python -m pytest tests/test_rate_table.py
"""

import unittest

from constants import LOCATION_DUBAI, LOCATION_NORTHERN_EMIRATES
from rate_table import (
    RateTable,
    make_plan_id,
    classify_location,
    classify_network_family,
    classify_plan,
    describe_plan,
    provider_display_name,
    salary_category_label,
    SALARY_BAND_LOW,
    SALARY_BAND_STANDARD,
)
from portal_fixtures import make_rate_table


# =============================================================================
# Plan identity
# =============================================================================

class TestPlanIdentity(unittest.TestCase):

    def test_plan_id(self):
        self.assertEqual(make_plan_id("ORIENT", "DMED_LSB"), "ORIENT_DMED_LSB")

    def test_empty_plan_name_rejected(self):
        with self.assertRaises(ValueError):
            make_plan_id("ORIENT", "")


# =============================================================================
# Classification
# =============================================================================

class TestClassifyLocation(unittest.TestCase):

    def test_dubai_tokens(self):
        for name in ("DMED_LSB", "EMED_PCP_DXB_LSB", "IMED_DXB", "DUBAI_BASIC"):
            self.assertEqual(classify_location(name), LOCATION_DUBAI, name)

    def test_northern_emirates_tokens(self):
        for name in ("PLAN1_NE", "NE_BASIC", "NEMED_ADULT", "NEMED_LITE_ADULT"):
            self.assertEqual(classify_location(name), LOCATION_NORTHERN_EMIRATES, name)

    def test_nemed_is_not_dubai(self):
        """NEMED contains EMED but is a Northern Emirates plan"""
        self.assertEqual(classify_location("NEMED_CHILD"), LOCATION_NORTHERN_EMIRATES)

    def test_nextcare_is_not_northern_emirates(self):
        """_NEXTCARE must not be read as an _NE suffix"""
        self.assertIsNone(classify_location("NEXTCARE_PCP_0"))

    def test_untagged(self):
        self.assertIsNone(classify_location("MEDNET_SILKROAD_0"))


class TestClassifyPlan(unittest.TestCase):

    def test_orient_low_salary_band(self):
        metadata = classify_plan("ORIENT", "DMED_LSB")
        self.assertEqual(metadata.salary_band, SALARY_BAND_LOW)
        self.assertFalse(metadata.principal_only)

    def test_orient_standard_salary_band(self):
        self.assertEqual(classify_plan("ORIENT", "DMED_NLSB_CHILD").salary_band, SALARY_BAND_STANDARD)
        self.assertEqual(classify_plan("ORIENT", "IMED_DXB").salary_band, SALARY_BAND_STANDARD)

    def test_orient_principal_only(self):
        self.assertTrue(classify_plan("ORIENT", "EMED_PCP_DXB_LSB").principal_only)
        self.assertTrue(classify_plan("ORIENT", "IMED_DXB").principal_only)

    def test_other_providers_not_salary_banded(self):
        metadata = classify_plan("WATANIA_TAKAFUL", "DUBAI_LSB_PLAN")
        self.assertIsNone(metadata.salary_band)
        self.assertFalse(metadata.principal_only)

    def test_network_family(self):
        self.assertEqual(classify_network_family("ORIENT_MEDNET", "MEDNET_SILKROAD_0"), "MEDNET")
        self.assertEqual(classify_network_family("ADAMJEE_NAS", "VN_0"), "NAS")
        self.assertIsNone(classify_network_family("ORIENT", "DMED_LSB"))

    def test_explicit_metadata_wins(self):
        metadata = classify_plan("ORIENT", "DMED_NLSB_ADULT", {"benefits_key": "ORIENT_DMED_NLSB"})
        self.assertEqual(metadata.benefits_key, "ORIENT_DMED_NLSB")


# =============================================================================
# Descriptions
# =============================================================================

class TestDescribePlan(unittest.TestCase):

    def test_mednet_tier_and_copay(self):
        description = describe_plan("ORIENT_MEDNET", "MEDNET_SILKROAD_0")
        self.assertEqual(description.display_name, "SilkRoad")
        self.assertEqual(description.network, "MEDNET")
        self.assertEqual(description.copay, "0%")

    def test_nextcare_gn_plus(self):
        description = describe_plan("ORIENT_NEXTCARE", "NEXTCARE_GN_PLUS_20")
        self.assertEqual(description.display_name, "GN+")
        self.assertEqual(description.copay, "20%")

    def test_provider_network_label(self):
        description = describe_plan("UFIC", "PLAN_A_NE")
        self.assertEqual(description.display_name, "PLAN A NE")
        self.assertEqual(description.network, "UFIC Network")
        self.assertEqual(description.copay, "Variable")

    def test_orient_basic_plan(self):
        self.assertEqual(describe_plan("ORIENT", "DMED_LSB").network, "Orient/Nextcare")

    def test_provider_display_name(self):
        self.assertEqual(provider_display_name("ORIENT_MEDNET"), "ORIENT")
        self.assertEqual(provider_display_name("WATANIA_TAKAFUL"), "WATANIA TAKAFUL")

    def test_salary_label(self):
        self.assertEqual(salary_category_label(classify_plan("ORIENT", "DMED_LSB")), "Below 4K")
        self.assertEqual(salary_category_label(classify_plan("RAK", "SILVER_DXB")), "All")


# =============================================================================
# Premium lookup
# =============================================================================

class TestRateTable(unittest.TestCase):

    def setUp(self):
        self.table = make_rate_table()

    def test_iterates_in_file_order(self):
        ids = [plan.plan_id for plan in self.table]
        self.assertEqual(ids[0], "ORIENT_DMED_LSB")
        self.assertEqual(ids[-1], "RAK_SILVER_DXB")
        self.assertEqual(len(self.table), 7)

    def test_providers(self):
        self.assertEqual(self.table.providers, ["ORIENT", "ORIENT_MEDNET", "UFIC", "RAK"])

    def test_lookup_by_gender(self):
        plan = self.table.get_plan("ORIENT_DMED_LSB")
        self.assertEqual(self.table.lookup_premium(plan, "18-64", "Male"), 700.0)
        self.assertEqual(self.table.lookup_premium(plan, "18-64", "Female"), 750.0)

    def test_missing_band(self):
        plan = self.table.get_plan("RAK_SILVER_DXB")
        self.assertIsNone(self.table.lookup_premium(plan, "18-64", "Male"))

    def test_zero_cell_is_missing(self):
        plan = self.table.get_plan("UFIC_PLAN_A_NE")
        self.assertIsNone(self.table.lookup_premium(plan, "18-40", "Female"))

    def test_metadata_attached(self):
        plan = self.table.get_plan("ORIENT_DMED_NLSB_ADULT")
        self.assertEqual(plan.metadata.benefits_key, "ORIENT_DMED_NLSB")
        self.assertEqual(plan.metadata.location_tag, LOCATION_DUBAI)

    def test_bundled_table_loads(self):
        table = RateTable.from_json()
        self.assertGreater(len(table), 0)
        self.assertIsNotNone(table.get_plan("ORIENT_DMED_LSB"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
