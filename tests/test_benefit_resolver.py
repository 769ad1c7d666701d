"""
Test Suite for Benefit Resolution - Insurance Comparison Portal
Lookup priority, template completion and copy independence

Run with: python -m pytest tests/test_benefit_resolver.py
"""

import unittest

from portal_types import BenefitSet, CoverageItem
from rate_table import PlanMetadata
from benefit_templates import BenefitTemplates
from benefit_resolver import BenefitResolver
from portal_fixtures import make_templates


class TestBenefitTemplates(unittest.TestCase):

    def setUp(self):
        self.templates = make_templates()

    def test_templates_completed_from_default(self):
        plan = self.templates.plans["ORIENT_DMED_LSB"]
        self.assertEqual(plan.area_of_cover, "Dubai")
        self.assertEqual(plan.annual_limit, "AED 150,000")
        self.assertFalse(plan.dental.enabled)

    def test_for_network_prefix(self):
        self.assertEqual(self.templates.for_network("MEDNET Gold").network, "MEDNET")
        self.assertEqual(self.templates.for_network("nextcare rn3").network, "NEXTCARE")

    def test_for_network_unknown_uses_default(self):
        self.assertEqual(self.templates.for_network("BUPA Network").network, "Standard")
        self.assertEqual(self.templates.for_network("").network, "Standard")

    def test_for_network_returns_copy(self):
        first = self.templates.for_network("MEDNET")
        first.network = "changed"
        self.assertEqual(self.templates.families["MEDNET"].network, "MEDNET")

    def test_bundled_templates_load(self):
        templates = BenefitTemplates.from_json()
        self.assertIn("MEDNET", templates.families)
        self.assertIn("ORIENT_DMED_LSB", templates.plans)


class TestBenefitPriority(unittest.TestCase):

    def setUp(self):
        self.resolver = BenefitResolver.from_templates(make_templates())
        self.local = {"ORIENT_DMED_LSB": BenefitSet(area_of_cover="Local edit")}
        self.cloud = {"ORIENT_DMED_LSB": BenefitSet(area_of_cover="Shared edit")}

    def test_local_edit_first(self):
        benefits = self.resolver.resolve("ORIENT", "DMED_LSB", local_overrides=self.local,
                                         cloud_overrides=self.cloud)
        self.assertEqual(benefits.area_of_cover, "Local edit")

    def test_shared_edit_second(self):
        benefits = self.resolver.resolve("ORIENT", "DMED_LSB", cloud_overrides=self.cloud)
        self.assertEqual(benefits.area_of_cover, "Shared edit")

    def test_plan_template_third(self):
        self.assertEqual(self.resolver.resolve("ORIENT", "DMED_LSB").network, "Orient/Nextcare RN3")

    def test_benefits_key_metadata(self):
        metadata = PlanMetadata(benefits_key="ORIENT_DMED_NLSB")
        benefits = self.resolver.resolve("ORIENT", "DMED_NLSB_ADULT", metadata=metadata)
        self.assertEqual(benefits.network, "Orient/Nextcare RN2")

    def test_family_template(self):
        benefits = self.resolver.resolve("ORIENT_MEDNET", "MEDNET_SILKROAD_0")
        self.assertEqual(benefits.network, "MEDNET")
        self.assertEqual(benefits.annual_limit, "AED 500,000")

    def test_trailing_token_match(self):
        """A plan sharing the trailing name token of a curated template uses it"""
        benefits = self.resolver.resolve("OTHER", "PLAN_DUBAI_BASIC")
        self.assertEqual(benefits.network, "NAS RN")

    def test_default_last(self):
        self.assertEqual(self.resolver.resolve("UFIC", "PLAN_A_NE").network, "Standard")

    def test_partial_edit_completed_from_default(self):
        """A stored edit missing fields is completed, never partial"""
        local = {"UFIC_PLAN_A_NE": {"area_of_cover": "Sharjah"}}
        benefits = self.resolver.resolve("UFIC", "PLAN_A_NE", local_overrides=local)
        self.assertEqual(benefits.area_of_cover, "Sharjah")
        self.assertEqual(benefits.annual_limit, "AED 150,000")

    def test_result_is_independent_copy(self):
        first = self.resolver.resolve("ORIENT", "DMED_LSB")
        first.dental = CoverageItem(True, "Changed")
        second = self.resolver.resolve("ORIENT", "DMED_LSB")
        self.assertFalse(second.dental.enabled)


class TestBenefitSet(unittest.TestCase):

    def test_from_dict_ignores_bookkeeping(self):
        benefits = BenefitSet.from_dict({"network": "MEDNET", "_updatedAt": "2025-01-01T00:00:00Z"})
        self.assertEqual(benefits.network, "MEDNET")
        self.assertNotIn("_updatedAt", benefits.to_dict())

    def test_coverage_item_from_dict(self):
        benefits = BenefitSet.from_dict({"optical": {"enabled": False, "value": "n/a"}})
        self.assertFalse(benefits.optical.enabled)
        self.assertEqual(benefits.optical.value, "n/a")


if __name__ == "__main__":
    unittest.main(verbosity=2)
