"""
Test Suite for Manual Plans - Insurance Comparison Portal
Provider list, plan creation and adding plans to existing results

Run with: python -m pytest tests/test_manual_plans.py
"""

import tempfile
import unittest

from local_store import LocalStore
from manual_plans import (
    load_custom_providers,
    add_custom_provider,
    all_providers,
    provider_name,
    create_manual_plan,
    add_to_results,
    remove_from_results,
)
from portal_fixtures import (
    AS_OF,
    PRINCIPAL_ID,
    SPOUSE_ID,
    make_engine,
    make_templates,
    principal,
    spouse,
    dubai_low,
)

NOW_MS = 1700000000000


class TestCustomProviders(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.local = LocalStore(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_add_provider(self):
        provider = add_custom_provider(self.local, " Sukoon Insurance ")
        self.assertEqual(provider["id"], "SUKOON_INSURANCE")
        self.assertEqual(provider["name"], "SUKOON INSURANCE")
        self.assertEqual(load_custom_providers(self.local), [provider])

    def test_custom_provider_listed_after_built_ins(self):
        add_custom_provider(self.local, "Daman")
        providers = all_providers(load_custom_providers(self.local))
        self.assertEqual(providers[-1]["id"], "DAMAN")
        self.assertEqual(provider_name("DAMAN", load_custom_providers(self.local)), "DAMAN")

    def test_duplicate_and_blank_rejected(self):
        with self.assertRaises(ValueError):
            add_custom_provider(self.local, "cigna")
        with self.assertRaises(ValueError):
            add_custom_provider(self.local, "Sukoon")
        with self.assertRaises(ValueError):
            add_custom_provider(self.local, "   ")

    def test_unknown_provider_name_is_key(self):
        self.assertEqual(provider_name("NOPE"), "NOPE")


class TestCreateManualPlan(unittest.TestCase):

    def setUp(self):
        self.templates = make_templates()

    def test_defaults(self):
        record = create_manual_plan("CIGNA", "Global", "5000", self.templates, now_ms=NOW_MS)
        self.assertEqual(record.id, "CIGNA_1700000000000")
        self.assertEqual(record.provider, "CIGNA")
        self.assertEqual(record.network, "Standard")
        self.assertEqual(record.copay, "Variable")
        self.assertEqual(record.premium, 5000.0)
        self.assertEqual(record.benefits.area_of_cover, "UAE")

    def test_network_picks_template(self):
        record = create_manual_plan("AL_SAGR", "Gold", 4200, self.templates,
                                    network="MEDNET Gold", now_ms=NOW_MS)
        self.assertEqual(record.provider, "AL SAGR NATIONAL")
        self.assertEqual(record.network, "MEDNET Gold")
        self.assertEqual(record.benefits.annual_limit, "AED 500,000")

    def test_validation(self):
        with self.assertRaises(ValueError):
            create_manual_plan("", "Global", 100, self.templates)
        with self.assertRaises(ValueError):
            create_manual_plan("CIGNA", "", 100, self.templates)
        with self.assertRaises(ValueError):
            create_manual_plan("CIGNA", "Global", "", self.templates)
        with self.assertRaises(ValueError):
            create_manual_plan("CIGNA", "Global", "abc", self.templates)


class TestResults(unittest.TestCase):

    def setUp(self):
        self.engine = make_engine()
        self.results = self.engine.search([principal(), spouse()], dubai_low(), as_of=AS_OF).results
        self.record = create_manual_plan("CIGNA", "Global", 50, make_templates(), now_ms=NOW_MS)

    def test_added_to_every_member_and_ranked(self):
        add_to_results(self.engine, self.results, self.record, None)
        for member_id in (PRINCIPAL_ID, SPOUSE_ID):
            first = self.results[member_id].comparison[0]
            self.assertEqual(first.id, self.record.id)
            self.assertTrue(first.is_manual)
            self.assertEqual(self.results[member_id].min_price, 50.0)

    def test_selection_kept_when_added(self):
        self.results[PRINCIPAL_ID].find_plan("ORIENT_DMED_LSB").selected = True
        add_to_results(self.engine, self.results, self.record, None)
        self.assertTrue(self.results[PRINCIPAL_ID].find_plan("ORIENT_DMED_LSB").selected)

    def test_removed(self):
        add_to_results(self.engine, self.results, self.record, None)
        remove_from_results(self.engine, self.results, self.record.id, None)
        for result in self.results.values():
            self.assertIsNone(result.find_plan(self.record.id))
        self.assertEqual(self.results[PRINCIPAL_ID].min_price, 700)


if __name__ == "__main__":
    unittest.main(verbosity=2)
