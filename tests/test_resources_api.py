"""
Test Suite for Shared Storage API - Insurance Comparison Portal
Resource read/merge/write rules and the HTTP surface (in-memory stores)

Run with: python -m pytest tests/test_resources_api.py
"""

import unittest

from fastapi.testclient import TestClient

from blob_store import MemoryBlobStore
from resources import (
    BenefitsResource,
    ManualPlansResource,
    PlanEditsResource,
    MissingFieldError,
    strip_bookkeeping,
)
from api import create_app


# =============================================================================
# Resources
# =============================================================================

class TestBenefitsResource(unittest.TestCase):

    def setUp(self):
        self.resource = BenefitsResource(MemoryBlobStore())

    def test_save_merges_into_aggregate(self):
        self.resource.save({"planKey": "A", "benefits": {"area_of_cover": "Dubai"}})
        self.resource.save({"planKey": "B", "benefits": {"area_of_cover": "UAE"}})
        data = self.resource.get_all()
        self.assertEqual(set(data), {"A", "B"})
        self.assertEqual(data["A"]["area_of_cover"], "Dubai")
        self.assertTrue(data["A"]["_updatedAt"].endswith("Z"))

    def test_save_overwrites_same_key(self):
        self.resource.save({"planKey": "A", "benefits": {"area_of_cover": "Dubai"}})
        self.resource.save({"planKey": "A", "benefits": {"area_of_cover": "UAE"}})
        self.assertEqual(self.resource.get_all()["A"]["area_of_cover"], "UAE")

    def test_missing_fields(self):
        with self.assertRaises(MissingFieldError):
            self.resource.save({"planKey": "A"})
        with self.assertRaises(MissingFieldError):
            self.resource.save({"benefits": {"x": 1}})

    def test_delete(self):
        self.resource.save({"planKey": "A", "benefits": {"x": 1}})
        self.resource.delete({"planKey": "A"})
        self.assertEqual(self.resource.get_all(), {})


class TestManualPlansResource(unittest.TestCase):

    def setUp(self):
        self.resource = ManualPlansResource(MemoryBlobStore())

    def test_provider_save_keeps_other_providers(self):
        self.resource.save({"providerKey": "CIGNA", "plans": [{"id": "CIGNA_1"}]})
        self.resource.save({"providerKey": "BUPA", "plans": [{"id": "BUPA_1"}]})
        data = self.resource.get_all()
        self.assertEqual(set(data), {"CIGNA", "BUPA"})
        self.assertNotIn("_updatedAt", data)

    def test_whole_collection_replaced(self):
        self.resource.save({"providerKey": "CIGNA", "plans": [{"id": "CIGNA_1"}]})
        key = self.resource.save({"plans": {"BUPA": [{"id": "BUPA_1"}]}})
        self.assertEqual(key, "*")
        self.assertEqual(set(self.resource.get_all()), {"BUPA"})

    def test_plans_required(self):
        with self.assertRaises(MissingFieldError):
            self.resource.save({"providerKey": "CIGNA"})

    def test_delete_one_plan(self):
        self.resource.save({"providerKey": "CIGNA", "plans": [{"id": "CIGNA_1"}, {"id": "CIGNA_2"}]})
        self.resource.delete({"providerKey": "CIGNA", "planId": "CIGNA_1"})
        self.assertEqual(self.resource.get_all()["CIGNA"], [{"id": "CIGNA_2"}])


class TestPlanEditsResource(unittest.TestCase):

    def test_one_record_per_plan(self):
        resource = PlanEditsResource(MemoryBlobStore())
        resource.save({"planId": "A", "edits": {"plan": "Renamed"}})
        resource.save({"planId": "B", "edits": {"copay": "10%"}})
        data = resource.get_all()
        self.assertEqual(strip_bookkeeping(data["A"]), {"plan": "Renamed"})
        resource.delete({"planId": "A"})
        self.assertEqual(list(resource.get_all()), ["B"])


# =============================================================================
# HTTP surface
# =============================================================================

class TestApi(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(create_app(
            data_store=MemoryBlobStore("insurance-data"),
            plan_edits_store=MemoryBlobStore("plan-edits"),
        ))

    def test_options(self):
        response = self.client.options("/api/benefits")
        self.assertEqual(response.status_code, 200)

    def test_get_empty(self):
        response = self.client.get("/api/benefits")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "benefits": {}})
        self.assertIn("no-store", response.headers["cache-control"])

    def test_post_then_get(self):
        response = self.client.post("/api/benefits", json={
            "planKey": "ORIENT_DMED_LSB", "benefits": {"area_of_cover": "Dubai"}
        })
        self.assertEqual(response.json(), {"success": True, "planKey": "ORIENT_DMED_LSB"})
        benefits = self.client.get("/api/benefits").json()["benefits"]
        self.assertEqual(benefits["ORIENT_DMED_LSB"]["area_of_cover"], "Dubai")

    def test_post_missing_field(self):
        response = self.client.post("/api/plan-edits", json={"planId": "A"})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_post_invalid_json(self):
        response = self.client.post("/api/benefits", content=b"{oops",
                                    headers={"Content-Type": "application/json"})
        self.assertEqual(response.status_code, 400)

    def test_put_not_allowed(self):
        response = self.client.put("/api/manual-plans", json={"plans": {}})
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json()["error"], "Method not allowed")

    def test_manual_plans_round_trip(self):
        self.client.post("/api/manual-plans", json={
            "providerKey": "CIGNA", "plans": [{"id": "CIGNA_1"}, {"id": "CIGNA_2"}]
        })
        response = self.client.request("DELETE", "/api/manual-plans",
                                       json={"providerKey": "CIGNA", "planId": "CIGNA_1"})
        self.assertEqual(response.json(), {"success": True, "planId": "CIGNA_1"})
        plans = self.client.get("/api/manual-plans").json()["plans"]
        self.assertEqual(plans, {"CIGNA": [{"id": "CIGNA_2"}]})

    def test_manual_plans_whole_collection(self):
        response = self.client.post("/api/manual-plans", json={"plans": {"BUPA": []}})
        self.assertEqual(response.json()["providerKey"], "*")

    def test_delete_with_query_parameters(self):
        self.client.post("/api/plan-edits", json={"planId": "A", "edits": {"plan": "X"}})
        response = self.client.delete("/api/plan-edits", params={"planId": "A"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/api/plan-edits").json()["edits"], {})


if __name__ == "__main__":
    unittest.main(verbosity=2)
