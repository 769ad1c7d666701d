"""
Test Suite for Local Store - Insurance Comparison Portal

Run with: python -m pytest tests/test_local_store.py
"""

import tempfile
import unittest
from pathlib import Path

from local_store import LocalStore


class TestLocalStore(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = LocalStore(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_key_returns_default(self):
        self.assertEqual(self.store.get("nsib_plan_edits", {}), {})
        self.assertIsNone(self.store.get("nsib_plan_edits"))

    def test_default_is_not_shared(self):
        default = {"a": []}
        value = self.store.get("missing", default)
        value["a"].append(1)
        self.assertEqual(default, {"a": []})

    def test_round_trip(self):
        self.store.set("nsib_plan_edits", {"1_ORIENT_DMED_LSB": 650.0})
        self.assertEqual(self.store.get("nsib_plan_edits"), {"1_ORIENT_DMED_LSB": 650.0})

    def test_remove(self):
        self.store.set("key", [1])
        self.store.remove("key")
        self.assertIsNone(self.store.get("key"))
        self.store.remove("key")

    def test_corrupted_file_cleared(self):
        path = Path(self.tmp.name) / "nsib_report_history.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertLogs("local_store", level="ERROR"):
            self.assertEqual(self.store.get("nsib_report_history", []), [])
        self.assertFalse(path.exists())

    def test_no_temp_file_left(self):
        self.store.set("key", {"x": 1})
        self.assertEqual([p.name for p in Path(self.tmp.name).iterdir()], ["key.json"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
