"""
Test Suite for Family Management - Insurance Comparison Portal

Run with: python -m pytest tests/test_family.py
"""

import unittest

from family import (
    default_family,
    add_member,
    remove_member,
    update_member,
    members_missing_dob,
)
from portal_fixtures import AS_OF, principal, spouse


class TestMembership(unittest.TestCase):

    def test_default_family_is_principal(self):
        members = default_family()
        self.assertEqual(len(members), 1)
        self.assertTrue(members[0].is_principal)
        self.assertEqual(members[0].relationship, "Self")

    def test_add_member_gets_next_id(self):
        members = add_member([principal(), spouse()])
        self.assertEqual([m.id for m in members], [1, 2, 3])
        self.assertEqual(members[-1].sponsorship, "Dependent")

    def test_ids_not_reused_after_removal(self):
        members = add_member([principal(), spouse()])
        members = remove_member(members, 2)
        members = add_member(members)
        self.assertEqual([m.id for m in members], [1, 3, 4])

    def test_last_member_cannot_be_removed(self):
        with self.assertRaises(ValueError):
            remove_member([principal()], 1)


class TestUpdateMember(unittest.TestCase):

    def setUp(self):
        self.members = add_member([principal()])

    def test_child_relationship_from_dob(self):
        members = update_member(self.members, 2, "dob", "2015-01-01", as_of=AS_OF)
        self.assertEqual(members[1].relationship, "Child")

    def test_parent_relationship_from_sponsorship(self):
        members = update_member(self.members, 2, "dob", "1960-01-01", as_of=AS_OF)
        members = update_member(members, 2, "sponsorship", "Father", as_of=AS_OF)
        self.assertEqual(members[1].relationship, "Parent")

    def test_spouse_relationship(self):
        members = update_member(self.members, 2, "dob", "1995-01-01", as_of=AS_OF)
        members = update_member(members, 2, "sponsorship", "Wife", as_of=AS_OF)
        self.assertEqual(members[1].relationship, "Spouse")

    def test_name_change_keeps_relationship(self):
        members = update_member(self.members, 2, "name", "Omar")
        self.assertEqual(members[1].name, "Omar")
        self.assertEqual(members[1].relationship, "Other")

    def test_original_list_untouched(self):
        update_member(self.members, 2, "name", "Omar")
        self.assertEqual(self.members[1].name, "")

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            update_member(self.members, 2, "gender", "Unknown")
        with self.assertRaises(ValueError):
            update_member(self.members, 2, "sponsorship", "Cousin")
        with self.assertRaises(ValueError):
            update_member(self.members, 2, "id", 9)

    def test_missing_dob(self):
        self.assertEqual([m.id for m in members_missing_dob(self.members)], [2])


if __name__ == "__main__":
    unittest.main(verbosity=2)
