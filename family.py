"""
Family member management

Add, remove and edit the members being quoted. A member's relationship is
re-derived whenever their date of birth or sponsorship changes.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Any, List, Optional

from constants import SPONSORSHIP_PRINCIPAL, SPONSORSHIP_OPTIONS, GENDERS
from portal_types import FamilyMember
from insurance_age import compute_insurance_age, derive_relationship, AgeValidationError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'dob', 'gender', 'sponsorship', 'maternity_enabled')


def default_family() -> List[FamilyMember]:
    """A new session starts with the principal only."""
    return [FamilyMember(id=1, sponsorship=SPONSORSHIP_PRINCIPAL, relationship="Self")]


def add_member(members: List[FamilyMember]) -> List[FamilyMember]:
    """Append a blank dependent."""
    next_id = max((m.id for m in members), default=0) + 1
    new_member = FamilyMember(id=next_id, sponsorship="Dependent", relationship="Other")
    return members + [new_member]


def remove_member(members: List[FamilyMember], member_id: int) -> List[FamilyMember]:
    """
    Remove a member.

    Raises:
        ValueError: If it is the last member
    """
    if len(members) <= 1:
        raise ValueError("You must have at least one family member")
    return [m for m in members if m.id != member_id]


def _relationship_for(member: FamilyMember, as_of: Optional[date]) -> str:
    try:
        age = compute_insurance_age(member.dob, as_of)
    except AgeValidationError:
        return member.relationship
    return derive_relationship(age, member.sponsorship)


def update_member(members: List[FamilyMember], member_id: int, field_name: str,
                  value: Any, as_of: Optional[date] = None) -> List[FamilyMember]:
    """
    Set one field of a member.

    Args:
        members: Current members
        member_id: Member to update
        field_name: One of EDITABLE_FIELDS
        value: New value
        as_of: Date used to age the member (default: today)

    Returns:
        New member list
    """
    if field_name not in EDITABLE_FIELDS:
        raise ValueError(f"Cannot edit member field '{field_name}'")
    if field_name == 'gender' and value not in GENDERS:
        raise ValueError(f"Unknown gender: {value}")
    if field_name == 'sponsorship' and value not in SPONSORSHIP_OPTIONS:
        raise ValueError(f"Unknown sponsorship: {value}")

    updated = []
    for member in members:
        if member.id != member_id:
            updated.append(member)
            continue
        changed = replace(member, **{field_name: value})
        if field_name in ('dob', 'sponsorship') and changed.dob:
            changed.relationship = _relationship_for(changed, as_of)
        updated.append(changed)
    return updated


def members_missing_dob(members: List[FamilyMember]) -> List[FamilyMember]:
    return [m for m in members if not m.dob]
