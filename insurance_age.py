"""
Insurance age calculation and age band lookup

Insurance age is the member's age rounded to the nearest birthday:
six or more months past the last birthday rates at the next age.
"""

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Tuple, Union

from constants import (
    MIN_INSURANCE_AGE,
    MAX_INSURANCE_AGE,
    AGE_ROUNDING_MONTHS,
    NO_RATE,
    SPONSORSHIP_PRINCIPAL,
)

logger = logging.getLogger(__name__)


class AgeValidationError(ValueError):
    """Raised when a member's DOB is missing or gives an age outside the rated range."""
    pass


def parse_dob(dob: Union[str, date, datetime, None]) -> date:
    """
    Parse a date of birth.

    Args:
        dob: date, datetime or ISO string (yyyy-mm-dd)

    Returns:
        date

    Raises:
        AgeValidationError: If DOB is missing or not a valid date
    """
    if dob is None or dob == "":
        raise AgeValidationError("Date of birth is required")
    if isinstance(dob, datetime):
        return dob.date()
    if isinstance(dob, date):
        return dob

    try:
        return datetime.strptime(str(dob).strip()[:10], '%Y-%m-%d').date()
    except ValueError:
        raise AgeValidationError(f"Invalid date of birth: {dob}")


def compute_insurance_age(dob: Union[str, date, datetime, None],
                          as_of: Optional[date] = None) -> int:
    """
    Calculate insurance age from date of birth.

    Args:
        dob: Date of birth (date or yyyy-mm-dd string)
        as_of: Date to calculate age as of (default: today)

    Returns:
        Insurance age in years

    Raises:
        AgeValidationError: If DOB is invalid or age falls outside 0-100

    Examples:
        >>> compute_insurance_age('1990-01-15', date(2025, 8, 1))
        36  # 35 years and 6 months rounds up
        >>> compute_insurance_age('1990-01-15', date(2025, 7, 1))
        35  # 35 years and 5 months
    """
    dob_date = parse_dob(dob)
    if as_of is None:
        as_of = date.today()

    age = as_of.year - dob_date.year
    if (as_of.month, as_of.day) < (dob_date.month, dob_date.day):
        age -= 1

    months = (as_of.month - dob_date.month) % 12
    if as_of.day < dob_date.day:
        months = (months - 1) % 12

    if months >= AGE_ROUNDING_MONTHS:
        age += 1

    if age < MIN_INSURANCE_AGE or age > MAX_INSURANCE_AGE:
        raise AgeValidationError(
            f"Insurance age must be between {MIN_INSURANCE_AGE} and {MAX_INSURANCE_AGE} (got {age})"
        )

    return age


def derive_relationship(age: Optional[int], sponsorship: str) -> str:
    """
    Derive a member's relationship label from sponsorship and age.

    Args:
        age: Insurance age (None when DOB is not yet known)
        sponsorship: Sponsorship option

    Returns:
        Self, Spouse, Parent, Child, Dependent or Other
    """
    if sponsorship == SPONSORSHIP_PRINCIPAL:
        return "Self"
    if sponsorship in ("Husband", "Wife"):
        return "Spouse"

    if age is None:
        age = 0
    if sponsorship in ("Father", "Mother"):
        return "Parent" if age >= 18 else "Other"
    if age < 18:
        return "Child"
    if age < 25:
        return "Dependent"
    return "Other"


def parse_age_band(band: str) -> Optional[Tuple[int, int]]:
    """
    Parse an age band key into an inclusive (min, max) range.

    Args:
        band: "N" or "min-max"

    Returns:
        (min, max) or None if the key is malformed
    """
    text = str(band).strip()
    try:
        if '-' in text:
            low, high = text.split('-', 1)
            return int(low), int(high)
        value = int(text)
        return value, value
    except ValueError:
        return None


def find_age_band(age: int, age_bands: Iterable[str]) -> str:
    """
    Find the first age band containing age.

    Args:
        age: Insurance age
        age_bands: Band keys in rate table order

    Returns:
        Matching band key, or NO_RATE if no band covers the age
    """
    for band in age_bands:
        bounds = parse_age_band(band)
        if bounds is None:
            logger.debug(f"Skipping malformed age band '{band}'")
            continue
        low, high = bounds
        if low <= age <= high:
            return band
    return NO_RATE


if __name__ == "__main__":
    today = date.today()
    for sample in ['1990-01-15', '2020-06-30', '1960-12-01']:
        age = compute_insurance_age(sample, today)
        band = find_age_band(age, ['0-17', '18-40', '41-65'])
        print(f"{sample}: insurance age {age}, band {band}")
