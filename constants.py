"""
Constants and reference data for the Medical Insurance Comparison Portal
Includes locations, sponsorship options, storage keys, report fees and manual providers
"""

from pathlib import Path

# ==============================================================================
# SEARCH SETTINGS
# ==============================================================================

LOCATION_DUBAI = "Dubai"
LOCATION_NORTHERN_EMIRATES = "Northern Emirates"
LOCATIONS = [LOCATION_DUBAI, LOCATION_NORTHERN_EMIRATES]

SALARY_BELOW_4000 = "below4000"
SALARY_ABOVE_4000 = "above4000"
SALARY_CATEGORIES = {
    SALARY_BELOW_4000: "Below 4,000 AED",
    SALARY_ABOVE_4000: "Above 4,000 AED",
}

GENDERS = ["Male", "Female"]

# Rate table gender cell keys
GENDER_KEYS = {
    "Male": "M",
    "Female": "F",
}

SPONSORSHIP_PRINCIPAL = "Principal"
SPONSORSHIP_OPTIONS = [
    "Principal",
    "Husband",
    "Wife",
    "Father",
    "Mother",
    "Dependent",
]

# Insurance age must fall within this range (inclusive)
MIN_INSURANCE_AGE = 0
MAX_INSURANCE_AGE = 100

# Months past the last birthday at which insurance age rounds up
AGE_ROUNDING_MONTHS = 6

# ==============================================================================
# PLAN STATES
# ==============================================================================

# Sentinel returned when no age band of a plan covers the member's age.
# The plan is still listed (premium 0) so the advisor can price it manually.
NO_RATE = "NO_RATE"

PLAN_STATUSES = ["none", "renewal", "alternative", "recommended"]

PLAN_STATUS_LABELS = {
    "none": "-",
    "renewal": "RENEWAL",
    "alternative": "ALTERNATIVE",
    "recommended": "RECOMMENDED",
}

DEFAULT_NETWORK = "Standard"
DEFAULT_COPAY = "Variable"

# Network families with a shared benefits template, in detection order
NETWORK_FAMILIES = ["MEDNET", "NEXTCARE", "NAS"]

# ==============================================================================
# STORAGE
# ==============================================================================

# Local (per-user) persistence keys
STORAGE_KEYS = {
    'plan_edits': 'nsib_plan_edits',
    'benefits_edits': 'nsib_benefits_edits',
    'report_history': 'nsib_report_history',
    'manual_plans': 'nsib_manual_plans',
    'custom_providers': 'nsib_custom_providers',
    'shared_cache': 'nsib_shared_cache',
    'pending_plan_edits': 'nsib_pending_plan_edits',
}

# Shared (cloud) blob store namespace and resource keys
BLOB_NAMESPACE = "insurance-data"
PLAN_EDITS_NAMESPACE = "plan-edits"
BENEFITS_KEY = "benefits"
MANUAL_PLANS_KEY = "manual-plans"

# Plan-identity edits share the benefits collection under this prefix
PLAN_EDIT_PREFIX = "PLAN_EDIT_"

# Bookkeeping fields stripped before a stored record is treated as data
BOOKKEEPING_FIELDS = ("_updatedAt", "_isPlanEdit", "_meta")

# Keep only the most recent report snapshots
MAX_REPORT_HISTORY = 10

# ==============================================================================
# REFERENCE DATA
# ==============================================================================

DATA_DIR = Path(__file__).parent / 'data'
RATE_TABLE_PATH = DATA_DIR / 'rate_table.json'
PLAN_BENEFITS_PATH = DATA_DIR / 'plan_benefits.json'

# ==============================================================================
# REPORT
# ==============================================================================

# Basmah fee per covered member, by emirate (AED)
BASMAH_FEES = {
    LOCATION_DUBAI: 37,
    LOCATION_NORTHERN_EMIRATES: 24,
}

VAT_RATE = 0.05

REPORT_FILE_PREFIX = "NSIB_Report"

# Date format used in report titles and file names
REPORT_DATE_FORMAT = "%d/%m/%Y"

# ==============================================================================
# MANUAL PROVIDERS
# ==============================================================================

MEDNET_TIERS = [
    'MEDNET SilkRoad', 'MEDNET Pearl', 'MEDNET Emerald', 'MEDNET Green',
    'MEDNET Silver Classic', 'MEDNET Silver Premium', 'MEDNET Gold',
]
NEXTCARE_TIERS = [
    'NEXTCARE RN3', 'NEXTCARE RN2', 'NEXTCARE RN', 'NEXTCARE GN', 'NEXTCARE GN PLUS',
]
NAS_TIERS = ['NAS WN', 'NAS SRN', 'NAS RN', 'NAS GN', 'NAS CN']

# Providers whose plans are entered by hand (no rate table rows)
MANUAL_PROVIDERS = [
    {'id': 'AL_SAGR', 'name': 'AL SAGR NATIONAL', 'networks': ['NEXTCARE', 'MEDNET', 'NAS']},
    {'id': 'CIGNA', 'name': 'CIGNA', 'networks': ['Regional', 'International', 'International Plus']},
    {'id': 'BUPA', 'name': 'BUPA', 'networks': ['BUPA Network']},
    {'id': 'HENSMERKUR', 'name': 'HENSMERKUR', 'networks': ['HENSMERKUR Network']},
    {'id': 'TAKAFUL_EMARAT_MANUAL', 'name': 'TAKAFUL EMARAT',
     'networks': NEXTCARE_TIERS + MEDNET_TIERS + ['NAS VN'] + NAS_TIERS + [
         'AAFIYA APN', 'AAFIYA APN PLUS', 'AAFIYA ESSENTIAL',
         'NE BASIC IP ONLY', 'NE BASIC PLAN', 'NE BASIC ENHANCED', 'NE BASIC ENHANCED PLUS',
         'ECARE BLUE 1', 'ECARE BLUE 2', 'ECARE BLUE 3', 'ECARE BLUE 4',
     ]},
    {'id': 'MEDGULF', 'name': 'MEDGULF', 'networks': ['MEDNET', 'NEXTCARE', 'NAS']},
    {'id': 'LIVA', 'name': 'LIVA', 'networks': NAS_TIERS + MEDNET_TIERS + ['INAYAH']},
    {'id': 'SUKOON', 'name': 'SUKOON', 'networks': ['SAFE', 'HOME', 'HOMELITE', 'PRO', 'PRIME', 'MAX']},
    {'id': 'DIC', 'name': 'DIC', 'networks': ['ISON', 'MEDNET', 'DUBAICARE']},
    {'id': 'ORIENT_MANUAL', 'name': 'ORIENT', 'networks': NEXTCARE_TIERS + MEDNET_TIERS},
    {'id': 'ADAMJEE', 'name': 'ADAMJEE', 'networks': MEDNET_TIERS + NAS_TIERS},
    {'id': 'FIDELITY_MANUAL', 'name': 'FIDELITY',
     'networks': ['NEXTCARE PCP RN3'] + NEXTCARE_TIERS + ['NAS VN'] + NAS_TIERS},
    {'id': 'DUBAI_INSURANCE', 'name': 'DUBAI INSURANCE',
     'networks': ['DUBAICARE N5', 'DUBAICARE N3', 'DUBAICARE N2', 'DUBAICARE EXCL N2',
                  'DUBAICARE N1'] + MEDNET_TIERS},
    {'id': 'RAK', 'name': 'RAK', 'networks': NEXTCARE_TIERS + MEDNET_TIERS},
    {'id': 'WATANIA_TAKAFUL_MANUAL', 'name': 'WATANIA TAKAFUL',
     'networks': MEDNET_TIERS + ['NAS VN'] + NAS_TIERS},
    {'id': 'QATAR_INSURANCE', 'name': 'QATAR INSURANCE', 'networks': ['NAS'] + MEDNET_TIERS},
]

# ==============================================================================
# APPLICATION
# ==============================================================================

APP_CONFIG = {
    'title': 'Medical Insurance Comparison',
    'icon': '🏥',
    'layout': 'wide',
    'initial_sidebar_state': 'expanded'
}

# Help text
HELP_TEXT = {
    'insurance_age': """
        Insurance age rounds to the nearest birthday: a member who is six or
        more months past their last birthday is rated at the next age.
    """,
    'no_rate': """
        Plans marked N/A have no tabulated rate for this member's age.
        Use Edit to enter the premium quoted by the insurer.
    """,
    'plan_edits': """
        Plan name, network and copay edits are shared with every advisor.
        Premium edits apply to this member only and are kept on this machine.
    """,
}

if __name__ == "__main__":
    # Display constants for verification
    print("Insurance Portal Constants")
    print("=" * 50)
    print(f"\nLocations: {', '.join(LOCATIONS)}")
    print(f"Sponsorship options: {', '.join(SPONSORSHIP_OPTIONS)}")
    print(f"\nManual providers: {len(MANUAL_PROVIDERS)}")
    for provider in MANUAL_PROVIDERS:
        print(f"  {provider['id']}: {len(provider['networks'])} networks")

    print("\n✓ All constants loaded successfully!")
