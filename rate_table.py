"""
Rate table loading and plan classification

The rate table maps provider -> plan name -> age band -> {M, F} -> annual premium.
Each plan gets a PlanMetadata record at load time so eligibility and benefit
lookup work over explicit tags instead of re-parsing plan names.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any, Iterator, Union

from constants import (
    LOCATION_DUBAI,
    LOCATION_NORTHERN_EMIRATES,
    GENDER_KEYS,
    NETWORK_FAMILIES,
    RATE_TABLE_PATH,
    DEFAULT_NETWORK,
    DEFAULT_COPAY,
)

logger = logging.getLogger(__name__)

# Salary band tags
SALARY_BAND_LOW = "low"
SALARY_BAND_STANDARD = "standard"

# Providers whose basic plans are split by salary band
SALARY_BANDED_PROVIDERS = ("ORIENT",)

_NE_TOKENS = {"NE"}
_DUBAI_TOKENS = {"DXB", "DUBAI", "DMED", "EMED", "IMED"}

# Copay is encoded as a trailing _0 / _10 / _20 on the plan name
COPAY_SUFFIXES = {"0": "0%", "10": "10%", "20": "20%"}

# (plan name fragment, network, display name), first match wins
NETWORK_TIER_PATTERNS = [
    ("MEDNET_SILKROAD", "MEDNET", "SilkRoad"),
    ("MEDNET_PEARL", "MEDNET", "Pearl"),
    ("MEDNET_EMERALD", "MEDNET", "Emerald"),
    ("MEDNET_GREEN", "MEDNET", "Green"),
    ("MEDNET_SILVER_CLASSIC", "MEDNET", "Silver Classic"),
    ("MEDNET_SILVER_PREMIUM", "MEDNET", "Silver Premium"),
    ("MEDNET_GOLD", "MEDNET", "Gold"),
    ("NEXTCARE_PCP", "NEXTCARE", "PCP"),
    ("NEXTCARE_RN3", "NEXTCARE", "RN3"),
    ("NEXTCARE_RN2", "NEXTCARE", "RN2"),
    ("NEXTCARE_RN_", "NEXTCARE", "RN"),
    ("NEXTCARE_GN_LIMITED", "NEXTCARE", "GN Limited"),
    ("NEXTCARE_GN_PLUS", "NEXTCARE", "GN+"),
    ("NEXTCARE_GN_", "NEXTCARE", "GN"),
    ("NAS_VN_", "NAS", "VN"),
    ("NAS_WN_", "NAS", "WN"),
    ("NAS_SRN_", "NAS", "SRN"),
    ("NAS_RN_", "NAS", "RN"),
    ("NAS_GN_", "NAS", "GN"),
    ("NAS_CN_", "NAS", "CN"),
]


@dataclass
class PlanMetadata:
    """Tags attached to a rate table plan at load time."""
    location_tag: Optional[str] = None  # LOCATION_DUBAI, LOCATION_NORTHERN_EMIRATES or None
    salary_band: Optional[str] = None  # SALARY_BAND_LOW, SALARY_BAND_STANDARD or None
    network_family: Optional[str] = None  # MEDNET, NEXTCARE, NAS or None
    principal_only: bool = False
    benefits_key: Optional[str] = None  # explicit benefits template key


@dataclass
class PlanDescription:
    """Display attributes derived from a plan name."""
    display_name: str
    network: str = DEFAULT_NETWORK
    copay: str = DEFAULT_COPAY


@dataclass
class RatePlan:
    """One plan of the rate table with its age band rows."""
    provider: str
    plan_name: str
    age_bands: Dict[str, Dict[str, float]] = field(default_factory=dict)
    metadata: PlanMetadata = field(default_factory=PlanMetadata)

    @property
    def plan_id(self) -> str:
        return make_plan_id(self.provider, self.plan_name)

    @property
    def band_keys(self) -> List[str]:
        return list(self.age_bands.keys())


def make_plan_id(provider: str, plan_name: str) -> str:
    """Build the plan identity shared by rates, benefits and overrides."""
    if not provider or not plan_name:
        raise ValueError(f"Invalid plan identity: provider={provider!r}, plan={plan_name!r}")
    return f"{provider}_{plan_name}"


def _tokens(plan_name: str) -> List[str]:
    return plan_name.upper().split('_')


def classify_location(plan_name: str) -> Optional[str]:
    """
    Location tag from plan name tokens.

    Northern Emirates tags (NE, NEMED...) are checked first so that NEMED
    plans are never read as Dubai EMED plans.
    """
    tokens = _tokens(plan_name)
    if any(t in _NE_TOKENS or t.startswith("NEMED") for t in tokens):
        return LOCATION_NORTHERN_EMIRATES
    if any(t in _DUBAI_TOKENS for t in tokens):
        return LOCATION_DUBAI
    return None


def classify_network_family(provider: str, plan_name: str) -> Optional[str]:
    for family in NETWORK_FAMILIES:
        if f"{family}_" in plan_name or f"_{family}" in provider:
            return family
    return None


def classify_plan(provider: str, plan_name: str,
                  overrides: Optional[Dict[str, Any]] = None) -> PlanMetadata:
    """
    Derive plan metadata from naming conventions.

    Args:
        provider: Provider key (e.g. 'ORIENT')
        plan_name: Plan key within the provider (e.g. 'DMED_LSB')
        overrides: Optional explicit metadata fields from the data file

    Returns:
        PlanMetadata
    """
    tokens = _tokens(plan_name)
    metadata = PlanMetadata(
        location_tag=classify_location(plan_name),
        network_family=classify_network_family(provider, plan_name),
    )

    if provider in SALARY_BANDED_PROVIDERS:
        if "LSB" in tokens:
            metadata.salary_band = SALARY_BAND_LOW
        elif "NLSB" in tokens or plan_name == "IMED_DXB":
            metadata.salary_band = SALARY_BAND_STANDARD
        metadata.principal_only = "EMED" in tokens or plan_name == "IMED_DXB"

    if overrides:
        for key, value in overrides.items():
            if hasattr(metadata, key):
                setattr(metadata, key, value)
            else:
                logger.warning(f"Unknown metadata field '{key}' for {provider}_{plan_name}")

    return metadata


def describe_plan(provider: str, plan_name: str) -> PlanDescription:
    """
    Display name, network and copay for a rate table plan.

    Examples:
        >>> describe_plan('ORIENT_MEDNET', 'MEDNET_SILKROAD_0')
        PlanDescription(display_name='SilkRoad', network='MEDNET', copay='0%')
        >>> describe_plan('UFIC', 'PLAN_A_NE')
        PlanDescription(display_name='PLAN A NE', network='UFIC Network', copay='Variable')
    """
    description = PlanDescription(display_name=plan_name.replace('_', ' '))

    suffix = plan_name.rsplit('_', 1)[-1] if '_' in plan_name else None
    if suffix in COPAY_SUFFIXES:
        description.copay = COPAY_SUFFIXES[suffix]

    for fragment, network, display_name in NETWORK_TIER_PATTERNS:
        if fragment in plan_name:
            description.network = network
            description.display_name = display_name
            return description

    if 'MEDNET' in plan_name:
        description.network = 'MEDNET'
    elif 'NAS' in plan_name:
        description.network = 'NAS'
    elif 'NEXTCARE' in plan_name:
        description.network = 'NEXTCARE'
    elif provider == 'FIDELITY' and 'NE' in plan_name:
        description.network = 'AAFIA TPA'
    elif provider == 'UFIC':
        description.network = 'UFIC Network'
    elif 'WATANIA' in provider and 'MEDNET' not in provider and 'NAS' not in provider:
        description.network = 'NAS/Mednet TPA'
    elif 'ORIENT' in provider and 'MEDNET' not in provider and 'NEXTCARE' not in provider:
        description.network = 'Orient/Nextcare'
    elif provider == 'TAKAFUL_EMARAT':
        description.network = 'NEXTCARE'

    return description


def provider_display_name(provider: str) -> str:
    """'ORIENT_MEDNET' -> 'ORIENT', 'WATANIA_TAKAFUL' -> 'WATANIA TAKAFUL'"""
    name = provider.replace('_MEDNET', '').replace('_NEXTCARE', '').replace('_NAS', '')
    return name.replace('_', ' ')


def plan_location_label(metadata: PlanMetadata) -> str:
    return LOCATION_DUBAI if metadata.location_tag == LOCATION_DUBAI else LOCATION_NORTHERN_EMIRATES


def salary_category_label(metadata: PlanMetadata) -> str:
    if metadata.salary_band == SALARY_BAND_LOW:
        return "Below 4K"
    if metadata.salary_band == SALARY_BAND_STANDARD:
        return "Above 4K"
    return "All"


class RateTable:
    """
    Read-only premium table.

    Plans iterate in file order; band order within a plan is preserved
    because the first matching band wins.
    """

    def __init__(self, providers: Dict[str, Dict[str, Dict[str, Dict[str, float]]]],
                 plan_metadata: Optional[Dict[str, Dict[str, Any]]] = None):
        plan_metadata = plan_metadata or {}
        self._plans: List[RatePlan] = []
        self._index: Dict[str, RatePlan] = {}

        for provider, plans in providers.items():
            for plan_name, bands in plans.items():
                plan_id = make_plan_id(provider, plan_name)
                plan = RatePlan(
                    provider=provider,
                    plan_name=plan_name,
                    age_bands=dict(bands),
                    metadata=classify_plan(provider, plan_name, plan_metadata.get(plan_id)),
                )
                self._plans.append(plan)
                self._index[plan_id] = plan

        logger.debug(f"Rate table built: {len(self._plans)} plans")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RateTable":
        return cls(data.get('providers', {}), data.get('plan_metadata'))

    @classmethod
    def from_json(cls, path: Union[str, Path, None] = None) -> "RateTable":
        """
        Load a rate table file.

        Args:
            path: JSON file (default: data/rate_table.json)

        Returns:
            RateTable
        """
        path = Path(path) if path else RATE_TABLE_PATH
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        table = cls.from_dict(data)
        logger.info(f"Loaded rate table from {path}: {len(table)} plans, "
                    f"{len(table.providers)} providers")
        return table

    def __len__(self) -> int:
        return len(self._plans)

    def __iter__(self) -> Iterator[RatePlan]:
        return iter(self._plans)

    @property
    def providers(self) -> List[str]:
        seen = []
        for plan in self._plans:
            if plan.provider not in seen:
                seen.append(plan.provider)
        return seen

    def get_plan(self, plan_id: str) -> Optional[RatePlan]:
        return self._index.get(plan_id)

    def lookup_premium(self, plan: RatePlan, band: str, gender: str) -> Optional[float]:
        """
        Premium for a band and gender.

        Returns:
            Premium, or None if the band or gender cell is missing or empty
        """
        row = plan.age_bands.get(band)
        if not row:
            return None
        value = row.get(GENDER_KEYS.get(gender, gender))
        if not value:
            return None
        return float(value)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s',
                        datefmt='%H:%M:%S')
    table = RateTable.from_json()
    for plan in table:
        description = describe_plan(plan.provider, plan.plan_name)
        print(f"{plan.plan_id:40s} {description.display_name:20s} {description.network:18s} "
              f"{description.copay:9s} {plan.metadata.location_tag or '-'}")
