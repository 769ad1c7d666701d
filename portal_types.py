"""
Portal Types
Dataclasses for family members, resolved plans, benefits and override state
"""

import copy
from dataclasses import dataclass, field, fields, asdict
from typing import Optional, Dict, List, Any

from constants import (
    LOCATION_DUBAI,
    SALARY_BELOW_4000,
    SPONSORSHIP_PRINCIPAL,
    BOOKKEEPING_FIELDS,
    DEFAULT_NETWORK,
    DEFAULT_COPAY,
)


@dataclass
class CoverageItem:
    """An optional benefit (dental, optical, ...) with its description."""
    enabled: bool = True
    value: str = ""

    @classmethod
    def from_value(cls, raw: Any, default: "CoverageItem") -> "CoverageItem":
        if isinstance(raw, CoverageItem):
            return CoverageItem(raw.enabled, raw.value)
        if isinstance(raw, dict):
            return cls(
                enabled=bool(raw.get('enabled', default.enabled)),
                value=str(raw.get('value', default.value) or ""),
            )
        return CoverageItem(default.enabled, default.value)


@dataclass
class PreexistingTerms:
    """How pre-existing conditions are treated (standard, underwriting, waiting, covered)."""
    type: str = "standard"
    value: str = ""

    @classmethod
    def from_value(cls, raw: Any, default: "PreexistingTerms") -> "PreexistingTerms":
        if isinstance(raw, PreexistingTerms):
            return PreexistingTerms(raw.type, raw.value)
        if isinstance(raw, dict):
            return cls(
                type=str(raw.get('type', default.type) or default.type),
                value=str(raw.get('value', default.value) or ""),
            )
        return PreexistingTerms(default.type, default.value)


_COVERAGE_FIELDS = ('dental', 'optical', 'alternative_medicine')


@dataclass
class BenefitSet:
    """
    Descriptive coverage of a plan.

    Every field always carries a value. Records read from storage are
    completed from a default template with from_dict().
    """
    area_of_cover: str = ""
    annual_limit: str = "As per policy schedule"
    network: str = ""
    consultation_deductible: str = ""
    prescribed_drugs: str = ""
    diagnostics: str = ""
    preexisting_condition: str = ""
    physiotherapy: str = ""
    outpatient_maternity: str = ""
    inpatient_maternity: str = ""
    dental: CoverageItem = field(default_factory=lambda: CoverageItem(True, ""))
    optical: CoverageItem = field(default_factory=lambda: CoverageItem(True, ""))
    alternative_medicine: CoverageItem = field(default_factory=lambda: CoverageItem(False, ""))

    # Older summary fields, still shown when the newer ones are blank
    inpatient: str = "Covered as per policy terms"
    outpatient: str = "Covered as per policy terms"
    emergency: str = "24/7 Coverage"
    maternity: str = "As per selected plan"
    preexisting: PreexistingTerms = field(default_factory=lambda: PreexistingTerms(
        "standard",
        "All pre-existing medical conditions should be declared in the Medical "
        "Application Form and is subject to medical underwriting.",
    ))
    pharmacy_limit: str = ""
    consultation: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]],
                  defaults: Optional["BenefitSet"] = None) -> "BenefitSet":
        """
        Build a complete BenefitSet from a stored record.

        Args:
            data: Stored record (bookkeeping keys and unknown keys are ignored)
            defaults: Template used for missing fields (default: BenefitSet())

        Returns:
            New BenefitSet
        """
        if isinstance(data, BenefitSet):
            return data.copy()

        base = defaults.copy() if defaults is not None else cls()
        if not data:
            return base

        for f in fields(cls):
            if f.name not in data or f.name in BOOKKEEPING_FIELDS:
                continue
            raw = data[f.name]
            if f.name in _COVERAGE_FIELDS:
                setattr(base, f.name, CoverageItem.from_value(raw, getattr(base, f.name)))
            elif f.name == 'preexisting':
                base.preexisting = PreexistingTerms.from_value(raw, base.preexisting)
            elif raw is not None:
                setattr(base, f.name, str(raw))
        return base

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def copy(self) -> "BenefitSet":
        return copy.deepcopy(self)


@dataclass
class FamilyMember:
    """A person being quoted. relationship is derived from age and sponsorship."""
    id: int
    name: str = ""
    dob: str = ""  # ISO yyyy-mm-dd, empty until entered
    gender: str = "Male"
    sponsorship: str = SPONSORSHIP_PRINCIPAL
    relationship: str = "Self"
    maternity_enabled: bool = False

    @property
    def is_principal(self) -> bool:
        return self.sponsorship == SPONSORSHIP_PRINCIPAL

    @property
    def display_name(self) -> str:
        return self.name or self.relationship

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FamilyMember":
        return cls(
            id=int(data['id']),
            name=data.get('name', ""),
            dob=data.get('dob', ""),
            gender=data.get('gender', "Male"),
            sponsorship=data.get('sponsorship', SPONSORSHIP_PRINCIPAL),
            relationship=data.get('relationship', "Self"),
            maternity_enabled=bool(data.get('maternity_enabled', False)),
        )


@dataclass
class SharedSettings:
    """Search settings applied to every family member."""
    location: str = LOCATION_DUBAI
    salary_category: str = SALARY_BELOW_4000

    @property
    def is_dubai(self) -> bool:
        return self.location == LOCATION_DUBAI

    @property
    def is_below_salary(self) -> bool:
        return self.salary_category == SALARY_BELOW_4000


@dataclass
class ResolvedPlan:
    """
    One row of a member's comparison list.

    premium is member-level; every other attribute is plan-level and must
    resolve identically for every member sharing the plan id.
    """
    id: str
    provider: str
    plan: str
    network: str = DEFAULT_NETWORK
    copay: str = DEFAULT_COPAY
    premium: float = 0.0
    benefits: BenefitSet = field(default_factory=BenefitSet)
    is_manual: bool = False
    needs_manual_rate: bool = False
    selected: bool = False
    status: str = "none"
    provider_key: Optional[str] = None
    plan_location: Optional[str] = None
    salary_category: Optional[str] = None

    @property
    def is_unpriced(self) -> bool:
        """True for a placeholder that exists for the provider but has no rate for this member."""
        return self.needs_manual_rate and self.premium == 0

    def copy(self) -> "ResolvedPlan":
        return copy.deepcopy(self)


@dataclass
class PlanEdit:
    """Shared plan-identity edit. None means 'not edited'."""
    plan: Optional[str] = None
    network: Optional[str] = None
    copay: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanEdit":
        return cls(
            plan=data.get('plan') or None,
            network=data.get('network') or None,
            copay=data.get('copay') or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ManualPlanRecord:
    """A plan entered by hand for a provider without rate table rows."""
    id: str
    provider: str
    plan: str
    network: str = DEFAULT_NETWORK
    copay: str = DEFAULT_COPAY
    premium: float = 0.0
    benefits: Optional[BenefitSet] = None
    provider_key: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['benefits'] = self.benefits.to_dict() if self.benefits else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], provider_key: str = "") -> "ManualPlanRecord":
        raw_benefits = data.get('benefits')
        return cls(
            id=str(data['id']),
            provider=data.get('provider', provider_key),
            plan=data.get('plan', ""),
            network=data.get('network') or DEFAULT_NETWORK,
            copay=data.get('copay') or DEFAULT_COPAY,
            premium=float(data.get('premium') or 0),
            benefits=BenefitSet.from_dict(raw_benefits) if raw_benefits else None,
            provider_key=data.get('provider_key') or provider_key,
        )


@dataclass
class OverrideSnapshot:
    """
    All override layers known to the session.

    local_premiums is keyed by member_plan_key(member_id, plan_id); every
    other mapping is keyed by plan id.
    """
    shared_plan_edits: Dict[str, PlanEdit] = field(default_factory=dict)
    shared_benefits: Dict[str, BenefitSet] = field(default_factory=dict)
    local_premiums: Dict[str, float] = field(default_factory=dict)
    local_benefits: Dict[str, BenefitSet] = field(default_factory=dict)


@dataclass
class MemberResult:
    """Comparison output for one member."""
    member: FamilyMember
    age: int
    comparison: List[ResolvedPlan] = field(default_factory=list)
    base_plans: List[ResolvedPlan] = field(default_factory=list)
    min_price: float = 0.0
    avg_price: float = 0.0
    max_price: float = 0.0

    @property
    def selected_plans(self) -> List[ResolvedPlan]:
        return [p for p in self.comparison if p.selected]

    def find_plan(self, plan_id: str) -> Optional[ResolvedPlan]:
        for plan in self.comparison:
            if plan.id == plan_id:
                return plan
        return None


@dataclass
class SearchOutcome:
    """Search results per member plus validation errors for members that were skipped."""
    results: Dict[int, MemberResult] = field(default_factory=dict)
    errors: Dict[int, str] = field(default_factory=dict)


def member_plan_key(member_id: int, plan_id: str) -> str:
    """Storage key for a member-scoped premium override."""
    if not plan_id:
        raise ValueError("plan_id is required for a member premium override")
    return f"{member_id}_{plan_id}"
