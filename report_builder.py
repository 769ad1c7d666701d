"""
Consolidated Report Builder

Turns member results into one comparison table covering every plan that any
member selected: benefit rows, one premium row per member, then gross premium,
Basmah fee, VAT and grand total per plan.

The output (ConsolidatedReport) is renderer-neutral; pdf_report_renderer.py
draws it with ReportLab.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from constants import (
    BASMAH_FEES,
    VAT_RATE,
    REPORT_FILE_PREFIX,
    REPORT_DATE_FORMAT,
    SALARY_CATEGORIES,
    PLAN_STATUS_LABELS,
    LOCATION_DUBAI,
)
from portal_types import FamilyMember, MemberResult, ResolvedPlan, SharedSettings, CoverageItem

logger = logging.getLogger(__name__)

DISCLAIMER = (
    "While we make every effort to ensure the accuracy and timeliness of the details "
    "provided in the comparison table, there may be instances where the actual coverage "
    "differs. In such cases, the terms outlined in the insurer's official policy wording "
    "and schedule will take precedence over the information provided by us."
)

FOOTER_LEFT = [
    "Suite 2801, One by Omniyat, Al Mustaqbal Street, Business Bay, Dubai, U.A.E",
    "PO Box 233640 | UAE Central Bank Registration Number: 200",
]
FOOTER_RIGHT = [
    "Call us on: 047058000",
    "Email us on: enquiry@nsib.ae | Visit us: www.nsib.ae",
]


@dataclass
class PlanTotals:
    """Price breakdown for one plan across all reported members."""
    gross: float = 0.0
    basmah: float = 0.0
    vat: float = 0.0
    total: float = 0.0
    member_count: int = 0


@dataclass
class ReportMember:
    member: FamilyMember
    age: int

    @property
    def label(self) -> str:
        return f"{self.member.display_name} ({self.age}y)"


@dataclass
class ConsolidatedReport:
    """Everything a renderer needs to draw the comparison."""
    client_name: str
    report_date: date
    location: str
    salary_label: str
    subtitle: str
    plans: List[ResolvedPlan]
    members: List[ReportMember]
    benefit_rows: List[Tuple[str, List[str]]]
    premium_rows: List[Tuple[str, List[Optional[float]]]]
    totals: Dict[str, PlanTotals]
    basmah_fee: float
    basmah_label: str
    advisor_comment: str = ""
    disclaimer: str = DISCLAIMER
    footer_left: List[str] = field(default_factory=lambda: list(FOOTER_LEFT))
    footer_right: List[str] = field(default_factory=lambda: list(FOOTER_RIGHT))

    @property
    def date_label(self) -> str:
        return self.report_date.strftime(REPORT_DATE_FORMAT)

    @property
    def file_name(self) -> str:
        """NSIB_Report_{client}_{dd-mm-YYYY}, without extension."""
        return f"{REPORT_FILE_PREFIX}_{self.client_name}_{self.date_label.replace('/', '-')}"

    def status_label(self, plan: ResolvedPlan) -> str:
        return "" if plan.status == 'none' else PLAN_STATUS_LABELS.get(plan.status, "")


def format_aed(amount: Optional[float]) -> str:
    if amount is None:
        return "-"
    return f"AED {amount:,.2f}"


def _coverage_text(item: CoverageItem) -> str:
    if not item.enabled:
        return "Not Covered"
    return item.value or "Covered"


def report_sort_key(plan: ResolvedPlan):
    """Renewals first, then ascending premium."""
    return (plan.status != 'renewal', plan.premium)


def collect_selected(members: List[FamilyMember], results: Dict[int, MemberResult]
                     ) -> Tuple[List[ReportMember], List[ResolvedPlan]]:
    """
    Members with at least one selection, and the union of their selected plans.

    A plan's display row comes from the first member (in family order) that
    has it in their results.
    """
    report_members = []
    plans: Dict[str, ResolvedPlan] = {}

    for member in members:
        result = results.get(member.id)
        if result is None:
            continue
        selected = result.selected_plans
        if not selected:
            continue
        report_members.append(ReportMember(member=member, age=result.age))
        for plan in selected:
            plans.setdefault(plan.id, plan)

    return report_members, sorted(plans.values(), key=report_sort_key)


def _benefit_rows(plans: List[ResolvedPlan], include_maternity: bool) -> List[Tuple[str, List[str]]]:
    rows = [
        ("Plan Name", [p.plan or "-" for p in plans]),
        ("Area of Cover", [p.benefits.area_of_cover or "-" for p in plans]),
        ("Annual Limit", [p.benefits.annual_limit or "-" for p in plans]),
        ("Network", [p.benefits.network or p.network or "-" for p in plans]),
        ("Consultation Deductible", [p.benefits.consultation_deductible or "-" for p in plans]),
        ("Prescribed Drugs & Medicines", [p.benefits.prescribed_drugs or "-" for p in plans]),
        ("Diagnostics", [p.benefits.diagnostics or "-" for p in plans]),
        ("Pre-existing Condition", [p.benefits.preexisting_condition or "-" for p in plans]),
        ("Physiotherapy", [p.benefits.physiotherapy or "-" for p in plans]),
    ]
    if include_maternity:
        rows.append(("Out-patient Maternity", [p.benefits.outpatient_maternity or "-" for p in plans]))
        rows.append(("In-patient Maternity", [p.benefits.inpatient_maternity or "-" for p in plans]))
    rows.extend([
        ("Dental", [_coverage_text(p.benefits.dental) for p in plans]),
        ("Optical", [_coverage_text(p.benefits.optical) for p in plans]),
        ("Alternative Medicine", [_coverage_text(p.benefits.alternative_medicine) for p in plans]),
    ])
    return rows


def build_report(members: List[FamilyMember], results: Dict[int, MemberResult],
                 settings: SharedSettings, advisor_comment: str = "",
                 report_date: Optional[date] = None) -> ConsolidatedReport:
    """
    Build the consolidated comparison.

    Args:
        members: Family members in display order
        results: Member results with selections
        settings: Shared settings (location decides the Basmah fee)
        advisor_comment: Optional comment printed under the table
        report_date: Date printed on the report (default: today)

    Returns:
        ConsolidatedReport

    Raises:
        ValueError: If no member has a selected plan
    """
    report_members, plans = collect_selected(members, results)
    if not plans:
        raise ValueError("Please select at least one plan for at least one member")

    report_date = report_date or date.today()
    basmah_fee = BASMAH_FEES.get(settings.location, BASMAH_FEES[LOCATION_DUBAI])

    premium_rows = []
    totals = {plan.id: PlanTotals() for plan in plans}
    for report_member in report_members:
        result = results[report_member.member.id]
        row = []
        for plan in plans:
            member_plan = result.find_plan(plan.id)
            if member_plan is None:
                row.append(None)
                continue
            row.append(member_plan.premium)
            totals[plan.id].gross += member_plan.premium
            totals[plan.id].member_count += 1
        premium_rows.append((report_member.label, row))

    for plan_totals in totals.values():
        plan_totals.basmah = basmah_fee * plan_totals.member_count
        plan_totals.vat = (plan_totals.gross + plan_totals.basmah) * VAT_RATE
        plan_totals.total = plan_totals.gross + plan_totals.basmah + plan_totals.vat

    if len(report_members) == 1:
        only = report_members[0]
        subtitle = (f"{only.member.display_name} | Age: {only.age} | "
                    f"{only.member.gender} | {only.member.sponsorship}")
    else:
        subtitle = f"{len(report_members)} Members: " + ", ".join(m.label for m in report_members)

    visa_note = "DXB visa holders only" if settings.is_dubai else "NE visa holders"
    include_maternity = any(m.member.maternity_enabled for m in report_members)

    client_name = members[0].name if members and members[0].name else "Family"
    logger.info(f"Built report for {client_name}: {len(plans)} plans, {len(report_members)} members")

    return ConsolidatedReport(
        client_name=client_name,
        report_date=report_date,
        location=settings.location,
        salary_label=SALARY_CATEGORIES.get(settings.salary_category, settings.salary_category),
        subtitle=subtitle,
        plans=plans,
        members=report_members,
        benefit_rows=_benefit_rows(plans, include_maternity),
        premium_rows=premium_rows,
        totals=totals,
        basmah_fee=basmah_fee,
        basmah_label=f"Basmah (@ {basmah_fee}/- Per Person) ({visa_note})",
        advisor_comment=advisor_comment,
    )
