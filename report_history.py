"""
Report history

Saved report snapshots, kept on this machine. A snapshot holds only what is
needed to rebuild the comparison: members, shared settings, the plans each
member selected or gave a status, the advisor comment and manual plans.
Loading a snapshot re-runs the search and re-applies the saved selections.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from constants import STORAGE_KEYS, MAX_REPORT_HISTORY
from portal_types import FamilyMember, SharedSettings, ManualPlanRecord, MemberResult
from local_store import LocalStore

logger = logging.getLogger(__name__)


@dataclass
class RestoredReport:
    """Session state rebuilt from a history entry."""
    members: List[FamilyMember]
    settings: SharedSettings
    advisor_comment: str = ""
    manual_plans: Dict[str, List[ManualPlanRecord]] = field(default_factory=dict)
    # member id -> plan id -> (selected, status)
    selections: Dict[int, Dict[str, Dict[str, Any]]] = field(default_factory=dict)


def _plan_summary(plan) -> Dict[str, Any]:
    return {
        'id': plan.id,
        'provider': plan.provider,
        'plan': plan.plan,
        'network': plan.network,
        'copay': plan.copay,
        'premium': plan.premium,
        'selected': plan.selected,
        'status': plan.status,
        'is_manual': plan.is_manual,
        'provider_key': plan.provider_key,
    }


class ReportHistory:
    """Most recent report snapshots, oldest first."""

    def __init__(self, local: LocalStore, limit: int = MAX_REPORT_HISTORY):
        self.local = local
        self.limit = limit

    def load(self) -> List[Dict[str, Any]]:
        """
        Read saved snapshots.

        History longer than the limit is trimmed (and rewritten). History that
        is not a list of snapshots is cleared.
        """
        key = STORAGE_KEYS['report_history']
        history = self.local.get(key, [])
        if not isinstance(history, list) or not all(isinstance(h, dict) and 'id' in h for h in history):
            logger.error("Report history is corrupted, clearing it")
            self.local.remove(key)
            return []

        if len(history) > self.limit:
            history = history[-self.limit:]
            self.local.set(key, history)
        return history

    def save(self, name: str, members: List[FamilyMember], settings: SharedSettings,
             results: Dict[int, MemberResult], advisor_comment: str = "",
             manual_plans: Optional[Dict[str, List[ManualPlanRecord]]] = None,
             now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Add a snapshot of the current session.

        Args:
            name: Report name (usually the client name)
            members: Family members
            settings: Shared settings
            results: Current member results
            advisor_comment: Free-text comment shown on the report
            manual_plans: Manual plans by provider key
            now: Snapshot time (default: now)

        Returns:
            The stored snapshot
        """
        now = now or datetime.now()
        entry = {
            'id': int(now.timestamp() * 1000),
            'name': name,
            'timestamp': now.isoformat(),
            'members': [m.to_dict() for m in members],
            'settings': {'location': settings.location, 'salary_category': settings.salary_category},
            'member_results': {
                str(member_id): {
                    'age': result.age,
                    'comparison': [
                        _plan_summary(p) for p in result.comparison
                        if p.selected or p.status != 'none'
                    ],
                }
                for member_id, result in results.items()
            },
            'advisor_comment': advisor_comment,
            'manual_plans': {
                k: [r.to_dict() for r in v] for k, v in (manual_plans or {}).items()
            },
        }

        history = (self.load() + [entry])[-self.limit:]
        self.local.set(STORAGE_KEYS['report_history'], history)
        logger.info(f"Saved report '{name}' to history ({len(history)} entries)")
        return entry

    def delete(self, report_id: int) -> List[Dict[str, Any]]:
        history = [h for h in self.load() if h['id'] != report_id]
        self.local.set(STORAGE_KEYS['report_history'], history)
        return history

    def clear(self) -> None:
        self.local.remove(STORAGE_KEYS['report_history'])

    def restore(self, report_id: int) -> RestoredReport:
        """
        Rebuild session state from a snapshot.

        Raises:
            KeyError: If no snapshot has this id
        """
        entry = next((h for h in self.load() if h['id'] == report_id), None)
        if entry is None:
            raise KeyError(f"Report {report_id} not found in history")

        raw_settings = entry.get('settings') or {}
        settings = SharedSettings(**{k: v for k, v in raw_settings.items()
                                     if k in ('location', 'salary_category')})

        selections = {}
        for member_id, saved in (entry.get('member_results') or {}).items():
            selections[int(member_id)] = {
                p['id']: {'selected': bool(p.get('selected')), 'status': p.get('status') or 'none'}
                for p in saved.get('comparison', [])
            }

        return RestoredReport(
            members=[FamilyMember.from_dict(m) for m in entry.get('members', [])],
            settings=settings,
            advisor_comment=entry.get('advisor_comment', ""),
            manual_plans={
                k: [ManualPlanRecord.from_dict(r, k) for r in v]
                for k, v in (entry.get('manual_plans') or {}).items()
            },
            selections=selections,
        )


def apply_selections(results: Dict[int, MemberResult],
                     selections: Dict[int, Dict[str, Dict[str, Any]]]) -> Dict[int, MemberResult]:
    """Re-apply saved selection and status to freshly searched results."""
    for member_id, saved in selections.items():
        result = results.get(member_id)
        if result is None:
            continue
        for plan in result.comparison:
            if plan.id in saved:
                plan.selected = saved[plan.id]['selected']
                plan.status = saved[plan.id]['status']
    return results


def merge_manual_plans(current: Dict[str, List[ManualPlanRecord]],
                       saved: Dict[str, List[ManualPlanRecord]]) -> Dict[str, List[ManualPlanRecord]]:
    """Current manual plans plus any saved with a report that have since been removed."""
    merged = {k: list(v) for k, v in current.items()}
    for provider_key, records in saved.items():
        known = {r.id for r in merged.get(provider_key, [])}
        missing = [r for r in records if r.id not in known]
        if missing:
            merged.setdefault(provider_key, []).extend(missing)
    return merged
