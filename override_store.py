"""
Override Store
Holds the session's override layers and keeps them in sync with local and
cloud storage.

Scopes:
- member premium edits: local only, keyed "{member_id}_{plan_id}"
- local benefits edits: local only, highest benefits priority
- shared plan identity edits and benefits edits: cloud, cached locally
- manual plans: cloud, mirrored locally

Cloud failures never lose an edit: it stays in memory and in local storage,
and the returned StoreResult reports that it was not synced. Unsynced shared
plan edits are kept pending and pushed again on the next load.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from constants import STORAGE_KEYS
from portal_types import (
    BenefitSet,
    PlanEdit,
    ManualPlanRecord,
    OverrideSnapshot,
    member_plan_key,
)
from local_store import LocalStore
from cloud_client import CloudOverrideClient, StoreUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class StoreResult:
    """Result of a store operation."""
    success: bool
    synced: bool = False
    message: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "synced": self.synced,
            "message": self.message,
        }


class OverrideStore:
    """Override layers for a session, backed by a LocalStore and an optional cloud client."""

    def __init__(self, local: LocalStore, cloud: Optional[CloudOverrideClient] = None):
        self.local = local
        self.cloud = cloud
        self.snapshot = OverrideSnapshot()
        self.manual_plans: Dict[str, List[ManualPlanRecord]] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> StoreResult:
        """
        Load all layers: local edits first, then shared edits and manual plans
        from the cloud (falling back to the local copies).

        Shared plan edits that could not be synced earlier are pushed again
        and kept on top of the cloud copy until they are.

        Returns:
            StoreResult; synced is False when the cloud could not be read
        """
        self.snapshot.local_premiums = self._load_local_premiums()
        self.snapshot.local_benefits = self._load_benefits_map(STORAGE_KEYS['benefits_edits'])

        self._load_shared_cache()
        self.manual_plans = self._load_local_manual_plans()
        self._apply_pending_plan_edits()

        if self.cloud is None:
            return StoreResult(success=True, synced=False, message="Cloud sync is not configured")

        try:
            overrides = self.cloud.fetch_overrides()
            manual_plans = self.cloud.fetch_manual_plans()
        except StoreUnavailableError as e:
            logger.warning(f"Cloud overrides unavailable, using local copies: {e}")
            return StoreResult(success=True, synced=False,
                               message="Shared edits could not be loaded; showing the last saved copy")

        self.snapshot.shared_benefits = overrides.benefits
        self.snapshot.shared_plan_edits = overrides.plan_edits
        self.manual_plans = manual_plans
        pending_left = self._push_pending_plan_edits()
        self._save_shared_cache()
        self._save_local_manual_plans()

        if pending_left:
            return StoreResult(success=True, synced=False,
                               message=f"Shared edits loaded; {pending_left} plan edit(s) still waiting to sync")
        return StoreResult(success=True, synced=True, message="Shared edits loaded")

    def _read_mapping(self, key: str) -> Dict:
        """A stored dict, or {} (and the key reset) when the stored value is not one."""
        data = self.local.get(key, {})
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error(f"Local store '{key}' is corrupted, clearing it")
            self.local.remove(key)
            return {}
        return data

    def _load_local_premiums(self) -> Dict[str, float]:
        premiums = {}
        for k, v in self._read_mapping(STORAGE_KEYS['plan_edits']).items():
            if v is None:
                continue
            if isinstance(v, bool) or not isinstance(v, (int, float, str)):
                logger.error(f"Dropping corrupted premium edit '{k}': {v!r}")
                continue
            try:
                premiums[k] = float(v)
            except ValueError:
                logger.error(f"Dropping corrupted premium edit '{k}': {v!r}")
        return premiums

    def _load_benefits_map(self, key: str) -> Dict[str, BenefitSet]:
        benefits = {}
        for plan_id, record in self._read_mapping(key).items():
            if not isinstance(record, dict):
                logger.error(f"Dropping corrupted benefits edit '{plan_id}' from '{key}'")
                continue
            benefits[plan_id] = BenefitSet.from_dict(record)
        return benefits

    def _load_plan_edits_map(self, data: Any) -> Dict[str, PlanEdit]:
        edits = {}
        for plan_id, record in (data if isinstance(data, dict) else {}).items():
            if not isinstance(record, dict):
                logger.error(f"Dropping corrupted plan edit '{plan_id}'")
                continue
            edits[plan_id] = PlanEdit.from_dict(record)
        return edits

    def _load_shared_cache(self) -> None:
        cache = self._read_mapping(STORAGE_KEYS['shared_cache'])
        self.snapshot.shared_plan_edits = self._load_plan_edits_map(cache.get('plan_edits'))
        benefits = cache.get('benefits')
        self.snapshot.shared_benefits = {
            k: BenefitSet.from_dict(v)
            for k, v in (benefits if isinstance(benefits, dict) else {}).items()
            if isinstance(v, dict)
        }

    def _save_shared_cache(self) -> None:
        self.local.set(STORAGE_KEYS['shared_cache'], {
            'plan_edits': {k: v.to_dict() for k, v in self.snapshot.shared_plan_edits.items()},
            'benefits': {k: v.to_dict() for k, v in self.snapshot.shared_benefits.items()},
        })

    def _load_local_manual_plans(self) -> Dict[str, List[ManualPlanRecord]]:
        plans = {}
        for provider_key, records in self._read_mapping(STORAGE_KEYS['manual_plans']).items():
            if not isinstance(records, list):
                logger.error(f"Dropping corrupted manual plans for '{provider_key}'")
                continue
            parsed = []
            for record in records:
                try:
                    if not isinstance(record, dict) or not record.get('id'):
                        raise ValueError("expected an object with an id")
                    parsed.append(ManualPlanRecord.from_dict(record, provider_key))
                except (KeyError, TypeError, ValueError) as e:
                    logger.error(f"Dropping corrupted manual plan for '{provider_key}': {e!r}")
            plans[provider_key] = parsed
        return plans

    def _save_local_manual_plans(self) -> None:
        self.local.set(STORAGE_KEYS['manual_plans'], {
            k: [r.to_dict() for r in v] for k, v in self.manual_plans.items()
        })

    def _save_local_edits(self) -> None:
        self.local.set(STORAGE_KEYS['plan_edits'], self.snapshot.local_premiums)
        self.local.set(STORAGE_KEYS['benefits_edits'], {
            k: v.to_dict() for k, v in self.snapshot.local_benefits.items()
        })

    # ------------------------------------------------------------------
    # Unsynced shared plan edits
    # ------------------------------------------------------------------

    def _pending_plan_edits(self) -> Dict[str, PlanEdit]:
        return self._load_plan_edits_map(self._read_mapping(STORAGE_KEYS['pending_plan_edits']))

    def _save_pending_plan_edits(self, pending: Dict[str, PlanEdit]) -> None:
        if pending:
            self.local.set(STORAGE_KEYS['pending_plan_edits'],
                           {k: v.to_dict() for k, v in pending.items()})
        else:
            self.local.remove(STORAGE_KEYS['pending_plan_edits'])

    def _apply_pending_plan_edits(self) -> None:
        self.snapshot.shared_plan_edits.update(self._pending_plan_edits())

    def _push_pending_plan_edits(self) -> int:
        """
        Retry plan edits whose cloud write failed.

        Edits that still fail stay pending and stay in the snapshot.

        Returns:
            Number of edits still pending
        """
        pending = self._pending_plan_edits()
        remaining = {}
        for plan_id, edit in pending.items():
            self.snapshot.shared_plan_edits[plan_id] = edit
            try:
                self.cloud.save_plan_edit(plan_id, edit)
            except StoreUnavailableError as e:
                logger.warning(f"Plan edit for {plan_id} still not synced: {e}")
                remaining[plan_id] = edit
            else:
                logger.info(f"Synced pending plan edit for {plan_id}")
        if pending:
            self._save_pending_plan_edits(remaining)
        return len(remaining)

    def _sync(self, action, description: str) -> StoreResult:
        if self.cloud is None:
            return StoreResult(success=True, synced=False, message=f"{description} saved locally")
        try:
            action()
        except StoreUnavailableError as e:
            logger.error(f"Cloud sync failed for {description.lower()}: {e}")
            return StoreResult(success=True, synced=False,
                               message=f"Cloud sync failed. {description} saved locally only.")
        return StoreResult(success=True, synced=True, message=f"{description} saved and shared")

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def save_plan_edit(self, plan_id: str, member_id: int, plan: Optional[str] = None,
                       network: Optional[str] = None, copay: Optional[str] = None,
                       premium: Optional[float] = None) -> StoreResult:
        """
        Save an edit made on one member's plan row.

        The premium applies to this member only; plan name, network and copay
        apply to every member.

        Args:
            plan_id: Plan identity
            member_id: Member whose row was edited
            plan: New display name (None leaves it unchanged)
            network: New network (None leaves it unchanged)
            copay: New copay (None leaves it unchanged)
            premium: New premium for this member (None leaves it unchanged)

        Returns:
            StoreResult
        """
        if premium is not None:
            self.snapshot.local_premiums[member_plan_key(member_id, plan_id)] = float(premium)
            self._save_local_edits()

        if plan is None and network is None and copay is None:
            return StoreResult(success=True, synced=False, message="Premium updated for this member")

        current = self.snapshot.shared_plan_edits.get(plan_id) or PlanEdit()
        edit = PlanEdit(
            plan=plan if plan is not None else current.plan,
            network=network if network is not None else current.network,
            copay=copay if copay is not None else current.copay,
        )
        self.snapshot.shared_plan_edits[plan_id] = edit
        self._save_shared_cache()

        result = self._sync(lambda: self.cloud.save_plan_edit(plan_id, edit), "Plan details")
        pending = self._pending_plan_edits()
        if result.synced:
            if pending.pop(plan_id, None) is not None:
                self._save_pending_plan_edits(pending)
        elif self.cloud is not None:
            pending[plan_id] = edit
            self._save_pending_plan_edits(pending)
            result.message = "Cloud sync failed. Plan details saved locally and will be shared on the next load."
        return result

    def save_benefits(self, plan_id: str, benefits: BenefitSet,
                      provider_key: Optional[str] = None) -> StoreResult:
        """
        Save a benefits edit for every member that sees the plan.

        Args:
            plan_id: Plan identity
            benefits: Complete benefits document
            provider_key: Set for manual plans so the stored plan record is updated too

        Returns:
            StoreResult
        """
        benefits = benefits.copy()
        self.snapshot.local_benefits[plan_id] = benefits
        self.snapshot.shared_benefits[plan_id] = benefits.copy()
        self._save_local_edits()
        self._save_shared_cache()

        if provider_key and provider_key in self.manual_plans:
            for record in self.manual_plans[provider_key]:
                if record.id == plan_id:
                    record.benefits = benefits.copy()
            self._save_local_manual_plans()

        def push():
            if provider_key and provider_key in self.manual_plans:
                self.cloud.save_provider_plans(provider_key, self.manual_plans[provider_key])
            self.cloud.save_benefits(plan_id, benefits)

        return self._sync(push, "Benefits")

    def add_manual_plan(self, record: ManualPlanRecord) -> StoreResult:
        self.manual_plans.setdefault(record.provider_key, []).append(record)
        self._save_local_manual_plans()
        records = self.manual_plans[record.provider_key]
        return self._sync(lambda: self.cloud.save_provider_plans(record.provider_key, records),
                          "Manual plan")

    def delete_manual_plan(self, provider_key: str, plan_id: str) -> StoreResult:
        remaining = [r for r in self.manual_plans.get(provider_key, []) if r.id != plan_id]
        if remaining:
            self.manual_plans[provider_key] = remaining
        else:
            self.manual_plans.pop(provider_key, None)
        self._save_local_manual_plans()
        return self._sync(lambda: self.cloud.delete_manual_plan(provider_key, plan_id),
                          "Manual plan removal")

    def clear_local_edits(self) -> StoreResult:
        """Discard this machine's premium and benefits edits."""
        self.snapshot.local_premiums = {}
        self.snapshot.local_benefits = {}
        self.local.remove(STORAGE_KEYS['plan_edits'])
        self.local.remove(STORAGE_KEYS['benefits_edits'])
        logger.info("Cleared local plan and benefits edits")
        return StoreResult(success=True, synced=False, message="Local edits cleared")
