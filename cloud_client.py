"""
Cloud override client

HTTP client for the shared storage API (api.py). Reads shared benefits edits,
plan identity edits and manual plans; writes are last-write-wins.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from constants import PLAN_EDIT_PREFIX
from portal_types import BenefitSet, PlanEdit, ManualPlanRecord
from resources import strip_bookkeeping

logger = logging.getLogger(__name__)


class StoreUnavailableError(Exception):
    """Raised when the shared store cannot be read or written."""
    pass


@dataclass
class CloudOverrides:
    """Shared edits as read from the API."""
    benefits: Dict[str, BenefitSet] = field(default_factory=dict)
    plan_edits: Dict[str, PlanEdit] = field(default_factory=dict)


class CloudOverrideClient:
    """Client for /api/benefits, /api/plan-edits and /api/manual-plans."""

    def __init__(self, base_url: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise StoreUnavailableError(f"{method} {path} failed: {e}") from e

        if response.status_code != 200:
            raise StoreUnavailableError(
                f"{method} {path} returned {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise StoreUnavailableError(f"{method} {path} returned invalid JSON") from e

        if not isinstance(data, dict) or not data.get('success'):
            error = data.get('error') if isinstance(data, dict) else None
            raise StoreUnavailableError(f"{method} {path} was not successful: {error or 'unknown error'}")

        return data

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(kind: str, key: str, record: Any, parser):
        """Parsed record, or None (logged) when a stored record is malformed."""
        if not isinstance(record, dict):
            logger.warning(f"Skipping malformed shared {kind} '{key}': expected an object")
            return None
        try:
            return parser(record)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed shared {kind} '{key}': {e!r}")
            return None

    def fetch_overrides(self) -> CloudOverrides:
        """
        Read shared benefits and plan identity edits.

        Plan identity edits are stored in the benefits collection under a
        PLAN_EDIT_ prefix and in the plan-edits collection; when both hold an
        edit for the same plan, the most recently updated one wins. Malformed
        records are skipped.

        Raises:
            StoreUnavailableError: If the benefits collection cannot be read
        """
        data = self._request("GET", "/api/benefits")
        overrides = CloudOverrides()
        edit_times: Dict[str, str] = {}

        benefits = data.get('benefits') or {}
        if not isinstance(benefits, dict):
            raise StoreUnavailableError("GET /api/benefits returned a malformed collection")

        for key, record in benefits.items():
            if isinstance(record, dict) and (key.startswith(PLAN_EDIT_PREFIX) or record.get('_isPlanEdit')):
                plan_id = key[len(PLAN_EDIT_PREFIX):] if key.startswith(PLAN_EDIT_PREFIX) else key
                edit = self._parse("plan edit", key, record,
                                   lambda r: PlanEdit.from_dict(strip_bookkeeping(r)))
                if edit is not None:
                    overrides.plan_edits[plan_id] = edit
                    edit_times[plan_id] = str(record.get('_updatedAt') or '')
            else:
                benefit_set = self._parse("benefits", key, record,
                                          lambda r: BenefitSet.from_dict(strip_bookkeeping(r)))
                if benefit_set is not None:
                    overrides.benefits[key] = benefit_set

        try:
            edits = self._request("GET", "/api/plan-edits").get('edits') or {}
        except StoreUnavailableError as e:
            logger.warning(f"Plan edits collection unavailable: {e}")
            edits = {}
        if not isinstance(edits, dict):
            logger.warning("Plan edits collection is malformed, ignoring it")
            edits = {}

        for plan_id, record in edits.items():
            edit = self._parse("plan edit", plan_id, record,
                               lambda r: PlanEdit.from_dict(strip_bookkeeping(r)))
            if edit is None:
                continue
            updated_at = str(record.get('_updatedAt') or '')
            if plan_id not in overrides.plan_edits or updated_at > edit_times.get(plan_id, ''):
                overrides.plan_edits[plan_id] = edit
                edit_times[plan_id] = updated_at

        logger.info(f"Loaded cloud overrides: {len(overrides.benefits)} benefits, "
                    f"{len(overrides.plan_edits)} plan edits")
        return overrides

    def fetch_manual_plans(self) -> Dict[str, List[ManualPlanRecord]]:
        """
        Read shared manual plans by provider key.

        Records that are not objects or have no id are skipped.

        Raises:
            StoreUnavailableError: If the collection cannot be read
        """
        data = self._request("GET", "/api/manual-plans")
        collection = data.get('plans') or {}
        if not isinstance(collection, dict):
            raise StoreUnavailableError("GET /api/manual-plans returned a malformed collection")

        plans = {}
        for provider_key, records in collection.items():
            if not isinstance(records, list):
                logger.warning(f"Skipping malformed manual plans for '{provider_key}'")
                continue
            parsed = []
            for record in records:
                if isinstance(record, dict) and not record.get('id'):
                    logger.warning(f"Skipping manual plan without id for '{provider_key}'")
                    continue
                plan = self._parse("manual plan", provider_key, record,
                                   lambda r: ManualPlanRecord.from_dict(r, provider_key))
                if plan is not None:
                    parsed.append(plan)
            plans[provider_key] = parsed
        return plans

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_benefits(self, plan_id: str, benefits: BenefitSet) -> None:
        self._request("POST", "/api/benefits", {"planKey": plan_id, "benefits": benefits.to_dict()})
        logger.info(f"Saved benefits for {plan_id} to cloud")

    def save_plan_edit(self, plan_id: str, edit: PlanEdit) -> None:
        payload = {
            "planKey": f"{PLAN_EDIT_PREFIX}{plan_id}",
            "benefits": {**edit.to_dict(), "_isPlanEdit": True},
        }
        self._request("POST", "/api/benefits", payload)
        logger.info(f"Saved plan edit for {plan_id} to cloud")

    def save_provider_plans(self, provider_key: str, records: List[ManualPlanRecord]) -> None:
        payload = {"providerKey": provider_key, "plans": [r.to_dict() for r in records]}
        self._request("POST", "/api/manual-plans", payload)

    def delete_manual_plan(self, provider_key: str, plan_id: str) -> None:
        self._request("DELETE", "/api/manual-plans", {"providerKey": provider_key, "planId": plan_id})
