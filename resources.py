"""
Shared key-value resources

Server-side read/merge/write logic for the three shared collections:

- benefits: one aggregate blob {plan_id: BenefitSet}; plan identity edits are
  stored in the same blob under PLAN_EDIT_{plan_id} with _isPlanEdit set
- manual-plans: one aggregate blob {provider_key: [ManualPlanRecord]}
- plan-edits: one blob per plan id

Every write stamps _updatedAt (ISO-8601 UTC). Writes are last-write-wins.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from constants import BENEFITS_KEY, MANUAL_PLANS_KEY, BOOKKEEPING_FIELDS
from blob_store import BlobStore

logger = logging.getLogger(__name__)


class MissingFieldError(ValueError):
    """Raised when a write request lacks a required field."""
    pass


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def strip_bookkeeping(record: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy of a stored record without bookkeeping keys."""
    return {k: v for k, v in (record or {}).items() if k not in BOOKKEEPING_FIELDS}


def require(payload: Dict[str, Any], *names: str) -> None:
    missing = [name for name in names if not payload.get(name)]
    if missing:
        raise MissingFieldError(f"Missing required field(s): {', '.join(missing)}")


class BenefitsResource:
    """Aggregate benefits blob."""

    def __init__(self, store: BlobStore, key: str = BENEFITS_KEY):
        self.store = store
        self.key = key

    def get_all(self) -> Dict[str, Any]:
        return self.store.get(self.key) or {}

    def save(self, payload: Dict[str, Any]) -> str:
        """
        Store benefits for one plan key.

        Args:
            payload: {'planKey': str, 'benefits': dict}

        Returns:
            The plan key written
        """
        require(payload, 'planKey', 'benefits')
        plan_key = payload['planKey']
        all_benefits = self.get_all()
        all_benefits[plan_key] = {**payload['benefits'], '_updatedAt': utc_timestamp()}
        self.store.set(self.key, all_benefits)
        logger.info(f"Saved benefits for {plan_key}")
        return plan_key

    def delete(self, payload: Dict[str, Any]) -> str:
        require(payload, 'planKey')
        plan_key = payload['planKey']
        all_benefits = self.get_all()
        if all_benefits.pop(plan_key, None) is not None:
            self.store.set(self.key, all_benefits)
            logger.info(f"Deleted benefits for {plan_key}")
        return plan_key


class ManualPlansResource:
    """Aggregate manual plans blob, keyed by provider."""

    def __init__(self, store: BlobStore, key: str = MANUAL_PLANS_KEY):
        self.store = store
        self.key = key

    def get_all(self) -> Dict[str, List[Dict[str, Any]]]:
        data = self.store.get(self.key) or {}
        return {k: v for k, v in data.items() if k not in BOOKKEEPING_FIELDS}

    def save(self, payload: Dict[str, Any]) -> str:
        """
        Replace one provider's plans or the whole collection.

        Args:
            payload: {'providerKey': str, 'plans': [...]} for one provider,
                     or {'plans': {provider_key: [...]}} for all providers

        Returns:
            The provider key written, or '*' when the whole collection was replaced
        """
        if 'plans' not in payload or payload['plans'] is None:
            raise MissingFieldError("Missing required field(s): plans")

        provider_key = payload.get('providerKey')
        if provider_key:
            if not isinstance(payload['plans'], list):
                raise MissingFieldError("plans must be a list when providerKey is given")
            all_plans = self.get_all()
            all_plans[provider_key] = payload['plans']
        else:
            if not isinstance(payload['plans'], dict):
                raise MissingFieldError("plans must map provider keys to plan lists")
            all_plans = dict(payload['plans'])
            provider_key = '*'

        all_plans['_updatedAt'] = utc_timestamp()
        self.store.set(self.key, all_plans)
        logger.info(f"Saved manual plans ({provider_key})")
        return provider_key

    def delete(self, payload: Dict[str, Any]) -> str:
        require(payload, 'providerKey', 'planId')
        provider_key, plan_id = payload['providerKey'], payload['planId']
        all_plans = self.get_all()
        if provider_key in all_plans:
            all_plans[provider_key] = [p for p in all_plans[provider_key] if p.get('id') != plan_id]
            all_plans['_updatedAt'] = utc_timestamp()
            self.store.set(self.key, all_plans)
            logger.info(f"Deleted manual plan {plan_id} from {provider_key}")
        return plan_id


class PlanEditsResource:
    """One blob per plan id."""

    def __init__(self, store: BlobStore):
        self.store = store

    def get_all(self) -> Dict[str, Any]:
        return {key: value for key, value in self.store.list() if value}

    def save(self, payload: Dict[str, Any]) -> str:
        require(payload, 'planId', 'edits')
        plan_id = payload['planId']
        self.store.set(plan_id, {**payload['edits'], '_updatedAt': utc_timestamp()})
        logger.info(f"Saved plan edit for {plan_id}")
        return plan_id

    def delete(self, payload: Dict[str, Any]) -> str:
        require(payload, 'planId')
        plan_id = payload['planId']
        self.store.delete(plan_id)
        logger.info(f"Deleted plan edit for {plan_id}")
        return plan_id
