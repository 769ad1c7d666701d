"""
Benefit resolution

Picks the benefit document shown for a plan. Lookup order, first hit wins:

1. local (this machine) benefits edit for the plan id
2. shared (cloud) benefits edit for the plan id
3. curated template for "{provider}_{plan_name}" (or the plan's benefits_key)
4. network family template (MEDNET / NEXTCARE / NAS)
5. curated template whose trailing name token equals the plan's trailing token
6. global default template
"""

import logging
from typing import Dict, Optional

from constants import NETWORK_FAMILIES
from portal_types import BenefitSet
from rate_table import PlanMetadata, classify_network_family

logger = logging.getLogger(__name__)


def _trailing_token(name: str) -> str:
    return name.rsplit('_', 1)[-1]


class BenefitResolver:
    """Resolves a complete BenefitSet for a plan from templates and edits."""

    def __init__(self, plan_templates: Dict[str, BenefitSet],
                 family_templates: Dict[str, BenefitSet],
                 default_template: BenefitSet):
        self.plan_templates = plan_templates
        self.family_templates = family_templates
        self.default_template = default_template

    @classmethod
    def from_templates(cls, templates) -> "BenefitResolver":
        """Build from a benefit_templates.BenefitTemplates instance."""
        return cls(templates.plans, templates.families, templates.default)

    def complete(self, data) -> BenefitSet:
        """Fill any missing field of a stored record from the default template."""
        return BenefitSet.from_dict(data, defaults=self.default_template)

    def family_template(self, provider: str, plan_name: str,
                        metadata: Optional[PlanMetadata] = None) -> Optional[BenefitSet]:
        family = metadata.network_family if metadata else None
        if family is None:
            family = classify_network_family(provider, plan_name)
        if family in NETWORK_FAMILIES and family in self.family_templates:
            return self.family_templates[family]
        return None

    def fuzzy_template(self, plan_name: str) -> Optional[BenefitSet]:
        token = _trailing_token(plan_name)
        if not token:
            return None
        for key, template in self.plan_templates.items():
            if _trailing_token(key) == token:
                logger.debug(f"Benefits for '{plan_name}' matched template '{key}' by trailing token")
                return template
        return None

    def resolve(self, provider: str, plan_name: str, plan_id: Optional[str] = None,
                local_overrides: Optional[Dict[str, BenefitSet]] = None,
                cloud_overrides: Optional[Dict[str, BenefitSet]] = None,
                metadata: Optional[PlanMetadata] = None) -> BenefitSet:
        """
        Resolve the benefits of a plan.

        Args:
            provider: Provider key
            plan_name: Plan key within the provider
            plan_id: Plan identity used for edit lookups (default: "{provider}_{plan_name}")
            local_overrides: Benefits edits saved on this machine, by plan id
            cloud_overrides: Shared benefits edits, by plan id
            metadata: Plan tags from the rate table

        Returns:
            Independent, complete BenefitSet
        """
        template_key = f"{provider}_{plan_name}"
        plan_id = plan_id or template_key
        local_overrides = local_overrides or {}
        cloud_overrides = cloud_overrides or {}

        if plan_id in local_overrides:
            return self.complete(local_overrides[plan_id])
        if plan_id in cloud_overrides:
            return self.complete(cloud_overrides[plan_id])

        if metadata and metadata.benefits_key in self.plan_templates:
            return self.plan_templates[metadata.benefits_key].copy()
        if template_key in self.plan_templates:
            return self.plan_templates[template_key].copy()

        family = self.family_template(provider, plan_name, metadata)
        if family is not None:
            return family.copy()

        fuzzy = self.fuzzy_template(plan_name)
        if fuzzy is not None:
            return fuzzy.copy()

        return self.default_template.copy()
