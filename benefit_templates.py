"""
Benefit templates

Loads the static benefit documents: the global default, one template per
network family (MEDNET, NEXTCARE, NAS) and curated per-plan templates keyed
"{provider}_{plan_name}". Per-plan and family templates are completed from
the default so every template is a full BenefitSet.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

from constants import PLAN_BENEFITS_PATH, NETWORK_FAMILIES
from portal_types import BenefitSet

logger = logging.getLogger(__name__)


@dataclass
class BenefitTemplates:
    default: BenefitSet = field(default_factory=BenefitSet)
    families: Dict[str, BenefitSet] = field(default_factory=dict)
    plans: Dict[str, BenefitSet] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict) -> "BenefitTemplates":
        default = BenefitSet.from_dict(data.get('default'))
        families = {
            name: BenefitSet.from_dict(raw, defaults=default)
            for name, raw in (data.get('families') or {}).items()
        }
        plans = {
            key: BenefitSet.from_dict(raw, defaults=default)
            for key, raw in (data.get('plans') or {}).items()
        }
        return cls(default=default, families=families, plans=plans)

    @classmethod
    def from_json(cls, path: Union[str, Path, None] = None) -> "BenefitTemplates":
        path = Path(path) if path else PLAN_BENEFITS_PATH
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        templates = cls.from_dict(data)
        logger.info(f"Loaded benefit templates from {path}: {len(templates.plans)} plans, "
                    f"{len(templates.families)} network families")
        return templates

    def for_network(self, network: Optional[str]) -> BenefitSet:
        """
        Template for a manually entered plan, picked by network name prefix.

        Args:
            network: Network label chosen for the manual plan (e.g. 'MEDNET Gold')

        Returns:
            Copy of the family template, or of the default template
        """
        if network:
            upper = network.upper()
            for family in NETWORK_FAMILIES:
                if upper.startswith(family) and family in self.families:
                    return self.families[family].copy()
        return self.default.copy()
