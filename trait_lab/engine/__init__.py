"""Constraint resolution engine: rules, sampling, quotas and forced pairings."""

from .propagation import propagate
from .quota import QuotaShortfall, QuotaState, eligible_for_quota
from .rules import admissible, is_admissible
from .sampler import WeightedSampler
from .selector import TraitSelector

__all__ = [
    "QuotaShortfall",
    "QuotaState",
    "TraitSelector",
    "WeightedSampler",
    "admissible",
    "eligible_for_quota",
    "is_admissible",
    "propagate",
]
