"""
Revenue Attribution

Estimates the revenue a completed execution will drive and splits it across
marketing channels. The heuristic estimator is a placeholder for a real
attribution model; swap it by passing another AttributionEstimator to the
engine.
"""

import logging
import random
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from workflow.models import (
    Attribution,
    AttributionChannel,
    TaskCategory,
    TaskStatus,
    WorkflowExecution,
)
from workflow.workflows.definition import WorkflowDefinition

logger = logging.getLogger(__name__)

DEFAULT_BASE_REVENUE = 25000

# Baseline channel mix (percent)
BASE_CHANNEL_WEIGHTS: Dict[str, float] = {
    "Organic Search": 35,
    "Paid Social": 25,
    "Email Marketing": 20,
    "Direct Traffic": 12,
    "Referrals": 8,
}

# Extra weight a channel gets when a task of the category completed
CATEGORY_BOOSTS: Dict[str, Dict[str, float]] = {
    TaskCategory.SEO_OPTIMIZATION.value: {"Organic Search": 5},
    TaskCategory.CONTENT_GENERATION.value: {"Organic Search": 2},
    TaskCategory.SOCIAL_CAMPAIGN_SETUP.value: {"Paid Social": 4},
    TaskCategory.AD_CAMPAIGN_SETUP.value: {"Paid Social": 4},
    TaskCategory.EMAIL_SEQUENCE_SETUP.value: {"Email Marketing": 5},
    TaskCategory.LANDING_PAGE_CREATION.value: {"Direct Traffic": 3},
    TaskCategory.GENERIC_FULFILLMENT.value: {"Referrals": 2},
}


class AttributionEstimator(ABC):
    """Produces an Attribution for an execution about to complete"""

    @abstractmethod
    def estimate(self, definition: WorkflowDefinition, execution: WorkflowExecution) -> Attribution:
        pass


def normalize_percentages(weights: Dict[str, float]) -> Dict[str, int]:
    """
    Scale weights to integers summing to exactly 100 (largest remainder).

    Ties on the remainder go to the earlier key.
    """
    total = sum(weights.values())
    if total <= 0:
        raise ValueError("Channel weights must sum to a positive value")

    exact = {name: weight * 100 / total for name, weight in weights.items()}
    floored = {name: int(value) for name, value in exact.items()}
    shortfall = 100 - sum(floored.values())

    order: List[str] = sorted(
        exact, key=lambda name: exact[name] - floored[name], reverse=True
    )
    for name in order[:shortfall]:
        floored[name] += 1
    return floored


class HeuristicAttributionEstimator(AttributionEstimator):
    """
    Midpoint-of-range estimate with a random multiplier.

    Args:
        rng: random.Random instance (seed it for reproducible estimates)
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def base_revenue(self, definition: WorkflowDefinition) -> float:
        if definition.potential_revenue:
            low, high = definition.potential_revenue
            return (low + high) / 2
        return DEFAULT_BASE_REVENUE

    def channel_weights(self, execution: WorkflowExecution) -> Dict[str, float]:
        weights = dict(BASE_CHANNEL_WEIGHTS)
        for task in execution.tasks:
            if task.status != TaskStatus.COMPLETED:
                continue
            for channel, boost in CATEGORY_BOOSTS.get(task.category, {}).items():
                weights[channel] += boost
        return weights

    def estimate(self, definition: WorkflowDefinition, execution: WorkflowExecution) -> Attribution:
        multiplier = self.rng.uniform(0.7, 1.3)
        estimated_revenue = round(self.base_revenue(definition) * multiplier)
        confidence = self.rng.randint(85, 99)

        contributions = normalize_percentages(self.channel_weights(execution))
        channels = [
            AttributionChannel(
                name=name,
                contribution=contribution,
                revenue=round(estimated_revenue * contribution / 100),
            )
            for name, contribution in contributions.items()
        ]

        logger.info(
            f"Attribution for execution {execution.id}: ${estimated_revenue} "
            f"at {confidence}% confidence"
        )
        return Attribution(
            estimated_revenue=estimated_revenue,
            confidence=confidence,
            channels=channels,
        )
