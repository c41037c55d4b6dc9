"""
Executor: Ad Campaign Setup

Creates paid campaigns with the ad platform. Budget comes from the
adBudget (or budget) input and must be positive.
"""

from typing import Any, Dict

from workflow.executors.base import TaskExecutor, TaskContext
from workflow.executors.registry import register_executor
from workflow.models import TaskCategory
from workflow.workflows.definition import TaskTemplate

DEFAULT_AD_BUDGET = 1000
EXPECTED_CTR = 0.025
CONVERSION_RATE = 0.032
AVERAGE_CPC = 1.6


@register_executor(TaskCategory.AD_CAMPAIGN_SETUP, "Ad Campaign Setup")
class AdCampaignExecutor(TaskExecutor):

    simulated_seconds = 3.5

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        raw_budget = context.get_input("adBudget", context.get_input("budget", DEFAULT_AD_BUDGET))
        try:
            budget = float(raw_budget)
        except (TypeError, ValueError):
            raise self.fail(f"Invalid ad budget {raw_budget!r}")
        if budget <= 0:
            raise self.fail(f"Ad budget must be positive, got {budget}")

        clicks = budget / AVERAGE_CPC

        return {
            "campaignId": context.short_id("camp"),
            "platform": template.executor_hint or "google_ads",
            "platforms": ["google", "facebook"],
            "budget": budget,
            "targetAudience": context.get_input("targetAudience"),
            "expectedCTR": EXPECTED_CTR,
            "estimatedConversions": round(clicks * CONVERSION_RATE),
        }
