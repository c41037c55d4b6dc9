"""
Executor: Social Campaign Setup

Schedules posts across social platforms through the social partner.
"""

from typing import Any, Dict

from workflow.executors.base import TaskExecutor, TaskContext
from workflow.executors.registry import register_executor
from workflow.models import TaskCategory
from workflow.workflows.definition import TaskTemplate

DEFAULT_PLATFORMS = ["facebook", "instagram", "linkedin", "twitter"]


@register_executor(TaskCategory.SOCIAL_CAMPAIGN_SETUP, "Social Campaign Setup")
class SocialCampaignExecutor(TaskExecutor):

    simulated_seconds = 4.0

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        platforms = context.get_input("platforms") or DEFAULT_PLATFORMS
        if not isinstance(platforms, list):
            raise self.fail(f"platforms must be a list, got {type(platforms).__name__}")

        return {
            "provider": template.executor_hint or "hootsuite",
            "platforms": list(platforms),
            "postsCreated": 5 * len(platforms),
            "scheduledPosts": 30,
            "estimatedReach": 12500 * len(platforms),
        }
