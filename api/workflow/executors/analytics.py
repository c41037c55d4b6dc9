"""
Executor: Analytics Setup

Installs conversion tracking and dashboards with the analytics partner.
"""

from typing import Any, Dict

from workflow.executors.base import TaskExecutor, TaskContext
from workflow.executors.registry import register_executor
from workflow.models import TaskCategory
from workflow.workflows.definition import TaskTemplate


@register_executor(TaskCategory.ANALYTICS_SETUP, "Analytics Setup")
class AnalyticsSetupExecutor(TaskExecutor):

    simulated_seconds = 2.0

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        return {
            "provider": template.executor_hint or "google_analytics",
            "trackingId": context.short_id("ga"),
            "goalsConfigured": 5,
            "dashboardsCreated": 3,
            "conversionTracking": True,
        }
