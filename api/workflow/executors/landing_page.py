"""
Executor: Landing Page Creation

Publishes a conversion-optimized landing page through a site-builder
partner. The page slug comes from the product or event name.
"""

from typing import Any, Dict

from workflow.executors.base import TaskExecutor, TaskContext, slugify
from workflow.executors.registry import register_executor
from workflow.models import TaskCategory
from workflow.workflows.definition import TaskTemplate

LANDING_BASE_URL = "https://landing.marketingos.com"


@register_executor(TaskCategory.LANDING_PAGE_CREATION, "Landing Page Creation")
class LandingPageExecutor(TaskExecutor):

    simulated_seconds = 5.0

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        title = context.get_input("productName") or context.get_input("eventName")
        if not title:
            raise self.fail("Landing page needs a productName or eventName input")

        slug = slugify(str(title))
        if not slug:
            raise self.fail(f"Cannot build a page slug from '{title}'")

        headline = None
        for output in context.prior_outputs.values():
            if isinstance(output, dict) and output.get("headlines"):
                headline = output["headlines"][0]
                break

        return {
            "url": f"{LANDING_BASE_URL}/{slug}",
            "status": "created",
            "builder": template.executor_hint or "webflow",
            "headline": headline or str(title),
            "conversionOptimized": True,
        }
