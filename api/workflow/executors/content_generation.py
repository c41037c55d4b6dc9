"""
Executor: Content Generation

Generates headlines and descriptions for the product (AI agent selected by
the task's executor_hint). Uses strategic advantages from a preceding
competitor analysis when the template depends on one.
"""

import logging
from typing import Any, Dict

from workflow.executors.base import TaskExecutor, TaskContext
from workflow.executors.registry import register_executor
from workflow.models import TaskCategory
from workflow.workflows.definition import TaskTemplate

logger = logging.getLogger(__name__)


@register_executor(TaskCategory.CONTENT_GENERATION, "AI Content Generation")
class ContentGenerationExecutor(TaskExecutor):
    """Simulated AI copywriting."""

    simulated_seconds = 2.0

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        product = context.get_input("productName", "Your Product")
        industry = context.get_input("industry", "Technology")

        angles = []
        for output in context.prior_outputs.values():
            if isinstance(output, dict):
                angles.extend(output.get("strategicAdvantages", []))

        result = {
            "agent": template.executor_hint or "default",
            "content": f"AI-generated content for {product}",
            "headlines": [
                f"Revolutionary {product} - Transform Your Business",
                f"The Future of {industry} is Here",
                f"{product}: Your Competitive Advantage",
            ],
            "descriptions": [
                f"Discover how {product} can revolutionize your {industry} operations.",
                f"Join thousands of satisfied customers who have transformed their business with {product}.",
            ],
        }
        if angles:
            result["positioningAngles"] = angles
        return result
