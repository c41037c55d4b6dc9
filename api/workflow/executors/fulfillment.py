"""
Executor: Generic Fulfillment

Catch-all for partner work that has no dedicated category (registration
systems, loyalty programs, pricing changes). The partner is named by the
task's executor_hint.
"""

from typing import Any, Dict

from workflow.executors.base import TaskExecutor, TaskContext, slugify
from workflow.executors.registry import register_executor
from workflow.models import TaskCategory
from workflow.workflows.definition import TaskTemplate


@register_executor(TaskCategory.GENERIC_FULFILLMENT, "Generic Fulfillment")
class GenericFulfillmentExecutor(TaskExecutor):

    simulated_seconds = 3.0

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        partner = template.executor_hint or "internal"
        return {
            "partner": partner,
            "task": template.name,
            "referenceId": context.short_id(slugify(partner) or "ref"),
            "deliverables": list(template.deliverables),
            "status": "fulfilled",
        }
