"""
Executor: Email Sequence Setup

Creates an automated email sequence with the email partner.
"""

from typing import Any, Dict

from workflow.executors.base import TaskExecutor, TaskContext
from workflow.executors.registry import register_executor
from workflow.models import TaskCategory
from workflow.workflows.definition import TaskTemplate


@register_executor(TaskCategory.EMAIL_SEQUENCE_SETUP, "Email Sequence Setup")
class EmailSequenceExecutor(TaskExecutor):

    simulated_seconds = 3.0

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        return {
            "sequenceId": context.short_id("seq"),
            "provider": template.executor_hint or "mailchimp",
            "emailCount": 7,
            "automationActive": True,
            "expectedConversionRate": 0.032,
        }
