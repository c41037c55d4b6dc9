"""
Executor: SEO Optimization

Keyword targeting and on-page optimization for the published landing page.
"""

from typing import Any, Dict

from workflow.executors.base import TaskExecutor, TaskContext
from workflow.executors.registry import register_executor
from workflow.models import TaskCategory
from workflow.workflows.definition import TaskTemplate


@register_executor(TaskCategory.SEO_OPTIMIZATION, "SEO Optimization")
class SEOOptimizationExecutor(TaskExecutor):

    simulated_seconds = 4.5

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        page_url = None
        for output in context.prior_outputs.values():
            if isinstance(output, dict) and output.get("url"):
                page_url = output["url"]
                break

        return {
            "agent": template.executor_hint or "default",
            "pageUrl": page_url,
            "keywordsTargeted": 25,
            "metaTagsOptimized": True,
            "expectedRankingImprovement": "+35%",
        }
