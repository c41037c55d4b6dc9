"""
Executor: Competitor Analysis

Researches competitors (research agent selected by executor_hint) and
returns weaknesses and strategic advantages for downstream content tasks.
"""

from typing import Any, Dict

from workflow.executors.base import TaskExecutor, TaskContext
from workflow.executors.registry import register_executor
from workflow.models import TaskCategory
from workflow.workflows.definition import TaskTemplate


@register_executor(TaskCategory.COMPETITOR_ANALYSIS, "Competitor Analysis")
class CompetitorAnalysisExecutor(TaskExecutor):

    simulated_seconds = 6.0

    async def run(self, template: TaskTemplate, context: TaskContext) -> Dict[str, Any]:
        competitors = context.get_input("competitors") or []
        if isinstance(competitors, str):
            competitors = [c.strip() for c in competitors.split(",") if c.strip()]

        industry = context.get_input("industry", "Technology")
        audience = context.get_input("targetAudience", "target demographic")

        return {
            "agent": template.executor_hint or "default",
            "competitors": competitors,
            "competitorsAnalyzed": len(competitors) or 5,
            "weaknessesIdentified": 12,
            "opportunitiesFound": 8,
            "insights": [
                f"{industry} market shows 23% growth potential",
                f"Key opportunity in {audience}",
            ],
            "strategicAdvantages": [
                "Price positioning opportunity",
                "Feature gap in market",
                "Underserved customer segment",
            ],
        }
