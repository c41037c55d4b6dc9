"""
Competitor Analysis Workflow

Analyze competitors and launch a counter-campaign against them.

Flow:
1. Deep Competitor Analysis → weaknesses and opportunities
2. Weakness Exploitation Strategy → positioning content from the analysis
3. Counter-Campaign Creation → paid campaign built on the strategy
"""

from workflow.models import TaskCategory
from workflow.workflows.definition import WorkflowDefinition, TaskTemplate


CompetitorAnalysisWorkflow = WorkflowDefinition(
    id="competitor-analysis",
    name="Competitor Conquest Campaign",
    description="Analyze competitors and create counter-strategies",
    estimated_duration_minutes=30,
    required_inputs=["productName"],
    category="competitive",
    difficulty="advanced",
    tags=["competitive", "conquest", "targeting", "intelligence"],
    potential_revenue=(25000, 75000),
    tasks=[
        TaskTemplate(
            name="Deep Competitor Analysis",
            category=TaskCategory.COMPETITOR_ANALYSIS,
            description="Competitor strategies, weaknesses and pricing",
            executor_hint="perplexity",
            deliverables=["Competitor SWOT", "Weakness Analysis"],
        ),
        TaskTemplate(
            name="Weakness Exploitation Strategy",
            category=TaskCategory.CONTENT_GENERATION,
            description="Differentiation strategy and comparison messaging",
            executor_hint="claude",
            depends_on=["Deep Competitor Analysis"],
            deliverables=["Differentiation Strategy", "Battle Cards"],
        ),
        TaskTemplate(
            name="Counter-Campaign Creation",
            category=TaskCategory.AD_CAMPAIGN_SETUP,
            description="Competitor keyword and retargeting campaigns",
            executor_hint="google_ads",
            depends_on=["Deep Competitor Analysis", "Weakness Exploitation Strategy"],
            deliverables=["Competitor Keyword Campaigns", "Retargeting Setup"],
        ),
    ],
)
