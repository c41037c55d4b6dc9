"""
Viral Content Workflow

Trend analysis followed by ideation, multi-format content and a posting plan.
"""

from workflow.models import TaskCategory
from workflow.workflows.definition import WorkflowDefinition, TaskTemplate


ViralContentWorkflow = WorkflowDefinition(
    id="viral-content",
    name="Viral Content Engine",
    description="AI-powered viral content creation with trend analysis and optimization",
    estimated_duration_minutes=90,
    required_inputs=["productName"],
    category="content",
    difficulty="beginner",
    tags=["viral", "content", "social", "trends"],
    potential_revenue=(5000, 25000),
    tasks=[
        TaskTemplate(
            name="Viral Trend Analysis",
            category=TaskCategory.COMPETITOR_ANALYSIS,
            description="Trending topics and viral patterns",
            executor_hint="gemini",
            deliverables=["Trend Report", "Viral Patterns"],
        ),
        TaskTemplate(
            name="Viral Content Ideation",
            category=TaskCategory.CONTENT_GENERATION,
            description="Content ideas optimized for virality",
            executor_hint="gpt4",
            depends_on=["Viral Trend Analysis"],
            deliverables=["Content Ideas", "Hook Variations"],
        ),
        TaskTemplate(
            name="Multi-Format Content Creation",
            category=TaskCategory.CONTENT_GENERATION,
            description="Scripts and posts for each major platform",
            executor_hint="gpt4",
            depends_on=["Viral Content Ideation"],
            deliverables=["Short-Form Scripts", "Threads"],
        ),
        TaskTemplate(
            name="Viral Optimization",
            category=TaskCategory.SOCIAL_CAMPAIGN_SETUP,
            description="Posting schedule and engagement tactics",
            executor_hint="claude",
            depends_on=["Multi-Format Content Creation"],
            deliverables=["Posting Schedule", "Hashtag Strategy"],
        ),
    ],
)
