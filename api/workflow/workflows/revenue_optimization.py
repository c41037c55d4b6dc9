"""
Revenue Optimization Workflow

Revenue audit, pricing and funnel optimization, then upsell automation.
"""

from workflow.models import TaskCategory
from workflow.workflows.definition import WorkflowDefinition, TaskTemplate


RevenueOptimizationWorkflow = WorkflowDefinition(
    id="revenue-optimization",
    name="Revenue Optimization Engine",
    description="AI-driven revenue optimization across all touchpoints and funnels",
    estimated_duration_minutes=165,
    required_inputs=["productName"],
    category="analytics",
    difficulty="advanced",
    tags=["revenue", "optimization", "conversion", "analytics"],
    potential_revenue=(30000, 100000),
    tasks=[
        TaskTemplate(
            name="Comprehensive Revenue Audit",
            category=TaskCategory.ANALYTICS_SETUP,
            description="Revenue streams, bottlenecks and opportunities",
            executor_hint="gemini",
            deliverables=["Revenue Analysis", "Bottleneck Identification"],
        ),
        TaskTemplate(
            name="AI Pricing Optimization",
            category=TaskCategory.CONTENT_GENERATION,
            description="Pricing strategy with test framework",
            executor_hint="claude",
            depends_on=["Comprehensive Revenue Audit"],
            deliverables=["Pricing Strategy", "A/B Test Framework"],
        ),
        TaskTemplate(
            name="Conversion Funnel Optimization",
            category=TaskCategory.SEO_OPTIMIZATION,
            description="Funnel page optimization roadmap",
            executor_hint="claude",
            depends_on=["Comprehensive Revenue Audit"],
            deliverables=["Funnel Analysis", "Optimization Roadmap"],
        ),
        TaskTemplate(
            name="Upsell & Cross-sell Automation",
            category=TaskCategory.EMAIL_SEQUENCE_SETUP,
            description="Upsell and cross-sell sequences",
            executor_hint="gpt4",
            depends_on=["AI Pricing Optimization"],
            deliverables=["Upsell Sequences", "Product Recommendations"],
        ),
    ],
)
