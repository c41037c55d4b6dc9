"""
Product Launch Workflow

Full go-to-market run for a new product: research, content, landing page,
email, social, paid ads, SEO and analytics.

Flow:
1. Market Research → competitor landscape for the product's industry
2. Content Generation → headlines and descriptions from the research
3. Landing Page / Email / Social / Ads → channel setup from the content
4. SEO Optimization + Analytics Setup → built on the landing page
"""

from workflow.models import TaskCategory
from workflow.workflows.definition import WorkflowDefinition, TaskTemplate


ProductLaunchWorkflow = WorkflowDefinition(
    id="product-launch",
    name="Product Launch Campaign",
    description=(
        "Complete product launch with landing pages, email sequences, "
        "social campaigns, and ads"
    ),
    estimated_duration_minutes=45,
    required_inputs=["productName"],
    category="launch",
    difficulty="intermediate",
    tags=["launch", "strategy", "multi-channel", "automation"],
    potential_revenue=(15000, 50000),
    tasks=[
        TaskTemplate(
            name="Market Research",
            category=TaskCategory.COMPETITOR_ANALYSIS,
            description="Market analysis and competitor intelligence",
            executor_hint="perplexity",
            deliverables=["Market Analysis Report", "Competitor Landscape"],
        ),
        TaskTemplate(
            name="Content Generation",
            category=TaskCategory.CONTENT_GENERATION,
            description="Launch messaging, headlines and descriptions",
            executor_hint="gpt4",
            depends_on=["Market Research"],
            deliverables=["Headlines", "Product Descriptions"],
        ),
        TaskTemplate(
            name="Landing Page Creation",
            category=TaskCategory.LANDING_PAGE_CREATION,
            description="Conversion-optimized landing page",
            executor_hint="webflow",
            depends_on=["Content Generation"],
            deliverables=["Landing Page"],
        ),
        TaskTemplate(
            name="Email Sequence Setup",
            category=TaskCategory.EMAIL_SEQUENCE_SETUP,
            description="Automated launch email sequence",
            executor_hint="mailchimp",
            depends_on=["Content Generation"],
            deliverables=["Welcome Series", "Conversion Campaign"],
        ),
        TaskTemplate(
            name="Social Media Campaign",
            category=TaskCategory.SOCIAL_CAMPAIGN_SETUP,
            description="Scheduled posts across social platforms",
            executor_hint="hootsuite",
            depends_on=["Content Generation"],
            deliverables=["Scheduled Posts"],
        ),
        TaskTemplate(
            name="Ad Campaign Setup",
            category=TaskCategory.AD_CAMPAIGN_SETUP,
            description="Paid search and social campaigns",
            executor_hint="google_ads",
            depends_on=["Market Research", "Content Generation"],
            deliverables=["Search Campaign", "Social Ads"],
        ),
        TaskTemplate(
            name="SEO Optimization",
            category=TaskCategory.SEO_OPTIMIZATION,
            description="Keyword targeting and on-page optimization",
            executor_hint="claude",
            depends_on=["Landing Page Creation"],
            deliverables=["Keyword Plan", "Meta Tags"],
        ),
        TaskTemplate(
            name="Analytics Setup",
            category=TaskCategory.ANALYTICS_SETUP,
            description="Conversion tracking and dashboards",
            executor_hint="google_analytics",
            depends_on=["Landing Page Creation"],
            deliverables=["Analytics Dashboard", "Conversion Goals"],
        ),
    ],
)
