"""
Customer Retention Workflow

Churn analysis, a retention framework, a loyalty program and win-back emails.
"""

from workflow.models import TaskCategory
from workflow.workflows.definition import WorkflowDefinition, TaskTemplate


CustomerRetentionWorkflow = WorkflowDefinition(
    id="customer-retention",
    name="Customer Retention Mastery",
    description="Comprehensive retention strategy with predictive churn prevention",
    estimated_duration_minutes=135,
    required_inputs=["productName"],
    category="growth",
    difficulty="intermediate",
    tags=["retention", "churn", "loyalty", "automation"],
    potential_revenue=(20000, 60000),
    tasks=[
        TaskTemplate(
            name="Predictive Churn Analysis",
            category=TaskCategory.ANALYTICS_SETUP,
            description="Churn prediction and risk scoring",
            executor_hint="gemini",
            deliverables=["Churn Model", "Risk Scores"],
        ),
        TaskTemplate(
            name="Retention Strategy Framework",
            category=TaskCategory.CONTENT_GENERATION,
            description="Intervention strategies and success metrics",
            executor_hint="claude",
            depends_on=["Predictive Churn Analysis"],
            deliverables=["Retention Framework"],
        ),
        TaskTemplate(
            name="Loyalty Program Design",
            category=TaskCategory.GENERIC_FULFILLMENT,
            description="Rewards program set up with a loyalty partner",
            executor_hint="smile_io",
            depends_on=["Retention Strategy Framework"],
            deliverables=["Loyalty Structure", "Reward Mechanisms"],
        ),
        TaskTemplate(
            name="Win-Back Campaigns",
            category=TaskCategory.EMAIL_SEQUENCE_SETUP,
            description="Automated sequences to re-engage churned customers",
            executor_hint="mailchimp",
            depends_on=["Retention Strategy Framework"],
            deliverables=["Win-Back Sequences", "Incentive Offers"],
        ),
    ],
)
