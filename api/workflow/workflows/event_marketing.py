"""
Event Marketing Workflow

Event promotion: landing page, registration through a fulfillment partner,
social promotion and reminder emails.
"""

from workflow.models import TaskCategory
from workflow.workflows.definition import WorkflowDefinition, TaskTemplate


EventMarketingWorkflow = WorkflowDefinition(
    id="event-marketing",
    name="Event Marketing Campaign",
    description="Complete event promotion and management",
    estimated_duration_minutes=35,
    required_inputs=["eventName"],
    category="growth",
    difficulty="beginner",
    tags=["events", "registration", "promotion"],
    tasks=[
        TaskTemplate(
            name="Event Landing Page",
            category=TaskCategory.LANDING_PAGE_CREATION,
            executor_hint="webflow",
            deliverables=["Event Page"],
        ),
        TaskTemplate(
            name="Registration System",
            category=TaskCategory.GENERIC_FULFILLMENT,
            executor_hint="eventbrite",
            depends_on=["Event Landing Page"],
            deliverables=["Registration Form", "Ticketing"],
        ),
        TaskTemplate(
            name="Promotional Campaign",
            category=TaskCategory.SOCIAL_CAMPAIGN_SETUP,
            executor_hint="hootsuite",
            depends_on=["Event Landing Page"],
            deliverables=["Promotional Posts"],
        ),
        TaskTemplate(
            name="Email Reminders",
            category=TaskCategory.EMAIL_SEQUENCE_SETUP,
            executor_hint="mailchimp",
            depends_on=["Registration System"],
            deliverables=["Reminder Sequence"],
        ),
    ],
)
