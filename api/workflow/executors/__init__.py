"""
Task Executors

Importing this package registers one executor per task category.
"""

from workflow.executors.base import TaskExecutor, TaskContext
from workflow.executors.registry import (
    register_executor,
    get_executor_class,
    list_registered_categories,
    build_executors,
    validate_categories,
)

# Import executor modules to trigger registration
from workflow.executors import (  # noqa: F401,E402
    content_generation,
    landing_page,
    email_sequence,
    social_campaign,
    competitor_analysis,
    ad_campaign,
    seo,
    analytics,
    fulfillment,
)

__all__ = [
    "TaskExecutor",
    "TaskContext",
    "register_executor",
    "get_executor_class",
    "list_registered_categories",
    "build_executors",
    "validate_categories",
]
