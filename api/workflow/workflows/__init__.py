"""
Workflow Catalog

Central registry of all workflow definitions.
Each workflow composes task templates into a complete marketing flow.
Definitions register at import time; the catalog is read-only afterwards.

Usage:
    from workflow.workflows import get_workflow, list_workflows

    workflow = get_workflow("product-launch")
    tasks = workflow.tasks
"""

from typing import Dict, Optional, List
from workflow.errors import InvalidWorkflowType
from workflow.workflows.definition import WorkflowDefinition

# ============================================================================
# Workflow Registry
# ============================================================================

# Populated as workflow modules are imported
_WORKFLOWS: Dict[str, WorkflowDefinition] = {}


def register_workflow(workflow: WorkflowDefinition) -> None:
    """
    Register a workflow definition.

    Raises:
        ValueError: If the definition is internally inconsistent
    """
    errors = workflow.validate_definition()
    if errors:
        raise ValueError(f"Invalid workflow '{workflow.id}': {errors}")
    _WORKFLOWS[workflow.id] = workflow


def get_workflow(workflow_id: str) -> WorkflowDefinition:
    """
    Get a workflow definition by id.

    Raises:
        InvalidWorkflowType: If workflow id is not registered
    """
    if workflow_id not in _WORKFLOWS:
        raise InvalidWorkflowType(workflow_id, list_workflows())
    return _WORKFLOWS[workflow_id]


def get_workflow_optional(workflow_id: str) -> Optional[WorkflowDefinition]:
    """Get a workflow or None."""
    return _WORKFLOWS.get(workflow_id)


def list_workflows() -> List[str]:
    """List all registered workflow ids."""
    return sorted(_WORKFLOWS.keys())


def get_all_workflows() -> Dict[str, WorkflowDefinition]:
    """Get the full registry."""
    return dict(_WORKFLOWS)


# ============================================================================
# Register workflow definitions
# ============================================================================

from workflow.workflows.product_launch import ProductLaunchWorkflow  # noqa: E402
register_workflow(ProductLaunchWorkflow)

from workflow.workflows.competitor_analysis import CompetitorAnalysisWorkflow  # noqa: E402
register_workflow(CompetitorAnalysisWorkflow)

from workflow.workflows.event_marketing import EventMarketingWorkflow  # noqa: E402
register_workflow(EventMarketingWorkflow)

from workflow.workflows.viral_content import ViralContentWorkflow  # noqa: E402
register_workflow(ViralContentWorkflow)

from workflow.workflows.customer_retention import CustomerRetentionWorkflow  # noqa: E402
register_workflow(CustomerRetentionWorkflow)

from workflow.workflows.revenue_optimization import RevenueOptimizationWorkflow  # noqa: E402
register_workflow(RevenueOptimizationWorkflow)
