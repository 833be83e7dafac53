from app.workflow.engine import (
    WorkflowContext,
    TransitionResult,
    OrderRequest,
    apply_event,
    new_draft,
    open_gateway_payment,
    format_application_id,
)
from app.workflow.projection import StepView, project_step

__all__ = [
    "WorkflowContext",
    "TransitionResult",
    "OrderRequest",
    "apply_event",
    "new_draft",
    "open_gateway_payment",
    "format_application_id",
    "StepView",
    "project_step",
]
