"""
Tax Return Workflow (``tax_modules.tax_return.workflows``).

Responsibility
--------------
Declares the state machine for the tax return lifecycle.  Guards name the
preconditions the assembler checks before a transition fires.

Architecture position
---------------------
**Modules layer** -- declarative workflow definition.  Imports canonical
Guard, Transition, Workflow from ``tax_kernel.domain.workflow``.

Invariants enforced
-------------------
* Filed, accepted and rejected are reached only through declared
  transitions; accepted and rejected are terminal.
"""

from tax_kernel.domain.workflow import Guard, Transition, Workflow
from tax_kernel.logging_config import get_logger

logger = get_logger("modules.tax_return.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

DOCUMENTATION_COMPLETE = Guard(
    name="documentation_complete",
    description="No missing supporting documents and no validation errors",
)


# -----------------------------------------------------------------------------
# Tax Return Workflow
# -----------------------------------------------------------------------------

TAX_RETURN_WORKFLOW = Workflow(
    name="tax_return",
    description="Tax return from draft through filing and regulator decision",
    initial_state="draft",
    states=(
        "draft",
        "pending_review",
        "ready_to_file",
        "filed",
        "accepted",
        "rejected",
    ),
    transitions=(
        Transition("draft", "pending_review", action="submit_for_review"),
        Transition("pending_review", "draft", action="request_changes"),
        Transition("pending_review", "ready_to_file", action="approve"),
        Transition("draft", "filed", action="file", guard=DOCUMENTATION_COMPLETE),
        Transition("ready_to_file", "filed", action="file", guard=DOCUMENTATION_COMPLETE),
        Transition("filed", "accepted", action="accept"),
        Transition("filed", "rejected", action="reject"),
    ),
    terminal_states=("accepted", "rejected"),
)

logger.info(
    "tax_return_workflow_defined",
    extra={
        "workflow": TAX_RETURN_WORKFLOW.name,
        "states": len(TAX_RETURN_WORKFLOW.states),
        "transitions": len(TAX_RETURN_WORKFLOW.transitions),
    },
)
