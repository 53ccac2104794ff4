from substitution.ledger import SubstitutionLedger
from substitution.workflow import (
    SubstituteWorkflow,
    SubstitutionValidationError,
    WorkflowSelection,
    WorkflowState,
    WorkflowStateError,
)

__all__ = [
    "SubstitutionLedger",
    "SubstituteWorkflow",
    "SubstitutionValidationError",
    "WorkflowSelection",
    "WorkflowState",
    "WorkflowStateError",
]
