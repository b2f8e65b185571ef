"""
Document Workflows.

State machines for billing and quote lifecycles.
"""

from dataclasses import dataclass
from enum import Enum

from retail_kernel.domain.values import DocumentKind
from retail_kernel.exceptions import InvalidStatusTransitionError
from retail_kernel.logging_config import get_logger

logger = get_logger("domain.workflows")


class BillingStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELED = "CANCELED"


class QuoteStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    CANCELED = "CANCELED"
    REVISION = "REVISION"
    # Reached from PENDING by time-based expiry run outside this service
    OVERDUE = "OVERDUE"


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""
    from_state: str
    to_state: str
    action: str
    restores_stock: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    terminal_states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    def find(self, from_state: str, to_state: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == from_state and t.to_state == to_state:
                return t
        return None

    def targets(self, from_state: str) -> set[str]:
        return {t.to_state for t in self.transitions if t.from_state == from_state}

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states


# -----------------------------------------------------------------------------
# Billing Workflow
# -----------------------------------------------------------------------------

BILLING_WORKFLOW = Workflow(
    name="billing",
    description="Invoice lifecycle",
    initial_state=BillingStatus.PENDING.value,
    states=tuple(s.value for s in BillingStatus),
    terminal_states=(BillingStatus.PAID.value, BillingStatus.CANCELED.value),
    transitions=(
        Transition("PENDING", "PAID", action="pay"),
        Transition("PENDING", "CANCELED", action="cancel", restores_stock=True),
        # Compensation path: a paid billing can still be voided
        Transition("PAID", "CANCELED", action="cancel", restores_stock=True),
    ),
)


# -----------------------------------------------------------------------------
# Quote Workflow
# -----------------------------------------------------------------------------

QUOTE_WORKFLOW = Workflow(
    name="quote",
    description="Quote lifecycle",
    initial_state=QuoteStatus.PENDING.value,
    states=tuple(s.value for s in QuoteStatus),
    terminal_states=(QuoteStatus.ACCEPTED.value, QuoteStatus.CANCELED.value),
    transitions=(
        Transition("PENDING", "ACCEPTED", action="accept"),
        Transition("PENDING", "CANCELED", action="cancel"),
        Transition("PENDING", "REVISION", action="request_revision"),
        Transition("PENDING", "OVERDUE", action="expire"),
        Transition("REVISION", "PENDING", action="resubmit"),
        Transition("REVISION", "ACCEPTED", action="accept"),
        Transition("REVISION", "CANCELED", action="cancel"),
        Transition("OVERDUE", "REVISION", action="request_revision"),
        Transition("OVERDUE", "CANCELED", action="cancel"),
    ),
)

WORKFLOWS: dict[DocumentKind, Workflow] = {
    DocumentKind.BILLING: BILLING_WORKFLOW,
    DocumentKind.QUOTE: QUOTE_WORKFLOW,
}

STATUS_ENUMS: dict[DocumentKind, type[Enum]] = {
    DocumentKind.BILLING: BillingStatus,
    DocumentKind.QUOTE: QuoteStatus,
}

logger.debug(
    "document_workflows_registered",
    extra={
        "workflows": [w.name for w in WORKFLOWS.values()],
        "transition_count": sum(len(w.transitions) for w in WORKFLOWS.values()),
    },
)


def parse_status(kind: DocumentKind, status: str) -> str:
    """
    Validate a status name for a document kind and return its value.

    Raises:
        InvalidStatusTransitionError: status is not a state of the workflow.
    """
    value = status.value if isinstance(status, Enum) else str(status).upper()
    if value not in WORKFLOWS[kind].states:
        raise InvalidStatusTransitionError(kind.value, "?", value)
    return value


def require_transition(kind: DocumentKind, from_state: str, to_state: str) -> Transition:
    """
    Look up the transition, raising if the workflow does not allow it.

    Raises:
        InvalidStatusTransitionError
    """
    transition = WORKFLOWS[kind].find(from_state, to_state)
    if transition is None:
        raise InvalidStatusTransitionError(kind.value, from_state, to_state)
    return transition


def initial_status(kind: DocumentKind, requested: str | None) -> str:
    """
    Status a new document starts in.

    Creation may only request the initial state or a state directly reachable
    from it without compensation (e.g. a billing created already PAID).
    """
    workflow = WORKFLOWS[kind]
    if requested is None:
        return workflow.initial_state
    value = parse_status(kind, requested)
    if value == workflow.initial_state:
        return value
    transition = workflow.find(workflow.initial_state, value)
    if transition is None or transition.restores_stock or value == "CANCELED":
        raise InvalidStatusTransitionError(kind.value, "(new)", value)
    return value
