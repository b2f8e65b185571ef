"""Tests for the billing and quote state machines."""

import pytest

from retail_kernel.domain.values import DocumentKind
from retail_kernel.domain.workflows import (
    BILLING_WORKFLOW,
    QUOTE_WORKFLOW,
    BillingStatus,
    QuoteStatus,
    initial_status,
    parse_status,
    require_transition,
)
from retail_kernel.exceptions import InvalidStatusTransitionError


class TestBillingWorkflow:

    def test_initial_state_is_pending(self):
        assert BILLING_WORKFLOW.initial_state == BillingStatus.PENDING.value

    def test_pending_targets(self):
        assert BILLING_WORKFLOW.targets("PENDING") == {"PAID", "CANCELED"}

    def test_cancel_restores_stock(self):
        assert BILLING_WORKFLOW.find("PENDING", "CANCELED").restores_stock is True
        assert BILLING_WORKFLOW.find("PAID", "CANCELED").restores_stock is True
        assert BILLING_WORKFLOW.find("PENDING", "PAID").restores_stock is False

    def test_canceled_is_a_dead_end(self):
        assert BILLING_WORKFLOW.targets("CANCELED") == set()
        assert BILLING_WORKFLOW.is_terminal("CANCELED")

    def test_paid_cannot_go_back_to_pending(self):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            require_transition(DocumentKind.BILLING, "PAID", "PENDING")
        assert exc_info.value.from_status == "PAID"
        assert exc_info.value.to_status == "PENDING"


class TestQuoteWorkflow:

    def test_pending_targets(self):
        assert QUOTE_WORKFLOW.targets("PENDING") == {"ACCEPTED", "CANCELED", "REVISION", "OVERDUE"}

    def test_revision_can_be_resubmitted(self):
        transition = require_transition(DocumentKind.QUOTE, "REVISION", "PENDING")
        assert transition.action == "resubmit"

    def test_accepted_is_terminal(self):
        assert QUOTE_WORKFLOW.is_terminal(QuoteStatus.ACCEPTED.value)
        with pytest.raises(InvalidStatusTransitionError):
            require_transition(DocumentKind.QUOTE, "ACCEPTED", "REVISION")

    def test_quote_transitions_never_touch_stock(self):
        assert not any(t.restores_stock for t in QUOTE_WORKFLOW.transitions)


class TestStatusParsing:

    def test_case_insensitive(self):
        assert parse_status(DocumentKind.BILLING, "paid") == "PAID"

    def test_enum_accepted(self):
        assert parse_status(DocumentKind.QUOTE, QuoteStatus.REVISION) == "REVISION"

    def test_unknown_status(self):
        with pytest.raises(InvalidStatusTransitionError):
            parse_status(DocumentKind.BILLING, "ACCEPTED")


class TestInitialStatus:

    def test_default_is_initial_state(self):
        assert initial_status(DocumentKind.BILLING, None) == "PENDING"
        assert initial_status(DocumentKind.QUOTE, None) == "PENDING"

    def test_billing_created_paid(self):
        assert initial_status(DocumentKind.BILLING, "PAID") == "PAID"

    def test_billing_cannot_be_created_canceled(self):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            initial_status(DocumentKind.BILLING, "CANCELED")
        assert exc_info.value.from_status == "(new)"

    def test_quote_cannot_be_created_canceled(self):
        with pytest.raises(InvalidStatusTransitionError):
            initial_status(DocumentKind.QUOTE, "CANCELED")

    def test_quote_created_accepted(self):
        assert initial_status(DocumentKind.QUOTE, "accepted") == "ACCEPTED"
