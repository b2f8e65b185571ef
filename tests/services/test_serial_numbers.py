"""
Tests for SequenceService and SerialNumberService.

Covers:
- Monotonic counters per sequence name
- Serial format per document kind and year
- Taken candidates are skipped; exhaustion raises
"""

from datetime import date

import pytest

from retail_kernel.config import BackofficeConfig
from retail_kernel.domain.values import DocumentKind
from retail_kernel.exceptions import SerialNumberExhaustedError
from retail_kernel.models.quote import Quote
from retail_kernel.services.sequence_service import SequenceService
from retail_kernel.services.serial_number_service import SerialNumberService


class TestSequenceService:

    def test_first_value_is_one(self, session):
        assert SequenceService(session).next_value("billing:2024") == 1

    def test_values_increase(self, session):
        sequences = SequenceService(session)
        values = [sequences.next_value("quote:2024") for _ in range(5)]
        assert values == [1, 2, 3, 4, 5]

    def test_sequences_are_independent(self, session):
        sequences = SequenceService(session)
        sequences.next_value("billing:2024")
        sequences.next_value("billing:2024")
        assert sequences.next_value("quote:2024") == 1
        assert sequences.current_value("billing:2024") == 2

    def test_unused_sequence_has_no_value(self, session):
        assert SequenceService(session).current_value("billing:1999") is None

    def test_rollback_returns_value(self, session):
        sequences = SequenceService(session)
        sequences.next_value("billing:2024")
        session.commit()
        sequences.next_value("billing:2024")
        session.rollback()
        assert sequences.next_value("billing:2024") == 2

    def test_reset(self, session):
        sequences = SequenceService(session)
        sequences.next_value("billing:2024")
        sequences.reset("billing:2024", 41)
        assert sequences.next_value("billing:2024") == 42


class TestSerialNumberService:

    def test_billing_format(self, session, config):
        serials = SerialNumberService(session, config)
        assert serials.next_serial(DocumentKind.BILLING, date(2024, 3, 1)) == "FAC-2024-000001"

    def test_quote_format(self, session, config):
        serials = SerialNumberService(session, config)
        assert serials.next_serial(DocumentKind.QUOTE, date(2024, 3, 1)) == "COT-2024-000001"

    def test_counter_restarts_each_year(self, session, config):
        serials = SerialNumberService(session, config)
        serials.next_serial(DocumentKind.BILLING, date(2024, 12, 31))
        assert serials.next_serial(DocumentKind.BILLING, date(2025, 1, 1)) == "FAC-2025-000001"

    def test_custom_prefix_and_width(self, session):
        config = BackofficeConfig(
            database_url="sqlite://", billing_serial_prefix="INV", serial_number_width=4
        )
        serials = SerialNumberService(session, config)
        assert serials.next_serial(DocumentKind.BILLING, date(2024, 1, 1)) == "INV-2024-0001"

    def test_taken_serial_skipped(self, session, seed, config, captured_logs):
        session.add(
            Quote(serial_number="COT-2024-000001", status="PENDING", currency="COP", shop_id=seed.shop_id)
        )
        session.flush()

        serials = SerialNumberService(session, config)
        assert serials.next_serial(DocumentKind.QUOTE, date(2024, 2, 1)) == "COT-2024-000002"
        assert any(r["message"] == "serial_number_taken" for r in captured_logs())

    def test_exhaustion(self, session, seed):
        config = BackofficeConfig(database_url="sqlite://", serial_max_attempts=2)
        for n in (1, 2):
            session.add(
                Quote(
                    serial_number=f"COT-2024-{n:06d}",
                    status="PENDING",
                    currency="COP",
                    shop_id=seed.shop_id,
                )
            )
        session.flush()

        with pytest.raises(SerialNumberExhaustedError) as exc_info:
            SerialNumberService(session, config).next_serial(DocumentKind.QUOTE, date(2024, 2, 1))
        assert exc_info.value.attempts == 2
        assert exc_info.value.prefix == "COT"
