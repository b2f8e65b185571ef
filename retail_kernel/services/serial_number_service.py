"""
SerialNumberService -- human-legible, unique document numbers.

Format:
    <PREFIX>-<YYYY>-<counter zero-padded to serial_number_width>
    e.g. FAC-2024-000042 for a billing, COT-2024-000007 for a quote.

The counter comes from SequenceService (one sequence per document kind and
year), so concurrent creators never receive the same value.  Serials can
still collide with rows written outside the counter (imports, a counter
reset); each candidate is therefore checked against the document table and
skipped if taken.  After ``serial_max_attempts`` taken candidates the
allocation fails with SerialNumberExhaustedError rather than overwrite.
The unique constraint on ``serial_number`` remains the final guard.
"""

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from retail_kernel.config import BackofficeConfig
from retail_kernel.domain.values import DocumentKind
from retail_kernel.exceptions import SerialNumberExhaustedError
from retail_kernel.logging_config import get_logger
from retail_kernel.models.billing import Billing
from retail_kernel.models.quote import Quote
from retail_kernel.services.base import BaseService
from retail_kernel.services.sequence_service import SequenceService

logger = get_logger("services.serial_number")

_DOCUMENT_MODELS = {
    DocumentKind.BILLING: Billing,
    DocumentKind.QUOTE: Quote,
}


class SerialNumberService(BaseService):

    def __init__(self, session: Session, config: BackofficeConfig):
        super().__init__(session)
        self._config = config
        self._sequences = SequenceService(session)

    def prefix_for(self, kind: DocumentKind) -> str:
        if kind is DocumentKind.BILLING:
            return self._config.billing_serial_prefix
        return self._config.quote_serial_prefix

    def format(self, kind: DocumentKind, year: int, value: int) -> str:
        width = self._config.serial_number_width
        return f"{self.prefix_for(kind)}-{year:04d}-{value:0{width}d}"

    def next_serial(self, kind: DocumentKind, on_date: date) -> str:
        """
        Allocate the next free serial number for a document kind.

        Raises:
            SerialNumberExhaustedError: every candidate within the attempt
                budget was already taken.
        """
        model = _DOCUMENT_MODELS[kind]
        sequence_name = f"{kind.value}:{on_date.year}"

        for attempt in range(1, self._config.serial_max_attempts + 1):
            value = self._sequences.next_value(sequence_name)
            candidate = self.format(kind, on_date.year, value)
            taken = self.session.execute(
                select(model.id).where(model.serial_number == candidate)
            ).first()
            if taken is None:
                return candidate
            logger.warning(
                "serial_number_taken",
                extra={"serial_number": candidate, "attempt": attempt},
            )

        raise SerialNumberExhaustedError(
            self.prefix_for(kind), self._config.serial_max_attempts
        )
