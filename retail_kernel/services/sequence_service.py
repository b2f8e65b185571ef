"""
SequenceService -- monotonic counters via locked rows.

Responsibility:
    Provides strictly increasing integers per named sequence.  Serial
    numbers for billings and quotes are built from these values.  A
    dedicated counter table with row-level locking (``SELECT ... FOR
    UPDATE``) guarantees uniqueness and ordering under concurrent access.

Architecture position:
    Kernel > Services.  Called by SerialNumberService.

Invariants enforced:
    - The locked counter row is the sole source of truth for the next
      value.  Aggregate max()+1 over document tables is never used.
    - The increment is only visible after the caller's transaction
      commits; a rollback returns the value.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and retry).
"""

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from retail_kernel.db.base import Base
from retail_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    """

    __tablename__ = "sequence_counters"

    # e.g. "billing:2024", "quote:2024"
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Contract:
        Accepts a sequence name and returns the next strictly-monotonic
        integer value.  Does NOT call ``session.commit()``.

    Usage:
        value = sequence_service.next_value("billing:2024")
        # If the transaction rolls back, value is not consumed
    """

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Locks the sequence row (creating it on first use), increments it and
        returns the new value.

        Returns:
            The next sequence value (always > 0).
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use.  Another transaction may create the row at the same
            # time; a savepoint keeps the rest of the caller's work intact.
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value of a sequence without incrementing, or None if unused."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def reset(self, sequence_name: str, value: int = 0) -> None:
        """
        Reset a sequence to a specific value.

        WARNING: only for tests and data migrations.  Resetting below the
        highest issued serial makes the next allocations collide (they are
        then skipped by SerialNumberService, up to its attempt budget).
        """
        counter = self._locked_counter(sequence_name)
        if counter is None:
            counter = SequenceCounter(name=sequence_name, current_value=value)
            self._session.add(counter)
        else:
            counter.current_value = value
        self._session.flush()
