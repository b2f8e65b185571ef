"""
BaseService -- abstract base for kernel write services.

Responsibility:
    Common constructor and session contract.  Concrete services receive a
    SQLAlchemy ``Session`` and persist with ``session.flush()``; they never
    call ``commit()`` or ``rollback()``.  The DocumentOrchestrator (or the
    test harness) owns the transaction boundary, so a customer upsert, a
    document header, its line items and the stock deltas they cause all
    commit or roll back together.

Architecture position:
    Kernel > Services.  Every write service in ``retail_kernel/services/``
    extends this class.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for kernel write services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read-model queries; those live in
          ``retail_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
