"""
Module: retail_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors (document
    reads and sales reports).
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/dtos.  MUST NOT import from services/ or the HTTP layer.

Invariants enforced:
    - Read-only: selectors never add, flush, commit or delete.
    - Selectors return frozen DTOs, never ORM instances.
    - The caller owns the session and its transaction scope.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries, and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session
