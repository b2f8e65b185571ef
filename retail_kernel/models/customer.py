"""
Module: retail_kernel.models.customer
Responsibility: ORM persistence for customers and the person and address
    records they own.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - A person's dni (national id) is unique (uq_person_dni); creating a
      second customer with the same dni is a duplicate.
    - Each person backs at most one customer (uq_customer_person).
    - Customers are shared by many documents and never owned by one; a
      document's customer_id is nullable (anonymous sale).

Failure modes:
    - IntegrityError on duplicate dni or person, translated upstream into
      DuplicateResourceError.
"""

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retail_kernel.db.base import TrackedBase, UUIDString


class Person(TrackedBase):
    __tablename__ = "persons"

    __table_args__ = (
        UniqueConstraint("dni", name="uq_person_dni"),
    )

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # National identity document number
    dni: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<Person {self.full_name}>"


class Address(TrackedBase):
    __tablename__ = "addresses"

    location: Mapped[str] = mapped_column(String(500), nullable=False)

    def __repr__(self) -> str:
        return f"<Address {self.location}>"


class Customer(TrackedBase):
    """
    A buyer.  Aggregates a person (owned) and optionally an address (owned).
    """

    __tablename__ = "customers"

    __table_args__ = (
        UniqueConstraint("person_id", name="uq_customer_person"),
    )

    person_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("persons.id"),
        nullable=False,
    )

    address_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("addresses.id"),
        nullable=True,
    )

    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    city: Mapped[str | None] = mapped_column(String(255), nullable=True)

    person: Mapped["Person"] = relationship(lazy="joined")

    address: Mapped["Address | None"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<Customer {self.id} person={self.person_id}>"
