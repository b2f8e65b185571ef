"""
CustomerService -- customers and the person and address they own.

Customers are shared by many documents.  A document request either points
at an existing customer (customer_id), carries data for a new one, or
carries updated data for the customer backed by a known person_id.

All public methods return CustomerInfo DTOs, not ORM entities.
"""

from uuid import UUID

from sqlalchemy import select

from retail_kernel.domain.dtos import CustomerInfo, CustomerInput
from retail_kernel.exceptions import CustomerNotFoundError
from retail_kernel.logging_config import get_logger
from retail_kernel.models.customer import Address, Customer, Person
from retail_kernel.services.base import BaseService

logger = get_logger("services.customer")


class CustomerService(BaseService):

    def _get_by_id(self, customer_id: UUID) -> Customer:
        customer = self.session.get(Customer, customer_id)
        if customer is None:
            raise CustomerNotFoundError(str(customer_id))
        return customer

    def _get_by_person(self, person_id: UUID) -> Customer:
        customer = self.session.execute(
            select(Customer).where(Customer.person_id == person_id)
        ).unique().scalar_one_or_none()
        if customer is None:
            raise CustomerNotFoundError(str(person_id))
        return customer

    def get_by_id(self, customer_id: UUID) -> CustomerInfo:
        """
        Raises:
            CustomerNotFoundError
        """
        return CustomerInfo.from_model(self._get_by_id(customer_id))

    def create(self, data: CustomerInput, actor_id: UUID | None = None) -> CustomerInfo:
        """
        Create a customer with its person and, when a location is given,
        its address.

        A duplicate dni surfaces as IntegrityError on flush; the caller's
        unit of work translates it.
        """
        person = Person(full_name=data.full_name, dni=data.dni, created_by_id=actor_id)
        self.session.add(person)

        address = None
        if data.location:
            address = Address(location=data.location, created_by_id=actor_id)
            self.session.add(address)

        self.session.flush()

        customer = Customer(
            person_id=person.id,
            address_id=address.id if address else None,
            email=data.email,
            phone_number=data.phone_number,
            city=data.city,
            created_by_id=actor_id,
        )
        customer.person = person
        customer.address = address
        self.session.add(customer)
        self.session.flush()

        logger.info(
            "customer_created",
            extra={"customer_id": str(customer.id), "person_id": str(person.id)},
        )
        return CustomerInfo.from_model(customer)

    def update(self, data: CustomerInput, actor_id: UUID | None = None) -> CustomerInfo:
        """
        Update the customer backed by data.person_id.

        Only fields that are set on data are written.

        Raises:
            CustomerNotFoundError: no customer for that person.
        """
        if data.person_id is None:
            raise CustomerNotFoundError("(no person id)")
        customer = self._get_by_person(data.person_id)

        person = customer.person
        if data.full_name:
            person.full_name = data.full_name
        if data.dni is not None:
            person.dni = data.dni
        person.updated_by_id = actor_id

        if data.email is not None:
            customer.email = data.email
        if data.phone_number is not None:
            customer.phone_number = data.phone_number
        if data.city is not None:
            customer.city = data.city

        if data.location is not None:
            if customer.address is None:
                address = Address(location=data.location, created_by_id=actor_id)
                self.session.add(address)
                self.session.flush()
                customer.address_id = address.id
                customer.address = address
            else:
                customer.address.location = data.location
                customer.address.updated_by_id = actor_id

        customer.updated_by_id = actor_id
        self.session.flush()

        logger.info("customer_updated", extra={"customer_id": str(customer.id)})
        return CustomerInfo.from_model(customer)

    def resolve(
        self,
        customer_id: UUID | None,
        data: CustomerInput | None,
        actor_id: UUID | None = None,
    ) -> UUID | None:
        """
        Customer id a document should reference.

        - no customer_id, data without person_id: create a new customer.
        - data with person_id: update that person's customer.
        - customer_id given: that customer, checked to exist.  Data without
          a person_id never creates a second customer in this case.
        - neither: None, for an anonymous document.

        Raises:
            CustomerNotFoundError
        """
        if customer_id is None and data is not None:
            if data.person_id is None:
                return self.create(data, actor_id).id
            return self.update(data, actor_id).id
        if data is not None and data.person_id is not None:
            self.update(data, actor_id)
        if customer_id is not None:
            self._get_by_id(customer_id)
        return customer_id
