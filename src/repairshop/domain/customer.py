"""Customer domain service."""

import logging
import re
from typing import Any, Optional

from repairshop.database.base import Database
from repairshop.domain import errors
from repairshop.domain.entities import Customer as CustomerEntity, CustomerType
from repairshop.domain.errors import ValidationError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    """Return a trimmed, lower-cased email, or raise if it is malformed."""
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError(f"Invalid email address '{email}'")
    return email


def require_text(field: str, value: Optional[str]) -> str:
    """Return a stripped value, or raise if it is blank."""
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


class CustomerService:
    """Service for managing customers."""

    def __init__(self, db: Database):
        """Initialize customer service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_customer(
        self,
        first_name: str,
        last_name: str,
        email: str,
        phone: str,
        customer_type: CustomerType = CustomerType.RESIDENTIAL,
        address: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        zip_code: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a new customer.

        Returns:
            Customer ID

        Raises:
            ValidationError: If a required field is missing or malformed
            ConflictError: If the email address is already registered
        """
        email = normalize_email(email)
        if self.db.find_customer_by_email(email) is not None:
            raise errors.ConflictError(f"Customer with email '{email}' already exists")

        customer_id = self.db.create_customer(
            first_name=require_text("First name", first_name),
            last_name=require_text("Last name", last_name),
            email=email,
            phone=require_text("Phone", phone),
            customer_type=errors.parse_choice(CustomerType, customer_type, "customer type"),
            address=address,
            city=city,
            state=state,
            zip_code=zip_code,
            notes=notes,
        )
        logger.info("Created customer %s (%s)", customer_id, email)
        return customer_id

    def get_customer(self, customer_id: int) -> Optional[CustomerEntity]:
        """Get customer by ID.

        Returns:
            Customer entity or None if not found
        """
        return self.db.get_customer(customer_id)

    def require_customer(self, customer_id: int) -> CustomerEntity:
        """Get customer by ID or raise NotFoundError."""
        customer = self.db.get_customer(customer_id)
        if customer is None:
            raise errors.NotFoundError(errors.customer_not_found(customer_id))
        return customer

    def list_customers(self) -> list[CustomerEntity]:
        """List all customers."""
        return self.db.list_customers()

    def find_customer(self, phone: Optional[str] = None, email: Optional[str] = None) -> Optional[CustomerEntity]:
        """Find a customer by phone first, then by email.

        Args:
            phone: Phone number to look up
            email: Email address used when the phone matches nobody

        Returns:
            Customer entity or None if neither matches
        """
        if phone:
            customer = self.db.find_customer_by_phone(phone.strip())
            if customer is not None:
                return customer
        if email:
            return self.db.find_customer_by_email(email.strip().lower())
        return None

    def update_customer(self, customer_id: int, **changes: Any) -> CustomerEntity:
        """Update customer fields.

        Only keyword arguments that are not None are applied.

        Raises:
            NotFoundError: If the customer doesn't exist
            ValidationError: If a new value is malformed
            ConflictError: If the new email belongs to another customer
        """
        self.require_customer(customer_id)
        changes = {name: value for name, value in changes.items() if value is not None}

        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
            other = self.db.find_customer_by_email(changes["email"])
            if other is not None and other.id != customer_id:
                raise errors.ConflictError(f"Customer with email '{changes['email']}' already exists")
        for field, label in (("first_name", "First name"), ("last_name", "Last name"), ("phone", "Phone")):
            if field in changes:
                changes[field] = require_text(label, changes[field])
        if "customer_type" in changes:
            changes["customer_type"] = errors.parse_choice(CustomerType, changes["customer_type"], "customer type")

        if changes:
            self.db.update_customer(customer_id, **changes)
        return self.require_customer(customer_id)

    def delete_customer(self, customer_id: int) -> None:
        """Delete a customer.

        Customers that own jobs or invoices are never hard-deleted.

        Raises:
            NotFoundError: If the customer doesn't exist
            DependencyError: If the customer has jobs or invoices
        """
        self.require_customer(customer_id)

        job_count = self.db.get_customer_job_count(customer_id)
        invoice_count = self.db.get_customer_invoice_count(customer_id)
        if job_count > 0 or invoice_count > 0:
            raise errors.DependencyError(
                errors.customer_delete_blocked(customer_id, job_count, invoice_count)
            )

        self.db.delete_customer(customer_id)
        logger.info("Deleted customer %s", customer_id)
