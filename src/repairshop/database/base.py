"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

# Import entities directly to avoid circular import through domain services
from repairshop.domain.entities import (
    Customer,
    CustomerType,
    Invoice,
    InvoiceStatus,
    Job,
    JobPriority,
    JobStatus,
    JobStatusHistory,
    LineItem,
    Payment,
    PaymentMethod,
    Quote,
    QuoteStatus,
    ShopSettings,
)


class Database(ABC):
    """Abstract database interface for repairshop."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Group writes into one commit.

        Commits when the block exits normally, rolls back when it raises.
        Nested blocks join the outermost one.
        """
        pass

    # Customer operations
    @abstractmethod
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
        """Create a customer. Returns customer ID."""
        pass

    @abstractmethod
    def get_customer(self, customer_id: int) -> Optional[Customer]:
        """Get customer by ID."""
        pass

    @abstractmethod
    def find_customer_by_phone(self, phone: str) -> Optional[Customer]:
        """Get the first customer with this phone number."""
        pass

    @abstractmethod
    def find_customer_by_email(self, email: str) -> Optional[Customer]:
        """Get customer by email address."""
        pass

    @abstractmethod
    def list_customers(self) -> list[Customer]:
        """List all customers ordered by name."""
        pass

    @abstractmethod
    def update_customer(self, customer_id: int, **fields: Any) -> None:
        """Update customer fields."""
        pass

    @abstractmethod
    def delete_customer(self, customer_id: int) -> None:
        """Delete a customer."""
        pass

    @abstractmethod
    def get_customer_job_count(self, customer_id: int) -> int:
        """Get count of jobs owned by a customer."""
        pass

    @abstractmethod
    def get_customer_invoice_count(self, customer_id: int) -> int:
        """Get count of invoices billed to a customer."""
        pass

    # Job operations
    @abstractmethod
    def get_max_job_number(self) -> Optional[str]:
        """Get the highest job number, ordered by the number itself."""
        pass

    @abstractmethod
    def job_number_exists(self, job_number: str) -> bool:
        """Check if a job with this number exists."""
        pass

    @abstractmethod
    def create_job(
        self,
        job_number: str,
        customer_id: int,
        appliance_type: str,
        appliance_brand: str,
        issue_description: str,
        priority: JobPriority = JobPriority.MEDIUM,
        status: JobStatus = JobStatus.OPEN,
        model_number: Optional[str] = None,
        serial_number: Optional[str] = None,
        customer_notes: Optional[str] = None,
        assigned_technician: Optional[str] = None,
        estimated_completion: Optional[datetime] = None,
    ) -> int:
        """Create a job. Returns job ID.

        Raises:
            DuplicateNumberError: If the job number is already taken
        """
        pass

    @abstractmethod
    def get_job(self, job_id: int) -> Optional[Job]:
        """Get job by ID."""
        pass

    @abstractmethod
    def get_job_by_number(self, job_number: str) -> Optional[Job]:
        """Get job by job number."""
        pass

    @abstractmethod
    def list_jobs(
        self, status: Optional[JobStatus] = None, customer_id: Optional[int] = None
    ) -> list[Job]:
        """List jobs, newest first, with optional filters."""
        pass

    @abstractmethod
    def update_job(self, job_id: int, **fields: Any) -> None:
        """Update job fields."""
        pass

    @abstractmethod
    def add_status_history(
        self, job_id: int, status: JobStatus, notes: Optional[str], created_at: datetime
    ) -> int:
        """Append a status history row. Returns history ID."""
        pass

    @abstractmethod
    def list_status_history(self, job_id: int) -> list[JobStatusHistory]:
        """List status history for a job, oldest first."""
        pass

    # Quote operations
    @abstractmethod
    def create_quote(
        self,
        quote_number: str,
        job_id: int,
        customer_id: int,
        status: QuoteStatus,
        issue_date: datetime,
        valid_until: datetime,
        subtotal: Decimal,
        tax_rate: Decimal,
        tax_amount: Decimal,
        discount_amount: Decimal,
        total_amount: Decimal,
        items: Sequence[LineItem],
        notes: Optional[str] = None,
    ) -> int:
        """Create a quote with its items. Returns quote ID."""
        pass

    @abstractmethod
    def get_quote(self, quote_id: int) -> Optional[Quote]:
        """Get quote (with items) by ID."""
        pass

    @abstractmethod
    def list_quotes(
        self, status: Optional[QuoteStatus] = None, job_id: Optional[int] = None
    ) -> list[Quote]:
        """List quotes, newest first, with optional filters."""
        pass

    @abstractmethod
    def update_quote(self, quote_id: int, **fields: Any) -> None:
        """Update quote fields."""
        pass

    @abstractmethod
    def increment_quote_reminder(self, quote_id: int, expected_count: int, sent_at: datetime) -> bool:
        """Bump reminder_count if it still equals expected_count.

        Returns:
            True if the row was updated, False if the count had moved
        """
        pass

    # Invoice operations
    @abstractmethod
    def get_max_invoice_number(self) -> Optional[str]:
        """Get the highest invoice number, ordered by the number itself."""
        pass

    @abstractmethod
    def invoice_number_exists(self, invoice_number: str) -> bool:
        """Check if an invoice with this number exists."""
        pass

    @abstractmethod
    def create_invoice(
        self,
        invoice_number: str,
        job_id: int,
        customer_id: int,
        status: InvoiceStatus,
        issue_date: datetime,
        due_date: datetime,
        subtotal: Decimal,
        tax_rate: Decimal,
        tax_amount: Decimal,
        discount_amount: Decimal,
        total_amount: Decimal,
        items: Sequence[LineItem],
        notes: Optional[str] = None,
        payment_terms: Optional[str] = None,
    ) -> int:
        """Create an invoice with its items. Returns invoice ID.

        Raises:
            DuplicateNumberError: If the invoice number is already taken
            ConflictError: If the job already has an invoice
        """
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice (with items) by ID."""
        pass

    @abstractmethod
    def get_invoice_for_job(self, job_id: int) -> Optional[Invoice]:
        """Get the invoice attached to a job."""
        pass

    @abstractmethod
    def list_invoices(
        self, status: Optional[InvoiceStatus] = None, customer_id: Optional[int] = None
    ) -> list[Invoice]:
        """List invoices, newest first, with optional filters."""
        pass

    @abstractmethod
    def update_invoice(self, invoice_id: int, **fields: Any) -> None:
        """Update invoice fields and bump its version."""
        pass

    @abstractmethod
    def delete_invoice(self, invoice_id: int) -> None:
        """Delete an invoice and its items."""
        pass

    # Payment operations
    @abstractmethod
    def record_payment(
        self,
        invoice_id: int,
        expected_version: int,
        paid_amount: Decimal,
        balance_amount: Decimal,
        status: InvoiceStatus,
        amount: Decimal,
        method: PaymentMethod,
        payment_date: datetime,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Insert a payment and update the invoice amounts atomically.

        The invoice row is only updated if its version still equals
        expected_version.

        Returns:
            Payment ID

        Raises:
            StaleRecordError: If the invoice changed since it was read
        """
        pass

    @abstractmethod
    def list_payments(self, invoice_id: int) -> list[Payment]:
        """List payments for an invoice, newest first."""
        pass

    @abstractmethod
    def get_invoice_payment_count(self, invoice_id: int) -> int:
        """Get count of payments recorded against an invoice."""
        pass

    # Settings operations
    @abstractmethod
    def get_settings(self) -> Optional[ShopSettings]:
        """Get the settings row, or None if none was saved yet."""
        pass

    @abstractmethod
    def save_settings(self, settings: ShopSettings) -> None:
        """Create or replace the settings row."""
        pass
