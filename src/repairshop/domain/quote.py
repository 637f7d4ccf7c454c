"""Quote domain service.

Quote lifecycle::

    DRAFT -> SENT -> ACCEPTED -> CONVERTED_TO_INVOICE
                  -> REJECTED
                  -> EXPIRED

REJECTED, EXPIRED and CONVERTED_TO_INVOICE are terminal.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional

from repairshop.database.base import Database
from repairshop.domain import errors
from repairshop.domain.documents import quote_document
from repairshop.domain.entities import (
    CustomerResponse,
    Invoice,
    InvoiceStatus,
    JobStatus,
    LineItem,
    Quote,
    QuoteStatus,
)
from repairshop.domain.errors import InvalidStateError, ValidationError
from repairshop.domain.job import JobService
from repairshop.domain.ledger import compute_totals
from repairshop.domain.mail import (
    EmailResult,
    EmailSender,
    dispatch,
    quote_email,
    quote_reminder_email,
)
from repairshop.domain.notifications import is_expired, quote_reminder_due, reminder_block_reason
from repairshop.domain.numbering import NumberingService, quote_number_for
from repairshop.domain.settings import SettingsService
from repairshop.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

DEFAULT_VALID_DAYS = 30
DEFAULT_DUE_DAYS = 30
OPEN_QUOTE_STATUSES = (QuoteStatus.SENT, QuoteStatus.ACCEPTED)


@dataclass(frozen=True)
class QuoteIssueResult:
    """Issued quote plus the outcome of emailing it."""

    quote: Quote
    email: EmailResult


@dataclass(frozen=True)
class ReminderResult:
    """Quote after a reminder attempt plus the email outcome."""

    quote: Quote
    email: EmailResult


class QuoteService:
    """Service for issuing quotes and driving them through their lifecycle."""

    def __init__(
        self,
        db: Database,
        email_sender: Optional[EmailSender] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize quote service.

        Args:
            db: Database instance
            email_sender: Transport for quote and reminder emails (optional)
            clock: Returns the current naive UTC time
        """
        self.db = db
        self.email_sender = email_sender
        self.clock = clock
        self.jobs = JobService(db, email_sender=email_sender, clock=clock)
        self.numbering = NumberingService(db)
        self.settings = SettingsService(db)

    def get_quote(self, quote_id: int) -> Optional[Quote]:
        """Get quote by ID."""
        return self.db.get_quote(quote_id)

    def require_quote(self, quote_id: int) -> Quote:
        """Get quote by ID or raise NotFoundError."""
        quote = self.db.get_quote(quote_id)
        if quote is None:
            raise errors.NotFoundError(errors.quote_not_found(quote_id))
        return quote

    def list_quotes(
        self, status: Optional[QuoteStatus | str] = None, job_id: Optional[int] = None
    ) -> list[Quote]:
        """List quotes, newest first."""
        if status is not None:
            status = errors.parse_choice(QuoteStatus, status, "quote status")
        return self.db.list_quotes(status=status, job_id=job_id)

    def issue_quote(
        self,
        job_id: int,
        items: Iterable[LineItem],
        tax_rate: Optional[Decimal] = None,
        valid_days: int = DEFAULT_VALID_DAYS,
        notes: Optional[str] = None,
    ) -> QuoteIssueResult:
        """Price a job, record the quote as SENT and email it to the customer.

        The quote, the job's move to AWAITING_CUSTOMER_APPROVAL and its
        ``quote_sent_at``/``last_notification_sent`` stamps commit together.
        The email is sent afterwards; if it fails the quote stays issued.

        Args:
            job_id: Job being quoted
            items: Priced line items
            tax_rate: Percentage (defaults to the configured tax rate)
            valid_days: Days until the quote expires
            notes: Optional notes printed on the quote

        Raises:
            NotFoundError: If the job doesn't exist
            ValidationError: If items, tax rate or valid_days are invalid
            InvalidStateError: If the job already has an open quote
        """
        job = self.jobs.require_job(job_id)
        settings = self.settings.get_settings()
        if valid_days < 1:
            raise ValidationError("Quote must be valid for at least 1 day")
        items = list(items)
        totals = compute_totals(items, settings.tax_rate if tax_rate is None else Decimal(tax_rate))

        existing = self.db.list_quotes(job_id=job_id)
        if any(q.status in OPEN_QUOTE_STATUSES for q in existing):
            raise InvalidStateError(f"Job {job.job_number} already has an open quote")

        now = self.clock()
        valid_until = now + timedelta(days=valid_days)
        sequence = len(existing) + 1

        def create(quote_number: str) -> int:
            with self.db.transaction():
                quote_id = self.db.create_quote(
                    quote_number=quote_number,
                    job_id=job.id,
                    customer_id=job.customer_id,
                    status=QuoteStatus.SENT,
                    issue_date=now,
                    valid_until=valid_until,
                    subtotal=totals.subtotal,
                    tax_rate=totals.tax_rate,
                    tax_amount=totals.tax_amount,
                    discount_amount=totals.discount_amount,
                    total_amount=totals.total_amount,
                    items=items,
                    notes=notes,
                )
                self.jobs.apply_status(
                    job,
                    JobStatus.AWAITING_CUSTOMER_APPROVAL,
                    f"Quote {quote_number} sent to customer",
                    quote_sent_at=now,
                    last_notification_sent=now,
                )
            return quote_id

        def next_quote_number() -> str:
            nonlocal sequence
            number = quote_number_for(job.job_number, sequence)
            sequence += 1
            return number

        quote_id = self.numbering.allocate(next_quote_number, create)
        quote = self.require_quote(quote_id)
        logger.info("Issued quote %s for %s (total %s)", quote.quote_number, job.job_number, quote.total_amount)

        customer = self.db.get_customer(job.customer_id)
        document = quote_document(quote, job, customer, settings)
        email = dispatch(self.email_sender, quote_email(quote, job, customer, settings, document))
        return QuoteIssueResult(quote=quote, email=email)

    def _respond(
        self, quote_id: int, response: CustomerResponse, reason: Optional[str] = None
    ) -> Quote:
        quote = self.require_quote(quote_id)

        if quote.customer_response is not None:
            if quote.customer_response == response:
                # Repeated click on the same link
                logger.info("Quote %s already %s; ignoring repeat", quote.quote_number, response.value.lower())
                return quote
            raise InvalidStateError(
                f"Quote {quote.quote_number} has already been {quote.customer_response.value.lower()}"
            )
        if quote.status != QuoteStatus.SENT:
            raise InvalidStateError(
                f"Quote {quote.quote_number} is {quote.status.value} and can no longer be answered"
            )

        now = self.clock()
        if response == CustomerResponse.ACCEPTED and quote.valid_until <= now:
            raise InvalidStateError(f"Quote {quote.quote_number} has expired")

        job = self.jobs.require_job(quote.job_id)
        with self.db.transaction():
            if response == CustomerResponse.ACCEPTED:
                self.db.update_quote(
                    quote.id,
                    status=QuoteStatus.ACCEPTED,
                    customer_response=response,
                    customer_response_date=now,
                )
                self.jobs.apply_status(
                    job, JobStatus.IN_PROGRESS, f"Quote {quote.quote_number} accepted by customer"
                )
            else:
                self.db.update_quote(
                    quote.id,
                    status=QuoteStatus.REJECTED,
                    customer_response=response,
                    customer_response_date=now,
                    rejection_reason=reason,
                )
                note = f"Quote {quote.quote_number} rejected by customer"
                if reason:
                    note = f"{note}: {reason}"
                self.jobs.apply_status(job, JobStatus.OPEN, note)

        logger.info("Quote %s %s by customer", quote.quote_number, response.value.lower())
        return self.require_quote(quote_id)

    def accept_quote(self, quote_id: int) -> Quote:
        """Record the customer's acceptance.

        Accepting twice is a no-op. The job moves to IN_PROGRESS.

        Raises:
            NotFoundError: If the quote doesn't exist
            InvalidStateError: If the quote was rejected, has expired or is
                not awaiting a response
        """
        return self._respond(quote_id, CustomerResponse.ACCEPTED)

    def reject_quote(self, quote_id: int, reason: Optional[str] = None) -> Quote:
        """Record the customer's rejection.

        Rejecting twice is a no-op. The job moves back to OPEN.

        Raises:
            NotFoundError: If the quote doesn't exist
            InvalidStateError: If the quote was accepted or is not awaiting a
                response
        """
        return self._respond(quote_id, CustomerResponse.REJECTED, reason)

    def send_reminder(self, quote_id: int) -> ReminderResult:
        """Email a reminder for an unanswered quote.

        Allowed only while the quote is SENT, not yet expired and below the
        configured maximum number of reminders. The counter moves only if the
        email was delivered.

        Raises:
            NotFoundError: If the quote doesn't exist
            InvalidStateError: With the reason when a reminder is not allowed
        """
        quote = self.require_quote(quote_id)
        settings = self.settings.get_settings()
        now = self.clock()

        reason = reminder_block_reason(quote, settings, now)
        if reason is not None:
            raise InvalidStateError(reason)

        job = self.jobs.require_job(quote.job_id)
        customer = self.db.get_customer(quote.customer_id)
        email = dispatch(self.email_sender, quote_reminder_email(quote, job, customer, settings))
        if not email.success:
            return ReminderResult(quote=quote, email=email)

        if not self.db.increment_quote_reminder(quote.id, quote.reminder_count, now):
            raise errors.ConflictError(
                f"Another reminder for quote {quote.quote_number} was recorded at the same time"
            )
        logger.info("Sent reminder %d for quote %s", quote.reminder_count + 1, quote.quote_number)
        return ReminderResult(quote=self.require_quote(quote_id), email=email)

    def list_reminders_due(self) -> list[Quote]:
        """List SENT quotes whose reminder cadence says a reminder is due."""
        settings = self.settings.get_settings()
        now = self.clock()
        return [
            quote
            for quote in self.db.list_quotes(status=QuoteStatus.SENT)
            if quote_reminder_due(quote, settings, now)
        ]

    def expire_quotes(self) -> list[Quote]:
        """Mark every SENT quote past its validity date as EXPIRED.

        Returns:
            The quotes that were expired
        """
        now = self.clock()
        expired = [q for q in self.db.list_quotes(status=QuoteStatus.SENT) if is_expired(q, now)]
        with self.db.transaction():
            for quote in expired:
                self.db.update_quote(quote.id, status=QuoteStatus.EXPIRED)
        for quote in expired:
            logger.info("Quote %s expired", quote.quote_number)
        return [self.require_quote(q.id) for q in expired]

    def convert_to_invoice(self, quote_id: int, due_days: int = DEFAULT_DUE_DAYS) -> Invoice:
        """Turn an accepted quote into a DRAFT invoice mirroring its items.

        Raises:
            NotFoundError: If the quote doesn't exist
            InvalidStateError: If the quote is not ACCEPTED or was already
                converted
            ConflictError: If the job already has an invoice
        """
        quote = self.require_quote(quote_id)
        if quote.converted_to_invoice_id is not None:
            raise InvalidStateError(f"Quote {quote.quote_number} has already been converted to an invoice")
        if quote.status != QuoteStatus.ACCEPTED:
            raise InvalidStateError("Only accepted quotes can be converted to invoices")

        job = self.jobs.require_job(quote.job_id)
        if self.db.get_invoice_for_job(job.id) is not None:
            raise errors.ConflictError(errors.invoice_exists_for_job(job.job_number))

        now = self.clock()
        items = [
            LineItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                item_type=item.item_type,
            )
            for item in quote.items
        ]

        def create(invoice_number: str) -> int:
            with self.db.transaction():
                invoice_id = self.db.create_invoice(
                    invoice_number=invoice_number,
                    job_id=job.id,
                    customer_id=quote.customer_id,
                    status=InvoiceStatus.DRAFT,
                    issue_date=now,
                    due_date=now + timedelta(days=due_days),
                    subtotal=quote.subtotal,
                    tax_rate=quote.tax_rate,
                    tax_amount=quote.tax_amount,
                    discount_amount=quote.discount_amount,
                    total_amount=quote.total_amount,
                    items=items,
                    notes=quote.notes,
                    payment_terms="Net 30",
                )
                self.db.update_quote(
                    quote.id,
                    status=QuoteStatus.CONVERTED_TO_INVOICE,
                    converted_to_invoice_id=invoice_id,
                )
                self.jobs.apply_status(
                    job,
                    JobStatus.IN_PROGRESS,
                    f"Quote {quote.quote_number} converted to invoice {invoice_number}",
                )
            return invoice_id

        invoice_id = self.numbering.allocate(self.numbering.next_invoice_number, create)
        invoice = self.db.get_invoice(invoice_id)
        logger.info("Converted quote %s to invoice %s", quote.quote_number, invoice.invoice_number)
        return invoice
