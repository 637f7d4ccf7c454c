"""Invoice domain service: invoice creation, editing and payment application."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Optional

from repairshop.database.base import Database
from repairshop.domain import errors
from repairshop.domain.documents import invoice_document
from repairshop.domain.entities import Invoice, InvoiceStatus, LineItem, Payment, PaymentMethod
from repairshop.domain.errors import InvalidStateError, StaleRecordError, ValidationError
from repairshop.domain.ledger import ZERO, apply_payment_amount, compute_totals, payment_rejection
from repairshop.domain.mail import EmailResult, EmailSender, dispatch, invoice_email
from repairshop.domain.numbering import NumberingService
from repairshop.domain.settings import SettingsService
from repairshop.utils.amount_parser import to_money
from repairshop.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 30
MAX_PAYMENT_ATTEMPTS = 10
DERIVED_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.PARTIALLY_PAID})
UNPAID_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.SENT})
OVERDUE_CANDIDATES = (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID)
CLOSED_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED})


@dataclass(frozen=True)
class OutstandingSummary:
    """Open balances across all unpaid, uncancelled invoices."""

    invoice_count: int = 0
    total_balance: Decimal = ZERO
    by_status: dict[InvoiceStatus, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class InvoiceSendResult:
    """Invoice after an email attempt plus the email outcome."""

    invoice: Invoice
    email: EmailResult


class InvoiceService:
    """Service for managing invoices and applying payments to them."""

    def __init__(
        self,
        db: Database,
        email_sender: Optional[EmailSender] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize invoice service.

        Args:
            db: Database instance
            email_sender: Transport for invoice emails (optional)
            clock: Returns the current naive UTC time
        """
        self.db = db
        self.email_sender = email_sender
        self.clock = clock
        self.numbering = NumberingService(db)
        self.settings = SettingsService(db)

    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID."""
        return self.db.get_invoice(invoice_id)

    def require_invoice(self, invoice_id: int) -> Invoice:
        """Get invoice by ID or raise NotFoundError."""
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise errors.NotFoundError(errors.invoice_not_found(invoice_id))
        return invoice

    def list_invoices(
        self, status: Optional[InvoiceStatus | str] = None, customer_id: Optional[int] = None
    ) -> list[Invoice]:
        """List invoices, newest first."""
        if status is not None:
            status = errors.parse_choice(InvoiceStatus, status, "invoice status")
        return self.db.list_invoices(status=status, customer_id=customer_id)

    def create_invoice(
        self,
        job_id: int,
        items: Iterable[LineItem],
        due_date: Optional[datetime] = None,
        tax_rate: Optional[Decimal] = None,
        discount_amount: Decimal = ZERO,
        notes: Optional[str] = None,
        payment_terms: Optional[str] = None,
    ) -> Invoice:
        """Create a DRAFT invoice for a job.

        Args:
            job_id: Job being billed
            items: Priced line items
            due_date: Payment due date (defaults to 30 days from now)
            tax_rate: Percentage (defaults to the configured tax rate)
            discount_amount: Amount subtracted after tax
            notes: Optional notes printed on the invoice
            payment_terms: Free-text terms, e.g. "Net 30"

        Raises:
            NotFoundError: If the job doesn't exist
            ValidationError: If items, tax rate or discount are invalid
            ConflictError: If the job already has an invoice
        """
        job = self.db.get_job(job_id)
        if job is None:
            raise errors.NotFoundError(errors.job_not_found(job_id))
        if self.db.get_invoice_for_job(job_id) is not None:
            raise errors.ConflictError(errors.invoice_exists_for_job(job.job_number))

        items = list(items)
        if tax_rate is None:
            tax_rate = self.settings.get_settings().tax_rate
        totals = compute_totals(items, Decimal(tax_rate), Decimal(discount_amount))
        now = self.clock()
        if due_date is None:
            due_date = now + timedelta(days=DEFAULT_DUE_DAYS)

        def create(invoice_number: str) -> int:
            return self.db.create_invoice(
                invoice_number=invoice_number,
                job_id=job.id,
                customer_id=job.customer_id,
                status=InvoiceStatus.DRAFT,
                issue_date=now,
                due_date=due_date,
                subtotal=totals.subtotal,
                tax_rate=totals.tax_rate,
                tax_amount=totals.tax_amount,
                discount_amount=totals.discount_amount,
                total_amount=totals.total_amount,
                items=items,
                notes=notes,
                payment_terms=payment_terms,
            )

        invoice_id = self.numbering.allocate(self.numbering.next_invoice_number, create)
        invoice = self.require_invoice(invoice_id)
        logger.info(
            "Created invoice %s for %s (total %s)", invoice.invoice_number, job.job_number, invoice.total_amount
        )
        return invoice

    def apply_payment(
        self,
        invoice_id: int,
        amount: Decimal | str,
        method: PaymentMethod | str,
        payment_date: Optional[datetime] = None,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Invoice:
        """Record a payment against an invoice.

        The invoice row is updated with a compare-and-swap on its version in
        the same transaction as the payment insert. When another writer got
        there first the invoice is re-read and the payment validated again,
        so concurrent payments can never take the balance below zero.

        Returns:
            The invoice with its new paid amount, balance and status

        Raises:
            NotFoundError: If the invoice doesn't exist
            InvalidStateError: If the invoice is cancelled
            ValidationError: If the amount is not positive or exceeds the balance
            ConflictError: If the invoice kept changing on every attempt
        """
        try:
            amount = to_money(amount)
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid payment amount '{amount}'")
        method = errors.parse_choice(PaymentMethod, method, "payment method")
        if payment_date is None:
            payment_date = self.clock()

        for attempt in range(1, MAX_PAYMENT_ATTEMPTS + 1):
            invoice = self.require_invoice(invoice_id)
            reason = payment_rejection(amount, invoice.balance_amount, invoice.status)
            if reason is not None:
                if invoice.status == InvoiceStatus.CANCELLED:
                    raise InvalidStateError(reason)
                raise ValidationError(reason)

            outcome = apply_payment_amount(
                invoice.total_amount, invoice.paid_amount, amount, invoice.status
            )
            try:
                self.db.record_payment(
                    invoice_id=invoice.id,
                    expected_version=invoice.version,
                    paid_amount=outcome.paid_amount,
                    balance_amount=outcome.balance_amount,
                    status=outcome.status,
                    amount=amount,
                    method=method,
                    payment_date=payment_date,
                    reference_number=reference_number,
                    notes=notes,
                )
            except StaleRecordError:
                logger.warning(
                    "Invoice %s changed while paying (attempt %d of %d)",
                    invoice.invoice_number,
                    attempt,
                    MAX_PAYMENT_ATTEMPTS,
                )
                continue

            logger.info(
                "Applied %s %s to invoice %s; balance %s (%s)",
                amount,
                method.value,
                invoice.invoice_number,
                outcome.balance_amount,
                outcome.status.value,
            )
            return self.require_invoice(invoice_id)

        raise errors.ConflictError(
            f"Invoice {invoice_id} kept changing; payment not recorded after {MAX_PAYMENT_ATTEMPTS} attempts"
        )

    def update_invoice(self, invoice_id: int, **changes: Any) -> Invoice:
        """Update invoice status, due date, notes or payment terms.

        A paid invoice may only be cancelled. PAID and PARTIALLY_PAID follow
        from payments and cannot be set directly, and an invoice with payments
        cannot return to DRAFT or SENT.

        Raises:
            NotFoundError: If the invoice doesn't exist
            ValidationError: If a field or status is not editable
            InvalidStateError: If the invoice is paid, or has payments and
                would return to DRAFT or SENT
        """
        invoice = self.require_invoice(invoice_id)
        changes = {name: value for name, value in changes.items() if value is not None}
        unknown = set(changes) - {"status", "due_date", "notes", "payment_terms"}
        if unknown:
            raise ValidationError(f"Cannot edit invoice field(s): {', '.join(sorted(unknown))}")

        if "status" in changes:
            changes["status"] = errors.parse_choice(InvoiceStatus, changes["status"], "invoice status")
            if changes["status"] in DERIVED_STATUSES:
                raise ValidationError(
                    f"Status {changes['status'].value} is set by recording payments"
                )
            if changes["status"] in UNPAID_STATUSES and invoice.paid_amount > 0:
                raise InvalidStateError(
                    f"Invoice {invoice.invoice_number} has payments and cannot go back to {changes['status'].value}"
                )
        if invoice.status == InvoiceStatus.PAID and changes.get("status") != InvoiceStatus.CANCELLED:
            raise InvalidStateError("Cannot edit a paid invoice")

        if changes:
            self.db.update_invoice(invoice_id, **changes)
            logger.info("Updated invoice %s: %s", invoice.invoice_number, ", ".join(sorted(changes)))
        return self.require_invoice(invoice_id)

    def delete_invoice(self, invoice_id: int) -> None:
        """Delete an invoice that has no payments.

        Raises:
            NotFoundError: If the invoice doesn't exist
            DependencyError: If any payment was recorded against it
        """
        invoice = self.require_invoice(invoice_id)
        payment_count = self.db.get_invoice_payment_count(invoice_id)
        if payment_count > 0:
            raise errors.DependencyError(
                errors.invoice_delete_blocked(invoice.invoice_number, payment_count)
            )
        self.db.delete_invoice(invoice_id)
        logger.info("Deleted invoice %s", invoice.invoice_number)

    def send_invoice(self, invoice_id: int) -> InvoiceSendResult:
        """Email an invoice to the customer with its document attached.

        A DRAFT invoice becomes SENT once the email is delivered. A failed
        delivery is reported in the result and leaves the invoice untouched.

        Raises:
            NotFoundError: If the invoice doesn't exist
            InvalidStateError: If the invoice is cancelled
        """
        invoice = self.require_invoice(invoice_id)
        if invoice.status == InvoiceStatus.CANCELLED:
            raise InvalidStateError(f"Cannot email cancelled invoice {invoice.invoice_number}")

        settings = self.settings.get_settings()
        job = self.db.get_job(invoice.job_id)
        customer = self.db.get_customer(invoice.customer_id)
        document = invoice_document(invoice, job, customer, self.db.list_payments(invoice.id), settings)
        email = dispatch(self.email_sender, invoice_email(invoice, job, customer, settings, document))
        if not email.success:
            return InvoiceSendResult(invoice=invoice, email=email)

        logger.info("Emailed invoice %s to %s", invoice.invoice_number, customer.email)
        if invoice.status == InvoiceStatus.DRAFT:
            self.db.update_invoice(invoice.id, status=InvoiceStatus.SENT)
        return InvoiceSendResult(invoice=self.require_invoice(invoice_id), email=email)

    def list_payments(self, invoice_id: int) -> list[Payment]:
        """List payments for an invoice, newest first."""
        self.require_invoice(invoice_id)
        return self.db.list_payments(invoice_id)

    def mark_overdue_invoices(self) -> list[Invoice]:
        """Mark sent or partially paid invoices past their due date as OVERDUE.

        Returns:
            The invoices that changed
        """
        now = self.clock()
        marked = []
        for status in OVERDUE_CANDIDATES:
            for invoice in self.db.list_invoices(status=status):
                if invoice.due_date < now and invoice.balance_amount > 0:
                    self.db.update_invoice(invoice.id, status=InvoiceStatus.OVERDUE)
                    logger.info("Invoice %s is overdue (due %s)", invoice.invoice_number, invoice.due_date)
                    marked.append(invoice.id)
        return [self.require_invoice(invoice_id) for invoice_id in marked]

    def get_outstanding_summary(self) -> OutstandingSummary:
        """Sum open balances by status."""
        by_status: dict[InvoiceStatus, Decimal] = {}
        count = 0
        for invoice in self.db.list_invoices():
            if invoice.status in CLOSED_STATUSES or invoice.balance_amount <= 0:
                continue
            count += 1
            by_status[invoice.status] = by_status.get(invoice.status, ZERO) + invoice.balance_amount
        return OutstandingSummary(
            invoice_count=count,
            total_balance=sum(by_status.values(), ZERO),
            by_status=by_status,
        )
