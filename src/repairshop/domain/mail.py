"""Email dispatch collaborator and customer-facing messages.

Delivery is pluggable through ``EmailSender``; the core only builds messages
and looks at the returned ``EmailResult``.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from html import escape
from typing import Any, Optional

from repairshop.domain.entities import Customer, Invoice, Job, JobStatus, Quote, ShopSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    """File sent along with a message."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class EmailMessage:
    """Outgoing email."""

    to: str
    subject: str
    html: str
    attachments: tuple[Attachment, ...] = ()


@dataclass(frozen=True)
class EmailResult:
    """Outcome reported by an EmailSender."""

    success: bool
    error: Optional[str] = None


class EmailSender(ABC):
    """Abstract email transport."""

    @abstractmethod
    def send(self, message: EmailMessage) -> EmailResult:
        """Send a message and report the outcome. Must not raise."""
        pass


class LoggingEmailSender(EmailSender):
    """Sender that logs messages instead of delivering them."""

    def send(self, message: EmailMessage) -> EmailResult:
        logger.info("Email to %s: %s", message.to, message.subject)
        return EmailResult(success=True)


def dispatch(sender: Optional[EmailSender], message: EmailMessage) -> EmailResult:
    """Send through ``sender`` and log failures.

    A missing sender counts as a failed delivery.
    """
    if sender is None:
        return EmailResult(success=False, error="No email sender configured")
    result = sender.send(message)
    if not result.success:
        logger.warning("Failed to send '%s' to %s: %s", message.subject, message.to, result.error)
    return result


def quote_links(quote: Quote, settings: ShopSettings) -> tuple[str, str]:
    """Return the customer-facing accept and reject links for a quote."""
    base = settings.public_base_url.rstrip("/")
    return f"{base}/quote/accept/{quote.id}", f"{base}/quote/reject/{quote.id}"


def _footer(settings: ShopSettings) -> str:
    lines = [f"<p><strong>{escape(settings.company_name)}</strong></p>"]
    if settings.company_email:
        lines.append(f"<p>Email: {escape(settings.company_email)}</p>")
    if settings.company_phone:
        lines.append(f"<p>Phone: {escape(settings.company_phone)}</p>")
    return "\n".join(lines)


def _quote_summary(quote: Quote, job: Job) -> str:
    return (
        f"<p>Quote Number: {escape(quote.quote_number)}<br>"
        f"Job Number: {escape(job.job_number)}<br>"
        f"Appliance: {escape(job.appliance_brand)} {escape(job.appliance_type)}<br>"
        f"Quote Total: {quote.total_amount:.2f}<br>"
        f"Valid Until: {quote.valid_until:%Y-%m-%d}</p>"
    )


def _document_attachment(filename: str, document: dict[str, Any]) -> Attachment:
    return Attachment(
        filename=filename,
        content=json.dumps(document, indent=2).encode("utf-8"),
        content_type="application/json",
    )


def quote_email(
    quote: Quote,
    job: Job,
    customer: Customer,
    settings: ShopSettings,
    document: Optional[dict[str, Any]] = None,
) -> EmailMessage:
    """Build the email carrying a freshly issued quote, with its document attached if given."""
    accept_link, reject_link = quote_links(quote, settings)
    rows = "".join(
        f"<tr><td>{escape(item.description)}</td><td>{item.quantity}</td>"
        f"<td>{item.unit_price:.2f}</td><td>{item.total_price:.2f}</td></tr>"
        for item in quote.items
    )
    html = (
        f"<p>Dear {escape(customer.full_name)},</p>"
        f"<p>Please find below our quote for the repair of your "
        f"{escape(job.appliance_type)}.</p>"
        f"{_quote_summary(quote, job)}"
        f"<table>{rows}</table>"
        f"<p>Subtotal: {quote.subtotal:.2f}<br>Tax: {quote.tax_amount:.2f}<br>"
        f"Total: {quote.total_amount:.2f}</p>"
        f'<p><a href="{accept_link}">Accept Quote</a> | <a href="{reject_link}">Decline Quote</a></p>'
        f"{_footer(settings)}"
    )
    return EmailMessage(
        to=customer.email,
        subject=f"Quote {quote.quote_number} for your {job.appliance_type} repair",
        html=html,
        attachments=(_document_attachment(f"Quote-{quote.quote_number}.json", document),) if document else (),
    )


def quote_reminder_email(
    quote: Quote, job: Job, customer: Customer, settings: ShopSettings
) -> EmailMessage:
    """Build the reminder for an unanswered quote."""
    accept_link, reject_link = quote_links(quote, settings)
    html = (
        f"<p>Dear {escape(customer.full_name)},</p>"
        f"<p><strong>Friendly Reminder:</strong> We haven't heard back from you regarding the "
        f"quote we sent for your {escape(job.appliance_type)} repair.</p>"
        f"{_quote_summary(quote, job)}"
        f'<p><a href="{accept_link}">Accept Quote</a> | <a href="{reject_link}">Decline Quote</a></p>'
        "<p>If you've already responded, please disregard this reminder.</p>"
        f"{_footer(settings)}"
    )
    return EmailMessage(
        to=customer.email,
        subject=f"Reminder: Quote {quote.quote_number} - Awaiting Your Response",
        html=html,
    )


def status_update_email(
    job: Job, customer: Customer, status: JobStatus, settings: ShopSettings
) -> EmailMessage:
    """Build the notification sent when a job changes status."""
    label = status.value.replace("_", " ").title()
    html = (
        f"<p>Dear {escape(customer.full_name)},</p>"
        f"<p>The status of your {escape(job.appliance_brand)} {escape(job.appliance_type)} "
        f"repair (job {escape(job.job_number)}) is now <strong>{label}</strong>.</p>"
        f"{_footer(settings)}"
    )
    return EmailMessage(to=customer.email, subject=f"Job {job.job_number}: {label}", html=html)


def job_confirmation_email(job: Job, customer: Customer, settings: ShopSettings) -> EmailMessage:
    """Build the confirmation for a publicly submitted job."""
    tracking_url = f"{settings.public_base_url.rstrip('/')}/track-job?jobNumber={job.job_number}"
    html = (
        f"<p>Dear {escape(customer.full_name)},</p>"
        f"<p>We received your {escape(job.appliance_brand)} {escape(job.appliance_type)} "
        f"repair request. Your job number is <strong>{escape(job.job_number)}</strong>.</p>"
        f'<p>Track your repair at <a href="{tracking_url}">{tracking_url}</a>.</p>'
        f"{_footer(settings)}"
    )
    return EmailMessage(
        to=customer.email, subject=f"Repair request received - {job.job_number}", html=html
    )


def invoice_email(
    invoice: Invoice,
    job: Job,
    customer: Customer,
    settings: ShopSettings,
    document: dict[str, Any],
) -> EmailMessage:
    """Build the email carrying an invoice.

    ``document`` is the renderer input for the invoice; it travels as a JSON
    attachment so the customer's copy matches what the shop renders.
    """
    html = (
        f"<p>Dear {escape(customer.full_name)},</p>"
        f"<p>Thank you for choosing {escape(settings.company_name)}. Please find attached "
        f"invoice {escape(invoice.invoice_number)} for the repair of your "
        f"{escape(job.appliance_brand)} {escape(job.appliance_type)}.</p>"
        f"<p>Invoice Number: {escape(invoice.invoice_number)}<br>"
        f"Job Number: {escape(job.job_number)}<br>"
        f"Total: {invoice.total_amount:.2f}<br>"
        f"Amount Paid: {invoice.paid_amount:.2f}<br>"
        f"Balance Due: {invoice.balance_amount:.2f}<br>"
        f"Due Date: {invoice.due_date:%Y-%m-%d}</p>"
        f"{_footer(settings)}"
    )
    attachment = _document_attachment(f"Invoice-{invoice.invoice_number}.json", document)
    return EmailMessage(
        to=customer.email,
        subject=f"Invoice {invoice.invoice_number} from {settings.company_name}",
        html=html,
        attachments=(attachment,),
    )
