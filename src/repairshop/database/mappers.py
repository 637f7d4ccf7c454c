"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic so the domain entities stay
independent of the table layout.
"""

from repairshop.domain import entities as domain
from repairshop.database.models import (
    Customer as ORMCustomer,
    Job as ORMJob,
    JobStatusHistory as ORMJobStatusHistory,
    Quote as ORMQuote,
    QuoteItem as ORMQuoteItem,
    Invoice as ORMInvoice,
    InvoiceItem as ORMInvoiceItem,
    Payment as ORMPayment,
    Settings as ORMSettings,
)


def customer_to_domain(orm_customer: ORMCustomer) -> domain.Customer:
    """Convert SQLAlchemy Customer model to domain Customer entity."""
    return domain.Customer(
        id=orm_customer.id,
        first_name=orm_customer.first_name,
        last_name=orm_customer.last_name,
        email=orm_customer.email,
        phone=orm_customer.phone,
        customer_type=orm_customer.customer_type,
        created_at=orm_customer.created_at,
        address=orm_customer.address,
        city=orm_customer.city,
        state=orm_customer.state,
        zip_code=orm_customer.zip_code,
        notes=orm_customer.notes,
    )


def job_to_domain(orm_job: ORMJob) -> domain.Job:
    """Convert SQLAlchemy Job model to domain Job entity."""
    return domain.Job(
        id=orm_job.id,
        job_number=orm_job.job_number,
        customer_id=orm_job.customer_id,
        appliance_type=orm_job.appliance_type,
        appliance_brand=orm_job.appliance_brand,
        issue_description=orm_job.issue_description,
        priority=orm_job.priority,
        status=orm_job.status,
        created_at=orm_job.created_at,
        model_number=orm_job.model_number,
        serial_number=orm_job.serial_number,
        diagnostic_results=orm_job.diagnostic_results,
        customer_notes=orm_job.customer_notes,
        assigned_technician=orm_job.assigned_technician,
        labor_hours=orm_job.labor_hours,
        estimated_completion=orm_job.estimated_completion,
        actual_completion=orm_job.actual_completion,
        quote_sent_at=orm_job.quote_sent_at,
        last_notification_sent=orm_job.last_notification_sent,
    )


def status_history_to_domain(orm_entry: ORMJobStatusHistory) -> domain.JobStatusHistory:
    """Convert SQLAlchemy JobStatusHistory model to domain entity."""
    return domain.JobStatusHistory(
        id=orm_entry.id,
        job_id=orm_entry.job_id,
        status=orm_entry.status,
        notes=orm_entry.notes,
        created_at=orm_entry.created_at,
    )


def quote_item_to_domain(orm_item: ORMQuoteItem) -> domain.QuoteItem:
    return domain.QuoteItem(
        id=orm_item.id,
        quote_id=orm_item.quote_id,
        description=orm_item.description,
        quantity=orm_item.quantity,
        unit_price=orm_item.unit_price,
        total_price=orm_item.total_price,
        item_type=orm_item.item_type,
        position=orm_item.position,
    )


def quote_to_domain(orm_quote: ORMQuote) -> domain.Quote:
    """Convert SQLAlchemy Quote model (with items) to domain Quote entity."""
    return domain.Quote(
        id=orm_quote.id,
        quote_number=orm_quote.quote_number,
        job_id=orm_quote.job_id,
        customer_id=orm_quote.customer_id,
        status=orm_quote.status,
        issue_date=orm_quote.issue_date,
        valid_until=orm_quote.valid_until,
        subtotal=orm_quote.subtotal,
        tax_rate=orm_quote.tax_rate,
        tax_amount=orm_quote.tax_amount,
        discount_amount=orm_quote.discount_amount,
        total_amount=orm_quote.total_amount,
        reminder_count=orm_quote.reminder_count,
        created_at=orm_quote.created_at,
        notes=orm_quote.notes,
        customer_response=orm_quote.customer_response,
        customer_response_date=orm_quote.customer_response_date,
        rejection_reason=orm_quote.rejection_reason,
        last_reminder_sent=orm_quote.last_reminder_sent,
        converted_to_invoice_id=orm_quote.converted_to_invoice_id,
        items=tuple(quote_item_to_domain(item) for item in orm_quote.items),
    )


def invoice_item_to_domain(orm_item: ORMInvoiceItem) -> domain.InvoiceItem:
    return domain.InvoiceItem(
        id=orm_item.id,
        invoice_id=orm_item.invoice_id,
        description=orm_item.description,
        quantity=orm_item.quantity,
        unit_price=orm_item.unit_price,
        total_price=orm_item.total_price,
        item_type=orm_item.item_type,
        position=orm_item.position,
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model (with items) to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        invoice_number=orm_invoice.invoice_number,
        job_id=orm_invoice.job_id,
        customer_id=orm_invoice.customer_id,
        status=orm_invoice.status,
        issue_date=orm_invoice.issue_date,
        due_date=orm_invoice.due_date,
        subtotal=orm_invoice.subtotal,
        tax_rate=orm_invoice.tax_rate,
        tax_amount=orm_invoice.tax_amount,
        discount_amount=orm_invoice.discount_amount,
        total_amount=orm_invoice.total_amount,
        paid_amount=orm_invoice.paid_amount,
        balance_amount=orm_invoice.balance_amount,
        version=orm_invoice.version,
        created_at=orm_invoice.created_at,
        notes=orm_invoice.notes,
        payment_terms=orm_invoice.payment_terms,
        items=tuple(invoice_item_to_domain(item) for item in orm_invoice.items),
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        invoice_id=orm_payment.invoice_id,
        amount=orm_payment.amount,
        method=orm_payment.method,
        payment_date=orm_payment.payment_date,
        created_at=orm_payment.created_at,
        reference_number=orm_payment.reference_number,
        notes=orm_payment.notes,
    )


def settings_to_domain(orm_settings: ORMSettings) -> domain.ShopSettings:
    """Convert SQLAlchemy Settings row to the ShopSettings value."""
    return domain.ShopSettings(
        tax_rate=orm_settings.tax_rate,
        notification_reminder_days=orm_settings.notification_reminder_days,
        quote_reminder_days=orm_settings.quote_reminder_days,
        quote_reminder_frequency=orm_settings.quote_reminder_frequency,
        quote_max_reminders=orm_settings.quote_max_reminders,
        company_name=orm_settings.company_name,
        company_email=orm_settings.company_email,
        company_phone=orm_settings.company_phone,
        public_base_url=orm_settings.public_base_url,
    )
