"""Data handed to an external document renderer.

Rendering (PDF, HTML) happens elsewhere; these functions only build the
plain-data shape a renderer consumes.
"""

from typing import Any

from repairshop.domain.entities import Customer, Invoice, Job, Payment, Quote, ShopSettings


def _company(settings: ShopSettings) -> dict[str, Any]:
    return {
        "name": settings.company_name,
        "email": settings.company_email,
        "phone": settings.company_phone,
    }


def _customer(customer: Customer) -> dict[str, Any]:
    return {
        "name": customer.full_name,
        "email": customer.email,
        "phone": customer.phone,
        "address": customer.address,
        "city": customer.city,
        "state": customer.state,
        "zip_code": customer.zip_code,
    }


def _job(job: Job) -> dict[str, Any]:
    return {
        "job_number": job.job_number,
        "appliance_type": job.appliance_type,
        "appliance_brand": job.appliance_brand,
        "model_number": job.model_number,
        "issue_description": job.issue_description,
        "diagnostic_results": job.diagnostic_results,
    }


def _items(items) -> list[dict[str, Any]]:
    return [
        {
            "description": item.description,
            "quantity": str(item.quantity),
            "unit_price": str(item.unit_price),
            "total_price": str(item.total_price),
            "item_type": item.item_type.value,
        }
        for item in items
    ]


def quote_document(
    quote: Quote, job: Job, customer: Customer, settings: ShopSettings
) -> dict[str, Any]:
    """Build the renderer input for a quote."""
    return {
        "quote_number": quote.quote_number,
        "status": quote.status.value,
        "issue_date": quote.issue_date.isoformat(),
        "valid_until": quote.valid_until.isoformat(),
        "company": _company(settings),
        "customer": _customer(customer),
        "job": _job(job),
        "items": _items(quote.items),
        "subtotal": str(quote.subtotal),
        "tax_rate": str(quote.tax_rate),
        "tax_amount": str(quote.tax_amount),
        "discount_amount": str(quote.discount_amount),
        "total_amount": str(quote.total_amount),
        "notes": quote.notes,
    }


def invoice_document(
    invoice: Invoice,
    job: Job,
    customer: Customer,
    payments: list[Payment],
    settings: ShopSettings,
) -> dict[str, Any]:
    """Build the renderer input for an invoice, including its payments."""
    return {
        "invoice_number": invoice.invoice_number,
        "status": invoice.status.value,
        "issue_date": invoice.issue_date.isoformat(),
        "due_date": invoice.due_date.isoformat(),
        "company": _company(settings),
        "customer": _customer(customer),
        "job": _job(job),
        "items": _items(invoice.items),
        "payments": [
            {
                "amount": str(p.amount),
                "method": p.method.value,
                "payment_date": p.payment_date.isoformat(),
                "reference_number": p.reference_number,
            }
            for p in payments
        ],
        "subtotal": str(invoice.subtotal),
        "tax_rate": str(invoice.tax_rate),
        "tax_amount": str(invoice.tax_amount),
        "discount_amount": str(invoice.discount_amount),
        "total_amount": str(invoice.total_amount),
        "paid_amount": str(invoice.paid_amount),
        "balance_amount": str(invoice.balance_amount),
        "payment_terms": invoice.payment_terms,
        "notes": invoice.notes,
    }
