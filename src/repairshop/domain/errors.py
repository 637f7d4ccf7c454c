"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. ``kind`` is the machine
    readable category reported alongside the human message.
    """

    kind = "domain"


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    kind = "validation"


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""

    kind = "not_found"


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""

    kind = "conflict"


class InvalidStateError(DomainError):
    """Operation not permitted in the entity's current lifecycle state."""

    kind = "invalid_state"


class ForbiddenError(DomainError):
    """Actor is not allowed to perform the operation."""

    kind = "forbidden"


class DependencyError(InvalidStateError):
    """Operation blocked due to dependent domain data."""

    kind = "dependency"


class DuplicateNumberError(ConflictError):
    """A generated document number collided with an existing row."""


class StaleRecordError(ConflictError):
    """A row changed between read and write."""


def customer_not_found(customer_id: int) -> str:
    """Return message for missing customer."""
    return f"Customer {customer_id} not found"


def job_not_found(job_ref: int | str) -> str:
    """Return message for missing job by ID or number."""
    return f"Job {job_ref} not found"


def quote_not_found(quote_id: int) -> str:
    """Return message for missing quote."""
    return f"Quote {quote_id} not found"


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def invalid_choice(field: str, value: object, choices) -> str:
    """Return message for a value outside an enumeration."""
    allowed = ", ".join(c.value for c in choices)
    return f"Invalid {field} '{value}'. Expected one of: {allowed}"


def invoice_exists_for_job(job_number: str) -> str:
    """Return message when a job already carries an invoice."""
    return f"Invoice already exists for job {job_number}"


def customer_delete_blocked(customer_id: int, job_count: int, invoice_count: int) -> str:
    """Return message when customer has dependent jobs or invoices."""
    parts = []
    if job_count > 0:
        parts.append(f"{job_count} job{'s' if job_count != 1 else ''}")
    if invoice_count > 0:
        parts.append(f"{invoice_count} invoice{'s' if invoice_count != 1 else ''}")
    return f"Cannot delete customer {customer_id}: it has {', '.join(parts)}."


def invoice_delete_blocked(invoice_number: str, payment_count: int) -> str:
    """Return message when an invoice has recorded payments."""
    return (
        f"Cannot delete invoice {invoice_number}: it has "
        f"{payment_count} payment{'s' if payment_count != 1 else ''}"
    )


def parse_choice(enum_cls, value, field: str):
    """Coerce a value into a member of ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        raise ValidationError(invalid_choice(field, value, enum_cls))
