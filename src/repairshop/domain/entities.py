"""Domain model entities for repairshop.

These are pure data classes representing business concepts, independent of
database schema. Enumerations are string valued so they persist and print as
their names.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class CustomerType(str, Enum):
    RESIDENTIAL = "RESIDENTIAL"
    COMMERCIAL = "COMMERCIAL"


class JobPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class JobStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    AWAITING_PARTS = "AWAITING_PARTS"
    AWAITING_CUSTOMER_APPROVAL = "AWAITING_CUSTOMER_APPROVAL"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


TERMINAL_JOB_STATUSES = frozenset({JobStatus.CLOSED, JobStatus.CANCELLED})


class QuoteStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CONVERTED_TO_INVOICE = "CONVERTED_TO_INVOICE"


class CustomerResponse(str, Enum):
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHECK = "CHECK"
    OTHER = "OTHER"


class ItemType(str, Enum):
    PART = "PART"
    LABOR = "LABOR"
    SERVICE_FEE = "SERVICE_FEE"
    TAX = "TAX"
    DISCOUNT = "DISCOUNT"


@dataclass(frozen=True)
class Customer:
    """Customer domain entity."""

    id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    customer_type: CustomerType
    created_at: datetime
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    notes: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class Job:
    """Repair job domain entity."""

    id: int
    job_number: str
    customer_id: int
    appliance_type: str
    appliance_brand: str
    issue_description: str
    priority: JobPriority
    status: JobStatus
    created_at: datetime
    model_number: Optional[str] = None
    serial_number: Optional[str] = None
    diagnostic_results: Optional[str] = None
    customer_notes: Optional[str] = None
    assigned_technician: Optional[str] = None
    labor_hours: Optional[Decimal] = None
    estimated_completion: Optional[datetime] = None
    actual_completion: Optional[datetime] = None
    quote_sent_at: Optional[datetime] = None
    last_notification_sent: Optional[datetime] = None


@dataclass(frozen=True)
class JobStatusHistory:
    """One append-only status history row."""

    id: int
    job_id: int
    status: JobStatus
    notes: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class LineItem:
    """Priced line supplied when issuing a quote or creating an invoice."""

    description: str
    quantity: Decimal
    unit_price: Decimal
    item_type: ItemType = ItemType.PART

    @property
    def total_price(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class QuoteItem:
    """Stored quote line item."""

    id: int
    quote_id: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    item_type: ItemType
    position: int


@dataclass(frozen=True)
class Quote:
    """Quote domain entity."""

    id: int
    quote_number: str
    job_id: int
    customer_id: int
    status: QuoteStatus
    issue_date: datetime
    valid_until: datetime
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    reminder_count: int
    created_at: datetime
    notes: Optional[str] = None
    customer_response: Optional[CustomerResponse] = None
    customer_response_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    last_reminder_sent: Optional[datetime] = None
    converted_to_invoice_id: Optional[int] = None
    items: tuple[QuoteItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class InvoiceItem:
    """Stored invoice line item."""

    id: int
    invoice_id: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    item_type: ItemType
    position: int


@dataclass(frozen=True)
class Payment:
    """Immutable payment applied to one invoice."""

    id: int
    invoice_id: int
    amount: Decimal
    method: PaymentMethod
    payment_date: datetime
    created_at: datetime
    reference_number: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Invoice:
    """Invoice domain entity."""

    id: int
    invoice_number: str
    job_id: int
    customer_id: int
    status: InvoiceStatus
    issue_date: datetime
    due_date: datetime
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    version: int
    created_at: datetime
    notes: Optional[str] = None
    payment_terms: Optional[str] = None
    items: tuple[InvoiceItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ShopSettings:
    """Business configuration read at call time."""

    tax_rate: Decimal = Decimal("0")
    notification_reminder_days: int = 3
    quote_reminder_days: int = 3
    quote_reminder_frequency: int = 3
    quote_max_reminders: int = 3
    company_name: str = "Repair Shop"
    company_email: Optional[str] = None
    company_phone: Optional[str] = None
    public_base_url: str = "http://localhost:3000"
