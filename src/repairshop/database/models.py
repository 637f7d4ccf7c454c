"""SQLAlchemy models for repairshop database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Numeric,
    Enum as SAEnum,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

from repairshop.domain.entities import (
    CustomerResponse,
    CustomerType,
    InvoiceStatus,
    ItemType,
    JobPriority,
    JobStatus,
    PaymentMethod,
    QuoteStatus,
)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Customer(Base):
    """Customer model."""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=False, index=True)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    zip_code = Column(String, nullable=True)
    customer_type = Column(SAEnum(CustomerType), default=CustomerType.RESIDENTIAL, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    jobs = relationship("Job", back_populates="customer")
    invoices = relationship("Invoice", back_populates="customer")


class Job(Base):
    """Repair job model."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True)
    job_number = Column(String, unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    appliance_type = Column(String, nullable=False)
    appliance_brand = Column(String, nullable=False)
    model_number = Column(String, nullable=True)
    serial_number = Column(String, nullable=True)
    issue_description = Column(Text, nullable=False)
    diagnostic_results = Column(Text, nullable=True)
    customer_notes = Column(Text, nullable=True)
    priority = Column(SAEnum(JobPriority), default=JobPriority.MEDIUM, nullable=False)
    status = Column(SAEnum(JobStatus), default=JobStatus.OPEN, nullable=False)
    assigned_technician = Column(String, nullable=True)
    labor_hours = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    estimated_completion = Column(DateTime, nullable=True)
    actual_completion = Column(DateTime, nullable=True)
    quote_sent_at = Column(DateTime, nullable=True)
    last_notification_sent = Column(DateTime, nullable=True)

    # Relationships
    customer = relationship("Customer", back_populates="jobs")
    status_history = relationship(
        "JobStatusHistory",
        back_populates="job",
        order_by="JobStatusHistory.id",
        cascade="all, delete-orphan",
    )
    quotes = relationship("Quote", back_populates="job")
    invoice = relationship("Invoice", back_populates="job", uselist=False)


class JobStatusHistory(Base):
    """Append-only job status history model."""

    __tablename__ = "job_status_history"

    id = Column(Integer, primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    status = Column(SAEnum(JobStatus), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    job = relationship("Job", back_populates="status_history")


class Quote(Base):
    """Quote model."""

    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True)
    quote_number = Column(String, unique=True, nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    status = Column(SAEnum(QuoteStatus), default=QuoteStatus.DRAFT, nullable=False)
    issue_date = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), default=0, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    customer_response = Column(SAEnum(CustomerResponse), nullable=True)
    customer_response_date = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    reminder_count = Column(Integer, default=0, nullable=False)
    last_reminder_sent = Column(DateTime, nullable=True)
    converted_to_invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    job = relationship("Job", back_populates="quotes")
    items = relationship(
        "QuoteItem", back_populates="quote", order_by="QuoteItem.position", cascade="all, delete-orphan"
    )


class QuoteItem(Base):
    """Quote line item model."""

    __tablename__ = "quote_items"

    id = Column(Integer, primary_key=True)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False)
    description = Column(String, nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    item_type = Column(SAEnum(ItemType), default=ItemType.PART, nullable=False)
    position = Column(Integer, nullable=False)

    # Relationships
    quote = relationship("Quote", back_populates="items")


class Invoice(Base):
    """Invoice model.

    ``version`` is bumped on every write and used as a compare-and-swap guard
    when payments are applied.
    """

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String, unique=True, nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id"), unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    status = Column(SAEnum(InvoiceStatus), default=InvoiceStatus.DRAFT, nullable=False)
    issue_date = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), default=0, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    paid_amount = Column(Numeric(10, 2), default=0, nullable=False)
    balance_amount = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    payment_terms = Column(String, nullable=True)
    version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    job = relationship("Job", back_populates="invoice")
    customer = relationship("Customer", back_populates="invoices")
    items = relationship(
        "InvoiceItem", back_populates="invoice", order_by="InvoiceItem.position", cascade="all, delete-orphan"
    )
    payments = relationship("Payment", back_populates="invoice", order_by="Payment.id")


class InvoiceItem(Base):
    """Invoice line item model."""

    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    description = Column(String, nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    item_type = Column(SAEnum(ItemType), default=ItemType.PART, nullable=False)
    position = Column(Integer, nullable=False)

    # Relationships
    invoice = relationship("Invoice", back_populates="items")


class Payment(Base):
    """Payment model. Rows are never updated or deleted."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(SAEnum(PaymentMethod), nullable=False)
    payment_date = Column(DateTime, nullable=False)
    reference_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    invoice = relationship("Invoice", back_populates="payments")


class Settings(Base):
    """Single-row shop settings model."""

    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    tax_rate = Column(Numeric(5, 2), default=0, nullable=False)
    notification_reminder_days = Column(Integer, default=3, nullable=False)
    quote_reminder_days = Column(Integer, default=3, nullable=False)
    quote_reminder_frequency = Column(Integer, default=3, nullable=False)
    quote_max_reminders = Column(Integer, default=3, nullable=False)
    company_name = Column(String, default="Repair Shop", nullable=False)
    company_email = Column(String, nullable=True)
    company_phone = Column(String, nullable=True)
    public_base_url = Column(String, default="http://localhost:3000", nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {"timeout": 30} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
