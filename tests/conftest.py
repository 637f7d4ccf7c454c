"""Shared pytest fixtures for repairshop tests."""

import tempfile
import os
from datetime import datetime, timedelta
from decimal import Decimal
import pytest

from repairshop.database.factories import create_sqlite_database
from repairshop.domain.customer import CustomerService
from repairshop.domain.entities import LineItem
from repairshop.domain.intake import IntakeService
from repairshop.domain.invoice import InvoiceService
from repairshop.domain.job import JobService
from repairshop.domain.mail import EmailMessage, EmailResult, EmailSender
from repairshop.domain.quote import QuoteService
from repairshop.domain.settings import SettingsService


class FakeClock:
    """Clock returning a settable time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingEmailSender(EmailSender):
    """Email sender that keeps every message and can be told to fail."""

    def __init__(self):
        self.sent: list[EmailMessage] = []
        self.fail = False

    def send(self, message: EmailMessage) -> EmailResult:
        if self.fail:
            return EmailResult(success=False, error="SMTP unavailable")
        self.sent.append(message)
        return EmailResult(success=True)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """A fixed clock starting at 2024-03-01 09:00 UTC."""
    return FakeClock(datetime(2024, 3, 1, 9, 0, 0))


@pytest.fixture
def email_sender():
    """An email sender recording outgoing messages."""
    return RecordingEmailSender()


@pytest.fixture
def customer_service(temp_db):
    """Create a CustomerService with a temporary database."""
    return CustomerService(temp_db)


@pytest.fixture
def settings_service(temp_db):
    """Create a SettingsService with a temporary database."""
    return SettingsService(temp_db)


@pytest.fixture
def job_service(temp_db, email_sender, clock):
    """Create a JobService with a temporary database and fixed clock."""
    return JobService(temp_db, email_sender=email_sender, clock=clock)


@pytest.fixture
def quote_service(temp_db, email_sender, clock):
    """Create a QuoteService with a temporary database and fixed clock."""
    return QuoteService(temp_db, email_sender=email_sender, clock=clock)


@pytest.fixture
def invoice_service(temp_db, email_sender, clock):
    """Create an InvoiceService with a temporary database and fixed clock."""
    return InvoiceService(temp_db, email_sender=email_sender, clock=clock)


@pytest.fixture
def intake_service(temp_db, email_sender, clock):
    """Create an IntakeService with a temporary database and fixed clock."""
    return IntakeService(temp_db, email_sender=email_sender, clock=clock)


@pytest.fixture
def sample_customer(customer_service):
    """Create a sample customer for testing."""
    customer_id = customer_service.create_customer(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        phone="555-0100",
        city="London",
    )
    return customer_service.get_customer(customer_id)


@pytest.fixture
def sample_job(job_service, sample_customer):
    """Create a sample job for testing."""
    job_id = job_service.create_job(
        customer_id=sample_customer.id,
        appliance_type="Dishwasher",
        appliance_brand="Bosch",
        issue_description="Does not drain after the cycle ends",
    )
    return job_service.get_job(job_id)


@pytest.fixture
def sample_items():
    """Two line items totalling 100.00."""
    return [
        LineItem(description="Drain pump", quantity=Decimal("1"), unit_price=Decimal("70.00")),
        LineItem(description="Labor", quantity=Decimal("0.5"), unit_price=Decimal("60.00")),
    ]


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
