"""Tests that the database layer returns domain models and honours transactions."""

from datetime import datetime
from decimal import Decimal

import pytest

from repairshop.database.factories import create_sqlite_database
from repairshop.domain.entities import (
    Customer,
    Invoice,
    InvoiceStatus,
    Job,
    JobStatus,
    PaymentMethod,
)
from repairshop.domain.errors import StaleRecordError


class TestDatabaseInterface:
    """Tests for the SQLAlchemy implementation of the Database interface."""

    def test_get_customer_returns_domain_model(self, temp_db, sample_customer):
        customer = temp_db.get_customer(sample_customer.id)
        assert isinstance(customer, Customer)
        assert customer.email == "ada@example.com"

    def test_get_job_returns_domain_model(self, temp_db, sample_job):
        job = temp_db.get_job_by_number("JOB-00001")
        assert isinstance(job, Job)
        assert job.status == JobStatus.OPEN

    def test_max_job_number_orders_by_number(self, temp_db, sample_customer):
        for number in ("JOB-00002", "JOB-00010", "JOB-00003"):
            temp_db.create_job(
                job_number=number,
                customer_id=sample_customer.id,
                appliance_type="Oven",
                appliance_brand="AEG",
                issue_description="Cold",
            )
        assert temp_db.get_max_job_number() == "JOB-00010"
        assert temp_db.job_number_exists("JOB-00003")
        assert not temp_db.job_number_exists("JOB-00004")

    def test_transaction_rolls_back_on_error(self, temp_db, sample_job):
        with pytest.raises(RuntimeError):
            with temp_db.transaction():
                temp_db.update_job(sample_job.id, status=JobStatus.CLOSED)
                temp_db.add_status_history(sample_job.id, JobStatus.CLOSED, "Closing", datetime(2024, 3, 1))
                raise RuntimeError("boom")

        assert temp_db.get_job(sample_job.id).status == JobStatus.OPEN
        assert len(temp_db.list_status_history(sample_job.id)) == 1

    def test_nested_transaction_joins_outer(self, temp_db, sample_job):
        with temp_db.transaction():
            with temp_db.transaction():
                temp_db.update_job(sample_job.id, status=JobStatus.IN_PROGRESS)
            temp_db.add_status_history(sample_job.id, JobStatus.IN_PROGRESS, None, datetime(2024, 3, 1))

        assert temp_db.get_job(sample_job.id).status == JobStatus.IN_PROGRESS
        assert len(temp_db.list_status_history(sample_job.id)) == 2

    def test_update_rejects_unknown_fields(self, temp_db, sample_job):
        with pytest.raises(ValueError, match="job_number"):
            temp_db.update_job(sample_job.id, job_number="JOB-99999")

    def test_record_payment_with_stale_version(self, temp_db, invoice_service, sample_job, sample_items):
        invoice = invoice_service.create_invoice(sample_job.id, sample_items)
        assert isinstance(invoice, Invoice)

        with pytest.raises(StaleRecordError):
            temp_db.record_payment(
                invoice_id=invoice.id,
                expected_version=invoice.version + 1,
                paid_amount=Decimal("10.00"),
                balance_amount=Decimal("90.00"),
                status=InvoiceStatus.PARTIALLY_PAID,
                amount=Decimal("10.00"),
                method=PaymentMethod.CASH,
                payment_date=datetime(2024, 3, 1),
            )

        assert temp_db.get_invoice(invoice.id).paid_amount == Decimal("0.00")
        assert temp_db.list_payments(invoice.id) == []

    def test_increment_quote_reminder_compare_and_swap(self, temp_db, quote_service, sample_job, sample_items):
        quote = quote_service.issue_quote(sample_job.id, sample_items).quote
        sent_at = datetime(2024, 3, 2)

        assert temp_db.increment_quote_reminder(quote.id, 0, sent_at) is True
        assert temp_db.increment_quote_reminder(quote.id, 0, sent_at) is False
        assert temp_db.get_quote(quote.id).reminder_count == 1


class TestCreateSqliteDatabase:
    """Tests for choosing the database file."""

    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("REPAIRSHOP_DB_PATH", str(tmp_path / "env.db"))
        db = create_sqlite_database(str(tmp_path / "explicit.db"))
        assert db.database_url == f"sqlite:///{tmp_path / 'explicit.db'}"

    def test_environment_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("REPAIRSHOP_DB_PATH", str(tmp_path / "env.db"))
        db = create_sqlite_database()
        assert db.database_url == f"sqlite:///{tmp_path / 'env.db'}"
