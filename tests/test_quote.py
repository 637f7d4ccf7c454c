"""Tests for quote lifecycle."""

from decimal import Decimal

import pytest

from repairshop.cli.main import cli
from repairshop.domain.entities import (
    CustomerResponse,
    InvoiceStatus,
    JobStatus,
    LineItem,
    QuoteStatus,
)
from repairshop.domain.errors import ConflictError, InvalidStateError, ValidationError


@pytest.fixture
def issued_quote(quote_service, sample_job, sample_items):
    """A quote issued for the sample job."""
    return quote_service.issue_quote(sample_job.id, sample_items, tax_rate=Decimal("15")).quote


def test_issue_quote(quote_service, job_service, sample_job, sample_items, email_sender, clock):
    result = quote_service.issue_quote(sample_job.id, sample_items, tax_rate=Decimal("15"), valid_days=14)
    quote = result.quote

    assert quote.quote_number == "JOB-00001-Q"
    assert quote.status == QuoteStatus.SENT
    assert quote.subtotal == Decimal("100.00")
    assert quote.total_amount == Decimal("115.00")
    assert quote.valid_until == clock.now.replace(day=15)
    assert [i.description for i in quote.items] == ["Drain pump", "Labor"]

    job = job_service.get_job(sample_job.id)
    assert job.status == JobStatus.AWAITING_CUSTOMER_APPROVAL
    assert job.quote_sent_at == clock.now
    assert job.last_notification_sent == clock.now
    assert job_service.get_status_history(sample_job.id)[-1].notes == "Quote JOB-00001-Q sent to customer"

    assert result.email.success
    assert "/quote/accept/" in email_sender.sent[0].html


def test_issue_quote_uses_settings_tax_rate(quote_service, settings_service, sample_job, sample_items):
    settings_service.update_settings(tax_rate="10")
    quote = quote_service.issue_quote(sample_job.id, sample_items).quote
    assert quote.tax_amount == Decimal("10.00")


def test_issue_quote_validation(quote_service, sample_job):
    with pytest.raises(ValidationError, match="At least one item"):
        quote_service.issue_quote(sample_job.id, [])
    with pytest.raises(ValidationError, match="valid for at least 1 day"):
        quote_service.issue_quote(
            sample_job.id, [LineItem("Part", Decimal("1"), Decimal("1"))], valid_days=0
        )


def test_issue_quote_email_failure_keeps_quote(quote_service, sample_job, sample_items, email_sender):
    email_sender.fail = True
    result = quote_service.issue_quote(sample_job.id, sample_items)

    assert result.email.success is False
    assert quote_service.get_quote(result.quote.id).status == QuoteStatus.SENT


def test_second_open_quote_is_refused(quote_service, issued_quote, sample_items):
    with pytest.raises(InvalidStateError, match="already has an open quote"):
        quote_service.issue_quote(issued_quote.job_id, sample_items)


def test_requote_after_rejection_gets_next_suffix(quote_service, issued_quote, sample_items):
    quote_service.reject_quote(issued_quote.id)
    second = quote_service.issue_quote(issued_quote.job_id, sample_items).quote
    assert second.quote_number == "JOB-00001-Q2"


def test_accept_quote(quote_service, job_service, issued_quote, clock):
    quote = quote_service.accept_quote(issued_quote.id)

    assert quote.status == QuoteStatus.ACCEPTED
    assert quote.customer_response == CustomerResponse.ACCEPTED
    assert quote.customer_response_date == clock.now
    job = job_service.get_job(quote.job_id)
    assert job.status == JobStatus.IN_PROGRESS
    assert job_service.get_status_history(job.id)[-1].notes == "Quote JOB-00001-Q accepted by customer"


def test_accept_twice_is_a_no_op(quote_service, job_service, issued_quote):
    quote_service.accept_quote(issued_quote.id)
    history_length = len(job_service.get_status_history(issued_quote.job_id))

    again = quote_service.accept_quote(issued_quote.id)

    assert again.status == QuoteStatus.ACCEPTED
    assert len(job_service.get_status_history(issued_quote.job_id)) == history_length


def test_conflicting_response_is_refused(quote_service, issued_quote):
    quote_service.accept_quote(issued_quote.id)
    with pytest.raises(InvalidStateError, match="already been accepted"):
        quote_service.reject_quote(issued_quote.id)


def test_reject_quote(quote_service, job_service, issued_quote):
    quote = quote_service.reject_quote(issued_quote.id, reason="Too expensive")

    assert quote.status == QuoteStatus.REJECTED
    assert quote.rejection_reason == "Too expensive"
    job = job_service.get_job(quote.job_id)
    assert job.status == JobStatus.OPEN
    assert job_service.get_status_history(job.id)[-1].notes == (
        "Quote JOB-00001-Q rejected by customer: Too expensive"
    )


def test_accept_expired_quote_is_refused(quote_service, issued_quote, clock):
    clock.advance(days=31)
    with pytest.raises(InvalidStateError, match="expired"):
        quote_service.accept_quote(issued_quote.id)
    assert quote_service.get_quote(issued_quote.id).status == QuoteStatus.SENT


def test_expire_quotes(quote_service, issued_quote, clock):
    assert quote_service.expire_quotes() == []

    clock.advance(days=30)
    expired = quote_service.expire_quotes()

    assert [q.id for q in expired] == [issued_quote.id]
    assert expired[0].status == QuoteStatus.EXPIRED
    with pytest.raises(InvalidStateError):
        quote_service.reject_quote(issued_quote.id)


def test_send_reminder(quote_service, issued_quote, email_sender, clock):
    clock.advance(days=3)
    result = quote_service.send_reminder(issued_quote.id)

    assert result.email.success
    assert result.quote.reminder_count == 1
    assert result.quote.last_reminder_sent == clock.now
    assert email_sender.sent[-1].subject == "Reminder: Quote JOB-00001-Q - Awaiting Your Response"


def test_reminder_limit(quote_service, settings_service, issued_quote):
    settings_service.update_settings(quote_max_reminders=2)
    quote_service.send_reminder(issued_quote.id)
    quote_service.send_reminder(issued_quote.id)

    with pytest.raises(InvalidStateError, match="Maximum of 2 reminders already sent"):
        quote_service.send_reminder(issued_quote.id)
    assert quote_service.get_quote(issued_quote.id).reminder_count == 2


def test_reminder_for_accepted_quote_is_refused(quote_service, issued_quote):
    quote_service.accept_quote(issued_quote.id)
    with pytest.raises(InvalidStateError, match="status 'SENT'"):
        quote_service.send_reminder(issued_quote.id)


def test_failed_reminder_does_not_count(quote_service, issued_quote, email_sender):
    email_sender.fail = True
    result = quote_service.send_reminder(issued_quote.id)

    assert result.email.success is False
    assert quote_service.get_quote(issued_quote.id).reminder_count == 0


def test_list_reminders_due(quote_service, issued_quote, clock):
    assert quote_service.list_reminders_due() == []

    clock.advance(days=3)
    assert [q.id for q in quote_service.list_reminders_due()] == [issued_quote.id]

    quote_service.send_reminder(issued_quote.id)
    assert quote_service.list_reminders_due() == []

    clock.advance(days=3)
    assert [q.id for q in quote_service.list_reminders_due()] == [issued_quote.id]


def test_convert_to_invoice(quote_service, job_service, issued_quote, clock):
    quote_service.accept_quote(issued_quote.id)
    invoice = quote_service.convert_to_invoice(issued_quote.id)

    assert invoice.invoice_number == "INV-00001"
    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.total_amount == Decimal("115.00")
    assert invoice.balance_amount == Decimal("115.00")
    assert invoice.payment_terms == "Net 30"
    assert (invoice.due_date - clock.now).days == 30
    assert [i.description for i in invoice.items] == ["Drain pump", "Labor"]

    quote = quote_service.get_quote(issued_quote.id)
    assert quote.status == QuoteStatus.CONVERTED_TO_INVOICE
    assert quote.converted_to_invoice_id == invoice.id
    history = job_service.get_status_history(issued_quote.job_id)
    assert history[-1].notes == "Quote JOB-00001-Q converted to invoice INV-00001"


def test_convert_twice_is_refused(quote_service, issued_quote):
    quote_service.accept_quote(issued_quote.id)
    quote_service.convert_to_invoice(issued_quote.id)

    with pytest.raises(InvalidStateError, match="already been converted"):
        quote_service.convert_to_invoice(issued_quote.id)


def test_convert_requires_acceptance(quote_service, issued_quote):
    with pytest.raises(InvalidStateError, match="Only accepted quotes"):
        quote_service.convert_to_invoice(issued_quote.id)


def test_convert_refused_when_job_has_invoice(quote_service, invoice_service, issued_quote, sample_items):
    invoice_service.create_invoice(issued_quote.job_id, sample_items)
    quote_service.accept_quote(issued_quote.id)

    with pytest.raises(ConflictError, match="Invoice already exists"):
        quote_service.convert_to_invoice(issued_quote.id)
    assert quote_service.get_quote(issued_quote.id).status == QuoteStatus.ACCEPTED


def test_quote_issue_command(cli_runner, temp_db, sample_job):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path, "quote", "issue", "--job", str(sample_job.id),
            "--item", "Drain pump:1:70", "--item", "Labor:0.5:60:LABOR", "--tax-rate", "15",
        ],
    )

    assert result.exit_code == 0
    assert "Issued quote JOB-00001-Q" in result.output
    assert "115.00" in result.output


def test_quote_issue_command_bad_item(cli_runner, temp_db, sample_job):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "quote", "issue", "--job", str(sample_job.id), "--item", "Pump"],
    )

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_quote_accept_and_convert_commands(cli_runner, temp_db, sample_job):
    issue = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "quote", "issue", "--job", str(sample_job.id), "--item", "Pump:1:80"],
    )
    accept = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "quote", "accept", "1"])
    convert = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "quote", "convert", "1"])

    assert issue.exit_code == 0
    assert accept.exit_code == 0
    assert "accepted" in accept.output
    assert convert.exit_code == 0
    assert "Created invoice INV-00001" in convert.output
