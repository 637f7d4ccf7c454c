"""Tests for public job submission and tracking."""

import pytest

from repairshop.cli.main import cli
from repairshop.domain.entities import CustomerType, JobPriority, JobStatus
from repairshop.domain.errors import NotFoundError, ValidationError


def submission(**overrides):
    fields = dict(
        first_name="Grace",
        last_name="Hopper",
        email="grace@example.com",
        phone="555-0300",
        appliance_type="Washer",
        appliance_brand="Miele",
        issue_description="Drum does not spin at all",
    )
    fields.update(overrides)
    return fields


def test_submit_creates_customer_and_job(intake_service, customer_service, job_service, email_sender):
    result = intake_service.submit_job(**submission(preferred_contact="phone"))

    assert result.job_number == "JOB-00001"
    customer = customer_service.get_customer(result.customer_id)
    assert customer.customer_type == CustomerType.RESIDENTIAL
    assert customer.email == "grace@example.com"

    job = job_service.get_job(result.job_id)
    assert job.status == JobStatus.OPEN
    assert job.priority == JobPriority.MEDIUM
    assert job.customer_notes == "Preferred contact: PHONE"
    history = job_service.get_status_history(job.id)
    assert [h.notes for h in history] == ["Job submitted via customer portal"]

    assert result.email.success
    assert "JOB-00001" in email_sender.sent[0].subject


def test_submit_reuses_customer_by_phone(intake_service, customer_service, sample_customer):
    result = intake_service.submit_job(
        **submission(phone=sample_customer.phone, email="ada.new@example.com", first_name="Augusta")
    )

    assert result.customer_id == sample_customer.id
    customer = customer_service.get_customer(sample_customer.id)
    assert customer.first_name == "Augusta"
    assert customer.email == "ada.new@example.com"
    assert len(customer_service.list_customers()) == 1


def test_submit_reuses_customer_by_email(intake_service, customer_service, sample_customer):
    result = intake_service.submit_job(**submission(phone="555-0999", email="ADA@example.com"))

    assert result.customer_id == sample_customer.id
    assert customer_service.get_customer(sample_customer.id).phone == "555-0999"


def test_submit_keeps_email_owned_by_another_customer(intake_service, customer_service, sample_customer):
    """Phone matches one customer while the email belongs to another."""
    other_id = customer_service.create_customer(
        first_name="Charles", last_name="Babbage", email="charles@example.com", phone="555-0200"
    )

    result = intake_service.submit_job(**submission(phone="555-0200", email="ada@example.com"))

    assert result.customer_id == other_id
    assert customer_service.get_customer(other_id).email == "charles@example.com"


def test_submit_survives_email_failure(intake_service, job_service, email_sender):
    email_sender.fail = True
    result = intake_service.submit_job(**submission())

    assert result.email.success is False
    assert job_service.get_job(result.job_id) is not None


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"issue_description": "Broken"}, "at least 10 characters"),
        ({"email": "nope"}, "Invalid email"),
        ({"phone": ""}, "Phone is required"),
        ({"appliance_brand": None}, "Appliance brand is required"),
        ({"preferred_contact": "FAX"}, "Invalid preferred contact"),
    ],
)
def test_submit_validation(intake_service, customer_service, overrides, message):
    with pytest.raises(ValidationError, match=message):
        intake_service.submit_job(**submission(**overrides))
    assert customer_service.list_customers() == []


def test_track_job(intake_service, job_service, sample_job):
    job_service.change_status(sample_job.id, JobStatus.IN_PROGRESS, notes="Diagnosing")

    tracking = intake_service.track_job(" job-00001 ")

    assert tracking.job.id == sample_job.id
    assert tracking.customer.email == "ada@example.com"
    assert [h.notes for h in tracking.history] == ["Diagnosing", "Job created"]


def test_track_unknown_job(intake_service):
    with pytest.raises(NotFoundError, match="Job JOB-99999 not found"):
        intake_service.track_job("job-99999")


def test_submit_command(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path, "submit",
            "--first-name", "Grace", "--last-name", "Hopper", "--email", "grace@example.com",
            "--phone", "555-0300", "--type", "Washer", "--brand", "Miele",
            "--issue", "Drum does not spin at all",
        ],
    )

    assert result.exit_code == 0
    assert "Your job number is JOB-00001" in result.output


def test_track_command(cli_runner, temp_db, sample_job):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "track", "job-00001"])

    assert result.exit_code == 0
    assert "Status: OPEN" in result.output
    assert "Job created" in result.output
