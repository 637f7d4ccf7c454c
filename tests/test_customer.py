"""Tests for customer service and commands."""

import pytest

from repairshop.cli.main import cli
from repairshop.domain.entities import CustomerType
from repairshop.domain.errors import ConflictError, DependencyError, NotFoundError, ValidationError


def test_create_customer(customer_service):
    """Test creating a customer normalizes email and defaults to residential."""
    customer_id = customer_service.create_customer(
        first_name=" Grace ", last_name="Hopper", email="Grace@Example.COM", phone="555-0101"
    )
    customer = customer_service.get_customer(customer_id)

    assert customer.first_name == "Grace"
    assert customer.email == "grace@example.com"
    assert customer.customer_type == CustomerType.RESIDENTIAL
    assert customer.full_name == "Grace Hopper"


def test_create_customer_duplicate_email(customer_service, sample_customer):
    with pytest.raises(ConflictError, match="already exists"):
        customer_service.create_customer(
            first_name="Other", last_name="Person", email="ADA@example.com", phone="555-0199"
        )


def test_create_customer_invalid_email(customer_service):
    with pytest.raises(ValidationError, match="Invalid email"):
        customer_service.create_customer(
            first_name="A", last_name="B", email="not-an-email", phone="555-0102"
        )


def test_create_customer_requires_names(customer_service):
    with pytest.raises(ValidationError, match="First name is required"):
        customer_service.create_customer(first_name="", last_name="B", email="a@b.co", phone="1")


def test_find_customer_prefers_phone(customer_service, sample_customer):
    other_id = customer_service.create_customer(
        first_name="Charles", last_name="Babbage", email="charles@example.com", phone="555-0200"
    )

    by_phone = customer_service.find_customer(phone="555-0200", email="ada@example.com")
    by_email = customer_service.find_customer(phone="000", email="ADA@example.com")

    assert by_phone.id == other_id
    assert by_email.id == sample_customer.id
    assert customer_service.find_customer(phone="000", email="nobody@example.com") is None


def test_update_customer(customer_service, sample_customer):
    updated = customer_service.update_customer(
        sample_customer.id, phone="555-9999", city=None, customer_type="commercial"
    )

    assert updated.phone == "555-9999"
    assert updated.city == "London"
    assert updated.customer_type == CustomerType.COMMERCIAL


def test_update_customer_email_conflict(customer_service, sample_customer):
    other_id = customer_service.create_customer(
        first_name="Charles", last_name="Babbage", email="charles@example.com", phone="555-0200"
    )
    with pytest.raises(ConflictError):
        customer_service.update_customer(other_id, email="ada@example.com")


def test_delete_customer(customer_service, sample_customer):
    customer_service.delete_customer(sample_customer.id)
    assert customer_service.get_customer(sample_customer.id) is None


def test_delete_customer_with_jobs_is_blocked(customer_service, sample_job):
    with pytest.raises(DependencyError, match="1 job"):
        customer_service.delete_customer(sample_job.customer_id)


def test_require_missing_customer(customer_service):
    with pytest.raises(NotFoundError, match="Customer 99 not found"):
        customer_service.require_customer(99)


def test_customer_create_command(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path, "customer", "create",
            "--first-name", "Ada", "--last-name", "Lovelace",
            "--email", "ada@example.com", "--phone", "555-0100",
        ],
    )

    assert result.exit_code == 0
    assert "Created customer 'Ada Lovelace'" in result.output


def test_customer_list_empty(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "customer", "list"])

    assert result.exit_code == 0
    assert "No customers found" in result.output


def test_customer_show_with_jobs(cli_runner, temp_db, sample_job):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "customer", "show", str(sample_job.customer_id)]
    )

    assert result.exit_code == 0
    assert "Ada Lovelace" in result.output
    assert "JOB-00001" in result.output


def test_customer_delete_blocked_command(cli_runner, temp_db, sample_job):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "customer", "delete", str(sample_job.customer_id), "--yes"],
    )

    assert result.exit_code == 1
    assert "Error: Cannot delete customer" in result.output
