"""Public intake: job submission and tracking without an account."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from repairshop.database.base import Database
from repairshop.domain import errors
from repairshop.domain.customer import CustomerService, normalize_email, require_text
from repairshop.domain.entities import (
    Customer,
    CustomerType,
    Job,
    JobPriority,
    JobStatusHistory,
)
from repairshop.domain.errors import ValidationError
from repairshop.domain.job import JobService
from repairshop.domain.mail import EmailResult, EmailSender, dispatch, job_confirmation_email
from repairshop.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

MIN_ISSUE_LENGTH = 10
CONTACT_METHODS = ("EMAIL", "PHONE")
SUBMISSION_NOTE = "Job submitted via customer portal"


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a public submission."""

    job_number: str
    job_id: int
    customer_id: int
    email: EmailResult


@dataclass(frozen=True)
class JobTracking:
    """Public view of a job: the job, its customer and its history newest first."""

    job: Job
    customer: Customer
    history: list[JobStatusHistory]


class IntakeService:
    """Service behind the public submission and tracking pages."""

    def __init__(
        self,
        db: Database,
        email_sender: Optional[EmailSender] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.email_sender = email_sender
        self.customers = CustomerService(db)
        self.jobs = JobService(db, email_sender=email_sender, clock=clock)

    def submit_job(
        self,
        first_name: str,
        last_name: str,
        email: str,
        phone: str,
        appliance_type: str,
        appliance_brand: str,
        issue_description: str,
        model_number: Optional[str] = None,
        serial_number: Optional[str] = None,
        address: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        zip_code: Optional[str] = None,
        preferred_contact: str = "EMAIL",
    ) -> SubmissionResult:
        """Accept a repair request from the public.

        An existing customer is matched by phone, then by email, and their
        contact details are refreshed. Otherwise a residential customer is
        created. The confirmation email is best effort.

        Raises:
            ValidationError: If a required field is missing or malformed
        """
        first_name = require_text("First name", first_name)
        last_name = require_text("Last name", last_name)
        email = normalize_email(email)
        phone = require_text("Phone", phone)
        appliance_type = require_text("Appliance type", appliance_type)
        appliance_brand = require_text("Appliance brand", appliance_brand)
        issue_description = require_text("Issue description", issue_description)
        if len(issue_description) < MIN_ISSUE_LENGTH:
            raise ValidationError(
                f"Issue description must be at least {MIN_ISSUE_LENGTH} characters"
            )
        preferred_contact = (preferred_contact or "EMAIL").strip().upper()
        if preferred_contact not in CONTACT_METHODS:
            raise ValidationError(
                f"Invalid preferred contact '{preferred_contact}'. Expected one of: EMAIL, PHONE"
            )

        customer = self.customers.find_customer(phone=phone, email=email)
        if customer is not None:
            contact = dict(
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                address=address,
                city=city,
                state=state,
                zip_code=zip_code,
            )
            other = self.db.find_customer_by_email(email)
            if other is None or other.id == customer.id:
                contact["email"] = email
            customer = self.customers.update_customer(customer.id, **contact)
            logger.info("Public submission matched existing customer %s", customer.id)
        else:
            customer_id = self.customers.create_customer(
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone,
                customer_type=CustomerType.RESIDENTIAL,
                address=address,
                city=city,
                state=state,
                zip_code=zip_code,
            )
            customer = self.customers.require_customer(customer_id)

        job_id = self.jobs.create_job(
            customer_id=customer.id,
            appliance_type=appliance_type,
            appliance_brand=appliance_brand,
            issue_description=issue_description,
            priority=JobPriority.MEDIUM,
            model_number=model_number,
            serial_number=serial_number,
            customer_notes=f"Preferred contact: {preferred_contact}",
            history_note=SUBMISSION_NOTE,
        )
        job = self.jobs.require_job(job_id)
        logger.info("Public submission created job %s", job.job_number)

        message = job_confirmation_email(job, customer, self.jobs.settings.get_settings())
        email_result = dispatch(self.email_sender, message)
        return SubmissionResult(
            job_number=job.job_number, job_id=job.id, customer_id=customer.id, email=email_result
        )

    def track_job(self, job_number: str) -> JobTracking:
        """Look up a job by its number for the public tracking page.

        Raises:
            ValidationError: If no job number was given
            NotFoundError: If no job has that number
        """
        if not job_number or not job_number.strip():
            raise ValidationError("Job number is required")
        job = self.jobs.get_job_by_number(job_number)
        if job is None:
            raise errors.NotFoundError(errors.job_not_found(job_number.strip().upper()))
        customer = self.customers.require_customer(job.customer_id)
        history = list(reversed(self.jobs.get_status_history(job.id)))
        return JobTracking(job=job, customer=customer, history=history)
