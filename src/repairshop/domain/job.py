"""Job domain service."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from repairshop.database.base import Database
from repairshop.domain import errors
from repairshop.domain.entities import (
    Job as JobEntity,
    JobPriority,
    JobStatus,
    JobStatusHistory,
)
from repairshop.domain.mail import EmailResult, EmailSender, dispatch, status_update_email
from repairshop.domain.notifications import needs_attention
from repairshop.domain.numbering import NumberingService
from repairshop.domain.settings import SettingsService
from repairshop.utils.date_parser import utcnow

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {"appliance_type", "appliance_brand", "model_number", "serial_number", "issue_description",
     "diagnostic_results", "customer_notes", "priority", "assigned_technician", "labor_hours",
     "estimated_completion"}
)


@dataclass(frozen=True)
class StatusChangeResult:
    """Job after a status change, plus the notification outcome if one was attempted."""

    job: JobEntity
    email: Optional[EmailResult] = None


class JobService:
    """Service for managing repair jobs and their status history.

    Status transitions are deliberately unrestricted: any status may follow
    any other. Every change appends one history row.
    """

    def __init__(
        self,
        db: Database,
        email_sender: Optional[EmailSender] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize job service.

        Args:
            db: Database instance
            email_sender: Transport for customer notifications (optional)
            clock: Returns the current naive UTC time
        """
        self.db = db
        self.email_sender = email_sender
        self.clock = clock
        self.numbering = NumberingService(db)
        self.settings = SettingsService(db)

    def create_job(
        self,
        customer_id: int,
        appliance_type: str,
        appliance_brand: str,
        issue_description: str,
        priority: JobPriority | str = JobPriority.MEDIUM,
        model_number: Optional[str] = None,
        serial_number: Optional[str] = None,
        customer_notes: Optional[str] = None,
        assigned_technician: Optional[str] = None,
        estimated_completion: Optional[datetime] = None,
        history_note: str = "Job created",
    ) -> int:
        """Create a job in status OPEN.

        Returns:
            Job ID

        Raises:
            NotFoundError: If the customer doesn't exist
            ValidationError: If a required field is blank or priority is unknown
        """
        if self.db.get_customer(customer_id) is None:
            raise errors.NotFoundError(errors.customer_not_found(customer_id))
        for label, value in (
            ("Appliance type", appliance_type),
            ("Appliance brand", appliance_brand),
            ("Issue description", issue_description),
        ):
            if not value or not value.strip():
                raise errors.ValidationError(f"{label} is required")
        priority = errors.parse_choice(JobPriority, priority, "priority")

        def create(job_number: str) -> int:
            with self.db.transaction():
                job_id = self.db.create_job(
                    job_number=job_number,
                    customer_id=customer_id,
                    appliance_type=appliance_type.strip(),
                    appliance_brand=appliance_brand.strip(),
                    issue_description=issue_description.strip(),
                    priority=priority,
                    status=JobStatus.OPEN,
                    model_number=model_number,
                    serial_number=serial_number,
                    customer_notes=customer_notes,
                    assigned_technician=assigned_technician,
                    estimated_completion=estimated_completion,
                )
                self.db.add_status_history(job_id, JobStatus.OPEN, history_note, self.clock())
            logger.info("Created job %s for customer %s", job_number, customer_id)
            return job_id

        return self.numbering.allocate(self.numbering.next_job_number, create)

    def get_job(self, job_id: int) -> Optional[JobEntity]:
        """Get job by ID.

        Returns:
            Job entity or None if not found
        """
        return self.db.get_job(job_id)

    def require_job(self, job_id: int) -> JobEntity:
        """Get job by ID or raise NotFoundError."""
        job = self.db.get_job(job_id)
        if job is None:
            raise errors.NotFoundError(errors.job_not_found(job_id))
        return job

    def get_job_by_number(self, job_number: str) -> Optional[JobEntity]:
        """Get job by job number (case-insensitive)."""
        return self.db.get_job_by_number(job_number.strip().upper())

    def list_jobs(
        self, status: Optional[JobStatus | str] = None, customer_id: Optional[int] = None
    ) -> list[JobEntity]:
        """List jobs, newest first."""
        if status is not None:
            status = errors.parse_choice(JobStatus, status, "job status")
        return self.db.list_jobs(status=status, customer_id=customer_id)

    def update_job(self, job_id: int, **changes: Any) -> JobEntity:
        """Update descriptive job fields.

        Status is changed through ``change_status`` only. Keyword arguments
        that are None are ignored.

        Raises:
            NotFoundError: If the job doesn't exist
            ValidationError: If a field cannot be edited or a value is invalid
        """
        self.require_job(job_id)
        changes = {name: value for name, value in changes.items() if value is not None}
        not_editable = set(changes) - EDITABLE_FIELDS
        if not_editable:
            raise errors.ValidationError(f"Cannot edit job field(s): {', '.join(sorted(not_editable))}")
        if "priority" in changes:
            changes["priority"] = errors.parse_choice(JobPriority, changes["priority"], "priority")
        if "labor_hours" in changes:
            changes["labor_hours"] = Decimal(str(changes["labor_hours"]))
            if changes["labor_hours"] < 0:
                raise errors.ValidationError("Labor hours cannot be negative")

        if changes:
            self.db.update_job(job_id, **changes)
        return self.require_job(job_id)

    def apply_status(
        self, job: JobEntity, new_status: JobStatus, notes: Optional[str] = None, **fields: Any
    ) -> None:
        """Write a status change and its history row.

        Does not open a transaction of its own, so callers can combine it
        with other writes.
        """
        if notes is None:
            notes = f"Status changed from {job.status.value} to {new_status.value}"
        now = self.clock()
        if new_status == JobStatus.CLOSED and job.actual_completion is None:
            fields.setdefault("actual_completion", now)
        self.db.update_job(job.id, status=new_status, **fields)
        self.db.add_status_history(job.id, new_status, notes, now)

    def change_status(
        self,
        job_id: int,
        new_status: JobStatus | str,
        notes: Optional[str] = None,
        notify_customer: bool = False,
    ) -> StatusChangeResult:
        """Change a job's status.

        Args:
            job_id: Job ID
            new_status: One of the JobStatus values
            notes: History note (defaults to a from/to message)
            notify_customer: Email the customer after the change commits

        Returns:
            The updated job and, if a notification was attempted, its result.
            A failed email does not undo the status change.

        Raises:
            NotFoundError: If the job doesn't exist
            ValidationError: If new_status is not a job status
        """
        new_status = errors.parse_choice(JobStatus, new_status, "job status")
        job = self.require_job(job_id)

        with self.db.transaction():
            self.apply_status(job, new_status, notes)
        logger.info("Job %s: %s -> %s", job.job_number, job.status.value, new_status.value)

        email_result = None
        if notify_customer:
            customer = self.db.get_customer(job.customer_id)
            message = status_update_email(
                self.require_job(job_id), customer, new_status, self.settings.get_settings()
            )
            email_result = dispatch(self.email_sender, message)
            if email_result.success:
                self.db.update_job(job_id, last_notification_sent=self.clock())

        return StatusChangeResult(job=self.require_job(job_id), email=email_result)

    def get_status_history(self, job_id: int) -> list[JobStatusHistory]:
        """Get the status history of a job, oldest first.

        Raises:
            NotFoundError: If the job doesn't exist
        """
        self.require_job(job_id)
        return self.db.list_status_history(job_id)

    def needs_attention(self, job: JobEntity) -> bool:
        """Evaluate the needs-attention policy with current settings."""
        return needs_attention(job, self.settings.get_settings(), self.clock())

    def list_jobs_needing_attention(self) -> list[JobEntity]:
        """List jobs that have gone too long without a notification."""
        settings = self.settings.get_settings()
        now = self.clock()
        return [job for job in self.db.list_jobs() if needs_attention(job, settings, now)]
