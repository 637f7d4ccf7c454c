"""Notification trigger policy.

Pure functions deciding when a job needs a customer-facing notification and
when a quote reminder may be, or should be, sent. Settings and the current
time are always passed in.
"""

from datetime import datetime
from typing import Optional

from repairshop.domain.entities import (
    Job,
    Quote,
    QuoteStatus,
    ShopSettings,
    TERMINAL_JOB_STATUSES,
)
from repairshop.utils.date_parser import days_since


def needs_attention(job: Job, settings: ShopSettings, now: datetime) -> bool:
    """Return True if a job has gone too long without a notification.

    Closed and cancelled jobs never need attention. A job that was never
    notified always does.
    """
    if job.status in TERMINAL_JOB_STATUSES:
        return False
    if job.last_notification_sent is None:
        return True
    return days_since(job.last_notification_sent, now) >= settings.notification_reminder_days


def reminder_block_reason(quote: Quote, settings: ShopSettings, now: datetime) -> Optional[str]:
    """Return why a reminder cannot be sent for a quote, or None if it can."""
    if quote.status != QuoteStatus.SENT:
        return (
            "Reminders can only be sent for quotes with status 'SENT' "
            f"(quote {quote.quote_number} is {quote.status.value})"
        )
    if quote.valid_until <= now:
        return f"Cannot send reminder for expired quote {quote.quote_number}"
    if quote.reminder_count >= settings.quote_max_reminders:
        return f"Maximum of {settings.quote_max_reminders} reminders already sent"
    return None


def quote_reminder_due(quote: Quote, settings: ShopSettings, now: datetime) -> bool:
    """Return True if the reminder cadence says a reminder is due now.

    The first reminder is due ``quote_reminder_days`` after issue; later ones
    every ``quote_reminder_frequency`` days after the previous reminder.
    """
    if reminder_block_reason(quote, settings, now) is not None:
        return False
    if quote.last_reminder_sent is None:
        return days_since(quote.issue_date, now) >= settings.quote_reminder_days
    return days_since(quote.last_reminder_sent, now) >= settings.quote_reminder_frequency


def is_expired(quote: Quote, now: datetime) -> bool:
    return quote.status == QuoteStatus.SENT and quote.valid_until <= now
