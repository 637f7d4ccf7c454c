"""Tests for the notification trigger policy."""

from datetime import datetime, timedelta
from decimal import Decimal

from repairshop.domain.entities import (
    Job,
    JobPriority,
    JobStatus,
    Quote,
    QuoteStatus,
    ShopSettings,
)
from repairshop.domain.notifications import (
    is_expired,
    needs_attention,
    quote_reminder_due,
    reminder_block_reason,
)

NOW = datetime(2024, 3, 10, 12, 0, 0)


def make_job(status=JobStatus.IN_PROGRESS, last_notification_sent=None):
    return Job(
        id=1,
        job_number="JOB-00001",
        customer_id=1,
        appliance_type="Oven",
        appliance_brand="Miele",
        issue_description="Does not heat",
        priority=JobPriority.MEDIUM,
        status=status,
        created_at=NOW - timedelta(days=10),
        last_notification_sent=last_notification_sent,
    )


def make_quote(status=QuoteStatus.SENT, issued_days_ago=0, valid_days=30, reminder_count=0, last_reminder_days_ago=None):
    issue_date = NOW - timedelta(days=issued_days_ago)
    return Quote(
        id=1,
        quote_number="JOB-00001-Q",
        job_id=1,
        customer_id=1,
        status=status,
        issue_date=issue_date,
        valid_until=issue_date + timedelta(days=valid_days),
        subtotal=Decimal("100.00"),
        tax_rate=Decimal("0"),
        tax_amount=Decimal("0.00"),
        discount_amount=Decimal("0.00"),
        total_amount=Decimal("100.00"),
        reminder_count=reminder_count,
        created_at=issue_date,
        last_reminder_sent=(
            NOW - timedelta(days=last_reminder_days_ago) if last_reminder_days_ago is not None else None
        ),
    )


def test_needs_attention_when_never_notified():
    assert needs_attention(make_job(), ShopSettings(), NOW) is True


def test_needs_attention_threshold():
    settings = ShopSettings(notification_reminder_days=3)
    assert needs_attention(make_job(last_notification_sent=NOW - timedelta(days=2)), settings, NOW) is False
    assert needs_attention(make_job(last_notification_sent=NOW - timedelta(days=3)), settings, NOW) is True


def test_closed_and_cancelled_jobs_never_need_attention():
    for status in (JobStatus.CLOSED, JobStatus.CANCELLED):
        assert needs_attention(make_job(status=status), ShopSettings(), NOW) is False


def test_reminder_allowed_for_fresh_sent_quote():
    assert reminder_block_reason(make_quote(), ShopSettings(), NOW) is None


def test_reminder_blocked_for_wrong_status():
    reason = reminder_block_reason(make_quote(status=QuoteStatus.ACCEPTED), ShopSettings(), NOW)
    assert "only be sent for quotes with status 'SENT'" in reason


def test_reminder_blocked_when_expired():
    quote = make_quote(issued_days_ago=31, valid_days=30)
    assert "expired" in reminder_block_reason(quote, ShopSettings(), NOW)
    assert is_expired(quote, NOW) is True


def test_reminder_blocked_at_maximum():
    quote = make_quote(reminder_count=3)
    assert reminder_block_reason(quote, ShopSettings(quote_max_reminders=3), NOW) == (
        "Maximum of 3 reminders already sent"
    )


def test_first_reminder_due_after_reminder_days():
    settings = ShopSettings(quote_reminder_days=3)
    assert quote_reminder_due(make_quote(issued_days_ago=2), settings, NOW) is False
    assert quote_reminder_due(make_quote(issued_days_ago=3), settings, NOW) is True


def test_later_reminders_follow_frequency():
    settings = ShopSettings(quote_reminder_days=1, quote_reminder_frequency=4)
    recent = make_quote(issued_days_ago=10, reminder_count=1, last_reminder_days_ago=2)
    stale = make_quote(issued_days_ago=10, reminder_count=1, last_reminder_days_ago=4)
    assert quote_reminder_due(recent, settings, NOW) is False
    assert quote_reminder_due(stale, settings, NOW) is True


def test_reminder_not_due_when_blocked():
    settings = ShopSettings(quote_max_reminders=1)
    quote = make_quote(issued_days_ago=10, reminder_count=1, last_reminder_days_ago=10)
    assert quote_reminder_due(quote, settings, NOW) is False
