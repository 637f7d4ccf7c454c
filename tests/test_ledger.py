"""Tests for invoice arithmetic."""

from decimal import Decimal

import pytest

from repairshop.domain.entities import InvoiceStatus, LineItem
from repairshop.domain.errors import ValidationError
from repairshop.domain.ledger import (
    apply_payment_amount,
    compute_totals,
    derive_status,
    payment_rejection,
)


def item(qty, price, description="Part"):
    return LineItem(description=description, quantity=Decimal(qty), unit_price=Decimal(price))


def test_compute_totals_with_tax():
    """Subtotal 100 at 15% tax gives a total of 115."""
    totals = compute_totals([item("1", "70"), item("0.5", "60")], Decimal("15"))

    assert totals.subtotal == Decimal("100.00")
    assert totals.tax_amount == Decimal("15.00")
    assert totals.total_amount == Decimal("115.00")


def test_compute_totals_rounds_half_up():
    totals = compute_totals([item("1", "10.05")], Decimal("5"))

    # 10.05 * 5% = 0.5025
    assert totals.tax_amount == Decimal("0.50")
    assert totals.total_amount == Decimal("10.55")


def test_compute_totals_applies_discount():
    totals = compute_totals([item("2", "50")], Decimal("10"), Decimal("20"))

    assert totals.total_amount == Decimal("90.00")
    assert totals.total_amount == totals.subtotal + totals.tax_amount - totals.discount_amount


def test_compute_totals_rejects_negative_discount():
    with pytest.raises(ValidationError, match="cannot be negative"):
        compute_totals([item("1", "10")], Decimal("0"), Decimal("-1"))


def test_compute_totals_rejects_discount_larger_than_amount():
    with pytest.raises(ValidationError, match="exceeds"):
        compute_totals([item("1", "10")], Decimal("0"), Decimal("11"))


@pytest.mark.parametrize(
    "items, message",
    [
        ([], "At least one item"),
        ([item("0", "10")], "greater than 0"),
        ([item("1", "-1")], "cannot be negative"),
        ([item("1", "1", description=" ")], "description is required"),
    ],
)
def test_compute_totals_validates_items(items, message):
    with pytest.raises(ValidationError, match=message):
        compute_totals(items, Decimal("0"))


@pytest.mark.parametrize("rate", ["-1", "100.01"])
def test_compute_totals_validates_tax_rate(rate):
    with pytest.raises(ValidationError, match="Tax rate"):
        compute_totals([item("1", "10")], Decimal(rate))


def test_derive_status():
    total = Decimal("115.00")
    assert derive_status(total, Decimal("0.00"), InvoiceStatus.SENT) == InvoiceStatus.PAID
    assert derive_status(total, Decimal("65.00"), InvoiceStatus.SENT) == InvoiceStatus.PARTIALLY_PAID
    assert derive_status(total, total, InvoiceStatus.DRAFT) == InvoiceStatus.DRAFT


def test_payment_sequence():
    """Two payments settle 115; a third is rejected."""
    total = Decimal("115.00")

    first = apply_payment_amount(total, Decimal("0.00"), Decimal("50.00"), InvoiceStatus.SENT)
    assert first.paid_amount == Decimal("50.00")
    assert first.balance_amount == Decimal("65.00")
    assert first.status == InvoiceStatus.PARTIALLY_PAID

    second = apply_payment_amount(total, first.paid_amount, Decimal("65.00"), first.status)
    assert second.balance_amount == Decimal("0.00")
    assert second.status == InvoiceStatus.PAID

    reason = payment_rejection(Decimal("1.00"), second.balance_amount, second.status)
    assert reason == "Payment amount cannot exceed balance of 0.00"


def test_payment_rejection_reasons():
    balance = Decimal("20.00")
    assert payment_rejection(Decimal("5"), balance, InvoiceStatus.CANCELLED) == (
        "Cannot add payment to cancelled invoice"
    )
    assert "greater than 0" in payment_rejection(Decimal("0"), balance, InvoiceStatus.SENT)
    assert payment_rejection(Decimal("20.00"), balance, InvoiceStatus.SENT) is None
