"""Pure invoice arithmetic: totals, payment application and status derivation.

Nothing here touches the database. The invoice service reads the current
amounts, asks these functions for the next state and persists the answer.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from repairshop.domain.entities import InvoiceStatus, LineItem
from repairshop.domain.errors import ValidationError
from repairshop.utils.amount_parser import to_money

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class Totals:
    """Computed document amounts."""

    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class PaymentOutcome:
    """Invoice amounts after a payment is applied."""

    paid_amount: Decimal
    balance_amount: Decimal
    status: InvoiceStatus


def validate_items(items: Iterable[LineItem]) -> list[LineItem]:
    """Check line items and return them as a list.

    Raises:
        ValidationError: If there are no items or an item is malformed
    """
    items = list(items)
    if not items:
        raise ValidationError("At least one item is required")
    for item in items:
        if not item.description or not item.description.strip():
            raise ValidationError("Item description is required")
        if item.quantity <= 0:
            raise ValidationError(f"Quantity for '{item.description}' must be greater than 0")
        if item.unit_price < 0:
            raise ValidationError(f"Unit price for '{item.description}' cannot be negative")
    return items


def validate_tax_rate(tax_rate: Decimal) -> Decimal:
    if tax_rate < 0 or tax_rate > 100:
        raise ValidationError(f"Tax rate must be between 0 and 100, got {tax_rate}")
    return Decimal(tax_rate)


def compute_totals(
    items: Iterable[LineItem],
    tax_rate: Decimal,
    discount_amount: Decimal = ZERO,
) -> Totals:
    """Compute subtotal, tax and total for a list of line items.

    subtotal = sum(quantity * unit_price)
    tax_amount = subtotal * tax_rate / 100
    total_amount = subtotal + tax_amount - discount_amount

    Raises:
        ValidationError: If items, rate or discount are out of range
    """
    items = validate_items(items)
    tax_rate = validate_tax_rate(tax_rate)
    discount_amount = to_money(discount_amount)
    if discount_amount < 0:
        raise ValidationError("Discount amount cannot be negative")

    subtotal = to_money(sum((item.quantity * item.unit_price for item in items), ZERO))
    tax_amount = to_money(subtotal * tax_rate / Decimal(100))
    total_amount = subtotal + tax_amount - discount_amount
    if total_amount < 0:
        raise ValidationError(
            f"Discount {discount_amount} exceeds the invoice amount {subtotal + tax_amount}"
        )

    return Totals(
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total_amount=total_amount,
    )


def derive_status(
    total_amount: Decimal, balance_amount: Decimal, current: InvoiceStatus
) -> InvoiceStatus:
    """Derive invoice status from its balance.

    A zero balance is PAID, a balance strictly between zero and the total is
    PARTIALLY_PAID, anything else keeps the current status.
    """
    if balance_amount == 0:
        return InvoiceStatus.PAID
    if 0 < balance_amount < total_amount:
        return InvoiceStatus.PARTIALLY_PAID
    return current


def payment_rejection(
    amount: Decimal, balance_amount: Decimal, status: InvoiceStatus
) -> Optional[str]:
    """Return why a payment cannot be applied, or None if it can."""
    if status == InvoiceStatus.CANCELLED:
        return "Cannot add payment to cancelled invoice"
    if amount <= 0:
        return "Payment amount must be greater than 0"
    if amount > balance_amount:
        return f"Payment amount cannot exceed balance of {balance_amount:.2f}"
    return None


def apply_payment_amount(
    total_amount: Decimal,
    paid_amount: Decimal,
    amount: Decimal,
    status: InvoiceStatus,
) -> PaymentOutcome:
    """Return the invoice amounts after applying ``amount``.

    The caller is responsible for checking ``payment_rejection`` first.
    """
    new_paid = to_money(paid_amount + amount)
    new_balance = to_money(total_amount - new_paid)
    return PaymentOutcome(
        paid_amount=new_paid,
        balance_amount=new_balance,
        status=derive_status(total_amount, new_balance, status),
    )
