"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

from repairshop.domain.entities import ItemType, LineItem

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize a number to cents, rounding half up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "1,234.56"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Remove currency symbols
    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        return Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")


def parse_line_item(spec: str) -> LineItem:
    """Parse a line item written as DESCRIPTION:QTY:UNIT_PRICE[:TYPE].

    The description may itself contain colons; the numeric fields are taken
    from the right.

    Examples:
        "Compressor:1:249.99"
        "Labor:2.5:80:LABOR"
    """
    parts = spec.rsplit(":", 3)
    item_type = ItemType.PART
    if len(parts) == 4 and parts[3].strip().upper() in ItemType.__members__:
        item_type = ItemType(parts[3].strip().upper())
        parts = parts[:3]
    elif len(parts) == 4:
        # Last field is not a type, so the description contained a colon
        parts = [f"{parts[0]}:{parts[1]}", parts[2], parts[3]]

    if len(parts) != 3:
        raise ValueError(f"Invalid item '{spec}'. Expected DESCRIPTION:QTY:UNIT_PRICE[:TYPE]")

    description, quantity, unit_price = parts
    return LineItem(
        description=description.strip(),
        quantity=parse_amount(quantity),
        unit_price=parse_amount(unit_price),
        item_type=item_type,
    )
