"""Utility functions for repairshop."""

from repairshop.utils.date_parser import parse_date, utcnow
from repairshop.utils.amount_parser import parse_amount, parse_line_item, to_money

__all__ = ["parse_date", "utcnow", "parse_amount", "parse_line_item", "to_money"]
