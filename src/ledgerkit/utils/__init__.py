"""Utility functions for ledgerkit."""

from ledgerkit.utils.date_parser import parse_date
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.cache import TTLCache

__all__ = ["parse_date", "parse_amount", "TTLCache"]
