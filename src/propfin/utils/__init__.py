"""Utility functions for propfin."""

from propfin.utils.date_parser import parse_date
from propfin.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]
