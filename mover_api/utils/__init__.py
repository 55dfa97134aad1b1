"""Utility helpers for reusable functionality."""

from .datetime import (
    days_between,
    ensure_app_naive_datetime,
    ensure_app_timezone,
    get_app_timezone,
    iso_or_none,
    now_in_app_naive_datetime,
    now_in_app_timezone,
    parse_iso_datetime,
)

__all__ = [
    "days_between",
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "get_app_timezone",
    "iso_or_none",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
    "parse_iso_datetime",
]
