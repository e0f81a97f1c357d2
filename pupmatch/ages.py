from __future__ import annotations

import calendar
import re
from datetime import date, datetime

YEARS_RE = re.compile(r"(\d+)\s*year")
MONTHS_RE = re.compile(r"(\d+)\s*month")


def parse_birthdate(value) -> date | None:
    """Parse a stored birthdate (ISO date or datetime) into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def format_age(birthdate, fallback: str | None = None, today: date | None = None) -> str:
    """Return a display age computed from a birthdate.

    Args:
        birthdate: ISO date text or a date; may be empty.
        fallback: Legacy free-text age used when no birthdate parses.
        today: Reference day, defaults to the current local date.

    Returns:
        "N years", "N months", "Less than a month", or the fallback text.
    """
    born = parse_birthdate(birthdate)
    if born is None:
        return fallback or ""
    today = today or date.today()
    years = today.year - born.year
    months = today.month - born.month
    if today.day - born.day < 0:
        months -= 1
    if months < 0:
        years -= 1
        months += 12
    if years > 0:
        return "1 year" if years == 1 else f"{years} years"
    if months > 0:
        return "1 month" if months == 1 else f"{months} months"
    return "Less than a month"


def shift_months(day: date, months: int) -> date:
    """Move a date by whole months, clamping to the end of short months."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def approximate_birthdate(age_text: str | None, today: date | None = None) -> str:
    """Estimate an ISO birthdate from legacy age text like "2 years 3 months".

    Text without a year or month count yields today's date.
    """
    today = today or date.today()
    text = (age_text or "").lower()
    years_match = YEARS_RE.search(text)
    months_match = MONTHS_RE.search(text)
    total_months = 0
    if years_match:
        total_months += int(years_match.group(1)) * 12
    if months_match:
        total_months += int(months_match.group(1))
    return shift_months(today, -total_months).isoformat()
