from datetime import date, datetime

from pupmatch.ages import approximate_birthdate, format_age, parse_birthdate, shift_months

TODAY = date(2026, 10, 18)


def test_format_age_counts_whole_years_first():
    assert format_age("2025-08-18", today=TODAY) == "1 year"
    assert format_age("2024-10-18", today=TODAY) == "2 years"


def test_format_age_months_and_newborns():
    assert format_age("2026-09-18", today=TODAY) == "1 month"
    assert format_age("2026-05-01", today=TODAY) == "5 months"
    assert format_age("2026-09-19", today=TODAY) == "Less than a month"
    assert format_age("2026-10-18", today=TODAY) == "Less than a month"


def test_format_age_birthday_not_reached_yet():
    assert format_age("2025-10-19", today=TODAY) == "11 months"


def test_format_age_falls_back_to_legacy_text():
    assert format_age(None, "3 years", today=TODAY) == "3 years"
    assert format_age("not a date", "about 2", today=TODAY) == "about 2"
    assert format_age("", today=TODAY) == ""


def test_parse_birthdate_accepts_dates_and_timestamps():
    assert parse_birthdate(date(2025, 1, 2)) == date(2025, 1, 2)
    assert parse_birthdate(datetime(2025, 1, 2, 15, 0)) == date(2025, 1, 2)
    assert parse_birthdate("2025-01-02T00:00:00.000Z") == date(2025, 1, 2)
    assert parse_birthdate("yesterday") is None


def test_shift_months_clamps_to_month_end():
    assert shift_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
    assert shift_months(date(2026, 1, 15), -13) == date(2024, 12, 15)


def test_approximate_birthdate_from_legacy_age():
    assert approximate_birthdate("2 years 3 months", today=TODAY) == "2024-07-18"
    assert approximate_birthdate("8 Months", today=TODAY) == "2026-02-18"
    assert approximate_birthdate("puppy", today=TODAY) == "2026-10-18"
