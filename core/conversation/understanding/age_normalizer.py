"""
Age and birth-date normalization.

Collapses the many ways a parent states "how old" or "when born" into one
canonical date of birth, and derives an exact calendar age from it.

Approximation policy for relative ages:
- years:  today's month and day with the year reduced. This is a lossy
          placeholder that assumes the birthday is today, NOT the real birth
          date; it stands until the parent supplies a precise date.
- months: today minus n calendar months, day-of-month kept where valid.
- days:   today minus n days (exact).
"""

import calendar
import logging
import re
from datetime import date, timedelta
from typing import Callable, Optional, Tuple

from models.schemas import NormalizedAge

logger = logging.getLogger(__name__)

DATE_SEPARATORS = ("-", "/", ".", "年", "月")

# A bare number is read as years only inside this range
MAX_BARE_YEARS = 25

_DATE_COMPONENTS = re.compile(r"^\s*(\d{1,4})\s*[-/.年]\s*(\d{1,4})\s*[-/.月]\s*(\d{1,4})\s*[日号]?\s*$")

_UNIT_PHRASE = re.compile(
    r"(\d+)\s*(?:-\s*)?(years?|yrs?|周岁|岁|months?|个多月|个月|days?|天)",
    re.IGNORECASE,
)

_BARE_NUMBER = re.compile(r"^\s*(\d+)\s*$")

_YEAR_UNITS = {"year", "years", "yr", "yrs", "岁", "周岁"}
_MONTH_UNITS = {"month", "months", "个月", "个多月"}
_DAY_UNITS = {"day", "days", "天"}


def looks_like_date(text: str) -> bool:
    """True when the text contains a date separator between digits"""
    return bool(re.search(r"\d\s*[-/.年月]\s*\d", text or ""))


def parse_ambiguous_date(text: str) -> Optional[date]:
    """
    Parse YYYY-MM-DD, YYYY/MM/DD, MM/DD/YYYY or DD/MM/YYYY (also 2020年2月29日).

    The year is whichever component has four digits. No four-digit component,
    more than one, or a year in the middle position means the text is
    unparseable. With the year last, a first component above 12 must be the
    day; otherwise month-first is assumed.
    """
    if not text:
        return None
    match = _DATE_COMPONENTS.match(text)
    if not match:
        return None

    parts = match.groups()
    year_positions = [i for i, part in enumerate(parts) if len(part) == 4]
    if len(year_positions) != 1:
        return None

    position = year_positions[0]
    if position == 0:
        year, month, day = (int(p) for p in parts)
    elif position == 2:
        first, second, year = (int(p) for p in parts)
        if first > 12:
            day, month = first, second
        else:
            month, day = first, second
    else:
        return None

    try:
        return date(year, month, day)
    except ValueError:
        return None


def _clamp_day(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def subtract_years(today: date, years: int) -> date:
    # Feb 29 falls back to Feb 28 in non-leap target years
    return _clamp_day(today.year - years, today.month, today.day)


def subtract_months(today: date, months: int) -> date:
    total = today.year * 12 + (today.month - 1) - months
    year, month_index = divmod(total, 12)
    return _clamp_day(year, month_index + 1, today.day)


def age_from_date(date_of_birth: date, today: date) -> NormalizedAge:
    """
    Exact (years, months, days) between date_of_birth and today.

    Uses calendar borrowing: a negative day difference borrows the length of
    the month before today's month, a negative month difference borrows 12.
    A future birth date clamps to zero rather than raising.
    """
    years = today.year - date_of_birth.year
    months = today.month - date_of_birth.month
    days = today.day - date_of_birth.day

    if days < 0:
        prev_year, prev_month = (today.year, today.month - 1) if today.month > 1 else (today.year - 1, 12)
        days += calendar.monthrange(prev_year, prev_month)[1]
        months -= 1
    if months < 0:
        months += 12
        years -= 1

    if years < 0:
        return NormalizedAge(years=0, months=0, days=0, date_of_birth=date_of_birth)
    return NormalizedAge(years=years, months=months, days=days, date_of_birth=date_of_birth)


class AgeNormalizer:
    """Turns raw temporal text into a canonical date of birth"""

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self._today = today or date.today

    def today(self) -> date:
        return self._today()

    def normalize(self, raw_text: Optional[str], explicit_date: Optional[date] = None) -> Optional[date]:
        """
        Canonical date of birth for the given input, or None.

        An explicit date always wins and is returned untouched. Never raises.
        """
        if explicit_date is not None:
            return explicit_date
        if not raw_text or not raw_text.strip():
            return None

        try:
            if looks_like_date(raw_text):
                parsed = parse_ambiguous_date(raw_text)
                if parsed is not None:
                    return parsed

            unit_reading = self._parse_unit_phrase(raw_text)
            if unit_reading is not None:
                amount, unit = unit_reading
                return self._apply_unit(amount, unit)

            bare = _BARE_NUMBER.match(raw_text)
            if bare:
                amount = int(bare.group(1))
                if 0 <= amount <= MAX_BARE_YEARS:
                    return subtract_years(self.today(), amount)
        except (ValueError, OverflowError) as e:
            # Amounts large enough to leave the calendar's range
            logger.info(f"Could not normalize temporal text {raw_text!r}: {e}")

        return None

    def age(self, date_of_birth: date) -> NormalizedAge:
        """Exact age of a canonical date of birth as of today"""
        return age_from_date(date_of_birth, self.today())

    @staticmethod
    def _parse_unit_phrase(text: str) -> Optional[Tuple[int, str]]:
        match = _UNIT_PHRASE.search(text)
        if not match:
            return None
        return int(match.group(1)), match.group(2).lower()

    def _apply_unit(self, amount: int, unit: str) -> Optional[date]:
        today = self.today()
        if unit in _YEAR_UNITS:
            return subtract_years(today, amount)
        if unit in _MONTH_UNITS:
            return subtract_months(today, amount)
        if unit in _DAY_UNITS:
            return today - timedelta(days=amount)
        return None
