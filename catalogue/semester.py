"""
Semester code arithmetic.

A semester code is a 2-digit academic year prefix followed by a 2-digit season,
e.g. 2510 is Fall of the 2025 - 2026 academic year.
"""
import logging
from datetime import date

from catalogue.errors import ValidationError
from catalogue.models import Semester

logger = logging.getLogger(__name__)

SEASON_NAMES = {
    "10": "Fall",
    "20": "Winter",
    "30": "Spring",
    "40": "Summer",
}


def current_semester_code(today: date | None = None) -> str:
    """
    Works out the active semester from the date alone. The academic year starts in
    September, so anything before September belongs to the year that started the
    previous September.
    """
    today = today or date.today()
    year = today.year
    if today.month >= 9:
        season = "10"
    else:
        year -= 1
        if 2 < today.month <= 6:
            season = "30"
        elif today.month > 6:
            season = "40"
        else:
            season = "20"
    return f"{year % 100:02d}{season}"


def parse_semester(code: str, today: date | None = None) -> Semester:
    code = code.strip()
    if len(code) != 4 or not code.isdigit():
        logger.warning("Invalid semester code %r", code)
        raise ValidationError(f"Semester code '{code}' is not valid, expected 4 digits such as '2510'.")

    prefix, season = code[:2], code[2:]
    if season not in SEASON_NAMES:
        logger.warning("Invalid semester code %r", code)
        raise ValidationError(f"Semester code '{code}' has an unknown season '{season}'.")

    # Codes only carry two digits of the year, borrow the century from today
    century = str((today or date.today()).year)[:2]
    start_year = int(century + prefix)
    cohort = f"{start_year} - {start_year + 1}"
    # Spring and Summer fall in the second calendar year of the academic year
    year = str(start_year + 1 if int(season) > 20 else start_year)

    return Semester(
        code=code,
        name=f"{cohort} {SEASON_NAMES[season]}",
        year=year,
        cohort=cohort,
    )
