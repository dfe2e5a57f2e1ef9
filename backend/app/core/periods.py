"""
Calendar helpers for monthly rent periods.
"""
import calendar
from collections.abc import Iterator
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

MONTH_NAMES = (
    "Janvier",
    "Février",
    "Mars",
    "Avril",
    "Mai",
    "Juin",
    "Juillet",
    "Août",
    "Septembre",
    "Octobre",
    "Novembre",
    "Décembre",
)


def as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def month_name(mois: int) -> str:
    if 1 <= mois <= 12:
        return MONTH_NAMES[mois - 1]
    return f"Mois {mois}"


def period_label(mois: int, annee: int) -> str:
    """Human-readable period printed on receipts: 'Janvier 2024'."""
    return f"{month_name(mois)} {annee}"


def due_date(mois: int, annee: int, jour_paiement: int) -> date:
    """
    Due date of a rent period. A payment day past the end of the month
    falls on the last day of that month (31 → 28/29 in February).
    """
    last_day = calendar.monthrange(annee, mois)[1]
    return date(annee, mois, max(1, min(jour_paiement, last_day)))


def iter_months(start: date, end: date) -> Iterator[tuple[int, int]]:
    """
    Yield (mois, annee) from the month of `start` through the month of `end`,
    both inclusive. Nothing is yielded when start's month is after end.
    """
    cursor = date(start.year, start.month, 1)
    while cursor <= end:
        yield cursor.month, cursor.year
        cursor += relativedelta(months=1)
