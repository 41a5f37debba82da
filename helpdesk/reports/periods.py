"""Calendar-aligned reporting periods.

All period arithmetic happens in a single fixed UTC offset (``REPORT_TZ``,
WIB by default) so bucket boundaries do not move with the server timezone.
"""

import enum
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo

from dateutil.relativedelta import relativedelta

from helpdesk.config import settings

REPORT_TZ = timezone(timedelta(hours=settings.REPORT_UTC_OFFSET_HOURS), settings.REPORT_TIMEZONE_NAME)

DEFAULT_PERIOD_COUNT = 5

_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class PeriodUnit(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class Period:
    """Half-open interval ``[start, end)``."""

    start: datetime
    end: datetime

    def __contains__(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def normalize_unit(value: str | PeriodUnit | None) -> PeriodUnit:
    if isinstance(value, PeriodUnit):
        return value
    try:
        return PeriodUnit((value or "").strip().lower())
    except ValueError:
        return PeriodUnit.MONTHLY


def to_report_tz(instant: datetime, tz: tzinfo = REPORT_TZ) -> datetime:
    """Convert to the reporting offset; naive values are taken as UTC (how SQLite hands them back)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(tz)


def period_start(instant: datetime, unit: PeriodUnit, tz: tzinfo = REPORT_TZ) -> datetime:
    local = to_report_tz(instant, tz)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    if unit == PeriodUnit.DAILY:
        return midnight
    if unit == PeriodUnit.WEEKLY:
        # weekday() is 0 for Monday
        return midnight - timedelta(days=midnight.weekday())
    if unit == PeriodUnit.YEARLY:
        return midnight.replace(month=1, day=1)
    return midnight.replace(day=1)


def add_periods(instant: datetime, unit: PeriodUnit, count: int) -> datetime:
    """Move ``count`` whole units forward (or back, when negative).

    Month and year steps keep the day of month, clamped to the last day of
    the target month.
    """
    if unit == PeriodUnit.DAILY:
        return instant + timedelta(days=count)
    if unit == PeriodUnit.WEEKLY:
        return instant + timedelta(days=7 * count)
    if unit == PeriodUnit.YEARLY:
        return instant + relativedelta(years=count)
    return instant + relativedelta(months=count)


def format_label(instant: datetime, unit: PeriodUnit) -> str:
    day_month_year = f"{instant.day:02d} {_MONTH_ABBR[instant.month - 1]} {instant.year:04d}"
    if unit == PeriodUnit.DAILY:
        return day_month_year
    if unit == PeriodUnit.WEEKLY:
        return f"Week of {day_month_year}"
    if unit == PeriodUnit.YEARLY:
        return f"{instant.year:04d}"
    return f"{_MONTH_ABBR[instant.month - 1]} {instant.year:04d}"


def report_now(now: datetime | None = None, tz: tzinfo = REPORT_TZ) -> datetime:
    return to_report_tz(now or datetime.now(timezone.utc), tz)


def period_range(
    unit: PeriodUnit,
    count: int,
    now: datetime | None = None,
    tz: tzinfo = REPORT_TZ,
) -> Period:
    """Window covering ``count`` periods, ending with the one that contains ``now``."""
    if count <= 0:
        count = DEFAULT_PERIOD_COUNT
    current = period_start(report_now(now, tz), unit, tz)
    return Period(
        start=add_periods(current, unit, -(count - 1)),
        end=add_periods(current, unit, 1),
    )


def iter_periods(
    unit: PeriodUnit,
    count: int,
    now: datetime | None = None,
    tz: tzinfo = REPORT_TZ,
) -> Iterator[Period]:
    """Yield the consecutive buckets of :func:`period_range`, oldest first."""
    if count <= 0:
        count = DEFAULT_PERIOD_COUNT
    first = period_range(unit, count, now, tz).start
    for index in range(count):
        start = add_periods(first, unit, index)
        yield Period(start=start, end=add_periods(start, unit, 1))
