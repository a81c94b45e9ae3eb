"""
Consecutive-day study streak.

Pure computation over calendar dates; the caller decides which timezone
turns a review timestamp into a date.
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta, tzinfo

ONE_DAY = timedelta(days=1)


def dates_from_timestamps(
    timestamps: Iterable[datetime | None],
    tz: tzinfo = UTC,
) -> set[date]:
    """
    Convert review timestamps into the set of calendar dates they fall on.

    Naive datetimes are taken as already being in tz. None entries are skipped.
    """
    dates: set[date] = set()
    for ts in timestamps:
        if ts is None:
            continue
        if ts.tzinfo is not None:
            ts = ts.astimezone(tz)
        dates.add(ts.date())
    return dates


def compute_streak(last_reviewed_dates: Iterable[date], today: date) -> int:
    """
    Count consecutive study days ending today or yesterday.

    The streak is 0 unless today or yesterday is present. Otherwise it walks
    the distinct dates newest first and stops at the first gap larger than a
    day. Duplicate dates count once; dates after today are ignored.
    """
    distinct = sorted({d for d in last_reviewed_dates if d <= today}, reverse=True)

    if today not in distinct and (today - ONE_DAY) not in distinct:
        return 0

    streak = 1
    for previous, current in zip(distinct, distinct[1:]):
        if previous - current == ONE_DAY:
            streak += 1
        else:
            break
    return streak
