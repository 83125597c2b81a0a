"""Ship-by deadline helpers for the ready-to-ship worklist.

Deadlines are compared as calendar dates in the configured local timezone, so
the time of day never matters: an item due today is "Today" whether it is
due at 8am or 11pm.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Iterable, Sequence, TypeVar
from zoneinfo import ZoneInfo

from ..core.config import settings

URGENT_WITHIN_DAYS = 3

_DATE_ONLY = re.compile(r"\d{4}-\d{2}-\d{2}")

T = TypeVar("T")


@dataclass(frozen=True)
class Urgency:
    label: str
    urgent: bool
    days_until: int | None


def _local_tz(tz: ZoneInfo | None) -> ZoneInfo:
    return tz or ZoneInfo(settings.TZ)


def parse_iso_datetime(value: str, tz: ZoneInfo | None = None) -> datetime:
    """Parse an ISO-8601 string into a naive UTC datetime.

    Accepts a trailing ``Z``; offsets are converted to UTC and values without
    an offset are taken as UTC already. A bare ``YYYY-MM-DD`` names a local
    calendar day, so it becomes local midnight in ``tz`` (default
    ``settings.TZ``) expressed in UTC.
    """

    text = value.strip()
    if _DATE_ONLY.fullmatch(text):
        local_midnight = datetime.combine(date.fromisoformat(text), time.min, tzinfo=_local_tz(tz))
        return local_midnight.astimezone(timezone.utc).replace(tzinfo=None)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def local_date(value: date | datetime | str, tz: ZoneInfo | None = None) -> date:
    """Reduce a stored deadline to the calendar date it falls on locally."""

    if isinstance(value, str):
        value = parse_iso_datetime(value, tz)
    if isinstance(value, datetime):
        aware = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return aware.astimezone(_local_tz(tz)).date()
    return value


def today_local(tz: ZoneInfo | None = None) -> date:
    return datetime.now(_local_tz(tz)).date()


def days_until(
    ship_by: date | datetime | str | None,
    today: date | None = None,
    tz: ZoneInfo | None = None,
) -> int | None:
    if ship_by is None:
        return None
    today = today or today_local(tz)
    return (local_date(ship_by, tz) - today).days


def classify_urgency(
    ship_by: date | datetime | str | None,
    today: date | None = None,
    tz: ZoneInfo | None = None,
) -> Urgency:
    days = days_until(ship_by, today, tz)
    if days is None:
        return Urgency("No date", False, None)
    if days < 0:
        return Urgency("Overdue", True, days)
    if days == 0:
        return Urgency("Today", True, days)
    if days == 1:
        return Urgency("Tomorrow", True, days)
    return Urgency(f"{days} days", days <= URGENT_WITHIN_DAYS, days)


def sort_for_shipping(items: Iterable[T]) -> list[T]:
    """Dated items first, soonest deadline first; undated items keep their order at the end."""

    items = list(items)
    dated = [item for item in items if getattr(item, "ship_by_date", None) is not None]
    undated = [item for item in items if getattr(item, "ship_by_date", None) is None]
    dated.sort(key=lambda item: item.ship_by_date)
    return dated + undated


def count_urgent(urgencies: Sequence[Urgency]) -> int:
    return sum(1 for urgency in urgencies if urgency.urgent)
