from __future__ import annotations

from datetime import date, datetime

_ARABIC_WEEKDAYS = (
    "الاثنين",
    "الثلاثاء",
    "الأربعاء",
    "الخميس",
    "الجمعة",
    "السبت",
    "الأحد",
)

_ARABIC_DIGITS = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def from_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000)


def arabic_date_label(value: date) -> str:
    """Weekday plus day/month/year in Arabic-Indic digits, e.g. "الأحد، ١٩/١٠/٢٠٢٦"."""
    digits = f"{value.day}/{value.month}/{value.year}".translate(_ARABIC_DIGITS)
    return f"{_ARABIC_WEEKDAYS[value.weekday()]}، {digits}"


class MonotonicClock:
    """Millisecond clock that never hands out the same or an earlier value twice."""

    def __init__(self, source=None):
        self._source = source or (lambda: to_millis(now_local()))
        self._last = 0

    def __call__(self) -> int:
        value = int(self._source())
        if value <= self._last:
            value = self._last + 1
        self._last = value
        return value
