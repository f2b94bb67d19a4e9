from typing import Dict, Tuple
import enum

from tutor_match.core.exceptions import UnknownFilterLabelError
from tutor_match.core.slots import build_label_table, normalize_label


class DayOfWeek(enum.IntEnum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


ALL_DAYS: Tuple[DayOfWeek, ...] = tuple(DayOfWeek)

# Labels shown in the UI, Monday first
ENGLISH_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
ENGLISH_SHORT = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
VIETNAMESE_NAMES = ("Thứ 2", "Thứ 3", "Thứ 4", "Thứ 5", "Thứ 6", "Thứ 7", "Chủ nhật")
VIETNAMESE_WORDS = ("Thứ Hai", "Thứ Ba", "Thứ Tư", "Thứ Năm", "Thứ Sáu", "Thứ Bảy", "Chủ nhật")
VIETNAMESE_SHORT = ("T2", "T3", "T4", "T5", "T6", "T7", "CN")

DAY_LABELS: Dict[str, DayOfWeek] = build_label_table(
    (labels[day], day)
    for labels in (ENGLISH_NAMES, ENGLISH_SHORT, VIETNAMESE_NAMES, VIETNAMESE_WORDS, VIETNAMESE_SHORT)
    for day in DayOfWeek
)


def day_from_label(label: str) -> DayOfWeek:
    """Get weekday ordinal by UI label"""
    try:
        return DAY_LABELS[normalize_label(label)]
    except KeyError:
        raise UnknownFilterLabelError(f"Unknown weekday label: {label!r}")


def short_label(day: DayOfWeek) -> str:
    return VIETNAMESE_SHORT[day]
