"""
Content calendar: month grids and publish-date assignment.
"""

import calendar
import datetime
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from .errors import NotFoundError
from .logging_setup import get_logger
from .models import CatalogSnapshot, Photo
from .utils import now as current_time

logger = get_logger(__name__)

GRID_DAYS = 42  # six full weeks


@dataclass(frozen=True)
class CalendarCell:
    date: datetime.date
    in_current_month: bool
    is_today: bool
    photos: Tuple[Photo, ...] = ()


def _as_date(value) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def grid_start(year: int, month: int) -> datetime.date:
    """The Sunday on or before the first day of the month."""
    first = datetime.date(year, month, 1)
    # date.weekday(): Monday == 0 ... Sunday == 6
    return first - datetime.timedelta(days=(first.weekday() + 1) % 7)


def build_month_grid(photos: Iterable[Photo], year: int, month: int,
                     today: Optional[datetime.date] = None) -> List[CalendarCell]:
    """
    Build the 42-cell grid for a month.

    Args:
        photos: Photo collection to place on the grid
        year: Target year
        month: Target month (1-12)
        today: Date highlighted as today (defaults to the real current date)

    Returns:
        42 consecutive CalendarCell objects starting on a Sunday
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    today = today or datetime.date.today()

    start = grid_start(year, month)
    end = start + datetime.timedelta(days=GRID_DAYS)

    by_date = {}
    for photo in photos:
        scheduled = _as_date(photo.scheduled_date)
        if scheduled is not None and start <= scheduled < end:
            by_date.setdefault(scheduled, []).append(photo)

    cells = []
    for offset in range(GRID_DAYS):
        day = start + datetime.timedelta(days=offset)
        cells.append(CalendarCell(
            date=day,
            in_current_month=(day.year == year and day.month == month),
            is_today=(day == today),
            photos=tuple(by_date.get(day, ())),
        ))
    return cells


def weeks(cells: List[CalendarCell]) -> List[List[CalendarCell]]:
    """Split a grid into rows of seven days."""
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


def assign(snapshot: CatalogSnapshot, photo_id: str, date: datetime.date,
           timestamp: Optional[datetime.datetime] = None,
           clear_time: bool = False) -> CatalogSnapshot:
    """
    Schedule a photo on ``date``.

    The photo's scheduled time is kept unless ``clear_time`` is set.

    Raises:
        NotFoundError: If no photo has this id
    """
    date = _as_date(date)
    stamp = timestamp or current_time()
    changes = {'scheduled_date': date, 'updated_at': stamp}
    if clear_time:
        changes['scheduled_time'] = None
    snapshot = _replace_photo(snapshot, photo_id, **changes)
    logger.info(f"Photo {photo_id} scheduled for {date.isoformat()}")
    return snapshot


def unassign(snapshot: CatalogSnapshot, photo_id: str,
             timestamp: Optional[datetime.datetime] = None) -> CatalogSnapshot:
    """
    Remove a photo from the schedule, clearing both date and time.

    Raises:
        NotFoundError: If no photo has this id
    """
    stamp = timestamp or current_time()
    snapshot = _replace_photo(snapshot, photo_id, scheduled_date=None,
                              scheduled_time=None, updated_at=stamp)
    logger.info(f"Photo {photo_id} removed from schedule")
    return snapshot


def _replace_photo(snapshot: CatalogSnapshot, photo_id: str, **changes) -> CatalogSnapshot:
    photos = []
    found = False
    for photo in snapshot.photos:
        if photo.id == photo_id:
            photo = replace(photo, **changes)
            found = True
        photos.append(photo)
    if not found:
        raise NotFoundError("photo", photo_id)
    return replace(snapshot, photos=tuple(photos), revision=snapshot.revision + 1)


def unscheduled_photos(photos: Iterable[Photo]) -> List[Photo]:
    return [photo for photo in photos if photo.scheduled_date is None]


def scheduled_photos_for_month(photos: Iterable[Photo], year: int, month: int) -> List[Photo]:
    result = []
    for photo in photos:
        scheduled = _as_date(photo.scheduled_date)
        if scheduled is not None and scheduled.year == year and scheduled.month == month:
            result.append(photo)
    return result


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move ``delta`` months forwards or backwards, e.g. (2024, 1, -1) -> (2023, 12)."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_title(year: int, month: int) -> str:
    """Heading such as "March 2024"."""
    return f"{calendar.month_name[month]} {year}"
