"""
Quick actions: apply one partial update to every selected photo.
"""

import datetime
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Iterable, Optional

from .catalog_store import coerce_photo_fields
from .errors import EmptySelectionError
from .logging_setup import get_logger
from .models import CatalogSnapshot
from .utils import now as current_time, parse_date, parse_time, split_list

logger = get_logger(__name__)


class _Absent:
    """Marker for a template field the operator did not touch."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


@dataclass(frozen=True)
class BulkUpdate:
    """
    Partial update template.

    Every field defaults to ABSENT. A field set to any other value, including
    None or an empty string, is present and overwrites the photo's value.
    """
    photographer: Any = ABSENT
    brands: Any = ABSENT
    description: Any = ABSENT
    hashtags: Any = ABSENT
    location: Any = ABSENT
    priority: Any = ABSENT
    scheduled_date: Any = ABSENT
    scheduled_time: Any = ABSENT

    def present_fields(self) -> Dict[str, Any]:
        """Field name to value for every field that is present."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not ABSENT
        }

    @property
    def is_empty(self) -> bool:
        return not self.present_fields()

    @classmethod
    def from_form(cls, photographer: Optional[str] = None, brands: Optional[str] = None,
                  date: Optional[str] = None, time: Optional[str] = None,
                  location: Optional[str] = None, priority: Optional[str] = None,
                  description: Optional[str] = None, hashtags: Optional[str] = None) -> 'BulkUpdate':
        """
        Build a template from raw quick-action form input.

        ``None`` means the operator left the input untouched. An empty string
        is an explicit request to clear the field. Brands are comma separated.
        A time is only applied together with a date.

        Raises:
            ValueError: On an unparsable date, time or priority
        """
        values: Dict[str, Any] = {}

        for name, raw in (('photographer', photographer), ('location', location),
                          ('description', description), ('hashtags', hashtags)):
            if raw is not None:
                values[name] = raw.strip() or None

        if brands is not None:
            values['brands'] = tuple(split_list(brands))

        if date is not None:
            if date.strip():
                values['scheduled_date'] = parse_date(date)
                if time:
                    values['scheduled_time'] = parse_time(time)
            else:
                values['scheduled_date'] = None
                values['scheduled_time'] = None

        if priority is not None:
            values['priority'] = priority

        return cls(**values)


def apply_bulk_update(snapshot: CatalogSnapshot, selected_ids: Iterable[str], template: BulkUpdate,
                      timestamp: Optional[datetime.datetime] = None) -> CatalogSnapshot:
    """
    Apply ``template`` to every selected photo in one atomic step.

    Ids that are not in the catalog are ignored. ``updated_at`` is stamped on
    every touched photo even when none of its values change.

    Args:
        snapshot: Current catalog
        selected_ids: Ids of the selected photos
        template: Partial update
        timestamp: Value for updated_at (defaults to now)

    Returns:
        New snapshot with all updates applied

    Raises:
        EmptySelectionError: If no photo is selected
        ValueError: If a template value is invalid
    """
    selection = set(selected_ids)
    if not selection:
        raise EmptySelectionError()

    # Validate everything before touching any photo; the input snapshot is
    # never modified so a failure leaves the caller's state intact.
    changes = coerce_photo_fields(template.present_fields())
    stamp = timestamp or current_time()

    touched = 0
    photos = []
    for photo in snapshot.photos:
        if photo.id in selection:
            photo = replace(photo, updated_at=stamp, **changes)
            touched += 1
        photos.append(photo)

    logger.info(f"Applied actions to {touched} photo{'s' if touched != 1 else ''}"
                f" ({', '.join(sorted(changes)) or 'timestamp only'})")
    return replace(snapshot, photos=tuple(photos), revision=snapshot.revision + 1)
