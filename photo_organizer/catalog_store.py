"""
CRUD and name de-duplication rules for the three catalog collections.

Every function takes a CatalogSnapshot and returns a new one; the input
snapshot is never modified.
"""

import datetime
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from .errors import DuplicateNameError, InvalidNameError, NotFoundError
from .logging_setup import get_logger
from .models import (
    Brand, CatalogSnapshot, EDITABLE_PHOTO_FIELDS, Photo, Photographer, Priority
)
from .utils import new_id, now as current_time, parse_date, parse_time

logger = get_logger(__name__)

PHOTOGRAPHER = "photographer"
BRAND = "brand"

_COLLECTIONS = {
    PHOTOGRAPHER: ('photographers', Photographer),
    BRAND: ('brands', Brand),
}

NamedEntity = Union[Photographer, Brand]


def _next(snapshot: CatalogSnapshot, **changes) -> CatalogSnapshot:
    return replace(snapshot, revision=snapshot.revision + 1, **changes)


def _collection(kind: str) -> Tuple[str, type]:
    try:
        return _COLLECTIONS[kind]
    except KeyError:
        raise ValueError(f"Unknown collection kind: {kind}")


def normalize_name(name: Optional[str]) -> str:
    """
    Trim a photographer/brand name.

    Raises:
        InvalidNameError: If the name is empty or whitespace only
    """
    trimmed = (name or "").strip()
    if not trimmed:
        raise InvalidNameError("Please enter a name")
    return trimmed


def name_key(name: str) -> str:
    """Comparison key for case-insensitive name uniqueness."""
    return name.strip().casefold()


def find_by_name(snapshot: CatalogSnapshot, kind: str, name: str) -> Optional[NamedEntity]:
    """Look up a photographer or brand by case-insensitive name."""
    attr, _ = _collection(kind)
    key = name_key(name)
    for entity in getattr(snapshot, attr):
        if name_key(entity.name) == key:
            return entity
    return None


# ---------------------------------------------------------------------------
# Photos
# ---------------------------------------------------------------------------

def add_photo(snapshot: CatalogSnapshot, photo: Photo) -> CatalogSnapshot:
    """
    Append a fully formed photo record.

    Raises:
        ValueError: If a photo with the same id is already in the catalog
    """
    return add_photos(snapshot, [photo])


def add_photos(snapshot: CatalogSnapshot, photos: Iterable[Photo]) -> CatalogSnapshot:
    """Append several photos as a single revision."""
    photos = tuple(photos)
    if not photos:
        return snapshot
    seen = set(snapshot.photo_ids())
    for photo in photos:
        if photo.id in seen:
            raise ValueError(f"Duplicate photo id: {photo.id}")
        seen.add(photo.id)
    return _next(snapshot, photos=snapshot.photos + photos)


def coerce_photo_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate field names and normalise value types for a photo update.

    Raises:
        ValueError: On a non-editable field, a bare string for brands, or an
            invalid priority, date or time
    """
    unknown = set(fields) - EDITABLE_PHOTO_FIELDS
    if unknown:
        raise ValueError(f"Field(s) cannot be updated: {', '.join(sorted(unknown))}")

    coerced = dict(fields)
    if 'brands' in coerced:
        coerced['brands'] = coerce_brands(coerced['brands'])
    if 'priority' in coerced:
        if coerced['priority'] is None:
            raise ValueError("Priority cannot be cleared")
        coerced['priority'] = Priority.parse(coerced['priority'])
    if 'scheduled_date' in coerced:
        coerced['scheduled_date'] = _coerce_date(coerced['scheduled_date'])
    if 'scheduled_time' in coerced:
        coerced['scheduled_time'] = _coerce_time(coerced['scheduled_time'])
    return coerced


def coerce_brands(value: Any) -> Tuple[str, ...]:
    """Normalise a brand list to a tuple; a bare string is rejected."""
    if value is None:
        return ()
    if isinstance(value, str):
        raise ValueError(f"Brands must be a list of names, not a string: {value!r}")
    return tuple(value)


def _coerce_date(value: Any) -> Optional[datetime.date]:
    # datetime is a date subclass, so it is checked first
    if isinstance(value, datetime.datetime):
        return value.date()
    if value is None or isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        return parse_date(value) if value.strip() else None
    raise ValueError(f"Invalid scheduled date: {value!r}")


def _coerce_time(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return parse_time(value) if value.strip() else None
    raise ValueError(f"Invalid scheduled time: {value!r}")


def update_photo(snapshot: CatalogSnapshot, photo_id: str, fields: Dict[str, Any],
                 timestamp: Optional[datetime.datetime] = None) -> CatalogSnapshot:
    """
    Replace one photo record, keeping fields that are not in ``fields``.

    Args:
        snapshot: Current catalog
        photo_id: Photo to update
        fields: Attribute name to new value
        timestamp: Value for updated_at (defaults to now)

    Returns:
        New snapshot

    Raises:
        NotFoundError: If no photo has this id
        ValueError: If a field is not editable
    """
    changes = coerce_photo_fields(fields)
    stamp = timestamp or current_time()

    found = False
    photos = []
    for photo in snapshot.photos:
        if photo.id == photo_id:
            photo = replace(photo, updated_at=stamp, **changes)
            found = True
        photos.append(photo)

    if not found:
        raise NotFoundError("photo", photo_id)

    logger.debug(f"Updated photo {photo_id}: {', '.join(sorted(changes)) or 'no fields'}")
    return _next(snapshot, photos=tuple(photos))


def remove_photos(snapshot: CatalogSnapshot, photo_ids: Iterable[str]) -> CatalogSnapshot:
    """Remove all photos whose id is in ``photo_ids``; unknown ids are ignored."""
    doomed = set(photo_ids)
    kept = tuple(photo for photo in snapshot.photos if photo.id not in doomed)
    removed = len(snapshot.photos) - len(kept)
    if removed == 0:
        return snapshot
    logger.debug(f"Removed {removed} photo(s)")
    return _next(snapshot, photos=kept)


# ---------------------------------------------------------------------------
# Photographers and brands
# ---------------------------------------------------------------------------

def add_named(snapshot: CatalogSnapshot, kind: str, name: str) -> Tuple[CatalogSnapshot, NamedEntity]:
    """
    Create a photographer or brand.

    Returns:
        Tuple of (new snapshot, created record)

    Raises:
        InvalidNameError: If the name is blank
        DuplicateNameError: If the name already exists case-insensitively
    """
    attr, record_type = _collection(kind)
    trimmed = normalize_name(name)
    if find_by_name(snapshot, kind, trimmed) is not None:
        raise DuplicateNameError(kind, trimmed)

    record = record_type(id=new_id(kind), name=trimmed)
    logger.debug(f"Added {kind} {trimmed!r} ({record.id})")
    return _next(snapshot, **{attr: getattr(snapshot, attr) + (record,)}), record


def remove_named(snapshot: CatalogSnapshot, kind: str, entity_id: str) -> CatalogSnapshot:
    """Remove a photographer or brand by id. Photos keep their soft references."""
    attr, _ = _collection(kind)
    current = getattr(snapshot, attr)
    kept = tuple(entity for entity in current if entity.id != entity_id)
    if len(kept) == len(current):
        return snapshot
    return _next(snapshot, **{attr: kept})


def add_photographer(snapshot: CatalogSnapshot, name: str) -> Tuple[CatalogSnapshot, Photographer]:
    return add_named(snapshot, PHOTOGRAPHER, name)


def add_brand(snapshot: CatalogSnapshot, name: str) -> Tuple[CatalogSnapshot, Brand]:
    return add_named(snapshot, BRAND, name)


def remove_photographer(snapshot: CatalogSnapshot, photographer_id: str) -> CatalogSnapshot:
    return remove_named(snapshot, PHOTOGRAPHER, photographer_id)


def remove_brand(snapshot: CatalogSnapshot, brand_id: str) -> CatalogSnapshot:
    return remove_named(snapshot, BRAND, brand_id)


def import_names(snapshot: CatalogSnapshot, kind: str, names: Iterable[str]) -> Tuple[CatalogSnapshot, int]:
    """
    Add many names at once, silently skipping blanks and existing names.

    Duplicates inside ``names`` itself are skipped as well.

    Returns:
        Tuple of (new snapshot, number of records added)
    """
    attr, record_type = _collection(kind)
    seen = {name_key(entity.name) for entity in getattr(snapshot, attr)}
    added = []
    for raw in names:
        name = (raw or "").strip()
        if not name or name_key(name) in seen:
            continue
        seen.add(name_key(name))
        added.append(record_type(id=new_id(kind), name=name))

    if not added:
        return snapshot, 0
    logger.info(f"Imported {len(added)} {kind}(s)")
    return _next(snapshot, **{attr: getattr(snapshot, attr) + tuple(added)}), len(added)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CatalogStatistics:
    total_photos: int
    tagged_photos: int
    scheduled_photos: int
    photographers: int
    brands: int

    @property
    def total_contacts(self) -> int:
        return self.photographers + self.brands


def catalog_statistics(snapshot: CatalogSnapshot) -> CatalogStatistics:
    """Counts shown on the dashboard."""
    return CatalogStatistics(
        total_photos=len(snapshot.photos),
        tagged_photos=sum(1 for photo in snapshot.photos if photo.is_tagged),
        scheduled_photos=sum(1 for photo in snapshot.photos if photo.is_scheduled),
        photographers=len(snapshot.photographers),
        brands=len(snapshot.brands),
    )
