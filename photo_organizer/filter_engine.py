"""
Search and filter evaluation over the photo collection.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Sequence

from .models import CatalogSnapshot, Photo

ALL = "all"
EMPTY = "empty"
SCHEDULED = "scheduled"
UNSCHEDULED = "unscheduled"

SCHEDULE_CHOICES = (ALL, SCHEDULED, UNSCHEDULED)


@dataclass(frozen=True)
class PhotoFilter:
    """
    A conjunction of four independent predicates.

    ``photographer`` and ``brand`` accept ``"all"``, ``"empty"`` or an exact
    name; ``schedule`` accepts ``"all"``, ``"scheduled"`` or ``"unscheduled"``.
    """
    search: str = ""
    photographer: str = ALL
    brand: str = ALL
    schedule: str = ALL

    def __post_init__(self):
        if self.schedule not in SCHEDULE_CHOICES:
            raise ValueError(f"Invalid schedule filter: {self.schedule!r}")

    def matches_search(self, photo: Photo) -> bool:
        if not self.search:
            return True
        term = self.search.lower()
        return any(
            value is not None and term in value.lower()
            for value in (photo.name, photo.description, photo.photographer)
        )

    def matches_photographer(self, photo: Photo) -> bool:
        if self.photographer == ALL:
            return True
        if self.photographer == EMPTY:
            return not (photo.photographer or "").strip()
        return photo.photographer == self.photographer

    def matches_brand(self, photo: Photo) -> bool:
        if self.brand == ALL:
            return True
        if self.brand == EMPTY:
            return len(photo.brands) == 0
        return self.brand in photo.brands

    def matches_schedule(self, photo: Photo) -> bool:
        if self.schedule == SCHEDULED:
            return photo.scheduled_date is not None
        if self.schedule == UNSCHEDULED:
            return photo.scheduled_date is None
        return True

    def predicates(self) -> List[Callable[[Photo], bool]]:
        return [self.matches_search, self.matches_photographer,
                self.matches_brand, self.matches_schedule]

    def matches(self, photo: Photo) -> bool:
        return all(predicate(photo) for predicate in self.predicates())

    @property
    def is_unconstrained(self) -> bool:
        return not self.search and self.photographer == ALL and self.brand == ALL and self.schedule == ALL


def filter_photos(photos: Iterable[Photo], photo_filter: PhotoFilter) -> List[Photo]:
    """Return matching photos in their original order."""
    return [photo for photo in photos if photo_filter.matches(photo)]


class FilteredView:
    """
    Lazily evaluated, restartable view over the current catalog.

    The view holds a callable returning the current snapshot rather than the
    snapshot itself, so iterating again after a mutation sees the new state.
    """

    def __init__(self, source: Callable[[], CatalogSnapshot], photo_filter: PhotoFilter = PhotoFilter()):
        self._source = source
        self.photo_filter = photo_filter

    def __iter__(self) -> Iterator[Photo]:
        for photo in self._source().photos:
            if self.photo_filter.matches(photo):
                yield photo

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def to_list(self) -> List[Photo]:
        return list(self)

    def ids(self) -> List[str]:
        return [photo.id for photo in self]

    def refine(self, **criteria) -> 'FilteredView':
        """A new view over the same source with some criteria replaced."""
        current = self.photo_filter
        return FilteredView(self._source, PhotoFilter(
            search=criteria.get('search', current.search),
            photographer=criteria.get('photographer', current.photographer),
            brand=criteria.get('brand', current.brand),
            schedule=criteria.get('schedule', current.schedule),
        ))


def select_all(view: Iterable[Photo]) -> List[str]:
    """Ids of every photo currently visible, i.e. the "select all" action."""
    return [photo.id for photo in view]


def photographer_choices(snapshot: CatalogSnapshot) -> Sequence[str]:
    """Filter options for the photographer dropdown."""
    return (ALL, EMPTY) + tuple(p.name for p in snapshot.photographers)


def brand_choices(snapshot: CatalogSnapshot) -> Sequence[str]:
    """Filter options for the brand dropdown."""
    return (ALL, EMPTY) + tuple(b.name for b in snapshot.brands)
