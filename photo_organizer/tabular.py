"""
CSV and HTML exports of the catalog, and name-list import.
"""

import csv
import html
import io
from typing import Iterable, List

from .logging_setup import get_logger
from .models import Photo

logger = get_logger(__name__)

PHOTO_CSV_HEADER = ['Name', 'Photographer', 'Brands', 'Scheduled Date',
                    'Description', 'Hashtags', 'Location', 'Priority']


def _photo_row(photo: Photo) -> List[str]:
    return [
        photo.name,
        photo.photographer or '',
        ', '.join(photo.brands),
        photo.scheduled_date.isoformat() if photo.scheduled_date else '',
        photo.description or '',
        photo.hashtags or '',
        photo.location or '',
        photo.priority.value,
    ]


def export_photos_csv(photos: Iterable[Photo]) -> str:
    """
    Render photos as CSV with every field double-quoted.

    Args:
        photos: Photos in output order (typically the filtered view)

    Returns:
        CSV text, header line first
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
    # Header is written bare, data rows fully quoted
    buffer.write(','.join(PHOTO_CSV_HEADER) + '\n')
    count = 0
    for photo in photos:
        writer.writerow(_photo_row(photo))
        count += 1
    logger.debug(f"Exported {count} photos to CSV")
    return buffer.getvalue().rstrip('\n')


def export_names(names: Iterable[str]) -> str:
    """One name per line, no header."""
    return '\n'.join(names)


def parse_names(text: str) -> List[str]:
    """
    Split an imported name list into trimmed, non-empty names.

    Deduplication against the catalog happens in catalog_store.import_names.
    """
    return [line.strip() for line in text.splitlines() if line.strip()]


def export_photos_html(photos: Iterable[Photo]) -> str:
    """
    Render photos as an HTML table with a preview image column.

    Args:
        photos: Photos in output order

    Returns:
        HTML table markup
    """
    esc = html.escape
    header_cells = ''.join(f"<th>{esc(title)}</th>" for title in ['Image'] + PHOTO_CSV_HEADER)
    rows = []
    for photo in photos:
        image = (f'<img src="{esc(photo.display_url)}" alt="{esc(photo.name)}" '
                 f'style="width: 50px; height: 50px; object-fit: cover;" />')
        cells = ''.join(f"<td>{esc(value)}</td>" for value in _photo_row(photo))
        rows.append(f"    <tr><td>{image}</td>{cells}</tr>")

    return '\n'.join([
        '<table border="1" style="border-collapse: collapse; width: 100%;">',
        f'  <thead><tr>{header_cells}</tr></thead>',
        '  <tbody>',
        *rows,
        '  </tbody>',
        '</table>',
    ])
