#!/usr/bin/env python3
"""
Example 1: Planning a Month of Posts

This example demonstrates how to catalog a folder of images, tag the untagged
ones with a quick action, spread them over a month of the content calendar and
export the plan as CSV.
"""

import argparse
import datetime
import os
import sys
from pathlib import Path

# Add the parent directory to sys.path to import the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from photo_organizer.bulk_actions import BulkUpdate
from photo_organizer.config import load_config
from photo_organizer.filter_engine import PhotoFilter
from photo_organizer.logging_setup import setup_logging
from photo_organizer.persistence import JsonFileSnapshotStore
from photo_organizer.scheduling import month_title, shift_month
from photo_organizer.service import CatalogService


def calendar_example():
    """Content calendar example."""
    parser = argparse.ArgumentParser(description="Content calendar example for Photo Organizer")
    parser.add_argument("folder", help="Folder containing images")
    parser.add_argument("--photographer", required=True, help="Photographer to tag untagged photos with")
    parser.add_argument("--every", type=int, default=2, help="Days between posts")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if not os.path.isdir(args.folder):
        print(f"Error: Folder not found: {args.folder}")
        return 1

    config = load_config(os.path.join(Path(__file__).parent.parent, "config.json"))
    if args.debug:
        config.debug_mode = True
        config.log_level = "DEBUG"
    setup_logging(config)

    service = CatalogService(JsonFileSnapshotStore(config.resolved_storage_dir), config)
    try:
        if not service.load():
            print("Error: could not load the existing catalog")
            return 1

        paths = sorted(os.path.join(args.folder, name) for name in os.listdir(args.folder))
        photos, skipped = service.add_photos_from_files(paths, show_progress=True)
        print(f"Added {len(photos)} photos, skipped {len(skipped)} other files")

        untagged = service.filtered_view(PhotoFilter(photographer="empty")).ids()
        if untagged:
            service.apply_quick_action(untagged, BulkUpdate.from_form(photographer=args.photographer))
            print(f"Tagged {len(untagged)} photos with {args.photographer}")

        # Schedule everything still unscheduled into next month
        today = datetime.date.today()
        year, month = shift_month(today.year, today.month, 1)
        day = datetime.date(year, month, 1)
        for photo in service.unscheduled_photos():
            if day.month != month:
                break
            service.assign(photo.id, day)
            day += datetime.timedelta(days=args.every)

        print(f"\n{month_title(year, month)}: {len(service.scheduled_photos_for_month(year, month))} posts planned")
        print(service.export_csv(PhotoFilter(schedule="scheduled")))

        if not service.save():
            print("Error: failed to save the catalog")
            return 1
        return 0
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(calendar_example())
