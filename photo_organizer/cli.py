"""
Command-line interface for the photo organizer.
"""

import argparse
import datetime
import sys
from typing import List, Optional

from .bulk_actions import BulkUpdate
from .caption_providers import CaptionProvider
from .catalog_store import BRAND, PHOTOGRAPHER
from .config import AppConfig, load_config
from .errors import PhotoOrganizerError
from .filter_engine import ALL, SCHEDULE_CHOICES, PhotoFilter, select_all
from .logging_setup import setup_logging, get_logger
from .persistence import JsonFileSnapshotStore
from .scheduling import month_title, weeks
from .service import CatalogService
from .utils import format_file_size, parse_date, parse_time, split_list

logger = get_logger(__name__)

KINDS = {'photographers': PHOTOGRAPHER, 'brands': BRAND}


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--search", default="", help="Match name, description or photographer")
    parser.add_argument("--photographer", default=ALL,
                        help="'all', 'empty' or an exact photographer name")
    parser.add_argument("--brand", default=ALL, help="'all', 'empty' or an exact brand name")
    parser.add_argument("--schedule", default=ALL, choices=SCHEDULE_CHOICES,
                        help="Scheduling state to show")


def _add_output_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-o", "--output", help="Write to this file instead of stdout")


def _add_photo_field_arguments(parser: argparse.ArgumentParser) -> None:
    """Editable fields; an empty string clears the field."""
    parser.add_argument("--photographer", dest="set_photographer", help="Photographer name")
    parser.add_argument("--brands", help="Comma separated brand names")
    parser.add_argument("--description", help="Description")
    parser.add_argument("--hashtags", help="Hashtags")
    parser.add_argument("--location", help="Location")
    parser.add_argument("--priority", choices=["LOW", "MEDIUM", "HIGH"], type=str.upper, help="Priority")
    parser.add_argument("--date", help="Scheduled date (YYYY-MM-DD)")
    parser.add_argument("--time", help="Scheduled time (HH:MM), applied with --date")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Organize photos, photographers and brands and plan their publishing calendar"
    )
    parser.add_argument(
        "--config",
        default="config.json",
        help="Path to configuration JSON file (default: config.json)"
    )
    parser.add_argument("--storage-dir", help="Override the catalog storage directory from config")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode regardless of config setting")

    commands = parser.add_subparsers(dest="command", required=True)

    cmd = commands.add_parser("add-photos", help="Add image files to the catalog")
    cmd.add_argument("paths", nargs="+", help="Image files")
    cmd.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    cmd.set_defaults(handler=cmd_add_photos, mutating=True)

    cmd = commands.add_parser("add-test-image", help="Add a generated test image")
    cmd.set_defaults(handler=cmd_add_test_image, mutating=True)

    cmd = commands.add_parser("list", help="List photos")
    _add_filter_arguments(cmd)
    cmd.set_defaults(handler=cmd_list, mutating=False)

    cmd = commands.add_parser("stats", help="Show catalog statistics")
    cmd.set_defaults(handler=cmd_stats, mutating=False)

    cmd = commands.add_parser("edit", help="Edit one photo")
    cmd.add_argument("photo_id")
    cmd.add_argument("--name", help="Photo name")
    _add_photo_field_arguments(cmd)
    cmd.set_defaults(handler=cmd_edit, mutating=True)

    cmd = commands.add_parser("remove", help="Delete photos")
    cmd.add_argument("photo_ids", nargs="+")
    cmd.set_defaults(handler=cmd_remove, mutating=True)

    cmd = commands.add_parser("quick-action", help="Apply fields to selected photos")
    cmd.add_argument("photo_ids", nargs="*", help="Selected photo ids")
    cmd.add_argument("--all-filtered", action="store_true",
                     help="Select every photo matching the filter options")
    cmd.add_argument("--search", default="")
    cmd.add_argument("--filter-photographer", default=ALL)
    cmd.add_argument("--filter-brand", default=ALL)
    cmd.add_argument("--filter-schedule", default=ALL, choices=SCHEDULE_CHOICES)
    _add_photo_field_arguments(cmd)
    cmd.set_defaults(handler=cmd_quick_action, mutating=True)

    cmd = commands.add_parser("schedule", help="Schedule a photo on a date")
    cmd.add_argument("photo_id")
    cmd.add_argument("date", help="YYYY-MM-DD")
    cmd.set_defaults(handler=cmd_schedule, mutating=True)

    cmd = commands.add_parser("unschedule", help="Remove a photo from the schedule")
    cmd.add_argument("photo_id")
    cmd.set_defaults(handler=cmd_unschedule, mutating=True)

    cmd = commands.add_parser("calendar", help="Show a month of the publishing calendar")
    cmd.add_argument("--year", type=int)
    cmd.add_argument("--month", type=int)
    cmd.set_defaults(handler=cmd_calendar, mutating=False)

    cmd = commands.add_parser("names", help="List photographers or brands")
    cmd.add_argument("kind", choices=sorted(KINDS))
    cmd.set_defaults(handler=cmd_names, mutating=False)

    cmd = commands.add_parser("add-photographer", help="Add a photographer")
    cmd.add_argument("name")
    cmd.set_defaults(handler=cmd_add_named, kind="photographers", mutating=True)

    cmd = commands.add_parser("add-brand", help="Add a brand")
    cmd.add_argument("name")
    cmd.set_defaults(handler=cmd_add_named, kind="brands", mutating=True)

    cmd = commands.add_parser("remove-photographer", help="Delete a photographer by id")
    cmd.add_argument("entity_id")
    cmd.set_defaults(handler=cmd_remove_named, kind="photographers", mutating=True)

    cmd = commands.add_parser("remove-brand", help="Delete a brand by id")
    cmd.add_argument("entity_id")
    cmd.set_defaults(handler=cmd_remove_named, kind="brands", mutating=True)

    cmd = commands.add_parser("import-names", help="Import photographers or brands, one per line")
    cmd.add_argument("kind", choices=sorted(KINDS))
    cmd.add_argument("file")
    cmd.set_defaults(handler=cmd_import_names, mutating=True)

    cmd = commands.add_parser("export-names", help="Export photographers or brands, one per line")
    cmd.add_argument("kind", choices=sorted(KINDS))
    _add_output_argument(cmd)
    cmd.set_defaults(handler=cmd_export_names, mutating=False)

    cmd = commands.add_parser("export-csv", help="Export photos as CSV")
    _add_filter_arguments(cmd)
    _add_output_argument(cmd)
    cmd.set_defaults(handler=cmd_export_csv, mutating=False)

    cmd = commands.add_parser("export-html", help="Export photos as an HTML table")
    _add_filter_arguments(cmd)
    _add_output_argument(cmd)
    cmd.set_defaults(handler=cmd_export_html, mutating=False)

    cmd = commands.add_parser("load-samples", help="Add sample photographers and brands")
    cmd.set_defaults(handler=cmd_load_samples, mutating=True)

    cmd = commands.add_parser("caption", help="Build a caption prompt and optionally generate the caption")
    cmd.add_argument("photo_id", nargs="?", help="Prefill from this photo")
    cmd.add_argument("--language", default="English")
    cmd.add_argument("--style", dest="post_style", help="Post style/tone")
    cmd.add_argument("--custom-style", default="")
    cmd.add_argument("--creator", dest="creator_name", help="Name of the account owner")
    cmd.add_argument("--category", dest="main_category", default="")
    cmd.add_argument("--subcategory", dest="sub_category", default="")
    cmd.add_argument("--brand-handle", default="")
    cmd.add_argument("--discount-code", default="")
    cmd.add_argument("--event", dest="event_name", default="")
    cmd.add_argument("--venue", default="")
    cmd.add_argument("--country", default="")
    cmd.add_argument("--tagged-people", default="")
    cmd.add_argument("--community-tags", default="")
    cmd.add_argument("--generate", action="store_true", help="Send the prompt to the caption provider")
    cmd.set_defaults(handler=cmd_caption, mutating=False)

    return parser.parse_args(argv)


def process_arguments(args: argparse.Namespace, config: AppConfig) -> AppConfig:
    """
    Process command-line arguments and override config values.

    Args:
        args: Parsed arguments
        config: Loaded configuration

    Returns:
        Updated configuration
    """
    if args.debug:
        config.debug_mode = True
        config.log_level = "DEBUG"
    if args.storage_dir:
        config.storage_dir = args.storage_dir
    return config


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(text + '\n')
        print(f"Success: written to {output}")
    else:
        print(text)


def _filter_from_args(args: argparse.Namespace) -> PhotoFilter:
    return PhotoFilter(search=args.search, photographer=args.photographer,
                       brand=args.brand, schedule=args.schedule)


def _photo_fields_from_args(args: argparse.Namespace) -> dict:
    """Explicit edits: only options that were given; empty strings clear."""
    fields = {}
    for option, field_name in (('set_photographer', 'photographer'), ('description', 'description'),
                               ('hashtags', 'hashtags'), ('location', 'location')):
        value = getattr(args, option)
        if value is not None:
            fields[field_name] = value.strip() or None
    if getattr(args, 'name', None):
        fields['name'] = args.name
    if args.brands is not None:
        fields['brands'] = split_list(args.brands)
    if args.priority:
        fields['priority'] = args.priority
    if args.date is not None:
        fields['scheduled_date'] = parse_date(args.date) if args.date.strip() else None
    if args.time is not None:
        fields['scheduled_time'] = parse_time(args.time) if args.time.strip() else None
    return fields


# ---------------------------------------------------------------------------
# Command handlers. Each returns an exit code.
# ---------------------------------------------------------------------------

def cmd_add_photos(service: CatalogService, args: argparse.Namespace) -> int:
    photos, skipped = service.add_photos_from_files(args.paths, show_progress=not args.no_progress)
    print(f"Success: uploaded {len(photos)} photo{'s' if len(photos) != 1 else ''}")
    for photo in photos:
        status = "thumbnail" if photo.thumbnail else "original only"
        print(f"  {photo.id}  {photo.name}  ({format_file_size(photo.size_bytes)}, {status})")
    if skipped:
        print(f"Skipped {len(skipped)} file(s) that are not images")
    return 0


def cmd_add_test_image(service: CatalogService, args: argparse.Namespace) -> int:
    photo = service.add_test_image()
    print(f"Success: test image added ({photo.id})")
    return 0


def cmd_list(service: CatalogService, args: argparse.Namespace) -> int:
    view = service.filtered_view(_filter_from_args(args))
    count = 0
    for photo in view:
        scheduled = photo.scheduled_date.isoformat() if photo.scheduled_date else "-"
        if photo.scheduled_date and photo.scheduled_time:
            scheduled += f" {photo.scheduled_time}"
        print(f"{photo.id}  {photo.name}  [{photo.priority.value}]  "
              f"photographer={photo.photographer or '-'}  brands={', '.join(photo.brands) or '-'}  "
              f"scheduled={scheduled}  size={format_file_size(photo.size_bytes)}")
        count += 1
    print(f"{count} of {len(service.snapshot.photos)} photos")
    return 0


def cmd_stats(service: CatalogService, args: argparse.Namespace) -> int:
    stats = service.statistics()
    print(f"Total photos:     {stats.total_photos}")
    print(f"Tagged photos:    {stats.tagged_photos}")
    print(f"Scheduled photos: {stats.scheduled_photos}")
    print(f"Photographers:    {stats.photographers}")
    print(f"Brands:           {stats.brands}")
    print(f"Total contacts:   {stats.total_contacts}")
    return 0


def cmd_edit(service: CatalogService, args: argparse.Namespace) -> int:
    fields = _photo_fields_from_args(args)
    service.update_photo(args.photo_id, **fields)
    print("Success: photo updated successfully")
    return 0


def cmd_remove(service: CatalogService, args: argparse.Namespace) -> int:
    removed = service.remove_photos(args.photo_ids)
    print(f"Success: deleted {removed} photo{'s' if removed != 1 else ''}")
    return 0


def cmd_quick_action(service: CatalogService, args: argparse.Namespace) -> int:
    selection = list(args.photo_ids)
    if args.all_filtered:
        selection += select_all(service.filtered_view(PhotoFilter(
            search=args.search, photographer=args.filter_photographer,
            brand=args.filter_brand, schedule=args.filter_schedule)))

    template = BulkUpdate.from_form(
        photographer=args.set_photographer, brands=args.brands, date=args.date, time=args.time,
        location=args.location, priority=args.priority, description=args.description,
        hashtags=args.hashtags,
    )
    count = service.apply_quick_action(selection, template)
    print(f"Success: applied actions to {count} photo{'s' if count != 1 else ''}")
    return 0


def cmd_schedule(service: CatalogService, args: argparse.Namespace) -> int:
    date = parse_date(args.date)
    service.assign(args.photo_id, date)
    print(f"Success: photo scheduled for {date.isoformat()}")
    return 0


def cmd_unschedule(service: CatalogService, args: argparse.Namespace) -> int:
    service.unassign(args.photo_id)
    print("Success: photo removed from schedule")
    return 0


def cmd_calendar(service: CatalogService, args: argparse.Namespace) -> int:
    today = datetime.date.today()
    year = args.year or today.year
    month = args.month or today.month

    cells = service.month_grid(year, month, today)
    print(month_title(year, month))
    print(" ".join(f"{name:>6}" for name in ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")))
    for week in weeks(cells):
        row = []
        for cell in week:
            label = f"{cell.date.day}" if cell.in_current_month else f"({cell.date.day})"
            if cell.is_today:
                label += "*"
            if cell.photos:
                label += f"+{len(cell.photos)}"
            row.append(f"{label:>6}")
        print(" ".join(row))

    scheduled = service.scheduled_photos_for_month(year, month)
    if scheduled:
        print()
        for photo in sorted(scheduled, key=lambda p: (p.scheduled_date, p.scheduled_time or "")):
            time_label = f" {photo.scheduled_time}" if photo.scheduled_time else ""
            print(f"  {photo.scheduled_date.isoformat()}{time_label}  {photo.name}  ({photo.id})")
    print(f"\nUnscheduled photos: {len(service.unscheduled_photos())}")
    return 0


def cmd_names(service: CatalogService, args: argparse.Namespace) -> int:
    records = service.snapshot.photographers if KINDS[args.kind] == PHOTOGRAPHER else service.snapshot.brands
    for record in records:
        print(f"{record.id}  {record.name}")
    print(f"{len(records)} {args.kind}")
    return 0


def cmd_add_named(service: CatalogService, args: argparse.Namespace) -> int:
    if KINDS[args.kind] == PHOTOGRAPHER:
        record = service.add_photographer(args.name)
    else:
        record = service.add_brand(args.name)
    print(f"Success: {KINDS[args.kind].capitalize()} added successfully ({record.id})")
    return 0


def cmd_remove_named(service: CatalogService, args: argparse.Namespace) -> int:
    if KINDS[args.kind] == PHOTOGRAPHER:
        service.remove_photographer(args.entity_id)
    else:
        service.remove_brand(args.entity_id)
    print(f"Success: {KINDS[args.kind].capitalize()} deleted successfully")
    return 0


def cmd_import_names(service: CatalogService, args: argparse.Namespace) -> int:
    with open(args.file, 'r', encoding='utf-8') as f:
        text = f.read()
    added = service.import_names(KINDS[args.kind], text)
    print(f"Success: imported {added} {args.kind}")
    return 0


def cmd_export_names(service: CatalogService, args: argparse.Namespace) -> int:
    _write_output(service.export_names(KINDS[args.kind]), args.output)
    return 0


def cmd_export_csv(service: CatalogService, args: argparse.Namespace) -> int:
    _write_output(service.export_csv(_filter_from_args(args)), args.output)
    return 0


def cmd_export_html(service: CatalogService, args: argparse.Namespace) -> int:
    _write_output(service.export_html(_filter_from_args(args)), args.output)
    return 0


def cmd_load_samples(service: CatalogService, args: argparse.Namespace) -> int:
    photographers, brands = service.load_sample_data()
    print(f"Success: loaded {photographers} photographers and {brands} brands")
    return 0


def cmd_caption(service: CatalogService, args: argparse.Namespace) -> int:
    overrides = {
        'language': args.language,
        'custom_style': args.custom_style,
        'main_category': args.main_category,
        'sub_category': args.sub_category,
        'brand_handle': args.brand_handle,
        'discount_code': args.discount_code,
        'event_name': args.event_name,
        'venue': args.venue,
        'country': args.country,
        'tagged_people': args.tagged_people,
        'community_tags': args.community_tags,
    }
    if args.post_style:
        overrides['post_style'] = args.post_style
    if args.creator_name:
        overrides['creator_name'] = args.creator_name

    prompt = service.caption_prompt(args.photo_id, **overrides)
    print(prompt)

    if args.generate:
        caption = service.generate_caption(prompt)
        if caption is None:
            print("Error: caption could not be generated", file=sys.stderr)
            return 1
        print("\n--- Generated caption ---\n")
        print(caption)
    return 0


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    Run the command-line interface.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        args = parse_arguments(argv)
        config = load_config(args.config)
        config = process_arguments(args, config)
        setup_logging(config, log_prefix="photo_organizer")
    except (RuntimeError, ValueError) as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1

    store = JsonFileSnapshotStore(config.resolved_storage_dir)
    try:
        provider = CaptionProvider.get_provider(config) if args.command == "caption" else None
    except ValueError as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1

    service = CatalogService(store, config, caption_provider=provider)
    try:
        if not service.load():
            print("Error: failed to load saved data; nothing was changed", file=sys.stderr)
            return 1

        try:
            exit_code = args.handler(service, args)
        except (PhotoOrganizerError, ValueError) as e:
            # Surface as a notice; the stored catalog is untouched
            print(f"Error: {str(e)}", file=sys.stderr)
            return 1
        except (IOError, OSError) as e:
            print(f"Error: {str(e)}", file=sys.stderr)
            return 1

        if args.mutating and exit_code == 0 and not service.save():
            print(f"Error: failed to save catalog to {store.directory}", file=sys.stderr)
            return 1
        return exit_code

    except Exception as e:
        logger.error(f"Command failed: {str(e)}")
        if config.debug_mode:
            import traceback
            logger.error(f"Traceback: {traceback.format_exc()}")
        return 1
    finally:
        service.close()
