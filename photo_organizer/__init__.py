"""
Photo Organizer: catalog management for photo content publishing

This package catalogs photographic assets, tags them with photographers and
brands, schedules them on a content calendar, generates thumbnail previews and
prepares structured caption requests for a text-generation service.
"""

__version__ = "1.0.0"
