"""
Exception hierarchy for catalog operations.
"""


class PhotoOrganizerError(Exception):
    """Base class for all photo organizer errors."""


class InvalidNameError(PhotoOrganizerError, ValueError):
    """Raised when a photographer or brand name is blank."""


class DuplicateNameError(PhotoOrganizerError):
    """Raised when a photographer or brand name already exists (case-insensitive)."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind.capitalize()} already exists: {name}")
        self.kind = kind
        self.name = name


class NotFoundError(PhotoOrganizerError, KeyError):
    """Raised when an operation targets an id that is not in the catalog."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind.capitalize()} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id

    def __str__(self) -> str:
        # KeyError would repr() the message otherwise
        return self.args[0]


class EmptySelectionError(PhotoOrganizerError):
    """Raised when a bulk action is applied without any selected photos."""

    def __init__(self, message: str = "Please select photos to apply actions to"):
        super().__init__(message)


class ThumbnailError(PhotoOrganizerError):
    """Base class for thumbnail pipeline failures."""


class DecodeError(ThumbnailError):
    """The source image could not be decoded."""


class EncodeError(ThumbnailError):
    """The scaled image could not be encoded in the requested format."""


class PersistenceError(PhotoOrganizerError):
    """The snapshot store failed to read or write."""
