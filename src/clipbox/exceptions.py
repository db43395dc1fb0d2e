"""Exceptions raised by clipbox."""


class ClipboxError(Exception):
    """Base class for clipbox errors."""


class InvalidEntryIdError(ClipboxError, ValueError):
    """An entry id was missing, malformed or not positive."""


class EntryNotFoundError(ClipboxError, LookupError):
    """No clipboard entry exists with the requested id."""

    def __init__(self, entry_id: int):
        super().__init__(f"entry with id {entry_id} not found")
        self.entry_id = entry_id


class BufferOutOfRangeError(ClipboxError, ValueError):
    """A buffer id outside 1..BUFFER_COUNT was requested."""

    def __init__(self, buffer_id: int, buffer_count: int = 5):
        super().__init__(f"buffer_id must be between 1 and {buffer_count}, got {buffer_id}")
        self.buffer_id = buffer_id


class IconError(ClipboxError):
    """Thumbnail icon could not be decoded, resized or written."""


class ClipboardError(ClipboxError):
    """Content could not be handed to the system clipboard."""
