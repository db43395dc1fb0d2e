from dataclasses import dataclass
from datetime import datetime

BUFFER_COUNT = 5
MAX_CONTENT_SIZE = 12_000_000  # bytes; larger clips are dropped


@dataclass
class ClipboardEntry:
    id: int
    buffer_id: int
    content: bytes
    preview: str
    created_at: datetime
    pinned: bool = False
