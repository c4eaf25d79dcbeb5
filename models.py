"""Data records passed between the pipeline stages."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now():
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class CheckpointEntry:
    """Saved pagination progress for one resource.

    Attributes:
        offset: Index of the next record to request
        expected_total: Total record count last reported by the server
        last_update: ISO timestamp of the save
    """

    offset: int
    expected_total: int
    last_update: str = field(default_factory=utc_now)

    @property
    def is_complete(self) -> bool:
        return self.offset >= self.expected_total

    def to_dict(self) -> dict:
        return {
            "offset": self.offset,
            "expectedTotal": self.expected_total,
            "lastUpdate": self.last_update,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CheckpointEntry":
        """Build an entry from its JSON form, rejecting malformed values."""
        offset = data["offset"]
        total = data["expectedTotal"]
        for name, value in (("offset", offset), ("expectedTotal", total)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        return cls(offset=offset, expected_total=total, last_update=str(data.get("lastUpdate", "")))


@dataclass(frozen=True)
class TrainingExample:
    instruction: str
    input: str
    response: str


class FetchState(str, Enum):
    FETCHING = "fetching"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    TRANSPORT_ERROR = "transport_error"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class WriteStats:
    """Outcome of writing one page of raw records."""

    written: int = 0
    skipped: int = 0
    failed: int = 0
    durable: bool = True  # False when the file itself could not be written


@dataclass
class FetchResult:
    """Outcome of draining one resource."""

    resource: str
    state: FetchState = FetchState.FETCHING
    offset: int = 0
    total: int | None = None
    pages: int = 0
    attempts: int = 0
    retries: int = 0
    written: int = 0
    skipped: int = 0
    failed: int = 0

    def add_page(self, stats: WriteStats):
        self.pages += 1
        self.written += stats.written
        self.skipped += stats.skipped
        self.failed += stats.failed


@dataclass
class TransformStats:
    """Counters collected by one transform run. Informational only."""

    files: int = 0
    lines: int = 0
    records: int = 0
    oversize_skipped: int = 0
    parse_errors: int = 0
    excluded: int = 0
    examples: int = 0


@dataclass
class PipelineReport:
    fetches: list = field(default_factory=list)
    transform: TransformStats = field(default_factory=TransformStats)

    @property
    def aborted(self) -> list:
        return [r.resource for r in self.fetches if r.state is FetchState.ABORTED]
