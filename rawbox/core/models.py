"""
File and statistics models.

Data classes built from RawBox server payloads.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a server timestamp.

    Accepts epoch seconds (int/float or numeric string) and ISO-8601
    strings. Anything else yields None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.fromtimestamp(float(text), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            pass
        try:
            return datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class FileEntry:
    """
    One entry of a directory listing.

    Attributes:
        name: Entry name, relative to the listed directory
        size: Size in bytes (0 for directories the server reports without one)
        is_dir: True for directories
        modified_at: Modification time if the server sent one
    """
    name: str
    size: int = 0
    is_dir: bool = False
    modified_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'FileEntry':
        """Create from a ``{name, size, is_dir, time}`` record."""
        try:
            size = int(data.get('size') or 0)
        except (TypeError, ValueError):
            size = 0

        return cls(
            name=str(data.get('name', '')),
            size=max(size, 0),
            is_dir=bool(data.get('is_dir', False)),
            modified_at=parse_timestamp(data.get('time')),
        )

    @property
    def is_file(self) -> bool:
        return not self.is_dir

    def __str__(self) -> str:
        kind = "D" if self.is_dir else "F"
        return f"[{kind}] {self.name} ({self.size} bytes)"


DirectoryListing = List[FileEntry]


@dataclass
class StatsSummary:
    """
    Usage statistics.

    ``aggregated`` marks numbers computed by the server and ``summarized``
    numbers computed locally from raw logs. When neither is set, only the
    raw data is available and the numeric fields are None.
    """
    total_requests: Optional[int] = None
    success_rate: Optional[float] = None
    unique_ips: Optional[int] = None
    hot_files: List[Tuple[str, int]] = field(default_factory=list)
    hot_ips: List[Tuple[str, int]] = field(default_factory=list)
    log_files: List[str] = field(default_factory=list)
    raw_logs: List[Dict[str, Any]] = field(default_factory=list)
    aggregated: bool = False
    summarized: bool = False

    @property
    def has_numbers(self) -> bool:
        return self.aggregated or self.summarized

    def __str__(self) -> str:
        if not self.has_numbers:
            return f"Stats: {len(self.raw_logs)} raw log entries (not aggregated)"
        rate = "n/a" if self.success_rate is None else f"{self.success_rate:.2f}%"
        return (
            f"Requests: {self.total_requests}, success: {rate}, "
            f"unique IPs: {self.unique_ips}"
        )
