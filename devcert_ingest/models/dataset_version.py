from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .record import DeveloperRecord

"""DatasetVersion domain model.

An immutable snapshot produced by one successful ingestion. Re-uploading a file
creates a new version; existing versions are never edited.
"""

__all__ = [
    "DatasetVersion",
]


@dataclass(frozen=True)
class DatasetVersion:
    id: str
    file_name: str
    uploaded_at: datetime  # UTC
    records: tuple[DeveloperRecord, ...] = field(default_factory=tuple)

    @property
    def record_count(self) -> int:
        return len(self.records)

    @staticmethod
    def create(
        file_name: str,
        records: Iterable[DeveloperRecord],
        uploaded_at: datetime | None = None,
    ) -> DatasetVersion:
        """Create a new version with a fresh id and the current UTC upload time."""
        return DatasetVersion(
            id=f"v_{uuid.uuid4().hex}",
            file_name=file_name,
            uploaded_at=uploaded_at or datetime.now(UTC),
            records=tuple(records),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "fileName": self.file_name,
            "uploadDate": self.uploaded_at.isoformat().replace("+00:00", "Z"),
            "recordCount": self.record_count,
            "data": [r.to_dict() for r in self.records],
        }
