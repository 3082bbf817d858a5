from __future__ import annotations

import logging

from ..models.dataset_version import DatasetVersion

"""In-memory dataset version registry.

Versions are immutable; the registry only holds them (newest first) and a
pointer to the active one. Switching versions swaps the pointer; nothing is
migrated or recomputed. Persisting versions is left to the host application.
"""

__all__ = [
    "DatasetRegistry",
    "UnknownVersionError",
]

logger = logging.getLogger(__name__)


class UnknownVersionError(KeyError):
    pass


class DatasetRegistry:
    def __init__(self) -> None:
        self._versions: list[DatasetVersion] = []
        self._active_id: str | None = None

    @property
    def versions(self) -> list[DatasetVersion]:
        return list(self._versions)

    @property
    def active(self) -> DatasetVersion | None:
        if self._active_id is None:
            return None
        return self.get(self._active_id)

    def get(self, version_id: str) -> DatasetVersion:
        for v in self._versions:
            if v.id == version_id:
                return v
        raise UnknownVersionError(version_id)

    def add(self, version: DatasetVersion, *, activate: bool = True) -> DatasetVersion:
        self._versions.insert(0, version)
        if activate or self._active_id is None:
            self._active_id = version.id
        logger.info(f"dataset version added id={version.id} file={version.file_name} records={version.record_count}")
        return version

    def activate(self, version_id: str) -> DatasetVersion:
        version = self.get(version_id)
        self._active_id = version.id
        return version

    def delete(self, version_id: str) -> None:
        version = self.get(version_id)
        self._versions.remove(version)
        if self._active_id == version_id:
            # 最新版へフォールバック (無ければ None)
            self._active_id = self._versions[0].id if self._versions else None

    def __len__(self) -> int:
        return len(self._versions)
