from __future__ import annotations

from dataclasses import dataclass

"""ColumnMap model: logical field -> CSV column index.

Built once per file by the header detector. Absent columns map to ABSENT (-1).
"""

__all__ = [
    "ABSENT",
    "LOGICAL_FIELDS",
    "ColumnMap",
]

ABSENT = -1

# 論理フィールド名 (CSV ヘッダ候補は reader.header 側で管理)
LOGICAL_FIELDS: tuple[str, ...] = (
    "email",
    "firstName",
    "lastName",
    "phone",
    "country",
    "membershipAccepted",
    "marketingAccepted",
    "walletAddress",
    "partnerCode",
    "partnerName",
    "percentageCompleted",
    "createdAt",
    "completedAt",
    "finalScore",
    "finalGrade",
    "caStatus",
)


@dataclass(frozen=True)
class ColumnMap:
    """Resolved column positions for one file.

    ``indexes`` holds an entry for every name in LOGICAL_FIELDS.
    """
    indexes: dict[str, int]

    def index_of(self, field: str) -> int:
        return self.indexes.get(field, ABSENT)

    def is_present(self, field: str) -> bool:
        return self.index_of(field) != ABSENT

    def value(self, cells: list[str], field: str) -> str:
        """Cell text for ``field`` or "" when the column is absent or the row is short."""
        idx = self.index_of(field)
        if idx == ABSENT or idx >= len(cells):
            return ""
        return cells[idx]
