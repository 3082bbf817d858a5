from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

"""DeveloperRecord domain model.

A DeveloperRecord is the canonical, cleaned representation of one CSV data row.
Records are frozen: each processing stage (normalize -> repair -> annotate)
returns a new instance via dataclasses.replace instead of mutating in place.
"""

__all__ = [
    "Grade",
    "DeveloperRecord",
    "UNKNOWN_PARTNER",
]

# パートナーコード未設定時のセンチネル (実在コミュニティではない)
UNKNOWN_PARTNER = "UNKNOWN"


class Grade(Enum):
    """Closed set of final grades. Unrecognized input normalizes to PENDING."""
    PASS = "Pass"
    FAIL = "Fail"
    PENDING = "Pending"


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def _parse_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class DeveloperRecord:
    """One developer enrolled in the certification program.

    Contact, consent and program-state fields come from the CSV. The fields
    after ``ca_status`` are enrichment computed by the integrity engine and are
    never user supplied.
    """
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    country: str = "Unknown"
    accepted_membership: bool = False
    accepted_marketing: bool = False
    wallet_address: str = ""
    partner_code: str = UNKNOWN_PARTNER
    percentage_completed: int = 0
    created_at: datetime | None = None  # tz-aware; None when the cell was empty
    completed_at: datetime | None = None
    final_score: int = 0
    final_grade: Grade = Grade.PENDING
    ca_status: str = ""
    # enrichment
    duration_hours: float | None = None
    is_suspicious: bool = False
    suspicion_reasons: tuple[str, ...] = ()
    data_error: bool = False
    date_fallback_applied: bool = False
    am_pm_repaired: bool = False

    @property
    def suspicion_reason(self) -> str:
        """Comma-joined suspicion labels in detection order."""
        return ", ".join(self.suspicion_reasons)

    @property
    def is_certified(self) -> bool:
        return self.percentage_completed == 100

    def to_dict(self) -> dict[str, Any]:
        """Plain camelCase mapping handed to persistence / reporting collaborators."""
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "country": self.country,
            "acceptedMembership": self.accepted_membership,
            "acceptedMarketing": self.accepted_marketing,
            "walletAddress": self.wallet_address,
            "partnerCode": self.partner_code,
            "percentageCompleted": self.percentage_completed,
            "createdAt": _iso(self.created_at),
            "completedAt": _iso(self.completed_at),
            "finalScore": self.final_score,
            "finalGrade": self.final_grade.value,
            "caStatus": self.ca_status,
            "durationHours": self.duration_hours,
            "isSuspicious": self.is_suspicious,
            "suspicionReason": self.suspicion_reason,
            "dataError": self.data_error,
            "dateFallbackApplied": self.date_fallback_applied,
            "amPmRepaired": self.am_pm_repaired,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> DeveloperRecord:
        """Rebuild a record from the mapping produced by :meth:`to_dict`."""
        reason = data.get("suspicionReason") or ""
        return DeveloperRecord(
            id=data["id"],
            email=data["email"],
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            phone=data.get("phone", ""),
            country=data.get("country", "Unknown"),
            accepted_membership=bool(data.get("acceptedMembership", False)),
            accepted_marketing=bool(data.get("acceptedMarketing", False)),
            wallet_address=data.get("walletAddress", ""),
            partner_code=data.get("partnerCode") or UNKNOWN_PARTNER,
            percentage_completed=int(data.get("percentageCompleted", 0)),
            created_at=_parse_iso(data.get("createdAt")),
            completed_at=_parse_iso(data.get("completedAt")),
            final_score=int(data.get("finalScore", 0)),
            final_grade=Grade(data.get("finalGrade", Grade.PENDING.value)),
            ca_status=data.get("caStatus", ""),
            duration_hours=data.get("durationHours"),
            is_suspicious=bool(data.get("isSuspicious", False)),
            suspicion_reasons=tuple(r.strip() for r in reason.split(",") if r.strip()),
            data_error=bool(data.get("dataError", False)),
            date_fallback_applied=bool(data.get("dateFallbackApplied", False)),
            am_pm_repaired=bool(data.get("amPmRepaired", False)),
        )
