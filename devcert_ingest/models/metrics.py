from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any

"""Metrics value objects.

Everything here is derived data recomputed on demand from a record sequence and
an optional DateWindow. ``to_dict`` returns JSON-serializable shapes for the
charting / reporting collaborators.
"""

__all__ = [
    "DateWindow",
    "DashboardMetrics",
    "ChartPoint",
    "MembershipMetrics",
    "MembershipChartPoint",
    "LeaderboardEntry",
    "ReportingContext",
    "MetricsSnapshot",
]


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class DateWindow:
    """Inclusive [start, end] instant range. None means unbounded on that side."""
    start: datetime | None = None
    end: datetime | None = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class DashboardMetrics:
    total_registered: int = 0
    total_certified: int = 0
    users_started_course: int = 0
    users_started_course_pct: float = 0.0
    active_communities: int = 0
    avg_completion_time_days: float = 0.0
    certification_rate: float = 0.0
    overall_subscriber_rate: float = 0.0
    subscriber_count: int = 0
    potential_fake_accounts: int = 0
    potential_fake_accounts_pct: float = 0.0
    rapid_completions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ChartPoint:
    bucket: date  # 日次: その日 / 週次: 月曜日
    name: str  # e.g. "Mar 4"
    registrations: int = 0
    certifications: int = 0

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class MembershipMetrics:
    total_enrolled: int = 0
    total_members: int = 0
    membership_rate: float = 0.0
    certified_members: int = 0
    certified_member_rate: float = 0.0
    active_communities: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MembershipChartPoint:
    bucket: date
    name: str
    enrollees: int = 0
    new_members: int = 0

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class LeaderboardEntry:
    name: str  # partner code
    value: int  # certified count

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ReportingContext:
    """Period-over-period comparison for one community against the global set."""
    community: str
    window: DateWindow
    previous_window: DateWindow
    current: DashboardMetrics
    previous: DashboardMetrics
    global_metrics: DashboardMetrics
    registration_growth_pct: float = 0.0
    certification_growth_pct: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class MetricsSnapshot:
    window: DateWindow
    dashboard: DashboardMetrics
    chart: list[ChartPoint] = field(default_factory=list)
    leaderboard: list[LeaderboardEntry] = field(default_factory=list)
    membership: MembershipMetrics = field(default_factory=MembershipMetrics)

    def to_dict(self) -> dict[str, Any]:
        return _jsonable(asdict(self))
