"""Domain models for the developer-certification ingestion core.

Records and dataset versions are frozen dataclasses; metrics objects are derived
values recomputed on demand.
"""

from .column_map import ABSENT, LOGICAL_FIELDS, ColumnMap
from .dataset_version import DatasetVersion
from .issue_record import IssueRecord
from .metrics import (
    ChartPoint,
    DashboardMetrics,
    DateWindow,
    LeaderboardEntry,
    MembershipChartPoint,
    MembershipMetrics,
    MetricsSnapshot,
    ReportingContext,
)
from .processing_result import BatchStatsAccumulator, IngestResult
from .record import UNKNOWN_PARTNER, DeveloperRecord, Grade

__all__ = [
    # Record models
    "DeveloperRecord",
    "Grade",
    "UNKNOWN_PARTNER",
    "ColumnMap",
    "ABSENT",
    "LOGICAL_FIELDS",
    "DatasetVersion",
    # Processing models
    "IngestResult",
    "BatchStatsAccumulator",
    "IssueRecord",
    # Metrics models
    "DateWindow",
    "DashboardMetrics",
    "ChartPoint",
    "MembershipMetrics",
    "MembershipChartPoint",
    "LeaderboardEntry",
    "ReportingContext",
    "MetricsSnapshot",
]
