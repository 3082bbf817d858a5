from __future__ import annotations

import logging
from typing import Protocol

from ..models.metrics import DashboardMetrics, ReportingContext

"""Prompt building for the optional text summarizer.

The summarizer itself is an external collaborator. Without one, or when it
fails, callers get a fixed "unavailable" text instead of an exception.
"""

__all__ = [
    "Summarizer",
    "UNAVAILABLE_SUMMARY",
    "UNAVAILABLE_REPORT",
    "FAILED_SUMMARY",
    "build_summary_prompt",
    "build_comparative_prompt",
    "executive_summary",
    "comparative_report",
]

logger = logging.getLogger(__name__)

UNAVAILABLE_SUMMARY = "AI Insights unavailable: Missing API Key configuration."
UNAVAILABLE_REPORT = "AI Report unavailable: Missing API Key configuration."
FAILED_SUMMARY = "Unable to generate AI insight. Please check API Key and quotas."


class Summarizer(Protocol):
    def generate(self, prompt: str) -> str: ...


def build_summary_prompt(metrics: DashboardMetrics, context: str = "Global") -> str:
    scope = "Global Overview (All Regions)" if context in ("All", "Global") else context
    return (
        "You are a Senior Program Analyst for a developer certification program.\n"
        f"CONTEXT: dashboard for {scope}.\n"
        "TASK: write an Executive Summary (max 3 sentences) comparing these metrics "
        "against a high-performing certification program benchmark.\n"
        "DATA:\n"
        f"- Registered Developers: {metrics.total_registered}\n"
        f"- Certified Developers: {metrics.total_certified}\n"
        f"- Certification Rate: {metrics.certification_rate:.1f}%\n"
        f"- Average Completion Time: {metrics.avg_completion_time_days:.1f} days\n"
        f"- Suspicious/Fraudulent Accounts: {metrics.potential_fake_accounts}\n"
        f"- Active Communities involved: {metrics.active_communities}\n"
        "Highlight red flags (high fraud, low completion rate, zero certifications). "
        "Tone: professional, concise, executive."
    )


def build_comparative_prompt(report: ReportingContext) -> str:
    cur, prev, glob = report.current, report.previous, report.global_metrics
    return (
        f"Generate a comparative performance report for the community: {report.community}.\n"
        "1. CURRENT PERIOD:\n"
        f"   - Registrations: {cur.total_registered}\n"
        f"   - Certifications: {cur.total_certified}\n"
        f"   - Rate: {cur.certification_rate:.1f}%\n"
        "2. PREVIOUS PERIOD:\n"
        f"   - Registrations: {prev.total_registered} "
        f"(growth {report.registration_growth_pct:.1f}%)\n"
        f"   - Certifications: {prev.total_certified} "
        f"(growth {report.certification_growth_pct:.1f}%)\n"
        "3. GLOBAL BENCHMARK:\n"
        f"   - Average Rate: {glob.certification_rate:.1f}%\n"
        f"   - Avg Completion: {glob.avg_completion_time_days:.1f} days\n"
        "Summarize growth, compare against the global benchmark and suggest one action."
    )


def _generate(summarizer: Summarizer, prompt: str) -> str:
    try:
        text = summarizer.generate(prompt)
    except Exception as e:
        logger.warning(f"summarizer failed: {e}")
        return FAILED_SUMMARY
    return text or "Analysis complete."


def executive_summary(
    metrics: DashboardMetrics, context: str = "Global", summarizer: Summarizer | None = None
) -> str:
    if summarizer is None:
        return UNAVAILABLE_SUMMARY
    return _generate(summarizer, build_summary_prompt(metrics, context))


def comparative_report(report: ReportingContext, summarizer: Summarizer | None = None) -> str:
    if summarizer is None:
        return UNAVAILABLE_REPORT
    return _generate(summarizer, build_comparative_prompt(report))
