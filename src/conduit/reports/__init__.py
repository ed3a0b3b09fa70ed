"""Reporting of pipeline run results."""

from conduit.reports.reporter import ReportFormat, ResultReporter

__all__ = ["ReportFormat", "ResultReporter"]
