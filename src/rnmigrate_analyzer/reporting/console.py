from __future__ import annotations

import logging
from typing import Any

from ..models.schema import RunReport, UsageReport

RULE = "-" * 50


def log_add_props_summary(report: RunReport, log: Any) -> None:
    c = report.counters
    log.info("Processing Report")
    log.info(RULE)
    log.info("Files Processed: %d", c.get("files_processed", 0))
    log.info("Files Modified: %d", c.get("files_modified", 0))
    log.info("Components Found: %d", c.get("components_found", 0))
    log.info("Props Added: %d", c.get("props_added", 0))
    log.info("Props Updated: %d", c.get("props_updated", 0))
    log.info("Props Skipped: %d", c.get("props_skipped", 0))
    _log_errors(report, log)
    log.info(RULE)


def log_analysis_summary(report: RunReport, usage: UsageReport, log: Any, top: int = 5) -> None:
    log.info("Summary:")
    log.info("   Files analyzed: %d", report.counters.get("files_processed", 0))
    log.info("   Components found: %d", usage.total_components)
    log.info("   Total usages: %d", usage.total_usages)
    log.info("   Packages tracked: %d", len(usage.packages))
    _log_errors(report, log)
    if usage.components:
        log.info("Top Components by Usage:")
        for i, comp in enumerate(usage.components[:top], start=1):
            log.info("%d. %s - %d usages (%s priority)", i, comp.name, comp.total_usages, comp.priority.upper())


def _log_errors(report: RunReport, log: Any) -> None:
    if not report.errors:
        return
    log.log(logging.ERROR if report.files_errored else logging.WARNING, "Errors: %d", len(report.errors))
    for e in report.errors:
        log.info("  - %s: %s", e.path, e.message)
