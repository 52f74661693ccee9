"""Run logger: categorized entries collected during a pipeline run.

Entries are mirrored to stdlib logging as they arrive, rendered to a
markdown report at the end of the run, and appended to a dated report in
log storage. Reports older than the retention window are pruned by name.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Literal

from pydantic import BaseModel, Field

from guidepost.core.log_storage import LogStorage

logger = logging.getLogger("guidepost.pipeline")

Level = Literal["info", "warn", "error"]

RETENTION_DAYS = 14
REPORT_SUFFIX = ".md"

_LEVEL_MAP: dict[str, int] = {
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_LEVEL_ICONS: dict[str, str] = {
    "info": "✅",
    "warn": "⚠️",
    "error": "❌",
}


class LogEntry(BaseModel):
    """One categorized log line."""

    timestamp: datetime = Field(default_factory=datetime.now)
    level: Level
    category: str
    message: str


class RunLogger:
    """Append-only collector of log entries for one run.

    Usage::

        run_log = RunLogger()
        run_log.info("setup", "Found 2 active profiles")
        ...
        run_log.persist(LocalLogStorage("data/pipeline-logs"))
    """

    def __init__(self, started_at: datetime | None = None) -> None:
        self._entries: list[LogEntry] = []
        self._started_at = started_at or datetime.now()

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    @property
    def started_at(self) -> datetime:
        return self._started_at

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._entries if e.level == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._entries if e.level == "warn")

    def info(self, category: str, message: str) -> None:
        self._add("info", category, message)

    def warn(self, category: str, message: str) -> None:
        self._add("warn", category, message)

    def error(self, category: str, message: str) -> None:
        self._add("error", category, message)

    def _add(self, level: Level, category: str, message: str) -> None:
        self._entries.append(LogEntry(level=level, category=category, message=message))
        logger.log(_LEVEL_MAP[level], "[%s] %s", category, message)

    def to_markdown(self, finished_at: datetime | None = None) -> str:
        """Render the entries as a markdown report grouped by category."""
        end = finished_at or datetime.now()
        duration = (end - self._started_at).total_seconds()

        lines = [
            f"## Search Run: {self._started_at:%Y-%m-%d %H:%M:%S}",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Duration | {duration:.1f}s |",
            f"| Log entries | {len(self._entries)} |",
            f"| Errors | {self.error_count} |",
            f"| Warnings | {self.warning_count} |",
            "",
        ]

        if not self._entries:
            lines.append("_No log entries recorded._")
            return "\n".join(lines)

        # dict preserves first-seen category order
        by_category: dict[str, list[LogEntry]] = {}
        for entry in self._entries:
            by_category.setdefault(entry.category, []).append(entry)

        for category, entries in by_category.items():
            lines.append(f"### {category}")
            lines.append("")
            for entry in entries:
                icon = _LEVEL_ICONS[entry.level]
                lines.append(f"- {icon} `{entry.timestamp:%H:%M:%S}` {entry.message}")
            lines.append("")

        return "\n".join(lines)

    def persist(self, storage: LogStorage, today: date | None = None) -> str | None:
        """Append this run's report to the day's report file.

        Creates ``YYYY-MM-DD.md`` with a header when it does not exist yet.
        Returns the report name, or None when there was nothing to write.
        """
        if not self._entries:
            return None

        day = (today or date.today()).isoformat()
        name = f"{day}{REPORT_SUFFIX}"
        existing = storage.download(name)
        header = existing if existing else f"# Pipeline Logs: {day}\n\n"
        storage.upload(name, f"{header}\n---\n\n{self.to_markdown()}\n")
        logger.debug("Persisted run report to %s", name)
        return name


def prune_old_reports(
    storage: LogStorage,
    retention_days: int = RETENTION_DAYS,
    today: date | None = None,
) -> list[str]:
    """Delete reports dated before ``today - retention_days``.

    Dates are compared as filename strings (ISO dates sort lexicographically).
    Returns the deleted names.
    """
    cutoff = (today or date.today()) - timedelta(days=retention_days)
    cutoff_name = f"{cutoff.isoformat()}{REPORT_SUFFIX}"

    to_delete = [
        name for name in storage.list_names()
        if name.endswith(REPORT_SUFFIX) and name < cutoff_name
    ]
    if to_delete:
        storage.remove(to_delete)
        logger.info("Pruned %d old run report(s)", len(to_delete))
    return to_delete
