"""Tests for the run logger, report rendering, persistence and retention."""

import logging
from datetime import date, datetime

import pytest

from guidepost.core.log_storage import LocalLogStorage
from guidepost.pipeline.run_logger import RunLogger, prune_old_reports


class TestRunLogger:
    def test_entries_in_order(self) -> None:
        run_log = RunLogger()
        run_log.info("setup", "one")
        run_log.warn("filtering", "two")
        run_log.error("search", "three")
        assert [(e.level, e.category, e.message) for e in run_log.entries] == [
            ("info", "setup", "one"),
            ("warn", "filtering", "two"),
            ("error", "search", "three"),
        ]
        assert run_log.error_count == 1
        assert run_log.warning_count == 1

    def test_entries_is_a_copy(self) -> None:
        run_log = RunLogger()
        run_log.info("setup", "x")
        run_log.entries.clear()
        assert len(run_log.entries) == 1

    def test_mirrors_to_stdlib_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="guidepost.pipeline"):
            run_log = RunLogger()
            run_log.info("queries", "Profile abc: 2 queries built")
            run_log.error("insert", "boom")
        assert "[queries] Profile abc: 2 queries built" in caplog.text
        assert any(r.levelno == logging.ERROR and "boom" in r.message for r in caplog.records)


class TestToMarkdown:
    def test_grouped_by_category(self) -> None:
        run_log = RunLogger(started_at=datetime(2026, 3, 1, 6, 0, 0))
        run_log.info("setup", "Found 1 active profile(s) to search")
        run_log.error("search", "Search error for query \"x\": boom")
        run_log.warn("setup", "defaults used")
        md = run_log.to_markdown(finished_at=datetime(2026, 3, 1, 6, 0, 12))

        assert md.startswith("## Search Run: 2026-03-01 06:00:00")
        assert "| Duration | 12.0s |" in md
        assert "| Errors | 1 |" in md
        assert "| Warnings | 1 |" in md
        # first-seen category order, entries grouped
        assert md.index("### setup") < md.index("### search")
        assert md.count("### setup") == 1
        assert "✅" in md
        assert "❌" in md
        assert "⚠️" in md

    def test_empty(self) -> None:
        md = RunLogger().to_markdown()
        assert "_No log entries recorded._" in md


class TestPersist:
    def test_creates_dated_report(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        storage = LocalLogStorage(tmp_path)
        run_log = RunLogger()
        run_log.info("setup", "hello")
        name = run_log.persist(storage, today=date(2026, 3, 1))

        assert name == "2026-03-01.md"
        content = (tmp_path / name).read_text()
        assert content.startswith("# Pipeline Logs: 2026-03-01")
        assert "hello" in content

    def test_appends_to_existing(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        storage = LocalLogStorage(tmp_path)
        for message in ("first run", "second run"):
            run_log = RunLogger()
            run_log.info("setup", message)
            run_log.persist(storage, today=date(2026, 3, 1))

        content = (tmp_path / "2026-03-01.md").read_text()
        assert content.count("# Pipeline Logs:") == 1
        assert content.count("## Search Run:") == 2
        assert content.index("first run") < content.index("second run")

    def test_nothing_to_write(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        storage = LocalLogStorage(tmp_path)
        assert RunLogger().persist(storage, today=date(2026, 3, 1)) is None
        assert storage.list_names() == []


class TestPruneOldReports:
    def test_deletes_before_cutoff(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        storage = LocalLogStorage(tmp_path)
        for name in ("2026-02-01.md", "2026-02-14.md", "2026-02-15.md", "2026-03-01.md"):
            storage.upload(name, "x")
        storage.upload("notes.txt", "keep")

        deleted = prune_old_reports(storage, retention_days=14, today=date(2026, 3, 1))

        # cutoff is 2026-02-15
        assert deleted == ["2026-02-01.md", "2026-02-14.md"]
        assert storage.list_names() == ["2026-02-15.md", "2026-03-01.md", "notes.txt"]

    def test_empty_storage(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        storage = LocalLogStorage(tmp_path / "missing")
        assert prune_old_reports(storage, today=date(2026, 3, 1)) == []
