"""Tests for TreeDiagnostics: initialization, rotation, record shape and fail-soft I/O."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from lineage.diagnostics.audit import (
    DiagnosticEvent,
    TreeDiagnostics,
    read_audit_log,
    resolve_log_path,
)
from lineage.exceptions import AuditLogNotFoundError
from lineage.models.config import DiagnosticsConfig
from tests.conftest import START_TIME, ManualClock, make_agent, make_claim_view, make_snapshot


def _read_lines(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


@pytest.fixture
def diagnostics(clock: ManualClock) -> TreeDiagnostics:
    return TreeDiagnostics(clock=clock)


# ---------------------------------------------------------------------------
# initialize()
# ---------------------------------------------------------------------------


class TestInitialize:
    def test_creates_log_and_archive_dirs(self, diagnostics: TreeDiagnostics, tmp_path: Path) -> None:
        assert diagnostics.initialize(tmp_path)
        assert (tmp_path / ".logs").is_dir()
        assert (tmp_path / ".logs" / "tree-diagnostics").is_dir()
        assert diagnostics.enabled
        assert diagnostics.log_path == tmp_path / ".logs" / "tree-diagnostics.log"

    def test_idempotent(self, diagnostics: TreeDiagnostics, tmp_path: Path) -> None:
        assert diagnostics.initialize(tmp_path)
        diagnostics.log(DiagnosticEvent.AGENT_STARTED, make_snapshot())
        assert diagnostics.initialize(tmp_path)
        assert len(_read_lines(diagnostics.log_path)) == 1

    def test_small_existing_log_is_kept(self, diagnostics: TreeDiagnostics, tmp_path: Path) -> None:
        log_path = resolve_log_path(tmp_path)
        log_path.parent.mkdir(parents=True)
        log_path.write_text('{"old": true}\n', encoding="utf-8")
        diagnostics.initialize(tmp_path)
        assert log_path.read_text(encoding="utf-8") == '{"old": true}\n'
        assert list((log_path.parent / "tree-diagnostics").iterdir()) == []

    def test_oversized_log_is_rotated(self, clock: ManualClock, tmp_path: Path) -> None:
        diagnostics = TreeDiagnostics(DiagnosticsConfig(max_bytes=10), clock=clock)
        log_path = resolve_log_path(tmp_path)
        log_path.parent.mkdir(parents=True)
        log_path.write_text("x" * 100, encoding="utf-8")

        diagnostics.initialize(tmp_path)

        assert not log_path.exists()
        archives = list((log_path.parent / "tree-diagnostics").iterdir())
        assert len(archives) == 1
        assert archives[0].name.startswith("tree-diagnostics-")
        assert archives[0].suffix == ".log"
        assert archives[0].read_text(encoding="utf-8") == "x" * 100

    def test_rotation_failure_truncates(self, clock: ManualClock, tmp_path: Path) -> None:
        diagnostics = TreeDiagnostics(DiagnosticsConfig(max_bytes=10), clock=clock)
        log_path = resolve_log_path(tmp_path)
        log_path.parent.mkdir(parents=True)
        log_path.write_text("x" * 100, encoding="utf-8")

        with patch.object(Path, "replace", side_effect=OSError("busy")):
            assert diagnostics.initialize(tmp_path)

        assert log_path.read_text(encoding="utf-8") == ""

    def test_old_archives_pruned(self, clock: ManualClock, tmp_path: Path) -> None:
        config = DiagnosticsConfig(max_bytes=10, max_archives=2)
        archive_dir = tmp_path / ".logs" / "tree-diagnostics"
        archive_dir.mkdir(parents=True)
        for day in ("01", "02", "03"):
            (archive_dir / f"tree-diagnostics-2026-01-{day}T00-00-00-000000.log").write_text("old")

        TreeDiagnostics(config, clock=clock).initialize(tmp_path)

        names = sorted(p.name for p in archive_dir.iterdir())
        assert names == [
            "tree-diagnostics-2026-01-02T00-00-00-000000.log",
            "tree-diagnostics-2026-01-03T00-00-00-000000.log",
        ]

    def test_directory_failure_disables_without_raising(
        self, diagnostics: TreeDiagnostics, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        with caplog.at_level(logging.WARNING, logger="lineage.diagnostics.audit"):
            assert diagnostics.initialize(blocker) is False
        assert not diagnostics.enabled
        assert "diagnostics disabled" in caplog.text


# ---------------------------------------------------------------------------
# log()
# ---------------------------------------------------------------------------


class TestLog:
    def test_appends_record_with_context(self, diagnostics: TreeDiagnostics, tmp_path: Path) -> None:
        diagnostics.initialize(tmp_path)
        snapshot = make_snapshot([make_agent(id="main", is_main=True)])

        diagnostics.log(DiagnosticEvent.AGENT_STARTED, snapshot, {"agentId": "main"})

        [record] = _read_lines(diagnostics.log_path)
        assert list(record) == ["timestamp", "type", "context", "invariants"]
        assert record["type"] == "AGENT_STARTED"
        assert record["context"] == {"agentId": "main"}
        assert record["timestamp"].startswith("2023-11-14T22:13:20")
        assert record["invariants"]["singleMainAgent"] is True
        assert record["invariants"]["violations"] == []

    def test_context_omitted_when_not_given(self, diagnostics: TreeDiagnostics, tmp_path: Path) -> None:
        diagnostics.initialize(tmp_path)
        diagnostics.log("CLAIM_CREATED", make_snapshot())
        [record] = _read_lines(diagnostics.log_path)
        assert "context" not in record
        assert record["type"] == "CLAIM_CREATED"

    def test_empty_context_is_kept(self, diagnostics: TreeDiagnostics, tmp_path: Path) -> None:
        diagnostics.initialize(tmp_path)
        diagnostics.log("CLAIM_CREATED", make_snapshot(), {})
        [record] = _read_lines(diagnostics.log_path)
        assert record["context"] == {}

    def test_records_violations_without_raising(
        self, diagnostics: TreeDiagnostics, tmp_path: Path
    ) -> None:
        diagnostics.initialize(tmp_path)
        snapshot = make_snapshot([
            make_agent(id="a", is_main=True),
            make_agent(id="b", is_main=True),
        ])
        report = diagnostics.log(DiagnosticEvent.AGENT_STARTED, snapshot)
        assert not report.single_main_agent
        [record] = _read_lines(diagnostics.log_path)
        assert record["invariants"]["singleMainAgent"] is False
        assert record["invariants"]["violations"]

    def test_appends_in_order(
        self, diagnostics: TreeDiagnostics, clock: ManualClock, tmp_path: Path
    ) -> None:
        diagnostics.initialize(tmp_path)
        for event in (DiagnosticEvent.CLAIM_CREATED, DiagnosticEvent.CLAIM_MATCHED, DiagnosticEvent.AGENT_COMPLETED):
            diagnostics.log(event, make_snapshot())
            clock.advance(1)
        types = [r["type"] for r in _read_lines(diagnostics.log_path)]
        assert types == ["CLAIM_CREATED", "CLAIM_MATCHED", "AGENT_COMPLETED"]

    def test_non_json_context_values_stringified(
        self, diagnostics: TreeDiagnostics, tmp_path: Path
    ) -> None:
        diagnostics.initialize(tmp_path)
        diagnostics.log("AGENT_ERROR", make_snapshot(), {"path": tmp_path})
        [record] = _read_lines(diagnostics.log_path)
        assert record["context"]["path"] == str(tmp_path)

    def test_include_tree(self, clock: ManualClock, tmp_path: Path) -> None:
        diagnostics = TreeDiagnostics(DiagnosticsConfig(include_tree=True), clock=clock)
        diagnostics.initialize(tmp_path)
        snapshot = make_snapshot(
            [make_agent(id="main", name="main", is_main=True, conversation_hash="c0", agent_type_hash="t0")],
            [make_claim_view(parent_conversation_hash="c0", parent_agent_type_hash="t0")],
            main_agent_id="main",
        )
        diagnostics.log(DiagnosticEvent.CLAIM_CREATED, snapshot)
        [record] = _read_lines(diagnostics.log_path)
        assert record["tree"]["mainAgentId"] == "main"
        assert record["tree"]["agents"][0]["isMain"] is True
        assert "activeAgentId" not in record["tree"]
        assert "[main]" in record["treeText"]
        assert "CLAIMS (1):" in record["treeText"]

    def test_include_tree_with_deep_parent_chain(self, clock: ManualClock, tmp_path: Path) -> None:
        diagnostics = TreeDiagnostics(DiagnosticsConfig(include_tree=True), clock=clock)
        diagnostics.initialize(tmp_path)
        agents = [make_agent(id="main", is_main=True, conversation_hash="c0")]
        agents += [
            make_agent(id=f"a{i}", conversation_hash=f"c{i}", parent_conversation_hash=f"c{i - 1}")
            for i in range(1, 1500)
        ]

        report = diagnostics.log(DiagnosticEvent.AGENT_STARTED, make_snapshot(agents))

        assert report.ok
        assert diagnostics.enabled
        [record] = _read_lines(diagnostics.log_path)
        assert len(record["treeText"].splitlines()) == 1500

    def test_uninitialized_log_returns_report_only(
        self, diagnostics: TreeDiagnostics, tmp_path: Path
    ) -> None:
        report = diagnostics.log(DiagnosticEvent.AGENT_STARTED, make_snapshot())
        assert report.ok
        assert not (tmp_path / ".logs").exists()

    def test_write_failure_disables_without_raising(
        self, diagnostics: TreeDiagnostics, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        diagnostics.initialize(tmp_path)
        with patch.object(Path, "open", side_effect=OSError("disk full")):
            with caplog.at_level(logging.WARNING, logger="lineage.diagnostics.audit"):
                report = diagnostics.log(DiagnosticEvent.AGENT_STARTED, make_snapshot())
        assert report.ok
        assert not diagnostics.enabled
        assert "write" in caplog.text

        diagnostics.log(DiagnosticEvent.AGENT_COMPLETED, make_snapshot())
        assert not diagnostics.log_path.exists()

    def test_reinitialize_after_failure_reenables(
        self, diagnostics: TreeDiagnostics, tmp_path: Path
    ) -> None:
        diagnostics.initialize(tmp_path)
        with patch.object(Path, "open", side_effect=OSError("disk full")):
            diagnostics.log(DiagnosticEvent.AGENT_STARTED, make_snapshot())
        assert diagnostics.initialize(tmp_path)
        diagnostics.log(DiagnosticEvent.AGENT_STARTED, make_snapshot())
        assert len(_read_lines(diagnostics.log_path)) == 1


# ---------------------------------------------------------------------------
# read_audit_log()
# ---------------------------------------------------------------------------


class TestReadAuditLog:
    def test_round_trip(self, diagnostics: TreeDiagnostics, tmp_path: Path) -> None:
        diagnostics.initialize(tmp_path)
        diagnostics.log(DiagnosticEvent.AGENT_STARTED, make_snapshot(), {"agentId": "a"})
        diagnostics.log(DiagnosticEvent.AGENT_STARTED, make_snapshot([make_agent(id="x")]))

        records = read_audit_log(diagnostics.log_path)
        assert [r.type for r in records] == ["AGENT_STARTED", "AGENT_STARTED"]
        assert records[0].context == {"agentId": "a"}
        assert records[0].invariants.ok
        assert records[1].context is None
        assert records[1].invariants.failed() == ["main_agent_exists"]

    def test_skips_malformed_lines(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        path = tmp_path / "audit.log"
        path.write_text(
            '{"timestamp": "t1", "type": "AGENT_STARTED", "invariants": {}}\n'
            '{"timestamp": "t2", "type": \n'
            "\n"
            '{"timestamp": "t3", "type": "AGENT_COMPLETED", "invariants": {"singleMainAgent": false}}\n',
            encoding="utf-8",
        )
        with caplog.at_level(logging.WARNING, logger="lineage.diagnostics.audit"):
            records = read_audit_log(path)
        assert [r.timestamp for r in records] == ["t1", "t3"]
        assert not records[1].invariants.single_main_agent
        assert "audit.log:2" in caplog.text

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(AuditLogNotFoundError, match="Audit log not found"):
            read_audit_log(tmp_path / "nope.log")


def test_start_time_is_fixed() -> None:
    """Timestamps above assume the manual clock starts at this epoch."""
    assert START_TIME == 1_700_000_000.0
