"""Tree diagnostics audit log.

Flight recorder for the agent tree: every lifecycle event is appended to
``<workspace>/.logs/tree-diagnostics.log`` as one JSON line carrying the
invariant report computed from the snapshot at that moment.

This component observes and never enforces. Invariant violations are data
in the log; I/O failures are logged and swallowed so that diagnostics can
never take down the session tracking that calls it.
"""

from __future__ import annotations

import enum
import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from lineage.diagnostics.invariants import check_invariants, render_tree_text
from lineage.exceptions import AuditLogNotFoundError
from lineage.models.config import DiagnosticsConfig
from lineage.models.report import AuditRecord, InvariantReport
from lineage.protocols import SystemClock

if TYPE_CHECKING:
    from os import PathLike

    from lineage.models.tree import TreeSnapshot
    from lineage.protocols import Clock

logger = logging.getLogger(__name__)


class DiagnosticEvent(str, enum.Enum):
    """Lifecycle events the bookkeeping layer reports."""

    AGENT_STARTED = "AGENT_STARTED"
    AGENT_RESUMED = "AGENT_RESUMED"
    AGENT_COMPLETED = "AGENT_COMPLETED"
    AGENT_ERROR = "AGENT_ERROR"
    CLAIM_CREATED = "CLAIM_CREATED"
    CLAIM_MATCHED = "CLAIM_MATCHED"
    CLAIM_EXPIRED = "CLAIM_EXPIRED"
    CLAIM_NOT_MATCHED = "CLAIM_NOT_MATCHED"


def resolve_log_path(
    workspace_root: str | PathLike[str],
    config: DiagnosticsConfig | None = None,
) -> Path:
    """Path of the audit log for a workspace."""
    config = config or DiagnosticsConfig()
    return Path(workspace_root) / config.log_dir / config.log_file


class TreeDiagnostics:
    """Append-only audit log of tree invariants, one file per workspace.

    Disabled until ``initialize()`` succeeds; ``log()`` still computes and
    returns the invariant report while disabled.
    """

    def __init__(
        self,
        config: DiagnosticsConfig | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._config = config or DiagnosticsConfig()
        self._clock = clock or SystemClock()
        self._log_path: Path | None = None
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(self, workspace_root: str | PathLike[str]) -> bool:
        """Prepare the audit log location for a workspace.

        Creates the log and archive directories, rotates an existing log
        that grew past ``max_bytes`` and prunes old archives. Safe to call
        repeatedly.

        Returns:
            True if diagnostics are enabled afterwards.
        """
        log_path = resolve_log_path(workspace_root, self._config)
        archive_dir = log_path.parent / self._config.archive_dir
        try:
            archive_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.warning(
                "Failed to create diagnostics directories under %s; diagnostics disabled",
                log_path.parent,
                exc_info=True,
            )
            self._enabled = False
            return False

        self._rotate_if_oversized(log_path, archive_dir)
        self._prune_archives(archive_dir)

        self._log_path = log_path
        self._enabled = True
        logger.debug("Tree diagnostics writing to %s", log_path)
        return True

    def _rotate_if_oversized(self, log_path: Path, archive_dir: Path) -> None:
        try:
            size = log_path.stat().st_size
        except FileNotFoundError:
            return
        except OSError:
            logger.warning("Could not stat %s; skipping rotation", log_path, exc_info=True)
            return
        if size <= self._config.max_bytes:
            return

        stamp = self._now().strftime("%Y-%m-%dT%H-%M-%S-%f")
        archive_path = archive_dir / f"{log_path.stem}-{stamp}{log_path.suffix}"
        try:
            log_path.replace(archive_path)
            logger.info("Rotated %s (%d bytes) to %s", log_path.name, size, archive_path)
        except OSError:
            logger.warning("Rotation of %s failed; truncating instead", log_path, exc_info=True)
            try:
                log_path.write_text("", encoding="utf-8")
            except OSError:
                logger.warning("Truncation of %s failed", log_path, exc_info=True)

    def _prune_archives(self, archive_dir: Path) -> None:
        stem, suffix = Path(self._config.log_file).stem, Path(self._config.log_file).suffix
        try:
            archives = sorted(archive_dir.glob(f"{stem}-*{suffix}"))
            excess = len(archives) - self._config.max_archives
            for old in archives[:max(excess, 0)]:
                old.unlink()
                logger.debug("Pruned diagnostics archive %s", old.name)
        except OSError:
            logger.warning("Failed to prune archives in %s", archive_dir, exc_info=True)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def log(
        self,
        event_type: DiagnosticEvent | str,
        snapshot: TreeSnapshot,
        context: Mapping[str, Any] | None = None,
    ) -> InvariantReport:
        """Check invariants for ``snapshot`` and append one audit record.

        The record is ``{timestamp, type, context?, invariants}``;
        ``context`` is left out entirely when not given.

        Returns:
            The invariant report, whether or not it could be written.
        """
        report = check_invariants(snapshot)
        event_name = event_type.value if isinstance(event_type, DiagnosticEvent) else str(event_type)
        if report.violations:
            logger.debug("Invariant violations after %s: %s", event_name, "; ".join(report.violations))

        if not self._enabled or self._log_path is None:
            return report

        record: dict[str, Any] = {
            "timestamp": self._now().isoformat(),
            "type": event_name,
        }
        if context is not None:
            record["context"] = dict(context)
        record["invariants"] = report.to_dict()

        try:
            if self._config.include_tree:
                record["tree"] = snapshot.to_dict()
                record["treeText"] = render_tree_text(snapshot)
            line = json.dumps(record, default=str, ensure_ascii=False)
            with self._log_path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except (OSError, TypeError, ValueError):
            logger.warning(
                "Diagnostics write to %s failed; diagnostics disabled",
                self._log_path,
                exc_info=True,
            )
            self._enabled = False
        return report

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock.now(), tz=timezone.utc)


def read_audit_log(path: str | PathLike[str]) -> list[AuditRecord]:
    """Parse an audit log file, oldest record first.

    Malformed lines (e.g. a record cut short by a crash) are skipped with a
    warning.

    Raises:
        AuditLogNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.is_file():
        raise AuditLogNotFoundError(str(path))

    records: list[AuditRecord] = []
    with path.open(encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(AuditRecord.model_validate_json(line))
            except ValidationError:
                logger.warning("Skipping malformed audit record at %s:%d", path, lineno)
    return records
