"""Tree diagnostics: invariant checking, tree rendering and the audit log."""

from lineage.diagnostics.audit import (
    DiagnosticEvent,
    TreeDiagnostics,
    read_audit_log,
    resolve_log_path,
)
from lineage.diagnostics.invariants import check_invariants, render_tree_text

__all__ = [
    "DiagnosticEvent",
    "TreeDiagnostics",
    "check_invariants",
    "read_audit_log",
    "render_tree_text",
    "resolve_log_path",
]
