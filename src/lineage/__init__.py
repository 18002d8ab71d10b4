"""Lineage: attribute independently started agent sessions into a parent/child tree.

Hosts that start subagent streams without any shared session identifier can
still link children to parents: identities come from content hashes, parents
pre-announce children through short-lived claims, and a diagnostics recorder
checks that the resulting tree stays well-formed.
"""

from lineage._version import __version__

# Identity hashing and claims
from lineage.identity.hashing import (
    compute_agent_type_hash,
    compute_conversation_hash,
    compute_tool_set_hash,
    hash_first_assistant_response,
    hash_system_prompt,
    hash_user_message,
    short_hash,
)
from lineage.identity.claims import ClaimRegistry

# Diagnostics
from lineage.diagnostics.audit import DiagnosticEvent, TreeDiagnostics, read_audit_log
from lineage.diagnostics.invariants import check_invariants, render_tree_text

# Models and configuration
from lineage.models.claims import AgentName, ClaimMatch, MatchStrategy, PendingClaim
from lineage.models.config import ClaimRegistryConfig, DiagnosticsConfig
from lineage.models.report import AuditRecord, InvariantReport
from lineage.models.tree import AgentRecord, AgentStatus, ClaimView, TreeSnapshot

# Time seams
from lineage.protocols import AsyncioTicker, Clock, NullTicker, SystemClock, Ticker, TimerHandle

# Exceptions
from lineage.exceptions import AuditLogNotFoundError, LineageError

__all__ = [
    "__version__",
    # Identity
    "ClaimRegistry",
    "compute_agent_type_hash",
    "compute_conversation_hash",
    "compute_tool_set_hash",
    "hash_first_assistant_response",
    "hash_system_prompt",
    "hash_user_message",
    "short_hash",
    # Diagnostics
    "DiagnosticEvent",
    "TreeDiagnostics",
    "check_invariants",
    "read_audit_log",
    "render_tree_text",
    # Models
    "AgentName",
    "AgentRecord",
    "AgentStatus",
    "AuditRecord",
    "ClaimMatch",
    "ClaimRegistryConfig",
    "ClaimView",
    "DiagnosticsConfig",
    "InvariantReport",
    "MatchStrategy",
    "PendingClaim",
    "TreeSnapshot",
    # Protocols
    "AsyncioTicker",
    "Clock",
    "NullTicker",
    "SystemClock",
    "Ticker",
    "TimerHandle",
    # Exceptions
    "AuditLogNotFoundError",
    "LineageError",
]
