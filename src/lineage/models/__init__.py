"""Lineage data models: claims, tree snapshots, reports and configuration."""

from lineage.models.claims import AgentName, ClaimMatch, MatchStrategy, PendingClaim
from lineage.models.config import ClaimRegistryConfig, DiagnosticsConfig
from lineage.models.report import AuditRecord, InvariantReport
from lineage.models.tree import AgentRecord, AgentStatus, ClaimView, TreeSnapshot

__all__ = [
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
]
