"""Configuration models for Lineage.

ClaimRegistryConfig controls claim expiry and the housekeeping sweep.
DiagnosticsConfig controls where and how the audit log is written.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

# Subagents can take a while to start (host processing, user confirmation),
# so the default TTL leaves generous headroom over typical spawn latency.
DEFAULT_CLAIM_TTL = 90.0
DEFAULT_SWEEP_INTERVAL = 10.0


class ClaimRegistryConfig(BaseModel):
    """Timing configuration for a ClaimRegistry (all values in seconds)."""

    model_config = {"frozen": True}

    claim_ttl: float = Field(default=DEFAULT_CLAIM_TTL, gt=0)
    sweep_interval: float = Field(default=DEFAULT_SWEEP_INTERVAL, gt=0)

    @model_validator(mode="after")
    def _sweep_shorter_than_ttl(self) -> ClaimRegistryConfig:
        if self.sweep_interval >= self.claim_ttl:
            raise ValueError(
                f"sweep_interval ({self.sweep_interval}s) must be shorter "
                f"than claim_ttl ({self.claim_ttl}s)"
            )
        return self


class DiagnosticsConfig(BaseModel):
    """Audit log location, rotation and record shape."""

    model_config = {"frozen": True}

    log_dir: str = ".logs"
    log_file: str = "tree-diagnostics.log"
    archive_dir: str = "tree-diagnostics"
    max_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    max_archives: int = Field(default=10, ge=0)
    include_tree: bool = False  # adds "tree" and "treeText" to each record
