"""Invariant report and audit record models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

INVARIANT_NAMES: tuple[str, ...] = (
    "single_main_agent",
    "main_agent_exists",
    "all_children_have_parent",
    "no_orphan_children",
    "no_unexpected_orphans",
    "claims_have_valid_parent",
    "no_duplicate_ids",
    "no_expired_claims",
)


class InvariantReport(BaseModel):
    """Named health checks over one TreeSnapshot.

    ``all_children_have_parent`` and ``no_orphan_children`` are two views of
    the same check and always agree. ``no_unexpected_orphans`` only looks at
    main agents: an orphaned subagent is expected once its claim expired,
    an orphaned main agent is not.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    single_main_agent: bool = True
    main_agent_exists: bool = True
    all_children_have_parent: bool = True
    no_orphan_children: bool = True
    no_unexpected_orphans: bool = True
    claims_have_valid_parent: bool = True
    no_duplicate_ids: bool = True
    no_expired_claims: bool = True
    violations: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return all(getattr(self, name) for name in INVARIANT_NAMES)

    def failed(self) -> list[str]:
        """Names of the invariants that do not hold."""
        return [name for name in INVARIANT_NAMES if not getattr(self, name)]

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class AuditRecord(BaseModel):
    """One line of the tree diagnostics audit log, as read back."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    timestamp: str
    type: str
    context: Optional[dict[str, Any]] = None
    invariants: InvariantReport = Field(default_factory=InvariantReport)
    tree: Optional[dict[str, Any]] = None
    tree_text: Optional[str] = None
