"""Agent tree snapshot models.

Provides:
- AgentStatus: lifecycle status of a tracked agent
- AgentRecord: one agent as seen by the bookkeeping layer
- ClaimView: a pending claim as it appears inside a snapshot
- TreeSnapshot: immutable point-in-time view handed to diagnostics

All models are frozen and serialize with camelCase keys, matching the audit
log record format.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from lineage.models.claims import PendingClaim

_SNAPSHOT_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class AgentStatus(str, enum.Enum):
    """Lifecycle status of an agent stream."""

    STREAMING = "streaming"
    COMPLETE = "complete"
    ERROR = "error"


class AgentRecord(BaseModel):
    """An agent tracked by the bookkeeping layer.

    ``parent_conversation_hash`` set means this agent was attributed as a
    child; it should resolve to another record's ``conversation_hash``.
    """

    model_config = _SNAPSHOT_CONFIG

    id: str
    name: str
    is_main: bool = False
    status: AgentStatus = AgentStatus.STREAMING
    system_prompt_hash: str | None = None
    agent_type_hash: str | None = None
    conversation_hash: str | None = None
    parent_conversation_hash: str | None = None
    input_tokens: int = 0
    output_tokens: int = 0
    max_observed_input_tokens: int = 0
    total_output_tokens: int = 0
    turn_count: int = 0
    estimated_input_tokens: int | None = None
    max_input_tokens: int | None = None


class ClaimView(BaseModel):
    """Read-only projection of a PendingClaim at snapshot time."""

    model_config = _SNAPSHOT_CONFIG

    expected_child_agent_name: str
    parent_conversation_hash: str
    parent_agent_type_hash: str
    expires_in: float  # seconds remaining; <= 0 means expired

    @classmethod
    def from_claim(cls, claim: PendingClaim, now: float) -> ClaimView:
        return cls(
            expected_child_agent_name=claim.expected_child_agent_name,
            parent_conversation_hash=claim.parent_conversation_hash,
            parent_agent_type_hash=claim.parent_agent_type_hash,
            expires_in=claim.remaining_ttl(now),
        )


class TreeSnapshot(BaseModel):
    """Point-in-time view of every known agent and pending claim."""

    model_config = _SNAPSHOT_CONFIG

    agents: tuple[AgentRecord, ...] = ()
    claims: tuple[ClaimView, ...] = ()
    main_agent_id: str | None = None
    active_agent_id: str | None = None

    @classmethod
    def capture(
        cls,
        agents: Iterable[AgentRecord],
        claims: Iterable[PendingClaim],
        *,
        now: float,
        main_agent_id: str | None = None,
        active_agent_id: str | None = None,
    ) -> TreeSnapshot:
        """Build a snapshot from agent records and live registry claims.

        Claims already expired at ``now`` are left out: they can no longer
        match and are only waiting for the next sweep.
        """
        return cls(
            agents=tuple(agents),
            claims=tuple(
                ClaimView.from_claim(c, now) for c in claims if not c.is_expired(now)
            ),
            main_agent_id=main_agent_id,
            active_agent_id=active_agent_id,
        )

    def to_dict(self) -> dict:
        """JSON-ready dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
