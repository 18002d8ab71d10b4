"""Claim models for parent/child attribution.

Provides:
- AgentName: sentinel for a child whose declared name is not yet known
- MatchStrategy: which matching rule attributed a child
- PendingClaim: Frozen dataclass for a parent's "expect a child" assertion
- ClaimMatch: Frozen dataclass returned when an arriving agent consumes a claim
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class AgentName(enum.Enum):
    """Names that are not real agent names.

    ``UNKNOWN`` stands in when the host has not yet told us what a child is
    called. It is deliberately not a string, so an agent that is literally
    named ``"unknown"`` never takes the FIFO fallback path.
    """

    UNKNOWN = enum.auto()


class MatchStrategy(str, enum.Enum):
    """Rule that matched a claim, in the order they are tried."""

    NAME = "name"
    TYPE_HASH = "type_hash"
    FIFO = "fifo"


@dataclass(frozen=True)
class PendingClaim:
    """A parent's assertion that a child agent will start shortly.

    Attributes:
        claim_id: Per-registry sequence number; breaks ties between claims
            created at the same instant.
        parent_conversation_hash: Conversation hash of the spawning parent
            (or its agent type hash while the conversation hash is unknown).
        parent_agent_type_hash: Agent type hash of the spawning parent.
        expected_child_agent_name: Name the parent asked to spawn.
        expected_child_agent_type_hash: Type hash of the child, when the
            parent could compute it up front.
        created_at: Epoch seconds when the claim was registered.
        expires_at: Epoch seconds after which the claim can no longer match.
    """

    claim_id: int
    parent_conversation_hash: str
    parent_agent_type_hash: str
    expected_child_agent_name: str
    expected_child_agent_type_hash: str | None
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now

    def remaining_ttl(self, now: float) -> float:
        """Seconds left before expiry (negative once expired)."""
        return self.expires_at - now


@dataclass(frozen=True)
class ClaimMatch:
    """Result of attributing an arriving agent to a pending claim."""

    parent_conversation_hash: str
    expected_child_name: str
    strategy: MatchStrategy
