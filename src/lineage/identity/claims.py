"""Temporal claim registry for parent/child agent linking.

The host starts a child agent stream with no token tying it to the parent
that asked for it. Instead, the parent registers a claim ("expect a child
named X shortly") when it requests a spawn, and the child's arrival consumes
the earliest matching claim. Claims expire after a configurable TTL.
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING

from lineage.identity.hashing import short_hash
from lineage.models.claims import AgentName, ClaimMatch, MatchStrategy, PendingClaim
from lineage.models.config import ClaimRegistryConfig
from lineage.protocols import AsyncioTicker, SystemClock

if TYPE_CHECKING:
    from lineage.protocols import Clock, Ticker, TimerHandle

logger = logging.getLogger(__name__)


class ClaimRegistry:
    """Registry of pending child claims.

    Matching rules, tried in order over unexpired claims oldest first:

    1. exact match on the expected child name,
    2. match on the expected child type hash (claims that declared one),
    3. when the arriving agent's name is ``AgentName.UNKNOWN``, the oldest
       claim regardless of name or type.

    Exact names are the most reliable signal; type hashes catch generically
    named children; FIFO assumes spawn order roughly predicts arrival order.

    Expired claims are swept every ``sweep_interval`` seconds on the
    injected ticker, and again on every ``create_claim`` and ``match_claim``
    so the registry stays bounded when the ticker never fires (no running
    event loop). Matching also re-checks expiry against the clock, so an
    expired claim never matches.

    The registry owns a timer and must be disposed (``dispose()`` or use it
    as a context manager).
    """

    def __init__(
        self,
        config: ClaimRegistryConfig | None = None,
        *,
        clock: Clock | None = None,
        ticker: Ticker | None = None,
    ) -> None:
        self._config = config or ClaimRegistryConfig()
        self._clock = clock or SystemClock()
        self._claims: list[PendingClaim] = []
        self._ids = itertools.count(1)
        self._disposed = False
        ticker = ticker or AsyncioTicker()
        self._sweep_handle: TimerHandle | None = ticker.call_every(
            self._config.sweep_interval, self.cleanup_expired
        )

    @property
    def config(self) -> ClaimRegistryConfig:
        return self._config

    @property
    def disposed(self) -> bool:
        return self._disposed

    # ------------------------------------------------------------------
    # Claim lifecycle
    # ------------------------------------------------------------------

    def create_claim(
        self,
        parent_conversation_hash: str,
        parent_agent_type_hash: str,
        expected_child_agent_name: str,
        expected_child_agent_type_hash: str | None = None,
    ) -> PendingClaim | None:
        """Register a claim when a parent requests a subagent.

        Identical claims may coexist (a parent spawning two same-named
        subagents in a row creates two claims).

        Returns:
            The new claim, or None if the registry has been disposed.
        """
        if self._disposed:
            logger.warning(
                "Ignoring claim for child %r: registry is disposed",
                expected_child_agent_name,
            )
            return None

        self.cleanup_expired()
        now = self._clock.now()
        claim = PendingClaim(
            claim_id=next(self._ids),
            parent_conversation_hash=parent_conversation_hash,
            parent_agent_type_hash=parent_agent_type_hash,
            expected_child_agent_name=expected_child_agent_name,
            expected_child_agent_type_hash=expected_child_agent_type_hash,
            created_at=now,
            expires_at=now + self._config.claim_ttl,
        )
        self._claims.append(claim)
        logger.info(
            "Created claim #%d for child %r (parent=%s type=%s, ttl=%ss, pending=%d)",
            claim.claim_id,
            expected_child_agent_name,
            short_hash(parent_conversation_hash),
            short_hash(parent_agent_type_hash),
            self._config.claim_ttl,
            len(self._claims),
        )
        return claim

    def match_claim(
        self,
        detected_name: str | AgentName,
        agent_type_hash: str,
    ) -> ClaimMatch | None:
        """Attribute an arriving agent to the best pending claim.

        The matched claim is consumed. Returns None when nothing matches;
        the caller then classifies the agent without a parent.
        """
        self.cleanup_expired()
        now = self._clock.now()
        valid = sorted(
            (c for c in self._claims if not c.is_expired(now)),
            key=lambda c: (c.created_at, c.claim_id),
        )

        if isinstance(detected_name, str):
            for claim in valid:
                if claim.expected_child_agent_name == detected_name:
                    return self._consume(claim, MatchStrategy.NAME, agent_type_hash)

        for claim in valid:
            # An empty declared type hash means "not declared".
            if (
                claim.expected_child_agent_type_hash
                and claim.expected_child_agent_type_hash == agent_type_hash
            ):
                return self._consume(claim, MatchStrategy.TYPE_HASH, agent_type_hash)

        if detected_name is AgentName.UNKNOWN and valid:
            return self._consume(valid[0], MatchStrategy.FIFO, agent_type_hash)

        logger.info(
            "No claim matched for %s (type=%s, valid=%d, names=%s)",
            _display_name(detected_name),
            short_hash(agent_type_hash),
            len(valid),
            [c.expected_child_agent_name for c in valid],
        )
        return None

    def _consume(
        self,
        claim: PendingClaim,
        strategy: MatchStrategy,
        agent_type_hash: str,
    ) -> ClaimMatch:
        # Remove by identity: claims with identical fields may coexist.
        for idx, held in enumerate(self._claims):
            if held is claim:
                del self._claims[idx]
                break
        logger.info(
            "Matched claim #%d for child %r by %s (type=%s, parent=%s)",
            claim.claim_id,
            claim.expected_child_agent_name,
            strategy.value,
            short_hash(agent_type_hash),
            short_hash(claim.parent_conversation_hash),
        )
        return ClaimMatch(
            parent_conversation_hash=claim.parent_conversation_hash,
            expected_child_name=claim.expected_child_agent_name,
            strategy=strategy,
        )

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def cleanup_expired(self) -> int:
        """Drop every claim whose expiry has passed. Returns the count removed."""
        now = self._clock.now()
        before = len(self._claims)
        self._claims = [c for c in self._claims if not c.is_expired(now)]
        removed = before - len(self._claims)
        if removed > 0:
            logger.debug("Cleaned up %d expired claims", removed)
        return removed

    def clear_all(self) -> None:
        """Drop all pending claims; the sweep timer keeps running."""
        count = len(self._claims)
        self._claims = []
        if count > 0:
            logger.debug("Cleared %d claims", count)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_pending_claim_count(self) -> int:
        """Number of claims that could still match right now."""
        now = self._clock.now()
        return sum(1 for c in self._claims if not c.is_expired(now))

    def get_claims(self) -> list[PendingClaim]:
        """Copy of every held claim, including expired ones not yet swept."""
        return list(self._claims)

    # ------------------------------------------------------------------
    # Disposal
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Stop the sweep timer and drop all claims. Safe to call repeatedly."""
        handle, self._sweep_handle = self._sweep_handle, None
        if handle is not None:
            handle.cancel()
        self._claims = []
        self._disposed = True

    def __enter__(self) -> ClaimRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return (
            f"ClaimRegistry(pending={len(self._claims)}, "
            f"ttl={self._config.claim_ttl}s, disposed={self._disposed})"
        )


def _display_name(name: str | AgentName) -> str:
    if isinstance(name, AgentName):
        return f"<{name.name.lower()}>"
    return repr(name)
