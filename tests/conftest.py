"""Shared test fixtures for Lineage.

Provides a manual clock and ticker that advance virtual time
deterministically, a claim registry wired to them, and snapshot builders.
"""

from __future__ import annotations

from typing import Callable

import pytest

from lineage.identity.claims import ClaimRegistry
from lineage.models.config import ClaimRegistryConfig
from lineage.models.tree import AgentRecord, AgentStatus, ClaimView, TreeSnapshot

START_TIME = 1_700_000_000.0


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = START_TIME) -> None:
        self.current = start

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class _ManualTimer:
    def __init__(self, interval: float, callback: Callable[[], object], next_due: float) -> None:
        self.interval = interval
        self.callback = callback
        self.next_due = next_due
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTicker:
    """Ticker whose callbacks fire as ``advance()`` moves the clock past them."""

    def __init__(self, clock: ManualClock) -> None:
        self._clock = clock
        self.timers: list[_ManualTimer] = []

    def call_every(self, interval: float, callback: Callable[[], object]) -> _ManualTimer:
        timer = _ManualTimer(interval, callback, self._clock.now() + interval)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[_ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Move time forward, firing every due callback at its due time."""
        target = self._clock.current + seconds
        while True:
            due = [t for t in self.active if t.next_due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.next_due)
            self._clock.current = timer.next_due
            timer.next_due += timer.interval
            timer.callback()
        self._clock.current = target


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def ticker(clock: ManualClock) -> ManualTicker:
    return ManualTicker(clock)


@pytest.fixture
def registry(clock: ManualClock, ticker: ManualTicker):
    """Registry with a 30s TTL and 10s sweep on virtual time."""
    reg = ClaimRegistry(
        ClaimRegistryConfig(claim_ttl=30.0, sweep_interval=10.0),
        clock=clock,
        ticker=ticker,
    )
    yield reg
    reg.dispose()


# ------------------------------------------------------------------
# Shared snapshot builders
# ------------------------------------------------------------------

def make_agent(**overrides) -> AgentRecord:
    """Create an AgentRecord with neutral defaults."""
    fields = {
        "id": "agent-1",
        "name": "main",
        "is_main": False,
        "status": AgentStatus.COMPLETE,
    }
    fields.update(overrides)
    return AgentRecord(**fields)


def make_claim_view(**overrides) -> ClaimView:
    """Create a ClaimView with neutral defaults."""
    fields = {
        "expected_child_agent_name": "recon",
        "parent_conversation_hash": "parenthash",
        "parent_agent_type_hash": "typehash",
        "expires_in": 10.0,
    }
    fields.update(overrides)
    return ClaimView(**fields)


def make_snapshot(agents=(), claims=(), **overrides) -> TreeSnapshot:
    return TreeSnapshot(agents=tuple(agents), claims=tuple(claims), **overrides)
