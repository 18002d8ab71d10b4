"""Invariant checks and text rendering for agent tree snapshots.

Provides:
- check_invariants(): pure health check of a TreeSnapshot
- render_tree_text(): human-readable tree for the audit log and CLI

Neither function mutates the snapshot or raises on a malformed tree; a
broken tree shows up as failed invariants and CYCLE markers.
"""

from __future__ import annotations

from collections import defaultdict

from lineage.identity.hashing import short_hash
from lineage.models.report import InvariantReport
from lineage.models.tree import AgentRecord, AgentStatus, TreeSnapshot

_STATUS_MARKERS = {
    AgentStatus.STREAMING: "⏳",
    AgentStatus.COMPLETE: "✓",
    AgentStatus.ERROR: "✗",
}


def check_invariants(snapshot: TreeSnapshot) -> InvariantReport:
    """Evaluate every tree invariant against one snapshot.

    A child's ``parent_conversation_hash`` resolves only against the
    ``conversation_hash`` of some *other* agent. A claim's parent resolves
    only when both its conversation hash and agent type hash match the same
    agent.
    """
    agents = snapshot.agents

    seen_ids: set[str] = set()
    duplicate_ids: list[str] = []
    conversation_owners: dict[str, list[int]] = defaultdict(list)
    parent_pairs: set[tuple[str, str]] = set()
    main_count = 0

    for idx, agent in enumerate(agents):
        if agent.is_main:
            main_count += 1
        if agent.id in seen_ids:
            if agent.id not in duplicate_ids:
                duplicate_ids.append(agent.id)
        else:
            seen_ids.add(agent.id)
        if agent.conversation_hash is not None:
            conversation_owners[agent.conversation_hash].append(idx)
            if agent.agent_type_hash is not None:
                parent_pairs.add((agent.conversation_hash, agent.agent_type_hash))

    def _resolves(idx: int, parent_hash: str) -> bool:
        return any(owner != idx for owner in conversation_owners.get(parent_hash, ()))

    orphaned_children = [
        a for i, a in enumerate(agents)
        if not a.is_main
        and a.parent_conversation_hash is not None
        and not _resolves(i, a.parent_conversation_hash)
    ]
    orphaned_mains = [
        a for i, a in enumerate(agents)
        if a.is_main
        and a.parent_conversation_hash is not None
        and not _resolves(i, a.parent_conversation_hash)
    ]
    claims_missing_parent = [
        c for c in snapshot.claims
        if (c.parent_conversation_hash, c.parent_agent_type_hash) not in parent_pairs
    ]
    expired_claims = [c for c in snapshot.claims if c.expires_in <= 0]

    single_main_agent = main_count <= 1
    main_agent_exists = len(agents) == 0 or main_count == 1
    children_ok = not orphaned_children

    violations: list[str] = []
    if not single_main_agent:
        violations.append(
            f"Invariant singleMainAgent failed: {main_count} main agents detected."
        )
    if not main_agent_exists:
        violations.append(
            f"Invariant mainAgentExists failed: {len(agents)} agents with {main_count} main."
        )
    if not children_ok:
        names = ", ".join(f"{a.id} -> {short_hash(a.parent_conversation_hash)}" for a in orphaned_children)
        violations.append(
            f"Invariant allChildrenHaveParent failed: {len(orphaned_children)} "
            f"child(ren) with unresolved parent ({names})."
        )
    if orphaned_mains:
        violations.append(
            f"Invariant noUnexpectedOrphans failed: {len(orphaned_mains)} main agent(s) orphaned."
        )
    if duplicate_ids:
        violations.append(
            f"Invariant noDuplicateIds failed: {', '.join(duplicate_ids)}."
        )
    if claims_missing_parent:
        violations.append(
            f"Invariant claimsHaveValidParent failed: {len(claims_missing_parent)} "
            f"claims missing parents."
        )
    if expired_claims:
        violations.append(
            f"Invariant noExpiredClaims failed: {len(expired_claims)} expired claims."
        )

    return InvariantReport(
        single_main_agent=single_main_agent,
        main_agent_exists=main_agent_exists,
        all_children_have_parent=children_ok,
        no_orphan_children=children_ok,
        no_unexpected_orphans=not orphaned_mains,
        claims_have_valid_parent=not claims_missing_parent,
        no_duplicate_ids=not duplicate_ids,
        no_expired_claims=not expired_claims,
        violations=tuple(violations),
    )


def render_tree_text(snapshot: TreeSnapshot) -> str:
    """Render the snapshot as an indented tree followed by pending claims.

    Children hang off their parent's conversation hash, or its agent type
    hash while the parent has no conversation hash yet. Agents whose parent
    cannot be found are drawn at the root and flagged ``(orphan)``.
    """
    agents = snapshot.agents
    lines: list[str] = []

    children_by_parent: dict[str, list[AgentRecord]] = defaultdict(list)
    known_parents: set[str] = set()
    for agent in agents:
        if agent.parent_conversation_hash is not None:
            children_by_parent[agent.parent_conversation_hash].append(agent)
        if agent.conversation_hash is not None:
            known_parents.add(agent.conversation_hash)
        if agent.agent_type_hash is not None:
            known_parents.add(agent.agent_type_hash)

    roots = [
        a for a in agents
        if a.parent_conversation_hash is None or a.parent_conversation_hash not in known_parents
    ]
    visited: set[int] = set()

    def _render(root: AgentRecord, is_last_root: bool) -> None:
        # Explicit stack: parent chains can be arbitrarily deep.
        stack: list[tuple[AgentRecord, str, bool]] = [(root, "", is_last_root)]
        while stack:
            agent, indent, is_last = stack.pop()
            prefix = "└─" if is_last else "├─"
            if id(agent) in visited:
                lines.append(f"{indent}{prefix} [CYCLE: {agent.id[-8:]}]")
                continue
            visited.add(id(agent))
            orphan = (
                agent.parent_conversation_hash is not None
                and agent.parent_conversation_hash not in known_parents
            )
            lines.append(f"{indent}{prefix} {_describe(agent, orphan=orphan)}")

            children: list[AgentRecord] = []
            seen_children: set[int] = set()
            for key in (agent.conversation_hash, agent.agent_type_hash):
                if key is None:
                    continue
                for child in children_by_parent.get(key, ()):
                    if child is not agent and id(child) not in seen_children:
                        seen_children.add(id(child))
                        children.append(child)

            child_indent = indent + ("   " if is_last else "│  ")
            for i in range(len(children) - 1, -1, -1):
                stack.append((children[i], child_indent, i == len(children) - 1))

    for i, agent in enumerate(roots):
        _render(agent, i == len(roots) - 1)

    # Agents only reachable through a parent cycle are never a root.
    for agent in agents:
        if id(agent) not in visited:
            _render(agent, True)

    if not agents:
        lines.append("(no agents)")

    if snapshot.claims:
        lines.append("")
        lines.append(f"CLAIMS ({len(snapshot.claims)}):")
        for claim in snapshot.claims:
            lines.append(
                f'  ⏱ "{claim.expected_child_agent_name}" for '
                f"{short_hash(claim.parent_conversation_hash)}, "
                f"expires in {round(claim.expires_in)}s"
            )

    return "\n".join(lines)


def _describe(agent: AgentRecord, *, orphan: bool = False) -> str:
    marker = "[main]" if agent.is_main else f"[{agent.name}]"
    tokens = (
        f"{agent.max_observed_input_tokens / 1000:.1f}k→"
        f"{agent.total_output_tokens / 1000:.1f}k"
    )
    turns = f" [{agent.turn_count}]" if agent.turn_count > 0 else ""
    flag = " (orphan)" if orphan else ""
    return (
        f"{marker} ({short_hash(agent.agent_type_hash)}) "
        f"{_STATUS_MARKERS.get(agent.status, '?')} {tokens}{turns}{flag}"
    )
