"""Content-addressed identity hashing for agents and conversations.

Provides the pure functions used to recognize an agent across independent
API requests:

- agent type hash: system prompt + tool set ("what kind of agent is this")
- conversation hash: agent type + first user message + first assistant
  response ("which running conversation is this")

All digests are SHA-256 truncated to 16 hex characters (64 bits). That is
compact enough to log and compare cheaply and collision-resistant enough to
correlate a handful of concurrent agents. These are correlation hints, not
security identifiers; never use them to authenticate anything.

All functions are deterministic: same input always produces same output.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping
from typing import Any

DIGEST_LENGTH = 16
ASSISTANT_RESPONSE_PREFIX = 500


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]


def _tool_name(tool: Any) -> str:
    if isinstance(tool, str):
        return tool
    if isinstance(tool, Mapping):
        return str(tool.get("name", ""))
    return str(getattr(tool, "name", ""))


def short_hash(digest: str | None, length: int = 8) -> str:
    """Shorten a digest for log and display output."""
    if not digest:
        return "?" * length
    return digest[:length]


def compute_tool_set_hash(tools: Iterable[Any]) -> str:
    """Compute a stable hash of a tool set.

    Tool names are sorted first, so any permutation of the same tools yields
    the same hash.

    Args:
        tools: Tool names, mappings with a ``"name"`` key, or objects with a
            ``name`` attribute (e.g. tool definitions from a request).

    Returns:
        16-character hex digest.
    """
    names = sorted(_tool_name(t) for t in tools)
    return _digest("|".join(names))


def compute_agent_type_hash(system_prompt_hash: str, tool_set_hash: str) -> str:
    """Combine system prompt and tool set digests into an agent type hash."""
    return _digest(system_prompt_hash + tool_set_hash)


def compute_conversation_hash(
    agent_type_hash: str,
    first_user_message_hash: str,
    first_assistant_response_hash: str,
) -> str:
    """Compute the conversation instance hash.

    Only computable once the first assistant response has been received.
    A later request carrying the same three digests is a resumed turn of
    the same agent, not a new one.
    """
    return _digest(agent_type_hash + first_user_message_hash + first_assistant_response_hash)


def hash_first_assistant_response(text: str) -> str:
    """Hash the first assistant response, canonicalized.

    Surrounding whitespace is trimmed and only the first 500 characters are
    kept, so responses agreeing on that prefix hash identically.
    """
    return _digest(text.strip()[:ASSISTANT_RESPONSE_PREFIX])


def hash_user_message(text: str) -> str:
    """Hash a user message (trimmed) for conversation identity."""
    return _digest(text.strip())


def hash_system_prompt(text: str) -> str:
    """Hash a system prompt (trimmed) for agent type identity."""
    return _digest(text.strip())
