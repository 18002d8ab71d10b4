"""Agent identity: content-addressed hashing and the child claim registry."""

from lineage.identity.claims import ClaimRegistry
from lineage.identity.hashing import (
    compute_agent_type_hash,
    compute_conversation_hash,
    compute_tool_set_hash,
    hash_first_assistant_response,
    hash_system_prompt,
    hash_user_message,
    short_hash,
)

__all__ = [
    "ClaimRegistry",
    "compute_agent_type_hash",
    "compute_conversation_hash",
    "compute_tool_set_hash",
    "hash_first_assistant_response",
    "hash_system_prompt",
    "hash_user_message",
    "short_hash",
]
