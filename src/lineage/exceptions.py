"""Lineage exception hierarchy.

All Lineage-specific exceptions inherit from LineageError.

The attribution core itself fails soft: claim misses are ``None`` results
and diagnostics write failures are logged and swallowed. Exceptions here
belong to the offline tooling around it.
"""


class LineageError(Exception):
    """Base exception for all Lineage errors."""


class AuditLogNotFoundError(LineageError):
    """Raised when an audit log file to be read does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Audit log not found: {path}")
