"""
Error kinds for the vault.

Every error carries a human readable message; the command boundary turns
them into plain strings.
"""
from typing import Optional


class VaultError(Exception):
    """Base class for all vault errors."""
    pass


class MalformedDocument(VaultError):
    """Raised when a frontmatter document is missing a delimiter line."""
    pass


class SchemaError(VaultError):
    """Raised when stored or returned data does not have the expected shape."""
    pass


class NotFound(VaultError):
    """Raised when an id does not resolve to an entity."""
    pass


class BoardNotFound(NotFound):
    def __init__(self, board_id: str):
        super().__init__(f"board not found: {board_id}")
        self.board_id = board_id


class TaskNotFound(NotFound):
    def __init__(self, task_id: str):
        super().__init__(f"task not found: {task_id}")
        self.task_id = task_id


class EntityNotFound(NotFound):
    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class ConfigError(VaultError):
    """Raised when configuration is invalid or incomplete."""
    pass


class UpstreamError(VaultError):
    """Raised when the completion API fails after the model fallback."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
