"""
Vault data model.

Entities:
  Board   - ordered set of columns (lane order is significant)
  Task    - a story card living in one column of one board
  Project - top-level grouping
  Epic    - grouping of stories, optionally under a project

Entities serialize with snake_case keys. Command payloads and the autofill
result travel with camelCase keys and accept snake_case on input too.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, List, Dict, Any

from .errors import SchemaError


class EntityKind(Enum):
    """Entity kinds; the value is the vault subdirectory name."""
    BOARD = "boards"
    TASK = "tasks"
    PROJECT = "projects"
    EPIC = "epics"

    @classmethod
    def from_str(cls, value: str) -> "EntityKind":
        for kind in cls:
            if value.lower() in (kind.value, kind.name.lower()):
                return kind
        raise SchemaError(f"unknown entity kind: {value}")

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def parent_field(self) -> Optional[str]:
        """Attribute used by the parent-id filter of list operations."""
        return {
            EntityKind.TASK: "board",
            EntityKind.EPIC: "project_id",
        }.get(self)


DEFAULT_BOARD_ID = "default"
DEFAULT_BOARD_TITLE = "Default Board"
DEFAULT_COLUMNS = ["Inbox", "Backlog", "Ready", "In Progress", "Review", "Done"]
DEFAULT_STORY_COLUMN = "Backlog"
STORY_TAG = "story"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Field coercion
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _scalar_to_str(value: Any, key: str, what: str) -> str:
    # Hand-edited frontmatter may carry epoch stamps as bare integers
    # and due dates as YAML dates
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise SchemaError(f"{what}: field '{key}' must be a string")
    return value if isinstance(value, str) else str(value)


def _required_str(data: Dict[str, Any], key: str, what: str) -> str:
    if data.get(key) is None:
        raise SchemaError(f"{what}: missing required field '{key}'")
    return _scalar_to_str(data[key], key, what)


def _optional_str(data: Dict[str, Any], key: str, what: str) -> Optional[str]:
    if data.get(key) is None:
        return None
    return _scalar_to_str(data[key], key, what)


def _str_list(data: Dict[str, Any], key: str, what: str) -> Optional[List[str]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise SchemaError(f"{what}: field '{key}' must be a list")
    return [_scalar_to_str(item, key, what) for item in value]


def _pick(data: Dict[str, Any], snake: str, camel: str) -> Any:
    """Read a payload field under either spelling, snake_case first."""
    if data.get(snake) is not None:
        return data[snake]
    return data.get(camel)


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values (frontmatter omits unset optional fields)."""
    return {k: v for k, v in data.items() if v is not None}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Entities
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class Board:
    """A board and its ordered columns."""
    id: str
    title: str
    columns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "columns": list(self.columns)}

    def to_frontmatter(self) -> Dict[str, Any]:
        return self.to_dict()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Board":
        if not isinstance(data, dict):
            raise SchemaError("board: expected a mapping")
        columns = _str_list(data, "columns", "board")
        if columns is None:
            raise SchemaError("board: missing required field 'columns'")
        return cls(
            id=_required_str(data, "id", "board"),
            title=_required_str(data, "title", "board"),
            columns=columns,
        )


@dataclass
class Task:
    """A story card. ``column`` names one of the owning board's columns."""
    id: str
    title: str
    board: str
    column: str
    tags: List[str] = field(default_factory=list)
    due: Optional[str] = None
    created: Optional[str] = None
    updated: Optional[str] = None
    project_id: Optional[str] = None
    epic_id: Optional[str] = None
    owner: Optional[str] = None
    description: Optional[str] = None
    as_a: Optional[str] = None
    i_want: Optional[str] = None
    so_that: Optional[str] = None
    acceptance_criteria: Optional[List[str]] = None
    body: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "board": self.board,
            "column": self.column,
            "tags": list(self.tags),
            "due": self.due,
            "created": self.created,
            "updated": self.updated,
            "project_id": self.project_id,
            "epic_id": self.epic_id,
            "owner": self.owner,
            "description": self.description,
            "as_a": self.as_a,
            "i_want": self.i_want,
            "so_that": self.so_that,
            "acceptance_criteria": (
                list(self.acceptance_criteria)
                if self.acceptance_criteria is not None else None
            ),
            "body": self.body,
        }

    def to_frontmatter(self) -> Dict[str, Any]:
        """Header fields for the vault file; the body is stored separately."""
        data = self.to_dict()
        data.pop("body")
        return _compact(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], body: Optional[str] = None) -> "Task":
        """Deserialize; ``body`` overrides the ``body`` key (vault files)."""
        if not isinstance(data, dict):
            raise SchemaError("task: expected a mapping")
        if body is None:
            body = data.get("body") or ""
            if not isinstance(body, str):
                raise SchemaError("task: field 'body' must be a string")
        return cls(
            id=_required_str(data, "id", "task"),
            title=_required_str(data, "title", "task"),
            board=_required_str(data, "board", "task"),
            column=_required_str(data, "column", "task"),
            tags=_str_list(data, "tags", "task") or [],
            due=_optional_str(data, "due", "task"),
            created=_optional_str(data, "created", "task"),
            updated=_optional_str(data, "updated", "task"),
            project_id=_optional_str(data, "project_id", "task"),
            epic_id=_optional_str(data, "epic_id", "task"),
            owner=_optional_str(data, "owner", "task"),
            description=_optional_str(data, "description", "task"),
            as_a=_optional_str(data, "as_a", "task"),
            i_want=_optional_str(data, "i_want", "task"),
            so_that=_optional_str(data, "so_that", "task"),
            acceptance_criteria=_str_list(data, "acceptance_criteria", "task"),
            body=body,
        )


@dataclass
class Project:
    id: str
    title: str
    owner: Optional[str] = None
    created: Optional[str] = None
    updated: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "owner": self.owner,
            "created": self.created,
            "updated": self.updated,
            "description": self.description,
        }

    def to_frontmatter(self) -> Dict[str, Any]:
        return _compact(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        if not isinstance(data, dict):
            raise SchemaError("project: expected a mapping")
        return cls(
            id=_required_str(data, "id", "project"),
            title=_required_str(data, "title", "project"),
            owner=_optional_str(data, "owner", "project"),
            created=_optional_str(data, "created", "project"),
            updated=_optional_str(data, "updated", "project"),
            description=_optional_str(data, "description", "project"),
        )


@dataclass
class Epic:
    id: str
    title: str
    project_id: Optional[str] = None
    owner: Optional[str] = None
    created: Optional[str] = None
    updated: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "project_id": self.project_id,
            "owner": self.owner,
            "created": self.created,
            "updated": self.updated,
            "description": self.description,
        }

    def to_frontmatter(self) -> Dict[str, Any]:
        return _compact(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Epic":
        if not isinstance(data, dict):
            raise SchemaError("epic: expected a mapping")
        return cls(
            id=_required_str(data, "id", "epic"),
            title=_required_str(data, "title", "epic"),
            project_id=_optional_str(data, "project_id", "epic"),
            owner=_optional_str(data, "owner", "epic"),
            created=_optional_str(data, "created", "epic"),
            updated=_optional_str(data, "updated", "epic"),
            description=_optional_str(data, "description", "epic"),
        )


ENTITY_TYPES = {
    EntityKind.BOARD: Board,
    EntityKind.TASK: Task,
    EntityKind.PROJECT: Project,
    EntityKind.EPIC: Epic,
}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Query results
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class BoardColumn:
    name: str
    tasks: List[Task] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "tasks": [t.to_dict() for t in self.tasks]}


@dataclass
class BoardWithTasks:
    board: Board
    columns: List[BoardColumn] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "board": self.board.to_dict(),
            "columns": [c.to_dict() for c in self.columns],
        }


@dataclass
class VaultInfo:
    path: str
    backend: str = "vault"

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "backend": self.backend}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Command payloads
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _payload_title(data: Dict[str, Any], what: str) -> str:
    title = data.get("title")
    if title is None:
        raise SchemaError(f"{what}: title is required")
    if not isinstance(title, str):
        raise SchemaError(f"{what}: title must be a string")
    return title


@dataclass
class UpdateTaskColumnPayload:
    task_id: str
    column: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdateTaskColumnPayload":
        what = "update task column"
        task_id = _pick(data, "task_id", "taskId")
        if task_id is None:
            raise SchemaError(f"{what}: taskId is required")
        return cls(
            task_id=_scalar_to_str(task_id, "taskId", what),
            column=_required_str(data, "column", what),
        )


@dataclass
class CreateProjectPayload:
    title: str
    owner: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreateProjectPayload":
        return cls(
            title=_payload_title(data, "create project"),
            owner=_optional_str(data, "owner", "create project"),
            description=_optional_str(data, "description", "create project"),
        )


@dataclass
class CreateEpicPayload:
    title: str
    project_id: Optional[str] = None
    owner: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreateEpicPayload":
        what = "create epic"
        norm = {"project_id": _pick(data, "project_id", "projectId")}
        return cls(
            title=_payload_title(data, what),
            project_id=_optional_str(norm, "project_id", what),
            owner=_optional_str(data, "owner", what),
            description=_optional_str(data, "description", what),
        )


@dataclass
class CreateStoryPayload:
    title: str
    project_id: Optional[str] = None
    epic_id: Optional[str] = None
    owner: Optional[str] = None
    description: Optional[str] = None
    as_a: Optional[str] = None
    i_want: Optional[str] = None
    so_that: Optional[str] = None
    acceptance_criteria: Optional[List[str]] = None
    column: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreateStoryPayload":
        what = "create story"
        norm = {
            "project_id": _pick(data, "project_id", "projectId"),
            "epic_id": _pick(data, "epic_id", "epicId"),
            "as_a": _pick(data, "as_a", "asA"),
            "i_want": _pick(data, "i_want", "iWant"),
            "so_that": _pick(data, "so_that", "soThat"),
            "acceptance_criteria": _pick(data, "acceptance_criteria", "acceptanceCriteria"),
        }
        return cls(
            title=_payload_title(data, what),
            project_id=_optional_str(norm, "project_id", what),
            epic_id=_optional_str(norm, "epic_id", what),
            owner=_optional_str(data, "owner", what),
            description=_optional_str(data, "description", what),
            as_a=_optional_str(norm, "as_a", what),
            i_want=_optional_str(norm, "i_want", what),
            so_that=_optional_str(norm, "so_that", what),
            acceptance_criteria=_str_list(norm, "acceptance_criteria", what),
            column=_optional_str(data, "column", what),
        )


@dataclass
class AutofillPayload:
    """Partial story handed to the autofill client."""
    description: str
    title: Optional[str] = None
    as_a: Optional[str] = None
    i_want: Optional[str] = None
    so_that: Optional[str] = None
    acceptance_criteria: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutofillPayload":
        what = "autofill"
        norm = {
            "as_a": _pick(data, "as_a", "asA"),
            "i_want": _pick(data, "i_want", "iWant"),
            "so_that": _pick(data, "so_that", "soThat"),
            "acceptance_criteria": _pick(data, "acceptance_criteria", "acceptanceCriteria"),
        }
        return cls(
            description=_required_str(data, "description", what),
            title=_optional_str(data, "title", what),
            as_a=_optional_str(norm, "as_a", what),
            i_want=_optional_str(norm, "i_want", what),
            so_that=_optional_str(norm, "so_that", what),
            acceptance_criteria=_str_list(norm, "acceptance_criteria", what),
        )


@dataclass
class AutofillResult:
    """Story fields inferred by the completion API. Every field is optional."""
    title: Optional[str] = None
    as_a: Optional[str] = None
    i_want: Optional[str] = None
    so_that: Optional[str] = None
    acceptance_criteria: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "asA": self.as_a,
            "iWant": self.i_want,
            "soThat": self.so_that,
            "acceptanceCriteria": self.acceptance_criteria,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutofillResult":
        if not isinstance(data, dict):
            raise SchemaError("autofill response: expected a JSON object")
        what = "autofill response"
        norm = {
            "title": data.get("title"),
            "as_a": _pick(data, "as_a", "asA"),
            "i_want": _pick(data, "i_want", "iWant"),
            "so_that": _pick(data, "so_that", "soThat"),
            "acceptance_criteria": _pick(data, "acceptance_criteria", "acceptanceCriteria"),
        }
        for key in ("title", "as_a", "i_want", "so_that"):
            if norm[key] is not None and not isinstance(norm[key], str):
                raise SchemaError(f"{what}: field '{key}' must be a string")
        criteria = norm["acceptance_criteria"]
        if criteria is not None and (
            not isinstance(criteria, list) or not all(isinstance(c, str) for c in criteria)
        ):
            raise SchemaError(f"{what}: 'acceptanceCriteria' must be a list of strings")
        return cls(
            title=norm["title"],
            as_a=norm["as_a"],
            i_want=norm["i_want"],
            so_that=norm["so_that"],
            acceptance_criteria=criteria,
        )
