"""
Vault storage backend: one Markdown file per entity.

Layout:
    <data_dir>/vault/
        boards/default.md
        tasks/task-1.md
        projects/project-1.md
        epics/epic-1.md

Each file is YAML frontmatter (see frontmatter.py) followed by a Markdown
body. Only tasks use the body; it holds the free-text task notes.

Writes go straight to the target file. There is no temp-file rename, so a
crash mid-write can leave a truncated file; listings skip such files.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List

from . import frontmatter
from .errors import EntityNotFound, MalformedDocument, SchemaError
from .schema import ENTITY_TYPES, EntityKind, Epic, Project, Task
from .store import KanbanStore, default_board, now_epoch

logger = logging.getLogger(__name__)

EXTENSION = ".md"


def _sample_content() -> Dict[EntityKind, List[Any]]:
    """Seed entities written into an empty subdirectory on first run."""
    created = now_epoch()
    return {
        EntityKind.BOARD: [default_board()],
        EntityKind.TASK: [
            Task(
                id="task-1",
                title="Welcome to your vault",
                board="default",
                column="Inbox",
                tags=["welcome"],
                created=created,
                body=(
                    "Every card on this board is a Markdown file under `tasks/`.\n"
                    "Edit the frontmatter to change its fields."
                ),
            ),
            Task(
                id="task-2",
                title="Write your first story",
                board="default",
                column="Backlog",
                tags=["story"],
                created=created,
                project_id="project-1",
                epic_id="epic-1",
                as_a="project owner",
                i_want="to capture work as user stories",
                so_that="the team knows why each task matters",
                acceptance_criteria=["The story appears on the board"],
            ),
        ],
        EntityKind.PROJECT: [
            Project(
                id="project-1",
                title="Sample Project",
                created=created,
                description="A project to group epics and stories.",
            ),
        ],
        EntityKind.EPIC: [
            Epic(
                id="epic-1",
                title="Getting Started",
                project_id="project-1",
                created=created,
                description="Stories that introduce the vault.",
            ),
        ],
    }


def decode(kind: EntityKind, text: str) -> Any:
    """Decode one vault file into its entity."""
    data, body = frontmatter.parse(text)
    if kind is EntityKind.TASK:
        return Task.from_dict(data, body=body)
    return ENTITY_TYPES[kind].from_dict(data)


def encode(entity: Any, body: str = "") -> str:
    return frontmatter.serialize(entity.to_frontmatter(), body)


class VaultStore(KanbanStore):
    """Directory-of-Markdown storage backend."""

    backend = "vault"

    def __init__(self, root: Path):
        super().__init__(root)
        self.vault_dir = self.root / "vault"

    @property
    def location(self) -> Path:
        return self.vault_dir

    def kind_dir(self, kind: EntityKind) -> Path:
        return self.vault_dir / kind.value

    def path_for(self, kind: EntityKind, entity_id: str) -> Path:
        return self.kind_dir(kind) / f"{entity_id}{EXTENSION}"

    def ensure_layout(self) -> None:
        """Create the four subdirectories; seed any that are empty."""
        samples = None
        for kind in EntityKind:
            directory = self.kind_dir(kind)
            directory.mkdir(parents=True, exist_ok=True)
            if any(directory.iterdir()):
                continue
            if samples is None:
                samples = _sample_content()
            for entity in samples[kind]:
                self.write(kind, entity, getattr(entity, "body", ""))
            logger.info(f"Seeded {directory} with {len(samples[kind])} sample {kind.value}")

    def ensure(self) -> None:
        self.ensure_layout()

    def write(self, kind: EntityKind, entity: Any, body: str = "") -> Path:
        """Encode and overwrite ``<id>.md``."""
        path = self.path_for(kind, entity.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(encode(entity, body), encoding="utf-8")
        return path

    def read_file(self, kind: EntityKind, path: Path) -> Any:
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise SchemaError(f"invalid utf-8 in {path}: {e}") from e
        return decode(kind, text)

    def _load_all(self, kind: EntityKind) -> List[Any]:
        directory = self.kind_dir(kind)
        if not directory.exists():
            return []
        items = []
        for path in sorted(directory.glob(f"*{EXTENSION}")):
            if not path.is_file():
                continue
            try:
                items.append(self.read_file(kind, path))
            except (MalformedDocument, SchemaError) as e:
                logger.warning(f"Skipping {path}: {e}")
        return items

    def read_by_id(self, kind: EntityKind, entity_id: str) -> Any:
        """
        Look up one entity.

        ``<id>.md`` is decoded directly when present, so a corrupt file
        raises instead of being skipped. Otherwise falls back to scanning
        the listing for a file whose id field matches.
        """
        path = self.path_for(kind, entity_id)
        if path.is_file():
            entity = self.read_file(kind, path)
            if entity.id == entity_id:
                return entity
        for entity in self._load_all(kind):
            if entity.id == entity_id:
                return entity
        raise EntityNotFound(kind.label, entity_id)

    def _get(self, kind: EntityKind, entity_id: str) -> Any:
        return self.read_by_id(kind, entity_id)

    def _save(self, kind: EntityKind, entity: Any) -> None:
        self.write(kind, entity, getattr(entity, "body", ""))

    def _exists(self, kind: EntityKind, entity_id: str) -> bool:
        return self.path_for(kind, entity_id).exists() or super()._exists(kind, entity_id)
