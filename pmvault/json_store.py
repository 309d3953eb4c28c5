"""
Flat-DB storage backend: every entity in one JSON document.

    {"version": 1, "boards": [...], "tasks": [...], "projects": [...], "epics": [...]}

The whole document is loaded for every read and rewritten for every
mutation. First access seeds the default board and empty collections.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from .errors import EntityNotFound, SchemaError
from .schema import ENTITY_TYPES, EntityKind
from .store import KanbanStore, default_board

logger = logging.getLogger(__name__)

DB_FILENAME = "pm-db.json"
SCHEMA_VERSION = 1


def default_db() -> Dict[str, Any]:
    return {
        "version": SCHEMA_VERSION,
        "boards": [default_board().to_dict()],
        "tasks": [],
        "projects": [],
        "epics": [],
    }


class JsonStore(KanbanStore):
    """Single JSON file storage backend."""

    backend = "json"

    def __init__(self, root: Path):
        super().__init__(root)
        self.db_path = self.root / DB_FILENAME

    @property
    def location(self) -> Path:
        return self.db_path

    def ensure(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.db_path.exists():
            self.save_db(default_db())
            logger.info(f"Created {self.db_path} with the default board")

    def load_db(self) -> Dict[str, Any]:
        """Load and shape-check the whole document."""
        self.ensure()
        try:
            db = json.loads(self.db_path.read_text(encoding="utf-8"))
        except UnicodeDecodeError as e:
            raise SchemaError(f"invalid utf-8 in {self.db_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise SchemaError(f"json error: {e}") from e
        if not isinstance(db, dict):
            raise SchemaError(f"{self.db_path}: expected a JSON object")
        if not isinstance(db.get("version"), int):
            raise SchemaError(f"{self.db_path}: missing schema version")
        for kind in EntityKind:
            if not isinstance(db.get(kind.value), list):
                raise SchemaError(f"{self.db_path}: '{kind.value}' must be a list")
        return db

    def save_db(self, db: Dict[str, Any]) -> None:
        self.db_path.write_text(json.dumps(db, indent=2, ensure_ascii=False), encoding="utf-8")

    def _load_all(self, kind: EntityKind) -> List[Any]:
        cls = ENTITY_TYPES[kind]
        return [cls.from_dict(record) for record in self.load_db()[kind.value]]

    def _get(self, kind: EntityKind, entity_id: str) -> Any:
        for entity in self._load_all(kind):
            if entity.id == entity_id:
                return entity
        raise EntityNotFound(kind.label, entity_id)

    def _save(self, kind: EntityKind, entity: Any) -> None:
        db = self.load_db()
        records = db[kind.value]
        data = entity.to_dict()
        for i, record in enumerate(records):
            if isinstance(record, dict) and record.get("id") == entity.id:
                records[i] = data
                break
        else:
            records.append(data)
        self.save_db(db)
