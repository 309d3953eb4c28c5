"""
YAML frontmatter codec.

A document is a YAML header between two ``---`` marker lines, followed by a
free-form Markdown body:

    ---
    id: task-1
    title: Welcome to your vault
    ---

    Body text.

Header values are scalars or lists of scalars. Structured fields round-trip
exactly; the body is normalized (surrounding whitespace stripped).
"""
from datetime import date
from typing import Any, Dict, Tuple

import yaml

from .errors import MalformedDocument, SchemaError

DELIMITER = "---"

_SCALARS = (str, int, float, bool, date)


def _is_delimiter(line: str) -> bool:
    return line.rstrip("\r") == DELIMITER


def _check_value(key: str, value: Any) -> None:
    if value is None or isinstance(value, _SCALARS):
        return
    if isinstance(value, list) and all(v is None or isinstance(v, _SCALARS) for v in value):
        return
    raise SchemaError(f"frontmatter field '{key}' must be a scalar or a list of scalars")


def parse(text: str) -> Tuple[Dict[str, Any], str]:
    """Split ``text`` into (header mapping, body)."""
    lines = text.split("\n")
    if not lines or not _is_delimiter(lines[0]):
        raise MalformedDocument("document does not start with a frontmatter delimiter")

    closing = next(
        (i for i in range(1, len(lines)) if _is_delimiter(lines[i])),
        None,
    )
    if closing is None:
        raise MalformedDocument("frontmatter closing delimiter not found")

    header = "\n".join(lines[1:closing])
    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as e:
        raise SchemaError(f"invalid frontmatter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SchemaError("frontmatter must be a key-value mapping")
    for key, value in data.items():
        if not isinstance(key, str):
            raise SchemaError(f"frontmatter key {key!r} must be a string")
        _check_value(key, value)

    body = "\n".join(lines[closing + 1:]).strip()
    return data, body


def _dump(data: Dict[str, Any], allow_unicode: bool) -> str:
    return yaml.safe_dump(
        data,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=allow_unicode,
    )


def serialize(data: Dict[str, Any], body: str = "") -> str:
    """Inverse of :func:`parse`."""
    header = ""
    if data:
        header = _dump(data, allow_unicode=True)
        # Raw NEL / LS / PS in quoted scalars load back as line breaks.
        if yaml.safe_load(header) != data:
            header = _dump(data, allow_unicode=False)
    text = f"{DELIMITER}\n{header}{DELIMITER}\n"
    body = (body or "").strip()
    if body:
        text += f"\n{body}\n"
    return text
