# pmvault: configuration
# Defaults, overridden by an optional pmvault.yaml, then by environment variables.

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("~/.config/pmvault/pmvault.yaml")

BACKENDS = ("vault", "json")
DEFAULT_MODEL = "gpt-4o-mini"

# env var -> Config field
ENV_OVERRIDES = {
    "OPENAI_API_KEY": "openai_api_key",
    "OPENAI_MODEL": "openai_model",
    "OPENAI_MODEL_FALLBACK": "openai_model_fallback",
    "OPENAI_BASE_URL": "openai_base_url",
    "PMVAULT_DATA_DIR": "data_dir",
    "PMVAULT_BACKEND": "backend",
}

STRING_FIELDS = (
    "data_dir",
    "backend",
    "openai_api_key",
    "openai_model",
    "openai_model_fallback",
    "openai_base_url",
)


@dataclass
class Config:
    """Runtime configuration, built once at startup and passed down."""

    # Storage
    data_dir: str = "~/.local/share/pmvault"
    backend: str = "vault"  # "vault" (Markdown files) or "json" (pm-db.json)

    # Autofill
    openai_api_key: str = ""
    openai_model: str = DEFAULT_MODEL
    openai_model_fallback: str = DEFAULT_MODEL
    openai_base_url: str = "https://api.openai.com/v1"
    openai_timeout: Optional[float] = None  # None = transport default

    def resolve_paths(self):
        """Coerce field types, expand ~ and validate the backend name."""
        self._coerce_types()
        self.data_dir = str(Path(self.data_dir).expanduser())
        self.backend = self.backend.strip().lower()
        if self.backend not in BACKENDS:
            raise ConfigError(
                f"Unknown storage backend '{self.backend}'. Available: {list(BACKENDS)}"
            )

    def _coerce_types(self):
        # YAML reads `openai_api_key: 12345` as an int
        for name in STRING_FIELDS:
            value = getattr(self, name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                setattr(self, name, str(value))
            elif not isinstance(value, str):
                raise ConfigError(f"Config field '{name}' must be a string, got {value!r}")
        timeout = self.openai_timeout
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))):
            raise ConfigError(f"Config field 'openai_timeout' must be a number, got {timeout!r}")

    def apply_env(self, env: Mapping[str, str]):
        """Override fields from environment variables. Blank values are ignored."""
        for var, attr in ENV_OVERRIDES.items():
            value = env.get(var, "")
            if value.strip():
                setattr(self, attr, value.strip())

    @property
    def has_api_key(self) -> bool:
        key = self.openai_api_key
        return isinstance(key, str) and bool(key.strip())

    @classmethod
    def load(cls, path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> "Config":
        """Load config from YAML file and environment, falling back to defaults."""
        cfg_path = Path(path).expanduser() if path else CONFIG_PATH.expanduser()
        cfg = cls()
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if hasattr(cls, k) and v is not None})
            except (OSError, yaml.YAMLError, AttributeError, TypeError) as e:
                logger.warning(f"Ignoring unreadable config {cfg_path}: {e}")
                cfg = cls()
        cfg.apply_env(os.environ if env is None else env)
        cfg.resolve_paths()
        return cfg
