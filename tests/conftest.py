"""Shared test fixtures for pmvault tests."""

import sys
from pathlib import Path

import pytest

# Ensure the repo root (pmvault package + server script) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from pmvault.config import Config
from pmvault.json_store import JsonStore
from pmvault.vault_store import VaultStore


@pytest.fixture
def vault_store(tmp_path):
    store = VaultStore(tmp_path)
    store.ensure()
    return store


@pytest.fixture
def json_store(tmp_path):
    store = JsonStore(tmp_path)
    store.ensure()
    return store


@pytest.fixture
def make_config(tmp_path):
    """Build a Config rooted in tmp_path without reading the environment."""
    def _make(**overrides):
        cfg = Config(data_dir=str(tmp_path), **overrides)
        cfg.resolve_paths()
        return cfg
    return _make
