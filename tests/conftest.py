"""Test fixtures for kustomize-plugins."""

from pathlib import Path

import pytest

from kustomize_plugins.loader import FileLoader
from kustomize_plugins.resource import ResourceFactory
from kustomize_plugins.target import KustTarget


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """A kustomization root directory."""
    path = tmp_path / "app"
    path.mkdir()
    return path


@pytest.fixture
def loader(root: Path) -> FileLoader:
    """A loader restricted to the kustomization root."""
    return FileLoader(root)


@pytest.fixture
def factory() -> ResourceFactory:
    """A resource factory that appends name hashes."""
    return ResourceFactory()


@pytest.fixture
def target(loader: FileLoader, factory: ResourceFactory) -> KustTarget:
    """A KustTarget with the builtin plugins."""
    return KustTarget(loader, factory)
