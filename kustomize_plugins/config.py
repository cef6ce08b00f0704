"""Configuration objects for kustomize-plugins."""

from dataclasses import dataclass


@dataclass
class BuildConfig:
    """Configuration for building a kustomization target."""

    name_hash: bool = True
    """Append a content hash to the names of generated resources."""

    restrict_to_root: bool = True
    """Refuse to load files outside of the kustomization root."""
