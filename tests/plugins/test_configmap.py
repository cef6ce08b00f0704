"""Tests for the ConfigMap generator plugin."""

from pathlib import Path

from kustomize_plugins.loader import FileLoader
from kustomize_plugins.options import config_map_options, marshal
from kustomize_plugins.plugins import ConfigMapGeneratorPlugin
from kustomize_plugins.resource import ResourceFactory
from kustomize_plugins.types import ConfigMapArgs, GeneratorOptions


def test_generate(root: Path, loader: FileLoader, factory: ResourceFactory) -> None:
    """Test generating a ConfigMap from a configured plugin."""
    (root / "app.properties").write_text("color=blue\n")
    options = config_map_options(
        GeneratorOptions(labels={"team": "infra"}, disable_name_suffix_hash=True),
        ConfigMapArgs(
            name="app-config", literals=["key=value"], files=["app.properties"]
        ),
    )
    plugin = ConfigMapGeneratorPlugin()
    plugin.config(loader, factory, marshal(options, "configmap"))

    doc = plugin.generate()
    factory.finalize(doc)
    assert doc == {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": "app-config", "labels": {"team": "infra"}},
        "data": {"key": "value", "app.properties": "color=blue\n"},
    }


def test_generate_is_repeatable(loader: FileLoader, factory: ResourceFactory) -> None:
    """Test the plugin generates the same resource each time."""
    plugin = ConfigMapGeneratorPlugin()
    plugin.config(loader, factory, b"name: app-config\nliterals:\n- a=b\n")
    assert plugin.generate() == plugin.generate()
