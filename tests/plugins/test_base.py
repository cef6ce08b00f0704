"""Tests for the plugin configuration state machine."""

import pytest

from kustomize_plugins.exceptions import InputException, PluginStateException
from kustomize_plugins.loader import FileLoader
from kustomize_plugins.plugins import ConfigMapGeneratorPlugin, PluginState
from kustomize_plugins.resource import ResourceFactory

VALID_PAYLOAD = b"name: app-config\nliterals:\n- color=blue\n"
INVALID_PAYLOAD = b"literals:\n- color=blue\n"


def test_configure(loader: FileLoader, factory: ResourceFactory) -> None:
    """Test a plugin moves to configured after a valid payload."""
    plugin = ConfigMapGeneratorPlugin()
    assert plugin.state == PluginState.CREATED
    plugin.config(loader, factory, VALID_PAYLOAD)
    assert plugin.state == PluginState.CONFIGURED
    assert plugin.options.name == "app-config"
    assert plugin.loader is loader
    assert plugin.factory is factory


def test_configure_failure(loader: FileLoader, factory: ResourceFactory) -> None:
    """Test a rejected payload leaves the plugin failed and unusable."""
    plugin = ConfigMapGeneratorPlugin()
    with pytest.raises(InputException, match="missing required field 'name'"):
        plugin.config(loader, factory, INVALID_PAYLOAD)
    assert plugin.state == PluginState.FAILED

    with pytest.raises(PluginStateException, match="not configured"):
        plugin.generate()
    with pytest.raises(PluginStateException, match="cannot be configured"):
        plugin.config(loader, factory, VALID_PAYLOAD)


def test_use_before_configure() -> None:
    """Test a plugin cannot generate before it is configured."""
    plugin = ConfigMapGeneratorPlugin()
    with pytest.raises(PluginStateException, match="state Created"):
        plugin.generate()
    with pytest.raises(PluginStateException):
        plugin.options


def test_configure_twice(loader: FileLoader, factory: ResourceFactory) -> None:
    """Test a plugin is only configured once."""
    plugin = ConfigMapGeneratorPlugin()
    plugin.config(loader, factory, VALID_PAYLOAD)
    with pytest.raises(PluginStateException, match="in state Configured"):
        plugin.config(loader, factory, VALID_PAYLOAD)
    assert plugin.state == PluginState.CONFIGURED


@pytest.mark.parametrize(
    ("payload", "expected_error"),
    [
        (b"name: [\n", "Unable to parse"),
        (b"- name\n", "expected a mapping"),
        (b"name: cm\nextra: true\n", "Invalid ConfigMapGeneratorOptions"),
        (b"name: cm\nliterals: 5\n", "Invalid ConfigMapGeneratorOptions"),
        (b"name: cm\nbehavior: upsert\n", "invalid behavior 'upsert'"),
        (b"name: cm\nliterals:\n- novalue\n", "Invalid literal source 'novalue'"),
        (b"name: cm\nlabels:\n  tier: 2\n", "labels 'tier' expected a string"),
    ],
)
def test_rejected_payloads(
    loader: FileLoader, factory: ResourceFactory, payload: bytes, expected_error: str
) -> None:
    """Test payloads rejected by plugin validation."""
    plugin = ConfigMapGeneratorPlugin()
    with pytest.raises(InputException, match=expected_error):
        plugin.config(loader, factory, payload)
    assert plugin.state == PluginState.FAILED
