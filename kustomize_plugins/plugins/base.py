"""Base classes for the builtin generator and transformer plugins.

A plugin is created empty, configured exactly once from a serialized payload
and only then asked to generate or transform resources.
"""

from abc import ABC, abstractmethod
from enum import StrEnum
import logging
from typing import Any, Generic, TypeVar, cast

from kustomize_plugins.exceptions import InputException, PluginStateException
from kustomize_plugins.loader import Loader
from kustomize_plugins.options import BaseOptions, GeneratorPluginOptions
from kustomize_plugins.resource import ResourceFactory, parse_literal
from kustomize_plugins.types import BEHAVIORS

__all__ = [
    "PluginState",
    "BuiltinPlugin",
    "Generator",
    "Transformer",
]

_LOGGER = logging.getLogger(__name__)

_OptionsT = TypeVar("_OptionsT", bound=BaseOptions)


class PluginState(StrEnum):
    """Configuration state of a plugin instance."""

    CREATED = "Created"
    CONFIGURING = "Configuring"
    CONFIGURED = "Configured"
    FAILED = "Failed"


class BuiltinPlugin(ABC, Generic[_OptionsT]):
    """A plugin configured from a yaml payload of its options record."""

    options_cls: type[_OptionsT]
    """The options record parsed from the payload."""

    def __init__(self) -> None:
        """Initialize BuiltinPlugin."""
        self._state = PluginState.CREATED
        self._options: _OptionsT | None = None
        self._loader: Loader | None = None
        self._factory: ResourceFactory | None = None

    @property
    def state(self) -> PluginState:
        """The configuration state of the plugin."""
        return self._state

    def config(self, loader: Loader, factory: ResourceFactory, payload: bytes) -> None:
        """Validate and store the configuration payload.

        Raises an InputException when the payload is rejected, after which the
        plugin may not be used.
        """
        if self._state != PluginState.CREATED:
            raise PluginStateException(
                f"{type(self).__name__} cannot be configured in state {self._state}"
            )
        self._state = PluginState.CONFIGURING
        try:
            options = self.options_cls.parse_yaml(payload)
            self.validate(options)
        except Exception:
            self._state = PluginState.FAILED
            raise
        self._options = options
        self._loader = loader
        self._factory = factory
        self._state = PluginState.CONFIGURED

    @abstractmethod
    def validate(self, options: _OptionsT) -> None:
        """Raise an InputException if the options are not valid."""

    @property
    def options(self) -> _OptionsT:
        """The configured options."""
        self._check_configured()
        return cast(_OptionsT, self._options)

    @property
    def loader(self) -> Loader:
        self._check_configured()
        return cast(Loader, self._loader)

    @property
    def factory(self) -> ResourceFactory:
        self._check_configured()
        return cast(ResourceFactory, self._factory)

    def _check_configured(self) -> None:
        if self._state != PluginState.CONFIGURED:
            raise PluginStateException(
                f"{type(self).__name__} is not configured (state {self._state})"
            )


class Generator(BuiltinPlugin[_OptionsT]):
    """A plugin that produces a new resource."""

    @abstractmethod
    def generate(self) -> dict[str, Any]:
        """Return the generated resource document."""


class Transformer(BuiltinPlugin[_OptionsT]):
    """A plugin that modifies existing resources in place."""

    @abstractmethod
    def transform(self, resources: list[dict[str, Any]]) -> None:
        """Apply the transformation to each resource document."""


def validate_generator_options(options: GeneratorPluginOptions) -> None:
    """Check the options shared by all generators."""
    if not options.name:
        raise InputException("Generator is missing required field 'name'")
    if options.behavior and options.behavior not in BEHAVIORS:
        raise InputException(
            f"Generator {options.name} has invalid behavior '{options.behavior}', expected one of {BEHAVIORS}"
        )
    for literal in options.literals:
        parse_literal(literal)
