"""Library for configuring the builtin plugins of a kustomization.

A kustomization may request several ConfigMaps, several Secrets and several
image rewrites. Each request becomes its own plugin instance: the entry is
merged with any shared options, serialized to a yaml payload and handed to a
new plugin.

The builtin plugins are listed in a fixed order in `BUILTIN_GENERATORS` and
`BUILTIN_TRANSFORMERS`. New capabilities are added by extending these tables.

Example:
```python
from kustomize_plugins import loader, resource, target, types

ks = types.read_kustomization(path)
kt = target.KustTarget(loader.FileLoader(path), resource.ResourceFactory())
for doc in kt.build(ks):
    print(f"Built {doc['kind']} {doc['metadata']['name']}")
```
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import logging
from typing import Any

from .exceptions import ConfigException, InputException
from .loader import Loader
from .options import (
    BaseOptions,
    config_map_options,
    image_tag_options,
    marshal,
    secret_options,
)
from .plugins import (
    BuiltinPlugin,
    ConfigMapGeneratorPlugin,
    Generator,
    ImageTagTransformerPlugin,
    SecretGeneratorPlugin,
    Transformer,
)
from .resource import ResourceFactory, add_generated
from .types import (
    FieldSpec,
    GeneratorOptions,
    Kustomization,
    TransformerConfig,
    load_transformer_config,
)

__all__ = [
    "KustTarget",
    "GeneratorCapability",
    "TransformerCapability",
    "BUILTIN_GENERATORS",
    "BUILTIN_TRANSFORMERS",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratorCapability:
    """A builtin generator and how to configure it from a kustomization."""

    name: str
    """The identifier used in error messages."""

    plugin: Callable[[], Generator[Any]]
    """Creates a new unconfigured plugin."""

    entries: Callable[[Kustomization], Sequence[Any]]
    """Returns the kustomization entries for this generator."""

    options: Callable[[GeneratorOptions | None, Any], BaseOptions]
    """Merges the shared generator options with one entry."""


@dataclass(frozen=True)
class TransformerCapability:
    """A builtin transformer and how to configure it from a kustomization."""

    name: str
    """The identifier used in error messages."""

    plugin: Callable[[], Transformer[Any]]
    """Creates a new unconfigured plugin."""

    entries: Callable[[Kustomization], Sequence[Any]]
    """Returns the kustomization entries for this transformer."""

    field_specs: Callable[[TransformerConfig], list[FieldSpec]]
    """Returns the fields this transformer may modify."""

    options: Callable[[Any, list[FieldSpec]], BaseOptions]
    """Combines one entry with the field specs."""


CONFIG_MAP_GENERATOR = GeneratorCapability(
    name="configmap",
    plugin=ConfigMapGeneratorPlugin,
    entries=lambda ks: ks.config_map_generator,
    options=config_map_options,
)

SECRET_GENERATOR = GeneratorCapability(
    name="secret",
    plugin=SecretGeneratorPlugin,
    entries=lambda ks: ks.secret_generator,
    options=secret_options,
)

IMAGE_TAG_TRANSFORMER = TransformerCapability(
    name="imageTag",
    plugin=ImageTagTransformerPlugin,
    entries=lambda ks: ks.images,
    field_specs=lambda tconfig: tconfig.images,
    options=image_tag_options,
)

BUILTIN_GENERATORS: tuple[GeneratorCapability, ...] = (
    CONFIG_MAP_GENERATOR,
    SECRET_GENERATOR,
)

BUILTIN_TRANSFORMERS: tuple[TransformerCapability, ...] = (IMAGE_TAG_TRANSFORMER,)


class KustTarget:
    """Configures and runs the builtin plugins for kustomizations."""

    def __init__(
        self,
        loader: Loader,
        factory: ResourceFactory,
        generators: Sequence[GeneratorCapability] = BUILTIN_GENERATORS,
        transformers: Sequence[TransformerCapability] = BUILTIN_TRANSFORMERS,
    ) -> None:
        """Initialize KustTarget."""
        self._loader = loader
        self._factory = factory
        self._generators = generators
        self._transformers = transformers

    def configure_builtin_generators(
        self, kustomization: Kustomization
    ) -> list[Generator[Any]]:
        """Return a configured generator for every generator entry.

        Generators are ordered by capability then by entry. The first failure
        aborts the whole operation.
        """
        result: list[Generator[Any]] = []
        for capability in self._generators:
            result.extend(self._configure_generator(capability, kustomization))
        return result

    def configure_builtin_transformers(
        self, kustomization: Kustomization, tconfig: TransformerConfig
    ) -> list[Transformer[Any]]:
        """Return a configured transformer for every transformer entry.

        Transformers are ordered by capability then by entry. The first failure
        aborts the whole operation.
        """
        result: list[Transformer[Any]] = []
        for capability in self._transformers:
            result.extend(self._configure_transformer(capability, kustomization, tconfig))
        return result

    def build(
        self, kustomization: Kustomization, tconfig: TransformerConfig | None = None
    ) -> list[dict[str, Any]]:
        """Return the resources of the kustomization after running all plugins.

        When no transformer config is specified, the builtin defaults are merged
        with the kustomization `configurations` files.
        """
        if tconfig is None:
            tconfig = load_transformer_config(self._loader, kustomization.configurations)
        generators = self.configure_builtin_generators(kustomization)
        transformers = self.configure_builtin_transformers(kustomization, tconfig)

        resources: list[dict[str, Any]] = []
        for location in kustomization.resources:
            resources.extend(
                self._factory.from_bytes(self._loader.load(location), location)
            )
        for generator in generators:
            add_generated(resources, generator.generate())
        for transformer in transformers:
            transformer.transform(resources)
        for doc in resources:
            self._factory.finalize(doc)
        _LOGGER.debug("Built %d resources", len(resources))
        return resources

    def _configure_generator(
        self, capability: GeneratorCapability, kustomization: Kustomization
    ) -> list[Generator[Any]]:
        defaults = kustomization.generator_options
        result: list[Generator[Any]] = []
        for entry in capability.entries(kustomization):
            plugin = capability.plugin()
            self._configure_builtin_plugin(
                plugin, capability.options(defaults, entry), capability.name
            )
            result.append(plugin)
        _LOGGER.debug("Configured %d builtin %s generators", len(result), capability.name)
        return result

    def _configure_transformer(
        self,
        capability: TransformerCapability,
        kustomization: Kustomization,
        tconfig: TransformerConfig,
    ) -> list[Transformer[Any]]:
        field_specs = capability.field_specs(tconfig)
        result: list[Transformer[Any]] = []
        for entry in capability.entries(kustomization):
            plugin = capability.plugin()
            self._configure_builtin_plugin(
                plugin, capability.options(entry, field_specs), capability.name
            )
            result.append(plugin)
        _LOGGER.debug(
            "Configured %d builtin %s transformers", len(result), capability.name
        )
        return result

    def _configure_builtin_plugin(
        self, plugin: BuiltinPlugin[Any], options: BaseOptions, capability: str
    ) -> None:
        payload = marshal(options, capability)
        try:
            plugin.config(self._loader, self._factory, payload)
        except InputException as err:
            raise ConfigException(capability, payload, str(err)) from err
