"""Configuration payloads for the builtin plugins.

Each builtin capability has an options record holding everything its plugin
needs. A record is built by merging the shared defaults of the kustomization
with a single entry, then serialized to canonical yaml. The plugin parses the
payload back into the same record type, so a plugin never sees the
kustomization itself.
"""

from dataclasses import dataclass, field
import logging
from typing import Any

from mashumaro import field_options
import yaml

from .exceptions import MarshalException
from .types import (
    BaseManifest,
    ConfigMapArgs,
    FieldSpec,
    GeneratorArgs,
    GeneratorOptions,
    Image,
    SecretArgs,
    check_strings,
)

__all__ = [
    "ConfigMapGeneratorOptions",
    "SecretGeneratorOptions",
    "ImageTagTransformerOptions",
    "merge_generator_options",
    "config_map_options",
    "secret_options",
    "image_tag_options",
    "marshal",
]

_LOGGER = logging.getLogger(__name__)


@dataclass
class BaseOptions(BaseManifest):
    """Base class for a serialized plugin configuration."""

    class Config(BaseManifest.Config):
        forbid_extra_keys = True


@dataclass
class GeneratorPluginOptions(BaseOptions):
    """The merge of the shared generator options and one generator entry."""

    name: str | None = None
    namespace: str | None = None
    behavior: str | None = None
    literals: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    envs: list[str] = field(default_factory=list)
    env: str | None = None
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    disable_name_suffix_hash: bool | None = field(
        metadata=field_options(alias="disableNameSuffixHash"), default=None
    )

    @classmethod
    def __pre_deserialize__(cls, d: dict[Any, Any]) -> dict[Any, Any]:
        check_strings(
            cls, d, ["name", "namespace", "behavior", "env"], ["labels", "annotations"]
        )
        return d

    @property
    def env_files(self) -> list[str]:
        """All env files, including the single legacy `env` file."""
        if self.env:
            return [self.env, *self.envs]
        return list(self.envs)


@dataclass
class ConfigMapGeneratorOptions(GeneratorPluginOptions):
    """Configuration for the builtin ConfigMap generator."""


@dataclass
class SecretGeneratorOptions(GeneratorPluginOptions):
    """Configuration for the builtin Secret generator."""

    type: str | None = None


@dataclass
class ImageTagTransformerOptions(BaseOptions):
    """Configuration for the builtin image tag transformer."""

    image_tag: Image = field(metadata=field_options(alias="imageTag"))
    """The image rewrite rule."""

    field_specs: list[FieldSpec] = field(
        metadata=field_options(alias="fieldSpecs"), default_factory=list
    )
    """The fields holding images, shared by every image rule."""


def merge_generator_options(*layers: GeneratorOptions | None) -> GeneratorOptions:
    """Merge generator options, later layers override earlier ones per field.

    Labels and annotations are merged key by key.
    """
    result = GeneratorOptions()
    for layer in layers:
        if layer is None:
            continue
        if layer.labels:
            result.labels = {**(result.labels or {}), **layer.labels}
        if layer.annotations:
            result.annotations = {**(result.annotations or {}), **layer.annotations}
        if layer.disable_name_suffix_hash is not None:
            result.disable_name_suffix_hash = layer.disable_name_suffix_hash
    return result


def _generator_fields(
    defaults: GeneratorOptions | None, entry: GeneratorArgs
) -> dict[str, Any]:
    options = merge_generator_options(defaults, entry.options)
    return {
        "name": entry.name,
        "namespace": entry.namespace,
        "behavior": entry.behavior,
        "literals": list(entry.literals),
        "files": list(entry.files),
        "envs": list(entry.envs),
        "env": entry.env,
        "labels": options.labels,
        "annotations": options.annotations,
        "disable_name_suffix_hash": options.disable_name_suffix_hash,
    }


def config_map_options(
    defaults: GeneratorOptions | None, entry: ConfigMapArgs
) -> ConfigMapGeneratorOptions:
    """Return the options for one ConfigMap generator entry."""
    return ConfigMapGeneratorOptions(**_generator_fields(defaults, entry))


def secret_options(
    defaults: GeneratorOptions | None, entry: SecretArgs
) -> SecretGeneratorOptions:
    """Return the options for one Secret generator entry."""
    return SecretGeneratorOptions(type=entry.type, **_generator_fields(defaults, entry))


def image_tag_options(
    entry: Image, field_specs: list[FieldSpec]
) -> ImageTagTransformerOptions:
    """Return the options for one image rewrite rule."""
    return ImageTagTransformerOptions(image_tag=entry, field_specs=list(field_specs))


def marshal(options: BaseOptions, capability: str) -> bytes:
    """Serialize the options into the canonical yaml payload for a plugin."""
    try:
        content = yaml.safe_dump(
            options.to_dict(), sort_keys=True, default_flow_style=False
        )
    except (yaml.YAMLError, TypeError, ValueError) as err:
        raise MarshalException(capability, str(err)) from err
    return content.encode("utf-8")
