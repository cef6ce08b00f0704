"""Representation of the contents of a kustomization file.

These objects are the parsed form of a `kustomization.yaml` and are read-only
inputs to plugin configuration. Field names follow python conventions and
are mapped to the camelCase keys used in the file itself.

Example:
```python
from kustomize_plugins.types import read_kustomization

kustomization = read_kustomization(Path("/path/to/app"))
for args in kustomization.config_map_generator:
    print(f"Found ConfigMap generator {args.name}")
```
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any, TypeVar, cast

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import ExtraKeysError, InvalidFieldValue, MissingField
import yaml

from .exceptions import InputException
from .loader import Loader

__all__ = [
    "read_kustomization",
    "load_transformer_config",
    "Kustomization",
    "GeneratorOptions",
    "GeneratorArgs",
    "ConfigMapArgs",
    "SecretArgs",
    "Image",
    "FieldSpec",
    "TransformerConfig",
]

_LOGGER = logging.getLogger(__name__)

KUSTOMIZE_KIND = "Kustomization"
KUSTOMIZATION_FILES = ["kustomization.yaml", "kustomization.yml", "Kustomization"]

BEHAVIOR_CREATE = "create"
BEHAVIOR_REPLACE = "replace"
BEHAVIOR_MERGE = "merge"
BEHAVIORS = [BEHAVIOR_CREATE, BEHAVIOR_REPLACE, BEHAVIOR_MERGE]

SECRET_TYPE_OPAQUE = "Opaque"

# Locations of container images in the common workload kinds.
DEFAULT_IMAGE_PATHS = [
    "spec/containers[]/image",
    "spec/initContainers[]/image",
    "spec/template/spec/containers[]/image",
    "spec/template/spec/initContainers[]/image",
    "spec/jobTemplate/spec/template/spec/containers[]/image",
    "spec/jobTemplate/spec/template/spec/initContainers[]/image",
]

_T = TypeVar("_T", bound="BaseManifest")


def check_strings(
    cls: type, doc: dict[str, Any], keys: list[str], mappings: list[str]
) -> None:
    """Reject yaml scalars that would otherwise be coerced into strings.

    An unquoted `1.10` is loaded as the float `1.1` and must not silently
    become the string "1.1".
    """
    if not isinstance(doc, dict):
        return
    for key in keys:
        if (value := doc.get(key)) is not None and not isinstance(value, str):
            raise InputException(
                f"Invalid {cls.__name__} field '{key}' expected a string: {value!r}"
            )
    for key in mappings:
        if not isinstance(values := doc.get(key), dict):
            continue
        for name, value in values.items():
            if not isinstance(value, str):
                raise InputException(
                    f"Invalid {cls.__name__} {key} '{name}' expected a string: {value!r}"
                )


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all kustomization objects."""

    @classmethod
    def parse_doc(cls: type[_T], doc: Any) -> _T:
        """Parse an object from a document already loaded from yaml."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid {cls.__name__} expected a mapping: {doc}")
        try:
            return cls.from_dict(doc)
        except InputException:
            raise
        except (MissingField, InvalidFieldValue, ExtraKeysError) as err:
            cause = err.__context__
            while isinstance(cause, InvalidFieldValue):
                cause = cause.__context__
            if isinstance(cause, InputException):
                raise InputException(str(cause)) from err
            raise InputException(f"Invalid {cls.__name__}: {err}") from err

    @classmethod
    def parse_yaml(cls: type[_T], content: str | bytes) -> _T:
        """Parse a serialized object."""
        try:
            doc = yaml.safe_load(content)
        except yaml.YAMLError as err:
            raise InputException(f"Unable to parse {cls.__name__} yaml: {err}") from err
        return cls.parse_doc(doc)

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class GeneratorOptions(BaseManifest):
    """Options that modify the behavior of all generated resources."""

    labels: dict[str, str] | None = None
    """Labels to add to all generated resources."""

    annotations: dict[str, str] | None = None
    """Annotations to add to all generated resources."""

    disable_name_suffix_hash: bool | None = field(
        metadata=field_options(alias="disableNameSuffixHash"), default=None
    )
    """Leave the names of generated resources without a content hash suffix."""

    @classmethod
    def __pre_deserialize__(cls, d: dict[Any, Any]) -> dict[Any, Any]:
        check_strings(cls, d, [], ["labels", "annotations"])
        return d


@dataclass
class GeneratorArgs(BaseManifest):
    """Arguments shared by the ConfigMap and Secret generators."""

    name: str | None = None
    """The name of the generated resource, before any hash suffix."""

    namespace: str | None = None
    """The namespace of the generated resource."""

    behavior: str | None = None
    """How to combine with an existing resource: create, replace or merge."""

    literals: list[str] = field(default_factory=list)
    """Data entries in the form `key=value`."""

    files: list[str] = field(default_factory=list)
    """Files to load as data entries, either `path` or `key=path`."""

    envs: list[str] = field(default_factory=list)
    """Env files containing `KEY=VALUE` lines to load as data entries."""

    env: str | None = None
    """A single env file, kept for older kustomization files."""

    options: GeneratorOptions | None = None
    """Options for this entry only, layered over the shared generatorOptions."""

    @classmethod
    def __pre_deserialize__(cls, d: dict[Any, Any]) -> dict[Any, Any]:
        check_strings(cls, d, ["name", "namespace", "behavior", "env"], [])
        return d


@dataclass
class ConfigMapArgs(GeneratorArgs):
    """A request to generate a ConfigMap."""


@dataclass
class SecretArgs(GeneratorArgs):
    """A request to generate a Secret."""

    type: str | None = None
    """The type of the Secret, defaults to Opaque."""


@dataclass
class Image(BaseManifest):
    """A rule for rewriting a container image name, tag or digest."""

    name: str | None = None
    """The image name to match, without tag or digest."""

    new_name: str | None = field(metadata=field_options(alias="newName"), default=None)
    """The replacement image name."""

    new_tag: str | None = field(metadata=field_options(alias="newTag"), default=None)
    """The replacement tag."""

    digest: str | None = None
    """The replacement digest, takes precedence over the tag."""

    @classmethod
    def __pre_deserialize__(cls, d: dict[Any, Any]) -> dict[Any, Any]:
        check_strings(cls, d, ["name", "newName", "newTag", "digest"], [])
        return d


@dataclass
class FieldSpec(BaseManifest):
    """A location within a resource that a transformer may modify."""

    path: str
    """The `/` separated path to the field, `[]` marks a list."""

    group: str | None = None
    """The API group of matching resources, any group when unset."""

    version: str | None = None
    """The API version of matching resources, any version when unset."""

    kind: str | None = None
    """The kind of matching resources, any kind when unset."""

    create: bool | None = None
    """Whether the field may be created when missing.

    Kept so configuration files round trip. The image transformer only
    rewrites an existing image, so it never creates a field.
    """

    def segments(self) -> list[str]:
        """Return the path as a list of field names."""
        return [
            segment.removesuffix("[]") for segment in self.path.split("/") if segment
        ]

    def matches(self, doc: dict[str, Any]) -> bool:
        """Return true if the resource has the kind and version of this spec."""
        if self.kind and doc.get("kind") != self.kind:
            return False
        api_version = doc.get("apiVersion", "")
        group, _, version = api_version.rpartition("/")
        if self.group is not None and self.group != group:
            return False
        if self.version and self.version != version:
            return False
        return True


@dataclass
class TransformerConfig(BaseManifest):
    """The fields each builtin transformer is allowed to modify."""

    images: list[FieldSpec] = field(default_factory=list)
    """Locations of container images."""

    @classmethod
    def default(cls) -> "TransformerConfig":
        """Return the builtin field locations."""
        return cls(images=[FieldSpec(path=path) for path in DEFAULT_IMAGE_PATHS])

    def merge(self, other: "TransformerConfig") -> "TransformerConfig":
        """Return a new config with the field specs of both, without duplicates."""
        images = list(self.images)
        for spec in other.images:
            if spec not in images:
                images.append(spec)
        return TransformerConfig(images=images)


@dataclass
class Kustomization(BaseManifest):
    """A kustomization file, the input to a kustomize build."""

    resources: list[str] = field(default_factory=list)
    """Resource files relative to the kustomization root."""

    config_map_generator: list[ConfigMapArgs] = field(
        metadata=field_options(alias="configMapGenerator"), default_factory=list
    )
    """ConfigMaps to generate."""

    secret_generator: list[SecretArgs] = field(
        metadata=field_options(alias="secretGenerator"), default_factory=list
    )
    """Secrets to generate."""

    generator_options: GeneratorOptions | None = field(
        metadata=field_options(alias="generatorOptions"), default=None
    )
    """Options shared by every generator entry."""

    images: list[Image] = field(default_factory=list)
    """Container image rewrite rules."""

    configurations: list[str] = field(default_factory=list)
    """Transformer configuration files merged over the builtin defaults."""

    @classmethod
    def parse_doc(cls, doc: Any) -> "Kustomization":
        """Parse a Kustomization, checking the kind when one is present."""
        if isinstance(doc, dict) and (kind := doc.get("kind")) is not None:
            if kind != KUSTOMIZE_KIND:
                raise InputException(f"Invalid {cls.__name__} unexpected kind: {kind}")
        return cast(Kustomization, super().parse_doc(doc))


def read_kustomization(path: Path) -> Kustomization:
    """Return the contents of a kustomization file.

    The path may be the file itself or a directory containing one of the
    recognized kustomization file names.
    """
    if path.is_dir():
        for name in KUSTOMIZATION_FILES:
            if (candidate := path / name).is_file():
                path = candidate
                break
        else:
            raise InputException(
                f"Directory {path} does not contain any of {KUSTOMIZATION_FILES}"
            )
    _LOGGER.debug("Reading kustomization %s", path)
    try:
        content = path.read_text()
    except OSError as err:
        raise InputException(f"Unable to read kustomization {path}: {err}") from err
    if not content:
        raise InputException(f"Kustomization file {path} is empty")
    return Kustomization.parse_yaml(content)


def load_transformer_config(loader: Loader, paths: list[str]) -> TransformerConfig:
    """Return the builtin transformer config merged with the specified files."""
    config = TransformerConfig.default()
    for path in paths:
        _LOGGER.debug("Loading transformer configuration %s", path)
        config = config.merge(TransformerConfig.parse_yaml(loader.load(path)))
    return config
