"""Library for constructing kubernetes resource documents.

The `ResourceFactory` is handed to every plugin along with a `Loader`. The
generators use it to build ConfigMap and Secret documents from literals,
files and env files, and the build uses it to parse resource files and to
finish generated resources with their name hash suffix.
"""

import base64
from dataclasses import dataclass
import hashlib
import json
import logging
from pathlib import PurePosixPath
import re
from typing import Any

import yaml

from .exceptions import GenerateException, InputException
from .loader import Loader
from .options import (
    ConfigMapGeneratorOptions,
    GeneratorPluginOptions,
    SecretGeneratorOptions,
)
from .types import BEHAVIOR_CREATE, BEHAVIOR_MERGE, BEHAVIOR_REPLACE, SECRET_TYPE_OPAQUE

__all__ = [
    "ResourceFactory",
    "ResourceId",
    "add_generated",
    "name_hash",
    "parse_literal",
]

_LOGGER = logging.getLogger(__name__)

CONFIG_MAP_KIND = "ConfigMap"
SECRET_KIND = "Secret"
LIST_KIND = "List"

# Internal annotations carried on generated resources until the build finishes
BEHAVIOR_ANNOTATION = "internal.config.kubernetes.io/generatorBehavior"
NEEDS_HASH_ANNOTATION = "internal.config.kubernetes.io/needsHashSuffix"

_KEY_RE = re.compile(r"^[-._a-zA-Z0-9]+$")

# Avoid characters in the hash suffix that read like vowels or other digits
_HASH_TRANSLATION = str.maketrans({"0": "g", "1": "h", "3": "k", "a": "m", "e": "t"})


@dataclass(frozen=True, order=True)
class ResourceId:
    """Identifier for a kubernetes resource."""

    kind: str
    namespace: str | None
    name: str

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> "ResourceId":
        metadata = doc.get("metadata") or {}
        return cls(
            kind=doc.get("kind", ""),
            namespace=metadata.get("namespace"),
            name=metadata.get("name", ""),
        )

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        if self.namespace:
            return f"{self.kind}/{self.namespace}/{self.name}"
        return f"{self.kind}/{self.name}"


def parse_literal(source: str) -> tuple[str, str]:
    """Split a `key=value` literal, removing quotes around the value."""
    key, sep, value = source.partition("=")
    if not sep or not key:
        raise InputException(f"Invalid literal source '{source}', expected key=value")
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    return key, value


def _parse_file_source(source: str) -> tuple[str, str]:
    """Split a `key=path` file source, the key defaults to the file name."""
    key, sep, path = source.partition("=")
    if not sep:
        return PurePosixPath(source).name, source
    if not key or not path:
        raise InputException(f"Invalid file source '{source}', expected key=path")
    return key, path


def _parse_env_file(location: str, content: bytes) -> list[tuple[str, str]]:
    """Return the `KEY=VALUE` pairs of an env file."""
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as err:
        raise GenerateException(f"Env file '{location}' is not utf-8: {err}") from err
    pairs = []
    for num, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep or not key:
            raise GenerateException(f"Invalid line {location}:{num}: '{line}'")
        pairs.append((key, value))
    return pairs


def _encode_hash(hex_digest: str) -> str:
    return hex_digest[:10].translate(_HASH_TRANSLATION)


def name_hash(doc: dict[str, Any]) -> str:
    """Return the name suffix hash for a generated ConfigMap or Secret."""
    kind = doc["kind"]
    content: dict[str, Any] = {
        "kind": kind,
        "name": doc["metadata"]["name"],
        "data": doc.get("data", {}),
    }
    if kind == CONFIG_MAP_KIND and doc.get("binaryData"):
        content["binaryData"] = doc["binaryData"]
    elif kind == SECRET_KIND:
        content["type"] = doc.get("type", "")
    encoded = json.dumps(content, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return _encode_hash(hashlib.sha256(encoded.encode("utf-8")).hexdigest())


class ResourceFactory:
    """Builds resource documents for the builtin plugins."""

    def __init__(self, name_hash: bool = True) -> None:
        """Initialize ResourceFactory."""
        self._name_hash = name_hash

    def from_bytes(self, content: bytes, source: str) -> list[dict[str, Any]]:
        """Parse the resource documents in a yaml stream, expanding any List."""
        try:
            docs = list(yaml.safe_load_all(content))
        except yaml.YAMLError as err:
            raise InputException(f"Unable to parse resources in {source}: {err}") from err
        return self._from_docs(docs, source)

    def _from_docs(self, docs: list[Any], source: str) -> list[dict[str, Any]]:
        result: list[dict[str, Any]] = []
        for doc in docs:
            if doc is None:
                continue
            if not isinstance(doc, dict) or not doc.get("kind"):
                raise InputException(f"Invalid resource in {source} missing kind: {doc}")
            if doc["kind"] == LIST_KIND:
                result.extend(self._from_docs(doc.get("items") or [], source))
                continue
            if not (doc.get("metadata") or {}).get("name"):
                raise InputException(
                    f"Invalid resource in {source} missing metadata.name: {doc}"
                )
            result.append(doc)
        return result

    def make_config_map(
        self, loader: Loader, options: ConfigMapGeneratorOptions
    ) -> dict[str, Any]:
        """Return a ConfigMap built from the generator options."""
        doc: dict[str, Any] = {
            "apiVersion": "v1",
            "kind": CONFIG_MAP_KIND,
            "metadata": self._metadata(options),
        }
        data: dict[str, str] = {}
        binary_data: dict[str, str] = {}
        for key, value in self._load_data(loader, options).items():
            try:
                data[key] = value.decode("utf-8")
            except UnicodeDecodeError:
                binary_data[key] = base64.b64encode(value).decode("ascii")
        if data:
            doc["data"] = data
        if binary_data:
            doc["binaryData"] = binary_data
        return doc

    def make_secret(
        self, loader: Loader, options: SecretGeneratorOptions
    ) -> dict[str, Any]:
        """Return a Secret built from the generator options."""
        doc: dict[str, Any] = {
            "apiVersion": "v1",
            "kind": SECRET_KIND,
            "metadata": self._metadata(options),
            "type": options.type or SECRET_TYPE_OPAQUE,
        }
        data = {
            key: base64.b64encode(value).decode("ascii")
            for key, value in self._load_data(loader, options).items()
        }
        if data:
            doc["data"] = data
        return doc

    def finalize(self, doc: dict[str, Any]) -> None:
        """Strip the internal annotations and apply any name hash suffix."""
        metadata = doc.get("metadata") or {}
        if not (annotations := metadata.get("annotations")):
            return
        annotations.pop(BEHAVIOR_ANNOTATION, None)
        needs_hash = annotations.pop(NEEDS_HASH_ANNOTATION, None) is not None
        if not annotations:
            del metadata["annotations"]
        if needs_hash and self._name_hash:
            metadata["name"] = f"{metadata['name']}-{name_hash(doc)}"

    def _metadata(self, options: GeneratorPluginOptions) -> dict[str, Any]:
        metadata: dict[str, Any] = {"name": options.name}
        if options.namespace:
            metadata["namespace"] = options.namespace
        if options.labels:
            metadata["labels"] = dict(options.labels)
        annotations = dict(options.annotations or {})
        annotations[BEHAVIOR_ANNOTATION] = options.behavior or BEHAVIOR_CREATE
        if not options.disable_name_suffix_hash:
            annotations[NEEDS_HASH_ANNOTATION] = "true"
        metadata["annotations"] = annotations
        return metadata

    def _load_data(
        self, loader: Loader, options: GeneratorPluginOptions
    ) -> dict[str, bytes]:
        """Load the data entries from env files, literals and files in that order."""
        pairs: list[tuple[str, bytes]] = []
        for location in options.env_files:
            for key, value in _parse_env_file(location, loader.load(location)):
                pairs.append((key, value.encode("utf-8")))
        for literal in options.literals:
            key, value = parse_literal(literal)
            pairs.append((key, value.encode("utf-8")))
        for source in options.files:
            key, path = _parse_file_source(source)
            pairs.append((key, loader.load(path)))

        data: dict[str, bytes] = {}
        for key, value in pairs:
            if not _KEY_RE.match(key):
                raise GenerateException(
                    f"Invalid key '{key}' for {options.name}, must consist of alphanumeric characters, '-', '_' or '.'"
                )
            if key in data:
                raise GenerateException(
                    f"Cannot add key '{key}' to {options.name}, another key by that name already exists"
                )
            data[key] = value
        return data


def add_generated(resources: list[dict[str, Any]], doc: dict[str, Any]) -> None:
    """Add a generated resource to the list according to its behavior."""
    behavior = doc["metadata"]["annotations"].get(BEHAVIOR_ANNOTATION, BEHAVIOR_CREATE)
    resource_id = ResourceId.from_doc(doc)
    index = next(
        (
            i
            for i, existing in enumerate(resources)
            if ResourceId.from_doc(existing) == resource_id
        ),
        None,
    )
    if behavior == BEHAVIOR_CREATE:
        if index is not None:
            raise GenerateException(
                f"Generated resource {resource_id} already exists, use behavior merge or replace"
            )
        resources.append(doc)
        return
    if index is None:
        raise GenerateException(
            f"Generated resource {resource_id} with behavior {behavior} has no existing resource"
        )
    _LOGGER.debug("Applying %s of generated resource %s", behavior, resource_id)
    if behavior == BEHAVIOR_REPLACE:
        resources[index] = doc
        return
    if behavior == BEHAVIOR_MERGE:
        _merge_into(resources[index], doc)
        return
    raise GenerateException(f"Unknown behavior '{behavior}' for {resource_id}")


def _merge_into(existing: dict[str, Any], doc: dict[str, Any]) -> None:
    for key in ("data", "binaryData"):
        if values := doc.get(key):
            existing.setdefault(key, {}).update(values)
    metadata = existing.setdefault("metadata", {})
    for key in ("labels", "annotations"):
        if values := doc["metadata"].get(key):
            metadata.setdefault(key, {}).update(values)
