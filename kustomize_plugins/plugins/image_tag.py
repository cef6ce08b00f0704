"""Builtin plugin that rewrites container image names, tags and digests."""

from collections.abc import Callable
import logging
from typing import Any

from kustomize_plugins.exceptions import InputException
from kustomize_plugins.options import ImageTagTransformerOptions

from .base import Transformer

_LOGGER = logging.getLogger(__name__)


def split_image(image: str) -> tuple[str, str]:
    """Split an image reference into its name and its `:tag` or `@digest` suffix.

    A colon before the last `/` belongs to a registry host and port.
    """
    if (at := image.find("@")) >= 0:
        return image[:at], image[at:]
    colon = image.rfind(":")
    if colon > image.rfind("/"):
        return image[:colon], image[colon:]
    return image, ""


def _update_field(
    node: Any, segments: list[str], update: Callable[[str], str]
) -> None:
    """Apply the update to each string found at the path, walking into lists."""
    if isinstance(node, list):
        for item in node:
            _update_field(item, segments, update)
        return
    if not isinstance(node, dict) or not segments or segments[0] not in node:
        return
    key, rest = segments[0], segments[1:]
    if rest:
        _update_field(node[key], rest, update)
    elif isinstance(value := node[key], str):
        node[key] = update(value)


class ImageTagTransformerPlugin(Transformer[ImageTagTransformerOptions]):
    """Rewrites images matching a name within the configured fields."""

    options_cls = ImageTagTransformerOptions

    def validate(self, options: ImageTagTransformerOptions) -> None:
        if not options.image_tag.name:
            raise InputException("Image is missing required field 'name'")
        for spec in options.field_specs:
            if not spec.segments():
                raise InputException(f"Image field spec has an empty path: {spec}")

    def update_image(self, image: str) -> str:
        """Return the image with the rewrite rule applied, if it matches."""
        rule = self.options.image_tag
        name, suffix = split_image(image)
        if name != rule.name:
            return image
        if rule.digest:
            suffix = f"@{rule.digest}"
        elif rule.new_tag:
            suffix = f":{rule.new_tag}"
        return f"{rule.new_name or name}{suffix}"

    def transform(self, resources: list[dict[str, Any]]) -> None:
        for doc in resources:
            for spec in self.options.field_specs:
                if spec.matches(doc):
                    _update_field(doc, spec.segments(), self.update_image)
