"""Builtin plugin that generates a ConfigMap."""

import logging
from typing import Any

from kustomize_plugins.options import ConfigMapGeneratorOptions

from .base import Generator, validate_generator_options

_LOGGER = logging.getLogger(__name__)


class ConfigMapGeneratorPlugin(Generator[ConfigMapGeneratorOptions]):
    """Generates a ConfigMap from literals, files and env files."""

    options_cls = ConfigMapGeneratorOptions

    def validate(self, options: ConfigMapGeneratorOptions) -> None:
        validate_generator_options(options)

    def generate(self) -> dict[str, Any]:
        _LOGGER.debug("Generating ConfigMap %s", self.options.name)
        return self.factory.make_config_map(self.loader, self.options)
