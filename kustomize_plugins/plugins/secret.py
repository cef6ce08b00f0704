"""Builtin plugin that generates a Secret."""

import logging
from typing import Any

from kustomize_plugins.exceptions import InputException
from kustomize_plugins.options import SecretGeneratorOptions

from .base import Generator, validate_generator_options

_LOGGER = logging.getLogger(__name__)


class SecretGeneratorPlugin(Generator[SecretGeneratorOptions]):
    """Generates a Secret from literals, files and env files.

    Values are base64 encoded into the `data` of the Secret.
    """

    options_cls = SecretGeneratorOptions

    def validate(self, options: SecretGeneratorOptions) -> None:
        validate_generator_options(options)
        if options.type is not None and not options.type.strip():
            raise InputException(f"Secret {options.name} has an empty type")

    def generate(self) -> dict[str, Any]:
        _LOGGER.debug("Generating Secret %s", self.options.name)
        return self.factory.make_secret(self.loader, self.options)
