"""Builtin generator and transformer plugins."""

from .base import BuiltinPlugin, Generator, PluginState, Transformer
from .configmap import ConfigMapGeneratorPlugin
from .image_tag import ImageTagTransformerPlugin
from .secret import SecretGeneratorPlugin

__all__ = [
    "BuiltinPlugin",
    "Generator",
    "Transformer",
    "PluginState",
    "ConfigMapGeneratorPlugin",
    "SecretGeneratorPlugin",
    "ImageTagTransformerPlugin",
]
