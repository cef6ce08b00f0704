"""kustomize-plugins build action."""

from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
    BooleanOptionalAction,
)
import logging
import pathlib
from typing import cast

import yaml

from kustomize_plugins.config import BuildConfig
from kustomize_plugins.loader import FileLoader
from kustomize_plugins.resource import ResourceFactory
from kustomize_plugins.target import KustTarget
from kustomize_plugins.types import read_kustomization

_LOGGER = logging.getLogger(__name__)


class BuildAction:
    """kustomize-plugins build action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "build",
                help="Build the resources of a local kustomization",
                description="""Runs the builtin generators and transformers
                    of a kustomization and prints the resulting resources.""",
            ),
        )
        args.add_argument(
            "path",
            type=pathlib.Path,
            help="Path to the kustomization directory or file",
        )
        args.add_argument(
            "--name-hash",
            action=BooleanOptionalAction,
            default=BuildConfig.name_hash,
            help="Append a content hash to the names of generated resources",
        )
        args.add_argument(
            "--restrict-to-root",
            action=BooleanOptionalAction,
            default=BuildConfig.restrict_to_root,
            help="Only load files within the kustomization directory",
        )
        args.add_argument(
            "--output-file",
            type=str,
            default="/dev/stdout",
            help="Output file for the results of the command",
        )
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        path: pathlib.Path,
        name_hash: bool,
        restrict_to_root: bool,
        output_file: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Action implementation."""
        config = BuildConfig(name_hash=name_hash, restrict_to_root=restrict_to_root)
        kustomization = read_kustomization(path)
        root = path if path.is_dir() else path.parent
        target = KustTarget(
            FileLoader(root, restrict_to_root=config.restrict_to_root),
            ResourceFactory(name_hash=config.name_hash),
        )
        resources = target.build(kustomization)
        _LOGGER.debug("Writing %d resources to %s", len(resources), output_file)
        content = yaml.dump_all(resources, sort_keys=False, explicit_start=True)
        with open(output_file, "w") as output:
            output.write(content)
