"""Tests for building plugin configuration payloads."""

import pytest
import yaml

from kustomize_plugins.exceptions import InputException, MarshalException
from kustomize_plugins.options import (
    ConfigMapGeneratorOptions,
    ImageTagTransformerOptions,
    SecretGeneratorOptions,
    config_map_options,
    image_tag_options,
    marshal,
    merge_generator_options,
    secret_options,
)
from kustomize_plugins.types import (
    ConfigMapArgs,
    FieldSpec,
    GeneratorOptions,
    Image,
    SecretArgs,
)


@pytest.mark.parametrize(
    ("layers", "expected"),
    [
        ((), GeneratorOptions()),
        ((None, None), GeneratorOptions()),
        (
            (GeneratorOptions(labels={"team": "infra"}), None),
            GeneratorOptions(labels={"team": "infra"}),
        ),
        (
            (
                GeneratorOptions(
                    labels={"team": "infra", "env": "prod"},
                    annotations={"owner": "ops"},
                    disable_name_suffix_hash=True,
                ),
                GeneratorOptions(
                    labels={"env": "dev"}, disable_name_suffix_hash=False
                ),
            ),
            GeneratorOptions(
                labels={"team": "infra", "env": "dev"},
                annotations={"owner": "ops"},
                disable_name_suffix_hash=False,
            ),
        ),
        (
            (
                GeneratorOptions(disable_name_suffix_hash=True),
                GeneratorOptions(labels={"tier": "web"}),
            ),
            GeneratorOptions(labels={"tier": "web"}, disable_name_suffix_hash=True),
        ),
    ],
)
def test_merge_generator_options(
    layers: tuple[GeneratorOptions | None, ...], expected: GeneratorOptions
) -> None:
    """Test that later option layers override earlier ones per field."""
    assert merge_generator_options(*layers) == expected


def test_merge_does_not_modify_inputs() -> None:
    """Test the shared defaults are left untouched by a merge."""
    defaults = GeneratorOptions(labels={"team": "infra"})
    merge_generator_options(defaults, GeneratorOptions(labels={"env": "dev"}))
    assert defaults == GeneratorOptions(labels={"team": "infra"})


def test_config_map_options() -> None:
    """Test merging shared options with a ConfigMap entry."""
    options = config_map_options(
        GeneratorOptions(labels={"team": "infra"}),
        ConfigMapArgs(
            name="app-config",
            namespace="apps",
            behavior="merge",
            literals=["color=blue"],
            files=["app.properties"],
            env="legacy.env",
            envs=["app.env"],
            options=GeneratorOptions(annotations={"note": "x"}),
        ),
    )
    assert options == ConfigMapGeneratorOptions(
        name="app-config",
        namespace="apps",
        behavior="merge",
        literals=["color=blue"],
        files=["app.properties"],
        env="legacy.env",
        envs=["app.env"],
        labels={"team": "infra"},
        annotations={"note": "x"},
    )
    assert options.env_files == ["legacy.env", "app.env"]


def test_secret_options_without_defaults() -> None:
    """Test a Secret entry with no shared generator options."""
    options = secret_options(None, SecretArgs(name="db-secret", type="Opaque"))
    assert options == SecretGeneratorOptions(name="db-secret", type="Opaque")


def test_marshal_config_map() -> None:
    """Test the canonical payload for a ConfigMap generator."""
    options = config_map_options(
        GeneratorOptions(labels={"team": "infra"}, disable_name_suffix_hash=True),
        ConfigMapArgs(name="app-config", literals=["key=value"]),
    )
    payload = marshal(options, "configmap")
    assert payload == (
        b"disableNameSuffixHash: true\n"
        b"envs: []\n"
        b"files: []\n"
        b"labels:\n"
        b"  team: infra\n"
        b"literals:\n"
        b"- key=value\n"
        b"name: app-config\n"
    )


def test_round_trip_config_map() -> None:
    """Test a serialized payload parses back into the same options."""
    options = config_map_options(
        GeneratorOptions(labels={"team": "infra"}),
        ConfigMapArgs(name="app-config", literals=["key=value"]),
    )
    parsed = ConfigMapGeneratorOptions.parse_yaml(marshal(options, "configmap"))
    assert parsed == options
    assert parsed.literals == ["key=value"]
    assert parsed.labels == {"team": "infra"}


def test_round_trip_image_tag() -> None:
    """Test the image tag payload holds the rule and the field specs."""
    field_specs = [FieldSpec(path="spec/containers[]/image", kind="Pod")]
    options = image_tag_options(Image(name="nginx", new_tag="1.3"), field_specs)
    payload = marshal(options, "imageTag")
    assert yaml.safe_load(payload) == {
        "imageTag": {"name": "nginx", "newTag": "1.3"},
        "fieldSpecs": [{"path": "spec/containers[]/image", "kind": "Pod"}],
    }
    assert ImageTagTransformerOptions.parse_yaml(payload) == options


def test_image_tag_options_copies_field_specs() -> None:
    """Test the options hold their own list of field specs."""
    field_specs = [FieldSpec(path="spec/image")]
    options = image_tag_options(Image(name="nginx"), field_specs)
    field_specs.append(FieldSpec(path="other"))
    assert options.field_specs == [FieldSpec(path="spec/image")]


def test_marshal_failure() -> None:
    """Test options that cannot be serialized."""
    options = ConfigMapGeneratorOptions(name="app-config")
    options.labels = {"team": object()}  # type: ignore[dict-item]
    with pytest.raises(MarshalException, match="builtin configmap marshal") as exc:
        marshal(options, "configmap")
    assert exc.value.capability == "configmap"


def test_parse_rejects_unknown_keys() -> None:
    """Test a payload with fields that the plugin does not understand."""
    with pytest.raises(InputException, match="Invalid ConfigMapGeneratorOptions"):
        ConfigMapGeneratorOptions.parse_yaml(b"name: cm\nunknown: 1\n")
