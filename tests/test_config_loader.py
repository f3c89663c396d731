"""Tests for config file loading and option merging."""

import pytest
from vpcctl.config.loader import load_config_file, merge_options, parse_tags, to_network_spec
from vpcctl.core.errors import ConfigurationError, ValidationError
from vpcctl.vpc.models import SubnetSpec


def test_load_config_file(tmp_path):
    config = tmp_path / "vpc.yaml"
    config.write_text(
        """
name: from-file
cidr: 10.1.0.0/16
tags:
  team: platform
subnets:
  - az: us-west-2a
    cidr: 10.1.0.0/20
    public: true
  - az: us-west-2a
    cidr: 10.1.16.0/20
"""
    )

    data = load_config_file(config)

    assert data["name"] == "from-file"
    assert data["tags"] == {"team": "platform"}
    assert len(data["subnets"]) == 2


def test_load_config_file_missing(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config_file(tmp_path / "missing.yaml")


def test_load_config_file_invalid_yaml(tmp_path):
    config = tmp_path / "bad.yaml"
    config.write_text("name: [unclosed\n")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_config_file(config)


def test_load_config_file_not_a_mapping(tmp_path):
    config = tmp_path / "list.yaml"
    config.write_text("- one\n- two\n")

    with pytest.raises(ConfigurationError, match="mapping"):
        load_config_file(config)


def test_load_config_file_empty(tmp_path):
    config = tmp_path / "empty.yaml"
    config.write_text("")

    assert load_config_file(config) == {}


def test_merge_options_file_overrides_cli():
    cli = {"name": "from-cli", "cidr": "10.0.0.0/16", "tags": {"a": "1"}, "subnets": []}
    file = {"name": "from-file", "cidr": "", "tags": {}, "subnets": [{"az": "us-west-2a", "cidr": "10.0.0.0/24"}]}

    merged = merge_options(cli, file)

    assert merged["name"] == "from-file"
    assert merged["cidr"] == "10.0.0.0/16"
    assert merged["tags"] == {"a": "1"}
    assert merged["subnets"] == [{"az": "us-west-2a", "cidr": "10.0.0.0/24"}]


def test_merge_options_without_file():
    cli = {"name": "from-cli"}

    assert merge_options(cli, None) == cli


def test_merge_options_keeps_false_values_from_file():
    assert merge_options({"public": True}, {"public": False}) == {"public": False}


def test_parse_tags():
    assert parse_tags("team=platform, env=dev") == {"team": "platform", "env": "dev"}
    assert parse_tags("") == {}
    assert parse_tags(None) == {}
    assert parse_tags("empty=") == {"empty": ""}


@pytest.mark.parametrize("value", ["novalue", "=value"])
def test_parse_tags_rejects_malformed(value):
    with pytest.raises(ValidationError):
        parse_tags(value)


def test_to_network_spec():
    spec = to_network_spec(
        {
            "name": "my-vpc",
            "cidr": "10.1.0.0/16",
            "tags": {"team": "platform", "cost-center": 42},
            "subnets": [{"az": "us-west-2a", "cidr": "10.1.0.0/20", "public": True}],
        }
    )

    assert spec.name == "my-vpc"
    assert spec.cidr == "10.1.0.0/16"
    assert spec.tags == {"team": "platform", "cost-center": "42"}
    assert spec.subnets == [SubnetSpec(az="us-west-2a", cidr="10.1.0.0/20", public=True)]


def test_to_network_spec_defaults():
    spec = to_network_spec({"name": "my-vpc"})

    assert spec.cidr == "10.0.0.0/16"
    assert spec.subnets == []
    assert spec.tags == {}


def test_to_network_spec_rejects_incomplete_subnet():
    with pytest.raises(ConfigurationError, match="missing cidr"):
        to_network_spec({"name": "my-vpc", "subnets": [{"az": "us-west-2a"}]})


def test_to_network_spec_rejects_bad_shapes():
    with pytest.raises(ConfigurationError):
        to_network_spec({"name": "my-vpc", "tags": ["team=platform"]})
    with pytest.raises(ConfigurationError):
        to_network_spec({"name": "my-vpc", "subnets": {"az": "us-west-2a"}})
    with pytest.raises(ConfigurationError):
        to_network_spec({"name": "my-vpc", "subnets": ["10.0.0.0/24"]})
