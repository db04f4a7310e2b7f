"""Tests for config sources and directory discovery."""

from pathlib import Path

import pytest

from mpconf_core.errors import SourceLoadError
from mpconf_core.sources import (
    APPLICATION_PROPERTIES_ORDINAL,
    MICROPROFILE_CONFIG_ORDINAL,
    DirectoryConfigSourceProvider,
    InMemoryConfigSource,
    PropertiesConfigSource,
    YamlConfigSource,
)
from mpconf_core.sources.yaml_source import APPLICATION_YAML_ORDINAL, flatten_yaml

from conftest import write_resources


def test_properties_source_from_text():
    source = PropertiesConfigSource(text="a=1\n%dev.a=2\nb = three\n", ordinal=250)
    assert source.properties == {"a": "1", "%dev.a": "2", "b": "three"}
    assert source.ordinal == 250
    assert source.get_property("b") == "three"
    assert source.get_property("missing") is None
    assert source.document.get_property("%dev.a").property_value == "2"


def test_config_ordinal_overrides_default():
    source = PropertiesConfigSource(text="config_ordinal = 300\nx=1\n", ordinal=100)
    assert source.ordinal == 300


def test_invalid_config_ordinal_is_ignored():
    source = InMemoryConfigSource({"config_ordinal": "high"}, ordinal=120)
    assert source.ordinal == 120


def test_profile_file_prefixes_unprofiled_keys():
    source = PropertiesConfigSource(text="a=1\n%prod.b=2\n", profile="dev")
    assert source.properties == {"%dev.a": "1", "%prod.b": "2"}


def test_get_property_as_int():
    source = InMemoryConfigSource({"port": " 8080 ", "name": "x"})
    assert source.get_property_as_int("port") == 8080
    assert source.get_property_as_int("name") is None
    assert source.get_property_as_int("missing") is None


def test_get_property_informations():
    source = InMemoryConfigSource({"a": "1", "%dev.a": "2", "ab": "3"}, source_id="mem")
    infos = source.get_property_informations("a")
    assert sorted(i.property_name_with_profile for i in infos) == ["%dev.a", "a"]
    assert {i.property_name for i in infos} == {"a"}
    assert all(i.source_id == "mem" and i.ordinal == 100 for i in infos)

    [dev] = source.get_property_informations("%dev.a")
    assert dev.profile == "dev"
    assert dev.value == "2"
    assert source.get_property_informations("zzz") is None


def test_evict_reloads_file(tmp_path: Path):
    path = tmp_path / "application.properties"
    path.write_text("x=1\n", encoding="utf-8")
    source = PropertiesConfigSource(path)
    assert source.get_property("x") == "1"

    path.write_text("x=2\n", encoding="utf-8")
    assert source.get_property("x") == "1"
    source.evict()
    assert source.get_property("x") == "2"


def test_unreadable_properties_file(tmp_path: Path):
    source = PropertiesConfigSource(tmp_path / "missing.properties")
    with pytest.raises(SourceLoadError) as excinfo:
        source.properties
    assert "missing.properties" in str(excinfo.value)


def test_source_needs_path_or_text():
    with pytest.raises(ValueError):
        PropertiesConfigSource()
    with pytest.raises(ValueError):
        YamlConfigSource()


def test_flatten_yaml():
    data = {
        "quarkus": {"http": {"port": 8080, "host": "0.0.0.0"}},
        "%dev": {"quarkus": {"http": {"port": 9090}}},
        "list": [1, 2, 3],
        "servers": [{"name": "a"}, {"name": "b"}],
        "flag": True,
        "nothing": None,
    }
    assert flatten_yaml(data) == {
        "quarkus.http.port": "8080",
        "quarkus.http.host": "0.0.0.0",
        "%dev.quarkus.http.port": "9090",
        "list": "1,2,3",
        "servers[0].name": "a",
        "servers[1].name": "b",
        "flag": "true",
        "nothing": "",
    }


def test_yaml_source_from_text():
    source = YamlConfigSource(text="greeting:\n  message: hello\n")
    assert source.properties == {"greeting.message": "hello"}
    assert source.ordinal == APPLICATION_YAML_ORDINAL


def test_yaml_source_empty_and_invalid():
    assert YamlConfigSource(text="").properties == {}
    with pytest.raises(SourceLoadError):
        YamlConfigSource(text="- a\n- b\n").properties
    with pytest.raises(SourceLoadError):
        YamlConfigSource(text="a: [unclosed\n").properties


def test_directory_provider_discovers_files(tmp_path: Path):
    resources = write_resources(
        tmp_path,
        {
            "META-INF/microprofile-config.properties": "a=mp\n",
            "META-INF/microprofile-config-test.properties": "a=mp-test\n",
            "application.properties": "a=app\n",
            "application-dev.properties": "a=app-dev\n",
            "application.yaml": "a: yaml\n",
            "other.properties": "a=ignored\n",
        },
    )
    sources = DirectoryConfigSourceProvider(resources).get_config_sources()
    found = {(Path(s.source_id).name, s.ordinal) for s in sources}
    assert found == {
        ("microprofile-config.properties", MICROPROFILE_CONFIG_ORDINAL),
        ("microprofile-config-test.properties", MICROPROFILE_CONFIG_ORDINAL),
        ("application.properties", APPLICATION_PROPERTIES_ORDINAL),
        ("application-dev.properties", APPLICATION_PROPERTIES_ORDINAL),
        ("application.yaml", APPLICATION_YAML_ORDINAL),
    }
    dev = next(s for s in sources if s.source_id.endswith("application-dev.properties"))
    assert dev.properties == {"%dev.a": "app-dev"}


def test_directory_provider_filters_profiles(tmp_path: Path):
    resources = write_resources(
        tmp_path,
        {
            "application-dev.properties": "a=1\n",
            "application-prod.properties": "a=2\n",
        },
    )
    sources = DirectoryConfigSourceProvider(resources, profiles=["prod"]).get_config_sources()
    assert [Path(s.source_id).name for s in sources] == ["application-prod.properties"]


def test_directory_provider_missing_root(tmp_path: Path):
    assert DirectoryConfigSourceProvider(tmp_path / "nope").get_config_sources() == []


def test_property_names_in_definition_order():
    source = PropertiesConfigSource(text="b=1\n%dev.a=2\na=3\nb=4\n")
    assert source.property_names() == ["b", "%dev.a", "a"]
    assert InMemoryConfigSource({"x": "1"}).property_names() == ["x"]
    assert PropertiesConfigSource(text="# nothing\n").property_names() == []
