"""Tests for project-level aggregation of config sources."""

import threading
from pathlib import Path

from mpconf_core.project import ConfigProject
from mpconf_core.project_info import KnownProperty, ProjectInfo
from mpconf_core.resolver import AbsentReason, CycleScope
from mpconf_core.settings import MpconfSettings
from mpconf_core.sources import InMemoryConfigSource, StaticConfigSourceProvider, YamlConfigSource

from conftest import write_resources


def _project(*sources, **kwargs) -> ConfigProject:
    return ConfigProject([StaticConfigSourceProvider(sources)], **kwargs)


class _CountingProvider:
    def __init__(self, sources, on_call=None):
        self.sources = list(sources)
        self.calls = 0
        self.on_call = on_call

    def get_config_sources(self):
        self.calls += 1
        if self.on_call is not None:
            self.on_call(self.calls)
        return list(self.sources)


class _FailingProvider:
    def get_config_sources(self):
        raise RuntimeError("provider exploded")


def test_higher_ordinal_wins():
    low = InMemoryConfigSource({"x": "1"}, ordinal=100)
    high = InMemoryConfigSource({"x": "2"}, ordinal=250)
    assert _project(low, high).get_property("x") == "2"
    assert _project(high, low).get_property("x") == "2"


def test_config_ordinal_key_reorders_sources():
    promoted = InMemoryConfigSource({"x": "1", "config_ordinal": "500"}, ordinal=100)
    other = InMemoryConfigSource({"x": "2"}, ordinal=250)
    project = _project(other, promoted)
    assert project.get_property("x") == "1"
    assert [s.ordinal for s in project.get_config_sources()] == [500, 250]


def test_equal_ordinals_keep_discovery_order():
    first = InMemoryConfigSource({"x": "first"}, ordinal=100, source_id="first")
    second = InMemoryConfigSource({"x": "second"}, ordinal=100, source_id="second")
    project = _project(first, second)
    assert [s.source_id for s in project.get_config_sources()] == ["first", "second"]
    assert project.get_property("x") == "first"


def test_get_property_default_and_int():
    project = _project(InMemoryConfigSource({"port": "8080"}))
    assert project.get_property("missing", "fallback") == "fallback"
    assert project.get_property_as_int("port") == 8080
    assert project.get_property_as_int("missing", 1) == 1


def test_property_informations_merge_sources():
    low = InMemoryConfigSource({"x": "1", "%dev.x": "d1"}, ordinal=100, source_id="low")
    high = InMemoryConfigSource({"x": "2"}, ordinal=250, source_id="high")
    infos = _project(low, high).get_property_informations("x")

    assert [(i.property_name_with_profile, i.value, i.source_id) for i in infos] == [
        ("%dev.x", "d1", "low"),
        ("x", "2", "high"),
    ]


def test_has_property():
    project = _project(InMemoryConfigSource({"%dev.only": "1"}))
    assert project.has_property("only")
    assert project.has_property("%dev.only")
    assert not project.has_property("%prod.only")
    assert not project.has_property("other")


def test_cache_until_evicted(tmp_path: Path):
    resources = write_resources(tmp_path, {"application.properties": "x=1\n"})
    project = ConfigProject.from_root(tmp_path)
    assert project.get_property("x") == "1"

    (resources / "application.properties").write_text("x=2\n", encoding="utf-8")
    assert project.get_property("x") == "1"

    generation = project.generation
    project.evict_config_sources_cache()
    assert project.generation == generation + 1
    assert project.get_property("x") == "2"


def test_failing_provider_and_source_are_skipped():
    good = InMemoryConfigSource({"x": "ok"})
    broken = YamlConfigSource(text="- not\n- a mapping\n")
    project = ConfigProject([_FailingProvider(), StaticConfigSourceProvider([broken, good])])
    assert project.get_config_sources() == (good,)
    assert project.get_property("x") == "ok"


def test_concurrent_readers_share_one_build():
    provider = _CountingProvider([InMemoryConfigSource({"x": "1"})])
    project = ConfigProject([provider])
    results = []
    barrier = threading.Barrier(8)

    def read():
        barrier.wait()
        results.append(project.get_config_sources())

    threads = [threading.Thread(target=read) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert provider.calls == 1
    assert all(r is results[0] for r in results)


def test_rebuild_during_eviction_is_not_published():
    project = None

    def evict_on_first_call(calls):
        if calls == 1:
            project.evict_config_sources_cache()

    provider = _CountingProvider([InMemoryConfigSource({"x": "1"})], on_call=evict_on_first_call)
    project = ConfigProject([provider])

    # The stale list is still returned to its builder.
    assert project.get_property("x") == "1"
    assert project.get_property("x") == "1"
    assert provider.calls == 2


def test_resolve_across_files(tmp_path: Path):
    write_resources(
        tmp_path,
        {
            "application.properties": "greeting=Hello ${name:World}\n%dev.greeting=Hi ${name}\n",
            "application.yaml": "name: Universe\n",
        },
    )
    project = ConfigProject.from_root(tmp_path)
    assert project.resolve("greeting") == "Hello Universe"
    assert project.resolve("%dev.greeting") == "Hi Universe"
    assert project.resolve("missing") is None
    assert project.effective_values()["name"] == "Universe"


def test_resolve_with_project_info():
    info = ProjectInfo(properties=[KnownProperty(name="port", default_value="8080")])
    project = _project(InMemoryConfigSource({"url": "host:${port}"}))
    assert project.resolve_property("url").is_absent
    assert project.resolve_property("url", project_info=info).value == "host:8080"


def test_cycle_scope_from_settings(tmp_path: Path):
    write_resources(tmp_path, {"application.properties": "a=${b}\nb=${a}\nc=plain\n"})

    project = ConfigProject.from_root(tmp_path)
    assert project.resolve_property("c").reason is AbsentReason.CYCLE

    settings = MpconfSettings(cycle_scope=CycleScope.COMPONENT)
    project = ConfigProject.from_root(tmp_path, settings)
    assert project.resolve("c") == "plain"
    assert project.property_graph().find_cycle() == ["a", "b", "a"]


def test_graph_rebuilt_after_eviction():
    source = InMemoryConfigSource({"a": "${b}"})
    project = _project(source)
    graph = project.property_graph()
    assert project.property_graph() is graph
    project.evict_cache()
    assert project.property_graph() is not graph


def test_ordinal_override_single_information():
    a = InMemoryConfigSource({"x": "1"}, ordinal=100, source_id="A")
    b = InMemoryConfigSource({"x": "2"}, ordinal=200, source_id="B")
    project = _project(a, b)

    assert project.get_property("x") == "2"
    [info] = project.get_property_informations("x")
    assert (info.value, info.source_id, info.ordinal) == ("2", "B", 200)


def test_default_fallback_then_reference():
    source = InMemoryConfigSource({"greeting": "${name:World}"})
    project = _project(source)
    assert project.resolve("greeting") == "World"

    project = _project(source, InMemoryConfigSource({"name": "Universe"}))
    assert project.resolve("greeting") == "Universe"


def test_cycle_across_sources_is_absent():
    project = _project(
        InMemoryConfigSource({"a": "${b}"}, source_id="first"),
        InMemoryConfigSource({"b": "${a}"}, source_id="second"),
    )
    assert not project.property_graph().is_acyclic()
    assert project.resolve_property("a").is_absent
    assert project.resolve_property("b").is_absent


def test_long_reference_chain_across_project():
    values = {f"k{i}": "${k%d}" % (i + 1) for i in range(1000)}
    values["k1000"] = "end"
    project = _project(InMemoryConfigSource(values))
    assert project.resolve("k0") == "end"
    assert project.resolve_property("k999").value == "end"


def test_duplicate_resource_dirs_are_read_once(tmp_path: Path):
    write_resources(tmp_path, {"application.properties": "x=1\n"})
    settings = MpconfSettings(
        resource_dirs=["src/main/resources", "src/main/resources/", "./src/main/../main/resources"]
    )
    project = ConfigProject.from_root(tmp_path, settings)
    assert len(project.providers) == 1
    assert len(project.get_config_sources()) == 1
    assert [i.value for i in project.get_property_informations("x")] == ["1"]


def test_project_info_known_properties():
    info = ProjectInfo(
        properties=[
            KnownProperty(name="quarkus.http.port", default_value="8080"),
            KnownProperty(name="quarkus.application.name"),
        ]
    )
    assert info.is_known("quarkus.http.port")
    assert info.is_known("quarkus.application.name")
    assert not info.is_known("quarkus.http.host")
    assert info.default_value("quarkus.application.name") is None
