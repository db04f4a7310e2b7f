"""Tests for expression resolution."""

from mpconf_core.graph import PropertyGraph
from mpconf_core.project_info import KnownProperty, ProjectInfo
from mpconf_core.resolver import (
    AbsentReason,
    CancellationToken,
    CycleScope,
    PropertyResolver,
    ResolveStatus,
)


def _resolver(values, **kwargs):
    return PropertyResolver(values.get, PropertyGraph.from_values(values), **kwargs)


def test_default_used_when_reference_missing():
    resolver = _resolver({"greeting": "Hello ${name:World}"})
    assert resolver.resolve("greeting").value == "Hello World"


def test_reference_beats_default():
    resolver = _resolver({"greeting": "Hello ${name:World}", "name": "Universe"})
    resolution = resolver.resolve("greeting")
    assert resolution.status is ResolveStatus.RESOLVED
    assert resolution.value == "Hello Universe"


def test_transitive_and_nested_defaults():
    resolver = _resolver(
        {
            "url": "http://${host}:${port:${fallback.port:80}}",
            "host": "${domain}",
            "domain": "example.org",
        }
    )
    assert resolver.resolve("url").value == "http://example.org:80"


def test_empty_default():
    assert _resolver({"a": "[${missing:}]"}).resolve("a").value == "[]"


def test_missing_reference_is_absent():
    resolution = _resolver({"a": "x${missing}y"}).resolve("a")
    assert resolution.is_absent
    assert resolution.value is None
    assert resolution.reason is AbsentReason.UNRESOLVED_REFERENCE


def test_missing_key_is_absent():
    resolution = _resolver({}).resolve("nope")
    assert resolution.is_absent
    assert resolution.reason is AbsentReason.MISSING


def test_cycle_makes_project_absent():
    resolver = _resolver({"a": "${b}", "b": "${a}", "c": "plain"})
    assert resolver.resolve("a").reason is AbsentReason.CYCLE
    assert resolver.resolve("c").reason is AbsentReason.CYCLE


def test_component_scope_keeps_unrelated_properties():
    values = {"a": "${b}", "b": "${a}", "c": "plain ${d}", "d": "value"}
    resolver = _resolver(values, cycle_scope=CycleScope.COMPONENT)
    assert resolver.resolve("a").reason is AbsentReason.CYCLE
    assert resolver.resolve("c").value == "plain value"


def test_profile_first_lookup():
    values = {
        "%dev.url": "jdbc://${host}",
        "%dev.host": "devbox",
        "host": "prodbox",
        "url": "jdbc://${host}",
    }
    resolver = _resolver(values)
    assert resolver.resolve("%dev.url").value == "jdbc://devbox"
    assert resolver.resolve("url").value == "jdbc://prodbox"


def test_profile_falls_back_to_bare_key():
    resolver = _resolver({"%dev.url": "jdbc://${host}", "host": "prodbox"})
    assert resolver.resolve("%dev.url").value == "jdbc://prodbox"


def test_project_info_default_before_expression_default():
    info = ProjectInfo(properties=[KnownProperty(name="quarkus.http.port", default_value="8080")])
    resolver = _resolver({"url": "localhost:${quarkus.http.port:9999}"}, project_info=info)
    assert resolver.resolve("url").value == "localhost:8080"


def test_unclosed_expression_is_literal():
    assert _resolver({"a": "cost ${b"}).resolve("a").value == "cost ${b"


def test_escapes_kept_verbatim():
    assert _resolver({"a": "x\\=y"}).resolve("a").value == "x\\=y"


def test_cancelled_before_start():
    token = CancellationToken()
    token.cancel()
    resolution = _resolver({"a": "1"}).resolve("a", token)
    assert resolution.is_cancelled
    assert resolution.value is None


def test_cancelled_during_resolution():
    values = {"a": "${b}${c}", "b": "1", "c": "2"}
    token = CancellationToken()
    seen = []

    def lookup(key):
        seen.append(key)
        if key == "b":
            token.cancel()
        return values.get(key)

    resolver = PropertyResolver(lookup, PropertyGraph.from_values(values))
    resolution = resolver.resolve("a", token)
    assert resolution.status is ResolveStatus.CANCELLED
    assert "c" not in seen


def test_lookup_cycle_outside_graph_is_absent():
    # The graph knows nothing about the cycle; the active set still stops it.
    values = {"a": "${b}", "b": "${a}"}
    resolver = PropertyResolver(values.get, PropertyGraph())
    assert resolver.resolve("a").reason is AbsentReason.UNRESOLVED_REFERENCE


def test_long_reference_chain_resolves():
    values = {f"k{i}": "${k%d}" % (i + 1) for i in range(1000)}
    values["k1000"] = "end"
    resolver = _resolver(values)
    assert resolver.resolve("k0").value == "end"
    assert resolver.resolve("k500").value == "end"


def test_long_chain_with_missing_tail_is_absent():
    values = {f"k{i}": "${k%d}" % (i + 1) for i in range(1000)}
    assert _resolver(values).resolve("k0").reason is AbsentReason.UNRESOLVED_REFERENCE


def test_deeply_nested_defaults_resolve():
    depth = 1500
    resolver = _resolver({"x": "${a:" * depth + "v" + "}" * depth})
    assert resolver.resolve("x").value == "v"

    resolver = _resolver({"x": "${a:" * depth + "${b}" + "}" * depth, "b": "bee"})
    assert resolver.resolve("x").value == "bee"
